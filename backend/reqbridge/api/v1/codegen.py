"""
API endpoints for code generation.
"""
import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from reqbridge.config import settings
from reqbridge.models.request import ApiRequest
from reqbridge.services.code_generator import (
    LANGUAGE_LABELS,
    CodeGenOptions,
    UnsupportedLanguageError,
    generate_code,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class CodeGenRequest(BaseModel):
    language: str
    request: ApiRequest
    options: CodeGenOptions | None = None


def _default_options() -> CodeGenOptions:
    return CodeGenOptions(
        indent_size=settings.CODEGEN_INDENT_SIZE,
        use_single_quotes=settings.CODEGEN_USE_SINGLE_QUOTES,
    )


@router.post("/generate")
async def generate_code_snippet(payload: CodeGenRequest):
    """Generate a code snippet for the given request in the specified language."""
    try:
        code = generate_code(payload.request, payload.language, payload.options or _default_options())
    except UnsupportedLanguageError as e:
        logger.warning("Rejected code generation request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    return {"code": code, "language": payload.language}


@router.get("/languages")
async def list_languages():
    """List available code generation languages."""
    return {"languages": {lang.value: label for lang, label in LANGUAGE_LABELS.items()}}
