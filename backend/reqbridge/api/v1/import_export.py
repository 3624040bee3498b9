"""
API endpoints for import/export (Postman, native collections, cURL).
"""
import json
import logging

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from reqbridge.models.collection import Collection
from reqbridge.models.request import ApiRequest
from reqbridge.services.code_generator import CodeLanguage, generate_code
from reqbridge.services.curl_parser import parse_curl
from reqbridge.services.import_export import (
    CollectionFormatError,
    parse_imported_file,
    serialize_collection,
)

logger = logging.getLogger(__name__)

router = APIRouter()

EXPORT_FORMATS = ("native", "postman")


# ── Import cURL ──

class CurlImportRequest(BaseModel):
    curl_command: str
    name: str | None = None


@router.post("/import/curl", response_model=ApiRequest)
async def import_curl(payload: CurlImportRequest):
    """Parse a cURL command into a request."""
    request = parse_curl(payload.curl_command)
    if not request.url:
        logger.warning("cURL command produced no URL")
    if payload.name:
        request = request.model_copy(update={"name": payload.name})
    return request


# ── Export cURL ──

class CurlExportRequest(BaseModel):
    request: ApiRequest


@router.post("/export/curl")
async def export_curl(payload: CurlExportRequest):
    """Generate a cURL command from request data."""
    return {"curl": generate_code(payload.request, CodeLanguage.CURL)}


# ── Import collection file ──

@router.post("/import", response_model=Collection)
async def import_collection(file: UploadFile = File(...)):
    """Import a Postman v2.1 or native collection JSON file."""
    content = await file.read()
    try:
        collection = parse_imported_file(content.decode("utf-8-sig"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Rejected import of %r: invalid JSON", file.filename)
        raise HTTPException(status_code=400, detail="Invalid JSON file")
    except CollectionFormatError as e:
        logger.warning("Rejected import of %r: %s", file.filename, e)
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Imported collection %r from %r", collection.name, file.filename)
    return collection


# ── Export collection file ──

@router.post("/export/{fmt}")
async def export_collection(fmt: str, collection: Collection):
    """Export a collection as a downloadable native or Postman v2.1 JSON file."""
    if fmt not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {fmt}")

    filename, text = serialize_collection(collection, fmt)
    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
