from fastapi import APIRouter

from reqbridge.api.v1 import codegen, import_export

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(import_export.router, prefix="/import-export", tags=["Import/Export"])
api_router.include_router(codegen.router, prefix="/codegen", tags=["Code Generation"])
