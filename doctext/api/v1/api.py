from fastapi import APIRouter

from doctext.api.v1.endpoints import documents, extract

api_router = APIRouter()

api_router.include_router(extract.router, prefix="/extract", tags=["extract"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
