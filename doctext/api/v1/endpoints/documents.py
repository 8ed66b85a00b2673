"""
Document store endpoints.
"""
import structlog
from fastapi import APIRouter, Depends

from doctext.models.document import (
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
    DocumentUpdate,
)
from doctext.services.document_store import DocumentRepository, get_document_repository

logger = structlog.get_logger()
router = APIRouter()


@router.get("", response_model=DocumentListResponse, summary="모든 문서 조회")
async def list_documents(repository: DocumentRepository = Depends(get_document_repository)):
    documents = repository.list()
    return DocumentListResponse(data=documents, count=len(documents))


@router.get("/{document_id}", response_model=DocumentResponse, summary="특정 문서 조회")
async def get_document(document_id: int, repository: DocumentRepository = Depends(get_document_repository)):
    return DocumentResponse(data=repository.get(document_id))


@router.post("", response_model=DocumentResponse, status_code=201, summary="새 문서 생성")
async def create_document(body: DocumentCreate, repository: DocumentRepository = Depends(get_document_repository)):
    document = repository.create(body)
    return DocumentResponse(data=document, message="문서가 성공적으로 생성되었습니다.")


@router.put("/{document_id}", response_model=DocumentResponse, summary="문서 수정")
async def update_document(
    document_id: int,
    body: DocumentUpdate,
    repository: DocumentRepository = Depends(get_document_repository),
):
    document = repository.update(document_id, body)
    return DocumentResponse(data=document, message="문서가 성공적으로 수정되었습니다.")


@router.delete("/{document_id}", response_model=DocumentResponse, summary="문서 삭제")
async def delete_document(document_id: int, repository: DocumentRepository = Depends(get_document_repository)):
    document = repository.delete(document_id)
    return DocumentResponse(data=document, message="문서가 성공적으로 삭제되었습니다.")
