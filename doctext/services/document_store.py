"""
Document repository.

Endpoints depend on the DocumentRepository interface; the in-memory
implementation is the default and is injected through FastAPI Depends.
"""
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

import structlog

from doctext.core.exceptions import DocumentNotFoundError
from doctext.models.document import Document, DocumentCreate, DocumentUpdate

logger = structlog.get_logger()


class DocumentRepository(ABC):
    """Storage interface for documents."""

    @abstractmethod
    def list(self) -> List[Document]:
        ...

    @abstractmethod
    def get(self, document_id: int) -> Document:
        """Raises DocumentNotFoundError when missing."""

    @abstractmethod
    def create(self, data: DocumentCreate) -> Document:
        ...

    @abstractmethod
    def update(self, document_id: int, data: DocumentUpdate) -> Document:
        ...

    @abstractmethod
    def delete(self, document_id: int) -> Document:
        ...


class InMemoryDocumentRepository(DocumentRepository):
    """Process-local store keyed by an auto-incremented id."""

    def __init__(self):
        self._documents: dict[int, Document] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def list(self) -> List[Document]:
        with self._lock:
            return list(self._documents.values())

    def get(self, document_id: int) -> Document:
        with self._lock:
            document = self._documents.get(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def create(self, data: DocumentCreate) -> Document:
        now = datetime.now(timezone.utc)
        with self._lock:
            document = Document(
                id=self._next_id,
                created_at=now,
                updated_at=now,
                **data.model_dump(),
            )
            self._documents[document.id] = document
            self._next_id += 1

        logger.info("Document created", document_id=document.id)
        return document

    def update(self, document_id: int, data: DocumentUpdate) -> Document:
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        with self._lock:
            current = self._documents.get(document_id)
            if current is None:
                raise DocumentNotFoundError(document_id)
            # id 는 변경 불가
            updated = current.model_copy(update={**changes, "updated_at": datetime.now(timezone.utc)})
            self._documents[document_id] = updated

        logger.info("Document updated", document_id=document_id, fields=sorted(changes))
        return updated

    def delete(self, document_id: int) -> Document:
        with self._lock:
            document = self._documents.pop(document_id, None)
        if document is None:
            raise DocumentNotFoundError(document_id)

        logger.info("Document deleted", document_id=document_id)
        return document


_repository: Optional[DocumentRepository] = None


def get_document_repository() -> DocumentRepository:
    global _repository
    if _repository is None:
        _repository = InMemoryDocumentRepository()
    return _repository
