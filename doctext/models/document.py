"""
Pydantic models for the document store endpoints.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 10000


class DocumentType(str, Enum):
    GENERAL = "general"
    REPORT = "report"
    PROPOSAL = "proposal"
    MANUAL = "manual"
    POLICY = "policy"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    DELETED = "deleted"


def _check_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError("제목은 필수입니다")
    if len(value) > TITLE_MAX_LENGTH:
        raise ValueError(f"제목은 {TITLE_MAX_LENGTH}자를 초과할 수 없습니다")
    return value


def _check_content(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError("내용은 필수입니다")
    if len(value) > CONTENT_MAX_LENGTH:
        raise ValueError(f"내용은 {CONTENT_MAX_LENGTH:,}자를 초과할 수 없습니다")
    return value


class DocumentCreate(BaseModel):
    """Request model for creating a document."""
    title: str = Field(..., description="문서 제목 (최대 200자)")
    content: str = Field(..., description="문서 내용 (최대 10,000자)")
    type: DocumentType = Field(DocumentType.GENERAL, description="문서 종류")
    status: DocumentStatus = Field(DocumentStatus.DRAFT, description="문서 상태")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="작성자, 부서, 태그 등")

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _check_title(value)

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        return _check_content(value)


class DocumentUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    title: Optional[str] = None
    content: Optional[str] = None
    type: Optional[DocumentType] = None
    status: Optional[DocumentStatus] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: Optional[str]) -> Optional[str]:
        return _check_title(value)

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: Optional[str]) -> Optional[str]:
        return _check_content(value)


class Document(BaseModel):
    """Stored document."""
    id: int
    title: str
    content: str
    type: DocumentType
    status: DocumentStatus
    created_at: datetime
    updated_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DocumentResponse(BaseModel):
    success: bool = True
    data: Document
    message: Optional[str] = None


class DocumentListResponse(BaseModel):
    success: bool = True
    data: List[Document]
    count: int
