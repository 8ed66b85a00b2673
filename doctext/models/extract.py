"""
Pydantic models for extraction endpoints.
"""
from typing import Optional

from pydantic import BaseModel, Field


class ExtractTextResponse(BaseModel):
    """Response model for text extraction."""
    text: str = Field(..., description="추출된 텍스트 (HWP 추출 실패 시 안내 메시지)")
    filename: str = Field(..., description="원본 파일명")
    format: str = Field(..., description="감지된 문서 형식")
    extracted: bool = Field(..., description="텍스트 추출 성공 여부")
    strategy: Optional[str] = Field(None, description="텍스트를 복구한 전략")
    length: int = Field(..., description="텍스트 길이")

    class Config:
        json_schema_extra = {
            "example": {
                "text": "추출된 전체 텍스트...",
                "filename": "document.hwp",
                "format": "hwp-compound",
                "extracted": True,
                "strategy": "structured_walk",
                "length": 12,
            }
        }


class Base64ExtractRequest(BaseModel):
    """Request model for base64 encoded uploads."""
    data: str = Field(..., min_length=1, description="Base64 인코딩된 파일 내용")
    filename: str = Field(..., min_length=1, description="원본 파일명 (확장자로 형식 판별 보조)")


class UrlExtractRequest(BaseModel):
    """Request model for by-URL extraction."""
    url: str = Field(..., min_length=1, description="다운로드할 파일 URL (http/https)")
    filename: Optional[str] = Field(None, description="파일명 (없으면 URL 경로에서 추출)")


class HwpxTextResponse(BaseModel):
    text: str
    filename: str
