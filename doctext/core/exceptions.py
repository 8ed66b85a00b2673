"""
Custom exceptions for the document text extraction API.
"""
from typing import Optional, Dict, Any


class DocTextException(Exception):
    """Base exception for the extraction API."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class UnsupportedFormatError(DocTextException):
    """Raised when the uploaded file is not a supported document format."""

    def __init__(self, file_format: str, details: Optional[Dict[str, Any]] = None):
        details = details or {}
        details["format"] = file_format
        super().__init__(f"지원하지 않는 파일 형식입니다: {file_format}", status_code=400, details=details)


class InvalidPayloadError(DocTextException):
    """Raised when the request payload is missing or malformed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class DownloadError(DocTextException):
    """Raised when a by-URL document cannot be downloaded."""

    def __init__(self, url: str, reason: str):
        message = f"파일을 다운로드할 수 없습니다: {reason}"
        super().__init__(message, status_code=400, details={"url": url})


class FileTooLargeError(DocTextException):
    """Raised when file is too large to process."""

    def __init__(self, size: int, max_size: int):
        message = f"File size {size} bytes exceeds maximum {max_size} bytes"
        details = {"file_size": size, "max_size": max_size}
        super().__init__(message, status_code=413, details=details)


class ExtractionError(DocTextException):
    """Raised when content extraction fails."""

    def __init__(self, message: str, extractor: str = "unknown", details: Optional[Dict[str, Any]] = None):
        details = details or {}
        details["extractor"] = extractor
        super().__init__(message, status_code=500, details=details)


class ParsingError(DocTextException):
    """Raised when the legacy HWP record parser cannot read a file."""

    def __init__(self, message: str, parser: str = "unknown", details: Optional[Dict[str, Any]] = None):
        details = details or {}
        details["parser"] = parser
        super().__init__(message, status_code=500, details=details)


class ConversionError(DocTextException):
    """Raised when an external converter attempt fails."""

    def __init__(self, message: str, converter: str = "unknown", details: Optional[Dict[str, Any]] = None):
        details = details or {}
        details["converter"] = converter
        super().__init__(message, status_code=502, details=details)


class DocumentNotFoundError(DocTextException):
    """Raised when a stored document does not exist."""

    def __init__(self, document_id: int):
        super().__init__(
            "문서를 찾을 수 없습니다.",
            status_code=404,
            details={"document_id": document_id}
        )
