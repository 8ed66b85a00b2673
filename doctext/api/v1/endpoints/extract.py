"""
API endpoints for extracting plain text from uploaded documents.
"""
import base64
import binascii

import structlog
from fastapi import APIRouter, Depends, File, UploadFile

from doctext.core.config import get_settings
from doctext.core.exceptions import FileTooLargeError, InvalidPayloadError, UnsupportedFormatError
from doctext.models.extract import (
    Base64ExtractRequest,
    ExtractTextResponse,
    HwpxTextResponse,
    UrlExtractRequest,
)
from doctext.services.downloader import DocumentDownloader, get_downloader
from doctext.services.formats import DocumentFormat, sniff_format
from doctext.services.quality import ExtractionResult
from doctext.services.text_extractor import TextExtractionService, get_text_extraction_service
from doctext.utils.file_utils import temporary_file

logger = structlog.get_logger()
router = APIRouter()
settings = get_settings()

ERROR_RESPONSES = {
    400: {"description": "잘못된 요청 또는 지원하지 않는 형식"},
    413: {"description": "파일 크기 초과"},
    500: {"description": "추출 실패"},
}


async def read_upload(file: UploadFile) -> bytes:
    """업로드 파일을 청크 단위로 읽으며 크기 제한 검사"""
    if file.size is not None and file.size > settings.MAX_UPLOAD_SIZE:
        raise FileTooLargeError(file.size, settings.MAX_UPLOAD_SIZE)

    chunks = []
    received = 0
    while True:
        chunk = await file.read(settings.CHUNK_SIZE)
        if not chunk:
            break
        received += len(chunk)
        if received > settings.MAX_UPLOAD_SIZE:
            raise FileTooLargeError(received, settings.MAX_UPLOAD_SIZE)
        chunks.append(chunk)

    if not received:
        raise InvalidPayloadError("빈 파일입니다")
    return b"".join(chunks)


async def extract_payload(data: bytes, filename: str, service: TextExtractionService) -> ExtractTextResponse:
    """Persist the payload to a scoped temp file and run extraction on it."""
    async with temporary_file(settings.UPLOAD_DIR, data, filename) as file_path:
        result = await service.extract_document(file_path, filename)
    return to_response(result, filename)


def to_response(result: ExtractionResult, filename: str) -> ExtractTextResponse:
    logger.info("Extraction finished",
                filename=filename,
                format=result.format,
                extracted=result.accepted,
                strategy=result.strategy,
                text_length=len(result.text))
    return ExtractTextResponse(
        text=result.text,
        filename=filename,
        format=result.format,
        extracted=result.accepted,
        strategy=result.strategy,
        length=len(result.text),
    )


@router.post("/text",
    response_model=ExtractTextResponse,
    summary="문서에서 텍스트 추출",
    responses=ERROR_RESPONSES,
)
async def extract_text(
    file: UploadFile = File(..., description="HWP, HWPX, PDF, DOCX, XLSX, TXT 또는 CSV 파일"),
    service: TextExtractionService = Depends(get_text_extraction_service),
) -> ExtractTextResponse:
    """
    Extract plain text from an uploaded document.

    HWP files go through the recovery pipeline. When every strategy fails
    the response is still 200, with ``extracted: false`` and an
    explanatory message as ``text``.
    """
    data = await read_upload(file)
    return await extract_payload(data, file.filename or "upload", service)


@router.post("/base64",
    response_model=ExtractTextResponse,
    summary="Base64 인코딩된 문서에서 텍스트 추출",
    responses=ERROR_RESPONSES,
)
async def extract_base64(
    body: Base64ExtractRequest,
    service: TextExtractionService = Depends(get_text_extraction_service),
) -> ExtractTextResponse:
    payload = body.data
    # data URL 접두사 허용 (data:...;base64,)
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidPayloadError("잘못된 Base64 데이터입니다")

    if not data:
        raise InvalidPayloadError("빈 파일입니다")
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise FileTooLargeError(len(data), settings.MAX_UPLOAD_SIZE)

    return await extract_payload(data, body.filename, service)


@router.post("/url",
    response_model=ExtractTextResponse,
    summary="URL의 문서에서 텍스트 추출",
    responses=ERROR_RESPONSES,
)
async def extract_url(
    body: UrlExtractRequest,
    service: TextExtractionService = Depends(get_text_extraction_service),
    downloader: DocumentDownloader = Depends(get_downloader),
) -> ExtractTextResponse:
    data, url_filename = await downloader.download(body.url)
    if not data:
        raise InvalidPayloadError("빈 파일입니다")
    return await extract_payload(data, body.filename or url_filename, service)


@router.post("/hwpx-text",
    response_model=HwpxTextResponse,
    summary="HWPX 파일에서 텍스트 추출",
    responses=ERROR_RESPONSES,
)
async def extract_hwpx_text(
    file: UploadFile = File(..., description="HWPX 파일"),
    service: TextExtractionService = Depends(get_text_extraction_service),
) -> HwpxTextResponse:
    filename = file.filename or "upload.hwpx"
    data = await read_upload(file)

    if sniff_format(data, filename) != DocumentFormat.HWPX:
        raise UnsupportedFormatError(filename, details={"expected": "hwpx"})

    text = await service.extract_hwpx(data)
    return HwpxTextResponse(text=text, filename=filename)
