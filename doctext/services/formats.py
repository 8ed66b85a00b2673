"""
Document format detection.

Formats are sniffed from the file signature first; the extension is only
used when the content does not identify the format.
"""
import io
import zipfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import olefile
import structlog

logger = structlog.get_logger()

OLE_SIGNATURE = b'\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1'
HWP_SIGNATURE = b'HWP Document File'
PDF_SIGNATURE = b'%PDF'
ZIP_SIGNATURE = b'PK\x03\x04'
HWPX_MIMETYPE = b'application/hwp+zip'


class DocumentFormat(str, Enum):
    """Supported document formats."""

    HWP = "hwp"
    HWP_COMPOUND = "hwp-compound"
    HWPX = "hwpx"
    PDF = "pdf"
    DOCX = "docx"
    XLSX = "xlsx"
    TXT = "txt"
    CSV = "csv"
    UNKNOWN = "unknown"

    @property
    def is_hwp(self) -> bool:
        return self in (DocumentFormat.HWP, DocumentFormat.HWP_COMPOUND)


EXTENSION_FORMATS = {
    ".hwp": DocumentFormat.HWP,
    ".hwpx": DocumentFormat.HWPX,
    ".pdf": DocumentFormat.PDF,
    ".docx": DocumentFormat.DOCX,
    ".xlsx": DocumentFormat.XLSX,
    ".txt": DocumentFormat.TXT,
    ".csv": DocumentFormat.CSV,
}


@dataclass
class RawDocument:
    """Uploaded bytes with the filename and the detected format."""

    data: bytes
    filename: str
    format: DocumentFormat

    @classmethod
    def from_bytes(cls, data: bytes, filename: str) -> "RawDocument":
        return cls(data=data, filename=filename, format=sniff_format(data, filename))


def _sniff_ole(data: bytes) -> Optional[DocumentFormat]:
    """OLE 컨테이너 중 FileHeader 가 HWP 서명으로 시작하는 것만 HWP 로 판정

    .doc, .xls, .ppt 도 같은 OLE 서명을 가지므로 서명만으로는 구분할 수 없다.
    컨테이너를 열 수 없으면 None (확장자로 판정).
    """
    try:
        with olefile.OleFileIO(io.BytesIO(data)) as ole:
            if not ole.exists('FileHeader'):
                return DocumentFormat.UNKNOWN
            header = ole.openstream('FileHeader').read(len(HWP_SIGNATURE))
    except Exception as e:
        logger.debug("OLE sniff failed", error=str(e))
        return None

    if header.startswith(HWP_SIGNATURE):
        return DocumentFormat.HWP_COMPOUND
    return DocumentFormat.UNKNOWN


def _sniff_zip(data: bytes) -> Optional[DocumentFormat]:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zip_file:
            names = set(zip_file.namelist())
            if 'mimetype' in names and zip_file.read('mimetype').strip() == HWPX_MIMETYPE:
                return DocumentFormat.HWPX
            if 'Contents.xml' in names or any(n.startswith('Contents/section') for n in names):
                return DocumentFormat.HWPX
            if 'word/document.xml' in names:
                return DocumentFormat.DOCX
            if 'xl/workbook.xml' in names:
                return DocumentFormat.XLSX
    except (zipfile.BadZipFile, KeyError, OSError) as e:
        logger.debug("ZIP sniff failed", error=str(e))
    return None


def format_from_extension(filename: str) -> DocumentFormat:
    return EXTENSION_FORMATS.get(Path(filename or "").suffix.lower(), DocumentFormat.UNKNOWN)


def sniff_format(data: bytes, filename: str) -> DocumentFormat:
    """
    Detect the document format from content, then extension.

    Args:
        data: File contents
        filename: Original filename

    Returns:
        Detected DocumentFormat (UNKNOWN when nothing matches)
    """
    if data.startswith(OLE_SIGNATURE):
        detected = _sniff_ole(data)
        if detected is not None:
            if detected is DocumentFormat.UNKNOWN:
                logger.info("OLE container is not an HWP document", filename=filename)
            return detected
    if data.startswith(HWP_SIGNATURE):
        return DocumentFormat.HWP
    if data.startswith(PDF_SIGNATURE):
        return DocumentFormat.PDF
    if data.startswith(ZIP_SIGNATURE):
        detected = _sniff_zip(data)
        if detected is not None:
            return detected

    detected = format_from_extension(filename)
    logger.debug("Format detected from extension", filename=filename, format=detected.value)
    return detected
