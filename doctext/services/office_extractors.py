"""
Single-pass text extraction for PDF, DOCX, XLSX and plain text files.

Each extractor takes the raw file bytes and returns plain text. Failures
propagate as ExtractionError so the caller can map them to HTTP errors.
"""
import io
from typing import Callable, Dict

import fitz  # PyMuPDF
import openpyxl
import pdfplumber
import structlog
from docx import Document

from doctext.core.exceptions import ExtractionError

logger = structlog.get_logger()


def extract_pdf_text(data: bytes) -> str:
    """
    Extract PDF text with PyMuPDF, falling back to pdfplumber.

    Args:
        data: PDF file contents

    Returns:
        Page texts joined with newlines
    """
    try:
        return _extract_pdf_with_pymupdf(data)
    except Exception as e:
        logger.warning("PyMuPDF parsing failed, trying pdfplumber", error=str(e))

    try:
        return _extract_pdf_with_pdfplumber(data)
    except Exception as e:
        logger.error("All PDF parsers failed", error=str(e))
        raise ExtractionError(f"PDF text extraction failed: {e}", extractor="pdf")


def _extract_pdf_with_pymupdf(data: bytes) -> str:
    doc = None
    try:
        doc = fitz.open(stream=data, filetype="pdf")
        pages = [page.get_text() for page in doc]
        return '\n'.join(p.strip() for p in pages if p.strip())
    finally:
        # 메모리 누수 방지
        if doc is not None:
            doc.close()


def _extract_pdf_with_pdfplumber(data: bytes) -> str:
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return '\n'.join(p.strip() for p in pages if p.strip())


def extract_docx_text(data: bytes) -> str:
    """DOCX 문단과 표 셀 텍스트 추출"""
    try:
        document = Document(io.BytesIO(data))
    except Exception as e:
        raise ExtractionError(f"DOCX text extraction failed: {e}", extractor="docx")

    lines = [p.text.strip() for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                lines.append('\t'.join(cells))
    return '\n'.join(lines)


def extract_xlsx_text(data: bytes) -> str:
    """XLSX 시트별 행을 탭으로 연결해 추출"""
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as e:
        raise ExtractionError(f"XLSX text extraction failed: {e}", extractor="xlsx")

    try:
        blocks = []
        for sheet in workbook.worksheets:
            rows = []
            for row in sheet.iter_rows(values_only=True):
                cells = ["" if value is None else str(value) for value in row]
                if any(cells):
                    rows.append('\t'.join(cells).rstrip('\t'))
            if rows:
                blocks.append('\n'.join(rows))
        return '\n\n'.join(blocks)
    finally:
        workbook.close()


def extract_plain_text(data: bytes) -> str:
    """TXT/CSV 디코딩 (UTF-8 BOM 인식, 실패 시 CP949)"""
    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError:
        logger.debug("UTF-8 decode failed, falling back to cp949")
        return data.decode('cp949', errors='replace')


EXTRACTORS: Dict[str, Callable[[bytes], str]] = {
    "pdf": extract_pdf_text,
    "docx": extract_docx_text,
    "xlsx": extract_xlsx_text,
    "txt": extract_plain_text,
    "csv": extract_plain_text,
}


def extract_by_format(data: bytes, file_format: str) -> str:
    """Run the extractor registered for ``file_format``."""
    extractor = EXTRACTORS.get(file_format)
    if extractor is None:
        raise ExtractionError(f"No extractor for format: {file_format}", extractor=file_format)
    return extractor(data)
