"""
Office extractor tests.
"""
import io
from unittest.mock import patch

import fitz
import openpyxl
import pytest
from docx import Document

from doctext.core.exceptions import ExtractionError
from doctext.services.office_extractors import (
    extract_by_format,
    extract_docx_text,
    extract_pdf_text,
    extract_plain_text,
    extract_xlsx_text,
)


def make_pdf(text: str) -> bytes:
    doc = fitz.open()
    try:
        page = doc.new_page()
        page.insert_text((72, 72), text)
        return doc.tobytes()
    finally:
        doc.close()


def test_pdf_text():
    assert "Quarterly budget report" in extract_pdf_text(make_pdf("Quarterly budget report"))


def test_pdf_falls_back_to_pdfplumber():
    with patch("doctext.services.office_extractors._extract_pdf_with_pymupdf",
               side_effect=RuntimeError("broken")):
        assert "Fallback page text" in extract_pdf_text(make_pdf("Fallback page text"))


def test_pdf_failure_raises_extraction_error():
    with patch("doctext.services.office_extractors._extract_pdf_with_pymupdf",
               side_effect=RuntimeError("broken")), \
            patch("doctext.services.office_extractors._extract_pdf_with_pdfplumber",
                  side_effect=ValueError("also broken")):
        with pytest.raises(ExtractionError):
            extract_pdf_text(b"%PDF-1.4")


def test_docx_paragraphs_and_tables():
    document = Document()
    document.add_paragraph("문서 첫 문단")
    document.add_paragraph("")
    table = document.add_table(rows=1, cols=2)
    table.cell(0, 0).text = "항목"
    table.cell(0, 1).text = "금액"
    buffer = io.BytesIO()
    document.save(buffer)

    assert extract_docx_text(buffer.getvalue()) == "문서 첫 문단\n항목\t금액"


def test_xlsx_rows_are_tab_joined():
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.append(["이름", "나이"])
    sheet.append(["홍길동", 30])
    second = workbook.create_sheet("두번째")
    second.append(["메모", None])
    buffer = io.BytesIO()
    workbook.save(buffer)

    assert extract_xlsx_text(buffer.getvalue()) == "이름\t나이\n홍길동\t30\n\n메모"


def test_plain_text_decoding():
    assert extract_plain_text(b"\xef\xbb\xbf" + "한글 텍스트".encode("utf-8")) == "한글 텍스트"
    assert extract_plain_text("한글 텍스트".encode("cp949")) == "한글 텍스트"


def test_extract_by_format_dispatch():
    assert extract_by_format(b"a,b\n1,2", "csv") == "a,b\n1,2"
    with pytest.raises(ExtractionError):
        extract_by_format(b"", "hwp")
