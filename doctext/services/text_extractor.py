"""
Text extraction orchestrator.

Sniffs the document format and dispatches to the HWP recovery pipeline,
the HWPX reader or the single-pass office extractors.
"""
import asyncio
from typing import Optional

import structlog

from doctext.core.exceptions import DocTextException, ExtractionError, UnsupportedFormatError
from doctext.utils.file_utils import read_file
from .formats import DocumentFormat, RawDocument
from .hwp_pipeline import HWPPipeline
from .hwpx_parser import HWPXParser
from .office_extractors import extract_by_format
from .quality import ExtractionCandidate, ExtractionResult, LENIENT_GATE

logger = structlog.get_logger()


class TextExtractionService:
    """Extract plain text from uploaded documents."""

    def __init__(self, pipeline: Optional[HWPPipeline] = None, hwpx_parser: Optional[HWPXParser] = None):
        self.pipeline = pipeline or HWPPipeline()
        self.hwpx_parser = hwpx_parser or HWPXParser()

    async def extract(self, file_path: str, filename: Optional[str] = None) -> str:
        """
        Extract text from a file on disk.

        HWP exhaustion is not an error: the explanatory message is returned
        as the text.

        Args:
            file_path: Path to the document
            filename: Original filename (defaults to the path)

        Returns:
            Extracted text
        """
        result = await self.extract_document(file_path, filename)
        return result.text

    async def extract_document(self, file_path: str, filename: Optional[str] = None) -> ExtractionResult:
        data = await read_file(file_path)
        return await self.extract_bytes(data, filename or file_path)

    async def extract_bytes(self, data: bytes, filename: str) -> ExtractionResult:
        """
        Extract text from in-memory bytes.

        Args:
            data: Document contents
            filename: Original filename (extension is the sniff fallback)

        Returns:
            ExtractionResult with text and provenance

        Raises:
            UnsupportedFormatError: Unknown format
            ExtractionError: Non-HWP extraction failure
        """
        document = RawDocument.from_bytes(data, filename)
        logger.info("Extracting text",
                    filename=filename,
                    format=document.format.value,
                    size=len(data))

        if document.format == DocumentFormat.UNKNOWN:
            raise UnsupportedFormatError(filename or "unknown")

        if document.format.is_hwp:
            return await self.pipeline.run(document)

        try:
            if document.format == DocumentFormat.HWPX:
                text = await asyncio.to_thread(self.hwpx_parser.extract_text, data)
            else:
                text = await asyncio.to_thread(extract_by_format, data, document.format.value)
        except DocTextException as e:
            if isinstance(e, ExtractionError):
                raise
            raise ExtractionError(e.message, extractor=document.format.value)
        except Exception as e:
            logger.error("Text extraction failed", format=document.format.value, error=str(e))
            raise ExtractionError(f"Text extraction failed: {e}", extractor=document.format.value)

        candidate = ExtractionCandidate(
            text=text,
            strategy=document.format.value,
            score=LENIENT_GATE.score(text),
        )
        return ExtractionResult.from_candidate(document.format.value, candidate)

    async def extract_hwpx(self, data: bytes) -> str:
        """HWPX 전용 추출 (형식 검사 없이 zip+XML 파싱)"""
        try:
            return await asyncio.to_thread(self.hwpx_parser.extract_text, data)
        except DocTextException as e:
            raise ExtractionError(e.message, extractor="hwpx")


text_extraction_service = TextExtractionService()


def get_text_extraction_service() -> TextExtractionService:
    return text_extraction_service
