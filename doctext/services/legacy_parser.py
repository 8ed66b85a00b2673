"""
Best-effort HWP 5.x parser.

Reads the OLE compound file with olefile, inflates the BodyText section
streams and keeps the HWPTAG_PARA_TEXT records. The output is a plain
nested dict; callers must not rely on its shape (see DocumentWalker).
"""
import io
import re
import struct
import zlib
from typing import Any, Dict, List

import olefile
import structlog

from doctext.core.exceptions import ParsingError

logger = structlog.get_logger()

OLE_SIGNATURE = b'\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1'
HWP_SIGNATURE = b'HWP Document File'

# HWP 레코드 태그 ID (HWP 5.0 스펙)
HWPTAG_BEGIN = 0x10
HWPTAG_PARA_TEXT = HWPTAG_BEGIN + 50  # 0x42

# FileHeader 속성 비트
FLAG_COMPRESSED = 0x01
FLAG_PASSWORD = 0x02
FLAG_DISTRIBUTION = 0x04

# 1 WCHAR 크기 제어 문자, 나머지 제어 문자(0x00-0x1F)는 8 WCHAR 차지
CHAR_CONTROLS = {0x00, 0x0A, 0x0D, 0x18, 0x19, 0x1A, 0x1B, 0x1C, 0x1D, 0x1E, 0x1F}
CONTROL_WIDTH = 8

SECTION_NUMBER = re.compile(r'Section(\d+)$')


def decode_para_text(data: bytes) -> str:
    """HWPTAG_PARA_TEXT 레코드 디코딩

    UTF-16LE 텍스트에서 인라인/확장 제어 문자(8 WCHAR)를 건너뛴다.

    Args:
        data: 레코드 데이터

    Returns:
        문단 텍스트
    """
    if len(data) < 2:
        return ""

    text = data[:len(data) - len(data) % 2].decode('utf-16le', errors='ignore')
    chars = []
    i = 0
    while i < len(text):
        code = ord(text[i])

        if code >= 0x20:
            chars.append(text[i])
            i += 1
            continue

        if code in CHAR_CONTROLS:
            if code == 0x0A:  # 줄바꿈
                chars.append('\n')
            elif code in (0x1E, 0x1F):  # 묶음/고정폭 빈칸
                chars.append(' ')
            i += 1
            continue

        if code == 0x09:  # 탭 (인라인 제어)
            chars.append('\t')
        i += CONTROL_WIDTH

    return ''.join(chars).strip()


def iter_records(data: bytes):
    """레코드 헤더를 따라 (tag_id, level, payload) 생성"""
    offset = 0
    total = len(data)

    while offset + 4 <= total:
        header = struct.unpack_from('<I', data, offset)[0]
        tag_id = header & 0x3FF          # bits 0-9
        level = (header >> 10) & 0x3FF   # bits 10-19
        size = (header >> 20) & 0xFFF    # bits 20-31
        offset += 4

        # 확장 크기
        if size == 0xFFF:
            if offset + 4 > total:
                break
            size = struct.unpack_from('<I', data, offset)[0]
            offset += 4

        if offset + size > total:
            break

        yield tag_id, level, data[offset:offset + size]
        offset += size


def extract_paragraphs(stream: bytes, compressed: bool = True) -> List[Dict[str, Any]]:
    """BodyText 섹션 스트림에서 문단 목록 추출"""
    data = stream
    if compressed:
        try:
            data = zlib.decompress(stream, -15)
        except zlib.error:
            try:
                data = zlib.decompress(stream)
            except zlib.error:
                logger.debug("Section stream is not deflated, reading raw records")
                data = stream

    paragraphs = []
    for tag_id, level, payload in iter_records(data):
        if tag_id != HWPTAG_PARA_TEXT:
            continue
        text = decode_para_text(payload)
        if text:
            paragraphs.append({"text": text, "level": level})
    return paragraphs


class LegacyHWPParser:
    """Best-effort HWP 5.x record parser on top of olefile."""

    def parse(self, data: bytes) -> Dict[str, Any]:
        """
        Parse HWP bytes into a nested dict.

        Args:
            data: Raw HWP file contents

        Returns:
            Dict with header, metadata, sections and preview text

        Raises:
            ParsingError: when the file is HWP 3.x, encrypted, distribution
                protected or not an OLE compound file
        """
        if data.startswith(HWP_SIGNATURE):
            raise ParsingError("HWP 3.x binary format is not readable by the record parser",
                               parser="legacy")
        if not data.startswith(OLE_SIGNATURE):
            raise ParsingError("Not an OLE compound file", parser="legacy")

        try:
            ole = olefile.OleFileIO(io.BytesIO(data))
        except Exception as e:
            raise ParsingError(f"Cannot open compound file: {e}", parser="legacy")

        with ole:
            header = self._read_header(ole)
            if header["password"]:
                raise ParsingError("Password protected HWP document", parser="legacy")

            result = {
                "header": header,
                "metadata": self._extract_metadata(ole),
                "sections": self._extract_sections(ole, header),
                "preview": {"text": self._extract_preview(ole)},
            }

        if not result["sections"] and header["distribution"]:
            raise ParsingError("Distribution protected HWP document", parser="legacy")

        logger.debug("Legacy HWP parse finished",
                     sections=len(result["sections"]),
                     paragraphs=sum(len(s["paragraphs"]) for s in result["sections"]))
        return result

    def _read_header(self, ole: olefile.OleFileIO) -> Dict[str, Any]:
        if not ole.exists('FileHeader'):
            raise ParsingError("FileHeader stream missing", parser="legacy")

        raw = ole.openstream('FileHeader').read()
        if not raw.startswith(HWP_SIGNATURE) or len(raw) < 40:
            raise ParsingError("Invalid FileHeader signature", parser="legacy")

        version = struct.unpack_from('<I', raw, 32)[0]
        flags = struct.unpack_from('<I', raw, 36)[0]
        return {
            "version": f"{version >> 24 & 0xFF}.{version >> 16 & 0xFF}.{version >> 8 & 0xFF}.{version & 0xFF}",
            "compressed": bool(flags & FLAG_COMPRESSED),
            "password": bool(flags & FLAG_PASSWORD),
            "distribution": bool(flags & FLAG_DISTRIBUTION),
        }

    def _extract_sections(self, ole: olefile.OleFileIO, header: Dict[str, Any]) -> List[Dict[str, Any]]:
        entries = []
        for entry in ole.listdir():
            if len(entry) == 2 and entry[0] == 'BodyText':
                match = SECTION_NUMBER.match(entry[1])
                if match:
                    entries.append((int(match.group(1)), entry))

        sections = []
        for index, entry in sorted(entries):
            try:
                stream = ole.openstream(entry).read()
                paragraphs = extract_paragraphs(stream, compressed=header["compressed"])
            except Exception as e:
                logger.warning("Failed to read section", section='/'.join(entry), error=str(e))
                continue
            sections.append({"index": index, "paragraphs": paragraphs})
        return sections

    def _extract_preview(self, ole: olefile.OleFileIO) -> str:
        """PrvText 스트림 (UTF-16LE 미리보기 텍스트)"""
        if not ole.exists('PrvText'):
            return ""
        try:
            raw = ole.openstream('PrvText').read()
            return raw.decode('utf-16le', errors='ignore').replace('\x00', '').strip()
        except Exception as e:
            logger.debug("PrvText extraction failed", error=str(e))
            return ""

    def _extract_metadata(self, ole: olefile.OleFileIO) -> Dict[str, Any]:
        """Extract metadata from the HWP summary stream."""
        metadata = {}
        try:
            if ole.exists('\x05HwpSummaryInformation'):
                summary = ole.getproperties('\x05HwpSummaryInformation', convert_time=True)
                metadata = {
                    "title": summary.get(2, ""),
                    "subject": summary.get(3, ""),
                    "author": summary.get(4, ""),
                    "keywords": summary.get(5, ""),
                }
        except Exception as e:
            logger.debug("Failed to extract metadata", error=str(e))
        return metadata


legacy_parser = LegacyHWPParser()
