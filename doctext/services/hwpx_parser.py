"""
HWPX Parser implementation.
HWPX는 XML 기반의 한글 문서 형식 (zip 컨테이너)

지원 구조:
- 구형 HWPML: Contents.xml (HWPML/BODY/SECTION/P/RUN)
- OWPML: Contents/section*.xml (hp/hp10 네임스페이스의 p/run/t)
- Preview/PrvText.txt (한글이 자동 생성하는 미리보기 텍스트)
"""
import io
import re
import zipfile
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Set

import structlog

from doctext.core.exceptions import ParsingError

logger = structlog.get_logger()

LEGACY_CONTENTS = 'Contents.xml'
PREVIEW_TEXT = 'Preview/PrvText.txt'
SECTION_FILE = re.compile(r'^Contents/section(\d+)\.xml$')

ZERO_WIDTH = re.compile(r'[\u200b\u200c\u200d\ufeff]')


def local_name(tag: str) -> str:
    """'{ns}name' 형식 태그에서 로컬 이름만 반환"""
    if tag.startswith('{'):
        return tag[tag.find('}') + 1:]
    return tag


def namespace_uri(tag: str) -> str:
    if tag.startswith('{'):
        return tag[1:tag.find('}')]
    return ''


class HWPXParser:
    """Parser for HWPX (XML-based HWP) files."""

    # 텍스트를 추출할 네임스페이스 URI 목록 (2011/2016 버전)
    TEXT_NS_URIS: Set[str] = {
        'http://www.hancom.co.kr/hwpml/2011/paragraph',
        'http://www.hancom.co.kr/hwpml/2016/paragraph',
    }

    def extract_text(self, data: bytes) -> str:
        """
        Extract plain text from HWPX bytes.

        Args:
            data: HWPX file contents

        Returns:
            Paragraph text joined with newlines

        Raises:
            ParsingError: If the bytes are not a readable zip container
        """
        return self.parse(data)["text"]

    def parse(self, data: bytes) -> Dict[str, Any]:
        """
        Parse HWPX bytes.

        Args:
            data: HWPX file contents

        Returns:
            Dict with text, paragraphs, tables and the source part used
        """
        try:
            zip_file = zipfile.ZipFile(io.BytesIO(data), 'r')
        except zipfile.BadZipFile as e:
            raise ParsingError(f"Invalid HWPX container: {e}", parser="hwpx")

        result = {"text": "", "paragraphs": [], "tables": [], "source": None}

        with zip_file:
            names = zip_file.namelist()

            if LEGACY_CONTENTS in names:
                paragraphs = self._extract_legacy_paragraphs(zip_file)
                if paragraphs:
                    result.update(paragraphs=paragraphs, source="contents")

            if not result["paragraphs"]:
                paragraphs, tables = self._extract_owpml(zip_file, names)
                if paragraphs:
                    result.update(paragraphs=paragraphs, tables=tables, source="sections")

            if result["paragraphs"]:
                result["text"] = '\n'.join(result["paragraphs"]).strip()
            elif PREVIEW_TEXT in names:
                result["text"] = self._extract_preview_text(zip_file)
                result["source"] = "preview"

        logger.info("HWPX 파싱 완료",
                    source=result["source"],
                    text_length=len(result["text"]),
                    paragraph_count=len(result["paragraphs"]),
                    table_count=len(result["tables"]))
        return result

    def _extract_legacy_paragraphs(self, zip_file: zipfile.ZipFile) -> List[str]:
        """Contents.xml (HWPML/BODY/SECTION/P) 문단 추출"""
        try:
            root = ET.fromstring(zip_file.read(LEGACY_CONTENTS))
        except ET.ParseError as e:
            logger.warning("Contents.xml 파싱 오류", error=str(e))
            return []

        paragraphs = []
        for body in (e for e in root.iter() if local_name(e.tag) == 'BODY'):
            for section in (e for e in body if local_name(e.tag) == 'SECTION'):
                for para in (e for e in section if local_name(e.tag) == 'P'):
                    text = self._legacy_paragraph_text(para)
                    if text:
                        paragraphs.append(text)
        return paragraphs

    def _legacy_paragraph_text(self, para: ET.Element) -> str:
        # 문단 직속 텍스트가 있으면 그대로, 없으면 RUN 하위 텍스트 결합
        direct = (para.text or '').strip()
        if direct:
            return self._clean_text_content(direct)

        runs = [e for e in para if local_name(e.tag) == 'RUN']
        text = ''.join(''.join(run.itertext()) for run in runs)
        return self._clean_text_content(text)

    def _extract_owpml(self, zip_file: zipfile.ZipFile, names: List[str]):
        section_files = sorted(
            (int(m.group(1)), name)
            for name in names
            for m in [SECTION_FILE.match(name)] if m
        )

        paragraphs: List[str] = []
        tables: List[List[List[str]]] = []
        for _, name in section_files:
            try:
                root = ET.fromstring(zip_file.read(name))
            except ET.ParseError as e:
                logger.warning("섹션 XML 파싱 오류", file=name, error=str(e))
                continue

            table_paras = self._table_paragraph_ids(root)
            nested_tables = self._nested_table_ids(root)
            for elem in root.iter():
                if namespace_uri(elem.tag) not in self.TEXT_NS_URIS:
                    continue
                name_ = local_name(elem.tag)
                if name_ == 'p' and id(elem) not in table_paras:
                    text = self._clean_text_content(self._joined_text(elem, ''))
                    if text:
                        paragraphs.append(text)
                elif name_ == 'tbl' and id(elem) not in nested_tables:
                    table = self._parse_table_element(elem)
                    if table:
                        tables.append(table)
                        paragraphs.extend('\t'.join(row) for row in table)

        return paragraphs, tables

    def _table_paragraph_ids(self, root: ET.Element) -> Set[int]:
        """표 셀 안의 문단 (표 행으로 따로 수집)"""
        owned = set()
        for tbl in root.iter():
            if local_name(tbl.tag) == 'tbl':
                owned.update(id(p) for p in tbl.iter() if local_name(p.tag) == 'p')
        return owned

    def _nested_table_ids(self, root: ET.Element) -> Set[int]:
        """셀 안에 중첩된 표 (바깥 표의 셀 텍스트로 수집)"""
        nested = set()
        for tbl in root.iter():
            if local_name(tbl.tag) == 'tbl':
                nested.update(id(t) for t in tbl.iter() if t is not tbl and local_name(t.tag) == 'tbl')
        return nested

    def _joined_text(self, elem: ET.Element, separator: str) -> str:
        """hp:t 또는 hp10:t 요소의 텍스트 결합"""
        texts = [
            e.text for e in elem.iter()
            if local_name(e.tag) == 't' and namespace_uri(e.tag) in self.TEXT_NS_URIS and e.text
        ]
        return separator.join(texts)

    def _parse_table_element(self, table_elem: ET.Element) -> List[List[str]]:
        rows = []
        # 직계 tr/tc 만 순회 (중첩 표의 행은 바깥 셀 텍스트에 포함)
        for row in table_elem:
            if local_name(row.tag) != 'tr':
                continue
            cells = [
                self._clean_text_content(self._joined_text(cell, ' '))
                for cell in row if local_name(cell.tag) == 'tc'
            ]
            if any(cells):
                rows.append(cells)
        return rows

    def _extract_preview_text(self, zip_file: zipfile.ZipFile) -> str:
        """Preview/PrvText.txt 정제 (<구분자> 형식)"""
        content = zip_file.read(PREVIEW_TEXT)
        try:
            text = content.decode('utf-8')
        except UnicodeDecodeError:
            text = content.decode('cp949', errors='ignore')

        cleaned = re.sub(r'>\s*<', '\n', text)
        cleaned = re.sub(r'[<>]', '', cleaned)
        cleaned = re.sub(r'[ \t]+', ' ', cleaned)
        lines = [line.strip() for line in cleaned.split('\n')]
        return '\n'.join(line for line in lines if line)

    def _clean_text_content(self, text: str) -> str:
        """텍스트 콘텐츠 정제 (노이즈 문자 제거)"""
        if not text:
            return ""
        cleaned = ZERO_WIDTH.sub('', text)
        cleaned = re.sub(r'\s+', ' ', cleaned)
        return cleaned.strip()


hwpx_parser = HWPXParser()


def extract_text(data: bytes) -> str:
    """Extract text from HWPX bytes using the shared parser."""
    return hwpx_parser.extract_text(data)
