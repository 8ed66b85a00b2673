"""
Text walker for untyped parser output.

The legacy parser output has no stable shape: it may be a nested dict
(sections -> paragraphs -> text), an object exposing the same fields as
attributes, a flat text field, a plain string or None. The walker tries
known shapes first and falls back to a bounded walk over the whole tree.
"""
from typing import Any, Iterable, List

import structlog

from .hangul import contains_hangul

logger = structlog.get_logger()

SECTION_PATHS = (
    ("sections",),
    ("bodyText", "sections"),
    ("body_text", "sections"),
    ("BodyText", "sections"),
    ("body", "sections"),
)
PARAGRAPH_FIELDS = ("paragraphs", "paras", "content", "children", "items", "texts")
TEXT_FIELDS = ("text", "content", "value", "chars")
FLAT_FIELDS = ("text", "content", "body", "plainText", "plain_text")

MIN_TREE_STRING_LENGTH = 5
MIN_RESULT_LENGTH = 3
MAX_TREE_NODES = 100_000


def get_field(obj: Any, name: str) -> Any:
    """dict 키 또는 속성으로 필드 조회 (없으면 None)"""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    if isinstance(obj, (str, bytes, int, float, bool, list, tuple)):
        return None
    try:
        return getattr(obj, name, None)
    except Exception:
        return None


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _field_items(obj: Any) -> Iterable[tuple]:
    if isinstance(obj, dict):
        return list(obj.items())
    attrs = getattr(obj, "__dict__", None)
    if isinstance(attrs, dict):
        return [(k, v) for k, v in attrs.items() if not k.startswith("_")]
    return []


class DocumentWalker:
    """Collect body text from a parsed document of unknown shape."""

    def __init__(self, max_nodes: int = MAX_TREE_NODES):
        self.max_nodes = max_nodes

    def walk(self, parsed: Any) -> str:
        """
        Collect body text from parsed document output.

        Args:
            parsed: Parser output (nested object, plain string or None)

        Returns:
            Hangul text lines joined with newlines, or an empty string
        """
        if parsed is None:
            return ""
        if isinstance(parsed, bytes):
            parsed = parsed.decode("utf-8", errors="ignore")
        if isinstance(parsed, str):
            return self._finalize([parsed])

        for name, collector in (
            ("known_shapes", self._collect_known_shapes),
            ("flat_fields", self._collect_flat_fields),
            ("tree", self._collect_tree),
        ):
            result = self._finalize(collector(parsed))
            if result:
                logger.debug("Document walker collected text", path=name, length=len(result))
                return result

        return ""

    def _collect_known_shapes(self, parsed: Any) -> List[str]:
        collected = []
        for path in SECTION_PATHS:
            node = parsed
            for name in path:
                node = get_field(node, name)
            for section in as_list(node):
                collected.extend(self._collect_section(section))
        return collected

    def _collect_section(self, section: Any) -> List[str]:
        if isinstance(section, str):
            return [section]

        collected = []
        containers = [get_field(section, name) for name in PARAGRAPH_FIELDS]
        # 알려지지 않은 필드의 배열도 문단 후보로 취급
        containers.extend(v for k, v in _field_items(section)
                          if k not in PARAGRAPH_FIELDS and isinstance(v, (list, tuple)))

        for container in containers:
            if isinstance(container, str):
                collected.append(container)
                continue
            for item in as_list(container) if isinstance(container, (list, tuple)) else []:
                collected.extend(self._collect_paragraph(item))
        return collected

    def _collect_paragraph(self, item: Any) -> List[str]:
        if isinstance(item, str):
            return [item]

        collected = []
        for name in TEXT_FIELDS:
            value = get_field(item, name)
            if isinstance(value, str):
                collected.append(value)
            elif isinstance(value, (list, tuple)):
                parts = [v for v in value if isinstance(v, str)]
                if parts:
                    collected.append(''.join(parts))

        if not collected:
            collected.extend(v for k, v in _field_items(item) if isinstance(v, str))
        return collected

    def _collect_flat_fields(self, parsed: Any) -> List[str]:
        collected = []
        for name in FLAT_FIELDS:
            value = get_field(parsed, name)
            if isinstance(value, str):
                collected.append(value)
        return collected

    def _collect_tree(self, parsed: Any) -> List[str]:
        """Worklist walk over the whole object graph."""
        collected = []
        stack = [parsed]
        seen = set()
        visited = 0

        while stack and visited < self.max_nodes:
            node = stack.pop()
            visited += 1

            if isinstance(node, str):
                if len(node) > MIN_TREE_STRING_LENGTH and contains_hangul(node):
                    collected.append(node)
                continue
            if node is None or isinstance(node, (bytes, int, float, bool)):
                continue

            node_id = id(node)
            if node_id in seen:
                continue
            seen.add(node_id)

            if isinstance(node, dict):
                children = list(node.values())
            elif isinstance(node, (list, tuple, set)):
                children = list(node)
            else:
                children = [v for _, v in _field_items(node)]

            # 문서 순서 유지를 위해 역순으로 push
            stack.extend(reversed(children))

        if stack:
            logger.warning("Document walker stopped at node limit", max_nodes=self.max_nodes)
        return collected

    def _finalize(self, texts: List[str]) -> str:
        lines = []
        seen = set()
        for text in texts:
            if not isinstance(text, str):
                continue
            text = text.strip()
            if len(text) <= MIN_RESULT_LENGTH or not contains_hangul(text):
                continue
            if text in seen:
                continue
            seen.add(text)
            lines.append(text)
        return '\n'.join(lines)


default_walker = DocumentWalker()


def walk(parsed: Any) -> str:
    return default_walker.walk(parsed)
