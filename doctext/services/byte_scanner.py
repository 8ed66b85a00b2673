"""
Binary Hangul pattern scanner.

The encoding probe fails when Hangul is stored as legacy double-byte pairs
(KS X 1001 / CP949) that do not survive a mismatched decode. This scanner
looks at the bytes directly:

1. byte-pair scan: runs of lead/trail byte pairs in the Hangul rows of the
   legacy code page are collected and decoded with that code page (cp949),
   not UTF-8. These pairs never decode to Hangul under UTF-8, so a UTF-8
   decode of the reduced buffer recovers nothing; pass ``legacy_codec`` to
   change it;
2. code-point scan: Hangul syllable runs in the buffer decoded as UTF-8;
3. printable-run scan: printable runs that contain Hangul.

Lead/trail bounds are tunable. The defaults cover the KS X 1001 Hangul
rows (lead 0xB0-0xC8) and have only been validated on Korean public-sector
samples.
"""
import re
from typing import Callable, List, Optional, Tuple

import structlog

from .garbage_filter import clean
from .hangul import contains_hangul

logger = structlog.get_logger()

DEFAULT_LEAD_RANGE = (0xB0, 0xC8)
DEFAULT_TRAIL_RANGE = (0xA1, 0xFE)
DEFAULT_LEGACY_CODEC = "cp949"
MIN_PAIR_RUN = 2
MIN_CLEANED_LENGTH = 50

HANGUL_RUN_PATTERN = re.compile(r'[가-힣]+(?:[ \t]+[가-힣]+)*')
PRINTABLE_RUN_PATTERN = re.compile(r'[\x20-\x7e\t\n\r가-힣]{11,}')


class ByteScanner:
    """Scan raw bytes for Hangul text that a plain decode misses."""

    def __init__(
        self,
        lead_range: Tuple[int, int] = DEFAULT_LEAD_RANGE,
        trail_range: Tuple[int, int] = DEFAULT_TRAIL_RANGE,
        legacy_codec: str = DEFAULT_LEGACY_CODEC,
        min_pair_run: int = MIN_PAIR_RUN,
        min_length: int = MIN_CLEANED_LENGTH,
    ):
        self.lead_range = lead_range
        self.trail_range = trail_range
        self.legacy_codec = legacy_codec
        self.min_pair_run = min_pair_run
        self.min_length = min_length

    def scan(self, data: bytes) -> Optional[str]:
        """하위 전략을 순서대로 시도해 첫 번째로 충분한 결과 반환"""
        if not data:
            return None

        sub_strategies: List[Tuple[str, Callable[[bytes], str]]] = [
            ("byte_pairs", self.scan_byte_pairs),
            ("code_points", self.scan_code_points),
            ("printable_runs", self.scan_printable_runs),
        ]

        for name, sub_strategy in sub_strategies:
            try:
                raw = sub_strategy(data)
            except Exception as e:
                logger.debug("Byte scan sub-strategy failed", sub_strategy=name, error=str(e))
                continue

            cleaned = clean(raw)
            if len(cleaned) > self.min_length:
                logger.debug("Byte scan recovered text",
                             sub_strategy=name,
                             cleaned_length=len(cleaned))
                return cleaned

        return None

    def _is_pair(self, lead: int, trail: int) -> bool:
        return (self.lead_range[0] <= lead <= self.lead_range[1]
                and self.trail_range[0] <= trail <= self.trail_range[1])

    def find_pair_runs(self, data: bytes) -> List[bytes]:
        """연속된 2바이트 한글 코드 구간 수집"""
        runs = []
        current = bytearray()
        i = 0
        n = len(data)

        while i < n - 1:
            if self._is_pair(data[i], data[i + 1]):
                current += data[i:i + 2]
                i += 2
                continue

            if len(current) >= self.min_pair_run * 2:
                runs.append(bytes(current))
            current = bytearray()
            i += 1

        if len(current) >= self.min_pair_run * 2:
            runs.append(bytes(current))

        return runs

    def scan_byte_pairs(self, data: bytes) -> str:
        decoded = [
            run.decode(self.legacy_codec, errors="ignore")
            for run in self.find_pair_runs(data)
        ]
        return ' '.join(d for d in decoded if d)

    def scan_code_points(self, data: bytes) -> str:
        text = data.decode("utf-8", errors="ignore")
        return ' '.join(HANGUL_RUN_PATTERN.findall(text))

    def scan_printable_runs(self, data: bytes) -> str:
        text = data.decode("utf-8", errors="ignore")
        blocks = [
            block.strip()
            for block in PRINTABLE_RUN_PATTERN.findall(text)
            if contains_hangul(block)
        ]
        return '\n'.join(b for b in blocks if b)


default_scanner = ByteScanner()


def scan(data: bytes) -> Optional[str]:
    """Scan bytes with the default byte ranges."""
    return default_scanner.scan(data)
