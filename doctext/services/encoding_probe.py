"""
Encoding recovery probe.

Decodes a raw byte buffer with a small ordered set of codecs and keeps the
first decoding that carries enough Hangul to survive the garbage filter.
"""
from typing import Optional, Sequence

import structlog

from .garbage_filter import clean
from .hangul import count_hangul

logger = structlog.get_logger()

DEFAULT_ENCODINGS = ("utf-8", "ascii", "latin-1")
MIN_DECODED_HANGUL = 10
MIN_CLEANED_LENGTH = 50


def probe(
    data: bytes,
    encodings: Sequence[str] = DEFAULT_ENCODINGS,
    min_hangul: int = MIN_DECODED_HANGUL,
    min_length: int = MIN_CLEANED_LENGTH,
) -> Optional[str]:
    """바이트 버퍼를 여러 인코딩으로 디코딩해 한글 텍스트 복구 시도

    Args:
        data: 원본 바이트
        encodings: 시도할 인코딩 (순서대로)
        min_hangul: 디코딩 결과에 필요한 최소 한글 수 (초과)
        min_length: 정제 후 필요한 최소 길이 (초과)

    Returns:
        정제된 텍스트, 조건을 만족하는 디코딩이 없으면 None
    """
    if not data:
        return None

    for encoding in encodings:
        try:
            decoded = data.decode(encoding, errors="ignore")
        except LookupError:
            logger.warning("Unknown probe encoding", encoding=encoding)
            continue

        hangul = count_hangul(decoded)
        if hangul <= min_hangul:
            continue

        cleaned = clean(decoded)
        if len(cleaned) > min_length:
            logger.debug("Encoding probe recovered text",
                         encoding=encoding,
                         hangul=hangul,
                         cleaned_length=len(cleaned))
            return cleaned

    return None
