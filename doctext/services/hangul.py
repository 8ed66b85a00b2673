"""
Hangul character helpers shared by the recovery strategies.
"""
import re

HANGUL_SYLLABLE_START = 0xAC00  # 가
HANGUL_SYLLABLE_END = 0xD7A3    # 힣
HANGUL_JAMO_START = 0x3131      # ㄱ
HANGUL_JAMO_END = 0x318E        # ㆎ

HANGUL_SYLLABLE_PATTERN = re.compile(r'[가-힣]')
HANGUL_WORD_PATTERN = re.compile(r'[가-힣]{2,}')
# 조합되지 않은 자모가 3개 이상 연속 (공백 한 칸까지 허용)
ISOLATED_JAMO_RUN_PATTERN = re.compile(r'[ㄱ-ㆎ](?:\s?[ㄱ-ㆎ]){2,}')


def is_hangul_syllable(c: str) -> bool:
    """한글 음절 (가-힣) 인지 확인"""
    return HANGUL_SYLLABLE_START <= ord(c) <= HANGUL_SYLLABLE_END


def is_hangul_jamo(c: str) -> bool:
    """한글 호환 자모 (ㄱ-ㆎ) 인지 확인"""
    return HANGUL_JAMO_START <= ord(c) <= HANGUL_JAMO_END


def is_hangul(c: str) -> bool:
    return is_hangul_syllable(c) or is_hangul_jamo(c)


def count_hangul(text: str) -> int:
    """텍스트 내 한글 음절 수"""
    if not text:
        return 0
    return len(HANGUL_SYLLABLE_PATTERN.findall(text))


def contains_hangul(text: str) -> bool:
    return bool(text) and HANGUL_SYLLABLE_PATTERN.search(text) is not None


def has_hangul_word(text: str) -> bool:
    """2음절 이상의 한글 단어가 있는지 확인"""
    return bool(text) and HANGUL_WORD_PATTERN.search(text) is not None


def has_isolated_jamo_run(text: str) -> bool:
    """잘못 분절된 바이트의 흔적인 연속 자모 확인"""
    return bool(text) and ISOLATED_JAMO_RUN_PATTERN.search(text) is not None


def hangul_ratio(text: str) -> float:
    """공백을 제외한 문자 중 한글 음절 비율"""
    if not text:
        return 0.0
    non_space = sum(1 for c in text if not c.isspace())
    if non_space == 0:
        return 0.0
    return count_hangul(text) / non_space
