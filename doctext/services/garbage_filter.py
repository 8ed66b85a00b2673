"""
Garbage filter / sentence reconstructor for recovered HWP text.

Any candidate text produced by the HWP recovery strategies goes through
clean() before it is scored. The filter removes binary leakage (long
alphanumeric runs, hex dumps, HWP stream names, metadata timestamps),
then rebuilds the text from sentences that look like real Korean prose.
"""
import re
from typing import List

from .hangul import count_hangul, has_hangul_word, has_isolated_jamo_run

# 1단계: 영숫자만 15자 이상 연속 (디코딩되지 않은 바이너리)
LONG_ALNUM_RUN = re.compile(r'[A-Za-z0-9]{15,}')

# 2단계: 16진수 덤프 (숫자와 a-f 가 섞인 8자 이상)
HEX_RUN = re.compile(
    r'(?<![0-9A-Za-z])(?:0[xX])?'
    r'(?=[0-9A-Fa-f]*[A-Fa-f])(?=[0-9A-Fa-f]*[0-9])'
    r'[0-9A-Fa-f]{8,}(?![0-9A-Za-z])'
)

# 3단계: 연속된 라틴 단어 2개 이상 (HWP 내부 태그 이름)
LATIN_WORD_SEQUENCE = re.compile(
    r'(?<![A-Za-z0-9])[A-Za-z]{2,}(?:[ \t]+[A-Za-z]{2,})+(?![A-Za-z0-9])'
)

# 4단계: 한글/공백이 아닌 5자 이상 연속
NON_HANGUL_RUN = re.compile(r'[^\s가-힣ㄱ-ㆎ]{5,}')
SAFE_RUN_CHARS = set('0123456789.,!?()%~-')

# 5단계: HWP 바이너리 구조 토큰
STRUCTURAL_TOKENS = (
    "Root Entry",
    "HWP Document File",
    "FileHeader",
    "DocInfo",
    "BodyText",
    "BinData",
    "PrvText",
    "PrvImage",
    "DocOptions",
    "_LinkDoc",
    "DrmLicense",
    "Scripts",
    "DefaultJScript",
    "JScriptVersion",
    "HwpSummaryInformation",
    "SummaryInformation",
    "ViewText",
    "DocHistory",
    "XMLTemplate",
)
STRUCTURAL_TOKEN_PATTERN = re.compile(
    '|'.join(re.escape(t) for t in sorted(STRUCTURAL_TOKENS, key=len, reverse=True))
    + r'|Section\d+|BIN\d{4}(?:\.[A-Za-z]{3,4})?'
)

# 6단계: 날짜/시간 형태 (문서 메타데이터)
DATE_TIME_PATTERN = re.compile(
    r'(?<!\d)\d{4}[-./]\d{1,2}[-./]\d{1,2}(?:[ T]?\d{1,2}:\d{2}(?::\d{2})?)?(?!\d)'
    r'|(?<!\d)\d{1,2}:\d{2}(?::\d{2})?(?!\d)'
)

# 7단계: 허용 문자 이외는 공백으로
DISALLOWED_CHARS = re.compile(r'[^가-힣ㄱ-ㆎA-Za-z0-9\s.,!?()\[\]\'"%~·:;\-/]')
WHITESPACE = re.compile(r'\s+')

# 8단계: 문장 분리
SENTENCE_END = re.compile(r'[.!?]+')
MIN_SENTENCE_LENGTH = 10

# 9단계: 문장 필터
MIN_SENTENCE_HANGUL = 3

SENTENCE_JOINER = ". "
MAX_PASSES = 5


def strip_binary_runs(text: str) -> str:
    """영숫자 장문 연속(바이너리 누출)을 공백으로 치환"""
    if not text:
        return ""
    return LONG_ALNUM_RUN.sub(' ', text)


def _strip_symbol_runs(match: re.Match) -> str:
    run = match.group(0)
    has_alnum = any(c.isascii() and c.isalnum() for c in run)
    has_symbol = any(not (c.isascii() and c.isalpha()) and c not in SAFE_RUN_CHARS for c in run)
    if has_alnum and has_symbol:
        return ' '
    return run


def normalize(text: str) -> str:
    """1-7단계: 노이즈 제거 및 허용 문자 집합으로 축소"""
    text = LONG_ALNUM_RUN.sub(' ', text)
    text = HEX_RUN.sub(' ', text)
    text = LATIN_WORD_SEQUENCE.sub(' ', text)
    text = NON_HANGUL_RUN.sub(_strip_symbol_runs, text)
    text = STRUCTURAL_TOKEN_PATTERN.sub(' ', text)
    text = DATE_TIME_PATTERN.sub(' ', text)
    text = DISALLOWED_CHARS.sub(' ', text)
    return WHITESPACE.sub(' ', text).strip()


def is_meaningful_sentence(sentence: str) -> bool:
    """9단계: 한글 문장으로 볼 수 있는지 확인"""
    if len(sentence) < MIN_SENTENCE_LENGTH:
        return False
    if count_hangul(sentence) < MIN_SENTENCE_HANGUL:
        return False
    if has_isolated_jamo_run(sentence):
        return False
    return has_hangul_word(sentence)


def split_sentences(text: str) -> List[str]:
    """8단계: 문장 부호 기준 분리 후 공백 제거"""
    return [s.strip() for s in SENTENCE_END.split(text) if s.strip()]


def _clean_pass(text: str) -> str:
    normalized = normalize(text)
    if not normalized:
        return ""

    sentences = []
    seen = set()
    for sentence in split_sentences(normalized):
        if not is_meaningful_sentence(sentence):
            continue
        if sentence in seen:
            continue
        seen.add(sentence)
        sentences.append(sentence)

    return SENTENCE_JOINER.join(sentences)


def clean(text: str) -> str:
    """후보 텍스트에서 바이너리 노이즈를 제거하고 문장 단위로 재구성

    출력이 더 이상 바뀌지 않을 때까지 반복하므로 clean(clean(x)) == clean(x).

    Args:
        text: 전략이 생성한 후보 텍스트

    Returns:
        정제된 텍스트 (유효한 문장이 없으면 빈 문자열)
    """
    if not text:
        return ""

    result = _clean_pass(text)
    for _ in range(MAX_PASSES):
        if not result:
            break
        next_result = _clean_pass(result)
        if next_result == result:
            break
        result = next_result
    return result
