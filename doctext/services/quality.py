"""
Quality gate and result types for the HWP recovery pipeline.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from .garbage_filter import strip_binary_runs
from .hangul import count_hangul

SUPPORTED_FORMATS = ("PDF", "DOCX", "XLSX", "TXT", "CSV", "HWPX")

HWP_EXTRACTION_FAILED_MESSAGE = (
    "HWP 파일에서 텍스트를 자동으로 추출하지 못했습니다.\n"
    "\n"
    "HWP(한글) 바이너리 형식은 공개된 안정적인 파서가 없는 독점 형식이라, "
    "이 서버는 다음 방법을 순서대로 시도했지만 모두 실패했습니다:\n"
    "1. 문서 구조 분석 (본문 레코드 해석)\n"
    "2. 바이너리 한글 패턴 스캔\n"
    "3. 인코딩 복구\n"
    "4. 외부 변환기 (오피스 변환기, 클라우드 변환 API, 한컴 변환 API)\n"
    "\n"
    "가능한 원인:\n"
    "- 암호가 걸렸거나 배포용으로 보호된 문서\n"
    "- HWP 3.x 이하의 오래된 형식이거나 손상된 파일\n"
    "- 현재 환경에 외부 변환기가 설치/설정되어 있지 않음\n"
    "\n"
    "한글 프로그램에서 파일을 열어 다른 형식으로 저장한 뒤 다시 업로드해 주세요.\n"
    "안정적으로 지원하는 형식: " + ", ".join(SUPPORTED_FORMATS)
)


@dataclass(frozen=True)
class QualityScore:
    """Derived quality of a candidate text."""

    length: int
    hangul_count: int


@dataclass(frozen=True)
class QualityGate:
    """Accept/reject threshold applied to every candidate.

    A candidate passes when, after long alphanumeric runs are stripped,
    its trimmed length exceeds ``min_length`` and it holds at least
    ``min_hangul`` Hangul syllables.
    """

    min_length: int
    min_hangul: int

    def score(self, text: str) -> QualityScore:
        stripped = strip_binary_runs(text or "").strip()
        return QualityScore(length=len(stripped), hangul_count=count_hangul(stripped))

    def accepts_score(self, score: QualityScore) -> bool:
        return score.length > self.min_length and score.hangul_count >= self.min_hangul

    def accepts(self, text: str) -> bool:
        return self.accepts_score(self.score(text))


# 실제 텍스트를 읽는 전략 (구조 분석, 외부 변환기)
LENIENT_GATE = QualityGate(min_length=10, min_hangul=3)
# 바이트 수준 복구 전략 (패턴 스캔, 인코딩 복구)
STRICT_GATE = QualityGate(min_length=50, min_hangul=10)


@dataclass
class ExtractionCandidate:
    """Text produced by one strategy together with its provenance."""

    text: str
    strategy: str
    score: QualityScore


@dataclass
class StrategyFailure:
    """Why a strategy produced no accepted candidate."""

    strategy: str
    reason: str


@dataclass
class ExtractionFailure:
    """Terminal state when every strategy failed the gate."""

    reasons: List[StrategyFailure] = field(default_factory=list)
    message: str = HWP_EXTRACTION_FAILED_MESSAGE

    def add(self, strategy: str, reason: str) -> None:
        self.reasons.append(StrategyFailure(strategy=strategy, reason=reason))


@dataclass
class ExtractionResult:
    """Outcome of extracting one document: accepted text or exhaustion."""

    format: str
    text: str
    accepted: bool = True
    strategy: Optional[str] = None
    candidate: Optional[ExtractionCandidate] = None
    failure: Optional[ExtractionFailure] = None

    @classmethod
    def from_candidate(cls, file_format: str, candidate: ExtractionCandidate) -> "ExtractionResult":
        return cls(
            format=file_format,
            text=candidate.text,
            accepted=True,
            strategy=candidate.strategy,
            candidate=candidate,
        )

    @classmethod
    def exhausted(cls, file_format: str, failure: ExtractionFailure) -> "ExtractionResult":
        return cls(
            format=file_format,
            text=failure.message,
            accepted=False,
            failure=failure,
        )
