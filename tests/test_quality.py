"""
Quality gate tests.
"""
import pytest

from doctext.services.quality import (
    HWP_EXTRACTION_FAILED_MESSAGE,
    LENIENT_GATE,
    STRICT_GATE,
    ExtractionCandidate,
    ExtractionFailure,
    ExtractionResult,
    QualityGate,
    QualityScore,
)


def test_score_strips_binary_runs():
    score = STRICT_GATE.score("ABCDEFGHIJKLMNOPQRSTUVWXYZ 안녕하세요")
    assert score.length == len("안녕하세요")
    assert score.hangul_count == 5


def test_lenient_gate():
    assert LENIENT_GATE.accepts("예산 편성 기준을 설명합니다")
    assert not LENIENT_GATE.accepts("가나다라마바사아자차")  # 길이 10은 초과가 아님
    assert not LENIENT_GATE.accepts("abcdefghij klm")


def test_strict_gate_requires_more_hangul():
    text = "예산 편성 기준을 설명합니다 " * 2
    assert LENIENT_GATE.accepts(text)
    assert not STRICT_GATE.accepts(text)
    assert STRICT_GATE.accepts(text * 2)


def test_binary_leakage_does_not_pass():
    text = "0123456789ABCDEF0123456789ABCDEF" * 5 + " 가나다"
    assert not STRICT_GATE.accepts(text)
    assert not LENIENT_GATE.accepts(text)


@pytest.mark.parametrize("gate", [LENIENT_GATE, STRICT_GATE, QualityGate(0, 0), QualityGate(100, 30)])
def test_gate_is_monotonic(gate):
    scores = [QualityScore(length, hangul) for length in range(0, 120, 7) for hangul in range(0, 40, 3)]
    for worse in scores:
        if not gate.accepts_score(worse):
            continue
        for better in scores:
            if better.length >= worse.length and better.hangul_count >= worse.hangul_count:
                assert gate.accepts_score(better)


def test_failure_message_lists_supported_formats():
    for fmt in ("PDF", "DOCX", "XLSX", "TXT", "CSV", "HWPX"):
        assert fmt in HWP_EXTRACTION_FAILED_MESSAGE


def test_extraction_result_states():
    candidate = ExtractionCandidate(text="본문", strategy="byte_scan", score=QualityScore(2, 2))
    accepted = ExtractionResult.from_candidate("hwp", candidate)
    assert accepted.accepted is True
    assert accepted.strategy == "byte_scan"
    assert accepted.text == "본문"

    failure = ExtractionFailure()
    failure.add("byte_scan", "no text recovered")
    exhausted = ExtractionResult.exhausted("hwp", failure)
    assert exhausted.accepted is False
    assert exhausted.text == HWP_EXTRACTION_FAILED_MESSAGE
    assert exhausted.failure.reasons[0].strategy == "byte_scan"
