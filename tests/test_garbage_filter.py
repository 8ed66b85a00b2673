"""
Garbage filter tests.
"""
import pytest

from doctext.services.garbage_filter import (
    clean,
    is_meaningful_sentence,
    normalize,
    split_sentences,
    strip_binary_runs,
)


class TestClean:
    """Test clean()."""

    def test_drops_binary_run_and_keeps_sentence(self):
        text = "AAAAAAAAAAAAAAAAAAAA 안녕하세요 반갑습니다 오늘 날씨가 좋습니다"
        result = clean(text)

        assert "AAAA" not in result
        assert "안녕하세요 반갑습니다 오늘 날씨가 좋습니다" in result

    def test_rejects_isolated_jamo_runs(self):
        assert clean("ㄱㄴㄷㄹㅁㅂㅅ ㅇㅈㅊㅋㅌㅍㅎ") == ""
        assert clean("ㅎ ㅏ ㄴ ㄱ ㅡ ㄹ 문서 텍스트 입니다") == ""

    def test_empty_input(self):
        assert clean("") == ""
        assert clean(None) == ""

    def test_removes_structural_tokens(self):
        text = "Root Entry FileHeader BodyText Section0 회의록 내용을 정리한 문서입니다"
        result = clean(text)

        assert "Section0" not in result
        assert "FileHeader" not in result
        assert "회의록 내용을 정리한 문서입니다" in result

    def test_removes_hex_and_timestamps(self):
        text = "0x1f2e3d4c 2024-01-15 10:30:00 보고서 작성 기준을 안내합니다"
        result = clean(text)

        assert "1f2e3d4c" not in result
        assert "2024" not in result
        assert "보고서 작성 기준을 안내합니다" in result

    def test_drops_short_and_duplicate_sentences(self):
        text = "짧음. 예산 편성 기준을 설명합니다. 예산 편성 기준을 설명합니다. 끝"
        assert clean(text) == "예산 편성 기준을 설명합니다"

    @pytest.mark.parametrize("text", [
        "AAAAAAAAAAAAAAAAAAAA 안녕하세요 반갑습니다 오늘 날씨가 좋습니다",
        "이 문서는 예산 편성 기준을 설명합니다. 각 부서는 계획을 제출해야 합니다!",
        "DocInfo 0xdeadbeef00 제출된 계획은 위원회에서 검토됩니다? 네 그렇습니다",
        "Hello World 보고서의 주요 내용은 다음과 같습니다: 첫째, 예산. 둘째, 인력.",
        "@@##$$%%^^ 문서 본문 텍스트가 여기에 있습니다 ~~ (참고) 100% 완료",
    ])
    def test_idempotent(self, text):
        once = clean(text)
        assert clean(once) == once


class TestHelpers:
    def test_strip_binary_runs(self):
        assert strip_binary_runs("abc ABCDEFGHIJKLMNOP123 가나다").split() == ["abc", "가나다"]

    def test_normalize_collapses_whitespace(self):
        assert normalize("가나다\n\n\t라마바") == "가나다 라마바"

    def test_split_sentences(self):
        assert split_sentences("첫 문장. 둘째 문장! 셋째?") == ["첫 문장", "둘째 문장", "셋째"]

    def test_is_meaningful_sentence(self):
        assert is_meaningful_sentence("예산 편성 기준을 설명합니다")
        assert not is_meaningful_sentence("가나")
        assert not is_meaningful_sentence("abc def ghi jkl 가")
