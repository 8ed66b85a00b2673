"""
HWP text recovery pipeline.

Strategies run in a fixed order and each one runs at most once:

    structured walk -> byte scanner -> encoding probe -> external converters

Every raw output is cleaned, scored and checked against the strategy's
quality gate. The first accepted candidate wins. When all strategies fail,
the result carries the failure reasons and the fixed explanatory message.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

import structlog

from .byte_scanner import ByteScanner
from .converters import ConverterChain
from .document_walker import DocumentWalker
from .encoding_probe import probe
from .formats import RawDocument
from .garbage_filter import clean
from .legacy_parser import LegacyHWPParser
from .quality import (
    LENIENT_GATE,
    STRICT_GATE,
    ExtractionCandidate,
    ExtractionFailure,
    ExtractionResult,
    QualityGate,
)

logger = structlog.get_logger()


class HWPStrategy(ABC):
    """Interface for HWP text recovery strategies."""

    name: str = "strategy"
    gate: QualityGate = LENIENT_GATE

    @abstractmethod
    async def extract(self, document: RawDocument) -> Optional[str]:
        """Return raw candidate text, or None when nothing was recovered."""


class StructuredWalkStrategy(HWPStrategy):
    """Parse the record structure and walk the result for body text."""

    name = "structured_walk"
    gate = LENIENT_GATE

    def __init__(self, parser: Optional[LegacyHWPParser] = None, walker: Optional[DocumentWalker] = None):
        self.parser = parser or LegacyHWPParser()
        self.walker = walker or DocumentWalker()

    def _parse_and_walk(self, data: bytes) -> Optional[str]:
        return self.walker.walk(self.parser.parse(data)) or None

    async def extract(self, document: RawDocument) -> Optional[str]:
        return await asyncio.to_thread(self._parse_and_walk, document.data)


class ByteScanStrategy(HWPStrategy):
    name = "byte_scan"
    gate = STRICT_GATE

    def __init__(self, scanner: Optional[ByteScanner] = None):
        self.scanner = scanner or ByteScanner()

    async def extract(self, document: RawDocument) -> Optional[str]:
        return await asyncio.to_thread(self.scanner.scan, document.data)


class EncodingProbeStrategy(HWPStrategy):
    name = "encoding_probe"
    gate = STRICT_GATE

    async def extract(self, document: RawDocument) -> Optional[str]:
        return await asyncio.to_thread(probe, document.data)


class ConverterStrategy(HWPStrategy):
    name = "external_converter"
    gate = LENIENT_GATE

    def __init__(self, chain: Optional[ConverterChain] = None):
        self.chain = chain or ConverterChain()

    async def extract(self, document: RawDocument) -> Optional[str]:
        return await self.chain.try_convert(document.data, document.filename)


def default_strategies() -> List[HWPStrategy]:
    return [
        StructuredWalkStrategy(),
        ByteScanStrategy(),
        EncodingProbeStrategy(),
        ConverterStrategy(),
    ]


class HWPPipeline:
    """Priority-ordered HWP strategy chain with a per-strategy quality gate."""

    def __init__(self, strategies: Optional[List[HWPStrategy]] = None):
        self.strategies = strategies if strategies is not None else default_strategies()

    async def run(self, document: RawDocument) -> ExtractionResult:
        """
        Recover text from an HWP document.

        Args:
            document: Raw HWP bytes with filename and sniffed format

        Returns:
            Accepted result from the first passing strategy, or the
            exhausted result with the per-strategy failure reasons
        """
        failure = ExtractionFailure()

        for strategy in self.strategies:
            try:
                raw = await strategy.extract(document)
            except Exception as e:
                logger.info("HWP strategy raised", strategy=strategy.name, error=str(e))
                failure.add(strategy.name, f"{type(e).__name__}: {e}")
                continue

            if not raw:
                failure.add(strategy.name, "no text recovered")
                continue

            text = clean(raw)
            score = strategy.gate.score(text)
            if not strategy.gate.accepts_score(score):
                logger.info("HWP candidate rejected by quality gate",
                            strategy=strategy.name,
                            length=score.length,
                            hangul=score.hangul_count)
                failure.add(strategy.name,
                            f"rejected by quality gate (length={score.length}, hangul={score.hangul_count})")
                continue

            logger.info("HWP text recovered",
                        strategy=strategy.name,
                        filename=document.filename,
                        length=score.length,
                        hangul=score.hangul_count)
            candidate = ExtractionCandidate(text=text, strategy=strategy.name, score=score)
            return ExtractionResult.from_candidate(document.format.value, candidate)

        logger.warning("All HWP strategies failed",
                       filename=document.filename,
                       reasons=[f"{r.strategy}: {r.reason}" for r in failure.reasons])
        return ExtractionResult.exhausted(document.format.value, failure)
