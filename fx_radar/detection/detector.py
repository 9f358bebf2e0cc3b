"""Currency mention detection over free-form text."""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from fx_radar.detection.matchers import DEFAULT_MATCHERS, Matcher, MatcherContext
from fx_radar.detection.models import AnnotatedMention, CurrencyMention
from fx_radar.detection.numbers import NumberParser
from fx_radar.detection.overlap import OverlapResolver
from fx_radar.detection.symbols import SYMBOL_TABLE, SymbolTable
from fx_radar.errors import InvalidInput
from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.7


class MentionDetector:
    """Run every pattern family over a text and return the surviving mentions.

    The matchers are applied in order and their candidates concatenated.
    Candidates below ``confidence_threshold`` are discarded before overlap
    resolution, so a weak guess never hides a stronger mention it overlaps.
    Detection is pure: instances hold no per-call state and may be shared.
    """

    def __init__(
        self,
        *,
        symbols: SymbolTable = SYMBOL_TABLE,
        parser: NumberParser | None = None,
        matchers: Sequence[Matcher] = DEFAULT_MATCHERS,
        resolver: OverlapResolver | None = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        base_currency: str = "USD",
        context_radius: int = 50,
    ) -> None:
        if not 0.0 <= confidence_threshold <= 1.0:
            raise InvalidInput(f"confidence_threshold must be within [0, 1], got {confidence_threshold}")
        self.symbols = symbols
        self.matchers = tuple(matchers)
        self.resolver = resolver if resolver is not None else OverlapResolver()
        self.confidence_threshold = confidence_threshold
        self._context = MatcherContext(
            parser=parser if parser is not None else NumberParser(),
            symbols=symbols,
            base_currency=base_currency,
            context_radius=context_radius,
        )

    def candidates(self, text: str) -> list[CurrencyMention]:
        """Return every candidate from every matcher, before any filtering."""

        if not isinstance(text, str) or not text.strip():
            return []
        found: list[CurrencyMention] = []
        for matcher in self.matchers:
            found.extend(matcher(text, self._context))
        return found

    def detect(self, text: str) -> list[CurrencyMention]:
        """Return mentions sorted by descending confidence, then position."""

        candidates = self.candidates(text)
        if not candidates:
            return []
        kept = [c for c in candidates if c.confidence >= self.confidence_threshold]
        LOGGER.debug(
            "Detected %d candidates, %d above threshold %.2f",
            len(candidates),
            len(kept),
            self.confidence_threshold,
        )
        return self.resolver.resolve(kept)

    def best(self, text: str) -> AnnotatedMention | None:
        mentions = self.detect(text)
        if not mentions:
            return None
        return AnnotatedMention(
            mention=mentions[0],
            multiple_mentions=len(mentions) > 1,
            alternatives=tuple(mentions[1:]),
        )

    def detection_stats(self, text: str) -> dict[str, object]:
        mentions = self.detect(text)
        by_format = Counter(mention.format.value for mention in mentions)
        average = sum(m.confidence for m in mentions) / len(mentions) if mentions else 0.0
        return {
            "total": len(mentions),
            "by_format": dict(by_format),
            "average_confidence": round(average, 4),
            "currencies": sorted({mention.currency_code for mention in mentions}),
        }


__all__ = ["MentionDetector", "DEFAULT_CONFIDENCE_THRESHOLD"]
