"""Data models produced by the mention detector."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from fx_radar.detection.numbers import NumberFormat


class MentionFormat(str, Enum):
    """Pattern family that produced a mention."""

    SYMBOL_PREFIX = "symbolPrefix"
    SYMBOL_SUFFIX = "symbolSuffix"
    CODE_PREFIX = "codePrefix"
    CODE_SUFFIX = "codeSuffix"
    WORD_PREFIX = "wordPrefix"
    WORD_SUFFIX = "wordSuffix"
    CRYPTO = "crypto"
    CONTEXT_INFERRED = "contextInferred"


@dataclass(frozen=True, slots=True)
class CurrencyMention:
    """A detected amount and currency together with the text range they span."""

    amount: Decimal
    currency_code: str
    source_text: str
    range: tuple[int, int]
    format: MentionFormat
    confidence: float
    number_format: NumberFormat = NumberFormat.STANDARD
    decimals: int | None = None

    @property
    def start(self) -> int:
        return self.range[0]

    @property
    def end(self) -> int:
        return self.range[1]

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "amount": str(self.amount),
            "currency_code": self.currency_code,
            "source_text": self.source_text,
            "range": list(self.range),
            "format": self.format.value,
            "confidence": round(self.confidence, 4),
            "number_format": self.number_format.value,
        }
        if self.decimals is not None:
            payload["decimals"] = self.decimals
        return payload


@dataclass(frozen=True, slots=True)
class AnnotatedMention:
    """The best mention in a text plus caller-facing annotations."""

    mention: CurrencyMention
    multiple_mentions: bool = False
    alternatives: tuple[CurrencyMention, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        payload = self.mention.to_dict()
        payload["multiple_mentions"] = self.multiple_mentions
        payload["alternatives"] = [alt.to_dict() for alt in self.alternatives]
        return payload


__all__ = ["MentionFormat", "CurrencyMention", "AnnotatedMention"]
