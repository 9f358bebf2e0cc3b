"""Currency conversion arithmetic on top of resolved exchange rates."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Protocol, Sequence, Union

from fx_radar.detection.models import CurrencyMention
from fx_radar.errors import FxRadarError, InvalidInput
from fx_radar.rates.models import RateRecord
from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)

MAX_AMOUNT = Decimal("1000000000")
_CODE_RE = re.compile(r"^[A-Z]{3}$")

AmountLike = Union[Decimal, int, float, str]


class RateSource(Protocol):
    async def get_rate(self, from_currency: str, to_currency: str) -> RateRecord:
        ...


def precision_for(value: Decimal) -> int:
    """Decimal places for a converted value: 2 from 1000 up, 3 from 1 up, else 4."""

    magnitude = abs(value)
    if magnitude >= 1000:
        return 2
    if magnitude >= 1:
        return 3
    return 4


def format_exchange_rate(rate: Decimal, from_currency: str = "", to_currency: str = "") -> str:
    """Render a rate for display, e.g. ``1 USD = 0.920000 EUR``."""

    rate = Decimal(str(rate))
    if rate >= 1000:
        places = 0
    elif rate >= 100:
        places = 2
    elif rate >= 1:
        places = 4
    else:
        places = 6
    formatted = f"{rate.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP):f}"
    if from_currency and to_currency:
        return f"1 {from_currency} = {formatted} {to_currency}"
    return formatted


def _parse_amount(amount: AmountLike) -> Decimal:
    if isinstance(amount, bool) or not isinstance(amount, (Decimal, int, float, str)):
        raise InvalidInput(f"Amount must be a number, got {type(amount).__name__}")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except InvalidOperation as exc:
        raise InvalidInput(f"Amount {amount!r} is not a number") from exc
    if not value.is_finite():
        raise InvalidInput(f"Amount {amount!r} is not a finite number")
    if value <= 0:
        raise InvalidInput("Amount must be greater than zero")
    if value > MAX_AMOUNT:
        raise InvalidInput("Amount is too large for conversion")
    return value


def _parse_code(code: Any, label: str) -> str:
    if not isinstance(code, str) or not _CODE_RE.match(code.strip().upper()):
        raise InvalidInput(f"{label} currency must be a valid 3-letter code")
    return code.strip().upper()


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    amount: Decimal
    from_currency: str
    to_currency: str

    @classmethod
    def create(cls, amount: AmountLike, from_currency: Any, to_currency: Any) -> "ConversionRequest":
        """Validate raw input, raising :class:`InvalidInput` on the first problem."""

        return cls(
            amount=_parse_amount(amount),
            from_currency=_parse_code(from_currency, "From"),
            to_currency=_parse_code(to_currency, "To"),
        )


@dataclass(frozen=True, slots=True)
class ConversionResult:
    original_amount: Decimal
    from_currency: str
    to_currency: str
    converted_amount: Decimal
    rate: Decimal
    precision: int
    source: str
    cached: bool
    offline: bool
    timestamp: datetime

    @property
    def source_label(self) -> str:
        flags = [flag for flag, on in (("cached", self.cached), ("offline", self.offline)) if on]
        return f"{self.source} ({', '.join(flags)})" if flags else self.source

    @property
    def formatted_rate(self) -> str:
        return format_exchange_rate(self.rate, self.from_currency, self.to_currency)

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_amount": str(self.original_amount),
            "from_currency": self.from_currency,
            "to_currency": self.to_currency,
            "converted_amount": str(self.converted_amount),
            "rate": str(self.rate),
            "precision": self.precision,
            "source": self.source,
            "cached": self.cached,
            "offline": self.offline,
            "timestamp": self.timestamp.isoformat(),
        }


class ConversionEngine:
    """Combine an amount with a resolved rate and round the result by magnitude."""

    def __init__(self, rates: RateSource) -> None:
        self.rates = rates

    async def convert(
        self, amount: AmountLike, from_currency: str, to_currency: str
    ) -> ConversionResult:
        request = ConversionRequest.create(amount, from_currency, to_currency)
        record = await self.rates.get_rate(request.from_currency, request.to_currency)
        return self._apply(request, record)

    @staticmethod
    def _apply(request: ConversionRequest, record: RateRecord) -> ConversionResult:
        product = request.amount * record.rate
        precision = precision_for(product)
        converted = product.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
        LOGGER.debug(
            "Converted %s %s -> %s %s at %s (%s)",
            request.amount,
            request.from_currency,
            converted,
            request.to_currency,
            record.rate,
            record.source,
        )
        return ConversionResult(
            original_amount=request.amount,
            from_currency=request.from_currency,
            to_currency=request.to_currency,
            converted_amount=converted,
            rate=record.rate,
            precision=precision,
            source=record.source,
            cached=record.cached,
            offline=record.offline,
            timestamp=record.fetched_at,
        )

    async def convert_mention(self, mention: CurrencyMention, to_currency: str) -> ConversionResult:
        return await self.convert(mention.amount, mention.currency_code, to_currency)

    async def convert_many(
        self, amount: AmountLike, from_currency: str, targets: Sequence[str]
    ) -> list[Union[ConversionResult, FxRadarError]]:
        """Convert into every target concurrently, keeping per-target failures.

        Results are returned in ``targets`` order. An invalid amount or source
        currency fails the whole batch up front.
        """

        value = _parse_amount(amount)
        source = _parse_code(from_currency, "From")
        outcomes = await asyncio.gather(
            *(self.convert(value, source, target) for target in targets),
            return_exceptions=True,
        )
        results: list[Union[ConversionResult, FxRadarError]] = []
        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, FxRadarError):
                LOGGER.warning("Conversion %s -> %s failed: %s", source, target, outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)
        return results


__all__ = [
    "ConversionEngine",
    "ConversionRequest",
    "ConversionResult",
    "RateSource",
    "MAX_AMOUNT",
    "precision_for",
    "format_exchange_rate",
]
