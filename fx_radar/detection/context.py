"""Infer a currency for a bare number from the words around it."""

from __future__ import annotations

import re
from dataclasses import dataclass

# Confidence of an explicit currency name or code near the number.
CURRENCY_KEYWORD_CONFIDENCE = 1.0
COUNTRY_KEYWORD_CONFIDENCE = 0.9
BUSINESS_KEYWORD_FACTOR = 0.6

_CURRENCY_KEYWORDS: dict[str, str] = {
    "usd": "USD",
    "dollar": "USD",
    "dollars": "USD",
    "eur": "EUR",
    "euro": "EUR",
    "euros": "EUR",
    "gbp": "GBP",
    "pound": "GBP",
    "pounds": "GBP",
    "sterling": "GBP",
    "jpy": "JPY",
    "yen": "JPY",
    "cad": "CAD",
    "aud": "AUD",
    "cny": "CNY",
    "yuan": "CNY",
    "renminbi": "CNY",
    "inr": "INR",
    "rupee": "INR",
    "rupees": "INR",
    "chf": "CHF",
    "franc": "CHF",
    "francs": "CHF",
    "mxn": "MXN",
    "peso": "MXN",
    "pesos": "MXN",
    "brl": "BRL",
    "reais": "BRL",
    "krw": "KRW",
    "rub": "RUB",
    "ruble": "RUB",
    "rubles": "RUB",
    "sek": "SEK",
    "krona": "SEK",
    "kronor": "SEK",
    "nok": "NOK",
    "kroner": "NOK",
    "zar": "ZAR",
    "baht": "THB",
    "zloty": "PLN",
}

_COUNTRY_KEYWORDS: dict[str, str] = {
    "usa": "USD",
    "america": "USD",
    "united states": "USD",
    "europe": "EUR",
    "eurozone": "EUR",
    "germany": "EUR",
    "france": "EUR",
    "spain": "EUR",
    "italy": "EUR",
    "uk": "GBP",
    "britain": "GBP",
    "united kingdom": "GBP",
    "england": "GBP",
    "japan": "JPY",
    "canada": "CAD",
    "australia": "AUD",
    "china": "CNY",
    "india": "INR",
    "switzerland": "CHF",
    "mexico": "MXN",
    "brazil": "BRL",
    "korea": "KRW",
    "russia": "RUB",
    "sweden": "SEK",
    "norway": "NOK",
    "south africa": "ZAR",
    "thailand": "THB",
    "poland": "PLN",
}

_BUSINESS_KEYWORDS: dict[str, float] = {
    "price": 0.8,
    "cost": 0.8,
    "pay": 0.7,
    "buy": 0.7,
    "sell": 0.7,
    "revenue": 0.9,
    "profit": 0.9,
    "loss": 0.8,
    "budget": 0.8,
    "invoice": 0.9,
    "receipt": 0.9,
    "bill": 0.8,
    "fee": 0.8,
}


def _keyword_pattern(keywords) -> re.Pattern[str]:
    alternation = "|".join(re.escape(word) for word in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


_CURRENCY_RE = _keyword_pattern(_CURRENCY_KEYWORDS)
_COUNTRY_RE = _keyword_pattern(_COUNTRY_KEYWORDS)
_BUSINESS_RE = _keyword_pattern(_BUSINESS_KEYWORDS)


@dataclass(frozen=True, slots=True)
class ContextClue:
    """Currency suggested by a keyword near a number."""

    currency: str
    confidence: float
    clue: str


def _nearest(pattern: re.Pattern[str], window: str, offset: int, start: int, end: int):
    best = None
    best_distance = None
    for match in pattern.finditer(window):
        kw_start, kw_end = match.start() + offset, match.end() + offset
        if kw_end <= start:
            distance = start - kw_end
        elif kw_start >= end:
            distance = kw_start - end
        else:
            continue
        if best_distance is None or distance < best_distance:
            best, best_distance = match.group(0).lower(), distance
    return best


def infer_currency_from_context(
    text: str,
    start: int,
    end: int,
    *,
    radius: int = 50,
    base_currency: str = "USD",
) -> ContextClue | None:
    """Look ``radius`` characters around ``text[start:end]`` for currency hints.

    Explicit currency names and codes win over country names, which win over
    transactional words such as "price" or "invoice". Within a tier the keyword
    closest to the number is used. Transactional words only imply
    ``base_currency`` and carry a reduced confidence.
    """

    window_start = max(0, start - radius)
    window = text[window_start : min(len(text), end + radius)]

    keyword = _nearest(_CURRENCY_RE, window, window_start, start, end)
    if keyword is not None:
        return ContextClue(_CURRENCY_KEYWORDS[keyword], CURRENCY_KEYWORD_CONFIDENCE, keyword)

    keyword = _nearest(_COUNTRY_RE, window, window_start, start, end)
    if keyword is not None:
        return ContextClue(_COUNTRY_KEYWORDS[keyword], COUNTRY_KEYWORD_CONFIDENCE, keyword)

    keyword = _nearest(_BUSINESS_RE, window, window_start, start, end)
    if keyword is not None:
        return ContextClue(
            base_currency,
            _BUSINESS_KEYWORDS[keyword] * BUSINESS_KEYWORD_FACTOR,
            keyword,
        )
    return None


__all__ = ["ContextClue", "infer_currency_from_context"]
