"""Pattern families that turn raw text into candidate currency mentions.

Each matcher is a pure function ``(text, context) -> list[CurrencyMention]``
that scans the whole text independently of the others. The detector folds
over :data:`DEFAULT_MATCHERS` in order; later overlap resolution decides
which candidates survive.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from decimal import Decimal
from typing import Callable, Iterable

from fx_radar.detection.context import infer_currency_from_context
from fx_radar.detection.models import CurrencyMention, MentionFormat
from fx_radar.detection.numbers import NumberParser
from fx_radar.detection.symbols import SYMBOL_TABLE, SymbolTable
from fx_radar.errors import ParseAmbiguous
from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)

NUMBER = r"\d+(?:[.,'’]\d+)*(?:[eE][+-]?\d+)?"

SYMBOL_PREFIX_CONFIDENCE = 0.90
SYMBOL_SUFFIX_CONFIDENCE = 0.85
ALPHA_SYMBOL_SUFFIX_CONFIDENCE = 0.80
CODE_CONFIDENCE = 0.80
CRYPTO_CONFIDENCE = 0.95
WORD_CONFIDENCE = 0.70
LOCALE_CONTEXT_FACTOR = 0.7
PLAIN_CONTEXT_FACTOR = 0.6

# Words that read naturally in front of an amount ("Rs. 500", "euro 20").
_PREFIX_WORDS = frozenset(
    {
        "rs",
        "rs.",
        "rupee",
        "rupees",
        "euro",
        "euros",
        "dollar",
        "dollars",
        "yen",
        "yuan",
        "peso",
        "pesos",
        "riyal",
        "riyals",
        "dirham",
        "dirhams",
        "naira",
        "baht",
        "ringgit",
        "rupiah",
    }
)

# Currency names that are also everyday English words ("5 real friends").
_AMBIGUOUS_WORDS = frozenset({"real", "won", "rand", "dong"})


@dataclass(frozen=True, slots=True)
class MatcherContext:
    """Collaborators and settings shared by every matcher in one scan."""

    parser: NumberParser = field(default_factory=NumberParser)
    symbols: SymbolTable = SYMBOL_TABLE
    base_currency: str = "USD"
    context_radius: int = 50


Matcher = Callable[[str, MatcherContext], list[CurrencyMention]]


def _alternation(tokens: Iterable[str]) -> str:
    return "|".join(re.escape(token) for token in sorted(tokens, key=len, reverse=True))


def _build(
    ctx: MatcherContext,
    match: re.Match[str],
    currency: str,
    mention_format: MentionFormat,
    confidence: float,
) -> CurrencyMention | None:
    raw = match.group("number")
    try:
        amount, number_format = ctx.parser.parse_with_format(raw)
    except ParseAmbiguous as exc:
        LOGGER.debug("Dropping %s candidate %r: %s", mention_format.value, match.group(0), exc.reason)
        return None
    if amount <= Decimal(0):
        LOGGER.debug("Dropping %s candidate %r: non-positive amount", mention_format.value, match.group(0))
        return None
    start, end = match.span()
    return CurrencyMention(
        amount=amount,
        currency_code=currency,
        source_text=match.string[start:end],
        range=(start, end),
        format=mention_format,
        confidence=confidence,
        number_format=number_format,
        decimals=ctx.symbols.crypto_decimals(currency),
    )


@lru_cache(maxsize=None)
def _symbol_prefix_re(symbols: SymbolTable) -> re.Pattern[str]:
    return re.compile(
        rf"(?<![A-Za-z])(?P<symbol>{_alternation(symbols.fiat_symbols)})\s?(?P<number>{NUMBER})"
    )


@lru_cache(maxsize=None)
def _symbol_suffix_re(symbols: SymbolTable) -> re.Pattern[str]:
    return re.compile(
        rf"(?<![\d.,])(?P<number>{NUMBER})\s?(?P<symbol>{_alternation(symbols.fiat_symbols)})(?![A-Za-z])"
    )


_CODE_PREFIX_RE = re.compile(rf"(?<![A-Za-z])(?P<code>[A-Z]{{3}})\s?(?P<number>{NUMBER})")
_CODE_SUFFIX_RE = re.compile(rf"(?<![\d.,])(?P<number>{NUMBER})\s?(?P<code>[A-Z]{{3}})(?![A-Za-z])")
_BARE_NUMBER_RE = re.compile(rf"(?<![\w.,'’])(?P<number>{NUMBER})(?![\w'’])")


def match_symbol_prefix(text: str, ctx: MatcherContext) -> list[CurrencyMention]:
    pattern = _symbol_prefix_re(ctx.symbols)
    mentions = []
    for match in pattern.finditer(text):
        currency = ctx.symbols.fiat_symbols[match.group("symbol")]
        mention = _build(ctx, match, currency, MentionFormat.SYMBOL_PREFIX, SYMBOL_PREFIX_CONFIDENCE)
        if mention:
            mentions.append(mention)
    return mentions


def match_symbol_suffix(text: str, ctx: MatcherContext) -> list[CurrencyMention]:
    pattern = _symbol_suffix_re(ctx.symbols)
    mentions = []
    for match in pattern.finditer(text):
        symbol = match.group("symbol")
        confidence = (
            ALPHA_SYMBOL_SUFFIX_CONFIDENCE if symbol[0].isalpha() else SYMBOL_SUFFIX_CONFIDENCE
        )
        currency = ctx.symbols.fiat_symbols[symbol]
        mention = _build(ctx, match, currency, MentionFormat.SYMBOL_SUFFIX, confidence)
        if mention:
            mentions.append(mention)
    return mentions


def _match_codes(
    text: str, ctx: MatcherContext, pattern: re.Pattern[str], mention_format: MentionFormat
) -> list[CurrencyMention]:
    mentions = []
    for match in pattern.finditer(text):
        code = match.group("code")
        if not ctx.symbols.is_valid_currency(code) or ctx.symbols.is_crypto(code):
            continue
        mention = _build(ctx, match, code, mention_format, CODE_CONFIDENCE)
        if mention:
            mentions.append(mention)
    return mentions


def match_code_prefix(text: str, ctx: MatcherContext) -> list[CurrencyMention]:
    return _match_codes(text, ctx, _CODE_PREFIX_RE, MentionFormat.CODE_PREFIX)


def match_code_suffix(text: str, ctx: MatcherContext) -> list[CurrencyMention]:
    return _match_codes(text, ctx, _CODE_SUFFIX_RE, MentionFormat.CODE_SUFFIX)


@lru_cache(maxsize=None)
def _crypto_patterns(symbols: SymbolTable) -> tuple[re.Pattern[str], ...]:
    codes = _alternation(symbols.crypto_codes())
    return (
        re.compile(rf"(?P<symbol>{_alternation(symbols.crypto_symbols)})\s?(?P<number>{NUMBER})"),
        re.compile(rf"(?<![A-Za-z])(?P<code>{codes})\s?(?P<number>{NUMBER})"),
        re.compile(rf"(?<![\d.,])(?P<number>{NUMBER})\s?(?P<code>{codes})(?![A-Za-z])"),
        re.compile(
            rf"(?<![\d.,])(?P<number>{NUMBER})\s?(?P<word>{_alternation(symbols.crypto_words)})(?![A-Za-z])",
            re.IGNORECASE,
        ),
    )


def match_crypto(text: str, ctx: MatcherContext) -> list[CurrencyMention]:
    mentions = []
    for pattern in _crypto_patterns(ctx.symbols):
        for match in pattern.finditer(text):
            groups = match.groupdict()
            if groups.get("symbol"):
                currency = ctx.symbols.crypto_symbols[groups["symbol"]]
            elif groups.get("code"):
                currency = groups["code"]
            else:
                currency = ctx.symbols.crypto_words[groups["word"].lower()]
            mention = _build(ctx, match, currency, MentionFormat.CRYPTO, CRYPTO_CONFIDENCE)
            if mention:
                mentions.append(mention)
    return mentions


@lru_cache(maxsize=None)
def _word_prefix_re(symbols: SymbolTable) -> re.Pattern[str]:
    words = [word for word in symbols.words if word in _PREFIX_WORDS]
    return re.compile(
        rf"(?<![A-Za-z])(?P<word>{_alternation(words)})\s*(?P<number>{NUMBER})", re.IGNORECASE
    )


@lru_cache(maxsize=None)
def _word_suffix_re(symbols: SymbolTable) -> re.Pattern[str]:
    words = [
        word for word in symbols.words if not word.startswith("rs") and word not in _AMBIGUOUS_WORDS
    ]
    return re.compile(
        rf"(?<![\d.,])(?P<number>{NUMBER})\s*(?P<word>{_alternation(words)})(?![A-Za-z])",
        re.IGNORECASE,
    )


def _match_words(
    text: str, ctx: MatcherContext, pattern: re.Pattern[str], mention_format: MentionFormat
) -> list[CurrencyMention]:
    mentions = []
    for match in pattern.finditer(text):
        word = " ".join(match.group("word").lower().split())
        currency = ctx.symbols.words[word]
        mention = _build(ctx, match, currency, mention_format, WORD_CONFIDENCE)
        if mention:
            mentions.append(mention)
    return mentions


def match_word_prefix(text: str, ctx: MatcherContext) -> list[CurrencyMention]:
    pattern = _word_prefix_re(ctx.symbols)
    return _match_words(text, ctx, pattern, MentionFormat.WORD_PREFIX)


def match_word_suffix(text: str, ctx: MatcherContext) -> list[CurrencyMention]:
    pattern = _word_suffix_re(ctx.symbols)
    return _match_words(text, ctx, pattern, MentionFormat.WORD_SUFFIX)


def match_context(text: str, ctx: MatcherContext) -> list[CurrencyMention]:
    """Bare numbers whose currency is implied by nearby keywords.

    Locale-formatted numbers (grouped, decimal or scientific) keep 70% of the
    context confidence, plain integers 60%.
    """

    mentions = []
    for match in _BARE_NUMBER_RE.finditer(text):
        clue = infer_currency_from_context(
            text,
            match.start(),
            match.end(),
            radius=ctx.context_radius,
            base_currency=ctx.base_currency,
        )
        if clue is None:
            continue
        factor = LOCALE_CONTEXT_FACTOR if not match.group("number").isdigit() else PLAIN_CONTEXT_FACTOR
        mention = _build(
            ctx, match, clue.currency, MentionFormat.CONTEXT_INFERRED, clue.confidence * factor
        )
        if mention:
            mentions.append(mention)
    return mentions


DEFAULT_MATCHERS: tuple[Matcher, ...] = (
    match_symbol_prefix,
    match_symbol_suffix,
    match_code_prefix,
    match_code_suffix,
    match_crypto,
    match_word_prefix,
    match_word_suffix,
    match_context,
)


__all__ = [
    "NUMBER",
    "Matcher",
    "MatcherContext",
    "DEFAULT_MATCHERS",
    "match_symbol_prefix",
    "match_symbol_suffix",
    "match_code_prefix",
    "match_code_suffix",
    "match_crypto",
    "match_word_prefix",
    "match_word_suffix",
    "match_context",
]
