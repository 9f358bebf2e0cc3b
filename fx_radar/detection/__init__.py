"""Currency mention detection: number parsing, symbol lookup and pattern matching."""

from fx_radar.detection.context import infer_currency_from_context
from fx_radar.detection.detector import MentionDetector
from fx_radar.detection.matchers import DEFAULT_MATCHERS
from fx_radar.detection.models import AnnotatedMention, CurrencyMention, MentionFormat
from fx_radar.detection.numbers import NumberFormat, NumberParser, parse_amount
from fx_radar.detection.overlap import OverlapResolver, ranges_overlap
from fx_radar.detection.symbols import SYMBOL_TABLE, SymbolTable

__all__ = [
    "AnnotatedMention",
    "CurrencyMention",
    "DEFAULT_MATCHERS",
    "MentionDetector",
    "MentionFormat",
    "NumberFormat",
    "NumberParser",
    "OverlapResolver",
    "SYMBOL_TABLE",
    "SymbolTable",
    "infer_currency_from_context",
    "parse_amount",
    "ranges_overlap",
]
