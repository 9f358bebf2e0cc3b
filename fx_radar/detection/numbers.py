"""Locale-aware parsing of numeric substrings into ``Decimal`` values."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from enum import Enum

from fx_radar.errors import ParseAmbiguous

_SCIENTIFIC_RE = re.compile(r"^\d+(?:\.\d+)?[eE][+-]?\d+$")
_SWISS_RE = re.compile(r"^\d{1,3}(?:['’]\d{3})+(?:[.,]\d+)?$")
_PLAIN_RE = re.compile(r"^\d+(?:[.,]\d+)*$")
_APOSTROPHES = ("'", "’")


class NumberFormat(str, Enum):
    """Numeric convention a raw amount was written in."""

    STANDARD = "standard"
    US = "us"
    EUROPEAN = "european"
    INDIAN = "indian"
    SWISS = "swiss"
    SCIENTIFIC = "scientific"


def _is_western_grouping(groups: list[str]) -> bool:
    return 1 <= len(groups[0]) <= 3 and all(len(group) == 3 for group in groups[1:])


def _is_indian_grouping(groups: list[str]) -> bool:
    # 1,23,45,678: leading 1-2 digits, pairs in the middle, three digits last.
    return (
        len(groups) >= 3
        and 1 <= len(groups[0]) <= 2
        and len(groups[-1]) == 3
        and all(len(group) == 2 for group in groups[1:-1])
    )


def _to_decimal(raw: str, digits: str) -> Decimal:
    try:
        return Decimal(digits)
    except InvalidOperation as exc:
        raise ParseAmbiguous(raw, "not a decimal number") from exc


class NumberParser:
    """Parse amounts written with US, European, Indian, Swiss or scientific notation.

    When both ``.`` and ``,`` occur, the rightmost one is the decimal mark and
    the other one separates thousands. A lone separator followed by one or two
    digits is a decimal mark; followed by exactly three digits (after a short,
    non-zero integer part) it separates thousands. Repeated separators must
    form consistent Western (3-3-3) or Indian (2-2-3) groups.
    """

    def parse(self, raw: str) -> Decimal:
        """Return the decimal value of ``raw`` or raise :class:`ParseAmbiguous`."""

        value, _ = self.parse_with_format(raw)
        return value

    def detect_format(self, raw: str) -> NumberFormat:
        """Return the numeric convention of ``raw`` (``STANDARD`` when unparseable)."""

        try:
            _, number_format = self.parse_with_format(raw)
        except ParseAmbiguous:
            return NumberFormat.STANDARD
        return number_format

    def parse_with_format(self, raw: str) -> tuple[Decimal, NumberFormat]:
        if not isinstance(raw, str):
            raise ParseAmbiguous(repr(raw), "expected a string")
        value = raw.strip()
        if not value:
            raise ParseAmbiguous(raw, "empty input")

        if _SCIENTIFIC_RE.match(value):
            return _to_decimal(raw, value), NumberFormat.SCIENTIFIC

        if any(mark in value for mark in _APOSTROPHES):
            if not _SWISS_RE.match(value):
                raise ParseAmbiguous(raw, "inconsistent apostrophe grouping")
            digits = value.replace("'", "").replace("’", "").replace(",", ".")
            return _to_decimal(raw, digits), NumberFormat.SWISS

        if not _PLAIN_RE.match(value):
            raise ParseAmbiguous(raw, "not a number")

        separators = [char for char in value if char in ".,"]
        if not separators:
            return _to_decimal(raw, value), NumberFormat.STANDARD

        if len(set(separators)) == 2:
            return self._parse_mixed(raw, value, separators)

        separator = separators[0]
        groups = value.split(separator)
        if len(groups) > 2:
            return self._parse_grouped(raw, groups, separator)

        integer, fraction = groups
        if len(fraction) == 3 and integer != "0" and len(integer) <= 3:
            number_format = NumberFormat.US if separator == "," else NumberFormat.EUROPEAN
            return _to_decimal(raw, integer + fraction), number_format
        number_format = NumberFormat.EUROPEAN if separator == "," else NumberFormat.STANDARD
        return _to_decimal(raw, f"{integer}.{fraction}"), number_format

    @staticmethod
    def _parse_mixed(
        raw: str, value: str, separators: list[str]
    ) -> tuple[Decimal, NumberFormat]:
        decimal_mark = separators[-1]
        if separators.count(decimal_mark) != 1:
            raise ParseAmbiguous(raw, "decimal separator appears more than once")
        thousands = "," if decimal_mark == "." else "."
        integer, fraction = value.rsplit(decimal_mark, 1)
        groups = integer.split(thousands)
        if _is_western_grouping(groups):
            number_format = NumberFormat.US if decimal_mark == "." else NumberFormat.EUROPEAN
        elif decimal_mark == "." and _is_indian_grouping(groups):
            number_format = NumberFormat.INDIAN
        else:
            raise ParseAmbiguous(raw, "inconsistent thousands grouping")
        return _to_decimal(raw, "".join(groups) + "." + fraction), number_format

    @staticmethod
    def _parse_grouped(
        raw: str, groups: list[str], separator: str
    ) -> tuple[Decimal, NumberFormat]:
        if _is_western_grouping(groups):
            number_format = NumberFormat.US if separator == "," else NumberFormat.EUROPEAN
        elif separator == "," and _is_indian_grouping(groups):
            number_format = NumberFormat.INDIAN
        else:
            raise ParseAmbiguous(raw, "inconsistent thousands grouping")
        return _to_decimal(raw, "".join(groups)), number_format


_DEFAULT_PARSER = NumberParser()


def parse_amount(raw: str) -> Decimal:
    """Module-level shortcut for :meth:`NumberParser.parse`."""

    return _DEFAULT_PARSER.parse(raw)


def detect_number_format(raw: str) -> NumberFormat:
    """Module-level shortcut for :meth:`NumberParser.detect_format`."""

    return _DEFAULT_PARSER.detect_format(raw)


__all__ = ["NumberFormat", "NumberParser", "parse_amount", "detect_number_format"]
