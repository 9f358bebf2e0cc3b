"""Static lookup tables from currency symbols, words and codes to ISO codes.

Bare symbols shared by several currencies resolve to a single default:
``$`` is USD, ``¥`` is JPY and ``kr`` is SEK regardless of regional context.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True, slots=True)
class CurrencyInfo:
    """Catalogue entry for a fiat currency."""

    code: str
    name: str
    symbol: str
    region: str
    popular: bool = False


@dataclass(frozen=True, slots=True)
class CryptoAsset:
    """Catalogue entry for a cryptocurrency with its decimal precision."""

    code: str
    name: str
    decimals: int
    symbol: str | None = None


_FIAT: tuple[CurrencyInfo, ...] = (
    CurrencyInfo("USD", "US Dollar", "$", "americas", True),
    CurrencyInfo("EUR", "Euro", "€", "europe", True),
    CurrencyInfo("GBP", "British Pound", "£", "europe", True),
    CurrencyInfo("JPY", "Japanese Yen", "¥", "asia", True),
    CurrencyInfo("CAD", "Canadian Dollar", "C$", "americas", True),
    CurrencyInfo("AUD", "Australian Dollar", "A$", "asia", True),
    CurrencyInfo("CHF", "Swiss Franc", "CHF", "europe", True),
    CurrencyInfo("CNY", "Chinese Yuan", "¥", "asia", True),
    CurrencyInfo("INR", "Indian Rupee", "₹", "asia"),
    CurrencyInfo("BRL", "Brazilian Real", "R$", "americas"),
    CurrencyInfo("KRW", "South Korean Won", "₩", "asia"),
    CurrencyInfo("MXN", "Mexican Peso", "$", "americas"),
    CurrencyInfo("ARS", "Argentine Peso", "$", "americas"),
    CurrencyInfo("CLP", "Chilean Peso", "$", "americas"),
    CurrencyInfo("COP", "Colombian Peso", "$", "americas"),
    CurrencyInfo("PEN", "Peruvian Sol", "S/", "americas"),
    CurrencyInfo("UYU", "Uruguayan Peso", "$U", "americas"),
    CurrencyInfo("CRC", "Costa Rican Colon", "₡", "americas"),
    CurrencyInfo("PYG", "Paraguayan Guarani", "₲", "americas"),
    CurrencyInfo("SGD", "Singapore Dollar", "S$", "asia"),
    CurrencyInfo("HKD", "Hong Kong Dollar", "HK$", "asia"),
    CurrencyInfo("NZD", "New Zealand Dollar", "NZ$", "asia"),
    CurrencyInfo("THB", "Thai Baht", "฿", "asia"),
    CurrencyInfo("PHP", "Philippine Peso", "₱", "asia"),
    CurrencyInfo("MYR", "Malaysian Ringgit", "RM", "asia"),
    CurrencyInfo("IDR", "Indonesian Rupiah", "Rp", "asia"),
    CurrencyInfo("VND", "Vietnamese Dong", "₫", "asia"),
    CurrencyInfo("PKR", "Pakistani Rupee", "₨", "asia"),
    CurrencyInfo("KZT", "Kazakhstani Tenge", "₸", "asia"),
    CurrencyInfo("NOK", "Norwegian Krone", "kr", "europe"),
    CurrencyInfo("SEK", "Swedish Krona", "kr", "europe"),
    CurrencyInfo("DKK", "Danish Krone", "kr", "europe"),
    CurrencyInfo("PLN", "Polish Zloty", "zł", "europe"),
    CurrencyInfo("CZK", "Czech Koruna", "Kč", "europe"),
    CurrencyInfo("HUF", "Hungarian Forint", "Ft", "europe"),
    CurrencyInfo("RUB", "Russian Ruble", "₽", "europe"),
    CurrencyInfo("TRY", "Turkish Lira", "₺", "europe"),
    CurrencyInfo("RON", "Romanian Leu", "lei", "europe"),
    CurrencyInfo("BGN", "Bulgarian Lev", "лв", "europe"),
    CurrencyInfo("UAH", "Ukrainian Hryvnia", "₴", "europe"),
    CurrencyInfo("GEL", "Georgian Lari", "₾", "europe"),
    CurrencyInfo("ZAR", "South African Rand", "R", "africa"),
    CurrencyInfo("EGP", "Egyptian Pound", "£", "africa"),
    CurrencyInfo("NGN", "Nigerian Naira", "₦", "africa"),
    CurrencyInfo("KES", "Kenyan Shilling", "KSh", "africa"),
    CurrencyInfo("GHS", "Ghanaian Cedi", "₵", "africa"),
    CurrencyInfo("ILS", "Israeli Shekel", "₪", "africa"),
    CurrencyInfo("AED", "UAE Dirham", "د.إ", "africa"),
    CurrencyInfo("SAR", "Saudi Riyal", "﷼", "africa"),
    CurrencyInfo("QAR", "Qatari Riyal", "﷼", "africa"),
    CurrencyInfo("KWD", "Kuwaiti Dinar", "د.ك", "africa"),
    CurrencyInfo("BHD", "Bahraini Dinar", ".د.ب", "africa"),
    CurrencyInfo("OMR", "Omani Rial", "﷼", "africa"),
    CurrencyInfo("JOD", "Jordanian Dinar", "د.ا", "africa"),
)

_CRYPTO: tuple[CryptoAsset, ...] = (
    CryptoAsset("BTC", "Bitcoin", 8, "₿"),
    CryptoAsset("ETH", "Ethereum", 18, "Ξ"),
    CryptoAsset("LTC", "Litecoin", 8, "Ł"),
    CryptoAsset("ADA", "Cardano", 6),
    CryptoAsset("DOT", "Polkadot", 10),
)

# Single-character symbols first; multi-character symbols are matched longest-first.
_FIAT_SYMBOLS: dict[str, str] = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
    "₹": "INR",
    "₽": "RUB",
    "₩": "KRW",
    "₦": "NGN",
    "₪": "ILS",
    "₨": "PKR",
    "₫": "VND",
    "₱": "PHP",
    "₡": "CRC",
    "₲": "PYG",
    "₴": "UAH",
    "₵": "GHS",
    "₸": "KZT",
    "₺": "TRY",
    "₾": "GEL",
    "฿": "THB",
    "US$": "USD",
    "C$": "CAD",
    "CA$": "CAD",
    "A$": "AUD",
    "AU$": "AUD",
    "NZ$": "NZD",
    "S$": "SGD",
    "HK$": "HKD",
    "R$": "BRL",
    "kr": "SEK",
    "zł": "PLN",
    "Kč": "CZK",
    "Ft": "HUF",
    "RM": "MYR",
    "Rp": "IDR",
    "KSh": "KES",
}

_WORDS: dict[str, str] = {
    "dollar": "USD",
    "dollars": "USD",
    "us dollar": "USD",
    "us dollars": "USD",
    "bucks": "USD",
    "canadian dollar": "CAD",
    "canadian dollars": "CAD",
    "australian dollar": "AUD",
    "australian dollars": "AUD",
    "new zealand dollar": "NZD",
    "new zealand dollars": "NZD",
    "singapore dollar": "SGD",
    "singapore dollars": "SGD",
    "hong kong dollar": "HKD",
    "hong kong dollars": "HKD",
    "euro": "EUR",
    "euros": "EUR",
    "pound": "GBP",
    "pounds": "GBP",
    "pound sterling": "GBP",
    "pounds sterling": "GBP",
    "british pound": "GBP",
    "british pounds": "GBP",
    "yen": "JPY",
    "yuan": "CNY",
    "renminbi": "CNY",
    "rupee": "INR",
    "rupees": "INR",
    "franc": "CHF",
    "francs": "CHF",
    "swiss franc": "CHF",
    "swiss francs": "CHF",
    "peso": "MXN",
    "pesos": "MXN",
    "ruble": "RUB",
    "rubles": "RUB",
    "rouble": "RUB",
    "roubles": "RUB",
    "won": "KRW",
    "krona": "SEK",
    "kronor": "SEK",
    "krone": "NOK",
    "kroner": "NOK",
    "real": "BRL",
    "reais": "BRL",
    "lira": "TRY",
    "rand": "ZAR",
    "baht": "THB",
    "ringgit": "MYR",
    "rupiah": "IDR",
    "dong": "VND",
    "zloty": "PLN",
    "forint": "HUF",
    "shekel": "ILS",
    "shekels": "ILS",
    "dirham": "AED",
    "dirhams": "AED",
    "riyal": "SAR",
    "riyals": "SAR",
    "naira": "NGN",
    "rs": "INR",
    "rs.": "INR",
}

_CRYPTO_WORDS: dict[str, str] = {
    "bitcoin": "BTC",
    "bitcoins": "BTC",
    "ethereum": "ETH",
    "ether": "ETH",
    "litecoin": "LTC",
    "litecoins": "LTC",
    "cardano": "ADA",
    "polkadot": "DOT",
}


class SymbolTable:
    """Read-only currency catalogue with symbol, word and code resolution."""

    def __init__(
        self,
        currencies: tuple[CurrencyInfo, ...] = _FIAT,
        crypto: tuple[CryptoAsset, ...] = _CRYPTO,
    ) -> None:
        self._currencies: Mapping[str, CurrencyInfo] = MappingProxyType(
            {info.code: info for info in currencies}
        )
        self._crypto: Mapping[str, CryptoAsset] = MappingProxyType(
            {asset.code: asset for asset in crypto}
        )
        self._crypto_symbols: Mapping[str, str] = MappingProxyType(
            {asset.symbol: asset.code for asset in crypto if asset.symbol}
        )

    @property
    def fiat_symbols(self) -> Mapping[str, str]:
        return MappingProxyType(_FIAT_SYMBOLS)

    @property
    def crypto_symbols(self) -> Mapping[str, str]:
        return self._crypto_symbols

    @property
    def words(self) -> Mapping[str, str]:
        return MappingProxyType(_WORDS)

    @property
    def crypto_words(self) -> Mapping[str, str]:
        return MappingProxyType(_CRYPTO_WORDS)

    def symbol_or_word_to_currency(self, token: str) -> str | None:
        """Resolve a symbol, currency word or ISO code to a currency code."""

        if not isinstance(token, str):
            return None
        cleaned = token.strip()
        if not cleaned:
            return None
        if cleaned in _FIAT_SYMBOLS:
            return _FIAT_SYMBOLS[cleaned]
        if cleaned in self._crypto_symbols:
            return self._crypto_symbols[cleaned]
        lowered = " ".join(cleaned.lower().split())
        if lowered in _WORDS:
            return _WORDS[lowered]
        if lowered in _CRYPTO_WORDS:
            return _CRYPTO_WORDS[lowered]
        upper = cleaned.upper()
        if self.is_valid_currency(upper):
            return upper
        return None

    def is_valid_currency(self, code: str) -> bool:
        if not isinstance(code, str):
            return False
        return code in self._currencies or code in self._crypto

    def crypto_codes(self) -> list[str]:
        return list(self._crypto)

    def is_crypto(self, code: str) -> bool:
        return code in self._crypto

    def crypto_asset(self, code: str) -> CryptoAsset | None:
        return self._crypto.get(code)

    def crypto_decimals(self, code: str) -> int | None:
        asset = self._crypto.get(code)
        return asset.decimals if asset else None

    def currency(self, code: str) -> CurrencyInfo | None:
        return self._currencies.get(code.upper()) if isinstance(code, str) else None

    def codes(self) -> list[str]:
        return sorted([*self._currencies, *self._crypto])

    def popular(self) -> list[CurrencyInfo]:
        return [info for info in self._currencies.values() if info.popular]

    def by_region(self, region: str) -> list[CurrencyInfo]:
        return [info for info in self._currencies.values() if info.region == region.lower()]

    def search(self, query: str) -> list[CurrencyInfo]:
        """Return currencies whose code or name contains ``query`` (case-insensitive)."""

        term = query.strip().lower()
        if not term:
            return list(self._currencies.values())
        return [
            info
            for info in self._currencies.values()
            if term in info.code.lower() or term in info.name.lower()
        ]


SYMBOL_TABLE = SymbolTable()


__all__ = ["CurrencyInfo", "CryptoAsset", "SymbolTable", "SYMBOL_TABLE"]
