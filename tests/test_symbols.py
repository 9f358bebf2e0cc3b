import unittest

from fx_radar.detection.symbols import SYMBOL_TABLE, SymbolTable


class SymbolResolutionTests(unittest.TestCase):
    def test_symbols_words_and_codes_resolve(self) -> None:
        cases = {
            "$": "USD",
            "€": "EUR",
            "US$": "USD",
            "HK$": "HKD",
            "kr": "SEK",
            "Rs.": "INR",
            "Pounds  Sterling": "GBP",
            "bitcoin": "BTC",
            "₿": "BTC",
            "eur": "EUR",
        }
        for token, expected in cases.items():
            with self.subTest(token=token):
                self.assertEqual(SYMBOL_TABLE.symbol_or_word_to_currency(token), expected)

    def test_unknown_tokens_return_none(self) -> None:
        for token in ("XYZ", "", "   ", None):
            with self.subTest(token=token):
                self.assertIsNone(SYMBOL_TABLE.symbol_or_word_to_currency(token))  # type: ignore[arg-type]

    def test_is_valid_currency_is_case_sensitive(self) -> None:
        self.assertTrue(SYMBOL_TABLE.is_valid_currency("USD"))
        self.assertTrue(SYMBOL_TABLE.is_valid_currency("BTC"))
        self.assertFalse(SYMBOL_TABLE.is_valid_currency("usd"))
        self.assertFalse(SYMBOL_TABLE.is_valid_currency("ABC"))


class CatalogueTests(unittest.TestCase):
    def test_crypto_metadata(self) -> None:
        self.assertEqual(SYMBOL_TABLE.crypto_decimals("ETH"), 18)
        self.assertEqual(SYMBOL_TABLE.crypto_decimals("BTC"), 8)
        self.assertIsNone(SYMBOL_TABLE.crypto_decimals("USD"))
        self.assertTrue(SYMBOL_TABLE.is_crypto("ADA"))
        self.assertIn("DOT", SYMBOL_TABLE.crypto_codes())

    def test_popular_region_and_search(self) -> None:
        popular_codes = {info.code for info in SYMBOL_TABLE.popular()}
        self.assertTrue({"USD", "EUR", "GBP", "JPY"} <= popular_codes)
        self.assertNotIn("INR", popular_codes)

        europe = {info.code for info in SYMBOL_TABLE.by_region("Europe")}
        self.assertIn("EUR", europe)
        self.assertNotIn("USD", europe)

        dollars = {info.code for info in SYMBOL_TABLE.search("dollar")}
        self.assertTrue({"USD", "CAD", "AUD"} <= dollars)
        fiat_codes = [code for code in SYMBOL_TABLE.codes() if not SYMBOL_TABLE.is_crypto(code)]
        self.assertEqual(len(SYMBOL_TABLE.search("  ")), len(fiat_codes))

    def test_codes_are_sorted_and_include_crypto(self) -> None:
        codes = SYMBOL_TABLE.codes()
        self.assertEqual(codes, sorted(codes))
        self.assertIn("BTC", codes)
        self.assertIn("USD", codes)

    def test_currency_lookup(self) -> None:
        info = SYMBOL_TABLE.currency("inr")
        assert info is not None
        self.assertEqual(info.name, "Indian Rupee")
        self.assertIsNone(SymbolTable().currency("XYZ"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
