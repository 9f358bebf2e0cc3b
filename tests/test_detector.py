from __future__ import annotations

from decimal import Decimal

import pytest

from fx_radar.detection import MentionDetector, MentionFormat
from fx_radar.errors import InvalidInput


@pytest.fixture()
def detector() -> MentionDetector:
    return MentionDetector()


@pytest.mark.parametrize(
    ("text", "mention_format", "currency", "amount"),
    [
        ("$100", MentionFormat.SYMBOL_PREFIX, "USD", Decimal("100")),
        ("100€", MentionFormat.SYMBOL_SUFFIX, "EUR", Decimal("100")),
        ("USD 100", MentionFormat.CODE_PREFIX, "USD", Decimal("100")),
        ("100 USD", MentionFormat.CODE_SUFFIX, "USD", Decimal("100")),
        ("BTC 0.5", MentionFormat.CRYPTO, "BTC", Decimal("0.5")),
        ("Rs. 500", MentionFormat.WORD_PREFIX, "INR", Decimal("500")),
        ("50 euros", MentionFormat.WORD_SUFFIX, "EUR", Decimal("50")),
    ],
)
def test_single_mention_spans_whole_text(
    detector: MentionDetector,
    text: str,
    mention_format: MentionFormat,
    currency: str,
    amount: Decimal,
) -> None:
    [mention] = detector.detect(text)
    assert mention.format is mention_format
    assert mention.currency_code == currency
    assert mention.amount == amount
    assert mention.range == (0, len(text))


def test_context_inferred_mention(detector: MentionDetector) -> None:
    text = "Paid 1,500.50 in euros"
    [mention] = detector.detect(text)
    assert mention.format is MentionFormat.CONTEXT_INFERRED
    assert mention.currency_code == "EUR"
    assert mention.range == (5, 13)
    assert text[mention.start : mention.end] == "1,500.50"


@pytest.mark.parametrize("text", ["", "   ", "!!! ... ???", "no money here"])
def test_texts_without_amounts_yield_nothing(detector: MentionDetector, text: str) -> None:
    assert detector.detect(text) == []
    assert detector.best(text) is None


def test_overlapping_candidates_keep_the_strongest(detector: MentionDetector) -> None:
    text = "$100 USD"
    assert len(detector.candidates(text)) >= 2

    [mention] = detector.detect(text)
    assert mention.format is MentionFormat.SYMBOL_PREFIX
    assert mention.range == (0, 4)


def test_mentions_are_ordered_and_best_is_annotated(detector: MentionDetector) -> None:
    text = "Lunch was $12 and dinner was €30"
    mentions = detector.detect(text)
    assert [m.currency_code for m in mentions] == ["USD", "EUR"]
    assert mentions[0].start < mentions[1].start

    best = detector.best(text)
    assert best is not None
    assert best.mention == mentions[0]
    assert best.multiple_mentions is True
    assert best.alternatives == (mentions[1],)
    assert best.to_dict()["alternatives"][0]["currency_code"] == "EUR"


def test_threshold_filters_weak_context_guesses() -> None:
    text = "invoice 1,000.00"
    assert MentionDetector().detect(text) == []

    [mention] = MentionDetector(confidence_threshold=0.2, base_currency="INR").detect(text)
    assert mention.currency_code == "INR"
    assert mention.confidence == pytest.approx(0.9 * 0.6 * 0.7)


def test_invalid_threshold_is_rejected() -> None:
    with pytest.raises(InvalidInput):
        MentionDetector(confidence_threshold=1.5)


def test_detection_stats(detector: MentionDetector) -> None:
    stats = detector.detection_stats("$12 and €30")
    assert stats == {
        "total": 2,
        "by_format": {"symbolPrefix": 2},
        "average_confidence": 0.9,
        "currencies": ["EUR", "USD"],
    }
    assert detector.detection_stats("nothing")["total"] == 0


def test_everyday_words_after_numbers_are_not_currencies(detector: MentionDetector) -> None:
    assert detector.detect("I have 5 real friends") == []
