"""Unit tests for currency conversion and FX policies."""

import logging
from datetime import datetime, timezone

import pytest

from taxengine.models import FxRate
from taxengine.services.currency import CurrencyConverter, FxPolicy
from taxengine.services.errors import MissingRateError


def rate(base, quote, value, year=2024):
    return FxRate(base, quote, value, datetime(year, 1, 1, tzinfo=timezone.utc), "test")


class TestCurrencyConverter:
    """Tests for CurrencyConverter.convert()."""

    def test_same_currency_is_identity(self):
        converter = CurrencyConverter([], FxPolicy.STRICT)
        assert converter.convert(105.44, "CHF", "CHF") == 105.44

    def test_same_currency_ignores_case(self):
        converter = CurrencyConverter([], FxPolicy.STRICT)
        assert converter.convert(10.0, "chf", "CHF") == 10.0

    def test_applies_matching_rate(self, converter):
        assert converter.convert(100.0, "USD", "CHF") == pytest.approx(90.0)
        assert converter.convert(100.0, "USDT", "CHF") == pytest.approx(88.0)

    def test_first_matching_rate_wins(self):
        converter = CurrencyConverter([
            rate("USD", "CHF", 0.88, 2024),
            rate("USD", "CHF", 0.90, 2025),
        ])
        at_time = datetime(2025, 6, 1, tzinfo=timezone.utc)

        assert converter.convert(100.0, "USD", "CHF", at_time) == pytest.approx(88.0)

    def test_reverse_pair_not_used(self):
        converter = CurrencyConverter([rate("CHF", "USD", 1.1)])
        assert converter.find_rate("USD", "CHF") is None

    def test_fallback_is_one_to_one(self):
        converter = CurrencyConverter([], FxPolicy.FALLBACK)
        assert converter.convert(250.0, "EUR", "CHF") == 250.0

    def test_fallback_warns_once_per_pair(self, caplog):
        converter = CurrencyConverter([])

        with caplog.at_level(logging.WARNING):
            converter.convert(1.0, "EUR", "CHF")
            converter.convert(2.0, "EUR", "CHF")
            converter.convert(3.0, "GBP", "CHF")

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2
        assert "EUR->CHF" in warnings[0].getMessage()
        assert "GBP->CHF" in warnings[1].getMessage()

    def test_strict_raises_missing_rate(self):
        converter = CurrencyConverter([rate("USD", "CHF", 0.9)], FxPolicy.STRICT)
        at_time = datetime(2024, 5, 1, tzinfo=timezone.utc)

        with pytest.raises(MissingRateError) as exc_info:
            converter.convert(10.0, "EUR", "CHF", at_time)

        assert exc_info.value.from_currency == "EUR"
        assert exc_info.value.to_currency == "CHF"
        assert exc_info.value.at_time == at_time

    def test_policy_accepts_value(self):
        assert CurrencyConverter([], "strict").policy == FxPolicy.STRICT
