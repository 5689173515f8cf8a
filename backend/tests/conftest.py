"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from itertools import count

import pytest

from taxengine.models import (
    FxRate,
    LedgerData,
    TradeSide,
    TransactionType,
    VenueTransaction,
)
from taxengine.services.currency import CurrencyConverter
from taxengine.services.ledger_loader import load_ledger
from taxengine.services.tax_engine import TaxEngine


def ts(year: int, month: int = 1, day: int = 1, hour: int = 0) -> datetime:
    """UTC timestamp shorthand."""
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def make_txn():
    """Factory for venue transactions with sensible defaults.

    buy/sell shorthand: make_txn("buy", ...) / make_txn("sell", ...).
    """
    ids = count(1)

    def factory(
        kind: str,
        asset: str = "BTC",
        quantity: float = 1.0,
        price=None,
        venue: str = "Binance",
        quote: str = "USD",
        at: datetime = None,
        gross_value: float = None,
        fee_amount: float = 0.0,
        net_value: float = None,
        txn_id: str = None,
    ) -> VenueTransaction:
        if kind in ("buy", "sell"):
            txn_type = TransactionType.TRADE
            side = TradeSide(kind)
        else:
            txn_type = TransactionType(kind)
            side = None

        if gross_value is None:
            gross_value = (price or 0.0) * quantity
        if net_value is None:
            net_value = gross_value + fee_amount if kind == "buy" else gross_value - fee_amount

        return VenueTransaction(
            id=txn_id or f"txn-{next(ids):03d}",
            venue=venue,
            account_id=f"{venue.lower()}-main",
            type=txn_type,
            side=side,
            base_asset=asset,
            quote_asset=quote,
            quantity=quantity,
            price=price,
            gross_value=gross_value,
            fee_amount=fee_amount,
            fee_asset=quote if fee_amount else None,
            net_value=net_value,
            venue_timestamp=at or ts(2024),
        )

    return factory


@pytest.fixture
def usd_chf_rates():
    """USD->CHF at 0.9 and USDT->CHF at 0.88."""
    return [
        FxRate("USD", "CHF", 0.9, ts(2024, 1, 1), "test"),
        FxRate("USDT", "CHF", 0.88, ts(2024, 1, 1), "test"),
    ]


@pytest.fixture
def converter(usd_chf_rates):
    return CurrencyConverter(usd_chf_rates)


@pytest.fixture
def usd_converter():
    """Converter without rates; used with base currency USD."""
    return CurrencyConverter([])


@pytest.fixture
def sample_ledger() -> LedgerData:
    """Ledger shipped in backend/data/sample_ledger.json."""
    return load_ledger()


@pytest.fixture
def sample_engine(sample_ledger) -> TaxEngine:
    return TaxEngine(sample_ledger)
