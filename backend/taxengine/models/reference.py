"""Reference data: FX rates, market prices and venue balance snapshots.

These are externally supplied observations. The engine only filters and
reads them; none of them is derived from the transaction ledger.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .transaction import VenueTransaction, as_utc


@dataclass(frozen=True)
class FxRate:
    """One exchange-rate observation: 1 base_currency = rate quote_currency."""
    base_currency: str
    quote_currency: str
    rate: float
    captured_at: datetime
    source: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "captured_at", as_utc(self.captured_at))

    def to_dict(self):
        return {
            "base_currency": self.base_currency,
            "quote_currency": self.quote_currency,
            "rate": self.rate,
            "captured_at": self.captured_at.isoformat(),
            "source": self.source,
        }


@dataclass(frozen=True)
class MarketPrice:
    """One market-price observation for an asset."""
    asset: str
    quote_currency: str
    price: float
    captured_at: datetime
    venue: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "captured_at", as_utc(self.captured_at))

    def to_dict(self):
        return {
            "asset": self.asset,
            "quote_currency": self.quote_currency,
            "price": self.price,
            "captured_at": self.captured_at.isoformat(),
            "venue": self.venue,
        }


@dataclass(frozen=True)
class BalanceSnapshot:
    """Point-in-time balance statement reported by a venue."""
    venue: str
    account_id: str
    asset: str
    total: float
    value_in_base: float
    captured_at: datetime

    def __post_init__(self):
        object.__setattr__(self, "captured_at", as_utc(self.captured_at))


@dataclass
class LedgerData:
    """Everything the engine reads: transactions plus reference data."""
    transactions: List[VenueTransaction] = field(default_factory=list)
    balances: List[BalanceSnapshot] = field(default_factory=list)
    fx_rates: List[FxRate] = field(default_factory=list)
    market_prices: List[MarketPrice] = field(default_factory=list)
    generated_at: Optional[datetime] = None
