"""Venue transaction model - the engine's input ledger.

Transactions are immutable: the engine reads them and never writes back.
Each row is one economic event at one venue, timestamped by the venue.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    """Transaction type enumeration."""
    TRADE = "trade"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    STAKING_REWARD = "staking_reward"
    INTEREST = "interest"
    FEE = "fee"
    AIRDROP = "airdrop"


class TradeSide(str, Enum):
    """Trade side enumeration."""
    BUY = "buy"
    SELL = "sell"


# Yield events: recognized as income and opened as a lot
INCOME_TYPES = frozenset({
    TransactionType.STAKING_REWARD,
    TransactionType.INTEREST,
    TransactionType.AIRDROP,
})


def as_utc(value: datetime) -> datetime:
    """Timezone-aware UTC copy of value. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class VenueTransaction:
    """One economic event at one venue.

    Value fields are quoted in quote_asset. net_value is what the holder
    actually pays (buy) or receives (sell, income), already fee-adjusted.

    Example:
        BUY 250 SOL @ 20.03 USD on Kraken
            gross_value=5000.00, fee_amount=7.50, net_value=5007.50
    """
    id: str
    venue: str
    account_id: str
    type: TransactionType
    base_asset: str
    quote_asset: str
    quantity: float
    venue_timestamp: datetime
    side: Optional[TradeSide] = None
    price: Optional[float] = None
    gross_value: float = 0.0
    fee_amount: float = 0.0
    fee_asset: Optional[str] = None
    net_value: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "venue_timestamp", as_utc(self.venue_timestamp))

    @property
    def is_buy(self) -> bool:
        return self.type == TransactionType.TRADE and self.side == TradeSide.BUY

    @property
    def is_sell(self) -> bool:
        return self.type == TransactionType.TRADE and self.side == TradeSide.SELL

    @property
    def is_income(self) -> bool:
        return self.type in INCOME_TYPES

    def to_dict(self):
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "venue": self.venue,
            "account_id": self.account_id,
            "type": self.type.value,
            "side": self.side.value if self.side else None,
            "base_asset": self.base_asset,
            "quote_asset": self.quote_asset,
            "quantity": self.quantity,
            "price": self.price,
            "gross_value": self.gross_value,
            "fee_amount": self.fee_amount,
            "fee_asset": self.fee_asset,
            "net_value": self.net_value,
            "venue_timestamp": self.venue_timestamp.isoformat(),
        }
