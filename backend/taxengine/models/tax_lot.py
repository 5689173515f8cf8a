"""Tax lot model - cost basis tracking for tax reporting.

Tax lots track the cost basis of acquired assets per venue.
- BUY trades, inbound transfers and yield events create tax lots
- SELL trades consume lots in the configured cost-basis order
- Fully consumed lots are kept (remaining_quantity = 0) for audit

Design constraints:
- 0 <= remaining_quantity <= quantity at all times
- Per-unit cost is fixed at acquisition (acquisition_value / quantity)
- Lots are only mutated through consume()
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List

# Floating point tolerance for quantity comparisons
QUANTITY_TOLERANCE = 1e-8


class IncomeType(str, Enum):
    """Income type enumeration."""
    STAKING_REWARD = "staking_reward"
    INTEREST = "interest"
    AIRDROP = "airdrop"


@dataclass
class TaxLot:
    """Quantity of one asset acquired at one time on one venue.

    Example workflow (FIFO):
        BUY 1: 0.5 BTC @ $40,000 -> Lot A (0.5 BTC remaining)
        BUY 2: 0.3 BTC @ $41,000 -> Lot B (0.3 BTC remaining)
        SELL 1: 0.6 BTC @ $42,000 ->
            Lot A: 0.5 BTC consumed (0 remaining)
            Lot B: 0.1 BTC consumed (0.2 remaining)
    """
    id: str
    venue: str
    asset: str
    quantity: float
    remaining_quantity: float
    acquisition_price: float
    acquisition_value: float
    acquisition_currency: str
    acquisition_timestamp: datetime
    source_transaction_id: str

    def __repr__(self):
        return (
            f"<TaxLot(id={self.id}, "
            f"asset={self.asset}, "
            f"venue={self.venue}, "
            f"remaining={self.remaining_quantity:.8f}, "
            f"cost={self.acquisition_price:.2f})>"
        )

    @property
    def is_open(self) -> bool:
        return self.remaining_quantity > 0

    @property
    def cost_per_unit(self) -> float:
        """Base-currency cost of one unit, from the original lot figures."""
        if self.quantity <= 0:
            return 0.0
        return self.acquisition_value / self.quantity

    def consume(self, quantity: float) -> float:
        """Consume quantity from this lot.

        Args:
            quantity: Amount wanted

        Returns:
            Amount actually consumed (may be less if lot doesn't have enough)
        """
        consumed = min(quantity, self.remaining_quantity)
        if self.remaining_quantity - consumed <= QUANTITY_TOLERANCE:
            consumed = self.remaining_quantity
            self.remaining_quantity = 0.0
        else:
            self.remaining_quantity -= consumed
        return consumed

    def to_dict(self):
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "venue": self.venue,
            "asset": self.asset,
            "quantity": self.quantity,
            "remaining_quantity": self.remaining_quantity,
            "acquisition_price": self.acquisition_price,
            "acquisition_value": self.acquisition_value,
            "acquisition_currency": self.acquisition_currency,
            "acquisition_timestamp": self.acquisition_timestamp.isoformat(),
            "source_transaction_id": self.source_transaction_id,
        }


@dataclass
class LotConsumption:
    """Portion of one lot consumed by one disposal."""
    lot_id: str
    quantity: float
    cost_basis_portion: float

    def to_dict(self):
        return {
            "lot_id": self.lot_id,
            "quantity": self.quantity,
            "cost_basis_portion": self.cost_basis_portion,
        }


@dataclass
class RealizedGainRecord:
    """Realized gain/loss for one disposal transaction.

    quantity is the disposal's full quantity. unmatched_quantity is the part
    no open lot covered; it carries no cost basis.
    """
    id: str
    transaction_id: str
    venue: str
    asset: str
    quantity: float
    proceeds: float
    cost_basis: float
    gain_loss: float
    currency: str
    timestamp: datetime
    lot_breakdown: List[LotConsumption] = field(default_factory=list)
    unmatched_quantity: float = 0.0

    def __repr__(self):
        return (
            f"<RealizedGainRecord(id={self.id}, "
            f"asset={self.asset}, "
            f"quantity={self.quantity:.8f}, "
            f"gain_loss={self.gain_loss:+.2f})>"
        )

    @property
    def matched_quantity(self) -> float:
        return sum(entry.quantity for entry in self.lot_breakdown)

    def to_dict(self):
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "venue": self.venue,
            "asset": self.asset,
            "quantity": self.quantity,
            "proceeds": self.proceeds,
            "cost_basis": self.cost_basis,
            "gain_loss": self.gain_loss,
            "currency": self.currency,
            "timestamp": self.timestamp.isoformat(),
            "lot_breakdown": [entry.to_dict() for entry in self.lot_breakdown],
            "unmatched_quantity": self.unmatched_quantity,
        }


@dataclass
class IncomeRecord:
    """Income recognized at receipt (staking reward, interest, airdrop)."""
    id: str
    transaction_id: str
    venue: str
    asset: str
    amount: float
    value_in_base: float
    currency: str
    timestamp: datetime
    type: IncomeType

    def to_dict(self):
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "venue": self.venue,
            "asset": self.asset,
            "amount": self.amount,
            "value_in_base": self.value_in_base,
            "currency": self.currency,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
        }
