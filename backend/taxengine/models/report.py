"""Tax computation result - the engine's output document."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .reference import FxRate, MarketPrice
from .tax_lot import TaxLot, RealizedGainRecord, IncomeRecord


@dataclass
class HoldingsSnapshotRecord:
    """Venue balance at capture time, for reconciliation display only."""
    venue: str
    asset: str
    quantity: float
    value_in_base: float
    captured_at: datetime

    def to_dict(self):
        return {
            "venue": self.venue,
            "asset": self.asset,
            "quantity": self.quantity,
            "value_in_base": self.value_in_base,
            "captured_at": self.captured_at.isoformat(),
        }


@dataclass
class ReportFilters:
    """Filters applied to the run, echoed back as given."""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    venues: Optional[List[str]] = None

    def to_dict(self):
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "venues": list(self.venues) if self.venues else None,
        }


@dataclass
class ReportMetadata:
    """Run metadata. generated_at is the only time-dependent field."""
    generated_at: datetime
    cost_basis: str
    base_currency: str
    filters: ReportFilters
    fx_policy: str
    shortfall_policy: str

    def to_dict(self):
        return {
            "generated_at": self.generated_at.isoformat(),
            "cost_basis": self.cost_basis,
            "base_currency": self.base_currency,
            "filters": self.filters.to_dict(),
            "fx_policy": self.fx_policy,
            "shortfall_policy": self.shortfall_policy,
        }


@dataclass
class TaxComputationResult:
    """Lots, realized gains, income and holdings for one engine run."""
    metadata: ReportMetadata
    lots: List[TaxLot] = field(default_factory=list)
    realized_gains: List[RealizedGainRecord] = field(default_factory=list)
    income: List[IncomeRecord] = field(default_factory=list)
    holdings: List[HoldingsSnapshotRecord] = field(default_factory=list)
    fx_rates: List[FxRate] = field(default_factory=list)
    market_prices: List[MarketPrice] = field(default_factory=list)
    transactions_evaluated: int = 0

    @property
    def realized_total(self) -> float:
        return sum(gain.gain_loss for gain in self.realized_gains)

    @property
    def income_total(self) -> float:
        return sum(item.value_in_base for item in self.income)

    @property
    def holdings_value(self) -> float:
        return sum(item.value_in_base for item in self.holdings)

    @property
    def open_lots(self) -> List[TaxLot]:
        return [lot for lot in self.lots if lot.is_open]

    def to_dict(self):
        """Convert to dictionary for API responses."""
        return {
            "metadata": self.metadata.to_dict(),
            "lots": [lot.to_dict() for lot in self.lots],
            "realized_gains": [gain.to_dict() for gain in self.realized_gains],
            "income": [item.to_dict() for item in self.income],
            "holdings": [item.to_dict() for item in self.holdings],
            "fx_rates": [rate.to_dict() for rate in self.fx_rates],
            "market_prices": [price.to_dict() for price in self.market_prices],
            "transactions_evaluated": self.transactions_evaluated,
        }
