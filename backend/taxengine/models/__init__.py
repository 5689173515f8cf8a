# Domain Models

from .transaction import VenueTransaction, TransactionType, TradeSide, INCOME_TYPES
from .reference import FxRate, MarketPrice, BalanceSnapshot, LedgerData
from .tax_lot import (
    TaxLot,
    LotConsumption,
    RealizedGainRecord,
    IncomeRecord,
    IncomeType,
    QUANTITY_TOLERANCE,
)
from .report import (
    HoldingsSnapshotRecord,
    ReportFilters,
    ReportMetadata,
    TaxComputationResult,
)

__all__ = [
    "VenueTransaction",
    "TransactionType",
    "TradeSide",
    "INCOME_TYPES",
    "FxRate",
    "MarketPrice",
    "BalanceSnapshot",
    "LedgerData",
    "TaxLot",
    "LotConsumption",
    "RealizedGainRecord",
    "IncomeRecord",
    "IncomeType",
    "QUANTITY_TOLERANCE",
    "HoldingsSnapshotRecord",
    "ReportFilters",
    "ReportMetadata",
    "TaxComputationResult",
]
