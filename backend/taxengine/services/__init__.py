# Business Logic Services

from .errors import (
    TaxEngineError,
    InputValidationError,
    MissingRateError,
    InsufficientLotsError,
)
from .currency import CurrencyConverter, FxPolicy
from .transaction_filter import filter_transactions, parse_timestamp
from .lot_matcher import (
    LotMatcher,
    LotMatchResult,
    CostBasisMethod,
    ShortfallPolicy,
    order_lots,
)
from .report_assembler import assemble_report, build_holdings
from .tax_engine import (
    TaxEngine,
    TaxEngineOptions,
    validate_options,
    validate_transactions,
    summarize,
)
from .tax_export import build_tax_csv, build_tax_pdf, pdf_sections
from .tax_scheduler import TaxScheduler
from .ledger_loader import load_ledger, dump_ledger, parse_ledger
from .config import (
    ConfigService,
    config_service,
    ConfigValidationException,
    ConfigValidationError,
)

__all__ = [
    # Errors
    "TaxEngineError",
    "InputValidationError",
    "MissingRateError",
    "InsufficientLotsError",
    # Currency
    "CurrencyConverter",
    "FxPolicy",
    # Filtering
    "filter_transactions",
    "parse_timestamp",
    # Lot matching
    "LotMatcher",
    "LotMatchResult",
    "CostBasisMethod",
    "ShortfallPolicy",
    "order_lots",
    # Reporting
    "assemble_report",
    "build_holdings",
    "TaxEngine",
    "TaxEngineOptions",
    "validate_options",
    "validate_transactions",
    "summarize",
    # Export
    "build_tax_csv",
    "build_tax_pdf",
    "pdf_sections",
    # Scheduler
    "TaxScheduler",
    # Ledger
    "load_ledger",
    "dump_ledger",
    "parse_ledger",
    # Config
    "ConfigService",
    "config_service",
    "ConfigValidationException",
    "ConfigValidationError",
]
