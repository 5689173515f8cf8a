"""Tax engine entry point.

Validates the invocation at the boundary, then runs:
    ledger -> filter -> lot matcher (with currency converter) -> report assembler

Design constraints:
- Validation happens before any lot is built (never partially compute)
- Each run rebuilds lots from the immutable ledger; runs are independent
- No data matched is a valid, empty report - not an error
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..models import LedgerData, TaxComputationResult, VenueTransaction, TransactionType
from .currency import CurrencyConverter, FxPolicy
from .errors import InputValidationError
from .lot_matcher import CostBasisMethod, LotMatcher, ShortfallPolicy
from .report_assembler import assemble_report
from .transaction_filter import filter_transactions, parse_timestamp

logger = logging.getLogger(__name__)

# Trade and inbound-transfer quantities must be strictly positive
_POSITIVE_QUANTITY_TYPES = frozenset({TransactionType.TRADE, TransactionType.TRANSFER_IN})


@dataclass
class TaxEngineOptions:
    """Engine invocation parameters, as supplied by the caller.

    Dates may be ISO-8601 strings or datetimes. jurisdiction is an opaque
    label used only by report headers.
    """
    cost_basis: str = "FIFO"
    base_currency: str = "CHF"
    start_date: Optional[Any] = None
    end_date: Optional[Any] = None
    venues: Optional[List[str]] = None
    jurisdiction: Optional[str] = None


@dataclass
class ValidatedOptions:
    """Options after boundary validation."""
    cost_basis: CostBasisMethod
    base_currency: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    venues: Optional[List[str]]


def validate_options(options: TaxEngineOptions) -> ValidatedOptions:
    """Validate invocation options.

    Raises:
        InputValidationError: On unknown cost-basis method, empty base
            currency, unparsable dates or an inverted date window
    """
    method = str(options.cost_basis or "").upper()
    if method not in CostBasisMethod.__members__:
        raise InputValidationError(
            kind="invalid_cost_basis",
            field="cost_basis",
            message=f"'{options.cost_basis}' is not one of FIFO, LIFO, HIFO",
        )

    base_currency = (options.base_currency or "").strip()
    if not base_currency:
        raise InputValidationError(
            kind="invalid_currency",
            field="base_currency",
            message="Base currency is required",
        )

    start = parse_timestamp(options.start_date, "start_date") if options.start_date else None
    end = parse_timestamp(options.end_date, "end_date") if options.end_date else None
    if start and end and start > end:
        raise InputValidationError(
            kind="invalid_range",
            field="end_date",
            message=f"end_date {end.isoformat()} is before start_date {start.isoformat()}",
        )

    venues = [venue for venue in (options.venues or []) if venue and venue.strip()]

    return ValidatedOptions(
        cost_basis=CostBasisMethod[method],
        base_currency=base_currency,
        start_date=start,
        end_date=end,
        venues=venues or None,
    )


def validate_transactions(transactions: Sequence[VenueTransaction]) -> None:
    """Reject transactions the engine cannot process meaningfully.

    Raises:
        InputValidationError: Naming the first offending field
    """
    for index, txn in enumerate(transactions):
        prefix = f"transactions[{index}]"

        if txn.type == TransactionType.TRADE and txn.side is None:
            raise InputValidationError(
                kind="missing_side",
                field=f"{prefix}.side",
                message=f"Trade {txn.id} has no side",
            )

        if txn.quantity < 0:
            raise InputValidationError(
                kind="negative_quantity",
                field=f"{prefix}.quantity",
                message=f"Transaction {txn.id} has negative quantity {txn.quantity}",
            )

        if txn.type in _POSITIVE_QUANTITY_TYPES and txn.quantity == 0:
            raise InputValidationError(
                kind="zero_quantity",
                field=f"{prefix}.quantity",
                message=f"{txn.type.value} {txn.id} has zero quantity",
            )

        for name in ("price", "gross_value", "fee_amount", "net_value"):
            value = getattr(txn, name)
            if value is not None and value < 0:
                raise InputValidationError(
                    kind="negative_value",
                    field=f"{prefix}.{name}",
                    message=f"Transaction {txn.id} has negative {name} {value}",
                )


def summarize(result: TaxComputationResult) -> Dict[str, Any]:
    """Headline figures for one run."""
    return {
        "realized_gains": result.realized_total,
        "income": result.income_total,
        "base_currency": result.metadata.base_currency,
        "holdings_value": result.holdings_value,
        "transactions_evaluated": result.transactions_evaluated,
    }


class TaxEngine:
    """Runs tax computations over one ledger.

    The ledger is read-only; each run() owns its lots.
    """

    def __init__(
        self,
        ledger: LedgerData,
        fx_policy: FxPolicy = FxPolicy.FALLBACK,
        shortfall_policy: ShortfallPolicy = ShortfallPolicy.WARN,
    ):
        """Initialize tax engine.

        Args:
            ledger: Transactions and reference data
            fx_policy: Missing-rate behavior
            shortfall_policy: Insufficient-lot behavior
        """
        self.ledger = ledger
        self.fx_policy = FxPolicy(fx_policy)
        self.shortfall_policy = ShortfallPolicy(shortfall_policy)

    def run(self, options: TaxEngineOptions) -> TaxComputationResult:
        """Compute lots, realized gains and income for the options given.

        Raises:
            InputValidationError: Invalid options or transaction data
            MissingRateError: Strict FX policy and a rate is missing
            InsufficientLotsError: Strict shortfall policy and a sell is short
        """
        validated = validate_options(options)

        transactions = filter_transactions(
            self.ledger.transactions,
            start_date=validated.start_date,
            end_date=validated.end_date,
            venues=validated.venues,
        )
        validate_transactions(transactions)

        converter = CurrencyConverter(self.ledger.fx_rates, self.fx_policy)
        matcher = LotMatcher(
            converter,
            base_currency=validated.base_currency,
            cost_basis=validated.cost_basis,
            shortfall_policy=self.shortfall_policy,
        )
        matched = matcher.process(transactions)

        result = assemble_report(
            matched,
            balances=self.ledger.balances,
            fx_rates=self.ledger.fx_rates,
            market_prices=self.ledger.market_prices,
            transactions_evaluated=len(transactions),
            cost_basis=validated.cost_basis.value,
            base_currency=validated.base_currency,
            fx_policy=self.fx_policy.value,
            shortfall_policy=self.shortfall_policy.value,
            start_date=validated.start_date,
            end_date=validated.end_date,
            venues=validated.venues,
        )

        logger.info(
            f"Tax run complete: {result.transactions_evaluated} transactions, "
            f"realized={result.realized_total:+.2f} income={result.income_total:.2f} "
            f"{validated.base_currency} ({validated.cost_basis.value})"
        )

        return result
