"""Report assembler - packages engine output into a TaxComputationResult.

No computation happens here beyond filtering and packaging. All figures
come from the lot matcher.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from ..models import (
    BalanceSnapshot,
    FxRate,
    MarketPrice,
    HoldingsSnapshotRecord,
    ReportFilters,
    ReportMetadata,
    TaxComputationResult,
)
from .lot_matcher import LotMatchResult
from .transaction_filter import normalize_venues, venue_allowed, within_window


def build_holdings(
    balances: Sequence[BalanceSnapshot],
    venues: Optional[Iterable[str]] = None,
) -> List[HoldingsSnapshotRecord]:
    """Holdings from balance snapshots, limited to the venue allow-list."""
    allowed = normalize_venues(venues)
    return [
        HoldingsSnapshotRecord(
            venue=snap.venue,
            asset=snap.asset,
            quantity=snap.total,
            value_in_base=snap.value_in_base,
            captured_at=snap.captured_at,
        )
        for snap in balances
        if venue_allowed(snap.venue, allowed)
    ]


def assemble_report(
    matched: LotMatchResult,
    balances: Sequence[BalanceSnapshot],
    fx_rates: Sequence[FxRate],
    market_prices: Sequence[MarketPrice],
    transactions_evaluated: int,
    cost_basis: str,
    base_currency: str,
    fx_policy: str,
    shortfall_policy: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    venues: Optional[List[str]] = None,
    generated_at: Optional[datetime] = None,
) -> TaxComputationResult:
    """Assemble the engine's result document.

    FX rates and market prices are limited to those captured within
    [start_date, end_date]; a missing bound leaves that side open.

    Args:
        matched: Lots, realized gains and income from the lot matcher
        balances: Venue balance snapshots
        fx_rates: Full FX reference set
        market_prices: Full market price reference set
        transactions_evaluated: Count of transactions passed to the matcher
        cost_basis: Cost-basis method name
        base_currency: Reporting currency
        fx_policy: Active FX policy name
        shortfall_policy: Active shortfall policy name
        start_date: Window start (optional)
        end_date: Window end (optional)
        venues: Venue allow-list (optional)
        generated_at: Generation time, defaults to now (UTC)

    Returns:
        Complete TaxComputationResult
    """
    metadata = ReportMetadata(
        generated_at=generated_at or datetime.now(timezone.utc),
        cost_basis=cost_basis,
        base_currency=base_currency,
        filters=ReportFilters(
            start_date=start_date,
            end_date=end_date,
            venues=list(venues) if venues else None,
        ),
        fx_policy=fx_policy,
        shortfall_policy=shortfall_policy,
    )

    return TaxComputationResult(
        metadata=metadata,
        lots=matched.lots,
        realized_gains=matched.realized_gains,
        income=matched.income,
        holdings=build_holdings(balances, venues),
        fx_rates=[
            rate for rate in fx_rates
            if within_window(rate.captured_at, start_date, end_date)
        ],
        market_prices=[
            price for price in market_prices
            if within_window(price.captured_at, start_date, end_date)
        ],
        transactions_evaluated=transactions_evaluated,
    )
