"""Lot builder and disposal matcher.

Walks a chronologically ordered transaction list once and produces:
- Tax lots for acquisitions (buys, inbound transfers, yield events)
- Realized gain records for disposals (sells), matched against open lots
- Income records for yield events (staking rewards, interest, airdrops)

Design constraints:
- The lot list belongs to one process() call; nothing is shared between runs
- A disposal only consumes lots of the same asset on the same venue
- Per-unit cost comes from the original lot figures, never the remainder
- Lots are never deleted; consumed lots stay with remaining_quantity = 0
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Sequence

from ..models import (
    VenueTransaction,
    TransactionType,
    TaxLot,
    LotConsumption,
    RealizedGainRecord,
    IncomeRecord,
    IncomeType,
    QUANTITY_TOLERANCE,
)
from .currency import CurrencyConverter
from .errors import InsufficientLotsError

logger = logging.getLogger(__name__)


class CostBasisMethod(str, Enum):
    """Lot selection order for disposals."""
    FIFO = "FIFO"  # First In, First Out
    LIFO = "LIFO"  # Last In, First Out
    HIFO = "HIFO"  # Highest In, First Out


class ShortfallPolicy(str, Enum):
    """What to do when a disposal exceeds the open lot quantity.

    IGNORE and WARN produce identical figures: the unmatched remainder
    carries no cost basis. WARN additionally logs the shortfall.
    """
    IGNORE = "ignore"
    WARN = "warn"
    STRICT = "strict"


def _by_acquisition_time(lot: TaxLot):
    return lot.acquisition_timestamp


def _by_acquisition_price(lot: TaxLot):
    return lot.acquisition_price


# (sort key, descending)
LOT_ORDERING: Dict[CostBasisMethod, tuple] = {
    CostBasisMethod.FIFO: (_by_acquisition_time, False),
    CostBasisMethod.LIFO: (_by_acquisition_time, True),
    CostBasisMethod.HIFO: (_by_acquisition_price, True),
}


def order_lots(lots: Sequence[TaxLot], method: CostBasisMethod) -> List[TaxLot]:
    """Order candidate lots for consumption.

    Ties keep lot creation order (sorted() stays stable with reverse=True).
    """
    key, descending = LOT_ORDERING[CostBasisMethod(method)]
    return sorted(lots, key=key, reverse=descending)


@dataclass
class LotMatchResult:
    """Output of one matching pass."""
    lots: List[TaxLot] = field(default_factory=list)
    realized_gains: List[RealizedGainRecord] = field(default_factory=list)
    income: List[IncomeRecord] = field(default_factory=list)


class LotMatcher:
    """Builds tax lots and matches disposals under one cost-basis method."""

    def __init__(
        self,
        converter: CurrencyConverter,
        base_currency: str,
        cost_basis: CostBasisMethod = CostBasisMethod.FIFO,
        shortfall_policy: ShortfallPolicy = ShortfallPolicy.WARN,
    ):
        """Initialize lot matcher.

        Args:
            converter: Currency converter into base_currency
            base_currency: Reporting currency code
            cost_basis: Lot selection method for disposals
            shortfall_policy: Behavior when open lots cannot cover a disposal
        """
        self.converter = converter
        self.base_currency = base_currency
        self.cost_basis = CostBasisMethod(cost_basis)
        self.shortfall_policy = ShortfallPolicy(shortfall_policy)

        self._handlers: Dict[TransactionType, Callable] = {
            TransactionType.TRANSFER_IN: self.process_transfer_in,
            TransactionType.STAKING_REWARD: self.process_income,
            TransactionType.INTEREST: self.process_income,
            TransactionType.AIRDROP: self.process_income,
        }

    def process(self, transactions: Sequence[VenueTransaction]) -> LotMatchResult:
        """Process transactions in the given (chronological) order.

        Args:
            transactions: Filtered transactions, oldest first

        Returns:
            Lots, realized gains and income produced by this pass

        Raises:
            MissingRateError: Strict FX policy and a rate is missing
            InsufficientLotsError: Strict shortfall policy and a sell is short
        """
        result = LotMatchResult()

        for txn in transactions:
            if txn.is_buy:
                self.process_buy(txn, result)
            elif txn.is_sell:
                self.process_sell(txn, result)
            elif txn.type in self._handlers:
                self._handlers[txn.type](txn, result)
            else:
                # transfer_out and fee carry no lot or income effect
                logger.debug(f"Skipping {txn.type.value} transaction {txn.id}")

        logger.info(
            f"Lot matching ({self.cost_basis.value}): {len(transactions)} transactions -> "
            f"{len(result.lots)} lots, {len(result.realized_gains)} disposals, "
            f"{len(result.income)} income events"
        )

        return result

    def _to_base(self, value: float, txn: VenueTransaction) -> float:
        return self.converter.convert(
            value, txn.quote_asset, self.base_currency, txn.venue_timestamp
        )

    def _open_lot(
        self,
        txn: VenueTransaction,
        acquisition_price: float,
        acquisition_value: float,
        result: LotMatchResult,
    ) -> TaxLot:
        lot = TaxLot(
            id=f"{txn.id}-lot",
            venue=txn.venue,
            asset=txn.base_asset,
            quantity=txn.quantity,
            remaining_quantity=txn.quantity,
            acquisition_price=acquisition_price,
            acquisition_value=acquisition_value,
            acquisition_currency=self.base_currency,
            acquisition_timestamp=txn.venue_timestamp,
            source_transaction_id=txn.id,
        )
        result.lots.append(lot)

        logger.debug(
            f"Created tax lot {lot.id}: {lot.quantity:.8f} {lot.asset} on {lot.venue} "
            f"@ {lot.acquisition_price:.2f}/unit ({lot.acquisition_value:.2f} {self.base_currency})"
        )

        return lot

    def process_buy(self, txn: VenueTransaction, result: LotMatchResult) -> TaxLot:
        """BUY trade - open a lot valued at price x quantity.

        Without a unit price the lot falls back to gross_value / quantity.
        """
        # An explicit zero price is honoured: the lot has zero cost
        if txn.price is not None:
            unit_price = txn.price
        else:
            unit_price = txn.gross_value / txn.quantity if txn.quantity else 0.0

        acquisition_value = self._to_base(unit_price * txn.quantity, txn)
        return self._open_lot(txn, unit_price, acquisition_value, result)

    def process_transfer_in(self, txn: VenueTransaction, result: LotMatchResult) -> TaxLot:
        """Inbound transfer - open a lot valued at gross_value."""
        # A zero price on a transfer means "not quoted", unlike a zero-priced buy
        if txn.price:
            unit_price = txn.price
        else:
            unit_price = txn.gross_value / txn.quantity if txn.quantity else 0.0

        acquisition_value = self._to_base(txn.gross_value, txn)
        return self._open_lot(txn, unit_price, acquisition_value, result)

    def process_income(self, txn: VenueTransaction, result: LotMatchResult) -> IncomeRecord:
        """Yield event - record income and open a lot at the same value.

        The lot's cost equals the income recognized, so a later sale at the
        same value realizes no gain (no double taxation). Pure-currency income
        with zero quantity opens no lot.
        """
        value_in_base = self._to_base(txn.net_value, txn)

        record = IncomeRecord(
            id=f"{txn.id}-income",
            transaction_id=txn.id,
            venue=txn.venue,
            asset=txn.base_asset,
            amount=txn.quantity,
            value_in_base=value_in_base,
            currency=self.base_currency,
            timestamp=txn.venue_timestamp,
            type=IncomeType(txn.type.value),
        )
        result.income.append(record)

        if txn.quantity > 0:
            unit_price = txn.net_value / txn.quantity
            self._open_lot(txn, unit_price, value_in_base, result)

        return record

    def process_sell(self, txn: VenueTransaction, result: LotMatchResult) -> RealizedGainRecord:
        """SELL trade - consume open lots in cost-basis order.

        Returns:
            Realized gain record with per-lot breakdown

        Raises:
            InsufficientLotsError: Under ShortfallPolicy.STRICT
        """
        venue = txn.venue.lower()
        candidates = order_lots(
            [
                lot for lot in result.lots
                if lot.asset == txn.base_asset
                and lot.venue.lower() == venue
                and lot.is_open
            ],
            self.cost_basis,
        )

        remaining_to_sell = txn.quantity
        cost_basis_total = 0.0
        breakdown: List[LotConsumption] = []

        for lot in candidates:
            # Tolerance only absorbs float residue left by an earlier lot
            if remaining_to_sell <= 0 or (breakdown and remaining_to_sell <= QUANTITY_TOLERANCE):
                break

            consumed = lot.consume(remaining_to_sell)
            if consumed <= 0:
                continue

            cost_portion = lot.cost_per_unit * consumed
            cost_basis_total += cost_portion
            remaining_to_sell -= consumed
            breakdown.append(LotConsumption(
                lot_id=lot.id,
                quantity=consumed,
                cost_basis_portion=cost_portion,
            ))

        unmatched = max(remaining_to_sell, 0.0)
        if breakdown and unmatched <= QUANTITY_TOLERANCE:
            unmatched = 0.0
        if unmatched:
            self._handle_shortfall(txn, unmatched)

        proceeds = self._to_base(txn.net_value, txn)

        gain = RealizedGainRecord(
            id=f"{txn.id}-gain",
            transaction_id=txn.id,
            venue=txn.venue,
            asset=txn.base_asset,
            quantity=txn.quantity,
            proceeds=proceeds,
            cost_basis=cost_basis_total,
            gain_loss=proceeds - cost_basis_total,
            currency=self.base_currency,
            timestamp=txn.venue_timestamp,
            lot_breakdown=breakdown,
            unmatched_quantity=unmatched,
        )
        result.realized_gains.append(gain)

        logger.debug(
            f"Realized gain: {txn.quantity:.8f} {txn.base_asset} on {txn.venue} "
            f"gain/loss={gain.gain_loss:+.2f} {self.base_currency} "
            f"({len(breakdown)} lots)"
        )

        return gain

    def _handle_shortfall(self, txn: VenueTransaction, unmatched: float) -> None:
        if self.shortfall_policy == ShortfallPolicy.STRICT:
            raise InsufficientLotsError(txn.id, txn.base_asset, txn.venue, unmatched)

        if self.shortfall_policy == ShortfallPolicy.WARN:
            logger.warning(
                f"Insufficient tax lots for SELL {txn.id}: "
                f"{unmatched:.8f} {txn.base_asset} on {txn.venue} matched at zero cost"
            )
