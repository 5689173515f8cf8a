"""Currency conversion against supplied FX observations."""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence, Set, Tuple

from ..models import FxRate
from .errors import MissingRateError

logger = logging.getLogger(__name__)


class FxPolicy(str, Enum):
    """What to do when no FX observation matches a currency pair."""
    FALLBACK = "fallback"  # Use 1:1 and log a warning
    STRICT = "strict"      # Raise MissingRateError


class CurrencyConverter:
    """Converts venue-currency amounts into the report's base currency.

    Rate lookup takes the first observation with a matching currency pair,
    not the one closest to the event time. Callers needing point-in-time
    accuracy should pass a pre-filtered rate list.
    """

    def __init__(
        self,
        fx_rates: Sequence[FxRate],
        policy: FxPolicy = FxPolicy.FALLBACK,
    ):
        """Initialize converter.

        Args:
            fx_rates: FX observations, searched in order
            policy: Behavior for missing rates
        """
        self.fx_rates = list(fx_rates)
        self.policy = FxPolicy(policy)
        self._warned_pairs: Set[Tuple[str, str]] = set()

    def find_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        """First matching rate for from_currency -> to_currency, or None."""
        source = from_currency.upper()
        target = to_currency.upper()
        for fx in self.fx_rates:
            if fx.base_currency.upper() == source and fx.quote_currency.upper() == target:
                return fx.rate
        return None

    def convert(
        self,
        value: float,
        from_currency: str,
        to_currency: str,
        at_time: Optional[datetime] = None,
    ) -> float:
        """Convert value from one currency into another.

        Args:
            value: Amount in from_currency
            from_currency: Source currency code (e.g. "USD")
            to_currency: Target currency code (e.g. "CHF")
            at_time: Event time, reported in warnings and errors

        Returns:
            Converted amount (value itself when currencies match)

        Raises:
            MissingRateError: Under FxPolicy.STRICT when no rate matches
        """
        if from_currency.upper() == to_currency.upper():
            return value

        rate = self.find_rate(from_currency, to_currency)
        if rate is None:
            if self.policy == FxPolicy.STRICT:
                raise MissingRateError(from_currency, to_currency, at_time)

            pair = (from_currency.upper(), to_currency.upper())
            if pair not in self._warned_pairs:
                self._warned_pairs.add(pair)
                logger.warning(
                    f"No FX rate for {pair[0]}->{pair[1]}, falling back to 1:1"
                )
            rate = 1.0

        return value * rate
