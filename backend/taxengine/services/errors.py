"""Tax engine exception hierarchy.

All failures surfaced by the engine derive from TaxEngineError so callers
can catch one type at the boundary.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class TaxEngineError(Exception):
    """Base class for all tax engine errors."""
    pass


class InputValidationError(TaxEngineError):
    """Invalid input rejected before any lot processing begins.

    Attributes:
        kind: Machine-readable failure kind (e.g. "invalid_timestamp")
        field: Offending field path (e.g. "start_date", "transactions[3].quantity")
    """

    def __init__(self, kind: str, field: str, message: str):
        self.kind = kind
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Structured failure for API responses."""
        return {
            "kind": self.kind,
            "field": self.field,
            "message": self.message,
        }


class MissingRateError(TaxEngineError):
    """No FX observation exists for a conversion (strict FX policy only)."""

    def __init__(
        self,
        from_currency: str,
        to_currency: str,
        at_time: Optional[datetime] = None,
    ):
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.at_time = at_time
        when = f" at {at_time.isoformat()}" if at_time else ""
        super().__init__(f"No FX rate for {from_currency}->{to_currency}{when}")


class InsufficientLotsError(TaxEngineError):
    """Disposal exceeds open lot quantity (strict shortfall policy only)."""

    def __init__(
        self,
        transaction_id: str,
        asset: str,
        venue: str,
        unmatched_quantity: float,
    ):
        self.transaction_id = transaction_id
        self.asset = asset
        self.venue = venue
        self.unmatched_quantity = unmatched_quantity
        super().__init__(
            f"Insufficient tax lots for disposal {transaction_id}: "
            f"{unmatched_quantity:.8f} {asset} unmatched on {venue}"
        )
