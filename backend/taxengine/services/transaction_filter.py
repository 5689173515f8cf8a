"""Transaction filtering and chronological ordering."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Union

from ..models import VenueTransaction
from ..models.transaction import as_utc
from .errors import InputValidationError

logger = logging.getLogger(__name__)


def parse_timestamp(value: Union[str, datetime], field: str) -> datetime:
    """Parse an ISO-8601 timestamp into a timezone-aware UTC datetime.

    Naive values are taken as UTC. A trailing "Z" is accepted.

    Raises:
        InputValidationError: If the value is not a valid timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InputValidationError(
                kind="invalid_timestamp",
                field=field,
                message=f"'{value}' is not an ISO-8601 timestamp",
            )
    else:
        raise InputValidationError(
            kind="invalid_timestamp",
            field=field,
            message=f"Expected ISO-8601 string, got {type(value).__name__}",
        )

    return as_utc(parsed)


def normalize_venues(venues: Optional[Iterable[str]]) -> Optional[List[str]]:
    """Lower-case venue allow-list, or None when the list is empty."""
    if not venues:
        return None
    return [venue.lower() for venue in venues]


def venue_allowed(venue: str, allowed: Optional[Sequence[str]]) -> bool:
    """Case-insensitive allow-list check. An absent list allows everything."""
    if not allowed:
        return True
    return venue.lower() in allowed


def within_window(
    ts: datetime,
    start_date: Optional[datetime],
    end_date: Optional[datetime],
) -> bool:
    """Inclusive window check; a missing bound leaves that side open."""
    if start_date is not None and ts < start_date:
        return False
    if end_date is not None and ts > end_date:
        return False
    return True


def filter_transactions(
    transactions: Sequence[VenueTransaction],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    venues: Optional[Iterable[str]] = None,
) -> List[VenueTransaction]:
    """Select transactions by venue and date window, oldest first.

    Ties on venue_timestamp keep ledger order (sorted() is stable), which
    the lot matcher relies on for deterministic FIFO/LIFO results.

    Args:
        transactions: Full ledger in ledger order
        start_date: Inclusive lower bound (optional)
        end_date: Inclusive upper bound (optional)
        venues: Venue allow-list, case-insensitive (optional)

    Returns:
        Filtered transactions sorted by venue_timestamp
    """
    allowed = normalize_venues(venues)

    selected = [
        txn for txn in transactions
        if venue_allowed(txn.venue, allowed)
        and within_window(txn.venue_timestamp, start_date, end_date)
    ]

    logger.debug(
        f"Filtered {len(selected)}/{len(transactions)} transactions "
        f"(venues={allowed}, start={start_date}, end={end_date})"
    )

    return sorted(selected, key=lambda txn: txn.venue_timestamp)
