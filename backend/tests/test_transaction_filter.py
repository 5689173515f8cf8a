"""Unit tests for transaction filtering and timestamp parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from taxengine.services.errors import InputValidationError
from taxengine.services.transaction_filter import (
    filter_transactions,
    parse_timestamp,
    venue_allowed,
    within_window,
)


def at(year, month=1, day=1, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


class TestParseTimestamp:
    """Tests for ISO-8601 parsing at the boundary."""

    def test_trailing_z_is_utc(self):
        assert parse_timestamp("2024-05-20T10:30:00Z", "start_date") == at(2024, 5, 20, 10).replace(minute=30)

    def test_naive_value_taken_as_utc(self):
        parsed = parse_timestamp("2024-01-01T00:00:00", "start_date")
        assert parsed.tzinfo is not None
        assert parsed == at(2024)

    def test_offset_converted_to_utc(self):
        parsed = parse_timestamp("2024-01-01T02:00:00+02:00", "start_date")
        assert parsed == at(2024)
        assert parsed.utcoffset() == timedelta(0)

    def test_date_only(self):
        assert parse_timestamp("2024-12-31", "end_date") == at(2024, 12, 31)

    def test_datetime_passthrough(self):
        naive = datetime(2024, 3, 1)
        assert parse_timestamp(naive, "start_date") == at(2024, 3, 1)

    def test_garbage_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            parse_timestamp("last tuesday", "start_date")

        assert exc_info.value.kind == "invalid_timestamp"
        assert exc_info.value.field == "start_date"

    def test_non_string_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            parse_timestamp(20240101, "end_date")

        assert exc_info.value.field == "end_date"


class TestWindowAndVenue:
    """Tests for the inclusive window and venue allow-list."""

    def test_bounds_are_inclusive(self):
        start, end = at(2024, 1, 1), at(2024, 12, 31)
        assert within_window(start, start, end)
        assert within_window(end, start, end)
        assert not within_window(start - timedelta(seconds=1), start, end)
        assert not within_window(end + timedelta(seconds=1), start, end)

    def test_open_bounds(self):
        assert within_window(at(1999), None, at(2024))
        assert within_window(at(2099), at(2024), None)
        assert within_window(at(2024), None, None)

    def test_venue_allowed_case_insensitive(self):
        assert venue_allowed("Kraken", ["kraken"])
        assert not venue_allowed("Binance", ["kraken"])

    def test_empty_allow_list_allows_everything(self):
        assert venue_allowed("Anything", None)
        assert venue_allowed("Anything", [])


class TestFilterTransactions:
    """Tests for filter_transactions()."""

    def test_sorted_by_venue_timestamp(self, make_txn):
        late = make_txn("buy", at=at(2024, 3, 1))
        early = make_txn("buy", at=at(2024, 1, 1))
        middle = make_txn("sell", at=at(2024, 2, 1))

        result = filter_transactions([late, early, middle])

        assert result == [early, middle, late]

    def test_equal_timestamps_keep_ledger_order(self, make_txn):
        same_time = at(2024, 6, 1)
        txns = [make_txn("buy", at=same_time, txn_id=f"t{i}") for i in range(5)]

        result = filter_transactions(list(reversed(txns)))

        assert [txn.id for txn in result] == ["t4", "t3", "t2", "t1", "t0"]

    def test_venue_filter_is_case_insensitive(self, make_txn):
        kraken = make_txn("buy", venue="Kraken")
        binance = make_txn("buy", venue="Binance")

        result = filter_transactions([kraken, binance], venues=["KRAKEN"])

        assert result == [kraken]

    def test_empty_venue_list_means_no_filter(self, make_txn):
        txns = [make_txn("buy", venue="Kraken"), make_txn("buy", venue="Binance")]
        assert len(filter_transactions(txns, venues=[])) == 2

    def test_date_window(self, make_txn):
        before = make_txn("buy", at=at(2023, 12, 31, 23))
        inside = make_txn("buy", at=at(2024, 6, 1))
        on_end = make_txn("buy", at=at(2024, 12, 31))
        after = make_txn("buy", at=at(2025, 1, 1))

        result = filter_transactions(
            [before, inside, on_end, after],
            start_date=at(2024, 1, 1),
            end_date=at(2024, 12, 31),
        )

        assert result == [inside, on_end]

    def test_input_not_mutated(self, make_txn):
        txns = [make_txn("buy", at=at(2024, 2, 1)), make_txn("buy", at=at(2024, 1, 1))]
        snapshot = list(txns)

        filter_transactions(txns)

        assert txns == snapshot

    def test_no_match_is_empty(self, make_txn):
        assert filter_transactions([make_txn("buy", venue="Kraken")], venues=["Coinbase"]) == []

    def test_naive_timestamps_compare_with_aware_bounds(self, make_txn):
        naive = make_txn("buy", at=datetime(2024, 6, 1), txn_id="naive")
        aware = make_txn("buy", at=at(2024, 3, 1), txn_id="aware")

        result = filter_transactions([naive, aware], start_date=at(2024, 1, 1), end_date=at(2024, 12, 31))

        assert [txn.id for txn in result] == ["aware", "naive"]
        assert naive.venue_timestamp == at(2024, 6, 1)
