"""
Unit tests for the transaction sequencer.

Tests cover:
- Sort key composition
- Within-day weights (issuance before transfer before cancellation)
- Security grouping and creation timestamp tie-breaks
- Date validation and determinism
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from captable_ledger.errors import ErrorCode, ValidationError
from captable_ledger.sequencer import (
    MAX_CREATED_AT,
    created_at_key,
    sort_transactions,
    transaction_sort_key,
    transaction_weight,
)


def _tx(tx_id, object_type, date="2024-06-01", security_id="sec-1", **extra):
    return {"id": tx_id, "object_type": object_type, "date": date, "security_id": security_id, **extra}


# =============================================================================
# Sort Key
# =============================================================================

class TestSortKey:
    """Tests for the composite sort key."""

    def test_key_layout(self):
        key = transaction_sort_key(_tx("tx-1", "TX_STOCK_ISSUANCE", date="2025-03-15"))
        assert key == "2025-03-15|010|sec-1|9999-12-31T23:59:59.999Z|tx-1"

    def test_ledger_time_date(self):
        key = transaction_sort_key(_tx("tx-1", "TX_STOCK_TRANSFER", date="2025-03-15T00:00:00.000Z"))
        assert key.startswith("2025-03-15|020|")

    def test_no_security_group(self):
        adjustment = {"id": "adj-1", "object_type": "TX_STOCK_CLASS_SPLIT", "date": "2024-01-01"}
        assert transaction_sort_key(adjustment).split("|")[2] == "_no_security_"

    def test_unknown_object_type_weight(self):
        assert transaction_weight({"object_type": "TX_SOMETHING_NEW"}) == 50

    def test_missing_date(self):
        with pytest.raises(ValidationError, match="tx-9") as exc_info:
            transaction_sort_key({"id": "tx-9", "object_type": "TX_STOCK_ISSUANCE"})
        assert exc_info.value.code == ErrorCode.REQUIRED_FIELD_MISSING

    def test_invalid_date(self):
        with pytest.raises(ValidationError) as exc_info:
            transaction_sort_key(_tx("tx-9", "TX_STOCK_ISSUANCE", date="2024-13-01"))
        assert exc_info.value.code == ErrorCode.INVALID_FORMAT


class TestCreatedAtKey:
    """Tests for creation timestamp normalization."""

    def test_epoch_millis(self):
        assert created_at_key(1700000000000) == "2023-11-14T22:13:20.000Z"

    def test_iso_string_kept(self):
        assert created_at_key("2024-06-01T10:00:00.123Z") == "2024-06-01T10:00:00.123Z"

    @pytest.mark.parametrize("value, expected", [
        ("2024-06-01T10:00:00Z", "2024-06-01T10:00:00.000Z"),
        ("2024-06-01T10:00:00.5Z", "2024-06-01T10:00:00.500Z"),
        ("2024-06-01T10:00:00.123456Z", "2024-06-01T10:00:00.123Z"),
        ("2024-06-01T12:00:00.250+02:00", "2024-06-01T10:00:00.250Z"),
        ("2024-06-01T05:30:00-04:30", "2024-06-01T10:00:00.000Z"),
        ("2024-06-01T10:00:00", "2024-06-01T10:00:00.000Z"),
    ])
    def test_iso_strings_normalized_to_utc_millis(self, value, expected):
        assert created_at_key(value) == expected

    def test_datetime_value(self):
        moment = datetime(2024, 6, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert created_at_key(moment) == "2024-06-01T10:00:00.000Z"

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, {"ts": 1}])
    def test_unusable_values_sort_last(self, value):
        assert created_at_key(value) == MAX_CREATED_AT


# =============================================================================
# Ordering
# =============================================================================

class TestSortTransactions:
    """Tests for replay ordering."""

    def test_lifecycle_order_within_a_day(self):
        cancellation = _tx("c", "TX_STOCK_CANCELLATION")
        transfer = _tx("b", "TX_STOCK_TRANSFER")
        issuance = _tx("a", "TX_STOCK_ISSUANCE")
        ordered = sort_transactions([cancellation, transfer, issuance])
        assert [tx["id"] for tx in ordered] == ["a", "b", "c"]

    def test_date_dominates_weight(self):
        late_issuance = _tx("late", "TX_STOCK_ISSUANCE", date="2024-06-02")
        early_cancel = _tx("early", "TX_STOCK_CANCELLATION", date="2024-06-01")
        assert [tx["id"] for tx in sort_transactions([late_issuance, early_cancel])] == ["early", "late"]

    def test_adjustments_come_first(self):
        issuance = _tx("iss", "TX_STOCK_ISSUANCE")
        adjustment = {"id": "adj", "object_type": "TX_STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT",
                      "date": "2024-06-01"}
        assert [tx["id"] for tx in sort_transactions([issuance, adjustment])] == ["adj", "iss"]

    def test_created_at_breaks_ties(self):
        first = _tx("z-first", "TX_STOCK_TRANSFER", createdAt="2024-06-01T09:00:00.000Z")
        second = _tx("a-second", "TX_STOCK_TRANSFER", createdAt="2024-06-01T10:00:00.000Z")
        unknown = _tx("0-unknown", "TX_STOCK_TRANSFER")
        ordered = sort_transactions([unknown, second, first])
        assert [tx["id"] for tx in ordered] == ["z-first", "a-second", "0-unknown"]

    def test_created_at_mixed_precision(self):
        whole_second = _tx("b", "TX_STOCK_TRANSFER", createdAt="2024-06-01T10:00:00Z")
        half_second = _tx("a", "TX_STOCK_TRANSFER", createdAt="2024-06-01T10:00:00.500Z")
        ordered = sort_transactions([half_second, whole_second])
        assert [tx["id"] for tx in ordered] == ["b", "a"]

    def test_created_at_offsets_compare_as_utc(self):
        # 11:30+02:00 is 09:30Z, earlier than 10:00Z
        later = _tx("a", "TX_STOCK_TRANSFER", createdAt="2024-06-01T10:00:00.000Z")
        earlier = _tx("b", "TX_STOCK_TRANSFER", createdAt="2024-06-01T11:30:00+02:00")
        ordered = sort_transactions([later, earlier])
        assert [tx["id"] for tx in ordered] == ["b", "a"]

    def test_id_is_final_tie_break(self):
        ordered = sort_transactions([_tx("tx-2", "TX_STOCK_TRANSFER"), _tx("tx-1", "TX_STOCK_TRANSFER")])
        assert [tx["id"] for tx in ordered] == ["tx-1", "tx-2"]

    def test_deterministic_and_non_mutating(self):
        transactions = [
            _tx(f"tx-{i}", object_type, date=f"2024-06-0{1 + i % 3}", security_id=f"sec-{i % 2}")
            for i, object_type in enumerate([
                "TX_STOCK_ISSUANCE", "TX_STOCK_TRANSFER", "TX_VESTING_START", "TX_STOCK_CANCELLATION",
                "TX_WARRANT_EXERCISE", "TX_STAKEHOLDER_STATUS_CHANGE_EVENT",
            ])
        ]
        original = list(transactions)
        expected = sort_transactions(transactions)

        shuffled = list(transactions)
        random.Random(7).shuffle(shuffled)
        assert sort_transactions(shuffled) == expected
        assert transactions == original
