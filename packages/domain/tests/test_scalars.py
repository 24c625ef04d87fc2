"""
Unit tests for scalar normalizers.

Tests cover:
- Calendar date ↔ ledger time conversion
- Decimal canonicalization (padding, negative zero, exponents)
- Number → string conversion rules (floats and bools rejected)
- Optional unwrapping and comment cleaning
"""

from datetime import date
from decimal import Decimal

import pytest

from captable_ledger.codec.scalars import (
    clean_comments,
    date_to_ledger_time,
    decode_date,
    decode_numeric,
    decode_optional_date,
    encode_date,
    ledger_time_to_date,
    normalize_numeric_string,
    number_to_string,
    optional_date,
    optional_numeric,
    optional_string,
    put_comments,
    put_optional,
    unwrap_optional,
)
from captable_ledger.errors import ErrorCode, ValidationError


# =============================================================================
# Dates
# =============================================================================

class TestDates:
    """Tests for date conversion."""

    def test_calendar_date_gets_midnight(self):
        assert date_to_ledger_time("2024-01-15") == "2024-01-15T00:00:00.000Z"

    def test_ledger_time_passes_through(self):
        assert date_to_ledger_time("2024-01-15T12:30:00.000Z") == "2024-01-15T12:30:00.000Z"

    def test_date_object_accepted(self):
        assert date_to_ledger_time(date(2023, 7, 4)) == "2023-07-04T00:00:00.000Z"

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            date_to_ledger_time(20240115, "issuance.date")
        assert exc_info.value.code == ErrorCode.INVALID_TYPE
        assert exc_info.value.field_path == "issuance.date"

    def test_bad_pattern_rejected(self):
        with pytest.raises(ValidationError, match="YYYY-MM-DD") as exc_info:
            date_to_ledger_time("01/15/2024")
        assert exc_info.value.code == ErrorCode.INVALID_FORMAT

    def test_ledger_time_to_date(self):
        assert ledger_time_to_date("2024-01-15T00:00:00.000Z") == "2024-01-15"
        assert ledger_time_to_date("2024-01-15") == "2024-01-15"

    def test_encode_date_checks_calendar(self):
        """Impossible dates fail even though the pattern matches."""
        with pytest.raises(ValidationError) as exc_info:
            encode_date("2024-02-30", "x.date")
        assert exc_info.value.code == ErrorCode.INVALID_FORMAT

    def test_encode_date_leap_day(self):
        assert encode_date("2024-02-29", "x.date") == "2024-02-29T00:00:00.000Z"

    def test_decode_date_unwraps_some(self):
        wrapped = {"tag": "Some", "value": "2024-01-15T00:00:00.000Z"}
        assert decode_date(wrapped, "x.date") == "2024-01-15"

    def test_decode_date_missing(self):
        with pytest.raises(ValidationError) as exc_info:
            decode_date(None, "x.date")
        assert exc_info.value.code == ErrorCode.REQUIRED_FIELD_MISSING

    def test_decode_optional_date(self):
        assert decode_optional_date(None) is None
        assert decode_optional_date({"tag": "None"}) is None
        assert decode_optional_date("2025-12-31T00:00:00.000Z") == "2025-12-31"

    def test_optional_date(self):
        assert optional_date(None, "d") is None
        assert optional_date("", "d") is None
        assert optional_date("2024-03-01", "d") == "2024-03-01T00:00:00.000Z"


# =============================================================================
# Decimals
# =============================================================================

class TestNormalizeNumericString:
    """Tests for canonical decimal strings."""

    @pytest.mark.parametrize("raw, expected", [
        ("5000000.0000000000", "5000000"),
        ("0.00", "0"),
        ("-0.0", "0"),
        ("1.2500", "1.25"),
        ("100", "100"),
        ("-3.10", "-3.1"),
    ])
    def test_canonical_forms(self, raw, expected):
        assert normalize_numeric_string(raw) == expected

    def test_exponent_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_numeric_string("1e5")
        assert exc_info.value.code == ErrorCode.INVALID_FORMAT

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError, match="Invalid decimal string"):
            normalize_numeric_string("12abc")

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_numeric_string(12)
        assert exc_info.value.code == ErrorCode.INVALID_TYPE


class TestNumberToString:
    """Tests for number → decimal string conversion."""

    def test_int(self):
        assert number_to_string(42) == "42"

    def test_decimal(self):
        assert number_to_string(Decimal("1.500")) == "1.5"

    def test_decimal_exponent_is_expanded(self):
        assert number_to_string(Decimal("1E+3")) == "1000"

    def test_string_is_stripped(self):
        assert number_to_string("  7.00 ") == "7"

    @pytest.mark.parametrize("value", [True, None, 1.5, [1]])
    def test_invalid_types(self, value):
        with pytest.raises(ValidationError) as exc_info:
            number_to_string(value, "q")
        assert exc_info.value.code == ErrorCode.INVALID_TYPE

    def test_non_finite_decimal(self):
        with pytest.raises(ValidationError) as exc_info:
            number_to_string(Decimal("NaN"))
        assert exc_info.value.code == ErrorCode.INVALID_FORMAT

    def test_optional_numeric(self):
        assert optional_numeric(None, "q") is None
        assert optional_numeric("", "q") is None
        assert optional_numeric("10.0", "q") == "10"

    def test_decode_numeric(self):
        assert decode_numeric(25, "q") == "25"
        assert decode_numeric("25.0000000000", "q") == "25"


# =============================================================================
# Optionals and Comments
# =============================================================================

class TestOptionals:
    """Tests for optional handling."""

    def test_unwrap_some(self):
        assert unwrap_optional({"tag": "Some", "value": "x"}) == "x"

    def test_unwrap_none(self):
        assert unwrap_optional({"tag": "None"}) is None

    def test_unwrap_leaves_other_values(self):
        tagged = {"tag": "OcfPeriodDays", "value": {"length_": "1"}}
        assert unwrap_optional(tagged) is tagged
        assert unwrap_optional("plain") == "plain"

    def test_optional_string(self):
        assert optional_string("") is None
        assert optional_string(None) is None
        assert optional_string("dba") == "dba"

    def test_put_optional_skips_empty(self):
        target = {}
        put_optional(target, "a", None)
        put_optional(target, "b", "")
        put_optional(target, "c", [])
        put_optional(target, "d", False)
        assert target == {"d": False}


def test_clean_comments_drops_blank_entries():
    """Whitespace-only and non-string comments never reach the ledger."""
    assert clean_comments(["keep", "", "   ", None, 5, "also"]) == ["keep", "also"]
    assert clean_comments(None) == []


def test_put_comments_omits_empty_list():
    target = {}
    put_comments(target, ["  "])
    assert "comments" not in target

    put_comments(target, ["note"])
    assert target["comments"] == ["note"]
