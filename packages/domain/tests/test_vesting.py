"""
Unit tests for vesting terms conversion and the condition graph.

Tests cover:
- Relative periods (length, occurrences, day of month)
- Start, event, absolute and relative triggers
- Portions and condition ids
- Duplicate ids (encode vs. decode) and logged cycles
- VestingGraph roots, successors, dangling references, cycles
"""

import logging

import pytest

from captable_ledger.codec.vesting import (
    decode_vesting_period,
    decode_vesting_terms,
    decode_vesting_trigger,
    encode_vesting_period,
    encode_vesting_terms,
    encode_vesting_trigger,
)
from captable_ledger.errors import ErrorCode, ParseError, ValidationError
from captable_ledger.schemas import VestingGraph


# =============================================================================
# Periods
# =============================================================================

class TestVestingPeriod:
    """Tests for relative schedule periods."""

    def test_monthly(self):
        period = {"type": "MONTHS", "length": 1, "occurrences": 36, "day_of_month": "01"}
        assert encode_vesting_period(period, "p") == {
            "tag": "OcfVestingPeriodMonths",
            "value": {
                "length_": "1",
                "occurrences": "36",
                "day_of_month": "OcfVestingDay01",
                "cliff_installment": None,
            },
        }

    def test_integer_day_of_month(self):
        period = {"type": "MONTHS", "length": 1, "occurrences": 12, "day_of_month": 5}
        assert encode_vesting_period(period, "p")["value"]["day_of_month"] == "OcfVestingDay05"

    def test_daily_has_no_day_of_month(self):
        encoded = encode_vesting_period({"type": "days", "length": 30, "occurrences": 4}, "p")
        assert encoded["tag"] == "OcfVestingPeriodDays"
        assert "day_of_month" not in encoded["value"]

    @pytest.mark.parametrize("field, value", [("length", 0), ("occurrences", 0)])
    def test_out_of_range(self, field, value):
        period = {"type": "DAYS", "length": 30, "occurrences": 4, field: value}
        with pytest.raises(ValidationError) as exc_info:
            encode_vesting_period(period, "p")
        assert exc_info.value.code == ErrorCode.OUT_OF_RANGE
        assert exc_info.value.field_path == f"p.{field}"

    def test_monthly_requires_day_of_month(self):
        with pytest.raises(ValidationError, match="day_of_month") as exc_info:
            encode_vesting_period({"type": "MONTHS", "length": 1, "occurrences": 12}, "p")
        assert exc_info.value.code == ErrorCode.REQUIRED_FIELD_MISSING

    def test_unknown_day_strict_and_lenient(self):
        period = {"type": "MONTHS", "length": 1, "occurrences": 12, "day_of_month": "32"}
        with pytest.raises(ValidationError) as exc_info:
            encode_vesting_period(period, "p", strict=True)
        assert exc_info.value.code == ErrorCode.UNKNOWN_ENUM_VALUE

        lenient = encode_vesting_period(period, "p", strict=False)
        assert lenient["value"]["day_of_month"] == "OcfVestingStartDayOrLast"

    def test_cliff_installment(self):
        period = {"type": "MONTHS", "length": 1, "occurrences": 48, "day_of_month": "01", "cliff_installment": 12}
        encoded = encode_vesting_period(period, "p")
        assert encoded["value"]["cliff_installment"] == "12"
        assert decode_vesting_period(encoded, "p")["cliff_installment"] == 12

    def test_decode_missing_occurrences(self):
        with pytest.raises(ParseError, match="occurrences"):
            decode_vesting_period({"tag": "OcfVestingPeriodDays", "value": {"length_": "30"}}, "p")

    def test_decode_padded_numbers(self):
        decoded = decode_vesting_period(
            {"tag": "OcfVestingPeriodDays", "value": {"length_": "30.0", "occurrences": "4.0000000000"}}, "p")
        assert decoded == {"type": "DAYS", "length": 30, "occurrences": 4}


# =============================================================================
# Triggers
# =============================================================================

class TestVestingTrigger:
    """Tests for the four trigger variants."""

    def test_start_and_event(self):
        assert encode_vesting_trigger({"type": "VESTING_START_DATE"}, "t") == {
            "tag": "OcfVestingStartTrigger", "value": {},
        }
        assert encode_vesting_trigger({"type": "VESTING_EVENT"}, "t")["tag"] == "OcfVestingEventTrigger"

    def test_absolute(self):
        encoded = encode_vesting_trigger({"type": "VESTING_SCHEDULE_ABSOLUTE", "date": "2025-01-01"}, "t")
        assert encoded == {"tag": "OcfVestingScheduleAbsoluteTrigger", "value": "2025-01-01T00:00:00.000Z"}
        assert decode_vesting_trigger(encoded, "t") == {"type": "VESTING_SCHEDULE_ABSOLUTE", "date": "2025-01-01"}

    def test_absolute_requires_valid_date(self):
        with pytest.raises(ValidationError) as exc_info:
            encode_vesting_trigger({"type": "VESTING_SCHEDULE_ABSOLUTE", "date": "2025-02-30"}, "t")
        assert exc_info.value.field_path == "t.date"

    def test_relative_requires_anchor(self):
        trigger = {
            "type": "VESTING_SCHEDULE_RELATIVE",
            "period": {"type": "DAYS", "length": 30, "occurrences": 1},
        }
        with pytest.raises(ValidationError, match="relative_to_condition_id"):
            encode_vesting_trigger(trigger, "t")

    def test_decode_bare_tag(self):
        assert decode_vesting_trigger("OcfVestingEventTrigger", "t") == {"type": "VESTING_EVENT"}

    def test_decode_absolute_without_date(self):
        with pytest.raises(ParseError) as exc_info:
            decode_vesting_trigger({"tag": "OcfVestingScheduleAbsoluteTrigger", "value": None}, "t")
        assert exc_info.value.code == ErrorCode.SCHEMA_MISMATCH

    def test_unknown_trigger_tag(self):
        with pytest.raises(ParseError) as exc_info:
            decode_vesting_trigger({"tag": "OcfVestingMoonPhaseTrigger"}, "t")
        assert exc_info.value.code == ErrorCode.UNKNOWN_ENUM_VALUE


# =============================================================================
# Vesting Terms
# =============================================================================

class TestVestingTerms:
    """Tests for full vesting terms conversion."""

    def test_encode(self, vesting_terms_doc):
        encoded = encode_vesting_terms(vesting_terms_doc)

        assert encoded["allocation_type"] == "OcfAllocationCumulativeRounding"
        start, cliff, _ = encoded["vesting_conditions"]
        assert start["portion"] is None
        assert start["trigger"] == {"tag": "OcfVestingStartTrigger", "value": {}}
        assert cliff["portion"] == {
            "tag": "Some", "value": {"numerator": "12", "denominator": "48", "remainder": False},
        }
        assert cliff["trigger"]["value"]["relative_to_condition_id"] == "start"

    def test_round_trip(self, vesting_terms_doc):
        assert decode_vesting_terms(encode_vesting_terms(vesting_terms_doc)) == vesting_terms_doc

    def test_decode_always_lists_next_conditions(self, vesting_terms_doc):
        encoded = encode_vesting_terms(vesting_terms_doc)
        del encoded["vesting_conditions"][2]["next_condition_ids"]
        decoded = decode_vesting_terms(encoded)
        assert decoded["vesting_conditions"][2]["next_condition_ids"] == []

    def test_remainder_flag_always_stored(self, vesting_terms_doc):
        encoded = encode_vesting_terms(vesting_terms_doc)
        assert encoded["vesting_conditions"][2]["portion"]["value"]["remainder"] is True

    def test_decode_omits_false_remainder(self, vesting_terms_doc):
        encoded = encode_vesting_terms(vesting_terms_doc)
        encoded["vesting_conditions"][1]["portion"] = {"numerator": "1", "denominator": "4", "remainder": False}
        decoded = decode_vesting_terms(encoded)
        assert decoded["vesting_conditions"][1]["portion"] == {"numerator": "1", "denominator": "4"}

    def test_decode_keeps_true_remainder(self, vesting_terms_doc):
        encoded = encode_vesting_terms(vesting_terms_doc)
        decoded = decode_vesting_terms(encoded)
        assert decoded["vesting_conditions"][2]["portion"]["remainder"] is True

    def test_missing_id_reported_before_conditions(self, vesting_terms_doc):
        del vesting_terms_doc["id"]
        vesting_terms_doc["vesting_conditions"] = "not-a-list"
        with pytest.raises(ValidationError) as exc_info:
            encode_vesting_terms(vesting_terms_doc)
        assert exc_info.value.field_path == "vestingTerms.id"

    def test_decode_reports_id_before_conditions(self, vesting_terms_doc):
        encoded = encode_vesting_terms(vesting_terms_doc)
        del encoded["id"]
        encoded["vesting_conditions"] = [{"trigger": None}]
        with pytest.raises(ValidationError) as exc_info:
            decode_vesting_terms(encoded)
        assert exc_info.value.field_path == "vestingTerms.id"
        assert exc_info.value.code == ErrorCode.REQUIRED_FIELD_MISSING

    def test_duplicate_ids_on_encode(self, vesting_terms_doc):
        vesting_terms_doc["vesting_conditions"][2]["id"] = "cliff"
        with pytest.raises(ValidationError, match="Duplicate vesting condition id") as exc_info:
            encode_vesting_terms(vesting_terms_doc)
        assert exc_info.value.code == ErrorCode.INVALID_FORMAT
        assert exc_info.value.field_path == "vestingTerms.vesting_conditions[2].id"

    def test_duplicate_ids_on_decode(self, vesting_terms_doc):
        encoded = encode_vesting_terms(vesting_terms_doc)
        encoded["vesting_conditions"][2]["id"] = "cliff"
        with pytest.raises(ParseError) as exc_info:
            decode_vesting_terms(encoded)
        assert exc_info.value.code == ErrorCode.SCHEMA_MISMATCH

    def test_cycle_is_logged_not_rejected(self, vesting_terms_doc, caplog):
        vesting_terms_doc["vesting_conditions"][2]["next_condition_ids"] = ["start"]
        encoded = encode_vesting_terms(vesting_terms_doc)
        with caplog.at_level(logging.INFO, logger="captable_ledger"):
            decoded = decode_vesting_terms(encoded)
        assert decoded["vesting_conditions"][2]["next_condition_ids"] == ["start"]
        assert "condition cycle" in caplog.text

    def test_allocation_alias(self, vesting_terms_doc):
        vesting_terms_doc["allocation_type"] = "FRONT_LOADED_SINGLE_TRANCHE"
        encoded = encode_vesting_terms(vesting_terms_doc)
        assert decode_vesting_terms(encoded)["allocation_type"] == "FRONT_LOADED_TO_SINGLE_TRANCHE"

    def test_conditions_required(self, vesting_terms_doc):
        del vesting_terms_doc["vesting_conditions"]
        with pytest.raises(ValidationError, match="vestingTerms.vesting_conditions"):
            encode_vesting_terms(vesting_terms_doc)


# =============================================================================
# Condition Graph
# =============================================================================

class TestVestingGraph:
    """Tests for the condition arena."""

    def test_roots_and_successors(self, vesting_terms_doc):
        graph = VestingGraph.from_conditions(vesting_terms_doc["vesting_conditions"])
        assert graph.roots() == ["start"]
        assert graph.successors("start") == ["cliff"]
        assert graph.nodes["cliff"].relative_to_condition_id == "start"
        assert graph.find_cycle() is None

    def test_dangling_references(self):
        graph = VestingGraph.from_conditions([
            {"id": "a", "trigger": {"type": "VESTING_EVENT"}, "next_condition_ids": ["missing"]},
            {"id": "b", "trigger": {"type": "VESTING_SCHEDULE_RELATIVE", "relative_to_condition_id": "gone"}},
        ])
        assert graph.dangling_references() == ["missing", "gone"]

    def test_find_cycle(self):
        graph = VestingGraph.from_conditions([
            {"id": "root", "next_condition_ids": ["a"]},
            {"id": "a", "next_condition_ids": ["b"]},
            {"id": "b", "next_condition_ids": ["a"]},
        ])
        assert sorted(graph.find_cycle()) == ["a", "b"]

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate vesting condition id"):
            VestingGraph.from_conditions([{"id": "a"}, {"id": "a"}])

    def test_arena_keys_must_match(self):
        from captable_ledger.schemas import VestingNode

        with pytest.raises(ValueError, match="does not match"):
            VestingGraph(nodes={"x": VestingNode(id="y", trigger_type="VESTING_EVENT")})
