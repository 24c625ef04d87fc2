"""
Unit tests for issuance converters.

Tests cover:
- Stock issuance (share ranges, vestings, legends)
- Equity compensation issuance (termination windows, early exercise)
- Convertible issuance (SAFE and note mechanisms, seniority as integer)
- Warrant issuance (quantity source default, wrapped warrant right)
"""

import pytest

from captable_ledger.codec.issuances import (
    decode_convertible_issuance,
    decode_equity_compensation_issuance,
    decode_stock_issuance,
    decode_warrant_issuance,
    encode_convertible_issuance,
    encode_equity_compensation_issuance,
    encode_stock_issuance,
    encode_warrant_issuance,
)
from captable_ledger.errors import ErrorCode, ValidationError


def _header(object_type, **overrides):
    header = {
        "object_type": object_type,
        "id": "iss-1",
        "date": "2024-01-15",
        "security_id": "sec-1",
        "custom_id": "X-1",
        "stakeholder_id": "sh-1",
    }
    header.update(overrides)
    return header


def _safe_issuance():
    return _header(
        "TX_CONVERTIBLE_ISSUANCE",
        investment_amount={"amount": "250000", "currency": "USD"},
        convertible_type="SAFE",
        conversion_triggers=[
            {
                "type": "AUTOMATIC_ON_CONDITION",
                "trigger_id": "next-round",
                "trigger_condition": "Next equity financing",
                "conversion_right": {
                    "type": "CONVERTIBLE_CONVERSION_RIGHT",
                    "conversion_mechanism": {
                        "type": "SAFE_CONVERSION",
                        "conversion_discount": "0.2",
                        "conversion_valuation_cap": {"amount": "10000000", "currency": "USD"},
                        "conversion_mfn": False,
                        "conversion_timing": "POST_MONEY",
                    },
                    "converts_to_future_round": True,
                },
            }
        ],
        seniority=1,
    )


def _note_mechanism():
    return {
        "type": "CONVERTIBLE_NOTE_CONVERSION",
        "interest_rates": [{"rate": "0.08", "accrual_start_date": "2024-01-15"}],
        "day_count_convention": "ACTUAL_365",
        "interest_payout": "DEFERRED",
        "interest_accrual_period": "ANNUAL",
        "compounding_type": "SIMPLE",
        "conversion_discount": "0.15",
    }


def _warrant_issuance():
    return _header(
        "TX_WARRANT_ISSUANCE",
        quantity="10000",
        purchase_price={"amount": "100", "currency": "USD"},
        exercise_price={"amount": "0.5", "currency": "USD"},
        warrant_expiration_date="2031-01-15",
        exercise_triggers=[
            {
                "type": "ELECTIVE_AT_WILL",
                "trigger_id": "exercise",
                "conversion_right": {
                    "type": "WARRANT_CONVERSION_RIGHT",
                    "conversion_mechanism": {"type": "FIXED_AMOUNT_CONVERSION", "converts_to_quantity": "10000"},
                    "converts_to_stock_class_id": "sc-common",
                },
            }
        ],
    )


# =============================================================================
# Stock Issuance
# =============================================================================

class TestStockIssuance:
    """Tests for stock issuance conversion."""

    def test_encode(self, stock_issuance_doc):
        encoded = encode_stock_issuance(stock_issuance_doc)

        assert encoded["date"] == "2024-01-15T00:00:00.000Z"
        assert encoded["quantity"] == "4000000"
        assert encoded["issuance_type"] == "OcfStockIssuanceFounders"
        assert encoded["stock_legend_ids"] == ["legend-1"]
        assert encoded["cost_basis"] is None
        assert encoded["board_approval_date"] is None

    def test_round_trip(self, stock_issuance_doc):
        assert decode_stock_issuance(encode_stock_issuance(stock_issuance_doc)) == stock_issuance_doc

    def test_placeholder_ranges_and_zero_vestings_dropped(self, stock_issuance_doc):
        stock_issuance_doc["share_numbers_issued"] = [{"starting_share_number": "0", "ending_share_number": "0"}]
        stock_issuance_doc["vestings"] = [{"date": "2025-01-15", "amount": "0"}]
        encoded = encode_stock_issuance(stock_issuance_doc)
        assert encoded["share_numbers_issued"] == []
        assert encoded["vestings"] == []

        decoded = decode_stock_issuance(encoded)
        assert "share_numbers_issued" not in decoded
        assert "vestings" not in decoded

    @pytest.mark.parametrize("field", ["quantity", "share_price", "stock_class_id", "security_id"])
    def test_required_fields(self, stock_issuance_doc, field):
        del stock_issuance_doc[field]
        with pytest.raises(ValidationError) as exc_info:
            encode_stock_issuance(stock_issuance_doc)
        assert exc_info.value.field_path.startswith(f"stockIssuance.{field}")
        assert exc_info.value.code == ErrorCode.REQUIRED_FIELD_MISSING

    def test_float_quantity_rejected(self, stock_issuance_doc):
        stock_issuance_doc["quantity"] = 1000.5
        with pytest.raises(ValidationError) as exc_info:
            encode_stock_issuance(stock_issuance_doc)
        assert exc_info.value.code == ErrorCode.INVALID_TYPE

    def test_decode_padded_quantity(self, stock_issuance_doc):
        encoded = encode_stock_issuance(stock_issuance_doc)
        encoded["quantity"] = "4000000.0000000000"
        assert decode_stock_issuance(encoded)["quantity"] == "4000000"


# =============================================================================
# Equity Compensation Issuance
# =============================================================================

class TestEquityCompensationIssuance:
    """Tests for equity compensation issuance conversion."""

    def _option(self):
        return _header(
            "TX_EQUITY_COMPENSATION_ISSUANCE",
            compensation_type="OPTION_ISO",
            quantity="50000",
            exercise_price={"amount": "0.35", "currency": "USD"},
            early_exercisable=False,
            expiration_date="2034-01-15",
            stock_plan_id="plan-1",
            vesting_terms_id="vt-4yr",
            termination_exercise_windows=[
                {"reason": "VOLUNTARY_OTHER", "period": "90", "period_type": "DAYS"},
            ],
        )

    def test_encode(self):
        encoded = encode_equity_compensation_issuance(self._option())

        assert encoded["compensation_type"] == "OcfCompensationTypeOptionISO"
        assert encoded["termination_exercise_windows"] == [
            {"reason": "OcfTermVoluntaryOther", "period": "90", "period_type": "OcfPeriodDays"},
        ]
        assert encoded["expiration_date"] == "2034-01-15T00:00:00.000Z"
        assert encoded["base_price"] is None

    def test_round_trip_keeps_false_early_exercise(self):
        option = self._option()
        decoded = decode_equity_compensation_issuance(encode_equity_compensation_issuance(option))
        assert decoded == option
        assert decoded["early_exercisable"] is False

    def test_compensation_type_required(self):
        option = self._option()
        del option["compensation_type"]
        with pytest.raises(ValidationError) as exc_info:
            encode_equity_compensation_issuance(option)
        assert exc_info.value.field_path == "equityCompensationIssuance.compensation_type"

    def test_bad_window_reason_path(self):
        option = self._option()
        option["termination_exercise_windows"][0]["reason"] = "RAGE_QUIT"
        with pytest.raises(ValidationError) as exc_info:
            encode_equity_compensation_issuance(option)
        assert exc_info.value.field_path == "equityCompensationIssuance.termination_exercise_windows[0].reason"


# =============================================================================
# Convertible Issuance
# =============================================================================

class TestConvertibleIssuance:
    """Tests for convertible issuance conversion."""

    def test_encode_safe(self):
        encoded = encode_convertible_issuance(_safe_issuance())

        assert encoded["convertible_type"] == "OcfConvertibleSafe"
        assert encoded["seniority"] == "1"
        trigger = encoded["conversion_triggers"][0]
        assert trigger["type_"] == "OcfTriggerTypeTypeAutomaticOnCondition"
        right = trigger["conversion_right"]
        assert right["type_"] == "CONVERTIBLE_CONVERSION_RIGHT"
        assert right["conversion_mechanism"]["tag"] == "OcfConvMechSAFE"
        assert right["conversion_mechanism"]["value"]["conversion_timing"] == "OcfConversionTimingPostMoney"
        assert right["conversion_mechanism"]["value"]["exit_multiple"] is None

    def test_round_trip_safe(self):
        safe = _safe_issuance()
        decoded = decode_convertible_issuance(encode_convertible_issuance(safe))
        assert decoded == safe
        assert decoded["seniority"] == 1

    def test_note_round_trip(self):
        note = _safe_issuance()
        note["convertible_type"] = "NOTE"
        note["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"] = _note_mechanism()

        encoded = encode_convertible_issuance(note)
        mechanism = encoded["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"]
        assert mechanism["tag"] == "OcfConvMechNote"
        assert mechanism["value"]["interest_rates"] == [
            {"rate": "0.08", "accrual_start_date": "2024-01-15T00:00:00.000Z", "accrual_end_date": None},
        ]
        assert decode_convertible_issuance(encoded) == note

    @pytest.mark.parametrize("missing", [
        "interest_rates",
        "day_count_convention",
        "interest_payout",
        "interest_accrual_period",
        "compounding_type",
    ])
    def test_note_missing_field(self, missing):
        note = _safe_issuance()
        mechanism = _note_mechanism()
        del mechanism[missing]
        note["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"] = mechanism

        with pytest.raises(ValidationError, match=missing) as exc_info:
            encode_convertible_issuance(note)
        assert exc_info.value.field_path == (
            f"convertibleIssuance.conversion_triggers[0].conversion_right.conversion_mechanism.{missing}"
        )

    def test_conversion_triggers_required(self):
        safe = _safe_issuance()
        del safe["conversion_triggers"]
        with pytest.raises(ValidationError) as exc_info:
            encode_convertible_issuance(safe)
        assert exc_info.value.field_path == "convertibleIssuance.conversion_triggers"

    def test_fixed_amount_mechanism(self):
        safe = _safe_issuance()
        safe["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"] = {
            "type": "FIXED_AMOUNT_CONVERSION", "converts_to_quantity": "1000.00",
        }
        mechanism = encode_convertible_issuance(safe)["conversion_triggers"][0]["conversion_right"][
            "conversion_mechanism"]
        assert mechanism == {"tag": "OcfConvMechFixedAmount", "value": {"converts_to_quantity": "1000"}}

    def test_share_price_mechanism_omits_false_discount(self):
        safe = _safe_issuance()
        safe["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"] = {
            "type": "SHARE_PRICE_BASED_CONVERSION", "description": "Next round price",
        }
        encoded = encode_convertible_issuance(safe)
        right = encoded["conversion_triggers"][0]["conversion_right"]
        assert right["conversion_mechanism"]["value"]["discount"] is False
        decoded = decode_convertible_issuance(encoded)
        mechanism = decoded["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"]
        assert mechanism == {"type": "SHARE_PRICE_BASED_CONVERSION", "description": "Next round price"}

    def test_share_price_mechanism_keeps_true_discount(self):
        safe = _safe_issuance()
        safe["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"] = {
            "type": "SHARE_PRICE_BASED_CONVERSION", "description": "Next round price",
            "discount": True, "discount_percentage": "0.2",
        }
        decoded = decode_convertible_issuance(encode_convertible_issuance(safe))
        mechanism = decoded["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"]
        assert mechanism["discount"] is True
        assert mechanism["discount_percentage"] == "0.2"

    def test_custom_mechanism_requires_description(self):
        safe = _safe_issuance()
        safe["conversion_triggers"][0]["conversion_right"]["conversion_mechanism"] = {"type": "CUSTOM_CONVERSION"}
        with pytest.raises(ValidationError, match="custom_conversion_description"):
            encode_convertible_issuance(safe)

    def test_seniority_must_be_integer(self):
        safe = _safe_issuance()
        safe["seniority"] = "1.5"
        with pytest.raises(ValidationError) as exc_info:
            encode_convertible_issuance(safe)
        assert exc_info.value.code == ErrorCode.INVALID_TYPE


# =============================================================================
# Warrant Issuance
# =============================================================================

class TestWarrantIssuance:
    """Tests for warrant issuance conversion."""

    def test_quantity_source_defaults_to_unspecified(self):
        encoded = encode_warrant_issuance(_warrant_issuance())
        assert encoded["quantity_source"] == "OcfQuantityUnspecified"

    def test_no_quantity_no_source(self):
        warrant = _warrant_issuance()
        del warrant["quantity"]
        encoded = encode_warrant_issuance(warrant)
        assert encoded["quantity"] is None
        assert encoded["quantity_source"] is None

    def test_warrant_right_is_wrapped(self):
        trigger = encode_warrant_issuance(_warrant_issuance())["exercise_triggers"][0]
        right = trigger["conversion_right"]

        assert right["tag"] == "OcfRightWarrant"
        assert right["value"]["type_"] == "WARRANT_CONVERSION_RIGHT"
        assert right["value"]["conversion_mechanism"] == {
            "tag": "OcfWarrantMechanismFixedAmount", "value": {"converts_to_quantity": "10000"},
        }

    def test_round_trip(self):
        warrant = _warrant_issuance()
        decoded = decode_warrant_issuance(encode_warrant_issuance(warrant))
        assert decoded == {**warrant, "quantity_source": "UNSPECIFIED"}

    def test_safe_mechanism_not_allowed(self):
        warrant = _warrant_issuance()
        warrant["exercise_triggers"][0]["conversion_right"]["conversion_mechanism"] = {"type": "SAFE_CONVERSION"}
        with pytest.raises(ValidationError) as exc_info:
            encode_warrant_issuance(warrant)
        assert exc_info.value.code == ErrorCode.UNKNOWN_ENUM_VALUE

    def test_purchase_price_required(self):
        warrant = _warrant_issuance()
        del warrant["purchase_price"]
        with pytest.raises(ValidationError, match="warrantIssuance.purchase_price"):
            encode_warrant_issuance(warrant)
