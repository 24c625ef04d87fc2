"""
Unit tests for the entity registry and dispatch.

Tests cover:
- Registration invariants (unique object types, known wrapper keys, weights)
- encode/decode dispatch and create argument wrapping
- Plan security aliases
- Ledger response helpers
"""

import pytest

from captable_ledger.codec import (
    ENTITY_SPECS,
    PLAN_SECURITY_ALIASES,
    decode,
    decode_create_argument,
    encode,
    encode_create_argument,
    entity_types,
    extract_create_argument,
    extract_created_at,
    extract_entity_data,
    get_spec,
    normalize_plan_security,
    object_type_of,
    resolve_entity_type,
    spec_for_object_type,
)
from captable_ledger.errors import ErrorCode, ParseError, ValidationError
from captable_ledger.sequencer import TRANSACTION_WEIGHTS


# =============================================================================
# Registration
# =============================================================================

class TestRegistration:
    """Tests for registry invariants."""

    def test_object_types_are_unique(self):
        object_types = [spec.object_type for spec in ENTITY_SPECS.values()]
        assert len(object_types) == len(set(object_types))

    def test_every_transaction_has_a_weight(self):
        for spec in ENTITY_SPECS.values():
            if spec.is_transaction:
                assert spec.object_type in TRANSACTION_WEIGHTS, spec.object_type

    def test_core_objects_have_collections(self):
        assert get_spec("issuer").collection == "issuer"
        assert get_spec("stakeholder").collection == "stakeholders"
        assert get_spec("vestingTerms").collection == "vesting_terms"
        assert not get_spec("stakeholder").is_transaction
        assert get_spec("stockTransfer").is_transaction

    @pytest.mark.parametrize("entity_type, wrapper_key", [
        ("issuer", "issuer_data"),
        ("stockIssuance", "issuance_data"),
        ("warrantTransfer", "transfer_data"),
        ("stockConsolidation", "consolidation_data"),
        ("stockClassSplit", "split_data"),
        ("stockPlanReturnToPool", "return_data"),
        ("vestingAcceleration", "vesting_acceleration_data"),
        ("stakeholderStatusChangeEvent", "status_change_data"),
    ])
    def test_wrapper_keys(self, entity_type, wrapper_key):
        assert get_spec(entity_type).wrapper_key == wrapper_key

    def test_entity_types_exclude_aliases(self):
        types = entity_types()
        assert "stockIssuance" in types
        assert not set(PLAN_SECURITY_ALIASES) & set(types)

    def test_spec_for_object_type(self):
        assert spec_for_object_type("TX_STOCK_TRANSFER").entity_type == "stockTransfer"
        assert spec_for_object_type("TX_PLAN_SECURITY_EXERCISE").entity_type == "equityCompensationExercise"
        assert spec_for_object_type("TX_NOT_A_THING") is None


# =============================================================================
# Dispatch
# =============================================================================

class TestDispatch:
    """Tests for encode/decode dispatch."""

    def test_unknown_entity_type(self):
        with pytest.raises(ValidationError) as exc_info:
            encode("stockGift", {})
        assert exc_info.value.code == ErrorCode.UNKNOWN_ENTITY_TYPE

        with pytest.raises(ParseError) as exc_info:
            decode("stockGift", {})
        assert exc_info.value.code == ErrorCode.UNKNOWN_ENTITY_TYPE

    def test_non_mapping_input(self):
        with pytest.raises(ValidationError):
            encode("stockTransfer", ["not", "a", "dict"])
        with pytest.raises(ParseError) as exc_info:
            decode("stockTransfer", "nope")
        assert exc_info.value.code == ErrorCode.SCHEMA_MISMATCH

    def test_create_argument_round_trip(self, stock_transfer_doc):
        argument = encode_create_argument("stockTransfer", stock_transfer_doc)
        assert list(argument) == ["transfer_data"]
        assert decode_create_argument("stockTransfer", argument) == stock_transfer_doc

    def test_strict_passed_to_strict_aware_converters(self, stock_class_doc):
        stock_class_doc["conversion_rights"][0]["conversion_trigger"] = "SOMETIME"
        with pytest.raises(ValidationError):
            encode("stockClass", stock_class_doc, strict=True)
        encoded = encode("stockClass", stock_class_doc, strict=False)
        assert encoded["conversion_rights"][0]["conversion_trigger"] == "OcfTriggerTypeAutomaticOnCondition"

    def test_object_type_of(self, stakeholder_doc):
        assert object_type_of(stakeholder_doc) == "STAKEHOLDER"
        with pytest.raises(ValidationError, match="object_type"):
            object_type_of({})


# =============================================================================
# Plan Security Aliases
# =============================================================================

class TestPlanSecurity:
    """Tests for plan security normalization."""

    def _plan_security(self, **overrides):
        document = {
            "object_type": "TX_PLAN_SECURITY_ISSUANCE",
            "id": "ps-1",
            "date": "2024-03-01",
            "security_id": "sec-ps-1",
            "custom_id": "PS-1",
            "stakeholder_id": "sh-1",
            "plan_security_type": "OPTION",
            "quantity": "1000",
            "stock_plan_id": "plan-1",
            "expiration_date": "2034-03-01",
        }
        document.update(overrides)
        return document

    def test_resolve_alias(self):
        assert resolve_entity_type("planSecurityIssuance") == "equityCompensationIssuance"
        assert resolve_entity_type("stockIssuance") == "stockIssuance"

    def test_normalize_issuance(self):
        normalized = normalize_plan_security("planSecurityIssuance", self._plan_security())
        assert normalized["object_type"] == "TX_EQUITY_COMPENSATION_ISSUANCE"
        assert normalized["compensation_type"] == "OPTION"
        assert "plan_security_type" not in normalized
        assert "expiration_date" not in normalized

    def test_other_maps_to_option(self):
        normalized = normalize_plan_security("planSecurityIssuance", self._plan_security(plan_security_type="OTHER"))
        assert normalized["compensation_type"] == "OPTION"

    def test_unknown_plan_security_type(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_plan_security("planSecurityIssuance", self._plan_security(plan_security_type="PHANTOM"))
        assert exc_info.value.code == ErrorCode.UNKNOWN_ENUM_VALUE

    def test_encode_through_alias(self):
        argument = encode_create_argument("planSecurityIssuance", self._plan_security())
        record = argument["issuance_data"]
        assert record["compensation_type"] == "OcfCompensationTypeOption"
        assert record["expiration_date"] is None

        decoded = decode_create_argument("planSecurityIssuance", argument)
        assert decoded["object_type"] == "TX_EQUITY_COMPENSATION_ISSUANCE"
        assert decoded["compensation_type"] == "OPTION"

    def test_non_issuance_alias_only_renames(self):
        exercise = {"object_type": "TX_PLAN_SECURITY_EXERCISE", "id": "x"}
        assert normalize_plan_security("planSecurityExercise", exercise) == {
            "object_type": "TX_EQUITY_COMPENSATION_EXERCISE", "id": "x",
        }


# =============================================================================
# Ledger Response Helpers
# =============================================================================

class TestResponseHelpers:
    """Tests for create argument extraction."""

    def test_extract_create_argument(self):
        response = {"created": {"createdEvent": {"createArgument": {"transfer_data": {}},
                                                 "createdAt": "2024-06-01T10:00:00Z"}}}
        assert extract_create_argument(response, "00cid") == {"transfer_data": {}}
        assert extract_created_at(response) == "2024-06-01T10:00:00Z"

    def test_missing_created_event(self):
        with pytest.raises(ParseError, match="missing created event") as exc_info:
            extract_create_argument({"archived": {}}, "00cid")
        assert exc_info.value.code == ErrorCode.INVALID_RESPONSE
        assert exc_info.value.source == "contract 00cid"

    def test_missing_create_argument(self):
        with pytest.raises(ParseError, match="missing create argument"):
            extract_create_argument({"created": {"createdEvent": {}}}, "00cid")

    def test_created_at_absent(self):
        assert extract_created_at({}) is None
        assert extract_created_at(None) is None

    def test_extract_entity_data_missing_key(self):
        with pytest.raises(ParseError, match="issuance_data") as exc_info:
            extract_entity_data("stockIssuance", {"transfer_data": {"id": "x"}})
        assert exc_info.value.code == ErrorCode.SCHEMA_MISMATCH

    def test_extract_entity_data_not_object(self):
        with pytest.raises(ParseError) as exc_info:
            extract_entity_data("stockIssuance", "garbage")
        assert exc_info.value.code == ErrorCode.INVALID_RESPONSE

        with pytest.raises(ParseError) as exc_info:
            extract_entity_data("stockIssuance", {"issuance_data": []})
        assert exc_info.value.code == ErrorCode.SCHEMA_MISMATCH
