"""Vesting and stakeholder change event converters."""

from typing import Any, Dict, Mapping

from ..schemas.documents import TransactionHeader
from .enums import STAKEHOLDER_RELATIONSHIP, STAKEHOLDER_STATUS
from .scalars import (
    clean_comments,
    decode_date,
    decode_numeric,
    encode_date,
    number_to_string,
    put_comments,
)
from .validation import require_list, require_numeric, require_string, validate_list_items, validate_model


def _encode_header(data: Mapping[str, Any], entity: str, subject: str) -> Dict[str, Any]:
    header = validate_model(TransactionHeader, data, entity)
    return {
        "id": header.id,
        "date": encode_date(data.get("date"), f"{entity}.date"),
        subject: require_string(data.get(subject), f"{entity}.{subject}"),
    }


def _decode_header(data: Mapping[str, Any], entity: str, subject: str, object_type: str) -> Dict[str, Any]:
    return {
        "object_type": object_type,
        "id": require_string(data.get("id"), f"{entity}.id"),
        "date": decode_date(data.get("date"), f"{entity}.date"),
        subject: require_string(data.get(subject), f"{entity}.{subject}"),
    }


# =============================================================================
# Vesting Events
# =============================================================================

def _vesting_condition_codec(entity: str, object_type: str):
    def encode(data: Mapping[str, Any]) -> Dict[str, Any]:
        result = _encode_header(data, entity, "security_id")
        result["vesting_condition_id"] = require_string(
            data.get("vesting_condition_id"), f"{entity}.vesting_condition_id")
        result["comments"] = clean_comments(data.get("comments"))
        return result

    def decode(data: Mapping[str, Any]) -> Dict[str, Any]:
        result = _decode_header(data, entity, "security_id", object_type)
        result["vesting_condition_id"] = require_string(
            data.get("vesting_condition_id"), f"{entity}.vesting_condition_id")
        put_comments(result, data.get("comments"))
        return result

    return encode, decode


encode_vesting_start, decode_vesting_start = _vesting_condition_codec("vestingStart", "TX_VESTING_START")
encode_vesting_event, decode_vesting_event = _vesting_condition_codec("vestingEvent", "TX_VESTING_EVENT")


def encode_vesting_acceleration(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "vestingAcceleration"
    result = _encode_header(data, entity, "security_id")
    result["quantity"] = number_to_string(
        require_numeric(data.get("quantity"), f"{entity}.quantity"), f"{entity}.quantity")
    result["reason_text"] = require_string(data.get("reason_text"), f"{entity}.reason_text")
    result["comments"] = clean_comments(data.get("comments"))
    return result


def decode_vesting_acceleration(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "vestingAcceleration"
    result = _decode_header(data, entity, "security_id", "TX_VESTING_ACCELERATION")
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    result["reason_text"] = require_string(data.get("reason_text"), f"{entity}.reason_text")
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Stakeholder Events
# =============================================================================

def encode_stakeholder_relationship_change(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stakeholderRelationshipChangeEvent"
    result = _encode_header(data, entity, "stakeholder_id")
    path = f"{entity}.new_relationships"
    result["new_relationships"] = validate_list_items(
        require_list(data.get("new_relationships"), path), path, STAKEHOLDER_RELATIONSHIP.encode)
    result["comments"] = clean_comments(data.get("comments"))
    return result


def decode_stakeholder_relationship_change(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stakeholderRelationshipChangeEvent"
    result = _decode_header(data, entity, "stakeholder_id", "TX_STAKEHOLDER_RELATIONSHIP_CHANGE_EVENT")
    path = f"{entity}.new_relationships"
    result["new_relationships"] = validate_list_items(
        require_list(data.get("new_relationships"), path), path, STAKEHOLDER_RELATIONSHIP.decode)
    put_comments(result, data.get("comments"))
    return result


def encode_stakeholder_status_change(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stakeholderStatusChangeEvent"
    result = _encode_header(data, entity, "stakeholder_id")
    result["new_status"] = STAKEHOLDER_STATUS.encode(data.get("new_status"), f"{entity}.new_status")
    result["comments"] = clean_comments(data.get("comments"))
    return result


def decode_stakeholder_status_change(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stakeholderStatusChangeEvent"
    result = _decode_header(data, entity, "stakeholder_id", "TX_STAKEHOLDER_STATUS_CHANGE_EVENT")
    result["new_status"] = STAKEHOLDER_STATUS.decode(data.get("new_status"), f"{entity}.new_status")
    put_comments(result, data.get("comments"))
    return result
