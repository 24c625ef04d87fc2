"""Vesting terms converter.

Vesting terms hold a graph of conditions. Each condition has one trigger:
- VESTING_START_DATE → ``{"tag": "OcfVestingStartTrigger", "value": {}}``
- VESTING_EVENT → ``{"tag": "OcfVestingEventTrigger", "value": {}}``
- VESTING_SCHEDULE_ABSOLUTE → ledger time in ``value``
- VESTING_SCHEDULE_RELATIVE → period (days or months) plus the anchor
  condition id

Relative periods require ``length > 0`` and ``occurrences >= 1``; monthly
periods also require ``day_of_month``. Unknown period types and day values
fail unless strict enums are disabled (see ``LedgerBridgeSettings``).
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..errors import ErrorCode, ParseError, ValidationError
from ..schemas.documents import VestingTermsDocument
from ..schemas.vesting import VestingGraph
from . import enums
from .scalars import (
    clean_comments,
    date_to_ledger_time,
    decode_numeric,
    ledger_time_to_date,
    number_to_string,
    optional_numeric,
    optional_string,
    put_comments,
    put_optional,
    unwrap_optional,
)
from .validation import (
    optional_list,
    require_date,
    require_int,
    require_mapping,
    require_string,
    require_string_list,
    validate_model,
)

logger = logging.getLogger(__name__)

ENTITY = "vestingTerms"


# =============================================================================
# Periods
# =============================================================================

def encode_vesting_period(value: Any, field_path: str, strict: Optional[bool] = None) -> Dict[str, Any]:
    """Encode a relative schedule period.

    Raises:
        ValidationError: OUT_OF_RANGE for ``length <= 0`` or
            ``occurrences < 1``; REQUIRED_FIELD_MISSING for a monthly period
            without ``day_of_month``
    """
    period = require_mapping(value, field_path)
    period_type = period.get("type")
    if isinstance(period_type, str):
        period_type = period_type.upper()
    tag = enums.VESTING_PERIOD_TYPE.encode(period_type, f"{field_path}.type", strict)

    length = require_int(period.get("length", period.get("value")), f"{field_path}.length", minimum=1)
    occurrences = require_int(period.get("occurrences"), f"{field_path}.occurrences", minimum=1)
    cliff = period.get("cliff_installment")
    body: Dict[str, Any] = {
        "length_": str(length),
        "occurrences": str(occurrences),
    }
    if tag == "OcfVestingPeriodMonths":
        day = period.get("day_of_month")
        if day is None or day == "":
            raise ValidationError(
                f"{field_path}.day_of_month", "Monthly vesting periods require day_of_month",
            )
        day = f"{day:02d}" if isinstance(day, int) and not isinstance(day, bool) else str(day).upper()
        body["day_of_month"] = enums.VESTING_DAY_OF_MONTH.encode(day, f"{field_path}.day_of_month", strict)
    body["cliff_installment"] = (
        None if cliff is None else str(require_int(cliff, f"{field_path}.cliff_installment", minimum=0))
    )
    return {"tag": tag, "value": body}


def decode_vesting_period(value: Any, field_path: str, strict: Optional[bool] = None) -> Dict[str, Any]:
    union = require_mapping(value, field_path)
    period_type = enums.VESTING_PERIOD_TYPE.decode(union.get("tag"), f"{field_path}.tag", strict)
    body = require_mapping(union.get("value") or {}, f"{field_path}.value")

    occurrences = body.get("occurrences")
    if occurrences is None:
        raise ParseError(
            f"Missing vesting period occurrences at '{field_path}'",
            source=field_path, code=ErrorCode.SCHEMA_MISMATCH,
        )
    result: Dict[str, Any] = {
        "type": period_type,
        "length": _decode_int(body.get("length_"), f"{field_path}.length_"),
        "occurrences": _decode_int(occurrences, f"{field_path}.occurrences"),
    }
    if result["occurrences"] < 1:
        raise ParseError(
            f"Invalid vesting period occurrences {occurrences!r} at '{field_path}'",
            source=field_path, code=ErrorCode.SCHEMA_MISMATCH, received_value=occurrences,
        )
    if period_type == "MONTHS":
        day = body.get("day_of_month")
        if day is None:
            raise ParseError(
                f"Missing day_of_month for monthly vesting period at '{field_path}'",
                source=field_path, code=ErrorCode.SCHEMA_MISMATCH,
            )
        result["day_of_month"] = enums.VESTING_DAY_OF_MONTH.decode(day, f"{field_path}.day_of_month", strict)
    cliff = unwrap_optional(body.get("cliff_installment"))
    if cliff is not None:
        result["cliff_installment"] = _decode_int(cliff, f"{field_path}.cliff_installment")
    return result


def _decode_int(value: Any, field_path: str) -> int:
    text = decode_numeric(value, field_path)
    if "." in text:
        raise ParseError(
            f"Expected an integer at '{field_path}', got {value!r}",
            source=field_path, code=ErrorCode.INVALID_FORMAT, received_value=value,
        )
    return int(text)


# =============================================================================
# Triggers
# =============================================================================

def encode_vesting_trigger(value: Any, field_path: str, strict: Optional[bool] = None) -> Dict[str, Any]:
    trigger = require_mapping(value, field_path)
    trigger_type = trigger.get("type")
    if isinstance(trigger_type, str):
        trigger_type = trigger_type.upper()
    tag = enums.VESTING_TRIGGER_TYPE.encode(trigger_type, f"{field_path}.type")

    if tag in ("OcfVestingStartTrigger", "OcfVestingEventTrigger"):
        return {"tag": tag, "value": {}}
    if tag == "OcfVestingScheduleAbsoluteTrigger":
        day = trigger.get("date") or trigger.get("at")
        require_date(day, f"{field_path}.date", allow_time=True)
        return {"tag": tag, "value": date_to_ledger_time(day, f"{field_path}.date")}
    return {
        "tag": tag,
        "value": {
            "period": encode_vesting_period(trigger.get("period"), f"{field_path}.period", strict),
            "relative_to_condition_id": require_string(
                trigger.get("relative_to_condition_id"), f"{field_path}.relative_to_condition_id"),
        },
    }


def decode_vesting_trigger(value: Any, field_path: str, strict: Optional[bool] = None) -> Dict[str, Any]:
    """Decode a trigger; a bare tag string is accepted for the empty variants."""
    tag = value if isinstance(value, str) else require_mapping(value, field_path).get("tag")
    trigger_type = enums.VESTING_TRIGGER_TYPE.decode(tag, f"{field_path}.tag")
    payload = None if isinstance(value, str) else value.get("value")

    if trigger_type in ("VESTING_START_DATE", "VESTING_EVENT"):
        return {"type": trigger_type}
    if trigger_type == "VESTING_SCHEDULE_ABSOLUTE":
        if not isinstance(payload, str) or not payload:
            raise ParseError(
                f"Missing date for absolute vesting trigger at '{field_path}'",
                source=field_path, code=ErrorCode.SCHEMA_MISMATCH, received_value=payload,
            )
        return {"type": trigger_type, "date": ledger_time_to_date(payload)}
    if not isinstance(payload, Mapping):
        raise ParseError(
            f"Missing value for relative vesting trigger at '{field_path}'",
            source=field_path, code=ErrorCode.SCHEMA_MISMATCH, received_value=payload,
        )
    return {
        "type": trigger_type,
        "period": decode_vesting_period(payload.get("period"), f"{field_path}.period", strict),
        "relative_to_condition_id": require_string(
            payload.get("relative_to_condition_id"), f"{field_path}.relative_to_condition_id"),
    }


# =============================================================================
# Conditions
# =============================================================================

def encode_vesting_condition(value: Any, field_path: str, strict: Optional[bool] = None) -> Dict[str, Any]:
    condition = require_mapping(value, field_path)
    portion = condition.get("portion")
    encoded_portion = None
    if portion:
        portion = require_mapping(portion, f"{field_path}.portion")
        encoded_portion = {
            "tag": "Some",
            "value": {
                "numerator": number_to_string(portion.get("numerator"), f"{field_path}.portion.numerator"),
                "denominator": number_to_string(portion.get("denominator"), f"{field_path}.portion.denominator"),
                "remainder": bool(portion.get("remainder", False)),
            },
        }
    return {
        "id": require_string(condition.get("id"), f"{field_path}.id"),
        "description": optional_string(condition.get("description")),
        "portion": encoded_portion,
        "quantity": optional_numeric(condition.get("quantity"), f"{field_path}.quantity"),
        "trigger": encode_vesting_trigger(condition.get("trigger"), f"{field_path}.trigger", strict),
        "next_condition_ids": require_string_list(
            condition.get("next_condition_ids"), f"{field_path}.next_condition_ids"),
    }


def decode_vesting_condition(value: Any, field_path: str, strict: Optional[bool] = None) -> Dict[str, Any]:
    condition = require_mapping(value, field_path)
    result: Dict[str, Any] = {"id": require_string(condition.get("id"), f"{field_path}.id")}
    put_optional(result, "description", condition.get("description"))

    portion = unwrap_optional(condition.get("portion"))
    if portion:
        portion = require_mapping(portion, f"{field_path}.portion")
        result["portion"] = {
            "numerator": decode_numeric(portion.get("numerator"), f"{field_path}.portion.numerator"),
            "denominator": decode_numeric(portion.get("denominator"), f"{field_path}.portion.denominator"),
        }
        if portion.get("remainder"):
            result["portion"]["remainder"] = True
    quantity = unwrap_optional(condition.get("quantity"))
    if quantity is not None and quantity != "":
        result["quantity"] = decode_numeric(quantity, f"{field_path}.quantity")

    result["trigger"] = decode_vesting_trigger(condition.get("trigger"), f"{field_path}.trigger", strict)
    result["next_condition_ids"] = list(optional_list(condition.get("next_condition_ids"),
                                                      f"{field_path}.next_condition_ids"))
    return result


def _check_unique_ids(conditions: List[Dict[str, Any]], field_path: str) -> None:
    seen = set()
    for index, condition in enumerate(conditions):
        if condition["id"] in seen:
            raise ValidationError(
                f"{field_path}[{index}].id", f"Duplicate vesting condition id '{condition['id']}'",
                code=ErrorCode.INVALID_FORMAT, received_value=condition["id"],
            )
        seen.add(condition["id"])


def build_vesting_graph(conditions: List[Dict[str, Any]], field_path: str) -> VestingGraph:
    """Build the condition arena from decoded (portable) conditions.

    Raises:
        ParseError: SCHEMA_MISMATCH if two conditions share an id
    """
    try:
        return VestingGraph.from_conditions(conditions)
    except ValueError as exc:
        raise ParseError(
            f"Invalid vesting condition graph at '{field_path}': {exc}",
            source=field_path, code=ErrorCode.SCHEMA_MISMATCH, cause=exc,
        )


# =============================================================================
# Vesting Terms
# =============================================================================

def encode_vesting_terms(data: Mapping[str, Any], strict: Optional[bool] = None) -> Dict[str, Any]:
    """Portable VESTING_TERMS → ``vesting_terms_data``."""
    doc = validate_model(VestingTermsDocument, data, ENTITY)
    conditions = [
        encode_vesting_condition(condition, f"{ENTITY}.vesting_conditions[{index}]", strict)
        for index, condition in enumerate(doc.vesting_conditions)
    ]
    _check_unique_ids(conditions, f"{ENTITY}.vesting_conditions")
    return {
        "id": doc.id,
        "name": doc.name,
        "description": doc.description,
        "allocation_type": enums.ALLOCATION_TYPE.encode(doc.allocation_type, f"{ENTITY}.allocation_type"),
        "vesting_conditions": conditions,
        "comments": clean_comments(data.get("comments")),
    }


def decode_vesting_terms(data: Mapping[str, Any], strict: Optional[bool] = None) -> Dict[str, Any]:
    """``vesting_terms_data`` → portable VESTING_TERMS.

    Cycles in the condition graph are logged, not rejected.
    """
    terms_id = require_string(data.get("id"), f"{ENTITY}.id")
    conditions = [
        decode_vesting_condition(condition, f"{ENTITY}.vesting_conditions[{index}]", strict)
        for index, condition in enumerate(optional_list(data.get("vesting_conditions"),
                                                        f"{ENTITY}.vesting_conditions"))
    ]
    cycle = build_vesting_graph(conditions, f"{ENTITY}.vesting_conditions").find_cycle()
    if cycle:
        logger.info("Vesting terms %s contain a condition cycle through %s", terms_id, cycle)

    result: Dict[str, Any] = {
        "object_type": "VESTING_TERMS",
        "id": terms_id,
        "name": require_string(data.get("name"), f"{ENTITY}.name"),
        "description": data.get("description") or "",
        "allocation_type": enums.ALLOCATION_TYPE.decode(data.get("allocation_type"), f"{ENTITY}.allocation_type"),
        "vesting_conditions": conditions,
    }
    put_comments(result, data.get("comments"))
    return result

