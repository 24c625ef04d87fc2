"""Conversion rights, mechanisms and triggers.

Three families share these converters:
- Stock class conversion rights (flat record, optionals wrapped in Some)
- Convertible conversion triggers (7 mechanism variants: SAFE, note,
  custom, fixed amount, percent of capitalization, share price based,
  valuation based)
- Warrant exercise triggers (5 mechanism variants, the convertible set
  minus SAFE and note; the right is wrapped as ``OcfRightWarrant``)

Mechanisms are tagged unions on the ledger (``{"tag": ..., "value": {...}}``)
and ``{"type": ...}`` documents on the portable side.
"""

from typing import Any, Callable, Dict, List, Optional

from ..errors import ErrorCode, ParseError, ValidationError
from . import enums
from .enums import EnumDictionary
from .scalars import (
    decode_numeric,
    ledger_time_to_date,
    number_to_string,
    optional_date,
    optional_numeric,
    optional_string,
    put_optional,
    unwrap_optional,
)
from .shared import (
    decode_capitalization_rules,
    decode_optional_monetary,
    decode_ratio,
    encode_capitalization_rules,
    encode_optional_monetary,
    encode_ratio,
)
from .validation import (
    optional_bool,
    optional_list,
    require_bool,
    require_list,
    require_mapping,
    require_numeric,
    require_string,
    validate_list_items,
)


def _some(value: Any) -> Optional[Dict[str, Any]]:
    return None if value is None else {"tag": "Some", "value": value}


# =============================================================================
# Stock Class Conversion Rights
# =============================================================================

def encode_stock_class_conversion_right(
    value: Any, field_path: str, strict: Optional[bool] = None
) -> Dict[str, Any]:
    """Encode one stock class conversion right.

    The ratio may be given as ``{"numerator", "denominator"}``, as
    ``ratio_numerator``/``ratio_denominator``, or as a scalar ``ratio``
    (denominator 1).
    """
    right = require_mapping(value, field_path)
    ratio = right.get("ratio")
    if isinstance(ratio, dict):
        numerator, denominator = ratio.get("numerator"), ratio.get("denominator")
    else:
        numerator = right.get("ratio_numerator", ratio)
        denominator = right.get("ratio_denominator", 1 if ratio is not None else None)

    encoded_ratio = None
    if numerator is not None and denominator is not None:
        encoded_ratio = encode_ratio(numerator, denominator, f"{field_path}.ratio")

    return {
        "type_": require_string(right.get("type"), f"{field_path}.type"),
        "conversion_mechanism": enums.STOCK_CLASS_CONVERSION_MECHANISM.encode(
            right.get("conversion_mechanism"), f"{field_path}.conversion_mechanism", strict),
        "conversion_trigger": enums.STOCK_CLASS_CONVERSION_TRIGGER.encode(
            right.get("conversion_trigger"), f"{field_path}.conversion_trigger", strict),
        "converts_to_stock_class_id": require_string(
            right.get("converts_to_stock_class_id"), f"{field_path}.converts_to_stock_class_id"),
        "ratio": _some(encoded_ratio),
        "percent_of_capitalization": _some(
            optional_numeric(right.get("percent_of_capitalization"), f"{field_path}.percent_of_capitalization")),
        "conversion_price": _some(
            encode_optional_monetary(right.get("conversion_price"), f"{field_path}.conversion_price")),
        "reference_share_price": _some(
            encode_optional_monetary(right.get("reference_share_price"), f"{field_path}.reference_share_price")),
        "reference_valuation_price_per_share": _some(encode_optional_monetary(
            right.get("reference_valuation_price_per_share"), f"{field_path}.reference_valuation_price_per_share")),
        "discount_rate": _some(optional_numeric(right.get("discount_rate"), f"{field_path}.discount_rate")),
        "valuation_cap": _some(
            encode_optional_monetary(right.get("valuation_cap"), f"{field_path}.valuation_cap")),
        "floor_price_per_share": _some(
            encode_optional_monetary(right.get("floor_price_per_share"), f"{field_path}.floor_price_per_share")),
        "ceiling_price_per_share": _some(
            encode_optional_monetary(right.get("ceiling_price_per_share"), f"{field_path}.ceiling_price_per_share")),
        "custom_description": _some(optional_string(right.get("custom_description"))),
        "expires_at": optional_date(right.get("expires_at"), f"{field_path}.expires_at"),
    }


def decode_stock_class_conversion_right(
    value: Any, field_path: str, strict: Optional[bool] = None
) -> Dict[str, Any]:
    right = require_mapping(value, field_path)
    trigger = right.get("conversion_trigger")
    if isinstance(trigger, dict):
        trigger = trigger.get("tag")

    result: Dict[str, Any] = {
        "type": require_string(right.get("type_"), f"{field_path}.type_"),
        "conversion_mechanism": enums.STOCK_CLASS_CONVERSION_MECHANISM.decode(
            right.get("conversion_mechanism"), f"{field_path}.conversion_mechanism", strict),
        "conversion_trigger": enums.STOCK_CLASS_CONVERSION_TRIGGER.decode(
            trigger, f"{field_path}.conversion_trigger", strict),
        "converts_to_stock_class_id": require_string(
            right.get("converts_to_stock_class_id"), f"{field_path}.converts_to_stock_class_id"),
    }
    ratio = unwrap_optional(right.get("ratio"))
    if ratio:
        result["ratio"] = decode_ratio(ratio, f"{field_path}.ratio")
    for key in ("percent_of_capitalization", "discount_rate"):
        raw = unwrap_optional(right.get(key))
        if raw is not None:
            result[key] = decode_numeric(raw, f"{field_path}.{key}")
    for key in (
        "conversion_price",
        "reference_share_price",
        "reference_valuation_price_per_share",
        "valuation_cap",
        "floor_price_per_share",
        "ceiling_price_per_share",
    ):
        put_optional(result, key, decode_optional_monetary(right.get(key), f"{field_path}.{key}"))
    put_optional(result, "custom_description", unwrap_optional(right.get("custom_description")))
    expires_at = unwrap_optional(right.get("expires_at"))
    if expires_at:
        result["expires_at"] = ledger_time_to_date(expires_at)
    return result


# =============================================================================
# Mechanism Variants
# =============================================================================

def _encode_interest_rate(value: Any, field_path: str) -> Dict[str, Any]:
    rate = require_mapping(value, field_path)
    return {
        "rate": number_to_string(require_numeric(rate.get("rate"), f"{field_path}.rate"), f"{field_path}.rate"),
        "accrual_start_date": optional_date(rate.get("accrual_start_date"), f"{field_path}.accrual_start_date"),
        "accrual_end_date": optional_date(rate.get("accrual_end_date"), f"{field_path}.accrual_end_date"),
    }


def _decode_interest_rate(value: Any, field_path: str) -> Dict[str, Any]:
    rate = require_mapping(value, field_path)
    result: Dict[str, Any] = {"rate": decode_numeric(rate.get("rate"), f"{field_path}.rate")}
    for key in ("accrual_start_date", "accrual_end_date"):
        raw = unwrap_optional(rate.get(key))
        if raw:
            result[key] = ledger_time_to_date(raw)
    return result


def _encode_optional_ratio(value: Any, field_path: str) -> Optional[Dict[str, str]]:
    if not value:
        return None
    ratio = require_mapping(value, field_path)
    return encode_ratio(ratio.get("numerator"), ratio.get("denominator"), field_path)


def _required(mechanism: Dict[str, Any], key: str, field_path: str, label: str) -> Any:
    value = mechanism.get(key)
    if value is None or value == "":
        raise ValidationError(
            f"{field_path}.{key}", f"{label} requires {key}", received_value=value,
        )
    return value


def _encode_safe(m: Dict[str, Any], path: str) -> Dict[str, Any]:
    return {
        "conversion_discount": optional_numeric(m.get("conversion_discount"), f"{path}.conversion_discount"),
        "conversion_valuation_cap": encode_optional_monetary(
            m.get("conversion_valuation_cap"), f"{path}.conversion_valuation_cap"),
        "exit_multiple": _encode_optional_ratio(m.get("exit_multiple"), f"{path}.exit_multiple"),
        "conversion_mfn": optional_bool(m.get("conversion_mfn"), f"{path}.conversion_mfn"),
        "conversion_timing": enums.CONVERSION_TIMING.encode_optional(
            m.get("conversion_timing"), f"{path}.conversion_timing"),
        "capitalization_definition": optional_string(m.get("capitalization_definition")),
        "capitalization_definition_rules": encode_capitalization_rules(
            m.get("capitalization_definition_rules"), f"{path}.capitalization_definition_rules"),
    }


def _encode_note(m: Dict[str, Any], path: str) -> Dict[str, Any]:
    label = "CONVERTIBLE_NOTE_CONVERSION"
    rates = require_list(_required(m, "interest_rates", path, label), f"{path}.interest_rates")
    return {
        "interest_rates": validate_list_items(rates, f"{path}.interest_rates", _encode_interest_rate),
        "day_count_convention": enums.DAY_COUNT.encode(
            _required(m, "day_count_convention", path, label), f"{path}.day_count_convention"),
        "interest_payout": enums.INTEREST_PAYOUT.encode(
            _required(m, "interest_payout", path, label), f"{path}.interest_payout"),
        "interest_accrual_period": enums.ACCRUAL_PERIOD.encode(
            _required(m, "interest_accrual_period", path, label), f"{path}.interest_accrual_period"),
        "compounding_type": enums.COMPOUNDING_TYPE.encode(
            _required(m, "compounding_type", path, label), f"{path}.compounding_type"),
        "conversion_discount": optional_numeric(m.get("conversion_discount"), f"{path}.conversion_discount"),
        "conversion_valuation_cap": encode_optional_monetary(
            m.get("conversion_valuation_cap"), f"{path}.conversion_valuation_cap"),
        "capitalization_definition": optional_string(m.get("capitalization_definition")),
        "capitalization_definition_rules": encode_capitalization_rules(
            m.get("capitalization_definition_rules"), f"{path}.capitalization_definition_rules"),
        "exit_multiple": _encode_optional_ratio(m.get("exit_multiple"), f"{path}.exit_multiple"),
        "conversion_mfn": optional_bool(m.get("conversion_mfn"), f"{path}.conversion_mfn"),
    }


def _encode_custom(m: Dict[str, Any], path: str) -> Dict[str, Any]:
    description = (
        m.get("custom_conversion_description")
        or m.get("custom_description")
        or m.get("description")
    )
    if not description:
        raise ValidationError(
            f"{path}.custom_conversion_description",
            "CUSTOM_CONVERSION requires custom_conversion_description",
        )
    return {"custom_conversion_description": require_string(description, f"{path}.custom_conversion_description")}


def _encode_fixed_amount(m: Dict[str, Any], path: str) -> Dict[str, Any]:
    quantity = _required(m, "converts_to_quantity", path, "FIXED_AMOUNT_CONVERSION")
    return {"converts_to_quantity": number_to_string(quantity, f"{path}.converts_to_quantity")}


def _encode_percent_capitalization(m: Dict[str, Any], path: str) -> Dict[str, Any]:
    percent = _required(m, "converts_to_percent", path, "FIXED_PERCENT_OF_CAPITALIZATION_CONVERSION")
    return {
        "converts_to_percent": number_to_string(percent, f"{path}.converts_to_percent"),
        "capitalization_definition": optional_string(m.get("capitalization_definition")),
        "capitalization_definition_rules": encode_capitalization_rules(
            m.get("capitalization_definition_rules"), f"{path}.capitalization_definition_rules"),
    }


def _encode_share_price_based(m: Dict[str, Any], path: str) -> Dict[str, Any]:
    return {
        "description": require_string(m.get("description"), f"{path}.description"),
        "discount": bool(m.get("discount")),
        "discount_percentage": optional_numeric(m.get("discount_percentage"), f"{path}.discount_percentage"),
        "discount_amount": encode_optional_monetary(m.get("discount_amount"), f"{path}.discount_amount"),
    }


def _encode_valuation_based(m: Dict[str, Any], path: str) -> Dict[str, Any]:
    return {
        "valuation_type": require_string(
            _required(m, "valuation_type", path, "VALUATION_BASED_CONVERSION"), f"{path}.valuation_type"),
        "valuation_amount": encode_optional_monetary(m.get("valuation_amount"), f"{path}.valuation_amount"),
        "capitalization_definition": optional_string(m.get("capitalization_definition")),
        "capitalization_definition_rules": encode_capitalization_rules(
            m.get("capitalization_definition_rules"), f"{path}.capitalization_definition_rules"),
    }


def _decode_mechanism_fields(value: Dict[str, Any], path: str) -> Dict[str, Any]:
    """Decode the union of all mechanism payload fields, omitting absent ones."""
    result: Dict[str, Any] = {}
    for key in ("conversion_discount", "converts_to_quantity", "converts_to_percent", "discount_percentage"):
        raw = unwrap_optional(value.get(key))
        if raw is not None and raw != "":
            result[key] = decode_numeric(raw, f"{path}.{key}")
    for key in ("conversion_valuation_cap", "valuation_amount", "discount_amount"):
        put_optional(result, key, decode_optional_monetary(value.get(key), f"{path}.{key}"))
    exit_multiple = unwrap_optional(value.get("exit_multiple"))
    if exit_multiple:
        result["exit_multiple"] = decode_ratio(exit_multiple, f"{path}.exit_multiple")
    for key in ("conversion_mfn",):
        raw = unwrap_optional(value.get(key))
        if raw is not None:
            result[key] = require_bool(raw, f"{path}.{key}")
    if unwrap_optional(value.get("discount")):
        result["discount"] = True
    for key in ("capitalization_definition", "custom_conversion_description", "description", "valuation_type"):
        put_optional(result, key, unwrap_optional(value.get(key)))
    rules = decode_capitalization_rules(value.get("capitalization_definition_rules"),
                                        f"{path}.capitalization_definition_rules")
    put_optional(result, "capitalization_definition_rules", rules)

    timing = unwrap_optional(value.get("conversion_timing"))
    if timing is not None:
        result["conversion_timing"] = enums.CONVERSION_TIMING.decode(timing, f"{path}.conversion_timing")
    if "interest_rates" in value:
        rates = optional_list(value.get("interest_rates"), f"{path}.interest_rates")
        result["interest_rates"] = validate_list_items(rates, f"{path}.interest_rates", _decode_interest_rate)
    for key, dictionary in (
        ("day_count_convention", enums.DAY_COUNT),
        ("interest_payout", enums.INTEREST_PAYOUT),
        ("interest_accrual_period", enums.ACCRUAL_PERIOD),
        ("compounding_type", enums.COMPOUNDING_TYPE),
    ):
        raw = unwrap_optional(value.get(key))
        if raw is not None:
            result[key] = dictionary.decode(raw, f"{path}.{key}")
    return result


MechanismEncoder = Callable[[Dict[str, Any], str], Dict[str, Any]]

CONVERTIBLE_MECHANISM_ENCODERS: Dict[str, MechanismEncoder] = {
    "SAFE_CONVERSION": _encode_safe,
    "CONVERTIBLE_NOTE_CONVERSION": _encode_note,
    "CUSTOM_CONVERSION": _encode_custom,
    "FIXED_AMOUNT_CONVERSION": _encode_fixed_amount,
    "FIXED_PERCENT_OF_CAPITALIZATION_CONVERSION": _encode_percent_capitalization,
    "SHARE_PRICE_BASED_CONVERSION": _encode_share_price_based,
    "VALUATION_BASED_CONVERSION": _encode_valuation_based,
}


WARRANT_MECHANISM_ENCODERS: Dict[str, MechanismEncoder] = {
    literal: CONVERTIBLE_MECHANISM_ENCODERS[literal] for literal in enums.WARRANT_MECHANISM.literals
}


def encode_mechanism(
    value: Any,
    field_path: str,
    dictionary: EnumDictionary,
    encoders: Dict[str, MechanismEncoder],
) -> Dict[str, Any]:
    """Encode a ``{"type": ...}`` mechanism into its tagged union."""
    if value is None:
        raise ValidationError(field_path, "conversion_mechanism is required", received_value=value)
    mechanism = dict(require_mapping(value, field_path))
    literal = mechanism.get("type")
    tag = dictionary.encode(literal, f"{field_path}.type")
    return {"tag": tag, "value": encoders[literal](mechanism, field_path)}


def decode_mechanism(value: Any, field_path: str, dictionary: EnumDictionary) -> Dict[str, Any]:
    union = require_mapping(value, field_path)
    literal = dictionary.decode(union.get("tag"), f"{field_path}.tag")
    payload = union.get("value") or {}
    if not isinstance(payload, dict):
        raise ParseError(
            f"Mechanism payload at '{field_path}' is not an object",
            source=field_path, code=ErrorCode.SCHEMA_MISMATCH, received_value=payload,
        )
    return {"type": literal, **_decode_mechanism_fields(payload, field_path)}


# =============================================================================
# Conversion Triggers
# =============================================================================

def _encode_right_body(right: Dict[str, Any], field_path: str, right_type: str,
                       dictionary: EnumDictionary, encoders: Dict[str, MechanismEncoder]) -> Dict[str, Any]:
    return {
        "type_": right_type,
        "conversion_mechanism": encode_mechanism(
            right.get("conversion_mechanism"), f"{field_path}.conversion_mechanism", dictionary, encoders),
        "converts_to_future_round": optional_bool(
            right.get("converts_to_future_round"), f"{field_path}.converts_to_future_round"),
        "converts_to_stock_class_id": optional_string(right.get("converts_to_stock_class_id")),
    }


def _decode_right_body(right: Dict[str, Any], field_path: str, dictionary: EnumDictionary) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "type": require_string(right.get("type_"), f"{field_path}.type_"),
        "conversion_mechanism": decode_mechanism(
            right.get("conversion_mechanism"), f"{field_path}.conversion_mechanism", dictionary),
    }
    future_round = unwrap_optional(right.get("converts_to_future_round"))
    if future_round is not None:
        result["converts_to_future_round"] = require_bool(future_round, f"{field_path}.converts_to_future_round")
    put_optional(result, "converts_to_stock_class_id", unwrap_optional(right.get("converts_to_stock_class_id")))
    return result


def _encode_trigger_common(trigger: Dict[str, Any], field_path: str) -> Dict[str, Any]:
    return {
        "type_": enums.CONVERSION_TRIGGER_TYPE.encode(trigger.get("type"), f"{field_path}.type"),
        "trigger_id": require_string(trigger.get("trigger_id"), f"{field_path}.trigger_id"),
        "nickname": optional_string(trigger.get("nickname")),
        "trigger_description": optional_string(trigger.get("trigger_description")),
        "trigger_date": optional_date(trigger.get("trigger_date"), f"{field_path}.trigger_date"),
        "trigger_condition": optional_string(trigger.get("trigger_condition")),
    }


def _decode_trigger_common(trigger: Dict[str, Any], field_path: str) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "type": enums.CONVERSION_TRIGGER_TYPE.decode(trigger.get("type_"), f"{field_path}.type_"),
        "trigger_id": require_string(trigger.get("trigger_id"), f"{field_path}.trigger_id"),
    }
    put_optional(result, "nickname", unwrap_optional(trigger.get("nickname")))
    put_optional(result, "trigger_description", unwrap_optional(trigger.get("trigger_description")))
    trigger_date = unwrap_optional(trigger.get("trigger_date"))
    if trigger_date:
        result["trigger_date"] = ledger_time_to_date(trigger_date)
    put_optional(result, "trigger_condition", unwrap_optional(trigger.get("trigger_condition")))
    return result


def encode_convertible_trigger(value: Any, field_path: str) -> Dict[str, Any]:
    """Encode a convertible conversion trigger (right is a bare record)."""
    trigger = require_mapping(value, field_path)
    right = require_mapping(trigger.get("conversion_right"), f"{field_path}.conversion_right")
    encoded = _encode_trigger_common(trigger, field_path)
    encoded["conversion_right"] = _encode_right_body(
        right, f"{field_path}.conversion_right", "CONVERTIBLE_CONVERSION_RIGHT",
        enums.CONVERTIBLE_MECHANISM, CONVERTIBLE_MECHANISM_ENCODERS,
    )
    return encoded


def decode_convertible_trigger(value: Any, field_path: str) -> Dict[str, Any]:
    trigger = require_mapping(value, field_path)
    right = require_mapping(trigger.get("conversion_right"), f"{field_path}.conversion_right")
    if right.get("tag") == "OcfRightConvertible":
        right = require_mapping(right.get("value"), f"{field_path}.conversion_right.value")
    decoded = _decode_trigger_common(trigger, field_path)
    decoded["conversion_right"] = _decode_right_body(
        right, f"{field_path}.conversion_right", enums.CONVERTIBLE_MECHANISM)
    return decoded


def encode_warrant_trigger(value: Any, field_path: str) -> Dict[str, Any]:
    """Encode a warrant exercise trigger (right wrapped as OcfRightWarrant)."""
    trigger = require_mapping(value, field_path)
    right = require_mapping(trigger.get("conversion_right"), f"{field_path}.conversion_right")
    encoded = _encode_trigger_common(trigger, field_path)
    encoded["conversion_right"] = {
        "tag": enums.CONVERSION_RIGHT_TYPE.encode("WARRANT_CONVERSION_RIGHT", f"{field_path}.conversion_right"),
        "value": _encode_right_body(
            right, f"{field_path}.conversion_right", "WARRANT_CONVERSION_RIGHT",
            enums.WARRANT_MECHANISM, WARRANT_MECHANISM_ENCODERS,
        ),
    }
    return encoded


def decode_warrant_trigger(value: Any, field_path: str) -> Dict[str, Any]:
    trigger = require_mapping(value, field_path)
    right = require_mapping(trigger.get("conversion_right"), f"{field_path}.conversion_right")
    if "tag" in right:
        enums.CONVERSION_RIGHT_TYPE.decode(right.get("tag"), f"{field_path}.conversion_right.tag")
        right = require_mapping(right.get("value"), f"{field_path}.conversion_right.value")
    decoded = _decode_trigger_common(trigger, field_path)
    decoded["conversion_right"] = _decode_right_body(
        right, f"{field_path}.conversion_right", enums.WARRANT_MECHANISM)
    return decoded


TriggerCodec = Callable[[Any, str], Dict[str, Any]]


def encode_triggers(value: Any, field_path: str, encoder: TriggerCodec) -> List[Dict[str, Any]]:
    return validate_list_items(require_list(value, field_path), field_path, encoder)


def decode_triggers(value: Any, field_path: str, decoder: TriggerCodec) -> List[Dict[str, Any]]:
    return validate_list_items(optional_list(value, field_path), field_path, decoder)
