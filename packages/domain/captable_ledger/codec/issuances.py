"""Issuance converters.

Four issuance kinds share a security header (id, date, security_id,
custom_id, stakeholder_id, approval dates, consideration text and
security law exemptions):
- Stock issuance
- Equity compensation issuance (options, RSUs, SARs)
- Convertible issuance (SAFEs, notes, other convertibles)
- Warrant issuance

Plan security issuances are normalized to equity compensation issuances
by the registry before they reach this module.
"""

from typing import Any, Dict, Mapping

from ..schemas.documents import IssuanceHeader
from . import enums
from .conversion import (
    decode_convertible_trigger,
    decode_triggers,
    decode_warrant_trigger,
    encode_convertible_trigger,
    encode_triggers,
    encode_warrant_trigger,
)
from .scalars import (
    clean_comments,
    decode_date,
    decode_numeric,
    decode_optional_date,
    encode_date,
    number_to_string,
    optional_date,
    optional_numeric,
    optional_string,
    put_comments,
    put_optional,
    unwrap_optional,
)
from .shared import (
    decode_exemptions,
    decode_monetary,
    decode_optional_monetary,
    decode_share_ranges,
    decode_termination_window,
    decode_vestings,
    encode_exemptions,
    encode_monetary,
    encode_optional_monetary,
    encode_share_ranges,
    encode_termination_window,
    encode_vestings,
)
from .validation import (
    optional_bool,
    optional_list,
    require_int,
    require_numeric,
    require_string,
    require_string_list,
    validate_list_items,
    validate_model,
)


# =============================================================================
# Shared Header
# =============================================================================

def encode_security_header(data: Mapping[str, Any], entity: str) -> Dict[str, Any]:
    """Fields common to every issuance, in ledger form."""
    header = validate_model(IssuanceHeader, data, entity)
    return {
        "id": header.id,
        "date": encode_date(data.get("date"), f"{entity}.date"),
        "security_id": header.security_id,
        "custom_id": header.custom_id,
        "stakeholder_id": header.stakeholder_id,
        "board_approval_date": optional_date(data.get("board_approval_date"), f"{entity}.board_approval_date"),
        "stockholder_approval_date": optional_date(
            data.get("stockholder_approval_date"), f"{entity}.stockholder_approval_date"),
        "consideration_text": header.consideration_text,
        "security_law_exemptions": encode_exemptions(
            data.get("security_law_exemptions"), f"{entity}.security_law_exemptions"),
    }


def decode_security_header(data: Mapping[str, Any], entity: str, object_type: str) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "object_type": object_type,
        "id": require_string(data.get("id"), f"{entity}.id"),
        "date": decode_date(data.get("date"), f"{entity}.date"),
        "security_id": require_string(data.get("security_id"), f"{entity}.security_id"),
        "custom_id": require_string(data.get("custom_id"), f"{entity}.custom_id"),
        "stakeholder_id": require_string(data.get("stakeholder_id"), f"{entity}.stakeholder_id"),
    }
    put_optional(result, "board_approval_date", decode_optional_date(data.get("board_approval_date")))
    put_optional(result, "stockholder_approval_date", decode_optional_date(data.get("stockholder_approval_date")))
    put_optional(result, "consideration_text", unwrap_optional(data.get("consideration_text")))
    put_optional(result, "security_law_exemptions", decode_exemptions(
        data.get("security_law_exemptions"), f"{entity}.security_law_exemptions"))
    return result


def _required_quantity(data: Mapping[str, Any], entity: str, key: str = "quantity") -> str:
    return number_to_string(require_numeric(data.get(key), f"{entity}.{key}"), f"{entity}.{key}")


def _optional_numeric_out(result: Dict[str, Any], data: Mapping[str, Any], key: str, entity: str) -> None:
    value = unwrap_optional(data.get(key))
    if value is not None and value != "":
        result[key] = decode_numeric(value, f"{entity}.{key}")


# =============================================================================
# Stock Issuance
# =============================================================================

def encode_stock_issuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable TX_STOCK_ISSUANCE → ``issuance_data``.

    Placeholder share ranges (0-0) and non-positive vestings are dropped.
    """
    entity = "stockIssuance"
    return {
        **encode_security_header(data, entity),
        "stock_class_id": require_string(data.get("stock_class_id"), f"{entity}.stock_class_id"),
        "stock_plan_id": optional_string(data.get("stock_plan_id")),
        "share_numbers_issued": encode_share_ranges(
            data.get("share_numbers_issued"), f"{entity}.share_numbers_issued"),
        "share_price": encode_monetary(data.get("share_price"), f"{entity}.share_price"),
        "quantity": _required_quantity(data, entity),
        "vesting_terms_id": optional_string(data.get("vesting_terms_id")),
        "vestings": encode_vestings(data.get("vestings"), f"{entity}.vestings"),
        "cost_basis": encode_optional_monetary(data.get("cost_basis"), f"{entity}.cost_basis"),
        "stock_legend_ids": require_string_list(data.get("stock_legend_ids"), f"{entity}.stock_legend_ids"),
        "issuance_type": enums.STOCK_ISSUANCE_TYPE.encode_optional(
            data.get("issuance_type"), f"{entity}.issuance_type"),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_issuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockIssuance"
    result = decode_security_header(data, entity, "TX_STOCK_ISSUANCE")
    result["stock_class_id"] = require_string(data.get("stock_class_id"), f"{entity}.stock_class_id")
    put_optional(result, "stock_plan_id", unwrap_optional(data.get("stock_plan_id")))
    put_optional(result, "share_numbers_issued", decode_share_ranges(
        data.get("share_numbers_issued"), f"{entity}.share_numbers_issued"))
    result["share_price"] = decode_monetary(data.get("share_price"), f"{entity}.share_price")
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    put_optional(result, "vesting_terms_id", unwrap_optional(data.get("vesting_terms_id")))
    put_optional(result, "vestings", decode_vestings(data.get("vestings"), f"{entity}.vestings"))
    put_optional(result, "cost_basis", decode_optional_monetary(data.get("cost_basis"), f"{entity}.cost_basis"))
    put_optional(result, "stock_legend_ids",
                 list(optional_list(data.get("stock_legend_ids"), f"{entity}.stock_legend_ids")))
    issuance_type = unwrap_optional(data.get("issuance_type"))
    if issuance_type:
        result["issuance_type"] = enums.STOCK_ISSUANCE_TYPE.decode(issuance_type, f"{entity}.issuance_type")
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Equity Compensation Issuance
# =============================================================================

def encode_equity_compensation_issuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable TX_EQUITY_COMPENSATION_ISSUANCE → ``issuance_data``."""
    entity = "equityCompensationIssuance"
    windows = optional_list(data.get("termination_exercise_windows"), f"{entity}.termination_exercise_windows")
    return {
        **encode_security_header(data, entity),
        "stock_plan_id": optional_string(data.get("stock_plan_id")),
        "stock_class_id": optional_string(data.get("stock_class_id")),
        "vesting_terms_id": optional_string(data.get("vesting_terms_id")),
        "compensation_type": enums.COMPENSATION_TYPE.encode(
            data.get("compensation_type"), f"{entity}.compensation_type"),
        "quantity": _required_quantity(data, entity),
        "exercise_price": encode_optional_monetary(data.get("exercise_price"), f"{entity}.exercise_price"),
        "base_price": encode_optional_monetary(data.get("base_price"), f"{entity}.base_price"),
        "early_exercisable": optional_bool(data.get("early_exercisable"), f"{entity}.early_exercisable"),
        "vestings": encode_vestings(data.get("vestings"), f"{entity}.vestings"),
        "expiration_date": optional_date(data.get("expiration_date"), f"{entity}.expiration_date"),
        "termination_exercise_windows": validate_list_items(
            windows, f"{entity}.termination_exercise_windows", encode_termination_window),
        "comments": clean_comments(data.get("comments")),
    }


def decode_equity_compensation_issuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "equityCompensationIssuance"
    result = decode_security_header(data, entity, "TX_EQUITY_COMPENSATION_ISSUANCE")
    result["compensation_type"] = enums.COMPENSATION_TYPE.decode(
        data.get("compensation_type"), f"{entity}.compensation_type")
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    for key in ("stock_plan_id", "stock_class_id", "vesting_terms_id"):
        put_optional(result, key, unwrap_optional(data.get(key)))
    put_optional(result, "exercise_price",
                 decode_optional_monetary(data.get("exercise_price"), f"{entity}.exercise_price"))
    put_optional(result, "base_price", decode_optional_monetary(data.get("base_price"), f"{entity}.base_price"))
    early = unwrap_optional(data.get("early_exercisable"))
    if early is not None:
        result["early_exercisable"] = optional_bool(early, f"{entity}.early_exercisable")
    put_optional(result, "vestings", decode_vestings(data.get("vestings"), f"{entity}.vestings"))
    put_optional(result, "expiration_date", decode_optional_date(data.get("expiration_date")))
    windows = optional_list(data.get("termination_exercise_windows"), f"{entity}.termination_exercise_windows")
    put_optional(result, "termination_exercise_windows", validate_list_items(
        windows, f"{entity}.termination_exercise_windows", decode_termination_window))
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Convertible Issuance
# =============================================================================

def encode_convertible_issuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable TX_CONVERTIBLE_ISSUANCE → ``issuance_data``.

    Each conversion trigger carries a conversion right whose mechanism is
    one of the seven convertible mechanism variants.
    """
    entity = "convertibleIssuance"
    return {
        **encode_security_header(data, entity),
        "investment_amount": encode_monetary(data.get("investment_amount"), f"{entity}.investment_amount"),
        "convertible_type": enums.CONVERTIBLE_TYPE.encode(
            data.get("convertible_type"), f"{entity}.convertible_type"),
        "conversion_triggers": encode_triggers(
            data.get("conversion_triggers"), f"{entity}.conversion_triggers", encode_convertible_trigger),
        "pro_rata": optional_numeric(data.get("pro_rata"), f"{entity}.pro_rata"),
        "seniority": str(require_int(data.get("seniority"), f"{entity}.seniority")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_convertible_issuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "convertibleIssuance"
    result = decode_security_header(data, entity, "TX_CONVERTIBLE_ISSUANCE")
    result["investment_amount"] = decode_monetary(data.get("investment_amount"), f"{entity}.investment_amount")
    result["convertible_type"] = enums.CONVERTIBLE_TYPE.decode(
        data.get("convertible_type"), f"{entity}.convertible_type")
    result["conversion_triggers"] = decode_triggers(
        data.get("conversion_triggers"), f"{entity}.conversion_triggers", decode_convertible_trigger)
    _optional_numeric_out(result, data, "pro_rata", entity)
    result["seniority"] = int(decode_numeric(data.get("seniority"), f"{entity}.seniority"))
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Warrant Issuance
# =============================================================================

def encode_warrant_issuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable TX_WARRANT_ISSUANCE → ``issuance_data``.

    ``quantity_source`` defaults to UNSPECIFIED when a quantity is given
    without one.
    """
    entity = "warrantIssuance"
    quantity = optional_numeric(data.get("quantity"), f"{entity}.quantity")
    source = data.get("quantity_source")
    if quantity is not None and not source:
        source = "UNSPECIFIED"
    return {
        **encode_security_header(data, entity),
        "quantity": quantity,
        "quantity_source": enums.QUANTITY_SOURCE.encode_optional(source, f"{entity}.quantity_source"),
        "exercise_price": encode_optional_monetary(data.get("exercise_price"), f"{entity}.exercise_price"),
        "purchase_price": encode_monetary(data.get("purchase_price"), f"{entity}.purchase_price"),
        "exercise_triggers": encode_triggers(
            optional_list(data.get("exercise_triggers"), f"{entity}.exercise_triggers"),
            f"{entity}.exercise_triggers", encode_warrant_trigger),
        "warrant_expiration_date": optional_date(
            data.get("warrant_expiration_date"), f"{entity}.warrant_expiration_date"),
        "vesting_terms_id": optional_string(data.get("vesting_terms_id")),
        "vestings": encode_vestings(data.get("vestings"), f"{entity}.vestings"),
        "comments": clean_comments(data.get("comments")),
    }


def decode_warrant_issuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "warrantIssuance"
    result = decode_security_header(data, entity, "TX_WARRANT_ISSUANCE")
    _optional_numeric_out(result, data, "quantity", entity)
    source = unwrap_optional(data.get("quantity_source"))
    if source:
        result["quantity_source"] = enums.QUANTITY_SOURCE.decode(source, f"{entity}.quantity_source")
    put_optional(result, "exercise_price",
                 decode_optional_monetary(data.get("exercise_price"), f"{entity}.exercise_price"))
    result["purchase_price"] = decode_monetary(data.get("purchase_price"), f"{entity}.purchase_price")
    put_optional(result, "exercise_triggers", decode_triggers(
        data.get("exercise_triggers"), f"{entity}.exercise_triggers", decode_warrant_trigger))
    put_optional(result, "warrant_expiration_date", decode_optional_date(data.get("warrant_expiration_date")))
    put_optional(result, "vesting_terms_id", unwrap_optional(data.get("vesting_terms_id")))
    put_optional(result, "vestings", decode_vestings(data.get("vestings"), f"{entity}.vestings"))
    put_comments(result, data.get("comments"))
    return result
