"""Security transaction converters.

Transactions that act on an existing security (identified by
``security_id``), grouped by family:

- Transfers, cancellations, acceptances, retractions (stock, equity
  compensation, convertible, warrant)
- Exercises (equity compensation, warrant)
- Conversions (stock, convertible)
- Equity compensation release and repricing
- Stock reissuance, repurchase and consolidation

Convertibles carry a monetary ``amount`` where other securities carry a
``quantity``. Families with several security kinds are built from one
factory per family so every kind is converted identically.
"""

from typing import Any, Callable, Dict, Mapping, Tuple

from ..errors import ErrorCode, ValidationError
from ..schemas.documents import SecurityTransactionHeader, TransactionHeader
from .scalars import (
    clean_comments,
    decode_date,
    decode_numeric,
    decode_optional_date,
    encode_date,
    normalize_singular_to_array,
    number_to_string,
    optional_date,
    optional_string,
    put_comments,
    put_optional,
    unwrap_optional,
)
from .shared import decode_monetary, encode_monetary
from .validation import (
    optional_list,
    require_numeric,
    require_string,
    require_string_list,
    validate_model,
)

Encoder = Callable[[Mapping[str, Any]], Dict[str, Any]]
Decoder = Callable[[Mapping[str, Any]], Dict[str, Any]]


# =============================================================================
# Field Helpers
# =============================================================================

def _encode_base(data: Mapping[str, Any], entity: str) -> Dict[str, Any]:
    header = validate_model(SecurityTransactionHeader, data, entity)
    return {
        "id": header.id,
        "date": encode_date(data.get("date"), f"{entity}.date"),
        "security_id": header.security_id,
    }


def _decode_base(data: Mapping[str, Any], entity: str, object_type: str) -> Dict[str, Any]:
    return {
        "object_type": object_type,
        "id": require_string(data.get("id"), f"{entity}.id"),
        "date": decode_date(data.get("date"), f"{entity}.date"),
        "security_id": require_string(data.get("security_id"), f"{entity}.security_id"),
    }


def _encode_quantity(data: Mapping[str, Any], entity: str) -> str:
    return number_to_string(require_numeric(data.get("quantity"), f"{entity}.quantity"), f"{entity}.quantity")


def _resulting_ids(data: Mapping[str, Any], entity: str) -> list:
    return require_string_list(
        data.get("resulting_security_ids"), f"{entity}.resulting_security_ids", non_empty=True)


def _decode_optional_fields(result: Dict[str, Any], data: Mapping[str, Any], *keys: str) -> None:
    for key in keys:
        put_optional(result, key, unwrap_optional(data.get(key)))


def _encode_amount_or_quantity(data: Mapping[str, Any], entity: str, monetary: bool) -> Dict[str, Any]:
    if monetary:
        return {"amount": encode_monetary(data.get("amount"), f"{entity}.amount")}
    return {"quantity": _encode_quantity(data, entity)}


def _decode_amount_or_quantity(data: Mapping[str, Any], entity: str, monetary: bool) -> Dict[str, Any]:
    if monetary:
        return {"amount": decode_monetary(data.get("amount"), f"{entity}.amount")}
    return {"quantity": decode_numeric(data.get("quantity"), f"{entity}.quantity")}


# =============================================================================
# Transfers
# =============================================================================

def transfer_codec(entity: str, object_type: str, monetary: bool = False) -> Tuple[Encoder, Decoder]:
    """Build the converters for one security kind's transfers.

    Args:
        entity: Entity type used in field paths (e.g. 'stockTransfer')
        object_type: Portable object type (e.g. 'TX_STOCK_TRANSFER')
        monetary: Convertibles transfer an ``amount`` instead of a quantity
    """

    def encode(data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            **_encode_base(data, entity),
            **_encode_amount_or_quantity(data, entity, monetary),
            "resulting_security_ids": _resulting_ids(data, entity),
            "balance_security_id": optional_string(data.get("balance_security_id")),
            "consideration_text": optional_string(data.get("consideration_text")),
            "comments": clean_comments(data.get("comments")),
        }

    def decode(data: Mapping[str, Any]) -> Dict[str, Any]:
        result = _decode_base(data, entity, object_type)
        result.update(_decode_amount_or_quantity(data, entity, monetary))
        result["resulting_security_ids"] = _resulting_ids(data, entity)
        _decode_optional_fields(result, data, "balance_security_id", "consideration_text")
        put_comments(result, data.get("comments"))
        return result

    return encode, decode


encode_stock_transfer, decode_stock_transfer = transfer_codec("stockTransfer", "TX_STOCK_TRANSFER")
encode_equity_compensation_transfer, decode_equity_compensation_transfer = transfer_codec(
    "equityCompensationTransfer", "TX_EQUITY_COMPENSATION_TRANSFER")
encode_convertible_transfer, decode_convertible_transfer = transfer_codec(
    "convertibleTransfer", "TX_CONVERTIBLE_TRANSFER", monetary=True)
encode_warrant_transfer, decode_warrant_transfer = transfer_codec("warrantTransfer", "TX_WARRANT_TRANSFER")


# =============================================================================
# Cancellations
# =============================================================================

def cancellation_codec(entity: str, object_type: str, monetary: bool = False) -> Tuple[Encoder, Decoder]:
    """Build the converters for one security kind's cancellations."""

    def encode(data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            **_encode_base(data, entity),
            **_encode_amount_or_quantity(data, entity, monetary),
            "reason_text": require_string(data.get("reason_text"), f"{entity}.reason_text"),
            "balance_security_id": optional_string(data.get("balance_security_id")),
            "comments": clean_comments(data.get("comments")),
        }

    def decode(data: Mapping[str, Any]) -> Dict[str, Any]:
        result = _decode_base(data, entity, object_type)
        result.update(_decode_amount_or_quantity(data, entity, monetary))
        result["reason_text"] = require_string(data.get("reason_text"), f"{entity}.reason_text")
        _decode_optional_fields(result, data, "balance_security_id")
        put_comments(result, data.get("comments"))
        return result

    return encode, decode


encode_stock_cancellation, decode_stock_cancellation = cancellation_codec(
    "stockCancellation", "TX_STOCK_CANCELLATION")
encode_equity_compensation_cancellation, decode_equity_compensation_cancellation = cancellation_codec(
    "equityCompensationCancellation", "TX_EQUITY_COMPENSATION_CANCELLATION")
encode_convertible_cancellation, decode_convertible_cancellation = cancellation_codec(
    "convertibleCancellation", "TX_CONVERTIBLE_CANCELLATION", monetary=True)
encode_warrant_cancellation, decode_warrant_cancellation = cancellation_codec(
    "warrantCancellation", "TX_WARRANT_CANCELLATION")


# =============================================================================
# Acceptances and Retractions
# =============================================================================

def acceptance_codec(entity: str, object_type: str) -> Tuple[Encoder, Decoder]:
    """Acceptances carry only the base fields and comments."""

    def encode(data: Mapping[str, Any]) -> Dict[str, Any]:
        return {**_encode_base(data, entity), "comments": clean_comments(data.get("comments"))}

    def decode(data: Mapping[str, Any]) -> Dict[str, Any]:
        result = _decode_base(data, entity, object_type)
        put_comments(result, data.get("comments"))
        return result

    return encode, decode


def retraction_codec(entity: str, object_type: str) -> Tuple[Encoder, Decoder]:
    """Retractions add a required ``reason_text``."""

    def encode(data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            **_encode_base(data, entity),
            "reason_text": require_string(data.get("reason_text"), f"{entity}.reason_text"),
            "comments": clean_comments(data.get("comments")),
        }

    def decode(data: Mapping[str, Any]) -> Dict[str, Any]:
        result = _decode_base(data, entity, object_type)
        result["reason_text"] = require_string(data.get("reason_text"), f"{entity}.reason_text")
        put_comments(result, data.get("comments"))
        return result

    return encode, decode


encode_stock_acceptance, decode_stock_acceptance = acceptance_codec("stockAcceptance", "TX_STOCK_ACCEPTANCE")
encode_equity_compensation_acceptance, decode_equity_compensation_acceptance = acceptance_codec(
    "equityCompensationAcceptance", "TX_EQUITY_COMPENSATION_ACCEPTANCE")
encode_convertible_acceptance, decode_convertible_acceptance = acceptance_codec(
    "convertibleAcceptance", "TX_CONVERTIBLE_ACCEPTANCE")
encode_warrant_acceptance, decode_warrant_acceptance = acceptance_codec(
    "warrantAcceptance", "TX_WARRANT_ACCEPTANCE")

encode_stock_retraction, decode_stock_retraction = retraction_codec("stockRetraction", "TX_STOCK_RETRACTION")
encode_equity_compensation_retraction, decode_equity_compensation_retraction = retraction_codec(
    "equityCompensationRetraction", "TX_EQUITY_COMPENSATION_RETRACTION")
encode_convertible_retraction, decode_convertible_retraction = retraction_codec(
    "convertibleRetraction", "TX_CONVERTIBLE_RETRACTION")
encode_warrant_retraction, decode_warrant_retraction = retraction_codec(
    "warrantRetraction", "TX_WARRANT_RETRACTION")


# =============================================================================
# Exercises
# =============================================================================

def encode_equity_compensation_exercise(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "equityCompensationExercise"
    return {
        **_encode_base(data, entity),
        "quantity": _encode_quantity(data, entity),
        "consideration_text": optional_string(data.get("consideration_text")),
        "resulting_security_ids": _resulting_ids(data, entity),
        "balance_security_id": optional_string(data.get("balance_security_id")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_equity_compensation_exercise(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "equityCompensationExercise"
    result = _decode_base(data, entity, "TX_EQUITY_COMPENSATION_EXERCISE")
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    result["resulting_security_ids"] = _resulting_ids(data, entity)
    _decode_optional_fields(result, data, "consideration_text", "balance_security_id")
    put_comments(result, data.get("comments"))
    return result


def encode_warrant_exercise(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Warrant exercises name the exercise trigger that was used."""
    entity = "warrantExercise"
    return {
        **_encode_base(data, entity),
        "trigger_id": require_string(data.get("trigger_id"), f"{entity}.trigger_id"),
        "quantity": _encode_quantity(data, entity),
        "resulting_security_ids": _resulting_ids(data, entity),
        "balance_security_id": optional_string(data.get("balance_security_id")),
        "consideration_text": optional_string(data.get("consideration_text")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_warrant_exercise(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "warrantExercise"
    result = _decode_base(data, entity, "TX_WARRANT_EXERCISE")
    put_optional(result, "trigger_id", unwrap_optional(data.get("trigger_id")))
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    result["resulting_security_ids"] = _resulting_ids(data, entity)
    _decode_optional_fields(result, data, "balance_security_id", "consideration_text")
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Conversions
# =============================================================================

def encode_stock_conversion(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockConversion"
    return {
        **_encode_base(data, entity),
        "quantity": _encode_quantity(data, entity),
        "resulting_security_ids": _resulting_ids(data, entity),
        "balance_security_id": optional_string(data.get("balance_security_id")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_conversion(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockConversion"
    result = _decode_base(data, entity, "TX_STOCK_CONVERSION")
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    result["resulting_security_ids"] = _resulting_ids(data, entity)
    _decode_optional_fields(result, data, "balance_security_id")
    put_comments(result, data.get("comments"))
    return result


def encode_convertible_conversion(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "convertibleConversion"
    return {
        **_encode_base(data, entity),
        "resulting_security_ids": _resulting_ids(data, entity),
        "balance_security_id": optional_string(data.get("balance_security_id")),
        "trigger_id": optional_string(data.get("trigger_id")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_convertible_conversion(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "convertibleConversion"
    result = _decode_base(data, entity, "TX_CONVERTIBLE_CONVERSION")
    result["resulting_security_ids"] = _resulting_ids(data, entity)
    _decode_optional_fields(result, data, "balance_security_id", "trigger_id")
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Equity Compensation Release and Repricing
# =============================================================================

def encode_equity_compensation_release(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "equityCompensationRelease"
    return {
        **_encode_base(data, entity),
        "quantity": _encode_quantity(data, entity),
        "resulting_security_ids": _resulting_ids(data, entity),
        "balance_security_id": optional_string(data.get("balance_security_id")),
        "settlement_date": optional_date(data.get("settlement_date"), f"{entity}.settlement_date"),
        "consideration_text": optional_string(data.get("consideration_text")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_equity_compensation_release(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "equityCompensationRelease"
    result = _decode_base(data, entity, "TX_EQUITY_COMPENSATION_RELEASE")
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    result["resulting_security_ids"] = _resulting_ids(data, entity)
    _decode_optional_fields(result, data, "balance_security_id", "consideration_text")
    put_optional(result, "settlement_date", decode_optional_date(data.get("settlement_date")))
    put_comments(result, data.get("comments"))
    return result


def encode_equity_compensation_repricing(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "equityCompensationRepricing"
    return {
        **_encode_base(data, entity),
        "resulting_security_ids": require_string_list(
            data.get("resulting_security_ids"), f"{entity}.resulting_security_ids"),
        "comments": clean_comments(data.get("comments")),
    }


def decode_equity_compensation_repricing(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "equityCompensationRepricing"
    result = _decode_base(data, entity, "TX_EQUITY_COMPENSATION_REPRICING")
    put_optional(result, "resulting_security_ids", require_string_list(
        data.get("resulting_security_ids"), f"{entity}.resulting_security_ids"))
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Stock Reissuance, Repurchase and Consolidation
# =============================================================================

def encode_stock_reissuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockReissuance"
    return {
        **_encode_base(data, entity),
        "resulting_security_ids": _resulting_ids(data, entity),
        "reason_text": optional_string(data.get("reason_text")),
        "split_transaction_id": optional_string(data.get("split_transaction_id")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_reissuance(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockReissuance"
    result = _decode_base(data, entity, "TX_STOCK_REISSUANCE")
    result["resulting_security_ids"] = _resulting_ids(data, entity)
    _decode_optional_fields(result, data, "reason_text", "split_transaction_id")
    put_comments(result, data.get("comments"))
    return result


def encode_stock_repurchase(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockRepurchase"
    return {
        **_encode_base(data, entity),
        "quantity": _encode_quantity(data, entity),
        "price": encode_monetary(data.get("price"), f"{entity}.price"),
        "balance_security_id": optional_string(data.get("balance_security_id")),
        "consideration_text": optional_string(data.get("consideration_text")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_repurchase(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockRepurchase"
    result = _decode_base(data, entity, "TX_STOCK_REPURCHASE")
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    result["price"] = decode_monetary(data.get("price"), f"{entity}.price")
    _decode_optional_fields(result, data, "balance_security_id", "consideration_text")
    put_comments(result, data.get("comments"))
    return result


def encode_stock_consolidation(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable TX_STOCK_CONSOLIDATION → ``consolidation_data``.

    The ledger stores a single ``resulting_security_id``; the portable list
    must therefore hold exactly one id.
    """
    entity = "stockConsolidation"
    header = validate_model(TransactionHeader, data, entity)
    resulting = normalize_singular_to_array(
        data.get("resulting_security_id"), data.get("resulting_security_ids"),
        "resulting_security_id", "resulting_security_ids", f"consolidation {header.id}",
    )
    resulting = require_string_list(resulting, f"{entity}.resulting_security_ids", non_empty=True)
    if len(resulting) != 1:
        raise ValidationError(
            f"{entity}.resulting_security_ids",
            "Consolidation must produce exactly one resulting security",
            code=ErrorCode.INVALID_FORMAT, received_value=resulting,
        )
    return {
        "id": header.id,
        "date": encode_date(data.get("date"), f"{entity}.date"),
        "security_ids": require_string_list(data.get("security_ids"), f"{entity}.security_ids", non_empty=True),
        "resulting_security_id": resulting[0],
        "reason_text": optional_string(data.get("reason_text")),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_consolidation(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockConsolidation"
    result: Dict[str, Any] = {
        "object_type": "TX_STOCK_CONSOLIDATION",
        "id": require_string(data.get("id"), f"{entity}.id"),
        "date": decode_date(data.get("date"), f"{entity}.date"),
        "security_ids": list(optional_list(data.get("security_ids"), f"{entity}.security_ids")),
        "resulting_security_ids": [
            require_string(data.get("resulting_security_id"), f"{entity}.resulting_security_id"),
        ],
    }
    _decode_optional_fields(result, data, "reason_text")
    put_comments(result, data.get("comments"))
    return result
