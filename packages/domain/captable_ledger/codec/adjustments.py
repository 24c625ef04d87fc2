"""Adjustment converters.

Issuer- and stock-class-level changes that do not act on a single security:
- Issuer / stock class authorized shares adjustments
- Stock class conversion ratio adjustment
- Stock class split
- Stock plan pool adjustment and return to pool
"""

from typing import Any, Dict, Mapping, Optional

from ..config import get_settings
from ..schemas.documents import TransactionHeader
from .scalars import (
    clean_comments,
    decode_date,
    decode_numeric,
    decode_optional_date,
    encode_date,
    number_to_string,
    optional_date,
    put_comments,
    put_optional,
)
from .shared import decode_ratio, encode_ratio
from .validation import require_mapping, require_numeric, require_string, validate_model

RATIO_ROUNDING_TAG = "OcfRoundingNormal"


def _encode_header(data: Mapping[str, Any], entity: str) -> Dict[str, Any]:
    header = validate_model(TransactionHeader, data, entity)
    return {
        "id": header.id,
        "date": encode_date(data.get("date"), f"{entity}.date"),
    }


def _decode_header(data: Mapping[str, Any], entity: str, object_type: str) -> Dict[str, Any]:
    return {
        "object_type": object_type,
        "id": require_string(data.get("id"), f"{entity}.id"),
        "date": decode_date(data.get("date"), f"{entity}.date"),
    }


def _encode_count(data: Mapping[str, Any], key: str, entity: str) -> str:
    path = f"{entity}.{key}"
    return number_to_string(require_numeric(data.get(key), path), path)


def _encode_approvals(data: Mapping[str, Any], entity: str) -> Dict[str, Optional[str]]:
    return {
        "board_approval_date": optional_date(
            data.get("board_approval_date"), f"{entity}.board_approval_date"),
        "stockholder_approval_date": optional_date(
            data.get("stockholder_approval_date"), f"{entity}.stockholder_approval_date"),
    }


def _decode_approvals(result: Dict[str, Any], data: Mapping[str, Any]) -> None:
    for key in ("board_approval_date", "stockholder_approval_date"):
        put_optional(result, key, decode_optional_date(data.get(key)))


# =============================================================================
# Authorized Shares
# =============================================================================

def encode_issuer_authorized_shares_adjustment(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "issuerAuthorizedSharesAdjustment"
    return {
        **_encode_header(data, entity),
        "issuer_id": require_string(data.get("issuer_id"), f"{entity}.issuer_id"),
        "new_shares_authorized": _encode_count(data, "new_shares_authorized", entity),
        **_encode_approvals(data, entity),
        "comments": clean_comments(data.get("comments")),
    }


def decode_issuer_authorized_shares_adjustment(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "issuerAuthorizedSharesAdjustment"
    result = _decode_header(data, entity, "TX_ISSUER_AUTHORIZED_SHARES_ADJUSTMENT")
    result["issuer_id"] = require_string(data.get("issuer_id"), f"{entity}.issuer_id")
    result["new_shares_authorized"] = decode_numeric(
        data.get("new_shares_authorized"), f"{entity}.new_shares_authorized")
    _decode_approvals(result, data)
    put_comments(result, data.get("comments"))
    return result


def encode_stock_class_authorized_shares_adjustment(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockClassAuthorizedSharesAdjustment"
    return {
        **_encode_header(data, entity),
        "stock_class_id": require_string(data.get("stock_class_id"), f"{entity}.stock_class_id"),
        "new_shares_authorized": _encode_count(data, "new_shares_authorized", entity),
        **_encode_approvals(data, entity),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_class_authorized_shares_adjustment(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockClassAuthorizedSharesAdjustment"
    result = _decode_header(data, entity, "TX_STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT")
    result["stock_class_id"] = require_string(data.get("stock_class_id"), f"{entity}.stock_class_id")
    result["new_shares_authorized"] = decode_numeric(
        data.get("new_shares_authorized"), f"{entity}.new_shares_authorized")
    _decode_approvals(result, data)
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Stock Class Ratio and Split
# =============================================================================

def encode_stock_class_conversion_ratio_adjustment(
    data: Mapping[str, Any],
    currency: Optional[str] = None,
) -> Dict[str, Any]:
    """Portable ratio adjustment → ``adjustment_data``.

    The ledger stores the new ratio inside a full ratio conversion
    mechanism, which also requires a conversion price and a rounding type.
    The portable event carries neither, so a zero price in ``currency``
    (default: ``LedgerBridgeSettings.default_currency``) and normal rounding
    are written.
    """
    entity = "stockClassConversionRatioAdjustment"
    currency = currency or get_settings().default_currency
    return {
        **_encode_header(data, entity),
        "stock_class_id": require_string(data.get("stock_class_id"), f"{entity}.stock_class_id"),
        "new_ratio_conversion_mechanism": {
            "conversion_price": {"amount": "0", "currency": currency},
            "ratio": encode_ratio(
                data.get("new_ratio_numerator"),
                data.get("new_ratio_denominator"),
                f"{entity}.new_ratio",
            ),
            "rounding_type": RATIO_ROUNDING_TAG,
        },
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_class_conversion_ratio_adjustment(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockClassConversionRatioAdjustment"
    result = _decode_header(data, entity, "TX_STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT")
    result["stock_class_id"] = require_string(data.get("stock_class_id"), f"{entity}.stock_class_id")
    mechanism = require_mapping(
        data.get("new_ratio_conversion_mechanism"), f"{entity}.new_ratio_conversion_mechanism")
    ratio = decode_ratio(mechanism.get("ratio"), f"{entity}.new_ratio_conversion_mechanism.ratio")
    result["new_ratio_numerator"] = ratio["numerator"]
    result["new_ratio_denominator"] = ratio["denominator"]
    put_comments(result, data.get("comments"))
    return result


def encode_stock_class_split(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockClassSplit"
    return {
        **_encode_header(data, entity),
        "stock_class_id": require_string(data.get("stock_class_id"), f"{entity}.stock_class_id"),
        "split_ratio": encode_ratio(
            data.get("split_ratio_numerator"),
            data.get("split_ratio_denominator"),
            f"{entity}.split_ratio",
        ),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_class_split(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockClassSplit"
    result = _decode_header(data, entity, "TX_STOCK_CLASS_SPLIT")
    result["stock_class_id"] = require_string(data.get("stock_class_id"), f"{entity}.stock_class_id")
    ratio = decode_ratio(data.get("split_ratio"), f"{entity}.split_ratio")
    result["split_ratio_numerator"] = ratio["numerator"]
    result["split_ratio_denominator"] = ratio["denominator"]
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Stock Plan Pool
# =============================================================================

def encode_stock_plan_pool_adjustment(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockPlanPoolAdjustment"
    return {
        **_encode_header(data, entity),
        "stock_plan_id": require_string(data.get("stock_plan_id"), f"{entity}.stock_plan_id"),
        "shares_reserved": _encode_count(data, "shares_reserved", entity),
        **_encode_approvals(data, entity),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_plan_pool_adjustment(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockPlanPoolAdjustment"
    result = _decode_header(data, entity, "TX_STOCK_PLAN_POOL_ADJUSTMENT")
    result["stock_plan_id"] = require_string(data.get("stock_plan_id"), f"{entity}.stock_plan_id")
    result["shares_reserved"] = decode_numeric(data.get("shares_reserved"), f"{entity}.shares_reserved")
    _decode_approvals(result, data)
    put_comments(result, data.get("comments"))
    return result


def encode_stock_plan_return_to_pool(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockPlanReturnToPool"
    return {
        **_encode_header(data, entity),
        "stock_plan_id": require_string(data.get("stock_plan_id"), f"{entity}.stock_plan_id"),
        "quantity": _encode_count(data, "quantity", entity),
        "reason_text": require_string(data.get("reason_text"), f"{entity}.reason_text"),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_plan_return_to_pool(data: Mapping[str, Any]) -> Dict[str, Any]:
    entity = "stockPlanReturnToPool"
    result = _decode_header(data, entity, "TX_STOCK_PLAN_RETURN_TO_POOL")
    result["stock_plan_id"] = require_string(data.get("stock_plan_id"), f"{entity}.stock_plan_id")
    result["quantity"] = decode_numeric(data.get("quantity"), f"{entity}.quantity")
    result["reason_text"] = require_string(data.get("reason_text"), f"{entity}.reason_text")
    put_comments(result, data.get("comments"))
    return result
