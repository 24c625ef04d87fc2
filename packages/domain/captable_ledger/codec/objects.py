"""Core object converters.

Objects describe the cap table's reference data rather than events:
- Issuer (single per cap table)
- Stakeholders
- Stock classes (with conversion rights)
- Stock plans
- Stock legend templates
- Valuations
- Documents

Each ``encode_*`` validates the portable document against its payload model
in ``schemas.documents`` and returns the record stored under the entity's
``*_data`` key; each ``decode_*`` does the reverse and tags the result with
its ``object_type``.
"""

from typing import Any, Dict, Mapping, Optional

from ..errors import ValidationError
from ..schemas.documents import (
    FileDocument,
    IssuerDocument,
    StakeholderDocument,
    StockClassDocument,
    StockLegendTemplateDocument,
    StockPlanDocument,
    ValuationDocument,
)
from . import enums
from .conversion import decode_stock_class_conversion_right, encode_stock_class_conversion_right
from .scalars import (
    clean_comments,
    decode_date,
    decode_numeric,
    decode_optional_date,
    encode_date,
    normalize_singular_to_array,
    number_to_string,
    optional_date,
    optional_numeric,
    put_comments,
    put_optional,
    unwrap_optional,
)
from .shared import (
    decode_address,
    decode_contact_lists,
    decode_email,
    decode_initial_shares,
    decode_monetary,
    decode_name,
    decode_optional_monetary,
    decode_phone,
    decode_tax_id,
    encode_address,
    encode_contact_lists,
    encode_email,
    encode_initial_shares,
    encode_monetary,
    encode_name,
    encode_optional_monetary,
    encode_phone,
    encode_tax_id,
)
from .validation import (
    optional_list,
    require_mapping,
    require_string,
    require_string_list,
    validate_list_items,
    validate_model,
)


def _decode_optional_numeric(value: Any, field_path: str) -> Optional[str]:
    value = unwrap_optional(value)
    if value is None or value == "":
        return None
    return decode_numeric(value, field_path)


# =============================================================================
# Issuer
# =============================================================================

def encode_issuer(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable ISSUER → ``issuer_data``."""
    doc = validate_model(IssuerDocument, data, "issuer")
    initial = data.get("initial_shares_authorized")
    return {
        "id": doc.id,
        "legal_name": doc.legal_name,
        "country_of_formation": doc.country_of_formation,
        "dba": doc.dba,
        "formation_date": encode_date(data.get("formation_date"), "issuer.formation_date"),
        "country_subdivision_of_formation": doc.country_subdivision_of_formation,
        "country_subdivision_name_of_formation": doc.country_subdivision_name_of_formation,
        "tax_ids": validate_list_items(
            optional_list(data.get("tax_ids"), "issuer.tax_ids"), "issuer.tax_ids", encode_tax_id),
        "email": encode_email(data["email"], "issuer.email") if doc.email else None,
        "phone": encode_phone(data["phone"], "issuer.phone") if doc.phone else None,
        "address": encode_address(data["address"], "issuer.address") if doc.address else None,
        "initial_shares_authorized": (
            encode_initial_shares(initial, "issuer.initial_shares_authorized") if initial is not None else None
        ),
        "comments": clean_comments(data.get("comments")),
    }


def decode_issuer(data: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "object_type": "ISSUER",
        "id": require_string(data.get("id"), "issuer.id"),
        "legal_name": require_string(data.get("legal_name"), "issuer.legal_name"),
        "formation_date": decode_date(data.get("formation_date"), "issuer.formation_date"),
        "country_of_formation": require_string(data.get("country_of_formation"), "issuer.country_of_formation"),
    }
    put_optional(result, "dba", unwrap_optional(data.get("dba")))
    put_optional(result, "country_subdivision_of_formation",
                 unwrap_optional(data.get("country_subdivision_of_formation")))
    put_optional(result, "country_subdivision_name_of_formation",
                 unwrap_optional(data.get("country_subdivision_name_of_formation")))
    tax_ids = optional_list(data.get("tax_ids"), "issuer.tax_ids")
    put_optional(result, "tax_ids", validate_list_items(tax_ids, "issuer.tax_ids", decode_tax_id))
    email = unwrap_optional(data.get("email"))
    if email:
        result["email"] = decode_email(email, "issuer.email")
    phone = unwrap_optional(data.get("phone"))
    if phone:
        result["phone"] = decode_phone(phone, "issuer.phone")
    address = unwrap_optional(data.get("address"))
    if address:
        result["address"] = decode_address(address, "issuer.address")
    initial = data.get("initial_shares_authorized")
    if unwrap_optional(initial) is not None:
        result["initial_shares_authorized"] = decode_initial_shares(initial, "issuer.initial_shares_authorized")
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Stakeholder
# =============================================================================

def encode_stakeholder(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable STAKEHOLDER → ``stakeholder_data``.

    ``contact_info`` with neither phones nor emails is stored as null. The
    deprecated singular ``current_relationship`` is used when
    ``current_relationships`` is absent or empty.
    """
    doc = validate_model(StakeholderDocument, data, "stakeholder")
    encoded_primary = None
    if doc.primary_contact:
        primary = data["primary_contact"]
        encoded_primary = {
            "name": encode_name(primary.get("name"), "stakeholder.primary_contact.name"),
            **encode_contact_lists(primary, "stakeholder.primary_contact"),
        }

    contact = None
    if doc.contact_info:
        contact = encode_contact_lists(data["contact_info"], "stakeholder.contact_info")
        if not contact["phone_numbers"] and not contact["emails"]:
            contact = None

    relationships = normalize_singular_to_array(
        doc.current_relationship, doc.current_relationships,
        "current_relationship", "current_relationships", f"stakeholder {doc.id}",
    )
    return {
        "id": doc.id,
        "name": encode_name(data.get("name"), "stakeholder.name"),
        "stakeholder_type": enums.STAKEHOLDER_TYPE.encode(doc.stakeholder_type, "stakeholder.stakeholder_type"),
        "issuer_assigned_id": doc.issuer_assigned_id,
        "primary_contact": encoded_primary,
        "contact_info": contact,
        "addresses": validate_list_items(
            optional_list(data.get("addresses"), "stakeholder.addresses"), "stakeholder.addresses", encode_address),
        "tax_ids": validate_list_items(
            optional_list(data.get("tax_ids"), "stakeholder.tax_ids"), "stakeholder.tax_ids", encode_tax_id),
        "comments": clean_comments(data.get("comments")),
        "current_relationships": [
            enums.STAKEHOLDER_RELATIONSHIP.encode(rel, f"stakeholder.current_relationships[{index}]")
            for index, rel in enumerate(relationships)
        ],
        "current_status": enums.STAKEHOLDER_STATUS.encode_optional(
            doc.current_status, "stakeholder.current_status"),
    }


def decode_stakeholder(data: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "object_type": "STAKEHOLDER",
        "id": require_string(data.get("id"), "stakeholder.id"),
        "name": decode_name(data.get("name"), "stakeholder.name"),
        "stakeholder_type": enums.STAKEHOLDER_TYPE.decode(
            data.get("stakeholder_type"), "stakeholder.stakeholder_type"),
    }
    put_optional(result, "issuer_assigned_id", unwrap_optional(data.get("issuer_assigned_id")))

    relationships = optional_list(data.get("current_relationships"), "stakeholder.current_relationships")
    put_optional(result, "current_relationships", [
        enums.STAKEHOLDER_RELATIONSHIP.decode(rel, f"stakeholder.current_relationships[{index}]")
        for index, rel in enumerate(relationships)
    ])
    status = unwrap_optional(data.get("current_status"))
    if status:
        result["current_status"] = enums.STAKEHOLDER_STATUS.decode(status, "stakeholder.current_status")

    primary = unwrap_optional(data.get("primary_contact"))
    if primary:
        primary = require_mapping(primary, "stakeholder.primary_contact")
        result["primary_contact"] = {
            "name": decode_name(primary.get("name"), "stakeholder.primary_contact.name"),
            **decode_contact_lists(primary, "stakeholder.primary_contact"),
        }
    contact = unwrap_optional(data.get("contact_info"))
    if contact:
        contact = require_mapping(contact, "stakeholder.contact_info")
        put_optional(result, "contact_info", decode_contact_lists(contact, "stakeholder.contact_info") or None)

    addresses = optional_list(data.get("addresses"), "stakeholder.addresses")
    put_optional(result, "addresses", validate_list_items(addresses, "stakeholder.addresses", decode_address))
    tax_ids = optional_list(data.get("tax_ids"), "stakeholder.tax_ids")
    put_optional(result, "tax_ids", validate_list_items(tax_ids, "stakeholder.tax_ids", decode_tax_id))
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Stock Class
# =============================================================================

def encode_stock_class(data: Mapping[str, Any], strict: Optional[bool] = None) -> Dict[str, Any]:
    """Portable STOCK_CLASS → ``stock_class_data``."""
    doc = validate_model(StockClassDocument, data, "stockClass")
    return {
        "id": doc.id,
        "name": doc.name,
        "class_type": enums.STOCK_CLASS_TYPE.encode(doc.class_type, "stockClass.class_type"),
        "default_id_prefix": doc.default_id_prefix,
        "initial_shares_authorized": encode_initial_shares(
            doc.initial_shares_authorized, "stockClass.initial_shares_authorized"),
        "votes_per_share": number_to_string(doc.votes_per_share, "stockClass.votes_per_share"),
        "seniority": number_to_string(doc.seniority, "stockClass.seniority"),
        "board_approval_date": optional_date(data.get("board_approval_date"), "stockClass.board_approval_date"),
        "stockholder_approval_date": optional_date(
            data.get("stockholder_approval_date"), "stockClass.stockholder_approval_date"),
        "par_value": encode_optional_monetary(data.get("par_value"), "stockClass.par_value"),
        "price_per_share": encode_optional_monetary(data.get("price_per_share"), "stockClass.price_per_share"),
        "conversion_rights": [
            encode_stock_class_conversion_right(right, f"stockClass.conversion_rights[{index}]", strict)
            for index, right in enumerate(doc.conversion_rights or [])
        ],
        "liquidation_preference_multiple": optional_numeric(
            data.get("liquidation_preference_multiple"), "stockClass.liquidation_preference_multiple"),
        "participation_cap_multiple": optional_numeric(
            data.get("participation_cap_multiple"), "stockClass.participation_cap_multiple"),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_class(data: Mapping[str, Any], strict: Optional[bool] = None) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "object_type": "STOCK_CLASS",
        "id": require_string(data.get("id"), "stockClass.id"),
        "name": require_string(data.get("name"), "stockClass.name"),
        "class_type": enums.STOCK_CLASS_TYPE.decode(data.get("class_type"), "stockClass.class_type"),
        "default_id_prefix": require_string(data.get("default_id_prefix"), "stockClass.default_id_prefix"),
        "initial_shares_authorized": decode_initial_shares(
            data.get("initial_shares_authorized"), "stockClass.initial_shares_authorized"),
        "votes_per_share": decode_numeric(data.get("votes_per_share"), "stockClass.votes_per_share"),
        "seniority": decode_numeric(data.get("seniority"), "stockClass.seniority"),
    }
    put_optional(result, "board_approval_date", decode_optional_date(data.get("board_approval_date")))
    put_optional(result, "stockholder_approval_date", decode_optional_date(data.get("stockholder_approval_date")))
    put_optional(result, "par_value", decode_optional_monetary(data.get("par_value"), "stockClass.par_value"))
    put_optional(result, "price_per_share",
                 decode_optional_monetary(data.get("price_per_share"), "stockClass.price_per_share"))
    rights = optional_list(data.get("conversion_rights"), "stockClass.conversion_rights")
    put_optional(result, "conversion_rights", [
        decode_stock_class_conversion_right(right, f"stockClass.conversion_rights[{index}]", strict)
        for index, right in enumerate(rights)
    ])
    put_optional(result, "liquidation_preference_multiple", _decode_optional_numeric(
        data.get("liquidation_preference_multiple"), "stockClass.liquidation_preference_multiple"))
    put_optional(result, "participation_cap_multiple", _decode_optional_numeric(
        data.get("participation_cap_multiple"), "stockClass.participation_cap_multiple"))
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Stock Plan
# =============================================================================

def encode_stock_plan(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable STOCK_PLAN → ``stock_plan_data``.

    Accepts the deprecated singular ``stock_class_id`` when
    ``stock_class_ids`` is absent or empty.
    """
    doc = validate_model(StockPlanDocument, data, "stockPlan")
    class_ids = normalize_singular_to_array(
        doc.stock_class_id, doc.stock_class_ids, "stock_class_id", "stock_class_ids", f"stock plan {doc.id}",
    )
    return {
        "id": doc.id,
        "plan_name": doc.plan_name,
        "board_approval_date": optional_date(data.get("board_approval_date"), "stockPlan.board_approval_date"),
        "stockholder_approval_date": optional_date(
            data.get("stockholder_approval_date"), "stockPlan.stockholder_approval_date"),
        "initial_shares_reserved": number_to_string(doc.initial_shares_reserved, "stockPlan.initial_shares_reserved"),
        "default_cancellation_behavior": enums.PLAN_CANCELLATION_BEHAVIOR.encode_optional(
            doc.default_cancellation_behavior, "stockPlan.default_cancellation_behavior"),
        "stock_class_ids": require_string_list(class_ids, "stockPlan.stock_class_ids"),
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_plan(data: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "object_type": "STOCK_PLAN",
        "id": require_string(data.get("id"), "stockPlan.id"),
        "plan_name": require_string(data.get("plan_name"), "stockPlan.plan_name"),
        "initial_shares_reserved": decode_numeric(
            data.get("initial_shares_reserved"), "stockPlan.initial_shares_reserved"),
    }
    class_ids = optional_list(data.get("stock_class_ids"), "stockPlan.stock_class_ids")
    put_optional(result, "stock_class_ids", list(class_ids))
    put_optional(result, "board_approval_date", decode_optional_date(data.get("board_approval_date")))
    put_optional(result, "stockholder_approval_date", decode_optional_date(data.get("stockholder_approval_date")))
    behavior = unwrap_optional(data.get("default_cancellation_behavior"))
    if behavior:
        result["default_cancellation_behavior"] = enums.PLAN_CANCELLATION_BEHAVIOR.decode(
            behavior, "stockPlan.default_cancellation_behavior")
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Stock Legend Template
# =============================================================================

def encode_stock_legend_template(data: Mapping[str, Any]) -> Dict[str, Any]:
    doc = validate_model(StockLegendTemplateDocument, data, "stockLegendTemplate")
    return {
        "id": doc.id,
        "name": doc.name,
        "text": doc.text,
        "comments": clean_comments(data.get("comments")),
    }


def decode_stock_legend_template(data: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "object_type": "STOCK_LEGEND_TEMPLATE",
        "id": require_string(data.get("id"), "stockLegendTemplate.id"),
        "name": require_string(data.get("name"), "stockLegendTemplate.name"),
        "text": require_string(data.get("text"), "stockLegendTemplate.text"),
    }
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Valuation
# =============================================================================

def encode_valuation(data: Mapping[str, Any]) -> Dict[str, Any]:
    doc = validate_model(ValuationDocument, data, "valuation")
    return {
        "id": doc.id,
        "stock_class_id": doc.stock_class_id,
        "provider": doc.provider,
        "board_approval_date": optional_date(data.get("board_approval_date"), "valuation.board_approval_date"),
        "stockholder_approval_date": optional_date(
            data.get("stockholder_approval_date"), "valuation.stockholder_approval_date"),
        "price_per_share": encode_monetary(data.get("price_per_share"), "valuation.price_per_share"),
        "effective_date": encode_date(data.get("effective_date"), "valuation.effective_date"),
        "valuation_type": enums.VALUATION_TYPE.encode(doc.valuation_type, "valuation.valuation_type"),
        "comments": clean_comments(data.get("comments")),
    }


def decode_valuation(data: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "object_type": "VALUATION",
        "id": require_string(data.get("id"), "valuation.id"),
        "stock_class_id": require_string(data.get("stock_class_id"), "valuation.stock_class_id"),
        "price_per_share": decode_monetary(data.get("price_per_share"), "valuation.price_per_share"),
        "effective_date": decode_date(data.get("effective_date"), "valuation.effective_date"),
        "valuation_type": enums.VALUATION_TYPE.decode(data.get("valuation_type"), "valuation.valuation_type"),
    }
    put_optional(result, "provider", unwrap_optional(data.get("provider")))
    put_optional(result, "board_approval_date", decode_optional_date(data.get("board_approval_date")))
    put_optional(result, "stockholder_approval_date", decode_optional_date(data.get("stockholder_approval_date")))
    put_comments(result, data.get("comments"))
    return result


# =============================================================================
# Document
# =============================================================================

def _encode_reference(value: Any, field_path: str) -> Dict[str, str]:
    reference = require_mapping(value, field_path)
    return {
        "object_type": enums.OBJECT_REFERENCE_TYPE.encode(reference.get("object_type"), f"{field_path}.object_type"),
        "object_id": require_string(reference.get("object_id"), f"{field_path}.object_id"),
    }


def _decode_reference(value: Any, field_path: str) -> Dict[str, str]:
    reference = require_mapping(value, field_path)
    return {
        "object_type": enums.OBJECT_REFERENCE_TYPE.decode(reference.get("object_type"), f"{field_path}.object_type"),
        "object_id": require_string(reference.get("object_id"), f"{field_path}.object_id"),
    }


def encode_document(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Portable DOCUMENT → ``document_data``.

    Raises:
        ValidationError: If neither ``path`` nor ``uri`` is given
    """
    doc = validate_model(FileDocument, data, "document")
    if doc.path is None and doc.uri is None:
        raise ValidationError("document.path", "Either path or uri is required")
    references = optional_list(data.get("related_objects"), "document.related_objects")
    return {
        "id": doc.id,
        "path": doc.path,
        "uri": doc.uri,
        "md5": doc.md5,
        "related_objects": validate_list_items(references, "document.related_objects", _encode_reference),
        "comments": clean_comments(data.get("comments")),
    }


def decode_document(data: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "object_type": "DOCUMENT",
        "id": require_string(data.get("id"), "document.id"),
    }
    put_optional(result, "path", unwrap_optional(data.get("path")))
    put_optional(result, "uri", unwrap_optional(data.get("uri")))
    result["md5"] = require_string(data.get("md5"), "document.md5")
    references = optional_list(data.get("related_objects"), "document.related_objects")
    put_optional(result, "related_objects",
                 validate_list_items(references, "document.related_objects", _decode_reference))
    put_comments(result, data.get("comments"))
    return result
