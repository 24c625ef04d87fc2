"""Entity registry and dispatch.

Every entity variant is registered once with:
- its entity type (camelCase name used by the ledger bridge, e.g. 'stockIssuance')
- its portable ``object_type`` (e.g. 'TX_STOCK_ISSUANCE')
- the ``*_data`` field wrapping its record in the contract create argument
- its encoder and decoder
- the manifest collection it is assembled into

Plan security entity types are aliases of the equity compensation variants:
the ledger stores them as equity compensation contracts.

Usage:
    inner = encode("stockTransfer", transfer)
    portable = decode("stockTransfer", create_argument["transfer_data"])
    portable = decode_create_argument("stockTransfer", create_argument)
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..errors import ErrorCode, ParseError, ValidationError
from . import adjustments, events, issuances, objects, transactions, vesting
from .validation import require_mapping, require_string

Converter = Callable[..., Dict[str, Any]]

TRANSACTIONS = "transactions"


# =============================================================================
# Entity Specs
# =============================================================================

@dataclass(frozen=True)
class EntitySpec:
    """Registration of one entity variant.

    Attributes:
        entity_type: camelCase entity type
        object_type: Portable discriminator
        wrapper_key: Field of the create argument holding the ledger record
        encoder: Portable → ledger record
        decoder: Ledger record → portable
        collection: Manifest collection ('issuer', 'stock_classes', ..., 'transactions')
        strict_aware: Converters accept a ``strict`` argument
    """

    entity_type: str
    object_type: str
    wrapper_key: str
    encoder: Converter
    decoder: Converter
    collection: str = TRANSACTIONS
    strict_aware: bool = False

    @property
    def is_transaction(self) -> bool:
        return self.collection == TRANSACTIONS


_SPECS: List[EntitySpec] = [
    # Core objects
    EntitySpec("issuer", "ISSUER", "issuer_data",
               objects.encode_issuer, objects.decode_issuer, "issuer"),
    EntitySpec("stakeholder", "STAKEHOLDER", "stakeholder_data",
               objects.encode_stakeholder, objects.decode_stakeholder, "stakeholders"),
    EntitySpec("stockClass", "STOCK_CLASS", "stock_class_data",
               objects.encode_stock_class, objects.decode_stock_class, "stock_classes", strict_aware=True),
    EntitySpec("stockPlan", "STOCK_PLAN", "stock_plan_data",
               objects.encode_stock_plan, objects.decode_stock_plan, "stock_plans"),
    EntitySpec("stockLegendTemplate", "STOCK_LEGEND_TEMPLATE", "stock_legend_template_data",
               objects.encode_stock_legend_template, objects.decode_stock_legend_template,
               "stock_legend_templates"),
    EntitySpec("vestingTerms", "VESTING_TERMS", "vesting_terms_data",
               vesting.encode_vesting_terms, vesting.decode_vesting_terms, "vesting_terms", strict_aware=True),
    EntitySpec("valuation", "VALUATION", "valuation_data",
               objects.encode_valuation, objects.decode_valuation, "valuations"),
    EntitySpec("document", "DOCUMENT", "document_data",
               objects.encode_document, objects.decode_document, "documents"),

    # Issuances
    EntitySpec("stockIssuance", "TX_STOCK_ISSUANCE", "issuance_data",
               issuances.encode_stock_issuance, issuances.decode_stock_issuance),
    EntitySpec("equityCompensationIssuance", "TX_EQUITY_COMPENSATION_ISSUANCE", "issuance_data",
               issuances.encode_equity_compensation_issuance, issuances.decode_equity_compensation_issuance),
    EntitySpec("convertibleIssuance", "TX_CONVERTIBLE_ISSUANCE", "issuance_data",
               issuances.encode_convertible_issuance, issuances.decode_convertible_issuance),
    EntitySpec("warrantIssuance", "TX_WARRANT_ISSUANCE", "issuance_data",
               issuances.encode_warrant_issuance, issuances.decode_warrant_issuance),

    # Transfers
    EntitySpec("stockTransfer", "TX_STOCK_TRANSFER", "transfer_data",
               transactions.encode_stock_transfer, transactions.decode_stock_transfer),
    EntitySpec("equityCompensationTransfer", "TX_EQUITY_COMPENSATION_TRANSFER", "transfer_data",
               transactions.encode_equity_compensation_transfer,
               transactions.decode_equity_compensation_transfer),
    EntitySpec("convertibleTransfer", "TX_CONVERTIBLE_TRANSFER", "transfer_data",
               transactions.encode_convertible_transfer, transactions.decode_convertible_transfer),
    EntitySpec("warrantTransfer", "TX_WARRANT_TRANSFER", "transfer_data",
               transactions.encode_warrant_transfer, transactions.decode_warrant_transfer),

    # Cancellations
    EntitySpec("stockCancellation", "TX_STOCK_CANCELLATION", "cancellation_data",
               transactions.encode_stock_cancellation, transactions.decode_stock_cancellation),
    EntitySpec("equityCompensationCancellation", "TX_EQUITY_COMPENSATION_CANCELLATION", "cancellation_data",
               transactions.encode_equity_compensation_cancellation,
               transactions.decode_equity_compensation_cancellation),
    EntitySpec("convertibleCancellation", "TX_CONVERTIBLE_CANCELLATION", "cancellation_data",
               transactions.encode_convertible_cancellation, transactions.decode_convertible_cancellation),
    EntitySpec("warrantCancellation", "TX_WARRANT_CANCELLATION", "cancellation_data",
               transactions.encode_warrant_cancellation, transactions.decode_warrant_cancellation),

    # Acceptances
    EntitySpec("stockAcceptance", "TX_STOCK_ACCEPTANCE", "acceptance_data",
               transactions.encode_stock_acceptance, transactions.decode_stock_acceptance),
    EntitySpec("equityCompensationAcceptance", "TX_EQUITY_COMPENSATION_ACCEPTANCE", "acceptance_data",
               transactions.encode_equity_compensation_acceptance,
               transactions.decode_equity_compensation_acceptance),
    EntitySpec("convertibleAcceptance", "TX_CONVERTIBLE_ACCEPTANCE", "acceptance_data",
               transactions.encode_convertible_acceptance, transactions.decode_convertible_acceptance),
    EntitySpec("warrantAcceptance", "TX_WARRANT_ACCEPTANCE", "acceptance_data",
               transactions.encode_warrant_acceptance, transactions.decode_warrant_acceptance),

    # Retractions
    EntitySpec("stockRetraction", "TX_STOCK_RETRACTION", "retraction_data",
               transactions.encode_stock_retraction, transactions.decode_stock_retraction),
    EntitySpec("equityCompensationRetraction", "TX_EQUITY_COMPENSATION_RETRACTION", "retraction_data",
               transactions.encode_equity_compensation_retraction,
               transactions.decode_equity_compensation_retraction),
    EntitySpec("convertibleRetraction", "TX_CONVERTIBLE_RETRACTION", "retraction_data",
               transactions.encode_convertible_retraction, transactions.decode_convertible_retraction),
    EntitySpec("warrantRetraction", "TX_WARRANT_RETRACTION", "retraction_data",
               transactions.encode_warrant_retraction, transactions.decode_warrant_retraction),

    # Exercises and conversions
    EntitySpec("equityCompensationExercise", "TX_EQUITY_COMPENSATION_EXERCISE", "exercise_data",
               transactions.encode_equity_compensation_exercise,
               transactions.decode_equity_compensation_exercise),
    EntitySpec("warrantExercise", "TX_WARRANT_EXERCISE", "exercise_data",
               transactions.encode_warrant_exercise, transactions.decode_warrant_exercise),
    EntitySpec("stockConversion", "TX_STOCK_CONVERSION", "conversion_data",
               transactions.encode_stock_conversion, transactions.decode_stock_conversion),
    EntitySpec("convertibleConversion", "TX_CONVERTIBLE_CONVERSION", "conversion_data",
               transactions.encode_convertible_conversion, transactions.decode_convertible_conversion),

    # Equity compensation lifecycle
    EntitySpec("equityCompensationRelease", "TX_EQUITY_COMPENSATION_RELEASE", "release_data",
               transactions.encode_equity_compensation_release,
               transactions.decode_equity_compensation_release),
    EntitySpec("equityCompensationRepricing", "TX_EQUITY_COMPENSATION_REPRICING", "repricing_data",
               transactions.encode_equity_compensation_repricing,
               transactions.decode_equity_compensation_repricing),

    # Stock lifecycle
    EntitySpec("stockReissuance", "TX_STOCK_REISSUANCE", "reissuance_data",
               transactions.encode_stock_reissuance, transactions.decode_stock_reissuance),
    EntitySpec("stockRepurchase", "TX_STOCK_REPURCHASE", "repurchase_data",
               transactions.encode_stock_repurchase, transactions.decode_stock_repurchase),
    EntitySpec("stockConsolidation", "TX_STOCK_CONSOLIDATION", "consolidation_data",
               transactions.encode_stock_consolidation, transactions.decode_stock_consolidation),

    # Adjustments
    EntitySpec("issuerAuthorizedSharesAdjustment", "TX_ISSUER_AUTHORIZED_SHARES_ADJUSTMENT", "adjustment_data",
               adjustments.encode_issuer_authorized_shares_adjustment,
               adjustments.decode_issuer_authorized_shares_adjustment),
    EntitySpec("stockClassAuthorizedSharesAdjustment", "TX_STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT",
               "adjustment_data",
               adjustments.encode_stock_class_authorized_shares_adjustment,
               adjustments.decode_stock_class_authorized_shares_adjustment),
    EntitySpec("stockClassConversionRatioAdjustment", "TX_STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT",
               "adjustment_data",
               adjustments.encode_stock_class_conversion_ratio_adjustment,
               adjustments.decode_stock_class_conversion_ratio_adjustment),
    EntitySpec("stockClassSplit", "TX_STOCK_CLASS_SPLIT", "split_data",
               adjustments.encode_stock_class_split, adjustments.decode_stock_class_split),
    EntitySpec("stockPlanPoolAdjustment", "TX_STOCK_PLAN_POOL_ADJUSTMENT", "adjustment_data",
               adjustments.encode_stock_plan_pool_adjustment, adjustments.decode_stock_plan_pool_adjustment),
    EntitySpec("stockPlanReturnToPool", "TX_STOCK_PLAN_RETURN_TO_POOL", "return_data",
               adjustments.encode_stock_plan_return_to_pool, adjustments.decode_stock_plan_return_to_pool),

    # Vesting and stakeholder events
    EntitySpec("vestingStart", "TX_VESTING_START", "vesting_start_data",
               events.encode_vesting_start, events.decode_vesting_start),
    EntitySpec("vestingEvent", "TX_VESTING_EVENT", "vesting_event_data",
               events.encode_vesting_event, events.decode_vesting_event),
    EntitySpec("vestingAcceleration", "TX_VESTING_ACCELERATION", "vesting_acceleration_data",
               events.encode_vesting_acceleration, events.decode_vesting_acceleration),
    EntitySpec("stakeholderRelationshipChangeEvent", "TX_STAKEHOLDER_RELATIONSHIP_CHANGE_EVENT",
               "relationship_change_data",
               events.encode_stakeholder_relationship_change, events.decode_stakeholder_relationship_change),
    EntitySpec("stakeholderStatusChangeEvent", "TX_STAKEHOLDER_STATUS_CHANGE_EVENT", "status_change_data",
               events.encode_stakeholder_status_change, events.decode_stakeholder_status_change),
]

ENTITY_SPECS: Mapping[str, EntitySpec] = MappingProxyType({spec.entity_type: spec for spec in _SPECS})

_BY_OBJECT_TYPE: Dict[str, EntitySpec] = {spec.object_type: spec for spec in _SPECS}


# =============================================================================
# Plan Security Aliases
# =============================================================================

PLAN_SECURITY_ALIASES: Mapping[str, str] = MappingProxyType({
    "planSecurityIssuance": "equityCompensationIssuance",
    "planSecurityExercise": "equityCompensationExercise",
    "planSecurityCancellation": "equityCompensationCancellation",
    "planSecurityAcceptance": "equityCompensationAcceptance",
    "planSecurityRelease": "equityCompensationRelease",
    "planSecurityRetraction": "equityCompensationRetraction",
    "planSecurityTransfer": "equityCompensationTransfer",
})

PLAN_SECURITY_OBJECT_TYPES: Mapping[str, str] = MappingProxyType({
    f"TX_PLAN_SECURITY_{suffix}": f"TX_EQUITY_COMPENSATION_{suffix}"
    for suffix in ("ISSUANCE", "EXERCISE", "CANCELLATION", "ACCEPTANCE", "RELEASE", "RETRACTION", "TRANSFER")
})

PLAN_SECURITY_COMPENSATION_TYPES: Mapping[str, str] = MappingProxyType({
    "OPTION": "OPTION",
    "RSU": "RSU",
    "OTHER": "OPTION",
})

# Equity compensation fields plan security issuances never carry
_PLAN_SECURITY_DROPPED = (
    "plan_security_type", "base_price", "early_exercisable",
    "expiration_date", "vestings", "termination_exercise_windows",
)


def normalize_plan_security(entity_type: str, data: Mapping[str, Any]) -> Dict[str, Any]:
    """Rewrite a plan security document as its equity compensation variant.

    Issuances map ``plan_security_type`` to ``compensation_type`` (OTHER
    becomes OPTION) and drop the fields the plan security schema lacks.

    Raises:
        ValidationError: UNKNOWN_ENUM_VALUE for an unrecognized plan_security_type
    """
    result = dict(data)
    object_type = result.get("object_type")
    if object_type in PLAN_SECURITY_OBJECT_TYPES:
        result["object_type"] = PLAN_SECURITY_OBJECT_TYPES[object_type]
    if entity_type != "planSecurityIssuance":
        return result

    plan_type = data.get("plan_security_type")
    if "compensation_type" not in data or plan_type is not None:
        if plan_type not in PLAN_SECURITY_COMPENSATION_TYPES:
            raise ValidationError(
                "planSecurityIssuance.plan_security_type",
                f"Unknown plan security type: {plan_type!r}",
                code=ErrorCode.UNKNOWN_ENUM_VALUE, expected_type="plan security type",
                received_value=plan_type,
            )
        result["compensation_type"] = PLAN_SECURITY_COMPENSATION_TYPES[plan_type]
    for key in _PLAN_SECURITY_DROPPED:
        result.pop(key, None)
    return result


# =============================================================================
# Lookup
# =============================================================================

def resolve_entity_type(entity_type: str) -> str:
    """Map plan security aliases to their equity compensation entity type."""
    return PLAN_SECURITY_ALIASES.get(entity_type, entity_type)


def get_spec(entity_type: str) -> EntitySpec:
    """Return the registration for ``entity_type`` (aliases accepted).

    Raises:
        ValidationError: UNKNOWN_ENTITY_TYPE
    """
    spec = ENTITY_SPECS.get(resolve_entity_type(entity_type))
    if spec is None:
        raise ValidationError(
            "entityType", f"Unknown entity type: {entity_type!r}",
            code=ErrorCode.UNKNOWN_ENTITY_TYPE, received_value=entity_type,
        )
    return spec


def spec_for_object_type(object_type: str) -> Optional[EntitySpec]:
    """Registration for a portable ``object_type``, or None if unknown."""
    return _BY_OBJECT_TYPE.get(PLAN_SECURITY_OBJECT_TYPES.get(object_type, object_type))


def entity_types() -> List[str]:
    """All registered entity types (aliases excluded)."""
    return list(ENTITY_SPECS)


# =============================================================================
# Dispatch
# =============================================================================

def encode(entity_type: str, data: Mapping[str, Any], strict: Optional[bool] = None) -> Dict[str, Any]:
    """Encode a portable document to the ledger record of ``entity_type``.

    Args:
        entity_type: Registered entity type or plan security alias
        data: Portable document
        strict: Enum strictness override for strict-aware converters

    Returns:
        The record stored under the entity's ``*_data`` field

    Raises:
        ValidationError: On unknown entity types and invalid input
    """
    spec = get_spec(entity_type)
    data = require_mapping(data, spec.entity_type)
    if entity_type in PLAN_SECURITY_ALIASES:
        data = normalize_plan_security(entity_type, data)
    if spec.strict_aware:
        return spec.encoder(data, strict=strict)
    return spec.encoder(data)


def decode(entity_type: str, data: Mapping[str, Any], strict: Optional[bool] = None) -> Dict[str, Any]:
    """Decode a ledger record of ``entity_type`` to its portable document.

    Plan security aliases decode to the equity compensation variant.

    Raises:
        ParseError: UNKNOWN_ENTITY_TYPE, or on unexpected ledger shapes
    """
    spec = ENTITY_SPECS.get(resolve_entity_type(entity_type))
    if spec is None:
        raise ParseError(
            f"Unknown entity type: {entity_type!r}",
            source=entity_type, code=ErrorCode.UNKNOWN_ENTITY_TYPE, received_value=entity_type,
        )
    if not isinstance(data, Mapping):
        raise ParseError(
            f"Entity data for {entity_type} is not an object",
            source=entity_type, code=ErrorCode.SCHEMA_MISMATCH, received_value=data,
        )
    if spec.strict_aware:
        return spec.decoder(data, strict=strict)
    return spec.decoder(data)


def encode_create_argument(
    entity_type: str,
    data: Mapping[str, Any],
    strict: Optional[bool] = None,
) -> Dict[str, Any]:
    """Encode and wrap under the entity's ``*_data`` field."""
    spec = get_spec(entity_type)
    return {spec.wrapper_key: encode(entity_type, data, strict=strict)}


def decode_create_argument(
    entity_type: str,
    create_argument: Any,
    strict: Optional[bool] = None,
) -> Dict[str, Any]:
    """Decode a full contract create argument."""
    return decode(entity_type, extract_entity_data(entity_type, create_argument), strict=strict)


# =============================================================================
# Ledger Response Helpers
# =============================================================================

def extract_create_argument(response: Any, contract_id: str) -> Dict[str, Any]:
    """Pull the create argument out of a "get events by contract id" response.

    Expected shape: ``{"created": {"createdEvent": {"createArgument": {...}}}}``.

    Raises:
        ParseError: INVALID_RESPONSE if the created event or its argument is missing
    """
    source = f"contract {contract_id}"
    created = response.get("created") if isinstance(response, Mapping) else None
    event = created.get("createdEvent") if isinstance(created, Mapping) else None
    if not isinstance(event, Mapping):
        raise ParseError(
            "Invalid contract events response: missing created event",
            source=source, code=ErrorCode.INVALID_RESPONSE,
        )
    argument = event.get("createArgument")
    if not argument:
        raise ParseError(
            "Invalid contract events response: missing create argument",
            source=source, code=ErrorCode.INVALID_RESPONSE,
        )
    return argument


def extract_created_at(response: Any) -> Optional[str]:
    """Ledger creation timestamp of the created event, if reported."""
    try:
        return response["created"]["createdEvent"].get("createdAt")
    except (KeyError, TypeError, AttributeError):
        return None


def extract_entity_data(entity_type: str, create_argument: Any) -> Dict[str, Any]:
    """Return the ``*_data`` record of a create argument.

    Raises:
        ParseError: INVALID_RESPONSE if the argument is not an object;
            SCHEMA_MISMATCH if the data field is missing or not an object
    """
    if not create_argument or not isinstance(create_argument, Mapping):
        raise ParseError(
            "Invalid createArgument: expected an object",
            source=entity_type, code=ErrorCode.INVALID_RESPONSE, received_value=create_argument,
        )
    spec = ENTITY_SPECS.get(resolve_entity_type(entity_type))
    if spec is None:
        raise ParseError(
            f"Unknown entity type: {entity_type!r}",
            source=entity_type, code=ErrorCode.UNKNOWN_ENTITY_TYPE, received_value=entity_type,
        )
    key = spec.wrapper_key
    if key not in create_argument:
        raise ParseError(
            f"Expected field '{key}' not found in contract create argument for {entity_type}",
            source=entity_type, code=ErrorCode.SCHEMA_MISMATCH,
        )
    entity_data = create_argument[key]
    if not entity_data or not isinstance(entity_data, Mapping):
        raise ParseError(
            f"Entity data field '{key}' is not an object for {entity_type}",
            source=entity_type, code=ErrorCode.SCHEMA_MISMATCH, received_value=entity_data,
        )
    return entity_data


def object_type_of(document: Mapping[str, Any]) -> str:
    """Required ``object_type`` of a portable document."""
    return require_string(document.get("object_type"), "object_type")
