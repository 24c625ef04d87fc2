"""Payload models for portable documents.

Each encoder validates its input document against one of these models
before building the ledger record, so required fields, types and formats
are checked up front and reported in field order. The models describe the
envelope of each entity: identifiers, dates and nested value objects.
Enum literals, tagged unions and per-variant payloads are converted (and
checked) by the codec itself.

Extra keys are ignored; ``object_type`` and unknown fields never fail
validation here.
"""

from typing import Any, List, Optional

from .base import DomainModel
from .values import (
    Address,
    DecimalInput,
    JsonArray,
    LedgerDate,
    Monetary,
    Name,
    OptionalAddress,
    OptionalContactLists,
    OptionalDecimal,
    OptionalEmail,
    OptionalLedgerDate,
    OptionalMonetary,
    OptionalPhone,
    OptionalPrimaryContact,
    OptionalText,
    RequiredText,
    SecurityExemption,
    TaxId,
    TextList,
)


# =============================================================================
# Transaction Headers
# =============================================================================

class TransactionHeader(DomainModel):
    """Fields every transaction carries."""

    id: RequiredText
    date: LedgerDate


class SecurityTransactionHeader(TransactionHeader):
    """Transactions acting on one security."""

    security_id: RequiredText


class IssuanceHeader(SecurityTransactionHeader):
    """Fields common to every issuance."""

    custom_id: RequiredText
    stakeholder_id: RequiredText
    board_approval_date: OptionalLedgerDate = None
    stockholder_approval_date: OptionalLedgerDate = None
    consideration_text: OptionalText = None
    security_law_exemptions: Optional[List[SecurityExemption]] = None


# =============================================================================
# Core Objects
# =============================================================================

class IssuerDocument(DomainModel):
    id: RequiredText
    legal_name: RequiredText
    country_of_formation: RequiredText
    formation_date: LedgerDate
    dba: OptionalText = None
    country_subdivision_of_formation: OptionalText = None
    country_subdivision_name_of_formation: OptionalText = None
    tax_ids: Optional[List[TaxId]] = None
    email: OptionalEmail = None
    phone: OptionalPhone = None
    address: OptionalAddress = None


class StakeholderDocument(DomainModel):
    """STAKEHOLDER.

    ``current_relationship`` is the deprecated singular form of
    ``current_relationships``.
    """

    id: RequiredText
    name: Name
    stakeholder_type: Any = None
    issuer_assigned_id: OptionalText = None
    primary_contact: OptionalPrimaryContact = None
    contact_info: OptionalContactLists = None
    addresses: Optional[List[Address]] = None
    tax_ids: Optional[List[TaxId]] = None
    current_relationships: Optional[JsonArray] = None
    current_relationship: Any = None
    current_status: Any = None


class StockClassDocument(DomainModel):
    id: RequiredText
    name: RequiredText
    class_type: Any = None
    default_id_prefix: RequiredText
    initial_shares_authorized: Any = None
    votes_per_share: DecimalInput
    seniority: DecimalInput
    board_approval_date: OptionalLedgerDate = None
    stockholder_approval_date: OptionalLedgerDate = None
    par_value: OptionalMonetary = None
    price_per_share: OptionalMonetary = None
    conversion_rights: Optional[JsonArray] = None
    liquidation_preference_multiple: OptionalDecimal = None
    participation_cap_multiple: OptionalDecimal = None


class StockPlanDocument(DomainModel):
    """STOCK_PLAN; ``stock_class_id`` is the deprecated singular form."""

    id: RequiredText
    plan_name: RequiredText
    board_approval_date: OptionalLedgerDate = None
    stockholder_approval_date: OptionalLedgerDate = None
    initial_shares_reserved: DecimalInput
    default_cancellation_behavior: Any = None
    stock_class_ids: Optional[TextList] = None
    stock_class_id: OptionalText = None


class StockLegendTemplateDocument(DomainModel):
    id: RequiredText
    name: RequiredText
    text: RequiredText


class ValuationDocument(DomainModel):
    id: RequiredText
    stock_class_id: RequiredText
    provider: OptionalText = None
    board_approval_date: OptionalLedgerDate = None
    stockholder_approval_date: OptionalLedgerDate = None
    price_per_share: Monetary
    effective_date: LedgerDate
    valuation_type: Any = None


class ObjectReference(DomainModel):
    object_type: Any = None
    object_id: RequiredText


class FileDocument(DomainModel):
    """DOCUMENT. At least one of ``path`` and ``uri`` is required."""

    id: RequiredText
    path: OptionalText = None
    uri: OptionalText = None
    md5: RequiredText
    related_objects: Optional[List[ObjectReference]] = None


class VestingTermsDocument(DomainModel):
    id: RequiredText
    name: RequiredText
    description: RequiredText
    allocation_type: Any = None
    vesting_conditions: JsonArray
