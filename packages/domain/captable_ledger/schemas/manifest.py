"""Manifest and replication models.

The Manifest is the categorized read-out handed to the downstream cap table
engine. Collections hold portable JSON documents (plain dicts carrying an
``object_type``); only ``transactions`` has a defined order.

Serialization:
    manifest.model_dump(by_alias=True) yields the camelCase JSON shape:
    {issuer, stockClasses, stockPlans, stakeholders, vestingTerms,
     valuations, documents, stockLegendTemplates, transactions}
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import Field, computed_field

from .base import DomainModel, EntityId

PortableObject = Dict[str, Any]


# =============================================================================
# Manifest
# =============================================================================

class Manifest(DomainModel):
    """Decoded entities grouped by category."""

    issuer: Optional[PortableObject] = Field(
        default=None,
        description="The single issuer, if one was read"
    )

    stock_classes: List[PortableObject] = Field(
        default_factory=list,
        alias="stockClasses",
        description="STOCK_CLASS objects (unordered)"
    )

    stock_plans: List[PortableObject] = Field(
        default_factory=list,
        alias="stockPlans",
        description="STOCK_PLAN objects (unordered)"
    )

    stakeholders: List[PortableObject] = Field(
        default_factory=list,
        description="STAKEHOLDER objects (unordered)"
    )

    vesting_terms: List[PortableObject] = Field(
        default_factory=list,
        alias="vestingTerms",
        description="VESTING_TERMS objects (unordered)"
    )

    valuations: List[PortableObject] = Field(
        default_factory=list,
        description="VALUATION objects (unordered)"
    )

    documents: List[PortableObject] = Field(
        default_factory=list,
        description="DOCUMENT objects (unordered)"
    )

    stock_legend_templates: List[PortableObject] = Field(
        default_factory=list,
        alias="stockLegendTemplates",
        description="STOCK_LEGEND_TEMPLATE objects (unordered)"
    )

    transactions: List[PortableObject] = Field(
        default_factory=list,
        description="TX_* events in replay order"
    )

    def collections(self) -> Dict[str, List[PortableObject]]:
        """Unordered object collections keyed by manifest field name."""
        return {
            "stock_classes": self.stock_classes,
            "stock_plans": self.stock_plans,
            "stakeholders": self.stakeholders,
            "vesting_terms": self.vesting_terms,
            "valuations": self.valuations,
            "documents": self.documents,
            "stock_legend_templates": self.stock_legend_templates,
        }


# =============================================================================
# Replication Diff
# =============================================================================

class ReplicationItem(DomainModel):
    """One pending create, edit or delete."""

    ocf_id: EntityId = Field(description="Portable object id")

    entity_type: str = Field(description="Entity type (e.g. 'stockIssuance')")

    operation: Literal["create", "edit", "delete"] = Field(
        description="Operation required to bring the ledger in line with the source"
    )

    data: Optional[PortableObject] = Field(
        default=None,
        description="Source document for creates and edits"
    )


class SecurityIdConflict(DomainModel):
    """An issuance create whose security_id already exists on the ledger."""

    ocf_id: EntityId = Field(description="Portable object id of the new issuance")

    entity_type: str = Field(description="Issuance entity type")

    security_id: str = Field(description="Conflicting security id")

    message: str = Field(description="Human-readable explanation")


class ReplicationDiff(DomainModel):
    """Difference between a source of truth and the ledger read-out."""

    creates: List[ReplicationItem] = Field(default_factory=list)
    edits: List[ReplicationItem] = Field(default_factory=list)
    deletes: List[ReplicationItem] = Field(default_factory=list)
    conflicts: List[SecurityIdConflict] = Field(default_factory=list)

    @computed_field
    @property
    def total(self) -> int:
        """Number of operations (conflicts excluded)."""
        return len(self.creates) + len(self.edits) + len(self.deletes)


# =============================================================================
# Assembly Results
# =============================================================================

class DecodeFailure(DomainModel):
    """A ledger record that could not be fetched or decoded."""

    entity_type: str = Field(description="Entity type of the record")

    contract_id: Optional[str] = Field(
        default=None,
        description="Ledger contract id, if known"
    )

    code: str = Field(description="ErrorCode value, or 'UNEXPECTED' for client exceptions")

    message: str = Field(description="Error message")


class ManifestResult(DomainModel):
    """Assembled manifest plus the records that were skipped."""

    manifest: Manifest = Field(default_factory=Manifest)

    failures: List[DecodeFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True if every record decoded."""
        return not self.failures
