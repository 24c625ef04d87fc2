"""Base classes and type system for ledger bridge models.

This module provides the foundational types and the pydantic base class
used by the vesting graph, the manifest and the replication diff.
"""

from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in this package:
    - Validation on assignment for runtime safety
    - Population by field name or by alias (camelCase manifest keys)
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,
        validate_assignment=True,
        use_enum_values=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )


# =============================================================================
# Scalar Patterns
# =============================================================================

DECIMAL_PATTERN = r'^-?\d+(\.\d+)?$'
DATE_PATTERN = r'^\d{4}-\d{2}-\d{2}$'


# =============================================================================
# ID Conventions
# =============================================================================

EntityId = Annotated[
    str,
    Field(
        min_length=1,
        description="Portable object identifier (UUID or user-defined, non-empty)"
    )
]


# =============================================================================
# Conventions
# =============================================================================
#
# Portable side (JSON documents):
#   - Optional fields are omitted when absent, never null or ""
#   - Numbers are minimal decimal strings: "5000000", "0.25"
#   - Dates are "2024-01-15"
#
# Ledger side (contract arguments):
#   - Optional fields are explicit null
#   - Numbers may be zero padded: "5000000.0000000000"
#   - Dates are ledger times: "2024-01-15T00:00:00.000Z"
#   - Enums are tags: "OcfStakeholderTypeIndividual"
#
# =============================================================================
