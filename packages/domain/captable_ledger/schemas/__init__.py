"""Ledger bridge schemas.

This package contains the Pydantic models of the ledger bridge:
- Base types and conventions
- Vesting condition graph (arena keyed by id)
- Manifest handed to the downstream engine
- Replication diff
- Manifest assembly results

Usage:
    from captable_ledger.schemas import Manifest, VestingGraph, ReplicationDiff
"""

# Base types
from .base import (
    DomainModel,
    EntityId,
)

# Vesting graph
from .vesting import VestingNode, VestingGraph

# Manifest and replication
from .manifest import (
    Manifest,
    PortableObject,
    ReplicationItem,
    SecurityIdConflict,
    ReplicationDiff,
    DecodeFailure,
    ManifestResult,
)

__all__ = [
    "DomainModel",
    "EntityId",
    "VestingNode",
    "VestingGraph",
    "Manifest",
    "PortableObject",
    "ReplicationItem",
    "SecurityIdConflict",
    "ReplicationDiff",
    "DecodeFailure",
    "ManifestResult",
]
