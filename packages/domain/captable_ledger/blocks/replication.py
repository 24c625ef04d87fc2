"""Replication diff block.

Compares a source of truth against an assembled ledger manifest and lists
the operations that bring the ledger in line.

Output DataFrames:
- replication_operations: One row per create, edit, delete or conflict
"""

from typing import Dict, List, Set

import pandas as pd

from .base import Block, BlockContext
from ..manifest import ISSUANCE_ENTITY_TYPES, build_ledger_data_map, compute_replication_diff
from ..schemas import ManifestResult, ReplicationDiff

OPERATION_COLUMNS = ["operation", "entity_type", "ocf_id", "detail"]


class ReplicationDiffBlock(Block):
    """Diffs source items against the ledger manifest.

    Inputs (from context):
        - source_items: Iterable of ``{"ocf_id", "entity_type", "data"}`` mappings
        - manifest_result: ManifestResult read from the ledger

    Outputs (to context):
        - replication_diff: ReplicationDiff
        - replication_operations: DataFrame with columns:
            * operation: 'create', 'edit', 'delete' or 'conflict'
            * entity_type: Entity type
            * ocf_id: Portable object id
            * detail: Conflict message, empty otherwise

    Example:
        context.set("source_items", items)
        context.set("manifest_result", result)
        ReplicationDiffBlock().execute(context)

        ops_df = context.get("replication_operations")
        ops_df["operation"].value_counts()
    """

    def __init__(self, source_key: str = "source_items", detect_edits: bool = True):
        """Initialize ReplicationDiffBlock.

        Args:
            source_key: Context key for the source items (default: "source_items")
            detect_edits: Compare documents present on both sides (default: True)
        """
        self.source_key = source_key
        self.detect_edits = detect_edits

    def inputs(self) -> List[str]:
        return [self.source_key, "manifest_result"]

    def outputs(self) -> List[str]:
        return ["replication_diff", "replication_operations"]

    def execute(self, context: BlockContext) -> None:
        result: ManifestResult = context.get("manifest_result")
        ledger_data = build_ledger_data_map(result.manifest)
        ledger_entities = {entity_type: list(documents) for entity_type, documents in ledger_data.items()}

        diff = compute_replication_diff(
            context.get(self.source_key),
            ledger_entities,
            ledger_data=ledger_data if self.detect_edits else None,
            security_ids=self._security_ids(ledger_data),
        )
        context.set("replication_diff", diff)
        context.set("replication_operations", self._compute_operations(diff))

    def _security_ids(self, ledger_data: Dict[str, Dict[str, dict]]) -> Dict[str, Set[str]]:
        return {
            entity_type: {doc["security_id"] for doc in documents.values() if doc.get("security_id")}
            for entity_type, documents in ledger_data.items()
            if entity_type in ISSUANCE_ENTITY_TYPES
        }

    def _compute_operations(self, diff: ReplicationDiff) -> pd.DataFrame:
        rows = [
            {"operation": item.operation, "entity_type": item.entity_type, "ocf_id": item.ocf_id, "detail": ""}
            for item in [*diff.creates, *diff.edits, *diff.deletes]
        ]
        rows.extend(
            {"operation": "conflict", "entity_type": c.entity_type, "ocf_id": c.ocf_id, "detail": c.message}
            for c in diff.conflicts
        )
        return pd.DataFrame(rows, columns=OPERATION_COLUMNS)
