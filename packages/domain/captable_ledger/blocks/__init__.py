"""Pipeline blocks over ledger read-outs.

Architecture:
    Ledger records → ManifestBlock → manifest_result → summary / diff DataFrames

Available blocks:
- ManifestBlock: Decodes ledger records into a ManifestResult
- ManifestSummaryBlock: Counts per collection and skipped records
- ReplicationDiffBlock: Operations needed to align the ledger with a source

Usage:
    from captable_ledger.blocks import BlockContext, BlockExecutor, ManifestBlock, ManifestSummaryBlock

    context = BlockContext()
    context.set("ledger_records", records)
    BlockExecutor([ManifestSummaryBlock(), ManifestBlock()]).execute(context)

    summary_df = context.get("manifest_summary")
"""

from .base import Block, BlockContext, BlockExecutor, CircularDependencyError, topological_sort
from .manifest import ManifestBlock, ManifestSummaryBlock
from .replication import ReplicationDiffBlock

__all__ = [
    "Block",
    "BlockContext",
    "BlockExecutor",
    "CircularDependencyError",
    "topological_sort",
    "ManifestBlock",
    "ManifestSummaryBlock",
    "ReplicationDiffBlock",
]
