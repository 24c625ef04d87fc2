"""Manifest assembly blocks.

ManifestBlock decodes ledger records into a manifest; ManifestSummaryBlock
tabulates the result for review.

Output DataFrames:
- manifest_summary: Object counts per collection and object_type
- manifest_failures: Records that were skipped, with the reason
"""

from typing import List, Optional

import pandas as pd

from .base import Block, BlockContext
from ..manifest import assemble_manifest
from ..schemas import ManifestResult

SUMMARY_COLUMNS = ["collection", "object_type", "count"]
FAILURE_COLUMNS = ["entity_type", "contract_id", "code", "message"]


class ManifestBlock(Block):
    """Decodes ledger records into a manifest.

    Inputs (from context):
        - ledger_records: Iterable of LedgerRecord

    Outputs (to context):
        - manifest_result: ManifestResult (manifest plus skipped records)
    """

    def __init__(self, records_key: str = "ledger_records", strict: Optional[bool] = None):
        """Initialize ManifestBlock.

        Args:
            records_key: Context key for the ledger records (default: "ledger_records")
            strict: Enum strictness override for the decoders
        """
        self.records_key = records_key
        self.strict = strict

    def inputs(self) -> List[str]:
        return [self.records_key]

    def outputs(self) -> List[str]:
        return ["manifest_result"]

    def execute(self, context: BlockContext) -> None:
        records = context.get(self.records_key)
        context.set("manifest_result", assemble_manifest(records, strict=self.strict))


class ManifestSummaryBlock(Block):
    """Tabulates a ManifestResult.

    Inputs (from context):
        - manifest_result: ManifestResult

    Outputs (to context):
        - manifest_summary: DataFrame with columns:
            * collection: Manifest collection ('issuer', 'stakeholders', 'transactions', ...)
            * object_type: Portable object type
            * count: Number of objects
        - manifest_failures: DataFrame with columns:
            * entity_type: Entity type of the skipped record
            * contract_id: Ledger contract id
            * code: Error code
            * message: Error message

    Example:
        context.set("manifest_result", result)
        ManifestSummaryBlock().execute(context)

        summary_df = context.get("manifest_summary")
        summary_df[summary_df["collection"] == "transactions"]["count"].sum()
    """

    def inputs(self) -> List[str]:
        return ["manifest_result"]

    def outputs(self) -> List[str]:
        return ["manifest_summary", "manifest_failures"]

    def execute(self, context: BlockContext) -> None:
        result: ManifestResult = context.get("manifest_result")
        context.set("manifest_summary", self._compute_summary(result))
        context.set("manifest_failures", self._compute_failures(result))

    def _compute_summary(self, result: ManifestResult) -> pd.DataFrame:
        manifest = result.manifest
        rows = []
        if manifest.issuer:
            rows.append({"collection": "issuer", "object_type": manifest.issuer.get("object_type")})
        for collection, items in manifest.collections().items():
            rows.extend({"collection": collection, "object_type": item.get("object_type")} for item in items)
        rows.extend(
            {"collection": "transactions", "object_type": item.get("object_type")}
            for item in manifest.transactions
        )

        if not rows:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)

        df = pd.DataFrame(rows)
        summary = df.groupby(["collection", "object_type"]).size().reset_index(name="count")
        return summary.sort_values(["collection", "object_type"]).reset_index(drop=True)

    def _compute_failures(self, result: ManifestResult) -> pd.DataFrame:
        if not result.failures:
            return pd.DataFrame(columns=FAILURE_COLUMNS)
        return pd.DataFrame([failure.model_dump() for failure in result.failures], columns=FAILURE_COLUMNS)
