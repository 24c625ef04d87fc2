"""Tests for the pipeline blocks.

Tests cover:
- BlockContext storage and missing keys
- Dependency ordering (chains, fan-out, cycles, duplicate producers)
- BlockExecutor input/output validation
- ManifestBlock, ManifestSummaryBlock and ReplicationDiffBlock over ledger records
"""

import pytest

from captable_ledger.blocks import (
    Block,
    BlockContext,
    BlockExecutor,
    ManifestBlock,
    ManifestSummaryBlock,
    ReplicationDiffBlock,
)
from captable_ledger.blocks.base import CircularDependencyError, topological_sort
from captable_ledger.codec import encode_create_argument
from captable_ledger.manifest import LedgerRecord


class StubBlock(Block):
    """Writes '<name>:<output>' for every declared output."""

    def __init__(self, name, inputs, outputs):
        self.name = name
        self._inputs = inputs
        self._outputs = outputs

    def inputs(self):
        return self._inputs

    def outputs(self):
        return self._outputs

    def execute(self, context):
        for key in self._outputs:
            context.set(key, f"{self.name}:{key}")

    def __repr__(self):
        return f"StubBlock({self.name})"


def _record(entity_type, document, created_at=None):
    return LedgerRecord(entity_type, f"00{document['id']}", encode_create_argument(entity_type, document), created_at)


@pytest.fixture
def ledger_records(issuer_doc, stakeholder_doc, stock_issuance_doc, stock_transfer_doc):
    return [
        _record("issuer", issuer_doc),
        _record("stakeholder", stakeholder_doc),
        _record("stockIssuance", stock_issuance_doc),
        _record("stockTransfer", stock_transfer_doc),
    ]


# =============================================================================
# BlockContext
# =============================================================================

def test_context_round_trip():
    context = BlockContext()
    assert not context.has("ledger_records")

    context.set("ledger_records", [])
    assert context.has("ledger_records")
    assert context.get("ledger_records") == []
    assert context.keys() == ["ledger_records"]


def test_context_missing_key_lists_available():
    context = BlockContext()
    context.set("source_items", [])
    with pytest.raises(KeyError, match="source_items"):
        context.get("manifest_result")


# =============================================================================
# Dependency Ordering
# =============================================================================

def test_sort_chain_given_backwards():
    decode = StubBlock("decode", ["ledger_records"], ["manifest_result"])
    summarize = StubBlock("summarize", ["manifest_result"], ["manifest_summary"])
    report = StubBlock("report", ["manifest_summary"], ["report"])

    assert topological_sort([report, summarize, decode]) == [decode, summarize, report]


def test_sort_fan_out_keeps_given_order():
    decode = StubBlock("decode", [], ["manifest_result"])
    summarize = StubBlock("summarize", ["manifest_result"], ["manifest_summary"])
    diff = StubBlock("diff", ["manifest_result"], ["replication_diff"])

    assert topological_sort([diff, summarize, decode]) == [decode, diff, summarize]


def test_sort_detects_cycle():
    first = StubBlock("first", ["b"], ["a"])
    second = StubBlock("second", ["a"], ["b"])
    with pytest.raises(CircularDependencyError, match="Circular dependency"):
        topological_sort([first, second])


def test_sort_rejects_two_producers():
    with pytest.raises(ValueError, match="Multiple blocks produce 'manifest_result'"):
        topological_sort([
            StubBlock("one", [], ["manifest_result"]),
            StubBlock("two", [], ["manifest_result"]),
        ])


# =============================================================================
# BlockExecutor
# =============================================================================

def test_executor_runs_in_dependency_order():
    context = BlockContext()
    context.set("ledger_records", [])
    executor = BlockExecutor([
        StubBlock("summarize", ["manifest_result"], ["manifest_summary"]),
        StubBlock("decode", ["ledger_records"], ["manifest_result"]),
    ])

    assert executor.execute(context) is context
    assert context.get("manifest_summary") == "summarize:manifest_summary"


def test_executor_requires_external_inputs():
    executor = BlockExecutor([StubBlock("decode", ["ledger_records"], ["manifest_result"])])
    with pytest.raises(KeyError, match="requires input 'ledger_records'"):
        executor.execute(BlockContext())


def test_executor_checks_declared_outputs():
    class SilentBlock(Block):
        def inputs(self):
            return []

        def outputs(self):
            return ["manifest_result"]

        def execute(self, context):
            pass

    with pytest.raises(ValueError, match="declared output 'manifest_result'"):
        BlockExecutor([SilentBlock()]).execute(BlockContext())


# =============================================================================
# Ledger Blocks
# =============================================================================

def test_manifest_block(ledger_records):
    context = BlockContext()
    context.set("ledger_records", ledger_records)
    ManifestBlock().execute(context)

    result = context.get("manifest_result")
    assert result.ok
    assert [tx["id"] for tx in result.manifest.transactions] == ["iss-founder", "xfer-1"]


def test_manifest_block_custom_key(ledger_records):
    block = ManifestBlock(records_key="records")
    assert block.inputs() == ["records"]

    context = BlockContext()
    context.set("records", ledger_records[:1])
    block.execute(context)
    assert context.get("manifest_result").manifest.issuer["id"] == "issuer-1"


def test_summary_block(ledger_records):
    broken = LedgerRecord("stakeholder", "00broken", {"stakeholder_data": "not an object"})
    context = BlockContext()
    context.set("ledger_records", [*ledger_records, broken])

    BlockExecutor([ManifestSummaryBlock(), ManifestBlock()]).execute(context)

    summary = context.get("manifest_summary")
    assert list(summary.columns) == ["collection", "object_type", "count"]
    counts = dict(zip(zip(summary["collection"], summary["object_type"]), summary["count"]))
    assert counts == {
        ("issuer", "ISSUER"): 1,
        ("stakeholders", "STAKEHOLDER"): 1,
        ("transactions", "TX_STOCK_ISSUANCE"): 1,
        ("transactions", "TX_STOCK_TRANSFER"): 1,
    }

    failures = context.get("manifest_failures")
    assert failures["contract_id"].tolist() == ["00broken"]
    assert failures["code"].tolist() == ["SCHEMA_MISMATCH"]


def test_summary_block_empty_result():
    context = BlockContext()
    context.set("ledger_records", [])
    BlockExecutor([ManifestBlock(), ManifestSummaryBlock()]).execute(context)

    assert context.get("manifest_summary").empty
    assert list(context.get("manifest_failures").columns) == ["entity_type", "contract_id", "code", "message"]


def test_replication_diff_block(ledger_records, issuer_doc, stakeholder_doc, stock_issuance_doc):
    renamed = dict(issuer_doc, legal_name="Acme Robotics Holdings, Inc.")
    duplicate_security = dict(stock_issuance_doc, id="iss-second")
    source_items = [
        {"ocf_id": "issuer-1", "entity_type": "issuer", "data": renamed},
        {"ocf_id": "sh-founder", "entity_type": "stakeholder", "data": stakeholder_doc},
        {"ocf_id": "iss-founder", "entity_type": "stockIssuance", "data": stock_issuance_doc},
        {"ocf_id": "iss-second", "entity_type": "stockIssuance", "data": duplicate_security},
    ]
    context = BlockContext()
    context.set("ledger_records", ledger_records)
    context.set("source_items", source_items)

    BlockExecutor([ReplicationDiffBlock(), ManifestBlock()]).execute(context)

    diff = context.get("replication_diff")
    assert [item.ocf_id for item in diff.edits] == ["issuer-1"]
    assert [item.ocf_id for item in diff.creates] == ["iss-second"]
    assert [item.ocf_id for item in diff.deletes] == ["xfer-1"]
    assert [conflict.security_id for conflict in diff.conflicts] == ["sec-founder"]

    operations = context.get("replication_operations")
    assert operations["operation"].tolist() == ["create", "edit", "delete", "conflict"]
    assert operations.loc[operations["operation"] == "conflict", "detail"].str.contains("sec-founder").all()


def test_replication_diff_block_without_edit_detection(ledger_records, issuer_doc):
    context = BlockContext()
    context.set("ledger_records", ledger_records)
    ManifestBlock().execute(context)
    context.set("source_items", [
        {"ocf_id": "issuer-1", "entity_type": "issuer", "data": dict(issuer_doc, legal_name="Renamed")},
    ])

    ReplicationDiffBlock(detect_edits=False).execute(context)
    assert context.get("replication_diff").edits == []
