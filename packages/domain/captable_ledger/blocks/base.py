"""Pipeline stages over ledger read-outs.

A ledger read-out goes through a few stages (decode and assemble, summarize,
diff against a source). Each stage is a Block that reads named values from a
shared BlockContext and writes its results back, so stages can be wired in
any order and run by the BlockExecutor:
- Block abstract base class
- BlockContext holding the named values
- topological_sort ordering blocks by their declared keys
- BlockExecutor running the ordered blocks
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Named values shared between blocks.

    Example:
        context = BlockContext()
        context.set("ledger_records", records)

        ManifestBlock().execute(context)
        result = context.get("manifest_result")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Value stored under ``key``.

        Raises:
            KeyError: If nothing is stored under ``key``
        """
        if key not in self._data:
            raise KeyError(f"Key '{key}' not found in context. Available keys: {self.keys()}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data)


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """One pipeline stage.

    A block declares the context keys it reads (``inputs``) and writes
    (``outputs``); the executor uses the declarations to order blocks and to
    check that every stage did its job.

    Subclass example:
        class TransactionCountBlock(Block):
            def inputs(self) -> List[str]:
                return ["manifest_result"]

            def outputs(self) -> List[str]:
                return ["transaction_count"]

            def execute(self, context: BlockContext) -> None:
                result = context.get("manifest_result")
                context.set("transaction_count", len(result.manifest.transactions))
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block reads."""

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block writes."""

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read inputs from ``context`` and write every declared output.

        Raises:
            KeyError: If a required input is missing from ``context``
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Raised when blocks depend on each other's outputs in a cycle."""


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Order blocks so that every producer runs before its consumers.

    Kahn's algorithm. Inputs no block produces must come from the initial
    context. Blocks with no mutual dependency keep their given order.

    Raises:
        ValueError: If two blocks declare the same output
        CircularDependencyError: If the dependencies form a cycle
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for key in block.outputs():
            if key in producers:
                raise ValueError(f"Multiple blocks produce '{key}': {producers[key]} and {block}")
            producers[key] = block

    pending: Dict[Block, int] = {block: 0 for block in blocks}
    consumers: Dict[Block, List[Block]] = {block: [] for block in blocks}
    for block in blocks:
        for key in block.inputs():
            producer = producers.get(key)
            if producer is not None:
                consumers[producer].append(block)
                pending[block] += 1

    ready = [block for block in blocks if pending[block] == 0]
    ordered: List[Block] = []
    while ready:
        current = ready.pop(0)
        ordered.append(current)
        for consumer in consumers[current]:
            pending[consumer] -= 1
            if pending[consumer] == 0:
                ready.append(consumer)

    if len(ordered) != len(blocks):
        stuck = [block for block in blocks if pending[block] > 0]
        raise CircularDependencyError(f"Circular dependency detected among blocks: {stuck}")
    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Runs blocks in dependency order against one context.

    Example:
        executor = BlockExecutor([ReplicationDiffBlock(), ManifestSummaryBlock(), ManifestBlock()])
        context = BlockContext()
        context.set("ledger_records", records)
        context.set("source_items", items)
        executor.execute(context)

        context.get("manifest_summary")
        context.get("replication_operations")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._ordered: Optional[List[Block]] = None

    def execute(self, context: BlockContext) -> BlockContext:
        """Run every block and return ``context`` holding all outputs.

        Raises:
            CircularDependencyError: If the blocks' dependencies form a cycle
            KeyError: If an input is neither produced nor in ``context``
            ValueError: If a block did not write a declared output
        """
        if self._ordered is None:
            self._ordered = topological_sort(self.blocks)

        for block in self._ordered:
            self._validate_inputs(block, context)
            logger.debug("Running %r", block)
            block.execute(context)
            self._validate_outputs(block, context)
        return context

    def _validate_inputs(self, block: Block, context: BlockContext) -> None:
        for key in block.inputs():
            if not context.has(key):
                raise KeyError(
                    f"Block {block} requires input '{key}' but it's not in context. "
                    f"Available keys: {context.keys()}"
                )

    def _validate_outputs(self, block: Block, context: BlockContext) -> None:
        for key in block.outputs():
            if not context.has(key):
                raise ValueError(f"Block {block} declared output '{key}' but didn't write it to context")
