"""Vesting condition graph.

Vesting terms describe a set of conditions linked by ``next_condition_ids``
(and, for relative schedule triggers, by ``relative_to_condition_id``). The
portable format does not forbid cycles, so the graph is stored as an arena
of nodes keyed by id with edges kept as id lists rather than references.

Cycle detection is exposed for callers (the downstream engine decides what a
cycle means); the codec never rejects a graph for containing one.
"""

from typing import Dict, List, Optional
from pydantic import Field, model_validator

from .base import DomainModel, EntityId


class VestingNode(DomainModel):
    """A single vesting condition reduced to its graph shape."""

    id: EntityId = Field(description="Condition identifier")

    trigger_type: str = Field(
        description="Portable trigger type (VESTING_START_DATE, VESTING_EVENT, ...)"
    )

    next_condition_ids: List[str] = Field(
        default_factory=list,
        description="Conditions evaluated after this one is satisfied"
    )

    relative_to_condition_id: Optional[str] = Field(
        default=None,
        description="Anchor condition for relative schedule triggers"
    )


class VestingGraph(DomainModel):
    """Arena of vesting conditions keyed by id.

    Example:
        graph = VestingGraph.from_conditions(terms["vesting_conditions"])
        graph.roots()       # ['start']
        graph.find_cycle()  # None for an acyclic schedule
    """

    nodes: Dict[str, VestingNode] = Field(
        default_factory=dict,
        description="Conditions keyed by id"
    )

    @model_validator(mode='after')
    def validate_keys(self):
        """Ensure every arena key matches its node id."""
        for key, node in self.nodes.items():
            if key != node.id:
                raise ValueError(f"Arena key '{key}' does not match node id '{node.id}'")
        return self

    @classmethod
    def from_conditions(cls, conditions: List[dict]) -> "VestingGraph":
        """Build the arena from portable vesting condition documents.

        Raises:
            ValueError: If two conditions share an id
        """
        nodes: Dict[str, VestingNode] = {}
        for condition in conditions:
            trigger = condition.get("trigger") or {}
            node = VestingNode(
                id=condition["id"],
                trigger_type=trigger.get("type", ""),
                next_condition_ids=list(condition.get("next_condition_ids") or []),
                relative_to_condition_id=trigger.get("relative_to_condition_id"),
            )
            if node.id in nodes:
                raise ValueError(f"Duplicate vesting condition id '{node.id}'")
            nodes[node.id] = node
        return cls(nodes=nodes)

    def successors(self, node_id: str) -> List[str]:
        """Ids reachable in one step from ``node_id``."""
        return list(self.nodes[node_id].next_condition_ids)

    def roots(self) -> List[str]:
        """Conditions no other condition points to, in insertion order."""
        targets = {
            target
            for node in self.nodes.values()
            for target in node.next_condition_ids
        }
        return [node_id for node_id in self.nodes if node_id not in targets]

    def dangling_references(self) -> List[str]:
        """Referenced ids (next or relative-to) that are not in the arena."""
        missing: List[str] = []
        for node in self.nodes.values():
            refs = list(node.next_condition_ids)
            if node.relative_to_condition_id:
                refs.append(node.relative_to_condition_id)
            for ref in refs:
                if ref not in self.nodes and ref not in missing:
                    missing.append(ref)
        return missing

    def find_cycle(self) -> Optional[List[str]]:
        """Return the ids left on a cycle, or None if the graph is acyclic.

        Uses Kahn's algorithm over ``next_condition_ids`` edges; nodes that
        never reach in-degree zero lie on (or behind) a cycle. Edges to ids
        outside the arena are ignored.
        """
        in_degree: Dict[str, int] = {node_id: 0 for node_id in self.nodes}
        for node in self.nodes.values():
            for target in node.next_condition_ids:
                if target in in_degree:
                    in_degree[target] += 1

        queue: List[str] = [node_id for node_id, degree in in_degree.items() if degree == 0]
        visited = 0
        while queue:
            current = queue.pop(0)
            visited += 1
            for target in self.nodes[current].next_condition_ids:
                if target not in in_degree:
                    continue
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        if visited == len(self.nodes):
            return None
        return [node_id for node_id, degree in in_degree.items() if degree > 0]
