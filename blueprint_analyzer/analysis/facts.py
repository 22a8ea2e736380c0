from typing import Tuple, FrozenSet, Mapping, Any, Optional
from dataclasses import dataclass, field
from types import MappingProxyType

from ..graph.traversal import GraphTraversal


@dataclass(frozen=True)
class StructuralFacts:
    """Traversal results for one run, computed once and shared read-only."""
    entry_nodes: Tuple[str, ...]
    reachable: FrozenSet[str]
    cycles: Tuple[Tuple[str, ...], ...]
    dead_cycles: Tuple[Tuple[str, ...], ...]
    back_edges: Tuple[Tuple[str, str], ...]
    cyclic_nodes: FrozenSet[str]
    layers: Tuple[Tuple[str, ...], ...]
    dominator_depths: Mapping[str, Mapping[str, int]]
    exec_components: Tuple[Tuple[str, ...], ...]
    unreachable: Tuple[str, ...]


def collect_structural_facts(traversal: GraphTraversal) -> StructuralFacts:
    """Run every traversal query the metrics and rules depend on."""
    graph = traversal.graph
    entries = graph.entry_node_ids
    live, dead = traversal.partition_cycles(entries)
    reachable = traversal.reachable_from(entries)
    depths = {
        entry: MappingProxyType(traversal.dominator_depths(entry))
        for entry in entries
    }
    return StructuralFacts(
        entry_nodes=tuple(entries),
        reachable=reachable,
        cycles=tuple(live),
        dead_cycles=tuple(dead),
        back_edges=tuple(traversal.back_edges(entries)),
        cyclic_nodes=traversal.cyclic_nodes(),
        layers=tuple(traversal.topological_layers()),
        dominator_depths=MappingProxyType(depths),
        exec_components=tuple(traversal.weakly_connected_components()),
        unreachable=tuple(node_id for node_id in graph.node_ids if node_id not in reachable),
    )


@dataclass(frozen=True)
class AnalysisFacts:
    """Everything a rule may read: traversal, structural facts, metrics, configuration."""
    traversal: GraphTraversal
    structure: StructuralFacts
    metrics: Any  # GraphMetrics
    thresholds: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    deprecated_node_types: FrozenSet[str] = frozenset()
    exec_fan_in_policy: str = "finding"

    def threshold(self, rule_id: str, default: Optional[float] = None) -> float:
        value = self.thresholds.get(rule_id, default)
        if value is None:
            raise KeyError(f"No threshold configured for rule '{rule_id}'")
        return value
