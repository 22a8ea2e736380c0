"""
Per-node and per-graph complexity metrics.

Node complexity is a fixed linear combination so that scores stay
comparable between graphs and between runs:

    complexity = 2.0 * branch_count + 3.0 * loop_back_edges
                 + 0.5 * (exec_fan_in + exec_fan_out)
"""
from typing import Dict, Any, Mapping, Union
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from types import MappingProxyType

from ..graph.traversal import GraphTraversal
from ..types import Graph, PinDirection
from ..utils.logger import app_logger
from .facts import StructuralFacts

BRANCH_WEIGHT = 2.0
LOOP_BACK_EDGE_WEIGHT = 3.0
FAN_WEIGHT = 0.5


@dataclass(frozen=True)
class NodeMetrics:
    """Metrics of a single node."""
    exec_fan_in: int
    exec_fan_out: int
    branch_count: int
    loop_back_edges: int
    nesting_depth: int
    data_dependency_count: int
    complexity: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "exec_fan_in": self.exec_fan_in,
            "exec_fan_out": self.exec_fan_out,
            "branch_count": self.branch_count,
            "loop_back_edges": self.loop_back_edges,
            "nesting_depth": self.nesting_depth,
            "data_dependency_count": self.data_dependency_count,
            "complexity": self.complexity,
        }


@dataclass(frozen=True)
class GraphMetrics:
    """Graph-level metric values plus the per-node table."""
    graph: Mapping[str, Union[int, float]]
    nodes: Mapping[str, NodeMetrics]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "graph": {name: self.graph[name] for name in sorted(self.graph)},
            "nodes": {node_id: self.nodes[node_id].to_dict() for node_id in sorted(self.nodes)},
        }


class MetricCollector:
    """Derives metrics from a graph and its structural facts."""

    def __init__(self, graph: Graph, traversal: GraphTraversal, structure: StructuralFacts,
                 max_workers: int = 1):
        self.graph = graph
        self.traversal = traversal
        self.structure = structure
        self.max_workers = max_workers
        self.logger = app_logger.bind(component="metrics")
        self._back_edge_sources = Counter(source for source, _ in structure.back_edges)

    def collect(self) -> GraphMetrics:
        """Compute node metrics (optionally in parallel) then graph totals."""
        node_ids = self.graph.node_ids
        if self.max_workers > 1 and len(node_ids) > 1:
            results: Dict[str, NodeMetrics] = {}
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {executor.submit(self.node_metrics, node_id): node_id for node_id in node_ids}
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
            nodes = {node_id: results[node_id] for node_id in node_ids}
        else:
            nodes = {node_id: self.node_metrics(node_id) for node_id in node_ids}

        metrics = GraphMetrics(
            graph=MappingProxyType(self.graph_metrics(nodes)),
            nodes=MappingProxyType(nodes),
        )
        self.logger.debug(f"Collected metrics for {len(nodes)} nodes of graph {self.graph.id!r}")
        return metrics

    def node_metrics(self, node_id: str) -> NodeMetrics:
        graph = self.graph
        fan_in = sum(
            1 for link_id in graph.incoming_links[node_id]
            if graph.is_exec_link(graph.links[link_id])
        )
        fan_out = sum(
            1 for link_id in graph.outgoing_links[node_id]
            if graph.is_exec_link(graph.links[link_id])
        )
        linked_exec_outputs = sum(
            1 for pin in graph.node_pins(node_id)
            if pin.is_exec and pin.direction is PinDirection.OUTPUT and pin.link_ids
        )
        branch_count = max(0, linked_exec_outputs - 1)
        loop_back_edges = self._back_edge_sources.get(node_id, 0)
        complexity = (
            BRANCH_WEIGHT * branch_count
            + LOOP_BACK_EDGE_WEIGHT * loop_back_edges
            + FAN_WEIGHT * (fan_in + fan_out)
        )
        return NodeMetrics(
            exec_fan_in=fan_in,
            exec_fan_out=fan_out,
            branch_count=branch_count,
            loop_back_edges=loop_back_edges,
            nesting_depth=self._nesting_depth(node_id),
            data_dependency_count=len(self.traversal.data_dependencies(node_id)),
            complexity=complexity,
        )

    def graph_metrics(self, nodes: Mapping[str, NodeMetrics]) -> Dict[str, Union[int, float]]:
        graph = self.graph
        structure = self.structure
        exec_link_count = len(self.traversal.exec_edges)
        node_count = len(graph.nodes)
        return {
            "node_count": node_count,
            "link_count": len(graph.links),
            "exec_link_count": exec_link_count,
            "data_link_count": len(graph.links) - exec_link_count,
            "entry_node_count": len(structure.entry_nodes),
            "cyclomatic_complexity": exec_link_count - node_count + 2 * len(structure.exec_components),
            "max_nesting_depth": max((m.nesting_depth for m in nodes.values()), default=0),
            "layer_count": len(structure.layers),
            "unreachable_node_count": len(structure.unreachable),
            "cycle_count": len(structure.cycles),
            "dead_cycle_count": len(structure.dead_cycles),
            "back_edge_count": len(structure.back_edges),
            "max_node_complexity": max((m.complexity for m in nodes.values()), default=0.0),
        }

    def _nesting_depth(self, node_id: str) -> int:
        # Shallowest position over all entry dominator trees; 0 when unreachable
        return min(
            (depths[node_id] for depths in self.structure.dominator_depths.values() if node_id in depths),
            default=0,
        )
