from typing import List, Dict, Tuple, Iterable, FrozenSet, Optional

import networkx as nx

from ..types import Graph
from ..utils.logger import app_logger


class GraphTraversal:
    """Structural queries over the execution-flow and data-flow views of a Graph.

    Both views are ``nx.DiGraph`` instances built once at construction, with
    nodes and edges inserted in ascending id order so that every traversal
    visits successors in the same order on every run. Results coming back
    from networkx as sets are sorted before they are returned. Instances
    hold no mutable state after ``__init__`` and may be shared between
    worker threads.
    """

    def __init__(self, graph: Graph):
        self.graph = graph
        self.logger = app_logger.bind(component="traversal")

        exec_pairs = set()
        data_pairs = set()
        exec_edges: List[Tuple[str, str, str]] = []
        for link_id in sorted(graph.links):
            link = graph.links[link_id]
            source = graph.link_source_node(link)
            target = graph.link_target_node(link)
            if graph.is_exec_link(link):
                exec_pairs.add((source, target))
                exec_edges.append((source, target, link_id))
            else:
                data_pairs.add((source, target))

        self.exec_view = nx.DiGraph()
        self.exec_view.add_nodes_from(graph.node_ids)
        self.exec_view.add_edges_from(sorted(exec_pairs))

        self.data_view = nx.DiGraph()
        self.data_view.add_nodes_from(graph.node_ids)
        self.data_view.add_edges_from(sorted(data_pairs))

        self.exec_successors: Dict[str, Tuple[str, ...]] = {
            node_id: tuple(self.exec_view.successors(node_id)) for node_id in self.exec_view
        }
        # (source node, target node, link id), one entry per exec link
        self.exec_edges: Tuple[Tuple[str, str, str], ...] = tuple(exec_edges)

    # Reachability

    def reachable_from(self, entries: Iterable[str], cut_after: Iterable[str] = ()) -> FrozenSet[str]:
        """Nodes reachable from ``entries`` over execution-flow links, entries included."""
        return frozenset(self.reachable_order(entries, cut_after))

    def reachable_order(self, entries: Iterable[str], cut_after: Iterable[str] = ()) -> List[str]:
        """Breadth-first visitation order from ``entries``, ascending id within a level.

        Outgoing links of the nodes in ``cut_after`` are not followed.
        """
        view = self.exec_view
        blocked = [
            (node_id, nxt)
            for node_id in sorted(set(cut_after)) if node_id in view
            for nxt in view.successors(node_id)
        ]
        if blocked:
            view = nx.restricted_view(view, [], blocked)

        starts = sorted(node_id for node_id in set(entries) if node_id in view)
        order: List[str] = []
        for layer in nx.bfs_layers(view, starts):
            order.extend(sorted(layer))
        return order

    # Cycles

    def detect_cycles(self) -> List[Tuple[str, ...]]:
        """Every elementary execution cycle, each rotated to start at its smallest id."""
        cycles = []
        for cycle in nx.simple_cycles(self.exec_view):
            start = cycle.index(min(cycle))
            cycles.append(tuple(cycle[start:] + cycle[:start]))
        return sorted(cycles)

    def partition_cycles(self, entries: Iterable[str]) -> Tuple[List[Tuple[str, ...]], List[Tuple[str, ...]]]:
        """Split cycles into those reachable from ``entries`` and dead ones."""
        reachable = self.reachable_from(entries)
        live, dead = [], []
        for cycle in self.detect_cycles():
            (live if cycle[0] in reachable else dead).append(cycle)
        return live, dead

    def back_edges(self, entries: Optional[Iterable[str]] = None) -> List[Tuple[str, str]]:
        """(source, target) pairs of execution edges that close a cycle in DFS order.

        The search starts from the entry nodes, then from the remaining
        nodes in ascending order.
        """
        entry_list = sorted(set(entries)) if entries is not None else self.graph.entry_node_ids
        roots = [node_id for node_id in entry_list if node_id in self.exec_view]
        rooted = set(roots)
        roots += [node_id for node_id in self.exec_view if node_id not in rooted]

        ordered = nx.DiGraph()
        ordered.add_nodes_from(roots)
        ordered.add_edges_from(self.exec_view.edges)

        on_path = set()
        back: List[Tuple[str, str]] = []
        for source, target, label in nx.dfs_labeled_edges(ordered):
            if label == "forward":
                on_path.add(target)
            elif label == "reverse":
                on_path.discard(target)
            elif label == "nontree" and target in on_path:
                back.append((source, target))
        return back

    def strongly_connected_components(self) -> List[Tuple[str, ...]]:
        return sorted(tuple(sorted(c)) for c in nx.strongly_connected_components(self.exec_view))

    def cyclic_nodes(self) -> FrozenSet[str]:
        """Nodes lying on at least one execution cycle (self-loops included)."""
        cyclic = set(nx.nodes_with_selfloops(self.exec_view))
        for component in nx.strongly_connected_components(self.exec_view):
            if len(component) > 1:
                cyclic.update(component)
        return frozenset(cyclic)

    # Layering

    def topological_layers(self) -> List[Tuple[str, ...]]:
        """Topological generations of the acyclic part of the execution view.

        Nodes on a cycle are left out entirely; with them removed the rest
        of the graph is a DAG, so every other node lands in exactly one layer.
        """
        cyclic = self.cyclic_nodes()
        acyclic = self.exec_view.subgraph(n for n in self.exec_view if n not in cyclic)
        return [tuple(sorted(generation)) for generation in nx.topological_generations(acyclic)]

    # Dominance

    def dominator_tree(self, entry: str) -> Dict[str, str]:
        """Immediate dominators of every node reachable from ``entry``.

        The entry itself has no immediate dominator and is not a key.
        """
        idom = dict(nx.immediate_dominators(self.exec_view, entry))
        idom.pop(entry, None)
        return {node_id: idom[node_id] for node_id in sorted(idom)}

    def dominator_depths(self, entry: str) -> Dict[str, int]:
        """Depth of each reachable node in the dominator tree rooted at ``entry``."""
        idom = self.dominator_tree(entry)
        depths = {entry: 0}
        for node_id in idom:
            chain = []
            current = node_id
            while current not in depths:
                chain.append(current)
                current = idom[current]
            for offset, member in enumerate(reversed(chain), start=1):
                depths[member] = depths[current] + offset
        return depths

    # Components and data flow

    def weakly_connected_components(self) -> List[Tuple[str, ...]]:
        """Connected components of the execution view, ignoring direction."""
        return sorted(tuple(sorted(c)) for c in nx.weakly_connected_components(self.exec_view))

    def data_dependencies(self, node_id: str) -> FrozenSet[str]:
        """Every node feeding ``node_id`` through data links, transitively."""
        if node_id not in self.data_view:
            return frozenset()
        return frozenset(nx.ancestors(self.data_view, node_id))

    def data_consumers(self, node_id: str) -> Tuple[str, ...]:
        """Nodes reading a value produced by ``node_id``."""
        if node_id not in self.data_view:
            return ()
        return tuple(self.data_view.successors(node_id))
