"""
Built-in checks. Each function reads the graph and the shared facts only
and yields Issues; severity and id come from its registration.
"""
from typing import Iterator

from ..analysis.facts import AnalysisFacts
from ..graph.traversal import GraphTraversal
from ..types import FindingTarget, Graph, NodeKind, PinDirection, Severity
from .registry import Issue, register


def _label(graph: Graph, node_id: str) -> str:
    node = graph.nodes[node_id]
    if node.title and node.title != node_id:
        return f"'{node.title}' [{node_id}]"
    return f"'{node_id}'"


def _cycle_text(cycle) -> str:
    return " -> ".join(list(cycle) + [cycle[0]])


@register("unreachable-node", Severity.WARNING,
          "Node that no execution path from an entry node reaches.")
def unreachable_node(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    for node_id in facts.structure.unreachable:
        metrics = facts.metrics.nodes[node_id]
        if metrics.exec_fan_in == 0 and metrics.exec_fan_out == 0:
            detail = "has no execution links"
        else:
            detail = "is not reachable from any entry node"
        yield Issue(
            FindingTarget.node(node_id),
            f"Node {_label(graph, node_id)} {detail} and will never run",
            "Wire it into an execution path from an event or function entry, or delete it.",
        )


@register("dead-cycle", Severity.WARNING,
          "Execution cycle that no entry node can reach (orphaned logic).")
def dead_cycle(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    for cycle in facts.structure.dead_cycles:
        yield Issue(
            FindingTarget.node(cycle[0]),
            f"Execution cycle {_cycle_text(cycle)} is unreachable from every entry node",
            "Remove the orphaned loop or connect it to an entry node.",
        )


@register("loop-without-exit", Severity.ERROR,
          "Reachable execution cycle with no edge leaving it.")
def loop_without_exit(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    traversal: GraphTraversal = facts.traversal
    for component in traversal.strongly_connected_components():
        members = set(component)
        if not members & facts.structure.cyclic_nodes:
            continue
        if component[0] not in facts.structure.reachable:
            continue
        has_exit = any(
            nxt not in members
            for node_id in component
            for nxt in traversal.exec_successors[node_id]
        )
        if not has_exit:
            yield Issue(
                FindingTarget.node(component[0]),
                f"Execution loop over {', '.join(component)} has no exit path and never terminates",
                "Add a branch that leaves the loop.",
            )


@register("excessive-complexity", Severity.WARNING,
          "Node complexity score above the threshold.", default_threshold=10.0)
def excessive_complexity(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    limit = facts.threshold("excessive-complexity")
    for node_id in sorted(facts.metrics.nodes):
        score = facts.metrics.nodes[node_id].complexity
        if score > limit:
            yield Issue(
                FindingTarget.node(node_id),
                f"Node {_label(graph, node_id)} has complexity {score:g} (threshold {limit:g})",
                "Split the logic into smaller functions or macros.",
            )


@register("graph-complexity", Severity.WARNING,
          "Cyclomatic complexity of the execution view above the threshold.", default_threshold=20.0)
def graph_complexity(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    limit = facts.threshold("graph-complexity")
    value = facts.metrics.graph["cyclomatic_complexity"]
    if value > limit:
        yield Issue(
            FindingTarget.graph(),
            f"Graph cyclomatic complexity is {value} (threshold {limit:g})",
            "Collapse related nodes into functions to reduce the number of paths.",
        )


@register("excessive-nesting", Severity.WARNING,
          "Node nested deeper than the threshold in the dominator tree.", default_threshold=5.0)
def excessive_nesting(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    limit = facts.threshold("excessive-nesting")
    for node_id in sorted(facts.metrics.nodes):
        depth = facts.metrics.nodes[node_id].nesting_depth
        if depth > limit:
            yield Issue(
                FindingTarget.node(node_id),
                f"Node {_label(graph, node_id)} is nested {depth} levels deep (threshold {limit:g})",
                "Flatten the control flow or move the nested part into a function.",
            )


@register("deprecated-node", Severity.WARNING,
          "Use of a node type marked deprecated.")
def deprecated_node(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    for node_id in graph.node_ids:
        node = graph.nodes[node_id]
        if node.is_deprecated or node.type_name in facts.deprecated_node_types:
            replacement = node.properties.get("replacement")
            fix = f"Replace it with '{replacement}'." if replacement else "Replace it with a supported node."
            yield Issue(
                FindingTarget.node(node_id),
                f"Node {_label(graph, node_id)} uses deprecated type '{node.type_name}'",
                fix,
            )


@register("dangling-pin", Severity.ERROR,
          "Input pin that needs exactly one link but has none.")
def dangling_pin(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    for pin_id in sorted(graph.pins):
        pin = graph.pins[pin_id]
        if pin.requires_link and not pin.link_ids:
            yield Issue(
                FindingTarget.pin(pin_id),
                f"Input pin '{pin_id}' ({pin.data_kind}) on node {_label(graph, pin.node_id)} is not connected",
                "Connect a value to the pin or give it a default value.",
            )


@register("exec-fan-in", Severity.WARNING,
          "Execution input pin fed by more than one link.")
def exec_fan_in(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    if facts.exec_fan_in_policy != "finding":
        return
    for pin_id in sorted(graph.pins):
        pin = graph.pins[pin_id]
        if not (pin.is_exec and pin.direction is PinDirection.INPUT):
            continue
        incoming = [link_id for link_id in pin.link_ids if graph.links[link_id].target_pin_id == pin_id]
        if len(incoming) > 1:
            yield Issue(
                FindingTarget.pin(pin_id),
                f"Execution pin '{pin_id}' on node {_label(graph, pin.node_id)} has {len(incoming)} incoming links",
                "Merge the incoming paths through a sequence or gate node.",
            )


@register("incompatible-link", Severity.ERROR,
          "Link joining an execution pin to a data pin.")
def incompatible_link(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    for link_id in sorted(graph.links):
        link = graph.links[link_id]
        source = graph.pins[link.source_pin_id]
        target = graph.pins[link.target_pin_id]
        if source.is_exec != target.is_exec:
            yield Issue(
                FindingTarget.link(link_id),
                f"Link '{link_id}' connects {source.data_kind} pin '{source.id}' to {target.data_kind} pin '{target.id}'",
                "Reconnect the link between pins of the same kind.",
            )


@register("unreachable-after-return", Severity.WARNING,
          "Nodes that only run after a function result node.")
def unreachable_after_return(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    traversal: GraphTraversal = facts.traversal
    returns = [
        node_id for node_id in graph.node_ids
        if graph.nodes[node_id].kind is NodeKind.FUNCTION_RESULT
        and node_id in facts.structure.reachable
        and traversal.exec_successors[node_id]
    ]
    if not returns:
        return
    # Nodes no entry reaches once execution stops at every return
    still_reachable = traversal.reachable_from(facts.structure.entry_nodes, cut_after=returns)
    for node_id in sorted(facts.structure.reachable - still_reachable):
        yield Issue(
            FindingTarget.node(node_id),
            f"Node {_label(graph, node_id)} is only reached after a return node and never runs",
            "Move the node before the return or remove it.",
        )


@register("unused-data-node", Severity.INFO,
          "Pure node whose outputs feed nothing.")
def unused_data_node(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    for node_id in graph.node_ids:
        pins = graph.node_pins(node_id)
        if any(pin.is_exec for pin in pins):
            continue
        has_outputs = any(pin.direction is PinDirection.OUTPUT for pin in pins)
        if has_outputs and not facts.traversal.data_consumers(node_id):
            yield Issue(
                FindingTarget.node(node_id),
                f"Pure node {_label(graph, node_id)} produces values nobody reads",
                "Delete the node or connect its output.",
            )


@register("no-entry-point", Severity.WARNING,
          "Graph with several nodes but no entry node.")
def no_entry_point(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    if len(graph.nodes) > 1 and not facts.structure.entry_nodes:
        yield Issue(
            FindingTarget.graph(),
            f"Graph has {len(graph.nodes)} nodes but no event or function entry node",
            "Add an event or function entry node, or mark a node as entry.",
        )


@register("trivial-graph", Severity.INFO,
          "Empty graph, or a single node without links.")
def trivial_graph(graph: Graph, facts: AnalysisFacts) -> Iterator[Issue]:
    if not graph.nodes or (len(graph.nodes) == 1 and not graph.links):
        yield Issue(
            FindingTarget.graph(),
            f"empty or trivial graph ({len(graph.nodes)} node(s), {len(graph.links)} link(s))",
        )
