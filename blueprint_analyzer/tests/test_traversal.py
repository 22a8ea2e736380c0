from blueprint_analyzer.graph.ingest import ingest
from blueprint_analyzer.graph.traversal import GraphTraversal

from .conftest import exec_link, exec_node, make_snapshot


def traversal_for(nodes, links, **extra) -> GraphTraversal:
    return GraphTraversal(ingest(make_snapshot(nodes=nodes, links=links, **extra)))


class TestReachability:
    """Test forward reachability over execution links."""

    def test_reachable_from_entry(self, loop_traversal):
        assert loop_traversal.reachable_from(["A"]) == frozenset({"A", "B", "C"})
        assert loop_traversal.reachable_from(["C"]) == frozenset({"B", "C"})

    def test_visitation_order_is_sorted_bfs(self, diamond_snapshot):
        traversal = GraphTraversal(ingest(diamond_snapshot))
        assert traversal.reachable_order(["BeginPlay"]) == ["BeginPlay", "Branch", "Left", "Right", "Merge", "End"]

    def test_data_links_do_not_extend_reachability(self, data_snapshot):
        traversal = GraphTraversal(ingest(data_snapshot))
        assert traversal.reachable_from(["Event"]) == frozenset({"Event", "Print"})
        assert traversal.data_dependencies("Print") == frozenset({"GetName"})
        assert traversal.data_dependencies("GetUnused") == frozenset()

    def test_unknown_entries_are_ignored(self, loop_traversal):
        assert loop_traversal.reachable_from(["Nope"]) == frozenset()

    def test_cut_after_stops_at_node(self, diamond_snapshot):
        """Test that links leaving a cut node are not followed."""
        traversal = GraphTraversal(ingest(diamond_snapshot))
        assert traversal.reachable_from(["BeginPlay"], cut_after=["Left"]) == frozenset(
            {"BeginPlay", "Branch", "Left", "Right", "Merge", "End"})
        assert traversal.reachable_from(["BeginPlay"], cut_after=["Branch"]) == frozenset({"BeginPlay", "Branch"})
        assert traversal.reachable_order(["BeginPlay"], cut_after=["Merge"]) == [
            "BeginPlay", "Branch", "Left", "Right", "Merge"]

    def test_data_consumers(self, data_snapshot):
        traversal = GraphTraversal(ingest(data_snapshot))
        assert traversal.data_consumers("GetName") == ("Print",)
        assert traversal.data_consumers("GetUnused") == ()
        assert traversal.data_consumers("Nope") == ()


class TestCycles:
    """Test cycle detection and the cycle/layer split."""

    def test_loop_scenario(self, loop_traversal):
        """Test A(entry) -> B -> C -> B yields one cycle [B, C]."""
        assert loop_traversal.detect_cycles() == [("B", "C")]
        assert loop_traversal.back_edges() == [("C", "B")]
        assert loop_traversal.topological_layers() == [("A",)]

    def test_reported_cycles_are_real(self, loop_traversal):
        """Test each cycle follows exec edges, repeats no node and starts at its smallest id."""
        for cycle in loop_traversal.detect_cycles():
            assert len(set(cycle)) == len(cycle)
            assert cycle[0] == min(cycle)
            for source, target in zip(cycle, cycle[1:] + cycle[:1]):
                assert target in loop_traversal.exec_successors[source]

    def test_overlapping_cycles_are_all_reported(self):
        """Test X -> Y -> Z -> X plus a shortcut X -> Z gives both elementary cycles."""
        traversal = traversal_for(
            [exec_node("E", entry=True), exec_node("X", outputs=("out", "alt")), exec_node("Y"), exec_node("Z")],
            [exec_link("E", "X"), exec_link("X", "Y"), exec_link("Y", "Z"), exec_link("Z", "X"),
             exec_link("X", "Z", out="alt")],
        )
        assert traversal.detect_cycles() == [("X", "Y", "Z"), ("X", "Z")]
        assert traversal.cyclic_nodes() == frozenset({"X", "Y", "Z"})
        assert traversal.back_edges() == [("Z", "X")]

    def test_self_loop(self):
        traversal = traversal_for([exec_node("A", entry=True), exec_node("Spin")],
                                  [exec_link("A", "Spin"), exec_link("Spin", "Spin")])
        assert traversal.detect_cycles() == [("Spin",)]
        assert traversal.cyclic_nodes() == frozenset({"Spin"})
        assert traversal.topological_layers() == [("A",)]

    def test_dead_cycle_partition(self):
        traversal = traversal_for(
            [exec_node("A", entry=True), exec_node("B"), exec_node("X"), exec_node("Y")],
            [exec_link("A", "B"), exec_link("X", "Y"), exec_link("Y", "X")],
        )
        live, dead = traversal.partition_cycles(["A"])
        assert live == []
        assert dead == [("X", "Y")]

    def test_strongly_connected_components(self, loop_traversal):
        assert loop_traversal.strongly_connected_components() == [("A",), ("B", "C")]
        assert loop_traversal.cyclic_nodes() == frozenset({"B", "C"})

    def test_downstream_of_cycle_is_layered(self):
        """Test that nodes after a loop still land in a layer."""
        traversal = traversal_for(
            [exec_node("A", entry=True), exec_node("B", outputs=("out", "done")), exec_node("C"), exec_node("D")],
            [exec_link("A", "B"), exec_link("B", "C"), exec_link("C", "B"), exec_link("B", "D", out="done")],
        )
        layered = [node for layer in traversal.topological_layers() for node in layer]
        assert sorted(layered) == ["A", "D"]
        assert traversal.cyclic_nodes() == frozenset({"B", "C"})


class TestLayers:
    """Test Kahn layering on acyclic graphs."""

    def test_acyclic_layers_cover_every_node_once(self, diamond_snapshot):
        traversal = GraphTraversal(ingest(diamond_snapshot))
        layers = traversal.topological_layers()

        assert layers == [("BeginPlay",), ("Branch",), ("Left", "Right"), ("Merge",), ("End",)]
        flat = [node for layer in layers for node in layer]
        assert sorted(flat) == sorted(traversal.graph.nodes)
        assert len(flat) == len(set(flat))

    def test_isolated_nodes_form_first_layer(self):
        traversal = traversal_for([exec_node("A"), exec_node("B"), exec_node("C")], [exec_link("A", "B")])
        assert traversal.topological_layers() == [("A", "C"), ("B",)]


class TestDominators:
    """Test the dominator tree."""

    def test_diamond(self, diamond_snapshot):
        traversal = GraphTraversal(ingest(diamond_snapshot))
        idom = traversal.dominator_tree("BeginPlay")

        assert idom == {
            "Branch": "BeginPlay",
            "Left": "Branch",
            "Right": "Branch",
            "Merge": "Branch",
            "End": "Merge",
        }
        assert traversal.dominator_depths("BeginPlay")["End"] == 3

    def test_loop(self, loop_traversal):
        assert loop_traversal.dominator_tree("A") == {"B": "A", "C": "B"}

    def test_unreachable_nodes_are_absent(self):
        traversal = traversal_for([exec_node("A", entry=True), exec_node("B"), exec_node("Z")],
                                  [exec_link("A", "B")])
        assert traversal.dominator_tree("A") == {"B": "A"}


class TestComponents:
    """Test weakly connected components of the execution view."""

    def test_components(self):
        traversal = traversal_for([exec_node("A"), exec_node("B"), exec_node("C")], [exec_link("B", "A")])
        assert traversal.weakly_connected_components() == [("A", "B"), ("C",)]
