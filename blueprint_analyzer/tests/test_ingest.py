import pytest
from dataclasses import FrozenInstanceError

from blueprint_analyzer.errors import MalformedGraph
from blueprint_analyzer.graph.ingest import ingest
from blueprint_analyzer.graph.snapshot import GraphSnapshot
from blueprint_analyzer.types import NodeKind, PinDirection

from .conftest import exec_link, exec_node, make_snapshot


class TestIngest:
    """Test snapshot ingestion and index construction."""

    def test_builds_lookup_indices(self, loop_snapshot):
        """Test that every index is populated for a valid snapshot."""
        graph = ingest(loop_snapshot)

        assert graph.id == "LoopGraph"
        assert graph.node_ids == ["A", "B", "C"]
        assert graph.pin_owner["B.in"] == "B"
        assert graph.nodes["B"].pin_ids == ("B.in", "B.out")
        assert graph.outgoing_links["C"] == ("C.out->B.in",)
        assert set(graph.incoming_links["B"]) == {"A.out->B.in", "C.out->B.in"}
        assert graph.incoming_links["A"] == ()
        assert graph.pins["B.in"].link_ids == frozenset({"A.out->B.in", "C.out->B.in"})
        assert graph.pins["B.in"].direction is PinDirection.INPUT

    def test_accepts_flat_pins(self):
        """Test pins listed at graph level with node_id."""
        snapshot = make_snapshot(
            nodes=[{"id": "Start", "kind": "event"}, {"id": "Call", "kind": "function_call"}],
            links=[{"id": "l1", "source": "Start.then", "target": "Call.exec"}],
            pins=[
                {"id": "Start.then", "node_id": "Start", "direction": "output", "data_kind": "exec"},
                {"id": "Call.exec", "node_id": "Call", "direction": "input", "data_kind": "exec"},
            ],
        )
        graph = ingest(snapshot)

        assert graph.nodes["Start"].pin_ids == ("Start.then",)
        assert graph.links["l1"].source_pin_id == "Start.then"
        assert graph.link_target_node(graph.links["l1"]) == "Call"

    def test_entry_detection(self):
        """Test entry flags, graph-level entry list and entry kinds."""
        snapshot = make_snapshot(
            nodes=[
                exec_node("Event", kind="event"),
                exec_node("Entry", kind="function_entry"),
                exec_node("Forced", entry=True),
                exec_node("Listed"),
                exec_node("Suppressed", kind="event", entry=False),
                exec_node("Plain"),
            ],
            links=[],
            entry_nodes=["Listed"],
        )
        graph = ingest(snapshot)

        assert graph.entry_node_ids == ["Entry", "Event", "Forced", "Listed"]

    def test_unknown_kind_maps_to_other(self):
        """Test that unknown kinds keep their raw name as type name."""
        graph = ingest(make_snapshot(nodes=[exec_node("N", kind="K2Node_Timeline")], links=[]))

        assert graph.nodes["N"].kind is NodeKind.OTHER
        assert graph.nodes["N"].type_name == "K2Node_Timeline"

    def test_graph_is_frozen(self, loop_snapshot):
        """Test that the graph and its indices reject mutation."""
        graph = ingest(loop_snapshot)

        with pytest.raises(FrozenInstanceError):
            graph.name = "changed"
        with pytest.raises(TypeError):
            graph.nodes["D"] = graph.nodes["A"]
        with pytest.raises(TypeError):
            graph.nodes["A"].properties["x"] = 1

    def test_fingerprint_id_is_stable(self):
        """Test that snapshots without id or name get a content hash id."""
        snapshot = {"nodes": [exec_node("A", entry=True)], "links": []}

        first = ingest(snapshot)
        second = ingest(dict(snapshot))

        assert first.id.startswith("graph_")
        assert first.id == second.id

    def test_accepts_snapshot_model(self, loop_snapshot):
        """Test ingesting an already parsed GraphSnapshot."""
        graph = ingest(GraphSnapshot.model_validate(loop_snapshot))
        assert len(graph.links) == 3


class TestIngestFailures:
    """Test structural violations raising MalformedGraph."""

    def test_duplicate_node_id(self):
        snapshot = make_snapshot(nodes=[exec_node("A"), exec_node("A", outputs=("x",), inputs=())], links=[])
        with pytest.raises(MalformedGraph) as exc:
            ingest(snapshot)
        assert any("duplicate node id 'A'" in p for p in exc.value.problems)

    def test_duplicate_pin_id(self):
        snapshot = make_snapshot(
            nodes=[{"id": "A", "pins": [{"id": "p", "direction": "input"}]},
                   {"id": "B", "pins": [{"id": "p", "direction": "output"}]}],
            links=[],
        )
        with pytest.raises(MalformedGraph) as exc:
            ingest(snapshot)
        assert any("duplicate pin id 'p'" in p for p in exc.value.problems)

    def test_duplicate_link_id(self):
        snapshot = make_snapshot(
            nodes=[exec_node("A"), exec_node("B")],
            links=[{"id": "l", "source": "A.out", "target": "B.in"},
                   {"id": "l", "source": "A.out", "target": "B.in"}],
        )
        with pytest.raises(MalformedGraph) as exc:
            ingest(snapshot)
        assert any("duplicate link id 'l'" in p for p in exc.value.problems)

    def test_link_to_unknown_pin(self):
        snapshot = make_snapshot(nodes=[exec_node("A")], links=[exec_link("A", "Ghost")])
        with pytest.raises(MalformedGraph) as exc:
            ingest(snapshot)
        assert any("unknown target pin 'Ghost.in'" in p for p in exc.value.problems)

    def test_pin_with_unknown_owner(self):
        snapshot = make_snapshot(
            nodes=[exec_node("A")],
            links=[],
            pins=[{"id": "orphan", "node_id": "Missing", "direction": "input"}],
        )
        with pytest.raises(MalformedGraph) as exc:
            ingest(snapshot)
        assert any("unknown node 'Missing'" in p for p in exc.value.problems)

    def test_link_direction_mismatch(self):
        """Test that links must run from an output pin into an input pin."""
        snapshot = make_snapshot(
            nodes=[exec_node("A"), exec_node("B")],
            links=[{"source": "B.in", "target": "A.out"}],
        )
        with pytest.raises(MalformedGraph) as exc:
            ingest(snapshot)
        problems = " ".join(exc.value.problems)
        assert "is not an output pin" in problems
        assert "is not an input pin" in problems

    def test_unknown_entry_node(self):
        snapshot = make_snapshot(nodes=[exec_node("A")], links=[], entry_nodes=["Nope"])
        with pytest.raises(MalformedGraph):
            ingest(snapshot)

    def test_schema_error(self):
        """Test that records failing the schema are reported as malformed."""
        with pytest.raises(MalformedGraph) as exc:
            ingest({"nodes": [{"kind": "event"}], "links": []})
        assert any("id" in p for p in exc.value.problems)

    def test_exec_fan_in_as_structural_error(self, loop_snapshot):
        """Test the 'error' policy for exec inputs with several incoming links."""
        with pytest.raises(MalformedGraph) as exc:
            ingest(loop_snapshot, exec_fan_in_policy="error")
        assert exc.value.problems == ["exec input pin 'B.in' has 2 incoming links"]

    def test_exec_fan_in_allowed_by_default_policy(self, loop_snapshot):
        graph = ingest(loop_snapshot, exec_fan_in_policy="finding")
        assert len(graph.pins["B.in"].link_ids) == 2
