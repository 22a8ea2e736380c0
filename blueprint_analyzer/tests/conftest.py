import pytest
import sys
from pathlib import Path
from typing import Dict, Any, List, Optional, Sequence

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from blueprint_analyzer.analyzer import BlueprintAnalyzer
from blueprint_analyzer.config import Settings
from blueprint_analyzer.graph.ingest import ingest
from blueprint_analyzer.graph.traversal import GraphTraversal


def exec_node(node_id: str, kind: str = "function_call", outputs: Sequence[str] = ("out",),
              inputs: Sequence[str] = ("in",), entry: Optional[bool] = None, **extra) -> Dict[str, Any]:
    """Node record with exec pins named ``<node>.<pin>``."""
    pins = [{"id": f"{node_id}.{name}", "direction": "input", "data_kind": "exec"} for name in inputs]
    pins += [{"id": f"{node_id}.{name}", "direction": "output", "data_kind": "exec"} for name in outputs]
    node = {"id": node_id, "kind": kind, "pins": pins}
    node.update(extra)
    if entry is not None:
        node["entry"] = entry
    return node


def exec_link(source: str, target: str, out: str = "out", into: str = "in") -> Dict[str, str]:
    return {"source": f"{source}.{out}", "target": f"{target}.{into}"}


def make_snapshot(nodes: List[Dict[str, Any]], links: List[Dict[str, Any]],
                  name: str = "TestGraph", **extra) -> Dict[str, Any]:
    snapshot = {
        "id": name,
        "name": name,
        "source": "/Game/Tests/TestGraph",
        "timestamp": "2025-01-01T00:00:00",
        "nodes": nodes,
        "links": links,
    }
    snapshot.update(extra)
    return snapshot


@pytest.fixture
def loop_snapshot() -> Dict[str, Any]:
    """A(entry) -> B -> C -> B."""
    return make_snapshot(
        nodes=[exec_node("A", entry=True), exec_node("B"), exec_node("C")],
        links=[exec_link("A", "B"), exec_link("B", "C"), exec_link("C", "B")],
        name="LoopGraph",
    )


@pytest.fixture
def diamond_snapshot() -> Dict[str, Any]:
    """BeginPlay -> Branch -> (Left | Right) -> Merge -> End."""
    return make_snapshot(
        nodes=[
            exec_node("BeginPlay", kind="event", inputs=()),
            exec_node("Branch", kind="branch", outputs=("then", "else")),
            exec_node("Left"),
            exec_node("Right"),
            exec_node("Merge"),
            exec_node("End", outputs=()),
        ],
        links=[
            exec_link("BeginPlay", "Branch"),
            exec_link("Branch", "Left", out="then"),
            exec_link("Branch", "Right", out="else"),
            exec_link("Left", "Merge"),
            exec_link("Right", "Merge"),
            exec_link("Merge", "End"),
        ],
        name="DiamondGraph",
    )


@pytest.fixture
def trivial_snapshot() -> Dict[str, Any]:
    """Single node, no links, no entry markers."""
    return make_snapshot(nodes=[exec_node("Lonely")], links=[], name="TrivialGraph")


@pytest.fixture
def data_snapshot() -> Dict[str, Any]:
    """Event -> Print, with a getter feeding Print and an unused getter."""
    return make_snapshot(
        nodes=[
            exec_node("Event", kind="event", inputs=()),
            {
                "id": "Print",
                "kind": "function_call",
                "function_name": "PrintString",
                "pins": [
                    {"id": "Print.in", "direction": "input", "data_kind": "exec"},
                    {"id": "Print.text", "direction": "input", "data_kind": "string"},
                    {"id": "Print.duration", "direction": "input", "data_kind": "float", "default_value": 2.0},
                    {"id": "Print.target", "direction": "input", "data_kind": "object"},
                ],
            },
            {
                "id": "GetName",
                "kind": "variable_get",
                "pins": [{"id": "GetName.value", "direction": "output", "data_kind": "string"}],
            },
            {
                "id": "GetUnused",
                "kind": "variable_get",
                "pins": [{"id": "GetUnused.value", "direction": "output", "data_kind": "float"}],
            },
        ],
        links=[
            {"source": "Event.out", "target": "Print.in"},
            {"source": "GetName.value", "target": "Print.text"},
        ],
        name="DataGraph",
    )


@pytest.fixture
def loop_graph(loop_snapshot):
    return ingest(loop_snapshot)


@pytest.fixture
def loop_traversal(loop_graph) -> GraphTraversal:
    return GraphTraversal(loop_graph)


@pytest.fixture
def analyzer() -> BlueprintAnalyzer:
    """Analyzer with default settings, independent of the environment."""
    return BlueprintAnalyzer(settings=Settings(max_workers=1, exec_fan_in_policy="finding", deprecated_node_types=""))


def widget(name: str, widget_type: str, *children: Dict[str, Any], bindings: Sequence[str] = ()) -> Dict[str, Any]:
    """Widget record for widget-tree snapshots."""
    return {"name": name, "type": widget_type, "bound_properties": list(bindings), "children": list(children)}


@pytest.fixture
def widget_snapshot() -> Dict[str, Any]:
    """HUD with dynamic text, an image and a SizeBox inside a ScaleBox, no caching boxes."""
    return {
        "name": "HUD",
        "source": "/Game/UI/HUD",
        "timestamp": "2025-01-01T00:00:00",
        "root": widget(
            "Root", "CanvasPanel",
            widget(
                "Body", "VerticalBox",
                widget("Title", "TextBlock", bindings=["Text"]),
                widget("Health", "ProgressBar", bindings=["Percent"]),
                widget("Logo", "Image"),
            ),
            widget("Scaler", "ScaleBox", widget("Sizer", "SizeBox")),
        ),
    }


@pytest.fixture
def cached_widget_snapshot() -> Dict[str, Any]:
    """Menu wrapped in InvalidationBox and RetainerBox, six widgets."""
    return {
        "name": "MainMenu",
        "timestamp": "2025-01-01T00:00:00",
        "root": widget(
            "Cache", "InvalidationBox",
            widget(
                "Retainer", "RetainerBox",
                widget(
                    "Menu", "VerticalBox",
                    widget("Play", "Button"),
                    widget("Options", "Button"),
                    widget("Quit", "Button"),
                ),
            ),
        ),
    }
