from typing import List, Dict, Any, Optional, Tuple, FrozenSet, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


EXEC_DATA_KIND = "exec"


class NodeKind(Enum):
    """Node family of a visual-scripting graph."""
    EVENT = "event"
    FUNCTION_ENTRY = "function_entry"
    FUNCTION_RESULT = "function_result"
    FUNCTION_CALL = "function_call"
    VARIABLE_GET = "variable_get"
    VARIABLE_SET = "variable_set"
    BRANCH = "branch"
    LOOP = "loop"
    SEQUENCE = "sequence"
    MACRO = "macro"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "NodeKind":
        """Map a raw kind string onto a known kind, falling back to OTHER."""
        normalized = (value or "").strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        return cls.OTHER

    @property
    def is_entry_kind(self) -> bool:
        return self in (NodeKind.EVENT, NodeKind.FUNCTION_ENTRY)


class PinDirection(Enum):
    """Pin direction enumeration."""
    INPUT = "input"
    OUTPUT = "output"


class Severity(Enum):
    """Finding severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Ordering weight, higher is more severe."""
        return {
            Severity.INFO: 0,
            Severity.WARNING: 1,
            Severity.ERROR: 2,
        }[self]

    @property
    def score_penalty(self) -> int:
        """Points deducted from the quality score per finding."""
        return {
            Severity.INFO: 0,
            Severity.WARNING: 5,
            Severity.ERROR: 20,
        }[self]


class TargetKind(Enum):
    """Kind of entity a finding points at."""
    GRAPH = "graph"
    NODE = "node"
    PIN = "pin"
    LINK = "link"
    WIDGET = "widget"


@dataclass(frozen=True)
class Pin:
    """A connection point owned by a node."""
    id: str
    node_id: str
    direction: PinDirection
    data_kind: str
    link_ids: FrozenSet[str] = frozenset()
    default_value: Optional[Any] = None
    optional: bool = False

    @property
    def is_exec(self) -> bool:
        return self.data_kind == EXEC_DATA_KIND

    @property
    def requires_link(self) -> bool:
        """Data input pins without a default must be fed by exactly one link."""
        return (
            self.direction is PinDirection.INPUT
            and not self.is_exec
            and self.default_value is None
            and not self.optional
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "node_id": self.node_id,
            "direction": self.direction.value,
            "data_kind": self.data_kind,
            "link_ids": sorted(self.link_ids),
            "default_value": self.default_value,
            "optional": self.optional,
        }


@dataclass(frozen=True)
class Node:
    """A node of the analyzed graph."""
    id: str
    kind: NodeKind
    type_name: str
    title: str = ""
    function_name: str = ""
    is_entry: bool = False
    properties: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    pin_ids: Tuple[str, ...] = ()

    @property
    def is_deprecated(self) -> bool:
        return bool(self.properties.get("deprecated", False))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "type_name": self.type_name,
            "title": self.title,
            "function_name": self.function_name,
            "is_entry": self.is_entry,
            "properties": dict(self.properties),
            "pin_ids": list(self.pin_ids),
        }


@dataclass(frozen=True)
class Link:
    """A directed connection from an output pin to an input pin."""
    id: str
    source_pin_id: str
    target_pin_id: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "source_pin_id": self.source_pin_id,
            "target_pin_id": self.target_pin_id,
        }


@dataclass(frozen=True)
class Graph:
    """Frozen snapshot of one analyzed unit plus its lookup indices.

    Built only by ``graph.ingest``; derived facts are kept in separate
    structures keyed by id and never written back here.
    """
    id: str
    name: str
    source: str
    timestamp: str
    nodes: Mapping[str, Node]
    pins: Mapping[str, Pin]
    links: Mapping[str, Link]
    pin_owner: Mapping[str, str]
    outgoing_links: Mapping[str, Tuple[str, ...]]
    incoming_links: Mapping[str, Tuple[str, ...]]

    @property
    def node_ids(self) -> List[str]:
        return sorted(self.nodes)

    @property
    def entry_node_ids(self) -> List[str]:
        return sorted(node_id for node_id, node in self.nodes.items() if node.is_entry)

    def link_source_node(self, link: Link) -> str:
        return self.pin_owner[link.source_pin_id]

    def link_target_node(self, link: Link) -> str:
        return self.pin_owner[link.target_pin_id]

    def is_exec_link(self, link: Link) -> bool:
        """A link is execution flow when both endpoints are exec pins."""
        return self.pins[link.source_pin_id].is_exec and self.pins[link.target_pin_id].is_exec

    def node_pins(self, node_id: str) -> List[Pin]:
        return [self.pins[pin_id] for pin_id in self.nodes[node_id].pin_ids]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "source": self.source,
            "timestamp": self.timestamp,
            "nodes": [self.nodes[node_id].to_dict() for node_id in sorted(self.nodes)],
            "pins": [self.pins[pin_id].to_dict() for pin_id in sorted(self.pins)],
            "links": [self.links[link_id].to_dict() for link_id in sorted(self.links)],
        }


@dataclass(frozen=True)
class FindingTarget:
    """Reference to the entity a finding is about."""
    kind: TargetKind
    id: str = ""

    @classmethod
    def graph(cls) -> "FindingTarget":
        return cls(kind=TargetKind.GRAPH)

    @classmethod
    def node(cls, node_id: str) -> "FindingTarget":
        return cls(kind=TargetKind.NODE, id=node_id)

    @classmethod
    def pin(cls, pin_id: str) -> "FindingTarget":
        return cls(kind=TargetKind.PIN, id=pin_id)

    @classmethod
    def link(cls, link_id: str) -> "FindingTarget":
        return cls(kind=TargetKind.LINK, id=link_id)

    @classmethod
    def widget(cls, widget_name: str) -> "FindingTarget":
        return cls(kind=TargetKind.WIDGET, id=widget_name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"kind": self.kind.value, "id": self.id}


@dataclass(frozen=True)
class Finding:
    """One defect or observation reported by a rule."""
    rule_id: str
    severity: Severity
    target: FindingTarget
    message: str
    suggested_fix: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[int, str, str, str, str]:
        return (-self.severity.rank, self.rule_id, self.target.id, self.target.kind.value, self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "target": self.target.to_dict(),
            "message": self.message,
            "suggested_fix": self.suggested_fix,
        }
