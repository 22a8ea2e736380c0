from typing import List, Dict, Any, Optional, Tuple, Mapping, Union
from dataclasses import dataclass
from types import MappingProxyType

from ..errors import MalformedGraph
from ..graph.ingest import parse_snapshot, snapshot_fingerprint
from ..utils.logger import app_logger
from .snapshot import WidgetTreeSnapshot

logger = app_logger.bind(component="widget")

# Rough per-widget footprint in KB
BASE_WIDGET_MEMORY_KB = 1.0
WIDGET_TYPE_MEMORY_KB = (
    ("Image", 2.0),
    ("TextBlock", 0.5),
    ("ListView", 5.0),
)
BINDING_MEMORY_KB = 0.1


@dataclass(frozen=True)
class WidgetInfo:
    """One widget of a flattened hierarchy."""
    name: str
    widget_type: str
    depth: int
    parent: Optional[str] = None
    children_count: int = 0
    bound_properties: Tuple[str, ...] = ()

    @property
    def has_bindings(self) -> bool:
        return bool(self.bound_properties)

    def is_a(self, type_fragment: str) -> bool:
        """Type name match by substring, so ``CommonTextBlock`` counts as a TextBlock."""
        return type_fragment in self.widget_type

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "widget_type": self.widget_type,
            "depth": self.depth,
            "parent": self.parent,
            "children_count": self.children_count,
            "has_bindings": self.has_bindings,
            "bound_properties": list(self.bound_properties),
        }


@dataclass(frozen=True)
class WidgetHierarchy:
    """Frozen, depth-first flattened widget tree of one widget blueprint."""
    id: str
    name: str
    source: str
    timestamp: str
    widgets: Tuple[WidgetInfo, ...]
    by_name: Mapping[str, WidgetInfo]

    @property
    def root(self) -> Optional[WidgetInfo]:
        return self.widgets[0] if self.widgets else None

    @property
    def total_widgets(self) -> int:
        return len(self.widgets)

    @property
    def max_depth(self) -> int:
        return max((widget.depth for widget in self.widgets), default=0)

    @property
    def total_bindings(self) -> int:
        return sum(len(widget.bound_properties) for widget in self.widgets)

    def ancestors(self, name: str) -> List[WidgetInfo]:
        """Parents of ``name`` from the closest up to the root."""
        chain = []
        parent = self.by_name[name].parent
        while parent is not None:
            widget = self.by_name[parent]
            chain.append(widget)
            parent = widget.parent
        return chain


def estimate_memory_usage(widgets: Tuple[WidgetInfo, ...]) -> float:
    """Estimated memory footprint of the widgets in KB."""
    total = 0.0
    for widget in widgets:
        total += BASE_WIDGET_MEMORY_KB
        for type_fragment, extra in WIDGET_TYPE_MEMORY_KB:
            if widget.is_a(type_fragment):
                total += extra
                break
        total += BINDING_MEMORY_KB * len(widget.bound_properties)
    return round(total, 2)


def build_hierarchy(raw: Union[WidgetTreeSnapshot, Mapping[str, Any]]) -> WidgetHierarchy:
    """Validate a widget-tree snapshot and flatten it in depth-first pre-order.

    Raises:
        MalformedGraph: on schema errors or duplicate widget names.
    """
    snapshot = parse_snapshot(WidgetTreeSnapshot, raw)
    label = snapshot.name or snapshot.id

    widgets: List[WidgetInfo] = []
    by_name: Dict[str, WidgetInfo] = {}
    problems: List[str] = []

    stack = [(snapshot.root, 0, None)] if snapshot.root is not None else []
    while stack:
        record, depth, parent = stack.pop()
        if record.name in by_name:
            problems.append(f"duplicate widget name '{record.name}'")
            continue
        info = WidgetInfo(
            name=record.name,
            widget_type=record.type,
            depth=depth,
            parent=parent,
            children_count=len(record.children),
            bound_properties=tuple(record.bound_properties),
        )
        widgets.append(info)
        by_name[info.name] = info
        for child in reversed(record.children):
            stack.append((child, depth + 1, record.name))

    if problems:
        logger.warning(f"Rejected widget tree {label!r}: {len(problems)} structural problem(s)")
        raise MalformedGraph(problems, graph_name=label)

    hierarchy = WidgetHierarchy(
        id=snapshot.id or snapshot.name or snapshot_fingerprint(snapshot, prefix="widget"),
        name=snapshot.name,
        source=snapshot.source,
        timestamp=snapshot.timestamp,
        widgets=tuple(widgets),
        by_name=MappingProxyType(by_name),
    )
    logger.debug(f"Flattened widget tree {hierarchy.id!r}: {hierarchy.total_widgets} widgets")
    return hierarchy
