"""
Widget-tree optimization checks, registered in their own registry so that
they never run against node graphs.
"""
from typing import Iterator, Mapping, Optional
from dataclasses import dataclass, field
from types import MappingProxyType

from ..rules.registry import Issue, RuleRegistry
from ..types import FindingTarget, Severity
from .hierarchy import WidgetHierarchy

WIDGET_REGISTRY = RuleRegistry()
register_widget_rule = WIDGET_REGISTRY.register

DYNAMIC_WIDGET_TYPES = ("ProgressBar", "TextBlock", "Slider")
COMPLEX_CHILDREN_COUNT = 10


@dataclass(frozen=True)
class WidgetFacts:
    """Tree-wide observations shared by the widget rules."""
    has_invalidation_box: bool
    has_retainer_box: bool
    has_dynamic_widgets: bool
    has_complex_static_widgets: bool
    thresholds: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))

    def threshold(self, rule_id: str, default: Optional[float] = None) -> float:
        value = self.thresholds.get(rule_id, default)
        if value is None:
            raise KeyError(f"No threshold configured for rule '{rule_id}'")
        return value


def collect_widget_facts(hierarchy: WidgetHierarchy, thresholds: Mapping[str, float]) -> WidgetFacts:
    has_invalidation = has_retainer = has_dynamic = has_complex = False
    # Each widget counts toward the first category it matches
    for widget in hierarchy.widgets:
        if widget.is_a("InvalidationBox"):
            has_invalidation = True
        elif widget.is_a("RetainerBox"):
            has_retainer = True
        elif any(widget.is_a(kind) for kind in DYNAMIC_WIDGET_TYPES):
            has_dynamic = True
        elif widget.children_count > COMPLEX_CHILDREN_COUNT or widget.is_a("Image"):
            has_complex = True
    return WidgetFacts(
        has_invalidation_box=has_invalidation,
        has_retainer_box=has_retainer,
        has_dynamic_widgets=has_dynamic,
        has_complex_static_widgets=has_complex,
        thresholds=MappingProxyType(dict(thresholds)),
    )


def _root_target(hierarchy: WidgetHierarchy) -> FindingTarget:
    root = hierarchy.root
    return FindingTarget.widget(root.name) if root is not None else FindingTarget.graph()


@register_widget_rule("widget-deep-nesting", Severity.WARNING,
                      "Widget nested deeper than the threshold.", default_threshold=5.0)
def widget_deep_nesting(hierarchy: WidgetHierarchy, facts: WidgetFacts) -> Iterator[Issue]:
    limit = facts.threshold("widget-deep-nesting")
    for widget in hierarchy.widgets:
        if widget.depth > limit:
            yield Issue(
                FindingTarget.widget(widget.name),
                f"Widget '{widget.name}' is nested {widget.depth} levels deep (max recommended: {limit:g})",
                "Flatten the widget hierarchy to cut layout calculation cost.",
            )


@register_widget_rule("widget-scale-size-box", Severity.WARNING,
                      "SizeBox placed inside a ScaleBox.")
def widget_scale_size_box(hierarchy: WidgetHierarchy, facts: WidgetFacts) -> Iterator[Issue]:
    for widget in hierarchy.widgets:
        if not widget.is_a("SizeBox"):
            continue
        scale_box = next((a for a in hierarchy.ancestors(widget.name) if a.is_a("ScaleBox")), None)
        if scale_box is not None:
            yield Issue(
                FindingTarget.widget(widget.name),
                f"SizeBox '{widget.name}' is used together with ScaleBox '{scale_box.name}'",
                "Avoid combining ScaleBox and SizeBox; both recompute the desired size every layout pass.",
            )


@register_widget_rule("widget-missing-invalidation-box", Severity.ERROR,
                      "Frequently updating widgets without an InvalidationBox.")
def widget_missing_invalidation_box(hierarchy: WidgetHierarchy, facts: WidgetFacts) -> Iterator[Issue]:
    if facts.has_dynamic_widgets and not facts.has_invalidation_box:
        yield Issue(
            _root_target(hierarchy),
            f"Dynamic widgets ({', '.join(DYNAMIC_WIDGET_TYPES)}) found but no InvalidationBox is used",
            "Wrap frequently updating widgets with an InvalidationBox.",
        )


@register_widget_rule("widget-missing-retainer-box", Severity.WARNING,
                      "Complex static widget groups without a RetainerBox.")
def widget_missing_retainer_box(hierarchy: WidgetHierarchy, facts: WidgetFacts) -> Iterator[Issue]:
    if facts.has_complex_static_widgets and not facts.has_retainer_box:
        yield Issue(
            _root_target(hierarchy),
            "Complex but rarely changing widgets found but no RetainerBox is used",
            "Use a RetainerBox for complex static widget groups to cache their rendering.",
        )
