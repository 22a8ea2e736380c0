from typing import List, Dict, Any, Mapping, Optional, Tuple, Union
from dataclasses import dataclass
from types import MappingProxyType

from ..config import AnalysisConfig, Settings, settings as default_settings
from ..report.builder import MAX_QUALITY_SCORE, ReportBuilder
from ..rules.engine import RuleEngine
from ..rules.registry import RuleRegistry
from ..types import Finding
from ..utils.logger import app_logger
from .hierarchy import WidgetHierarchy, build_hierarchy, estimate_memory_usage
from .rules import WIDGET_REGISTRY, collect_widget_facts
from .snapshot import WidgetTreeSnapshot

# Points deducted per finding; other findings do not change the score
WIDGET_PENALTIES = {
    "widget-deep-nesting": 10,
    "widget-scale-size-box": 5,
    "widget-missing-invalidation-box": 20,
    "widget-missing-retainer-box": 10,
}
CACHING_BONUS = 20
CACHING_BONUS_MIN_WIDGETS = 5


def optimization_score(findings: List[Finding], total_widgets: int) -> int:
    """100-point optimization score with a bonus for trees that cache their rendering."""
    score = MAX_QUALITY_SCORE - sum(WIDGET_PENALTIES.get(f.rule_id, 0) for f in findings)
    missing_cache = any(
        f.rule_id in ("widget-missing-invalidation-box", "widget-missing-retainer-box")
        for f in findings
    )
    if not missing_cache and total_widgets > CACHING_BONUS_MIN_WIDGETS:
        score = min(score + CACHING_BONUS, MAX_QUALITY_SCORE)
    return max(0, min(score, MAX_QUALITY_SCORE))


@dataclass(frozen=True)
class WidgetReport:
    """Findings and statistics of one widget-tree analysis."""
    hierarchy: WidgetHierarchy
    generated_at: str
    findings: Tuple[Finding, ...]
    estimated_memory_kb: float
    summary: Mapping[str, int]

    @property
    def widget_id(self) -> str:
        return self.hierarchy.id

    @property
    def optimization_score(self) -> int:
        return self.summary["quality_score"]

    def findings_for(self, rule_id: str) -> List[Finding]:
        return [finding for finding in self.findings if finding.rule_id == rule_id]

    def metrics(self) -> Dict[str, Any]:
        return {
            "total_widgets": self.hierarchy.total_widgets,
            "max_depth": self.hierarchy.max_depth,
            "total_bindings": self.hierarchy.total_bindings,
            "estimated_memory_kb": self.estimated_memory_kb,
            "optimization_score": self.optimization_score,
        }

    def to_portable_form(self) -> Dict[str, Any]:
        """Structured document with a stable field and finding order."""
        metrics = self.metrics()
        metrics["summary"] = {key: self.summary[key] for key in sorted(self.summary)}
        return {
            "widget_id": self.widget_id,
            "generated_at": self.generated_at,
            "metrics": metrics,
            "hierarchy": [widget.to_dict() for widget in self.hierarchy.widgets],
            "findings": [finding.to_dict() for finding in self.findings],
        }


class WidgetAnalyzer:
    """Runs the widget optimization rules over one widget tree."""

    def __init__(self, registry: Optional[RuleRegistry] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.engine = RuleEngine(registry=registry or WIDGET_REGISTRY, settings=self.settings)
        self.logger = app_logger.bind(component="widget")

    def analyze(self, snapshot: Union[WidgetTreeSnapshot, Mapping[str, Any]],
                config: Union[AnalysisConfig, Mapping[str, Any], None] = None,
                generated_at: Optional[str] = None) -> WidgetReport:
        """Validate and flatten a raw widget tree, then analyze it."""
        return self.analyze_hierarchy(build_hierarchy(snapshot), config=config, generated_at=generated_at)

    def analyze_hierarchy(self, hierarchy: WidgetHierarchy,
                          config: Union[AnalysisConfig, Mapping[str, Any], None] = None,
                          generated_at: Optional[str] = None) -> WidgetReport:
        if config is None:
            config = AnalysisConfig()
        elif not isinstance(config, AnalysisConfig):
            config = AnalysisConfig.model_validate(config)

        self.logger.info(f"Analyzing widget tree {hierarchy.id!r} ({hierarchy.total_widgets} widgets)")
        rules, thresholds, problem = self.engine.resolve(config)
        facts = collect_widget_facts(hierarchy, thresholds)
        findings = ReportBuilder.sort_findings(
            self.engine.evaluate(rules, hierarchy, facts, problem=problem, label=hierarchy.id)
        )

        summary = ReportBuilder.summarize(findings)
        summary["quality_score"] = optimization_score(findings, hierarchy.total_widgets)
        report = WidgetReport(
            hierarchy=hierarchy,
            generated_at=generated_at if generated_at is not None else hierarchy.timestamp,
            findings=tuple(findings),
            estimated_memory_kb=estimate_memory_usage(hierarchy.widgets),
            summary=MappingProxyType(summary),
        )
        self.logger.info(
            f"Widget report for {hierarchy.id!r}: {len(findings)} findings, "
            f"optimization score {report.optimization_score}"
        )
        return report
