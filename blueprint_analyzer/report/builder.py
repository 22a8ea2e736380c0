from typing import List, Dict, Any, Optional, Iterable, Tuple, Mapping
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType

from ..analysis.metrics import GraphMetrics
from ..types import Finding, Graph, Severity
from ..utils.logger import app_logger

MAX_QUALITY_SCORE = 100


@dataclass(frozen=True)
class Report:
    """Findings and metrics of one analysis run."""
    graph_id: str
    graph_name: str
    generated_at: str
    findings: Tuple[Finding, ...]
    metrics: GraphMetrics
    summary: Mapping[str, int]

    def findings_for(self, rule_id: str) -> List[Finding]:
        return [finding for finding in self.findings if finding.rule_id == rule_id]

    def to_portable_form(self) -> Dict[str, Any]:
        """Structured document with a stable field and finding order."""
        metrics = self.metrics.to_dict()
        metrics["summary"] = {key: self.summary[key] for key in sorted(self.summary)}
        return {
            "graph_id": self.graph_id,
            "generated_at": self.generated_at,
            "metrics": metrics,
            "findings": [finding.to_dict() for finding in self.findings],
        }


class ReportBuilder:
    """Merges rule output and metrics into a Report. Performs no analysis."""

    def __init__(self):
        self.logger = app_logger.bind(component="report")

    def build(self, graph: Graph, metrics: GraphMetrics, findings: Iterable[Finding],
              generated_at: Optional[str] = None) -> Report:
        ordered = self.sort_findings(findings)
        report = Report(
            graph_id=graph.id,
            graph_name=graph.name,
            # Snapshot time keeps repeated runs on the same input identical
            generated_at=generated_at if generated_at is not None else graph.timestamp,
            findings=tuple(ordered),
            metrics=metrics,
            summary=MappingProxyType(self.summarize(ordered)),
        )
        self.logger.info(
            f"Report for {graph.id!r}: {len(ordered)} findings, "
            f"quality score {report.summary['quality_score']}"
        )
        return report

    @staticmethod
    def sort_findings(findings: Iterable[Finding]) -> List[Finding]:
        """Severity descending, then rule id, then target id."""
        return sorted(findings, key=lambda finding: finding.sort_key)

    @staticmethod
    def summarize(findings: List[Finding]) -> Dict[str, int]:
        counts = Counter(finding.severity for finding in findings)
        penalty = sum(severity.score_penalty * count for severity, count in counts.items())
        summary = {severity.value: counts.get(severity, 0) for severity in Severity}
        summary["quality_score"] = max(0, MAX_QUALITY_SCORE - penalty)
        return summary
