from typing import Any, Mapping, Optional, Union

from .analysis.facts import collect_structural_facts
from .analysis.metrics import MetricCollector
from .config import AnalysisConfig, Settings, settings as default_settings
from .graph.ingest import ingest
from .graph.snapshot import GraphSnapshot
from .graph.traversal import GraphTraversal
from .report.builder import Report, ReportBuilder
from .rules.engine import RuleEngine
from .rules.registry import RuleRegistry
from .types import Graph
from .utils.logger import app_logger


class BlueprintAnalyzer:
    """Runs ingestion, traversal, metrics, rules and report assembly for one graph.

    The caller gets either a ``MalformedGraph`` before any analysis starts
    or a complete Report; faults inside rules end up as findings.
    """

    def __init__(self, registry: Optional[RuleRegistry] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.engine = RuleEngine(registry=registry, settings=self.settings)
        self.builder = ReportBuilder()
        self.logger = app_logger.bind(component="analyzer")

    def analyze(self, snapshot: Union[GraphSnapshot, Mapping[str, Any]],
                config: Union[AnalysisConfig, Mapping[str, Any], None] = None,
                generated_at: Optional[str] = None) -> Report:
        """Ingest a raw snapshot and analyze it."""
        graph = ingest(snapshot, exec_fan_in_policy=self.settings.exec_fan_in_policy)
        return self.analyze_graph(graph, config=config, generated_at=generated_at)

    def analyze_graph(self, graph: Graph,
                      config: Union[AnalysisConfig, Mapping[str, Any], None] = None,
                      generated_at: Optional[str] = None) -> Report:
        """Analyze an already ingested graph."""
        if config is None:
            config = AnalysisConfig()
        elif not isinstance(config, AnalysisConfig):
            config = AnalysisConfig.model_validate(config)

        self.logger.info(f"Analyzing graph {graph.id!r} ({len(graph.nodes)} nodes, {len(graph.links)} links)")
        traversal = GraphTraversal(graph)
        structure = collect_structural_facts(traversal)
        metrics = MetricCollector(graph, traversal, structure, max_workers=self.settings.max_workers).collect()
        findings = self.engine.run(graph, traversal, structure, metrics, config)
        return self.builder.build(graph, metrics, findings, generated_at=generated_at)


def analyze(snapshot: Union[GraphSnapshot, Mapping[str, Any]],
            config: Union[AnalysisConfig, Mapping[str, Any], None] = None,
            generated_at: Optional[str] = None) -> Report:
    """Analyze a snapshot with the built-in rules and default settings."""
    return BlueprintAnalyzer().analyze(snapshot, config=config, generated_at=generated_at)
