from typing import Any, List, Dict, Optional, Tuple
from concurrent.futures import ThreadPoolExecutor, as_completed
from types import MappingProxyType

from ..analysis.facts import AnalysisFacts, StructuralFacts
from ..analysis.metrics import GraphMetrics
from ..config import AnalysisConfig, Settings, settings as default_settings
from ..errors import ConfigurationError, RuleExecutionFault
from ..graph.traversal import GraphTraversal
from ..types import Finding, FindingTarget, Graph, Severity
from ..utils.logger import app_logger
from .registry import DEFAULT_REGISTRY, Rule, RuleRegistry

CONFIGURATION_RULE_ID = "configuration"


class RuleEngine:
    """Evaluates the enabled rules of a registry against one graph.

    Rules run independently: every rule reads the same frozen graph and
    facts and writes only to its own result list, so the merged finding
    set does not depend on evaluation order or on ``max_workers``. A rule
    that raises is replaced by a single error finding naming it.
    """

    def __init__(self, registry: Optional[RuleRegistry] = None, settings: Optional[Settings] = None):
        self.registry = registry or DEFAULT_REGISTRY
        self.settings = settings or default_settings
        self.logger = app_logger.bind(component="rule_engine")

    def resolve(self, config: AnalysisConfig) -> Tuple[List[Rule], Dict[str, float], Optional[ConfigurationError]]:
        """Enabled rules, effective thresholds and any unknown-id problem."""
        unknown_enabled = set(config.enabled_rules or ()) - set(self.registry.ids)
        unknown_thresholds = set(config.thresholds) - set(self.registry.ids)
        problem = None
        if unknown_enabled or unknown_thresholds:
            problem = ConfigurationError(unknown_enabled, unknown_thresholds)

        thresholds = {
            rule.id: rule.default_threshold
            for rule in self.registry
            if rule.default_threshold is not None
        }
        for rule_id, value in config.thresholds.items():
            if rule_id in self.registry:
                thresholds[rule_id] = float(value)

        rules = [rule for rule in self.registry if config.is_enabled(rule.id)]
        return rules, thresholds, problem

    def run(self, graph: Graph, traversal: GraphTraversal, structure: StructuralFacts,
            metrics: GraphMetrics, config: Optional[AnalysisConfig] = None) -> List[Finding]:
        config = config or AnalysisConfig()
        rules, thresholds, problem = self.resolve(config)
        facts = AnalysisFacts(
            traversal=traversal,
            structure=structure,
            metrics=metrics,
            thresholds=MappingProxyType(thresholds),
            deprecated_node_types=frozenset(self.settings.deprecated_node_types_list),
            exec_fan_in_policy=self.settings.exec_fan_in_policy,
        )
        return self.evaluate(rules, graph, facts, problem=problem, label=graph.id)

    def evaluate(self, rules: List[Rule], subject: Any, facts: Any,
                 problem: Optional[ConfigurationError] = None, label: str = "") -> List[Finding]:
        """Run ``rules`` against one subject and merge their findings in rule-id order.

        ``subject`` and ``facts`` are whatever the rules' checks accept: a
        Graph with AnalysisFacts, or a widget hierarchy with its facts.
        """
        findings: List[Finding] = []
        if problem is not None:
            self.logger.warning(str(problem))
            findings.append(Finding(
                rule_id=CONFIGURATION_RULE_ID,
                severity=Severity.WARNING,
                target=FindingTarget.graph(),
                message=str(problem),
                suggested_fix=f"Known rule ids: {', '.join(self.registry.ids)}",
            ))

        workers = self.settings.max_workers
        if workers > 1 and len(rules) > 1:
            results: Dict[str, List[Finding]] = {}
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {executor.submit(self._evaluate_rule, rule, subject, facts): rule.id for rule in rules}
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
            for rule in rules:
                findings.extend(results[rule.id])
        else:
            for rule in rules:
                findings.extend(self._evaluate_rule(rule, subject, facts))

        self.logger.debug(f"Evaluated {len(rules)} rules on {label!r}: {len(findings)} findings")
        return findings

    def _evaluate_rule(self, rule: Rule, subject: Any, facts: Any) -> List[Finding]:
        try:
            return rule.evaluate(subject, facts)
        except Exception as e:
            fault = RuleExecutionFault(rule.id, e)
            self.logger.opt(exception=e).error(str(fault))
            return [Finding(
                rule_id=rule.id,
                severity=Severity.ERROR,
                target=FindingTarget.graph(),
                message=f"Rule execution failed: {type(e).__name__}: {e}",
                suggested_fix="Report this rule failure; the rest of the analysis is unaffected.",
            )]
