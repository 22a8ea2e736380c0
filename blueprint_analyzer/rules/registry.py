from typing import Any, Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional
from dataclasses import dataclass

from ..types import Finding, FindingTarget, Severity


class Issue(NamedTuple):
    """What a check reports; the owning rule turns it into a Finding."""
    target: FindingTarget
    message: str
    suggested_fix: Optional[str] = None


# Graph checks take (Graph, AnalysisFacts); widget checks take (WidgetHierarchy, WidgetFacts)
CheckFunction = Callable[[Any, Any], Iterable[Issue]]


@dataclass(frozen=True)
class Rule:
    """A named check with its declared severity and optional threshold default."""
    id: str
    severity: Severity
    description: str
    check: CheckFunction
    default_threshold: Optional[float] = None

    def evaluate(self, subject: Any, facts: Any) -> List[Finding]:
        return [
            Finding(
                rule_id=self.id,
                severity=self.severity,
                target=issue.target,
                message=issue.message,
                suggested_fix=issue.suggested_fix,
            )
            for issue in self.check(subject, facts)
        ]


class RuleRegistry:
    """Mapping of rule id to Rule; new checks are added by registration."""

    def __init__(self):
        self._rules: Dict[str, Rule] = {}

    def add(self, rule: Rule) -> Rule:
        if rule.id in self._rules:
            raise ValueError(f"Rule '{rule.id}' is already registered")
        self._rules[rule.id] = rule
        return rule

    def register(self, rule_id: str, severity: Severity, description: str,
                 default_threshold: Optional[float] = None):
        """Decorator registering a check function under ``rule_id``."""
        def decorator(check: CheckFunction) -> CheckFunction:
            self.add(Rule(
                id=rule_id,
                severity=severity,
                description=description,
                check=check,
                default_threshold=default_threshold,
            ))
            return check
        return decorator

    def get(self, rule_id: str) -> Rule:
        return self._rules[rule_id]

    def copy(self) -> "RuleRegistry":
        clone = RuleRegistry()
        for rule in self:
            clone.add(rule)
        return clone

    @property
    def ids(self) -> List[str]:
        return sorted(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules[rule_id] for rule_id in self.ids)

    def __len__(self) -> int:
        return len(self._rules)


DEFAULT_REGISTRY = RuleRegistry()
register = DEFAULT_REGISTRY.register
