from typing import List, Optional, Iterable


class AnalyzerError(Exception):
    """Base class for analyzer errors."""


class MalformedGraph(AnalyzerError):
    """Raised when a snapshot violates structural referential integrity."""

    def __init__(self, problems: Iterable[str], graph_name: Optional[str] = None):
        self.problems: List[str] = list(problems)
        self.graph_name = graph_name
        label = f"Malformed graph '{graph_name}'" if graph_name else "Malformed graph"
        summary = "; ".join(self.problems[:5])
        if len(self.problems) > 5:
            summary += f"; ... ({len(self.problems) - 5} more)"
        super().__init__(f"{label}: {summary}")


class RuleExecutionFault(AnalyzerError):
    """Wraps an exception raised inside a single rule."""

    def __init__(self, rule_id: str, cause: BaseException):
        self.rule_id = rule_id
        self.cause = cause
        super().__init__(f"Rule '{rule_id}' failed: {type(cause).__name__}: {cause}")


class ConfigurationError(AnalyzerError):
    """Unknown rule ids in the run configuration."""

    def __init__(self, unknown_enabled: Iterable[str] = (), unknown_thresholds: Iterable[str] = ()):
        self.unknown_enabled = sorted(unknown_enabled)
        self.unknown_thresholds = sorted(unknown_thresholds)
        parts = []
        if self.unknown_enabled:
            parts.append(f"enabled_rules: {', '.join(self.unknown_enabled)}")
        if self.unknown_thresholds:
            parts.append(f"thresholds: {', '.join(self.unknown_thresholds)}")
        super().__init__("Unknown rule ids ignored (" + "; ".join(parts) + ")")
