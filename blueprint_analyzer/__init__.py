"""
Static analysis of visual-scripting (Blueprint-style) node graphs: structural
defects, complexity hotspots and rule violations, reported deterministically.
"""

from .analyzer import BlueprintAnalyzer, analyze
from .config import AnalysisConfig, Settings, settings
from .errors import AnalyzerError, ConfigurationError, MalformedGraph, RuleExecutionFault
from .graph import GraphSnapshot, GraphTraversal, ingest
from .report import Report, ReportBuilder, save_report, to_json_text, to_llm_text
from .rules import DEFAULT_REGISTRY, RuleEngine, RuleRegistry, register
from .types import Finding, FindingTarget, Graph, Link, Node, NodeKind, Pin, PinDirection, Severity
from .widget import WidgetAnalyzer, WidgetReport, build_hierarchy, save_widget_report

__all__ = [
    'BlueprintAnalyzer',
    'analyze',
    'AnalysisConfig',
    'Settings',
    'settings',
    'AnalyzerError',
    'ConfigurationError',
    'MalformedGraph',
    'RuleExecutionFault',
    'GraphSnapshot',
    'GraphTraversal',
    'ingest',
    'Report',
    'ReportBuilder',
    'save_report',
    'to_json_text',
    'to_llm_text',
    'DEFAULT_REGISTRY',
    'RuleEngine',
    'RuleRegistry',
    'register',
    'Finding',
    'FindingTarget',
    'Graph',
    'Link',
    'Node',
    'NodeKind',
    'Pin',
    'PinDirection',
    'Severity',
    'WidgetAnalyzer',
    'WidgetReport',
    'build_hierarchy',
    'save_widget_report'
]
