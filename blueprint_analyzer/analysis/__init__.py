"""
Analysis module: structural facts and metrics derived from a frozen graph.
"""

from .facts import AnalysisFacts, StructuralFacts, collect_structural_facts
from .metrics import GraphMetrics, MetricCollector, NodeMetrics

__all__ = [
    'AnalysisFacts',
    'StructuralFacts',
    'collect_structural_facts',
    'GraphMetrics',
    'MetricCollector',
    'NodeMetrics'
]
