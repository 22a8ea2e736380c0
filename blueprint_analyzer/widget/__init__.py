"""
Widget module: optimization analysis of UI widget trees.
"""

from .analyzer import WidgetAnalyzer, WidgetReport, optimization_score
from .exporters import (
    WIDGET_EXPORT_FORMATS,
    generate_optimized_widget_code,
    save_widget_report,
    widget_to_json_text,
    widget_to_llm_text,
)
from .hierarchy import WidgetHierarchy, WidgetInfo, build_hierarchy, estimate_memory_usage
from .rules import WIDGET_REGISTRY, WidgetFacts
from .snapshot import WidgetRecord, WidgetTreeSnapshot

__all__ = [
    'WidgetAnalyzer',
    'WidgetReport',
    'optimization_score',
    'WIDGET_EXPORT_FORMATS',
    'generate_optimized_widget_code',
    'save_widget_report',
    'widget_to_json_text',
    'widget_to_llm_text',
    'WidgetHierarchy',
    'WidgetInfo',
    'build_hierarchy',
    'estimate_memory_usage',
    'WIDGET_REGISTRY',
    'WidgetFacts',
    'WidgetRecord',
    'WidgetTreeSnapshot'
]
