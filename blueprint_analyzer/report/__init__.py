"""
Report module: deterministic report assembly and exporters.
"""

from .builder import Report, ReportBuilder
from .exporters import save_report, to_json_text, to_llm_text

__all__ = [
    'Report',
    'ReportBuilder',
    'save_report',
    'to_json_text',
    'to_llm_text'
]
