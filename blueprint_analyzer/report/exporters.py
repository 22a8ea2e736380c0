"""
Renderers used by callers of the analyzer (editor panels, CLI, file export).
"""
from typing import Optional
from pathlib import Path
import json

from ..types import Graph, PinDirection
from ..utils.logger import app_logger
from .builder import Report

logger = app_logger.bind(component="exporters")

EXPORT_FORMATS = ("json", "text")


def to_json_text(report: Report, graph: Optional[Graph] = None) -> str:
    """Serialize the portable form; identical reports give identical text.

    With ``graph`` the nodes, pins and links are appended under ``"graph"``.
    """
    document = report.to_portable_form()
    if graph is not None:
        document["graph"] = graph.to_dict()
    return json.dumps(document, indent=2, ensure_ascii=False)


def to_llm_text(report: Report, graph: Optional[Graph] = None) -> str:
    """Plain-text digest of the graph and the findings, suited for LLM prompts."""
    lines = [
        f"Blueprint Analysis: {report.graph_name or report.graph_id}",
        f"Analyzed at: {report.generated_at}",
        "",
    ]

    if graph is not None:
        lines.append("=== NODES ===")
        for node_id in graph.node_ids:
            node = graph.nodes[node_id]
            lines.append(f"- {node.type_name} [{node_id}]: {node.title or node_id}")
            if node.function_name:
                lines.append(f"  Function: {node.function_name}")
            pins = graph.node_pins(node_id)
            inputs = [f"{p.id}:{p.data_kind}" for p in pins if p.direction is PinDirection.INPUT]
            outputs = [f"{p.id}:{p.data_kind}" for p in pins if p.direction is PinDirection.OUTPUT]
            if inputs:
                lines.append(f"  Inputs: {', '.join(inputs)}")
            if outputs:
                lines.append(f"  Outputs: {', '.join(outputs)}")
            lines.append("")

        lines.append("=== CONNECTIONS ===")
        for link_id in sorted(graph.links):
            link = graph.links[link_id]
            lines.append(
                f"{graph.link_source_node(link)}.{link.source_pin_id} -> "
                f"{graph.link_target_node(link)}.{link.target_pin_id}"
            )
        lines.append("")

    lines.append("=== METRICS ===")
    for name in sorted(report.metrics.graph):
        lines.append(f"{name}: {report.metrics.graph[name]}")
    lines.append(f"quality_score: {report.summary['quality_score']}")
    lines.append("")

    lines.append("=== FINDINGS ===")
    if not report.findings:
        lines.append("(none)")
    for finding in report.findings:
        where = finding.target.kind.value
        if finding.target.id:
            where += f":{finding.target.id}"
        lines.append(f"[{finding.severity.value.upper()}] {finding.rule_id} @ {where}: {finding.message}")
        if finding.suggested_fix:
            lines.append(f"  Fix: {finding.suggested_fix}")

    return "\n".join(lines) + "\n"


def save_report(report: Report, file_path: str, fmt: str = "json", graph: Optional[Graph] = None) -> Path:
    """Write the report as JSON or LLM text and return the written path."""
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}', expected one of {', '.join(EXPORT_FORMATS)}")

    content = to_json_text(report, graph) if fmt == "json" else to_llm_text(report, graph)
    return write_export(content, file_path, f"{fmt} report for {report.graph_id!r}")


def write_export(content: str, file_path: str, label: str) -> Path:
    """Write an exported document, creating parent directories."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info(f"Saved {label} to {path}")
    return path
