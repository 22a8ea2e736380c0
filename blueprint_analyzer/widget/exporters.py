"""
Renderers for widget reports: JSON, LLM text and a C++ header skeleton.
"""
from pathlib import Path
import json

from ..report.exporters import write_export
from .analyzer import WidgetReport

WIDGET_EXPORT_FORMATS = ("json", "text", "code")

# Widgets this shallow become BindWidget members of the generated class
CODEGEN_MAX_DEPTH = 2


def widget_to_json_text(report: WidgetReport) -> str:
    return json.dumps(report.to_portable_form(), indent=2, ensure_ascii=False)


def widget_to_llm_text(report: WidgetReport) -> str:
    """Plain-text digest of the widget tree and its optimization issues."""
    hierarchy = report.hierarchy
    lines = [
        f"Widget Blueprint Optimization Report: {hierarchy.name or hierarchy.id}",
        f"Analyzed at: {report.generated_at}",
        "",
        "=== SUMMARY ===",
        f"Total Widgets: {hierarchy.total_widgets}",
        f"Maximum Depth: {hierarchy.max_depth}",
        f"Total Bindings: {hierarchy.total_bindings}",
        f"Estimated Memory Usage: {report.estimated_memory_kb:.2f} KB",
        f"Optimization Score: {report.optimization_score}/100",
        "",
        "=== WIDGET HIERARCHY ===",
    ]
    for widget in hierarchy.widgets:
        indent = "  " * widget.depth
        lines.append(f"{indent}- {widget.name} ({widget.widget_type})")
        if widget.children_count:
            lines.append(f"{indent}  Children: {widget.children_count}")
        if widget.has_bindings:
            lines.append(f"{indent}  Bindings: {len(widget.bound_properties)}")

    lines.extend(["", "=== OPTIMIZATION ISSUES ==="])
    if not report.findings:
        lines.append("No optimization issues found!")
    for finding in report.findings:
        lines.append(f"[{finding.severity.value.upper()}] {finding.rule_id}: {finding.message}")
        lines.append(f"  Widget: {finding.target.id or hierarchy.id}")
        if finding.suggested_fix:
            lines.append(f"  Recommendation: {finding.suggested_fix}")
        lines.append("")

    return "\n".join(lines) + "\n"


def generate_optimized_widget_code(report: WidgetReport, api_macro: str = "YOURPROJECT_API") -> str:
    """C++ UUserWidget header skeleton binding the top-level widgets of the tree."""
    name = report.hierarchy.name or report.hierarchy.id
    lines = [
        f"// Optimized Widget Blueprint Code for {name}",
        f"// Generated on {report.generated_at}",
        f"// Original Optimization Score: {report.optimization_score}/100",
        "",
        "#pragma once",
        "",
        '#include "CoreMinimal.h"',
        '#include "Blueprint/UserWidget.h"',
        f'#include "Optimized{name}.generated.h"',
        "",
        "UCLASS()",
        f"class {api_macro} UOptimized{name} : public UUserWidget",
        "{",
        "\tGENERATED_BODY()",
        "",
        "public:",
        f"\tUOptimized{name}(const FObjectInitializer& ObjectInitializer);",
        "",
        "protected:",
        "\tvirtual void NativeConstruct() override;",
        "\tvirtual void NativePreConstruct(bool IsDesignTime) override;",
        "",
        "\t// Widget components",
    ]
    for widget in report.hierarchy.widgets:
        if widget.depth <= CODEGEN_MAX_DEPTH:
            lines.append("\tUPROPERTY(meta = (BindWidget))")
            lines.append(f"\tU{widget.widget_type.replace('Widget', '')}* {widget.name};")
            lines.append("")
    lines.extend([
        "private:",
        "\tvoid InitializeOptimizedLayout();",
        "\tvoid ApplyPerformanceOptimizations();",
        "};",
        "",
        "// Optimization Recommendations:",
    ])
    for finding in report.findings:
        lines.append(f"// - {finding.rule_id}: {finding.suggested_fix or finding.message}")

    return "\n".join(lines) + "\n"


def save_widget_report(report: WidgetReport, file_path: str, fmt: str = "json") -> Path:
    """Write the widget report as JSON, LLM text or a C++ header skeleton."""
    fmt = fmt.lower()
    if fmt not in WIDGET_EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}', expected one of {', '.join(WIDGET_EXPORT_FORMATS)}")

    renderers = {
        "json": widget_to_json_text,
        "text": widget_to_llm_text,
        "code": generate_optimized_widget_code,
    }
    return write_export(renderers[fmt](report), file_path, f"{fmt} widget report for {report.widget_id!r}")
