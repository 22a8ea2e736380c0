#!/usr/bin/env python3
"""
Blueprint Analyzer - command line entry point

Reads a graph snapshot (JSON) exported by the editor, runs the analyzer and
writes the report as JSON or as an LLM-friendly text digest. With --widget
the input is a widget tree and the optimization report can also be written
as a C++ header skeleton.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from blueprint_analyzer.analyzer import BlueprintAnalyzer
from blueprint_analyzer.config import AnalysisConfig, Settings, settings
from blueprint_analyzer.errors import MalformedGraph
from blueprint_analyzer.graph.ingest import ingest
from blueprint_analyzer.report.exporters import save_report, to_json_text, to_llm_text
from blueprint_analyzer.rules import DEFAULT_REGISTRY
from blueprint_analyzer.rules.registry import RuleRegistry
from blueprint_analyzer.utils.logger import app_logger, setup_logging
from blueprint_analyzer.widget import (
    WIDGET_EXPORT_FORMATS,
    WIDGET_REGISTRY,
    WidgetAnalyzer,
    build_hierarchy,
    generate_optimized_widget_code,
    save_widget_report,
    widget_to_json_text,
    widget_to_llm_text,
)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_MALFORMED = 2


def parse_thresholds(values: List[str]) -> Dict[str, float]:
    """Parse repeated ``rule=value`` arguments."""
    thresholds = {}
    for item in values:
        rule_id, sep, raw_value = item.partition("=")
        if not sep:
            raise ValueError(f"Threshold '{item}' must look like rule-id=value")
        try:
            thresholds[rule_id.strip()] = float(raw_value)
        except ValueError:
            raise ValueError(f"Threshold '{item}' has a non-numeric value")
    return thresholds


def build_config(args: argparse.Namespace, registry: RuleRegistry) -> AnalysisConfig:
    enabled = None
    if args.only_rule:
        enabled = set(args.only_rule)
    elif args.disable_rule:
        enabled = set(registry.ids) - set(args.disable_rule)
    return AnalysisConfig(enabled_rules=enabled, thresholds=parse_thresholds(args.threshold))


def load_snapshot(path: str) -> Any:
    """Read and decode the input JSON; OSError and JSONDecodeError propagate."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze a visual-scripting graph snapshot.")
    parser.add_argument("--input", help="Path to the graph (or widget tree) snapshot JSON")
    parser.add_argument("--output", help="Where to save the report (stdout when omitted)")
    parser.add_argument("--format", choices=WIDGET_EXPORT_FORMATS, default="json",
                        help="Report format; 'code' needs --widget")
    parser.add_argument("--widget", action="store_true", help="Input is a widget tree; run the widget optimization rules")
    parser.add_argument("--disable-rule", action="append", default=[], help="Rule id to disable (repeatable)")
    parser.add_argument("--only-rule", action="append", default=[], help="Run only this rule (repeatable)")
    parser.add_argument("--threshold", action="append", default=[], help="Override a threshold: rule-id=value")
    parser.add_argument("--workers", type=int, default=settings.max_workers, help="Worker threads for rules and metrics")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level")
    parser.add_argument("--list-rules", action="store_true", help="Print the available rules and exit")
    return parser.parse_args(argv)


def report_malformed(e: MalformedGraph) -> int:
    app_logger.error(str(e))
    for problem in e.problems:
        print(f"malformed: {problem}", file=sys.stderr)
    return EXIT_MALFORMED


def run_widget(args: argparse.Namespace, snapshot: Any, run_settings: Settings) -> int:
    try:
        hierarchy = build_hierarchy(snapshot)
    except MalformedGraph as e:
        return report_malformed(e)

    try:
        config = build_config(args, WIDGET_REGISTRY)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    report = WidgetAnalyzer(settings=run_settings).analyze_hierarchy(hierarchy, config=config)

    if args.output:
        path = save_widget_report(report, args.output, fmt=args.format)
        print(f"Report saved to: {path.resolve()}")
    elif args.format == "json":
        print(widget_to_json_text(report))
    elif args.format == "code":
        print(generate_optimized_widget_code(report), end="")
    else:
        print(widget_to_llm_text(report), end="")

    app_logger.info(
        f"Widgets: total={report.hierarchy.total_widgets} "
        f"memory={report.estimated_memory_kb:.2f}KB score={report.optimization_score}"
    )
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the analyzer CLI."""
    args = parse_args(argv)
    setup_logging(args.log_level, settings.log_file)

    if args.list_rules:
        registry = WIDGET_REGISTRY if args.widget else DEFAULT_REGISTRY
        for rule in registry:
            threshold = f" (threshold {rule.default_threshold:g})" if rule.default_threshold is not None else ""
            print(f"{rule.id:<32} {rule.severity.value:<8} {rule.description}{threshold}")
        return EXIT_OK

    if not args.input:
        print("error: --input is required", file=sys.stderr)
        return EXIT_USAGE

    if args.format == "code" and not args.widget:
        print("error: --format code is only available with --widget", file=sys.stderr)
        return EXIT_USAGE

    try:
        snapshot = load_snapshot(args.input)
    except OSError as e:
        print(f"error: cannot read {args.input}: {e}", file=sys.stderr)
        return EXIT_USAGE
    except json.JSONDecodeError as e:
        app_logger.error(f"Invalid JSON in {args.input}: {e}")
        print(f"malformed: invalid JSON: {e}", file=sys.stderr)
        return EXIT_MALFORMED

    run_settings = settings.model_copy(update={"max_workers": max(1, args.workers)})

    if args.widget:
        return run_widget(args, snapshot, run_settings)

    analyzer = BlueprintAnalyzer(settings=run_settings)
    try:
        graph = ingest(snapshot, exec_fan_in_policy=run_settings.exec_fan_in_policy)
    except MalformedGraph as e:
        return report_malformed(e)

    try:
        config = build_config(args, DEFAULT_REGISTRY)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    report = analyzer.analyze_graph(graph, config=config)

    if args.output:
        path = save_report(report, args.output, fmt=args.format, graph=graph)
        print(f"Report saved to: {path.resolve()}")
    elif args.format == "json":
        print(to_json_text(report))
    else:
        print(to_llm_text(report, graph), end="")

    summary = report.summary
    app_logger.info(
        f"Findings: error={summary['error']} warning={summary['warning']} "
        f"info={summary['info']} quality_score={summary['quality_score']}"
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
