"""
Command-line interface for journeyqa.

Provides commands for mapping journey steps, classifying failures,
maintaining the learned pattern store, and reading healing logs.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

import structlog

from journeyqa import __version__
from journeyqa.exceptions import JourneyQAError
from journeyqa.heal.classifier import classify_error
from journeyqa.heal.logger import (
    LOG_SUFFIX,
    aggregate_healing_logs,
    format_healing_log,
    load_healing_log,
)
from journeyqa.llkb.promotion import (
    PromotionCriteria,
    analyze_for_promotion,
    get_promotable_patterns,
    mark_patterns_promoted,
)
from journeyqa.llkb.store import LearnedPatternStore
from journeyqa.mapping.config import load_mapping_config
from journeyqa.mapping.context import MatchingContext
from journeyqa.mapping.step_mapper import (
    StepMapper,
    StepMappingResult,
    get_mapping_stats,
    suggest_improvements,
)

logger = structlog.get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose if hasattr(args, "verbose") else False)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except JourneyQAError as e:
        logger.error("Command failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="journeyqa",
        description="journeyqa - map journey steps to test actions and heal failing tests",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"journeyqa {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    map_parser = subparsers.add_parser("map", help="Map journey steps to IR primitives")
    map_parser.add_argument(
        "input",
        help="File with one step per line, or - for stdin",
    )
    map_parser.add_argument(
        "--config", "-c",
        help="Path to mapping config YAML",
    )
    map_parser.add_argument(
        "--journey-id",
        help="Journey the steps belong to",
    )
    map_parser.add_argument(
        "--format", "-f",
        choices=["json", "table"],
        default="table",
        dest="output_format",
        help="Output format",
    )
    map_parser.add_argument(
        "--no-llkb",
        action="store_true",
        help="Do not consult learned patterns",
    )
    map_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any step is blocked",
    )
    map_parser.set_defaults(func=cmd_map)

    classify_parser = subparsers.add_parser("classify", help="Classify a test failure message")
    classify_parser.add_argument(
        "message",
        help="Error message text",
    )
    classify_parser.add_argument(
        "--stack",
        default="",
        help="Stack trace or call log",
    )
    classify_parser.set_defaults(func=cmd_classify)

    llkb_parser = subparsers.add_parser("llkb", help="Maintain the learned pattern store")
    llkb_parser.add_argument(
        "--root",
        help="LLKB directory (default from mapping config)",
    )
    llkb_sub = llkb_parser.add_subparsers(dest="llkb_command", required=True)

    stats_parser = llkb_sub.add_parser("stats", help="Show pattern statistics")
    stats_parser.set_defaults(func=cmd_llkb_stats)

    prune_parser = llkb_sub.add_parser("prune", help="Remove weak patterns")
    prune_parser.add_argument("--min-confidence", type=float, default=0.3)
    prune_parser.add_argument("--min-success", type=int, default=1)
    prune_parser.add_argument("--max-age-days", type=int, default=90)
    prune_parser.set_defaults(func=cmd_llkb_prune)

    promote_parser = llkb_sub.add_parser("promote", help="Report or mark promotable patterns")
    promote_parser.add_argument(
        "--apply",
        action="store_true",
        help="Mark promotable patterns as promoted",
    )
    promote_parser.add_argument("--min-confidence", type=float, default=0.9)
    promote_parser.add_argument("--min-success", type=int, default=5)
    promote_parser.add_argument("--min-journeys", type=int, default=2)
    promote_parser.set_defaults(func=cmd_llkb_promote)

    export_parser = llkb_sub.add_parser("export", help="Export confident patterns")
    export_parser.add_argument("--output", "-o", help="Output file path")
    export_parser.add_argument("--min-confidence", type=float, default=0.7)
    export_parser.set_defaults(func=cmd_llkb_export)

    log_parser = subparsers.add_parser("heal-log", help="Render healing logs")
    log_parser.add_argument(
        "path",
        help="Healing log file, or a directory of logs to aggregate",
    )
    log_parser.add_argument(
        "--format", "-f",
        choices=["markdown", "json"],
        default="markdown",
        dest="output_format",
        help="Output format",
    )
    log_parser.set_defaults(func=cmd_heal_log)

    return parser


def configure_logging(verbose: bool) -> None:
    """Configure structured logging."""
    level = "DEBUG" if verbose else "INFO"
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer() if verbose else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    import logging

    logging.basicConfig(level=getattr(logging, level))


def _read_steps(source: str) -> list[str]:
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip() and not line.strip().startswith("#")]


def format_mapping(results: list[StepMappingResult], format_type: str) -> str:
    """Format mapping results."""
    stats = get_mapping_stats(results)
    if format_type == "json":
        return json.dumps(
            {
                "results": [r.to_dict() for r in results],
                "stats": asdict(stats),
                "suggestions": suggest_improvements(results),
            },
            indent=2,
        )

    lines = [
        f"{'Source':<9} {'Type':<26} {'Conf':<6} Step",
        "-" * 80,
    ]
    for r in results:
        lines.append(f"{r.source:<9} {r.primitive.type:<26} {r.confidence:<6.2f} {r.source_text}")
    lines.append("-" * 80)
    lines.append(
        f"Mapped {stats.mapped}/{stats.total} ({stats.mapping_rate:.0%}), "
        f"{stats.actions} actions, {stats.assertions} assertions, {stats.blocked} blocked"
    )
    suggestions = suggest_improvements(results)
    if suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(f"  {s}" for s in suggestions)
    return "\n".join(lines)


def cmd_map(args: argparse.Namespace) -> int:
    """Map journey steps to IR primitives."""
    from dotenv import load_dotenv

    load_dotenv()

    if args.input != "-" and not Path(args.input).is_file():
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1

    config = load_mapping_config(args.config)
    if args.no_llkb:
        config = config.model_copy(update={"llkb_enabled": False})

    mapper = StepMapper(MatchingContext.from_config(config), options=config.options)
    steps = _read_steps(args.input)
    if not steps:
        print("No steps found", file=sys.stderr)
        return 1

    results = mapper.map_steps(steps, journey_id=args.journey_id)
    print(format_mapping(results, args.output_format))

    blocked = sum(1 for r in results if r.is_blocked)
    return 1 if args.strict and blocked else 0


def cmd_classify(args: argparse.Namespace) -> int:
    """Classify a failure message."""
    classification = classify_error(args.message, args.stack)
    print(json.dumps(classification.model_dump(mode="json"), indent=2))
    return 0


def _store(args: argparse.Namespace) -> LearnedPatternStore:
    from dotenv import load_dotenv

    load_dotenv()

    if args.root:
        return LearnedPatternStore(Path(args.root))
    config = load_mapping_config()
    return LearnedPatternStore(config.llkb_root, cache_ttl_seconds=config.llkb_cache_ttl_seconds)


def cmd_llkb_stats(args: argparse.Namespace) -> int:
    """Show learned pattern statistics."""
    store = _store(args)
    print(json.dumps(store.get_stats().to_dict(), indent=2))
    return 0


def cmd_llkb_prune(args: argparse.Namespace) -> int:
    """Remove weak learned patterns."""
    store = _store(args)
    result = store.prune(
        min_confidence=args.min_confidence,
        min_success=args.min_success,
        max_age_days=args.max_age_days,
    )
    print(f"Removed {result.removed} pattern(s), {result.remaining} remaining")
    return 0


def cmd_llkb_promote(args: argparse.Namespace) -> int:
    """Report promotion candidates, optionally marking them promoted."""
    store = _store(args)
    criteria = PromotionCriteria(
        min_confidence=args.min_confidence,
        min_success_count=args.min_success,
        min_source_journeys=args.min_journeys,
    )

    if args.apply:
        promotable = get_promotable_patterns(store, criteria)
        marked = mark_patterns_promoted(store, [p.pattern.id for p in promotable], criteria)
        for p in promotable:
            print(f"{p.pattern.id}  {p.generated_regex}")
        print(f"Marked {len(marked)} pattern(s) as promoted")
        return 0

    report = analyze_for_promotion(store, criteria)
    print(json.dumps(report.to_dict(), indent=2))
    return 0


def cmd_llkb_export(args: argparse.Namespace) -> int:
    """Export confident learned patterns."""
    store = _store(args)
    path, count = store.export_to_config(args.output, min_confidence=args.min_confidence)
    print(f"Exported {count} pattern(s) to {path}")
    return 0


def cmd_heal_log(args: argparse.Namespace) -> int:
    """Render a healing log or aggregate a directory of logs."""
    path = Path(args.path)

    if path.is_dir():
        logs = [log for p in sorted(path.glob(f"*{LOG_SUFFIX}")) if (log := load_healing_log(p)) is not None]
        if not logs:
            print(f"No healing logs found in {path}", file=sys.stderr)
            return 1
        print(json.dumps(asdict(aggregate_healing_logs(logs)), indent=2))
        return 0

    log = load_healing_log(path)
    if log is None:
        print(f"Error: Healing log not found or unreadable: {path}", file=sys.stderr)
        return 1

    if args.output_format == "json":
        print(log.model_dump_json(indent=2))
    else:
        print(format_healing_log(log))
    return 0


if __name__ == "__main__":
    sys.exit(main())
