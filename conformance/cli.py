"""Command-line entry point for the conformance checker."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .config import CheckerConfig, load_config
from .engine import collect_files, run_check
from .errors import ConfigurationError
from .fixers import run_formatters
from .result import RENDERERS, Report, format_summary_table
from .rules import all_rules

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conformance",
        description="Check Terraform, JavaScript and Python sources against coding standards.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Files or directories to check (directories are searched recursively).",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="YAML configuration file (defaults to .conformance.yaml when present).",
    )
    parser.add_argument(
        "--format",
        choices=sorted(RENDERERS),
        default="text",
        help="Report format (defaults to text).",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        default=None,
        help="Write the report to this file and print only the summary.",
    )
    parser.add_argument(
        "--fix",
        action="store_true",
        help="Run terraform fmt, prettier and black on the files before checking.",
    )
    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="Print the rule catalog and exit.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log progress to stderr (-v for info, -vv for debug).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    overrides = parser.add_argument_group("configuration overrides")
    overrides.add_argument("--line-length", type=int, default=None, help="Maximum line length.")
    overrides.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Glob of paths to skip (repeatable).",
    )
    overrides.add_argument(
        "--disable-category",
        action="append",
        default=[],
        metavar="CATEGORY",
        help="Do not run rules in this category (repeatable).",
    )
    overrides.add_argument(
        "--enable-category",
        action="append",
        default=[],
        metavar="CATEGORY",
        help="Only run rules in these categories (repeatable).",
    )
    overrides.add_argument(
        "--disable-rule",
        action="append",
        default=[],
        metavar="RULE",
        help="Do not run this rule id (repeatable).",
    )
    overrides.add_argument(
        "--severity",
        action="append",
        default=[],
        metavar="RULE=LEVEL",
        help="Override the severity of a rule (repeatable).",
    )
    overrides.add_argument("--workers", type=int, default=None, help="Number of files checked in parallel.")
    overrides.add_argument("--timeout", type=float, default=None, help="Stop after this many seconds.")
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def collect_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate command-line flags into the configuration file's shape."""

    overrides: Dict[str, Any] = {
        "line_length": args.line_length,
        "workers": args.workers,
        "timeout": args.timeout,
    }
    if args.exclude:
        overrides["exclude"] = list(args.exclude)
    categories: Dict[str, List[str]] = {}
    if args.enable_category:
        categories["enable"] = list(args.enable_category)
    if args.disable_category:
        categories["disable"] = list(args.disable_category)
    if categories:
        overrides["categories"] = categories
    if args.disable_rule:
        overrides["rules"] = {"disable": list(args.disable_rule)}
    if args.severity:
        levels: Dict[str, str] = {}
        for item in args.severity:
            rule_id, separator, level = item.partition("=")
            if not separator or not rule_id.strip() or not level.strip():
                raise ConfigurationError(f"--severity expects RULE=LEVEL, got {item!r}")
            levels[rule_id.strip()] = level.strip()
        overrides["severity"] = levels
    return overrides


def format_rule_list() -> str:
    lines = []
    for rule in all_rules():
        languages = ",".join(language.value for language in sorted(rule.languages, key=lambda lang: lang.value))
        lines.append(
            f"{rule.id}  {rule.name:<26} {rule.category:<15} {rule.severity.value:<8} {languages:<29} {rule.description}"
        )
    return "\n".join(lines)


def run_fixers(paths: List[str], config: CheckerConfig) -> None:
    files, _ = collect_files(paths, config.exclude)
    for run in run_formatters(files, config.options.line_length):
        if run.returncode is None:
            print(f"fix: {run.command[0]} unavailable, skipped {run.language.value}", file=sys.stderr)


def write_output(report: Report, output_path: Optional[str], report_format: str) -> None:
    payload = RENDERERS[report_format](report)
    if output_path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(payload, encoding="utf-8")
        print(format_summary_table(report))
        print(f"\nReport written to {output_path}")
    else:
        sys.stdout.write(payload)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.list_rules:
        print(format_rule_list())
        return 0

    try:
        config = load_config(args.config_path, collect_overrides(args))
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.fix and args.paths:
        run_fixers(args.paths, config)

    report = run_check(args.paths, config)
    write_output(report, args.output_path, args.format)
    return report.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
