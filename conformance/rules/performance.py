"""Size heuristics: oversized files and long functions."""

from __future__ import annotations

from typing import Iterator

from conformance.model import SourceUnit, Span
from conformance.severity import Severity

from .base import ALL_LANGUAGES, CODE_LANGUAGES, PERFORMANCE, Rule, RuleOptions, Violation


def check_file_size(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    total = len(unit.lines)
    if total > options.max_file_lines:
        first_excess = options.max_file_lines + 1
        yield Violation(
            Span.for_line(first_excess, unit.lines[first_excess - 1]),
            f"file has {total} lines (limit {options.max_file_lines}); consider splitting it",
        )


def check_function_length(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    for declaration in unit.declarations:
        if declaration.kind not in ("function", "method"):
            continue
        length = declaration.span.line_count
        if length > options.max_function_lines:
            yield Violation(
                declaration.span,
                f"{declaration.kind} '{declaration.qualified_name}' is {length} lines long (limit {options.max_function_lines})",
            )


RULES = (
    Rule(
        id="PRF001",
        name="oversized-file",
        category=PERFORMANCE,
        severity=Severity.INFO,
        languages=ALL_LANGUAGES,
        description="Files stay below the configured line count.",
        check=check_file_size,
    ),
    Rule(
        id="PRF002",
        name="long-function",
        category=PERFORMANCE,
        severity=Severity.INFO,
        languages=CODE_LANGUAGES,
        description="Functions and methods stay below the configured line count.",
        check=check_function_length,
    ),
)
