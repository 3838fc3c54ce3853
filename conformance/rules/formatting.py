"""Physical-line formatting checks, independent of any parse tree."""

from __future__ import annotations

from typing import Iterator

from conformance.model import SourceUnit, Span
from conformance.severity import Severity

from .base import ALL_LANGUAGES, FORMATTING, Rule, RuleOptions, Violation


def check_line_length(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    limit = options.line_length
    for number, line in enumerate(unit.lines, start=1):
        if len(line) > limit:
            yield Violation(
                Span(number, limit + 1, number, len(line)),
                f"line is {len(line)} characters long (limit {limit})",
            )


def check_trailing_whitespace(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    for number, line in enumerate(unit.lines, start=1):
        stripped = line.rstrip()
        if len(stripped) < len(line):
            yield Violation(Span(number, len(stripped) + 1, number, len(line)), "trailing whitespace")


def check_final_newline(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    if unit.text and not unit.text.endswith("\n"):
        last = len(unit.lines)
        width = max(len(unit.lines[-1]), 1)
        yield Violation(Span(last, width, last, width), "file does not end with a newline")


def check_mixed_indentation(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    for number, line in enumerate(unit.lines, start=1):
        indent = line[: len(line) - len(line.lstrip(" \t"))]
        if " " in indent and "\t" in indent:
            yield Violation(Span(number, 1, number, len(indent)), "indentation mixes tabs and spaces")


RULES = (
    Rule(
        id="FMT001",
        name="line-too-long",
        category=FORMATTING,
        severity=Severity.ERROR,
        languages=ALL_LANGUAGES,
        description="Lines must not exceed the configured length.",
        check=check_line_length,
    ),
    Rule(
        id="FMT002",
        name="trailing-whitespace",
        category=FORMATTING,
        severity=Severity.ERROR,
        languages=ALL_LANGUAGES,
        description="Lines must not end with spaces or tabs.",
        check=check_trailing_whitespace,
    ),
    Rule(
        id="FMT003",
        name="missing-final-newline",
        category=FORMATTING,
        severity=Severity.ERROR,
        languages=ALL_LANGUAGES,
        description="Non-empty files end with a single newline.",
        check=check_final_newline,
    ),
    Rule(
        id="FMT004",
        name="mixed-indentation",
        category=FORMATTING,
        severity=Severity.ERROR,
        languages=ALL_LANGUAGES,
        description="Indentation uses either tabs or spaces, never both on one line.",
        check=check_mixed_indentation,
    ),
)
