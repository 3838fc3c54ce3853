"""Exception handling heuristics for Python and JavaScript."""

from __future__ import annotations

from typing import Iterator

from conformance.model import SourceUnit
from conformance.severity import Severity

from .base import CODE_LANGUAGES, ERROR_HANDLING, Rule, RuleOptions, Violation


def check_broad_handlers(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    for handler in unit.handlers:
        if handler.broad and not handler.reraises:
            caught = f"'{handler.caught}'" if handler.caught else "every error"
            yield Violation(handler.span, f"handler catches {caught} without re-raising; catch specific errors")


def check_empty_handlers(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    for handler in unit.handlers:
        if handler.empty:
            yield Violation(handler.span, "empty exception handler silently discards the error")


RULES = (
    Rule(
        id="ERR001",
        name="broad-exception-handler",
        category=ERROR_HANDLING,
        severity=Severity.WARNING,
        languages=CODE_LANGUAGES,
        description="Handlers catch specific exception types or re-raise.",
        check=check_broad_handlers,
    ),
    Rule(
        id="ERR002",
        name="empty-exception-handler",
        category=ERROR_HANDLING,
        severity=Severity.WARNING,
        languages=CODE_LANGUAGES,
        description="Handlers do something with the error they catch.",
        check=check_empty_handlers,
    ),
)
