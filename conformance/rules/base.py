"""Rule definition shared by every catalog module."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, NamedTuple

from conformance.model import Language, SourceUnit, Span
from conformance.severity import Severity

FORMATTING = "formatting"
NAMING = "naming"
DOCUMENTATION = "documentation"
ERROR_HANDLING = "error-handling"
SECURITY = "security"
PERFORMANCE = "performance"
ANALYSIS = "analysis"

CATEGORIES = (FORMATTING, NAMING, DOCUMENTATION, ERROR_HANDLING, SECURITY, PERFORMANCE, ANALYSIS)

ALL_LANGUAGES: FrozenSet[Language] = frozenset(Language)
CODE_LANGUAGES: FrozenSet[Language] = frozenset({Language.PYTHON, Language.JAVASCRIPT})


class Violation(NamedTuple):
    span: Span
    message: str


@dataclass(frozen=True)
class RuleOptions:
    """Tunable thresholds handed to every predicate."""

    line_length: int = 100
    max_file_lines: int = 1000
    max_function_lines: int = 75
    min_doc_length: int = 10
    secret_min_length: int = 8
    secret_min_entropy: float = 3.0


Check = Callable[[SourceUnit, RuleOptions], Iterable[Violation]]


@dataclass(frozen=True)
class Rule:
    """A named, language-scoped, severity-tagged check."""

    id: str
    name: str
    category: str
    severity: Severity
    languages: FrozenSet[Language]
    description: str
    check: Check = field(compare=False, repr=False)

    def applies_to(self, language: Language) -> bool:
        return language in self.languages


def never(unit: SourceUnit, options: RuleOptions) -> Iterable[Violation]:
    """Predicate for rules whose findings are raised by the engine itself."""

    return ()
