"""Identifier casing conventions per language and declaration kind."""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, Iterator, Pattern, Tuple

from conformance.model import Declaration, Language, SourceUnit
from conformance.severity import Severity

from .base import CODE_LANGUAGES, NAMING, Rule, RuleOptions, Violation

CASE_PATTERNS: Dict[str, Pattern[str]] = {
    "snake_case": re.compile(r"^_*[a-z][a-z0-9_]*$|^_+$"),
    "UPPER_CASE": re.compile(r"^_*[A-Z][A-Z0-9_]*$"),
    "PascalCase": re.compile(r"^_*[A-Z][a-zA-Z0-9]*$"),
    "camelCase": re.compile(r"^[_$#]*[a-z][a-zA-Z0-9]*$|^[_$]+$"),
}

CONVENTIONS: Dict[Tuple[Language, str], Tuple[str, ...]] = {
    (Language.PYTHON, "function"): ("snake_case",),
    (Language.PYTHON, "method"): ("snake_case",),
    (Language.PYTHON, "class"): ("PascalCase",),
    (Language.PYTHON, "variable"): ("snake_case",),
    (Language.PYTHON, "alias"): ("snake_case", "PascalCase"),
    (Language.PYTHON, "constant"): ("UPPER_CASE",),
    (Language.JAVASCRIPT, "function"): ("camelCase",),
    (Language.JAVASCRIPT, "method"): ("camelCase",),
    (Language.JAVASCRIPT, "class"): ("PascalCase",),
    (Language.JAVASCRIPT, "variable"): ("camelCase", "UPPER_CASE"),
    (Language.JAVASCRIPT, "alias"): ("camelCase", "PascalCase", "UPPER_CASE"),
    (Language.JAVASCRIPT, "constant"): ("UPPER_CASE",),
    (Language.TERRAFORM, "resource"): ("snake_case",),
    (Language.TERRAFORM, "data"): ("snake_case",),
    (Language.TERRAFORM, "variable"): ("snake_case",),
    (Language.TERRAFORM, "output"): ("snake_case",),
    (Language.TERRAFORM, "module"): ("snake_case",),
    (Language.TERRAFORM, "local"): ("snake_case",),
}

# Framework hooks that must keep their inherited spelling.
PYTHON_INHERITED_METHODS = frozenset(
    {"setUp", "tearDown", "setUpClass", "tearDownClass", "setUpModule", "tearDownModule", "asyncSetUp", "asyncTearDown"}
)
PYTHON_INHERITED_PREFIXES = ("visit_", "depart_")

KIND_LABELS = {"local": "local value", "data": "data source", "alias": "variable"}


def allowed_conventions(unit: SourceUnit, declaration: Declaration) -> Tuple[str, ...]:
    conventions = CONVENTIONS.get((unit.language, declaration.kind), ())
    if unit.language is Language.JAVASCRIPT and declaration.kind == "function" and unit.suffix == ".jsx":
        # React components are functions spelled like classes.
        conventions = conventions + ("PascalCase",)
    return conventions


def _exempt(unit: SourceUnit, declaration: Declaration) -> bool:
    if unit.language is not Language.PYTHON or declaration.kind != "method":
        return False
    return declaration.name in PYTHON_INHERITED_METHODS or declaration.name.startswith(PYTHON_INHERITED_PREFIXES)


def _naming_check(kinds: FrozenSet[str]):
    def check(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
        for declaration in unit.declarations:
            if declaration.kind not in kinds or _exempt(unit, declaration):
                continue
            conventions = allowed_conventions(unit, declaration)
            if not conventions:
                continue
            if any(CASE_PATTERNS[convention].match(declaration.name) for convention in conventions):
                continue
            label = KIND_LABELS.get(declaration.kind, declaration.kind)
            expected = " or ".join(conventions)
            yield Violation(
                declaration.span,
                f"{label} '{declaration.qualified_name}' should be {expected}",
            )

    return check


RULES = (
    Rule(
        id="NAM001",
        name="function-naming",
        category=NAMING,
        severity=Severity.ERROR,
        languages=CODE_LANGUAGES,
        description="Functions and methods follow the language's casing convention.",
        check=_naming_check(frozenset({"function", "method"})),
    ),
    Rule(
        id="NAM002",
        name="class-naming",
        category=NAMING,
        severity=Severity.ERROR,
        languages=CODE_LANGUAGES,
        description="Classes use PascalCase.",
        check=_naming_check(frozenset({"class"})),
    ),
    Rule(
        id="NAM003",
        name="variable-naming",
        category=NAMING,
        severity=Severity.ERROR,
        languages=CODE_LANGUAGES,
        description="Module-level variables and constants follow the language's casing convention.",
        check=_naming_check(frozenset({"variable", "constant", "alias"})),
    ),
    Rule(
        id="NAM004",
        name="block-label-naming",
        category=NAMING,
        severity=Severity.ERROR,
        languages=frozenset({Language.TERRAFORM}),
        description="Terraform resource, data, variable, output, module and local names use snake_case.",
        check=_naming_check(frozenset({"resource", "data", "variable", "output", "module", "local"})),
    ),
)
