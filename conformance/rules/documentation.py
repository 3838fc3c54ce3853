"""Documentation presence for public declarations."""

from __future__ import annotations

from typing import Iterator

from conformance.model import Declaration, Language, SourceUnit
from conformance.severity import Severity

from .base import CODE_LANGUAGES, DOCUMENTATION, Rule, RuleOptions, Violation

DOCUMENTED_KINDS = {
    Language.PYTHON: frozenset({"function", "method", "class"}),
    Language.JAVASCRIPT: frozenset({"function", "method", "class"}),
    Language.TERRAFORM: frozenset({"variable", "output"}),
}


def _is_public(unit: SourceUnit, declaration: Declaration) -> bool:
    if not declaration.exported:
        return False
    if unit.language is Language.PYTHON:
        return not (declaration.name.startswith("__") and declaration.name.endswith("__"))
    if unit.language is Language.JAVASCRIPT:
        return declaration.name != "constructor"
    return True


def _missing_docs(unit: SourceUnit, options: RuleOptions, noun: str) -> Iterator[Violation]:
    kinds = DOCUMENTED_KINDS[unit.language]
    for declaration in unit.declarations:
        if declaration.kind not in kinds or not _is_public(unit, declaration):
            continue
        doc = (declaration.doc or "").strip()
        if not doc:
            yield Violation(declaration.span, f"{declaration.kind} '{declaration.qualified_name}' has no {noun}")
        elif len(doc) < options.min_doc_length:
            yield Violation(
                declaration.span,
                f"{declaration.kind} '{declaration.qualified_name}' has a trivial {noun} ({len(doc)} characters)",
            )


def check_docstrings(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    noun = "docstring" if unit.language is Language.PYTHON else "doc comment"
    return _missing_docs(unit, options, noun)


def check_descriptions(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    return _missing_docs(unit, options, "description")


RULES = (
    Rule(
        id="DOC001",
        name="missing-docstring",
        category=DOCUMENTATION,
        severity=Severity.WARNING,
        languages=CODE_LANGUAGES,
        description="Public functions, methods and classes carry a docstring or leading doc comment.",
        check=check_docstrings,
    ),
    Rule(
        id="DOC002",
        name="missing-description",
        category=DOCUMENTATION,
        severity=Severity.WARNING,
        languages=frozenset({Language.TERRAFORM}),
        description="Terraform variables and outputs declare a description.",
        check=check_descriptions,
    ),
)
