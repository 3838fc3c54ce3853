"""Apply rules to a parsed SourceUnit."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from .model import SourceUnit
from .result import Finding
from .rules import Rule, RuleOptions
from .severity import Severity

DEFAULT_OPTIONS = RuleOptions()


def evaluate(
    rule: Rule,
    unit: SourceUnit,
    options: RuleOptions = DEFAULT_OPTIONS,
    severity: Optional[Severity] = None,
) -> List[Finding]:
    """Run one rule against one unit. Rules for other languages yield nothing."""

    if not rule.applies_to(unit.language):
        return []
    level = severity or rule.severity
    return [
        Finding(
            rule_id=rule.id,
            rule_name=rule.name,
            category=rule.category,
            severity=level,
            path=unit.path,
            span=violation.span.clamp(unit.lines),
            message=violation.message,
        )
        for violation in rule.check(unit, options)
    ]


def evaluate_all(
    rules: Iterable[Rule],
    unit: SourceUnit,
    options: RuleOptions = DEFAULT_OPTIONS,
    severity_overrides: Optional[Mapping[str, Severity]] = None,
) -> List[Finding]:
    overrides = severity_overrides or {}
    findings: List[Finding] = []
    for rule in rules:
        findings.extend(evaluate(rule, unit, options, overrides.get(rule.id)))
    return findings
