"""Rule registry: the immutable catalog of checks, loaded once at import."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Tuple, Union

from conformance.errors import UnsupportedLanguage
from conformance.model import Language
from conformance.severity import Severity

from . import documentation, error_handling, formatting, naming, performance, security
from .base import ALL_LANGUAGES, ANALYSIS, CATEGORIES, Rule, RuleOptions, Violation, never

PARSE_ERROR_RULE = Rule(
    id="SYS001",
    name="parse-error",
    category=ANALYSIS,
    severity=Severity.ERROR,
    languages=ALL_LANGUAGES,
    description="The file could not be parsed, so it could not be analyzed.",
    check=never,
)
UNREADABLE_FILE_RULE = Rule(
    id="SYS002",
    name="unreadable-file",
    category=ANALYSIS,
    severity=Severity.ERROR,
    languages=ALL_LANGUAGES,
    description="The file could not be read.",
    check=never,
)


class RuleRegistry:
    """Ordered, read-only collection of rules keyed by id."""

    def __init__(self, rules: Iterable[Rule]) -> None:
        ordered = tuple(rules)
        by_id: Dict[str, Rule] = {}
        for rule in ordered:
            if rule.id in by_id:
                raise ValueError(f"duplicate rule id {rule.id}")
            by_id[rule.id] = rule
        self._rules = ordered
        self._by_id = by_id

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def get(self, rule_id: str) -> Rule:
        return self._by_id[rule_id]

    def list_rules(self, language: Union[Language, str]) -> Tuple[Rule, ...]:
        """Return the rules that apply to ``language`` in registration order."""

        try:
            resolved = Language(language)
        except ValueError:
            raise UnsupportedLanguage(str(language)) from None
        return tuple(rule for rule in self._rules if rule.applies_to(resolved))


REGISTRY = RuleRegistry(
    formatting.RULES
    + naming.RULES
    + documentation.RULES
    + security.RULES
    + error_handling.RULES
    + performance.RULES
    + (PARSE_ERROR_RULE, UNREADABLE_FILE_RULE)
)


def list_rules(language: Union[Language, str]) -> Tuple[Rule, ...]:
    return REGISTRY.list_rules(language)


def get_rule(rule_id: str) -> Rule:
    return REGISTRY.get(rule_id)


def all_rules() -> Tuple[Rule, ...]:
    return tuple(REGISTRY)


__all__ = [
    "ANALYSIS",
    "CATEGORIES",
    "PARSE_ERROR_RULE",
    "REGISTRY",
    "UNREADABLE_FILE_RULE",
    "Rule",
    "RuleOptions",
    "RuleRegistry",
    "Violation",
    "all_rules",
    "get_rule",
    "list_rules",
]
