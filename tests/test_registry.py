import pytest

from conformance.errors import UnsupportedLanguage
from conformance.model import Language
from conformance.rules import REGISTRY, Rule, RuleRegistry, all_rules, get_rule, list_rules
from conformance.rules.base import CATEGORIES, never
from conformance.severity import Severity


def test_rule_ids_are_unique_and_categorised():
    rules = all_rules()

    assert len({rule.id for rule in rules}) == len(rules)
    assert all(rule.category in CATEGORIES for rule in rules)
    assert all(rule.languages for rule in rules)


def test_list_rules_filters_by_language_in_registration_order():
    terraform = [rule.id for rule in list_rules(Language.TERRAFORM)]

    assert terraform == ["FMT001", "FMT002", "FMT003", "FMT004", "NAM004", "DOC002", "SEC001", "PRF001", "SYS001", "SYS002"]
    assert [rule.id for rule in list_rules("python")][:5] == ["FMT001", "FMT002", "FMT003", "FMT004", "NAM001"]


def test_list_rules_rejects_unknown_languages():
    with pytest.raises(UnsupportedLanguage) as excinfo:
        list_rules("cobol")

    assert excinfo.value.subject == "cobol"


def test_get_rule():
    rule = get_rule("SEC001")

    assert rule.name == "hardcoded-secret"
    assert rule.severity is Severity.WARNING
    assert "SEC001" in REGISTRY
    assert "XXX999" not in REGISTRY


def test_duplicate_ids_are_rejected():
    rule = Rule("X001", "x", "naming", Severity.INFO, frozenset(Language), "x", never)

    with pytest.raises(ValueError):
        RuleRegistry([rule, rule])
