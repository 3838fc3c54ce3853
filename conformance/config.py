"""Load and validate checker configuration.

Configuration comes from a YAML file (``.conformance.yaml`` in the working
directory by default) and is overlaid with command-line flags. Any malformed
value raises :class:`ConfigurationError` before a single file is processed.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

import yaml

from .errors import ConfigurationError
from .model import Language
from .rules import ANALYSIS, CATEGORIES, REGISTRY, Rule, RuleOptions
from .severity import Severity
from .utils import read_yaml_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".conformance.yaml"
DEFAULT_EXCLUDES: Tuple[str, ...] = (
    "node_modules/*",
    "__pycache__/*",
    ".git/*",
    ".terraform/*",
    ".venv/*",
    "venv/*",
)
DEFAULT_WORKERS = 4

OPTION_KEYS = {
    "line_length": int,
    "max_file_lines": int,
    "max_function_lines": int,
    "min_doc_length": int,
    "secret_min_length": int,
    "secret_min_entropy": float,
}
TOP_LEVEL_KEYS = set(OPTION_KEYS) | {"workers", "timeout", "categories", "rules", "severity", "exclude"}


@dataclass(frozen=True)
class CheckerConfig:
    """Everything the engine needs to decide which rules run and how."""

    options: RuleOptions = field(default_factory=RuleOptions)
    enabled_categories: Optional[FrozenSet[str]] = None
    disabled_categories: FrozenSet[str] = frozenset()
    disabled_rules: FrozenSet[str] = frozenset()
    severity_overrides: Mapping[str, Severity] = field(default_factory=dict)
    exclude: Tuple[str, ...] = DEFAULT_EXCLUDES
    workers: int = DEFAULT_WORKERS
    timeout: Optional[float] = None

    def is_enabled(self, rule: Rule) -> bool:
        if rule.category == ANALYSIS:
            return True
        if rule.id in self.disabled_rules:
            return False
        if self.enabled_categories is not None and rule.category not in self.enabled_categories:
            return False
        return rule.category not in self.disabled_categories

    def rules_for(self, language: Language) -> Tuple[Rule, ...]:
        return tuple(rule for rule in REGISTRY.list_rules(language) if self.is_enabled(rule))

    def severity_for(self, rule: Rule) -> Severity:
        return self.severity_overrides.get(rule.id, rule.severity)


def load_config(path: Optional[str] = None, overrides: Optional[Mapping[str, Any]] = None) -> CheckerConfig:
    """Read the YAML file (if any), overlay ``overrides`` and validate the result."""

    data: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigurationError(f"configuration file not found: {config_path}")
        data = _read_mapping(config_path)
    elif Path(DEFAULT_CONFIG_FILE).is_file():
        data = _read_mapping(Path(DEFAULT_CONFIG_FILE))

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key == "categories" and isinstance(data.get(key), Mapping):
            # a category flag replaces the opposite list from the file
            data[key] = {name: names for name, names in data[key].items() if name in value}
        if isinstance(value, Mapping) and isinstance(data.get(key), Mapping):
            merged = dict(data[key])
            for inner_key, inner_value in value.items():
                if isinstance(inner_value, (list, tuple)) and isinstance(merged.get(inner_key), list):
                    merged[inner_key] = list(merged[inner_key]) + list(inner_value)
                else:
                    merged[inner_key] = inner_value
            data[key] = merged
        elif isinstance(value, (list, tuple)) and isinstance(data.get(key), list):
            data[key] = list(data[key]) + list(value)
        else:
            data[key] = value
    return build_config(data)


def _read_mapping(path: Path) -> Dict[str, Any]:
    logger.info("Loading configuration from %s", path)
    try:
        data = read_yaml_file(path)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{path}: invalid YAML: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"{path}: cannot read configuration: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: configuration must be a mapping")
    return dict(data)


def build_config(data: Mapping[str, Any]) -> CheckerConfig:
    unknown = sorted(set(data) - TOP_LEVEL_KEYS)
    if unknown:
        raise ConfigurationError(f"unknown configuration keys: {', '.join(unknown)}")

    option_values = {key: _number(key, data[key], kind) for key, kind in OPTION_KEYS.items() if key in data}
    options = dataclasses.replace(RuleOptions(), **option_values)

    categories = _section(data, "categories", {"enable", "disable"})
    if "enable" in categories and "disable" in categories:
        raise ConfigurationError("categories: use either 'enable' or 'disable', not both")
    enabled = _categories(categories["enable"]) if "enable" in categories else None
    disabled = _categories(categories.get("disable", []))

    rules = _section(data, "rules", {"disable"})
    disabled_rules = frozenset(_rule_id(rule_id) for rule_id in _string_list("rules.disable", rules.get("disable", [])))
    always_on = sorted(rule_id for rule_id in disabled_rules if REGISTRY.get(rule_id).category == ANALYSIS)
    if always_on:
        raise ConfigurationError(f"rules.disable: {', '.join(always_on)} cannot be disabled")

    severity_section = data.get("severity") or {}
    if not isinstance(severity_section, Mapping):
        raise ConfigurationError("severity: expected a mapping of rule id to severity")
    overrides: Dict[str, Severity] = {}
    for rule_id, level in severity_section.items():
        try:
            overrides[_rule_id(rule_id)] = Severity.parse(level)
        except ValueError as exc:
            raise ConfigurationError(f"severity.{rule_id}: {exc}") from exc

    exclude = DEFAULT_EXCLUDES + tuple(_string_list("exclude", data.get("exclude", [])))

    workers = _number("workers", data.get("workers", DEFAULT_WORKERS), int)
    timeout = data.get("timeout")
    if timeout is not None:
        timeout = _number("timeout", timeout, float)

    return CheckerConfig(
        options=options,
        enabled_categories=enabled,
        disabled_categories=disabled,
        disabled_rules=disabled_rules,
        severity_overrides=overrides,
        exclude=exclude,
        workers=workers,
        timeout=timeout,
    )


def _number(key: str, value: Any, kind: type) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{key}: expected a number, got {value!r}")
    if kind is int and not isinstance(value, int):
        raise ConfigurationError(f"{key}: expected an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{key}: must be positive, got {value!r}")
    return kind(value)


def _section(data: Mapping[str, Any], key: str, allowed: set) -> Mapping[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"{key}: expected a mapping")
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ConfigurationError(f"{key}: unknown keys: {', '.join(unknown)}")
    return section


def _string_list(key: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"{key}: expected a list of strings")
    return tuple(value)


def _categories(value: Any) -> FrozenSet[str]:
    names = _string_list("categories", value)
    for name in names:
        if name not in CATEGORIES:
            raise ConfigurationError(f"unknown category {name!r} (expected one of: {', '.join(CATEGORIES)})")
        if name == ANALYSIS:
            raise ConfigurationError("the 'analysis' category cannot be configured")
    return frozenset(names)


def _rule_id(rule_id: Any) -> str:
    normalized = str(rule_id).strip().upper()
    if normalized not in REGISTRY:
        raise ConfigurationError(f"unknown rule id {rule_id!r}")
    return normalized
