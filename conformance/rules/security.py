"""Detect hardcoded secrets, dangerous calls and SQL built from strings."""

from __future__ import annotations

import math
import re
from collections import Counter
from itertools import groupby
from typing import Iterator, Optional

from conformance.model import Language, SourceUnit, StringLiteral
from conformance.severity import Severity

from .base import ALL_LANGUAGES, CODE_LANGUAGES, SECURITY, Rule, RuleOptions, Violation

KEY_PATTERN = re.compile(r"(?i)(secret|token|api[_-]?key|password|passwd|access[_-]?key|private|key|credential|auth)")
AWS_ACCESS_KEY_PATTERN = re.compile(r"(?:A3T|AKIA|ASIA)[0-9A-Z]{16}")
JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9_\-]+?\.[A-Za-z0-9_\-]+?\.[A-Za-z0-9_\-]+")
PRIVATE_KEY_PATTERN = re.compile(r"-----BEGIN (?:[A-Z]+ )?PRIVATE KEY-----")
PROVIDER_TOKEN_PATTERN = re.compile(
    r"(?:\b[spr]k_(?:live|test)_[0-9A-Za-z]{8,}|\bgh[pousr]_[0-9A-Za-z]{20,}|\bxox[abprs]-[0-9A-Za-z-]{10,})"
)
PLACEHOLDER_HINTS = ("dummy", "example", "placeholder", "sample", "changeme", "change_me", "your_", "your-", "xxxx", "redacted")

STRONG_INDICATORS = (
    ("AWS access key id", AWS_ACCESS_KEY_PATTERN),
    ("JSON web token", JWT_PATTERN),
    ("private key", PRIVATE_KEY_PATTERN),
    ("API token", PROVIDER_TOKEN_PATTERN),
)

DANGEROUS_CALLS = {
    Language.PYTHON: {
        "eval": "evaluates arbitrary code",
        "exec": "executes arbitrary code",
        "os.system": "runs a shell command",
        "os.popen": "runs a shell command",
        "pickle.load": "deserializes untrusted data",
        "pickle.loads": "deserializes untrusted data",
        "marshal.load": "deserializes untrusted data",
        "marshal.loads": "deserializes untrusted data",
    },
    Language.JAVASCRIPT: {
        "eval": "evaluates arbitrary code",
        "Function": "compiles arbitrary code",
        "child_process.exec": "runs a shell command",
        "child_process.execSync": "runs a shell command",
        "execSync": "runs a shell command",
        "document.write": "writes unescaped markup",
    },
}

SQL_PATTERN = re.compile(
    r"(?is)\b(select\s+[\w*,\s.()]+?\s+from\s|insert\s+into\s|update\s+\w+\s+set\s|delete\s+from\s|"
    r"where\s+\w+\s*(?:=|<|>|like\b|in\b))"
)


def shannon_entropy(value: str) -> float:
    """Return the Shannon entropy of ``value`` in bits per character."""

    if not value:
        return 0.0
    counts = Counter(value)
    length = len(value)
    return -sum((count / length) * math.log2(count / length) for count in counts.values())


def _is_placeholder(value: str) -> bool:
    lowered = value.lower()
    return any(hint in lowered for hint in PLACEHOLDER_HINTS)


def classify_secret(literal: StringLiteral, options: RuleOptions) -> Optional[str]:
    """Return a short description of why ``literal`` looks like a secret, or ``None``."""

    value = literal.value or ""
    if literal.dynamic or _is_placeholder(value):
        return None
    for indicator, pattern in STRONG_INDICATORS:
        if pattern.search(value):
            return indicator
    if not literal.target or not KEY_PATTERN.search(literal.target):
        return None
    if len(value) < options.secret_min_length or any(char.isspace() for char in value):
        return None
    if shannon_entropy(value) < options.secret_min_entropy:
        return None
    return f"high-entropy value assigned to '{literal.target}'"


def check_hardcoded_secrets(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    for literal in unit.literals:
        indicator = classify_secret(literal, options)
        if indicator:
            yield Violation(literal.span, f"possible hardcoded secret ({indicator}); load it from the environment or a secret store")


def check_dangerous_calls(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    dangerous = DANGEROUS_CALLS.get(unit.language, {})
    for call in unit.calls:
        reason = dangerous.get(call.name)
        if reason:
            yield Violation(call.span, f"call to {call.name}() {reason}")


SQL_MESSAGE = "SQL statement built from string concatenation or interpolation; use bound parameters"


def check_sql_building(unit: SourceUnit, options: RuleOptions) -> Iterator[Violation]:
    dynamic = [literal for literal in unit.literals if literal.dynamic]
    for _, group in groupby(dynamic, key=lambda literal: literal.span.start_line):
        fragments = list(group)
        matching = [literal for literal in fragments if SQL_PATTERN.search(literal.value)]
        if matching:
            for literal in matching:
                yield Violation(literal.span, SQL_MESSAGE)
        elif len(fragments) > 1 and SQL_PATTERN.search(" x ".join(literal.value for literal in fragments)):
            # fragments of one statement split around the interpolated names
            yield Violation(fragments[0].span, SQL_MESSAGE)


RULES = (
    Rule(
        id="SEC001",
        name="hardcoded-secret",
        category=SECURITY,
        severity=Severity.WARNING,
        languages=ALL_LANGUAGES,
        description="Credentials, tokens and keys are not committed as literals.",
        check=check_hardcoded_secrets,
    ),
    Rule(
        id="SEC002",
        name="dangerous-call",
        category=SECURITY,
        severity=Severity.WARNING,
        languages=CODE_LANGUAGES,
        description="Avoid calls that evaluate code, spawn shells or deserialize untrusted data.",
        check=check_dangerous_calls,
    ),
    Rule(
        id="SEC003",
        name="sql-string-building",
        category=SECURITY,
        severity=Severity.WARNING,
        languages=CODE_LANGUAGES,
        description="SQL is parameterized, never assembled from strings.",
        check=check_sql_building,
    ),
)
