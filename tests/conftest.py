from pathlib import Path

import pytest

from conformance.adapters import parse
from conformance.evaluator import evaluate
from conformance.rules import RuleOptions, get_rule

SAMPLES = Path(__file__).resolve().parent.parent / "samples"


@pytest.fixture
def samples_dir():
    return SAMPLES


@pytest.fixture
def run_rule():
    """Parse ``text`` as ``path`` and return the findings of one rule."""

    def _run(rule_id, path, text, options=None):
        unit = parse(path, text)
        return evaluate(get_rule(rule_id), unit, options or RuleOptions())

    return _run
