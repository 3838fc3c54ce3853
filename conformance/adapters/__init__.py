"""Language adapters: one per supported language, selected by file extension."""

from __future__ import annotations

from typing import Dict

from conformance.errors import UnsupportedLanguage
from conformance.model import Language, SourceUnit

from .base import LanguageAdapter
from .javascript import JavaScriptAdapter
from .python import PythonAdapter
from .terraform import TerraformAdapter

ADAPTERS: Dict[Language, LanguageAdapter] = {
    Language.TERRAFORM: TerraformAdapter(),
    Language.JAVASCRIPT: JavaScriptAdapter(),
    Language.PYTHON: PythonAdapter(),
}


def language_for_path(path: str) -> Language:
    language = Language.for_path(path)
    if language is None:
        raise UnsupportedLanguage(path)
    return language


def adapter_for(language: Language) -> LanguageAdapter:
    return ADAPTERS[language]


def parse(path: str, text: str) -> SourceUnit:
    """Parse ``text`` with the adapter matching ``path``'s extension."""

    return adapter_for(language_for_path(path)).parse(path, text)


__all__ = [
    "ADAPTERS",
    "LanguageAdapter",
    "adapter_for",
    "language_for_path",
    "parse",
]
