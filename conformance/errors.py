"""Exception taxonomy for the conformance checker."""

from __future__ import annotations

from typing import Optional


class ConformanceError(Exception):
    """Base class for checker errors."""


class UnsupportedLanguage(ConformanceError):
    """No adapter or rule set exists for the requested language or file."""

    def __init__(self, subject: str) -> None:
        super().__init__(f"unsupported language: {subject}")
        self.subject = subject


class ParseError(ConformanceError):
    """An adapter could not build a SourceUnit for a file."""

    def __init__(self, path: str, reason: str, line: Optional[int] = None, column: Optional[int] = None) -> None:
        location = path
        if line is not None:
            location = f"{path}:{line}"
            if column is not None:
                location = f"{location}:{column}"
        super().__init__(f"{location}: {reason}")
        self.path = path
        self.reason = reason
        self.line = line
        self.column = column


class ConfigurationError(ConformanceError):
    """Malformed configuration; fatal before any file is processed."""
