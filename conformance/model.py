"""Normalized structural model produced by the language adapters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Dict, Optional, Tuple


class Language(str, Enum):
    """Closed set of languages the checker understands."""

    TERRAFORM = "terraform"
    JAVASCRIPT = "javascript"
    PYTHON = "python"

    @property
    def extensions(self) -> Tuple[str, ...]:
        return LANGUAGE_EXTENSIONS[self]

    @classmethod
    def for_path(cls, path: str) -> Optional["Language"]:
        """Return the language for ``path`` based on its extension, if any."""

        suffix = PurePath(path).suffix.lower()
        for language, extensions in LANGUAGE_EXTENSIONS.items():
            if suffix in extensions:
                return language
        return None


LANGUAGE_EXTENSIONS: Dict[Language, Tuple[str, ...]] = {
    Language.TERRAFORM: (".tf",),
    Language.JAVASCRIPT: (".js", ".jsx"),
    Language.PYTHON: (".py",),
}


@dataclass(frozen=True, order=True)
class Span:
    """1-based, inclusive source range."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def point(cls, line: int, column: int = 1) -> "Span":
        return cls(line, column, line, column)

    @classmethod
    def for_line(cls, line: int, text: str) -> "Span":
        return cls(line, 1, line, max(len(text), 1))

    def clamp(self, lines: Tuple[str, ...]) -> "Span":
        """Return a copy of the span that lies inside ``lines``."""

        last_line = max(len(lines), 1)

        def _fit(line: int, column: int) -> Tuple[int, int]:
            line = min(max(line, 1), last_line)
            width = len(lines[line - 1]) if lines else 0
            return line, min(max(column, 1), max(width, 1))

        start = _fit(self.start_line, self.start_column)
        end = _fit(self.end_line, self.end_column)
        if end < start:
            end = start
        return Span(start[0], start[1], end[0], end[1])

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def __str__(self) -> str:
        return f"{self.start_line}:{self.start_column}"


@dataclass(frozen=True)
class Declaration:
    """A named declaration: function, class, variable, resource, ..."""

    name: str
    kind: str
    span: Span
    doc: Optional[str] = None
    annotation: Optional[str] = None
    exported: bool = True
    parent: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        if self.parent:
            return f"{self.parent}.{self.name}"
        return self.name


@dataclass(frozen=True)
class Comment:
    text: str
    span: Span


@dataclass(frozen=True)
class StringLiteral:
    """A string literal, the name it is bound to (if any), and whether it is built dynamically."""

    value: str
    span: Span
    target: Optional[str] = None
    dynamic: bool = False


@dataclass(frozen=True)
class CallSite:
    name: str
    span: Span


@dataclass(frozen=True)
class Handler:
    """An exception handler (``except`` clause or ``catch`` block)."""

    span: Span
    caught: Optional[str]
    broad: bool
    empty: bool
    reraises: bool


@dataclass(frozen=True)
class SourceUnit:
    """One file's normalized representation; immutable after parse."""

    path: str
    language: Language
    text: str
    lines: Tuple[str, ...]
    declarations: Tuple[Declaration, ...] = ()
    comments: Tuple[Comment, ...] = ()
    literals: Tuple[StringLiteral, ...] = ()
    calls: Tuple[CallSite, ...] = ()
    handlers: Tuple[Handler, ...] = ()

    @property
    def suffix(self) -> str:
        return PurePath(self.path).suffix.lower()


def split_lines(text: str) -> Tuple[str, ...]:
    """Split ``text`` into physical lines without their line endings."""

    if not text:
        return ()
    pieces = text.split("\n")
    if text.endswith("\n"):
        pieces.pop()
    return tuple(piece[:-1] if piece.endswith("\r") else piece for piece in pieces)
