"""Shared pieces for the language adapters."""

from __future__ import annotations

import re
from typing import Dict, Optional, Protocol, Sequence, Tuple

from conformance.model import Comment, Language, SourceUnit

_MARKER_PATTERN = re.compile(r"^\s*(?:/\*\*?|\*/|\*(?!/)|//+|#+)\s?")
_TRAILING_CLOSE = re.compile(r"\s*\*/\s*$")


class LanguageAdapter(Protocol):
    """Capability set every adapter provides."""

    language: Language

    def parse(self, path: str, text: str) -> SourceUnit:
        """Build a SourceUnit or raise ``ParseError``."""


def is_whole_line(comment: Comment, lines: Sequence[str]) -> bool:
    """True when nothing but whitespace precedes ``comment`` on its first line."""

    index = comment.span.start_line - 1
    if index >= len(lines):
        return False
    return not lines[index][: comment.span.start_column - 1].strip()


def strip_comment_markers(text: str) -> str:
    cleaned = []
    for raw in text.splitlines():
        line = _TRAILING_CLOSE.sub("", raw)
        line = _MARKER_PATTERN.sub("", line, count=1)
        cleaned.append(line.rstrip())
    return "\n".join(cleaned).strip()


def leading_doc(comments: Sequence[Comment], line: int, lines: Sequence[str]) -> Optional[str]:
    """Return the comment block that ends directly above ``line``."""

    by_end_line: Dict[int, Comment] = {
        comment.span.end_line: comment for comment in comments if is_whole_line(comment, lines)
    }
    collected = []
    cursor = line - 1
    while cursor in by_end_line:
        comment = by_end_line[cursor]
        collected.append(comment)
        cursor = comment.span.start_line - 1
    if not collected:
        return None
    text = "\n".join(strip_comment_markers(comment.text) for comment in reversed(collected)).strip()
    return text or None


def position_of(offset: int, line_starts: Sequence[int]) -> Tuple[int, int]:
    """Translate a character offset into a 1-based (line, column) pair."""

    low, high = 0, len(line_starts) - 1
    while low < high:
        middle = (low + high + 1) // 2
        if line_starts[middle] <= offset:
            low = middle
        else:
            high = middle - 1
    return low + 1, offset - line_starts[low] + 1


def line_offsets(text: str) -> Tuple[int, ...]:
    starts = [0]
    for index, char in enumerate(text):
        if char == "\n":
            starts.append(index + 1)
    return tuple(starts)
