"""Terraform adapter: HCL tokenizer and block/attribute parser."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from conformance.errors import ParseError
from conformance.model import (
    CallSite,
    Comment,
    Declaration,
    Language,
    SourceUnit,
    Span,
    StringLiteral,
    split_lines,
)

from .base import leading_doc, line_offsets, position_of

HEREDOC_START = re.compile(r"<<(-?)([A-Za-z_][A-Za-z0-9_]*)[ \t]*\r?\n")
OPERATORS = ("...", "=>", "==", "!=", "<=", ">=", "&&", "||")
OPENERS = {"(": ")", "[": "]", "{": "}"}

LABELLED_KINDS = {
    "resource": "resource",
    "data": "data",
    "variable": "variable",
    "output": "output",
    "module": "module",
    "provider": "provider",
}


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    line: int
    column: int
    end_line: int
    end_column: int

    @property
    def span(self) -> Span:
        return Span(self.line, self.column, self.end_line, self.end_column)


class _Lexer:
    def __init__(self, path: str, text: str) -> None:
        self.path = path
        self.text = text
        self.length = len(text)
        self.offsets = line_offsets(text)
        self.comments: List[Comment] = []

    def tokenize(self) -> List[_Token]:
        tokens: List[_Token] = []
        index = 0
        text = self.text
        while index < self.length:
            char = text[index]
            following = text[index + 1 : index + 2]
            if char == "\n":
                tokens.append(self._make("newline", index, index + 1))
                index += 1
            elif char.isspace():
                index += 1
            elif char == "#" or (char == "/" and following == "/"):
                end = text.find("\n", index)
                end = self.length if end == -1 else end
                self.comments.append(Comment(text[index:end], self._make("comment", index, end).span))
                index = end
            elif char == "/" and following == "*":
                close = text.find("*/", index + 2)
                if close == -1:
                    raise self._error(index, "unterminated block comment")
                self.comments.append(Comment(text[index : close + 2], self._make("comment", index, close + 2).span))
                index = close + 2
            elif char == '"':
                end = self._string_end(index)
                tokens.append(self._make("string", index, end))
                index = end
            elif char == "<" and following == "<" and HEREDOC_START.match(text, index):
                end = self._heredoc_end(index)
                tokens.append(self._make("heredoc", index, end))
                index = end
            elif char.isalpha() or char == "_":
                end = index + 1
                while end < self.length and (text[end].isalnum() or text[end] in "_-"):
                    end += 1
                tokens.append(self._make("name", index, end))
                index = end
            elif char.isdigit():
                end = index + 1
                while end < self.length and (text[end].isalnum() or text[end] == "."):
                    end += 1
                tokens.append(self._make("number", index, end))
                index = end
            else:
                operator = next((item for item in OPERATORS if text.startswith(item, index)), char)
                tokens.append(self._make("punct", index, index + len(operator)))
                index += len(operator)
        return tokens

    def _string_end(self, index: int) -> int:
        cursor = index + 1
        while cursor < self.length:
            char = self.text[cursor]
            if char == "\\":
                cursor += 2
                continue
            if char == '"':
                return cursor + 1
            if char == "\n":
                break
            if char in "$%" and self.text[cursor + 1 : cursor + 2] == "{":
                cursor = self._template_end(cursor + 2)
                continue
            cursor += 1
        raise self._error(index, "unterminated string literal")

    def _template_end(self, index: int) -> int:
        depth = 1
        cursor = index
        while cursor < self.length:
            char = self.text[cursor]
            if char == '"':
                cursor = self._string_end(cursor)
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return cursor + 1
            cursor += 1
        raise self._error(index, "unterminated interpolation")

    def _heredoc_end(self, index: int) -> int:
        match = HEREDOC_START.match(self.text, index)
        marker = match.group(2)
        cursor = match.end()
        while cursor < self.length:
            line_end = self.text.find("\n", cursor)
            line_end = self.length if line_end == -1 else line_end
            if self.text[cursor:line_end].strip() == marker:
                return line_end
            cursor = line_end + 1
        raise self._error(index, f"unterminated heredoc {marker}")

    def _make(self, kind: str, start: int, end: int) -> _Token:
        line, column = position_of(start, self.offsets)
        end_line, end_column = position_of(max(end - 1, start), self.offsets)
        return _Token(kind, self.text[start:end], line, column, end_line, end_column)

    def _error(self, index: int, reason: str) -> ParseError:
        line, column = position_of(min(index, max(self.length - 1, 0)), self.offsets)
        return ParseError(self.path, reason, line, column)


def _string_value(token: _Token) -> str:
    if token.kind == "string":
        return token.value[1:-1]
    if token.kind == "heredoc":
        lines = token.value.split("\n")
        return "\n".join(lines[1:-1])
    return token.value


class TerraformAdapter:
    """Structural extraction for ``.tf`` files."""

    language = Language.TERRAFORM

    def parse(self, path: str, text: str) -> SourceUnit:
        lexer = _Lexer(path, text)
        tokens = lexer.tokenize()
        lines = split_lines(text)
        parser = _Parser(path, tokens, lexer.comments, lines)
        parser.parse()
        return SourceUnit(
            path=path,
            language=self.language,
            text=text,
            lines=lines,
            declarations=tuple(parser.declarations),
            comments=tuple(lexer.comments),
            literals=tuple(parser.literals),
            calls=tuple(parser.calls),
        )


class _Parser:
    def __init__(self, path: str, tokens: List[_Token], comments: List[Comment], lines) -> None:
        self.path = path
        self.tokens = tokens
        self.comments = comments
        self.lines = lines
        self.declarations: List[Declaration] = []
        self.literals: List[StringLiteral] = []
        self.calls: List[CallSite] = []

    def parse(self) -> None:
        self._body(0, block_type=None)

    def _peek(self, index: int) -> Optional[_Token]:
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    def _skip_newlines(self, index: int) -> int:
        while index < len(self.tokens) and self.tokens[index].kind == "newline":
            index += 1
        return index

    def _error(self, token: Optional[_Token], reason: str) -> ParseError:
        if token is None:
            last_line = max(len(self.lines), 1)
            return ParseError(self.path, reason, last_line, 1)
        return ParseError(self.path, reason, token.line, token.column)

    def _body(self, index: int, block_type: Optional[str]) -> Tuple[int, Dict[str, List[_Token]]]:
        """Parse attributes and nested blocks until the closing brace (or EOF at top level)."""

        attributes: Dict[str, List[_Token]] = {}
        top_level = block_type is None
        while True:
            index = self._skip_newlines(index)
            token = self._peek(index)
            if token is None:
                if not top_level:
                    raise self._error(None, "unexpected end of file inside block")
                return index, attributes
            if token.kind == "punct" and token.value == "}":
                if top_level:
                    raise self._error(token, "unexpected '}'")
                return index, attributes
            if token.kind != "name":
                raise self._error(token, f"expected an attribute or block, found {token.value!r}")

            following = self._peek(index + 1)
            if following is not None and following.kind == "punct" and following.value in ("=", ":"):
                index, expression = self._expression(index + 2, token.value)
                attributes[token.value] = expression
                if block_type == "locals":
                    self._declare(token.value, "local", token, expression[-1] if expression else following, None)
                continue
            index = self._block(index, top_level)

    def _block(self, index: int, top_level: bool) -> int:
        head = self.tokens[index]
        labels: List[_Token] = []
        cursor = index + 1
        while True:
            token = self._peek(cursor)
            if token is None:
                raise self._error(head, f"block {head.value!r} is missing its body")
            if token.kind in ("string", "name"):
                labels.append(token)
                cursor += 1
                continue
            if token.kind == "punct" and token.value == "{":
                break
            raise self._error(token, f"expected a label or '{{' after {head.value!r}")

        body_type = head.value if top_level else f"nested:{head.value}"
        cursor, attributes = self._body(cursor + 1, body_type)
        closing = self.tokens[cursor]
        if top_level:
            self._declare_block(head, labels, attributes, closing)
        return cursor + 1

    def _declare_block(self, head: _Token, labels: List[_Token], attributes: Dict[str, List[_Token]], closing: _Token) -> None:
        kind = LABELLED_KINDS.get(head.value)
        if kind is None or not labels:
            return
        names = [_string_value(label) for label in labels]
        if kind in ("resource", "data"):
            if len(names) < 2:
                raise self._error(head, f"{head.value} block requires a type and a name label")
            name, parent = names[1], names[0]
        else:
            name, parent = names[0], None
        doc = None
        description = attributes.get("description")
        if description and len(description) == 1 and description[0].kind in ("string", "heredoc"):
            doc = _string_value(description[0]).strip() or None
        annotation = None
        if kind == "variable" and attributes.get("type"):
            annotation = "".join(token.value for token in attributes["type"])
        self._declare(name, kind, head, closing, annotation, doc=doc, parent=parent)

    def _declare(
        self,
        name: str,
        kind: str,
        first: _Token,
        last: _Token,
        annotation: Optional[str],
        doc: Optional[str] = None,
        parent: Optional[str] = None,
    ) -> None:
        if doc is None:
            doc = leading_doc(self.comments, first.line, self.lines)
        self.declarations.append(
            Declaration(
                name=name,
                kind=kind,
                span=Span(first.line, first.column, last.end_line, last.end_column),
                doc=doc,
                annotation=annotation,
                exported=kind in ("variable", "output"),
                parent=parent,
            )
        )

    def _expression(self, index: int, attribute: str) -> Tuple[int, List[_Token]]:
        """Consume an attribute value up to the end of its line (outside brackets)."""

        stack: List[_Token] = []
        collected: List[_Token] = []
        while True:
            token = self._peek(index)
            if token is None:
                if stack:
                    raise self._error(stack[-1], f"unclosed '{stack[-1].value}'")
                return index, collected
            if token.kind == "newline":
                if not stack:
                    return index, collected
                index += 1
                continue
            if token.kind == "punct":
                if token.value in OPENERS:
                    stack.append(token)
                elif token.value in (")", "]", "}"):
                    if not stack:
                        if token.value == "}":
                            return index, collected
                        raise self._error(token, f"unexpected '{token.value}'")
                    opener = stack.pop()
                    if OPENERS[opener.value] != token.value:
                        raise self._error(token, f"unexpected '{token.value}'")
            elif token.kind in ("string", "heredoc"):
                self.literals.append(
                    StringLiteral(
                        value=_string_value(token),
                        span=token.span,
                        target=self._literal_target(collected, attribute),
                        dynamic="${" in token.value or "%{" in token.value,
                    )
                )
            elif token.kind == "name":
                following = self._peek(index + 1)
                if following is not None and following.kind == "punct" and following.value == "(":
                    self.calls.append(CallSite(token.value, token.span))
            collected.append(token)
            index += 1

    def _literal_target(self, collected: List[_Token], attribute: str) -> str:
        if len(collected) >= 2:
            separator, key = collected[-1], collected[-2]
            if separator.kind == "punct" and separator.value in ("=", ":") and key.kind in ("name", "string"):
                return _string_value(key)
        return attribute
