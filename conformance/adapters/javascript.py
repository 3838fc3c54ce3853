"""JavaScript adapter: a small tokenizer plus a brace-depth structural pass.

The adapter never evaluates code. It recognizes enough of the language to find
top-level declarations, class members, comments, string literals, call sites
and ``catch`` clauses. JSX elements are consumed as opaque tokens.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from conformance.errors import ParseError
from conformance.model import (
    CallSite,
    Comment,
    Declaration,
    Handler,
    Language,
    SourceUnit,
    Span,
    StringLiteral,
    split_lines,
)

from .base import leading_doc, line_offsets, position_of

CONSTANT_NAME = re.compile(r"^[A-Z][A-Z0-9_]*$")

OPERATORS = (
    ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=", "??=",
    "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--", "+=", "-=",
    "*=", "/=", "%=", "&=", "|=", "^=", "**", "<<", ">>",
)
OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}

# Keywords after which an expression (and therefore a regex or JSX) may start.
EXPRESSION_KEYWORDS = {
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
    "throw", "case", "do", "else", "yield", "await",
}
NON_CALL_KEYWORDS = {
    "if", "for", "while", "switch", "catch", "return", "typeof", "function",
    "class", "with", "do", "else", "void", "delete", "await", "yield", "in", "of",
}
CONTINUATION_PUNCT = {
    ".", "?.", "+", "-", "*", "/", "%", "**", "?", ":", "&&", "||", "??", "=>", "=",
    "==", "===", "!=", "!==", "<", ">", "<=", ">=", "&", "|", "^", "(", "[", ",",
}
METHOD_MODIFIERS = {"static", "async", "get", "set"}


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    start: int
    end: int
    line: int
    column: int
    end_line: int
    end_column: int
    dynamic: bool = False

    def is_punct(self, *values: str) -> bool:
        return self.kind == "punct" and self.value in values

    def is_name(self, *values: str) -> bool:
        return self.kind == "name" and (not values or self.value in values)


class _Lexer:
    def __init__(self, path: str, text: str) -> None:
        self.path = path
        self.text = text
        self.length = len(text)
        self.offsets = line_offsets(text)
        self.comments: List[Comment] = []

    def tokenize(self) -> List[Token]:
        tokens, _ = self._run(0, nested=False)
        return tokens

    def _run(self, index: int, nested: bool) -> Tuple[List[Token], int]:
        """Lex from ``index``; when nested, stop after the ``}`` closing a ``${`` or JSX expression."""

        tokens: List[Token] = []
        depth = 0
        previous: Optional[Token] = None
        while True:
            index = self._skip_space(index)
            if index >= self.length:
                if nested:
                    raise self._error(index, "unterminated embedded expression")
                return tokens, index
            token = self._read(index, previous)
            index = token.end
            if token.kind == "comment":
                if not nested:
                    self.comments.append(Comment(token.value, self._span(token)))
                continue
            if token.is_punct("{"):
                depth += 1
            elif token.is_punct("}"):
                if nested and depth == 0:
                    return tokens, index
                depth -= 1
            tokens.append(token)
            previous = token

    def _skip_space(self, index: int) -> int:
        while index < self.length and self.text[index].isspace():
            index += 1
        return index

    def _read(self, index: int, previous: Optional[Token]) -> Token:
        text = self.text
        char = text[index]
        following = text[index + 1 : index + 2]

        if index == 0 and text.startswith("#!"):
            return self._make("comment", index, self._line_end(index))
        if char == "/" and following == "/":
            return self._make("comment", index, self._line_end(index))
        if char == "/" and following == "*":
            close = text.find("*/", index + 2)
            if close == -1:
                raise self._error(index, "unterminated block comment")
            return self._make("comment", index, close + 2)
        if char in "'\"":
            return self._string(index)
        if char == "`":
            return self._template(index)
        if char == "/" and self._expression_expected(previous):
            regex = self._regex(index)
            if regex is not None:
                return regex
        if (
            char == "<"
            and self._expression_expected(previous)
            and (previous is None or previous.value != "}")
            and (following.isalpha() or following == ">")
        ):
            return self._jsx(index)
        if char.isalpha() or char in "_$#" or (ord(char) > 127 and char.isidentifier()):
            end = index + 1
            while end < self.length and (text[end].isalnum() or text[end] in "_$" or (ord(text[end]) > 127 and text[end].isidentifier())):
                end += 1
            return self._make("name", index, end)
        if char.isdigit() or (char == "." and following.isdigit()):
            end = index + 1
            while end < self.length:
                current = text[end]
                if current.isalnum() or current in "._":
                    end += 1
                elif current in "+-" and text[end - 1] in "eE" and not text[index:end].lower().startswith("0x"):
                    end += 1
                else:
                    break
            return self._make("number", index, end)
        for operator in OPERATORS:
            if text.startswith(operator, index):
                return self._make("punct", index, index + len(operator))
        return self._make("punct", index, index + 1)

    def _line_end(self, index: int) -> int:
        end = self.text.find("\n", index)
        return self.length if end == -1 else end

    def _expression_expected(self, previous: Optional[Token]) -> bool:
        if previous is None:
            return True
        if previous.kind == "punct":
            # postfix increment or decrement ends an operand
            return previous.value not in (")", "]", "++", "--")
        if previous.kind == "name":
            return previous.value in EXPRESSION_KEYWORDS
        return False

    def _string(self, index: int) -> Token:
        quote = self.text[index]
        cursor = index + 1
        while cursor < self.length:
            char = self.text[cursor]
            if char == "\\":
                cursor += 2
                continue
            if char == quote:
                return self._make("string", index, cursor + 1)
            if char == "\n":
                break
            cursor += 1
        raise self._error(index, "unterminated string literal")

    def _template(self, index: int) -> Token:
        cursor = index + 1
        dynamic = False
        while cursor < self.length:
            char = self.text[cursor]
            if char == "\\":
                cursor += 2
                continue
            if char == "`":
                return self._make("template", index, cursor + 1, dynamic=dynamic)
            if char == "$" and self.text[cursor + 1 : cursor + 2] == "{":
                dynamic = True
                _, cursor = self._run(cursor + 2, nested=True)
                continue
            cursor += 1
        raise self._error(index, "unterminated template literal")

    def _regex(self, index: int) -> Optional[Token]:
        cursor = index + 1
        in_class = False
        while cursor < self.length:
            char = self.text[cursor]
            if char == "\\":
                cursor += 2
                continue
            if char == "\n":
                return None
            if char == "[":
                in_class = True
            elif char == "]":
                in_class = False
            elif char == "/" and not in_class:
                cursor += 1
                while cursor < self.length and (self.text[cursor].isalnum() or self.text[cursor] == "_"):
                    cursor += 1
                return self._make("regex", index, cursor)
            cursor += 1
        return None

    def _jsx(self, index: int) -> Token:
        cursor = index
        depth = 0
        while cursor < self.length:
            char = self.text[cursor]
            if char == "<" and self.text[cursor + 1 : cursor + 2] == "/":
                close = self.text.find(">", cursor)
                if close == -1:
                    break
                depth -= 1
                cursor = close + 1
                if depth <= 0:
                    return self._make("jsx", index, cursor)
                continue
            if char == "<":
                cursor, self_closing = self._jsx_tag(cursor)
                if not self_closing:
                    depth += 1
                elif depth == 0:
                    return self._make("jsx", index, cursor)
                continue
            if char == "{":
                _, cursor = self._run(cursor + 1, nested=True)
                continue
            cursor += 1
        raise self._error(index, "unterminated JSX element")

    def _jsx_tag(self, index: int) -> Tuple[int, bool]:
        cursor = index + 1
        while cursor < self.length:
            char = self.text[cursor]
            if char in "'\"":
                close = self.text.find(char, cursor + 1)
                if close == -1:
                    break
                cursor = close + 1
                continue
            if char == "{":
                _, cursor = self._run(cursor + 1, nested=True)
                continue
            if char == "/" and self.text[cursor + 1 : cursor + 2] == ">":
                return cursor + 2, True
            if char == ">":
                return cursor + 1, False
            cursor += 1
        raise self._error(index, "unterminated JSX tag")

    def _make(self, kind: str, start: int, end: int, dynamic: bool = False) -> Token:
        line, column = position_of(start, self.offsets)
        end_line, end_column = position_of(max(end - 1, start), self.offsets)
        return Token(kind, self.text[start:end], start, end, line, column, end_line, end_column, dynamic)

    def _span(self, token: Token) -> Span:
        return Span(token.line, token.column, token.end_line, token.end_column)

    def _error(self, index: int, reason: str) -> ParseError:
        line, column = position_of(min(index, max(self.length - 1, 0)), self.offsets)
        return ParseError(self.path, reason, line, column)


def _span_between(first: Token, last: Token) -> Span:
    return Span(first.line, first.column, last.end_line, last.end_column)


def _unquote(token: Token) -> str:
    if token.kind in ("string", "template") and len(token.value) >= 2:
        return token.value[1:-1]
    return token.value


class JavaScriptAdapter:
    """Structural extraction for ``.js`` and ``.jsx`` files."""

    language = Language.JAVASCRIPT

    def parse(self, path: str, text: str) -> SourceUnit:
        lexer = _Lexer(path, text)
        tokens = lexer.tokenize()
        lines = split_lines(text)
        builder = _Builder(path, tokens, lexer.comments, lines)
        builder.build()
        return SourceUnit(
            path=path,
            language=self.language,
            text=text,
            lines=lines,
            declarations=tuple(builder.declarations),
            comments=tuple(lexer.comments),
            literals=tuple(builder.literals),
            calls=tuple(builder.calls),
            handlers=tuple(builder.handlers),
        )


class _Builder:
    def __init__(self, path: str, tokens: List[Token], comments: List[Comment], lines) -> None:
        self.path = path
        self.tokens = tokens
        self.comments = comments
        self.lines = lines
        self.match: Dict[int, int] = {}
        self.definitions: Set[int] = set()
        self.exported_names: Set[str] = set()
        self.declarations: List[Declaration] = []
        self.literals: List[StringLiteral] = []
        self.calls: List[CallSite] = []
        self.handlers: List[Handler] = []

    def build(self) -> None:
        self._match_brackets()
        self._top_level()
        self._apply_exports()
        self._scan_tokens()

    # ------------------------------------------------------------------
    # Bracket matching
    # ------------------------------------------------------------------
    def _match_brackets(self) -> None:
        stack: List[int] = []
        for index, token in enumerate(self.tokens):
            if token.kind != "punct":
                continue
            if token.value in OPENERS:
                stack.append(index)
            elif token.value in CLOSERS:
                if not stack or OPENERS[self.tokens[stack[-1]].value] != token.value:
                    raise ParseError(self.path, f"unexpected '{token.value}'", token.line, token.column)
                self.match[stack.pop()] = index
        if stack:
            opener = self.tokens[stack[-1]]
            raise ParseError(self.path, f"unclosed '{opener.value}'", opener.line, opener.column)

    def _token(self, index: int) -> Optional[Token]:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------
    def _top_level(self) -> None:
        index = 0
        count = len(self.tokens)
        while index < count:
            token = self.tokens[index]
            start = index
            exported = False
            if token.is_name("export"):
                exported = True
                index += 1
                if self._is(index, "name", "default"):
                    index += 1
            if self._is(index, "name", "async") and self._is(index + 1, "name", "function"):
                index += 1
            current = self._token(index)
            if current is None:
                break
            if exported and current.is_punct("{"):
                for inner in self.tokens[index + 1 : self.match[index]]:
                    if inner.kind == "name" and inner.value not in ("as", "default"):
                        self.exported_names.add(inner.value)
                index = self.match[index] + 1
            elif exported and current.kind == "name" and current.value not in ("function", "class", "const", "let", "var"):
                self.exported_names.add(current.value)
                index += 1
            elif current.is_name("function"):
                index = self._function_declaration(start, index, exported)
            elif current.is_name("class"):
                index = self._class_declaration(start, index, exported)
            elif current.is_name("const", "let", "var"):
                index = self._variable_declaration(start, index, exported)
            elif current.is_name("module", "exports"):
                index = self._exports_assignment(index)
            elif current.kind == "punct" and current.value in OPENERS:
                index = self.match[index] + 1
            else:
                index += 1

    def _is(self, index: int, kind: str, *values: str) -> bool:
        token = self._token(index)
        return token is not None and token.kind == kind and (not values or token.value in values)

    def _function_declaration(self, start: int, index: int, exported: bool) -> int:
        index += 1
        if self._is(index, "punct", "*"):
            index += 1
        name_token = self._token(index)
        if name_token is None or name_token.kind != "name":
            return self._skip_function_body(index)
        self.definitions.add(index)
        end = self._skip_function_body(index + 1) - 1
        self._declare(name_token.value, "function", start, end, exported)
        return end + 1

    def _skip_function_body(self, index: int) -> int:
        """Skip parameters and body; return the index after the closing brace."""

        if self._is(index, "punct", "("):
            index = self.match[index] + 1
        if self._is(index, "punct", "{"):
            return self.match[index] + 1
        return index

    def _class_declaration(self, start: int, index: int, exported: bool) -> int:
        name_token = self._token(index + 1)
        cursor = index + 1
        while cursor < len(self.tokens) and not self._is(cursor, "punct", "{"):
            if self.tokens[cursor].value in ("(", "["):
                cursor = self.match[cursor]
            cursor += 1
        if cursor >= len(self.tokens):
            return cursor
        body_end = self.match[cursor]
        if name_token is not None and name_token.kind == "name" and name_token.value != "extends":
            self._declare(name_token.value, "class", start, body_end, exported)
            self._class_members(name_token.value, cursor, body_end, exported)
        return body_end + 1

    def _class_members(self, class_name: str, body_start: int, body_end: int, exported: bool) -> None:
        index = body_start + 1
        while index < body_end:
            start = index
            while self._is(index, "name") and self.tokens[index].value in METHOD_MODIFIERS and not self._is(index + 1, "punct", "("):
                index += 1
            if self._is(index, "punct", "*"):
                index += 1
            token = self.tokens[index]
            if token.kind == "punct" and token.value in OPENERS:
                index = self.match[index] + 1
                continue
            if token.kind != "name":
                index += 1
                continue
            public = exported and not token.value.startswith(("#", "_"))
            if self._is(index + 1, "punct", "("):
                self.definitions.add(index)
                end = self._skip_function_body(index + 1) - 1
                self._declare(token.value, "method", start, end, public, parent=class_name)
                index = end + 1
            elif self._is(index + 1, "punct", "="):
                last, _ = self._statement_end(index + 2)
                if self._is_function_value(index + 2):
                    self._declare(token.value, "method", start, last, public, parent=class_name)
                index = last + 1
            else:
                index += 1

    def _variable_declaration(self, start: int, index: int, exported: bool) -> int:
        keyword = self.tokens[index].value
        index += 1
        while index < len(self.tokens):
            token = self.tokens[index]
            if token.kind != "name":
                # destructuring pattern: nothing to name
                last, separator = self._statement_end(index)
            else:
                value_index = index + 2 if self._is(index + 1, "punct", "=") else None
                last, separator = self._statement_end(index)
                if value_index is not None and self._is_function_value(value_index):
                    kind = "function"
                elif keyword == "const" and CONSTANT_NAME.match(token.value):
                    kind = "constant"
                elif value_index is not None and self._is_type_value(value_index):
                    kind = "alias"
                else:
                    kind = "variable"
                self._declare(token.value, kind, start, last, exported)
            if separator is None or not self.tokens[separator].is_punct(","):
                return (separator if separator is not None else last) + 1
            index = separator + 1
            start = index
        return index

    def _is_function_value(self, index: int) -> bool:
        if self._is(index, "name", "async"):
            index += 1
        token = self._token(index)
        if token is None:
            return False
        if token.is_name("function"):
            return True
        if token.is_punct("("):
            return self._is(self.match[index] + 1, "punct", "=>")
        return token.kind == "name" and self._is(index + 1, "punct", "=>")

    def _is_type_value(self, index: int) -> bool:
        """Class expressions and ``require(...)`` results may keep their class casing."""

        if self._is(index, "name", "class"):
            return True
        return self._is(index, "name", "require") and self._is(index + 1, "punct", "(")

    def _statement_end(self, index: int) -> Tuple[int, Optional[int]]:
        """Return (last token of the expression, separator index or None)."""

        count = len(self.tokens)
        index = min(index, count - 1)
        while True:
            token = self.tokens[index]
            if token.kind == "punct" and token.value in OPENERS:
                index = self.match[index]
                token = self.tokens[index]
            elif token.is_punct(";", ","):
                return max(index - 1, 0), index
            following = self._token(index + 1)
            if following is None:
                return index, None
            if following.is_punct(*CLOSERS):
                return index, None
            if following.is_punct(";", ","):
                index += 1
                continue
            if following.line > token.end_line and not self._continues(token, following):
                return index, None
            index += 1

    def _continues(self, token: Token, following: Token) -> bool:
        if token.kind == "punct" and token.value not in CLOSERS:
            return True
        if following.kind == "punct" and following.value in CONTINUATION_PUNCT:
            return True
        return token.is_name("return", "new", "typeof", "await", "yield")

    def _exports_assignment(self, index: int) -> int:
        cursor = index
        if self._is(cursor, "name", "module") and self._is(cursor + 1, "punct", ".") and self._is(cursor + 2, "name", "exports"):
            cursor += 3
        elif self._is(cursor, "name", "exports"):
            cursor += 1
        else:
            return index + 1
        if self._is(cursor, "punct", ".") and self._is(cursor + 1, "name") and self._is(cursor + 2, "punct", "="):
            self.exported_names.add(self.tokens[cursor + 1].value)
            if self._is(cursor + 3, "name"):
                self.exported_names.add(self.tokens[cursor + 3].value)
            return cursor + 3
        if not self._is(cursor, "punct", "="):
            return cursor
        value = cursor + 1
        if self._is(value, "name"):
            self.exported_names.add(self.tokens[value].value)
            return value + 1
        if self._is(value, "punct", "{"):
            end = self.match[value]
            entry = value + 1
            while entry < end:
                token = self.tokens[entry]
                if token.kind == "punct" and token.value in OPENERS:
                    entry = self.match[entry] + 1
                    continue
                if token.kind == "name" and self._token(entry - 1) is not None and self.tokens[entry - 1].is_punct("{", ",", ":"):
                    self.exported_names.add(token.value)
                entry += 1
            return end + 1
        return value

    def _apply_exports(self) -> None:
        if not self.exported_names:
            return
        exported_classes = {
            declaration.name
            for declaration in self.declarations
            if declaration.kind == "class" and declaration.name in self.exported_names
        }
        updated = []
        for declaration in self.declarations:
            if declaration.parent is None and declaration.name in self.exported_names:
                declaration = dataclasses.replace(declaration, exported=True)
            elif declaration.parent in exported_classes and not declaration.name.startswith(("#", "_")):
                declaration = dataclasses.replace(declaration, exported=True)
            updated.append(declaration)
        self.declarations = updated

    def _declare(self, name: str, kind: str, start: int, end: int, exported: bool, parent: Optional[str] = None) -> None:
        first = self.tokens[start]
        last = self.tokens[min(end, len(self.tokens) - 1)]
        self.declarations.append(
            Declaration(
                name=name,
                kind=kind,
                span=_span_between(first, last),
                doc=leading_doc(self.comments, first.line, self.lines),
                exported=exported,
                parent=parent,
            )
        )

    # ------------------------------------------------------------------
    # Literals, calls and handlers
    # ------------------------------------------------------------------
    def _scan_tokens(self) -> None:
        for index, token in enumerate(self.tokens):
            if token.kind in ("string", "template"):
                self.literals.append(self._literal(index, token))
            elif token.kind == "name" and self._is(index + 1, "punct", "("):
                if token.is_name("catch"):
                    handler = self._handler(index)
                    if handler is not None:
                        self.handlers.append(handler)
                    continue
                if index in self.definitions or token.value in NON_CALL_KEYWORDS:
                    continue
                if self._is(index - 1, "name", "function"):
                    continue
                self.calls.append(CallSite(self._callee(index), _span_between(token, self.tokens[self.match[index + 1]])))
            elif token.is_name("catch") and self._is(index + 1, "punct", "{"):
                handler = self._handler(index)
                if handler is not None:
                    self.handlers.append(handler)

    def _literal(self, index: int, token: Token) -> StringLiteral:
        previous = self._token(index - 1)
        following = self._token(index + 1)
        target = None
        if previous is not None and previous.is_punct("=", ":"):
            owner = self._token(index - 2)
            if owner is not None and owner.kind in ("name", "string"):
                before = self._token(index - 3)
                if previous.value == "=" or before is None or before.is_punct("{", ","):
                    target = _unquote(owner)
        concatenated = bool(
            (previous is not None and previous.is_punct("+", "+="))
            or (following is not None and following.is_punct("+"))
        )
        return StringLiteral(
            value=_unquote(token),
            span=_span_between(token, token),
            target=target,
            dynamic=token.dynamic or concatenated,
        )

    def _callee(self, index: int) -> str:
        parts = [self.tokens[index].value]
        cursor = index
        while self._is(cursor - 1, "punct", ".", "?.") and self._is(cursor - 2, "name"):
            parts.append(self.tokens[cursor - 2].value)
            cursor -= 2
        return ".".join(reversed(parts))

    def _handler(self, index: int) -> Optional[Handler]:
        catch = self.tokens[index]
        if self._is(index - 1, "punct", "."):
            return self._promise_handler(index)
        cursor = index + 1
        caught = None
        if self._is(cursor, "punct", "("):
            close = self.match[cursor]
            caught = " ".join(token.value for token in self.tokens[cursor + 1 : close]) or None
            cursor = close + 1
        if not self._is(cursor, "punct", "{"):
            return None
        return self._build_handler(catch, cursor, caught)

    def _promise_handler(self, index: int) -> Optional[Handler]:
        """Inline callbacks passed to ``.catch(...)``."""

        call_open = index + 1
        cursor = call_open + 1
        if self._is(cursor, "name", "async"):
            cursor += 1
        if self._is(cursor, "name", "function"):
            cursor += 1
            if self._is(cursor, "name"):
                cursor += 1
        if self._is(cursor, "punct", "("):
            cursor = self.match[cursor] + 1
        elif self._is(cursor, "name"):
            cursor += 1
        if self._is(cursor, "punct", "=>"):
            cursor += 1
        if not self._is(cursor, "punct", "{") or self.match[cursor] > self.match[call_open]:
            return None
        return self._build_handler(self.tokens[index], cursor, None)

    def _build_handler(self, first: Token, body_open: int, caught: Optional[str]) -> Handler:
        body_close = self.match[body_open]
        body = self.tokens[body_open + 1 : body_close]
        narrows = any(token.is_name("instanceof") for token in body)
        return Handler(
            span=_span_between(first, self.tokens[body_close]),
            caught=caught,
            broad=not narrows,
            empty=not body,
            reraises=any(token.is_name("throw") for token in body),
        )
