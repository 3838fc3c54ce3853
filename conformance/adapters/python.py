"""Python adapter built on the standard library ``ast`` and ``tokenize`` modules."""

from __future__ import annotations

import ast
import io
import re
import tokenize
from typing import Dict, List, Optional, Set, Union

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

from .base import leading_doc

CONSTANT_NAME = re.compile(r"^_*[A-Z][A-Z0-9_]*$")
BROAD_EXCEPTIONS = {"Exception", "BaseException"}
TYPE_FACTORIES = {"TypeVar", "NewType", "ParamSpec", "TypedDict", "NamedTuple", "namedtuple"}

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


def _span(node: ast.AST) -> Span:
    line = getattr(node, "lineno", 1)
    end_line = getattr(node, "end_lineno", None) or line
    end_column = getattr(node, "end_col_offset", None) or 1
    return Span(line, getattr(node, "col_offset", 0) + 1, end_line, max(end_column, 1))


def _dotted_name(node: ast.AST) -> Optional[str]:
    parts: List[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if isinstance(node, ast.Name):
        parts.append(node.id)
    if not parts:
        return None
    return ".".join(reversed(parts))


def _is_type_expression(node: ast.AST) -> bool:
    """True for values that can name a type: ``Union[...]``, ``X | None``, ``TypeVar("T")``."""

    if isinstance(node, (ast.Name, ast.Attribute, ast.Subscript)):
        return True
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return all(
            _is_type_expression(side) or (isinstance(side, ast.Constant) and side.value is None)
            for side in (node.left, node.right)
        )
    if isinstance(node, ast.Call):
        name = _dotted_name(node.func)
        return name is not None and name.rsplit(".", 1)[-1] in TYPE_FACTORIES
    return False


def _target_name(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Subscript):
        key = node.slice
        if isinstance(key, ast.Constant) and isinstance(key.value, str):
            return key.value
    return None


def _is_str(node: Optional[ast.AST]) -> bool:
    return isinstance(node, ast.Constant) and isinstance(node.value, str)


class PythonAdapter:
    """Extract declarations, comments, literals, calls and handlers from Python source."""

    language = Language.PYTHON

    def parse(self, path: str, text: str) -> SourceUnit:
        try:
            tree = ast.parse(text, filename=path)
        except SyntaxError as exc:
            raise ParseError(path, exc.msg or "invalid syntax", exc.lineno, exc.offset) from exc
        except (ValueError, RecursionError) as exc:
            raise ParseError(path, str(exc) or exc.__class__.__name__) from exc

        lines = split_lines(text)
        comments = self._comments(path, text)
        extractor = _Extractor(lines, comments)
        extractor.collect_declarations(tree)
        extractor.collect_expressions(tree)
        return SourceUnit(
            path=path,
            language=self.language,
            text=text,
            lines=lines,
            declarations=tuple(extractor.declarations),
            comments=tuple(comments),
            literals=tuple(sorted(extractor.literals, key=lambda literal: literal.span)),
            calls=tuple(sorted(extractor.calls, key=lambda call: call.span)),
            handlers=tuple(sorted(extractor.handlers, key=lambda handler: handler.span)),
        )

    def _comments(self, path: str, text: str) -> List[Comment]:
        comments: List[Comment] = []
        try:
            for token in tokenize.generate_tokens(io.StringIO(text).readline):
                if token.type != tokenize.COMMENT:
                    continue
                line, column = token.start
                comments.append(Comment(token.string, Span(line, column + 1, line, column + len(token.string))))
        except (tokenize.TokenError, SyntaxError) as exc:
            raise ParseError(path, f"could not tokenize: {exc}") from exc
        return comments


class _Extractor:
    def __init__(self, lines, comments: List[Comment]) -> None:
        self._lines = lines
        self._comments = comments
        self.declarations: List[Declaration] = []
        self.literals: List[StringLiteral] = []
        self.calls: List[CallSite] = []
        self.handlers: List[Handler] = []

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------
    def collect_declarations(self, tree: ast.Module) -> None:
        for statement in tree.body:
            if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self.declarations.append(self._function(statement, "function"))
            elif isinstance(statement, ast.ClassDef):
                self._class(statement)
            elif isinstance(statement, ast.Assign):
                for target in statement.targets:
                    if isinstance(target, ast.Name):
                        alias = _is_type_expression(statement.value)
                        self.declarations.append(self._variable(target.id, statement, None, alias))
            elif isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
                annotation = ast.unparse(statement.annotation)
                alias = annotation.endswith("TypeAlias")
                self.declarations.append(self._variable(statement.target.id, statement, annotation, alias))

    def _class(self, node: ast.ClassDef) -> None:
        public = not node.name.startswith("_")
        self.declarations.append(
            Declaration(
                name=node.name,
                kind="class",
                span=_span(node),
                doc=self._doc(node),
                exported=public,
            )
        )
        for item in node.body:
            if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)):
                method = self._function(item, "method", parent=node.name)
                if not public and method.exported:
                    method = Declaration(
                        name=method.name,
                        kind=method.kind,
                        span=method.span,
                        doc=method.doc,
                        annotation=method.annotation,
                        exported=False,
                        parent=method.parent,
                    )
                self.declarations.append(method)

    def _function(self, node: FunctionNode, kind: str, parent: Optional[str] = None) -> Declaration:
        return Declaration(
            name=node.name,
            kind=kind,
            span=_span(node),
            doc=self._doc(node),
            annotation=ast.unparse(node.returns) if node.returns is not None else None,
            exported=not node.name.startswith("_"),
            parent=parent,
        )

    def _variable(self, name: str, node: ast.stmt, annotation: Optional[str], alias: bool = False) -> Declaration:
        kind = "variable"
        if CONSTANT_NAME.match(name):
            kind = "constant"
        elif alias:
            kind = "alias"
        return Declaration(
            name=name,
            kind=kind,
            span=_span(node),
            doc=leading_doc(self._comments, node.lineno, self._lines),
            annotation=annotation,
            exported=not name.startswith("_"),
        )

    def _doc(self, node: Union[FunctionNode, ast.ClassDef]) -> Optional[str]:
        docstring = ast.get_docstring(node, clean=True)
        if docstring:
            return docstring
        first_line = min([decorator.lineno for decorator in node.decorator_list] + [node.lineno])
        return leading_doc(self._comments, first_line, self._lines)

    # ------------------------------------------------------------------
    # Literals, calls and handlers
    # ------------------------------------------------------------------
    def collect_expressions(self, tree: ast.Module) -> None:
        skipped: Set[int] = set()
        targets: Dict[int, str] = {}
        dynamic: Set[int] = set()

        for node in ast.walk(tree):
            if isinstance(node, (ast.Module, ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                body = node.body
                if body and isinstance(body[0], ast.Expr) and _is_str(body[0].value):
                    skipped.add(id(body[0].value))
            elif isinstance(node, ast.Assign):
                name = _target_name(node.targets[0])
                if name:
                    targets[id(node.value)] = name
            elif isinstance(node, ast.AnnAssign) and node.value is not None:
                name = _target_name(node.target)
                if name:
                    targets[id(node.value)] = name
            elif isinstance(node, ast.keyword) and node.arg:
                targets[id(node.value)] = node.arg
            elif isinstance(node, ast.Dict):
                for key, value in zip(node.keys, node.values):
                    if _is_str(key):
                        targets[id(value)] = key.value
            elif isinstance(node, ast.BinOp) and isinstance(node.op, (ast.Add, ast.Mod)):
                for operand in (node.left, node.right):
                    if _is_str(operand):
                        dynamic.add(id(operand))
                if id(node) in targets:
                    for operand in (node.left, node.right):
                        targets.setdefault(id(operand), targets[id(node)])
            elif isinstance(node, ast.JoinedStr):
                for value in node.values:
                    skipped.add(id(value))
                    if isinstance(value, ast.FormattedValue) and value.format_spec is not None:
                        skipped.add(id(value.format_spec))
            elif isinstance(node, ast.Call):
                func = node.func
                if isinstance(func, ast.Attribute) and func.attr == "format" and _is_str(func.value):
                    dynamic.add(id(func.value))

        for node in ast.walk(tree):
            if isinstance(node, ast.Constant) and isinstance(node.value, str):
                if id(node) in skipped:
                    continue
                self.literals.append(
                    StringLiteral(
                        value=node.value,
                        span=_span(node),
                        target=targets.get(id(node)),
                        dynamic=id(node) in dynamic,
                    )
                )
            elif isinstance(node, ast.JoinedStr) and id(node) not in skipped:
                parts = []
                interpolated = False
                for value in node.values:
                    if isinstance(value, ast.Constant):
                        parts.append(str(value.value))
                    else:
                        parts.append("{}")
                        interpolated = True
                self.literals.append(
                    StringLiteral(
                        value="".join(parts),
                        span=_span(node),
                        target=targets.get(id(node)),
                        dynamic=interpolated,
                    )
                )
            elif isinstance(node, ast.Call):
                name = _dotted_name(node.func)
                if name:
                    self.calls.append(CallSite(name=name, span=_span(node)))
            elif isinstance(node, ast.ExceptHandler):
                self.handlers.append(self._handler(node))

    def _handler(self, node: ast.ExceptHandler) -> Handler:
        caught = ast.unparse(node.type) if node.type is not None else None
        if node.type is None:
            broad = True
        else:
            candidates = node.type.elts if isinstance(node.type, ast.Tuple) else [node.type]
            broad = any(_dotted_name(item) and _dotted_name(item).split(".")[-1] in BROAD_EXCEPTIONS for item in candidates)
        empty = all(
            isinstance(statement, ast.Pass)
            or (isinstance(statement, ast.Expr) and isinstance(statement.value, ast.Constant) and statement.value.value is Ellipsis)
            for statement in node.body
        )
        reraises = any(isinstance(inner, ast.Raise) for statement in node.body for inner in ast.walk(statement))
        return Handler(span=_span(node), caught=caught, broad=broad, empty=empty, reraises=reraises)
