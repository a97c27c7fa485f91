"""Symbol/type context: a conservative guess at what local names hold.

The context is only consulted to pick between two lowerings that both
compile; an identifier that is missing or ``UNKNOWN`` always takes the
default path, whose correctness is then checked where the generated code
runs.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from psx.ast import Region
from psx.tokens import Position

logger = logging.getLogger(__name__)


class TypeTag(Enum):
    STRING = "string"
    NODE = "node"
    NODE_LIST = "node-list"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class TypeContext:
    """Read-only mapping from identifier to coarse type tag."""

    types: Mapping[str, TypeTag] = field(default_factory=lambda: MappingProxyType({}))

    def lookup(self, name: str) -> TypeTag:
        return self.types.get(name, TypeTag.UNKNOWN)


EMPTY_CONTEXT = TypeContext()

_SEQUENCE_TYPES: frozenset[str] = frozenset(
    {"list", "List", "Sequence", "Iterable", "Iterator", "Collection", "tuple", "Tuple"}
)

_Point = tuple[int, int]  # (lineno, UTF-8 byte column), as the ast module counts
_Scope = ast.Module | ast.FunctionDef | ast.AsyncFunctionDef | ast.Lambda


def mask_regions(source: str, regions: Iterable[Region]) -> str:
    """Replace each region with a ``(_ ...)`` placeholder of the same UTF-8 size.

    Newlines are kept and every other character becomes one space per byte,
    so line numbers and the byte columns ``ast`` reports stay valid.
    """
    chars = list(source)
    for region in regions:
        start = region.span.start.offset
        end = region.span.end.offset
        for i in range(start, end):
            if chars[i] != "\n":
                chars[i] = " " * len(chars[i].encode("utf-8"))
        chars[start] = "("
        chars[start + 1] = "_"
        chars[end - 1] = ")"
    return "".join(chars)


class ScopeIndex:
    """Parsed view of one file, answering type-context queries per region."""

    def __init__(self, tree: ast.Module | None, lines: list[str], markers: set[_Point]) -> None:
        self._tree = tree
        self._lines = lines
        self._markers = markers

    @classmethod
    def build(cls, source: str, regions: list[Region]) -> ScopeIndex:
        lines = source.split("\n")
        masked = mask_regions(source, regions)
        try:
            tree = ast.parse(masked)
        except SyntaxError as exc:
            logger.debug("host code does not parse (%s); using empty type contexts", exc.msg)
            tree = None
        index = cls(tree, lines, set())
        for region in regions:
            start = region.span.start
            # The placeholder name sits one character after the region start
            index._markers.add(index._point(Position(start.line, start.column + 1, start.offset + 1)))
        return index

    def context_at(self, position: Position) -> TypeContext:
        """Return the type context visible at a region starting at *position*."""
        if self._tree is None:
            return EMPTY_CONTEXT
        point = self._point(position)
        chain: list[_Scope] = [self._tree]
        chain.extend(_enclosing_functions(self._tree, point))

        types: dict[str, TypeTag] = {}
        for scope in chain:
            types.update(_scope_types(scope, point, self._markers))
        return TypeContext(MappingProxyType(types))

    def _point(self, position: Position) -> _Point:
        line_idx = position.line - 1
        text = self._lines[line_idx] if 0 <= line_idx < len(self._lines) else ""
        return position.line, len(text[: position.column - 1].encode("utf-8"))


def build_context(source: str, regions: list[Region], position: Position) -> TypeContext:
    """Convenience function: type context for the region starting at *position*."""
    return ScopeIndex.build(source, regions).context_at(position)


# ---------------------------------------------------------------------------
# Scope discovery
# ---------------------------------------------------------------------------


def _contains(node: ast.AST, point: _Point) -> bool:
    start = (node.lineno, node.col_offset)
    end = (node.end_lineno, node.end_col_offset)
    return start <= point < end


def _enclosing_functions(tree: ast.Module, point: _Point) -> list[_Scope]:
    """Functions containing point, outermost first."""
    found = [
        node
        for node in ast.walk(tree)
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda))
        and _contains(node, point)
    ]
    found.sort(key=lambda n: (n.lineno, n.col_offset))
    return found


def _scope_types(scope: _Scope, point: _Point, markers: set[_Point]) -> dict[str, TypeTag]:
    collector = _BindingCollector(point, markers)
    if isinstance(scope, ast.Module):
        for stmt in scope.body:
            collector.visit(stmt)
    else:
        collector.add_arguments(scope.args)
        if isinstance(scope, ast.Lambda):
            collector.visit(scope.body)
        else:
            for stmt in scope.body:
                collector.visit(stmt)
    return collector.result()


# ---------------------------------------------------------------------------
# Binding collection
# ---------------------------------------------------------------------------


class _BindingCollector(ast.NodeVisitor):
    """Collect the names bound in one scope, typed where the binding says so."""

    def __init__(self, point: _Point, markers: set[_Point]) -> None:
        self._point = point
        self._markers = markers
        self._typed: dict[str, set[TypeTag]] = {}
        self._untyped: set[str] = set()

    def result(self) -> dict[str, TypeTag]:
        out: dict[str, TypeTag] = {}
        for name, tags in self._typed.items():
            out[name] = next(iter(tags)) if len(tags) == 1 else TypeTag.UNKNOWN
        for name in self._untyped:
            out[name] = TypeTag.UNKNOWN
        return out

    def _bind(self, name: str, tag: TypeTag | None, node: ast.AST) -> None:
        before = (node.lineno, node.col_offset) < self._point
        if tag is None or tag is TypeTag.UNKNOWN or not before:
            self._untyped.add(name)
        else:
            self._typed.setdefault(name, set()).add(tag)

    def _bind_target(self, target: ast.AST) -> None:
        for node in ast.walk(target):
            if isinstance(node, ast.Name):
                self._untyped.add(node.id)

    def add_arguments(self, args: ast.arguments) -> None:
        for arg in (*args.posonlyargs, *args.args, *args.kwonlyargs):
            tag = annotation_tag(arg.annotation) if arg.annotation is not None else None
            self._bind(arg.arg, tag, arg)
        if args.vararg is not None:
            vararg = args.vararg
            tag = None
            if vararg.annotation is not None and annotation_tag(vararg.annotation) is TypeTag.NODE:
                tag = TypeTag.NODE_LIST
            self._bind(vararg.arg, tag, vararg)
        if args.kwarg is not None:
            self._untyped.add(args.kwarg.arg)

    # Nested scopes bind their own name only

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self._untyped.add(node.name)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        self._untyped.add(node.name)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._untyped.add(node.name)

    def visit_Lambda(self, node: ast.Lambda) -> None:
        pass

    # Typed bindings

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        if isinstance(node.target, ast.Name):
            self._bind(node.target.id, annotation_tag(node.annotation), node)
        if node.value is not None:
            self.visit(node.value)

    def visit_Assign(self, node: ast.Assign) -> None:
        if len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
            self._bind(node.targets[0].id, self._value_tag(node.value), node)
        else:
            for target in node.targets:
                self._bind_target(target)
        self.visit(node.value)

    # Untyped bindings

    def visit_AugAssign(self, node: ast.AugAssign) -> None:
        self._bind_target(node.target)
        self.visit(node.value)

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self._bind_target(node.target)
        self.visit(node.value)

    def visit_For(self, node: ast.For) -> None:
        self._bind_target(node.target)
        self.generic_visit(node)

    visit_AsyncFor = visit_For

    def visit_withitem(self, node: ast.withitem) -> None:
        if node.optional_vars is not None:
            self._bind_target(node.optional_vars)
        self.visit(node.context_expr)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.name:
            self._untyped.add(node.name)
        self.generic_visit(node)

    def visit_comprehension(self, node: ast.comprehension) -> None:
        self._bind_target(node.target)
        self.generic_visit(node)

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self._untyped.add(alias.asname or alias.name.split(".")[0])

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        for alias in node.names:
            if alias.name != "*":
                self._untyped.add(alias.asname or alias.name)

    def visit_Global(self, node: ast.Global) -> None:
        self._untyped.update(node.names)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self._untyped.update(node.names)

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        if node.name:
            self._untyped.add(node.name)
        self.generic_visit(node)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        if node.name:
            self._untyped.add(node.name)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        if node.rest:
            self._untyped.add(node.rest)
        self.generic_visit(node)

    # Value shapes

    def _value_tag(self, value: ast.expr) -> TypeTag | None:
        if isinstance(value, ast.Constant) and isinstance(value.value, str):
            return TypeTag.STRING
        if isinstance(value, ast.JoinedStr):
            return TypeTag.STRING
        if self._is_marker(value):
            return TypeTag.NODE
        if isinstance(value, ast.IfExp):
            body = self._value_tag(value.body)
            orelse = self._value_tag(value.orelse)
            return body if body is orelse else None
        if isinstance(value, (ast.List, ast.Tuple)) and value.elts:
            if all(self._is_marker(elt) for elt in value.elts):
                return TypeTag.NODE_LIST
        if isinstance(value, (ast.ListComp, ast.GeneratorExp)) and self._is_marker(value.elt):
            return TypeTag.NODE_LIST
        return None

    def _is_marker(self, value: ast.expr) -> bool:
        return (
            isinstance(value, ast.Name)
            and value.id == "_"
            and (value.lineno, value.col_offset) in self._markers
        )


def annotation_tag(annotation: ast.expr) -> TypeTag:
    """Map a type annotation to a coarse tag."""
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        try:
            annotation = ast.parse(annotation.value, mode="eval").body
        except SyntaxError:
            return TypeTag.UNKNOWN

    name = _last_name(annotation)
    if name == "str":
        return TypeTag.STRING
    if name == "Node":
        return TypeTag.NODE

    if isinstance(annotation, ast.Subscript) and _last_name(annotation.value) in _SEQUENCE_TYPES:
        inner = annotation.slice
        if isinstance(inner, ast.Tuple):
            # tuple[Node, ...]
            if (
                len(inner.elts) == 2
                and isinstance(inner.elts[1], ast.Constant)
                and inner.elts[1].value is Ellipsis
            ):
                inner = inner.elts[0]
            else:
                return TypeTag.UNKNOWN
        if annotation_tag(inner) is TypeTag.NODE:
            return TypeTag.NODE_LIST

    return TypeTag.UNKNOWN


def _last_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None
