"""Lowering: turns markup node trees into Python call expressions.

Every rule picks the form that Python itself will accept or reject
correctly at the use site. Nothing here coerces values: a non-string
spliced into ``Text(...)`` fails when the generated code runs, not here.
"""

from __future__ import annotations

import ast
from collections.abc import Sequence

from psx.ast import Attr, AttrKind, Element, Expr, Node, Region, Text
from psx.context import EMPTY_CONTEXT, TypeContext, TypeTag
from psx.errors import LowerError
from psx.tables import (
    ATTRIBUTE,
    CLASS,
    CONDITIONAL_WRAPPERS,
    ELEMENT,
    GROUP,
    IF,
    TEXT,
    bool_attr_func,
    element_func,
    string_attr_func,
)
from psx.tokens import Span


def lower_nodes(nodes: Sequence[Node], ctx: TypeContext = EMPTY_CONTEXT) -> ast.expr:
    """Lower a list of sibling nodes to one expression."""
    if not nodes:
        return ast.Constant(None)
    if len(nodes) == 1:
        return _lower_node(nodes[0], ctx)
    return _call(GROUP, *(_lower_node(n, ctx) for n in nodes))


def lower_source(nodes: Sequence[Node], ctx: TypeContext = EMPTY_CONTEXT) -> str:
    """Lower nodes and serialize the result as Python source."""
    return ast.unparse(lower_nodes(nodes, ctx))


def splice(text: str, base: int, regions: Sequence[Region], replacements: Sequence[str]) -> str:
    """Replace each region in *text* (which starts at file offset *base*)."""
    parts: list[str] = []
    cursor = 0
    for region, replacement in zip(regions, replacements, strict=True):
        start = region.span.start.offset - base
        end = region.span.end.offset - base
        parts.append(text[cursor:start])
        parts.append(replacement)
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


def _lower_node(node: Node, ctx: TypeContext) -> ast.expr:
    if isinstance(node, Text):
        return _call(TEXT, _str(node.value))
    if isinstance(node, Expr):
        return _lower_expr(node, ctx)
    if isinstance(node, Element):
        return _lower_element(node, ctx)
    raise LowerError(f"unsupported node type {type(node).__name__}", None, "")


def _lower_expr(node: Expr, ctx: TypeContext) -> ast.expr:
    ex = parse_expression(node.source, node.span, node.regions, ctx)

    if isinstance(ex, ast.Name):
        tag = ctx.lookup(ex.id)
        if tag is TypeTag.NODE:
            return ex
        if tag is TypeTag.NODE_LIST:
            return _call(GROUP, ex)

    # Component and builder calls (Div, If, Group, Card, ...) already yield nodes
    if is_likely_node_expr(ex):
        return ex

    return _call(TEXT, ex)


def _lower_element(el: Element, ctx: TypeContext) -> ast.expr:
    args: list[ast.expr] = []

    # attrs first
    for attr in el.attrs:
        args.append(_lower_attr(attr, ctx))
    # then children
    for child in el.children:
        args.append(_lower_node(child, ctx))

    fn = element_func(el.tag)
    if fn is not None:
        return _call(fn, *args)
    return _call(ELEMENT, _str(el.tag), *args)


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------


def _lower_attr(attr: Attr, ctx: TypeContext) -> ast.expr:
    if attr.kind is AttrKind.BOOL:
        fn = bool_attr_func(attr.key)
        if fn is not None:
            return _call(fn)
        return _call(ATTRIBUTE, _str(attr.key))

    if attr.kind is AttrKind.STRING:
        fn = string_attr_func(attr.key)
        if fn is not None:
            return _call(fn, _str(attr.value))
        return _call(ATTRIBUTE, _str(attr.key), _str(attr.value))

    if attr.kind is AttrKind.EXPR:
        ex = parse_expression(attr.value, attr.value_span, attr.regions, ctx)

        # Spread: {expr} in a start tag yields attributes itself
        if not attr.key:
            return ex

        if (
            isinstance(ex, ast.Call)
            and isinstance(ex.func, ast.Name)
            and ex.func.id in CONDITIONAL_WRAPPERS
        ):
            return ex

        if attr.key == "class":
            if is_string_expr(ex, ctx):
                return _call(CLASS, ex)
            if isinstance(ex, ast.Name) and ctx.lookup(ex.id) is TypeTag.NODE:
                return ex
            if is_likely_node_expr(ex):
                return ex
            return _call(CLASS, ex)

        # <input disabled={cond}/> includes the attribute only when cond holds
        fn = bool_attr_func(attr.key)
        if fn is not None:
            return _call(IF, ex, _call(fn))

        fn = string_attr_func(attr.key)
        if fn is not None:
            return _call(fn, ex)
        return _call(ATTRIBUTE, _str(attr.key), ex)

    raise LowerError(f"unknown attribute kind {attr.kind!r}", attr.span, "")


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def parse_expression(
    source: str,
    span: Span,
    regions: Sequence[Region] = (),
    ctx: TypeContext = EMPTY_CONTEXT,
) -> ast.expr:
    """Parse brace expression source, lowering any markup nested in it first."""
    text = source
    if regions:
        replacements = [lower_source([r.element], ctx) for r in regions]
        text = splice(source, span.start.offset, regions, replacements)

    if not text.strip():
        raise LowerError("empty expression", span, "", expression=source)

    # Parenthesized so the expression may span lines and end in a comment
    try:
        tree = ast.parse(f"({text}\n)", mode="eval")
    except SyntaxError as exc:
        raise LowerError(
            f"invalid expression {source.strip()!r}: {exc.msg}", span, "", expression=source
        ) from None
    return tree.body


def is_likely_node_expr(ex: ast.expr) -> bool:
    """Calls to names starting with an upper-case letter are assumed to yield nodes."""
    if not isinstance(ex, ast.Call) or not isinstance(ex.func, ast.Name):
        return False
    first = ex.func.id[:1]
    return "A" <= first <= "Z"


def is_string_expr(ex: ast.expr, ctx: TypeContext) -> bool:
    """Return True only when ex certainly evaluates to a str."""
    if isinstance(ex, ast.Name):
        return ctx.lookup(ex.id) is TypeTag.STRING
    if isinstance(ex, ast.Constant):
        return isinstance(ex.value, str)
    if isinstance(ex, ast.JoinedStr):
        return True
    if isinstance(ex, ast.Call):
        func = ex.func
        # "...".format(...)
        if (
            isinstance(func, ast.Attribute)
            and func.attr == "format"
            and isinstance(func.value, ast.Constant)
            and isinstance(func.value.value, str)
        ):
            return True
        if isinstance(func, ast.Name) and func.id == "str":
            return True
    return False


def _call(name: str, *args: ast.expr) -> ast.Call:
    return ast.Call(func=ast.Name(id=name, ctx=ast.Load()), args=list(args), keywords=[])


def _str(value: str) -> ast.Constant:
    return ast.Constant(value)
