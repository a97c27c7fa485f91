"""Builder API targeted by generated code, and its HTML renderer.

Generated modules do ``from psx.html import *`` and call these functions::

    Div(Class("card"), H2(Text(title)), Group(items))

Element functions take attribute nodes and child nodes in one argument
list. Attributes always render in the start tag, in order; children render
in order between the tags. ``None`` is skipped and lists, tuples and
generators are flattened, so ``If(...)`` and comprehensions splice cleanly.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Union

Child = Union["Node", None, Iterable["Child"]]

# Elements rendered without an end tag
VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)


class Node:
    """Anything that renders to HTML."""

    def render_to(self, out: list[str]) -> None:
        raise NotImplementedError

    def render(self) -> str:
        out: list[str] = []
        self.render_to(out)
        return "".join(out)

    def __str__(self) -> str:
        return self.render()


class TextNode(Node):
    __slots__ = ("value",)

    def __init__(self, value: str) -> None:
        self.value = value

    def render_to(self, out: list[str]) -> None:
        out.append(escape_html(self.value))


class RawNode(Node):
    __slots__ = ("value",)

    def __init__(self, value: str) -> None:
        self.value = value

    def render_to(self, out: list[str]) -> None:
        out.append(self.value)


class AttrNode(Node):
    """An attribute; value None renders a boolean attribute."""

    __slots__ = ("key", "value")

    def __init__(self, key: str, value: str | None = None) -> None:
        self.key = key
        self.value = value

    def render_to(self, out: list[str]) -> None:
        if self.value is None:
            out.append(f" {self.key}")
        else:
            out.append(f' {self.key}="{escape_attr(self.value)}"')


class GroupNode(Node):
    __slots__ = ("children",)

    def __init__(self, children: tuple[Node, ...]) -> None:
        self.children = children

    def render_to(self, out: list[str]) -> None:
        # Attributes in a bare group have no start tag to go into
        for child in self.children:
            if not isinstance(child, AttrNode):
                child.render_to(out)


class ElementNode(Node):
    __slots__ = ("tag", "children")

    def __init__(self, tag: str, children: tuple[Node, ...]) -> None:
        self.tag = tag
        self.children = children

    def render_to(self, out: list[str]) -> None:
        out.append(f"<{self.tag}")
        for child in self.children:
            if isinstance(child, AttrNode):
                child.render_to(out)
        out.append(">")
        if self.tag in VOID_ELEMENTS:
            return
        for child in self.children:
            if not isinstance(child, AttrNode):
                child.render_to(out)
        out.append(f"</{self.tag}>")


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------


def escape_html(text: str) -> str:
    """Escape text for HTML body content."""
    result: list[str] = []
    for ch in text:
        if ch == "&":
            result.append("&amp;")
        elif ch == "<":
            result.append("&lt;")
        elif ch == ">":
            result.append("&gt;")
        elif ch == '"':
            result.append("&quot;")
        else:
            result.append(ch)
    return "".join(result)


def escape_attr(text: str) -> str:
    """Escape text for HTML attribute values."""
    result: list[str] = []
    for ch in text:
        if ch == "&":
            result.append("&amp;")
        elif ch == "<":
            result.append("&lt;")
        elif ch == ">":
            result.append("&gt;")
        elif ch == '"':
            result.append("&quot;")
        elif ch == "'":
            result.append("&#39;")
        else:
            result.append(ch)
    return "".join(result)


# ---------------------------------------------------------------------------
# Generic constructors
# ---------------------------------------------------------------------------


def _flatten(children: Iterable[Child], out: list[Node]) -> list[Node]:
    for child in children:
        if child is None:
            continue
        if isinstance(child, GroupNode):
            out.extend(child.children)
        elif isinstance(child, Node):
            out.append(child)
        elif isinstance(child, (str, bytes)):
            raise TypeError(f"expected a node, got {type(child).__name__}; wrap text in Text()")
        elif isinstance(child, Iterable):
            _flatten(child, out)
        else:
            raise TypeError(f"expected a node, got {type(child).__name__}")
    return out


def Text(value: str) -> Node:
    """Escaped text. Only str is accepted; nothing is stringified implicitly."""
    if not isinstance(value, str):
        raise TypeError(f"Text() expects str, got {type(value).__name__}")
    return TextNode(value)


def Raw(value: str) -> Node:
    """Unescaped HTML."""
    if not isinstance(value, str):
        raise TypeError(f"Raw() expects str, got {type(value).__name__}")
    return RawNode(value)


def El(tag: str, *children: Child) -> Node:
    return ElementNode(tag, tuple(_flatten(children, [])))


def Attr(key: str, value: str | None = None) -> Node:
    if value is not None and not isinstance(value, str):
        raise TypeError(f"attribute {key!r} expects str, got {type(value).__name__}")
    return AttrNode(key, value)


def Group(*children: Child) -> Node:
    return GroupNode(tuple(_flatten(children, [])))


def If(condition: object, node: Node) -> Node | None:
    return node if condition else None


def Iff(condition: object, build: Callable[[], Node]) -> Node | None:
    """Like If, but only builds the node when the condition holds."""
    return build() if condition else None


def render(node: Node | None) -> str:
    return "" if node is None else node.render()


# ---------------------------------------------------------------------------
# Dedicated constructors
# ---------------------------------------------------------------------------


def _element(name: str, tag: str) -> Callable[..., Node]:
    def build(*children: Child) -> Node:
        return El(tag, *children)

    build.__name__ = build.__qualname__ = name
    build.__doc__ = f"<{tag}> element."
    return build


def _string_attr(name: str, key: str) -> Callable[[str], Node]:
    def build(value: str) -> Node:
        return Attr(key, value)

    build.__name__ = build.__qualname__ = name
    build.__doc__ = f"{key}=... attribute."
    return build


def _bool_attr(name: str, key: str) -> Callable[[], Node]:
    def build() -> Node:
        return Attr(key)

    build.__name__ = build.__qualname__ = name
    build.__doc__ = f"{key} boolean attribute."
    return build


HTML = _element("HTML", "html")
Head = _element("Head", "head")
Body = _element("Body", "body")
Header = _element("Header", "header")
Footer = _element("Footer", "footer")
Main = _element("Main", "main")
Nav = _element("Nav", "nav")
Section = _element("Section", "section")
Article = _element("Article", "article")
Aside = _element("Aside", "aside")
H1 = _element("H1", "h1")
H2 = _element("H2", "h2")
H3 = _element("H3", "h3")
H4 = _element("H4", "h4")
H5 = _element("H5", "h5")
H6 = _element("H6", "h6")
Address = _element("Address", "address")
Hgroup = _element("Hgroup", "hgroup")
Div = _element("Div", "div")
P = _element("P", "p")
Pre = _element("Pre", "pre")
Blockquote = _element("Blockquote", "blockquote")
Figure = _element("Figure", "figure")
FigCaption = _element("FigCaption", "figcaption")
Hr = _element("Hr", "hr")
Ul = _element("Ul", "ul")
Ol = _element("Ol", "ol")
Li = _element("Li", "li")
Dl = _element("Dl", "dl")
Dt = _element("Dt", "dt")
Dd = _element("Dd", "dd")
A = _element("A", "a")
Abbr = _element("Abbr", "abbr")
B = _element("B", "b")
Br = _element("Br", "br")
Code = _element("Code", "code")
Em = _element("Em", "em")
I = _element("I", "i")  # noqa: E741
Kbd = _element("Kbd", "kbd")
Mark = _element("Mark", "mark")
Q = _element("Q", "q")
S = _element("S", "s")
Small = _element("Small", "small")
Span = _element("Span", "span")
Strong = _element("Strong", "strong")
Sub = _element("Sub", "sub")
Sup = _element("Sup", "sup")
Time = _element("Time", "time")
U = _element("U", "u")
Var = _element("Var", "var")
Cite = _element("Cite", "cite")
Dfn = _element("Dfn", "dfn")
DataEl = _element("DataEl", "data")
Img = _element("Img", "img")
Picture = _element("Picture", "picture")
Source = _element("Source", "source")
Video = _element("Video", "video")
Audio = _element("Audio", "audio")
Canvas = _element("Canvas", "canvas")
SVG = _element("SVG", "svg")
IFrame = _element("IFrame", "iframe")
Embed = _element("Embed", "embed")
Table = _element("Table", "table")
Caption = _element("Caption", "caption")
THead = _element("THead", "thead")
TBody = _element("TBody", "tbody")
TFoot = _element("TFoot", "tfoot")
Tr = _element("Tr", "tr")
Th = _element("Th", "th")
Td = _element("Td", "td")
Col = _element("Col", "col")
ColGroup = _element("ColGroup", "colgroup")
Form = _element("Form", "form")
Label = _element("Label", "label")
Input = _element("Input", "input")
Button = _element("Button", "button")
Select = _element("Select", "select")
Option = _element("Option", "option")
OptGroup = _element("OptGroup", "optgroup")
Textarea = _element("Textarea", "textarea")
Fieldset = _element("Fieldset", "fieldset")
Legend = _element("Legend", "legend")
Output = _element("Output", "output")
Progress = _element("Progress", "progress")
Meter = _element("Meter", "meter")
DataList = _element("DataList", "datalist")
Details = _element("Details", "details")
Summary = _element("Summary", "summary")
Dialog = _element("Dialog", "dialog")
Template = _element("Template", "template")
Slot = _element("Slot", "slot")
Meta = _element("Meta", "meta")
Link = _element("Link", "link")
Script = _element("Script", "script")
Noscript = _element("Noscript", "noscript")
TitleEl = _element("TitleEl", "title")
StyleEl = _element("StyleEl", "style")

Action = _string_attr("Action", "action")
Alt = _string_attr("Alt", "alt")
AriaLabel = _string_attr("AriaLabel", "aria-label")
Class = _string_attr("Class", "class")
Content = _string_attr("Content", "content")
For = _string_attr("For", "for")
Href = _string_attr("Href", "href")
ID = _string_attr("ID", "id")
Lang = _string_attr("Lang", "lang")
Method = _string_attr("Method", "method")
Name = _string_attr("Name", "name")
Placeholder = _string_attr("Placeholder", "placeholder")
Rel = _string_attr("Rel", "rel")
Role = _string_attr("Role", "role")
Src = _string_attr("Src", "src")
Style = _string_attr("Style", "style")
TabIndex = _string_attr("TabIndex", "tabindex")
Target = _string_attr("Target", "target")
Title = _string_attr("Title", "title")
Type = _string_attr("Type", "type")
Value = _string_attr("Value", "value")

Async = _bool_attr("Async", "async")
AutoFocus = _bool_attr("AutoFocus", "autofocus")
Checked = _bool_attr("Checked", "checked")
Defer = _bool_attr("Defer", "defer")
Disabled = _bool_attr("Disabled", "disabled")
Hidden = _bool_attr("Hidden", "hidden")
Multiple = _bool_attr("Multiple", "multiple")
ReadOnly = _bool_attr("ReadOnly", "readonly")
Required = _bool_attr("Required", "required")
Selected = _bool_attr("Selected", "selected")

__all__ = [
    name
    for name, value in list(globals().items())
    if not name.startswith("_") and getattr(value, "__module__", None) == __name__
]
