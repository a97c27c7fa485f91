"""Tag and attribute tables mapping exact names to builder function names."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

# Generic constructors the lowering falls back to
TEXT = "Text"
GROUP = "Group"
ELEMENT = "El"
ATTRIBUTE = "Attr"
CLASS = "Class"
IF = "If"
IFF = "Iff"

# Calls to these already yield an attribute conditionally and are spliced as is
CONDITIONAL_WRAPPERS: frozenset[str] = frozenset({IF, IFF})


def _make_elements() -> dict[str, str]:
    elements: dict[str, str] = {}

    def d(*tags: str) -> None:
        for tag in tags:
            elements[tag] = tag.capitalize()

    # Document and sections
    d("html", "head", "body", "header", "footer", "main", "nav", "section", "article", "aside")
    d("h1", "h2", "h3", "h4", "h5", "h6", "address", "hgroup")

    # Text content
    d("div", "p", "pre", "blockquote", "figure", "hr", "ul", "ol", "li", "dl", "dt", "dd")

    # Inline text
    d("a", "abbr", "b", "br", "code", "em", "i", "kbd", "mark", "q", "s", "small")
    d("span", "strong", "sub", "sup", "time", "u", "var", "cite", "dfn")

    # Embedded content
    d("img", "picture", "source", "video", "audio", "canvas", "svg", "iframe", "embed")

    # Tables
    d("table", "caption", "thead", "tbody", "tfoot", "tr", "th", "td", "col", "colgroup")

    # Forms
    d("form", "label", "input", "button", "select", "option", "optgroup", "textarea")
    d("fieldset", "legend", "output", "progress", "meter", "datalist")

    # Interactive and metadata
    d("details", "summary", "dialog", "template", "slot", "meta", "link", "script", "noscript")

    # Names that would collide with attribute constructors or read badly
    elements["title"] = "TitleEl"
    elements["style"] = "StyleEl"
    elements["data"] = "DataEl"
    elements["figcaption"] = "FigCaption"
    elements["iframe"] = "IFrame"
    elements["colgroup"] = "ColGroup"
    elements["optgroup"] = "OptGroup"
    elements["datalist"] = "DataList"
    elements["textarea"] = "Textarea"
    elements["thead"] = "THead"
    elements["tbody"] = "TBody"
    elements["tfoot"] = "TFoot"
    elements["html"] = "HTML"
    elements["svg"] = "SVG"
    return elements


_STRING_ATTRS: dict[str, str] = {
    "action": "Action",
    "alt": "Alt",
    "aria-label": "AriaLabel",
    "class": "Class",
    "content": "Content",
    "for": "For",
    "href": "Href",
    "id": "ID",
    "lang": "Lang",
    "method": "Method",
    "name": "Name",
    "placeholder": "Placeholder",
    "rel": "Rel",
    "role": "Role",
    "src": "Src",
    "style": "Style",
    "tabindex": "TabIndex",
    "target": "Target",
    "title": "Title",
    "type": "Type",
    "value": "Value",
}

_BOOL_ATTRS: dict[str, str] = {
    "async": "Async",
    "autofocus": "AutoFocus",
    "checked": "Checked",
    "defer": "Defer",
    "disabled": "Disabled",
    "hidden": "Hidden",
    "multiple": "Multiple",
    "readonly": "ReadOnly",
    "required": "Required",
    "selected": "Selected",
}

ELEMENTS: Mapping[str, str] = MappingProxyType(_make_elements())
STRING_ATTRS: Mapping[str, str] = MappingProxyType(_STRING_ATTRS)
BOOL_ATTRS: Mapping[str, str] = MappingProxyType(_BOOL_ATTRS)


def element_func(tag: str) -> str | None:
    """Return the dedicated constructor for a tag, or None for unknown tags."""
    return ELEMENTS.get(tag)


def string_attr_func(key: str) -> str | None:
    return STRING_ATTRS.get(key)


def bool_attr_func(key: str) -> str | None:
    return BOOL_ATTRS.get(key)
