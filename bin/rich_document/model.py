"""Block and inline-span objects shared by both conversion directions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .table import TableModel


BLOCK_TYPES = frozenset({
    "paragraph", "heading", "list", "code_block", "table", "blockquote", "hr",
})
SPAN_TYPES = frozenset({
    "text", "bold", "italic", "bold_italic", "strike", "code", "link", "image", "line_break",
})


@dataclass
class Span:
    """Single inline element.

    ``text`` holds the literal text of text/code spans and the display text of
    links, ``target`` the href/src of links and images (image alt is ``text``).
    Emphasis spans carry their content in ``children``.
    """

    type: str
    text: str = ""
    target: str = ""
    children: list["Span"] = field(default_factory=list)

    def plain_text(self) -> str:
        if self.type == "line_break":
            return "\n"
        if self.children:
            return "".join(child.plain_text() for child in self.children)
        return self.text


@dataclass
class ListItem:
    spans: list[Span] = field(default_factory=list)
    children: list["Block"] = field(default_factory=list)


@dataclass
class Block:
    """Single block of a RichDocument."""

    type: str
    spans: list[Span] = field(default_factory=list)
    level: int = 0
    ordered: bool = False
    start: int = 1
    items: list[ListItem] = field(default_factory=list)
    language: str = ""
    text: str = ""
    table: Optional["TableModel"] = None
    children: list["Block"] = field(default_factory=list)


@dataclass
class RichDocument:
    blocks: list[Block] = field(default_factory=list)


def text(value: str) -> Span:
    return Span(type="text", text=value)


def line_break() -> Span:
    return Span(type="line_break")


def spans_plain_text(spans: list[Span]) -> str:
    return "".join(span.plain_text() for span in spans)


def is_blank(spans: list[Span]) -> bool:
    """True when the spans carry no visible content."""
    for span in spans:
        if span.type == "image":
            return False
        if span.type == "line_break":
            continue
        if span.children:
            if not is_blank(span.children):
                return False
        elif span.text.strip():
            return False
    return True


def trim_spans(spans: list[Span]) -> list[Span]:
    """Drop leading/trailing line breaks and outer whitespace of text spans."""
    result = list(spans)
    while result:
        first = result[0]
        if first.type == "line_break" or (first.type == "text" and not first.text.strip()):
            result.pop(0)
            continue
        if first.type == "text":
            result[0] = Span(type="text", text=first.text.lstrip())
        break
    while result:
        last = result[-1]
        if last.type == "line_break" or (last.type == "text" and not last.text.strip()):
            result.pop()
            continue
        if last.type == "text":
            result[-1] = Span(type="text", text=last.text.rstrip())
        break
    return result
