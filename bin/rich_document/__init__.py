"""In-memory document model shared by the HTML <-> markdown converters."""

from .inline import parse_inline, render_html, render_markdown
from .model import Block, ListItem, RichDocument, Span
from .table import (
    Alignment,
    TableModel,
    TableStyle,
    build_table,
    parse_markdown_table,
    read_html_table,
    render_html_table,
    render_markdown_table,
)

__all__ = [
    "Alignment",
    "Block",
    "ListItem",
    "RichDocument",
    "Span",
    "TableModel",
    "TableStyle",
    "build_table",
    "parse_inline",
    "parse_markdown_table",
    "read_html_table",
    "render_html",
    "render_html_table",
    "render_markdown",
    "render_markdown_table",
]
