"""Markdown -> HTML conversion package."""

from .emitter import emit_block, emit_document, emit_markdown
from .fallback import fallback_markdown_to_html
from .inline import convert_inline, convert_lines
from .parser import Block, parse_markdown
from .render import markdown_to_html
from .tables import convert_markdown_tables, extract_tables, restore_tables

__all__ = [
    "Block",
    "convert_inline",
    "convert_lines",
    "convert_markdown_tables",
    "emit_block",
    "emit_document",
    "emit_markdown",
    "extract_tables",
    "fallback_markdown_to_html",
    "markdown_to_html",
    "parse_markdown",
    "restore_tables",
]
