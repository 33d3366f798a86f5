"""HTML -> markdown conversion package."""

from .core import html_to_markdown, read_document
from .fallback import fallback_html_to_markdown
from .preprocess import clean_tree, has_unterminated_tag, preprocess_html
from .writer import escape_line_start, render_block, render_document

__all__ = [
    "clean_tree",
    "escape_line_start",
    "fallback_html_to_markdown",
    "has_unterminated_tag",
    "html_to_markdown",
    "preprocess_html",
    "read_document",
    "render_block",
    "render_document",
]
