"""Inline markdown -> HTML conversion helpers."""

from __future__ import annotations

from rich_document.inline import parse_inline, render_html


def convert_inline(text: str) -> str:
    """Convert inline markdown syntax to HTML.

    Supported syntax:
    - `code`
    - ***bold italic***, **bold**, *italic*, ~~strike~~
    - [text](url), ![alt](src)
    - <br> line breaks and backslash escapes
    """
    return render_html(parse_inline(text))


def convert_lines(lines: list[str]) -> str:
    """Convert consecutive source lines, joined by explicit line breaks."""
    return "<br />".join(convert_inline(line.strip()) for line in lines if line.strip())
