"""Table pre-pass: locate markdown tables and render them before block parsing.

Each table is replaced in place by a placeholder line so the block parser
treats it as one opaque block. Fenced code is skipped.
"""

from __future__ import annotations

import re
from typing import Optional

from diagnostics import DiagnosticCollector
from rich_document.table import (
    TableStyle,
    is_separator_line,
    is_table_row,
    parse_markdown_table,
    render_html_table,
)

TABLE_PLACEHOLDER = "\x00TABLE{}\x00"
PLACEHOLDER_LINE_RE = re.compile(r"^\s*\x00TABLE(\d+)\x00\s*$")
_PLACEHOLDER_RE = re.compile(r"\x00TABLE(\d+)\x00")
_FENCE_RE = re.compile(r"^\s*(`{3,}|~{3,})")


def extract_tables(
    text: str,
    diagnostics: Optional[DiagnosticCollector] = None,
    style: Optional[TableStyle] = None,
    fragments: Optional[list[str]] = None,
) -> tuple[str, list[str]]:
    """Replace every table block with a placeholder line.

    Returns the rewritten text and the rendered HTML fragments, indexed by
    placeholder number. New fragments are appended to ``fragments`` when it
    is given, so nested fragments share one numbering.
    """
    lines = text.split("\n")
    out: list[str] = []
    if fragments is None:
        fragments = []
    fence: Optional[str] = None
    i = 0
    n = len(lines)

    while i < n:
        line = lines[i]

        fence_match = _FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            out.append(line)
            i += 1
            continue

        if fence is None and _starts_table(lines, i):
            end = i + 2
            while end < n and "|" in lines[end] and lines[end].strip():
                end += 1
            table = parse_markdown_table(lines[i:end], diagnostics=diagnostics)
            fragments.append(render_html_table(table, style=style))
            indent = line[: len(line) - len(line.lstrip())]
            out.append(indent + TABLE_PLACEHOLDER.format(len(fragments) - 1))
            i = end
            continue

        out.append(line)
        i += 1

    return "\n".join(out), fragments


def restore_tables(text: str, fragments: list[str]) -> str:
    def _restore(match: re.Match[str]) -> str:
        index = int(match.group(1))
        return fragments[index] if index < len(fragments) else ""

    return _PLACEHOLDER_RE.sub(_restore, text)


def convert_markdown_tables(
    text: str,
    diagnostics: Optional[DiagnosticCollector] = None,
    style: Optional[TableStyle] = None,
) -> str:
    """Render every markdown table in ``text`` as HTML, leaving other lines alone."""
    converted, fragments = extract_tables(text, diagnostics=diagnostics, style=style)
    return restore_tables(converted, fragments)


def _starts_table(lines: list[str], index: int) -> bool:
    return (
        index + 1 < len(lines)
        and is_table_row(lines[index])
        and is_separator_line(lines[index + 1])
    )
