"""Table structural model shared by the HTML -> markdown and markdown -> HTML paths.

Both directions parse into :class:`TableModel` and render from it, so the
alignment vector and the ragged-row policy are defined once:

- row 0 is the header; ``column_count`` is the header width
- ``alignments`` has exactly ``column_count`` entries, left when unknown
- data rows are padded with empty cells or truncated, never dropped
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from diagnostics import DiagnosticCode, DiagnosticCollector, report

from .inline import parse_inline, render_html, render_markdown
from .model import Span

Cell = list[Span]
Row = list[Cell]

_SEPARATOR_CHARS_RE = re.compile(r"^[\s|:\-]+$")
_UNESCAPED_PIPE_RE = re.compile(r"(?<!\\)\|")
_TEXT_ALIGN_RE = re.compile(r"text-align\s*:\s*(left|center|right)", flags=re.IGNORECASE)


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"

    @classmethod
    def from_separator(cls, cell: str) -> "Alignment":
        marker = cell.strip()
        if len(marker) > 1 and marker.startswith(":") and marker.endswith(":"):
            return cls.CENTER
        if marker.endswith(":"):
            return cls.RIGHT
        return cls.LEFT

    @classmethod
    def from_html(cls, style: str = "", align: str = "") -> "Alignment":
        match = _TEXT_ALIGN_RE.search(style or "")
        value = match.group(1).lower() if match else (align or "").strip().lower()
        if value == "center":
            return cls.CENTER
        if value == "right":
            return cls.RIGHT
        return cls.LEFT

    @property
    def separator(self) -> str:
        if self is Alignment.CENTER:
            return ":---:"
        if self is Alignment.RIGHT:
            return "---:"
        return "---"


@dataclass
class TableStyle:
    """Inline styling written on rendered HTML tables."""

    table: str = "border-collapse: collapse; border: 1px solid #ccc; table-layout: auto;"
    header_cell: str = "border: 1px solid #ccc; padding: 8px; background-color: #f5f5f5;"
    data_cell: str = "border: 1px solid #ccc; padding: 8px; vertical-align: top;"


@dataclass
class TableModel:
    rows: list[Row] = field(default_factory=list)
    alignments: list[Alignment] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @property
    def header(self) -> Row:
        return self.rows[0] if self.rows else []

    @property
    def body(self) -> list[Row]:
        return self.rows[1:]


def build_table(
    rows: list[Row],
    alignments: Iterable[Alignment] = (),
    width: Optional[int] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> TableModel:
    """Normalise raw rows into a :class:`TableModel`.

    ``width`` defaults to the header width. The header is padded to ``width``
    and every data row is padded or truncated to it.
    """
    if not rows:
        return TableModel()

    header = list(rows[0])
    if width is None:
        width = len(header)
    header.extend([] for _ in range(width - len(header)))

    aligns = list(alignments)[:width]
    aligns.extend(Alignment.LEFT for _ in range(width - len(aligns)))

    normalized: list[Row] = [header[:width]]
    for index, row in enumerate(rows[1:], start=1):
        if len(row) != width:
            action = "padded" if len(row) < width else "truncated"
            report(
                diagnostics,
                DiagnosticCode.TABLE_SHAPE_MISMATCH,
                f"row {index} has {len(row)} cells, header has {width}; {action}",
            )
        cells = list(row[:width])
        cells.extend([] for _ in range(width - len(cells)))
        normalized.append(cells)

    return TableModel(rows=normalized, alignments=aligns)


# ---------------------------------------------------------------------------
# markdown side
# ---------------------------------------------------------------------------


def is_table_row(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= 2 and stripped.startswith("|") and stripped.endswith("|")


def is_separator_line(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and "-" in stripped and bool(_SEPARATOR_CHARS_RE.match(stripped))


def split_table_row(line: str) -> list[str]:
    """Split a pipe-delimited row into raw cell strings, honouring ``\\|``."""
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|") and not stripped.endswith("\\|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in _UNESCAPED_PIPE_RE.split(stripped)]


def parse_markdown_table(
    lines: list[str],
    diagnostics: Optional[DiagnosticCollector] = None,
) -> TableModel:
    """Parse header, separator and data lines of a markdown table."""
    header_cells = split_table_row(lines[0])
    separator_cells = split_table_row(lines[1]) if len(lines) > 1 else []
    alignments = [
        Alignment.from_separator(separator_cells[i]) if i < len(separator_cells) else Alignment.LEFT
        for i in range(len(header_cells))
    ]
    rows: list[Row] = [[_parse_cell(cell) for cell in header_cells]]
    for line in lines[2:]:
        if not line.strip():
            continue
        rows.append([_parse_cell(cell) for cell in split_table_row(line)])
    return build_table(rows, alignments, diagnostics=diagnostics)


def _parse_cell(raw: str) -> Cell:
    # a pipe escaped for the row grammar is literal, code spans included
    return parse_inline(raw.replace("\\|", "|"))


def render_markdown_table(table: TableModel) -> str:
    if not table.rows:
        return ""
    lines = [_markdown_row(table.header)]
    lines.append("| " + " | ".join(a.separator for a in table.alignments) + " |")
    lines.extend(_markdown_row(row) for row in table.body)
    return "\n".join(lines)


def _markdown_row(row: Row) -> str:
    cells = [render_markdown(cell, context="table").strip() for cell in row]
    return "| " + " | ".join(cells) + " |"


# ---------------------------------------------------------------------------
# HTML side
# ---------------------------------------------------------------------------


def read_html_table(
    table_tag,
    read_cell: Callable[[object], Cell],
    diagnostics: Optional[DiagnosticCollector] = None,
) -> TableModel:
    """Build a :class:`TableModel` from a BeautifulSoup ``<table>`` element.

    Alignment is read from the header row only, from an inline
    ``text-align`` style or an ``align`` attribute. The working width is the
    widest row; narrower rows (header included) are padded.
    """
    rows: list[Row] = []
    alignments: list[Alignment] = []
    for tr in _own_rows(table_tag):
        row: Row = []
        for cell in tr.find_all(["th", "td"], recursive=False):
            row.append(read_cell(cell))
            if not rows:
                alignments.append(
                    Alignment.from_html(cell.get("style", ""), cell.get("align", ""))
                )
            span = _colspan(cell)
            for _ in range(span - 1):
                row.append([])
                if not rows:
                    alignments.append(Alignment.LEFT)
        rows.append(row)

    if not rows:
        return TableModel()
    width = max(len(row) for row in rows)
    return build_table(rows, alignments, width=width, diagnostics=diagnostics)


def render_html_table(table: TableModel, style: Optional[TableStyle] = None) -> str:
    """Render a table with per-column alignment carried as inline styles."""
    if style is None:
        style = TableStyle()
    if not table.rows:
        return ""

    parts = [f'<table style="{style.table}">', "<thead>", "<tr>"]
    for index, cell in enumerate(table.header):
        attr = _cell_style(style.header_cell, table.alignments[index])
        parts.append(f'<th style="{attr}">{render_html(cell)}</th>')
    parts.extend(["</tr>", "</thead>"])
    if table.body:
        parts.append("<tbody>")
        for row in table.body:
            parts.append("<tr>")
            for index, cell in enumerate(row):
                attr = _cell_style(style.data_cell, table.alignments[index])
                parts.append(f'<td style="{attr}">{render_html(cell)}</td>')
            parts.append("</tr>")
        parts.append("</tbody>")
    parts.append("</table>")
    return "\n".join(parts)


def _cell_style(base: str, alignment: Alignment) -> str:
    if alignment is Alignment.LEFT:
        return base
    return f"{base} text-align: {alignment.value};".strip()


def _own_rows(table_tag) -> list:
    """Rows of this table, skipping rows of nested tables."""
    return [tr for tr in table_tag.find_all("tr") if tr.find_parent("table") is table_tag]


def _colspan(cell) -> int:
    try:
        return max(1, min(int(cell.get("colspan", 1)), 50))
    except (TypeError, ValueError):
        return 1
