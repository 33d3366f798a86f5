from bs4 import BeautifulSoup

from diagnostics import DiagnosticCode, DiagnosticCollector
from rich_document.inline import parse_inline
from rich_document.model import Span, spans_plain_text
from rich_document.table import (
    Alignment,
    TableModel,
    TableStyle,
    build_table,
    is_separator_line,
    is_table_row,
    parse_markdown_table,
    read_html_table,
    render_html_table,
    render_markdown_table,
    split_table_row,
)


def _cell_texts(row):
    return [spans_plain_text(cell) for cell in row]


def _read_plain(cell):
    return parse_inline(cell.get_text())


class TestAlignment:
    def test_from_separator(self):
        assert Alignment.from_separator(":---:") is Alignment.CENTER
        assert Alignment.from_separator(" ---: ") is Alignment.RIGHT
        assert Alignment.from_separator("---") is Alignment.LEFT
        assert Alignment.from_separator(":---") is Alignment.LEFT

    def test_from_html_style_takes_precedence(self):
        assert Alignment.from_html("text-align: center;") is Alignment.CENTER
        assert Alignment.from_html("TEXT-ALIGN:right", "left") is Alignment.RIGHT
        assert Alignment.from_html("", "right") is Alignment.RIGHT
        assert Alignment.from_html("color: red", "") is Alignment.LEFT

    def test_separator_markers(self):
        assert [a.separator for a in Alignment] == ["---", ":---:", "---:"]


class TestBuildTable:
    def test_short_row_is_padded(self):
        table = build_table([[[Span("text", "A")], [Span("text", "B")]], [[Span("text", "1")]]])
        assert table.column_count == 2
        assert _cell_texts(table.body[0]) == ["1", ""]

    def test_long_row_is_truncated(self):
        collector = DiagnosticCollector()
        rows = [[[Span("text", "A")]], [[Span("text", "1")], [Span("text", "2")]]]
        table = build_table(rows, diagnostics=collector)
        assert _cell_texts(table.body[0]) == ["1"]
        assert collector.count(DiagnosticCode.TABLE_SHAPE_MISMATCH) == 1

    def test_alignments_default_to_left(self):
        table = build_table([[[], [], []]], [Alignment.RIGHT])
        assert table.alignments == [Alignment.RIGHT, Alignment.LEFT, Alignment.LEFT]

    def test_empty_rows(self):
        table = build_table([])
        assert table.rows == []
        assert table.column_count == 0


class TestMarkdownSide:
    def test_row_and_separator_detection(self):
        assert is_table_row("| a | b |")
        assert not is_table_row("a | b")
        assert is_separator_line("|:--:|---:|")
        assert not is_separator_line("| a |")
        assert not is_separator_line("| : |")

    def test_split_honours_escaped_pipe(self):
        assert split_table_row(r"| a \| b | c |") == [r"a \| b", "c"]

    def test_literal_alignment_example(self):
        table = parse_markdown_table(["| A | B |", "|:--:|---:|", "| x | y |"])
        assert table.alignments == [Alignment.CENTER, Alignment.RIGHT]
        assert _cell_texts(table.header) == ["A", "B"]
        assert _cell_texts(table.body[0]) == ["x", "y"]

    def test_short_separator_defaults_missing_columns_to_left(self):
        table = parse_markdown_table(["| A | B | C |", "|:-:|", "| 1 | 2 | 3 |"])
        assert table.alignments == [Alignment.CENTER, Alignment.LEFT, Alignment.LEFT]

    def test_ragged_rows_keep_header_width(self):
        collector = DiagnosticCollector()
        table = parse_markdown_table(
            ["| A | B | C |", "|---|---|---|", "| 1 |", "| 1 | 2 | 3 | 4 |"],
            diagnostics=collector,
        )
        assert table.column_count == 3
        assert [len(row) for row in table.rows] == [3, 3, 3]
        assert _cell_texts(table.body[0]) == ["1", "", ""]
        assert _cell_texts(table.body[1]) == ["1", "2", "3"]
        assert collector.count(DiagnosticCode.TABLE_SHAPE_MISMATCH) == 2

    def test_escaped_pipe_is_literal_in_cell(self):
        table = parse_markdown_table([r"| a \| b | c |", "|---|---|"])
        assert _cell_texts(table.header) == ["a | b", "c"]

    def test_cell_inline_formatting_is_parsed(self):
        table = parse_markdown_table(["| **H** | `c` |", "|---|---|"])
        assert [cell[0].type for cell in table.header] == ["bold", "code"]

    def test_render_markdown_table(self):
        table = parse_markdown_table(["| A | B |", "|:--:|---:|", "| x | y |"])
        assert render_markdown_table(table) == "| A | B |\n| :---: | ---: |\n| x | y |"

    def test_render_empty_table(self):
        assert render_markdown_table(TableModel()) == ""


class TestHtmlSide:
    def _table(self, html):
        return BeautifulSoup(html, "html.parser").find("table")

    def test_read_header_alignment(self):
        table = read_html_table(
            self._table(
                '<table><tr><th style="text-align: center">A</th><th align="right">B</th><th>C</th></tr>'
                "<tr><td>1</td><td>2</td><td>3</td></tr></table>"
            ),
            _read_plain,
        )
        assert table.alignments == [Alignment.CENTER, Alignment.RIGHT, Alignment.LEFT]
        assert _cell_texts(table.body[0]) == ["1", "2", "3"]

    def test_widest_row_sets_width(self):
        table = read_html_table(
            self._table("<table><tr><th>A</th></tr><tr><td>1</td><td>2</td></tr></table>"),
            _read_plain,
        )
        assert table.column_count == 2
        assert _cell_texts(table.header) == ["A", ""]

    def test_colspan_expands_to_empty_cells(self):
        table = read_html_table(
            self._table('<table><tr><th colspan="2">H</th></tr><tr><td>a</td><td>b</td></tr></table>'),
            _read_plain,
        )
        assert _cell_texts(table.header) == ["H", ""]
        assert table.alignments == [Alignment.LEFT, Alignment.LEFT]

    def test_nested_table_rows_are_not_own_rows(self):
        table = read_html_table(
            self._table(
                "<table><tr><th>Outer</th></tr>"
                "<tr><td><table><tr><td>inner</td></tr></table></td></tr></table>"
            ),
            _read_plain,
        )
        assert len(table.rows) == 2

    def test_render_html_table_carries_alignment_styles(self):
        table = parse_markdown_table(["| A | B |", "|:--:|---:|", "| x | y |"])
        html = render_html_table(table)
        assert html.startswith('<table style="border-collapse: collapse;')
        assert html.count("text-align: center;") == 2
        assert html.count("text-align: right;") == 2
        assert "<tbody>" in html
        assert ">x</td>" in html and ">y</td>" in html

    def test_render_left_column_has_no_text_align(self):
        table = parse_markdown_table(["| A |", "|---|"])
        html = render_html_table(table)
        assert "text-align" not in html
        assert "<tbody>" not in html

    def test_render_with_custom_style(self):
        table = parse_markdown_table(["| A |", "|---|", "| 1 |"])
        html = render_html_table(table, TableStyle(table="t;", header_cell="h;", data_cell="d;"))
        assert '<table style="t;">' in html
        assert '<th style="h;">A</th>' in html
        assert '<td style="d;">1</td>' in html
