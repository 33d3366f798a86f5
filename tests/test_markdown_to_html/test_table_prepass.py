from diagnostics import DiagnosticCode, DiagnosticCollector
from markdown_to_html import convert_markdown_tables, extract_tables, restore_tables
from markdown_to_html.tables import TABLE_PLACEHOLDER


def test_table_replaced_by_placeholder():
    text, fragments = extract_tables("intro\n| A |\n|---|\n| 1 |\noutro")
    assert text == "intro\n" + TABLE_PLACEHOLDER.format(0) + "\noutro"
    assert len(fragments) == 1
    assert fragments[0].startswith("<table")


def test_row_without_separator_is_not_a_table():
    source = "| not | table |\nplain"
    assert extract_tables(source) == (source, [])


def test_tables_inside_fences_are_skipped():
    source = "```\n| a | b |\n|---|---|\n```"
    assert extract_tables(source) == (source, [])


def test_tilde_fence_not_closed_by_backticks():
    source = "~~~\n```\n| a |\n|---|\n~~~"
    assert extract_tables(source)[1] == []


def test_placeholder_keeps_indentation():
    text, _ = extract_tables("  | A |\n  |---|")
    assert text == "  " + TABLE_PLACEHOLDER.format(0)


def test_shared_fragment_list_continues_numbering():
    existing = ["<table>first</table>"]
    text, fragments = extract_tables("| A |\n|---|", fragments=existing)
    assert text == TABLE_PLACEHOLDER.format(1)
    assert fragments is existing
    assert len(existing) == 2


def test_ragged_rows_reported():
    collector = DiagnosticCollector()
    extract_tables("| A | B |\n|---|---|\n| 1 |", diagnostics=collector)
    assert collector.count(DiagnosticCode.TABLE_SHAPE_MISMATCH) == 1


def test_restore_tables():
    marker = TABLE_PLACEHOLDER.format(0)
    assert restore_tables(f"x\n{marker}", ["<table></table>"]) == "x\n<table></table>"
    assert restore_tables(TABLE_PLACEHOLDER.format(3), []) == ""


def test_convert_markdown_tables_leaves_other_lines():
    result = convert_markdown_tables("# Title\n\n| A |\n|---|\n| 1 |\n\nafter")
    assert result.startswith("# Title\n\n<table")
    assert result.endswith("</table>\n\nafter")
