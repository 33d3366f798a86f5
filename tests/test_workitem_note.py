from diagnostics import DiagnosticCode, DiagnosticCollector
from workitem_sync.config import Config
from workitem_sync.note import build_note_content, build_update_payload, is_markdown_format


FIELDS = {
    "System.Id": 42,
    "System.Title": "Fix login",
    "System.State": "Active",
    "System.AssignedTo": {"displayName": "Ann Lee", "uniqueName": "ann@example.com"},
    "System.AreaPath": "Web\\Auth",
    "System.Description": "<p>Steps <b>here</b></p><ol><li>open</li><li>click</li></ol>",
    "Custom.BusinessUnit": "Finance",
    "WEF_0A1B_Kanban.Column": "Doing",
}


class TestBuildNoteContent:
    def test_sections(self):
        note = build_note_content(FIELDS)
        assert note.body == "Steps **here**\n\n1. open\n2. click"
        assert note.metadata == {
            "id": 42,
            "title": "Fix login",
            "state": "Active",
            "assignedTo": "Ann Lee",
            "areaPath": "Web\\Auth",
            "custom_businessunit": "Finance",
        }
        assert note.custom_fields == {"Custom.BusinessUnit": "Finance"}
        assert note.field_listing == "## Custom Fields\n\n**Custom BusinessUnit:** Finance  "

    def test_render(self):
        text = build_note_content(FIELDS).render()
        assert text.startswith("---\nid: 42\ntitle: Fix login\n")
        assert "\n---\n\n# Fix login\n\n## Description\n\nSteps **here**" in text
        assert text.endswith("**Custom BusinessUnit:** Finance  \n")

    def test_markdown_description_passes_through(self):
        note = build_note_content(
            {"System.Description": "  **kept** <b>as is</b>\n"},
            description_format="Markdown",
        )
        assert note.body == "**kept** <b>as is</b>"

    def test_explicit_description_overrides_field(self):
        note = build_note_content(FIELDS, description_html="<p>other</p>")
        assert note.body == "other"

    def test_custom_key_cannot_shadow_standard_key(self):
        note = build_note_content({"System.Title": "Real", "Title": "Imposter"})
        assert note.metadata == {"title": "Real"}
        assert note.custom_fields == {}
        assert note.field_listing == ""

    def test_metadata_and_listing_carry_the_same_fields(self):
        note = build_note_content({
            "Custom.A_B": "first",
            "Custom.A.B": "second",
            "Url": "https://x.test",
            "Custom.Region": "EU",
        })
        assert note.custom_fields == {"Custom.A_B": "first", "Custom.Region": "EU"}
        assert note.metadata == {"custom_a_b": "first", "custom_region": "EU"}
        assert "second" not in note.field_listing
        assert "Url" not in note.field_listing

    def test_empty_record(self):
        note = build_note_content(None)
        assert note.body == ""
        assert note.metadata == {}
        assert note.render() == "---\n---\n\n## Description\n"

    def test_exclusions_reported(self):
        collector = DiagnosticCollector()
        build_note_content(FIELDS, diagnostics=collector)
        assert collector.count(DiagnosticCode.FIELD_CLASSIFICATION_EXCLUSION) == 7


class TestBuildUpdatePayload:
    def test_description_and_custom_fields(self):
        payload = build_update_payload(
            "| A | B |\n|:--:|---:|\n| x | y |",
            {"title": "T", "custom_businessunit": "Finance"},
            observed_fields=["Custom.BusinessUnit"],
        )
        assert payload.description_html.startswith("<table")
        assert payload.description_format == "html"
        assert payload.custom_fields == {"Custom.BusinessUnit": "Finance"}

    def test_unresolvable_field_is_dropped_not_fatal(self):
        collector = DiagnosticCollector()
        payload = build_update_payload("text", {"a!": "x", "custom_region": "EU"}, diagnostics=collector)
        assert payload.description_html == "<p>text</p>"
        assert payload.custom_fields == {"Custom.Region": "EU"}
        assert collector.has(DiagnosticCode.FIELD_NAME_UNRESOLVABLE)

    def test_listing_overrides_metadata(self):
        payload = build_update_payload(
            "",
            {"custom_businessunit": "Old"},
            observed_fields=["Custom.BusinessUnit"],
            listing="## Custom Fields\n\n**Custom BusinessUnit:** New  ",
        )
        assert payload.description_html == ""
        assert payload.custom_fields == {"Custom.BusinessUnit": "New"}

    def test_markdown_format_sends_markdown(self):
        payload = build_update_payload("  **md**  ", {}, description_format="markdown")
        assert payload.description_html == "**md**"
        assert payload.description_format == "markdown"

    def test_config_table_style_is_used(self):
        config = Config(table_style="t;")
        payload = build_update_payload("| A |\n|---|", {}, config=config)
        assert payload.description_html.startswith('<table style="t;">')


def test_is_markdown_format():
    assert is_markdown_format(" Markdown ")
    assert not is_markdown_format("html")
    assert not is_markdown_format(None)
