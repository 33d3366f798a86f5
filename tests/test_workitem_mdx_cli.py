import json
from types import SimpleNamespace

import workitem_mdx_cli as cli


def _args(command, input_path, output=None, diagnostics=False, config=None):
    return SimpleNamespace(
        command=command,
        input=input_path,
        output=output,
        diagnostics=diagnostics,
        config=config,
        log_level="WARNING",
    )


def _patch_args(monkeypatch, args):
    monkeypatch.setattr(cli.argparse.ArgumentParser, "parse_args", lambda self: args)


# ---------------------------------------------------------------------------
# html2md / md2html
# ---------------------------------------------------------------------------


def test_html2md_writes_output_file(monkeypatch, tmp_path, capsys):
    input_html = tmp_path / "in.html"
    output_md = tmp_path / "out.md"
    input_html.write_text("<h2>Title</h2><p>Body</p>", encoding="utf-8")
    _patch_args(monkeypatch, _args("html2md", input_html, output_md))

    assert cli.main() == 0
    assert output_md.read_text(encoding="utf-8") == "## Title\n\nBody"
    assert "[html2md] wrote:" in capsys.readouterr().out


def test_md2html_prints_to_stdout(monkeypatch, tmp_path, capsys):
    input_md = tmp_path / "in.md"
    input_md.write_text("# Title\n\n- a\n- b\n", encoding="utf-8")
    _patch_args(monkeypatch, _args("md2html", input_md))

    assert cli.main() == 0
    assert capsys.readouterr().out == "<h1>Title</h1>\n<ul><li>a</li><li>b</li></ul>\n"


def test_diagnostics_printed_as_json_on_stderr(monkeypatch, tmp_path, capsys):
    input_md = tmp_path / "in.md"
    input_md.write_text("| A | B |\n|---|---|\n| 1 |\n", encoding="utf-8")
    _patch_args(monkeypatch, _args("md2html", input_md, diagnostics=True))

    assert cli.main() == 0
    report = json.loads(capsys.readouterr().err)
    assert list(report) == ["TableShapeMismatch"]


def test_missing_input_returns_2(monkeypatch, tmp_path, capsys):
    _patch_args(monkeypatch, _args("html2md", tmp_path / "missing.html"))

    assert cli.main() == 2
    assert "input file not found" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# pull / push
# ---------------------------------------------------------------------------


def test_pull_renders_note(monkeypatch, tmp_path, capsys):
    record = tmp_path / "record.json"
    record.write_text(json.dumps({
        "fields": {
            "System.Title": "Fix login",
            "System.State": "Active",
            "System.Description": "<p>Steps <b>here</b></p>",
            "Custom.BusinessUnit": "Finance",
            "WEF_123_Kanban.Column": "Doing",
        },
    }), encoding="utf-8")
    _patch_args(monkeypatch, _args("pull", record))

    assert cli.main() == 0
    out = capsys.readouterr().out
    assert out.startswith("---\ntitle: Fix login\nstate: Active\ncustom_businessunit: Finance\n---\n")
    assert "## Description\n\nSteps **here**" in out
    assert "**Custom BusinessUnit:** Finance" in out
    assert "Kanban" not in out


def test_pull_keeps_markdown_description(monkeypatch, tmp_path, capsys):
    record = tmp_path / "record.json"
    record.write_text(json.dumps({
        "fields": {"System.Title": "T", "System.Description": "**already** markdown"},
        "fieldFormats": {"System.Description": {"format": "Markdown"}},
    }), encoding="utf-8")
    _patch_args(monkeypatch, _args("pull", record))

    assert cli.main() == 0
    assert "## Description\n\n**already** markdown" in capsys.readouterr().out


def test_pull_rejects_non_object_fields(monkeypatch, tmp_path, capsys):
    record = tmp_path / "record.json"
    record.write_text(json.dumps({"fields": ["x"]}), encoding="utf-8")
    _patch_args(monkeypatch, _args("pull", record))

    assert cli.main() == 2
    assert "'fields' must be a JSON object" in capsys.readouterr().err


def test_push_builds_payload(monkeypatch, tmp_path, capsys):
    edit = tmp_path / "edit.json"
    output = tmp_path / "payload.json"
    edit.write_text(json.dumps({
        "description": "| A | B |\n|:--:|---:|\n| x | y |",
        "metadata": {"title": "Fix", "custom_businessunit": "Finance", "custom_score": "7"},
        "observed_fields": ["Custom.BusinessUnit"],
    }), encoding="utf-8")
    _patch_args(monkeypatch, _args("push", edit, output))

    assert cli.main() == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["descriptionFormat"] == "html"
    assert "text-align: center;" in payload["description"]
    assert payload["customFields"] == {"Custom.BusinessUnit": "Finance", "Custom.Score": 7}


def test_push_invalid_json_returns_2(monkeypatch, tmp_path, capsys):
    edit = tmp_path / "edit.json"
    edit.write_text("{not json", encoding="utf-8")
    _patch_args(monkeypatch, _args("push", edit))

    assert cli.main() == 2
    assert "invalid JSON" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


def test_config_prefixes_apply(monkeypatch, tmp_path, capsys):
    config = tmp_path / "config.yaml"
    config.write_text("organization_prefixes: [Acme]\n", encoding="utf-8")
    edit = tmp_path / "edit.json"
    edit.write_text(json.dumps({"metadata": {"region": "EU"}}), encoding="utf-8")
    _patch_args(monkeypatch, _args("push", edit, config=config))

    assert cli.main() == 0
    assert json.loads(capsys.readouterr().out)["customFields"] == {"Acme.Region": "EU"}


def test_bad_config_returns_2(monkeypatch, tmp_path, capsys):
    config = tmp_path / "config.yaml"
    config.write_text("- not\n- a mapping\n", encoding="utf-8")
    input_md = tmp_path / "in.md"
    input_md.write_text("text", encoding="utf-8")
    _patch_args(monkeypatch, _args("md2html", input_md, config=config))

    assert cli.main() == 2
    assert "must contain a mapping" in capsys.readouterr().err
