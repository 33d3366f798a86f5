#!/usr/bin/env python3
"""Work item description/metadata conversion CLI.

Unified entry point for html2md, md2html, pull and push subcommands.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from converter import html_to_markdown
from diagnostics import DiagnosticCollector
from markdown_to_html import markdown_to_html
from workitem_sync.config import CONFIG_ENV_VAR, Config, ConfigError, load_config
from workitem_sync.note import DESCRIPTION_FIELD, build_note_content, build_update_payload


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert work item descriptions and custom fields between HTML and markdown notes",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=os.environ.get(CONFIG_ENV_VAR) or None,
        help=f"YAML config file (default: ${CONFIG_ENV_VAR})",
    )
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Set the logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    # --- html2md ---
    html2md = sub.add_parser("html2md", help="Convert an HTML fragment to markdown")
    html2md.add_argument("input", type=Path, help="Input HTML file")
    html2md.add_argument("-o", "--output", type=Path, help="Output markdown file")
    html2md.add_argument("--diagnostics", action="store_true", help="Print diagnostics as JSON on stderr")

    # --- md2html ---
    md2html = sub.add_parser("md2html", help="Convert markdown to an HTML fragment")
    md2html.add_argument("input", type=Path, help="Input markdown file")
    md2html.add_argument("-o", "--output", type=Path, help="Output HTML file")
    md2html.add_argument("--diagnostics", action="store_true", help="Print diagnostics as JSON on stderr")

    # --- pull ---
    pull = sub.add_parser("pull", help="Render a work item record (JSON) as a note")
    pull.add_argument("input", type=Path, help='Record JSON: {"fields": {...}, "fieldFormats": {...}}')
    pull.add_argument("-o", "--output", type=Path, help="Output note file")
    pull.add_argument("--diagnostics", action="store_true", help="Print diagnostics as JSON on stderr")

    # --- push ---
    push = sub.add_parser("push", help="Build an update payload (JSON) from edited note values")
    push.add_argument(
        "input",
        type=Path,
        help='Edit JSON: {"description": "...", "metadata": {...}, "observed_fields": [...]}',
    )
    push.add_argument("-o", "--output", type=Path, help="Output payload JSON file")
    push.add_argument("--diagnostics", action="store_true", help="Print diagnostics as JSON on stderr")

    return parser


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _read_input(path: Path) -> Optional[str]:
    if not path.exists():
        print(f"Error: input file not found: {path}", file=sys.stderr)
        return None
    return path.read_text(encoding="utf-8")


def _read_json(path: Path) -> Optional[dict]:
    text = _read_input(path)
    if text is None:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON in {path}: {e}", file=sys.stderr)
        return None
    if not isinstance(data, dict):
        print(f"Error: {path} must contain a JSON object", file=sys.stderr)
        return None
    return data


def _write_output(args: argparse.Namespace, text: str) -> None:
    if args.output:
        args.output.write_text(text, encoding="utf-8")
        print(f"[{args.command}] wrote: {args.output}")
    else:
        print(text)


def _description_format(formats: object) -> Optional[str]:
    if not isinstance(formats, dict):
        return None
    entry = formats.get(DESCRIPTION_FIELD)
    if isinstance(entry, dict):
        return entry.get("format")
    return entry if isinstance(entry, str) else None


def _print_diagnostics(args: argparse.Namespace, diagnostics: DiagnosticCollector) -> None:
    if getattr(args, "diagnostics", False):
        print(json.dumps(diagnostics.to_dict(), ensure_ascii=False, indent=2), file=sys.stderr)


# ---------------------------------------------------------------------------
# subcommands
# ---------------------------------------------------------------------------


def _run_html2md(args: argparse.Namespace, config: Config) -> int:
    html = _read_input(args.input)
    if html is None:
        return 2
    diagnostics = DiagnosticCollector()
    _write_output(args, html_to_markdown(html, diagnostics=diagnostics))
    _print_diagnostics(args, diagnostics)
    return 0


def _run_md2html(args: argparse.Namespace, config: Config) -> int:
    markdown = _read_input(args.input)
    if markdown is None:
        return 2
    diagnostics = DiagnosticCollector()
    _write_output(args, markdown_to_html(markdown, diagnostics=diagnostics, style=config.table_styles()))
    _print_diagnostics(args, diagnostics)
    return 0


def _run_pull(args: argparse.Namespace, config: Config) -> int:
    record = _read_json(args.input)
    if record is None:
        return 2
    fields = record.get("fields") or {}
    if not isinstance(fields, dict):
        print("Error: 'fields' must be a JSON object", file=sys.stderr)
        return 2

    description_format = _description_format(record.get("fieldFormats"))

    diagnostics = DiagnosticCollector()
    note = build_note_content(
        fields,
        description_format=description_format,
        config=config,
        diagnostics=diagnostics,
    )
    _write_output(args, note.render(config))
    _print_diagnostics(args, diagnostics)
    return 0


def _run_push(args: argparse.Namespace, config: Config) -> int:
    edit = _read_json(args.input)
    if edit is None:
        return 2
    metadata = edit.get("metadata") or {}
    if not isinstance(metadata, dict):
        print("Error: 'metadata' must be a JSON object", file=sys.stderr)
        return 2

    observed = edit.get("observed_fields")
    diagnostics = DiagnosticCollector()
    payload = build_update_payload(
        edit.get("description") or "",
        metadata,
        observed_fields=observed if isinstance(observed, list) else None,
        listing=edit.get("listing"),
        description_format=edit.get("description_format"),
        config=config,
        diagnostics=diagnostics,
    )
    output = {
        "description": payload.description_html,
        "descriptionFormat": payload.description_format,
        "customFields": payload.custom_fields,
    }
    _write_output(args, json.dumps(output, ensure_ascii=False, indent=2))
    _print_diagnostics(args, diagnostics)
    return 0


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(levelname)s - %(filename)s:%(lineno)d - %(message)s',
        stream=sys.stderr
    )

    try:
        config = load_config(args.config) if args.config else Config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command == "html2md":
        return _run_html2md(args, config)
    if args.command == "md2html":
        return _run_md2html(args, config)
    if args.command == "pull":
        return _run_pull(args, config)
    if args.command == "push":
        return _run_push(args, config)
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
