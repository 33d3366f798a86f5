"""Public markdown -> HTML entry point."""

from __future__ import annotations

import html
import logging
import re
from typing import Optional

from diagnostics import DiagnosticCode, DiagnosticCollector, report
from rich_document.table import TableStyle

from .emitter import emit_markdown
from .fallback import fallback_markdown_to_html

logger = logging.getLogger(__name__)

_BLANK_RUN_RE = re.compile(r"\n{3,}")


def markdown_to_html(
    markdown: Optional[str],
    diagnostics: Optional[DiagnosticCollector] = None,
    style: Optional[TableStyle] = None,
) -> str:
    """Convert user-edited markdown to an HTML fragment. Never raises."""
    if not markdown or not markdown.strip():
        return ""

    text = markdown.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "")
    context = {"diagnostics": diagnostics, "style": style}
    try:
        rendered = emit_markdown(text, context)
    except Exception as e:
        logger.warning(f"Markdown conversion failed, using line renderer: {e}", exc_info=True)
        report(diagnostics, DiagnosticCode.MALFORMED_INPUT_FALLBACK, f"block rendering failed: {e}")
        rendered = _render_fallback(text, diagnostics, style)

    return _BLANK_RUN_RE.sub("\n\n", rendered).strip()


def _render_fallback(
    text: str,
    diagnostics: Optional[DiagnosticCollector],
    style: Optional[TableStyle],
) -> str:
    try:
        return fallback_markdown_to_html(text, diagnostics=diagnostics, style=style)
    except Exception as e:
        logger.warning(f"Line renderer failed, emitting escaped paragraphs: {e}", exc_info=True)
        return "\n".join(
            f"<p>{html.escape(line.strip(), quote=False)}</p>"
            for line in text.split("\n")
            if line.strip()
        )
