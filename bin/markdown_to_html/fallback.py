"""Line-oriented markdown -> HTML renderer.

Used when block rendering fails. Each line is handled on its own: list
open/close is inferred from the neighbouring lines and paragraph tags from
blank-line adjacency. Tables go through the same pre-pass as the main path.
"""

from __future__ import annotations

import html
import re
from typing import Optional

from diagnostics import DiagnosticCollector
from rich_document.table import TableStyle

from .inline import convert_inline
from .tables import PLACEHOLDER_LINE_RE, extract_tables

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")
_UNORDERED_RE = re.compile(r"^\s*[*\-+]\s+")
_ORDERED_RE = re.compile(r"^\s*\d+\.\s+")
_HR_RE = re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$")


def fallback_markdown_to_html(
    markdown: str,
    diagnostics: Optional[DiagnosticCollector] = None,
    style: Optional[TableStyle] = None,
) -> str:
    if not markdown:
        return ""

    text, fragments = extract_tables(markdown, diagnostics=diagnostics, style=style)
    lines = text.split("\n")
    processed: list[str] = []
    in_code_block = False

    for i, line in enumerate(lines):
        if line.startswith("```"):
            if in_code_block:
                processed.append("</code></pre>")
                in_code_block = False
            else:
                language = line[3:].strip()
                class_attr = f' class="language-{html.escape(language)}"' if language else ""
                processed.append(f"<pre><code{class_attr}>")
                in_code_block = True
            continue

        if in_code_block:
            processed.append(html.escape(line, quote=False))
            continue

        placeholder = PLACEHOLDER_LINE_RE.match(line)
        if placeholder:
            processed.append(fragments[int(placeholder.group(1))])
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            level = len(heading.group(1))
            processed.append(f"<h{level}>{convert_inline(heading.group(2).strip())}</h{level}>")
            continue

        if line.strip() == "":
            processed.append("")
            continue

        if _HR_RE.match(line):
            processed.append("<hr />")
            continue

        prev_line = lines[i - 1] if i > 0 else ""
        next_line = lines[i + 1] if i < len(lines) - 1 else ""

        for pattern, tag in ((_UNORDERED_RE, "ul"), (_ORDERED_RE, "ol")):
            if pattern.match(line):
                item = f"<li>{convert_inline(pattern.sub('', line, count=1))}</li>"
                if not pattern.match(prev_line):
                    item = f"<{tag}>\n{item}"
                if not pattern.match(next_line):
                    item = f"{item}\n</{tag}>"
                processed.append(item)
                break
        else:
            content = convert_inline(line.strip())
            prev_blank = prev_line.strip() == ""
            next_blank = next_line.strip() == ""
            if prev_blank and next_blank:
                processed.append(f"<p>{content}</p>")
            elif prev_blank:
                processed.append(f"<p>{content}")
            elif next_blank:
                processed.append(f"{content}</p>")
            else:
                processed.append(content)

    if in_code_block:
        processed.append("</code></pre>")
    return "\n".join(processed)
