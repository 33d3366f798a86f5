"""Inline span conversion: markdown text <-> spans -> markdown/HTML."""

from __future__ import annotations

import html
import re
from bisect import bisect_left
from typing import Optional
from urllib.parse import quote

from .model import Span, is_blank


# One level of balanced parentheses, as in wiki-style URLs
_URL_PATTERN = r"(?:[^()\s]|\([^()\s]*\))*"

_TOKEN_RE = re.compile(
    r"(?P<escape>\\(?P<escaped>[\\`*_\[\]()#+\-.!|~<>{}]))"
    r"|(?P<br>(?i:<br\s*/?>))"
    r"|(?P<image>!\[(?P<alt>(?:\\.|[^\[\]\\])*)\]\((?P<src>" + _URL_PATTERN + r")\))"
    r"|(?P<link>\[(?P<label>(?:\\.|[^\[\]\\])*)\]\((?P<href>" + _URL_PATTERN + r")\))",
    flags=re.DOTALL,
)
_URL_RE = re.compile(_URL_PATTERN)
_BACKTICK_RUN_RE = re.compile(r"`+")
_UNESCAPE_RE = re.compile(r"\\([\\`*_\[\]()#+\-.!|~<>{}])")
_MD_SPECIAL_RE = re.compile(r"([\\`*\[\]])")
_MD_UNDERSCORE_RE = re.compile(r"(?<![A-Za-z0-9])_|_(?![A-Za-z0-9])")
_MD_BREAK_TAG_RE = re.compile(r"<(?=br\s*/?>)", re.IGNORECASE)

# (span type, opening marker, closing pattern, needs a word boundary)
# Tried in order at every position; the body runs to the first closer.
_EMPHASIS_RULES = [
    ("bold_italic", "***", re.compile(r"(?<=[^*\s])\*\*\*"), False),
    ("bold", "**", re.compile(r"(?<=[^*\s])\*\*"), False),
    ("bold", "__", re.compile(r"(?<=[^_\s])__(?![A-Za-z0-9])"), True),
    ("strike", "~~", re.compile(r"(?<=[^~\s])~~"), False),
    ("italic", "*", re.compile(r"(?<=[^*\s])\*"), False),
    ("italic", "_", re.compile(r"(?<=[^_\s])_(?![A-Za-z0-9])"), True),
]

_EMPHASIS_MARKERS = {
    "bold": "**",
    "italic": "*",
    "bold_italic": "***",
    "strike": "~~",
}
_EMPHASIS_TAGS = {
    "bold": ("<strong>", "</strong>"),
    "italic": ("<em>", "</em>"),
    "bold_italic": ("<strong><em>", "</em></strong>"),
    "strike": ("<del>", "</del>"),
}


class _Delimiters:
    """Closing delimiter positions of one text, each pattern scanned once."""

    def __init__(self, text: str) -> None:
        self.text = text
        self._positions: dict = {}
        self._backtick_runs: Optional[dict] = None

    def next_closer(self, pattern: re.Pattern, start: int) -> int:
        positions = self._positions.get(pattern)
        if positions is None:
            positions = [m.start() for m in pattern.finditer(self.text)]
            self._positions[pattern] = positions
        index = bisect_left(positions, start)
        return positions[index] if index < len(positions) else -1

    def next_backtick_run(self, length: int, start: int) -> int:
        if self._backtick_runs is None:
            self._backtick_runs = {}
            for m in _BACKTICK_RUN_RE.finditer(self.text):
                self._backtick_runs.setdefault(len(m.group()), []).append(m.start())
        positions = self._backtick_runs.get(length, [])
        index = bisect_left(positions, start)
        return positions[index] if index < len(positions) else -1


def _is_word_char(char: str) -> bool:
    return char.isascii() and char.isalnum()


def unescape_markdown(text: str) -> str:
    return _UNESCAPE_RE.sub(r"\1", text)


def parse_inline(text: str) -> list[Span]:
    """Parse inline markdown into spans.

    Supported syntax:
    - `code` and ``code with ` inside``
    - ***bold italic***, **bold**, __bold__, *italic*, _italic_, ~~strike~~
    - [text](url), ![alt](src)
    - <br>, <br/>, <br /> as explicit line breaks
    - backslash escapes of markdown punctuation

    Closing delimiters are located once per text, so unmatched markers do
    not trigger a rescan of the rest of the input.
    """
    spans: list[Span] = []
    buffer: list[str] = []
    delimiters = _Delimiters(text)

    def _flush() -> None:
        if buffer:
            spans.append(Span(type="text", text="".join(buffer)))
            buffer.clear()

    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]

        if char == "`":
            run = _BACKTICK_RUN_RE.match(text, pos).group()
            closer = delimiters.next_backtick_run(len(run), pos + len(run) + 1)
            if closer < 0:
                buffer.append(run)
                pos += len(run)
                continue
            _flush()
            body = text[pos + len(run):closer]
            if body.startswith(" ") and body.endswith(" ") and body.strip():
                body = body[1:-1]
            spans.append(Span(type="code", text=body))
            pos = closer + len(run)
            continue

        if char in "*_~":
            emphasis = _match_emphasis(text, pos, delimiters)
            if emphasis is not None:
                span_type, body, end = emphasis
                _flush()
                spans.append(Span(type=span_type, children=parse_inline(body)))
                pos = end
                continue
            buffer.append(char)
            pos += 1
            continue

        match = _TOKEN_RE.match(text, pos) if char in "\\<![" else None
        if match is None:
            buffer.append(char)
            pos += 1
            continue

        if match.group("escape") is not None:
            buffer.append(match.group("escaped"))
            pos = match.end()
            continue

        _flush()
        if match.group("br") is not None:
            spans.append(Span(type="line_break"))
        elif match.group("image") is not None:
            spans.append(Span(
                type="image",
                text=unescape_markdown(match.group("alt")),
                target=match.group("src"),
            ))
        else:
            spans.append(Span(
                type="link",
                text=unescape_markdown(match.group("label")),
                target=match.group("href"),
            ))
        pos = match.end()

    _flush()
    return spans


def _match_emphasis(text: str, pos: int, delimiters: _Delimiters) -> Optional[tuple]:
    """``(span type, body, end)`` for the emphasis opening at ``pos``, if any."""
    for span_type, marker, closing, word_bounded in _EMPHASIS_RULES:
        if not text.startswith(marker, pos):
            continue
        body_start = pos + len(marker)
        if body_start >= len(text) or text[body_start] in marker or text[body_start].isspace():
            continue
        if word_bounded and pos > 0 and _is_word_char(text[pos - 1]):
            continue
        closer = delimiters.next_closer(closing, body_start + 1)
        if closer < 0:
            continue
        return span_type, text[body_start:closer], closer + len(marker)
    return None


def escape_markdown(text: str, in_table: bool = False) -> str:
    escaped = _MD_SPECIAL_RE.sub(r"\\\1", text)
    escaped = _MD_UNDERSCORE_RE.sub(r"\\_", escaped)
    escaped = escaped.replace("~~", "\\~\\~")
    escaped = _MD_BREAK_TAG_RE.sub(r"\\<", escaped)
    if in_table:
        escaped = escaped.replace("|", "\\|")
    return escaped


def render_markdown(spans: list[Span], context: str = "block") -> str:
    """Render spans as inline markdown.

    ``context`` is "block" for paragraphs, headings and list items, "table"
    for table cells. In a table cell an explicit line break is written as
    ``<br>`` so the markdown table grammar cannot read it as a row boundary.
    """
    in_table = context == "table"
    parts: list[str] = []
    for span in spans:
        if span.type == "text":
            text = span.text.replace("\n", " ") if in_table else span.text
            parts.append(escape_markdown(text, in_table=in_table))
        elif span.type == "line_break":
            parts.append("<br>" if in_table else "\n")
        elif span.type == "code":
            parts.append(_render_code_span(span.text, in_table=in_table))
        elif span.type == "link":
            label = escape_markdown(span.text or span.target, in_table=in_table)
            if not span.target:
                parts.append(label)
            else:
                parts.append(f"[{label}]({_markdown_url(span.target)})")
        elif span.type == "image":
            alt = escape_markdown(span.text, in_table=in_table)
            parts.append(f"![{alt}]({_markdown_url(span.target)})")
        elif span.type in _EMPHASIS_MARKERS:
            parts.append(_render_emphasis(span, context))
    return "".join(parts)


def _render_emphasis(span: Span, context: str) -> str:
    inner = render_markdown(span.children, context)
    if is_blank(span.children):
        return inner
    marker = _EMPHASIS_MARKERS[span.type]
    stripped = inner.strip()
    lead = inner[: len(inner) - len(inner.lstrip())]
    trail = inner[len(inner.rstrip()):]
    return f"{lead}{marker}{stripped}{marker}{trail}"


def _render_code_span(code: str, in_table: bool) -> str:
    code = code.replace("\n", " ")
    if in_table:
        code = code.replace("|", "\\|")
    if "`" not in code:
        return f"`{code}`"
    return f"`` {code} ``"


def _markdown_url(url: str) -> str:
    """Percent-encode a URL for a markdown target; balanced parentheses stay literal."""
    quoted = quote(url, safe=":/?#[]@!$&'()*+,;=%~-._")
    if _URL_RE.fullmatch(quoted):
        return quoted
    return quote(url, safe=":/?#[]@!$&'*+,;=%~-._")


def render_html(spans: list[Span]) -> str:
    """Render spans as inline HTML."""
    parts: list[str] = []
    for span in spans:
        if span.type == "text":
            parts.append(html.escape(span.text, quote=False))
        elif span.type == "line_break":
            parts.append("<br />")
        elif span.type == "code":
            parts.append(f"<code>{html.escape(span.text, quote=False)}</code>")
        elif span.type == "link":
            href = html.escape(span.target, quote=True)
            parts.append(f'<a href="{href}">{html.escape(span.text, quote=False)}</a>')
        elif span.type == "image":
            alt = html.escape(span.text, quote=True)
            src = html.escape(span.target, quote=True)
            parts.append(f'<img alt="{alt}" src="{src}" />')
        elif span.type in _EMPHASIS_TAGS:
            opening, closing = _EMPHASIS_TAGS[span.type]
            parts.append(f"{opening}{render_html(span.children)}{closing}")
    return "".join(parts)
