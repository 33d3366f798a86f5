"""Emit HTML from parsed markdown blocks."""

from __future__ import annotations

import html
import re
import textwrap
from typing import Optional

from .inline import convert_inline, convert_lines
from .parser import Block, HEADING_PATTERN, parse_markdown
from .tables import extract_tables


_ORDERED_ITEM_PATTERN = re.compile(r"^(\d{1,9})[.)](?:\s+(.*)|$)")
_UNORDERED_ITEM_PATTERN = re.compile(r"^[-*+](?:\s+(.*)|$)")
_FENCE_PATTERN = re.compile(r"^(`{3,}|~{3,})")
_CLOSING_HASHES_PATTERN = re.compile(r"\s+#+$")


class _ListNode:
    def __init__(self, ordered: bool, number: int, text: str, indent: int) -> None:
        self.ordered = ordered
        self.number = number
        self.lines = [text] if text else []
        self.body: list[str] = []
        self.indent = indent
        self.in_fence = False
        self.children: list["_ListNode"] = []


def emit_markdown(text: str, context: Optional[dict] = None) -> str:
    """Run the table pre-pass, parse and emit a markdown fragment."""
    if context is None:
        context = {}
    converted, fragments = extract_tables(
        text,
        diagnostics=context.get("diagnostics"),
        style=context.get("style"),
        fragments=context.get("tables"),
    )
    return emit_document(parse_markdown(converted), fragments, context=context)


def emit_document(
    blocks: list[Block],
    tables: Optional[list[str]] = None,
    context: Optional[dict] = None,
) -> str:
    """Emit HTML for a full markdown document."""
    context = dict(context or {})
    context["tables"] = tables if tables is not None else []
    parts = (emit_block(block, context=context) for block in blocks)
    return "\n".join(part for part in parts if part)


def emit_block(block: Block, context: Optional[dict] = None) -> str:
    """Emit HTML for a single block."""
    if context is None:
        context = {}

    if block.type == "empty":
        return ""

    if block.type == "heading":
        match = HEADING_PATTERN.match(block.content.strip())
        if not match or not match.group(2):
            return ""
        heading_text = _CLOSING_HASHES_PATTERN.sub("", match.group(2))
        return f"<h{block.level}>{convert_inline(heading_text)}</h{block.level}>"

    if block.type == "paragraph":
        paragraph_html = convert_lines(block.content.splitlines())
        if not paragraph_html:
            return ""
        return f"<p>{paragraph_html}</p>"

    if block.type == "code_block":
        class_attr = f' class="language-{html.escape(block.language)}"' if block.language else ""
        return f"<pre><code{class_attr}>{html.escape(block.content, quote=False)}</code></pre>"

    if block.type == "list":
        return _emit_list(block.content, context)

    if block.type == "hr":
        return "<hr />"

    if block.type == "table":
        tables = context.get("tables", [])
        index = block.attrs.get("index", -1)
        return tables[index] if 0 <= index < len(tables) else ""

    if block.type == "blockquote":
        inner = emit_markdown(block.content, context)
        return f"<blockquote>\n{inner}\n</blockquote>" if inner else ""

    return ""


def _emit_list(content: str, context: dict) -> str:
    parsed = _parse_list_items(content)
    if not parsed:
        return ""

    roots = _build_list_tree(parsed)
    return _render_list_nodes(roots, context)


def _parse_list_items(content: str) -> list[_ListNode]:
    items: list[_ListNode] = []
    after_blank = False
    for line in content.splitlines():
        expanded = line.expandtabs(4)
        stripped = expanded.strip()
        current = items[-1] if items else None

        if current is not None and current.in_fence:
            current.body.append(expanded)
            if _FENCE_PATTERN.match(stripped):
                current.in_fence = False
            continue

        if not stripped:
            after_blank = True
            continue

        indent = len(expanded) - len(expanded.lstrip(" "))
        node = _match_item(stripped, indent)
        if node is not None:
            items.append(node)
            after_blank = False
            continue

        if current is None:
            continue
        if after_blank or current.body or _FENCE_PATTERN.match(stripped) or stripped.startswith("\x00"):
            # block content nested in the item
            if after_blank and current.body:
                current.body.append("")
            current.body.append(expanded)
            current.in_fence = bool(_FENCE_PATTERN.match(stripped))
        else:
            current.lines.append(stripped)
        after_blank = False
    return items


def _match_item(stripped: str, indent: int) -> Optional[_ListNode]:
    ordered_match = _ORDERED_ITEM_PATTERN.match(stripped)
    if ordered_match:
        return _ListNode(True, int(ordered_match.group(1)), ordered_match.group(2) or "", indent)

    unordered_match = _UNORDERED_ITEM_PATTERN.match(stripped)
    if unordered_match:
        return _ListNode(False, 1, unordered_match.group(1) or "", indent)
    return None


def _build_list_tree(items: list[_ListNode]) -> list[_ListNode]:
    roots: list[_ListNode] = []
    stack: list[_ListNode] = []

    for item in items:
        while stack and stack[-1].indent >= item.indent:
            stack.pop()
        if stack:
            stack[-1].children.append(item)
        else:
            roots.append(item)
        stack.append(item)

    return roots


def _render_list_nodes(nodes: list[_ListNode], context: dict) -> str:
    parts: list[str] = []
    i = 0
    while i < len(nodes):
        ordered = nodes[i].ordered
        group: list[_ListNode] = []
        while i < len(nodes) and nodes[i].ordered == ordered:
            group.append(nodes[i])
            i += 1

        body = "".join(_render_list_item(node, context) for node in group)
        if not ordered:
            parts.append(f"<ul>{body}</ul>")
        elif group[0].number != 1:
            parts.append(f'<ol start="{group[0].number}">{body}</ol>')
        else:
            parts.append(f"<ol>{body}</ol>")
    return "\n".join(parts)


def _render_list_item(node: _ListNode, context: dict) -> str:
    parts = ["<li>", convert_lines(node.lines)]
    if node.body:
        parts.append(emit_markdown(textwrap.dedent("\n".join(node.body)), context))
    if node.children:
        parts.append(_render_list_nodes(node.children, context))
    parts.append("</li>")
    return "".join(parts)
