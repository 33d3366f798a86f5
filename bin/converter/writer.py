"""Render a RichDocument as markdown."""
from __future__ import annotations

import re

from rich_document.inline import render_markdown
from rich_document.model import Block, ListItem, RichDocument
from rich_document.table import render_markdown_table

LIST_INDENT = 4

_ORDERED_START_RE = re.compile(r'^(\d+)([.)])(?=\s|$)')
_BLOCK_START_RE = re.compile(r'^(?:#|>|\||[-+](?=\s|$|-))')
_BLANK_RUN_RE = re.compile(r'\n(?:[ \t]*\n)+')
_FENCE_RUN_RE = re.compile(r'`{3,}')


def render_document(document: RichDocument) -> str:
    """Blocks are separated by exactly one blank line."""
    parts = [render_block(block) for block in document.blocks]
    return '\n\n'.join(part for part in parts if part)


def render_block(block: Block) -> str:
    if block.type == 'paragraph':
        return _render_text_lines(render_markdown(block.spans))
    if block.type == 'heading':
        level = min(max(block.level, 1), 6)
        text = render_markdown(block.spans).replace('\n', ' ').strip()
        return f"{'#' * level} {text}"
    if block.type == 'list':
        return '\n'.join(_render_list(block, indent=0))
    if block.type == 'code_block':
        return _render_code_block(block.text, block.language)
    if block.type == 'table':
        return render_markdown_table(block.table) if block.table is not None else ''
    if block.type == 'blockquote':
        inner = '\n\n'.join(p for p in (render_block(b) for b in block.children) if p)
        return '\n'.join(f"> {line}" if line else '>' for line in inner.split('\n'))
    if block.type == 'hr':
        return '---'
    return ''


def escape_line_start(line: str) -> str:
    """Escape text that would otherwise open a block construct at line start."""
    line = line.lstrip()
    match = _ORDERED_START_RE.match(line)
    if match:
        return f"{match.group(1)}\\{match.group(2)}{line[match.end():]}"
    if _BLOCK_START_RE.match(line):
        return '\\' + line
    return line


def _render_text_lines(text: str) -> str:
    text = _BLANK_RUN_RE.sub('\n', text.strip())
    lines = [escape_line_start(line).rstrip() for line in text.split('\n')]
    return '\n'.join(line for line in lines if line)


def _render_list(block: Block, indent: int) -> list[str]:
    lines: list[str] = []
    number = block.start
    for item in block.items:
        if block.ordered:
            marker = f"{number}."
            number += 1
        else:
            marker = '-'
        lines.extend(_render_list_item(item, marker, indent))
    return lines


def _render_list_item(item: ListItem, marker: str, indent: int) -> list[str]:
    prefix = ' ' * indent
    text = _render_text_lines(render_markdown(item.spans))
    first, *rest = text.split('\n') if text else ['']
    lines = [f"{prefix}{marker} {first}".rstrip()]
    continuation = ' ' * (indent + len(marker) + 1)
    lines.extend(continuation + line for line in rest)

    child_indent = indent + LIST_INDENT
    for child in item.children:
        if child.type == 'list':
            lines.extend(_render_list(child, child_indent))
            continue
        rendered = render_block(child)
        if not rendered:
            continue
        lines.append('')
        lines.extend(
            (' ' * child_indent + line) if line else ''
            for line in rendered.split('\n')
        )
    return lines


def _render_code_block(code: str, language: str) -> str:
    longest = max((len(run) for run in _FENCE_RUN_RE.findall(code)), default=0)
    fence = '`' * max(3, longest + 1)
    return f"{fence}{language}\n{code}\n{fence}"
