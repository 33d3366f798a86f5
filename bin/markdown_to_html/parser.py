"""Parser for converting markdown text to block objects."""

from dataclasses import dataclass, field
import re
from typing import Optional

from .tables import PLACEHOLDER_LINE_RE


HEADING_PATTERN = re.compile(r"^(#{1,6})(?:\s+(.*?))?\s*$")
_HR_PATTERN = re.compile(r"^(?:(?:-[ \t]*){3,}|(?:\*[ \t]*){3,}|(?:_[ \t]*){3,})$")
_FENCE_PATTERN = re.compile(r"^(`{3,}|~{3,})\s*([^`\s]*)")
_LIST_ORDERED_PATTERN = re.compile(r"^\d{1,9}[.)](?:\s+|$)")
_LIST_UNORDERED_PATTERN = re.compile(r"^[-*+](?:\s+|$)")


@dataclass
class Block:
    """Single parsed block from a markdown document."""

    type: str
    content: str
    level: int = 0
    language: str = ""
    attrs: dict = field(default_factory=dict)


def parse_markdown(text: str) -> list[Block]:
    """Parse markdown text (tables already replaced by placeholders) into blocks."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines = lines[:-1]

    blocks: list[Block] = []
    i = 0
    n = len(lines)

    while i < n:
        line = lines[i]
        stripped = line.strip()

        if stripped == "":
            blocks.append(Block(type="empty", content="\n"))
            i += 1
            continue

        placeholder = PLACEHOLDER_LINE_RE.match(line)
        if placeholder:
            blocks.append(Block(type="table", content=line, attrs={"index": int(placeholder.group(1))}))
            i += 1
            continue

        if _FENCE_PATTERN.match(stripped):
            block, i = _parse_code_block(lines, i)
            blocks.append(block)
            continue

        heading = _parse_heading(stripped)
        if heading:
            blocks.append(heading)
            i += 1
            continue

        if _HR_PATTERN.match(stripped):
            blocks.append(Block(type="hr", content=line + "\n"))
            i += 1
            continue

        if stripped.startswith(">"):
            block, i = _parse_blockquote(lines, i)
            blocks.append(block)
            continue

        if _is_list_line(line):
            block, i = _parse_list_block(lines, i)
            blocks.append(block)
            continue

        block, i = _parse_paragraph(lines, i)
        blocks.append(block)

    return blocks


def _parse_heading(line: str) -> Optional[Block]:
    match = HEADING_PATTERN.match(line)
    if not match:
        return None

    hashes = match.group(1)
    return Block(type="heading", content=line + "\n", level=len(hashes))


def _parse_code_block(lines: list[str], start: int) -> tuple[Block, int]:
    match = _FENCE_PATTERN.match(lines[start].strip())
    fence = match.group(1)
    language = match.group(2)

    i = start + 1
    while i < len(lines) and not _closes_fence(lines[i], fence):
        i += 1

    body = "\n".join(lines[start + 1 : i])
    if i < len(lines):
        i += 1

    return Block(type="code_block", content=body, language=language), i


def _closes_fence(line: str, fence: str) -> bool:
    stripped = line.strip()
    return (
        stripped.startswith(fence[0] * len(fence))
        and not stripped.strip(fence[0])
    )


def _parse_blockquote(lines: list[str], start: int) -> tuple[Block, int]:
    i = start
    inner: list[str] = []
    while i < len(lines) and lines[i].lstrip().startswith(">"):
        line = lines[i].lstrip()[1:]
        if line.startswith(" "):
            line = line[1:]
        inner.append(line)
        i += 1

    return Block(type="blockquote", content="\n".join(inner)), i


def _parse_list_block(lines: list[str], start: int) -> tuple[Block, int]:
    i = start + 1
    fence: Optional[str] = None
    while i < len(lines):
        current = lines[i]
        stripped = current.strip()

        fence_match = _FENCE_PATTERN.match(stripped)
        if fence is not None:
            if _closes_fence(current, fence):
                fence = None
            i += 1
            continue

        if stripped == "":
            # only indented content continues a list past a blank line
            if i + 1 < len(lines) and _is_indented(lines[i + 1]):
                i += 1
                continue
            break

        if not _is_list_continuation(current):
            break

        if fence_match:
            fence = fence_match.group(1)
        i += 1

    content = "\n".join(lines[start:i]) + "\n"
    return Block(type="list", content=content), i


def _parse_paragraph(lines: list[str], start: int) -> tuple[Block, int]:
    i = start + 1
    while i < len(lines):
        current = lines[i]
        if current.strip() == "":
            break
        if _starts_new_block(current):
            break
        i += 1

    content = "\n".join(lines[start:i]) + "\n"
    return Block(type="paragraph", content=content), i


def _starts_new_block(line: str) -> bool:
    stripped = line.strip()
    if PLACEHOLDER_LINE_RE.match(line):
        return True
    if _FENCE_PATTERN.match(stripped):
        return True
    if _parse_heading(stripped):
        return True
    if _HR_PATTERN.match(stripped):
        return True
    if stripped.startswith(">"):
        return True
    if _is_list_line(line):
        return True
    return False


def _is_list_line(line: str) -> bool:
    stripped = line.lstrip()
    return bool(
        _LIST_UNORDERED_PATTERN.match(stripped)
        or _LIST_ORDERED_PATTERN.match(stripped)
    )


def _is_list_continuation(line: str) -> bool:
    if _is_list_line(line):
        return True
    return _is_indented(line)


def _is_indented(line: str) -> bool:
    return line.startswith("  ") or line.startswith("\t")
