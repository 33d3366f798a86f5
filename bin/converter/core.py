"""Read cleaned HTML into a RichDocument.

The reader walks the BeautifulSoup tree once. Generic containers (div,
section, ...) are transparent: their children are read as sibling blocks.
Loose inline content between blocks is gathered into paragraphs.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from diagnostics import DiagnosticCode, DiagnosticCollector, report
from rich_document.model import Block, ListItem, RichDocument, Span, is_blank, trim_spans
from rich_document.table import read_html_table
from text_utils import clean_text, normalize_whitespace

from .fallback import fallback_html_to_markdown
from .preprocess import clean_tree, has_unterminated_tag, preprocess_html
from .writer import render_document

logger = logging.getLogger(__name__)

HEADING_TAGS = frozenset({'h1', 'h2', 'h3', 'h4', 'h5', 'h6'})
LIST_TAGS = frozenset({'ul', 'ol'})
CONTAINER_TAGS = frozenset({
    'div', 'section', 'article', 'main', 'header', 'footer', 'aside', 'nav',
    'figure', 'body', 'html', 'center', 'form', 'details', 'dl', 'dd', 'dt',
    'figcaption', 'summary',
})
BLOCK_TAGS = (
    frozenset({'p', 'pre', 'table', 'blockquote', 'hr'})
    | HEADING_TAGS | LIST_TAGS | CONTAINER_TAGS
)
_EMPHASIS_TAGS = {
    'strong': 'bold',
    'b': 'bold',
    'em': 'italic',
    'i': 'italic',
    'del': 'strike',
    's': 'strike',
    'strike': 'strike',
}
_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)
_WS_RE = re.compile(r'[ \t\r\n\f]+')
_LANGUAGE_RE = re.compile(r'^language-(.+)$')
_TAG_RE = re.compile(r"</?[A-Za-z!][^>]*>|<[A-Za-z/!]")


def parse_html(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, 'html.parser')
    return clean_tree(soup)


def read_document(html: str, diagnostics: Optional[DiagnosticCollector] = None) -> RichDocument:
    """Parse ``html`` (already preprocessed) into a RichDocument."""
    soup = parse_html(html)
    reader = _Reader(diagnostics)
    return RichDocument(blocks=reader.read_blocks(soup.children))


class _Reader:
    def __init__(self, diagnostics: Optional[DiagnosticCollector] = None) -> None:
        self.diagnostics = diagnostics

    # -- blocks -------------------------------------------------------------

    def read_blocks(self, nodes: Iterable) -> list[Block]:
        blocks: list[Block] = []
        pending: list[Span] = []
        siblings = list(nodes)

        def _flush() -> None:
            spans = trim_spans(pending)
            pending.clear()
            if spans and not is_blank(spans):
                blocks.append(Block(type='paragraph', spans=spans))

        for index, node in enumerate(siblings):
            if isinstance(node, _SKIPPED_STRINGS):
                continue
            if isinstance(node, NavigableString):
                pending.extend(_text_spans(str(node)))
                continue
            if not isinstance(node, Tag):
                continue

            if node.name == 'br':
                if _next_is_block(siblings, index):
                    _flush()
                else:
                    pending.append(Span(type='line_break'))
                continue

            if node.name not in BLOCK_TAGS:
                pending.extend(self.read_inline(node))
                continue

            _flush()
            blocks.extend(self.read_block(node))

        _flush()
        return blocks

    def read_block(self, tag: Tag) -> list[Block]:
        name = tag.name
        if name in CONTAINER_TAGS:
            return self.read_blocks(tag.children)
        if name == 'p':
            if any(isinstance(c, Tag) and c.name in BLOCK_TAGS for c in tag.children):
                return self.read_blocks(tag.children)
            spans = trim_spans(self.read_inline_children(tag.children))
            return [Block(type='paragraph', spans=spans)] if not is_blank(spans) else []
        if name in HEADING_TAGS:
            spans = [
                Span(type='text', text=' ') if s.type == 'line_break' else s
                for s in self.read_inline_children(tag.children)
            ]
            spans = trim_spans(spans)
            if is_blank(spans):
                return []
            return [Block(type='heading', level=int(name[1]), spans=spans)]
        if name in LIST_TAGS:
            block = self.read_list(tag, depth=0)
            return [block] if block.items else []
        if name == 'pre':
            return [_read_code_block(tag)]
        if name == 'table':
            table = read_html_table(tag, self.read_cell, diagnostics=self.diagnostics)
            return [Block(type='table', table=table)] if table.rows else []
        if name == 'blockquote':
            children = self.read_blocks(tag.children)
            return [Block(type='blockquote', children=children)] if children else []
        if name == 'hr':
            return [Block(type='hr')]
        return self.read_blocks(tag.children)

    def read_list(self, tag: Tag, depth: int) -> Block:
        items: list[ListItem] = []
        for child in tag.children:
            if not isinstance(child, Tag):
                continue
            if child.name == 'li':
                items.append(self._read_list_item(child, depth))
            elif child.name in LIST_TAGS:
                # a list nested directly in a list belongs to the previous item
                if not items:
                    items.append(ListItem())
                items[-1].children.append(self.read_list(child, depth + 1))
        start = _ordered_start(tag) if tag.name == 'ol' else 1
        return Block(type='list', ordered=tag.name == 'ol', start=start, items=items, level=depth)

    def _read_list_item(self, li: Tag, depth: int) -> ListItem:
        item = ListItem()
        spans: list[Span] = []
        for child in li.children:
            if isinstance(child, Tag) and child.name in LIST_TAGS:
                nested = self.read_list(child, depth + 1)
                if nested.items:
                    item.children.append(nested)
            elif isinstance(child, Tag) and child.name in ('pre', 'table', 'blockquote'):
                item.children.extend(self.read_block(child))
            elif isinstance(child, Tag) and child.name in BLOCK_TAGS:
                if spans and not is_blank(spans):
                    spans.append(Span(type='line_break'))
                spans.extend(trim_spans(self.read_inline_children(child.children)))
            else:
                spans.extend(self._read_inline_node(child))
        item.spans = trim_spans(spans)
        return item

    def read_cell(self, cell: Tag) -> list[Span]:
        return trim_spans(self.read_inline_children(cell.children))

    # -- inline -------------------------------------------------------------

    def read_inline_children(self, nodes: Iterable) -> list[Span]:
        spans: list[Span] = []
        for node in nodes:
            if isinstance(node, Tag) and node.name in BLOCK_TAGS:
                inner = trim_spans(self._read_flattened_block(node))
                if not inner:
                    continue
                if spans and not is_blank(spans) and spans[-1].type != 'line_break':
                    spans.append(Span(type='line_break'))
                spans.extend(inner)
                spans.append(Span(type='line_break'))
                continue
            spans.extend(self._read_inline_node(node))
        return spans

    def _read_flattened_block(self, tag: Tag) -> list[Span]:
        """Inline rendition of a block found where only inline content fits."""
        if tag.name in LIST_TAGS:
            spans: list[Span] = []
            for index, li in enumerate(tag.find_all('li', recursive=False), start=1):
                marker = f"{index}. " if tag.name == 'ol' else "- "
                if spans:
                    spans.append(Span(type='line_break'))
                spans.append(Span(type='text', text=marker))
                spans.extend(trim_spans(self.read_inline_children(li.children)))
            return spans
        if tag.name == 'pre':
            return [Span(type='code', text=tag.get_text().strip('\n'))]
        if tag.name == 'hr':
            return []
        return self.read_inline_children(tag.children)

    def _read_inline_node(self, node) -> list[Span]:
        if isinstance(node, _SKIPPED_STRINGS):
            return []
        if isinstance(node, NavigableString):
            return _text_spans(str(node))
        if isinstance(node, Tag):
            return self.read_inline(node)
        return []

    def read_inline(self, tag: Tag) -> list[Span]:
        name = tag.name
        if name == 'br':
            return [Span(type='line_break')]
        if name == 'img':
            src = tag.get('src', '')
            if not src:
                return []
            return [Span(type='image', text=tag.get('alt', ''), target=src)]
        if name == 'code':
            return [Span(type='code', text=tag.get_text())]
        if name == 'a':
            href = (tag.get('href') or '').strip()
            label = _collapse(tag.get_text()).strip()
            if not href:
                return self.read_inline_children(tag.children)
            if not label:
                image = tag.find('img')
                if image is not None and image.get('src'):
                    return [Span(type='image', text=image.get('alt', ''), target=image['src'])]
            return [Span(type='link', text=label or href, target=href)]
        if name in _EMPHASIS_TAGS:
            children = self.read_inline_children(tag.children)
            if is_blank(children):
                return children
            return [_emphasis(_EMPHASIS_TAGS[name], children)]
        return self.read_inline_children(tag.children)


def _emphasis(kind: str, children: list[Span]) -> Span:
    """Fold bold(italic(x)) and italic(bold(x)) into a single bold_italic span."""
    if len(children) == 1 and {kind, children[0].type} == {'bold', 'italic'}:
        return Span(type='bold_italic', children=children[0].children)
    return Span(type=kind, children=children)


def _text_spans(value: str) -> list[Span]:
    text = _collapse(clean_text(value) or '')
    return [Span(type='text', text=text)] if text else []


def _collapse(value: str) -> str:
    return _WS_RE.sub(' ', value)


def _next_is_block(siblings: list, index: int) -> bool:
    """True when the next meaningful sibling is block-level or absent."""
    for node in siblings[index + 1:]:
        if isinstance(node, _SKIPPED_STRINGS):
            continue
        if isinstance(node, NavigableString):
            if str(node).strip():
                return False
            continue
        if isinstance(node, Tag):
            return node.name in BLOCK_TAGS
    return True


def _ordered_start(tag: Tag) -> int:
    try:
        return int(tag.get('start', 1))
    except (TypeError, ValueError):
        return 1


def _read_code_block(pre: Tag) -> Block:
    code = pre.find('code')
    language = _language_of(code) or _language_of(pre)
    body = (code or pre).get_text()
    return Block(type='code_block', language=language, text=body.strip('\n'))


def _language_of(tag: Optional[Tag]) -> str:
    if tag is None:
        return ''
    classes = tag.get('class') or []
    if isinstance(classes, str):
        classes = classes.split()
    for name in classes:
        match = _LANGUAGE_RE.match(name)
        if match:
            return match.group(1)
    return ''


def html_to_markdown(html: Optional[str], diagnostics: Optional[DiagnosticCollector] = None) -> str:
    """Convert an HTML fragment to markdown. Never raises.

    Input without any tag is only whitespace-normalised. Input with an
    unterminated tag, or input the structural reader fails on, goes through
    the regex fallback instead and a MalformedInputFallback event is recorded.
    """
    if not html or not html.strip():
        return ''
    if not _TAG_RE.search(html):
        return normalize_whitespace(clean_text(html) or '')

    cleaned = preprocess_html(html)
    if has_unterminated_tag(cleaned):
        report(diagnostics, DiagnosticCode.MALFORMED_INPUT_FALLBACK, 'unterminated tag in HTML input')
        return fallback_html_to_markdown(html)

    try:
        document = read_document(cleaned, diagnostics)
        return normalize_whitespace(render_document(document))
    except Exception as e:
        logger.warning(f"HTML conversion failed, using fallback: {e}", exc_info=True)
        report(diagnostics, DiagnosticCode.MALFORMED_INPUT_FALLBACK, f"structural conversion failed: {e}")
        return fallback_html_to_markdown(html)
