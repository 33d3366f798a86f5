"""Clean vendor HTML before structural conversion.

Every step is idempotent and independent of the others:
script/style/comment removal, line-break spelling normalisation, attribute
stripping and empty-paragraph removal.
"""
from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

_SCRIPT_STYLE_RE = re.compile(
    r'<(script|style)\b[^>]*>.*?</\1\s*>', flags=re.IGNORECASE | re.DOTALL
)
_COMMENT_RE = re.compile(r'<!--.*?-->', flags=re.DOTALL)
_BR_VARIANTS_RE = re.compile(r'<\s*/?\s*br\s*/?\s*>', flags=re.IGNORECASE)
UNTERMINATED_TAG_RE = re.compile(r'<[A-Za-z/!][^<>]*(?=<|$)')

# Elements on which inline style carries column alignment
TABLE_TAGS = frozenset({
    'table', 'thead', 'tbody', 'tfoot', 'tr', 'th', 'td', 'col', 'colgroup', 'caption',
})


def preprocess_html(html: str) -> str:
    """Text-level cleanup that does not need a parsed tree."""
    cleaned = _SCRIPT_STYLE_RE.sub('', html)
    cleaned = _COMMENT_RE.sub('', cleaned)
    cleaned = _BR_VARIANTS_RE.sub('<br>', cleaned)
    return cleaned


def has_unterminated_tag(html: str) -> bool:
    """True when a tag opener runs into the next ``<`` or end of input before ``>``.

    An HTML tokenizer treats everything after such an opener as attribute
    soup and silently drops it from the text.
    """
    return bool(UNTERMINATED_TAG_RE.search(html))


def clean_tree(soup: BeautifulSoup) -> BeautifulSoup:
    """Strip vendor attributes and empty paragraphs in place."""
    for tag in soup.find_all(True):
        _strip_attributes(tag)

    for p in soup.find_all('p'):
        if p.get_text().strip():
            continue
        if p.find(['img', 'table', 'hr']):
            continue
        p.decompose()
    return soup


def _strip_attributes(tag: Tag) -> None:
    for name in list(tag.attrs):
        if name.startswith('data-'):
            del tag.attrs[name]
        elif name == 'style' and tag.name not in TABLE_TAGS:
            del tag.attrs[name]
        elif name == 'class':
            languages = _language_classes(tag)
            if languages:
                tag.attrs['class'] = languages
            else:
                del tag.attrs[name]


def _language_classes(tag: Tag) -> list[str]:
    """``language-*`` classes on code/pre, kept so fenced blocks stay labelled."""
    if tag.name not in ('code', 'pre'):
        return []
    classes = tag.get('class') or []
    if isinstance(classes, str):
        classes = classes.split()
    return [c for c in classes if c.startswith('language-')]
