"""Conservative HTML -> markdown text extractor.

Used when the structural reader cannot be trusted with the input. It keeps
every piece of text and the most common formatting, and never raises.
"""
from __future__ import annotations

import html as html_lib
import re

from text_utils import clean_text, normalize_whitespace

from .preprocess import UNTERMINATED_TAG_RE, preprocess_html

_FLAGS = re.IGNORECASE | re.DOTALL

# Applied in order; each replacement leaves plain markdown behind.
_REPLACEMENTS = [
    (re.compile(r'<pre[^>]*>\s*<code[^>]*>(.*?)</code>\s*</pre>', _FLAGS), '\n\n```\n\\1\n```\n\n'),
    (re.compile(r'<h([1-6])[^>]*>(.*?)</h\1\s*>', _FLAGS),
     lambda m: '\n\n' + '#' * int(m.group(1)) + ' ' + m.group(2).strip() + '\n\n'),
    (re.compile(r'<(strong|b)(?:\s[^>]*)?>(.*?)</\1\s*>', _FLAGS), '**\\2**'),
    (re.compile(r'<(em|i)(?:\s[^>]*)?>(.*?)</\1\s*>', _FLAGS), '*\\2*'),
    (re.compile(r'<(del|s|strike)(?:\s[^>]*)?>(.*?)</\1\s*>', _FLAGS), '~~\\2~~'),
    (re.compile(r'<code[^>]*>(.*?)</code\s*>', _FLAGS), '`\\1`'),
    (re.compile(r'<a\s[^>]*href\s*=\s*"([^"]*)"[^>]*>(.*?)</a\s*>', _FLAGS), '[\\2](\\1)'),
    (re.compile(r'<img\s[^>]*src\s*=\s*"([^"]*)"[^>]*>', _FLAGS), '![](\\1)'),
    (re.compile(r'<li(?:\s[^>]*)?>', _FLAGS), '\n- '),
    (re.compile(r'</(?:td|th)\s*>', _FLAGS), ' | '),
    (re.compile(r'<hr[^>]*>', _FLAGS), '\n\n---\n\n'),
    (re.compile(r'<br\s*/?>', _FLAGS), '\n'),
    (re.compile(r'</?(?:p|div|ul|ol|table|tr|blockquote|section|h[1-6])(?:\s[^>]*)?>', _FLAGS), '\n\n'),
]
_ANY_TAG_RE = re.compile(r'<[^<>]*>')


def fallback_html_to_markdown(html: str) -> str:
    """Strip tags with regular expressions; text content is always kept."""
    if not html:
        return ''
    text = preprocess_html(html)
    # A tag opener without '>' would swallow the text after it; keep it as literal text
    text = UNTERMINATED_TAG_RE.sub(lambda m: '&lt;' + m.group(0)[1:], text)
    for pattern, replacement in _REPLACEMENTS:
        text = pattern.sub(replacement, text)
    text = _ANY_TAG_RE.sub('', text)
    text = html_lib.unescape(text)
    text = clean_text(text) or ''
    return normalize_whitespace(text)
