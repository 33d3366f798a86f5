#!/usr/bin/env python3
"""
Text Utility Functions

Common text processing utilities shared across the conversion packages.
"""

import re
import unicodedata
from typing import Optional


# Hidden characters for text cleaning
HIDDEN_CHARACTERS = {
    '\u00A0': ' ',  # Non-Breaking Space
    '\u202f': ' ',  # Narrow No-Break Space
    '\u200b': '',   # Zero Width Space
    '\u200e': '',   # Left-to-Right Mark
    '\ufeff': '',   # Byte Order Mark
}

_BLANK_RUN_RE = re.compile(r'\n[ \t]*(?:\n[ \t]*){2,}')
_TRAILING_WS_RE = re.compile(r'[ \t]+$', flags=re.MULTILINE)


def clean_text(text: Optional[str]) -> Optional[str]:
    """
    Clean text by removing hidden characters.

    Args:
        text: The text to clean

    Returns:
        Cleaned text with hidden characters removed/replaced, or None if input is None
    """
    if text is None:
        return None

    # NFC keeps composed and decomposed forms comparable
    cleaned_text = unicodedata.normalize('NFC', text)
    for hidden_char, replacement in HIDDEN_CHARACTERS.items():
        cleaned_text = cleaned_text.replace(hidden_char, replacement)
    return cleaned_text


def sanitize_field_key(name: str) -> str:
    """
    Convert a remote field name to a metadata-safe storage key.

    Every character outside [A-Za-z0-9_] becomes an underscore, underscore
    runs collapse, leading/trailing underscores are removed and the result is
    lower-cased. "Custom.BusinessUnit" becomes "custom_businessunit".

    Args:
        name: The original remote field name

    Returns:
        The sanitized key (possibly empty)
    """
    key = re.sub(r'[^A-Za-z0-9_]', '_', clean_text(name) or '')
    key = re.sub(r'_{2,}', '_', key)
    return key.strip('_').lower()


def collapse_blank_lines(text: str, max_blank: int = 1) -> str:
    """Collapse runs of blank lines so at most ``max_blank`` remain."""
    if max_blank == 1:
        return _BLANK_RUN_RE.sub('\n\n', text)
    pattern = re.compile(r'\n[ \t]*(?:\n[ \t]*){%d,}' % (max_blank + 1))
    return pattern.sub('\n' * (max_blank + 1), text)


def normalize_whitespace(text: str) -> str:
    """Trailing spaces removed, blank runs collapsed, outer whitespace trimmed."""
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = _TRAILING_WS_RE.sub('', text)
    return collapse_blank_lines(text).strip()

