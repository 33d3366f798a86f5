"""Decide which remote fields are user-meaningful custom fields.

Exclusion runs first and short-circuits in a fixed order: empty value,
reserved system namespace, internal bookkeeping pattern, markup-looking
name. Survivors must then match one of the accepted name shapes.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from diagnostics import DiagnosticCode, DiagnosticCollector, report
from workitem_sync.config import Config

logger = logging.getLogger(__name__)

_HTML_TAG_RE = re.compile(r'<[^>]+>')
_TAG_OPENER_RE = re.compile(r'<\s*/?\s*[A-Za-z]')
_HTML_ENTITY_RE = re.compile(r'&[a-zA-Z0-9#]+;')
_PUNCTUATION_RUN_RE = re.compile(r'[<>"\'&\\/]{2,}')
_TABLE_MARKUP = ('<td>', '</td>', 'width=', 'style=')
_ALNUM_RE = re.compile(r'[A-Za-z0-9]')
_LETTER_RE = re.compile(r'[A-Za-z]')

# Namespace.Field, simple word-or-sentence name, longer punctuated identifier
_ACCEPTED_SHAPES = [
    re.compile(r'^[A-Za-z][A-Za-z0-9_]*\.[A-Za-z][A-Za-z0-9_]*$'),
    re.compile(r'^[A-Za-z][A-Za-z0-9_ ]*$'),
    re.compile(r'^[A-Za-z][A-Za-z0-9_\- .]*[A-Za-z0-9]$'),
]


class ExclusionReason(str, Enum):
    EMPTY_VALUE = 'empty_value'
    SYSTEM_PREFIX = 'system_prefix'
    INTERNAL_PATTERN = 'internal_pattern'
    SUSPICIOUS_NAME = 'suspicious_name'
    UNRECOGNIZED_SHAPE = 'unrecognized_shape'


@dataclass
class CustomFieldEntry:
    remote_name: str
    value: Any
    accepted: bool
    reason: Optional[ExclusionReason] = None


def is_suspicious_field_name(name: str) -> bool:
    """True when the name looks like injected markup rather than an identifier."""
    if _HTML_TAG_RE.search(name) or _TAG_OPENER_RE.search(name) or _HTML_ENTITY_RE.search(name):
        return True
    if any(marker in name for marker in _TABLE_MARKUP):
        return True
    if _PUNCTUATION_RUN_RE.search(name):
        return True
    return len(_ALNUM_RE.findall(name)) < len(name) * 0.5


def is_legitimate_field_name(name: str) -> bool:
    if not _LETTER_RE.search(name):
        return False
    return any(shape.match(name) for shape in _ACCEPTED_SHAPES)


def has_system_prefix(name: str, config: Optional[Config] = None) -> bool:
    config = config or Config()
    return any(name.startswith(prefix) for prefix in config.system_prefixes)


def matches_internal_pattern(name: str, config: Optional[Config] = None) -> bool:
    config = config or Config()
    return any(re.search(pattern, name, flags=re.IGNORECASE) for pattern in config.internal_patterns)


def exclusion_reason(name: str, value: Any, config: Optional[Config] = None) -> Optional[ExclusionReason]:
    """First matching exclusion for a field, or None when it is accepted."""
    config = config or Config()
    if value is None or value == '':
        return ExclusionReason.EMPTY_VALUE
    return name_exclusion_reason(name, config)


def name_exclusion_reason(name: str, config: Optional[Config] = None) -> Optional[ExclusionReason]:
    config = config or Config()
    if has_system_prefix(name, config):
        return ExclusionReason.SYSTEM_PREFIX
    if matches_internal_pattern(name, config):
        return ExclusionReason.INTERNAL_PATTERN
    if is_suspicious_field_name(name):
        return ExclusionReason.SUSPICIOUS_NAME
    if not is_legitimate_field_name(name):
        return ExclusionReason.UNRECOGNIZED_SHAPE
    return None


def accepts_name(name: str, config: Optional[Config] = None) -> bool:
    """Whether the classifier would accept ``name`` given a non-empty value."""
    return name_exclusion_reason(name, config) is None


def classify_field(
    name: str,
    value: Any,
    config: Optional[Config] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> CustomFieldEntry:
    reason = exclusion_reason(name, value, config)
    if reason is not None:
        report(diagnostics, DiagnosticCode.FIELD_CLASSIFICATION_EXCLUSION, f"{name}: {reason.value}", name=name)
        return CustomFieldEntry(remote_name=name, value=value, accepted=False, reason=reason)
    return CustomFieldEntry(remote_name=name, value=value, accepted=True)


def classify_fields(
    fields: Optional[dict],
    config: Optional[Config] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> list[CustomFieldEntry]:
    """Classify every field of a remote record, in input order. Never raises."""
    config = config or Config()
    entries: list[CustomFieldEntry] = []
    for name, value in (fields or {}).items():
        name = str(name)
        try:
            entries.append(classify_field(name, value, config, diagnostics))
        except Exception as e:
            logger.warning(f"Failed to classify field {name!r}, excluding it: {e}", exc_info=True)
            report(diagnostics, DiagnosticCode.FIELD_CLASSIFICATION_EXCLUSION, f"{name}: {e}", name=name)
            entries.append(CustomFieldEntry(
                remote_name=name, value=value, accepted=False, reason=ExclusionReason.SUSPICIOUS_NAME,
            ))
    return entries


def extract_custom_fields(
    fields: Optional[dict],
    config: Optional[Config] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> dict:
    """Accepted custom fields as an ordered ``{remote name: value}`` mapping."""
    return {
        entry.remote_name: entry.value
        for entry in classify_fields(fields, config, diagnostics)
        if entry.accepted
    }
