"""Best-effort recovery of remote field names from sanitized metadata keys.

Sanitizing is lossy: ``Custom.BusinessUnit`` and ``Custom.Business_Unit``
both become ``custom_businessunit``. Resolution therefore prefers the field
names actually observed on the record, then a name that already looks
remote, then organisational namespace guesses. Every candidate must pass
the classifier's name checks; when none does the field is dropped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from diagnostics import DiagnosticCode, DiagnosticCollector, report
from text_utils import sanitize_field_key
from workitem_sync.config import Config

from .classifier import accepts_name

logger = logging.getLogger(__name__)


@dataclass
class FieldNameMapping:
    sanitized_key: str
    candidates: list[str] = field(default_factory=list)
    resolved: Optional[str] = None
    ambiguous: bool = False
    rejected: bool = False


def build_mapping(
    key: str,
    observed_fields: Optional[Iterable[str]] = None,
    config: Optional[Config] = None,
) -> FieldNameMapping:
    """Collect candidates in priority order and resolve the first acceptable one.

    A key that names a non-custom field, either directly (``System.Title``)
    or through the observed field set, is rejected rather than guessed.
    """
    config = config or Config()
    key = key.strip()
    mapping = FieldNameMapping(sanitized_key=sanitize_field_key(key))

    if observed_fields is not None:
        observed = sorted({name for name in observed_fields if sanitize_field_key(name) == mapping.sanitized_key})
        matches = [name for name in observed if accepts_name(name, config)]
        if len(matches) > 1:
            mapping.candidates = matches
            mapping.ambiguous = True
            return mapping
        if matches:
            mapping.candidates = matches
            mapping.resolved = matches[0]
            return mapping
        if observed:
            mapping.candidates = observed
            mapping.rejected = True
            return mapping

    if '.' in key:
        mapping.candidates.append(key)
        if accepts_name(key, config):
            mapping.resolved = key
        else:
            mapping.rejected = True
        return mapping

    if _names_system_field(mapping.sanitized_key, config):
        mapping.rejected = True
        return mapping

    mapping.candidates.extend(_prefixed_candidates(key, config.organization_prefixes))
    for candidate in mapping.candidates:
        if accepts_name(candidate, config):
            mapping.resolved = candidate
            break
    return mapping


def resolve_field_name(
    key: str,
    observed_fields: Optional[Iterable[str]] = None,
    config: Optional[Config] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> Optional[str]:
    """Return the reconstructed remote name for ``key``, or None. Never raises."""
    try:
        mapping = build_mapping(key, observed_fields, config)
    except Exception as e:
        logger.warning(f"Field name resolution failed for {key!r}: {e}", exc_info=True)
        report(diagnostics, DiagnosticCode.FIELD_NAME_UNRESOLVABLE, f"{key}: {e}", name=str(key))
        return None

    if mapping.resolved is not None:
        logger.debug(f"Resolved field key {key!r} to {mapping.resolved!r}")
        return mapping.resolved

    if mapping.ambiguous:
        detail = f"{key}: ambiguous between {', '.join(mapping.candidates)}"
    elif mapping.rejected:
        detail = f"{key}: names a field that is not a custom field"
    else:
        detail = f"{key}: cannot map back to a remote field name"
    report(diagnostics, DiagnosticCode.FIELD_NAME_UNRESOLVABLE, detail, name=key)
    return None


def _prefixed_candidates(key: str, prefixes: list[str]) -> list[str]:
    """``<Prefix>.<Capitalized key>`` for each prefix.

    A key that already starts with a known prefix (``custom_businessunit``)
    is split on it first, so that prefix is tried with the remainder.
    """
    candidates: list[str] = []
    lowered = key.lower()
    for prefix in prefixes:
        for separator in ('_', '.', ' '):
            head = prefix.lower() + separator
            if lowered.startswith(head) and len(key) > len(head):
                candidates.append(f"{prefix}.{_capitalize(key[len(head):])}")
                break

    capitalized = _capitalize(key)
    candidates.extend(f"{prefix}.{capitalized}" for prefix in prefixes)
    return [c for i, c in enumerate(candidates) if c not in candidates[:i]]


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


def _names_system_field(sanitized_key: str, config: Config) -> bool:
    """True when the key is the sanitized form of a reserved system name."""
    for prefix in config.system_prefixes:
        head = sanitize_field_key(prefix)
        if head and (sanitized_key == head or sanitized_key.startswith(head + '_')):
            return True
    return False
