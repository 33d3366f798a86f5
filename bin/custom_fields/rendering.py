"""Render accepted custom fields into a note and read them back on push.

Both renderings are projections of the same accepted set:
- the YAML metadata block, keyed by sanitized field name
- the human-readable ``## Custom Fields`` listing
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, Optional

import yaml

from diagnostics import DiagnosticCollector
from text_utils import sanitize_field_key
from workitem_sync.config import Config

from .classifier import is_suspicious_field_name
from .name_mapper import resolve_field_name

logger = logging.getLogger(__name__)

CUSTOM_FIELDS_HEADING = '## Custom Fields'

_LISTING_LINE_RE = re.compile(r'^\*\*([^*]+):\*\*\s*(.+?)\s*$')
_INTEGER_RE = re.compile(r'^\d+$')
_DECIMAL_RE = re.compile(r'^\d+\.\d+$')
_EMPTY_VALUES = ('', 'null', 'undefined')


def display_value(value: Any) -> Any:
    """Person references render as their display name; other values pass through."""
    if isinstance(value, dict):
        if value.get('displayName'):
            return value['displayName']
        return json.dumps(value, ensure_ascii=False)
    return value


def select_note_fields(custom_fields: dict, reserved_keys: Iterable[str] = ()) -> dict:
    """The accepted fields a note can carry, keyed by remote name.

    A field is left out when its sanitized key is empty, repeats an earlier
    field's key, or matches a reserved (standard) metadata key, compared
    case-insensitively. Both the metadata block and the listing render from
    this result.
    """
    reserved = {key.lower() for key in reserved_keys}
    seen: set = set()
    selected: dict = {}
    for name, value in custom_fields.items():
        key = sanitize_field_key(name)
        if not key:
            continue
        if key in reserved:
            logger.warning(f"Custom field {name!r} shadows a standard metadata key {key!r}; skipped")
            continue
        if key in seen:
            logger.warning(f"Custom field {name!r} collides with an earlier field on key {key!r}; skipped")
            continue
        seen.add(key)
        selected[name] = value
    return selected


def custom_field_metadata(custom_fields: dict) -> dict:
    """``{sanitized key: value}`` for the metadata block; first key wins on collision."""
    return {
        sanitize_field_key(name): display_value(value)
        for name, value in select_note_fields(custom_fields).items()
    }


def _make_dumper(threshold: int) -> type:
    class _MetadataDumper(yaml.SafeDumper):
        pass

    def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.Node:
        if len(data) > threshold or '<' in data or '\n' in data:
            return dumper.represent_scalar('tag:yaml.org,2002:str', data, style='|')
        return dumper.represent_scalar('tag:yaml.org,2002:str', data)

    _MetadataDumper.add_representer(str, _represent_str)
    return _MetadataDumper


def render_metadata_yaml(metadata: dict, config: Optional[Config] = None) -> str:
    """Dump a metadata mapping; long or HTML-bearing strings become literal blocks."""
    config = config or Config()
    if not metadata:
        return ''
    return yaml.dump(
        metadata,
        Dumper=_make_dumper(config.literal_block_threshold),
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=10_000,
    )


def format_field_name_for_display(name: str) -> str:
    """``Custom.business_unit`` -> ``Custom Business Unit``."""
    words = re.sub(r'[._]+', ' ', name).split()
    return ' '.join(word[:1].upper() + word[1:] for word in words)


def render_field_listing(custom_fields: dict) -> str:
    """Human-readable listing section, empty when there are no custom fields."""
    if not custom_fields:
        return ''
    lines = [CUSTOM_FIELDS_HEADING, '']
    for name, value in custom_fields.items():
        shown = display_value(value)
        if isinstance(shown, bool):
            shown = 'true' if shown else 'false'
        shown = ' '.join(str(shown).split())
        lines.append(f"**{format_field_name_for_display(name)}:** {shown}  ")
    return '\n'.join(lines)


def parse_field_value(value: Any) -> Any:
    """Turn a metadata string back into the value sent to the remote tracker."""
    if not isinstance(value, str):
        return '' if value is None else value
    if value in _EMPTY_VALUES:
        return ''

    if len(value) < 50:
        if _INTEGER_RE.match(value):
            return int(value)
        if _DECIMAL_RE.match(value):
            return float(value)
        if value.lower() == 'true':
            return True
        if value.lower() == 'false':
            return False

    if value.startswith('|\n'):
        return value[2:].replace('\n  ', '\n').strip()
    return value


def extract_custom_field_updates(
    metadata: Optional[dict],
    observed_fields: Optional[Iterable[str]] = None,
    config: Optional[Config] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> dict:
    """``{remote name: value}`` for the custom fields found in note metadata.

    Standard keys, comment keys and empty values are skipped; keys that
    cannot be mapped back to a remote name are dropped. Never raises.
    """
    config = config or Config()
    observed = list(observed_fields) if observed_fields is not None else None
    standard = {key.lower() for key in config.standard_keys}
    updates: dict = {}
    for raw_key, raw_value in (metadata or {}).items():
        key = str(raw_key).strip()
        if not key or key.lower() in standard or key.startswith('#'):
            continue
        if raw_value is None or (isinstance(raw_value, str) and raw_value.strip() in _EMPTY_VALUES):
            continue
        if is_suspicious_field_name(key):
            logger.debug(f"Skipping suspicious metadata key: {key!r}")
            continue
        remote_name = resolve_field_name(key, observed, config, diagnostics)
        if remote_name is None:
            continue
        try:
            updates[remote_name] = parse_field_value(raw_value)
        except Exception as e:
            logger.warning(f"Failed to parse value for {remote_name!r}, keeping it as text: {e}", exc_info=True)
            updates[remote_name] = str(raw_value)
    return updates


def parse_custom_fields_listing(
    listing: str,
    observed_fields: Optional[Iterable[str]] = None,
    config: Optional[Config] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> dict:
    """Read ``**Display Name:** value`` lines back into ``{remote name: value}``."""
    observed = list(observed_fields) if observed_fields is not None else None
    updates: dict = {}
    for line in (listing or '').splitlines():
        match = _LISTING_LINE_RE.match(line.strip())
        if not match:
            continue
        display_name = match.group(1).strip()
        if is_suspicious_field_name(display_name):
            continue
        key = sanitize_field_key(display_name)
        if not key:
            continue
        remote_name = resolve_field_name(key, observed, config, diagnostics)
        if remote_name is not None:
            updates[remote_name] = parse_field_value(match.group(2))
    return updates
