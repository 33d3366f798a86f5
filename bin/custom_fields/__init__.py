"""Custom field classification, name round-tripping and note rendering."""

from .classifier import (
    CustomFieldEntry,
    ExclusionReason,
    accepts_name,
    classify_field,
    classify_fields,
    extract_custom_fields,
    is_legitimate_field_name,
    is_suspicious_field_name,
)
from .name_mapper import FieldNameMapping, build_mapping, resolve_field_name
from .rendering import (
    CUSTOM_FIELDS_HEADING,
    custom_field_metadata,
    display_value,
    extract_custom_field_updates,
    format_field_name_for_display,
    parse_custom_fields_listing,
    parse_field_value,
    render_field_listing,
    render_metadata_yaml,
    select_note_fields,
)

__all__ = [
    "CUSTOM_FIELDS_HEADING",
    "CustomFieldEntry",
    "ExclusionReason",
    "FieldNameMapping",
    "accepts_name",
    "build_mapping",
    "classify_field",
    "classify_fields",
    "custom_field_metadata",
    "display_value",
    "extract_custom_field_updates",
    "extract_custom_fields",
    "format_field_name_for_display",
    "is_legitimate_field_name",
    "is_suspicious_field_name",
    "parse_custom_fields_listing",
    "parse_field_value",
    "render_field_listing",
    "render_metadata_yaml",
    "resolve_field_name",
    "select_note_fields",
]
