"""Pull/push compositions: remote record -> note sections, edited note -> update payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from converter import html_to_markdown
from custom_fields import (
    custom_field_metadata,
    display_value,
    extract_custom_field_updates,
    extract_custom_fields,
    parse_custom_fields_listing,
    render_field_listing,
    render_metadata_yaml,
    select_note_fields,
)
from diagnostics import DiagnosticCollector
from markdown_to_html import markdown_to_html

from .config import Config

MARKDOWN_FORMAT = 'markdown'
DESCRIPTION_FIELD = 'System.Description'

# Metadata key -> remote field
STANDARD_FIELDS = [
    ('id', 'System.Id'),
    ('title', 'System.Title'),
    ('type', 'System.WorkItemType'),
    ('state', 'System.State'),
    ('assignedTo', 'System.AssignedTo'),
    ('createdDate', 'System.CreatedDate'),
    ('changedDate', 'System.ChangedDate'),
    ('priority', 'Microsoft.VSTS.Common.Priority'),
    ('areaPath', 'System.AreaPath'),
    ('iterationPath', 'System.IterationPath'),
    ('tags', 'System.Tags'),
]


@dataclass
class NoteContent:
    body: str
    metadata: dict = field(default_factory=dict)
    field_listing: str = ''
    custom_fields: dict = field(default_factory=dict)

    def render(self, config: Optional[Config] = None) -> str:
        """Full note text: metadata block, title, description and field listing."""
        parts = [f"---\n{render_metadata_yaml(self.metadata, config)}---"]
        title = self.metadata.get('title')
        if title:
            parts.append(f"# {title}")
        parts.append(f"## Description\n\n{self.body}" if self.body else "## Description")
        if self.field_listing:
            parts.append(self.field_listing)
        return '\n\n'.join(parts) + '\n'


@dataclass
class UpdatePayload:
    description_html: str
    custom_fields: dict = field(default_factory=dict)
    description_format: str = 'html'


def is_markdown_format(description_format: Optional[str]) -> bool:
    return (description_format or '').strip().lower() == MARKDOWN_FORMAT


def build_note_content(
    fields: Optional[dict],
    description_html: Optional[str] = None,
    description_format: Optional[str] = None,
    config: Optional[Config] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> NoteContent:
    """Compose note sections from one remote record's field map."""
    config = config or Config()
    fields = fields or {}
    if description_html is None:
        description_html = fields.get(DESCRIPTION_FIELD) or ''

    if is_markdown_format(description_format):
        body = description_html.strip()
    else:
        body = html_to_markdown(description_html, diagnostics=diagnostics)

    metadata: dict = {}
    for key, remote_name in STANDARD_FIELDS:
        value = fields.get(remote_name)
        if value is not None and value != '':
            metadata[key] = display_value(value)

    custom_fields = select_note_fields(
        extract_custom_fields(fields, config=config, diagnostics=diagnostics),
        reserved_keys=[*config.standard_keys, *metadata],
    )
    metadata.update(custom_field_metadata(custom_fields))

    return NoteContent(
        body=body,
        metadata=metadata,
        field_listing=render_field_listing(custom_fields),
        custom_fields=custom_fields,
    )


def build_update_payload(
    description_markdown: Optional[str],
    metadata: Optional[dict],
    observed_fields: Optional[Iterable[str]] = None,
    listing: Optional[str] = None,
    description_format: Optional[str] = None,
    config: Optional[Config] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> UpdatePayload:
    """Compose the outbound update from an edited note.

    Custom fields from the listing section override same-named ones from
    the metadata block. A field whose remote name cannot be recovered is
    left out; the rest of the update still goes through.
    """
    config = config or Config()
    observed = list(observed_fields) if observed_fields is not None else None

    if is_markdown_format(description_format):
        description = (description_markdown or '').strip()
        output_format = MARKDOWN_FORMAT
    else:
        description = markdown_to_html(
            description_markdown, diagnostics=diagnostics, style=config.table_styles()
        )
        output_format = 'html'

    custom_fields = extract_custom_field_updates(metadata, observed, config, diagnostics)
    if listing:
        custom_fields.update(parse_custom_fields_listing(listing, observed, config, diagnostics))

    return UpdatePayload(
        description_html=description,
        custom_fields=custom_fields,
        description_format=output_format,
    )
