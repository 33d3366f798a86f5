"""Collect degradation events raised while converting or classifying a record.

None of the conversion entry points raise; when they fall back, pad a table
row or drop a field they record what happened here so callers can report it.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class DiagnosticCode(str, Enum):
    MALFORMED_INPUT_FALLBACK = 'MalformedInputFallback'
    FIELD_CLASSIFICATION_EXCLUSION = 'FieldClassificationExclusion'
    FIELD_NAME_UNRESOLVABLE = 'FieldNameUnresolvable'
    TABLE_SHAPE_MISMATCH = 'TableShapeMismatch'


_LOG_LEVELS = {
    DiagnosticCode.MALFORMED_INPUT_FALLBACK: logging.INFO,
    DiagnosticCode.FIELD_CLASSIFICATION_EXCLUSION: logging.DEBUG,
    DiagnosticCode.FIELD_NAME_UNRESOLVABLE: logging.WARNING,
    DiagnosticCode.TABLE_SHAPE_MISMATCH: logging.INFO,
}


class DiagnosticCollector:
    """Gathers diagnostic events for a single conversion or push attempt."""

    def __init__(self) -> None:
        self._events: list[dict] = []

    def add(self, code: DiagnosticCode, detail: str, name: Optional[str] = None) -> None:
        event = {'code': code.value, 'detail': detail}
        if name is not None:
            event['name'] = name
        self._events.append(event)

    @property
    def events(self) -> list[dict]:
        return list(self._events)

    def has(self, code: DiagnosticCode) -> bool:
        return any(e['code'] == code.value for e in self._events)

    def count(self, code: DiagnosticCode) -> int:
        return sum(1 for e in self._events if e['code'] == code.value)

    def to_dict(self) -> dict:
        """Group events by code, leaving out codes with no events."""
        result: dict = {}
        for event in self._events:
            result.setdefault(event['code'], []).append(
                {k: v for k, v in event.items() if k != 'code'}
            )
        return result


def report(
    collector: Optional[DiagnosticCollector],
    code: DiagnosticCode,
    detail: str,
    name: Optional[str] = None,
) -> None:
    """Log an event and record it on ``collector`` when one is given."""
    logger.log(_LOG_LEVELS[code], f"{code.value}: {detail}")
    if collector is not None:
        collector.add(code, detail, name=name)
