"""Audit trail for ingestion diagnostics.

An AuditTrail collects non-fatal events raised while migrating legacy
records (dropped or partial fields, skipped records) so an ingestion run can report
them afterwards. Each trail belongs to one ingestion run.
"""

from __future__ import annotations

import logging
import time
from typing import TypedDict

log = logging.getLogger("buildings.audit")


class AuditEvent(TypedDict):
    type: str          # unmapped_field | incomplete_field | migration_failed | validation_failed | duplicate | ingested
    timestamp: float
    source: str
    record_id: str
    data: dict


class AuditTrail:
    """Append-only event log for one ingestion run."""

    def __init__(self, source: str = "") -> None:
        self._source = source
        self._event_log: list[AuditEvent] = []

    def emit(self, event_type: str, record_id: str, data: dict) -> None:
        """Append an event to the log."""
        event: AuditEvent = {
            "type": event_type,
            "timestamp": time.time(),
            "source": self._source,
            "record_id": record_id,
            "data": data,
        }
        self._event_log.append(event)
        log.debug("audit %s [%s] %s", event_type, record_id, data)

    def events(self, event_type: str | None = None) -> list[AuditEvent]:
        """Events in emission order, optionally filtered by type."""
        if event_type is None:
            return list(self._event_log)
        return [e for e in self._event_log if e["type"] == event_type]

    @property
    def event_log(self) -> list[AuditEvent]:
        """Full event history for export."""
        return list(self._event_log)

    def summary(self) -> dict[str, int]:
        """Count of events per type."""
        counts: dict[str, int] = {}
        for event in self._event_log:
            counts[event["type"]] = counts.get(event["type"], 0) + 1
        return counts

    def __len__(self) -> int:
        return len(self._event_log)
