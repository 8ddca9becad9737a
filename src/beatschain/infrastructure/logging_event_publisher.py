"""Event publisher that writes upload lifecycle events to the log."""

from __future__ import annotations

import logging

from beatschain.domain.events import DomainEvent, StageFallbackApplied, UploadFailed

LOGGER = logging.getLogger("beatschain.events")

_EVENT_LEVELS: dict[type[DomainEvent], int] = {
    StageFallbackApplied: logging.WARNING,
    UploadFailed: logging.ERROR,
}


class LoggingEventPublisher:
    """Log each event at a level matching its severity.

    ``job_id`` and ``stage`` are lifted out of the payload so log
    aggregators can filter on them without parsing the summary.
    """

    def __init__(self, logger: logging.Logger = LOGGER) -> None:
        self._logger = logger

    def publish(self, event: DomainEvent) -> None:
        summary = event.payload_summary
        self._logger.log(
            _EVENT_LEVELS.get(type(event), logging.INFO),
            "upload_event",
            extra={
                "event_name": type(event).__name__,
                "correlation_id": event.correlation_id,
                "job_id": summary.get("job_id"),
                "stage": summary.get("stage"),
                "payload_summary": summary,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )
