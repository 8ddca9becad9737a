from __future__ import annotations

import logging

from beatschain.domain.events import StageFallbackApplied, UploadFailed, UploadProgressed
from beatschain.infrastructure.logging_event_publisher import LoggingEventPublisher


def test_logging_publisher_levels_follow_event_severity(caplog) -> None:
    publisher = LoggingEventPublisher()

    with caplog.at_level(logging.INFO, logger="beatschain.events"):
        publisher.publish(UploadProgressed("corr-1", {"job_id": "job-1", "stage": "storing", "progress": 40}))
        publisher.publish(StageFallbackApplied("corr-1", {"job_id": "job-1", "stage": "storing"}))
        publisher.publish(UploadFailed("corr-1", {"job_id": "job-1", "stage": "minting", "error": "down"}))

    assert [record.levelno for record in caplog.records] == [logging.INFO, logging.WARNING, logging.ERROR]
    assert [record.event_name for record in caplog.records] == [
        "UploadProgressed",
        "StageFallbackApplied",
        "UploadFailed",
    ]
    first = caplog.records[0]
    assert first.correlation_id == "corr-1"
    assert first.job_id == "job-1"
    assert first.stage == "storing"
    assert first.payload_summary["progress"] == 40
