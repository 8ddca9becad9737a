from __future__ import annotations

import pytest

from beatschain.domain.models import (
    STAGE_ORDER,
    ExtractedMetadata,
    FileDescriptor,
    JobClosedError,
    MintedToken,
    StageTransitionError,
    UploadJob,
    UploadOutcome,
    UploadStage,
)


def _job() -> UploadJob:
    return UploadJob(file=FileDescriptor.from_bytes("a.wav", "audio/wav", b"abc"))


def _advance_to(job: UploadJob, stage: UploadStage) -> None:
    for next_stage in STAGE_ORDER[1 : STAGE_ORDER.index(stage) + 1]:
        job.advance(next_stage)


def test_job_defaults() -> None:
    job = _job()

    assert job.stage is UploadStage.IDLE
    assert job.owner == "anonymous"
    assert job.progress == 0
    assert job.job_id


def test_job_advances_through_every_stage_in_order() -> None:
    job = _job()

    _advance_to(job, UploadStage.ATTRIBUTING)
    job.complete(MintedToken(token_id="t", transaction_ref="tx", network="net"))

    assert job.stage is UploadStage.COMPLETED
    assert job.progress == 100


def test_job_rejects_skipped_stage() -> None:
    job = _job()
    job.advance(UploadStage.VALIDATING)

    with pytest.raises(StageTransitionError):
        job.advance(UploadStage.MERGING)


def test_job_rejects_repeated_stage() -> None:
    job = _job()
    job.advance(UploadStage.VALIDATING)

    with pytest.raises(StageTransitionError):
        job.advance(UploadStage.VALIDATING)


def test_only_validation_and_minting_can_fail() -> None:
    job = _job()
    _advance_to(job, UploadStage.STORING)

    with pytest.raises(StageTransitionError):
        job.fail("storage down")

    job.advance(UploadStage.TRANSCODING)
    job.advance(UploadStage.MINTING)
    job.fail("mint backend unavailable")

    assert job.stage is UploadStage.ERROR
    assert job.failed_stage is UploadStage.MINTING
    assert job.progress == 90


def test_terminal_job_is_immutable() -> None:
    job = _job()
    job.advance(UploadStage.VALIDATING)
    job.fail("file is empty")

    with pytest.raises(JobClosedError):
        job.record(title="late")
    with pytest.raises(JobClosedError):
        job.advance(UploadStage.EXTRACTING)
    with pytest.raises(JobClosedError):
        job.fail("again")


def test_outcome_from_failed_job_has_no_token() -> None:
    job = _job()
    _advance_to(job, UploadStage.MINTING)
    job.fail("minting failed")

    outcome = UploadOutcome.from_job(job)

    assert not outcome.succeeded
    assert outcome.stage is UploadStage.MINTING
    assert outcome.token_id is None
    assert outcome.as_dict() == {
        "success": False,
        "job_id": job.job_id,
        "stage": "minting",
        "outcome": "error",
        "error": "minting failed",
    }


def test_extracted_metadata_as_dict_omits_missing_fields() -> None:
    metadata = ExtractedMetadata(title="Y", duration=180.0)

    assert metadata.as_dict() == {"title": "Y", "duration": 180.0}
