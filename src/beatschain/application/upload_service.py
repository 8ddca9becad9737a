"""Application service orchestrating the upload-to-mint use case."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from beatschain.application.ports import EventPublisher, NullEventPublisher, ProviderError, UploadClients
from beatschain.application.upload_record_repository import UploadRecordRepository
from beatschain.domain.events import StageFallbackApplied, UploadCompleted, UploadFailed, UploadProgressed
from beatschain.domain.models import (
    ExtractedMetadata,
    FileDescriptor,
    MetadataValue,
    MintedToken,
    StorageResult,
    StreamAsset,
    UploadJob,
    UploadOutcome,
    UploadRecord,
    UploadStage,
)
from beatschain.domain.policies import ANONYMOUS_OWNER, DEFAULT_INGEST_POLICY, IngestPolicy
from beatschain.domain.services import build_token_attributes, fallback_identifier, merge_metadata
from beatschain.ingest_validation import IngestValidationError, normalize_content_type, validate_file_descriptor
from beatschain.metadata_extraction import extract_metadata

logger = logging.getLogger(__name__)

UPLOAD_START_EVENT = "upload_start"
UPLOAD_FAILED_EVENT = "upload_failed"


@dataclass(slots=True)
class OrchestrateUpload:
    """Drive one upload through validation, storage, transcoding and minting.

    Validation and minting failures end the job in the error state. Every
    other stage absorbs provider failures by substituting a placeholder and
    the job carries on. When ``records`` is set, a snapshot of the job is
    saved at every stage transition.
    """

    clients: UploadClients
    ingest_policy: IngestPolicy = DEFAULT_INGEST_POLICY
    event_publisher: EventPublisher = NullEventPublisher()
    estimate_tempo: bool = True
    records: UploadRecordRepository | None = None

    async def run(
        self,
        file: FileDescriptor | None,
        user_metadata: Mapping[str, MetadataValue] | None = None,
        *,
        owner: str | None = None,
        correlation_id: str | None = None,
    ) -> UploadOutcome:
        job = UploadJob(file=file, owner=owner or ANONYMOUS_OWNER)
        run_correlation_id = correlation_id or job.job_id

        await self._enter(job, UploadStage.VALIDATING, run_correlation_id)
        try:
            validated = validate_file_descriptor(file, self.ingest_policy)
        except IngestValidationError as error:
            return await self._fail(job, error.message, run_correlation_id, code=error.code)

        await self._enter(job, UploadStage.EXTRACTING, run_correlation_id)
        extracted = await self._extract(validated)

        await self._enter(job, UploadStage.MERGING, run_correlation_id)
        job.replace_metadata(merge_metadata(extracted.as_dict(), user_metadata or {}))

        await self._enter(job, UploadStage.NOTIFYING, run_correlation_id)
        job.attribution_id = await self._notify(job, run_correlation_id)

        await self._enter(job, UploadStage.STORING, run_correlation_id)
        job.storage = await self._store(job, validated, run_correlation_id)
        job.record(storage_id=job.storage.content_id, storage_url=job.storage.url)

        await self._enter(job, UploadStage.TRANSCODING, run_correlation_id)
        job.stream = await self._transcode(job, run_correlation_id)
        job.record(playback_id=job.stream.playback_id, stream_asset_id=job.stream.asset_id)

        await self._enter(job, UploadStage.MINTING, run_correlation_id)
        token_metadata = build_token_attributes(
            job.metadata, job.storage, job.stream, normalize_content_type(validated.content_type)
        )
        job.metadata_document = await self._pin_token_metadata(job, token_metadata, run_correlation_id)
        job.record(metadata_uri=job.metadata_document.url)
        try:
            token = await self._mint(job, token_metadata)
        except ProviderError as error:
            outcome = await self._fail(job, f"minting failed: {error}", run_correlation_id, code="mint_failed")
            await self._report_failure(job)
            return outcome
        job.record(token_id=token.token_id, network=token.network)

        await self._enter(job, UploadStage.ATTRIBUTING, run_correlation_id)
        await self._complete_attribution(job, token)

        job.complete(token)
        await self._checkpoint(job, run_correlation_id)
        self.event_publisher.publish(
            UploadCompleted(
                correlation_id=run_correlation_id,
                payload_summary={
                    "job_id": job.job_id,
                    "token_id": token.token_id,
                    "network": token.network,
                    "storage_fallback": job.storage.fallback,
                    "stream_fallback": job.stream.fallback,
                    "metadata_fallback": job.metadata_document.fallback,
                },
            )
        )
        return UploadOutcome.from_job(job)

    async def _enter(self, job: UploadJob, stage: UploadStage, correlation_id: str) -> None:
        job.advance(stage)
        await self._checkpoint(job, correlation_id)

    async def _checkpoint(self, job: UploadJob, correlation_id: str) -> None:
        self._publish_progress(job, correlation_id)
        await self._save_record(job)

    async def _save_record(self, job: UploadJob) -> None:
        if self.records is None:
            return
        try:
            await self.records.save(UploadRecord.from_job(job))
        except ProviderError as error:
            logger.warning(
                "Upload record was not saved",
                extra={"job_id": job.job_id, "stage": job.stage.value, "error": str(error)},
            )

    def _publish_progress(self, job: UploadJob, correlation_id: str) -> None:
        logger.info(
            "Upload progress",
            extra={"job_id": job.job_id, "stage": job.stage.value, "progress": job.progress},
        )
        self.event_publisher.publish(
            UploadProgressed(
                correlation_id=correlation_id,
                payload_summary={"job_id": job.job_id, "stage": job.stage.value, "progress": job.progress},
            )
        )

    async def _fail(self, job: UploadJob, message: str, correlation_id: str, *, code: str) -> UploadOutcome:
        job.fail(message)
        logger.error(
            "Upload failed",
            extra={"job_id": job.job_id, "stage": job.failed_stage.value, "code": code, "error": message},
        )
        self.event_publisher.publish(
            UploadFailed(
                correlation_id=correlation_id,
                payload_summary={
                    "job_id": job.job_id,
                    "stage": job.failed_stage.value,
                    "code": code,
                    "error": message,
                },
            )
        )
        await self._save_record(job)
        return UploadOutcome.from_job(job)

    def _fallback(self, job: UploadJob, error: ProviderError, correlation_id: str, placeholder: str) -> None:
        logger.warning(
            "Stage failed; continuing with placeholder",
            extra={"job_id": job.job_id, "stage": job.stage.value, "error": str(error), "placeholder": placeholder},
        )
        self.event_publisher.publish(
            StageFallbackApplied(
                correlation_id=correlation_id,
                payload_summary={
                    "job_id": job.job_id,
                    "stage": job.stage.value,
                    "provider": error.provider,
                    "error": str(error),
                    "placeholder": placeholder,
                },
            )
        )

    async def _extract(self, file: FileDescriptor) -> ExtractedMetadata:
        # Header parsing and tempo estimation are CPU bound.
        return await asyncio.to_thread(extract_metadata, file, estimate_tempo=self.estimate_tempo)

    async def _notify(self, job: UploadJob, correlation_id: str) -> str | None:
        try:
            return await self.clients.attribution.notify(UPLOAD_START_EVENT, job.owner, job.metadata)
        except ProviderError as error:
            logger.warning(
                "Campaign notification failed",
                extra={"job_id": job.job_id, "correlation_id": correlation_id, "error": str(error)},
            )
            return None

    async def _store(self, job: UploadJob, file: FileDescriptor, correlation_id: str) -> StorageResult:
        try:
            return await self.clients.storage.store(file, job.metadata)
        except ProviderError as error:
            placeholder = StorageResult(
                content_id=fallback_identifier(),
                url=f"blob:local/{job.job_id}/{file.name}",
                fallback=True,
            )
            self._fallback(job, error, correlation_id, placeholder.content_id)
            return placeholder

    async def _transcode(self, job: UploadJob, correlation_id: str) -> StreamAsset:
        title = job.metadata.get("title") or (job.file.name if job.file else job.job_id)
        try:
            return await self.clients.transcode.request_transcode(job.storage.url, f"BeatsChain Asset {title}")
        except ProviderError as error:
            placeholder = StreamAsset(
                asset_id=fallback_identifier("asset"),
                playback_id=fallback_identifier("playback"),
                fallback=True,
            )
            self._fallback(job, error, correlation_id, placeholder.playback_id)
            return placeholder

    async def _pin_token_metadata(
        self, job: UploadJob, token_metadata: Mapping[str, Any], correlation_id: str
    ) -> StorageResult:
        try:
            return await self.clients.storage.store_document(f"{job.job_id}-metadata.json", token_metadata)
        except ProviderError as error:
            placeholder = StorageResult(
                content_id=fallback_identifier("metadata"),
                url=f"blob:local/{job.job_id}/metadata.json",
                fallback=True,
            )
            self._fallback(job, error, correlation_id, placeholder.content_id)
            return placeholder

    async def _mint(self, job: UploadJob, token_metadata: Mapping[str, Any]) -> MintedToken:
        document = job.metadata_document
        token_uri = document.url if document is not None and not document.fallback else None
        return await self.clients.mint.mint(job.owner, token_metadata, token_uri=token_uri)

    async def _complete_attribution(self, job: UploadJob, token: MintedToken) -> None:
        if not job.attribution_id:
            return
        try:
            await self.clients.attribution.track_revenue(job.attribution_id, token.token_id)
        except ProviderError as error:
            logger.warning(
                "Campaign attribution failed",
                extra={"job_id": job.job_id, "attribution_id": job.attribution_id, "error": str(error)},
            )

    async def _report_failure(self, job: UploadJob) -> None:
        if not job.attribution_id:
            return
        try:
            await self.clients.attribution.track_event(UPLOAD_FAILED_EVENT, job.attribution_id, job.error_message or "")
        except ProviderError as error:
            logger.warning(
                "Failed upload tracking failed",
                extra={"job_id": job.job_id, "attribution_id": job.attribution_id, "error": str(error)},
            )
