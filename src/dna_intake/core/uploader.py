from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import Callable, Protocol, Sequence

import httpx
from pydantic import ValidationError
from tenacity import RetryCallState

from dna_intake.core.exceptions import PartialUploadError, SubmissionError, UploadError
from dna_intake.core.ingest import IngestionService
from dna_intake.core.models import IngestMetadata, IngestRequest, IngestResponse, RawVariant, UploadChunk, UploadSummary
from dna_intake.core.retry import RetryPolicy, Sleep
from dna_intake.core.settings import IntakeSettings
from dna_intake.core.utils import slices

DEFAULT_CHUNK_SIZE = 78_000
DEFAULT_BATCH_SIZE = 10_000

ChunkCallback = Callable[[int, int], None]
BatchCallback = Callable[[int, int, int, int], None]


class BatchSubmitter(Protocol):
    async def submit(self, request: IngestRequest) -> IngestResponse: ...

    async def cleanup(self, data_source: str) -> None: ...


def split_into_chunks(variants: Sequence[RawVariant], chunk_size: int) -> list[UploadChunk]:
    pieces = slices(variants, chunk_size)
    total = len(pieces)
    return [
        UploadChunk(variants=list(piece), chunk_index=index, total_chunks=total, is_last_chunk=index == total)
        for index, piece in enumerate(pieces, start=1)
    ]


def split_into_batches(variants: Sequence[RawVariant], batch_size: int) -> list[list[RawVariant]]:
    return [list(piece) for piece in slices(variants, batch_size)]


class HttpBatchSubmitter:
    """Posts batches to an ingestion endpoint over HTTP."""

    def __init__(self, client: httpx.AsyncClient, endpoint_url: str) -> None:
        self.client = client
        self.endpoint_url = endpoint_url

    @staticmethod
    def _payload(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _raise_for_error(self, response: httpx.Response) -> dict:
        payload = self._payload(response)
        if response.is_error:
            message = payload.get("error") or f"HTTP {response.status_code} {response.reason_phrase}"
            raise SubmissionError(str(message))
        return payload

    async def submit(self, request: IngestRequest) -> IngestResponse:
        try:
            response = await self.client.post(
                self.endpoint_url,
                json=request.model_dump(mode="json", by_alias=True),
            )
        except httpx.TimeoutException as exc:
            raise SubmissionError(f"Request timeout: {exc}", retryable=True) from exc
        except httpx.HTTPError as exc:
            raise SubmissionError(f"Request failed: {exc}", retryable=False) from exc

        payload = self._raise_for_error(response)
        if not payload:
            raise SubmissionError("Ingestion endpoint returned an unreadable response.", retryable=False)
        try:
            return IngestResponse.model_validate(payload)
        except ValidationError as exc:
            raise SubmissionError(
                f"Ingestion endpoint returned a malformed response: {exc.error_count()} validation errors",
                retryable=False,
            ) from exc

    async def cleanup(self, data_source: str) -> None:
        try:
            response = await self.client.delete(self.endpoint_url, params={"dataSource": data_source})
        except httpx.HTTPError as exc:
            raise SubmissionError(f"Cleanup request failed: {exc}") from exc
        self._raise_for_error(response)


class LocalBatchSubmitter:
    """Hands batches straight to an in-process ingestion service."""

    def __init__(self, service: IngestionService, user_id: str) -> None:
        self.service = service
        self.user_id = user_id

    async def submit(self, request: IngestRequest) -> IngestResponse:
        return self.service.handle(self.user_id, request)

    async def cleanup(self, data_source: str) -> None:
        try:
            self.service.delete_user_variants(self.user_id)
        except sqlite3.Error as exc:
            raise SubmissionError(f"Cleanup failed: {exc}", retryable=False) from exc


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logging.warning(
        "Batch submission attempt %s failed (%s); retrying in %.1fs.",
        retry_state.attempt_number,
        exc,
        wait,
    )


class UploadCoordinator:
    """Sends a raw variant list to the ingestion endpoint in chunks and batches.

    Chunks and the batches inside them are submitted one at a time, in order.
    The first batch of chunk 1 makes the endpoint drop the user's previous
    data, so nothing may overlap it. Each batch is retried according to
    ``retry_policy``. When a batch fails for good inside chunk 1 the batches
    already written for this upload are removed again; a failure in a later
    chunk leaves the earlier chunks in place and raises
    :class:`PartialUploadError`.
    """

    def __init__(
        self,
        submitter: BatchSubmitter,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        batch_size: int = DEFAULT_BATCH_SIZE,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        on_chunk_complete: ChunkCallback | None = None,
        on_batch_complete: BatchCallback | None = None,
    ) -> None:
        if chunk_size < 1 or batch_size < 1:
            raise ValueError("chunk_size and batch_size must be positive")
        self.submitter = submitter
        self.chunk_size = chunk_size
        self.batch_size = batch_size
        self.retry_policy = retry_policy or RetryPolicy.linear()
        self.sleep = sleep
        self.on_chunk_complete = on_chunk_complete
        self.on_batch_complete = on_batch_complete

    @classmethod
    def from_settings(cls, submitter: BatchSubmitter, settings: IntakeSettings, **kwargs) -> "UploadCoordinator":
        return cls(
            submitter,
            chunk_size=settings.chunk_size,
            batch_size=settings.batch_size,
            retry_policy=RetryPolicy.linear(settings.max_retries, settings.backoff_seconds),
            **kwargs,
        )

    async def _submit_with_retry(self, request: IngestRequest) -> IngestResponse:
        retrying = self.retry_policy.retrying(sleep=self.sleep, before_sleep=_log_retry)
        async for attempt in retrying:
            with attempt:
                response = await self.submitter.submit(request)
                if response.error:
                    raise SubmissionError(response.error)
        return response

    async def _cleanup(self, data_source: str) -> bool:
        try:
            await self.submitter.cleanup(data_source)
        except SubmissionError as exc:
            logging.error("Cleanup after failed upload did not complete: %s", exc)
            return False
        return True

    async def _failure(
        self,
        exc: SubmissionError,
        *,
        chunk: UploadChunk,
        batch_index: int,
        total_batches: int,
        variants_saved: int,
        total_variants: int,
        data_source: str,
    ) -> UploadError:
        location = f"chunk {chunk.chunk_index}/{chunk.total_chunks}, batch {batch_index}/{total_batches}"
        details = dict(
            chunk_index=chunk.chunk_index,
            total_chunks=chunk.total_chunks,
            batch_index=batch_index,
            total_batches=total_batches,
        )
        logging.error("Upload failed at %s: %s", location, exc)

        if chunk.chunk_index > 1:
            return PartialUploadError(
                f"Upload failed at {location}: {exc}. {variants_saved} of {total_variants} variants "
                "were saved before the failure and remain stored; the upload is incomplete, "
                "re-upload the full file to replace the partial data.",
                variants_saved=variants_saved,
                cleaned_up=False,
                **details,
            )

        if batch_index == 1:
            return UploadError(
                f"Upload failed at {location}: {exc}. No data from this upload was stored.",
                variants_saved=0,
                cleaned_up=False,
                **details,
            )

        cleaned_up = await self._cleanup(data_source)
        if cleaned_up:
            suffix = "Partially uploaded data was removed; please try the upload again."
        else:
            suffix = (
                f"{variants_saved} variants may remain stored because cleanup failed; "
                "re-upload the full file to replace them."
            )
        return UploadError(
            f"Upload failed at {location}: {exc}. {suffix}",
            variants_saved=0 if cleaned_up else variants_saved,
            cleaned_up=cleaned_up,
            **details,
        )

    async def upload(self, variants: Sequence[RawVariant], data_source: str) -> UploadSummary:
        if not variants:
            raise ValueError("No variants to upload.")

        total_variants = len(variants)
        chunks = split_into_chunks(variants, self.chunk_size)
        variants_saved = 0
        report_generated = False
        logging.info(
            "Uploading %s variants in %s chunks of up to %s (batches of %s).",
            total_variants,
            len(chunks),
            self.chunk_size,
            self.batch_size,
        )

        for chunk in chunks:
            batches = split_into_batches(chunk.variants, self.batch_size)
            for batch_index, batch in enumerate(batches, start=1):
                request = IngestRequest(
                    variants=batch,
                    metadata=IngestMetadata(
                        data_source=data_source,
                        total_variants=total_variants,
                        chunk_index=chunk.chunk_index,
                        total_chunks=chunk.total_chunks,
                        is_last_chunk=chunk.is_last_chunk,
                        batch_index=batch_index,
                        total_batches=len(batches),
                    ),
                )
                try:
                    response = await self._submit_with_retry(request)
                except SubmissionError as exc:
                    raise await self._failure(
                        exc,
                        chunk=chunk,
                        batch_index=batch_index,
                        total_batches=len(batches),
                        variants_saved=variants_saved,
                        total_variants=total_variants,
                        data_source=data_source,
                    ) from exc

                variants_saved += response.variants_saved
                report_generated = report_generated or response.report_generated
                if self.on_batch_complete:
                    self.on_batch_complete(chunk.chunk_index, chunk.total_chunks, batch_index, len(batches))

            logging.info(
                "Chunk %s/%s stored (%s of %s variants saved).",
                chunk.chunk_index,
                chunk.total_chunks,
                variants_saved,
                total_variants,
            )
            if self.on_chunk_complete:
                self.on_chunk_complete(chunk.chunk_index, chunk.total_chunks)

        return UploadSummary(
            total_variants=total_variants,
            variants_saved=variants_saved,
            report_generated=report_generated,
            total_chunks=len(chunks),
        )
