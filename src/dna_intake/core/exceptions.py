from __future__ import annotations


class IntakeError(Exception):
    """Base class for errors raised by the ingestion pipeline."""


class RecordValidationError(IntakeError, ValueError):
    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}")
        self.field = field
        self.reason = reason


class FileValidationError(IntakeError):
    """The file was rejected before parsing; the message is user-facing."""


class NoVariantsError(FileValidationError):
    pass


class SubmissionError(IntakeError):
    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        if retryable is None:
            retryable = "timeout" in message.lower()
        self.retryable = retryable


class UploadError(IntakeError):
    """A batch failed for good. The message names the chunk and batch."""

    def __init__(
        self,
        message: str,
        *,
        chunk_index: int,
        total_chunks: int,
        batch_index: int,
        total_batches: int,
        variants_saved: int,
        cleaned_up: bool,
    ) -> None:
        super().__init__(message)
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.variants_saved = variants_saved
        self.cleaned_up = cleaned_up


class PartialUploadError(UploadError):
    """Earlier chunks are stored and were not removed; a full re-upload is needed."""
