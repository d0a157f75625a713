"""Error types shared by the store, the extraction engine and the API layer."""

from __future__ import annotations


class LLMFetchError(Exception):
    """Base class for errors raised by llmfetch."""


class ValidationError(LLMFetchError):
    """Caller input was rejected before anything was written."""


class JobNotFound(LLMFetchError):
    def __init__(self, job_id: int) -> None:
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class GenerationFailure(LLMFetchError):
    """The text-generation backend errored or returned nothing usable."""


class FetchError(LLMFetchError):
    """Downloading the page to extract from failed."""


class StructuralIntegrityError(RuntimeError):
    """An unsanitized string reached a structural SQL position.

    This is a programming fault, not a recoverable condition; never catch it.
    """
