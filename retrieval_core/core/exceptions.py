"""
Exception hierarchy for the retrieval core.

Errors are grouped by how the pipeline reacts to them: configuration errors
surface at construction, transient provider errors are retried with
credential rotation, permanent input errors fail a document immediately,
and query path errors degrade that path to empty.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the retrieval core
"""

from typing import Any


def _context(details: dict[str, Any] | None, **fields: Any) -> dict[str, Any]:
    """Copy ``details`` and add the fields that are set."""
    merged = dict(details or {})
    merged.update({key: value for key, value in fields.items() if value is not None})
    return merged


class RetrievalCoreError(Exception):
    """
    Base exception for all retrieval core errors.

    Attributes:
        message: Human-readable message
        details: Context copied into logs and ingestion reports
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} | Details: {self.details}"


class ConfigurationError(RetrievalCoreError):
    """Raised at construction time when settings are inconsistent."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, _context(details, setting=setting))


class TransientProviderError(RetrievalCoreError):
    """Timeout, transient network failure or 5xx from an external service."""


class RateLimitError(TransientProviderError):
    """
    Provider throttling.

    ``retry_after`` is the provider-suggested cooldown in seconds, or None
    when the provider gave no hint and the rotator default applies.
    """

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, _context(details, retry_after=retry_after))


class PermanentInputError(RetrievalCoreError):
    """Empty or unembeddable content. Never retried."""

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, _context(details, document_id=document_id))


class PersistenceError(RetrievalCoreError):
    """A vector-store, linkage or metadata-store write failed."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, _context(details, operation=operation))


class RetrievalPathError(RetrievalCoreError):
    """One retrieval path (semantic, keyword, metadata) failed or timed out."""

    def __init__(
        self,
        path: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.path = path
        super().__init__(message, _context(details, path=path))


class AllRetrievalPathsFailedError(RetrievalCoreError):
    """Every retrieval path failed; raised only in strict mode."""


class ExecutionCancelledError(RetrievalCoreError):
    """A unit of work was skipped because its run was cancelled."""
