"""Exception hierarchy for the provider orchestration layer.

Every recoverable failure raised to a caller is an ``AdCreatorError``:

    AdCreatorError
    ├── ConfigurationError          provider has no stored credential
    ├── ValidationError             bad credential format / bad import blob
    ├── PersistenceError            settings could not be written to storage
    ├── ProviderNotImplementedError provider is declared but has no backend
    ├── ProviderError               HTTP / SDK failure at the provider
    │   ├── JobFailedError          provider reported the job as failed
    │   └── JobTimeoutError         poll attempts exhausted
    ├── JobCancelledError           caller cancelled a poll loop
    ├── ResourceError               microphone / playback device failure
    └── RecorderStateError          recorder operation invalid in current state

``UnknownProviderError`` is deliberately *not* part of the hierarchy: an
identifier outside the registry is a programming error.
"""

from __future__ import annotations


class AdCreatorError(Exception):
    """Base exception for all recoverable orchestration errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(AdCreatorError):
    """Raised when the requested provider has no credential configured."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class ValidationError(AdCreatorError):
    """Raised when a credential or an import blob fails validation."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class PersistenceError(AdCreatorError):
    """Raised when the settings snapshot could not be written to storage."""


class ProviderNotImplementedError(AdCreatorError):
    """Raised when a registered placeholder provider is invoked."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class ProviderError(AdCreatorError):
    """Raised when an external provider (AI API) fails."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.original_error = original_error


class JobFailedError(ProviderError):
    """Raised when a long-running job ends in a failed state."""

    def __init__(self, message: str, job_id: str | None = None, provider: str | None = None):
        super().__init__(message, provider=provider)
        self.job_id = job_id


class JobTimeoutError(ProviderError):
    """Raised when a job never reached a terminal state within its attempt budget."""

    def __init__(
        self,
        message: str,
        job_id: str | None = None,
        attempts: int = 0,
        provider: str | None = None,
    ):
        super().__init__(message, provider=provider)
        self.job_id = job_id
        self.attempts = attempts


class JobCancelledError(AdCreatorError):
    """Raised when a caller cancels a poll loop before it finishes."""

    def __init__(self, message: str, job_id: str | None = None):
        super().__init__(message)
        self.job_id = job_id


class ResourceError(AdCreatorError):
    """Raised when an audio device cannot be acquired or used."""


class RecorderStateError(AdCreatorError):
    """Raised when a recorder operation is not valid in the current state."""


class UnknownProviderError(ValueError):
    """Raised when a provider identifier is not registered for a capability."""
