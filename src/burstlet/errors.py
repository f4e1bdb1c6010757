"""Error taxonomy shared by the API, the worker and the client."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Machine-readable error codes returned in API error bodies."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    UNSUPPORTED_FEATURE = "UNSUPPORTED_FEATURE"
    INVALID_CONFIG = "INVALID_CONFIG"
    NETWORK_ERROR = "NETWORK_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    POLLING_ABORTED = "POLLING_ABORTED"


class GenerationError(Exception):
    """Base class for every error surfaced to a Burstlet caller."""

    code: ErrorCode = ErrorCode.PROVIDER_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    @property
    def retryable(self) -> bool:
        """Whether repeating the same call unchanged may succeed."""
        return False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the API error body."""
        body: dict[str, Any] = {"error": self.message, "code": str(self.code)}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidRequestError(GenerationError):
    """Malformed client input, rejected before any network call."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 422


class ConfigurationError(GenerationError):
    """A required credential or setting is missing."""

    code = ErrorCode.INVALID_CONFIG
    status_code = 503


class UnsupportedFeatureError(GenerationError):
    """A capability was invoked on an adapter that does not declare it."""

    code = ErrorCode.UNSUPPORTED_FEATURE
    status_code = 501


class ProviderError(GenerationError):
    """A vendor API answered with a non-success status or an error payload."""

    code = ErrorCode.PROVIDER_ERROR
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        payload: Any = None,
        status_code: int | None = None,
        code: ErrorCode | None = None,
    ) -> None:
        super().__init__(message, code=code, status_code=status_code, details=payload)
        self.provider = provider
        self.payload = payload

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500 or self.status_code == 429

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["provider"] = self.provider
        return body


class TransportError(GenerationError):
    """Connectivity failure talking to a vendor or to the Burstlet API."""

    code = ErrorCode.NETWORK_ERROR
    status_code = 503

    def __init__(self, message: str, *, provider: str, details: Any = None) -> None:
        super().__init__(message, details=details)
        self.provider = provider

    @property
    def retryable(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["provider"] = self.provider
        return body


class JobNotFoundError(GenerationError):
    """No generation job with the requested id."""

    code = ErrorCode.NOT_FOUND
    status_code = 404


class InvalidTransitionError(GenerationError):
    """A job status write that would not move the job forward."""

    code = ErrorCode.INVALID_TRANSITION
    status_code = 409


class QuotaExceededError(GenerationError):
    """The caller's plan does not allow another generation this period."""

    code = ErrorCode.QUOTA_EXCEEDED
    status_code = 429


class PollingAbortedError(GenerationError):
    """The poller gave up after its configured number of consecutive failures."""

    code = ErrorCode.POLLING_ABORTED
    status_code = 503


def error_from_response(status_code: int, body: Any, *, provider: str) -> GenerationError:
    """Rebuild a typed error from an API error body.

    Used by the client so a backend rejection surfaces with the same type the
    backend raised.
    """
    message = f"HTTP {status_code}"
    code: str | None = None
    details: Any = None
    if isinstance(body, dict):
        message = str(body.get("error") or body.get("detail") or message)
        code = body.get("code")
        details = body.get("details")
        provider = body.get("provider") or provider

    by_code: dict[str, type[GenerationError]] = {
        ErrorCode.VALIDATION_ERROR: InvalidRequestError,
        ErrorCode.INVALID_CONFIG: ConfigurationError,
        ErrorCode.UNSUPPORTED_FEATURE: UnsupportedFeatureError,
        ErrorCode.NOT_FOUND: JobNotFoundError,
        ErrorCode.INVALID_TRANSITION: InvalidTransitionError,
        ErrorCode.QUOTA_EXCEEDED: QuotaExceededError,
    }
    if code in by_code:
        return by_code[code](message, status_code=status_code, details=details)
    if status_code == 422:
        return InvalidRequestError(message, details=body)
    if status_code == 404:
        return JobNotFoundError(message)
    return ProviderError(message, provider=provider, payload=body, status_code=status_code)
