"""Error taxonomy for an assessment run.

Every error carries the domain it concerns and, where known, how long the
run had been going when it failed. Only `CacheError` is recovered inside
the core; everything else aborts the run.
"""

from __future__ import annotations


class AssessmentError(Exception):
    """Base class for every failure surfaced by the orchestration engine."""

    def __init__(
        self,
        message: str,
        *,
        domain: str | None = None,
        elapsed_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.domain = domain
        self.elapsed_seconds = elapsed_seconds

    def __str__(self) -> str:
        parts = [self.message]
        if self.domain:
            parts.append(f"domain={self.domain}")
        if self.elapsed_seconds is not None:
            parts.append(f"elapsed={self.elapsed_seconds:.1f}s")
        if len(parts) == 1:
            return self.message
        return f"{parts[0]} ({', '.join(parts[1:])})"


class DomainValidationError(AssessmentError):
    """Malformed or oversized domain. Raised before any network call."""


class CapacityExceededError(AssessmentError):
    def __init__(self, *, current: int, maximum: int, domain: str | None = None) -> None:
        super().__init__(
            f"concurrent assessment limit reached ({current}/{maximum})",
            domain=domain,
        )
        self.current = current
        self.maximum = maximum


class TransportError(AssessmentError):
    """Network, HTTP or decoding failure talking to the assessment service."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        domain: str | None = None,
    ) -> None:
        super().__init__(message, domain=domain)
        self.status_code = status_code


class InvalidRequestError(TransportError):
    """HTTP 400: the service rejected the request parameters."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        domain: str | None = None,
    ) -> None:
        super().__init__(message, status_code=400, domain=domain)
        self.field = field


class RateLimitedError(TransportError):
    """HTTP 429: too many requests from this client."""


class ServerError(TransportError):
    """HTTP 500: internal error on the service side."""


class ServiceUnavailableError(TransportError):
    """HTTP 503: service down for maintenance."""


class ServiceOverloadedError(TransportError):
    """HTTP 529: service overloaded, try later."""


class UnexpectedStatusError(TransportError):
    """Any other non-200 status."""


class ResponseDecodeError(TransportError):
    """Body was not valid JSON or did not match the expected schema."""


class RemoteJobError(AssessmentError):
    """The remote job reached the terminal ERROR state."""

    def __init__(
        self,
        status_message: str,
        *,
        domain: str | None = None,
        elapsed_seconds: float | None = None,
    ) -> None:
        super().__init__(
            f"assessment finished with error: {status_message or 'unknown error'}",
            domain=domain,
            elapsed_seconds=elapsed_seconds,
        )
        self.status_message = status_message


class AnalysisTimeoutError(AssessmentError):
    def __init__(self, *, elapsed_seconds: float, max_wait: float, domain: str | None = None) -> None:
        super().__init__(
            f"maximum wait time exceeded ({max_wait:.0f}s)",
            domain=domain,
            elapsed_seconds=elapsed_seconds,
        )
        self.max_wait = max_wait


class AnalysisCancelledError(AssessmentError):
    """Cancellation was signalled while waiting between polls."""


class CacheError(AssessmentError):
    """Local cache could not be read or written. Never fatal."""
