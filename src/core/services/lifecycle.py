"""Job lifecycle state machine.

Transitions come only from the status the remote service reports; nothing
here infers a state on its own.
"""

from __future__ import annotations

import logging

from core.config import PollingPolicy
from core.domain.errors import RemoteJobError
from core.domain.models import AnalysisStatus, Host

logger = logging.getLogger(__name__)


def parse_status(raw: str | None, *, domain: str | None = None) -> AnalysisStatus:
    """Map the remote status string to `AnalysisStatus`.

    Unknown values keep the run waiting (treated as IN_PROGRESS).
    """

    try:
        return AnalysisStatus((raw or "").strip().upper())
    except ValueError:
        logger.warning(
            "Unexpected assessment status %r for %s, treating it as IN_PROGRESS",
            raw,
            domain or "<unknown>",
        )
        return AnalysisStatus.IN_PROGRESS


def next_interval(status: AnalysisStatus, current: float, policy: PollingPolicy) -> float:
    """Cadence after observing `status`.

    DNS resets to the initial cadence; IN_PROGRESS escalates to the running
    cadence; terminal states keep the current value (the loop ends anyway).
    """

    if status is AnalysisStatus.DNS:
        return policy.initial_interval
    if status is AnalysisStatus.IN_PROGRESS:
        return max(current, policy.running_interval)
    return current


def resolve_terminal(
    host: Host,
    *,
    domain: str,
    elapsed_seconds: float | None = None,
) -> Host:
    """Return `host` for READY, raise `RemoteJobError` for ERROR."""

    status = parse_status(host.status, domain=domain)
    if status is AnalysisStatus.READY:
        return host
    if status is AnalysisStatus.ERROR:
        raise RemoteJobError(
            host.status_message,
            domain=domain,
            elapsed_seconds=elapsed_seconds,
        )
    raise ValueError(f"status {status.value} is not terminal")
