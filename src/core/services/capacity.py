"""Service capacity gate, checked once before a job is started."""

from __future__ import annotations

from core.domain.errors import CapacityExceededError
from core.domain.models import ServiceInfo


def ensure_capacity(info: ServiceInfo, *, domain: str | None = None) -> None:
    """Raise `CapacityExceededError` when the service is at its quota.

    Advisory only: the remote side enforces its own limit too, and a lost
    race shows up as a normal start failure.
    """

    if not info.has_capacity():
        raise CapacityExceededError(
            current=info.current_assessments,
            maximum=info.max_assessments,
            domain=domain,
        )
