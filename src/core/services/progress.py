"""Best-effort progress reporting while a job is IN_PROGRESS."""

from __future__ import annotations

import logging

from core.domain.models import EndpointProgress, Host
from core.interfaces.assessment import ProgressReporter

logger = logging.getLogger(__name__)


def collect_progress(host: Host) -> list[EndpointProgress]:
    """Endpoints with a known (non-negative) progress value, in order."""

    return [
        EndpointProgress(
            ip_address=endpoint.ip_address,
            progress=endpoint.progress,
            status_details_message=endpoint.status_details_message,
        )
        for endpoint in host.endpoints
        if endpoint.progress >= 0
    ]


def report_progress(host: Host, reporter: ProgressReporter | None) -> None:
    if reporter is None:
        return
    for item in collect_progress(host):
        try:
            reporter.report(item)
        except Exception:  # noqa: BLE001
            logger.debug("Progress reporter failed for %s", item.ip_address, exc_info=True)
