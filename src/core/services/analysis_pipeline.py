"""Assessment orchestration.

Validator -> capacity gate -> start job -> terminal check -> cache lookup ->
adaptive poller. The CLI delegates the whole flow here and only plugs in UI
callbacks through `PipelineHooks`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from core.config import PollingPolicy
from core.domain.errors import CacheError
from core.domain.models import AnalysisStatus, EndpointProgress, Host, ServiceInfo
from core.interfaces.assessment import AssessmentService, ResultCache
from core.services.capacity import ensure_capacity
from core.services.lifecycle import parse_status
from core.services.poller import AdaptivePoller
from core.services.validation import validate_domain

logger = logging.getLogger(__name__)


class ResultSource(str, Enum):
    REMOTE = "remote"
    CACHE = "cache"


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, warnings, status)."""

    progress: Callable[[EndpointProgress], None] | None = None
    warning: Callable[[str], None] | None = None
    status_changed: Callable[[AnalysisStatus, Host], None] | None = None
    started: Callable[[Host], None] | None = None


@dataclass
class AnalysisOutcome:
    """Terminal host plus where it came from."""

    host: Host
    source: ResultSource = ResultSource.REMOTE
    elapsed_seconds: float = 0.0
    warnings: list[str] = field(default_factory=list)


class _HookReporter:
    def __init__(self, callback: Callable[[EndpointProgress], None]) -> None:
        self._callback = callback

    def report(self, progress: EndpointProgress) -> None:
        self._callback(progress)


def _load_cached(cache: ResultCache, domain: str, warnings: list[str]) -> Host | None:
    if not cache.exists(domain):
        return None
    try:
        cached = cache.load(domain)
    except CacheError as exc:
        logger.info("Ignoring unusable cache entry for %s: %s", domain, exc)
        warnings.append(f"Cached result for {domain} is unusable: {exc}")
        return None
    # Interrupted runs leave DNS/IN_PROGRESS snapshots behind.
    status = parse_status(cached.status, domain=domain)
    if not status.is_terminal:
        logger.info("Ignoring unfinished cache entry for %s (status %s)", domain, status.value)
        warnings.append(f"Cached result for {domain} is unfinished ({status.value}), polling instead")
        return None
    return cached


async def run_analysis(
    *,
    domain: str,
    service: AssessmentService,
    cache: ResultCache | None = None,
    policy: PollingPolicy | None = None,
    cancel_event: asyncio.Event | None = None,
    hooks: PipelineHooks | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> AnalysisOutcome:
    """Run one assessment to a terminal state.

    A job that is already terminal when started is returned as-is (READY or
    ERROR) so callers can render it. ERROR reached while polling raises
    `RemoteJobError`.
    """

    hooks = hooks or PipelineHooks()
    warnings: list[str] = []

    request = validate_domain(domain)
    domain = request.domain
    started_at = clock()

    info = await service.get_info()
    ensure_capacity(info, domain=domain)

    host = await service.start_analysis(domain)
    if hooks.started:
        hooks.started(host)

    status = parse_status(host.status, domain=domain)
    if status.is_terminal:
        return AnalysisOutcome(
            host=host,
            source=ResultSource.REMOTE,
            elapsed_seconds=clock() - started_at,
            warnings=warnings,
        )

    if cache is not None:
        cached = _load_cached(cache, domain, warnings)
        if cached is not None:
            logger.info("Using cached result for %s", domain)
            return AnalysisOutcome(
                host=cached,
                source=ResultSource.CACHE,
                elapsed_seconds=clock() - started_at,
                warnings=warnings,
            )

    if warnings and hooks.warning:
        for message in warnings:
            hooks.warning(message)

    poller = AdaptivePoller(
        service,
        cache,
        policy,
        cancel_event=cancel_event,
        reporter=_HookReporter(hooks.progress) if hooks.progress else None,
        on_status=hooks.status_changed,
        clock=clock,
    )
    final = await poller.poll(domain, host, started_at=started_at)
    return AnalysisOutcome(
        host=final,
        source=ResultSource.REMOTE,
        elapsed_seconds=clock() - started_at,
        warnings=warnings,
    )


async def fetch_service_info(service: AssessmentService) -> ServiceInfo:
    return await service.get_info()
