"""Adaptive poller.

Drives `check_status` until the remote job reaches a terminal state, with a
wall-clock budget and cooperative cancellation. Status checks are strictly
sequential: never more than one outstanding request per run.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from core.config import PollingPolicy
from core.domain.errors import AnalysisCancelledError, AnalysisTimeoutError, CacheError
from core.domain.models import AnalysisStatus, Host
from core.interfaces.assessment import AssessmentService, ProgressReporter, ResultCache
from core.services.lifecycle import next_interval, parse_status, resolve_terminal
from core.services.progress import report_progress

logger = logging.getLogger(__name__)


class AdaptivePoller:
    """Polls one domain until READY/ERROR, timeout or cancellation."""

    def __init__(
        self,
        service: AssessmentService,
        cache: ResultCache | None = None,
        policy: PollingPolicy | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        reporter: ProgressReporter | None = None,
        on_status: Callable[[AnalysisStatus, Host], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._service = service
        self._cache = cache
        self._policy = policy or PollingPolicy()
        self._cancel_event = cancel_event or asyncio.Event()
        self._reporter = reporter
        self._on_status = on_status
        self._clock = clock

    @property
    def policy(self) -> PollingPolicy:
        return self._policy

    async def poll(
        self,
        domain: str,
        initial_host: Host,
        *,
        started_at: float | None = None,
    ) -> Host:
        """Return the READY host or raise.

        `started_at` is a `clock()` reading for when the run began; the
        wait budget counts from there.
        """

        start = self._clock() if started_at is None else started_at
        status = parse_status(initial_host.status, domain=domain)
        if status.is_terminal:
            return resolve_terminal(initial_host, domain=domain, elapsed_seconds=0.0)

        interval = self._policy.initial_interval
        while True:
            await self._wait(interval, domain=domain, start=start)
            self._check_budget(domain, start)
            self._check_cancelled(domain, start)

            host = await self._service.check_status(domain)
            elapsed = self._clock() - start
            self._check_budget(domain, start)

            self._save(domain, host)

            status = parse_status(host.status, domain=domain)
            logger.debug("Poll %s -> %s after %.1fs", domain, status.value, elapsed)
            if self._on_status is not None:
                self._on_status(status, host)

            if status.is_terminal:
                return resolve_terminal(host, domain=domain, elapsed_seconds=elapsed)

            if status is AnalysisStatus.IN_PROGRESS:
                report_progress(host, self._reporter)
            interval = next_interval(status, interval, self._policy)

    async def _wait(self, interval: float, *, domain: str, start: float) -> None:
        """Sleep for `interval` unless cancellation is signalled first."""

        self._check_cancelled(domain, start)
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            return
        self._check_cancelled(domain, start)

    def _check_cancelled(self, domain: str, start: float) -> None:
        if self._cancel_event.is_set():
            elapsed = self._clock() - start
            logger.info("Assessment for %s cancelled after %.1fs", domain, elapsed)
            raise AnalysisCancelledError(
                "assessment cancelled",
                domain=domain,
                elapsed_seconds=elapsed,
            )

    def _check_budget(self, domain: str, start: float) -> None:
        elapsed = self._clock() - start
        if elapsed > self._policy.max_wait:
            logger.info("Assessment for %s timed out after %.1fs", domain, elapsed)
            raise AnalysisTimeoutError(
                elapsed_seconds=elapsed,
                max_wait=self._policy.max_wait,
                domain=domain,
            )

    def _save(self, domain: str, host: Host) -> None:
        if self._cache is None:
            return
        try:
            self._cache.save(domain, host)
        except CacheError as exc:
            logger.warning("Could not write local cache for %s: %s", domain, exc)
