import asyncio
import logging

import pytest

from conftest import FakeClock, FakeService, MemoryCache, make_host
from core.config import PollingPolicy
from core.domain.errors import (
    AnalysisCancelledError,
    AnalysisTimeoutError,
    RateLimitedError,
    RemoteJobError,
)
from core.domain.models import Endpoint
from core.services.poller import AdaptivePoller

POLICY = PollingPolicy(initial_interval=5, running_interval=10, max_wait=900)


def _recording_wait(poller, clock: FakeClock, intervals: list[float]):
    async def fake_wait(interval, *, domain, start):
        poller._check_cancelled(domain, start)
        intervals.append(interval)
        clock.advance(interval)

    return fake_wait


class ListReporter:
    def __init__(self):
        self.items = []

    def report(self, progress):
        self.items.append(progress)


def test_interval_sequence_follows_reported_states(monkeypatch, clock):
    service = FakeService(
        start=make_host("DNS"),
        statuses=[make_host("DNS"), make_host("IN_PROGRESS"), make_host("IN_PROGRESS"), make_host("READY")],
    )
    cache = MemoryCache()
    poller = AdaptivePoller(service, cache, POLICY, clock=clock)
    intervals: list[float] = []
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, intervals))

    result = asyncio.run(poller.poll("sub.example.com", make_host("DNS")))

    assert result.status == "READY"
    assert service.count("check_status") == 4
    # First wait precedes the first call; the rest sit between calls.
    assert intervals == [5, 5, 10, 10]
    assert intervals[1:] == [POLICY.initial_interval, POLICY.running_interval, POLICY.running_interval]


def test_terminal_initial_state_returns_without_polling(clock):
    service = FakeService(start=make_host("READY"))
    host = make_host("READY")

    result = asyncio.run(AdaptivePoller(service, MemoryCache(), POLICY, clock=clock).poll("sub.example.com", host))

    assert result is host
    assert service.count("check_status") == 0


def test_every_successful_poll_is_cached(monkeypatch, clock):
    service = FakeService(
        start=make_host("DNS"),
        statuses=[make_host("IN_PROGRESS"), make_host("READY")],
    )
    cache = MemoryCache()
    poller = AdaptivePoller(service, cache, POLICY, clock=clock)
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, []))

    asyncio.run(poller.poll("sub.example.com", make_host("DNS")))

    assert cache.operations == [("save", "sub.example.com"), ("save", "sub.example.com")]
    assert cache.entries["sub.example.com"].status == "READY"


def test_cache_write_failure_does_not_abort(monkeypatch, clock, caplog):
    service = FakeService(
        start=make_host("DNS"),
        statuses=[make_host("IN_PROGRESS"), make_host("IN_PROGRESS"), make_host("READY")],
    )
    poller = AdaptivePoller(service, MemoryCache(fail_writes=True), POLICY, clock=clock)
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, []))

    with caplog.at_level(logging.WARNING, logger="core.services.poller"):
        result = asyncio.run(poller.poll("sub.example.com", make_host("DNS")))

    assert result.status == "READY"
    assert service.count("check_status") == 3
    assert "Could not write local cache" in caplog.text


def test_timeout_while_still_in_progress(monkeypatch):
    clock = FakeClock()
    service = FakeService(
        start=make_host("IN_PROGRESS"),
        statuses=[make_host("IN_PROGRESS") for _ in range(10)],
    )
    policy = PollingPolicy(initial_interval=400, running_interval=400, max_wait=900)
    poller = AdaptivePoller(service, MemoryCache(), policy, clock=clock)
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, []))

    with pytest.raises(AnalysisTimeoutError) as excinfo:
        asyncio.run(poller.poll("sub.example.com", make_host("IN_PROGRESS")))

    assert service.count("check_status") == 2
    assert excinfo.value.elapsed_seconds == pytest.approx(1200)
    assert excinfo.value.max_wait == 900


def test_slow_response_past_budget_is_not_interpreted(monkeypatch):
    clock = FakeClock()

    class SlowService(FakeService):
        async def check_status(self, domain):
            clock.advance(1000)
            return await super().check_status(domain)

    service = SlowService(start=make_host("DNS"), statuses=[make_host("READY")])
    poller = AdaptivePoller(service, MemoryCache(), POLICY, clock=clock)
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, []))

    with pytest.raises(AnalysisTimeoutError):
        asyncio.run(poller.poll("sub.example.com", make_host("DNS")))


def test_cancellation_during_wait_stops_polling():
    service = FakeService(start=make_host("DNS"), statuses=[make_host("READY")])

    async def scenario():
        cancel = asyncio.Event()
        poller = AdaptivePoller(service, MemoryCache(), POLICY, cancel_event=cancel)
        asyncio.get_running_loop().call_later(0.01, cancel.set)
        # The 5s interval must be cut short by the event.
        return await asyncio.wait_for(poller.poll("sub.example.com", make_host("DNS")), timeout=2)

    with pytest.raises(AnalysisCancelledError):
        asyncio.run(scenario())

    assert service.count("check_status") == 0


def test_cancellation_between_polls_issues_no_more_checks():
    fast = PollingPolicy(initial_interval=0.001, running_interval=0.001, max_wait=60)

    async def scenario():
        cancel = asyncio.Event()

        class CancellingService(FakeService):
            async def check_status(self, domain):
                host = await super().check_status(domain)
                cancel.set()
                return host

        service = CancellingService(
            start=make_host("DNS"),
            statuses=[make_host("IN_PROGRESS"), make_host("READY")],
        )
        poller = AdaptivePoller(service, MemoryCache(), fast, cancel_event=cancel)
        try:
            await poller.poll("sub.example.com", make_host("DNS"))
        finally:
            assert service.count("check_status") == 1

    with pytest.raises(AnalysisCancelledError):
        asyncio.run(scenario())


def test_remote_error_state_fails_with_message(monkeypatch, clock):
    service = FakeService(
        start=make_host("DNS"),
        statuses=[make_host("ERROR", status_message="Unable to connect to the server")],
    )
    poller = AdaptivePoller(service, MemoryCache(), POLICY, clock=clock)
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, []))

    with pytest.raises(RemoteJobError, match="Unable to connect to the server"):
        asyncio.run(poller.poll("sub.example.com", make_host("DNS")))


def test_transport_error_aborts_without_retry(monkeypatch, clock):
    service = FakeService(
        start=make_host("DNS"),
        statuses=[RateLimitedError("rate limit", status_code=429), make_host("READY")],
    )
    cache = MemoryCache()
    poller = AdaptivePoller(service, cache, POLICY, clock=clock)
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, []))

    with pytest.raises(RateLimitedError):
        asyncio.run(poller.poll("sub.example.com", make_host("DNS")))

    assert service.count("check_status") == 1
    assert cache.operations == []


def test_progress_reported_only_for_in_progress_endpoints(monkeypatch, clock):
    endpoints = [
        Endpoint(ip_address="10.0.0.1", progress=42, status_details_message="Testing protocols"),
        Endpoint(ip_address="10.0.0.2", progress=-1, status_details_message="Pending"),
    ]
    service = FakeService(
        start=make_host("DNS"),
        statuses=[
            make_host("DNS", endpoints=endpoints),
            make_host("IN_PROGRESS", endpoints=endpoints),
            make_host("READY", endpoints=endpoints),
        ],
    )
    reporter = ListReporter()
    poller = AdaptivePoller(service, MemoryCache(), POLICY, reporter=reporter, clock=clock)
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, []))

    asyncio.run(poller.poll("sub.example.com", make_host("DNS")))

    assert [(p.ip_address, p.progress, p.status_details_message) for p in reporter.items] == [
        ("10.0.0.1", 42, "Testing protocols")
    ]


def test_failing_reporter_is_ignored(monkeypatch, clock):
    class BrokenReporter:
        def report(self, progress):
            raise OSError("stdout closed")

    service = FakeService(
        start=make_host("DNS"),
        statuses=[
            make_host("IN_PROGRESS", endpoints=[Endpoint(ip_address="10.0.0.1", progress=10)]),
            make_host("READY"),
        ],
    )
    poller = AdaptivePoller(service, MemoryCache(), POLICY, reporter=BrokenReporter(), clock=clock)
    monkeypatch.setattr(poller, "_wait", _recording_wait(poller, clock, []))

    assert asyncio.run(poller.poll("sub.example.com", make_host("DNS"))).status == "READY"
