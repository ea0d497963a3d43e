from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pytest

from core.domain.errors import CacheError
from core.domain.models import Endpoint, Host, ServiceInfo


def make_host(
    status: str,
    *,
    domain: str = "sub.example.com",
    status_message: str = "",
    endpoints: Iterable[Endpoint] = (),
) -> Host:
    return Host(
        host=domain,
        port=443,
        protocol="http",
        status=status,
        status_message=status_message,
        endpoints=list(endpoints),
    )


class FakeService:
    """Scripted `AssessmentService`: returns queued hosts and records calls."""

    def __init__(
        self,
        *,
        start: Host,
        statuses: Iterable[Host | Exception] = (),
        info: ServiceInfo | None = None,
    ) -> None:
        self.info = info or ServiceInfo(max_assessments=25, current_assessments=0)
        self.start = start
        self.statuses = list(statuses)
        self.calls: list[tuple[str, str | None]] = []

    async def get_info(self) -> ServiceInfo:
        self.calls.append(("get_info", None))
        return self.info

    async def start_analysis(self, domain: str) -> Host:
        self.calls.append(("start_analysis", domain))
        return self.start

    async def check_status(self, domain: str) -> Host:
        self.calls.append(("check_status", domain))
        item = self.statuses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)


class MemoryCache:
    def __init__(self, entries: dict[str, Host] | None = None, *, fail_writes: bool = False) -> None:
        self.entries = dict(entries or {})
        self.fail_writes = fail_writes
        self.operations: list[tuple[str, str]] = []

    def exists(self, domain: str) -> bool:
        self.operations.append(("exists", domain))
        return domain in self.entries

    def load(self, domain: str) -> Host:
        self.operations.append(("load", domain))
        try:
            return self.entries[domain]
        except KeyError as exc:
            raise CacheError("missing", domain=domain) from exc

    def save(self, domain: str, host: Host) -> None:
        self.operations.append(("save", domain))
        if self.fail_writes:
            raise CacheError("disk full", domain=domain)
        self.entries[domain] = host


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ready_payload() -> dict[str, Any]:
    """A trimmed READY response as returned by /analyze?all=done."""

    return {
        "host": "sub.example.com",
        "port": 443,
        "protocol": "http",
        "isPublic": False,
        "status": "READY",
        "startTime": 1700000000000,
        "testTime": 1700000090000,
        "engineVersion": "2.2.0",
        "criteriaVersion": "2009q",
        "endpoints": [
            {
                "ipAddress": "93.184.216.34",
                "serverName": "sub.example.com",
                "statusMessage": "Ready",
                "grade": "A+",
                "gradeTrustIgnored": "A+",
                "hasWarnings": False,
                "isExceptional": True,
                "progress": 100,
                "duration": 90211,
                "details": {
                    "protocols": [
                        {"id": 771, "name": "TLS", "version": "1.2"},
                        {"id": 769, "name": "TLS", "version": "1.0"},
                    ],
                    "suites": {
                        "list": [
                            {"id": 49199, "name": "TLS_ECDHE_RSA_WITH_AES_128_GCM_SHA256", "cipherStrength": 128},
                            {"id": 5, "name": "TLS_RSA_WITH_RC4_128_SHA", "cipherStrength": 128, "q": 0},
                        ],
                        "preference": True,
                    },
                    "heartbleed": False,
                    "supportsRc4": True,
                    "openSslCcs": 1,
                    "forwardSecrecy": 4,
                    "ocspStapling": True,
                    "fallbackScsv": True,
                    "hstsPolicy": {"status": "present", "maxAge": 31536000, "preload": True},
                    "cert": {
                        "subject": "CN=sub.example.com",
                        "issuerLabel": "Example CA",
                        "sigAlg": "SHA256withRSA",
                        "notBefore": 1690000000000,
                        "notAfter": 1790000000000,
                        "altNames": ["sub.example.com", "www.sub.example.com"],
                        "issues": 0,
                    },
                },
            }
        ],
    }
