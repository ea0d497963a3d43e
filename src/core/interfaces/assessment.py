"""Contratos de los colaboradores del orquestador.

`Protocol` estructural: el cliente HTTP, la caché en disco y el reporter de
progreso de la CLI son intercambiables por fakes en tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import EndpointProgress, Host, ServiceInfo


@runtime_checkable
class AssessmentService(Protocol):
    """Servicio remoto de evaluación TLS.

    Los errores de transporte deben llegar como subclases de
    `core.domain.errors.TransportError` (rate limit, sobrecarga, 5xx...).
    """

    async def get_info(self) -> ServiceInfo:
        """Carga actual del servicio (`currentAssessments` / `maxAssessments`)."""

        ...

    async def start_analysis(self, domain: str) -> Host:
        """Inicia (o se re-engancha a) un trabajo con detalle completo."""

        ...

    async def check_status(self, domain: str) -> Host:
        """Consulta el estado sin reiniciar el trabajo."""

        ...


@runtime_checkable
class ResultCache(Protocol):
    """Almacén durable por dominio del último `Host` conocido."""

    def exists(self, domain: str) -> bool:
        ...

    def load(self, domain: str) -> Host:
        """Devuelve el `Host` guardado o lanza `CacheError`."""

        ...

    def save(self, domain: str, host: Host) -> None:
        """Persiste `host` o lanza `CacheError`."""

        ...


@runtime_checkable
class ProgressReporter(Protocol):
    def report(self, progress: EndpointProgress) -> None:
        ...
