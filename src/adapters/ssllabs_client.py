"""Cliente de la API SSL Labs v2 (httpx async).

Cubre los endpoints que usa el orquestador (`/info`, `/analyze`) y el
detalle por endpoint (`/getEndpointData`). Cada código HTTP relevante se
traduce a una subclase distinta de `TransportError`.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import (
    InvalidRequestError,
    RateLimitedError,
    ResponseDecodeError,
    ServerError,
    ServiceOverloadedError,
    ServiceUnavailableError,
    TransportError,
    UnexpectedStatusError,
)
from core.domain.models import ApiErrorPayload, Endpoint, Host, ServiceInfo

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

HTTP_SERVICE_OVERLOADED = 529


def raise_for_api_status(response: httpx.Response, *, domain: str | None = None) -> None:
    """Traduce el status HTTP de la API a la taxonomía de errores."""

    code = response.status_code
    if code == 200:
        return
    if code == 400:
        field = None
        message = "invalid parameters"
        try:
            payload = ApiErrorPayload.model_validate(response.json())
        except (ValueError, ValidationError):
            payload = None
        if payload is not None and payload.errors:
            field = payload.errors[0].field or None
            message = f"{payload.errors[0].field} - {payload.errors[0].message}"
        raise InvalidRequestError(f"invocation error (400): {message}", field=field, domain=domain)
    if code == 429:
        raise RateLimitedError(
            "rate limit exceeded (429): too many requests, wait before retrying",
            status_code=code,
            domain=domain,
        )
    if code == 500:
        raise ServerError("internal server error (500)", status_code=code, domain=domain)
    if code == 503:
        raise ServiceUnavailableError(
            "service unavailable (503): maintenance in progress",
            status_code=code,
            domain=domain,
        )
    if code == HTTP_SERVICE_OVERLOADED:
        raise ServiceOverloadedError(
            "service overloaded (529): try again later",
            status_code=code,
            domain=domain,
        )
    raise UnexpectedStatusError(f"unexpected HTTP status: {code}", status_code=code, domain=domain)


class SslLabsClient:
    """Implementa `core.interfaces.AssessmentService` sobre la API pública."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client or build_async_client(self._settings)
        self._owns_client = client is None

    async def __aenter__(self) -> "SslLabsClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_info(self) -> ServiceInfo:
        data = await self._get_json("/info")
        return self._decode(ServiceInfo, data, what="service info")

    async def start_analysis(self, domain: str) -> Host:
        data = await self._get_json(
            "/analyze",
            params={"host": domain, "startNew": "on", "all": "done"},
            domain=domain,
        )
        return self._decode(Host, data, what="analysis", domain=domain)

    async def check_status(self, domain: str) -> Host:
        data = await self._get_json(
            "/analyze",
            params={"host": domain, "all": "done"},
            domain=domain,
        )
        return self._decode(Host, data, what="analysis status", domain=domain)

    async def get_endpoint_details(self, domain: str, ip_address: str) -> Endpoint:
        data = await self._get_json(
            "/getEndpointData",
            params={"host": domain, "s": ip_address},
            domain=domain,
        )
        return self._decode(Endpoint, data, what=f"endpoint {ip_address}", domain=domain)

    async def _get_json(
        self,
        path: str,
        *,
        params: dict[str, str] | None = None,
        domain: str | None = None,
    ) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise TransportError(f"HTTP request to {path} failed: {exc}", domain=domain) from exc

        logger.debug("GET %s -> %s", response.request.url, response.status_code)
        raise_for_api_status(response, domain=domain)
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseDecodeError(
                f"invalid JSON from {path}: {exc}",
                status_code=response.status_code,
                domain=domain,
            ) from exc

    @staticmethod
    def _decode(
        model: type[_ModelT],
        data: Any,
        *,
        what: str,
        domain: str | None = None,
    ) -> _ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ResponseDecodeError(f"could not decode {what} response: {exc}", domain=domain) from exc
