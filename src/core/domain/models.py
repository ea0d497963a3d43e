"""Modelos del dominio (Pydantic v2).

Describen el JSON de la API de evaluación (camelCase) con nombres Python
(snake_case). Se aceptan ambos al construir (`populate_by_name`) y se ignoran
campos desconocidos para tolerar versiones nuevas del motor remoto.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict
from pydantic.alias_generators import to_camel

CACHE_SCHEMA_VERSION = 1


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class AnalysisStatus(str, Enum):
    """Estados del trabajo remoto."""

    DNS = "DNS"
    IN_PROGRESS = "IN_PROGRESS"
    READY = "READY"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisStatus.READY, AnalysisStatus.ERROR)


class ServiceInfo(_ApiModel):
    """Respuesta de `/info`: versión del motor y cupo de análisis."""

    version: str = ""
    criteria_version: str = ""
    max_assessments: int = 0
    current_assessments: int = 0
    new_assessment_cool_off: int = 0
    messages: list[str] = Field(default_factory=list)

    def has_capacity(self) -> bool:
        return self.current_assessments < self.max_assessments


class Key(_ApiModel):
    size: int = 0
    strength: int = 0
    alg: str = ""
    debian_flaw: bool = False
    q: int | None = None


class Cert(_ApiModel):
    subject: str = ""
    common_names: list[str] = Field(default_factory=list)
    alt_names: list[str] = Field(default_factory=list)
    not_before: int = 0
    not_after: int = 0
    issuer_subject: str = ""
    sig_alg: str = ""
    issuer_label: str = ""
    revocation_info: int = 0
    crl_uris: list[str] = Field(default_factory=list, alias="crlURIs")
    ocsp_uris: list[str] = Field(default_factory=list, alias="ocspURIs")
    revocation_status: int = 0
    sgc: int = 0
    validation_type: str = ""
    issues: int = 0
    sct: bool = False


class ChainCert(_ApiModel):
    subject: str = ""
    label: str = ""
    not_before: int = 0
    not_after: int = 0
    issuer_subject: str = ""
    issuer_label: str = ""
    sig_alg: str = ""
    issues: int = 0
    key_alg: str = ""
    key_size: int = 0
    key_strength: int = 0
    revocation_status: int = 0
    crl_revocation_status: int = 0
    ocsp_revocation_status: int = 0
    raw: str = ""


class Chain(_ApiModel):
    certs: list[ChainCert] = Field(default_factory=list)
    issues: int = 0


class Protocol(_ApiModel):
    id: int = 0
    name: str = ""
    version: str = ""
    v2_suites_disabled: bool = False
    q: int | None = None


class Suite(_ApiModel):
    id: int = 0
    name: str = ""
    cipher_strength: int = 0
    dh_strength: int = 0
    dh_p: int = 0
    dh_g: int = 0
    dh_ys: int = 0
    ecdh_bits: int = 0
    ecdh_strength: int = 0
    q: int | None = None


class Suites(_ApiModel):
    items: list[Suite] = Field(default_factory=list, alias="list")
    preference: bool = False


class HstsPolicy(_ApiModel):
    header: str = ""
    status: str = ""
    error: str = ""
    max_age: int = 0
    include_sub_domains: bool = False
    preload: bool = False
    directives: Any = None


class EndpointDetails(_ApiModel):
    """Detalle profundo de un endpoint (solo presente con `all=done`)."""

    host_start_time: int = 0
    key: Key | None = None
    cert: Cert | None = None
    chain: Chain | None = None
    protocols: list[Protocol] = Field(default_factory=list)
    suites: Suites | None = None
    server_signature: str = ""
    vuln_beast: bool = False
    reneg_support: int = 0
    session_resumption: int = 0
    compression_methods: int = 0
    supports_npn: bool = False
    npn_protocols: str = ""
    session_tickets: int = 0
    ocsp_stapling: bool = False
    sni_required: bool = False
    http_status_code: int = 0
    http_forwarding: str = ""
    supports_rc4: bool = False
    rc4_with_modern: bool = False
    rc4_only: bool = False
    forward_secrecy: int = 0
    heartbleed: bool = False
    heartbeat: bool = False
    open_ssl_ccs: int = 0
    poodle: bool = False
    poodle_tls: int = 0
    fallback_scsv: bool = False
    freak: bool = False
    has_sct: int = 0
    dh_primes: list[str] = Field(default_factory=list)
    dh_uses_known_primes: int = 0
    dh_ys_reuse: bool = False
    logjam: bool = False
    cha_cha20_preference: bool = False
    hsts_policy: HstsPolicy | None = None


class Endpoint(_ApiModel):
    """Un servidor (IP) evaluado dentro del trabajo del dominio."""

    ip_address: str = ""
    server_name: str = ""
    status_message: str = ""
    status_details: str = ""
    status_details_message: str = ""
    grade: str = ""
    grade_trust_ignored: str = ""
    has_warnings: bool = False
    is_exceptional: bool = False
    progress: int = -1
    duration: int = 0
    eta: int = 0
    delegation: int = 0
    details: EndpointDetails | None = None


class Host(_ApiModel):
    """Agregado principal: el trabajo de evaluación de un dominio.

    `status` se conserva como texto crudo; la interpretación (incluidos
    estados desconocidos) vive en `core.services.lifecycle`.
    """

    host: str = ""
    port: int = 0
    protocol: str = ""
    is_public: bool = False
    status: str = ""
    status_message: str = ""
    start_time: int = 0
    test_time: int = 0
    engine_version: str = ""
    criteria_version: str = ""
    endpoints: list[Endpoint] = Field(default_factory=list)
    cert_hostnames: list[str] = Field(default_factory=list)


class ApiErrorDetail(_ApiModel):
    field: str = ""
    message: str = ""


class ApiErrorPayload(_ApiModel):
    """Cuerpo de error de la API (HTTP 400)."""

    errors: list[ApiErrorDetail] = Field(default_factory=list)


class AnalysisRequest(BaseModel):
    """Dominio ya validado. Se construye solo vía `validate_domain`."""

    model_config = ConfigDict(frozen=True)

    domain: str = Field(..., min_length=1, max_length=253)


class EndpointProgress(BaseModel):
    """Progreso de un endpoint emitido al reporter durante el polling."""

    model_config = ConfigDict(frozen=True)

    ip_address: str
    progress: int
    status_details_message: str = ""


class CacheEntry(BaseModel):
    """Sobre persistido en disco para la caché por dominio."""

    model_config = ConfigDict(extra="ignore")

    schema_version: int = Field(default=CACHE_SCHEMA_VERSION, ge=1)
    domain: str = Field(..., min_length=1)
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    host: Host
