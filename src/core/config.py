"""Configuración del Core.

- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Expone la política de polling como un value object inyectable
  (`PollingPolicy`), de modo que los tests puedan comprimir el tiempo.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.language import Language

APP_NAME = "tls-assess"
APP_VERSION = "0.1.0"

DEFAULT_API_BASE_URL = "https://api.ssllabs.com/api/v2"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        try:
            existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError):
            existing = {}

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# tls-assess user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Un único contrato de configuración para CLI, adaptadores y orquestador.
    """

    model_config = SettingsConfigDict(
        env_prefix="TLS_ASSESS_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        min_length=8,
        description="Base URL de la API de evaluación (SSL Labs v2).",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default=f"{APP_NAME}/{APP_VERSION}",
        min_length=1,
        description="User-Agent enviado a la API.",
    )

    poll_initial_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Intervalo de polling mientras el trabajo resuelve DNS.",
    )
    poll_running_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Intervalo de polling con el análisis en curso.",
    )
    max_wait_seconds: float = Field(
        default=15 * 60,
        gt=0,
        description="Tiempo máximo total de espera (reloj de pared).",
    )

    cache_dir: Path = Field(
        default=Path("cache"),
        description="Directorio para la caché local de resultados por dominio.",
    )
    cache_enabled: bool = Field(
        default=True,
        description="Consultar/escribir la caché local.",
    )

    default_language: Language = Field(
        default=Language.ENGLISH,
        description="Idioma por defecto para reportes (en/es).",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging por defecto (DEBUG, INFO, WARNING...).",
    )

    def resolved_log_level(self) -> int:
        level = logging.getLevelName(self.log_level.strip().upper())
        return level if isinstance(level, int) else logging.WARNING


@dataclass(frozen=True)
class PollingPolicy:
    """Cadencia de polling: intervalo inicial, intervalo en curso y espera máxima."""

    initial_interval: float = 5.0
    running_interval: float = 10.0
    max_wait: float = 15 * 60

    def __post_init__(self) -> None:
        if self.initial_interval < 0 or self.running_interval < 0:
            raise ValueError("poll intervals must be non-negative")
        if self.running_interval < self.initial_interval:
            raise ValueError("running interval must be >= initial interval")
        if self.max_wait <= 0:
            raise ValueError("max_wait must be positive")

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "PollingPolicy":
        return cls(
            initial_interval=settings.poll_initial_seconds,
            running_interval=settings.poll_running_seconds,
            max_wait=settings.max_wait_seconds,
        )
