"""Caché local de resultados por dominio (JSON en disco).

Un fichero por dominio dentro de `cache_dir`. La clave se sanea antes de
usarse como nombre de fichero, así que ningún dominio puede salir del
directorio. Cada fichero es un sobre `CacheEntry` versionado.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from core.domain.errors import CacheError
from core.domain.models import CACHE_SCHEMA_VERSION, CacheEntry, Host

logger = logging.getLogger(__name__)


def cache_key_for(domain: str) -> str:
    """Nombre de fichero seguro para `domain` (sin separadores ni `..`)."""

    out: list[str] = []
    for ch in domain.strip().lower():
        if ch.isascii() and (ch.isalnum() or ch in ("-", ".")):
            out.append(ch)
        else:
            out.append("_")
    cleaned = "".join(out).strip(".")
    while ".." in cleaned:
        cleaned = cleaned.replace("..", ".")
    return cleaned or "_"


class JsonFileCache:
    """Implementa `core.interfaces.ResultCache` sobre el sistema de ficheros."""

    def __init__(self, cache_dir: Path) -> None:
        self._cache_dir = Path(cache_dir)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def path_for(self, domain: str) -> Path:
        return self._cache_dir / f"{cache_key_for(domain)}.json"

    def exists(self, domain: str) -> bool:
        """True si hay fichero para el dominio y su contenido es de ese dominio."""

        if not self.path_for(domain).is_file():
            return False
        try:
            self.load(domain)
        except CacheError:
            return False
        return True

    def load(self, domain: str) -> Host:
        path = self.path_for(domain)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise CacheError(f"no cache entry at {path}", domain=domain) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheError(f"could not read {path}: {exc}", domain=domain) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CacheError(f"corrupt cache file {path}: {exc}", domain=domain) from exc
        if not isinstance(data, dict):
            raise CacheError(f"corrupt cache file {path}: expected an object", domain=domain)

        entry = self._parse_entry(data, path=path, domain=domain)
        if entry.domain.lower() != domain.lower():
            raise CacheError(
                f"cache file {path} belongs to {entry.domain!r}, not {domain!r}",
                domain=domain,
            )
        return entry.host

    def save(self, domain: str, host: Host) -> None:
        entry = CacheEntry(domain=domain, host=host)
        payload = entry.model_dump(mode="json", by_alias=True)
        path = self.path_for(domain)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(payload, handle, ensure_ascii=False, indent=2, sort_keys=True)
                    handle.write("\n")
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CacheError(f"could not write {path}: {exc}", domain=domain) from exc
        logger.debug("Cached %s (status=%s) at %s", domain, host.status, path)

    @staticmethod
    def _parse_entry(data: dict, *, path: Path, domain: str) -> CacheEntry:
        if "schema_version" not in data:
            # Ficheros sin sobre: documento `Host` tal cual devolvía la API.
            try:
                host = Host.model_validate(data)
            except ValidationError as exc:
                raise CacheError(f"invalid cache file {path}: {exc}", domain=domain) from exc
            if not host.host:
                raise CacheError(f"cache file {path} has no host field", domain=domain)
            return CacheEntry(domain=host.host, host=host)

        version = data.get("schema_version")
        if version != CACHE_SCHEMA_VERSION:
            raise CacheError(
                f"unsupported cache schema version {version!r} in {path}",
                domain=domain,
            )
        try:
            return CacheEntry.model_validate(data)
        except ValidationError as exc:
            raise CacheError(f"invalid cache file {path}: {exc}", domain=domain) from exc


class NullCache:
    """Caché vacía: nunca tiene entradas y descarta escrituras (`--no-cache`)."""

    def exists(self, domain: str) -> bool:
        return False

    def load(self, domain: str) -> Host:
        raise CacheError("cache disabled", domain=domain)

    def save(self, domain: str, host: Host) -> None:
        return None
