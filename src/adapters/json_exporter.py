"""Exportación JSON del resultado terminal.

Mismo formato que devuelve la API (camelCase), para poder reutilizarlo con
otras herramientas o como fixture.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import Host


def export_host_json(*, host: Host, output_path: Path) -> Path:
    """Exporta `Host` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = host.model_dump(mode="json", by_alias=True)
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
