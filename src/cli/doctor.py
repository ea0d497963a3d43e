"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.ssllabs_client import SslLabsClient
from core.config import AppSettings, PollingPolicy, write_user_env_vars
from core.domain.errors import AssessmentError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_service(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with SslLabsClient(settings) as client:
            info = await client.get_info()
    except AssessmentError as exc:
        return False, str(exc)
    load = f"{info.current_assessments}/{info.max_assessments} assessments"
    return True, f"engine {info.version or '?'}, {load}"


def _check_cache_dir(cache_dir: Path) -> tuple[bool, str]:
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=cache_dir, prefix=".doctor-", delete=True):
            pass
    except OSError as exc:
        return False, str(exc)
    return True, str(cache_dir.resolve())


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="tls-assess Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("API base URL", "OK", settings.api_base_url)
    try:
        policy = PollingPolicy.from_settings(settings)
    except ValueError as exc:
        policy = None
        table.add_row("Polling policy", "FAIL", str(exc))
    if policy is not None:
        table.add_row(
            "Polling policy",
            "OK",
            f"initial {policy.initial_interval:g}s, running {policy.running_interval:g}s, "
            f"max wait {policy.max_wait:g}s",
        )

    if settings.cache_enabled:
        ok_cache, detail_cache = _check_cache_dir(settings.cache_dir)
        table.add_row("Cache dir", "OK" if ok_cache else "FAIL", detail_cache)
    else:
        table.add_row("Cache dir", "DISABLED", "TLS_ASSESS_CACHE_ENABLED=false")

    ok_api, detail_api = asyncio.run(_check_service(settings))
    table.add_row("SSL Labs API", "OK" if ok_api else "FAIL", detail_api)

    _console.print(table)

    if not ok_api:
        _console.print(
            "\n[yellow]Note:[/yellow] the API may be rate limiting or under maintenance; retry later."
        )


@app.command(name="set-policy")
def set_policy(
    initial: float = typer.Option(5.0, min=0.1, help="Intervalo inicial (segundos)."),
    running: float = typer.Option(10.0, min=0.1, help="Intervalo con análisis en curso (segundos)."),
    max_wait: float = typer.Option(900.0, min=1.0, help="Espera máxima total (segundos)."),
) -> None:
    """Store the polling cadence in the user config .env."""

    try:
        PollingPolicy(initial_interval=initial, running_interval=running, max_wait=max_wait)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    env_path = write_user_env_vars(
        {
            "TLS_ASSESS_POLL_INITIAL_SECONDS": f"{initial:g}",
            "TLS_ASSESS_POLL_RUNNING_SECONDS": f"{running:g}",
            "TLS_ASSESS_MAX_WAIT_SECONDS": f"{max_wait:g}",
        }
    )
    _console.print(f"[green]Saved polling policy to:[/green] {env_path}")
