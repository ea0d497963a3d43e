"""CLI de tls-assess (Typer).

La CLI solo arma colaboradores (cliente HTTP, caché, reporter de progreso)
y delega el flujo completo en `core.services.analysis_pipeline`.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path
from typing import Callable

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from adapters.json_cache import JsonFileCache, NullCache
from adapters.json_exporter import export_host_json
from adapters.ssllabs_client import SslLabsClient
from cli import doctor
from cli.ui_components import (
    ConsoleProgressReporter,
    build_service_info_table,
    print_banner,
    render_report,
)
from core.config import AppSettings, PollingPolicy
from core.domain.errors import (
    AnalysisCancelledError,
    AssessmentError,
    DomainValidationError,
)
from core.domain.language import Language
from core.domain.models import AnalysisStatus, Host
from core.interfaces.assessment import ResultCache
from core.services.analysis_pipeline import (
    AnalysisOutcome,
    PipelineHooks,
    ResultSource,
    fetch_service_info,
    run_analysis,
)
from core.services.lifecycle import parse_status

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_ANALYSIS_ERROR = 2

app = typer.Typer(
    no_args_is_help=True,
    help="Analiza la configuración TLS/SSL de un dominio usando la API de SSL Labs.",
)
app.add_typer(doctor.app, name="doctor")


def configure_logging(*, verbose: bool, settings: AppSettings) -> None:
    level = logging.DEBUG if verbose else settings.resolved_log_level()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def _install_cancel_handlers(cancel_event: asyncio.Event, console: Console) -> list[signal.Signals]:
    loop = asyncio.get_running_loop()

    def _on_signal() -> None:
        if not cancel_event.is_set():
            console.print("\n[yellow]Interrupt received, cancelling assessment...[/yellow]")
        cancel_event.set()

    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _on_signal)
        except (NotImplementedError, RuntimeError):
            # Windows: KeyboardInterrupt sigue llegando y se maneja en `scan`.
            continue
        installed.append(sig)
    return installed


def _build_cache(settings: AppSettings, *, no_cache: bool) -> ResultCache:
    if no_cache or not settings.cache_enabled:
        return NullCache()
    return JsonFileCache(settings.cache_dir)


async def _fill_missing_details(
    client: SslLabsClient,
    host: Host,
    *,
    warn: Callable[[str], None] | None = None,
) -> None:
    """Completa con /getEndpointData los endpoints READY que llegaron sin `details`."""

    if parse_status(host.status, domain=host.host) is not AnalysisStatus.READY:
        return
    for index, endpoint in enumerate(host.endpoints):
        if endpoint.details is not None or not endpoint.ip_address:
            continue
        try:
            fetched = await client.get_endpoint_details(host.host, endpoint.ip_address)
        except AssessmentError as exc:
            if warn:
                warn(f"Endpoint details for {endpoint.ip_address} unavailable: {exc}")
            continue
        if fetched.details is not None:
            host.endpoints[index] = endpoint.model_copy(update={"details": fetched.details})


async def _scan(
    *,
    domain: str,
    settings: AppSettings,
    cache: ResultCache,
    console: Console,
    language: Language,
) -> AnalysisOutcome:
    cancel_event = asyncio.Event()
    installed = _install_cancel_handlers(cancel_event, console)
    last_status: dict[str, AnalysisStatus] = {}

    def on_status(status: AnalysisStatus, host: Host) -> None:
        if last_status.get("value") is not status:
            console.print(f"[dim]Status: {status.value}[/dim]")
            last_status["value"] = status

    hooks = PipelineHooks(
        progress=ConsoleProgressReporter(console, language).report,
        warning=lambda message: console.print(f"[yellow]Warning:[/yellow] {escape(message)}"),
        status_changed=on_status,
    )
    try:
        async with SslLabsClient(settings) as client:
            outcome = await run_analysis(
                domain=domain,
                service=client,
                cache=cache,
                policy=PollingPolicy.from_settings(settings),
                cancel_event=cancel_event,
                hooks=hooks,
            )
            await _fill_missing_details(client, outcome.host, warn=hooks.warning)
            return outcome
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)


@app.command()
def scan(
    domain: str = typer.Argument(..., help="Dominio a analizar (p.ej. example.com)."),
    no_color: bool = typer.Option(False, "--no-color", help="Deshabilitar colores en la salida."),
    no_cache: bool = typer.Option(False, "--no-cache", help="No leer ni escribir la caché local."),
    json_out: Path | None = typer.Option(
        None,
        "--json-out",
        help="Exportar el resultado terminal a un fichero JSON.",
    ),
    lang: str | None = typer.Option(None, "--lang", help="Idioma del reporte (en/es)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logging detallado (DEBUG)."),
) -> None:
    """Inicia un análisis TLS, espera el resultado y muestra el reporte."""

    settings = AppSettings()
    configure_logging(verbose=verbose, settings=settings)
    language = Language.parse(lang, default=settings.default_language)
    console = Console(no_color=no_color, highlight=not no_color)
    err_console = Console(stderr=True, no_color=no_color)

    print_banner(console, language)
    console.print(f"Starting TLS assessment for: [bold]{escape(domain)}[/bold]", highlight=False)
    console.print("This may take a few minutes...")
    console.print()

    try:
        outcome = asyncio.run(
            _scan(
                domain=domain,
                settings=settings,
                cache=_build_cache(settings, no_cache=no_cache),
                console=console,
                language=language,
            )
        )
    except DomainValidationError as exc:
        err_console.print(f"[red]Error:[/red] validation failed: {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=EXIT_INVALID_ARGS) from exc
    except AnalysisCancelledError as exc:
        err_console.print(f"[yellow]Cancelled:[/yellow] {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=EXIT_ANALYSIS_ERROR) from exc
    except KeyboardInterrupt as exc:
        err_console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(code=EXIT_ANALYSIS_ERROR) from exc
    except AssessmentError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=EXIT_ANALYSIS_ERROR) from exc

    if outcome.source is ResultSource.CACHE:
        console.print("[dim]Result loaded from local cache.[/dim]")

    render_report(console, outcome.host, language)

    if json_out is not None:
        path = export_host_json(host=outcome.host, output_path=json_out)
        console.print(f"[green]JSON saved to:[/green] {escape(str(path))}", highlight=False)

    if parse_status(outcome.host.status, domain=domain) is AnalysisStatus.ERROR:
        message = outcome.host.status_message or "assessment failed"
        err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
        raise typer.Exit(code=EXIT_ANALYSIS_ERROR)


@app.command()
def info(
    no_color: bool = typer.Option(False, "--no-color", help="Deshabilitar colores en la salida."),
    lang: str | None = typer.Option(None, "--lang", help="Idioma (en/es)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logging detallado (DEBUG)."),
) -> None:
    """Muestra versión del motor, criterios y carga actual del servicio."""

    settings = AppSettings()
    configure_logging(verbose=verbose, settings=settings)
    language = Language.parse(lang, default=settings.default_language)
    console = Console(no_color=no_color)

    async def _info():
        async with SslLabsClient(settings) as client:
            return await fetch_service_info(client)

    try:
        service_info = asyncio.run(_info())
    except AssessmentError as exc:
        Console(stderr=True, no_color=no_color).print(
            f"[red]Error fetching service information:[/red] {escape(str(exc))}", highlight=False
        )
        raise typer.Exit(code=EXIT_ANALYSIS_ERROR) from exc

    console.print(build_service_info_table(service_info, language))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
