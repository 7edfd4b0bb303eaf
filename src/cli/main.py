"""CLI principal (Typer).

Por qué una CLI fina:
- `spawn` es el equivalente al botón de la página: una ejecución del flujo.
- Toda la lógica vive en `core.services.provisioning`; aquí solo se
  carga la config al arrancar y se renderiza el resultado.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler

from adapters.json_exporter import export_outcome_json
from cli import doctor
from cli.ui_components import build_outcome_panel, format_transition, print_banner
from core.config import AppSettings, load_settings
from core.errors import ConfigurationError
from core.services.provisioning import ProvisioningHooks, provision
from web.app import create_app

app = typer.Typer(no_args_is_help=True, help="Provision self-replicating services on Railway.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_or_exit() -> AppSettings:
    try:
        return load_settings()
    except ConfigurationError as exc:
        _console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2)


@app.command()
def spawn(
    json_out: Path | None = typer.Option(None, "--json-out", help="Write the run outcome as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Print only the domain or the error."),
) -> None:
    """Provision one child service and print its public domain."""

    settings = _load_or_exit()
    configure_logging("DEBUG" if verbose else settings.log_level)

    hooks = None
    if not quiet:
        print_banner(_console, level=settings.level)
        hooks = ProvisioningHooks(
            transition=lambda previous, current: _console.print(format_transition(previous, current)),
        )

    outcome = asyncio.run(provision(settings, hooks=hooks))

    if json_out is not None:
        export_outcome_json(outcome=outcome, output_path=json_out)

    if quiet:
        _console.print(outcome.domain if outcome.ok else str(outcome.error), markup=False, highlight=False)
    else:
        _console.print(build_outcome_panel(outcome))

    if not outcome.ok:
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address."),
    port: int = typer.Option(8080, envvar="PORT", help="Bind port."),
) -> None:
    """Serve the single-button page."""

    settings = _load_or_exit()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())


def run() -> None:
    app()


if __name__ == "__main__":
    run()
