"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from adapters.railway_backend import RailwayBackend
from cli.ui_components import build_doctor_table
from core.config import AppSettings, load_settings
from core.errors import ConfigurationError, WorkflowError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_project(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with RailwayBackend(settings) as backend:
            name = await backend.fetch_project_name(settings.railway_project_id)
        return True, f"project '{name}'"
    except WorkflowError as exc:
        return False, f"{exc.kind.value}: {exc}"


def _presence(value: str) -> tuple[str, str]:
    return ("OK", value) if value else ("MISSING", "empty (forwarded as-is)")


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    try:
        settings = load_settings(require_token=False)
    except ConfigurationError as exc:
        _console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2)

    table = build_doctor_table()

    # Config
    if settings.railway_token:
        table.add_row("RAILWAY_TOKEN", "OK", "set (hidden)")
    else:
        table.add_row("RAILWAY_TOKEN", "FAIL", "required to authenticate")
    table.add_row("RAILWAY_PROJECT_ID", *_presence(settings.railway_project_id))
    table.add_row("RAILWAY_ENVIRONMENT_ID", *_presence(settings.railway_environment_id))
    binding = settings.source_binding()
    repo_status = "OK" if binding.owner and binding.name else "MISSING"
    table.add_row("Source repo", repo_status, f"{binding.repo}@{binding.branch or '?'}")
    table.add_row("LEVEL", "OK", f"{settings.level} (children get {settings.next_level})")
    table.add_row("Endpoint", "OK", settings.graphql_endpoint)
    table.add_row(
        "Cleanup on failure",
        "ON" if settings.cleanup_on_failure else "OFF",
        "orphaned services are deleted" if settings.cleanup_on_failure else "orphaned services are kept",
    )

    # Connectivity (best-effort)
    if settings.railway_token and settings.railway_project_id:
        ok_api, detail_api = asyncio.run(_check_project(settings))
        table.add_row("Backend access", "OK" if ok_api else "FAIL", detail_api)
    else:
        table.add_row("Backend access", "SKIPPED", "needs RAILWAY_TOKEN and RAILWAY_PROJECT_ID")

    _console.print(table)

    if not settings.railway_token:
        _console.print(
            "\n[yellow]Note:[/yellow] set RAILWAY_TOKEN in the environment or in `.env` before running `spawn`."
        )
