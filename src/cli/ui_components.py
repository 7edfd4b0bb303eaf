"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar paneles en `spawn` y `doctor`.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.state import ProvisioningState
from core.services.provisioning import ProvisioningOutcome


def print_banner(console: Console, *, level: int) -> None:
    """Imprime el banner de bienvenida con el nivel actual de la instancia."""

    title = Text("REPLICATOR", style="bold cyan")
    subtitle = Text(f"Instancia nivel {level} • spawns nivel {level + 1}", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def format_transition(previous: ProvisioningState, current: ProvisioningState) -> Text:
    style = "red" if current is ProvisioningState.FAILED else "green"
    return Text.assemble(
        ("• ", "dim"),
        (previous.label(), "dim"),
        " → ",
        (current.label(), style),
    )


def build_doctor_table() -> Table:
    table = Table(title="Replicator Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")
    return table


def build_outcome_panel(outcome: ProvisioningOutcome) -> Panel:
    """Panel para presentar el resultado de `spawn`."""

    body = Text()
    body.append("Service: ", style="bold")
    body.append(f"{outcome.identity.name}\n")
    if outcome.service_id:
        body.append("Service id: ", style="bold")
        body.append(f"{outcome.service_id}\n")

    if outcome.ok:
        body.append("\nDomain: ", style="bold")
        body.append(f"https://{outcome.domain}", style="bold green")
        return Panel(body, title=Text("Provisioned", style="bold green"), border_style="green")

    assert outcome.error is not None
    body.append(f"\n{outcome.error.kind.value} failure", style="bold red")
    if outcome.error.operation:
        body.append(f" in {outcome.error.operation}", style="red")
    body.append(f":\n{outcome.error}\n")
    for warning in outcome.warnings:
        body.append(f"\n! {warning}", style="yellow")
    if outcome.cleaned_up:
        body.append(f"\nService {outcome.service_id} was deleted.", style="dim")
    return Panel(body, title=Text("Failed", style="bold red"), border_style="red")
