"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Mapping

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.catalog import OperationDescriptor
from core.domain.params import public_name
from core.errors import DispatchError, InvalidParams, RemoteApiError


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - El banner va a stderr: stdout queda libre para resultados.
    """

    title = Text("bitbucket-rpc", style="bold cyan")
    subtitle = Text("Repositories • Pipelines • Pull requests", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_methods_table(catalog: Mapping[str, OperationDescriptor]) -> Table:
    """Tabla con el catálogo: nombre, campos de ruta, opciones y si muta."""

    table = Table(title="Methods")
    table.add_column("Method", style="cyan", no_wrap=True)
    table.add_column("Path fields", style="white")
    table.add_column("Options", style="dim")
    table.add_column("Mutating", style="yellow")
    table.add_column("Summary", style="white")

    for name, descriptor in catalog.items():
        model = descriptor.params_model
        path = [public_name(model, f) for f in descriptor.path_fields]
        options = [public_name(model, f) for f in model.model_fields if f not in descriptor.path_fields]
        table.add_row(
            name,
            ", ".join(path) or "-",
            ", ".join(options) or "-",
            "yes" if descriptor.mutating else "no",
            descriptor.summary,
        )
    return table


def build_error_panel(error: DispatchError) -> Panel:
    """Panel para presentar un sobre de fallo."""

    body = Text()
    body.append(error.message + "\n")
    if isinstance(error, InvalidParams):
        for v in error.violations:
            body.append(f"- {v.field}", style="bold")
            body.append(f" ({v.reason}): {v.message}\n")
    elif isinstance(error, RemoteApiError):
        body.append(f"\nStatus: {error.status} {error.status_text}", style="dim")
        body.append(f"\nBody: {error.body}", style="dim")

    return Panel(body, title=Text(error.kind, style="bold red"), border_style="red")
