"""CLI de bitbucket-rpc (Typer).

Por qué Typer + Rich:
- Comandos tipados con ayuda automática.
- Tablas/paneles en stderr sin ensuciar la salida de resultados (stdout).

Comandos:
- `methods`: catálogo de operaciones.
- `call`: un dispatch y el resultado renderizado (json/yaml).
- `serve`: servidor MCP sobre stdio.
- `setup`: guarda credenciales en el .env de usuario.
- `doctor run`: diagnóstico de config y conectividad.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer

from adapters.mcp_server import serve_stdio
from adapters.renderers import OutputFormat, export_result, render
from cli import doctor
from cli.runtime import configure_logging, open_dispatcher, stderr_console
from cli.ui_components import build_error_panel, build_methods_table, print_banner
from core.catalog import build_catalog
from core.config import AppSettings, LogLevel, write_user_env_vars
from core.services.dispatcher import Envelope

app = typer.Typer(no_args_is_help=True, help="Bitbucket Cloud operations as validated, named methods.")
app.add_typer(doctor.app, name="doctor")


@app.callback()
def _main(
    log_level: Optional[LogLevel] = typer.Option(
        None, "--log-level", case_sensitive=False, help="Override BITBUCKET_LOG_LEVEL."
    ),
) -> None:
    settings = AppSettings()
    configure_logging(log_level or settings.log_level)


def _parse_params(raw: str | None, params_file: Path | None) -> Any:
    if raw is not None and params_file is not None:
        raise typer.BadParameter("use either --params or --params-file, not both")
    if params_file is not None:
        raw = params_file.read_text(encoding="utf-8")
    if raw is None:
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"params are not valid JSON: {exc}") from exc


async def _call(method: str, params: Any) -> Envelope:
    async with open_dispatcher() as dispatcher:
        return await dispatcher.dispatch(method, params)


@app.command()
def methods() -> None:
    """List every method the server advertises."""

    print_banner(stderr_console)
    stderr_console.print(build_methods_table(build_catalog()))


@app.command()
def call(
    method: str = typer.Argument(..., help="Method name, e.g. bitbucket/getPullRequests."),
    params: Optional[str] = typer.Option(None, "--params", "-p", help="Parameters as a JSON object."),
    params_file: Optional[Path] = typer.Option(None, "--params-file", exists=True, dir_okay=False),
    output_format: Optional[OutputFormat] = typer.Option(None, "--format", "-f", help="json or yaml."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result to a file."),
) -> None:
    """Dispatch one method and print its result."""

    payload = _parse_params(params, params_file)
    envelope = asyncio.run(_call(method, payload))

    if not envelope.ok:
        assert envelope.error is not None
        stderr_console.print(build_error_panel(envelope.error))
        raise typer.Exit(code=1)

    fmt = output_format or OutputFormat(AppSettings().output_format)
    if output is not None:
        path = export_result(value=envelope.result, output_path=output, fmt=fmt)
        stderr_console.print(f"[green]Saved:[/green] {path}")
        return
    typer.echo(render(envelope.result, fmt), nl=False)


@app.command()
def serve() -> None:
    """Serve the catalog as MCP tools over stdin/stdout."""

    async def _serve() -> None:
        async with open_dispatcher() as dispatcher:
            await serve_stdio(dispatcher, output_format=OutputFormat(AppSettings().output_format))

    asyncio.run(_serve())


@app.command()
def setup() -> None:
    """Interactive credential setup (stores config in the user config .env)."""

    username = typer.prompt("Bitbucket username").strip()
    password = typer.prompt("App password", hide_input=True, confirmation_prompt=False).strip()
    if not username or not password:
        raise typer.BadParameter("username and app password are required")

    env_path = write_user_env_vars(
        {
            "BITBUCKET_USERNAME": username,
            "BITBUCKET_PASSWORD": password,
        }
    )
    stderr_console.print(f"[green]Saved credentials to:[/green] {env_path}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
