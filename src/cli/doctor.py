"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from cli.runtime import open_dispatcher
from core.config import AppSettings, get_user_env_file

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_api(settings: AppSettings) -> tuple[bool, str]:
    """One cheap authenticated call: first page of one repository."""

    async with open_dispatcher(settings) as dispatcher:
        envelope = await dispatcher.dispatch("bitbucket/getRepositories", {"role": "member", "pagelen": 1})
    if envelope.ok:
        total = envelope.result.get("size")
        return True, f"{total} repositories visible" if total is not None else "OK"
    assert envelope.error is not None
    return False, envelope.error.message


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="bitbucket-rpc Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    credentials = settings.credentials()
    if credentials is not None:
        table.add_row("Credentials", "OK", f"user {credentials.identity}")
    else:
        table.add_row("Credentials", "MISSING", "Run `bitbucket-rpc setup` or set BITBUCKET_USERNAME/BITBUCKET_PASSWORD")
    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("User config", "OK" if get_user_env_file().exists() else "ABSENT", str(get_user_env_file()))

    # Connectivity (authenticated when credentials exist)
    ok_api, detail_api = asyncio.run(_check_api(settings))
    table.add_row("API call", "OK" if ok_api else "FAIL", detail_api)

    _console.print(table)

    if not ok_api and credentials is None:
        _console.print("\n[yellow]Note:[/yellow] listing repositories by role requires credentials.")
