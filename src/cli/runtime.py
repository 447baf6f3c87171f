"""Composition root shared by the CLI commands.

Credentials are process-wide: read once from settings and handed to a single
long-lived client that every dispatch reuses.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from rich.console import Console
from rich.logging import RichHandler

from adapters.bitbucket_client import BitbucketClient
from core.config import AppSettings, LogLevel
from core.services.dispatcher import MethodDispatcher

stderr_console = Console(stderr=True)


def configure_logging(level: LogLevel = LogLevel.WARNING) -> None:
    """Root logger -> stderr (stdout is reserved for results and protocol traffic)."""

    logging.basicConfig(
        level=LogLevel(level).value,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=stderr_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # httpx logs full URLs at INFO; keep it quiet unless debugging.
    if logging.getLogger().level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def open_dispatcher(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[MethodDispatcher]:
    settings = settings or AppSettings()
    async with BitbucketClient(settings, credentials=settings.credentials(), transport=transport) as client:
        yield MethodDispatcher(client)
