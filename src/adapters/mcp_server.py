"""Servidor MCP sobre stdio.

Por qué el Server de bajo nivel del SDK `mcp`:
- Los contratos de entrada ya existen como modelos Pydantic; el catálogo se
  anuncia tal cual (`tools/list`) con su JSON Schema, sin re-declarar firmas.
- Cada `tools/call` pasa por `MethodDispatcher.dispatch`: la validación y la
  traducción de errores viven en un solo sitio.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from adapters.renderers import OutputFormat, render
from core.errors import DispatchError
from core.services.dispatcher import MethodDispatcher

logger = logging.getLogger(__name__)

SERVER_NAME = "bitbucket-mcp-server"
SERVER_VERSION = "0.1.0"


class ToolCallFailed(Exception):
    """Sobre de fallo de un dispatch; el SDK lo entrega como resultado `isError`."""

    def __init__(self, error: DispatchError) -> None:
        super().__init__(json.dumps(error.to_payload(), ensure_ascii=False, sort_keys=True))
        self.error = error


def build_tools(dispatcher: MethodDispatcher) -> list[types.Tool]:
    """Un `Tool` por operación del catálogo, con el schema de su contrato."""

    tools: list[types.Tool] = []
    for name in dispatcher.capabilities():
        descriptor = dispatcher.catalog[name]
        tools.append(
            types.Tool(
                name=name,
                description=descriptor.summary,
                inputSchema=descriptor.params_model.model_json_schema(by_alias=True),
                annotations=types.ToolAnnotations(
                    readOnlyHint=not descriptor.mutating,
                    idempotentHint=not descriptor.mutating,
                ),
            )
        )
    return tools


def build_server(
    dispatcher: MethodDispatcher,
    *,
    output_format: OutputFormat = OutputFormat.JSON,
) -> Server:
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION)
    tools = build_tools(dispatcher)

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return tools

    # La validación la hace el dispatcher (InvalidParams con violaciones).
    @server.call_tool(validate_input=False)
    async def _call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        envelope = await dispatcher.dispatch(name, arguments)
        if not envelope.ok:
            assert envelope.error is not None
            logger.info("%s -> %s", name, envelope.error.kind)
            raise ToolCallFailed(envelope.error)
        return [types.TextContent(type="text", text=render(envelope.result, output_format))]

    return server


async def serve_stdio(dispatcher: MethodDispatcher, *, output_format: OutputFormat = OutputFormat.JSON) -> None:
    server = build_server(dispatcher, output_format=output_format)
    logger.info("Serving %d tools over MCP stdio", len(dispatcher.capabilities()))
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
