"""Backend HTTP server exposing the tool catalog to the host relay.

Routes (registered as FastMCP custom routes):
 - GET  /api/tools          tool catalog with visibility annotations
 - POST /api/tools/{name}   run one tool; JSON body = arguments,
                            JSON response = unwrapped payload

Tool-level failures map to HTTP statuses the relay understands:
404 for unknown datasets or tools, 422 for malformed arguments.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from data_explorer.core.errors import DatasetNotFound, MalformedArguments, UnknownTool
from data_explorer.core.store import DatasetStore
from data_explorer.tools.definitions import tool_definitions
from data_explorer.tools.dispatcher import ToolDispatcher, ToolResult

try:
    from mcp.server.fastmcp import FastMCP
except Exception as exc:
    raise RuntimeError(
        "The 'mcp' package is required for the backend server. Install with: pip install mcp"
    ) from exc

logger = logging.getLogger(__name__)

SERVER_NAME = "data-explorer"

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _json(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)


def _preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


def _status_for(result: ToolResult) -> int:
    if isinstance(result.error, DatasetNotFound):
        return 404
    if isinstance(result.error, MalformedArguments):
        return 422
    return 200


async def _read_arguments(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise MalformedArguments(f"Request body is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise MalformedArguments("Request body must be a JSON object")
    return body


def build_server(store: DatasetStore, *, name: str = SERVER_NAME) -> FastMCP:
    """Create a FastMCP server whose HTTP app serves the tool routes."""
    server = FastMCP(name)
    dispatcher = ToolDispatcher(store)

    @server.custom_route("/api/tools", methods=["GET", "OPTIONS"])
    async def list_tools(request: Request) -> Response:
        if request.method == "OPTIONS":
            return _preflight()
        return _json({"tools": tool_definitions()})

    @server.custom_route("/api/tools/{name}", methods=["POST", "OPTIONS"])
    async def call_tool(request: Request) -> Response:
        if request.method == "OPTIONS":
            return _preflight()
        tool_name = request.path_params["name"]
        try:
            arguments = await _read_arguments(request)
            result = await run_in_threadpool(dispatcher.dispatch, tool_name, arguments)
        except UnknownTool as e:
            logger.warning("Unknown tool requested: %s", tool_name)
            return _json({"error": e.message}, status_code=404)
        except MalformedArguments as e:
            return _json({"error": e.message}, status_code=422)
        logger.info("Tool %s -> %s", tool_name, "error" if result.is_error else "ok")
        return _json(result.payload, status_code=_status_for(result))

    return server


# Transport functions
async def _run_http(server: FastMCP, host: str, port: int) -> None:
    """Start HTTP server with explicit uvicorn configuration."""
    try:
        import uvicorn
    except ImportError:
        raise RuntimeError("uvicorn is required for HTTP mode: pip install uvicorn")

    app = server.streamable_http_app()
    config = uvicorn.Config(
        app,
        host=host,
        port=int(port),
        log_level="info",
    )
    await uvicorn.Server(config).serve()


def run_http(
    store: DatasetStore,
    *,
    host: str = "127.0.0.1",
    port: int = 3001,
    name: Optional[str] = None,
) -> None:
    """Run the backend HTTP server until interrupted."""
    server = build_server(store, name=name or SERVER_NAME)
    logger.info("Starting Data Explorer backend on http://%s:%d", host, port)
    logger.info("Loaded datasets: %s", ", ".join(store.names()) or "(none)")
    logger.info("Available tools: %s", ", ".join(t["name"] for t in tool_definitions()))
    asyncio.run(_run_http(server, host, port))
