"""Tool backends the relay forwards ``tools/call`` requests to.

- LocalToolBackend runs the dispatcher in-process (single-process mode, tests).
- HttpToolBackend posts arguments to ``/api/tools/<name>`` on a backend server
  and re-wraps the unwrapped JSON body into the tool envelope.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx

from data_explorer.core.errors import UpstreamTransportFailure
from data_explorer.tools.dispatcher import ToolDispatcher, make_envelope

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT_SEC = 30.0

# Status codes the backend uses for tool-level failures (unknown dataset,
# malformed arguments); anything else non-2xx is a transport failure.
_TOOL_ERROR_STATUSES = {404, 422}


class ToolBackend(Protocol):
    async def tool_names(self) -> List[str]: ...

    async def call_tool(self, name: str, arguments: Mapping[str, Any]) -> Dict[str, Any]: ...

    async def aclose(self) -> None: ...


class LocalToolBackend:
    """Run tools in-process through a ToolDispatcher."""

    def __init__(self, dispatcher: ToolDispatcher) -> None:
        self.dispatcher = dispatcher

    async def tool_names(self) -> List[str]:
        return self.dispatcher.tool_names()

    async def call_tool(self, name: str, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        result = await asyncio.to_thread(self.dispatcher.dispatch, name, arguments)
        return result.to_envelope()

    async def aclose(self) -> None:
        return None


class HttpToolBackend:
    """Forward tool calls to the backend HTTP API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_sec: float = DEFAULT_HTTP_TIMEOUT_SEC,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_sec,
            headers={"Content-Type": "application/json"},
        )
        self._tool_names: Optional[List[str]] = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Backend request %s %s failed: %s", method, path, e)
            raise UpstreamTransportFailure(
                f"Backend request failed: {e.__class__.__name__}: {e}"
            ) from e

    @staticmethod
    def _json_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamTransportFailure(
                f"Backend returned invalid JSON (HTTP {response.status_code})"
            ) from e

    async def tool_names(self) -> List[str]:
        """Tool names from the discovery endpoint, fetched once."""
        if self._tool_names is None:
            response = await self._request("GET", "/api/tools")
            if response.status_code != 200:
                raise UpstreamTransportFailure(
                    f"Tool discovery failed with HTTP {response.status_code}"
                )
            body = self._json_body(response)
            tools = body.get("tools", []) if isinstance(body, dict) else []
            self._tool_names = [str(t.get("name")) for t in tools if isinstance(t, dict)]
        return list(self._tool_names)

    async def call_tool(self, name: str, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", f"/api/tools/{name}", json=dict(arguments))
        if response.status_code == 200:
            return make_envelope(self._json_body(response))
        if response.status_code in _TOOL_ERROR_STATUSES:
            return make_envelope(self._json_body(response), is_error=True)
        raise UpstreamTransportFailure(
            f"Backend returned HTTP {response.status_code} for tool {name}"
        )

    async def aclose(self) -> None:
        await self._client.aclose()
