"""Embedded-app side of the JSON-RPC channel.

AppClient issues requests with unique ids and resolves each one when the
response with the matching id arrives, in whatever order responses come
back. ``call_server_tool`` unwraps the text envelope produced by the backend.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from data_explorer import __version__
from data_explorer.core.errors import DataExplorerError, RelayClosed
from data_explorer.relay.backends import ToolBackend
from data_explorer.relay.messages import RpcResponse, notification_frame, request_frame
from data_explorer.relay.relay import DEFAULT_PROTOCOL_VERSION, PeerHandle, RpcRelay

logger = logging.getLogger(__name__)

APP_NAME = "DataExplorer"


class RpcCallError(DataExplorerError):
    """The relay answered a request with an RPC-level error."""

    def __init__(self, error: Dict[str, Any]) -> None:
        super().__init__(str(error.get("message", "RPC error")), data=error.get("data"))
        self.code = int(error.get("code") or self.code)


class ToolCallError(DataExplorerError):
    """The tool ran but reported an error inside its envelope."""


class AppClient:
    """Correlate outgoing requests with incoming responses by id."""

    def __init__(
        self,
        send: Callable[[Dict[str, Any]], Any],
        *,
        app_name: str = APP_NAME,
        app_version: str = __version__,
    ) -> None:
        self._send = send
        self._ids = itertools.count(1)
        self._pending: Dict[str, asyncio.Future] = {}
        self._closed = False
        self.app_info = {"name": app_name, "version": app_version}
        self.host_info: Optional[Dict[str, Any]] = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _next_id(self) -> str:
        return str(next(self._ids))

    async def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a request and wait for its response.

        Raises:
            RpcCallError: If the response carries an error.
            RelayClosed: If the client is closed before the response arrives.
        """
        if self._closed:
            raise RelayClosed("Client is closed")
        request_id = self._next_id()
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            self._send(request_frame(request_id, method, params))
            response: RpcResponse = await future
        finally:
            self._pending.pop(request_id, None)
        if response.is_error:
            raise RpcCallError(response.error or {})
        return response.result

    def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        self._send(notification_frame(method, params))

    def receive(self, message: Any) -> bool:
        """Deliver an inbound frame. Returns True when it resolved a request."""
        if not isinstance(message, dict) or "id" not in message:
            logger.debug("Ignoring frame without id: %r", message)
            return False
        request_id = str(message.get("id"))
        future = self._pending.get(request_id)
        if future is None or future.done():
            logger.warning("Response for unknown request id %s", request_id)
            return False
        future.set_result(RpcResponse.from_dict(message))
        return True

    def close(self) -> None:
        self._closed = True
        for future in self._pending.values():
            if not future.done():
                future.set_exception(RelayClosed("Connection closed"))

    async def initialize(self, protocol_version: str = DEFAULT_PROTOCOL_VERSION) -> Dict[str, Any]:
        result = await self.request(
            "ui/initialize",
            {"protocolVersion": protocol_version, "appInfo": self.app_info},
        )
        self.host_info = result.get("hostInfo")
        return result

    async def call_server_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """Call a backend tool and return its decoded JSON payload."""
        envelope = await self.request("tools/call", {"name": name, "arguments": arguments or {}})
        envelope = envelope or {}
        content = envelope.get("content") or []
        payload: Any = None
        if content and content[0].get("type") == "text":
            payload = json.loads(content[0]["text"])
        if envelope.get("isError"):
            message = payload.get("error") if isinstance(payload, dict) else None
            raise ToolCallError(str(message or f"Tool {name} failed"), data={"tool": name})
        return payload


def connect_local(backend: ToolBackend, **relay_options: Any) -> Tuple[AppClient, RpcRelay]:
    """Wire an AppClient to a relay in the same event loop.

    The relay's peer handle delivers responses straight to the client; the
    client's requests are submitted to the relay as coming from that handle.
    """
    client: AppClient
    peer = PeerHandle(name="embedded-app", sink=lambda message: client.receive(message))
    relay = RpcRelay(peer, backend, **relay_options)
    client = AppClient(send=lambda message: relay.submit(message, peer))
    return client, relay
