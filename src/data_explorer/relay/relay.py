"""Host-side JSON-RPC relay between an embedded app and a tool backend.

The relay is bound to one PeerHandle when the app is embedded. Messages from
any other source are dropped without a reply. Every request from the peer
gets exactly one response with the same id while the relay is open;
notifications are only logged.

Lifecycle:
    UNINITIALIZED --ui/initialize--> READY --close()--> CLOSED

``tools/call`` is refused until the handshake completes. Methods the relay
does not know are answered with an empty result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set

from data_explorer import __version__
from data_explorer.core.errors import (
    INTERNAL_ERROR,
    DataExplorerError,
    InvalidRequest,
    MalformedArguments,
    RelayNotReady,
    RelayTimeout,
    UnauthorizedOrigin,
    UnknownTool,
)
from .backends import ToolBackend
from .messages import RpcMethod, RpcNotification, RpcRequest, RpcResponse, parse_message

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2025-11-21"
DEFAULT_TIMEOUT_SEC = 30.0
HOST_NAME = "DataExplorerHost"


class RelayState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


@dataclass(eq=False)
class PeerHandle:
    """Endpoint of the embedded app's channel.

    Handles compare by identity only: a message is accepted when its source
    is the very handle the relay was created with.
    """

    name: str
    sink: Callable[[Dict[str, Any]], Any] = field(repr=False)

    def post_message(self, message: Dict[str, Any]) -> None:
        self.sink(message)


@dataclass(frozen=True)
class HostInfo:
    name: str = HOST_NAME
    version: str = __version__

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "version": self.version}


class RpcRelay:
    """Forward JSON-RPC requests from one peer to a ToolBackend."""

    def __init__(
        self,
        peer: PeerHandle,
        backend: ToolBackend,
        *,
        timeout_sec: Optional[float] = DEFAULT_TIMEOUT_SEC,
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
        host_info: Optional[HostInfo] = None,
        host_context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._peer = peer
        self._backend = backend
        self._timeout_sec = timeout_sec
        self._protocol_version = protocol_version
        self._host_info = host_info or HostInfo()
        self._host_context = dict(host_context or {})
        self._state = RelayState.UNINITIALIZED
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> RelayState:
        return self._state

    @property
    def peer(self) -> PeerHandle:
        return self._peer

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    # -------------------------
    # MARK: Inbound
    # -------------------------

    def _authorize(self, source: object) -> None:
        if source is not self._peer:
            raise UnauthorizedOrigin("Message from unexpected peer")

    async def handle_message(self, message: Any, source: object) -> Optional[RpcResponse]:
        """Handle one inbound message and send the response, if any.

        Returns the response that was sent to the peer, or None when the
        message was dropped or was a notification.
        """
        if self._state == RelayState.CLOSED:
            logger.debug("Relay closed; ignoring inbound message")
            return None
        try:
            self._authorize(source)
        except UnauthorizedOrigin:
            logger.debug("Dropped message from unexpected source %r", source)
            return None

        parsed = parse_message(message)
        if parsed is None:
            logger.debug("Dropped non JSON-RPC message: %r", message)
            return None
        if isinstance(parsed, RpcNotification):
            logger.info("Notification: %s", parsed.method)
            return None

        response = await self._respond(parsed)
        return response if self._send(response) else None

    def submit(self, message: Any, source: object) -> asyncio.Task:
        """Schedule ``handle_message`` so several requests can be in flight."""
        task = asyncio.get_running_loop().create_task(self.handle_message(message, source))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every submitted message to finish, logging any that failed."""
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error("Relay task failed: %s", result, exc_info=result)

    def close(self) -> None:
        """Tear down the channel. The relay cannot be reopened."""
        if self._state != RelayState.CLOSED:
            logger.info("Relay for peer %s closed", self._peer.name)
        self._state = RelayState.CLOSED

    # -------------------------
    # MARK: Requests
    # -------------------------

    async def _respond(self, request: RpcRequest) -> RpcResponse:
        logger.info("Request %r: %s", request.id, request.method)
        try:
            if self._timeout_sec is None:
                result = await self._handle_request(request)
            else:
                result = await asyncio.wait_for(
                    self._handle_request(request), timeout=self._timeout_sec
                )
        except asyncio.TimeoutError:
            error = RelayTimeout(
                f"Request {request.method} timed out after {self._timeout_sec:g}s"
            )
            logger.warning("Request %r failed: %s", request.id, error.message)
            return RpcResponse(id=request.id, error=error.to_rpc_error())
        except DataExplorerError as e:
            logger.warning("Request %r failed: %s", request.id, e.message)
            return RpcResponse(id=request.id, error=e.to_rpc_error())
        except Exception as e:  # pragma: no cover - defensive
            logger.exception("Unexpected error handling request %r", request.id)
            return RpcResponse(id=request.id, error={"code": INTERNAL_ERROR, "message": str(e)})
        return RpcResponse(id=request.id, result=result)

    async def _handle_request(self, request: RpcRequest) -> Any:
        if not isinstance(request.method, str):
            raise InvalidRequest("Invalid Request: missing method")
        params = request.params if isinstance(request.params, dict) else {}

        method = RpcMethod.parse(request.method)
        if method == RpcMethod.INITIALIZE:
            return self._initialize(params)
        if method == RpcMethod.PING:
            return {}
        if method == RpcMethod.TOOLS_CALL:
            return await self._call_tool(request.params)
        logger.info("Unhandled method %s; answering with empty result", request.method)
        return {}

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if isinstance(requested, str) and requested else self._protocol_version
        if params.get("appInfo"):
            logger.info("Embedded app: %s", params.get("appInfo"))
        self._state = RelayState.READY
        return {
            "protocolVersion": version,
            "hostCapabilities": {"serverTools": {}, "logging": {}},
            "hostInfo": self._host_info.to_dict(),
            "hostContext": dict(self._host_context),
        }

    async def _call_tool(self, params: Any) -> Dict[str, Any]:
        if self._state != RelayState.READY:
            raise RelayNotReady("Relay not initialized. Send ui/initialize first.")
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            raise MalformedArguments("Invalid params: tools/call requires a string 'name'")
        name = params["name"]
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise MalformedArguments("Invalid params: 'arguments' must be an object")
        if name not in await self._backend.tool_names():
            raise UnknownTool(name)
        envelope = await self._backend.call_tool(name, arguments)
        logger.info("Tool %s %s", name, "returned an error" if envelope.get("isError") else "OK")
        return envelope

    # -------------------------
    # MARK: Outbound
    # -------------------------

    def _send(self, response: RpcResponse) -> bool:
        if self._state == RelayState.CLOSED:
            logger.debug("Relay closed; discarding response for %r", response.id)
            return False
        try:
            self._peer.post_message(response.to_dict())
        except OSError as e:
            logger.warning("Peer channel failed while sending response %r: %s", response.id, e)
            self.close()
            return False
        return True
