"""JSON-RPC frames exchanged between the embedded app and the host relay."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

JSONRPC_VERSION = "2.0"


class RpcMethod(str, Enum):
    """Methods the relay handles itself or forwards.

    Anything else resolves to ``None`` in :meth:`parse` and is answered with an
    empty result.
    """

    INITIALIZE = "ui/initialize"
    TOOLS_CALL = "tools/call"
    PING = "ping"

    @classmethod
    def parse(cls, value: object) -> Optional["RpcMethod"]:
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class RpcRequest:
    id: Any
    method: str
    params: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class RpcNotification:
    method: str
    params: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class RpcResponse:
    """Response frame carrying exactly one of ``result`` or ``error``."""

    id: Any
    result: Any = None
    error: Optional[Dict[str, Any]] = field(default=None)

    def __post_init__(self) -> None:
        if self.error is not None and self.result is not None:
            raise ValueError("RpcResponse cannot carry both result and error")

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        message: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            message["error"] = self.error
        else:
            message["result"] = {} if self.result is None else self.result
        return message

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "RpcResponse":
        return cls(id=raw.get("id"), result=raw.get("result"), error=raw.get("error"))


InboundMessage = Union[RpcRequest, RpcNotification]


def parse_message(raw: Any) -> Optional[InboundMessage]:
    """Classify an inbound frame.

    Returns None for anything that is not a JSON-RPC 2.0 object, for response
    frames, and for objects that are neither requests (``id`` key present) nor
    notifications (``method`` without ``id``). A request whose method is not a string is
    still returned so the caller can answer it with an error.
    """
    if not isinstance(raw, dict) or raw.get("jsonrpc") != JSONRPC_VERSION:
        return None
    params = raw.get("params")
    if "method" not in raw and ("result" in raw or "error" in raw):
        # a response frame; the relay never issues requests to its peer
        return None
    if "id" in raw:
        return RpcRequest(id=raw["id"], method=raw.get("method"), params=params)
    method = raw.get("method")
    if isinstance(method, str):
        return RpcNotification(method=method, params=params)
    return None


def request_frame(request_id: Any, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    frame: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": request_id, "method": method}
    if params is not None:
        frame["params"] = params
    return frame


def notification_frame(method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    frame: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params is not None:
        frame["params"] = params
    return frame
