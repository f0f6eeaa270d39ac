"""JSON-RPC relay between an embedded app and the tool backend."""

from .backends import HttpToolBackend, LocalToolBackend, ToolBackend
from .messages import (
    JSONRPC_VERSION,
    RpcMethod,
    RpcNotification,
    RpcRequest,
    RpcResponse,
    notification_frame,
    parse_message,
    request_frame,
)
from .relay import DEFAULT_PROTOCOL_VERSION, HostInfo, PeerHandle, RelayState, RpcRelay
from .stdio import run_stdio_relay

__all__ = [
    "ToolBackend",
    "LocalToolBackend",
    "HttpToolBackend",
    "JSONRPC_VERSION",
    "RpcMethod",
    "RpcRequest",
    "RpcNotification",
    "RpcResponse",
    "parse_message",
    "request_frame",
    "notification_frame",
    "DEFAULT_PROTOCOL_VERSION",
    "HostInfo",
    "PeerHandle",
    "RelayState",
    "RpcRelay",
    "run_stdio_relay",
]
