"""Error taxonomy shared by the dispatcher, the relay and the app client.

Each error carries a JSON-RPC ``code`` so the relay can translate a failure
into an ``RpcResponse.error`` without inspecting message strings.

Surfacing rules:
    - DatasetNotFound / MalformedArguments raised while running a tool end up
      inside the tool envelope (``isError: true``), not as RPC errors.
    - UnknownTool, RelayNotReady, UpstreamTransportFailure and RelayTimeout
      become RPC-level errors.
    - UnauthorizedOrigin is never surfaced to any peer.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

# JSON-RPC 2.0 reserved codes
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Implementation-defined server error range
UPSTREAM_FAILURE = -32000
TIMEOUT = -32001
NOT_READY = -32002


class DataExplorerError(Exception):
    """Base class for all errors raised by this package."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str, *, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data

    def to_rpc_error(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data:
            error["data"] = self.data
        return error


class DatasetNotFound(DataExplorerError):
    code = INVALID_PARAMS

    def __init__(self, name: str) -> None:
        super().__init__("Dataset not found", data={"dataset": name})
        self.name = name


class MalformedArguments(DataExplorerError):
    code = INVALID_PARAMS


class UnknownTool(DataExplorerError):
    code = INVALID_PARAMS

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}", data={"tool": name})
        self.name = name


class InvalidRequest(DataExplorerError):
    code = INVALID_REQUEST


class RelayNotReady(DataExplorerError):
    code = NOT_READY


class RelayClosed(DataExplorerError):
    code = NOT_READY


class UpstreamTransportFailure(DataExplorerError):
    code = UPSTREAM_FAILURE


class RelayTimeout(DataExplorerError):
    code = TIMEOUT


class UnauthorizedOrigin(DataExplorerError):
    """Raised internally for messages from an unexpected peer; never sent back."""


__all__ = [
    "INVALID_REQUEST",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "UPSTREAM_FAILURE",
    "TIMEOUT",
    "NOT_READY",
    "DataExplorerError",
    "DatasetNotFound",
    "MalformedArguments",
    "UnknownTool",
    "InvalidRequest",
    "RelayNotReady",
    "RelayClosed",
    "UpstreamTransportFailure",
    "RelayTimeout",
    "UnauthorizedOrigin",
]
