"""Embedded-application side: RPC client and explorer session state."""

from .client import AppClient, RpcCallError, ToolCallError, connect_local
from .session import (
    DataExplorerController,
    ExplorerSession,
    FilterInput,
    collect_filters,
)

__all__ = [
    "AppClient",
    "RpcCallError",
    "ToolCallError",
    "connect_local",
    "DataExplorerController",
    "ExplorerSession",
    "FilterInput",
    "collect_filters",
]
