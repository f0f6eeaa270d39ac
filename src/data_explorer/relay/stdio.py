"""Newline-delimited JSON transport for running the relay over stdio.

The embedded app process writes one JSON-RPC frame per line to the relay's
stdin and reads responses from its stdout. Logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Callable, Dict, Optional, TextIO

from .backends import ToolBackend
from .relay import PeerHandle, RpcRelay

logger = logging.getLogger(__name__)


def _line_sink(stream: TextIO) -> Callable[[Dict[str, Any]], None]:
    def write(message: Dict[str, Any]) -> None:
        stream.write(json.dumps(message, ensure_ascii=False) + "\n")
        stream.flush()

    return write


async def run_stdio_relay(
    backend: ToolBackend,
    *,
    reader: Optional[TextIO] = None,
    writer: Optional[TextIO] = None,
    **relay_options: Any,
) -> RpcRelay:
    """Relay frames from ``reader`` until EOF, then close the relay and backend.

    Lines that are not valid JSON are logged and skipped. Returns the closed
    relay so callers can inspect its final state.
    """
    reader = reader or sys.stdin
    writer = writer or sys.stdout
    peer = PeerHandle(name="stdio", sink=_line_sink(writer))
    relay = RpcRelay(peer, backend, **relay_options)
    logger.info("Relay ready on stdio")
    try:
        while True:
            line = await asyncio.to_thread(reader.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Skipping invalid JSON frame: %s", e)
                continue
            relay.submit(message, peer)
        await relay.drain()
    finally:
        relay.close()
        await backend.aclose()
    return relay
