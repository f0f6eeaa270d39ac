"""Tests for the newline-delimited JSON stdio transport."""

from __future__ import annotations

import asyncio
import io
import json

from data_explorer.relay import LocalToolBackend, RelayState, run_stdio_relay


def _lines(*frames) -> io.StringIO:
    text = "".join((f if isinstance(f, str) else json.dumps(f)) + "\n" for f in frames)
    return io.StringIO(text)


def test_stdio_relay_round_trip(dispatcher):
    reader = _lines(
        {"jsonrpc": "2.0", "id": 1, "method": "ui/initialize", "params": {}},
        "not json at all",
        "",
        {"jsonrpc": "2.0", "method": "ui/notifications/initialized"},
    )
    writer = io.StringIO()

    relay = asyncio.run(run_stdio_relay(LocalToolBackend(dispatcher), reader=reader, writer=writer))

    assert relay.state == RelayState.CLOSED
    out = [json.loads(line) for line in writer.getvalue().splitlines()]
    assert len(out) == 1
    assert out[0]["id"] == 1
    assert out[0]["result"]["protocolVersion"] == "2025-11-21"


def test_stdio_relay_refuses_tools_before_initialize(dispatcher):
    reader = _lines(
        {"jsonrpc": "2.0", "id": 7, "method": "tools/call", "params": {"name": "list-datasets"}},
        {"jsonrpc": "2.0", "id": 8, "method": "ping"},
    )
    writer = io.StringIO()
    asyncio.run(run_stdio_relay(LocalToolBackend(dispatcher), reader=reader, writer=writer))
    out = {m["id"]: m for m in (json.loads(l) for l in writer.getvalue().splitlines())}
    assert out[7]["error"]["code"] == -32002
    assert out[8]["result"] == {}
