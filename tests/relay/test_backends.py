"""Tests for the local and HTTP tool backends."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from data_explorer.core.errors import UpstreamTransportFailure
from data_explorer.interfaces.mcp.server import build_server
from data_explorer.relay import HttpToolBackend, LocalToolBackend, PeerHandle, RpcRelay


def _text(envelope):
    return json.loads(envelope["content"][0]["text"])


def _asgi_backend(store) -> HttpToolBackend:
    app = build_server(store).streamable_http_app()
    client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )
    return HttpToolBackend("http://testserver", client=client)


def _mock_backend(handler) -> HttpToolBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://backend")
    return HttpToolBackend("http://backend", client=client)


class TestLocalToolBackend:
    def test_call_tool_returns_envelope(self, dispatcher):
        backend = LocalToolBackend(dispatcher)

        async def scenario():
            names = await backend.tool_names()
            envelope = await backend.call_tool("get-schema", {"dataset": "weather"})
            await backend.aclose()
            return names, envelope

        names, envelope = asyncio.run(scenario())
        assert "export-data" in names
        assert _text(envelope)["name"] == "weather"


class TestHttpToolBackend:
    def test_tool_names_from_discovery(self, store):
        backend = _asgi_backend(store)

        async def scenario():
            try:
                return await backend.tool_names()
            finally:
                await backend.aclose()

        assert asyncio.run(scenario()) == [
            "list-datasets",
            "get-schema",
            "query-data",
            "aggregate",
            "export-data",
        ]

    def test_success_is_rewrapped(self, store):
        backend = _asgi_backend(store)

        async def scenario():
            try:
                return await backend.call_tool(
                    "aggregate",
                    {"dataset": "sales", "groupBy": "region", "metric": "units", "operation": "count"},
                )
            finally:
                await backend.aclose()

        envelope = asyncio.run(scenario())
        assert "isError" not in envelope
        assert _text(envelope)["results"][-1] == {"group": "West", "value": 3.0}

    def test_tool_errors_become_error_envelopes(self, store):
        backend = _asgi_backend(store)

        async def scenario():
            try:
                missing = await backend.call_tool("query-data", {"dataset": "nonexistent"})
                malformed = await backend.call_tool("get-schema", {})
                return missing, malformed
            finally:
                await backend.aclose()

        missing, malformed = asyncio.run(scenario())
        assert missing["isError"] is True
        assert _text(missing) == {"error": "Dataset not found"}
        assert malformed["isError"] is True
        assert "dataset" in _text(malformed)["error"]

    def test_server_error_is_transport_failure(self):
        backend = _mock_backend(lambda request: httpx.Response(500, json={"error": "crash"}))

        async def scenario():
            try:
                await backend.call_tool("list-datasets", {})
            finally:
                await backend.aclose()

        with pytest.raises(UpstreamTransportFailure, match="HTTP 500"):
            asyncio.run(scenario())

    def test_connection_error_is_transport_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend = _mock_backend(refuse)

        async def scenario():
            try:
                await backend.tool_names()
            finally:
                await backend.aclose()

        with pytest.raises(UpstreamTransportFailure, match="ConnectError"):
            asyncio.run(scenario())

    def test_invalid_json_is_transport_failure(self):
        backend = _mock_backend(lambda request: httpx.Response(200, content=b"<html>"))

        async def scenario():
            try:
                await backend.call_tool("list-datasets", {})
            finally:
                await backend.aclose()

        with pytest.raises(UpstreamTransportFailure, match="invalid JSON"):
            asyncio.run(scenario())

    def test_relay_over_http_backend(self, store):
        sent = []
        peer = PeerHandle(name="app", sink=sent.append)

        async def scenario():
            relay = RpcRelay(peer, _asgi_backend(store))
            await relay.handle_message(
                {"jsonrpc": "2.0", "id": 1, "method": "ui/initialize", "params": {}}, peer
            )
            await relay.handle_message(
                {
                    "jsonrpc": "2.0",
                    "id": 2,
                    "method": "tools/call",
                    "params": {"name": "list-datasets", "arguments": {}},
                },
                peer,
            )

        asyncio.run(scenario())
        assert [m["id"] for m in sent] == [1, 2]
        assert [row["name"] for row in _text(sent[1]["result"])] == ["sales", "movies", "weather"]
