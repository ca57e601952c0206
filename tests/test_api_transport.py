"""Tests for KodiTransport (JSON-RPC over HTTP)."""

import json
from unittest.mock import Mock

import httpx
import pytest

from conftest import FakeKodi
from kodictrl.api import methods
from kodictrl.api.transport import KodiTransport
from kodictrl.errors import (
    InvalidEndpointError,
    KodiConnectionError,
    KodiError,
    MalformedResponseError,
    RpcError,
    TransportError,
)
from kodictrl.models.endpoint import ServerEndpoint


class TestKodiTransportBasics:
    """Test transport setup."""

    def test_default_endpoint(self) -> None:
        """Test default endpoint is localhost:8080."""
        assert KodiTransport().endpoint == ServerEndpoint()

    def test_set_endpoint(self) -> None:
        """Test endpoint replacement."""
        transport = KodiTransport()
        transport.set_endpoint(ServerEndpoint("kodi.local", 9090))
        assert transport.endpoint.address == "kodi.local:9090"


class TestKodiTransportCalls:
    """Test successful calls."""

    @pytest.mark.asyncio
    async def test_call_returns_result(self, transport: KodiTransport) -> None:
        """Test the result member is returned."""
        assert await transport.call("JSONRPC.Ping") == "pong"

    @pytest.mark.asyncio
    async def test_request_body(self, transport: KodiTransport, kodi: FakeKodi) -> None:
        """Test the POST target, headers and JSON envelope."""
        kodi.results["Player.PlayPause"] = {"speed": 0}
        await transport.request(methods.PlayPause(1))

        request = kodi.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://kodi.local:8080/jsonrpc"
        assert request.headers["content-type"] == "application/json"
        body = json.loads(request.content)
        assert body["jsonrpc"] == "2.0"
        assert body["method"] == "Player.PlayPause"
        assert body["params"] == {"playerid": 1}

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, transport: KodiTransport, kodi: FakeKodi) -> None:
        """Test each request gets a new id."""
        await transport.call("JSONRPC.Ping")
        await transport.call("JSONRPC.Ping")
        ids = [json.loads(r.content)["id"] for r in kodi.requests]
        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_completed_handler(self, transport: KodiTransport) -> None:
        """Test on_completed receives the method name."""
        on_completed = Mock()
        on_failed = Mock()
        transport.set_event_handlers(on_completed=on_completed, on_failed=on_failed)

        await transport.call("JSONRPC.Ping")

        on_completed.assert_called_once_with("JSONRPC.Ping")
        on_failed.assert_not_called()

    @pytest.mark.asyncio
    async def test_endpoint_change_applies_to_next_request(
        self, transport: KodiTransport, kodi: FakeKodi
    ) -> None:
        """Test requests after set_endpoint go to the new host."""
        await transport.call("JSONRPC.Ping")
        transport.set_endpoint(ServerEndpoint("10.0.0.2", 8081))
        await transport.call("JSONRPC.Ping")

        assert str(kodi.requests[0].url) == "http://kodi.local:8080/jsonrpc"
        assert str(kodi.requests[1].url) == "http://10.0.0.2:8081/jsonrpc"

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, kodi: FakeKodi) -> None:
        """Test the async context manager closes the HTTP client."""
        async with KodiTransport(http_transport=kodi.transport()) as transport:
            await transport.call("JSONRPC.Ping")
            assert transport._http is not None
        assert transport._http is None


class TestKodiTransportFailures:
    """Test failure classification."""

    @pytest.mark.asyncio
    async def test_rpc_error(self, transport: KodiTransport, kodi: FakeKodi) -> None:
        """Test a JSON-RPC error raises RpcError and notifies."""
        kodi.errors["Player.Stop"] = (-32100, "Failed to execute method.")
        on_failed = Mock()
        transport.set_event_handlers(on_failed=on_failed)

        with pytest.raises(RpcError) as exc_info:
            await transport.request(methods.Stop(1))

        assert exc_info.value.code == -32100
        on_failed.assert_called_once_with(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout(self, transport: KodiTransport, kodi: FakeKodi) -> None:
        """Test timeouts become KodiConnectionError."""
        kodi.fail_with = httpx.ReadTimeout("timed out")
        with pytest.raises(KodiConnectionError) as exc_info:
            await transport.call("JSONRPC.Ping")
        assert "timed out after 10s" in exc_info.value.user_message
        assert exc_info.value.user_message.startswith("Connection error: ")

    @pytest.mark.asyncio
    async def test_connect_error(self, transport: KodiTransport, kodi: FakeKodi) -> None:
        """Test refused connections become KodiConnectionError."""
        kodi.fail_with = httpx.ConnectError("Connection refused")
        with pytest.raises(KodiConnectionError, match="Connection refused"):
            await transport.call("JSONRPC.Ping")

    @pytest.mark.asyncio
    async def test_http_status(self, transport: KodiTransport, kodi: FakeKodi) -> None:
        """Test non-2xx status becomes KodiConnectionError."""
        kodi.status_code = 401
        with pytest.raises(KodiConnectionError, match="HTTP 401"):
            await transport.call("JSONRPC.Ping")

    @pytest.mark.asyncio
    async def test_non_json_body(self, kodi: FakeKodi, endpoint: ServerEndpoint) -> None:
        """Test an undecodable body is a parsing error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>not json</html>")

        async with KodiTransport(endpoint, httpx.MockTransport(handler)) as transport:
            with pytest.raises(MalformedResponseError) as exc_info:
                await transport.call("JSONRPC.Ping")
        assert exc_info.value.user_message.startswith("Parsing error")

    @pytest.mark.asyncio
    async def test_json_array_body(self, endpoint: ServerEndpoint) -> None:
        """Test a JSON array (batch reply) is rejected."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"id": 1, "result": "pong"}])

        async with KodiTransport(endpoint, httpx.MockTransport(handler)) as transport:
            with pytest.raises(MalformedResponseError):
                await transport.call("JSONRPC.Ping")

    @pytest.mark.asyncio
    async def test_invalid_endpoint(self, kodi: FakeKodi) -> None:
        """Test an unusable endpoint fails before any request."""
        on_failed = Mock()
        async with KodiTransport(ServerEndpoint("", 8080), kodi.transport()) as transport:
            transport.set_event_handlers(on_failed=on_failed)
            with pytest.raises(InvalidEndpointError) as exc_info:
                await transport.call("JSONRPC.Ping")

        assert kodi.requests == []
        assert isinstance(exc_info.value, TransportError)
        assert exc_info.value.user_message.startswith("Failed to create URL")
        on_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_notify_false(self, transport: KodiTransport, kodi: FakeKodi) -> None:
        """Test notify=False keeps failures off the handlers."""
        kodi.fail_with = httpx.ConnectError("down")
        on_failed = Mock()
        transport.set_event_handlers(on_failed=on_failed)

        with pytest.raises(KodiError):
            await transport.call("JSONRPC.Ping", notify=False)

        on_failed.assert_not_called()

    @pytest.mark.asyncio
    async def test_handler_exception_does_not_mask_error(
        self, transport: KodiTransport, kodi: FakeKodi
    ) -> None:
        """Test a raising handler is logged, and the request error still raised."""
        kodi.fail_with = httpx.ConnectError("down")
        transport.set_event_handlers(on_failed=Mock(side_effect=RuntimeError("ui gone")))

        with pytest.raises(KodiConnectionError):
            await transport.call("JSONRPC.Ping")
