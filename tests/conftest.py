"""Test fixtures for kodictrl tests."""

import asyncio
import json
import os
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest

from kodictrl.api.client import KodiClient
from kodictrl.api.transport import KodiTransport
from kodictrl.models.endpoint import ServerEndpoint

# Qt tests run headless
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

METHOD_NOT_FOUND = -32601


def kodi_time(total_seconds: int) -> dict[str, int]:
    """Return a Kodi time object for a number of seconds."""
    return {
        "hours": total_seconds // 3600,
        "minutes": (total_seconds % 3600) // 60,
        "seconds": total_seconds % 60,
        "milliseconds": 0,
    }


class FakeKodi:
    """In-memory Kodi JSON-RPC server behind httpx.MockTransport.

    Results are registered per method; a registered value may be a callable
    taking the params dict. Unregistered methods answer with a JSON-RPC
    "Method not found" error.
    """

    def __init__(self) -> None:
        self.results: dict[str, Any] = {"JSONRPC.Ping": "pong"}
        self.errors: dict[str, tuple[int, str]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.requests: list[httpx.Request] = []
        self.fail_with: Exception | None = None
        self.status_code = 200
        self._holds: dict[str, asyncio.Event] = {}

    # -- Scenario helpers --------------------------------------------------------

    def play(
        self,
        position: int,
        duration: int,
        *,
        player_id: int = 1,
        speed: int = 1,
        item: dict[str, Any] | None = None,
        volume: int = 50,
    ) -> None:
        """Configure an active player at position/duration seconds."""
        self.results["Player.GetActivePlayers"] = [
            {"playerid": player_id, "playertype": "internal", "type": "video"}
        ]
        self.results["Player.GetProperties"] = {
            "time": kodi_time(position),
            "totaltime": kodi_time(duration),
            "speed": speed,
        }
        self.results["Player.GetItem"] = {
            "item": item
            if item is not None
            else {
                "label": "Big Buck Bunny",
                "title": "Big Buck Bunny",
                "year": 2008,
                "genre": ["Animation", "Comedy"],
                "thumbnail": "image://video@%2fmovies%2fbbb.mkv/",
                "type": "movie",
            }
        }
        self.results["Application.GetProperties"] = {"volume": volume, "muted": False}

    def idle(self) -> None:
        """Configure Kodi with nothing playing."""
        self.results["Player.GetActivePlayers"] = []
        self.results.setdefault("Application.GetProperties", {"volume": 50, "muted": False})

    def hold(self, method: str) -> asyncio.Event:
        """Block the next call of method until the returned event is set."""
        event = asyncio.Event()
        self._holds[method] = event
        return event

    def methods(self) -> list[str]:
        """Return the methods called, in order."""
        return [method for method, _ in self.calls]

    def params_of(self, method: str) -> list[dict[str, Any]]:
        """Return params of every call to method."""
        return [params for called, params in self.calls if called == method]

    # -- MockTransport handler ---------------------------------------------------

    async def handle(self, request: httpx.Request) -> httpx.Response:
        """Answer one JSON-RPC POST."""
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="error")

        body = json.loads(request.content)
        method = body["method"]
        params = body.get("params", {})
        self.calls.append((method, params))

        hold = self._holds.pop(method, None)
        if hold is not None:
            await hold.wait()

        envelope: dict[str, Any] = {"jsonrpc": "2.0", "id": body.get("id")}
        if method in self.errors:
            code, message = self.errors[method]
            envelope["error"] = {"code": code, "message": message}
        elif method in self.results:
            result = self.results[method]
            envelope["result"] = result(params) if callable(result) else result
        else:
            envelope["error"] = {"code": METHOD_NOT_FOUND, "message": "Method not found."}
        return httpx.Response(200, json=envelope)

    def transport(self) -> httpx.MockTransport:
        """Return an httpx transport serving this fake."""
        return httpx.MockTransport(self.handle)


@pytest.fixture
def kodi() -> FakeKodi:
    """Return a fresh fake Kodi server."""
    return FakeKodi()


@pytest.fixture
def endpoint() -> ServerEndpoint:
    """Return a test endpoint."""
    return ServerEndpoint("kodi.local", 8080)


@pytest.fixture
async def transport(
    kodi: FakeKodi, endpoint: ServerEndpoint
) -> AsyncGenerator[KodiTransport, None]:
    """Return a transport wired to the fake Kodi."""
    transport = KodiTransport(endpoint, http_transport=kodi.transport())
    yield transport
    await transport.aclose()


@pytest.fixture
def client(transport: KodiTransport) -> KodiClient:
    """Return a client on the fake transport."""
    return KodiClient(transport)
