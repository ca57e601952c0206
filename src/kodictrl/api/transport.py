"""Kodi JSON-RPC transport over HTTP.

Kodi's web server accepts one JSON-RPC envelope per POST to /jsonrpc.
Every call is at-most-once: failures are classified, reported to the
registered failure handler, and raised to the caller, which decides whether
to retry.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

import httpx

from kodictrl.api.methods import RpcMethod
from kodictrl.api.protocol import JsonRpcRequest, JsonRpcResponse
from kodictrl.errors import (
    InvalidEndpointError,
    KodiConnectionError,
    KodiError,
    MalformedResponseError,
)
from kodictrl.models.endpoint import ServerEndpoint

logger = logging.getLogger(__name__)

# Type aliases for event handlers
CompletedHandler = Callable[[str], None]
FailedHandler = Callable[[KodiError], None]

_HEADERS = {"Content-Type": "application/json"}


class KodiTransport:
    """Async HTTP transport for Kodi JSON-RPC.

    Example:
        async with KodiTransport(ServerEndpoint("192.168.1.50", 8080)) as transport:
            result = await transport.call("JSONRPC.Ping")
            print(result)  # "pong"
    """

    def __init__(
        self,
        endpoint: ServerEndpoint | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            endpoint: Kodi endpoint (defaults to localhost:8080).
            http_transport: Optional httpx transport, e.g. httpx.MockTransport.
        """
        self._endpoint = endpoint or ServerEndpoint()
        self._http_transport = http_transport
        self._http: httpx.AsyncClient | None = None
        self._request_id: int = 0

        # Event handlers
        self._on_completed: CompletedHandler | None = None
        self._on_failed: FailedHandler | None = None

    @property
    def endpoint(self) -> ServerEndpoint:
        """Return the current endpoint."""
        return self._endpoint

    def set_endpoint(self, endpoint: ServerEndpoint) -> None:
        """Point subsequent requests at a new endpoint.

        Requests already in flight finish against the endpoint they started with.

        Args:
            endpoint: The new endpoint.
        """
        if endpoint != self._endpoint:
            logger.info("Kodi endpoint changed: %s -> %s", self._endpoint.address, endpoint.address)
        self._endpoint = endpoint

    def set_event_handlers(
        self,
        on_completed: CompletedHandler | None = None,
        on_failed: FailedHandler | None = None,
    ) -> None:
        """Set event handlers for request outcomes.

        Args:
            on_completed: Called with the method name after a successful call.
            on_failed: Called with the error after any failed call.
        """
        self._on_completed = on_completed
        self._on_failed = on_failed

    async def __aenter__(self) -> "KodiTransport":
        """Enter async context."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context (close HTTP client)."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _client(self) -> httpx.AsyncClient:
        """Return the shared HTTP client, creating it lazily."""
        if self._http is None:
            self._http = httpx.AsyncClient(transport=self._http_transport)
        return self._http

    def _next_id(self) -> int:
        """Generate next request ID."""
        self._request_id += 1
        return self._request_id

    async def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
        notify: bool = True,
    ) -> dict[str, Any]:
        """POST a JSON-RPC request and return the decoded envelope.

        Args:
            method: Method name.
            params: Method parameters.
            timeout: Override in seconds (default: endpoint.request_timeout).
            notify: Whether to report the outcome to the event handlers.

        Returns:
            The decoded JSON object (result or error envelope).

        Raises:
            InvalidEndpointError: If host/port do not form a URL.
            KodiConnectionError: On network failure, timeout or HTTP error status.
            MalformedResponseError: If the body is not a JSON object.
        """
        try:
            data = await self._post(method, params, timeout)
        except KodiError as e:
            logger.debug("%s failed: %s", method, e.user_message)
            if notify:
                self._emit_failed(e)
            raise
        return data

    async def _post(
        self,
        method: str,
        params: dict[str, Any] | None,
        timeout: float | None,
    ) -> dict[str, Any]:
        """Perform the HTTP exchange and classify failures."""
        endpoint = self._endpoint
        url = endpoint.url

        request = JsonRpcRequest.call(method, params, self._next_id())
        effective_timeout = timeout if timeout is not None else endpoint.request_timeout
        logger.debug("-> %s %s %s", endpoint.address, method, request.params)

        try:
            response = await self._client().post(
                url,
                json=request.to_dict(),
                headers=_HEADERS,
                timeout=effective_timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise KodiConnectionError(f"request timed out after {effective_timeout:g}s") from e
        except httpx.HTTPStatusError as e:
            raise KodiConnectionError(f"HTTP {e.response.status_code}") from e
        except httpx.InvalidURL as e:
            raise InvalidEndpointError(e) from e
        except (httpx.HTTPError, OSError) as e:
            raise KodiConnectionError(str(e) or type(e).__name__) from e

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponseError(e) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(f"expected a JSON object, got {type(data).__name__}")
        logger.debug("<- %s %s", method, data)
        return data

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
        notify: bool = True,
    ) -> Any:
        """Call a JSON-RPC method and return its result.

        Args:
            method: Method name.
            params: Method parameters.
            timeout: Override in seconds.
            notify: Whether to report the outcome to the event handlers.

        Returns:
            The method result.

        Raises:
            TransportError: As for send().
            RpcError: If Kodi returns a JSON-RPC error object.
        """
        data = await self.send(method, params, timeout=timeout, notify=notify)
        try:
            result = JsonRpcResponse.from_dict(data).unwrap(method)
        except KodiError as e:
            logger.debug("%s returned error: %s", method, e)
            if notify:
                self._emit_failed(e)
            raise
        if notify:
            self._emit_completed(method)
        return result

    async def request(
        self,
        rpc: RpcMethod,
        *,
        timeout: float | None = None,
        notify: bool = True,
    ) -> Any:
        """Call a typed method (see kodictrl.api.methods)."""
        return await self.call(rpc.method, rpc.params(), timeout=timeout, notify=notify)

    def _emit_completed(self, method: str) -> None:
        """Emit completion to handler."""
        if self._on_completed:
            try:
                self._on_completed(method)
            except Exception:
                logger.exception("Request-completed handler raised")

    def _emit_failed(self, error: KodiError) -> None:
        """Emit failure to handler."""
        if self._on_failed:
            try:
                self._on_failed(error)
            except Exception:
                logger.exception("Request-failed handler raised")
