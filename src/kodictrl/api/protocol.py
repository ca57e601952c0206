"""JSON-RPC 2.0 envelope types for Kodi communication."""

from dataclasses import dataclass, field
from typing import Any

from kodictrl.errors import MalformedResponseError, RpcError

JSONRPC_VERSION = "2.0"


@dataclass(frozen=True)
class JsonRpcRequest:
    """A JSON-RPC 2.0 request.

    Kodi answers one request per HTTP POST, so the id is not used for
    correlation today. It is still sent and echoed back.

    Attributes:
        method: Method name to call.
        params: Method parameters.
        id: Request identifier.
    """

    method: str
    params: dict[str, Any] = field(default_factory=dict)
    id: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "method": self.method,
            "params": self.params,
            "id": self.id,
        }

    @classmethod
    def call(
        cls,
        method: str,
        params: dict[str, Any] | None = None,
        request_id: int = 1,
    ) -> "JsonRpcRequest":
        """Create a method call request."""
        return cls(method=method, params=dict(params or {}), id=request_id)


@dataclass(frozen=True)
class JsonRpcError:
    """A JSON-RPC 2.0 error object.

    Attributes:
        code: Error code.
        message: Error message.
        data: Additional error data.
    """

    code: int
    message: str
    data: Any = None

    def __str__(self) -> str:
        """Return error message representation."""
        if self.data:
            return f"[{self.code}] {self.message}: {self.data}"
        return f"[{self.code}] {self.message}"


@dataclass(frozen=True)
class JsonRpcResponse:
    """A JSON-RPC 2.0 response.

    Attributes:
        id: Request identifier matching the request.
        result: Result data (None if error).
        error: Error data (None if success).
    """

    id: int | str | None = None
    result: Any = None
    error: JsonRpcError | None = None

    def unwrap(self, method: str = "") -> Any:
        """Return the result or raise the server's error.

        Raises:
            RpcError: If the response carries an error object.
        """
        if self.error is not None:
            raise RpcError(self.error.code, self.error.message, method)
        return self.result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JsonRpcResponse":
        """Create response from a decoded JSON object.

        Raises:
            MalformedResponseError: If neither result nor a well-formed error
                is present.
        """
        error_data = data.get("error")
        error: JsonRpcError | None = None
        if error_data is not None:
            if not isinstance(error_data, dict):
                raise MalformedResponseError(f"error member is not an object: {error_data!r}")
            code = error_data.get("code", -1)
            error = JsonRpcError(
                code=code if isinstance(code, int) else -1,
                message=str(error_data.get("message", "Unknown error")),
                data=error_data.get("data"),
            )
        elif "result" not in data:
            raise MalformedResponseError("response has neither result nor error")
        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=error,
        )
