"""Error taxonomy for the Kodi JSON-RPC core.

Transport failures (bad endpoint, network, undecodable body) derive from
TransportError. RpcError carries a JSON-RPC error object returned by Kodi.
NoActivePlayerError never reaches users: the controller absorbs it.
"""


class KodiError(Exception):
    """Base class for all kodictrl errors."""

    summary: str = "Request failed"

    def __init__(self, cause: object = "") -> None:
        """Initialize the error.

        Args:
            cause: Underlying exception or description.
        """
        self.cause = cause
        super().__init__(str(cause) if cause else self.summary)

    @property
    def user_message(self) -> str:
        """Return a human-readable message with the underlying cause."""
        detail = str(self.cause) if self.cause else ""
        if detail:
            return f"{self.summary}: {detail}"
        return self.summary


class TransportError(KodiError):
    """The request never produced a usable JSON-RPC envelope."""


class InvalidEndpointError(TransportError, ValueError):
    """Host/port do not form a valid JSON-RPC URL."""

    summary = "Failed to create URL"


class KodiConnectionError(TransportError, ConnectionError):
    """Network failure, timeout, or non-success HTTP status."""

    summary = "Connection error"


class MalformedResponseError(TransportError):
    """Response body is not a JSON object."""

    summary = "Parsing error"


class RpcError(KodiError):
    """Kodi answered with a JSON-RPC error object."""

    summary = "Operation failed"

    def __init__(self, code: int, message: str, method: str = "") -> None:
        """Initialize the error.

        Args:
            code: JSON-RPC error code.
            message: JSON-RPC error message.
            method: Method that failed, for diagnostics.
        """
        self.code = code
        self.message = message
        self.method = method
        prefix = f"{method} " if method else ""
        super().__init__(f"{prefix}[{code}] {message}")


class NoActivePlayerError(KodiError):
    """A Player.* command was issued while nothing is playing."""

    summary = "No active player"
