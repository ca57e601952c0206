"""Kodi server endpoint model."""

from dataclasses import dataclass
from urllib.parse import quote

from kodictrl.errors import InvalidEndpointError

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_PROBE_TIMEOUT = 5.0

_MAX_PORT = 65535
_FORBIDDEN_HOST_CHARS = frozenset(" \t\r\n/?#@")


@dataclass(frozen=True, slots=True)
class ServerEndpoint:
    """Where Kodi's JSON-RPC HTTP interface lives.

    Attributes:
        host: Hostname or IP address (no scheme, no path).
        port: HTTP port of Kodi's web server (default 8080).
        request_timeout: Timeout for commands and polls in seconds.
        probe_timeout: Timeout for connectivity probes in seconds.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT

    @property
    def address(self) -> str:
        """Return the server address (host:port)."""
        return f"{self.host}:{self.port}"

    @property
    def is_valid(self) -> bool:
        """Return True if host and port produce a usable URL."""
        try:
            self.validate()
        except InvalidEndpointError:
            return False
        return True

    def validate(self) -> None:
        """Check host and port.

        Raises:
            InvalidEndpointError: If host is empty, contains a scheme, path or
                whitespace, or port is outside 1-65535.
        """
        host = self.host.strip()
        if not host:
            raise InvalidEndpointError("empty host")
        if "://" in host or any(ch in _FORBIDDEN_HOST_CHARS for ch in self.host):
            raise InvalidEndpointError(f"invalid host {self.host!r}")
        if not isinstance(self.port, int) or not 1 <= self.port <= _MAX_PORT:
            raise InvalidEndpointError(f"invalid port {self.port!r}")

    @property
    def base_url(self) -> str:
        """Return http://host:port, validating first."""
        self.validate()
        host = self.host
        # Bare IPv6 literals need brackets inside a URL
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"http://{host}:{self.port}"

    @property
    def url(self) -> str:
        """Return the JSON-RPC URL."""
        return f"{self.base_url}/jsonrpc"

    def image_url(self, path: str | None) -> str | None:
        """Return the Kodi image proxy URL for a thumbnail path.

        Args:
            path: Kodi image path, e.g. "image://http%3a%2f%2f.../".

        Returns:
            URL string, or None if path is empty or the endpoint is invalid.
        """
        if not path or not self.is_valid:
            return None
        return f"{self.base_url}/image/{quote(path, safe='')}"

    def with_address(self, host: str, port: int) -> "ServerEndpoint":
        """Return a copy pointing at a different host/port, keeping timeouts."""
        return ServerEndpoint(
            host=host.strip(),
            port=port,
            request_timeout=self.request_timeout,
            probe_timeout=self.probe_timeout,
        )


@dataclass(frozen=True, slots=True)
class PingResult:
    """Outcome of a connectivity probe (JSONRPC.Ping).

    Attributes:
        success: True only if Kodi answered "pong".
        message: Human-readable outcome for the caller's feedback path.
    """

    success: bool
    message: str = ""

    def __bool__(self) -> bool:
        """Truthiness follows success."""
        return self.success
