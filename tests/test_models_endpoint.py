"""Tests for ServerEndpoint and PingResult."""

import pytest

from kodictrl.errors import InvalidEndpointError
from kodictrl.models.endpoint import PingResult, ServerEndpoint


class TestServerEndpoint:
    """Tests for ServerEndpoint dataclass."""

    def test_defaults(self) -> None:
        """Test default endpoint is localhost:8080."""
        endpoint = ServerEndpoint()
        assert endpoint.address == "localhost:8080"
        assert endpoint.request_timeout == 10.0
        assert endpoint.probe_timeout == 5.0

    def test_url(self) -> None:
        """Test the JSON-RPC URL."""
        endpoint = ServerEndpoint("192.168.1.50", 8080)
        assert endpoint.url == "http://192.168.1.50:8080/jsonrpc"

    def test_ipv6_is_bracketed(self) -> None:
        """Test bare IPv6 literals get brackets."""
        assert ServerEndpoint("fe80::1", 8080).base_url == "http://[fe80::1]:8080"

    @pytest.mark.parametrize(
        ("host", "port"),
        [
            ("", 8080),
            ("   ", 8080),
            ("http://kodi", 8080),
            ("kodi/jsonrpc", 8080),
            ("my kodi", 8080),
            ("kodi", 0),
            ("kodi", 70000),
        ],
    )
    def test_invalid(self, host: str, port: int) -> None:
        """Test unusable host/port raise InvalidEndpointError."""
        endpoint = ServerEndpoint(host, port)
        assert not endpoint.is_valid
        with pytest.raises(InvalidEndpointError):
            _ = endpoint.url

    def test_image_url(self) -> None:
        """Test thumbnails go through the image proxy, fully encoded."""
        endpoint = ServerEndpoint("kodi.local", 8080)
        url = endpoint.image_url("image://video@%2fmovies%2fa.mkv/")
        assert url == "http://kodi.local:8080/image/image%3A%2F%2Fvideo%40%252fmovies%252fa.mkv%2F"

    def test_image_url_empty(self) -> None:
        """Test no URL without a path or with an invalid endpoint."""
        assert ServerEndpoint().image_url(None) is None
        assert ServerEndpoint().image_url("") is None
        assert ServerEndpoint("", 8080).image_url("image://x/") is None

    def test_with_address_keeps_timeouts(self) -> None:
        """Test with_address replaces host/port only."""
        endpoint = ServerEndpoint("a", 1, request_timeout=3.0, probe_timeout=2.0)
        moved = endpoint.with_address(" b ", 9090)
        assert moved.host == "b"
        assert moved.port == 9090
        assert moved.request_timeout == 3.0
        assert moved.probe_timeout == 2.0


class TestPingResult:
    """Tests for PingResult."""

    def test_truthiness(self) -> None:
        """Test bool() follows success."""
        assert PingResult(True, "ok")
        assert not PingResult(False, "nope")
