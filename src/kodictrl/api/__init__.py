"""API client for Kodi JSON-RPC over HTTP."""

from kodictrl.api.client import ActivePlayer, KodiClient, PlayerProperties
from kodictrl.api.methods import Direction, InputAction, VolumeStep
from kodictrl.api.protocol import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from kodictrl.api.transport import KodiTransport

__all__ = [
    "ActivePlayer",
    "Direction",
    "InputAction",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "KodiClient",
    "KodiTransport",
    "PlayerProperties",
    "VolumeStep",
]
