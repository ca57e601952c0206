"""kodictrl - Kodi JSON-RPC remote control core."""

__version__ = "0.1.0"
