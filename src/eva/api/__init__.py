"""HTTP and WebSocket bridge for the presentation layer."""

from eva.api.app import create_app

__all__ = ["create_app"]
