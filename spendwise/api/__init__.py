"""HTTP API package."""

from spendwise.api.server import create_app

__all__ = ["create_app"]
