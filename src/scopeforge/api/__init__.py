"""HTTP API."""

from scopeforge.api.app import app

__all__ = ["app"]
