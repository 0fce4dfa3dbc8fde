"""Authentication package for HTTP API."""

from .dependencies import get_current_token, require_api_token, require_scope

__all__ = [
    "get_current_token",
    "require_api_token",
    "require_scope",
]
