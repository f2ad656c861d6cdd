"""
Authentication helpers for the Bridge Gateway service.
"""

from .proxy_key import PROXY_KEY_HEADER, presented_key, require_proxy_key

__all__ = [
    "PROXY_KEY_HEADER",
    "presented_key",
    "require_proxy_key",
]
