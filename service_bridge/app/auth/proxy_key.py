"""
Shared-secret check for privileged gateway operations.
"""

import hmac
from typing import Optional

from fastapi import Request

from shared.errors import ForbiddenError


PROXY_KEY_HEADER = "x-proxy-key"
PROXY_KEY_QUERY = "key"


def presented_key(request: Request) -> Optional[str]:
    """Credential from the ``x-proxy-key`` header, else the ``key`` query parameter."""
    return request.headers.get(PROXY_KEY_HEADER) or request.query_params.get(PROXY_KEY_QUERY)


def require_proxy_key(presented: Optional[str], configured: Optional[str]) -> None:
    """Raise ``ForbiddenError`` unless ``presented`` matches a configured secret.

    With no secret configured the check always fails.
    """
    if not configured or not presented:
        raise ForbiddenError()
    if not hmac.compare_digest(presented.encode("utf-8"), configured.encode("utf-8")):
        raise ForbiddenError()
