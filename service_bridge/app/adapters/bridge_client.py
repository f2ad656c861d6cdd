"""
Bridge client for the upstream document-fetch script.

The bridge is a single URL driven entirely by query parameters. Every call
carries an ``action`` and the shared-secret ``token``; answers are JSON on a
good day and HTML on a bad one, so nothing here interprets the body.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from shared.logging import get_logger
from shared.errors import UpstreamFailureError
from shared.metrics import MetricsCollector


ACTION_FILE_TEXT = "fileText"
ACTION_FILETEXT = "filetext"
ACTION_PUSH_TO_GMAIL = "pushtogmail"
ACTION_PING = "ping"

BODY_PREVIEW_LIMIT = 500


def redact_token(url: str) -> str:
    """Return ``url`` with the ``token`` query value masked."""
    parts = urlsplit(url)
    query = [
        (key, "***" if key == "token" else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*")))


@dataclass(frozen=True)
class BridgeResponse:
    """Raw answer from the bridge."""

    status_code: int
    content_type: str
    text: str
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def preview(self, limit: int = BODY_PREVIEW_LIMIT) -> str:
        return self.text[:limit]


class BridgeClient:
    """Client for the upstream bridge script."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 10.0,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.token = token
        self.timeout = timeout
        self.metrics = metrics
        self._transport = transport
        self.logger = get_logger("bridge.client")

    async def file_text(
        self,
        alias: Optional[str] = None,
        record_id: Optional[str] = None,
        action: str = ACTION_FILE_TEXT,
    ) -> BridgeResponse:
        """Fetch document text by alias or by upstream id."""
        params: Dict[str, str] = {"action": action}
        if alias:
            params["alias"] = alias
        if record_id:
            params["id"] = record_id
        params["token"] = self.token
        return await self.call(params)

    async def push_to_gmail(self, alias: str) -> BridgeResponse:
        """Ask the bridge to mail the document to its owner."""
        return await self.call({"action": ACTION_PUSH_TO_GMAIL, "alias": alias, "token": self.token})

    async def ping(self) -> BridgeResponse:
        return await self.call({"action": ACTION_PING, "token": self.token})

    async def passthrough(self, query: Dict[str, str]) -> BridgeResponse:
        """Forward arbitrary parameters, adding the token only when absent."""
        params = dict(query)
        params.setdefault("token", self.token)
        return await self.call(params)

    async def call(self, params: Dict[str, Any]) -> BridgeResponse:
        """Issue one GET against the bridge."""
        action = str(params.get("action", "unknown"))
        if not self.base_url:
            raise UpstreamFailureError("bridge url is not configured")

        start = time.perf_counter()
        outcome = "error"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    self.base_url,
                    params=params,
                    headers={"Accept": "application/json"},
                )
            outcome = "ok" if response.is_success else "http_error"
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.logger.error(
                "Bridge request failed",
                action=action,
                error_type=exc.__class__.__name__,
                error=str(exc),
            )
            raise UpstreamFailureError(f"bridge unreachable: {exc.__class__.__name__}") from exc
        finally:
            self._record(action, outcome, time.perf_counter() - start)

        url = redact_token(str(response.request.url))
        bridge_response = BridgeResponse(
            status_code=response.status_code,
            content_type=response.headers.get("content-type", ""),
            text=response.text,
            url=url,
        )
        self.logger.debug(
            "Bridge responded",
            action=action,
            url=url,
            status_code=bridge_response.status_code,
            content_type=bridge_response.content_type,
        )
        return bridge_response

    def _record(self, action: str, outcome: str, duration: float) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.record_bridge_call(action, outcome, duration)
        except Exception as exc:  # pragma: no cover - metrics failures should never break a call
            self.logger.debug("Failed to record bridge metrics", error=str(exc))
