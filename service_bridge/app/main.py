"""
Bridge Gateway service.

Exposes a stable HTTP API in front of the upstream document-fetch script:
alias-addressed pulls, bundle fan-out with partial failure, a short TTL
cache and a handful of operator endpoints.
"""

import asyncio
import platform
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

from fastapi import Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.routing import APIRoute

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import BridgeHtmlError, MissingAliasError, MissingParameterError, UpstreamFailureError

from service_bridge.app.adapters.bridge_client import ACTION_FILE_TEXT, ACTION_FILETEXT, BridgeClient
from service_bridge.app.adapters.registry_store import RegistryStore
from service_bridge.app.auth import presented_key, require_proxy_key
from service_bridge.app.caching import DEFAULT_TTL_SECONDS, Namespace, TTLCache
from service_bridge.app.domain import AliasResolver, FanOutFetcher, NormalizedRecord
from service_bridge.app.domain.normalizer import acknowledges, is_json_media_type, parse_payload


class BridgeGatewayService(BaseService):
    """Bridge Gateway service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        bridge_client: Optional[BridgeClient] = None,
        registry_store: Optional[RegistryStore] = None,
        cache: Optional[TTLCache] = None,
    ):
        super().__init__("bridge", config)
        if bridge_client is None:
            bridge_client = BridgeClient(
                self.config.bridge_url,
                self.config.bridge_token,
                timeout=self.config.bridge_timeout_seconds,
                metrics=self.metrics,
            )
        self.bridge_client = bridge_client
        self.registry_store = registry_store if registry_store is not None else RegistryStore(self.config.registry_path)
        self.cache = cache if cache is not None else TTLCache(DEFAULT_TTL_SECONDS)
        self.resolver = AliasResolver(self.registry_store)
        self.fetcher = FanOutFetcher(
            self.bridge_client,
            self.cache,
            metrics=self.metrics,
            concurrency=self.config.bundle_concurrency,
        )

        self._setup_bridge_routes()
        self._setup_operator_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.bridge_service = self

    @staticmethod
    def _record_response(record: NormalizedRecord, cached: bool) -> JSONResponse:
        return JSONResponse(
            content=record.model_dump(),
            headers={"X-Cache": "HIT" if cached else "MISS"},
        )

    @staticmethod
    def _alias_param(alias: Optional[str], short: Optional[str]) -> str:
        value = (alias or short or "").strip()
        if not value:
            raise MissingAliasError()
        return value

    def _setup_bridge_routes(self):
        """Set up document retrieval routes."""

        @self.app.get("/api/pull")
        async def pull(alias: Optional[str] = Query(None), a: Optional[str] = Query(None)):
            """Fetch one document by alias."""
            resolved = self._alias_param(alias, a)
            record, cached = await self.fetcher.fetch_record(Namespace.PULL, alias=resolved, action=ACTION_FILE_TEXT)
            return self._record_response(record, cached)

        @self.app.get("/api/filetext")
        async def filetext(
            alias: Optional[str] = Query(None),
            record_id: Optional[str] = Query(None, alias="id"),
        ):
            """Fetch one document by alias or by upstream id (id wins)."""
            alias = (alias or "").strip() or None
            record_id = (record_id or "").strip() or None
            if not alias and not record_id:
                raise MissingParameterError("alias or id is required")

            namespace = Namespace.ID if record_id else Namespace.ALIAS
            record, cached = await self.fetcher.fetch_record(
                namespace,
                alias=alias,
                record_id=record_id,
                action=ACTION_FILETEXT,
            )
            return self._record_response(record, cached)

        @self.app.get("/api/pushmail")
        async def pushmail(alias: Optional[str] = Query(None), a: Optional[str] = Query(None)):
            """Ask the bridge to mail a document; never cached."""
            resolved = self._alias_param(alias, a)
            response = await self.bridge_client.push_to_gmail(resolved)
            if not is_json_media_type(response.content_type):
                raise BridgeHtmlError(response.status_code, response.content_type, response.preview())
            if not acknowledges(response):
                raise UpstreamFailureError(status=response.status_code, source=parse_payload(response.text))

            self.logger.info("Document pushed to mail", alias=resolved)
            return {"ok": True, "alias": resolved, "status": "sent_to_gmail"}

        @self.app.get("/api/bundle")
        async def bundle(aliases: Optional[str] = Query(None)):
            """Fetch many aliases at once; individual failures are reported inline."""
            resolved = self.resolver.resolve(aliases)
            result = await self.fetcher.fetch_bundle(resolved, Namespace.BUNDLE)
            return result.model_dump()

        @self.app.get("/api/registry")
        async def registry(request: Request):
            """Registry document expanded with ready-to-use URLs."""
            cfg = self.registry_store.load()
            base = (cfg.base or str(request.base_url)).rstrip("/")

            def filetext_url(alias: str) -> str:
                return f"{base}/api/filetext?alias={quote(alias, safe='')}"

            def pushmail_url(alias: str) -> str:
                return f"{base}/api/pushmail?alias={quote(alias, safe='')}"

            return {
                "project": cfg.project,
                "base": base,
                "endpoints": {
                    "filetext": f"{base}/api/filetext?alias=",
                    "pushmail": f"{base}/api/pushmail?alias=",
                    "debug": f"{base}/api/debug-bridge?",
                },
                "audiences": [
                    {
                        "alias": audience.alias,
                        "name": audience.display_name,
                        "pull_url": filetext_url(audience.alias),
                        "push_url": pushmail_url(audience.alias),
                    }
                    for audience in cfg.audiences
                ],
            }

    def _setup_operator_routes(self):
        """Set up cache, diagnostics and introspection routes."""

        @self.app.get("/")
        async def root():
            return PlainTextResponse("OK")

        @self.app.get("/status")
        async def status():
            """Upstream dependency probe with a bounded deadline."""
            dependencies = await self._check_dependencies()
            healthy = all(value == "up" for value in dependencies.values())
            return {
                "service": self.service_name,
                "status": "ok" if healthy else "degraded",
                "dependencies": dependencies,
                "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            }

        @self.app.post("/api/cache/flush")
        async def flush_cache(request: Request):
            require_proxy_key(presented_key(request), self.config.proxy_key)
            return {"ok": True, "flushed": self.cache.flush()}

        @self.app.get("/api/cache/stats")
        async def cache_stats():
            return {"size": self.cache.size, "ttl_seconds": self.cache.ttl_seconds}

        @self.app.get("/debug")
        async def debug(request: Request):
            return {"query": dict(request.query_params)}

        @self.app.get("/api/debug-bridge")
        async def debug_bridge(request: Request):
            """Raw pass-through to the bridge for operators; never cached."""
            response = await self.bridge_client.passthrough(dict(request.query_params))
            return {
                "ok": True,
                "bridge_url": response.url,
                "status": response.status_code,
                "contentType": response.content_type,
                "bodyPreview": response.preview(),
            }

        @self.app.get("/api/about")
        async def about():
            """Build and environment introspection; secrets reported as booleans only."""
            return {
                "ok": True,
                "python": platform.python_version(),
                "env": {
                    "GAS_URL": bool(self.config.bridge_url),
                    "GAS_TOKEN": bool(self.config.bridge_token),
                    "PROXY_KEY": bool(self.config.proxy_key),
                },
                "uptime_s": round(self._get_uptime()),
                "routes": self._route_paths(),
            }

        @self.app.get("/api/version")
        async def version():
            return {"build": self.config.build_id}

    def _route_paths(self) -> list:
        return sorted({route.path for route in self.app.routes if isinstance(route, APIRoute)})

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check gateway dependencies."""
        return {"bridge": await self._probe_bridge()}

    async def _probe_bridge(self) -> str:
        """Ping the bridge; anything slower than the status deadline counts as down."""
        timeout = self.config.status_timeout_seconds
        try:
            response = await asyncio.wait_for(self.bridge_client.ping(), timeout=timeout)
        except asyncio.TimeoutError:
            self.logger.warning("Bridge probe timed out", timeout_seconds=timeout)
            return "down"
        except UpstreamFailureError as exc:
            self.logger.warning("Bridge probe failed", error=exc.message)
            return "down"

        if not response.ok:
            self.logger.warning("Bridge probe returned error status", status_code=response.status_code)
            return "down"
        return "up"


def create_app(config: Optional[ServiceConfig] = None, **components: Any):
    """Create FastAPI application."""
    service = BridgeGatewayService(config, **components)
    return service.app


if __name__ == "__main__":
    service = BridgeGatewayService()
    service.run()
