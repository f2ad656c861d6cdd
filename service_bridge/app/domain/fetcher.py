"""
Cache-backed fetcher for single records and alias bundles.
"""

import asyncio
from typing import List, Optional, Tuple, Union

from shared.logging import get_logger
from shared.errors import GatewayError, MissingParameterError
from shared.metrics import MetricsCollector

from service_bridge.app.adapters.bridge_client import ACTION_FILE_TEXT, BridgeClient
from service_bridge.app.caching.ttl_cache import Namespace, TTLCache, make_key
from service_bridge.app.domain.models import (
    BundleResult,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    NormalizedRecord,
)
from service_bridge.app.domain.normalizer import NormalizationFailure, normalize_response


DEFAULT_BUNDLE_CONCURRENCY = 4


class FanOutFetcher:
    """Resolves records through the cache first and the bridge second."""

    def __init__(
        self,
        bridge: BridgeClient,
        cache: TTLCache,
        *,
        metrics: Optional[MetricsCollector] = None,
        concurrency: int = DEFAULT_BUNDLE_CONCURRENCY,
    ):
        self.bridge = bridge
        self.cache = cache
        self.metrics = metrics
        self.concurrency = max(1, concurrency)
        self.logger = get_logger("bridge.fetcher")

    async def fetch_record(
        self,
        namespace: Union[Namespace, str],
        alias: Optional[str] = None,
        record_id: Optional[str] = None,
        action: str = ACTION_FILE_TEXT,
    ) -> Tuple[NormalizedRecord, bool]:
        """
        Return ``(record, cached)`` for one alias or upstream id.

        Only successful normalizations are cached; every failure raises a
        ``GatewayError`` subclass and leaves the cache untouched so the next
        call goes upstream again.
        """
        identifier = record_id or alias
        if not identifier:
            raise MissingParameterError("alias or id is required")

        namespace = Namespace(namespace)
        key = make_key(namespace, identifier)
        cached = self.cache.get(key)
        self._record_lookup(namespace, cached is not None)
        if cached is not None:
            return cached, True

        response = await self.bridge.file_text(alias=alias, record_id=record_id, action=action)
        result = normalize_response(identifier, response)
        if isinstance(result, NormalizationFailure):
            self.logger.warning(
                "Bridge answer rejected",
                alias=identifier,
                kind=result.kind,
                status=result.status,
                reason=result.reason,
            )
            raise result.to_error()

        self.cache.set(key, result)
        return result, False

    async def fetch_outcome(self, alias: str, namespace: Union[Namespace, str] = Namespace.BUNDLE) -> FetchOutcome:
        """Fetch one alias, capturing failure as data."""
        try:
            record, cached = await self.fetch_record(namespace, alias=alias)
        except GatewayError as exc:
            return FetchFailure(
                alias=alias,
                status=exc.details.get("status"),
                error=exc.code,
                reason=exc.message,
            )
        return FetchSuccess.from_record(record, cached)

    async def fetch_bundle(
        self,
        aliases: List[str],
        namespace: Union[Namespace, str] = Namespace.BUNDLE,
    ) -> BundleResult:
        """Fetch every alias with bounded parallelism; order follows ``aliases``."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(alias: str) -> FetchOutcome:
            async with semaphore:
                return await self.fetch_outcome(alias, namespace)

        outcomes = await asyncio.gather(*(_bounded(alias) for alias in aliases), return_exceptions=True)

        results: List[FetchOutcome] = []
        for alias, outcome in zip(aliases, outcomes):
            if isinstance(outcome, Exception):
                self.logger.error("Bundle fetch task failed", alias=alias, error=str(outcome))
                outcome = FetchFailure(alias=alias, status=None, error="internal_error", reason=str(outcome))
            results.append(outcome)

        bundle = BundleResult.from_outcomes(aliases, results)
        self.logger.info(
            "Bundle fetched",
            total=bundle.total,
            loaded=bundle.loaded,
            cached=sum(1 for outcome in results if isinstance(outcome, FetchSuccess) and outcome.cached),
        )
        return bundle

    def _record_lookup(self, namespace: Namespace, hit: bool) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.record_cache_lookup(namespace.value, hit)
        except Exception as exc:  # pragma: no cover - metrics failures should never break a fetch
            self.logger.debug("Failed to record cache metrics", error=str(exc))
