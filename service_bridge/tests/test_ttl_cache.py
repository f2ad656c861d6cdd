"""
Unit tests for the bridge TTL cache.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from service_bridge.app.caching import DEFAULT_TTL_SECONDS, Namespace, TTLCache, make_key
from service_bridge.app.domain.models import NormalizedRecord


class TestTTLCache:
    """Test cases for TTLCache."""

    def test_default_ttl_is_two_minutes(self):
        assert DEFAULT_TTL_SECONDS == 120.0
        assert TTLCache().ttl_seconds == 120.0

    def test_get_after_set_returns_value(self, cache):
        """A fresh entry comes back unchanged."""
        record = NormalizedRecord(alias="ca1", name="First", text="hello")
        cache.set("pull:ca1", record)

        assert cache.get("pull:ca1") == record

    def test_get_missing_key(self, cache):
        assert cache.get("pull:nope") is None

    def test_values_are_copied_out(self, cache):
        """Mutating a returned value does not reach the stored entry."""
        cache.set("pull:ca1", {"text": "original"})

        first = cache.get("pull:ca1")
        first["text"] = "mutated"

        assert cache.get("pull:ca1") == {"text": "original"}

    def test_values_are_copied_in(self, cache):
        value = {"text": "original"}
        cache.set("pull:ca1", value)
        value["text"] = "mutated"

        assert cache.get("pull:ca1") == {"text": "original"}

    def test_entry_still_valid_at_ttl_boundary(self, cache, clock):
        cache.set("pull:ca1", "v")
        clock.advance(DEFAULT_TTL_SECONDS)

        assert cache.get("pull:ca1") == "v"

    def test_expired_entry_is_absent_and_evicted(self, cache, clock):
        """An expired read removes the entry, so a later flush does not count it."""
        cache.set("pull:ca1", "v")
        clock.advance(DEFAULT_TTL_SECONDS + 0.001)

        assert cache.get("pull:ca1") is None
        assert "pull:ca1" not in cache
        assert cache.flush() == 0

    def test_expired_unread_entry_counts_in_size(self, cache, clock):
        cache.set("pull:ca1", "v")
        cache.set("pull:ca2", "w")
        clock.advance(DEFAULT_TTL_SECONDS + 1)

        assert cache.size == 2
        cache.get("pull:ca1")
        assert cache.size == 1

    def test_overwrite_refreshes_timestamp(self, cache, clock):
        cache.set("pull:ca1", "old")
        clock.advance(100)
        cache.set("pull:ca1", "new")
        clock.advance(100)

        assert cache.get("pull:ca1") == "new"

    def test_flush_reports_count_and_empties(self, cache):
        cache.set("pull:ca1", 1)
        cache.set("bundle:ca1", 2)

        assert cache.flush() == 2
        assert cache.size == 0
        assert cache.get("pull:ca1") is None

    def test_namespaces_are_independent(self, cache):
        """A pull entry never satisfies a bundle lookup for the same alias."""
        cache.set(make_key(Namespace.PULL, "ca1"), "pulled")

        assert cache.get(make_key(Namespace.BUNDLE, "ca1")) is None
        assert cache.get(make_key(Namespace.PULL, "ca1")) == "pulled"

    def test_make_key(self):
        assert make_key(Namespace.ID, "42") == "id:42"
        assert make_key("alias", "ca1") == "alias:ca1"

    def test_make_key_rejects_unknown_namespace(self):
        with pytest.raises(ValueError):
            make_key("global", "ca1")

    def test_concurrent_access(self):
        """Parallel writers and readers leave the cache consistent."""
        cache = TTLCache()

        def work(index: int) -> None:
            key = f"bundle:a{index % 10}"
            cache.set(key, index)
            cache.get(key)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(work, range(200)))

        assert cache.size == 10
