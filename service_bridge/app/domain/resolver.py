"""
Alias resolution for bundle requests.
"""

from typing import Iterable, List, Optional

from shared.logging import get_logger
from shared.errors import EmptyRegistryError, MissingAliasError

from service_bridge.app.adapters.registry_store import RegistryStore


ALL_SENTINEL = "all"


def dedupe(aliases: Iterable[str]) -> List[str]:
    """Drop repeats, keeping the first occurrence of each alias."""
    seen = set()
    ordered: List[str] = []
    for alias in aliases:
        if alias not in seen:
            seen.add(alias)
            ordered.append(alias)
    return ordered


def split_aliases(raw: str) -> List[str]:
    return [segment.strip() for segment in raw.split(",") if segment.strip()]


class AliasResolver:
    """Turns ``a,b,c`` or ``all`` into an ordered, de-duplicated alias list."""

    def __init__(self, registry: RegistryStore):
        self.registry = registry
        self.logger = get_logger("bridge.resolver")

    def resolve(self, raw: Optional[str]) -> List[str]:
        text = (raw or "").strip()
        if not text:
            raise MissingAliasError("aliases is required")

        if text.lower() == ALL_SENTINEL:
            aliases = dedupe(alias.strip() for alias in self.registry.aliases() if alias.strip())
            if not aliases:
                raise EmptyRegistryError()
            self.logger.debug("Resolved registry aliases", count=len(aliases))
            return aliases

        aliases = dedupe(split_aliases(text))
        if not aliases:
            raise MissingAliasError("aliases is required")
        return aliases
