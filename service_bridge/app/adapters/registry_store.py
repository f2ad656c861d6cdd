"""
Registry document loader.
"""

import json
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ValidationError

from shared.logging import get_logger
from shared.errors import RegistryLoadError


DEFAULT_PROJECT = "Asiatic Bridge"


class Audience(BaseModel):
    """One addressable document in the registry."""

    alias: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.alias


class Registry(BaseModel):
    """Parsed registry document."""

    project: str = DEFAULT_PROJECT
    base: Optional[str] = None
    audiences: List[Audience]

    def aliases(self) -> List[str]:
        return [audience.alias for audience in self.audiences]


class RegistryStore:
    """Reads the registry document from disk on every call."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = get_logger("bridge.registry")

    def load(self) -> Registry:
        """Load and validate the registry, failing fast on malformed input."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            self.logger.error("Registry unreadable", path=str(self.path), error=str(exc))
            raise RegistryLoadError(f"registry: cannot read {self.path.name}: {exc.strerror or exc}") from exc
        except json.JSONDecodeError as exc:
            self.logger.error("Registry is not valid JSON", path=str(self.path), error=str(exc))
            raise RegistryLoadError(f"registry: invalid JSON at line {exc.lineno}") from exc

        self._check_shape(raw)
        if not raw.get("project"):
            raw.pop("project", None)

        try:
            return Registry.model_validate(raw)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise RegistryLoadError(f"registry: {location}: {first['msg']}") from exc

    def aliases(self) -> List[str]:
        return self.load().aliases()

    @staticmethod
    def _check_shape(raw) -> None:
        if not isinstance(raw, dict):
            raise RegistryLoadError("registry: document must be a JSON object")
        audiences = raw.get("audiences")
        if not isinstance(audiences, list):
            raise RegistryLoadError("registry: audiences[] required")
        for index, audience in enumerate(audiences):
            if not isinstance(audience, dict) or not audience.get("alias"):
                raise RegistryLoadError(f"registry: audience.alias required (entry {index})")
