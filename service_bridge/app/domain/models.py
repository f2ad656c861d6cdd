"""
Records exchanged between the bridge domain components and the HTTP layer.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class NormalizedRecord(BaseModel):
    """Canonical shape every successful bridge answer collapses into."""

    ok: Literal[True] = True
    alias: str
    name: Optional[str] = None
    text: str = ""


class FetchSuccess(NormalizedRecord):
    """A record delivered during fan-out, tagged with its cache provenance."""

    cached: bool = False

    @classmethod
    def from_record(cls, record: NormalizedRecord, cached: bool) -> "FetchSuccess":
        return cls(**record.model_dump(), cached=cached)


class FetchFailure(BaseModel):
    """Per-alias failure captured as data instead of aborting the batch."""

    ok: Literal[False] = False
    alias: str
    status: Optional[int] = None
    error: str
    reason: str


FetchOutcome = Union[FetchSuccess, FetchFailure]


class BundleResult(BaseModel):
    """Aggregated fan-out result; ``results`` follows ``aliases`` order."""

    ok: Literal[True] = True
    total: int
    loaded: int
    aliases: List[str]
    results: List[FetchOutcome] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, aliases: List[str], results: List[FetchOutcome]) -> "BundleResult":
        loaded = sum(1 for outcome in results if isinstance(outcome, FetchSuccess))
        return cls(total=len(aliases), loaded=loaded, aliases=list(aliases), results=results)
