"""
Bridge domain logic: normalization, alias resolution and cache-backed fan-out.
"""

from .fetcher import FanOutFetcher
from .models import BundleResult, FetchFailure, FetchOutcome, FetchSuccess, NormalizedRecord
from .normalizer import NormalizationFailure, normalize_response
from .resolver import AliasResolver

__all__ = [
    "AliasResolver",
    "BundleResult",
    "FanOutFetcher",
    "FetchFailure",
    "FetchOutcome",
    "FetchSuccess",
    "NormalizationFailure",
    "NormalizedRecord",
    "normalize_response",
]
