"""
Adapters package for the Bridge Gateway.

Contains the wrappers for the two external collaborators:

- BridgeClient: the upstream document-fetch script (HTTP GET + shared token)
- RegistryStore: the static registry document listing known aliases

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .bridge_client import BridgeClient, BridgeResponse
from .registry_store import Audience, Registry, RegistryStore

__all__ = [
    "Audience",
    "BridgeClient",
    "BridgeResponse",
    "Registry",
    "RegistryStore",
]
