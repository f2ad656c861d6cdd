"""
Bridge Gateway application package.

The gateway fronts a single slow upstream script, providing:
- Alias addressing: clients ask for stable aliases, not upstream ids
- Normalization: three historical upstream shapes collapse into one record
- Caching: short fixed-TTL in-process cache, namespaced per entry point
- Bundles: concurrent fan-out over many aliases with partial failure

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.adapters: bridge HTTP client and registry document loader.
- app.caching: TTL cache and key namespaces.
- app.domain: normalizer, alias resolver and fan-out fetcher.
- app.auth: shared-secret check for privileged operations.
"""
