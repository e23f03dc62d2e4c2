"""
Calculator Service package for the Percentage Calculator.

Adds two non-negative numbers and applies a percentage sourced through a
Redis cache in front of an external provider. It provides:

- app.main: API surface for calculations, call history and health.
- app.cache: Cache-aside lookup of the percentage.
- app.providers: Pluggable sources of the percentage.
- app.audit: Fire-and-forget recording of every call.
- app.persistence: Call history storage (PostgreSQL or in-memory).
- app.calculation: Orchestration of the above.

Guidelines:
- The service is stateless; rely on external cache/DB.
- A broken cache is reported, never papered over by the provider.
- Auditing must never fail or slow down a calculation.
"""
