"""
Agent Tools Gateway application package.

The gateway answers tool requests (search, weather, geocoding, network
diagnostics, reference lookups and local utilities) by running each
capability's ordered provider chain:
- Validation: handlers reject bad input before any provider is called
- Fallback: providers are tried strictly in order until one yields data
- Normalization: one stable output schema per capability

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.adapters: One adapter per upstream source or local computation.
- app.aggregation: Fallback chain and declarative normalizer.
- app.capabilities: Capability enum, request validation, handlers and registry.
"""
