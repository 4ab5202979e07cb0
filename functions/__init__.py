"""DesignDesk estimate engine.

Prices interior design scopes against Firestore-managed rate configs.

Layout:
- models: rate configs, scopes, estimate records
- validators: scope parsing, milestone percentages
- services: pricing engine, rate config stores, Firestore, orchestration
- config: settings and errors
"""

__version__ = "1.0.0"
