"""Infrastructure Layer — database access, config files, and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All driver exceptions are mapped to core error types before leaving this layer
"""
