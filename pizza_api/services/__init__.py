"""
Services module for business logic.

- domain/: application services, one per area. Routers call these.
"""
