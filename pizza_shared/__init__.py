"""
Shared building blocks for the pizza shop API.

- pizza_shared.config: settings, structured logging, constants
- pizza_shared.infrastructure: database engine/sessions, correlation IDs, Redis
- pizza_shared.security: password hashing, session tokens, rate limiting
- pizza_shared.utils: exception hierarchy, shared schemas
"""
