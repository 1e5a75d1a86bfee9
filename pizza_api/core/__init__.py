"""
Core application configuration: lifespan, middlewares, CORS, error handlers.
"""

from .lifespan import lifespan
from .middlewares import register_middlewares
from .cors import configure_cors
from .errors import register_exception_handlers

__all__ = [
    "lifespan",
    "register_middlewares",
    "configure_cors",
    "register_exception_handlers",
]
