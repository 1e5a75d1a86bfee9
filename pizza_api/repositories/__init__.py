"""
Data access layer: repository capability set and unit of work.
"""

from .base import Repository
from .sql import SqlRepository
from .memory import InMemoryRepository
from .unit_of_work import InMemoryUnitOfWork, SqlUnitOfWork, UnitOfWork

__all__ = [
    "Repository",
    "SqlRepository",
    "InMemoryRepository",
    "UnitOfWork",
    "SqlUnitOfWork",
    "InMemoryUnitOfWork",
]
