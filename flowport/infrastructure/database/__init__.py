"""
Database Infrastructure.

- models: SQLAlchemy ORM tables
- repositories: SQLAlchemy repositories, one per table
- unit_of_work: SQLAlchemyUnitOfWork
- inmemory_unit_of_work: InMemoryUnitOfWork for tests
- factory: UnitOfWorkFactory selecting one by storage mode
"""

from .models import Base
from .unit_of_work import SQLAlchemyUnitOfWork, create_database_engine
from .inmemory_unit_of_work import InMemoryStore, InMemoryUnitOfWork, InMemoryEntityRepository
from .factory import UnitOfWorkFactory, STORAGE_MODES

__all__ = [
    "Base",
    "SQLAlchemyUnitOfWork",
    "create_database_engine",
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "InMemoryEntityRepository",
    "UnitOfWorkFactory",
    "STORAGE_MODES",
]
