"""
Unit of Work Factory.

Builds units of work for the configured storage mode:
- "inmemory": a fresh InMemoryUnitOfWork per call over one shared InMemoryStore
- "sqlalchemy": a fresh SQLAlchemyUnitOfWork per call over one shared engine
"""

from typing import Callable, Optional
import logging

from flowport.domain.interfaces.unit_of_work import IUnitOfWork
from .inmemory_unit_of_work import InMemoryStore, InMemoryUnitOfWork
from .unit_of_work import SQLAlchemyUnitOfWork, create_database_engine

logger = logging.getLogger(__name__)

STORAGE_MODES = ("inmemory", "sqlalchemy")


class UnitOfWorkFactory:
    """Factory for IUnitOfWork implementations."""

    @staticmethod
    def create(mode: str = "inmemory", db_url: Optional[str] = None, echo: bool = False) -> IUnitOfWork:
        """Create a single unit of work."""
        return UnitOfWorkFactory.provider(mode, db_url, echo)()

    @staticmethod
    def provider(
        mode: str = "inmemory",
        db_url: Optional[str] = None,
        echo: bool = False,
    ) -> Callable[[], IUnitOfWork]:
        """
        Create a zero-argument callable returning units of work.

        Raises:
            ValueError: unknown mode, or sqlalchemy mode without db_url
        """
        if mode == "inmemory":
            store = InMemoryStore()
            return lambda: InMemoryUnitOfWork(store)

        if mode == "sqlalchemy":
            if not db_url:
                raise ValueError("db_url is required for sqlalchemy storage mode")
            engine = create_database_engine(db_url, echo=echo)
            logger.info(f"Using database {engine.url.render_as_string(hide_password=True)}")
            return lambda: SQLAlchemyUnitOfWork(engine=engine)

        raise ValueError(f"Unknown storage mode: {mode!r} (expected one of {', '.join(STORAGE_MODES)})")
