"""
SQLAlchemy Unit of Work Implementation.

Manages transaction boundaries across the tenant repositories.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Optional

from flowport.domain.interfaces.unit_of_work import IUnitOfWork
from .models import Base
from .repositories import (
    ChatFlowRepository,
    ChatRepository,
    ChatMessageRepository,
    ChatMessageFeedbackRepository,
    AssistantRepository,
    CustomTemplateRepository,
    DocumentStoreRepository,
    DocumentStoreFileChunkRepository,
    ToolRepository,
    VariableRepository,
    ExecutionRepository,
)


def create_database_engine(db_url: str, echo: bool = False) -> Engine:
    """
    Create an engine and make sure the tables exist.

    In-memory SQLite databases live as long as their connection, so they get
    a single shared connection usable from any thread.
    """
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            db_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(db_url, echo=echo)
    Base.metadata.create_all(engine)
    return engine


class SQLAlchemyUnitOfWork(IUnitOfWork):
    """
    SQLAlchemy-based Unit of Work implementation.
    
    Usage:
        with SQLAlchemyUnitOfWork("sqlite:///flowport.db") as uow:
            uow.chatflows.save_all(flows)
            uow.chat_messages.save_all(messages)
            uow.commit()
    
    Pass a shared ``engine`` to open many short-lived units of work against
    one database.
    """
    
    def __init__(
        self,
        db_url: str = "sqlite:///flowport.db",
        echo: bool = False,
        engine: Optional[Engine] = None,
    ):
        """
        Initialize the Unit of Work.
        
        Args:
            db_url: Database connection URL (ignored when engine is given)
            echo: If True, log SQL statements
            engine: Existing engine to reuse
        """
        self._db_url = db_url
        self._engine = engine if engine is not None else create_database_engine(db_url, echo=echo)
        self._session_factory = sessionmaker(bind=self._engine)
        self._session: Optional[Session] = None
    
    def __enter__(self) -> "SQLAlchemyUnitOfWork":
        """Begin transaction and initialize repositories."""
        self._session = self._session_factory()
        
        self.chatflows = ChatFlowRepository(self._session)
        self.chats = ChatRepository(self._session)
        self.chat_messages = ChatMessageRepository(self._session)
        self.chat_feedback = ChatMessageFeedbackRepository(self._session)
        self.assistants = AssistantRepository(self._session)
        self.custom_templates = CustomTemplateRepository(self._session)
        self.document_stores = DocumentStoreRepository(self._session)
        self.document_store_file_chunks = DocumentStoreFileChunkRepository(self._session)
        self.tools = ToolRepository(self._session)
        self.variables = VariableRepository(self._session)
        self.executions = ExecutionRepository(self._session)
        
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """End transaction, rolling back on exception."""
        if exc_type:
            self.rollback()
        if self._session:
            self._session.close()
            self._session = None
    
    def commit(self):
        """Commit the transaction."""
        if self._session:
            try:
                self._session.commit()
            except Exception:
                self.rollback()
                raise
    
    def rollback(self):
        """Rollback the transaction."""
        if self._session:
            self._session.rollback()
    
    @property
    def engine(self) -> Engine:
        return self._engine
    
    @property
    def session(self) -> Optional[Session]:
        """Get the current session (for advanced usage)."""
        return self._session
