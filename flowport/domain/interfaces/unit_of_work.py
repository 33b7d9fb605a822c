"""
Unit of Work Interface.

Manages transaction boundaries across multiple repositories.
An import writes every entity category through one unit of work so the
whole operation commits or rolls back as one.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .repositories import IEntityRepository
    from ..models.entities import (
        Assistant,
        Chat,
        ChatFlow,
        ChatMessage,
        ChatMessageFeedback,
        CustomTemplate,
        DocumentStore,
        DocumentStoreFileChunk,
        Execution,
        Tool,
        Variable,
    )


class IUnitOfWork(ABC):
    """
    Unit of Work pattern interface.
    
    Manages transaction boundaries and provides access to repositories.
    
    Usage:
        with uow:
            uow.chatflows.save_all(flows)
            uow.chat_messages.save_all(messages)
            uow.commit()  # Both saved atomically
    
    Design Decisions:
    - Provides repository access through attributes
    - Context manager handles transaction lifecycle
    - Automatic rollback on exception, resources released on every exit
    - Explicit commit required
    """
    
    chatflows: "IEntityRepository[ChatFlow]"
    chats: "IEntityRepository[Chat]"
    chat_messages: "IEntityRepository[ChatMessage]"
    chat_feedback: "IEntityRepository[ChatMessageFeedback]"
    assistants: "IEntityRepository[Assistant]"
    custom_templates: "IEntityRepository[CustomTemplate]"
    document_stores: "IEntityRepository[DocumentStore]"
    document_store_file_chunks: "IEntityRepository[DocumentStoreFileChunk]"
    tools: "IEntityRepository[Tool]"
    variables: "IEntityRepository[Variable]"
    executions: "IEntityRepository[Execution]"
    
    @abstractmethod
    def __enter__(self) -> "IUnitOfWork":
        """
        Begin transaction.
        
        Returns:
            Self for context manager usage
        """
        pass
    
    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        End transaction.
        
        Rolls back on exception and always releases the underlying
        connection.
        """
        pass
    
    @abstractmethod
    def commit(self):
        """
        Commit the transaction.
        
        Raises:
            Exception: If commit fails (implementation-specific)
        """
        pass
    
    @abstractmethod
    def rollback(self):
        """Discard all changes made through repositories."""
        pass
