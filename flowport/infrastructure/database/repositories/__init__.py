"""SQLAlchemy Repository Implementations."""

from .base import BaseRepository
from .tenant_repositories import (
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

__all__ = [
    "BaseRepository",
    "ChatFlowRepository",
    "ChatRepository",
    "ChatMessageRepository",
    "ChatMessageFeedbackRepository",
    "AssistantRepository",
    "CustomTemplateRepository",
    "DocumentStoreRepository",
    "DocumentStoreFileChunkRepository",
    "ToolRepository",
    "VariableRepository",
    "ExecutionRepository",
]
