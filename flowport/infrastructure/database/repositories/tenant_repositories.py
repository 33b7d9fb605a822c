"""
SQLAlchemy repositories for the tenant tables.

Most tables map one-to-one onto their domain dataclass; only custom
templates need a conversion (``usecases`` is a JSON list stored as TEXT).
"""

from typing import List

from flowport.domain.interfaces.repositories import IEntityRepository
from flowport.domain.models.entities import (
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
from ..models import (
    AssistantORM,
    ChatFlowORM,
    ChatMessageFeedbackORM,
    ChatMessageORM,
    ChatORM,
    CustomTemplateORM,
    DocumentStoreFileChunkORM,
    DocumentStoreORM,
    ExecutionORM,
    ToolORM,
    VariableORM,
    json_deserializer,
    json_serializer,
)
from .base import BaseRepository


class ChatFlowRepository(BaseRepository[ChatFlow, ChatFlowORM], IEntityRepository[ChatFlow]):
    """Flows of every type; filter with ``type=...``."""
    entity_class = ChatFlow
    orm_class = ChatFlowORM


class ChatRepository(BaseRepository[Chat, ChatORM], IEntityRepository[Chat]):
    entity_class = Chat
    orm_class = ChatORM


class ChatMessageRepository(BaseRepository[ChatMessage, ChatMessageORM], IEntityRepository[ChatMessage]):
    entity_class = ChatMessage
    orm_class = ChatMessageORM


class ChatMessageFeedbackRepository(
    BaseRepository[ChatMessageFeedback, ChatMessageFeedbackORM],
    IEntityRepository[ChatMessageFeedback],
):
    entity_class = ChatMessageFeedback
    orm_class = ChatMessageFeedbackORM


class AssistantRepository(BaseRepository[Assistant, AssistantORM], IEntityRepository[Assistant]):
    """Assistants of every type; filter with ``type=...``."""
    entity_class = Assistant
    orm_class = AssistantORM


class CustomTemplateRepository(
    BaseRepository[CustomTemplate, CustomTemplateORM],
    IEntityRepository[CustomTemplate],
):
    entity_class = CustomTemplate
    orm_class = CustomTemplateORM

    def _to_domain(self, orm: CustomTemplateORM) -> CustomTemplate:
        template = super()._to_domain(orm)
        usecases: List[str] = json_deserializer(orm.usecases) or []
        template.usecases = usecases
        return template

    def _to_orm(self, domain: CustomTemplate) -> CustomTemplateORM:
        orm = super()._to_orm(domain)
        orm.usecases = json_serializer(list(domain.usecases or []))
        return orm


class DocumentStoreRepository(BaseRepository[DocumentStore, DocumentStoreORM], IEntityRepository[DocumentStore]):
    entity_class = DocumentStore
    orm_class = DocumentStoreORM


class DocumentStoreFileChunkRepository(
    BaseRepository[DocumentStoreFileChunk, DocumentStoreFileChunkORM],
    IEntityRepository[DocumentStoreFileChunk],
):
    entity_class = DocumentStoreFileChunk
    orm_class = DocumentStoreFileChunkORM


class ToolRepository(BaseRepository[Tool, ToolORM], IEntityRepository[Tool]):
    entity_class = Tool
    orm_class = ToolORM


class VariableRepository(BaseRepository[Variable, VariableORM], IEntityRepository[Variable]):
    entity_class = Variable
    orm_class = VariableORM


class ExecutionRepository(BaseRepository[Execution, ExecutionORM], IEntityRepository[Execution]):
    entity_class = Execution
    orm_class = ExecutionORM
