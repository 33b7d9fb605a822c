"""
Tenant Entities.

Rows of the relational dataset that can be exported and re-imported:
- ChatFlow (logical subtypes by ``type``: CHATFLOW, MULTIAGENT, AGENTFLOW, ASSISTANT)
- Chat, ChatMessage, ChatMessageFeedback
- Assistant (CUSTOM, OPENAI, AZURE)
- CustomTemplate, DocumentStore, DocumentStoreFileChunk, Tool, Variable, Execution

Every entity carries tenant ownership (``user_id``, ``organization_id``) and
declares, as class metadata:
- KIND: the id space its ``id`` belongs to
- REFERENCES: fields holding ids of other kinds (field -> kind)
- JSON_FIELDS: JSON-text columns whose string values may embed ids

Wire form (``to_dict``/``from_dict``) uses the camelCase keys of the export
file format, e.g. ``chatflowid``, ``chatId``, ``userId``.
"""

import json
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, TypeVar

E = TypeVar("E", bound="Entity")


class ChatFlowType(str, Enum):
    CHATFLOW = "CHATFLOW"
    MULTIAGENT = "MULTIAGENT"
    AGENTFLOW = "AGENTFLOW"
    ASSISTANT = "ASSISTANT"


class AssistantType(str, Enum):
    CUSTOM = "CUSTOM"
    OPENAI = "OPENAI"
    AZURE = "AZURE"


class ChatType(str, Enum):
    INTERNAL = "INTERNAL"
    EXTERNAL = "EXTERNAL"


class ReferenceKind:
    """Id spaces that references can point into."""
    FLOW = "flow"
    CHAT = "chat"
    MESSAGE = "message"
    FEEDBACK = "feedback"
    ASSISTANT = "assistant"
    CUSTOM_TEMPLATE = "custom_template"
    DOCUMENT_STORE = "document_store"
    DOCUMENT_STORE_FILE_CHUNK = "document_store_file_chunk"
    TOOL = "tool"
    VARIABLE = "variable"
    EXECUTION = "execution"


# Wire keys that do not follow plain camelCase
_WIRE_OVERRIDES = {
    "chatflow_id": "chatflowid",
    "apikey_id": "apikeyid",
}


def _wire_name(attr: str) -> str:
    if attr in _WIRE_OVERRIDES:
        return _WIRE_OVERRIDES[attr]
    head, *rest = attr.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _parse_datetime(value: Any) -> Any:
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


@dataclass
class Entity:
    """Base for all tenant-owned rows."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[str] = None
    organization_id: Optional[str] = None
    created_date: Optional[datetime] = None

    KIND: ClassVar[str] = ""
    REFERENCES: ClassVar[Dict[str, str]] = {}
    JSON_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def is_owned_by(self, user_id: Optional[str], organization_id: Optional[str]) -> bool:
        return self.user_id == user_id and self.organization_id == organization_id

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the export wire form."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            result[_wire_name(f.name)] = value
        return result

    @classmethod
    def from_dict(cls: Type[E], data: Dict[str, Any]) -> E:
        """
        Deserialize from the wire form; unknown keys are ignored.

        Raises:
            ValueError: data is not a mapping
        """
        if not isinstance(data, dict):
            raise ValueError(f"{cls.__name__} row must be an object, got {type(data).__name__}")
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            wire = _wire_name(f.name)
            if wire in data:
                value = data[wire]
            elif f.name in data:
                value = data[f.name]
            else:
                continue
            if f.name.endswith("_date"):
                value = _parse_datetime(value)
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass
class ChatFlow(Entity):
    name: str = ""
    flow_data: str = "{}"
    type: str = ChatFlowType.CHATFLOW.value
    deployed: Optional[bool] = None
    is_public: Optional[bool] = None
    apikey_id: Optional[str] = None
    chatbot_config: Optional[str] = None
    api_config: Optional[str] = None
    category: Optional[str] = None
    updated_date: Optional[datetime] = None

    KIND: ClassVar[str] = ReferenceKind.FLOW
    JSON_FIELDS: ClassVar[Tuple[str, ...]] = ("flow_data",)


@dataclass
class Chat(Entity):
    chatflow_id: Optional[str] = None
    title: Optional[str] = None
    owner_id: Optional[str] = None

    KIND: ClassVar[str] = ReferenceKind.CHAT
    REFERENCES: ClassVar[Dict[str, str]] = {"chatflow_id": ReferenceKind.FLOW}


@dataclass
class ChatMessage(Entity):
    role: str = "userMessage"
    chatflow_id: Optional[str] = None
    chat_id: Optional[str] = None
    content: str = ""
    execution_id: Optional[str] = None
    chat_type: str = ChatType.INTERNAL.value
    session_id: Optional[str] = None
    memory_type: Optional[str] = None
    source_documents: Optional[str] = None
    used_tools: Optional[str] = None

    KIND: ClassVar[str] = ReferenceKind.MESSAGE
    REFERENCES: ClassVar[Dict[str, str]] = {
        "chatflow_id": ReferenceKind.FLOW,
        "chat_id": ReferenceKind.CHAT,
        "execution_id": ReferenceKind.EXECUTION,
    }


@dataclass
class ChatMessageFeedback(Entity):
    chatflow_id: Optional[str] = None
    chat_id: Optional[str] = None
    message_id: Optional[str] = None
    rating: Optional[str] = None
    content: Optional[str] = None

    KIND: ClassVar[str] = ReferenceKind.FEEDBACK
    REFERENCES: ClassVar[Dict[str, str]] = {
        "chatflow_id": ReferenceKind.FLOW,
        "chat_id": ReferenceKind.CHAT,
        "message_id": ReferenceKind.MESSAGE,
    }


@dataclass
class Assistant(Entity):
    details: str = "{}"
    credential: Optional[str] = None
    icon_src: Optional[str] = None
    type: str = AssistantType.CUSTOM.value
    updated_date: Optional[datetime] = None

    KIND: ClassVar[str] = ReferenceKind.ASSISTANT
    JSON_FIELDS: ClassVar[Tuple[str, ...]] = ("details",)


@dataclass
class CustomTemplate(Entity):
    name: str = ""
    flow_data: str = "{}"
    description: Optional[str] = None
    badge: Optional[str] = None
    framework: Optional[str] = None
    usecases: List[str] = field(default_factory=list)
    type: Optional[str] = None
    updated_date: Optional[datetime] = None

    KIND: ClassVar[str] = ReferenceKind.CUSTOM_TEMPLATE
    JSON_FIELDS: ClassVar[Tuple[str, ...]] = ("flow_data",)

    def to_dict(self) -> Dict[str, Any]:
        # usecases travels as its JSON string form
        result = super().to_dict()
        result["usecases"] = json.dumps(self.usecases)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomTemplate":
        template = super().from_dict(data)
        if isinstance(template.usecases, str):
            template.usecases = json.loads(template.usecases) if template.usecases else []
        elif template.usecases is None:
            template.usecases = []
        return template


@dataclass
class DocumentStore(Entity):
    name: str = ""
    description: Optional[str] = None
    status: Optional[str] = None
    loaders: Optional[str] = None
    where_used: Optional[str] = None
    updated_date: Optional[datetime] = None

    KIND: ClassVar[str] = ReferenceKind.DOCUMENT_STORE
    JSON_FIELDS: ClassVar[Tuple[str, ...]] = ("loaders", "where_used")


@dataclass
class DocumentStoreFileChunk(Entity):
    store_id: Optional[str] = None
    doc_id: Optional[str] = None
    chunk_no: int = 0
    page_content: str = ""
    metadata: Optional[str] = None

    KIND: ClassVar[str] = ReferenceKind.DOCUMENT_STORE_FILE_CHUNK
    REFERENCES: ClassVar[Dict[str, str]] = {"store_id": ReferenceKind.DOCUMENT_STORE}


@dataclass
class Tool(Entity):
    name: str = ""
    description: str = ""
    color: Optional[str] = None
    icon_src: Optional[str] = None
    schema: Optional[str] = None
    func: Optional[str] = None
    updated_date: Optional[datetime] = None

    KIND: ClassVar[str] = ReferenceKind.TOOL
    JSON_FIELDS: ClassVar[Tuple[str, ...]] = ("schema",)


@dataclass
class Variable(Entity):
    name: str = ""
    value: Optional[str] = None
    type: str = "string"
    updated_date: Optional[datetime] = None

    KIND: ClassVar[str] = ReferenceKind.VARIABLE


@dataclass
class Execution(Entity):
    agentflow_id: Optional[str] = None
    session_id: Optional[str] = None
    state: str = "INPROGRESS"
    execution_data: str = "[]"
    action: Optional[str] = None
    is_public: Optional[bool] = None
    updated_date: Optional[datetime] = None
    stopped_date: Optional[datetime] = None

    KIND: ClassVar[str] = ReferenceKind.EXECUTION
    REFERENCES: ClassVar[Dict[str, str]] = {"agentflow_id": ReferenceKind.FLOW}
    JSON_FIELDS: ClassVar[Tuple[str, ...]] = ("execution_data",)
