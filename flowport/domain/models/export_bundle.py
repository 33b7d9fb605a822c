"""
Export/Import Domain Models.

- Requester: authenticated identity an export/import runs on behalf of
- ExportSelection: which entity categories to export (Value Object)
- ExportBundle: one list of rows per entity category
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple, Type

from .entities import (
    Assistant,
    Chat,
    ChatFlow,
    ChatMessage,
    ChatMessageFeedback,
    CustomTemplate,
    DocumentStore,
    DocumentStoreFileChunk,
    Entity,
    Execution,
    Tool,
    Variable,
)
from .exceptions import InvalidExportSelectionError


EXPORT_FILE_DEFAULT_NAME = "ExportData.json"


@dataclass(frozen=True)
class Requester:
    """Identity supplied by the authorization layer."""
    id: Optional[str]
    organization_id: Optional[str]

    @property
    def is_identified(self) -> bool:
        return bool(self.id) and bool(self.organization_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Export Selection
# ═══════════════════════════════════════════════════════════════════════════════

# attribute -> wire key
_SELECTION_WIRE_KEYS: Dict[str, str] = {
    "agentflow": "agentflow",
    "agentflowv2": "agentflowv2",
    "assistant_custom": "assistantCustom",
    "assistant_openai": "assistantOpenAI",
    "assistant_azure": "assistantAzure",
    "assistant_flow": "assistantFlow",
    "chatflow": "chatflow",
    "chat": "chat",
    "chat_message": "chat_message",
    "chat_feedback": "chat_feedback",
    "custom_template": "custom_template",
    "document_store": "document_store",
    "document_store_file_chunk": "document_store_file_chunk",
    "execution": "execution",
    "tool": "tool",
    "variable": "variable",
}


@dataclass(frozen=True)
class ExportSelection:
    """
    Value Object - one boolean flag per exportable category.

    ``assistant_custom`` also exports assistant flows and ``document_store``
    also exports file chunks; the dedicated flags select them on their own.
    """
    agentflow: bool = False
    agentflowv2: bool = False
    assistant_custom: bool = False
    assistant_openai: bool = False
    assistant_azure: bool = False
    assistant_flow: bool = False
    chatflow: bool = False
    chat: bool = False
    chat_message: bool = False
    chat_feedback: bool = False
    custom_template: bool = False
    document_store: bool = False
    document_store_file_chunk: bool = False
    execution: bool = False
    tool: bool = False
    variable: bool = False

    @property
    def includes_assistant_flows(self) -> bool:
        return self.assistant_flow or self.assistant_custom

    @property
    def includes_file_chunks(self) -> bool:
        return self.document_store_file_chunk or self.document_store

    @classmethod
    def everything(cls) -> "ExportSelection":
        return cls(**{name: True for name in _SELECTION_WIRE_KEYS})

    @classmethod
    def from_dict(cls, body: Any) -> "ExportSelection":
        """
        Strictly validate a selection body.

        Raises:
            InvalidExportSelectionError: body is not a mapping, or a present
                key has a non-boolean value
        """
        if not isinstance(body, dict):
            raise InvalidExportSelectionError("Invalid ExportInput object in request body")

        for key, value in body.items():
            if not isinstance(value, bool):
                raise InvalidExportSelectionError(f"Invalid {key} property in ExportInput object")

        return cls(**{
            attr: body.get(wire, False)
            for attr, wire in _SELECTION_WIRE_KEYS.items()
        })

    def to_dict(self) -> Dict[str, bool]:
        return {wire: getattr(self, attr) for attr, wire in _SELECTION_WIRE_KEYS.items()}


# ═══════════════════════════════════════════════════════════════════════════════
# Export Bundle
# ═══════════════════════════════════════════════════════════════════════════════

class BundleCategory(NamedTuple):
    attr: str
    wire_key: str
    entity_class: Type[Entity]


BUNDLE_CATEGORIES: Tuple[BundleCategory, ...] = (
    BundleCategory("agent_flows", "AgentFlow", ChatFlow),
    BundleCategory("agent_flows_v2", "AgentFlowV2", ChatFlow),
    BundleCategory("custom_assistants", "AssistantCustom", Assistant),
    BundleCategory("assistant_flows", "AssistantFlow", ChatFlow),
    BundleCategory("openai_assistants", "AssistantOpenAI", Assistant),
    BundleCategory("azure_assistants", "AssistantAzure", Assistant),
    BundleCategory("chatflows", "ChatFlow", ChatFlow),
    BundleCategory("chats", "Chat", Chat),
    BundleCategory("chat_messages", "ChatMessage", ChatMessage),
    BundleCategory("chat_feedback", "ChatMessageFeedback", ChatMessageFeedback),
    BundleCategory("custom_templates", "CustomTemplate", CustomTemplate),
    BundleCategory("document_stores", "DocumentStore", DocumentStore),
    BundleCategory("document_store_file_chunks", "DocumentStoreFileChunk", DocumentStoreFileChunk),
    BundleCategory("executions", "Execution", Execution),
    BundleCategory("tools", "Tool", Tool),
    BundleCategory("variables", "Variable", Variable),
)

FLOW_CATEGORIES: Tuple[str, ...] = ("agent_flows", "agent_flows_v2", "assistant_flows", "chatflows")
ASSISTANT_CATEGORIES: Tuple[str, ...] = ("custom_assistants", "openai_assistants", "azure_assistants")

_CATEGORY_BY_ATTR: Dict[str, BundleCategory] = {c.attr: c for c in BUNDLE_CATEGORIES}


@dataclass
class ExportBundle:
    """
    In-memory container for one export/import operation.

    Rows keep their source identifiers and references untouched; the bundle
    has no persisted identity of its own.
    """
    agent_flows: List[ChatFlow] = field(default_factory=list)
    agent_flows_v2: List[ChatFlow] = field(default_factory=list)
    custom_assistants: List[Assistant] = field(default_factory=list)
    assistant_flows: List[ChatFlow] = field(default_factory=list)
    openai_assistants: List[Assistant] = field(default_factory=list)
    azure_assistants: List[Assistant] = field(default_factory=list)
    chatflows: List[ChatFlow] = field(default_factory=list)
    chats: List[Chat] = field(default_factory=list)
    chat_messages: List[ChatMessage] = field(default_factory=list)
    chat_feedback: List[ChatMessageFeedback] = field(default_factory=list)
    custom_templates: List[CustomTemplate] = field(default_factory=list)
    document_stores: List[DocumentStore] = field(default_factory=list)
    document_store_file_chunks: List[DocumentStoreFileChunk] = field(default_factory=list)
    executions: List[Execution] = field(default_factory=list)
    tools: List[Tool] = field(default_factory=list)
    variables: List[Variable] = field(default_factory=list)
    file_default_name: str = EXPORT_FILE_DEFAULT_NAME

    def rows(self, attr: str) -> List[Entity]:
        return getattr(self, attr)

    def categories(self) -> Iterator[Tuple[BundleCategory, List[Entity]]]:
        for category in BUNDLE_CATEGORIES:
            yield category, getattr(self, category.attr)

    def all_rows(self) -> Iterator[Entity]:
        for _, rows in self.categories():
            yield from rows

    def flows(self) -> List[ChatFlow]:
        return [flow for attr in FLOW_CATEGORIES for flow in getattr(self, attr)]

    def counts(self) -> Dict[str, int]:
        return {category.wire_key: len(rows) for category, rows in self.categories()}

    def is_empty(self) -> bool:
        return not any(rows for _, rows in self.categories())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the export file format."""
        result: Dict[str, Any] = {"FileDefaultName": self.file_default_name}
        for category, rows in self.categories():
            result[category.wire_key] = [row.to_dict() for row in rows]
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportBundle":
        """
        Parse an export file payload.

        Absent or null categories become empty lists, so partial bundles are
        accepted.

        Raises:
            ValueError: payload is not a mapping or a category is not a list
        """
        if not isinstance(data, dict):
            raise ValueError("Import payload must be an object")

        bundle = cls(file_default_name=data.get("FileDefaultName") or EXPORT_FILE_DEFAULT_NAME)
        for category in BUNDLE_CATEGORIES:
            raw_rows = data.get(category.wire_key) or []
            if not isinstance(raw_rows, list):
                raise ValueError(f"Category {category.wire_key} must be a list")
            setattr(bundle, category.attr, [category.entity_class.from_dict(row) for row in raw_rows])
        return bundle


def category(attr: str) -> BundleCategory:
    """Look up bundle category metadata by attribute name."""
    return _CATEGORY_BY_ATTR[attr]
