"""Domain Models - Entities, Value Objects, and Aggregates."""

from .entities import (
    Entity,
    ChatFlow,
    ChatFlowType,
    Chat,
    ChatMessage,
    ChatType,
    ChatMessageFeedback,
    Assistant,
    AssistantType,
    CustomTemplate,
    DocumentStore,
    DocumentStoreFileChunk,
    Tool,
    Variable,
    Execution,
    ReferenceKind,
)
from .execution_tree import (
    ITERATION_NODE_NAME,
    NodeStatus,
    ExecutionEvent,
    TreeNode,
    RealTreeNode,
    VirtualIterationNode,
    dump_forest,
)
from .export_bundle import (
    EXPORT_FILE_DEFAULT_NAME,
    BUNDLE_CATEGORIES,
    FLOW_CATEGORIES,
    ASSISTANT_CATEGORIES,
    BundleCategory,
    ExportBundle,
    ExportSelection,
    Requester,
)
from .exceptions import (
    FlowportError,
    InvalidExportSelectionError,
    UnauthorizedError,
    InternalError,
)

__all__ = [
    # Entities
    "Entity",
    "ChatFlow",
    "ChatFlowType",
    "Chat",
    "ChatMessage",
    "ChatType",
    "ChatMessageFeedback",
    "Assistant",
    "AssistantType",
    "CustomTemplate",
    "DocumentStore",
    "DocumentStoreFileChunk",
    "Tool",
    "Variable",
    "Execution",
    "ReferenceKind",
    # Execution tree
    "ITERATION_NODE_NAME",
    "NodeStatus",
    "ExecutionEvent",
    "TreeNode",
    "RealTreeNode",
    "dump_forest",
    "VirtualIterationNode",
    # Export bundle
    "EXPORT_FILE_DEFAULT_NAME",
    "BUNDLE_CATEGORIES",
    "FLOW_CATEGORIES",
    "ASSISTANT_CATEGORIES",
    "BundleCategory",
    "ExportBundle",
    "ExportSelection",
    "Requester",
    # Errors
    "FlowportError",
    "InvalidExportSelectionError",
    "UnauthorizedError",
    "InternalError",
]
