"""
Flowport - Execution trees and tenant export/import for agent-flow platforms.

A DDD-based service with:
- Execution Tree Builder: rebuilds nested run trees (with loop iterations)
  from flat agent-flow execution logs
- Export/Import Engine: snapshots a tenant's flows, chats, messages and
  related rows, and re-imports them into another tenant atomically with
  colliding ids regenerated

Architecture follows:
- Domain-Driven Design
- Repository + Unit of Work pattern
- Interface-based abstractions
"""

__version__ = "0.1.0"

# Domain Models
from flowport.domain.models import (
    ExecutionEvent,
    NodeStatus,
    TreeNode,
    ExportBundle,
    ExportSelection,
    Requester,
    FlowportError,
)

# Domain Interfaces
from flowport.domain.interfaces import (
    IEntityRepository,
    IUnitOfWork,
)

# Application Services
from flowport.application import (
    build_execution_tree,
    ExportImportService,
)

# Configuration
from flowport.config import FlowportConfig, get_config, set_config

__all__ = [
    "__version__",
    # Domain
    "ExecutionEvent",
    "NodeStatus",
    "TreeNode",
    "ExportBundle",
    "ExportSelection",
    "Requester",
    "FlowportError",
    "IEntityRepository",
    "IUnitOfWork",
    # Application
    "build_execution_tree",
    "ExportImportService",
    # Config
    "FlowportConfig",
    "get_config",
    "set_config",
]
