"""
Pytest fixtures for Flowport tests.
"""

import json
import pytest
from typing import Any, Dict, List, Optional

from flowport.application.factories import ExportImportServiceFactory
from flowport.config import reset_config
from flowport.domain.models import (
    Chat,
    ChatFlow,
    ChatFlowType,
    ChatMessage,
    Requester,
)
from flowport.infrastructure.database import InMemoryStore, InMemoryUnitOfWork


# ═══════════════════════════════════════════════════════════════════════════════
# Builders
# ═══════════════════════════════════════════════════════════════════════════════

def make_event(
    node_id: Optional[str],
    previous: Optional[List[str]] = None,
    status: str = "FINISHED",
    label: Optional[str] = None,
    **data: Any,
) -> Dict[str, Any]:
    """Wire-form execution event."""
    event: Dict[str, Any] = {
        "nodeLabel": label if label is not None else (node_id or ""),
        "previousNodeIds": previous or [],
        "status": status,
        "data": dict(data),
    }
    if node_id is not None:
        event["nodeId"] = node_id
    return event


def make_flow(id: str, owner: Requester, type: str = ChatFlowType.CHATFLOW.value, **kwargs) -> ChatFlow:
    return ChatFlow(
        id=id,
        user_id=owner.id,
        organization_id=owner.organization_id,
        name=kwargs.pop("name", f"flow-{id}"),
        flow_data=kwargs.pop("flow_data", json.dumps({"nodes": [], "edges": []})),
        type=type,
        **kwargs,
    )


def make_chat(id: str, chatflow_id: str, owner: Requester) -> Chat:
    return Chat(
        id=id,
        chatflow_id=chatflow_id,
        user_id=owner.id,
        organization_id=owner.organization_id,
        owner_id=owner.id,
    )


def make_message(id: str, chatflow_id: str, owner: Requester, chat_id: Optional[str] = None, **kwargs) -> ChatMessage:
    return ChatMessage(
        id=id,
        chatflow_id=chatflow_id,
        chat_id=chat_id,
        user_id=owner.id,
        organization_id=owner.organization_id,
        content=kwargs.pop("content", "hello"),
        **kwargs,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def alice() -> Requester:
    return Requester(id="user-alice", organization_id="org-a")


@pytest.fixture
def bob() -> Requester:
    return Requester(id="user-bob", organization_id="org-b")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def service(store):
    return ExportImportServiceFactory.create_for_testing(store)


@pytest.fixture(autouse=True)
def _reset_global_config():
    yield
    reset_config()


def seed(store: InMemoryStore, repo_name: str, *rows) -> None:
    """Commit rows directly into the store."""
    with InMemoryUnitOfWork(store) as uow:
        getattr(uow, repo_name).save_all(list(rows))
        uow.commit()
