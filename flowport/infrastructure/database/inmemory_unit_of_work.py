"""
In-Memory Unit of Work Implementation.

For unit tests and fast iteration - no database I/O.
Provides the same interface as SQLAlchemyUnitOfWork but stores data in memory.

Committed rows live in an InMemoryStore shared by every unit of work opened
on it. Each unit of work keeps its own pending writes: reads see the
committed rows overlaid with that unit's pending ones, ``commit`` applies
them to the store under the store lock, and ``rollback`` (or leaving without
a commit) drops them. Concurrent units of work never see each other's
uncommitted writes.
"""

from typing import Any, Dict, Iterable, List, Optional, Set, TypeVar
from copy import deepcopy
import threading

from flowport.domain.interfaces.unit_of_work import IUnitOfWork
from flowport.domain.interfaces.repositories import IEntityRepository
from flowport.domain.models.entities import Entity

T = TypeVar('T', bound=Entity)

REPOSITORY_NAMES = (
    "chatflows",
    "chats",
    "chat_messages",
    "chat_feedback",
    "assistants",
    "custom_templates",
    "document_stores",
    "document_store_file_chunks",
    "tools",
    "variables",
    "executions",
)


# ═══════════════════════════════════════════════════════════════════════════════
# Shared Store
# ═══════════════════════════════════════════════════════════════════════════════


class InMemoryStore:
    """Committed tables, keyed by repository name then entity id."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, Entity]] = {name: {} for name in REPOSITORY_NAMES}
        self.lock = threading.RLock()
        self.commits = 0
        self.rollbacks = 0

    def snapshot(self, name: str) -> Dict[str, Entity]:
        """Shallow copy of one committed table; stored rows are never mutated."""
        with self.lock:
            return dict(self.tables[name])

    def apply(self, pending: Dict[str, Dict[str, Entity]]) -> None:
        """Make pending writes of every table visible at once."""
        with self.lock:
            for name, rows in pending.items():
                self.tables[name].update(rows)
            self.commits += 1

    def record_rollback(self) -> None:
        with self.lock:
            self.rollbacks += 1


# ═══════════════════════════════════════════════════════════════════════════════
# In-Memory Repository Implementation
# ═══════════════════════════════════════════════════════════════════════════════


class InMemoryEntityRepository(IEntityRepository[T]):
    """One table as seen by one unit of work. Stores and returns copies."""

    def __init__(self, store: InMemoryStore, name: str):
        self.name = name
        self._store = store
        self._pending: Dict[str, T] = {}

    def _rows(self) -> Dict[str, T]:
        rows = self._store.snapshot(self.name)
        rows.update(self._pending)
        return rows

    def save_all(self, entities: List[T]) -> List[T]:
        for entity in entities:
            self._pending[entity.id] = deepcopy(entity)
        return entities

    def find_existing_ids(self, ids: Iterable[str]) -> Set[str]:
        rows = self._rows()
        return {i for i in ids if i in rows}

    def find_owned(self, user_id: str, organization_id: str, **criteria: Any) -> List[T]:
        return [
            deepcopy(e) for e in self._rows().values()
            if e.is_owned_by(user_id, organization_id)
            and all(getattr(e, k) == v for k, v in criteria.items())
        ]

    def find_owned_ids(self, ids: Iterable[str], user_id: str, organization_id: str) -> Set[str]:
        rows = self._rows()
        return {
            i for i in ids
            if i in rows and rows[i].is_owned_by(user_id, organization_id)
        }

    def take_pending(self) -> Dict[str, T]:
        pending, self._pending = self._pending, {}
        return pending

    def discard_pending(self) -> None:
        self._pending = {}


# ═══════════════════════════════════════════════════════════════════════════════
# In-Memory Unit of Work
# ═══════════════════════════════════════════════════════════════════════════════


class InMemoryUnitOfWork(IUnitOfWork):
    """
    In-memory Unit of Work for testing.

    Usage:
        store = InMemoryStore()
        with InMemoryUnitOfWork(store) as uow:
            uow.chatflows.save_all([flow])
            uow.commit()

    Open one unit of work per operation; share the store, not the unit.
    """

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store if store is not None else InMemoryStore()
        self._open_repositories()

    def _open_repositories(self) -> None:
        for name in REPOSITORY_NAMES:
            setattr(self, name, InMemoryEntityRepository(self.store, name))

    def _repositories(self) -> List[InMemoryEntityRepository]:
        return [getattr(self, name) for name in REPOSITORY_NAMES]

    def __enter__(self) -> "InMemoryUnitOfWork":
        self._open_repositories()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
        else:
            # Leaving without a commit discards pending writes
            for repo in self._repositories():
                repo.discard_pending()

    def commit(self):
        """Apply pending writes to the shared store."""
        self.store.apply({repo.name: repo.take_pending() for repo in self._repositories()})

    def rollback(self):
        """Drop pending writes."""
        self.store.record_rollback()
        for repo in self._repositories():
            repo.discard_pending()
