"""
Repository Interfaces.

Defines abstract contracts for data access following the Repository pattern.
Follows Interface Segregation Principle with separate read/write interfaces.

Every tenant table shares one contract (IEntityRepository); per-table
criteria are passed as attribute equality filters to ``find_owned``.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Set, TypeVar

T = TypeVar('T')


class IReadRepository(ABC, Generic[T]):
    """
    Read-only repository interface.

    Provides query operations without modifying data.
    """

    @abstractmethod
    def find_existing_ids(self, ids: Iterable[str]) -> Set[str]:
        """
        Return the subset of ``ids`` already present in the store.

        Not scoped to a tenant: primary keys are global.
        """
        pass

    @abstractmethod
    def find_owned(self, user_id: str, organization_id: str, **criteria: Any) -> List[T]:
        """
        Find rows owned by a user inside an organization.

        Args:
            user_id: Owning user
            organization_id: Owning organization
            **criteria: Extra attribute equality filters (e.g. ``type="CUSTOM"``)

        Returns:
            Matching entities
        """
        pass

    @abstractmethod
    def find_owned_ids(self, ids: Iterable[str], user_id: str, organization_id: str) -> Set[str]:
        """Return the subset of ``ids`` owned by the user inside the organization."""
        pass


class IWriteRepository(ABC, Generic[T]):
    """
    Write repository interface.

    Provides mutation operations.
    """

    @abstractmethod
    def save_all(self, entities: List[T]) -> List[T]:
        """
        Bulk upsert entities (insert new ids, overwrite existing ones).

        Writes go through the open unit of work and become durable only on
        commit.
        """
        pass


class IEntityRepository(IReadRepository[T], IWriteRepository[T]):
    """Repository for one tenant-owned table."""
