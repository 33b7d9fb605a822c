"""Base repository implementation with common functionality."""

from dataclasses import fields
from typing import Any, Dict, Generic, Iterable, List, Set, Type, TypeVar
from sqlalchemy.orm import Session

T = TypeVar('T')
ORM = TypeVar('ORM')

# Bound parameters per IN (...) query
_ID_BATCH_SIZE = 500

# Domain field -> ORM attribute, where a column name is reserved
_ORM_ATTRIBUTE_OVERRIDES = {
    "metadata": "metadata_",
}


class BaseRepository(Generic[T, ORM]):
    """
    Base repository with the bulk operations export and import need.
    
    Subclasses may override:
    - _to_domain(orm) -> T: Convert ORM model to domain model
    - _to_orm(domain) -> ORM: Convert domain model to ORM model
    
    The default conversions copy every dataclass field to the ORM attribute
    of the same name.
    """
    
    entity_class: Type[T]
    orm_class: Type[ORM]
    
    def __init__(self, session: Session):
        self._session = session
        self._orm_class = self.orm_class
    
    def _to_domain(self, orm: ORM) -> T:
        """Convert ORM model to domain model."""
        values = {
            f.name: getattr(orm, _ORM_ATTRIBUTE_OVERRIDES.get(f.name, f.name))
            for f in fields(self.entity_class)
        }
        return self.entity_class(**values)
    
    def _to_orm(self, domain: T) -> ORM:
        """Convert domain model to ORM model."""
        values: Dict[str, Any] = {
            _ORM_ATTRIBUTE_OVERRIDES.get(f.name, f.name): getattr(domain, f.name)
            for f in fields(domain)
        }
        return self._orm_class(**values)
    
    def save_all(self, entities: List[T]) -> List[T]:
        """Upsert entities by primary key and flush."""
        for entity in entities:
            self._session.merge(self._to_orm(entity))
        self._session.flush()
        return entities
    
    def find_existing_ids(self, ids: Iterable[str]) -> Set[str]:
        """Ids already present in the table, across all tenants."""
        found: Set[str] = set()
        wanted = [i for i in set(ids) if i]
        for start in range(0, len(wanted), _ID_BATCH_SIZE):
            batch = wanted[start:start + _ID_BATCH_SIZE]
            rows = (
                self._session.query(self._orm_class.id)
                .filter(self._orm_class.id.in_(batch))
                .all()
            )
            found.update(row[0] for row in rows)
        return found
    
    def find_owned(self, user_id: str, organization_id: str, **criteria: Any) -> List[T]:
        """Rows owned by the user in the organization, in creation order."""
        orms = (
            self._session.query(self._orm_class)
            .filter_by(user_id=user_id, organization_id=organization_id, **criteria)
            .order_by(self._orm_class.created_date, self._orm_class.id)
            .all()
        )
        return [self._to_domain(orm) for orm in orms]
    
    def find_owned_ids(self, ids: Iterable[str], user_id: str, organization_id: str) -> Set[str]:
        """Subset of ``ids`` owned by the user in the organization."""
        found: Set[str] = set()
        wanted = [i for i in set(ids) if i]
        for start in range(0, len(wanted), _ID_BATCH_SIZE):
            batch = wanted[start:start + _ID_BATCH_SIZE]
            rows = (
                self._session.query(self._orm_class.id)
                .filter(self._orm_class.id.in_(batch))
                .filter_by(user_id=user_id, organization_id=organization_id)
                .all()
            )
            found.update(row[0] for row in rows)
        return found
