"""Domain Interfaces - Abstract contracts (Ports) for the domain layer."""

from .repositories import (
    IReadRepository,
    IWriteRepository,
    IEntityRepository,
)
from .unit_of_work import IUnitOfWork

__all__ = [
    "IReadRepository",
    "IWriteRepository",
    "IEntityRepository",
    "IUnitOfWork",
]
