"""
Domain Layer - Core business logic and domain models.

This layer contains:
- Domain Models: Entities, Value Objects, and the export bundle
- Domain Interfaces: Abstract contracts (Ports) for persistence
"""

from . import models
from . import interfaces

__all__ = [
    "models",
    "interfaces",
]
