"""
StarForm Persistence Module

Persistence layers the binder loads and saves entities through: an
in-memory backend for tests and demos and a SQLModel backend.
"""

from .base import (
    Cardinality, EntityTypeRef, FieldMapping, PersistenceLayer, RelationMapping,
    Repository, ScalarType,
)
from .memory import MemoryPersistence, MemoryRepository
from .sql import SQLModelPersistence, SQLModelRepository, engine_from_config, scalar_type_of

__all__ = [
    "Cardinality",
    "EntityTypeRef",
    "FieldMapping",
    "PersistenceLayer",
    "RelationMapping",
    "Repository",
    "ScalarType",
    "MemoryPersistence",
    "MemoryRepository",
    "SQLModelPersistence",
    "SQLModelRepository",
    "engine_from_config",
    "scalar_type_of",
]
