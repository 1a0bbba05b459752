"""
StarForm Persistence Layer - Memory Backend

In-memory persistence implementation for development and testing.
Column and relation metadata are registered explicitly per entity type;
writes are staged by `persist` and applied on `flush`.
"""

import logging
from itertools import count
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

from ..errors import PersistenceFault, UnknownEntityType, UnmappedField
from .base import EntityTypeRef, FieldMapping, PersistenceLayer, RelationMapping, Repository

logger = logging.getLogger(__name__)


class MemoryRepository(Repository):
    """Dictionary-backed repository for one entity type."""

    def __init__(
        self,
        entity_type: Type[Any],
        fields: Iterable[FieldMapping] = (),
        relations: Iterable[RelationMapping] = (),
        primary_key: str = "id",
    ):
        self._entity_type = entity_type
        self._primary_key = primary_key
        self._fields: Dict[str, FieldMapping] = {field.name: field for field in fields}
        self._relations: Dict[str, RelationMapping] = {relation.name: relation for relation in relations}
        self._data: Dict[Any, Any] = {}
        self._sequence = count(1)

    @property
    def entity_type(self) -> Type[Any]:
        return self._entity_type

    @property
    def primary_key(self) -> str:
        return self._primary_key

    def add(self, entity: Any) -> Any:
        """Store `entity`, assigning the next integer key when it has none."""
        key = getattr(entity, self._primary_key, None)
        if key is None:
            key = next(self._sequence)
            while key in self._data:
                key = next(self._sequence)
            setattr(entity, self._primary_key, key)
        self._data[key] = entity
        return entity

    def find(self, key: Any, eager: Sequence[str] = ()) -> Optional[Any]:
        entity = self._data.get(key)
        if entity is None and isinstance(key, str) and key.isdigit():
            entity = self._data.get(int(key))
        return entity

    def find_many(self, keys: Iterable[Any]) -> List[Any]:
        found = (self.find(key) for key in keys)
        return [entity for entity in found if entity is not None]

    def all(self) -> List[Any]:
        return list(self._data.values())

    def get_field_mapping(self, name: str) -> FieldMapping:
        try:
            return self._fields[name]
        except KeyError:
            raise UnmappedField(self._entity_type, name) from None

    def get_relation_mappings(self) -> Dict[str, RelationMapping]:
        return dict(self._relations)


class MemoryPersistence(PersistenceLayer):
    """
    In-memory persistence layer.

    Data lives as long as the instance; share one instance between requests
    only in tests and demos.
    """

    def __init__(self):
        self._repositories: Dict[Type[Any], MemoryRepository] = {}
        self._pending: List[Any] = []

    def register(
        self,
        entity_type: Type[Any],
        fields: Iterable[FieldMapping] = (),
        relations: Iterable[RelationMapping] = (),
        primary_key: str = "id",
    ) -> MemoryRepository:
        repository = MemoryRepository(entity_type, fields, relations, primary_key)
        self._repositories[entity_type] = repository
        return repository

    def get_repository(self, entity_type: EntityTypeRef) -> MemoryRepository:
        if isinstance(entity_type, str):
            for registered, repository in self._repositories.items():
                if registered.__name__ == entity_type:
                    return repository
            raise UnknownEntityType(entity_type)
        try:
            return self._repositories[entity_type]
        except KeyError:
            raise UnknownEntityType(entity_type) from None

    def persist(self, entity: Any) -> None:
        if not any(staged is entity for staged in self._pending):
            self._pending.append(entity)

    def flush(self) -> None:
        pending, self._pending = self._pending, []
        try:
            for entity in pending:
                self.get_repository(type(entity)).add(entity)
        except UnknownEntityType as e:
            raise PersistenceFault(f"Cannot store entity: {e}") from e
        logger.debug(f"Flushed {len(pending)} entities to memory")

    def rollback(self) -> None:
        self._pending.clear()
