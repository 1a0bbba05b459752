"""
SQL Persistence - SQLModel / SQLAlchemy Integration

Repository implementation for SQLModel table classes (any SQLAlchemy mapped
class works). Column and relation metadata are read from the SQLAlchemy
mapper; single-column to-one relations are joined eagerly on lookup.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import types as sqltypes
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.orm import Mapper, RelationshipDirection, joinedload, registry as sa_registry
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine, select
from sqlmodel.main import default_registry

from ..config import PersistenceConfig, get_config
from ..errors import PersistenceFault, UnknownEntityType, UnmappedField
from .base import (
    Cardinality, EntityTypeRef, FieldMapping, PersistenceLayer, RelationMapping,
    Repository, ScalarType,
)

logger = logging.getLogger(__name__)

# Order matters: Text before String, Enum before String, Float before Numeric.
_TYPE_MAP = (
    (sqltypes.Enum, ScalarType.OTHER),
    (sqltypes.Text, ScalarType.TEXT),
    (sqltypes.String, ScalarType.STRING),
    (sqltypes.Boolean, ScalarType.BOOLEAN),
    (sqltypes.Integer, ScalarType.INTEGER),
    (sqltypes.Float, ScalarType.FLOAT),
    (sqltypes.Numeric, ScalarType.DECIMAL),
    (sqltypes.DateTime, ScalarType.DATETIME),
    (sqltypes.Date, ScalarType.DATE),
)


def scalar_type_of(column_type: sqltypes.TypeEngine) -> ScalarType:
    for sa_type, scalar_type in _TYPE_MAP:
        if isinstance(column_type, sa_type):
            return scalar_type
    return ScalarType.OTHER


def _python_type_of(column_type: sqltypes.TypeEngine) -> Optional[type]:
    try:
        return column_type.python_type
    except NotImplementedError:
        return None


class SQLModelRepository(Repository):
    """Repository for one mapped class bound to a session."""

    def __init__(self, session: Session, mapper: Mapper):
        self.session = session
        self.mapper = mapper
        if len(mapper.primary_key) != 1:
            raise UnknownEntityType(mapper.class_)
        self._pk_column = mapper.primary_key[0]
        self._pk_name = mapper.get_property_by_column(self._pk_column).key
        self._relations: Optional[Dict[str, RelationMapping]] = None

    @property
    def entity_type(self) -> Type[Any]:
        return self.mapper.class_

    @property
    def primary_key(self) -> str:
        return self._pk_name

    def _coerce_key(self, key: Any) -> Any:
        if not isinstance(key, str):
            return key
        try:
            python_type = self._pk_column.type.python_type
        except NotImplementedError:
            return key
        if python_type is int:
            try:
                return int(key)
            except ValueError:
                return key
        return key

    def find(self, key: Any, eager: Sequence[str] = ()) -> Optional[Any]:
        entity_type = self.entity_type
        statement = select(entity_type).where(getattr(entity_type, self._pk_name) == self._coerce_key(key))
        for name in eager:
            statement = statement.options(joinedload(getattr(entity_type, name)))
        try:
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise PersistenceFault(f"Failed to load {entity_type.__name__} {key!r}: {e}") from e

    def find_many(self, keys: Iterable[Any]) -> List[Any]:
        keys = [self._coerce_key(key) for key in keys]
        if not keys:
            return []
        entity_type = self.entity_type
        statement = select(entity_type).where(getattr(entity_type, self._pk_name).in_(keys))
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise PersistenceFault(f"Failed to load {entity_type.__name__} records: {e}") from e

    def get_field_mapping(self, name: str) -> FieldMapping:
        if name not in self.mapper.column_attrs:
            raise UnmappedField(self.entity_type, name)
        column = self.mapper.column_attrs[name].columns[0]
        return FieldMapping(
            name=name,
            type=scalar_type_of(column.type),
            length=getattr(column.type, "length", None),
            nullable=bool(column.nullable),
            python_type=_python_type_of(column.type),
        )

    def get_relation_mappings(self) -> Dict[str, RelationMapping]:
        if self._relations is None:
            self._relations = {}
            for relationship in self.mapper.relationships:
                join_key_name = None
                if relationship.direction is RelationshipDirection.MANYTOONE and len(relationship.local_columns) == 1:
                    join_key_name = next(iter(relationship.local_columns)).name
                self._relations[relationship.key] = RelationMapping(
                    name=relationship.key,
                    target=relationship.mapper.class_,
                    cardinality=Cardinality.COLLECTION if relationship.uselist else Cardinality.SINGLE,
                    join_key_name=join_key_name,
                )
        return dict(self._relations)


class SQLModelPersistence(PersistenceLayer):
    """
    Persistence layer over one SQLModel session.

    Entity names given as strings are resolved through the SQLModel class
    registry (or the registry passed in).
    """

    def __init__(self, session: Session, registry: Optional[sa_registry] = None):
        self.session = session
        self.registry = registry or default_registry
        self._owns_session = False
        self._repositories: Dict[Type[Any], SQLModelRepository] = {}

    @classmethod
    def from_engine(cls, engine: Engine, registry: Optional[sa_registry] = None) -> "SQLModelPersistence":
        """Create a persistence layer owning a fresh session; `close()` closes it."""
        persistence = cls(Session(engine), registry)
        persistence._owns_session = True
        return persistence

    @classmethod
    @contextmanager
    def opener(cls, engine: Engine, registry: Optional[sa_registry] = None):
        with cls.from_engine(engine, registry) as persistence:
            yield persistence

    def _resolve(self, entity_type: EntityTypeRef) -> Mapper:
        if isinstance(entity_type, str):
            for mapper in self.registry.mappers:
                if mapper.class_.__name__ == entity_type:
                    return mapper
            raise UnknownEntityType(entity_type)
        try:
            return sa_inspect(entity_type)
        except NoInspectionAvailable:
            raise UnknownEntityType(entity_type) from None

    def get_repository(self, entity_type: EntityTypeRef) -> SQLModelRepository:
        mapper = self._resolve(entity_type)
        repository = self._repositories.get(mapper.class_)
        if repository is None:
            repository = SQLModelRepository(self.session, mapper)
            self._repositories[mapper.class_] = repository
        return repository

    def persist(self, entity: Any) -> None:
        self.session.add(entity)

    def flush(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceFault(f"Failed to save changes: {e}") from e

    def rollback(self) -> None:
        self.session.rollback()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()


def engine_from_config(config: Optional[PersistenceConfig] = None) -> Engine:
    """
    Create the SQLAlchemy engine described by the persistence configuration.

    Uses the global configuration when none is given. SQLite connections may
    be shared across threads; an in-memory SQLite database keeps one
    connection so every session sees the same data.
    """
    config = config or get_config().persistence
    options: Dict[str, Any] = {"echo": config.echo}
    if config.database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if config.database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
    logger.debug(f"Creating engine for {config.database_url}")
    return create_engine(config.database_url, **options)
