"""
StarForm Persistence Layer - Base Classes

This module provides the abstract interfaces the binder talks to: a
persistence layer handing out one repository per entity type, and the
read-only column / relation metadata those repositories expose.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, Union

EntityTypeRef = Union[Type[Any], str]


class ScalarType(str, Enum):
    """Column value types the rule inferencer understands"""
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    OTHER = "other"


# Python value type per scalar column type
_PYTHON_TYPES: Dict[ScalarType, type] = {
    ScalarType.STRING: str,
    ScalarType.TEXT: str,
    ScalarType.INTEGER: int,
    ScalarType.BOOLEAN: bool,
    ScalarType.FLOAT: float,
    ScalarType.DECIMAL: Decimal,
    ScalarType.DATE: date,
    ScalarType.DATETIME: datetime,
}


class Cardinality(str, Enum):
    SINGLE = "single"
    COLLECTION = "collection"


@dataclass(frozen=True)
class FieldMapping:
    """Per-column metadata"""
    name: str
    type: ScalarType
    length: Optional[int] = None
    nullable: bool = True
    python_type: Optional[type] = None

    @property
    def value_type(self) -> Optional[type]:
        """Python type stored in the column, derived from `type` unless given."""
        return self.python_type or _PYTHON_TYPES.get(self.type)


@dataclass(frozen=True)
class RelationMapping:
    """Per-relation metadata"""
    name: str
    target: Type[Any]
    cardinality: Cardinality = Cardinality.SINGLE
    join_key_name: Optional[str] = None

    @property
    def is_collection(self) -> bool:
        return self.cardinality is Cardinality.COLLECTION

    @property
    def has_single_join_column(self) -> bool:
        return self.cardinality is Cardinality.SINGLE and self.join_key_name is not None


class Repository(ABC):
    """
    Gateway providing lookup and metadata for one entity type.

    Implementations must not raise for missing rows: `find` returns None and
    `find_many` returns only the records that exist.
    """

    @property
    @abstractmethod
    def entity_type(self) -> Type[Any]:
        pass

    @property
    @abstractmethod
    def primary_key(self) -> str:
        """Attribute name of the primary key"""
        pass

    def create(self) -> Any:
        """Construct a new, empty entity of this repository's type."""
        return self.entity_type()

    @abstractmethod
    def find(self, key: Any, eager: Sequence[str] = ()) -> Optional[Any]:
        """
        Load one entity by primary key.

        Args:
            key: Primary key value
            eager: Relation names to join in the same query

        Returns:
            Entity instance if found, None otherwise
        """
        pass

    @abstractmethod
    def find_many(self, keys: Iterable[Any]) -> List[Any]:
        """Load every entity whose key is in `keys` with a single lookup."""
        pass

    @abstractmethod
    def get_field_mapping(self, name: str) -> FieldMapping:
        """
        Column metadata for `name`.

        Raises:
            UnmappedField: if `name` is not a mapped column
        """
        pass

    @abstractmethod
    def get_relation_mappings(self) -> Dict[str, RelationMapping]:
        pass

    def single_join_relations(self) -> Dict[str, str]:
        """Relation name -> join column for single-valued, single-column relations."""
        return {
            name: relation.join_key_name
            for name, relation in self.get_relation_mappings().items()
            if relation.has_single_join_column
        }


class PersistenceLayer(ABC):
    """
    Abstract base class for persistence layers.

    One instance is used by exactly one request; it is never shared across
    threads. Usable as a context manager that closes it on exit.
    """

    @abstractmethod
    def get_repository(self, entity_type: EntityTypeRef) -> Repository:
        """
        Repository for an entity class or its registered name.

        Raises:
            UnknownEntityType: if the type is not mapped
        """
        pass

    @abstractmethod
    def persist(self, entity: Any) -> None:
        """Schedule `entity` for insert or update on the next flush."""
        pass

    @abstractmethod
    def flush(self) -> None:
        """
        Write every scheduled change as one transactional unit.

        Raises:
            PersistenceFault: if the write fails; pending changes are rolled back
        """
        pass

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.rollback()
        self.close()
