"""
Entity Binder

Reconciles a form with one persisted entity for the duration of a single
request-scoped form lifecycle:

    UNBOUND -> LOADED -> POPULATED -> RECONCILING -> COMMITTED | FAILED

`load` binds the entity (insert or update path), `populate_defaults` copies
entity state into controls that hold no value yet, and `reconcile` writes
submitted values back onto the entity graph and persists it. Persistence
failures never escape `reconcile`; they are logged and reported through a
failed BindingResult and the `on_after_error` handlers.
"""

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from functools import lru_cache
from numbers import Number
from typing import Any, Dict, Optional, Set

from pydantic import TypeAdapter

from ..errors import EntityNotFound, LifecycleError, UnknownEntityType, UnmappedField
from ..forms import Button, Form, MultiSelectBox, SELECT_LIKE
from ..persistence.base import EntityTypeRef, PersistenceLayer, RelationMapping, Repository
from .capabilities import CapabilityRegistry, EntityCapabilities
from .capabilities import capabilities as default_capabilities
from .notifications import Notifier

logger = logging.getLogger(__name__)

_SKIP = object()


class DatabaseMethod(str, Enum):
    """How the bound entity will be written"""
    NONE = "none"
    INSERT = "insert"
    UPDATE = "update"


class BinderState(str, Enum):
    UNBOUND = "unbound"
    LOADED = "loaded"
    POPULATED = "populated"
    RECONCILING = "reconciling"
    COMMITTED = "committed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({BinderState.COMMITTED, BinderState.FAILED})


@dataclass
class BindingResult:
    """Outcome of a reconciliation"""
    success: bool
    method: DatabaseMethod
    entity: Any = None
    error: Optional[BaseException] = None

    def __bool__(self) -> bool:
        return self.success


def is_none(value: Any) -> bool:
    "True for None, empty strings and empty collections; 0 and False are values"
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _is_collection(value: Any) -> bool:
    return isinstance(value, Collection) and not isinstance(value, (str, bytes, Mapping))


@lru_cache(maxsize=None)
def _adapter(value_type: type) -> TypeAdapter:
    return TypeAdapter(value_type)


class EntityBinder:
    """
    Binds one entity to one form.

    Args:
        persistence: Request-scoped persistence layer
        capabilities: Registry resolving entity accessor hooks
        expose_id: Add an `id` hidden control when an entity is bound
    """

    def __init__(
        self,
        persistence: PersistenceLayer,
        capabilities: Optional[CapabilityRegistry] = None,
        expose_id: bool = False,
    ):
        self.persistence = persistence
        self.capabilities = capabilities or default_capabilities
        self.expose_id = expose_id

        self.entity_type: Optional[EntityTypeRef] = None
        self.entity: Any = None
        self.repository: Optional[Repository] = None
        self.state = BinderState.UNBOUND
        self._populated: Set[str] = set()

        self.on_before_success = Notifier("on_before_success")
        self.on_after_success = Notifier("on_after_success")
        self.on_after_error = Notifier("on_after_error")

    def __repr__(self):
        return f"<EntityBinder {self._describe()} state={self.state.value}>"

    # Observer registration

    def add_before_success(self, handler) -> "EntityBinder":
        self.on_before_success.subscribe(handler)
        return self

    def add_after_success(self, handler) -> "EntityBinder":
        self.on_after_success.subscribe(handler)
        return self

    def add_after_error(self, handler) -> "EntityBinder":
        self.on_after_error.subscribe(handler)
        return self

    # Loading

    def load(self, entity_type: Optional[EntityTypeRef] = None, key: Any = None) -> Optional[Any]:
        """
        Bind the entity for a new lifecycle.

        With no key a new empty entity is constructed (insert path); with a
        key the entity is looked up, joining every single-column to-one
        relation in the same query (update path).

        Returns:
            The bound entity, or None when the type is unknown or no row matches

        Raises:
            PersistenceFault: on unexpected persistence-layer errors
        """
        self.entity_type = entity_type
        self.entity = None
        self.repository = None
        self.state = BinderState.UNBOUND
        self._populated = set()

        if is_none(entity_type):
            return None

        try:
            self.repository = self.persistence.get_repository(entity_type)
        except UnknownEntityType as e:
            logger.debug(f"Not binding an entity: {e}")
            return None
        self.entity_type = self.repository.entity_type

        if is_none(key):
            self.entity = self.repository.create()
        else:
            eager = list(self.repository.single_join_relations())
            self.entity = self.repository.find(key, eager=eager)

        if self.entity is None:
            logger.debug(f"No {self._describe()} with key {key!r}")
            return None

        self.state = BinderState.LOADED
        logger.debug(f"Loaded {self._describe()} for {self.database_method.value}")
        return self.entity

    @property
    def key(self) -> Any:
        return self._key_of(self.entity) if self.entity is not None else None

    @property
    def database_method(self) -> DatabaseMethod:
        if self.entity is None:
            return DatabaseMethod.NONE
        if self.key is not None:
            return DatabaseMethod.UPDATE
        return DatabaseMethod.INSERT

    def relation_join_map(self) -> Dict[str, str]:
        """Relation name -> join column for the bound type's single-column relations."""
        if self.repository is None:
            return {}
        return self.repository.single_join_relations()

    # Populate direction

    def populate_defaults(
        self,
        form: Form,
        entity: Any = None,
        relation_join_map: Optional[Dict[str, str]] = None,
    ) -> None:
        """Fill every empty control that matches an entity property."""
        entity = self.entity if entity is None else entity
        if entity is None:
            return
        if relation_join_map is None:
            relation_join_map = self.relation_join_map()

        self._ensure_id_control(form, entity)

        capabilities = self.capabilities.resolve(type(entity))
        relations = self.repository.get_relation_mappings() if self.repository else {}

        for control in form.controls():
            name = control.name
            if isinstance(control, Button) or name in self._populated:
                continue
            if control.has_value() or not capabilities.has_property(entity, name):
                continue

            value = capabilities.read(entity, name)
            default = self._default_for(control, value, relation_join_map, relations.get(name))
            if default is _SKIP:
                continue
            control.set_default_value(default)
            self._populated.add(name)

        if self.state is BinderState.LOADED:
            self.state = BinderState.POPULATED

    def _default_for(self, control, value: Any, relation_join_map: Dict[str, str],
                     relation: Optional[RelationMapping]) -> Any:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (str, Number, date)):
            return value
        if isinstance(value, Mapping):
            if relation is None or control.name not in relation_join_map:
                return _SKIP
            return value.get(self._primary_key_for(relation.target))
        if _is_collection(value):
            if not isinstance(control, MultiSelectBox):
                return _SKIP
            keys = (self._key_of(member) for member in value)
            # members missing from the presented items are dropped
            return [control.match_item(key) for key in keys if control.has_item(key)]
        if value is None or relation is None:
            return _SKIP

        key = self._key_of(value)
        if key is None:
            return _SKIP
        if isinstance(control, SELECT_LIKE):
            if not control.has_item(key):
                logger.debug(f"Skipping default for '{control.name}': {key!r} is not an offered item")
                return _SKIP
            key = control.match_item(key)
            return [key] if isinstance(control, MultiSelectBox) else key
        return key

    def _ensure_id_control(self, form: Form, entity: Any) -> None:
        if not self.expose_id or "id" in form:
            return
        form.add_hidden("id", self._key_of(entity))

    # Persist direction

    def reconcile(self, form: Form, values: Dict[str, Any]) -> BindingResult:
        """
        Write validated submitted values onto the bound entity and persist it.

        Never raises for persistence or entity errors; the outcome is returned
        and announced through `on_after_success` / `on_after_error`.

        Raises:
            LifecycleError: if this binder's lifecycle already ended
        """
        if self.state in TERMINAL_STATES:
            raise LifecycleError(f"Binder lifecycle already ended ({self.state.value}); call load() first")

        values = dict(values)
        self.on_before_success(values, self.entity, form)

        try:
            method = self._apply(values)
        except Exception as e:
            logger.exception(f"Failed to save {self._describe()}")
            self._rollback()
            self.state = BinderState.FAILED
            self.on_after_error(values, form)
            return BindingResult(success=False, method=self.database_method, error=e)

        if method is not DatabaseMethod.NONE:
            self.state = BinderState.COMMITTED
            logger.info(f"Saved {self._describe()} ({method.value}, key={self.key!r})")
        self.on_after_success(values, self.entity, form)
        return BindingResult(success=True, method=method, entity=self.entity)

    def _apply(self, values: Dict[str, Any]) -> DatabaseMethod:
        if self.entity is None:
            return DatabaseMethod.NONE
        self.state = BinderState.RECONCILING

        submitted_id = values.pop("id", None)
        if not is_none(submitted_id) and self.key is None:
            entity_type = self.entity_type
            if self.load(entity_type, submitted_id) is None:
                raise EntityNotFound(entity_type, submitted_id)
            self.state = BinderState.RECONCILING

        method = self.database_method
        capabilities = self.capabilities.resolve(type(self.entity))
        relations = self.repository.get_relation_mappings()

        for name, value in values.items():
            relation = relations.get(name)
            if relation is None:
                value = self._convert(name, value)
            elif is_none(value):
                if relation.is_collection and capabilities.adder(name) is not None:
                    continue
                value = [] if relation.is_collection else None
            else:
                value = self._resolve_relation(capabilities, relation, value)
                if value is _SKIP:
                    continue
            self._assign(capabilities, name, value)

        self.persistence.persist(self.entity)
        self.persistence.flush()
        return method

    def _resolve_relation(self, capabilities: EntityCapabilities, relation: RelationMapping, value: Any) -> Any:
        target = self.persistence.get_repository(relation.target)
        adder = capabilities.adder(relation.name)
        if adder is not None:
            if _is_collection(value):
                adder(self.entity, target.find_many(list(value)))
            else:
                adder(self.entity, target.find(value))
            return _SKIP

        if _is_collection(value):
            return target.find_many(list(value))
        related = target.find(value)
        if related is None:
            logger.debug(f"No related record with key {value!r} for '{relation.name}'")
        return related

    def _convert(self, name: str, value: Any) -> Any:
        """Submitted value as the Python type of the mapped column; unmapped fields pass through."""
        try:
            value_type = self.repository.get_field_mapping(name).value_type
        except UnmappedField:
            return value
        if value_type in (None, str, object) or value is None or isinstance(value, value_type):
            return value
        if isinstance(value, str) and not value.strip():
            return None
        return _adapter(value_type).validate_python(value)

    def _assign(self, capabilities: EntityCapabilities, name: str, value: Any) -> None:
        setter = capabilities.setter(name)
        if setter is not None:
            setter(self.entity, value)
        elif capabilities.has_property(self.entity, name):
            setattr(self.entity, name, value)
        else:
            logger.debug(f"Ignoring field '{name}' unknown to {self._describe()}")

    def _rollback(self) -> None:
        try:
            self.persistence.rollback()
        except Exception:
            logger.warning("Rollback after failed save also failed", exc_info=True)

    # Helpers

    def _primary_key_for(self, entity_type: Any) -> str:
        if self.repository is not None and entity_type is self.repository.entity_type:
            return self.repository.primary_key
        try:
            return self.persistence.get_repository(entity_type).primary_key
        except UnknownEntityType:
            return "id"

    def _key_of(self, obj: Any) -> Any:
        if isinstance(obj, (str, Number)):
            return obj
        capabilities = self.capabilities.resolve(type(obj))
        return capabilities.key_of(obj, self._primary_key_for(type(obj)))

    def _describe(self) -> str:
        entity_type = self.entity_type
        return getattr(entity_type, "__name__", str(entity_type)) if entity_type else "no entity"
