"""
Entity Capabilities

Explicit accessor protocol for entities. Instead of probing `get_<name>` /
`set_<name>` / `add_<name>` by name on every access, each entity type is
scanned once when it is first resolved (or registered) and the discovered
hooks are stored alongside any explicit overrides.

Hooks are plain callables taking the entity as first argument:

    registry.register(
        Article,
        setters={"title": lambda article, value: article.rename(value)},
        adders={"tags": Article.attach_tags},
    )
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set, Type

Getter = Callable[[Any], Any]
Setter = Callable[[Any, Any], Any]
Adder = Callable[[Any, Any], Any]

_PREFIXES = ("get_", "set_", "add_")


@dataclass
class EntityCapabilities:
    """Accessor hooks and declared properties of one entity type."""
    entity_type: Type[Any]
    properties: Set[str] = field(default_factory=set)
    getters: Dict[str, Getter] = field(default_factory=dict)
    setters: Dict[str, Setter] = field(default_factory=dict)
    adders: Dict[str, Adder] = field(default_factory=dict)
    key_getter: Optional[Getter] = None

    def has_property(self, entity: Any, name: str) -> bool:
        if name in self.properties or name in self.getters:
            return True
        return not name.startswith("_") and name in getattr(entity, "__dict__", {})

    def read(self, entity: Any, name: str) -> Any:
        getter = self.getters.get(name)
        if getter is not None:
            return getter(entity)
        return getattr(entity, name, None)

    def setter(self, name: str) -> Optional[Setter]:
        return self.setters.get(name)

    def adder(self, name: str) -> Optional[Adder]:
        return self.adders.get(name)

    def key_of(self, entity: Any, primary_key: str = "id") -> Any:
        if entity is None:
            return None
        if self.key_getter is not None:
            return self.key_getter(entity)
        return getattr(entity, primary_key, None)


def _declared_properties(entity_type: Type[Any]) -> Set[str]:
    "Names from class annotations across the MRO, pydantic `model_fields` and SQLModel relationships"
    names: Set[str] = set()
    for klass in reversed(entity_type.__mro__):
        names.update(vars(klass).get("__annotations__", {}))
    names.update(getattr(entity_type, "model_fields", {}) or {})
    names.update(getattr(entity_type, "__sqlmodel_relationships__", {}) or {})
    return {name for name in names if not name.startswith("_")}


def discover_capabilities(entity_type: Type[Any]) -> EntityCapabilities:
    """Scan `entity_type` for accessor methods and declared properties."""
    capabilities = EntityCapabilities(entity_type, properties=_declared_properties(entity_type))
    methods: Dict[str, Callable] = {}
    for klass in reversed(entity_type.__mro__):
        methods.update((name, attr) for name, attr in vars(klass).items() if inspect.isfunction(attr))

    for attr_name, attr in methods.items():
        if attr_name == "get_id":
            capabilities.key_getter = attr
            continue
        prefix, name = attr_name[:4], attr_name[4:]
        if prefix not in _PREFIXES or not name or name.startswith("_"):
            continue
        if prefix == "get_":
            capabilities.getters[name] = attr
        elif prefix == "set_":
            capabilities.setters[name] = attr
        else:
            capabilities.adders[name] = attr
    return capabilities


class CapabilityRegistry:
    """Caches resolved capabilities per entity type."""

    def __init__(self):
        self._capabilities: Dict[Type[Any], EntityCapabilities] = {}

    def register(
        self,
        entity_type: Type[Any],
        getters: Optional[Dict[str, Getter]] = None,
        setters: Optional[Dict[str, Setter]] = None,
        adders: Optional[Dict[str, Adder]] = None,
        key: Optional[Getter] = None,
        properties: Optional[Set[str]] = None,
    ) -> EntityCapabilities:
        """Resolve `entity_type` and merge explicit hooks over the discovered ones."""
        capabilities = discover_capabilities(entity_type)
        capabilities.getters.update(getters or {})
        capabilities.setters.update(setters or {})
        capabilities.adders.update(adders or {})
        capabilities.properties.update(properties or ())
        if key is not None:
            capabilities.key_getter = key
        self._capabilities[entity_type] = capabilities
        return capabilities

    def resolve(self, entity_type: Type[Any]) -> EntityCapabilities:
        capabilities = self._capabilities.get(entity_type)
        if capabilities is None:
            capabilities = self.register(entity_type)
        return capabilities

    def __contains__(self, entity_type: Type[Any]) -> bool:
        return entity_type in self._capabilities

    def clear(self) -> None:
        self._capabilities.clear()


# Shared registry used when no registry is passed explicitly
capabilities = CapabilityRegistry()
