"""
StarForm Errors

Exception hierarchy shared by the binding, persistence and form layers.

Configuration conditions (unknown entity types, unmapped fields) are raised
by collaborators but always caught and skipped by the binder. Persistence
faults are caught at the reconcile boundary and turned into a failed
BindingResult. Validation failures never leave the form surface.
"""

from typing import Any, Dict, List, Optional


class StarFormError(Exception):
    """Base exception for StarForm"""
    pass


class ConfigurationCondition(StarFormError):
    """A schema/form mismatch that is tolerated and skipped"""
    pass


class UnknownEntityType(ConfigurationCondition):
    """Raised when a persistence layer has no mapping for an entity type"""

    def __init__(self, entity_type: Any):
        self.entity_type = entity_type
        name = getattr(entity_type, "__name__", entity_type)
        super().__init__(f"Unknown entity type: {name}")


class UnmappedField(ConfigurationCondition):
    """Raised when a repository has no column mapping for a field name"""

    def __init__(self, entity_type: Any, name: str):
        self.entity_type = entity_type
        self.name = name
        super().__init__(f"No column mapping for {getattr(entity_type, '__name__', entity_type)}.{name}")


class PersistenceFault(StarFormError):
    """Raised when loading or saving through the persistence layer fails"""
    pass


class EntityNotFound(PersistenceFault):
    """Raised when a late-bound identifier no longer resolves to a record"""

    def __init__(self, entity_type: Any, key: Any):
        self.entity_type = entity_type
        self.key = key
        super().__init__(f"{getattr(entity_type, '__name__', entity_type)} with key {key!r} not found")


class ValidationFailure(StarFormError):
    """Raised by the form surface when submitted data does not validate"""

    def __init__(self, errors: Dict[str, List[str]], form_errors: Optional[List[str]] = None):
        self.errors = errors
        self.form_errors = form_errors or []
        fields = ", ".join(sorted(errors)) or "form"
        super().__init__(f"Validation failed for: {fields}")


class LifecycleError(StarFormError):
    """Raised when a binder operation is called in the wrong lifecycle state"""
    pass
