"""
StarForm - Entity-bound forms for FastHTML

Binds persisted entities to server-rendered forms: controls are populated
from the entity, validation rules are derived from column metadata, and
submitted values are written back onto the entity graph and saved.
"""

from .errors import (
    StarFormError, ConfigurationCondition, UnknownEntityType, UnmappedField,
    PersistenceFault, EntityNotFound, ValidationFailure, LifecycleError,
)
from .forms import Form, Group, Rule, RuleKind
from .persistence import (
    PersistenceLayer, Repository, FieldMapping, RelationMapping, ScalarType,
    Cardinality, MemoryPersistence, SQLModelPersistence, engine_from_config,
)
from .binding import (
    EntityBinder, BindingResult, BinderState, DatabaseMethod,
    FieldRuleInferencer, CapabilityRegistry, capabilities,
)
from .factory import FormFactory, BoundForm
from .render import FormRenderer
from .config import (
    ApplicationConfig, Environment, FormConfig, RenderConfig,
    PersistenceConfig, LoggingConfig, get_config, set_config,
)
from .log import configure_logging

__version__ = "0.1.0"

__all__ = [
    # Errors
    'StarFormError',
    'ConfigurationCondition',
    'UnknownEntityType',
    'UnmappedField',
    'PersistenceFault',
    'EntityNotFound',
    'ValidationFailure',
    'LifecycleError',

    # Forms
    'Form',
    'Group',
    'Rule',
    'RuleKind',

    # Persistence
    'PersistenceLayer',
    'Repository',
    'FieldMapping',
    'RelationMapping',
    'ScalarType',
    'Cardinality',
    'MemoryPersistence',
    'SQLModelPersistence',
    'engine_from_config',

    # Binding
    'EntityBinder',
    'BindingResult',
    'BinderState',
    'DatabaseMethod',
    'FieldRuleInferencer',
    'CapabilityRegistry',
    'capabilities',

    # Factory and rendering
    'FormFactory',
    'BoundForm',
    'FormRenderer',

    # Configuration
    'ApplicationConfig',
    'Environment',
    'FormConfig',
    'RenderConfig',
    'PersistenceConfig',
    'LoggingConfig',
    'get_config',
    'set_config',
    'configure_logging',
]
