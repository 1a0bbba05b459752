"""
StarForm Binding

Entity <-> form reconciliation and schema-derived rule inference.
"""

from .binder import BinderState, BindingResult, DatabaseMethod, EntityBinder, is_none
from .capabilities import CapabilityRegistry, EntityCapabilities, capabilities, discover_capabilities
from .inference import FieldRuleInferencer
from .notifications import Notifier

__all__ = [
    "BinderState",
    "BindingResult",
    "DatabaseMethod",
    "EntityBinder",
    "is_none",
    "CapabilityRegistry",
    "EntityCapabilities",
    "capabilities",
    "discover_capabilities",
    "FieldRuleInferencer",
    "Notifier",
]
