"""
StarForm Form Surface

The component tree consumed by the binder and the renderer: controls, rules,
groups and the submitting form.
"""

from .rules import Rule, RuleKind, is_filled
from .controls import (
    Control, TextBase, TextInput, TextArea, HiddenField, Checkbox,
    ChoiceControl, SelectBox, MultiSelectBox, Button, SubmitButton,
    TEXT_LIKE, SELECT_LIKE,
)
from .container import Container, Group, Form

__all__ = [
    "Rule",
    "RuleKind",
    "is_filled",
    "Control",
    "TextBase",
    "TextInput",
    "TextArea",
    "HiddenField",
    "Checkbox",
    "ChoiceControl",
    "SelectBox",
    "MultiSelectBox",
    "Button",
    "SubmitButton",
    "TEXT_LIKE",
    "SELECT_LIKE",
    "Container",
    "Group",
    "Form",
]
