"""
Form containers: the component tree a form definition builds.

Groups are visual fieldsets only; control names are unique across the whole
form and submitted values are flat.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Type

from ..errors import ValidationFailure
from .controls import (
    Button, Checkbox, Control, HiddenField, Items, MultiSelectBox, SelectBox,
    SubmitButton, TextArea, TextInput,
)

logger = logging.getLogger(__name__)


class Container:
    """A named node holding controls and nested groups."""

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self.parent: Optional["Container"] = None
        self._components: Dict[str, Any] = {}

    @property
    def root(self) -> "Container":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def add_component(self, component):
        if component.name in self.root:
            raise ValueError(f"Component '{component.name}' already exists in form")
        component.parent = self
        self._components[component.name] = component
        return component

    def add_text(self, name: str, label: Optional[str] = None, **options) -> TextInput:
        return self.add_component(TextInput(name, label, **options))

    def add_email(self, name: str, label: Optional[str] = None, **options) -> TextInput:
        control = self.add_component(TextInput(name, label, input_type="email", **options))
        control.add_rule("email")
        return control

    def add_password(self, name: str, label: Optional[str] = None, **options) -> TextInput:
        return self.add_component(TextInput(name, label, input_type="password", **options))

    def add_textarea(self, name: str, label: Optional[str] = None, **options) -> TextArea:
        return self.add_component(TextArea(name, label, **options))

    def add_select(self, name: str, label: Optional[str] = None, items: Optional[Items] = None,
                   prompt: Optional[str] = None, **options) -> SelectBox:
        return self.add_component(SelectBox(name, label, items, prompt=prompt, **options))

    def add_multiselect(self, name: str, label: Optional[str] = None, items: Optional[Items] = None,
                        **options) -> MultiSelectBox:
        return self.add_component(MultiSelectBox(name, label, items, **options))

    def add_checkbox(self, name: str, caption: Optional[str] = None, **options) -> Checkbox:
        return self.add_component(Checkbox(name, caption, **options))

    def add_hidden(self, name: str, default: Any = None) -> HiddenField:
        control = self.add_component(HiddenField(name))
        if default is not None:
            control.set_default_value(default)
        return control

    def add_submit(self, name: str = "save", caption: Optional[str] = None, **options) -> SubmitButton:
        return self.add_component(SubmitButton(name, caption, **options))

    def add_group(self, name: str, label: Optional[str] = None) -> "Group":
        return self.add_component(Group(name, label))

    def components(self, deep: bool = False, kind: Optional[Type] = None) -> Iterator[Any]:
        """Iterate direct children, or the whole subtree when `deep` is set."""
        for component in list(self._components.values()):
            if kind is None or isinstance(component, kind):
                yield component
            if deep and isinstance(component, Container):
                yield from component.components(deep=True, kind=kind)

    def controls(self) -> Iterator[Control]:
        return self.components(deep=True, kind=Control)

    def get(self, name: str, default: Any = None) -> Any:
        for component in self.components(deep=True):
            if component.name == name:
                return component
        return default

    def __getitem__(self, name: str):
        component = self.get(name)
        if component is None:
            raise KeyError(name)
        return component

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None


class Group(Container):
    """Fieldset grouping of controls"""

    def __init__(self, name: str, label: Optional[str] = None):
        super().__init__(name)
        self.label = label


class Form(Container):
    """
    Root container with submission processing.

    `process()` loads raw submitted data into every control, validates the
    rules and calls either the `on_success(form, values)` handlers or the
    `on_error(form)` handlers, in registration order.
    """

    def __init__(self, name: str = "form", action: str = "", method: str = "post"):
        super().__init__(name)
        self.action = action
        self.method = method
        self.errors: List[str] = []
        self.on_success: List[Callable[["Form", Dict[str, Any]], Any]] = []
        self.on_error: List[Callable[["Form"], Any]] = []
        self._submitted = False

    @property
    def is_submitted(self) -> bool:
        return self._submitted

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def has_errors(self) -> bool:
        return bool(self.errors) or any(control.errors for control in self.controls())

    def control_errors(self) -> Dict[str, List[str]]:
        return {control.name: list(control.errors) for control in self.controls() if control.errors}

    @property
    def values(self) -> Dict[str, Any]:
        return {
            control.name: control.value
            for control in self.controls()
            if not isinstance(control, Button)
        }

    def load_data(self, data: Mapping[str, Any]) -> None:
        self._submitted = True
        self.errors = []
        for control in self.controls():
            control.load_http_data(data)

    def validate(self) -> bool:
        valid = True
        for control in self.controls():
            valid = control.validate() and valid
        return valid and not self.errors

    def validated_values(self) -> Dict[str, Any]:
        if not self.validate():
            raise ValidationFailure(self.control_errors(), self.errors)
        return self.values

    def process(self, data: Mapping[str, Any]) -> bool:
        """Load, validate and dispatch submitted data. Returns True when valid."""
        self.load_data(data)
        try:
            values = self.validated_values()
        except ValidationFailure as failure:
            logger.debug(f"Form '{self.name}' did not validate: {failure.errors}")
            for handler in self.on_error:
                handler(self)
            return False

        for handler in self.on_success:
            handler(self, values)
        return True
