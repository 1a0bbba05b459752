"""
Form Factory

Wires one request-scoped form lifecycle together:

    form = Form()                              # empty form
    entity = binder.load(entity_type, key)     # insert or update path
    definition(form, entity)                   # caller declares the controls
    inferencer.annotate(form, repository)      # schema-derived rules
    binder.populate_defaults(form, entity, ...)
    form.add_submit(...)                       # "Create" / "Save"

The returned BoundForm renders the form and processes submissions through
`EntityBinder.reconcile`.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from .binding import (
    BindingResult, CapabilityRegistry, DatabaseMethod, EntityBinder,
    FieldRuleInferencer, Notifier,
)
from .config import FormConfig
from .forms import Form, SubmitButton
from .persistence import EntityTypeRef, PersistenceLayer
from .render import FormRenderer

logger = logging.getLogger(__name__)

FormDefinition = Callable[[Form, Any], Any]


class BoundForm:
    """A form bound to one entity for one request."""

    def __init__(self, form: Form, binder: EntityBinder, renderer: FormRenderer,
                 error_message: str = "The record could not be saved."):
        self.form = form
        self.binder = binder
        self.renderer = renderer
        self.error_message = error_message
        self.result: Optional[BindingResult] = None
        form.on_success.append(self._reconcile)

    def __repr__(self):
        return f"<BoundForm {self.form.name} {self.database_method.value}>"

    @property
    def entity(self) -> Any:
        return self.binder.entity

    @property
    def database_method(self) -> DatabaseMethod:
        return self.binder.database_method

    def render(self, mode: Optional[str] = None):
        return self.renderer.render(self.form, mode)

    def process(self, data: Mapping[str, Any]) -> Optional[BindingResult]:
        """
        Validate submitted data and reconcile it with the bound entity.

        Returns:
            The binding result, or None when the data did not validate
        """
        self.result = None
        if not self.form.process(data):
            return None
        return self.result

    def _reconcile(self, form: Form, values: Mapping[str, Any]) -> None:
        self.result = self.binder.reconcile(form, values)
        if not self.result.success:
            form.add_error(self.error_message)


class FormFactory:
    """
    Builds bound forms from a form definition.

    Args:
        definition: Callable `(form, entity)` declaring the form's controls
        config: Form configuration
        capabilities: Entity capability registry passed to every binder
        name: Form name, also used for element ids and template names
    """

    def __init__(
        self,
        definition: FormDefinition,
        config: Optional[FormConfig] = None,
        capabilities: Optional[CapabilityRegistry] = None,
        name: str = "form",
    ):
        self.definition = definition
        self.config = config or FormConfig()
        self.capabilities = capabilities
        self.name = name
        self.inferencer = FieldRuleInferencer()
        self.template_file: Optional[Path] = None
        if self.config.render.template_file:
            self.set_template(self.config.render.template_file)

        # Subscribed to the binder of every form this factory creates
        self.on_before_success = Notifier("on_before_success")
        self.on_after_success = Notifier("on_after_success")
        self.on_after_error = Notifier("on_after_error")

    def set_template(self, path: Union[str, Path]) -> "FormFactory":
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Template file not found: {path}")
        self.template_file = path
        return self

    def add_before_success(self, handler) -> "FormFactory":
        self.on_before_success.subscribe(handler)
        return self

    def add_after_success(self, handler) -> "FormFactory":
        self.on_after_success.subscribe(handler)
        return self

    def add_after_error(self, handler) -> "FormFactory":
        self.on_after_error.subscribe(handler)
        return self

    def create(
        self,
        persistence: PersistenceLayer,
        entity_type: Optional[EntityTypeRef] = None,
        key: Any = None,
        action: str = "",
    ) -> BoundForm:
        """Build a form bound to the entity of `entity_type` with `key` (new entity when no key)."""
        form = Form(self.name, action=action)
        binder = self._create_binder(persistence)

        entity = binder.load(entity_type, key)
        self.definition(form, entity)

        if binder.repository is not None:
            self.inferencer.annotate(form, binder.repository)
        binder.populate_defaults(form, entity, binder.relation_join_map())

        if self.config.submit_button and next(form.components(deep=True, kind=SubmitButton), None) is None:
            method = binder.database_method
            caption = self.config.insert_label if method is DatabaseMethod.INSERT else self.config.update_label
            form.add_submit("save", caption)

        renderer = FormRenderer.from_config(self.config.render)
        if self.template_file is not None:
            renderer.set_template(self.template_file)

        logger.debug(f"Created form '{self.name}' ({binder.database_method.value})")
        return BoundForm(form, binder, renderer, self.config.error_message)

    def _create_binder(self, persistence: PersistenceLayer) -> EntityBinder:
        binder = EntityBinder(persistence, self.capabilities, expose_id=self.config.expose_id)
        for handler in self.on_before_success:
            binder.add_before_success(handler)
        for handler in self.on_after_success:
            binder.add_after_success(handler)
        for handler in self.on_after_error:
            binder.add_after_error(handler)
        return binder
