"""
Form Renderer

Turns a form tree into FastHTML components laid out as a Bootstrap horizontal
form: one `form-group` row per control with a `col-sm-N` label column and a
`col-sm-N` control column. Rendering can be handed to a Jinja2 template file
instead, which receives the form and this renderer.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import fasthtml.common as ft
from fastcore.xml import to_xml
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from ..forms import (
    Button, Checkbox, Container, Control, Form, Group, HiddenField,
    MultiSelectBox, RuleKind, SelectBox, SubmitButton, TextArea, TextBase,
)

logger = logging.getLogger(__name__)

MODES = (None, "errors", "body")


class FormRenderer:
    """
    Bootstrap 3 horizontal form renderer.

    Args:
        label_cols: Grid columns of the label column
        control_cols: Grid columns of the control column
        ajax: Add the `ajax` class and htmx attributes to the form tag
        template_file: Optional Jinja2 template rendering the form instead
    """

    required_suffix = " *"

    def __init__(self, label_cols: int = 3, control_cols: int = 9, ajax: bool = False,
                 template_file: Optional[Union[str, Path]] = None):
        self.label_cols = label_cols
        self.control_cols = control_cols
        self.ajax = ajax
        self.template_file: Optional[Path] = None
        if template_file:
            self.set_template(template_file)

    @classmethod
    def from_config(cls, config) -> "FormRenderer":
        return cls(config.label_cols, config.control_cols, config.ajax, config.template_file)

    def set_template(self, path: Union[str, Path]) -> "FormRenderer":
        """Render through a template file from now on."""
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Template file not found: {path}")
        self.template_file = path
        return self

    # Entry points

    def render(self, form: Form, mode: Optional[str] = None):
        """
        Render `form`.

        Args:
            form: The form to render
            mode: None for the whole form, "errors" for form-level errors only,
                "body" for the rows without the form tag

        Returns:
            FastHTML component tree, or the template output as a NotStr
        """
        if mode not in MODES:
            raise ValueError(f"Unknown render mode: {mode!r}")
        if self.template_file is not None:
            return ft.NotStr(self._render_template(form, mode))
        if mode == "errors":
            return self.render_errors(form)
        if mode == "body":
            return ft.Div(*self.render_body(form))
        return self.render_form(form)

    def to_html(self, form: Form, mode: Optional[str] = None) -> str:
        if self.template_file is not None:
            if mode not in MODES:
                raise ValueError(f"Unknown render mode: {mode!r}")
            return self._render_template(form, mode)
        return to_xml(self.render(form, mode))

    def _render_template(self, form: Form, mode: Optional[str]) -> str:
        path = self.template_file
        env = Environment(
            loader=FileSystemLoader(str(path.parent)),
            autoescape=select_autoescape(),
        )
        template = env.get_template(path.name)
        logger.debug(f"Rendering form '{form.name}' with template {path}")
        return template.render(form=form, renderer=self, name=f"template_{form.name}", mode=mode)

    # Template helpers

    def html(self, form: Form, mode: Optional[str] = None) -> Markup:
        """Built-in rendering as template-safe markup."""
        if mode == "errors":
            return Markup(to_xml(self.render_errors(form)))
        if mode == "body":
            return Markup("".join(to_xml(row) for row in self.render_body(form)))
        return Markup(to_xml(self.render_form(form)))

    def pair(self, control: Union[Control, str], form: Optional[Form] = None) -> Markup:
        if isinstance(control, str):
            control = form[control]
        return Markup(to_xml(self.render_pair(control)))

    # Components

    def render_form(self, form: Form):
        classes = ["form-horizontal"]
        attrs = {}
        if self.ajax:
            classes.append("ajax")
            attrs.update(hx_post=form.action, hx_swap="outerHTML")
        return ft.Form(
            self.render_errors(form),
            *self.render_body(form),
            action=form.action,
            method=form.method,
            id=f"frm-{form.name}",
            role="form",
            cls=" ".join(classes),
            **attrs,
        )

    def render_errors(self, form: Form):
        return ft.Div(*[ft.Div(error, cls="alert alert-danger") for error in form.errors], cls="form-errors")

    def render_body(self, container: Container) -> List[Any]:
        primary = self._primary_button(container)
        rows: List[Any] = []
        buttons: List[Button] = []
        for component in container.components():
            if isinstance(component, Button):
                buttons.append(component)
                continue
            if buttons:
                rows.append(self.render_buttons(buttons, primary))
                buttons = []
            if isinstance(component, Group):
                rows.append(self.render_group(component))
            else:
                rows.append(self.render_pair(component))
        if buttons:
            rows.append(self.render_buttons(buttons, primary))
        return rows

    def render_group(self, group: Group):
        children = self.render_body(group)
        if group.label:
            children.insert(0, ft.Legend(group.label))
        return ft.Fieldset(*children, id=f"frm-group-{group.name}")

    def render_buttons(self, buttons: List[Button], primary: Optional[Button] = None):
        if primary is None and buttons:
            primary = self._primary_button(buttons[0].root)
        return ft.Div(
            ft.Div(
                *[self.render_button(button, button is primary) for button in buttons],
                cls=f"col-sm-offset-{self.label_cols} col-sm-{self.control_cols}",
            ),
            cls="form-group form-actions",
        )

    def render_button(self, button: Button, primary: bool = False):
        kind = "btn-primary" if primary else "btn-default"
        return ft.Button(
            button.caption,
            type="submit" if isinstance(button, SubmitButton) else "button",
            name=button.name,
            value="1",
            id=button.html_id,
            cls=f"btn {kind}",
        )

    def render_pair(self, control: Control):
        """One `form-group` row for `control`."""
        if isinstance(control, HiddenField):
            return self.render_control(control)
        if isinstance(control, Button):
            return self.render_buttons([control])

        classes = ["form-group"]
        if control.errors:
            classes.append("has-error")
        if control.is_required():
            classes.append("required")

        body = [self.render_control(control), *self._help_blocks(control)]
        if isinstance(control, Checkbox):
            column = f"col-sm-offset-{self.label_cols} col-sm-{self.control_cols}"
            return ft.Div(ft.Div(*body, cls=column), cls=" ".join(classes))
        return ft.Div(
            self.render_label(control),
            ft.Div(*body, cls=f"col-sm-{self.control_cols}"),
            cls=" ".join(classes),
        )

    def render_label(self, control: Control):
        caption = control.label
        if control.is_required():
            caption = f"{caption}{self.required_suffix}"
        return ft.Label(caption, cls=f"control-label col-sm-{self.label_cols}", **{"for": control.html_id})

    def render_control(self, control: Control):
        """The bare input element of `control`."""
        attrs = dict(name=control.name, id=control.html_id)
        if control.is_required():
            attrs["required"] = True
        help_text = control.get_option("help")
        if help_text:
            attrs.update(data_toggle="tooltip", title=help_text)

        if isinstance(control, HiddenField):
            element = ft.Input(type="hidden", value=self._text(control.value), name=control.name, id=control.html_id)
        elif isinstance(control, Checkbox):
            element = ft.Div(
                ft.Label(ft.Input(type="checkbox", value="1", checked=bool(control.value), **attrs), " ", control.label),
                cls="checkbox",
            )
        elif isinstance(control, SelectBox):
            element = ft.Select(*self._options(control), cls="form-control", **attrs)
        elif isinstance(control, MultiSelectBox):
            element = ft.Select(*self._options(control), multiple=True, cls="form-control", **attrs)
        elif isinstance(control, TextArea):
            rows = control.get_option("rows")
            element = ft.Textarea(self._text(control.value), rows=rows, cls="form-control", **attrs)
        elif isinstance(control, TextBase):
            max_length = control.get_rule(RuleKind.MAX_LENGTH)
            if max_length is not None:
                attrs["maxlength"] = max_length.arg
            value = None if control.input_type == "password" else self._text(control.value)
            element = ft.Input(
                type=control.input_type,
                value=value,
                placeholder=control.get_option("placeholder"),
                cls="form-control",
                **attrs,
            )
        else:
            element = ft.Input(type="text", value=self._text(control.value), cls="form-control", **attrs)

        append = control.get_option("append")
        if append:
            element = ft.Div(element, ft.Span(append, cls="input-group-addon"), cls="input-group")
        return element

    # Helpers

    def _options(self, control):
        selected = control.value if isinstance(control, MultiSelectBox) else [control.value]
        selected = {str(key) for key in selected if key is not None}
        options = []
        prompt = getattr(control, "prompt", None)
        if prompt:
            options.append(ft.Option(prompt, value=""))
        for key, caption in control.items.items():
            options.append(ft.Option(caption, value=str(key), selected=str(key) in selected))
        return options

    def _help_blocks(self, control: Control) -> List[Any]:
        blocks = [ft.Span(error, cls="help-block") for error in control.errors]
        description = control.get_option("description")
        if description:
            blocks.append(ft.Span(description, cls="help-block"))
        return blocks

    @staticmethod
    def _primary_button(container: Container) -> Optional[Button]:
        root = container.root
        return next(root.components(kind=SubmitButton), None)

    @staticmethod
    def _text(value: Any) -> str:
        if value is None:
            return ""
        return str(value)
