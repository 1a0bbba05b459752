"""
Form Controls

Named, typed inputs holding a current value, a default value, options and an
ordered list of validation rules. Controls never render themselves; the
render adapter turns them into FastHTML components.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .rules import Rule, RuleKind, is_filled

Items = Union[Mapping[Any, Any], Iterable[Any]]


class Control:
    """Base class for all form controls."""

    input_type: str = "text"

    def __init__(self, name: str, label: Optional[str] = None, **options):
        self.name = name
        self.label = label if label is not None else name.replace("_", " ").capitalize()
        self.parent = None
        self.default: Any = None
        self.errors: List[str] = []
        self._value: Any = None
        self._rules: List[Rule] = []
        self._options: Dict[str, Any] = dict(options)
        self._submitted = False

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name!r} value={self.value!r}>"

    @property
    def html_id(self) -> str:
        return f"frm-{self.name}"

    # Values

    @property
    def value(self) -> Any:
        return self._value

    @property
    def raw_value(self) -> Any:
        return self._value

    def set_value(self, value: Any) -> "Control":
        self._value = value
        return self

    def set_default_value(self, value: Any) -> "Control":
        """Set the default; the current value follows it until data is submitted."""
        self.default = value
        if not self._submitted:
            self.set_value(value)
        return self

    def has_value(self) -> bool:
        value = self.value
        return is_filled(value) and value is not False

    def load_http_data(self, data: Mapping[str, Any]) -> None:
        self._submitted = True
        self.set_value(self._parse(data.get(self.name)))

    def _parse(self, raw: Any) -> Any:
        if isinstance(raw, (list, tuple)):
            raw = raw[-1] if raw else None
        return raw

    # Options

    def get_option(self, name: str, default: Any = None) -> Any:
        return self._options.get(name, default)

    def set_option(self, name: str, value: Any) -> "Control":
        self._options[name] = value
        return self

    # Rules

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    def add_rule(self, kind: Union[RuleKind, str], message: Optional[str] = None, arg: Any = None) -> "Control":
        self._rules.append(Rule(kind, message, arg))
        return self

    def has_rule(self, kind: Union[RuleKind, str]) -> bool:
        kind = RuleKind(kind)
        return any(rule.kind is kind for rule in self._rules)

    def get_rule(self, kind: Union[RuleKind, str]) -> Optional[Rule]:
        kind = RuleKind(kind)
        return next((rule for rule in self._rules if rule.kind is kind), None)

    def is_required(self) -> bool:
        return self.has_rule(RuleKind.REQUIRED)

    def set_required(self, required: Union[bool, str] = True) -> "Control":
        """Mark the control required; a string argument is used as the error message."""
        self._rules = [rule for rule in self._rules if rule.kind is not RuleKind.REQUIRED]
        if required:
            message = required if isinstance(required, str) else None
            self._rules.insert(0, Rule(RuleKind.REQUIRED, message))
        return self

    def validate(self) -> bool:
        """Run the rules in order, stopping at the first failure."""
        self.errors = []
        for rule in self._rules:
            if not rule.validate(self.raw_value):
                self.errors.append(rule.error_message())
                break
        return not self.errors

    def add_error(self, message: str) -> None:
        self.errors.append(message)


class TextBase(Control):
    """Common base for text-like controls; numeric rules coerce the value."""

    def _parse(self, raw):
        raw = super()._parse(raw)
        return "" if raw is None else str(raw)

    @property
    def value(self):
        raw = self._value
        numeric = self.has_rule(RuleKind.INTEGER) or self.has_rule(RuleKind.FLOAT)
        if not numeric or not isinstance(raw, str):
            return raw
        if not is_filled(raw):
            return None
        try:
            if self.has_rule(RuleKind.INTEGER):
                return int(raw.strip())
            return float(raw.strip().replace(",", "."))
        except ValueError:
            return raw


class TextInput(TextBase):
    """Single line text input"""

    def __init__(self, name: str, label: Optional[str] = None, input_type: str = "text", **options):
        super().__init__(name, label, **options)
        self.input_type = input_type

    def _parse(self, raw):
        return " ".join(super()._parse(raw).splitlines()).strip()


class TextArea(TextBase):
    input_type = "textarea"


class HiddenField(Control):
    input_type = "hidden"

    def _parse(self, raw):
        raw = super()._parse(raw)
        return None if raw is None else str(raw)


class Checkbox(Control):
    input_type = "checkbox"

    @property
    def value(self) -> bool:
        return bool(self._value)

    def _parse(self, raw):
        raw = super()._parse(raw)
        return raw not in (None, "", "0", "false", "off")


class ChoiceControl(Control):
    """Base for controls offering a fixed list of items."""

    def __init__(self, name: str, label: Optional[str] = None, items: Optional[Items] = None, **options):
        super().__init__(name, label, **options)
        self.items: Dict[Any, Any] = {}
        self._unknown: List[Any] = []
        self.set_items(items or {})

    def set_items(self, items: Items) -> "ChoiceControl":
        if isinstance(items, Mapping):
            self.items = dict(items)
        else:
            self.items = {item: item for item in items}
        return self

    def match_item(self, key: Any) -> Any:
        """Return the item key equal to `key`, comparing as strings as a fallback."""
        if key in self.items:
            return key
        text = str(key)
        for item in self.items:
            if str(item) == text:
                return item
        raise KeyError(key)

    def has_item(self, key: Any) -> bool:
        try:
            self.match_item(key)
        except (KeyError, TypeError):
            return False
        return True

    def validate(self) -> bool:
        super().validate()
        if self._unknown and not self.errors:
            self.errors.append("Please select a valid option.")
        return not self.errors


class SelectBox(ChoiceControl):
    input_type = "select"

    def __init__(self, name: str, label: Optional[str] = None, items: Optional[Items] = None,
                 prompt: Optional[str] = None, **options):
        super().__init__(name, label, items, **options)
        self.prompt = prompt

    def _parse(self, raw):
        self._unknown = []
        raw = super()._parse(raw)
        if not is_filled(raw):
            return None
        try:
            return self.match_item(raw)
        except KeyError:
            self._unknown.append(raw)
            return None


class MultiSelectBox(ChoiceControl):
    input_type = "multiselect"

    @property
    def value(self) -> List[Any]:
        if self._value is None:
            return []
        if isinstance(self._value, (list, tuple, set, frozenset)):
            return list(self._value)
        return [self._value]

    @property
    def raw_value(self):
        return self.value

    def _parse(self, raw):
        self._unknown = []
        if raw is None:
            return []
        if not isinstance(raw, (list, tuple)):
            raw = [raw]
        keys = []
        for item in raw:
            if not is_filled(item):
                continue
            try:
                keys.append(self.match_item(item))
            except KeyError:
                self._unknown.append(item)
        return keys


class Button(Control):
    input_type = "button"

    def __init__(self, name: str, caption: Optional[str] = None, **options):
        super().__init__(name, caption, **options)

    @property
    def caption(self) -> str:
        return self.label

    def _parse(self, raw):
        return raw is not None


class SubmitButton(Button):
    input_type = "submit"

    def is_submitted_by(self) -> bool:
        return bool(self._value)


TEXT_LIKE = (TextBase,)
SELECT_LIKE = (SelectBox, MultiSelectBox)
