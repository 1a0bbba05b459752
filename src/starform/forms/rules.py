"""
Validation rules attached to form controls.

A rule is identified by its kind; inference and caller code compare kinds,
never arguments, so re-annotating a control never duplicates a rule.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional


class RuleKind(str, Enum):
    """Kinds of validation rules"""
    REQUIRED = "required"
    MAX_LENGTH = "max_length"
    MIN_LENGTH = "min_length"
    INTEGER = "integer"
    FLOAT = "float"
    PATTERN = "pattern"
    EMAIL = "email"


DEFAULT_MESSAGES: Dict[RuleKind, str] = {
    RuleKind.REQUIRED: "This field is required.",
    RuleKind.MAX_LENGTH: "Please enter no more than {arg} characters.",
    RuleKind.MIN_LENGTH: "Please enter at least {arg} characters.",
    RuleKind.INTEGER: "Please enter a valid integer.",
    RuleKind.FLOAT: "Please enter a valid number.",
    RuleKind.PATTERN: "This field has an invalid format.",
    RuleKind.EMAIL: "Please enter a valid email address.",
}

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_filled(value: Any) -> bool:
    "True unless `value` is None, an empty string or an empty collection"
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) > 0
    return True


def _max_length(value, arg): return len(str(value)) <= int(arg)
def _min_length(value, arg): return len(str(value)) >= int(arg)
def _email(value, arg): return bool(_EMAIL_RE.match(str(value)))
def _pattern(value, arg): return re.fullmatch(arg, str(value)) is not None


def _integer(value, arg):
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return bool(_INTEGER_RE.match(str(value).strip()))


def _float(value, arg):
    if isinstance(value, bool):
        return False
    try:
        float(str(value).replace(",", "."))
    except ValueError:
        return False
    return True


_VALIDATORS: Dict[RuleKind, Callable[[Any, Any], bool]] = {
    RuleKind.REQUIRED: lambda value, arg: is_filled(value),
    RuleKind.MAX_LENGTH: _max_length,
    RuleKind.MIN_LENGTH: _min_length,
    RuleKind.INTEGER: _integer,
    RuleKind.FLOAT: _float,
    RuleKind.PATTERN: _pattern,
    RuleKind.EMAIL: _email,
}


@dataclass
class Rule:
    """A validation constraint attached to a control"""
    kind: RuleKind
    message: Optional[str] = None
    arg: Any = None

    def __post_init__(self):
        self.kind = RuleKind(self.kind)

    def validate(self, value: Any) -> bool:
        """Check `value` against this rule; non-required rules pass on empty values"""
        if self.kind is not RuleKind.REQUIRED and not is_filled(value):
            return True
        return _VALIDATORS[self.kind](value, self.arg)

    def error_message(self) -> str:
        template = self.message or DEFAULT_MESSAGES[self.kind]
        return template.format(arg=self.arg)
