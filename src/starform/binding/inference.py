"""
Field Rule Inferencer

Derives validation rules from column metadata so a form definition does not
have to repeat what the schema already says:

- string/text columns with a length get a max-length rule on text controls
- integer columns get an integer rule on text controls
- non-nullable columns make text and select controls required

Rules the definition already declared are left untouched, and a control
carrying the `no_required` option is never made required.
"""

import logging
from collections.abc import Mapping
from typing import Optional, Union

from ..errors import UnmappedField
from ..forms import Control, Form, RuleKind, SELECT_LIKE, TEXT_LIKE
from ..persistence.base import FieldMapping, Repository, ScalarType

logger = logging.getLogger(__name__)

FieldMappings = Union[Repository, Mapping]

_LENGTH_TYPES = (ScalarType.STRING, ScalarType.TEXT)


class FieldRuleInferencer:
    """Adds schema-derived rules to the controls of a form."""

    def annotate(self, form: Form, field_mappings: Optional[FieldMappings]) -> None:
        """
        Annotate every control whose name matches a mapped column.

        Args:
            form: Form whose controls are annotated in place
            field_mappings: A repository or a name -> FieldMapping mapping
        """
        if field_mappings is None:
            return
        for control in form.controls():
            mapping = self._lookup(field_mappings, control.name)
            if mapping is not None:
                self.annotate_control(control, mapping)

    def annotate_control(self, control: Control, mapping: FieldMapping) -> None:
        text_like = isinstance(control, TEXT_LIKE)

        if text_like and mapping.type in _LENGTH_TYPES and mapping.length:
            if not control.has_rule(RuleKind.MAX_LENGTH):
                control.add_rule(RuleKind.MAX_LENGTH, None, mapping.length)

        if text_like and mapping.type is ScalarType.INTEGER:
            if not control.has_rule(RuleKind.INTEGER):
                control.add_rule(RuleKind.INTEGER)

        if not mapping.nullable and isinstance(control, TEXT_LIKE + SELECT_LIKE):
            if not control.is_required() and not control.get_option("no_required"):
                control.set_required()

    @staticmethod
    def _lookup(field_mappings: FieldMappings, name: str) -> Optional[FieldMapping]:
        if isinstance(field_mappings, Mapping):
            return field_mappings.get(name)
        try:
            return field_mappings.get_field_mapping(name)
        except UnmappedField:
            logger.debug(f"No column for control '{name}', no rules inferred")
            return None
