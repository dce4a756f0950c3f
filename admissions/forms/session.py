"""Form session - the applicant's value state for one ruleset form."""

from __future__ import annotations

import logging
from typing import Any, Callable

from admissions.attributes.models import Attribute, AttributeOption, AttributeType
from admissions.forms.validation import FieldError, FormValidationError, validate_submission
from admissions.rules.resolver import (
    ScoreResult,
    score_tree,
    visible_attributes,
    visible_options,
)
from admissions.rules.tree import Group, Ruleset

logger = logging.getLogger(__name__)


class FormSession:
    """Value state for a dynamically generated form.

    Values are keyed by attribute id: a scalar for text, number, date and
    dropdown fields, and an option-value -> selected mapping for
    multiselect fields. Loading a different attribute list or form order
    clears the values.
    """

    def __init__(
        self,
        attributes: list[Attribute],
        form_order: list[int] | None = None,
        on_submit: Callable[[dict[int, Any]], None] | None = None,
        root_group: Group | None = None,
        base_weight: float = 0.0,
    ):
        self._attributes: list[Attribute] = []
        self._form_order: list[int] = []
        self._values: dict[int, Any] = {}
        self.on_submit = on_submit
        self.root_group = root_group
        self.base_weight = base_weight
        self.load(attributes, form_order)

    @classmethod
    def from_ruleset(
        cls, ruleset: Ruleset, on_submit: Callable[[dict[int, Any]], None] | None = None
    ) -> FormSession:
        return cls(
            ruleset.attributes,
            ruleset.form_order,
            on_submit=on_submit,
            root_group=ruleset.root_group,
            base_weight=ruleset.base_weight,
        )

    @property
    def values(self) -> dict[int, Any]:
        return dict(self._values)

    @property
    def attributes(self) -> list[Attribute]:
        return list(self._attributes)

    @property
    def form_order(self) -> list[int]:
        return list(self._form_order)

    def load(self, attributes: list[Attribute], form_order: list[int] | None = None) -> None:
        """Set the fields to render; values are reset when they change."""
        form_order = list(range(len(attributes))) if form_order is None else list(form_order)
        if attributes == self._attributes and form_order == self._form_order:
            return
        self._attributes = list(attributes)
        self._form_order = form_order
        self._values = {}
        logger.debug("Form reset with %d attributes", len(attributes))

    def _attribute(self, attribute_id: int) -> Attribute | None:
        for attribute in self._attributes:
            if attribute.attribute_id == attribute_id:
                return attribute
        return None

    def set_value(self, attribute_id: int, value: Any) -> None:
        """Record a field value; None or an empty string clears it."""
        if self._attribute(attribute_id) is None:
            logger.warning("Ignoring value for unknown attribute %s", attribute_id)
            return
        if value is None or value == "":
            self._values.pop(attribute_id, None)
        else:
            self._values[attribute_id] = value

    def toggle_option(self, attribute_id: int, option_value: str, checked: bool) -> None:
        """Check or uncheck one option of a multiselect field."""
        attribute = self._attribute(attribute_id)
        if attribute is None or attribute.type != AttributeType.MULTISELECT:
            logger.warning("Attribute %s is not a multiselect field", attribute_id)
            return
        current = dict(self._values.get(attribute_id) or {})
        current[option_value] = checked
        self._values[attribute_id] = current

    def visible_attributes(self) -> list[Attribute]:
        """Fields to render, in form order."""
        return visible_attributes(self._attributes, self._form_order, self._values)

    def visible_options(self, attribute_id: int) -> list[AttributeOption]:
        attribute = self._attribute(attribute_id)
        if attribute is None:
            return []
        return visible_options(attribute, self._values)

    def visible_values(self) -> dict[int, Any]:
        """Current values of the visible fields."""
        return {
            a.attribute_id: self._values[a.attribute_id]
            for a in self.visible_attributes()
            if a.attribute_id in self._values
        }

    def validate(self) -> list[FieldError]:
        return validate_submission(self.visible_attributes(), self._values)

    def estimate(self) -> ScoreResult | None:
        """Score the current values against the session's rule tree, if any."""
        if self.root_group is None:
            return None
        return score_tree(self.root_group, self.base_weight, self.visible_values())

    def submit(self) -> dict[int, Any]:
        """Validate and hand the visible values to ``on_submit``.

        Raises:
            FormValidationError: if a visible field is invalid
        """
        errors = self.validate()
        if errors:
            raise FormValidationError(errors)
        data = self.visible_values()
        if self.on_submit:
            self.on_submit(data)
        return data
