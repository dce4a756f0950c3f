"""Submission checks for visible form fields."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from admissions.attributes.models import Attribute, AttributeType
from admissions.rules.conditions import to_number


class FieldError(BaseModel):
    """A problem with one submitted field."""

    attribute_id: int
    name: str
    message: str


class FormValidationError(ValueError):
    """Raised when a submission has invalid fields."""

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        super().__init__("; ".join(f"{e.name}: {e.message}" for e in errors))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_field(attribute: Attribute, value: Any) -> str | None:
    """Error message for one number field, or None when it is valid.

    Validation rules apply to number attributes only.
    """
    rule = attribute.validation_rule
    if attribute.type != AttributeType.NUMBER or rule is None:
        return None

    if _is_blank(value):
        return "This field is required" if rule.required else None

    number = to_number(value)
    if isinstance(value, (list, tuple, dict)) or math.isnan(number):
        return "Must be a number"
    if rule.min is not None and number < rule.min:
        return f"Must be at least {rule.min:g}"
    if rule.max is not None and number > rule.max:
        return f"Must be at most {rule.max:g}"
    return None


def validate_submission(
    visible: list[Attribute], values: Mapping[int, Any]
) -> list[FieldError]:
    """Check the visible fields of a submission; hidden fields are never required."""
    errors = []
    for attribute in visible:
        message = validate_field(attribute, values.get(attribute.attribute_id))
        if message:
            errors.append(
                FieldError(attribute_id=attribute.attribute_id, name=attribute.name, message=message)
            )
    return errors
