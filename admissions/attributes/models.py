"""Attribute (form field) records and their visibility rules."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from admissions.core.models import WireModel


# =============================================================================
# Enumerations
# =============================================================================


class AttributeType(str, Enum):
    """Supported form field types."""

    SINGLE_LINE_TEXT = "singleLineText"
    MULTI_LINE_TEXT = "multiLineText"
    NUMBER = "number"
    DATE = "date"
    DROPDOWN = "dropdown"
    MULTISELECT = "multiselect"


CHOICE_TYPES = frozenset({AttributeType.DROPDOWN, AttributeType.MULTISELECT})


class ConditionOperator(str, Enum):
    """Known condition operators.

    Conditions store the operator as a plain string so that values outside
    this set can still be loaded; the evaluator treats them as true.
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"


class VisibilityAction(str, Enum):
    """Actions a visibility rule can take when its conditions hold."""

    SHOW = "SHOW"
    HIDE = "HIDE"


# =============================================================================
# Conditions and Visibility Rules
# =============================================================================


class Condition(WireModel):
    """An atomic comparison between a form value and a constant."""

    condition_id: int | str | None = Field(None, description="Condition identifier")
    evaluated_attribute_id: int | None = Field(
        None, description="Attribute whose form value is compared"
    )
    operator: str = Field(ConditionOperator.EQUALS.value, description="Comparison operator")
    value1: Any = Field(None, description="Value compared against")
    value2: Any = Field(None, description="Reserved")

    @field_validator("evaluated_attribute_id", mode="before")
    @classmethod
    def _blank_attribute_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def describe(self) -> str:
        """Human-readable form used in traces."""
        return f"attribute[{self.evaluated_attribute_id}] {self.operator} {self.value1!r}"


class AttributeRule(WireModel):
    """Visibility rule attached to an attribute or to one of its options."""

    action: str = Field(VisibilityAction.SHOW.value, description="SHOW or HIDE")
    logic_operator: str = Field("AND", description="How conditions combine (AND/OR)")
    conditions: list[Condition] = Field(default_factory=list)

    def referenced_attribute_ids(self) -> set[int]:
        """Ids of the attributes this rule's conditions read."""
        return {
            c.evaluated_attribute_id
            for c in self.conditions
            if c.evaluated_attribute_id is not None
        }


# =============================================================================
# Attribute
# =============================================================================


class AttributeOption(WireModel):
    """A choice offered by a dropdown or multiselect attribute."""

    label: str
    value: str
    rule: AttributeRule | None = Field(None, description="Option-level visibility rule")


class ValidationRule(WireModel):
    """Input constraints, honored for number attributes."""

    required: bool | None = None
    min: float | None = None
    max: float | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> ValidationRule:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) is greater than max ({self.max})")
        return self


class Attribute(WireModel):
    """A form field definition."""

    attribute_id: int = Field(..., description="Stable unique identifier")
    name: str = Field(..., description="Machine key")
    display_name: str = Field(..., description="Label shown to applicants")
    description: str | None = None
    type: AttributeType
    options: list[AttributeOption] | None = None
    validation_rule: ValidationRule | None = None
    rules: list[AttributeRule] = Field(default_factory=list, max_length=1)
    depends_on: list[int] = Field(
        default_factory=list, description="Attributes referenced by the visibility rule"
    )

    @property
    def visibility_rule(self) -> AttributeRule | None:
        """The attribute's own visibility rule, if any."""
        return self.rules[0] if self.rules else None

    @property
    def is_choice(self) -> bool:
        return self.type in CHOICE_TYPES

    def referenced_attribute_ids(self) -> set[int]:
        """Ids read by this attribute's visibility rule."""
        rule = self.visibility_rule
        return rule.referenced_attribute_ids() if rule else set()

    @model_validator(mode="after")
    def _check_shape(self) -> Attribute:
        if self.is_choice and not self.options:
            raise ValueError(f"{self.type.value} attribute '{self.name}' requires options")
        if not self.is_choice and self.options:
            raise ValueError(f"{self.type.value} attribute '{self.name}' cannot have options")
        if self.attribute_id in self.referenced_attribute_ids():
            raise ValueError(
                f"Attribute '{self.name}' references itself in its visibility rule"
            )
        return self
