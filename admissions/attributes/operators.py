"""Operators allowed per attribute type."""

from admissions.attributes.models import AttributeType, ConditionOperator

EQUALITY = (ConditionOperator.EQUALS.value, ConditionOperator.NOT_EQUALS.value)
MEMBERSHIP = (ConditionOperator.CONTAINS.value, ConditionOperator.NOT_CONTAINS.value)
ORDERING = (
    ConditionOperator.GREATER_THAN.value,
    ConditionOperator.LESS_THAN.value,
    ConditionOperator.GREATER_THAN_OR_EQUAL.value,
    ConditionOperator.LESS_THAN_OR_EQUAL.value,
)

# Operators offered when editing a scoring rule
SCORING_OPERATORS: dict[AttributeType, tuple[str, ...]] = {
    AttributeType.SINGLE_LINE_TEXT: EQUALITY + MEMBERSHIP,
    AttributeType.MULTI_LINE_TEXT: EQUALITY + MEMBERSHIP,
    AttributeType.DROPDOWN: EQUALITY + MEMBERSHIP,
    AttributeType.MULTISELECT: EQUALITY + MEMBERSHIP,
    AttributeType.NUMBER: EQUALITY + ORDERING,
    AttributeType.DATE: EQUALITY + ORDERING,
}

# Operators offered when editing an attribute or option visibility rule
VISIBILITY_OPERATORS: dict[AttributeType, tuple[str, ...]] = {
    AttributeType.SINGLE_LINE_TEXT: EQUALITY + MEMBERSHIP,
    AttributeType.MULTI_LINE_TEXT: MEMBERSHIP,
    AttributeType.DROPDOWN: EQUALITY + MEMBERSHIP,
    AttributeType.MULTISELECT: MEMBERSHIP,
    AttributeType.NUMBER: EQUALITY + ORDERING,
    AttributeType.DATE: EQUALITY + ORDERING,
}


def allowed_operators(
    attribute_type: AttributeType | str | None, *, visibility: bool = False
) -> tuple[str, ...]:
    """Operators offered for an attribute type.

    Unknown types fall back to equality operators.
    """
    table = VISIBILITY_OPERATORS if visibility else SCORING_OPERATORS
    try:
        return table[AttributeType(attribute_type)]
    except ValueError:
        return EQUALITY


def is_operator_allowed(
    attribute_type: AttributeType | str | None, operator: str, *, visibility: bool = False
) -> bool:
    return operator in allowed_operators(attribute_type, visibility=visibility)
