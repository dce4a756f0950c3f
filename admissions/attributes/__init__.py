"""Attributes domain - form field definitions, operators and selection."""

from .models import (
    AttributeType,
    CHOICE_TYPES,
    ConditionOperator,
    VisibilityAction,
    Condition,
    AttributeRule,
    AttributeOption,
    ValidationRule,
    Attribute,
)
from .operators import (
    SCORING_OPERATORS,
    VISIBILITY_OPERATORS,
    allowed_operators,
    is_operator_allowed,
)
from .service import (
    AttributeDependencyError,
    identity_order,
    find_dependents,
    import_attribute,
    remove_attribute,
)

__all__ = [
    # Models
    "AttributeType",
    "CHOICE_TYPES",
    "ConditionOperator",
    "VisibilityAction",
    "Condition",
    "AttributeRule",
    "AttributeOption",
    "ValidationRule",
    "Attribute",
    # Operators
    "SCORING_OPERATORS",
    "VISIBILITY_OPERATORS",
    "allowed_operators",
    "is_operator_allowed",
    # Selection
    "AttributeDependencyError",
    "identity_order",
    "find_dependents",
    "import_attribute",
    "remove_attribute",
]
