"""Forms domain - applicant form state and submission checks."""

from .session import FormSession
from .validation import FieldError, FormValidationError, validate_field, validate_submission

__all__ = [
    "FormSession",
    "FieldError",
    "FormValidationError",
    "validate_field",
    "validate_submission",
]
