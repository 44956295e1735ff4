"""Validation package for rubric outputs."""

from .base import (
    RubricValidationError,
    ValidationIssue,
    ValidationResult,
    Validator,
)
from .policy import PolicyValidator
from .rubric import RubricValidator, validate

__all__ = [
    "PolicyValidator",
    "RubricValidationError",
    "RubricValidator",
    "ValidationIssue",
    "ValidationResult",
    "Validator",
    "validate",
]
