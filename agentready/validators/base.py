"""Core validation data structures shared by rubric validators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Protocol, Sequence


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found at a dotted/indexed path of the rubric."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass
class ValidationResult:
    """Outcome of validating one rubric; ``errors`` lists every issue found."""

    errors: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def messages(self) -> List[str]:
        return [str(issue) for issue in self.errors]


class RubricValidationError(RuntimeError):
    """Raised in strict mode when a parsed rubric fails validation."""

    def __init__(self, message: str, issues: Sequence[ValidationIssue]) -> None:
        super().__init__(message)
        self.issues = list(issues)


class Validator(Protocol):
    """Protocol implemented by rubric validators."""

    name: str

    def validate(self, data: Any) -> ValidationResult:
        """Inspect ``data`` without mutating it and report every issue."""


class IssueCollector:
    """Accumulates issues with small typed-shape helpers."""

    def __init__(self) -> None:
        self.issues: List[ValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self.issues.append(ValidationIssue(path=path, message=message))

    def require(self, data: Mapping[str, Any], fields: Sequence[str], prefix: str) -> None:
        for name in fields:
            if name not in data:
                self.add(join_path(prefix, name), "Required field missing")

    def result(self) -> ValidationResult:
        return ValidationResult(errors=list(self.issues))


def join_path(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_array(value: Any) -> bool:
    return isinstance(value, list)


def is_number(value: Any) -> bool:
    # Excludes bools and NaN.
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value


def is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


__all__ = [
    "IssueCollector",
    "RubricValidationError",
    "ValidationIssue",
    "ValidationResult",
    "Validator",
    "is_array",
    "is_integer",
    "is_number",
    "is_object",
    "join_path",
]
