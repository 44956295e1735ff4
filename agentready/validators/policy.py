"""Advisory policy checks layered on top of structural validation."""

from __future__ import annotations

from typing import Any

from .base import IssueCollector, ValidationResult, is_array, is_number, is_object

LOWEST_CLASSIFICATION = "A_NOT_AGENTIC"
LOW_VARIABILITY_THRESHOLD = 2


class PolicyValidator:
    """Flags rubrics that are well-formed but inconsistent with assessment policy.

    Never part of schema validity: a rubric can pass :class:`RubricValidator`
    and still be flagged here.
    """

    name = "policy"

    def __init__(self, *, low_variability_threshold: int = LOW_VARIABILITY_THRESHOLD) -> None:
        self.low_variability_threshold = low_variability_threshold

    def validate(self, data: Any) -> ValidationResult:
        collector = IssueCollector()
        if not is_object(data):
            return collector.result()

        scores = data.get("scores")
        classification = data.get("classification")
        if is_object(scores):
            variability = scores.get("variability")
            if (
                is_number(variability)
                and variability <= self.low_variability_threshold
                and isinstance(classification, str)
                and classification != LOWEST_CLASSIFICATION
            ):
                collector.add(
                    "classification",
                    f"Variability {variability} suggests {LOWEST_CLASSIFICATION}; "
                    f"{classification} needs verified code-level evidence",
                )

        pilot = data.get("pilot")
        tasks = data.get("tasks")
        if is_object(pilot) and is_array(tasks):
            first_task = pilot.get("recommended_first_task_id")
            task_ids = {task.get("task_id") for task in tasks if is_object(task)}
            if isinstance(first_task, str) and first_task not in task_ids:
                collector.add(
                    "pilot.recommended_first_task_id",
                    f"Unknown task id: {first_task}",
                )

        return collector.result()


__all__ = ["PolicyValidator"]
