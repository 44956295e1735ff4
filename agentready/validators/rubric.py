"""Structural and semantic validation of rubric output."""

from __future__ import annotations

from typing import Any, Mapping, Set

from ..schema import (
    CLASSIFICATIONS,
    EXECUTION_MODES,
    RECOMMENDATIONS,
    SCORE_FIELDS,
    TASK_SCORE_FIELDS,
)
from .base import (
    IssueCollector,
    ValidationResult,
    is_array,
    is_integer,
    is_number,
    is_object,
)

META_FIELDS = ("repo_url", "owner", "repo", "commit_sha", "default_branch", "analyzed_paths")
TASK_FIELDS = (
    "task_id",
    "name",
    "current_actor",
    "inputs",
    "outputs",
    "scores",
    "recommendation",
    "rationale",
    "citations",
)
MODE_FIELDS = ("task_id", "mode", "why", "constraints", "citations")
CITATION_FIELDS = ("id", "path", "commit_sha", "line_start", "line_end", "url")
OBJECT_SECTIONS = ("outcomes", "guardrails", "pilot", "risks")


class RubricValidator:
    """Checks a parsed rubric and reports every issue instead of failing fast.

    The input is never mutated. Whether issues are fatal is the caller's
    decision (strict vs. permissive mode).
    """

    name = "rubric"

    def validate(self, data: Any) -> ValidationResult:
        collector = IssueCollector()
        if not is_object(data):
            collector.add("", "Expected object")
            return collector.result()

        self._validate_meta(data, collector)
        self._validate_classification(data, collector)
        self._validate_scores(data, collector)
        for section in OBJECT_SECTIONS:
            self._validate_object_section(data, section, collector)

        known_ids = self._validate_citations(data, collector)
        self._validate_tasks(data, collector, known_ids)
        self._validate_execution_modes(data, collector, known_ids)
        return collector.result()

    @staticmethod
    def _validate_meta(data: Mapping[str, Any], collector: IssueCollector) -> None:
        if "meta" not in data:
            collector.add("meta", "Required field missing")
            return
        meta = data["meta"]
        if not is_object(meta):
            collector.add("meta", "Expected object")
            return
        collector.require(meta, META_FIELDS, "meta")
        if "analyzed_paths" in meta:
            _validate_string_array(meta["analyzed_paths"], "meta.analyzed_paths", collector)

    @staticmethod
    def _validate_classification(data: Mapping[str, Any], collector: IssueCollector) -> None:
        if "classification" not in data:
            collector.add("classification", "Required field missing")
            return
        if data["classification"] not in CLASSIFICATIONS:
            collector.add(
                "classification",
                f"Invalid value. Expected one of: {', '.join(CLASSIFICATIONS)}",
            )

    @staticmethod
    def _validate_scores(data: Mapping[str, Any], collector: IssueCollector) -> None:
        if "scores" not in data:
            collector.add("scores", "Required field missing")
            return
        scores = data["scores"]
        if not is_object(scores):
            collector.add("scores", "Expected object")
            return
        for field_name in SCORE_FIELDS:
            path = f"scores.{field_name}"
            if field_name in scores:
                _validate_score(scores[field_name], path, collector)
            else:
                collector.add(path, "Required field missing")

        if "confidence" not in scores:
            collector.add("scores.confidence", "Required field missing")
        else:
            confidence = scores["confidence"]
            if not is_number(confidence) or not 0 <= confidence <= 1:
                collector.add("scores.confidence", "Expected number between 0 and 1")

    @staticmethod
    def _validate_object_section(
        data: Mapping[str, Any], section: str, collector: IssueCollector
    ) -> None:
        if section not in data:
            collector.add(section, "Required field missing")
        elif not is_object(data[section]):
            collector.add(section, "Expected object")

    @staticmethod
    def _validate_citations(data: Mapping[str, Any], collector: IssueCollector) -> Set[str] | None:
        """Validate citation entries and return the set of declared ids.

        Returns ``None`` when the citations list itself is unusable so that
        reference checks are skipped rather than reported twice.
        """
        if "citations" not in data:
            collector.add("citations", "Required field missing")
            return None
        citations = data["citations"]
        if not is_array(citations):
            collector.add("citations", "Expected array")
            return None

        known: Set[str] = set()
        for index, citation in enumerate(citations):
            path = f"citations[{index}]"
            if not is_object(citation):
                collector.add(path, "Expected object")
                continue
            collector.require(citation, CITATION_FIELDS, path)
            if isinstance(citation.get("id"), str):
                known.add(citation["id"])
            line_start = citation.get("line_start")
            line_end = citation.get("line_end")
            start_ok = _validate_line(citation, "line_start", path, collector)
            end_ok = _validate_line(citation, "line_end", path, collector)
            if start_ok and end_ok and line_end < line_start:
                collector.add(f"{path}.line_end", "Expected line_end >= line_start")
        return known

    @staticmethod
    def _validate_tasks(
        data: Mapping[str, Any], collector: IssueCollector, known_ids: Set[str] | None
    ) -> None:
        if "tasks" not in data:
            collector.add("tasks", "Required field missing")
            return
        tasks = data["tasks"]
        if not is_array(tasks):
            collector.add("tasks", "Expected array")
            return
        if not tasks:
            collector.add("tasks", "At least one task required")
            return

        for index, task in enumerate(tasks):
            path = f"tasks[{index}]"
            if not is_object(task):
                collector.add(path, "Expected object")
                continue
            collector.require(task, TASK_FIELDS, path)

            if "recommendation" in task and task["recommendation"] not in RECOMMENDATIONS:
                collector.add(
                    f"{path}.recommendation",
                    f"Invalid value. Expected one of: {', '.join(RECOMMENDATIONS)}",
                )

            if "scores" in task:
                task_scores = task["scores"]
                if not is_object(task_scores):
                    collector.add(f"{path}.scores", "Expected object")
                else:
                    for field_name in TASK_SCORE_FIELDS:
                        _validate_score(task_scores.get(field_name), f"{path}.scores.{field_name}", collector)

            if "citations" in task:
                _validate_references(task["citations"], f"{path}.citations", collector, known_ids)

    @staticmethod
    def _validate_execution_modes(
        data: Mapping[str, Any], collector: IssueCollector, known_ids: Set[str] | None
    ) -> None:
        if "execution_modes" not in data:
            collector.add("execution_modes", "Required field missing")
            return
        modes = data["execution_modes"]
        if not is_array(modes):
            collector.add("execution_modes", "Expected array")
            return

        for index, mode in enumerate(modes):
            path = f"execution_modes[{index}]"
            if not is_object(mode):
                collector.add(path, "Expected object")
                continue
            collector.require(mode, MODE_FIELDS, path)
            if "mode" in mode and mode["mode"] not in EXECUTION_MODES:
                collector.add(
                    f"{path}.mode",
                    f"Invalid value. Expected one of: {', '.join(EXECUTION_MODES)}",
                )
            if "citations" in mode:
                _validate_references(mode["citations"], f"{path}.citations", collector, known_ids)


def _validate_string_array(value: Any, path: str, collector: IssueCollector) -> bool:
    if not is_array(value):
        collector.add(path, "Expected array")
        return False
    for index, item in enumerate(value):
        if not isinstance(item, str):
            collector.add(f"{path}[{index}]", "Expected string")
    return True


def _validate_score(value: Any, path: str, collector: IssueCollector, low: int = 1, high: int = 5) -> None:
    if not is_number(value):
        collector.add(path, "Expected number")
        return
    if not is_integer(value) or not low <= value <= high:
        collector.add(path, f"Expected integer between {low} and {high}")


def _validate_line(citation: Mapping[str, Any], name: str, path: str, collector: IssueCollector) -> bool:
    if name not in citation:
        return False
    value = citation[name]
    if not is_integer(value) or value < 1:
        collector.add(f"{path}.{name}", "Expected positive integer")
        return False
    return True


def _validate_references(
    value: Any, path: str, collector: IssueCollector, known_ids: Set[str] | None
) -> None:
    if not _validate_string_array(value, path, collector):
        return
    if not value:
        collector.add(path, "At least one citation id required")
        return
    if known_ids is None:
        return
    for index, ref in enumerate(value):
        if isinstance(ref, str) and ref not in known_ids:
            collector.add(f"{path}[{index}]", f"Unknown citation id: {ref}")


def validate(data: Any) -> ValidationResult:
    """Validate a parsed rubric with the default :class:`RubricValidator`."""
    return RubricValidator().validate(data)


__all__ = ["RubricValidator", "validate"]
