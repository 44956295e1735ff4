"""Tests for the advisory policy validator."""

from __future__ import annotations

from agentready.validators import PolicyValidator
from tests._fixtures.fakes import make_rubric


def test_flags_low_variability_with_agentic_classification() -> None:
    rubric = make_rubric(classification="D_AGENT_ORCHESTRATION")
    rubric["scores"]["variability"] = 1

    result = PolicyValidator().validate(rubric)

    assert not result.valid
    assert [issue.path for issue in result.errors] == ["classification"]
    assert "A_NOT_AGENTIC" in result.errors[0].message


def test_low_variability_is_fine_for_not_agentic() -> None:
    rubric = make_rubric(classification="A_NOT_AGENTIC")
    rubric["scores"]["variability"] = 1

    assert PolicyValidator().validate(rubric).valid


def test_threshold_is_configurable() -> None:
    rubric = make_rubric()
    rubric["scores"]["variability"] = 3

    assert PolicyValidator().validate(rubric).valid
    assert not PolicyValidator(low_variability_threshold=3).validate(rubric).valid


def test_flags_pilot_task_that_does_not_exist() -> None:
    rubric = make_rubric()
    rubric["pilot"]["recommended_first_task_id"] = "T9"

    result = PolicyValidator().validate(rubric)

    assert result.messages() == ["pilot.recommended_first_task_id: Unknown task id: T9"]


def test_malformed_input_is_left_to_structural_validation() -> None:
    assert PolicyValidator().validate("nonsense").valid
    assert PolicyValidator().validate({"scores": "bad", "pilot": []}).valid
