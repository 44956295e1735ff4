"""Rubric output vocabulary and the structured-output schema sent to the LLM."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

from .config import ConfigError
from .logging import get_logger

CLASSIFICATIONS: tuple[str, ...] = (
    "A_NOT_AGENTIC",
    "B_LLM_ASSIST",
    "C_TASK_AGENTS",
    "D_AGENT_ORCHESTRATION",
)

RECOMMENDATIONS: tuple[str, ...] = (
    "RULES_AUTOMATION",
    "LLM_ASSIST",
    "TASK_AGENT",
    "HUMAN",
)

EXECUTION_MODES: tuple[str, ...] = ("STATIC", "ADAPTIVE", "COLLABORATIVE")

SCORE_FIELDS: tuple[str, ...] = (
    "variability",
    "strategic_importance",
    "operational_impact",
    "integration_readiness",
    "blast_radius_risk",
)

TASK_SCORE_FIELDS: tuple[str, ...] = ("variability", "criticality", "risk")

TOP_LEVEL_FIELDS: tuple[str, ...] = (
    "meta",
    "classification",
    "scores",
    "outcomes",
    "tasks",
    "execution_modes",
    "guardrails",
    "pilot",
    "risks",
    "citations",
)

_LOGGER = get_logger("schema")


def _string_list() -> Dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}}


def _object(properties: Dict[str, Any]) -> Dict[str, Any]:
    # Structured-output mode requires every property listed and no extras.
    return {
        "type": "object",
        "additionalProperties": False,
        "required": list(properties),
        "properties": properties,
    }


def _score(minimum: int = 1, maximum: int = 5) -> Dict[str, Any]:
    return {"type": "integer", "minimum": minimum, "maximum": maximum}


DEFAULT_RUBRIC_SCHEMA: Dict[str, Any] = _object(
    {
        "meta": _object(
            {
                "repo_url": {"type": "string"},
                "owner": {"type": "string"},
                "repo": {"type": "string"},
                "commit_sha": {"type": "string"},
                "default_branch": {"type": "string"},
                "detected_stack": _string_list(),
                "analyzed_paths": _string_list(),
            }
        ),
        "classification": {"type": "string", "enum": list(CLASSIFICATIONS)},
        "scores": _object(
            {
                **{name: _score() for name in SCORE_FIELDS},
                "confidence": {"type": "number", "minimum": 0, "maximum": 1},
            }
        ),
        "outcomes": _object(
            {
                "enterprise_outcome": {"type": "string"},
                "workflow_outcome": {"type": "string"},
                "kpis": _object(
                    {
                        "efficiency": _string_list(),
                        "quality": _string_list(),
                        "business_impact": _string_list(),
                        "risk_compliance": _string_list(),
                    }
                ),
            }
        ),
        "tasks": {
            "type": "array",
            "items": _object(
                {
                    "task_id": {"type": "string"},
                    "name": {"type": "string"},
                    "current_actor": {"type": "string"},
                    "inputs": _string_list(),
                    "outputs": _string_list(),
                    "scores": _object({name: _score() for name in TASK_SCORE_FIELDS}),
                    "recommendation": {"type": "string", "enum": list(RECOMMENDATIONS)},
                    "rationale": {"type": "string"},
                    "citations": _string_list(),
                }
            ),
        },
        "execution_modes": {
            "type": "array",
            "items": _object(
                {
                    "task_id": {"type": "string"},
                    "mode": {"type": "string", "enum": list(EXECUTION_MODES)},
                    "why": {"type": "string"},
                    "constraints": _string_list(),
                    "citations": _string_list(),
                }
            ),
        },
        "guardrails": _object(
            {
                "strategic": _string_list(),
                "operational": _string_list(),
                "implementation": _string_list(),
            }
        ),
        "pilot": _object(
            {
                "recommended_first_task_id": {"type": "string"},
                "baseline": _string_list(),
                "success_thresholds": _string_list(),
                "sandbox_plan": _string_list(),
                "rollback_plan": _string_list(),
                "monitoring": _string_list(),
            }
        ),
        "risks": _object(
            {
                "key_risks": _string_list(),
                "unknowns": _string_list(),
                "assumptions": _string_list(),
            }
        ),
        # ``url`` is filled in after generation.
        "citations": {
            "type": "array",
            "items": _object(
                {
                    "id": {"type": "string"},
                    "path": {"type": "string"},
                    "commit_sha": {"type": "string"},
                    "line_start": {"type": "integer", "minimum": 1},
                    "line_end": {"type": "integer", "minimum": 1},
                    "note": {"type": ["string", "null"]},
                }
            ),
        },
    }
)


def default_schema() -> Dict[str, Any]:
    """Return a private copy of the built-in rubric schema."""
    return copy.deepcopy(DEFAULT_RUBRIC_SCHEMA)


def load_schema(path: Optional[Path]) -> Dict[str, Any]:
    """Load a JSON schema file, falling back to the built-in schema when unavailable."""
    if path is None:
        return default_schema()
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("Could not load schema file %s (%s); using built-in schema", path, exc)
        return default_schema()
    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Schema file {path} is not valid JSON: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f"Schema file {path} must contain a JSON object")
    return loaded


__all__ = [
    "CLASSIFICATIONS",
    "DEFAULT_RUBRIC_SCHEMA",
    "EXECUTION_MODES",
    "RECOMMENDATIONS",
    "SCORE_FIELDS",
    "TASK_SCORE_FIELDS",
    "TOP_LEVEL_FIELDS",
    "default_schema",
    "load_schema",
]
