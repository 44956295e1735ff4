"""Configuration loading for agentready (.agentready.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".agentready.yml"
VALIDATION_MODES = ("strict", "permissive")
ENV_VALIDATION_MODE = "AGENTREADY_VALIDATION_MODE"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class SelectionConfig:
    """Budgets applied when ranking candidate files."""

    max_files: int = 25
    max_total_chars: int = 250_000
    max_test_files: int = 3


@dataclass
class ChunkingConfig:
    """Line and character caps for the fetch stage."""

    max_lines_per_chunk: int = 300
    max_file_chars: int = 40_000
    max_total_chars: int = 250_000


@dataclass
class LLMConfig:
    """LLM provider settings."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    summary_temperature: float = 0.3
    summary_max_tokens: int = 500
    rubric_temperature: float = 0.2
    rubric_max_tokens: int = 8000


@dataclass
class SummaryConfig:
    concurrency: int = 3
    retries: int = 0


@dataclass
class ValidationConfig:
    """Whether schema-validation failures abort the run."""

    mode: str = "permissive"
    schema_path: Optional[Path] = None

    @property
    def strict(self) -> bool:
        return self.mode == "strict"


@dataclass
class CitationConfig:
    url_base: str = "https://github.com"


@dataclass
class AgentReadyConfig:
    """Represents the settings defined in .agentready.yml."""

    root: Path
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    summaries: SummaryConfig = field(default_factory=SummaryConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    citations: CitationConfig = field(default_factory=CitationConfig)


def load_config(config_path: Path) -> AgentReadyConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = AgentReadyConfig(root=root)

    selection_data = _as_dict(data.get("selection"))
    config.selection = SelectionConfig(
        max_files=_positive_int(selection_data.get("max_files"), SelectionConfig.max_files),
        max_total_chars=_positive_int(
            selection_data.get("max_total_chars"), SelectionConfig.max_total_chars
        ),
        max_test_files=_non_negative_int(
            selection_data.get("max_test_files"), SelectionConfig.max_test_files
        ),
    )

    chunking_data = _as_dict(data.get("chunking"))
    config.chunking = ChunkingConfig(
        max_lines_per_chunk=_positive_int(
            chunking_data.get("max_lines_per_chunk"), ChunkingConfig.max_lines_per_chunk
        ),
        max_file_chars=_positive_int(
            chunking_data.get("max_file_chars"), ChunkingConfig.max_file_chars
        ),
        max_total_chars=_positive_int(
            chunking_data.get("max_total_chars"), ChunkingConfig.max_total_chars
        ),
    )

    llm_data = _as_dict(data.get("llm"))
    config.llm = LLMConfig(
        model=_as_str(llm_data.get("model")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        request_timeout=_as_float(llm_data.get("request_timeout")),
        summary_temperature=_float_or(llm_data.get("summary_temperature"), LLMConfig.summary_temperature),
        summary_max_tokens=_positive_int(llm_data.get("summary_max_tokens"), LLMConfig.summary_max_tokens),
        rubric_temperature=_float_or(llm_data.get("rubric_temperature"), LLMConfig.rubric_temperature),
        rubric_max_tokens=_positive_int(llm_data.get("rubric_max_tokens"), LLMConfig.rubric_max_tokens),
    )

    summary_data = _as_dict(data.get("summaries"))
    config.summaries = SummaryConfig(
        concurrency=_positive_int(summary_data.get("concurrency"), SummaryConfig.concurrency),
        retries=_non_negative_int(summary_data.get("retries"), SummaryConfig.retries),
    )

    validation_data = _as_dict(data.get("validation"))
    mode = _as_str(validation_data.get("mode"))
    schema_path = _as_str(validation_data.get("schema_path"))
    config.validation = ValidationConfig(
        mode=_resolve_validation_mode(mode),
        schema_path=root / schema_path if schema_path else None,
    )

    citation_data = _as_dict(data.get("citations"))
    url_base = _as_str(citation_data.get("url_base"))
    if url_base:
        config.citations = CitationConfig(url_base=url_base.rstrip("/"))

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _resolve_validation_mode(configured: Optional[str]) -> str:
    env_value = os.getenv(ENV_VALIDATION_MODE)
    for candidate in (env_value, configured):
        if not candidate:
            continue
        normalized = candidate.strip().lower()
        if normalized in VALIDATION_MODES:
            return normalized
    return ValidationConfig.mode


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _float_or(value: Any, default: float) -> float:
    parsed = _as_float(value)
    return default if parsed is None else parsed


def _positive_int(value: Any, default: int) -> int:
    parsed = _as_int(value)
    return parsed if parsed is not None and parsed > 0 else default


def _non_negative_int(value: Any, default: int) -> int:
    parsed = _as_int(value)
    return parsed if parsed is not None and parsed >= 0 else default

