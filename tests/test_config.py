"""Tests for agentready.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentready.config import AgentReadyConfig, ConfigError, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, AgentReadyConfig)
    assert config.root == tmp_path.resolve()
    assert config.selection.max_files == 25
    assert config.selection.max_total_chars == 250_000
    assert config.selection.max_test_files == 3
    assert config.chunking.max_lines_per_chunk == 300
    assert config.chunking.max_file_chars == 40_000
    assert config.summaries.concurrency == 3
    assert config.summaries.retries == 0
    assert config.llm.model is None
    assert config.llm.rubric_max_tokens == 8000
    assert config.validation.mode == "permissive"
    assert config.validation.strict is False
    assert config.validation.schema_path is None
    assert config.citations.url_base == "https://github.com"


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".agentready.yml"
    config_file.write_text(
        """
selection:
  max_files: 10
  max_total_chars: 50000
  max_test_files: 1
chunking:
  max_lines_per_chunk: 120
  max_file_chars: 8000
llm:
  model: "gpt-4o-mini"
  base_url: "http://localhost:8080/v1"
  api_key: "test-key"
  request_timeout: 60
  summary_temperature: 0.1
  rubric_max_tokens: 4000
summaries:
  concurrency: 5
  retries: 2
validation:
  mode: strict
  schema_path: schemas/rubric.json
citations:
  url_base: "https://git.example.com/"
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.selection.max_files == 10
    assert config.selection.max_total_chars == 50_000
    assert config.selection.max_test_files == 1
    assert config.chunking.max_lines_per_chunk == 120
    assert config.chunking.max_file_chars == 8000
    assert config.chunking.max_total_chars == 250_000
    assert config.llm.model == "gpt-4o-mini"
    assert config.llm.base_url == "http://localhost:8080/v1"
    assert config.llm.api_key == "test-key"
    assert config.llm.request_timeout == 60.0
    assert config.llm.summary_temperature == 0.1
    assert config.llm.rubric_max_tokens == 4000
    assert config.summaries.concurrency == 5
    assert config.summaries.retries == 2
    assert config.validation.strict is True
    assert config.validation.schema_path == tmp_path.resolve() / "schemas/rubric.json"
    assert config.citations.url_base == "https://git.example.com"


def test_invalid_values_fall_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / ".agentready.yml").write_text(
        "selection:\n  max_files: -4\nsummaries:\n  concurrency: lots\nvalidation:\n  mode: lenient\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.selection.max_files == 25
    assert config.summaries.concurrency == 3
    assert config.validation.mode == "permissive"


def test_environment_overrides_validation_mode(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".agentready.yml").write_text("validation:\n  mode: permissive\n", encoding="utf-8")
    monkeypatch.setenv("AGENTREADY_VALIDATION_MODE", "STRICT")

    config = load_config(tmp_path)

    assert config.validation.mode == "strict"


def test_load_config_accepts_explicit_file(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text("summaries:\n  retries: 1\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.summaries.retries == 1
    assert config.root == tmp_path.resolve()


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / ".agentready.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_reports_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / ".agentready.yml").write_text("selection: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)
