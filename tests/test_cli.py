"""CLI behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from agentready import cli
from agentready.cli import _build_parser, main
from tests._fixtures.fakes import PipelineLLM, make_rubric


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "select"])
    assert args.verbose is True
    assert args.command == "select"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["validate", "rubric.json", "--verbose"])
    assert args.verbose is True
    assert args.command == "validate"
    assert args.file == "rubric.json"


def test_cli_analyze_flags() -> None:
    args = _build_parser().parse_args(
        [
            "analyze",
            "repo",
            "--strict",
            "--extra-path",
            "a.py",
            "--extra-path",
            "b.py",
            "--only-path",
            "c.py",
            "-o",
            "out.json",
        ]
    )
    assert args.validation_mode == "strict"
    assert args.extra_paths == ["a.py", "b.py"]
    assert args.selected_paths == ["c.py"]
    assert args.output == Path("out.json")
    assert args.owner == "local"


def test_cli_rejects_conflicting_validation_modes() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["analyze", "--strict", "--permissive"])


def test_validate_command_accepts_valid_rubric(tmp_path: Path, capsys) -> None:
    path = tmp_path / "rubric.json"
    path.write_text(json.dumps(make_rubric()), encoding="utf-8")

    main(["validate", str(path)])

    assert "Rubric is valid" in capsys.readouterr().out


def test_validate_command_reports_errors(tmp_path: Path, capsys) -> None:
    rubric = make_rubric(classification="NOPE")
    rubric["scores"]["variability"] = 1
    path = tmp_path / "rubric.json"
    path.write_text(json.dumps(rubric), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(path), "--policy"])

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert "error  classification: Invalid value" in captured.out
    assert "policy classification:" in captured.out
    assert "1 validation error(s)" in captured.err


def test_validate_command_rejects_bad_json(tmp_path: Path, capsys) -> None:
    path = tmp_path / "rubric.json"
    path.write_text("{oops", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(path)])

    assert excinfo.value.code == 1
    assert "is not valid JSON" in capsys.readouterr().err


def test_select_command_prints_selection(repo_builder, capsys) -> None:
    repo_builder.write({"README.md": "# Hi\n", "package.json": "{}\n", "logo.png": "x"})

    main(["select", str(repo_builder.path())])

    payload = json.loads(capsys.readouterr().out)
    assert [item["path"] for item in payload["selected"]] == ["README.md", "package.json"]
    assert payload["detected_stack"] == ["react"]
    assert payload["truncated"] is False


def test_analyze_command_writes_rubric(repo_builder, tmp_path: Path, monkeypatch, capsys) -> None:
    repo_builder.write({"README.md": "# Widgets\n", "app.py": "print('hi')\n"})
    monkeypatch.setattr(cli, "LLMRunner", lambda *args, **kwargs: PipelineLLM())
    output = tmp_path / "rubric.json"

    main(["analyze", str(repo_builder.path()), "--owner", "acme", "--repo", "widgets", "-o", str(output)])

    rubric = json.loads(output.read_text(encoding="utf-8"))
    assert rubric["meta"]["owner"] == "acme"
    assert rubric["meta"]["repo"] == "widgets"
    assert rubric["meta"]["analyzed_paths"] == ["README.md", "app.py"]
    assert rubric["citations"][0]["url"].startswith("https://github.com/acme/widgets/blob/")
    assert f"Rubric written to {output}" in capsys.readouterr().out


def test_analyze_command_reports_missing_path(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "Repository path not found" in capsys.readouterr().err


def test_log_file_receives_selection_warnings(repo_builder, tmp_path: Path, capsys) -> None:
    repo_builder.write({"main.py": "pass\n"})
    log_file = tmp_path / "agentready.log"

    main(["--log-file", str(log_file), "select", str(repo_builder.path())])

    assert "Selection: No README.md found" in log_file.read_text(encoding="utf-8")
