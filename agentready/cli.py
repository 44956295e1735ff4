"""CLI entrypoints for agentready commands."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from .assessment import RubricParseError
from .config import ConfigError, load_config
from .llm.base import LLMError
from .llm.runner import LLMRunner
from .logging import configure_logging
from .pipeline import NoContentError, RepositoryAnalyzer
from .selector import FileSelector
from .sources.local import LocalRepository
from .summarizer import SummarizationError
from .validators import PolicyValidator, RubricValidationError, validate


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentready",
        description="Assess a repository's readiness for agentic AI workflows.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    select_parser = subparsers.add_parser(
        "select",
        help="Show which files would be analysed and why.",
    )
    _add_verbose_option(select_parser, suppress_default=True)
    _add_path_argument(select_parser)
    select_parser.add_argument("--max-files", type=int, default=None)
    select_parser.add_argument("--max-total-chars", type=int, default=None)

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a rubric JSON document.",
    )
    _add_verbose_option(validate_parser, suppress_default=True)
    validate_parser.add_argument("file", help="Rubric JSON file to validate.")
    validate_parser.add_argument(
        "--policy",
        action="store_true",
        help="Also run advisory classification policy checks.",
    )

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Run the full assessment against a local checkout.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    analyze_parser.add_argument("--owner", default="local", help="Owner used in citation links.")
    analyze_parser.add_argument("--repo", default=None, help="Repository name (defaults to directory name).")
    analyze_parser.add_argument("--repo-url", default=None)
    analyze_parser.add_argument("--default-branch", default="main")
    analyze_parser.add_argument(
        "--extra-path",
        action="append",
        default=[],
        dest="extra_paths",
        help="Add a file to the heuristic selection (repeatable).",
    )
    analyze_parser.add_argument(
        "--only-path",
        action="append",
        default=[],
        dest="selected_paths",
        help="Analyse exactly these files, bypassing heuristics (repeatable).",
    )
    mode = analyze_parser.add_mutually_exclusive_group()
    mode.add_argument("--strict", dest="validation_mode", action="store_const", const="strict")
    mode.add_argument("--permissive", dest="validation_mode", action="store_const", const="permissive")
    analyze_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the rubric JSON to this file instead of stdout.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for agentready commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(getattr(args, "verbose", False)),
        log_file=args.log_file,
    )

    if args.command == "select":
        _run_select(parser, args)
    elif args.command == "validate":
        _run_validate(parser, args)
    elif args.command == "analyze":
        _run_analyze(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_select(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        source = LocalRepository(args.path)
        config = load_config(source.root)
    except (FileNotFoundError, NotADirectoryError, ConfigError) as exc:
        parser.exit(1, f"{exc}\n")

    selector = FileSelector(
        max_files=args.max_files or config.selection.max_files,
        max_total_chars=args.max_total_chars or config.selection.max_total_chars,
        max_test_files=config.selection.max_test_files,
    )
    selection = selector.select(source.tree())
    _print_json(asdict(selection))


def _run_validate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        data = json.loads(Path(args.file).read_text(encoding="utf-8"))
    except OSError as exc:
        parser.exit(1, f"Unable to read {args.file}: {exc}\n")
    except json.JSONDecodeError as exc:
        parser.exit(1, f"{args.file} is not valid JSON: {exc}\n")

    result = validate(data)
    for message in result.messages():
        print(f"error  {message}")
    if args.policy:
        for issue in PolicyValidator().validate(data).errors:
            print(f"policy {issue}")
    if not result.valid:
        parser.exit(1, f"{len(result.errors)} validation error(s)\n")
    print("Rubric is valid")


def _run_analyze(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        source = LocalRepository(args.path)
        config = load_config(source.root)
    except (FileNotFoundError, NotADirectoryError, ConfigError) as exc:
        parser.exit(1, f"{exc}\n")

    if args.validation_mode:
        config.validation.mode = args.validation_mode

    llm = LLMRunner(
        config.llm.model,
        **_llm_overrides(config.llm.base_url, config.llm.api_key),
        request_timeout=config.llm.request_timeout or 120.0,
    )
    analyzer = RepositoryAnalyzer.from_config(config, llm)
    repo = args.repo or source.name

    try:
        report = analyzer.run(
            source.tree(),
            source.fetch_content,
            source.revision_id(),
            repo_url=args.repo_url or source.root.as_uri(),
            owner=args.owner,
            repo=repo,
            default_branch=args.default_branch,
            extra_paths=args.extra_paths,
            selected_paths=args.selected_paths or None,
        )
    except NoContentError as exc:
        parser.exit(1, f"{exc}\n")
    except (LLMError, SummarizationError, RubricParseError, RubricValidationError) as exc:
        parser.exit(1, f"agentready analyze failed: {exc}\nRun with --verbose for more details.\n")

    for warning in report.warnings:
        print(f"warning: {warning}", file=sys.stderr)

    if args.output is not None:
        args.output.write_text(json.dumps(report.rubric, indent=2) + "\n", encoding="utf-8")
        print(f"Rubric written to {args.output}")
    else:
        _print_json(report.rubric)


def _llm_overrides(base_url: str | None, api_key: str | None) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if base_url:
        overrides["base_url"] = base_url
    if api_key:
        overrides["api_key"] = api_key
    return overrides


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main(sys.argv[1:])
