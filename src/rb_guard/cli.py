"""Command-line entry point for rb-guard."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TypedDict

from rb_guard._console import log_error, log_info
from rb_guard._types import Severity, parse_severity
from rb_guard.config import ConfigError, GuardConfig, default_config, find_config, load_config
from rb_guard.engine import check_paths, exit_code
from rb_guard.guards.registry import all_specs
from rb_guard.report import render_json, render_rules, render_text


class CheckArgs(TypedDict):
    """Parsed arguments of the ``check`` command."""

    paths: list[Path]
    config: Path | None
    output_format: str
    select: list[str]
    ignore: list[str]
    fail_on: Severity | None
    max_line_length: int | None
    check_links: bool
    verbose: bool


def _split_ids(raw: str | None) -> list[str]:
    if raw is None:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rb-guard",
        description="Check Ruby, ERB and Markdown files against the Ruby/Rails style guide",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser("check", help="Check files or directories")
    check_parser.add_argument("paths", nargs="*", default=["."], help="Files or directories to check")
    check_parser.add_argument("--config", type=str, default=None, help="Path to a JSON config file")
    check_parser.add_argument(
        "--format",
        dest="output_format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    check_parser.add_argument("--select", type=str, default=None, help="Comma-separated rule ids or prefixes")
    check_parser.add_argument("--ignore", type=str, default=None, help="Comma-separated rule ids or prefixes")
    check_parser.add_argument(
        "--fail-on",
        choices=["error", "warning", "convention"],
        default=None,
        help="Lowest severity that fails the run (default: convention)",
    )
    check_parser.add_argument("--max-line-length", type=int, default=None)
    check_parser.add_argument("--check-links", action="store_true", help="Check external Markdown links")
    check_parser.add_argument("--verbose", action="store_true", help="Log each checked file")

    rules_parser = subparsers.add_parser("rules", help="List the rule catalogue")
    rules_parser.add_argument("--format", dest="output_format", choices=["text", "json"], default="text")

    return parser


def _extract_check_args(args: argparse.Namespace) -> CheckArgs:
    """Extract and validate ``check`` arguments from Namespace.

    Raises:
        TypeError: If argument types are incorrect.
    """
    raw_paths = args.paths
    if not isinstance(raw_paths, list) or not all(isinstance(p, str) for p in raw_paths):
        msg = f"Expected list of str for paths, got {type(raw_paths).__name__}"
        raise TypeError(msg)

    config = args.config
    if config is not None and not isinstance(config, str):
        msg = f"Expected str or None for config, got {type(config).__name__}"
        raise TypeError(msg)

    max_line_length = args.max_line_length
    if max_line_length is not None and not isinstance(max_line_length, int):
        msg = f"Expected int or None for max_line_length, got {type(max_line_length).__name__}"
        raise TypeError(msg)

    fail_on = args.fail_on
    return {
        "paths": [Path(p) for p in raw_paths],
        "config": Path(config) if config is not None else None,
        "output_format": str(args.output_format),
        "select": _split_ids(args.select),
        "ignore": _split_ids(args.ignore),
        "fail_on": parse_severity(fail_on) if isinstance(fail_on, str) else None,
        "max_line_length": max_line_length,
        "check_links": bool(args.check_links),
        "verbose": bool(args.verbose),
    }


def resolve_config(args: CheckArgs, cwd: Path) -> GuardConfig:
    """Load the config file (explicit or discovered) and apply CLI overrides."""
    if args["config"] is not None:
        config = load_config(args["config"])
    else:
        found = find_config(cwd)
        config = load_config(found) if found is not None else default_config()

    if args["select"]:
        config["select"] = args["select"]
    if args["ignore"]:
        config["ignore"] = config["ignore"] + args["ignore"]
    if args["fail_on"] is not None:
        config["fail_on"] = args["fail_on"]
    if args["max_line_length"] is not None:
        if args["max_line_length"] <= 0:
            raise ConfigError("--max-line-length must be positive")
        config["max_line_length"] = args["max_line_length"]
    if args["check_links"]:
        config["check_links"] = True
    return config


def _run_check(args: CheckArgs) -> int:
    cwd = Path.cwd()
    config = resolve_config(args, cwd)
    on_file = (lambda path: log_info(f"checking {path}")) if args["verbose"] else None
    result = check_paths(args["paths"], config, on_file=on_file)
    if args["output_format"] == "json":
        render_json(result, cwd, config["fail_on"])
    else:
        render_text(result, cwd, config["fail_on"])
    return exit_code(result, config["fail_on"])


def main(argv: list[str] | None = None) -> int:
    """Entry point for the rb-guard command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "rules":
        render_rules(all_specs(), as_json=args.output_format == "json")
        return 0

    try:
        return _run_check(_extract_check_args(args))
    except ConfigError as exc:
        log_error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
