"""Rule engine: discover files, scan them once, apply every enabled rule."""

from __future__ import annotations

import os
from collections.abc import Callable, Generator, Sequence
from pathlib import Path
from typing import NamedTuple

from rb_guard._types import SEVERITY_RANK, Severity
from rb_guard.config import ConfigError, GuardConfig
from rb_guard.guards import RuleReport, Violation
from rb_guard.guards.registry import all_rules, select_specs, validate_overrides
from rb_guard.scanner import scan_file


class CheckResult(NamedTuple):
    """Outcome of a checker run."""

    files_checked: int
    violations: list[Violation]
    reports: list[RuleReport]


def _is_candidate(path: Path, config: GuardConfig) -> bool:
    return path.suffix.lower() in config["include_exts"] or path.name in config["include_names"]


def _walk_candidates(root: Path, config: GuardConfig) -> list[Path]:
    """Collect included files under root, pruning excluded directories."""
    exclude = set(config["exclude_dirs"])
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [name for name in dirnames if name not in exclude]
        base = Path(dirpath)
        found.extend(base / name for name in filenames if _is_candidate(base / name, config))
    return sorted(found)


def iter_source_files(paths: Sequence[Path], config: GuardConfig) -> Generator[Path, None, None]:
    """Yield files to check, in a stable order.

    Files named explicitly are always yielded; directories are walked for
    included extensions without descending into excluded directory names.

    Raises:
        ConfigError: If a path does not exist.
    """
    seen: set[Path] = set()
    for path in paths:
        if not path.exists():
            raise ConfigError(f"Path not found: {path}")
        candidates = [path] if path.is_file() else _walk_candidates(path, config)
        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            yield candidate


def check_paths(
    paths: Sequence[Path],
    config: GuardConfig,
    on_file: Callable[[Path], None] | None = None,
) -> CheckResult:
    """Run all enabled rules over paths.

    Violations are deduplicated and sorted by (file, line, rule id).
    Inline ``rbguard:disable`` directives and ignored rules are dropped,
    and severity overrides from the config are applied.
    """
    enabled = select_specs(config["select"], config["ignore"])
    validate_overrides(config["severity"])
    rules = all_rules()
    counts: dict[str, int] = {rule.name: 0 for rule in rules}

    violations: list[Violation] = []
    seen: set[tuple[str, int, str]] = set()
    files_checked = 0

    for path in iter_source_files(paths, config):
        if on_file is not None:
            on_file(path)
        source = scan_file(path)
        files_checked += 1

        for rule in rules:
            for violation in rule.check(source, config):
                if violation.kind not in enabled:
                    continue
                if source.is_suppressed(violation.kind, violation.line_no):
                    continue
                key = (str(violation.file), violation.line_no, violation.kind)
                if key in seen:
                    continue
                seen.add(key)
                override = config["severity"].get(violation.kind)
                if override is not None:
                    violation = violation._replace(severity=override)
                violations.append(violation)
                counts[rule.name] += 1

    violations.sort(key=lambda v: (str(v.file), v.line_no, v.kind))
    reports = [RuleReport(name=name, violations=count) for name, count in counts.items()]
    return CheckResult(files_checked=files_checked, violations=violations, reports=reports)


def failing_violations(result: CheckResult, fail_on: Severity) -> list[Violation]:
    """Return violations at or above the fail_on severity."""
    threshold = SEVERITY_RANK[fail_on]
    return [v for v in result.violations if SEVERITY_RANK[v.severity] >= threshold]


def exit_code(result: CheckResult, fail_on: Severity) -> int:
    """Map a result to the process exit code (0 clean, 2 violations)."""
    return 2 if failing_violations(result, fail_on) else 0


__all__ = ["CheckResult", "check_paths", "exit_code", "failing_violations", "iter_source_files"]
