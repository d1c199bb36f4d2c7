"""Reporters for checker results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TypedDict

from rb_guard._console import (
    log_failure,
    log_header,
    log_info,
    log_raw,
    log_rule_count,
    log_rule_spec,
    log_subheader,
    log_success,
    log_violation,
)
from rb_guard._types import Severity
from rb_guard.engine import CheckResult, failing_violations
from rb_guard.guards import RuleSpec, Violation


class ViolationJson(TypedDict):
    """Schema for one violation in JSON output."""

    file: str
    line: int
    rule: str
    severity: Severity
    message: str
    evidence: str


class ReportJson(TypedDict):
    """Schema for the JSON report."""

    files_checked: int
    passed: bool
    fail_on: Severity
    summary: dict[str, int]
    violations: list[ViolationJson]


def display_path(path: Path, root: Path) -> str:
    """Show path relative to root when it lives under it."""
    resolved = path.resolve()
    root_resolved = root.resolve()
    if resolved.is_relative_to(root_resolved):
        return resolved.relative_to(root_resolved).as_posix()
    return path.as_posix()


def _to_json(violation: Violation, root: Path) -> ViolationJson:
    return {
        "file": display_path(violation.file, root),
        "line": violation.line_no,
        "rule": violation.kind,
        "severity": violation.severity,
        "message": violation.message,
        "evidence": violation.line,
    }


def build_report(result: CheckResult, root: Path, fail_on: Severity) -> ReportJson:
    """Build the JSON-serialisable report."""
    return {
        "files_checked": result.files_checked,
        "passed": not failing_violations(result, fail_on),
        "fail_on": fail_on,
        "summary": {rep.name: rep.violations for rep in result.reports},
        "violations": [_to_json(v, root) for v in result.violations],
    }


def render_json(result: CheckResult, root: Path, fail_on: Severity) -> None:
    """Print the report as JSON."""
    log_raw(json.dumps(build_report(result, root, fail_on), indent=2))


def render_text(result: CheckResult, root: Path, fail_on: Severity) -> None:
    """Print the per-rule summary, violations and the final verdict."""
    log_info(f"Checked {result.files_checked} files")
    log_subheader("Guard rule summary:")
    for rep in result.reports:
        log_rule_count(rep.name, rep.violations)

    if result.violations:
        log_subheader("Violations:")
        for v in result.violations:
            location = f"{display_path(v.file, root)}:{v.line_no}"
            log_violation(location, v.severity, v.kind, v.message, v.line)

    failing = failing_violations(result, fail_on)
    if failing:
        log_failure(f"Guard checks failed: {len(failing)} violations at or above {fail_on}.")
        return
    if result.violations:
        log_success(f"Guard checks passed: {len(result.violations)} violations below {fail_on}.")
        return
    log_success("Guard checks passed: no violations found.")


def render_rules(specs: list[RuleSpec], as_json: bool) -> None:
    """Print the rule catalogue."""
    if as_json:
        log_raw(json.dumps([spec._asdict() for spec in specs], indent=2))
        return
    log_header("rb-guard rules")
    category = ""
    for spec in specs:
        if spec.category != category:
            category = spec.category
            log_subheader(f"{category}:")
        log_rule_spec(spec.kind, spec.severity, spec.description)


__all__ = ["build_report", "display_path", "render_json", "render_rules", "render_text"]
