"""Guard rules for enforcing the Ruby/Rails style guide.

This module provides a modular guard system with reusable rule definitions.
Each rule class owns a group of rule ids (``RuleSpec``) and reports
``Violation`` tuples for a scanned ``SourceFile``.
"""

from __future__ import annotations

from pathlib import Path
from typing import NamedTuple, Protocol

from rb_guard._types import Severity
from rb_guard.config import GuardConfig
from rb_guard.scanner import SourceFile
from rb_guard.util import strip_evidence


class RuleSpec(NamedTuple):
    """Catalogue entry for a single rule id."""

    kind: str
    description: str
    severity: Severity
    category: str


class Violation(NamedTuple):
    """A single guard violation."""

    file: Path
    line_no: int
    kind: str
    line: str
    severity: Severity
    message: str


class RuleReport(NamedTuple):
    """Summary of violations for a rule."""

    name: str
    violations: int


class Rule(Protocol):
    """Protocol for guard rules."""

    @property
    def name(self) -> str: ...

    @property
    def specs(self) -> tuple[RuleSpec, ...]: ...

    def check(self, source: SourceFile, config: GuardConfig) -> list[Violation]: ...


def make_violation(
    source: SourceFile,
    spec: RuleSpec,
    line_no: int,
    message: str | None = None,
) -> Violation:
    """Build a violation for spec at line_no, using the line as evidence."""
    idx = line_no - 1
    text = source.lines[idx].text if 0 <= idx < len(source.lines) else ""
    return Violation(
        file=source.path,
        line_no=line_no,
        kind=spec.kind,
        line=strip_evidence(text),
        severity=spec.severity,
        message=message if message is not None else spec.description,
    )


__all__ = ["Rule", "RuleReport", "RuleSpec", "Violation", "make_violation"]
