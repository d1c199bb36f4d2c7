"""Catalogue of all guard rules and rule-id selection."""

from __future__ import annotations

from collections.abc import Sequence

from rb_guard._types import Severity
from rb_guard.config import ConfigError
from rb_guard.guards import Rule, RuleSpec
from rb_guard.guards.conditional_rules import ConditionalRule
from rb_guard.guards.doc_rules import DocRule
from rb_guard.guards.layout_rules import LayoutRule
from rb_guard.guards.naming_rules import NamingRule
from rb_guard.guards.query_rules import QueryRule


def all_rules() -> list[Rule]:
    """Instantiate every rule group in reporting order."""
    return [LayoutRule(), ConditionalRule(), NamingRule(), QueryRule(), DocRule()]


def all_specs() -> list[RuleSpec]:
    """Return every rule id in catalogue order.

    Raises:
        RuntimeError: If two rule groups declare the same id.
    """
    specs: list[RuleSpec] = []
    seen: set[str] = set()
    for rule in all_rules():
        for spec in rule.specs:
            if spec.kind in seen:
                raise RuntimeError(f"duplicate rule id {spec.kind!r} in {rule.name}")
            seen.add(spec.kind)
            specs.append(spec)
    return specs


def spec_for(kind: str) -> RuleSpec:
    """Look up a rule id.

    Raises:
        ConfigError: If the id is unknown.
    """
    for spec in all_specs():
        if spec.kind == kind:
            return spec
    raise ConfigError(f"Unknown rule id: {kind}")


def _matches(pattern: str, spec: RuleSpec) -> bool:
    """Match a rule id, an id prefix (``layout`` or ``layout-``) or a category."""
    if pattern in (spec.kind, spec.category):
        return True
    prefix = pattern if pattern.endswith("-") else f"{pattern}-"
    return spec.kind.startswith(prefix)


def _expand(patterns: Sequence[str], specs: list[RuleSpec], key: str) -> set[str]:
    kinds: set[str] = set()
    for pattern in patterns:
        matched = {spec.kind for spec in specs if _matches(pattern, spec)}
        if not matched:
            raise ConfigError(f"{key}: no rule matches {pattern!r}")
        kinds.update(matched)
    return kinds


def select_specs(select: Sequence[str], ignore: Sequence[str]) -> frozenset[str]:
    """Resolve select/ignore patterns into the set of enabled rule ids.

    An empty select enables every rule.

    Raises:
        ConfigError: If a pattern matches no rule.
    """
    specs = all_specs()
    enabled = _expand(select, specs, "select") if select else {spec.kind for spec in specs}
    return frozenset(enabled - _expand(ignore, specs, "ignore"))


def validate_overrides(overrides: dict[str, Severity]) -> None:
    """Check that every severity override names a known rule id."""
    for kind in overrides:
        spec_for(kind)


__all__ = ["all_rules", "all_specs", "select_specs", "spec_for", "validate_overrides"]
