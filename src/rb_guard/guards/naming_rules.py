"""Guard rules for naming conventions.

Violations:
- naming-method-snake-case: `def fooBar`
- naming-variable-snake-case: `fooBar = 1`, `@fooBar = 1`, `def f(someArg)`
- naming-class-camel-case: `class Foo_bar`, `module foo`
- naming-constant-screaming: `MaxSize = 10` instead of `MAX_SIZE = 10`
- naming-predicate-prefix: `def is_valid` / `def can_edit` instead of `def valid?`
"""

from __future__ import annotations

import re
from typing import ClassVar

from rb_guard.config import GuardConfig
from rb_guard.guards import RuleSpec, Violation, make_violation
from rb_guard.scanner import SourceFile, SourceLine

METHOD_SNAKE_CASE = RuleSpec(
    kind="naming-method-snake-case",
    description="Use snake_case for method names",
    severity="warning",
    category="naming",
)
VARIABLE_SNAKE_CASE = RuleSpec(
    kind="naming-variable-snake-case",
    description="Use snake_case for variable names",
    severity="warning",
    category="naming",
)
CLASS_CAMEL_CASE = RuleSpec(
    kind="naming-class-camel-case",
    description="Use CamelCase for classes and modules",
    severity="warning",
    category="naming",
)
CONSTANT_SCREAMING = RuleSpec(
    kind="naming-constant-screaming",
    description="Use SCREAMING_SNAKE_CASE for constants",
    severity="convention",
    category="naming",
)
PREDICATE_PREFIX = RuleSpec(
    kind="naming-predicate-prefix",
    description="Name predicate methods with a trailing question mark, not an is_/has_/can_ prefix",
    severity="convention",
    category="naming",
)

_DEF = re.compile(r"^\s*def\s+(?:self\.)?([A-Za-z_]\w*[?!=]?)\s*(?:\((.*?)\))?")
_ASSIGNMENT = re.compile(r"^\s*(@{0,2}[a-z_]\w*)\s*(?:\|\||&&|[-+*/])?=(?![=~>])")
_CLASS = re.compile(r"^\s*(class|module)\s+(?!<<)([A-Za-z_][\w:]*)")
_CONSTANT = re.compile(r"^\s*([A-Z]\w*)\s*(?:\|\|)?=(?![=~>])\s*(.*)$")
_PREDICATE = re.compile(r"^(?:is|has|have|can)_(\w+?)\??$")

_CAMEL_SEGMENT = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_SCREAMING = re.compile(r"^[A-Z][A-Z0-9_]*$")
_CLASS_LIKE_VALUE = re.compile(r"^(?:Struct\.new|Class\.new|Module\.new|Data\.define)\b")
_PARAM_NAME = re.compile(r"^[*&]{0,2}([A-Za-z_]\w*)")


def _has_upper(name: str) -> bool:
    return any(ch.isupper() for ch in name)


class NamingRule:
    """Guard rule for snake_case / CamelCase / SCREAMING_SNAKE_CASE names."""

    name = "naming"
    specs: ClassVar[tuple[RuleSpec, ...]] = (
        METHOD_SNAKE_CASE,
        VARIABLE_SNAKE_CASE,
        CLASS_CAMEL_CASE,
        CONSTANT_SCREAMING,
        PREDICATE_PREFIX,
    )

    def check(self, source: SourceFile, config: GuardConfig) -> list[Violation]:
        if source.language != "ruby":
            return []

        out: list[Violation] = []
        for line in source.lines:
            if line.kind != "code":
                continue
            out.extend(self._check_def(source, line))
            out.extend(self._check_assignment(source, line))
            out.extend(self._check_class(source, line))
        return out

    def _check_def(self, source: SourceFile, line: SourceLine) -> list[Violation]:
        match = _DEF.match(line.code)
        if match is None:
            return []

        violations: list[Violation] = []
        method_name = match.group(1)
        if _has_upper(method_name):
            violations.append(
                make_violation(
                    source,
                    METHOD_SNAKE_CASE,
                    line.line_no,
                    f"Method `{method_name}` is not snake_case",
                )
            )

        predicate = _PREDICATE.match(method_name)
        if predicate is not None:
            violations.append(
                make_violation(
                    source,
                    PREDICATE_PREFIX,
                    line.line_no,
                    f"Rename `{method_name}` to `{predicate.group(1)}?`",
                )
            )

        params = match.group(2)
        if params:
            for raw in params.split(","):
                param = _PARAM_NAME.match(raw.strip())
                if param is not None and _has_upper(param.group(1)):
                    violations.append(
                        make_violation(
                            source,
                            VARIABLE_SNAKE_CASE,
                            line.line_no,
                            f"Parameter `{param.group(1)}` is not snake_case",
                        )
                    )
        return violations

    def _check_assignment(self, source: SourceFile, line: SourceLine) -> list[Violation]:
        match = _ASSIGNMENT.match(line.code)
        if match is not None:
            name = match.group(1)
            if _has_upper(name):
                return [
                    make_violation(
                        source,
                        VARIABLE_SNAKE_CASE,
                        line.line_no,
                        f"Variable `{name}` is not snake_case",
                    )
                ]
            return []

        constant = _CONSTANT.match(line.code)
        if constant is None:
            return []
        name, value = constant.group(1), constant.group(2)
        if _SCREAMING.match(name) or _CLASS_LIKE_VALUE.match(value):
            return []
        return [
            make_violation(
                source,
                CONSTANT_SCREAMING,
                line.line_no,
                f"Constant `{name}` is not SCREAMING_SNAKE_CASE",
            )
        ]

    def _check_class(self, source: SourceFile, line: SourceLine) -> list[Violation]:
        match = _CLASS.match(line.code)
        if match is None:
            return []
        keyword, name = match.group(1), match.group(2)
        segments = [part for part in name.split("::") if part]
        if all(_CAMEL_SEGMENT.match(part) for part in segments):
            return []
        return [
            make_violation(
                source,
                CLASS_CAMEL_CASE,
                line.line_no,
                f"{keyword.capitalize()} `{name}` is not CamelCase",
            )
        ]


__all__ = [
    "CLASS_CAMEL_CASE",
    "CONSTANT_SCREAMING",
    "METHOD_SNAKE_CASE",
    "PREDICATE_PREFIX",
    "VARIABLE_SNAKE_CASE",
    "NamingRule",
]
