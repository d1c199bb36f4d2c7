"""Guard rules for conditional expressions.

Violations:
- cond-unless-else: `unless` with an `else` branch
- cond-if-negation: `if !x` instead of `unless x`
- cond-unless-negation: `unless !x` instead of `if x`
- cond-multiline-then: `then` on a multi-line conditional
- cond-nested-ternary: ternary inside a ternary
- cond-prefer-ternary: if/else with a single statement per branch
- cond-guard-clause: whole method body wrapped in one conditional
- cond-nil-chain: `x && x.foo` instead of `x&.foo`
- cond-negated-nil-check: `!x.nil?` or `x != nil` in a condition
"""

from __future__ import annotations

import re
from typing import ClassVar

from rb_guard.config import GuardConfig
from rb_guard.guards import RuleSpec, Violation, make_violation
from rb_guard.scanner import Block, SourceFile, SourceLine

UNLESS_ELSE = RuleSpec(
    kind="cond-unless-else",
    description="Do not use unless with else; rewrite with the positive case first",
    severity="warning",
    category="conditionals",
)
IF_NEGATION = RuleSpec(
    kind="cond-if-negation",
    description="Favor unless over if for negative conditions",
    severity="convention",
    category="conditionals",
)
UNLESS_NEGATION = RuleSpec(
    kind="cond-unless-negation",
    description="Do not negate an unless condition; use if",
    severity="warning",
    category="conditionals",
)
MULTILINE_THEN = RuleSpec(
    kind="cond-multiline-then",
    description="Never use then for multi-line conditionals",
    severity="convention",
    category="conditionals",
)
NESTED_TERNARY = RuleSpec(
    kind="cond-nested-ternary",
    description="Do not nest ternary operators; use if/else",
    severity="warning",
    category="conditionals",
)
PREFER_TERNARY = RuleSpec(
    kind="cond-prefer-ternary",
    description="Use the ternary operator for trivial if/else",
    severity="convention",
    category="conditionals",
)
GUARD_CLAUSE = RuleSpec(
    kind="cond-guard-clause",
    description="Use a guard clause instead of wrapping the method body in a conditional",
    severity="convention",
    category="conditionals",
)
NIL_CHAIN = RuleSpec(
    kind="cond-nil-chain",
    description="Use safe navigation instead of a defensive nil chain",
    severity="convention",
    category="conditionals",
)
NEGATED_NIL_CHECK = RuleSpec(
    kind="cond-negated-nil-check",
    description="Do not write explicit non-nil checks in conditions",
    severity="convention",
    category="conditionals",
)

_IF_CONDITION = re.compile(r"\bif\s+(.*)$")
_NEGATED = re.compile(r"^(?:!(?!=)|not\s)")
_COMPOUND = re.compile(r"&&|\|\||\band\b|\bor\b")
_UNLESS_NEGATED = re.compile(r"\bunless\s+(?:!(?!=)|not\s)")
_MULTILINE_THEN = re.compile(r"^\s*(if|unless|elsif|when)\b.*\bthen\s*$")
_TERNARY = re.compile(r"\s\?\s")
_NIL_CHAIN = re.compile(r"(?<![\w@.:])(@{0,2}[a-z_]\w*)\s*&&\s*\1\.(?!nil\?)\w")
_NON_NIL_CHECK = re.compile(
    r"(?:\b(?:if|elsif|while|until)\s+|&&\s*|\|\|\s*)(?:!\s*[@\w.]+\.nil\?|[@\w.]+\s*!=\s*nil\b)"
)
_TRAILING_THEN = re.compile(r"\s+then\s*$")


def _next_code_line(source: SourceFile, after: int) -> SourceLine | None:
    """Return the first code line after line number ``after``."""
    for line in source.lines[after:]:
        if line.kind == "code":
            return line
    return None


def _opens_at_line_start(source: SourceFile, block: Block) -> bool:
    return source.line(block.start).code.lstrip().startswith(block.keyword)


class ConditionalRule:
    """Guard rule for conditional style."""

    name = "conditionals"
    specs: ClassVar[tuple[RuleSpec, ...]] = (
        UNLESS_ELSE,
        IF_NEGATION,
        UNLESS_NEGATION,
        MULTILINE_THEN,
        NESTED_TERNARY,
        PREFER_TERNARY,
        GUARD_CLAUSE,
        NIL_CHAIN,
        NEGATED_NIL_CHECK,
    )

    def check(self, source: SourceFile, config: GuardConfig) -> list[Violation]:
        if source.language != "ruby":
            return []

        out: list[Violation] = []
        blocks_by_start: dict[int, list[Block]] = {}
        for block in source.blocks:
            blocks_by_start.setdefault(block.start, []).append(block)

        for line in source.lines:
            if line.kind != "code":
                continue
            out.extend(self._check_line(source, line, blocks_by_start.get(line.line_no, [])))

        out.extend(self._check_blocks(source))
        return out

    def _check_line(self, source: SourceFile, line: SourceLine, blocks: list[Block]) -> list[Violation]:
        violations: list[Violation] = []
        code = line.code

        if self._is_simple_negated_if(code, blocks):
            violations.append(make_violation(source, IF_NEGATION, line.line_no))
        if _UNLESS_NEGATED.search(code):
            violations.append(make_violation(source, UNLESS_NEGATION, line.line_no))
        if _MULTILINE_THEN.match(code):
            violations.append(make_violation(source, MULTILINE_THEN, line.line_no))
        if len(_TERNARY.findall(code)) >= 2:
            violations.append(make_violation(source, NESTED_TERNARY, line.line_no))

        chain = _NIL_CHAIN.search(code)
        if chain is not None:
            name = chain.group(1)
            violations.append(
                make_violation(
                    source,
                    NIL_CHAIN,
                    line.line_no,
                    f"Use `{name}&.` instead of `{name} && {name}.`",
                )
            )
        if _NON_NIL_CHECK.search(code):
            violations.append(make_violation(source, NEGATED_NIL_CHECK, line.line_no))
        return violations

    def _is_simple_negated_if(self, code: str, blocks: list[Block]) -> bool:
        """Check for `if !x` with a single negated term and no else branch."""
        match = _IF_CONDITION.search(code)
        if match is None:
            return False
        condition = _TRAILING_THEN.sub("", match.group(1)).strip()
        if not _NEGATED.match(condition) or _COMPOUND.search(condition):
            return False
        # `if !x.nil?` is reported as a non-nil check instead
        if condition.endswith(".nil?"):
            return False
        return not any(block.keyword == "if" and block.branches for block in blocks)

    def _check_blocks(self, source: SourceFile) -> list[Violation]:
        violations: list[Violation] = []
        for index, block in enumerate(source.blocks):
            if block.keyword == "unless" and any(name == "else" for name, _ in block.branches):
                violations.append(make_violation(source, UNLESS_ELSE, block.start))
            if block.keyword == "if" and self._is_trivial_if_else(source, block):
                violations.append(make_violation(source, PREFER_TERNARY, block.start))
            if block.keyword == "def":
                wrapped = self._wrapping_conditional(source, index, block)
                if wrapped is not None:
                    violations.append(
                        make_violation(
                            source,
                            GUARD_CLAUSE,
                            wrapped.start,
                            f"Replace the wrapping `{wrapped.keyword}` with a guard clause",
                        )
                    )
        return violations

    def _is_trivial_if_else(self, source: SourceFile, block: Block) -> bool:
        """Check for the five-line if/stmt/else/stmt/end shape."""
        if block.end is None or block.end - block.start != 4:
            return False
        if block.branches != (("else", block.start + 2),):
            return False
        if _TERNARY.search(source.line(block.start).code):
            return False
        starts = {b.start for b in source.blocks}
        for line_no in (block.start + 1, block.start + 3):
            body = source.line(line_no)
            if body.kind != "code" or ";" in body.code or line_no in starts:
                return False
        return True

    def _wrapping_conditional(self, source: SourceFile, index: int, method: Block) -> Block | None:
        """Return the if/unless that wraps the entire body of method, if any."""
        if method.end is None:
            return None
        first = _next_code_line(source, method.start)
        if first is None or first.line_no >= method.end:
            return None
        for child in source.blocks:
            if child.parent != index or child.start != first.line_no:
                continue
            if child.keyword not in ("if", "unless") or child.branches or child.end is None:
                return None
            if not _opens_at_line_start(source, child):
                return None
            after = _next_code_line(source, child.end)
            if after is not None and after.line_no == method.end:
                return child
            return None
        return None


__all__ = [
    "GUARD_CLAUSE",
    "IF_NEGATION",
    "MULTILINE_THEN",
    "NEGATED_NIL_CHECK",
    "NESTED_TERNARY",
    "NIL_CHAIN",
    "PREFER_TERNARY",
    "UNLESS_ELSE",
    "UNLESS_NEGATION",
    "ConditionalRule",
]
