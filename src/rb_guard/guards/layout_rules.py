"""Guard rules for source layout.

Violations:
- layout-tab-indent: indentation contains tab characters
- layout-indent-width: indentation is not a multiple of the indent width
- layout-trailing-whitespace: line ends with spaces or tabs
- layout-operator-spacing: binary or assignment operator not surrounded by spaces (`a+b`, `x<y`)
- layout-line-length: line exceeds max_line_length
"""

from __future__ import annotations

import re
from typing import ClassVar

from rb_guard.config import GuardConfig
from rb_guard.guards import RuleSpec, Violation, make_violation
from rb_guard.scanner import MASK, SourceFile, SourceLine

TAB_INDENT = RuleSpec(
    kind="layout-tab-indent",
    description="Use spaces for indentation, not tabs",
    severity="error",
    category="layout",
)
INDENT_WIDTH = RuleSpec(
    kind="layout-indent-width",
    description="Indent with two spaces per level",
    severity="warning",
    category="layout",
)
TRAILING_WHITESPACE = RuleSpec(
    kind="layout-trailing-whitespace",
    description="Remove trailing whitespace",
    severity="convention",
    category="layout",
)
OPERATOR_SPACING = RuleSpec(
    kind="layout-operator-spacing",
    description="Surround operators with spaces",
    severity="convention",
    category="layout",
)
LINE_LENGTH = RuleSpec(
    kind="layout-line-length",
    description="Keep lines short",
    severity="convention",
    category="layout",
)

_OPERATOR = re.compile(
    r"<=>|===|<<=|>>=|\*\*=|\|\|=|&&=|==|!=|=~|!~|<=|>=|\+=|-=|\*=|/=|%=|\|=|&=|\^=|=>|->|&&|\|\|"
    r"|\*\*|<<|>>|=|<|>|\+|-|\*|/|%|&|\||\^"
)
# operator method definitions and symbols such as `def name=(v)` or `:==`
_OPERATOR_NAME_PREFIX = re.compile(r"(\bdef\s+(self\.)?[\w.]*|:)$")
# `->` lambdas and the exponent operator are written without spaces
_UNSPACED_OPERATORS = frozenset({"->", "**"})
# operators that double as unary or splat prefixes: -x, *args, &blk, <<~SQL
_PREFIX_OPERATORS = frozenset({"+", "-", "*", "&", "/", "%", "<<"})
_OPERAND_END = re.compile(r"[\w)\]}\"'`]$")
_BLOCK_PARAMS = re.compile(r"((?:\bdo|\{)\s*)(\|[^|]*\|)")
_EXPONENT = re.compile(r"\d[eE]$")
_CLASS_HEADER = re.compile(r"^\s*class\s+[\w:]+\s*$")

_CONTINUATION_ENDINGS = (",", "\\", "(", "[", "{", ".", "+", "-", "*", "/", "&&", "||", "=", ":")
_OPEN_BRACKETS = "([{"
_CLOSE_BRACKETS = ")]}"


def _bracket_delta(code: str) -> int:
    return sum(code.count(ch) for ch in _OPEN_BRACKETS) - sum(code.count(ch) for ch in _CLOSE_BRACKETS)


def _is_prefix_use(text: str, start: int, end: int) -> bool:
    """Check if the operator at start..end is a unary/splat prefix rather than binary."""
    if _OPERAND_END.search(text[:start].rstrip()) is None:
        return True
    # `foo -1`, `puts *items`: spaced before, attached to the operand after
    return text[start - 1] in " \t" and text[end : end + 1] not in ("", " ", "\t")


def _find_operator_gap(code: str) -> str | None:
    """Return the first binary or assignment operator in code missing a surrounding space."""
    text = _BLOCK_PARAMS.sub(lambda m: m.group(1) + MASK * len(m.group(2)), code.rstrip())
    for match in _OPERATOR.finditer(text):
        op = match.group(0)
        start, end = match.span()
        if op in _UNSPACED_OPERATORS or _OPERATOR_NAME_PREFIX.search(text[:start]) is not None:
            continue
        if op == "&" and text[end : end + 1] == ".":
            continue
        if op in _PREFIX_OPERATORS and _is_prefix_use(text, start, end):
            continue
        if op in ("+", "-") and _EXPONENT.search(text[:start]) is not None:
            continue
        if op == "<" and _CLASS_HEADER.match(text[:start]) is not None:
            continue
        before_ok = start == 0 or text[start - 1] in " \t"
        after_ok = end == len(text) or text[end] in " \t"
        if not (before_ok and after_ok):
            return op
    return None


class LayoutRule:
    """Guard rule for indentation, whitespace and operator spacing."""

    name = "layout"
    specs: ClassVar[tuple[RuleSpec, ...]] = (
        TAB_INDENT,
        INDENT_WIDTH,
        TRAILING_WHITESPACE,
        OPERATOR_SPACING,
        LINE_LENGTH,
    )

    def check(self, source: SourceFile, config: GuardConfig) -> list[Violation]:
        if source.language != "ruby":
            return []

        out: list[Violation] = []
        width = config["indent_width"]
        max_len = config["max_line_length"]
        depth = 0
        continued = False

        for line in source.lines:
            if len(line.text) > max_len:
                out.append(
                    make_violation(
                        source,
                        LINE_LENGTH,
                        line.line_no,
                        f"Line is {len(line.text)} characters (max {max_len})",
                    )
                )
            if line.kind in ("heredoc", "doc"):
                continue

            if line.text != line.text.rstrip(" \t"):
                out.append(make_violation(source, TRAILING_WHITESPACE, line.line_no))

            leading = line.text[: line.indent]
            if "\t" in leading:
                out.append(make_violation(source, TAB_INDENT, line.line_no))
            elif (
                line.kind in ("code", "comment")
                and depth == 0
                and not continued
                and not line.code.lstrip().startswith(".")
                and line.indent % width != 0
            ):
                out.append(
                    make_violation(
                        source,
                        INDENT_WIDTH,
                        line.line_no,
                        f"Indentation of {line.indent} is not a multiple of {width}",
                    )
                )

            if line.kind != "code":
                continue

            op = _find_operator_gap(line.code)
            if op is not None:
                out.append(
                    make_violation(source, OPERATOR_SPACING, line.line_no, f"Surround `{op}` with spaces")
                )

            depth = max(0, depth + _bracket_delta(line.code))
            continued = self._is_continued(line)

        return out

    def _is_continued(self, line: SourceLine) -> bool:
        """Check if the next line continues this statement."""
        stripped = line.code.rstrip()
        return stripped.endswith(_CONTINUATION_ENDINGS)


__all__ = [
    "INDENT_WIDTH",
    "LINE_LENGTH",
    "OPERATOR_SPACING",
    "TAB_INDENT",
    "TRAILING_WHITESPACE",
    "LayoutRule",
]
