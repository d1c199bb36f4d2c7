"""Guard rules for ActiveRecord query idioms.

These rules match call shapes textually; they cannot know whether the
receiver is really a model, so they only fire on the distinctive chains
the Rails style guide calls out.

Violations:
- query-where-id-first: `where(id: x).first` instead of `find(x)`
- query-where-first: `where(...).first` instead of `find_by(...)`
- query-sql-interpolation: `where("name = '#{name}'")` instead of bound params
- query-negated-where: `where("status != ?", x)` instead of `where.not(...)`
- query-all-each: `Model.all.each` instead of `Model.find_each`
- view-database-query: model query inside an ERB view
"""

from __future__ import annotations

import re
from typing import ClassVar

from rb_guard.config import GuardConfig
from rb_guard.guards import RuleSpec, Violation, make_violation
from rb_guard.scanner import SourceFile, SourceLine

WHERE_ID_FIRST = RuleSpec(
    kind="query-where-id-first",
    description="Use find(id) instead of where(id: id).first",
    severity="convention",
    category="queries",
)
WHERE_FIRST = RuleSpec(
    kind="query-where-first",
    description="Use find_by(...) instead of where(...).first",
    severity="convention",
    category="queries",
)
SQL_INTERPOLATION = RuleSpec(
    kind="query-sql-interpolation",
    description="Never interpolate values into SQL fragments; use bound parameters",
    severity="error",
    category="queries",
)
NEGATED_WHERE = RuleSpec(
    kind="query-negated-where",
    description="Use where.not(...) instead of a negated SQL fragment",
    severity="convention",
    category="queries",
)
ALL_EACH = RuleSpec(
    kind="query-all-each",
    description="Use find_each to iterate over large collections",
    severity="warning",
    category="queries",
)
VIEW_QUERY = RuleSpec(
    kind="view-database-query",
    description="Do not query the database from views; load records in the controller",
    severity="warning",
    category="queries",
)

_WHERE_ID_FIRST = re.compile(r"\.where\(\s*(?::id\s*=>|id:)\s*([^,)]*)\)\.(?:first|take)\b(?![!?_])")
_WHERE_FIRST = re.compile(r"\.where\(([^)]*)\)\.(?:first|take)\b(?![!?_])")
_SQL_INTERPOLATION = re.compile(
    r"\.(?:where|having|order|reorder|group|joins|select|pluck|from|lock|"
    r"find_by_sql|count_by_sql|exists\?|update_all|delete_all)"
    r"\(\s*(?:\"|%Q?[({\[])[^\"]*?#\{"
)
_NEGATED_WHERE = re.compile(
    r"\.where\(\s*[\"'][^\"']*?(?:!=|<>|\bNOT\s+IN\b|\bIS\s+NOT\s+NULL\b)",
    re.IGNORECASE,
)
_ALL_EACH = re.compile(r"\.all\.each\b(?![_?!])")
_ERB_TAG = re.compile(r"<%(?!#)=?-?(.*?)(?:-?%>|$)")
_MODEL_QUERY = re.compile(
    r"\b[A-Z]\w*(?:::[A-Z]\w*)*\.(?:all|where|find|find_by|find_each|order|joins|includes|count|pluck)\b"
)


def _raw_code(line: SourceLine) -> str:
    """Return the original text of the line without its trailing comment.

    Masking preserves column positions, so the code length marks where the
    comment starts.
    """
    return line.text[: len(line.code)]


class QueryRule:
    """Guard rule for ActiveRecord query idioms in models, controllers and views."""

    name = "queries"
    specs: ClassVar[tuple[RuleSpec, ...]] = (
        WHERE_ID_FIRST,
        WHERE_FIRST,
        SQL_INTERPOLATION,
        NEGATED_WHERE,
        ALL_EACH,
        VIEW_QUERY,
    )

    def check(self, source: SourceFile, config: GuardConfig) -> list[Violation]:
        if source.language == "markdown":
            return []

        out: list[Violation] = []
        for line in source.lines:
            if line.kind != "code":
                continue
            if source.language == "erb":
                segments = [match.group(1) for match in _ERB_TAG.finditer(line.text)]
                if not segments:
                    continue
                text = " ".join(segments)
                if any(_MODEL_QUERY.search(segment) for segment in segments):
                    out.append(make_violation(source, VIEW_QUERY, line.line_no))
            else:
                text = _raw_code(line)
            out.extend(self._check_text(source, line.line_no, text))
        return out

    def _check_text(self, source: SourceFile, line_no: int, text: str) -> list[Violation]:
        violations: list[Violation] = []

        id_first = _WHERE_ID_FIRST.search(text)
        if id_first is not None:
            violations.append(
                make_violation(
                    source,
                    WHERE_ID_FIRST,
                    line_no,
                    f"Use find({id_first.group(1).strip()}) instead of where(id: ...).first",
                )
            )
        elif _WHERE_FIRST.search(text):
            violations.append(make_violation(source, WHERE_FIRST, line_no))

        if _SQL_INTERPOLATION.search(text):
            violations.append(make_violation(source, SQL_INTERPOLATION, line_no))
        if _NEGATED_WHERE.search(text):
            violations.append(make_violation(source, NEGATED_WHERE, line_no))
        if _ALL_EACH.search(text):
            violations.append(make_violation(source, ALL_EACH, line_no))
        return violations


__all__ = [
    "ALL_EACH",
    "NEGATED_WHERE",
    "SQL_INTERPOLATION",
    "VIEW_QUERY",
    "WHERE_FIRST",
    "WHERE_ID_FIRST",
    "QueryRule",
]
