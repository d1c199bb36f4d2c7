"""Source scanner for Ruby, ERB and Markdown files.

The scanner turns raw text into per-line records that rules can match
against without tripping over string literals or comments:

- ``code`` is the line with string contents masked and the comment removed
- ``comment`` is the trailing ``#`` comment, if any
- heredoc bodies and ``=begin``/``=end`` blocks are classified separately

For Ruby files it also builds a flat block tree of keyword blocks
(``if``/``unless``/``def``/``do``/... closed by ``end``).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal, NamedTuple

from rb_guard.util import read_lines

Language = Literal["ruby", "erb", "markdown"]
LineKind = Literal["code", "blank", "comment", "heredoc", "doc"]

MASK = "x"

_QUOTES = frozenset("'\"`")
_INTERPOLATING = frozenset('"`')

_HEREDOC_OPEN = re.compile(r"<<([~-]?)(['\"`]?)([A-Z_][A-Z0-9_]*)\2")
_SUPPRESS = re.compile(r"rbguard:(disable(?:-file)?)=([\w-]+(?:\s*,\s*[\w-]+)*)")
_HTML_COMMENT = re.compile(r"<!--(.*?)-->")
_ERB_COMMENT = re.compile(r"<%#(.*?)%>")
_CODE_SPAN = re.compile(r"`[^`]*`")
_MARKDOWN_FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
_PERCENT_LITERAL = re.compile(r"%([qQwWiIrsx]?)([^\w\s])")
_BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_PLAIN_PERCENT_KINDS = frozenset("qwis")
_OPERAND_PRECEDERS = frozenset("(,=+-*/%<>!&|^~?:;[{")
_TRAILING_WORD = re.compile(r"[A-Za-z_]\w*[?!]?$")
_VALUE_KEYWORDS = frozenset(
    {
        "and",
        "case",
        "elsif",
        "if",
        "in",
        "not",
        "or",
        "return",
        "then",
        "unless",
        "until",
        "when",
        "while",
        "yield",
    }
)

_OPENER_START = re.compile(r"^\s*(if|unless|while|until|case|def|class|module|begin|for)\b(?![?!:])")
_OPENER_INLINE = re.compile(r"[=(]\s*(if|unless|case|begin|while|until)\b(?![?!:])")
_ENDLESS_DEF = re.compile(r"^\s*def\s+[\w.]+[?!]?(\([^)]*\))?\s*=\s")
_DO = re.compile(r"\bdo\b(\s*\|[^|]*\|)?\s*$")
_END = re.compile(r"(?<![.:\w@$])end\b(?![?!:])")
_BRANCH = re.compile(r"^\s*(else|elsif|when|in|rescue|ensure)\b(?![?!:])")

_LOOP_KEYWORDS = frozenset({"while", "until", "for"})


class SourceLine(NamedTuple):
    """A single scanned line."""

    line_no: int
    text: str
    code: str
    comment: str
    indent: int
    kind: LineKind


class Block(NamedTuple):
    """A keyword block closed by ``end``.

    ``end`` is None when the file ends before the block is closed.
    ``parent`` is the index of the enclosing block in ``SourceFile.blocks``.
    """

    keyword: str
    start: int
    end: int | None
    branches: tuple[tuple[str, int], ...]
    parent: int | None


class Suppressions(NamedTuple):
    """Inline ``rbguard:disable`` directives found in a file."""

    by_line: dict[int, frozenset[str]]
    file_wide: frozenset[str]


class SourceFile(NamedTuple):
    """A scanned file ready for rule matching."""

    path: Path
    language: Language
    lines: list[SourceLine]
    blocks: list[Block]
    suppressions: Suppressions

    def line(self, line_no: int) -> SourceLine:
        """Get the scanned line by 1-based line number."""
        return self.lines[line_no - 1]

    def is_suppressed(self, kind: str, line_no: int) -> bool:
        """Check whether an inline directive silences kind at line_no."""
        if kind in self.suppressions.file_wide or "all" in self.suppressions.file_wide:
            return True
        kinds = self.suppressions.by_line.get(line_no, frozenset())
        return kind in kinds or "all" in kinds


def detect_language(path: Path) -> Language:
    """Pick the scanning mode from the file extension."""
    suffix = path.suffix.lower()
    if suffix in (".md", ".markdown"):
        return "markdown"
    if suffix == ".erb":
        return "erb"
    return "ruby"


class _LineState:
    """Cross-line scanner state for Ruby sources."""

    def __init__(self) -> None:
        self.closer: str = ""
        self.opener: str = ""
        self.depth: int = 0
        self.interpolates: bool = False
        self.keep_delimiters: bool = True
        self.heredocs: list[str] = []
        self.in_doc: bool = False

    def open_literal(self, closer: str, opener: str, interpolates: bool, keep_delimiters: bool) -> None:
        self.closer = closer
        self.opener = opener
        self.depth = 0
        self.interpolates = interpolates
        self.keep_delimiters = keep_delimiters


def _skip_interpolation(text: str, start: int) -> int:
    """Return the index just past the ``}`` closing an interpolation at start."""
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return len(text)


def _expects_operand(prefix: str, next_char: str) -> bool:
    """Check whether a ``/`` or ``%`` after prefix starts a literal.

    Follows Ruby's own heuristic: after an operator, an opening bracket or
    a keyword a value is expected. After a method name, ``foo /x/`` is a
    literal argument while ``foo / x`` is a division.
    """
    stripped = prefix.rstrip()
    if not stripped:
        return True
    if stripped[-1] in _OPERAND_PRECEDERS:
        return True
    word = _TRAILING_WORD.search(stripped)
    if word is None or stripped[: word.start()].endswith(("@", "$")):
        return False
    if word.group(0) in _VALUE_KEYWORDS:
        return True
    spaced = len(prefix) > len(stripped)
    return spaced and next_char not in ("", " ", "\t", "=")


def _mask_ruby_line(text: str, state: _LineState) -> tuple[str, str]:
    """Mask literal contents and split off the comment of one line.

    Quoted strings keep their quotes. Regexp and ``%`` literals are masked
    whole, delimiters included.
    """
    out: list[str] = []
    comment = ""
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if state.closer:
            if ch == "\\":
                out.append(MASK * min(2, n - i))
                i += 2
                continue
            if state.interpolates and text.startswith("#{", i):
                stop = _skip_interpolation(text, i + 1)
                out.append(MASK * (stop - i))
                i = stop
                continue
            if state.opener and ch == state.opener:
                state.depth += 1
                out.append(MASK)
            elif ch == state.closer and state.depth:
                state.depth -= 1
                out.append(MASK)
            elif ch == state.closer:
                out.append(ch if state.keep_delimiters else MASK)
                state.closer = ""
            else:
                out.append(MASK)
            i += 1
            continue

        if ch == "#":
            comment = text[i:]
            break
        if ch == "<":
            match = _HEREDOC_OPEN.match(text, i)
            if match is not None:
                state.heredocs.append(match.group(3))
                out.append(match.group(0))
                i = match.end()
                continue
        if ch == "?" and i + 1 < n and text[i + 1] in _QUOTES and (i == 0 or text[i - 1] in " (,["):
            # character literal such as ?" or ?'
            out.append(ch + MASK)
            i += 2
            continue
        if ch in _QUOTES:
            state.open_literal(ch, "", ch in _INTERPOLATING, keep_delimiters=True)
            out.append(ch)
            i += 1
            continue
        next_char = text[i + 1] if i + 1 < n else ""
        if ch == "/" and _expects_operand("".join(out), next_char):
            state.open_literal("/", "", True, keep_delimiters=False)
            out.append(MASK)
            i += 1
            continue
        if ch == "%" and _expects_operand("".join(out), next_char):
            match = _PERCENT_LITERAL.match(text, i)
            if match is not None:
                kind, delimiter = match.group(1), match.group(2)
                closer = _BRACKET_PAIRS.get(delimiter, delimiter)
                opener = delimiter if delimiter in _BRACKET_PAIRS else ""
                state.open_literal(closer, opener, kind not in _PLAIN_PERCENT_KINDS, keep_delimiters=False)
                out.append(MASK * len(match.group(0)))
                i = match.end()
                continue
        out.append(ch)
        i += 1

    return "".join(out), comment


def _scan_ruby_lines(raw_lines: list[str]) -> list[SourceLine]:
    state = _LineState()
    pending: list[str] = []
    lines: list[SourceLine] = []

    for idx, text in enumerate(raw_lines, start=1):
        indent = len(text) - len(text.lstrip(" \t"))

        if state.in_doc:
            if text.startswith("=end"):
                state.in_doc = False
            lines.append(SourceLine(idx, text, "", "", indent, "doc"))
            continue
        if not state.closer and not pending and text.startswith("=begin"):
            state.in_doc = True
            lines.append(SourceLine(idx, text, "", "", indent, "doc"))
            continue

        if pending:
            if text.strip() == pending[0]:
                pending.pop(0)
            lines.append(SourceLine(idx, text, "", "", indent, "heredoc"))
            continue

        was_in_string = state.closer != ""
        code, comment = _mask_ruby_line(text, state)
        pending.extend(state.heredocs)
        state.heredocs = []

        if text.strip() == "":
            kind: LineKind = "blank"
        elif code.strip() == "" and comment and not was_in_string:
            kind = "comment"
        else:
            kind = "code"
        lines.append(SourceLine(idx, text, code, comment, indent, kind))

    return lines


def _scan_plain_lines(raw_lines: list[str]) -> list[SourceLine]:
    lines: list[SourceLine] = []
    for idx, text in enumerate(raw_lines, start=1):
        indent = len(text) - len(text.lstrip(" \t"))
        kind: LineKind = "blank" if text.strip() == "" else "code"
        lines.append(SourceLine(idx, text, text, "", indent, kind))
    return lines


class _PendingBlock:
    def __init__(self, keyword: str, start: int, parent: int | None) -> None:
        self.keyword = keyword
        self.start = start
        self.end: int | None = None
        self.branches: list[tuple[str, int]] = []
        self.parent = parent


def _line_events(code: str) -> list[tuple[int, str, str]]:
    """Return (position, event, keyword) tuples for one masked line."""
    events: list[tuple[int, str, str]] = []

    start_match = _OPENER_START.match(code)
    start_keyword = ""
    if start_match is not None and _ENDLESS_DEF.match(code) is None:
        start_keyword = start_match.group(1)
        events.append((start_match.start(1), "open", start_keyword))

    for match in _OPENER_INLINE.finditer(code):
        if start_match is not None and match.start(1) == start_match.start(1):
            continue
        events.append((match.start(1), "open", match.group(1)))

    do_match = _DO.search(code)
    if do_match is not None and start_keyword not in _LOOP_KEYWORDS:
        events.append((do_match.start(), "open", "do"))

    for match in _END.finditer(code):
        events.append((match.start(), "close", "end"))

    events.sort()
    return events


def build_blocks(lines: list[SourceLine]) -> list[Block]:
    """Match block openers with their ``end`` lines."""
    pending: list[_PendingBlock] = []
    stack: list[int] = []

    for line in lines:
        if line.kind != "code":
            continue
        branch = _BRANCH.match(line.code)
        if branch is not None and stack:
            pending[stack[-1]].branches.append((branch.group(1), line.line_no))

        for _pos, event, keyword in _line_events(line.code):
            if event == "open":
                parent = stack[-1] if stack else None
                pending.append(_PendingBlock(keyword, line.line_no, parent))
                stack.append(len(pending) - 1)
            elif stack:
                pending[stack.pop()].end = line.line_no

    return [
        Block(
            keyword=item.keyword,
            start=item.start,
            end=item.end,
            branches=tuple(item.branches),
            parent=item.parent,
        )
        for item in pending
    ]


def _parse_directive(text: str) -> tuple[str, frozenset[str]] | None:
    match = _SUPPRESS.search(text)
    if match is None:
        return None
    kinds = frozenset(part.strip() for part in match.group(2).split(",") if part.strip())
    return match.group(1), kinds


def _directive_sources(lines: list[SourceLine], language: Language) -> list[tuple[int, str]]:
    """Return (line_no, comment text) pairs that may carry directives.

    Ruby uses the ``#`` comment. Markdown uses ``<!-- ... -->`` outside
    fenced blocks and code spans. ERB uses ``<%# ... %>`` tags.
    """
    if language == "ruby":
        return [(line.line_no, line.comment) for line in lines if line.comment]

    if language == "erb":
        return [
            (line.line_no, " ".join(_ERB_COMMENT.findall(line.text)))
            for line in lines
            if "<%#" in line.text
        ]

    out: list[tuple[int, str]] = []
    fence: tuple[str, int] | None = None
    for line in lines:
        fence_match = _MARKDOWN_FENCE.match(line.text)
        if fence is not None:
            if (
                fence_match is not None
                and fence_match.group(1)[0] == fence[0]
                and len(fence_match.group(1)) >= fence[1]
                and fence_match.group(2).strip() == ""
            ):
                fence = None
            continue
        if fence_match is not None:
            fence = (fence_match.group(1)[0], len(fence_match.group(1)))
            continue
        text = _CODE_SPAN.sub("", line.text)
        if "<!--" in text:
            out.append((line.line_no, " ".join(_HTML_COMMENT.findall(text))))
    return out


def collect_suppressions(lines: list[SourceLine], language: Language) -> Suppressions:
    """Collect ``rbguard:disable`` directives from real comments only."""
    by_line: dict[int, frozenset[str]] = {}
    file_wide: set[str] = set()
    for line_no, source in _directive_sources(lines, language):
        if "rbguard:" not in source:
            continue
        parsed = _parse_directive(source)
        if parsed is None:
            continue
        scope, kinds = parsed
        if scope == "disable-file":
            file_wide.update(kinds)
        else:
            by_line[line_no] = by_line.get(line_no, frozenset()) | kinds
    return Suppressions(by_line=by_line, file_wide=frozenset(file_wide))


def scan_source(path: Path, raw_lines: list[str]) -> SourceFile:
    """Scan already-read lines of a file."""
    language = detect_language(path)
    if language == "ruby":
        lines = _scan_ruby_lines(raw_lines)
        blocks = build_blocks(lines)
    else:
        lines = _scan_plain_lines(raw_lines)
        blocks = []
    return SourceFile(
        path=path,
        language=language,
        lines=lines,
        blocks=blocks,
        suppressions=collect_suppressions(lines, language),
    )


def scan_file(path: Path) -> SourceFile:
    """Read and scan a file from disk."""
    return scan_source(path, read_lines(path))


__all__ = [
    "MASK",
    "Block",
    "Language",
    "LineKind",
    "SourceFile",
    "SourceLine",
    "Suppressions",
    "build_blocks",
    "collect_suppressions",
    "detect_language",
    "scan_file",
    "scan_source",
]
