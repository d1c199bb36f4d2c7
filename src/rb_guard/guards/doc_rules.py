"""Guard rules for Markdown documentation integrity.

Violations:
- doc-unclosed-fence: a ``` or ~~~ fence is never closed
- doc-heading-skip: heading level jumps by more than one (## -> ####)
- doc-dead-link: external link does not answer with 2xx/3xx (opt-in)
"""

from __future__ import annotations

import re
from typing import ClassVar

from rb_guard import links
from rb_guard.config import GuardConfig
from rb_guard.guards import RuleSpec, Violation, make_violation
from rb_guard.scanner import SourceFile

UNCLOSED_FENCE = RuleSpec(
    kind="doc-unclosed-fence",
    description="Close every fenced code block",
    severity="error",
    category="docs",
)
HEADING_SKIP = RuleSpec(
    kind="doc-heading-skip",
    description="Increase heading levels one at a time",
    severity="warning",
    category="docs",
)
DEAD_LINK = RuleSpec(
    kind="doc-dead-link",
    description="External links must resolve",
    severity="warning",
    category="docs",
)

_FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:\s+|$)")
_LINK = re.compile(r"\]\((https?://[^)\s]+)(?:\s+\"[^\"]*\")?\)|<(https?://[^>\s]+)>")


class DocRule:
    """Guard rule for fenced blocks, heading outline and links in Markdown."""

    name = "docs"
    specs: ClassVar[tuple[RuleSpec, ...]] = (UNCLOSED_FENCE, HEADING_SKIP, DEAD_LINK)

    def __init__(self) -> None:
        self._link_cache: dict[str, links.LinkStatus] = {}

    def check(self, source: SourceFile, config: GuardConfig) -> list[Violation]:
        if source.language != "markdown":
            return []

        out: list[Violation] = []
        fence: tuple[str, int, int] | None = None
        last_level = 0
        link_lines: list[tuple[int, str]] = []

        for line in source.lines:
            fence_match = _FENCE.match(line.text)
            if fence is not None:
                marker, length, _start = fence
                if (
                    fence_match is not None
                    and fence_match.group(1)[0] == marker
                    and len(fence_match.group(1)) >= length
                    and fence_match.group(2).strip() == ""
                ):
                    fence = None
                continue
            if fence_match is not None:
                opener = fence_match.group(1)
                fence = (opener[0], len(opener), line.line_no)
                continue

            heading = _HEADING.match(line.text)
            if heading is not None:
                level = len(heading.group(1))
                if last_level and level > last_level + 1:
                    out.append(
                        make_violation(
                            source,
                            HEADING_SKIP,
                            line.line_no,
                            f"Heading level {level} follows level {last_level}",
                        )
                    )
                last_level = level

            for match in _LINK.finditer(line.text):
                link_lines.append((line.line_no, match.group(1) or match.group(2)))

        if fence is not None:
            out.append(make_violation(source, UNCLOSED_FENCE, fence[2]))

        if config["check_links"]:
            out.extend(self._check_links(source, link_lines, config["link_timeout"]))
        return out

    def _check_links(
        self,
        source: SourceFile,
        found: list[tuple[int, str]],
        timeout: float,
    ) -> list[Violation]:
        violations: list[Violation] = []
        for line_no, url in found:
            status = self._link_cache.get(url)
            if status is None:
                status = links.check_url(url, timeout)
                self._link_cache[url] = status
            if not status.ok:
                violations.append(make_violation(source, DEAD_LINK, line_no, f"{url}: {status.error}"))
        return violations


__all__ = ["DEAD_LINK", "HEADING_SKIP", "UNCLOSED_FENCE", "DocRule"]
