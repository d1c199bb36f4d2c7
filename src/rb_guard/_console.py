"""Rich console wrapper for styled terminal output.

This module provides typed console functions for checker output.
All print statements in the codebase should use these functions instead.
"""

from __future__ import annotations

from typing import Protocol


class _RichConsole(Protocol):
    """Protocol for rich.console.Console interface."""

    def print(
        self,
        *objects: str,
        style: str | None = None,
        markup: bool | None = None,
        highlight: bool | None = None,
        soft_wrap: bool | None = None,
        emoji: bool | None = None,
    ) -> None:
        """Print styled output to console."""
        ...


def _get_console(stderr: bool = False) -> _RichConsole:
    """Get rich Console instance with strict typing."""
    rich_console_mod = __import__("rich.console", fromlist=["Console"])
    console_cls = rich_console_mod.Console
    console: _RichConsole = console_cls(stderr=stderr)
    return console


# Module-level console instances
_console: _RichConsole = _get_console()
_err_console: _RichConsole = _get_console(stderr=True)


# =============================================================================
# Style Constants
# =============================================================================

STYLE_HEADER = "bold cyan"
STYLE_LABEL = "dim white"
STYLE_PATH = "bold"
STYLE_WARNING = "yellow"
STYLE_ERROR = "bold red"
STYLE_CONVENTION = "blue"
STYLE_SUCCESS = "bold green"
STYLE_INFO = "cyan"

SEVERITY_STYLES: dict[str, str] = {
    "error": STYLE_ERROR,
    "warning": STYLE_WARNING,
    "convention": STYLE_CONVENTION,
}


# =============================================================================
# Output Functions
# =============================================================================


def log_header(text: str) -> None:
    """Print a section header with separator lines."""
    separator = "=" * 60
    _console.print(separator, style=STYLE_HEADER)
    _console.print(text, style=STYLE_HEADER)
    _console.print(separator, style=STYLE_HEADER)


def log_subheader(text: str) -> None:
    """Print a subheader."""
    _console.print(f"\n{text}", style=STYLE_HEADER)


def log_info(text: str) -> None:
    """Print an informational message."""
    _console.print(text, style=STYLE_INFO, markup=False, emoji=False, soft_wrap=True)


def log_rule_count(name: str, violations: int) -> None:
    """Print the violation count for one rule group."""
    style = STYLE_SUCCESS if violations == 0 else STYLE_WARNING
    _console.print(f"  [{STYLE_LABEL}]{name}:[/{STYLE_LABEL}] [{style}]{violations} violations[/{style}]")


def log_violation(location: str, severity: str, kind: str, message: str, evidence: str) -> None:
    """Print one violation line, keeping source text free of markup parsing."""
    style = SEVERITY_STYLES.get(severity, STYLE_WARNING)
    _console.print(f"  {location}:", style=STYLE_PATH, markup=False, emoji=False, soft_wrap=True)
    line = f"    {severity} {kind}: {message}"
    _console.print(line, style=style, markup=False, emoji=False, soft_wrap=True)
    if evidence:
        _console.print(f"      {evidence}", style=STYLE_LABEL, markup=False, emoji=False, soft_wrap=True)


def log_rule_spec(kind: str, severity: str, description: str) -> None:
    """Print one catalogue entry."""
    style = SEVERITY_STYLES.get(severity, STYLE_WARNING)
    _console.print(
        f"  {kind:<28} {severity:<11} {description}",
        style=style,
        markup=False,
        emoji=False,
        soft_wrap=True,
    )


def log_raw(text: str) -> None:
    """Print machine-readable text without styling, markup or wrapping."""
    _console.print(text, markup=False, emoji=False, highlight=False, soft_wrap=True)


def log_success(text: str) -> None:
    """Print a success message."""
    _console.print(text, style=STYLE_SUCCESS, markup=False, emoji=False, soft_wrap=True)


def log_failure(text: str) -> None:
    """Print a failure summary to stderr."""
    _err_console.print(text, style=STYLE_ERROR, markup=False, emoji=False, soft_wrap=True)


def log_error(text: str) -> None:
    """Print an error message to stderr."""
    _err_console.print(f"ERROR: {text}", style=STYLE_ERROR, markup=False, emoji=False, soft_wrap=True)


__all__ = [
    "log_error",
    "log_failure",
    "log_header",
    "log_info",
    "log_raw",
    "log_rule_count",
    "log_rule_spec",
    "log_subheader",
    "log_success",
    "log_violation",
]
