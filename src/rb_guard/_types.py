"""Internal type aliases for strict typing.

These types enable strict typing without Any, object, or cast.
"""

from __future__ import annotations

from typing import Literal

# Recursive type for JSON data - only for internal _load*/_decode* functions
UnknownJson = dict[str, "UnknownJson"] | list["UnknownJson"] | str | int | float | bool | None

Severity = Literal["error", "warning", "convention"]

SEVERITY_RANK: dict[Severity, int] = {
    "convention": 0,
    "warning": 1,
    "error": 2,
}


def parse_severity(value: str) -> Severity:
    """Narrow a string to a Severity.

    Raises:
        ValueError: If the value is not a known severity.
    """
    if value == "error":
        return "error"
    if value == "warning":
        return "warning"
    if value == "convention":
        return "convention"
    msg = f"Unknown severity {value!r}; expected one of error, warning, convention"
    raise ValueError(msg)


__all__ = ["SEVERITY_RANK", "Severity", "UnknownJson", "parse_severity"]
