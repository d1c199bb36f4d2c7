"""Utility functions shared by the scanner and rules."""

from __future__ import annotations

from pathlib import Path


def read_lines(path: Path) -> list[str]:
    """Read file contents as a list of lines.

    Uses utf-8-sig to handle optional BOM.
    """
    try:
        text = path.read_text(encoding="utf-8-sig", errors="strict")
    except (OSError, UnicodeDecodeError) as exc:
        raise RuntimeError(f"failed to read {path}: {exc}") from exc
    return text.splitlines()


def strip_evidence(line: str, limit: int = 80) -> str:
    """Trim a source line for display."""
    text = line.strip()
    return text[:limit] + "..." if len(text) > limit else text


__all__ = ["read_lines", "strip_evidence"]
