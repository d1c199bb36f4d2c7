"""Pytest fixtures for rb_guard tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from rb_guard.config import GuardConfig, default_config
from rb_guard.scanner import SourceFile, scan_source


@pytest.fixture
def guard_config() -> GuardConfig:
    """Return a fresh default configuration."""
    return default_config()


@pytest.fixture
def ruby_source() -> Callable[[list[str]], SourceFile]:
    """Scan in-memory Ruby lines as if they came from sample.rb."""

    def _scan(lines: list[str]) -> SourceFile:
        return scan_source(Path("sample.rb"), lines)

    return _scan

