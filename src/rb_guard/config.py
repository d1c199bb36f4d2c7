"""Checker configuration loaded from ``.rbguard.json``."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TypedDict

from rb_guard._types import Severity, UnknownJson, parse_severity

CONFIG_FILENAME = ".rbguard.json"

DEFAULT_INCLUDE_EXTS: tuple[str, ...] = (".rb", ".rake", ".erb", ".md")
DEFAULT_INCLUDE_NAMES: tuple[str, ...] = ("Gemfile", "Rakefile")
DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = (
    ".bundle",
    ".git",
    "coverage",
    "log",
    "node_modules",
    "tmp",
    "vendor",
)


class ConfigError(ValueError):
    """Raised for malformed configuration or unknown rule ids."""


class GuardConfig(TypedDict):
    """Resolved checker configuration."""

    select: list[str]
    ignore: list[str]
    severity: dict[str, Severity]
    max_line_length: int
    indent_width: int
    include_exts: list[str]
    include_names: list[str]
    exclude_dirs: list[str]
    fail_on: Severity
    check_links: bool
    link_timeout: float


def default_config() -> GuardConfig:
    """Build the configuration used when no file is given."""
    return {
        "select": [],
        "ignore": [],
        "severity": {},
        "max_line_length": 120,
        "indent_width": 2,
        "include_exts": list(DEFAULT_INCLUDE_EXTS),
        "include_names": list(DEFAULT_INCLUDE_NAMES),
        "exclude_dirs": list(DEFAULT_EXCLUDE_DIRS),
        "fail_on": "convention",
        "check_links": False,
        "link_timeout": 10.0,
    }


def _decode_str_list(raw: UnknownJson, key: str) -> list[str]:
    if not isinstance(raw, list):
        raise ConfigError(f"Expected list for '{key}', got {type(raw).__name__}")
    out: list[str] = []
    for i, item in enumerate(raw):
        if not isinstance(item, str):
            raise ConfigError(f"Expected str at {key}[{i}], got {type(item).__name__}")
        out.append(item)
    return out


def _decode_positive_int(raw: UnknownJson, key: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ConfigError(f"Expected int for '{key}', got {type(raw).__name__}")
    if raw <= 0:
        raise ConfigError(f"'{key}' must be positive, got {raw}")
    return raw


def _decode_severity(raw: UnknownJson, key: str) -> Severity:
    if not isinstance(raw, str):
        raise ConfigError(f"Expected str for '{key}', got {type(raw).__name__}")
    try:
        return parse_severity(raw)
    except ValueError as exc:
        raise ConfigError(f"{key}: {exc}") from exc


def _decode_severity_map(raw: UnknownJson) -> dict[str, Severity]:
    if not isinstance(raw, dict):
        raise ConfigError(f"Expected object for 'severity', got {type(raw).__name__}")
    return {kind: _decode_severity(value, f"severity.{kind}") for kind, value in raw.items()}


def _decode_config(raw: UnknownJson) -> GuardConfig:
    """Decode raw JSON data over the defaults.

    Raises:
        ConfigError: If data structure or value types are incorrect.
    """
    if not isinstance(raw, dict):
        raise ConfigError(f"Expected object at top level, got {type(raw).__name__}")

    config = default_config()
    known = set(config.keys())
    unknown = sorted(key for key in raw if key not in known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    if "select" in raw:
        config["select"] = _decode_str_list(raw["select"], "select")
    if "ignore" in raw:
        config["ignore"] = _decode_str_list(raw["ignore"], "ignore")
    if "severity" in raw:
        config["severity"] = _decode_severity_map(raw["severity"])
    if "max_line_length" in raw:
        config["max_line_length"] = _decode_positive_int(raw["max_line_length"], "max_line_length")
    if "indent_width" in raw:
        config["indent_width"] = _decode_positive_int(raw["indent_width"], "indent_width")
    if "include_exts" in raw:
        exts = _decode_str_list(raw["include_exts"], "include_exts")
        config["include_exts"] = [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in exts]
    if "include_names" in raw:
        config["include_names"] = _decode_str_list(raw["include_names"], "include_names")
    if "exclude_dirs" in raw:
        config["exclude_dirs"] = _decode_str_list(raw["exclude_dirs"], "exclude_dirs")
    if "fail_on" in raw:
        config["fail_on"] = _decode_severity(raw["fail_on"], "fail_on")
    if "check_links" in raw:
        check_links = raw["check_links"]
        if not isinstance(check_links, bool):
            raise ConfigError(f"Expected bool for 'check_links', got {type(check_links).__name__}")
        config["check_links"] = check_links
    if "link_timeout" in raw:
        timeout = raw["link_timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0:
            raise ConfigError(f"'link_timeout' must be a positive number, got {timeout!r}")
        config["link_timeout"] = float(timeout)

    return config


def load_config(path: Path) -> GuardConfig:
    """Load and validate a JSON config file."""
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        content = f.read()
    try:
        raw: UnknownJson = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    return _decode_config(raw)


def find_config(start: Path) -> Path | None:
    """Return ``.rbguard.json`` in start, if present."""
    candidate = start / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_EXCLUDE_DIRS",
    "DEFAULT_INCLUDE_EXTS",
    "DEFAULT_INCLUDE_NAMES",
    "ConfigError",
    "GuardConfig",
    "default_config",
    "find_config",
    "load_config",
]
