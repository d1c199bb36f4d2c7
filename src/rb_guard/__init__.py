"""Static style checker for Ruby and Rails code."""

from rb_guard.config import ConfigError, GuardConfig, default_config, load_config
from rb_guard.engine import CheckResult, check_paths, exit_code
from rb_guard.guards import RuleReport, RuleSpec, Violation
from rb_guard.scanner import SourceFile, scan_file, scan_source

__version__ = "0.1.0"

__all__ = [
    "CheckResult",
    "ConfigError",
    "GuardConfig",
    "RuleReport",
    "RuleSpec",
    "SourceFile",
    "Violation",
    "check_paths",
    "default_config",
    "exit_code",
    "load_config",
    "scan_file",
    "scan_source",
]
