"""Tests for rb_guard.guards.naming_rules module."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from rb_guard.config import GuardConfig
from rb_guard.guards.naming_rules import NamingRule
from rb_guard.scanner import SourceFile, scan_source

ScanFn = Callable[[list[str]], SourceFile]


def _kinds(source: SourceFile, config: GuardConfig) -> list[str]:
    return [v.kind for v in NamingRule().check(source, config)]


class TestMethodNames:
    """Tests for method and parameter names."""

    def test_rule_name(self) -> None:
        """Test rule has correct name."""
        assert NamingRule().name == "naming"

    def test_detects_camel_case_method(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test detection of def fooBar."""
        violations = NamingRule().check(ruby_source(["def fooBar", "end"]), guard_config)
        assert [v.kind for v in violations] == ["naming-method-snake-case"]
        assert violations[0].message == "Method `fooBar` is not snake_case"

    def test_snake_case_methods_pass(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test conventional method names, including singleton and bang methods."""
        source = ruby_source(["def self.find_all", "end", "def save!", "end", "def name=(value)", "end"])
        assert _kinds(source, guard_config) == []

    def test_detects_is_prefix(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test detection of an is_ predicate."""
        violations = NamingRule().check(ruby_source(["def is_admin", "end"]), guard_config)
        assert [v.kind for v in violations] == ["naming-predicate-prefix"]
        assert violations[0].message == "Rename `is_admin` to `admin?`"

    def test_detects_has_prefix_with_question_mark(
        self,
        ruby_source: ScanFn,
        guard_config: GuardConfig,
    ) -> None:
        """Test detection of has_role? which still carries the prefix."""
        violations = NamingRule().check(ruby_source(["def has_role?(role)", "end"]), guard_config)
        assert violations[0].message == "Rename `has_role?` to `role?`"

    def test_detects_can_prefix(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test detection of a can_ predicate."""
        violations = NamingRule().check(ruby_source(["def can_edit?(post)", "end"]), guard_config)
        assert violations[0].message == "Rename `can_edit?` to `edit?`"

    def test_detects_camel_case_parameter(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test detection of a camelCase parameter."""
        violations = NamingRule().check(ruby_source(["def update(newValue, other)", "end"]), guard_config)
        assert [v.kind for v in violations] == ["naming-variable-snake-case"]
        assert violations[0].message == "Parameter `newValue` is not snake_case"


class TestVariablesAndConstants:
    """Tests for variables and constants."""

    def test_detects_camel_case_variable(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test detection of a local camelCase assignment."""
        violations = NamingRule().check(ruby_source(["fooBar = 1"]), guard_config)
        assert [v.kind for v in violations] == ["naming-variable-snake-case"]
        assert violations[0].message == "Variable `fooBar` is not snake_case"

    def test_detects_instance_variable_and_op_assign(
        self,
        ruby_source: ScanFn,
        guard_config: GuardConfig,
    ) -> None:
        """Test @ivars and compound assignments are checked."""
        source = ruby_source(["@userName = name", "userCount += 1"])
        assert _kinds(source, guard_config) == ["naming-variable-snake-case", "naming-variable-snake-case"]

    def test_comparison_is_not_assignment(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test `x == fooBar` is not flagged."""
        assert _kinds(ruby_source(["x == fooBar", "total ||= 0"]), guard_config) == []

    def test_detects_camel_case_constant(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test detection of MaxSize = 10."""
        violations = NamingRule().check(ruby_source(["MaxSize = 10"]), guard_config)
        assert [v.kind for v in violations] == ["naming-constant-screaming"]
        assert violations[0].message == "Constant `MaxSize` is not SCREAMING_SNAKE_CASE"

    def test_screaming_constant_and_class_values_pass(
        self,
        ruby_source: ScanFn,
        guard_config: GuardConfig,
    ) -> None:
        """Test SCREAMING_SNAKE_CASE constants and Struct.new assignments."""
        source = ruby_source(["MAX_SIZE = 10", "Point = Struct.new(:x, :y)", "Result = Data.define(:value)"])
        assert _kinds(source, guard_config) == []

    def test_names_in_strings_are_ignored(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test assignments inside string literals."""
        assert _kinds(ruby_source(['label = "fooBar = 1"']), guard_config) == []


class TestClassNames:
    """Tests for class and module names."""

    def test_detects_underscored_class(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test detection of class Foo_bar."""
        violations = NamingRule().check(ruby_source(["class Foo_bar", "end"]), guard_config)
        assert [v.kind for v in violations] == ["naming-class-camel-case"]
        assert violations[0].message == "Class `Foo_bar` is not CamelCase"

    def test_detects_lowercase_module(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test detection of module foo."""
        violations = NamingRule().check(ruby_source(["module foo", "end"]), guard_config)
        assert violations[0].message == "Module `foo` is not CamelCase"

    def test_namespaced_class_passes(self, ruby_source: ScanFn, guard_config: GuardConfig) -> None:
        """Test namespaced classes and singleton class blocks."""
        source = ruby_source(
            [
                "class Admin::UsersController < ApplicationController",
                "  class << self",
                "  end",
                "end",
            ]
        )
        assert _kinds(source, guard_config) == []

    def test_markdown_is_skipped(self, guard_config: GuardConfig) -> None:
        """Test naming rules only apply to Ruby sources."""
        source = scan_source(Path("GUIDE.md"), ["def fooBar"])
        assert _kinds(source, guard_config) == []
