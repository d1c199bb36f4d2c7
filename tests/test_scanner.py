"""Tests for rb_guard.scanner module."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from rb_guard.scanner import Block, SourceFile, detect_language, scan_file, scan_source
from rb_guard.util import read_lines, strip_evidence

ScanFn = Callable[[list[str]], SourceFile]


class TestMasking:
    """Tests for string and comment masking."""

    def test_string_contents_and_comment(self, ruby_source: ScanFn) -> None:
        """Test that a # inside a string is not treated as a comment."""
        source = ruby_source(['x = "a # b"  # note'])
        line = source.line(1)
        assert line.code == 'x = "xxxxx"  '
        assert line.comment == "# note"
        assert line.kind == "code"

    def test_interpolation_with_nested_quotes(self, ruby_source: ScanFn) -> None:
        """Test that quotes inside #{} do not close the outer string."""
        text = 'y = "a #{b["c"]} d"'
        line = ruby_source([text]).line(1)
        assert line.code == 'y = "' + "x" * len('a #{b["c"]} d') + '"'
        assert line.comment == ""

    def test_masking_preserves_length(self, ruby_source: ScanFn) -> None:
        """Test that code keeps column positions of the original line."""
        text = "puts 'it\\'s' # done"
        line = ruby_source([text]).line(1)
        assert len(line.code) + len(line.comment) == len(text)

    def test_comment_only_line(self, ruby_source: ScanFn) -> None:
        """Test classification of a comment-only line."""
        line = ruby_source(["  # just a note"]).line(1)
        assert line.kind == "comment"
        assert line.indent == 2

    def test_blank_line(self, ruby_source: ScanFn) -> None:
        """Test classification of a whitespace-only line."""
        assert ruby_source(["   "]).line(1).kind == "blank"

    def test_multiline_string_continues(self, ruby_source: ScanFn) -> None:
        """Test that a string spanning lines stays masked on the next line."""
        source = ruby_source(['x = "abc', 'def foo"', "y = 1"])
        assert source.line(2).code == 'xxxxxxx"'
        assert source.line(3).code == "y = 1"
        assert source.blocks == []


class TestLiterals:
    """Tests for regexp and percent literals."""

    def test_regexp_with_quote(self, ruby_source: ScanFn) -> None:
        """Test a quote inside a regexp does not open a string."""
        source = ruby_source(["def clean(s)", "  s.gsub(/'/, '')", "end", "x = 'a=b'"])
        assert source.line(2).code == "  s.gsub(xxx, '')"
        assert source.line(4).code == "x = 'xxx'"
        assert [(b.keyword, b.start, b.end) for b in source.blocks] == [("def", 1, 3)]

    def test_regexp_with_hash(self, ruby_source: ScanFn) -> None:
        """Test interpolation and # inside a regexp are not comments."""
        line = ruby_source(["pattern = /#{prefix}#/ # note"]).line(1)
        assert line.code == "pattern = " + "x" * len("/#{prefix}#/") + " "
        assert line.comment == "# note"

    def test_division_is_not_regexp(self, ruby_source: ScanFn) -> None:
        """Test a spaced slash after an operand is division."""
        line = ruby_source(["ratio = total / count # per item"]).line(1)
        assert line.code == "ratio = total / count "
        assert line.comment == "# per item"

    def test_percent_words(self, ruby_source: ScanFn) -> None:
        """Test %w[] with an apostrophe."""
        source = ruby_source(["x = %w[don't]", "y = 1"])
        assert source.line(1).code == "x = " + "x" * len("%w[don't]")
        assert source.line(2).code == "y = 1"

    def test_percent_nested_brackets(self, ruby_source: ScanFn) -> None:
        """Test %q() with nested parentheses."""
        source = ruby_source(["s = %q(it's (nested))", "t = 2"])
        assert source.line(1).code == "s = " + "x" * len("%q(it's (nested))")
        assert source.line(2).code == "t = 2"

    def test_multiline_percent_array(self, ruby_source: ScanFn) -> None:
        """Test a %w[] literal spanning lines."""
        source = ruby_source(["words = %w[", "  alpha it's", "]", "y = 'a'"])
        assert source.line(2).code == "x" * len("  alpha it's")
        assert source.line(3).code == "x"
        assert source.line(4).code == "y = 'x'"

    def test_modulo_is_not_literal(self, ruby_source: ScanFn) -> None:
        """Test string formatting with % stays code."""
        line = ruby_source(["label = '%d items' % count"]).line(1)
        assert line.code == "label = 'xxxxxxxx' % count"


class TestSpecialBodies:
    """Tests for heredoc and =begin/=end handling."""

    def test_heredoc_body(self, ruby_source: ScanFn) -> None:
        """Test heredoc body and terminator lines are classified as heredoc."""
        source = ruby_source(["sql = <<~SQL", "  SELECT * FROM users WHERE a != b", "SQL", "x = 1"])
        kinds = [line.kind for line in source.lines]
        assert kinds == ["code", "heredoc", "heredoc", "code"]

    def test_quoted_heredoc_tag(self, ruby_source: ScanFn) -> None:
        """Test heredoc with a quoted tag."""
        source = ruby_source(["text = <<-'EOS'", "  if !x", "  EOS", "done = true"])
        kinds = [line.kind for line in source.lines]
        assert kinds == ["code", "heredoc", "heredoc", "code"]

    def test_append_operator_is_not_heredoc(self, ruby_source: ScanFn) -> None:
        """Test that `list << ITEM` with a space does not open a heredoc."""
        source = ruby_source(["list << ITEM", "x = 1"])
        assert [line.kind for line in source.lines] == ["code", "code"]

    def test_begin_end_documentation(self, ruby_source: ScanFn) -> None:
        """Test =begin/=end block comments."""
        source = ruby_source(["=begin", "def fooBar", "=end", "x = 1"])
        kinds = [line.kind for line in source.lines]
        assert kinds == ["doc", "doc", "doc", "code"]
        assert source.blocks == []


class TestBlocks:
    """Tests for block tree construction."""

    def test_nested_blocks(self, ruby_source: ScanFn) -> None:
        """Test def/do/if blocks with an else branch."""
        source = ruby_source(
            [
                "def foo",
                "  items.each do |i|",
                "    puts i",
                "  end",
                "  if x",
                "    1",
                "  else",
                "    2",
                "  end",
                "end",
            ]
        )
        assert source.blocks == [
            Block(keyword="def", start=1, end=10, branches=(), parent=None),
            Block(keyword="do", start=2, end=4, branches=(), parent=0),
            Block(keyword="if", start=5, end=9, branches=(("else", 7),), parent=0),
        ]

    def test_modifier_conditionals_are_not_blocks(self, ruby_source: ScanFn) -> None:
        """Test that `return if x` and `return unless x` open no block."""
        source = ruby_source(["def foo", "  return if x", "  return unless y", "  bar", "end"])
        assert [block.keyword for block in source.blocks] == ["def"]
        assert source.blocks[0].end == 5

    def test_assignment_opener(self, ruby_source: ScanFn) -> None:
        """Test `x = if cond` opens a block."""
        source = ruby_source(["role = if admin", "  1", "else", "  2", "end"])
        assert source.blocks == [Block(keyword="if", start=1, end=5, branches=(("else", 3),), parent=None)]

    def test_while_do_counts_once(self, ruby_source: ScanFn) -> None:
        """Test a `while ... do` loop is a single block."""
        source = ruby_source(["while running do", "  tick", "end"])
        assert [(b.keyword, b.start, b.end) for b in source.blocks] == [("while", 1, 3)]

    def test_one_line_def(self, ruby_source: ScanFn) -> None:
        """Test a block opened and closed on the same line."""
        source = ruby_source(["def noop; end"])
        assert [(b.keyword, b.start, b.end) for b in source.blocks] == [("def", 1, 1)]

    def test_end_like_identifiers(self, ruby_source: ScanFn) -> None:
        """Test that send/render/range.end do not close blocks."""
        source = ruby_source(["def foo", "  send(:x)", "  render", "  range.end", "end"])
        assert source.blocks[0].end == 5

    def test_unclosed_block(self, ruby_source: ScanFn) -> None:
        """Test a block left open at end of file."""
        source = ruby_source(["class Foo", "  def bar"])
        assert [b.end for b in source.blocks] == [None, None]


class TestSuppressions:
    """Tests for inline rbguard directives."""

    def test_line_directive(self, ruby_source: ScanFn) -> None:
        """Test a per-line directive silences only that line and id."""
        source = ruby_source(["x=1 # rbguard:disable=layout-operator-spacing", "y=2"])
        assert source.is_suppressed("layout-operator-spacing", 1)
        assert not source.is_suppressed("layout-operator-spacing", 2)
        assert not source.is_suppressed("layout-tab-indent", 1)

    def test_file_directive(self, ruby_source: ScanFn) -> None:
        """Test a file-wide directive."""
        source = ruby_source(["# rbguard:disable-file=naming-method-snake-case, cond-nil-chain", "x = 1"])
        assert source.is_suppressed("naming-method-snake-case", 2)
        assert source.is_suppressed("cond-nil-chain", 40)

    def test_all_keyword(self, ruby_source: ScanFn) -> None:
        """Test `all` silences every rule on the line."""
        source = ruby_source(["fooBar=1 # rbguard:disable=all"])
        assert source.is_suppressed("naming-variable-snake-case", 1)

    def test_directive_inside_string_is_ignored(self, ruby_source: ScanFn) -> None:
        """Test directives only count when they are real comments."""
        source = ruby_source(['x = "# rbguard:disable=all"'])
        assert not source.is_suppressed("layout-line-length", 1)

    def test_markdown_html_comment(self) -> None:
        """Test directives in Markdown HTML comments."""
        source = scan_source(Path("GUIDE.md"), ["<!-- rbguard:disable-file=doc-heading-skip -->", "# A"])
        assert source.is_suppressed("doc-heading-skip", 2)

    def test_markdown_fenced_directive_is_ignored(self) -> None:
        """Test directives shown in a code sample do not apply."""
        source = scan_source(Path("GUIDE.md"), ["```ruby", "# rbguard:disable-file=all", "```", "# Guide"])
        assert not source.is_suppressed("doc-heading-skip", 4)

    def test_markdown_code_span_directive_is_ignored(self) -> None:
        """Test a directive quoted in inline code does not apply."""
        line = "Write `<!-- rbguard:disable-file=all -->` to silence a file."
        source = scan_source(Path("GUIDE.md"), [line])
        assert not source.is_suppressed("doc-heading-skip", 1)

    def test_erb_comment_tag(self) -> None:
        """Test ERB directives apply only inside <%# %> tags."""
        source = scan_source(
            Path("index.html.erb"),
            ["<%# rbguard:disable=view-database-query %><% Post.all %>", "<p>rbguard:disable=all</p>"],
        )
        assert source.is_suppressed("view-database-query", 1)
        assert not source.is_suppressed("view-database-query", 2)


class TestLanguageAndFiles:
    """Tests for language detection and file reading."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("app/models/user.rb", "ruby"),
            ("Rakefile", "ruby"),
            ("lib/tasks/db.rake", "ruby"),
            ("app/views/posts/index.html.erb", "erb"),
            ("README.md", "markdown"),
        ],
    )
    def test_detect_language(self, name: str, expected: str) -> None:
        """Test extension-based language detection."""
        assert detect_language(Path(name)) == expected

    def test_plain_lines_keep_text(self) -> None:
        """Test Markdown lines are not masked."""
        source = scan_source(Path("GUIDE.md"), ['Use "quotes" # freely'])
        assert source.line(1).code == 'Use "quotes" # freely'
        assert source.blocks == []

    def test_scan_file_reads_bom(self, tmp_path: Path) -> None:
        """Test scanning a file with a BOM."""
        path = tmp_path / "bom.rb"
        path.write_bytes(b"\xef\xbb\xbfx = 1\n")
        source = scan_file(path)
        assert source.line(1).text == "x = 1"

    def test_scan_file_missing(self, tmp_path: Path) -> None:
        """Test reading a nonexistent file raises RuntimeError."""
        with pytest.raises(RuntimeError, match="failed to read"):
            scan_file(tmp_path / "missing.rb")

    def test_read_lines_invalid_utf8(self, tmp_path: Path) -> None:
        """Test undecodable files raise RuntimeError."""
        path = tmp_path / "binary.rb"
        path.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(RuntimeError, match="failed to read"):
            read_lines(path)

    def test_strip_evidence(self) -> None:
        """Test evidence trimming."""
        assert strip_evidence("   x = 1  ") == "x = 1"
        assert strip_evidence("a" * 100, limit=10) == "a" * 10 + "..."
