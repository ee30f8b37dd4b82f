"""Tests for parser utilities."""

import pytest

from gomodel.core.ast_parser import FileSet, is_source_file, is_test_file, lookup_struct_tag, should_skip_directory, unquote


class TestClassification:
    def test_source_files(self):
        assert is_source_file("pkg/a.go")
        assert not is_source_file("pkg/a.go.txt")

    def test_test_files(self):
        assert is_test_file("pkg/a_test.go")
        assert not is_test_file("pkg/a.go")
        assert not is_test_file("pkg_test.go/a.go")

    def test_skipped_directories(self):
        assert should_skip_directory("testdata")
        assert should_skip_directory(".git")
        assert should_skip_directory("_vendor")
        assert not should_skip_directory("internal")


class TestUnquote:
    def test_interpreted(self):
        assert unquote('"fmt"') == "fmt"
        assert unquote(r'"a\tb\n"') == "a\tb\n"
        assert unquote(r'"\x41\101é"') == "AAé"

    def test_raw(self):
        assert unquote(r"`a\n`") == r"a\n"

    @pytest.mark.parametrize("literal", ['"open', "'x'", r'"\q"', r'"\x4"', ""])
    def test_malformed(self, literal):
        with pytest.raises(ValueError):
            unquote(literal)


class TestStructTag:
    def test_lookup(self):
        tag = 'json:"id,omitempty" db:"order_id"'
        assert lookup_struct_tag(tag, "json") == "id,omitempty"
        assert lookup_struct_tag(tag, "db") == "order_id"
        assert lookup_struct_tag(tag, "xml") is None

    def test_escaped_quote(self):
        assert lookup_struct_tag(r'doc:"say \"hi\""', "doc") == 'say "hi"'

    def test_malformed_stops_scanning(self):
        assert lookup_struct_tag('json "id" db:"x"', "db") is None
        assert lookup_struct_tag('json:"unterminated', "json") is None
        assert lookup_struct_tag("", "json") is None


class TestFileSet:
    def test_positions(self):
        file_set = FileSet()
        first = file_set.add_file("a.go", b"package a\n\ntype T int\n")
        second = file_set.add_file("b.go", b"package b\n")
        assert first == 1
        assert second > first

        pos = file_set.position(first + 11)
        assert (pos.filename, pos.line, pos.column) == ("a.go", 3, 1)
        assert file_set.position(second).filename == "b.go"

    def test_no_position(self):
        file_set = FileSet()
        assert file_set.position(0) is None
        assert file_set.position(5) is None
