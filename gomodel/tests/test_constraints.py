"""Tests for build-constraint evaluation."""

import pytest

from gomodel.core.ast_parser import parse_source
from gomodel.core.build import evaluate_go_build, evaluate_plus_build, passes
from gomodel.core.errors import BuildConstraintError


# =========================================================================
# Sample Go source fixtures
# =========================================================================

PLUS_BUILD_FILE = '''// +build linux,amd64 darwin

package demo
'''

GO_BUILD_FILE = '''//go:build linux && !cgo

package demo
'''

TWO_LINES_FILE = '''//go:build linux
// +build amd64

package demo
'''

CONSTRAINT_AFTER_PACKAGE = '''package demo

// +build ignore

type T struct{}
'''

NO_CONSTRAINT_FILE = '''// Package demo does things.
package demo
'''


# =========================================================================
# Tests: +build lines
# =========================================================================

class TestPlusBuild:
    def test_first_alternative_all_terms(self):
        assert evaluate_plus_build("linux,amd64 darwin", {"linux", "amd64"})

    def test_second_alternative(self):
        assert evaluate_plus_build("linux,amd64 darwin", {"darwin"})

    def test_incomplete_alternative_fails(self):
        assert not evaluate_plus_build("linux,amd64 darwin", {"linux"})

    def test_negation(self):
        assert evaluate_plus_build("!windows", {"linux"})
        assert not evaluate_plus_build("!windows", {"windows"})
        assert evaluate_plus_build("linux,!cgo", {"linux"})
        assert not evaluate_plus_build("linux,!cgo", {"linux", "cgo"})

    def test_empty_expression_never_matches(self):
        assert not evaluate_plus_build("", {"linux"})

    def test_malformed_term_never_matches(self):
        assert not evaluate_plus_build("lin-ux", {"lin-ux"})
        assert not evaluate_plus_build("!", set())

    def test_empty_tag_set(self):
        assert evaluate_plus_build("!linux", set())
        assert not evaluate_plus_build("linux", set())

    @pytest.mark.parametrize("extra", ["amd64", "cgo", "darwin", "windows"])
    def test_and_only_line_is_monotonic(self, extra):
        tags = {"linux", "arm64"}
        assert evaluate_plus_build("linux,arm64", tags)
        assert evaluate_plus_build("linux,arm64", tags | {extra})


# =========================================================================
# Tests: //go:build lines
# =========================================================================

class TestGoBuild:
    def test_and_or_not(self):
        assert evaluate_go_build("linux && !cgo", {"linux"})
        assert not evaluate_go_build("linux && !cgo", {"linux", "cgo"})
        assert evaluate_go_build("linux || darwin", {"darwin"})

    def test_precedence(self):
        # && binds tighter than ||
        assert evaluate_go_build("a || b && c", {"a"})
        assert not evaluate_go_build("(a || b) && c", {"a"})

    def test_double_negation(self):
        assert evaluate_go_build("!!linux", {"linux"})

    @pytest.mark.parametrize("expr", ["", "linux &&", "(linux", "linux darwin", "a & b", "lin-ux"])
    def test_malformed(self, expr):
        with pytest.raises(ValueError):
            evaluate_go_build(expr, {"linux"})


# =========================================================================
# Tests: file-level evaluation
# =========================================================================

class TestPasses:
    def test_scenario_tags(self):
        file = parse_source(PLUS_BUILD_FILE, "a.go")
        assert passes(file, {"linux", "amd64"})
        assert passes(file, {"darwin"})
        assert not passes(file, {"linux"})

    def test_go_build_file(self):
        file = parse_source(GO_BUILD_FILE, "a.go")
        assert passes(file, {"linux"})
        assert not passes(file, {"linux", "cgo"})

    def test_every_line_must_pass(self):
        file = parse_source(TWO_LINES_FILE, "a.go")
        assert passes(file, {"linux", "amd64"})
        assert not passes(file, {"linux"})
        assert not passes(file, {"amd64"})

    def test_constraint_after_package_clause_ignored(self):
        file = parse_source(CONSTRAINT_AFTER_PACKAGE, "a.go")
        assert passes(file, set())

    def test_no_constraint(self):
        file = parse_source(NO_CONSTRAINT_FILE, "a.go")
        assert passes(file, set())

    def test_raw_comments(self):
        assert passes(["// +build linux"], {"linux"})
        assert not passes(["// +build linux"], {"darwin"})
        assert passes(["// just a comment"], set())

    def test_malformed_go_build_reports_path(self):
        with pytest.raises(BuildConstraintError) as exc_info:
            passes(["//go:build linux &&"], {"linux"}, file_path="x.go")
        assert exc_info.value.path == "x.go"
        assert "x.go" in str(exc_info.value)
