"""Tests for build context configuration, the CLI and package exports."""

import os
import subprocess
import sys
from pathlib import Path

import pytest

import gomodel
from gomodel.__main__ import main
from gomodel.core.config import BuildContext


_GO_ENV = ("GOROOT", "GOPATH", "GOOS", "GOARCH", "CGO_ENABLED", "GOFLAGS", "GOMODEL_ROOTS", "GOMODEL_TAGS")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # load_dotenv writes straight into os.environ
    monkeypatch.setattr(os, "environ", dict(os.environ))
    for name in _GO_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


# =========================================================================
# Tests: BuildContext
# =========================================================================

class TestBuildContext:
    def test_build_tags(self):
        context = BuildContext(goos="linux", goarch="arm64", tags={"integration"}, cgo_enabled=True)
        assert context.build_tags() == {"linux", "arm64", "integration", "cgo", "unix"}

    def test_windows_is_not_unix(self):
        context = BuildContext(goos="windows", goarch="amd64")
        assert context.build_tags() == {"windows", "amd64"}

    def test_roots_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        context = BuildContext(roots=["src"])
        assert context.roots == [os.path.join(str(tmp_path), "src")]

    def test_with_roots_prepends(self, tmp_path):
        context = BuildContext(roots=[str(tmp_path / "b")], goos="linux", goarch="amd64")
        merged = context.with_roots([str(tmp_path / "a"), str(tmp_path / "b")])
        assert merged.roots == [str(tmp_path / "a"), str(tmp_path / "b")]
        assert context.roots == [str(tmp_path / "b")]


class TestFromEnv:
    def test_go_variables(self, clean_env, tmp_path):
        clean_env.setenv("GOROOT", "/opt/go")
        clean_env.setenv("GOPATH", os.pathsep.join(["/home/dev/go", "/work"]))
        clean_env.setenv("GOOS", "darwin")
        clean_env.setenv("GOARCH", "arm64")
        clean_env.setenv("CGO_ENABLED", "1")
        clean_env.setenv("GOFLAGS", "-mod=mod -tags=integration,slow")

        context = BuildContext.from_env(dotenv_path=str(tmp_path / "missing.env"))
        assert context.roots == ["/opt/go/src", "/home/dev/go/src", "/work/src"]
        assert context.goos == "darwin"
        assert context.goarch == "arm64"
        assert context.cgo_enabled
        assert context.tags == {"integration", "slow"}

    def test_overrides_first(self, clean_env, tmp_path):
        clean_env.setenv("GOPATH", "/gopath")
        clean_env.setenv("GOMODEL_ROOTS", "/extra")
        clean_env.setenv("GOMODEL_TAGS", "a, b")
        context = BuildContext.from_env(dotenv_path=str(tmp_path / "missing.env"))
        assert context.roots == ["/extra", "/gopath/src"]
        assert context.tags == {"a", "b"}

    def test_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / "build.env"
        env_file.write_text("GOPATH=/from/dotenv\nGOOS=freebsd\n")
        context = BuildContext.from_env(dotenv_path=str(env_file))
        assert context.roots == ["/from/dotenv/src"]
        assert context.goos == "freebsd"


class TestFromYaml:
    def test_keys(self, tmp_path):
        config = tmp_path / "gomodel.yaml"
        config.write_text(
            "roots:\n  - /a\n  - /b\n"
            "goos: linux\n"
            "goarch: amd64\n"
            "tags: integration,slow\n"
            "cgo_enabled: true\n"
        )
        context = BuildContext.from_yaml(str(config))
        assert context.roots == ["/a", "/b"]
        assert context.tags == {"integration", "slow"}
        assert context.cgo_enabled

    def test_tag_list(self, tmp_path):
        config = tmp_path / "gomodel.yaml"
        config.write_text("tags: [x, y]\n")
        assert BuildContext.from_yaml(str(config)).tags == {"x", "y"}

    def test_not_a_mapping(self, tmp_path):
        config = tmp_path / "gomodel.yaml"
        config.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            BuildContext.from_yaml(str(config))


# =========================================================================
# Tests: CLI
# =========================================================================

class TestCli:
    def test_describe_package(self, go_tree, clean_env, capsys):
        root = go_tree({"demo/a.go": '''
            package demo

            type Widget struct {
                ID   int
                Name string
            }

            func (w *Widget) Rename(name string) { w.Name = name }
        '''})
        assert main(["demo", "--root", str(root)]) == 0
        out = capsys.readouterr().out
        assert "package demo (demo)" in out
        assert "struct Widget: 2 field(s), 1 method(s)" in out
        assert "0: ID int" in out

    def test_not_found(self, clean_env, tmp_path):
        assert main(["nonexistent/pkg", "--root", str(tmp_path)]) == 1


# =========================================================================
# Tests: package imports
# =========================================================================

class TestLazyExports:
    def test_parser_loaded_on_first_model_use(self):
        code = (
            "import sys, gomodel\n"
            "print('gomodel.core.ast_parser.go_parser' in sys.modules)\n"
            "gomodel.Package\n"
            "print('gomodel.core.ast_parser.go_parser' in sys.modules)\n"
        )
        repo_root = Path(gomodel.__file__).resolve().parent.parent
        result = subprocess.run(
            [sys.executable, "-c", code], cwd=str(repo_root),
            capture_output=True, text=True, check=True,
        )
        assert result.stdout.split() == ["False", "True"]

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError):
            gomodel.NotAThing
