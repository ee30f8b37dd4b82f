"""Shared fixtures: Go source trees written under tmp_path."""

import textwrap
from pathlib import Path
from typing import Dict

import pytest


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Write {relative path: source} under root and return root."""
    for rel_path, source in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip("\n"))
    return root


@pytest.fixture
def go_tree(tmp_path):
    """Factory writing a Go source tree below tmp_path/<name>."""
    def _make(files: Dict[str, str], name: str = "src") -> Path:
        return write_tree(tmp_path / name, files)
    return _make
