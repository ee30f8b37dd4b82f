"""Build context configuration.

A BuildContext carries the lookup roots and the active build tags of one
resolution. It can be assembled from the Go environment variables (with an
optional `.env` file) or from a YAML config file.
"""

import logging
import os
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set

import yaml
from dotenv import load_dotenv

from .constants import MACHINE_TO_GOARCH, PLATFORM_TO_GOOS, UNIX_GOOS

logger = logging.getLogger(__name__)


def _host_goos() -> str:
    return PLATFORM_TO_GOOS.get(sys.platform, sys.platform.rstrip("0123456789"))


def _host_goarch() -> str:
    machine = platform.machine().lower()
    return MACHINE_TO_GOARCH.get(machine, machine)


def split_list(value: Optional[str], sep: str = ",") -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(sep) if item.strip()]


def _tags_from_goflags(goflags: str) -> List[str]:
    """Extract `-tags=a,b` (or `-tags a,b`) from a GOFLAGS string."""
    tags: List[str] = []
    args = goflags.split()
    for i, arg in enumerate(args):
        if arg.startswith("-tags=") or arg.startswith("--tags="):
            tags.extend(split_list(arg.split("=", 1)[1]))
        elif arg in ("-tags", "--tags") and i + 1 < len(args):
            tags.extend(split_list(args[i + 1]))
    return tags


@dataclass
class BuildContext:
    """Lookup roots and build environment for package resolution.

    Attributes:
        roots: Ordered absolute directories searched for import paths.
        goos: Target operating system tag.
        goarch: Target architecture tag.
        tags: Additional user build tags.
        cgo_enabled: Whether the `cgo` tag is satisfied.
    """

    roots: List[str] = field(default_factory=list)
    goos: str = field(default_factory=_host_goos)
    goarch: str = field(default_factory=_host_goarch)
    tags: Set[str] = field(default_factory=set)
    cgo_enabled: bool = False

    def __post_init__(self):
        self.roots = [os.path.abspath(root) for root in self.roots]
        self.tags = set(self.tags)

    def build_tags(self) -> Set[str]:
        """Return the active tag set used by the build-constraint evaluator."""
        active = {self.goos, self.goarch} | self.tags
        if self.cgo_enabled:
            active.add("cgo")
        if self.goos in UNIX_GOOS:
            active.add("unix")
        active.discard("")
        return active

    def with_roots(self, roots: Iterable[str]) -> "BuildContext":
        """Return a copy searching `roots` before the current ones."""
        extra = [os.path.abspath(root) for root in roots]
        merged = extra + [root for root in self.roots if root not in extra]
        return BuildContext(
            roots=merged,
            goos=self.goos,
            goarch=self.goarch,
            tags=set(self.tags),
            cgo_enabled=self.cgo_enabled,
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "BuildContext":
        """Build a context from GOROOT/GOPATH/GOOS/GOARCH and friends.

        `GOMODEL_ROOTS` (os.pathsep separated) and `GOMODEL_TAGS` (comma
        separated) extend the roots and tags derived from the Go variables.

        Args:
            dotenv_path: Optional `.env` file; the default search is used if None.

        Returns:
            BuildContext reflecting the environment
        """
        load_dotenv(dotenv_path)

        roots: List[str] = split_list(os.getenv("GOMODEL_ROOTS"), os.pathsep)

        goroot = os.getenv("GOROOT")
        if goroot:
            roots.append(os.path.join(goroot, "src"))

        gopath = os.getenv("GOPATH") or str(Path.home() / "go")
        for entry in split_list(gopath, os.pathsep):
            roots.append(os.path.join(entry, "src"))

        tags = set(_tags_from_goflags(os.getenv("GOFLAGS", "")))
        tags.update(split_list(os.getenv("GOMODEL_TAGS")))

        context = cls(
            roots=roots,
            goos=os.getenv("GOOS") or _host_goos(),
            goarch=os.getenv("GOARCH") or _host_goarch(),
            tags=tags,
            cgo_enabled=os.getenv("CGO_ENABLED", "0") == "1",
        )
        logger.debug(f"Build context from environment: {context}")
        return context

    @classmethod
    def from_yaml(cls, config_path: str) -> "BuildContext":
        """Load a context from a YAML file.

        Recognised keys: roots, goos, goarch, tags, cgo_enabled. Missing keys
        fall back to the host defaults.
        """
        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")

        tags = config.get("tags") or []
        if isinstance(tags, str):
            tags = split_list(tags)

        context = cls(
            roots=list(config.get("roots") or []),
            goos=config.get("goos") or _host_goos(),
            goarch=config.get("goarch") or _host_goarch(),
            tags=set(tags),
            cgo_enabled=bool(config.get("cgo_enabled", False)),
        )
        logger.debug(f"Loaded build context from {config_path}: {context}")
        return context
