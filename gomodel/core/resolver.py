"""Package path resolution.

Turns an input path (absolute, working-directory relative, or a bare import
path) into a canonical (package path, directory, root) triple. The
interpretations are tried in one fixed order:

1. absolute path                 -> used as is, no root
2. `.`-prefixed path             -> joined to the working directory
3. root/<path> exists            -> first root wins
4. working-directory rewrite     -> first segment replaced by the working
                                    directory's remainder past a root
5. otherwise                     -> PackageNotFoundError

A root is only credited with a directory that lies inside it once `..`
segments are collapsed.
"""

import logging
import os
import stat
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .constants import CURRENT_DIR_MARKER
from .errors import FilesystemError, PackageNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanonicalPackageRef:
    """Resolved location of a package.

    Attributes:
        package_path: Import path (directory minus root, `/`-separated).
        directory_path: Real directory; empty when unresolved.
        root_path: Lookup root the directory was found under; may be empty.
    """

    package_path: str
    directory_path: str
    root_path: str = ""

    @classmethod
    def unresolved(cls, package_path: str) -> "CanonicalPackageRef":
        """A reference with no directory, left for an external importer."""
        return cls(package_path=package_path, directory_path="", root_path="")

    @property
    def is_resolved(self) -> bool:
        return bool(self.directory_path)


def _split(path: str) -> List[str]:
    return [part for part in path.replace(os.sep, "/").split("/") if part]


def _to_package_path(relative: str) -> str:
    return "/".join(_split(relative))


def _contains(root: str, path: str) -> bool:
    """Whether `path` is `root` itself or lies below it."""
    root = os.path.normpath(root)
    path = os.path.normpath(path)
    if path == root:
        return True
    return path.startswith(root.rstrip(os.sep) + os.sep)


def _remainder(root: str, path: str) -> str:
    """`path` with the `root` prefix removed, separators trimmed."""
    root = os.path.normpath(root)
    path = os.path.normpath(path)
    return _to_package_path(path[len(root):])


def _exists(path: str) -> bool:
    try:
        os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError as e:
        raise FilesystemError(path, f"unable to stat '{path}': {e.strerror or e}") from e
    return True


def _collapse_file(ref: CanonicalPackageRef, keep_package_path: bool) -> CanonicalPackageRef:
    """Point a reference naming a regular file at the file's directory."""
    try:
        info = os.stat(ref.directory_path)
    except (FileNotFoundError, NotADirectoryError):
        return ref
    except OSError as e:
        raise FilesystemError(ref.directory_path, f"unable to stat '{ref.directory_path}': {e.strerror or e}") from e
    if stat.S_ISDIR(info.st_mode):
        return ref

    directory = os.path.dirname(ref.directory_path)
    package_path = ref.package_path
    if not keep_package_path:
        package_path = "/".join(_split(package_path)[:-1])
    logger.debug(f"'{ref.directory_path}' is a file, using its directory '{directory}'")
    return CanonicalPackageRef(package_path=package_path, directory_path=directory, root_path=ref.root_path)


def resolve(
    input_path: str,
    roots: Sequence[str],
    cwd: Optional[str] = None,
) -> CanonicalPackageRef:
    """Resolve a package path against the lookup roots.

    Args:
        input_path: Absolute path, `./`-relative path, or import path
        roots: Ordered lookup roots; the first match wins
        cwd: Working directory (os.getcwd() if None)

    Returns:
        CanonicalPackageRef for the package

    Raises:
        PackageNotFoundError: If no interpretation finds a directory
        FilesystemError: If a stat fails for a reason other than absence
    """
    if os.path.isabs(input_path):
        ref = CanonicalPackageRef(package_path=input_path, directory_path=input_path)
        return _collapse_file(ref, keep_package_path=True)

    cwd = cwd or os.getcwd()
    segments = _split(input_path)

    # Working-directory relative
    if segments and segments[0] == CURRENT_DIR_MARKER:
        candidate = os.path.normpath(os.path.join(cwd, *segments[1:]))
        for root in roots:
            if _contains(root, candidate):
                ref = CanonicalPackageRef(
                    package_path=_remainder(root, candidate),
                    directory_path=candidate,
                    root_path=root,
                )
                logger.debug(f"Resolved '{input_path}' relative to working directory: {ref}")
                return _collapse_file(ref, keep_package_path=False)
        ref = CanonicalPackageRef(package_path=candidate, directory_path=candidate)
        return _collapse_file(ref, keep_package_path=True)

    # Root joined
    for root in roots:
        candidate = os.path.normpath(os.path.join(root, *segments))
        if not _contains(root, candidate):
            continue
        if _exists(candidate):
            ref = CanonicalPackageRef(
                package_path=_remainder(root, candidate),
                directory_path=candidate,
                root_path=root,
            )
            logger.debug(f"Resolved '{input_path}' under root '{root}'")
            return _collapse_file(ref, keep_package_path=False)

    # First segment rewritten as the working directory's path below a root
    if segments:
        for root in roots:
            if not _contains(root, cwd):
                continue
            prefix = _remainder(root, cwd)
            if not prefix:
                continue
            candidate = os.path.normpath(os.path.join(root, *_split(prefix), *segments[1:]))
            if not _contains(root, candidate):
                continue
            if _exists(candidate):
                ref = CanonicalPackageRef(
                    package_path=_remainder(root, candidate),
                    directory_path=candidate,
                    root_path=root,
                )
                logger.debug(f"Resolved '{input_path}' via working directory rewrite: {ref}")
                return _collapse_file(ref, keep_package_path=False)

    raise PackageNotFoundError(input_path, roots)
