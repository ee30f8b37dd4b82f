"""File-set scanner.

Walks a directory and parses every Go source file in it into a SourceFile,
registering all of them in one shared FileSet.
"""

import logging
import os
import stat
from typing import Optional

from ..ast_parser import FileSet, GoParser, SourceFile, get_parser, is_source_file, should_skip_directory
from ..errors import FilesystemError

logger = logging.getLogger(__name__)


class Files(list):
    """An ordered list of SourceFile with lookup helpers."""

    def find_by_path(self, path: str) -> Optional[SourceFile]:
        for file in self:
            if file.path == path:
                return file
        return None

    def find_by_go_generate_tag(self, tag: str) -> "Files":
        """Files carrying a `//go:generate <tag>` directive."""
        return Files(file for file in self if tag in file.go_generate_tags())


def scan_for_files(
    file_set: FileSet,
    dir_path: str,
    recursive: bool = False,
    parser: Optional[GoParser] = None,
) -> Files:
    """Parse the Go files of a directory.

    Entries are visited in name order. A regular file path scans the
    directory containing it.

    Args:
        file_set: Position table shared by every parsed file
        dir_path: Directory to scan
        recursive: Descend into subdirectories (except ignored ones)
        parser: Parser to use (the shared GoParser if None)

    Returns:
        Files in scan order

    Raises:
        FilesystemError: If the directory cannot be stat-ed or listed
        SourceParseError: If any Go file is malformed
    """
    parser = parser or get_parser()

    try:
        info = os.stat(dir_path)
    except OSError as e:
        raise FilesystemError(dir_path, f"unable to open '{dir_path}': {e.strerror or e}") from e
    if not stat.S_ISDIR(info.st_mode):
        return scan_for_files(file_set, os.path.dirname(dir_path) or ".", recursive, parser)

    try:
        with os.scandir(dir_path) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise FilesystemError(dir_path, f"unable to open '{dir_path}' as dir: {e.strerror or e}") from e

    files = Files()
    for entry in entries:
        if entry.is_dir():
            if not recursive or should_skip_directory(entry.name):
                continue
            files.extend(scan_for_files(file_set, entry.path, recursive, parser))
            continue

        if not is_source_file(entry.name):
            continue
        files.append(parser.parse_file(entry.path, file_set))

    logger.debug(f"Scanned {dir_path}: {len(files)} Go file(s)")
    return files
