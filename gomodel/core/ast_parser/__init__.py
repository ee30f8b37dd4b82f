"""gomodel AST parser: tree-sitter based Go parsing.

Public API:
    parse_file(path, file_set) → SourceFile
    parse_source(source, file_path, file_set) → SourceFile
    is_source_file(file_path) → bool
"""

from typing import Optional, Union

from .fileset import FileSet
from .go_parser import GoParser, get_parser
from .models import Comment, ImportSpec, MethodDecl, Position, TypeDecl
from .syntax import SourceFile
from .utils import is_source_file, is_test_file, lookup_struct_tag, should_skip_directory, unquote

__all__ = [
    "parse_file",
    "parse_source",
    "is_source_file",
    "is_test_file",
    "lookup_struct_tag",
    "should_skip_directory",
    "unquote",
    "Comment",
    "FileSet",
    "GoParser",
    "ImportSpec",
    "MethodDecl",
    "Position",
    "SourceFile",
    "TypeDecl",
]


def parse_file(file_path: str, file_set: Optional[FileSet] = None) -> SourceFile:
    """Parse a Go file into a SourceFile.

    Args:
        file_path: Path to the source file
        file_set: Position table to register the file in (a fresh one if None)

    Returns:
        SourceFile for the file
    """
    return get_parser().parse_file(file_path, file_set if file_set is not None else FileSet())


def parse_source(
    source_text: Union[str, bytes],
    file_path: str,
    file_set: Optional[FileSet] = None,
) -> SourceFile:
    """Parse Go source held in memory into a SourceFile.

    Args:
        source_text: Source code
        file_path: Path recorded for positions and errors
        file_set: Position table to register the file in (a fresh one if None)

    Returns:
        SourceFile for the source
    """
    return get_parser().parse_source(source_text, file_path, file_set if file_set is not None else FileSet())
