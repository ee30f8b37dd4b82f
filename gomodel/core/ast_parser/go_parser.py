"""Go parser using tree-sitter.

Turns Go source into SourceFile syntax models. A file with any syntax error,
or without a package clause, is rejected as a whole.
"""

import logging
from typing import Optional, Union

import tree_sitter
import tree_sitter_go

from ..errors import FilesystemError, SourceParseError
from .fileset import FileSet
from .syntax import SourceFile, node_text, walk_tree

logger = logging.getLogger(__name__)

_GO_LANGUAGE = tree_sitter.Language(tree_sitter_go.language())


class GoParser:
    """tree-sitter based Go parser.

    Produces:
    - The full syntax tree with comments
    - The declared package name
    - A base position in the caller's FileSet
    """

    def parse_file(self, file_path: str, file_set: FileSet) -> SourceFile:
        """Read and parse one Go file.

        Args:
            file_path: Path of the file to parse
            file_set: Position table shared by the files of one scan

        Returns:
            SourceFile for the file

        Raises:
            FilesystemError: If the file cannot be read
            SourceParseError: If the file is not valid Go
        """
        try:
            with open(file_path, "rb") as f:
                source = f.read()
        except OSError as e:
            raise FilesystemError(file_path, f"unable to read '{file_path}': {e.strerror or e}") from e

        return self.parse_source(source, file_path, file_set)

    def parse_source(
        self,
        source: Union[str, bytes],
        file_path: str,
        file_set: FileSet,
    ) -> SourceFile:
        """Parse Go source held in memory.

        Args:
            source: Source code as str or UTF-8 bytes
            file_path: Path recorded on the SourceFile and in errors
            file_set: Position table receiving the file

        Returns:
            SourceFile for the source
        """
        source_bytes = source.encode("utf-8") if isinstance(source, str) else source

        parser = tree_sitter.Parser(_GO_LANGUAGE)
        tree = parser.parse(source_bytes)
        root = tree.root_node

        if root.has_error:
            bad = self._first_error(root)
            line, column = (bad.start_point[0] + 1, bad.start_point[1] + 1) if bad else (0, 0)
            detail = "missing token" if bad is not None and bad.is_missing else "syntax error"
            raise SourceParseError(file_path, detail, line, column)

        package_name = self._package_name(root, source_bytes)
        if package_name is None:
            raise SourceParseError(file_path, "expected 'package' clause", 1, 1)

        base = file_set.add_file(file_path, source_bytes)
        logger.debug(f"Parsed {file_path} (package {package_name}, base {base})")
        return SourceFile(
            path=file_path,
            source=source_bytes,
            tree=tree,
            package_name=package_name,
            base=base,
            file_set=file_set,
        )

    @staticmethod
    def _first_error(root: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        for node in walk_tree(root):
            if node.type == "ERROR" or node.is_missing:
                return node
        return None

    @staticmethod
    def _package_name(root: tree_sitter.Node, source: bytes) -> Optional[str]:
        for child in root.children:
            if child.type != "package_clause":
                continue
            for sub in child.named_children:
                if sub.type in ("package_identifier", "identifier"):
                    return node_text(sub, source)
        return None


_default_parser: Optional[GoParser] = None


def get_parser() -> GoParser:
    """Return the shared GoParser instance (parsers hold no per-file state)."""
    global _default_parser
    if _default_parser is None:
        _default_parser = GoParser()
    return _default_parser
