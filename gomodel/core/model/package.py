"""Package model.

A Package is the group of files of one directory that declare the same
package name, plus the type information resolved for exactly that group.
"""

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, AbstractSet, Dict, List, Optional

import tree_sitter

from ..ast_parser.fileset import FileSet
from ..ast_parser.syntax import SourceFile, strip_parens
from ..config import BuildContext
from ..constants import MARKER_COMMENT_PREFIX, TEST_PACKAGE_SUFFIX
from ..errors import GoModelError, ImportResolutionError, TypeLookupError
from ..ingestion.scanner import Files
from ..types.checker import Importer, TypeChecker, TypeInfo
from ..types.model import GoType
from .records import Method, Record, TypeSpec

if TYPE_CHECKING:
    from .directory import Directory

logger = logging.getLogger(__name__)

# Pseudo-package of cgo; never backed by a directory
_CGO_IMPORT = "C"


class Package:
    """One Go package.

    Attributes:
        name: Declared package name.
        dir_path: Directory holding the files.
        lookup_path: Root the directory was found under ("" if none).
        files: The package's files, in scan order.
        type_info: Resolved types; None when opened files-only.
        file_set: Position table shared by the files.
    """

    def __init__(
        self,
        name: str,
        dir_path: str,
        lookup_path: str = "",
        files: Optional[List[SourceFile]] = None,
        file_set: Optional[FileSet] = None,
        package_path: str = "",
        context: Optional[BuildContext] = None,
        files_only: bool = False,
        importer: Optional[Importer] = None,
        type_checker: Optional[TypeChecker] = None,
        build_tags: Optional[AbstractSet[str]] = None,
    ):
        self.name = name
        self.dir_path = dir_path
        self.lookup_path = lookup_path
        self.files = Files(files or [])
        self.file_set = file_set
        self.type_info: Optional[TypeInfo] = None
        self._package_path = package_path
        self._context = context
        self._files_only = files_only
        self._importer = importer
        self._type_checker = type_checker
        self._build_tags = set(build_tags) if build_tags is not None else None

    def __repr__(self) -> str:
        return f"Package({self.name!r}, path={self.path!r}, files={len(self.files)})"

    @property
    def path(self) -> str:
        """Import path of the package."""
        if self.type_info is not None and self.type_info.package_path:
            return self.type_info.package_path
        if self._package_path:
            return self._package_path
        return self.dir_path[len(self.lookup_path):].strip("/\\")

    @property
    def is_test_package(self) -> bool:
        return self.name.endswith(TEST_PACKAGE_SUFFIX)

    def attach_type_info(self, type_info: TypeInfo) -> None:
        if self.type_info is not None:
            raise ValueError(f"package {self.name} already has type information")
        self.type_info = type_info

    def file_by_path(self, path: str) -> Optional[SourceFile]:
        return self.files.find_by_path(path)

    def to_type(self, node: tree_sitter.Node, file: Optional[SourceFile] = None) -> GoType:
        """Resolved type of a checked syntax node.

        Raises:
            TypeLookupError: If the package has no type information or the
                node was not type-checked
        """
        if self.type_info is None:
            raise TypeLookupError(f"package {self.name} was opened without type information")
        if file is None:
            raise TypeLookupError(f"no file of package {self.name} holds the node")
        typ = self.type_info.type_of(file.path, node)
        if typ is None:
            raise TypeLookupError(f"no type recorded for '{file.text(node)}' in {file.path}")
        return typ

    # =========================================================================
    # Declarations
    # =========================================================================

    def type_specs(self) -> List[TypeSpec]:
        return [
            TypeSpec(self, file.path, decl)
            for file in self.files
            for decl in file.type_declarations()
        ]

    def records(self, marker: Optional[str] = None) -> List[Record]:
        """Struct type declarations, in file and source order.

        Args:
            marker: When set, only declarations whose doc comment has the
                exact line `//go:<marker>` are returned
        """
        expected = f"{MARKER_COMMENT_PREFIX}{marker}" if marker is not None else None
        records = []
        for file in self.files:
            for decl in file.type_declarations():
                type_node = strip_parens(decl.type_node)
                if type_node is None or type_node.type != "struct_type":
                    continue
                if expected is not None and expected not in decl.doc:
                    continue
                records.append(Record(self, file.path, decl))
        return records

    def record(self, name: str) -> Optional[Record]:
        for record in self.records():
            if record.name == name:
                return record
        return None

    def type_spec(self, name: str) -> Optional[TypeSpec]:
        for spec in self.type_specs():
            if spec.name == name:
                return spec
        return None

    def methods(self) -> List[Method]:
        """Function declarations with exactly one receiver, in file order."""
        methods = []
        for file in self.files:
            for decl in file.method_declarations():
                if decl.receiver_count != 1 or decl.receiver_type_name is None:
                    continue
                methods.append(Method(
                    name=decl.name,
                    receiver_type_name=decl.receiver_type_name,
                    pointer_receiver=decl.pointer_receiver,
                    file_path=file.path,
                    node=decl.node,
                ))
        return methods

    # =========================================================================
    # Imports
    # =========================================================================

    def import_paths(self) -> List[str]:
        """Import paths of all files, first occurrence order."""
        seen: Dict[str, None] = {}
        for file in self.files:
            for path in file.import_paths():
                seen.setdefault(path, None)
        return list(seen)

    def _open_import(self, path: str) -> "Directory":
        from .directory import open_directory_by_path

        return open_directory_by_path(
            path,
            self._context or BuildContext(),
            build_tags=self._build_tags,
            include_test_files=False,
            include_test_package=False,
            files_only=self._files_only,
            importer=self._importer,
            type_checker=self._type_checker,
        )

    def imports(self, max_workers: Optional[int] = None) -> List["Package"]:
        """Open every package imported by this package.

        Test packages found in an imported directory are dropped. Imports
        are opened with the build context, build tags, importer, and
        files-only mode this package was opened with.

        Args:
            max_workers: Open imports on a thread pool of this size; results
                keep import order either way

        Returns:
            Imported packages in import order

        Raises:
            ImportResolutionError: If any import cannot be opened
        """
        paths = [p for p in self.import_paths() if p != _CGO_IMPORT]
        packages = self._open_imports(paths, max_workers)
        logger.debug(f"Package {self.path}: opened {len(packages)} import(s)")
        return packages

    def _open_imports(self, paths: List[str], max_workers: Optional[int]) -> List["Package"]:
        results: Dict[str, "Directory"] = {}
        errors: Dict[str, Exception] = {}

        def _open(path: str):
            try:
                results[path] = self._open_import(path)
            except GoModelError as e:
                errors[path] = e

        if max_workers and max_workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                list(executor.map(_open, paths))
        else:
            for path in paths:
                _open(path)

        if errors:
            raise ImportResolutionError(self.path, errors)

        packages = []
        for path in paths:
            for package in results[path].packages:
                if package.is_test_package:
                    continue
                packages.append(package)
        return packages

    def walk_dependencies(self, max_workers: Optional[int] = None) -> List["Package"]:
        """All packages reachable through imports, breadth first.

        Each import path is opened once. The package itself is not included.
        """
        requested = {self.path}
        walked = {self.path}
        order: List[Package] = []
        queue = deque([self])
        while queue:
            current = queue.popleft()
            paths = []
            for path in current.import_paths():
                if path == _CGO_IMPORT or path in requested:
                    continue
                requested.add(path)
                paths.append(path)
            for package in current._open_imports(paths, max_workers):
                if package.path in walked:
                    continue
                walked.add(package.path)
                order.append(package)
                queue.append(package)
        return order
