"""Directory opening.

Ties the resolver, scanner, build-constraint filter and type checker
together: one call turns a package path into the packages declared in its
directory.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, List, Optional, Set

from ..ast_parser.fileset import FileSet
from ..ast_parser.syntax import SourceFile
from ..build.constraints import passes
from ..config import BuildContext
from ..constants import TEST_PACKAGE_SUFFIX
from ..errors import FilesystemError, GoModelError, PackageNotFoundError, TypeCheckError
from ..ingestion.scanner import scan_for_files
from ..resolver import CanonicalPackageRef, resolve
from ..types.checker import DeclarationTypeChecker, Importer, TypeChecker
from .package import Package

logger = logging.getLogger(__name__)


@dataclass
class Directory:
    """Packages declared by the files of one directory."""

    path: str
    packages: List[Package] = field(default_factory=list)
    file_set: FileSet = field(default_factory=FileSet, repr=False)

    def package(self, name: str) -> Optional[Package]:
        for package in self.packages:
            if package.name == name:
                return package
        return None

    def package_names(self) -> List[str]:
        return [package.name for package in self.packages]


class SourceImporter(Importer):
    """Importer that opens imported packages from source under the lookup roots.

    Keeps one cache per top-level open call. Paths that resolve to no
    directory go to `fallback` when one is given.
    """

    def __init__(
        self,
        context: BuildContext,
        build_tags: AbstractSet[str],
        fallback: Optional[Importer] = None,
        type_checker: Optional[TypeChecker] = None,
    ):
        self.context = context
        self.build_tags = set(build_tags)
        self.fallback = fallback
        self.type_checker = type_checker
        self._cache: Dict[str, Package] = {}
        self._in_progress: Set[str] = set()

    def import_package(self, path: str) -> Package:
        if path in self._cache:
            return self._cache[path]
        if path in self._in_progress:
            raise TypeCheckError(f"import cycle not allowed: {path}")

        try:
            ref = resolve(path, self.context.roots)
        except PackageNotFoundError:
            if self.fallback is None:
                raise
            package = self.fallback.import_package(path)
            self._cache[path] = package
            return package

        self._in_progress.add(path)
        try:
            directory = _open(
                ref,
                context=self.context,
                build_tags=self.build_tags,
                include_test_files=False,
                include_test_package=False,
                files_only=False,
                importer=self.fallback,
                type_checker=self.type_checker,
                source_importer=self,
            )
        finally:
            self._in_progress.discard(path)

        for package in directory.packages:
            if not package.is_test_package:
                self._cache[path] = package
                return package
        raise PackageNotFoundError(path, self.context.roots)


def open_directory(
    ref: CanonicalPackageRef,
    *,
    context: Optional[BuildContext] = None,
    build_tags: Optional[AbstractSet[str]] = None,
    include_test_files: bool = False,
    include_test_package: bool = False,
    files_only: bool = False,
    importer: Optional[Importer] = None,
    type_checker: Optional[TypeChecker] = None,
) -> Directory:
    """Open the packages of a resolved directory.

    Args:
        ref: Resolved package reference
        context: Build context (host defaults if None); its roots locate
            imported packages
        build_tags: Active build tags (context.build_tags() if None)
        include_test_files: Keep `_test.go` files
        include_test_package: Keep `*_test` packages
        files_only: Skip type checking
        importer: External importer used for paths with no directory
        type_checker: Checker to use (DeclarationTypeChecker if None)

    Returns:
        Directory with one Package per declared package name

    Raises:
        PackageNotFoundError: If the directory does not exist and no
            importer can supply the package
        FilesystemError: If the directory cannot be read
        SourceParseError: If a file cannot be parsed
        TypeCheckError: If a package fails type checking
    """
    context = context or BuildContext()
    tags = set(build_tags) if build_tags is not None else context.build_tags()
    source_importer = SourceImporter(context, tags, fallback=importer, type_checker=type_checker)
    return _open(
        ref,
        context=context,
        build_tags=tags,
        include_test_files=include_test_files,
        include_test_package=include_test_package,
        files_only=files_only,
        importer=importer,
        type_checker=type_checker,
        source_importer=source_importer,
    )


def open_directory_by_path(
    path: str,
    context: Optional[BuildContext] = None,
    *,
    build_tags: Optional[AbstractSet[str]] = None,
    include_test_files: bool = False,
    include_test_package: bool = False,
    files_only: bool = False,
    importer: Optional[Importer] = None,
    type_checker: Optional[TypeChecker] = None,
) -> Directory:
    """Resolve a package path against the context's roots and open it.

    When the path resolves to no directory and an importer is given, the
    importer supplies the package instead.
    """
    context = context or BuildContext()
    try:
        ref = resolve(path, context.roots)
    except PackageNotFoundError:
        if importer is None:
            raise
        logger.debug(f"'{path}' not found under {context.roots}, using external importer")
        ref = CanonicalPackageRef.unresolved(path)

    return open_directory(
        ref,
        context=context,
        build_tags=build_tags,
        include_test_files=include_test_files,
        include_test_package=include_test_package,
        files_only=files_only,
        importer=importer,
        type_checker=type_checker,
    )


def _open(
    ref: CanonicalPackageRef,
    *,
    context: BuildContext,
    build_tags: AbstractSet[str],
    include_test_files: bool,
    include_test_package: bool,
    files_only: bool,
    importer: Optional[Importer],
    type_checker: Optional[TypeChecker],
    source_importer: SourceImporter,
) -> Directory:
    if not ref.is_resolved:
        if importer is None:
            raise PackageNotFoundError(ref.package_path, context.roots)
        package = importer.import_package(ref.package_path)
        logger.info(f"Package '{ref.package_path}' supplied by external importer")
        return Directory(path="", packages=[package])

    dir_path = ref.directory_path
    try:
        os.stat(dir_path)
    except (FileNotFoundError, NotADirectoryError) as e:
        raise PackageNotFoundError(ref.package_path or dir_path, context.roots) from e
    except OSError as e:
        raise FilesystemError(dir_path, f"unable to open '{dir_path}': {e.strerror or e}") from e

    file_set = FileSet()
    files = scan_for_files(file_set, dir_path)

    groups: Dict[str, List[SourceFile]] = {}
    for file in files:
        if not passes(file, build_tags):
            continue
        if file.is_test and not include_test_files:
            continue
        groups.setdefault(file.package_name, []).append(file)

    packages: List[Package] = []
    for name, group in groups.items():
        if name.endswith(TEST_PACKAGE_SUFFIX) and not include_test_package:
            continue
        package_path = ref.package_path
        if name.endswith(TEST_PACKAGE_SUFFIX) and package_path:
            package_path += TEST_PACKAGE_SUFFIX
        package = Package(
            name=name,
            dir_path=dir_path,
            lookup_path=ref.root_path,
            files=group,
            file_set=file_set,
            package_path=package_path,
            context=context,
            files_only=files_only,
            importer=importer,
            type_checker=type_checker,
            build_tags=build_tags,
        )
        if not files_only:
            checker = type_checker or DeclarationTypeChecker()
            try:
                package.attach_type_info(checker.check(dir_path, package_path, group, source_importer))
            except TypeCheckError as e:
                raise TypeCheckError(e.message, dir_path, name) from e
            except GoModelError as e:
                raise TypeCheckError(str(e), dir_path, name) from e
        packages.append(package)

    logger.info(f"Opened {dir_path}: {len(files)} file(s), packages {[p.name for p in packages]}")
    return Directory(path=dir_path, packages=packages, file_set=file_set)
