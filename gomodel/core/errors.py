"""Error taxonomy for source model construction.

Every failure raised while resolving, scanning, or type-checking a package
derives from GoModelError so callers can catch the whole family at once.
"""

from typing import Dict, List, Sequence


class GoModelError(Exception):
    """Base class for all gomodel errors."""


class PackageNotFoundError(GoModelError):
    """A package path could not be resolved under any lookup root."""

    def __init__(self, input_path: str, lookup_paths: Sequence[str]):
        self.input_path = input_path
        self.lookup_paths = list(lookup_paths)
        super().__init__(
            f"unable to find package with path '{input_path}' in {self.lookup_paths}"
        )


class FilesystemError(GoModelError):
    """A stat or directory listing failed."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(message)


class SourceParseError(GoModelError):
    """A source file could not be parsed."""

    def __init__(self, path: str, message: str, line: int = 0, column: int = 0):
        self.path = path
        self.line = line
        self.column = column
        self.message = message
        location = f"{path}:{line}:{column}" if line else path
        super().__init__(f"cannot parse go file '{location}': {message}")


class BuildConstraintError(GoModelError):
    """A build-constraint line is malformed."""

    def __init__(self, path: str, line: str, message: str):
        self.path = path
        self.line = line
        super().__init__(f"invalid build constraint in '{path}' ({line!r}): {message}")


class TypeCheckError(GoModelError):
    """Type resolution failed for one package's file group."""

    def __init__(self, message: str, directory: str = "", package_name: str = ""):
        self.directory = directory
        self.package_name = package_name
        self.message = message
        if directory or package_name:
            message = f"unable to get package info of '{package_name}' (in: '{directory}'): {message}"
        super().__init__(message)


class TypeLookupError(TypeCheckError):
    """A type expression has no resolved type (e.g. the package was opened files-only)."""


class AmbiguousMethodError(GoModelError):
    """More than one method with the same name is bound to one type."""

    def __init__(self, type_name: str, method_name: str, count: int):
        self.type_name = type_name
        self.method_name = method_name
        self.count = count
        super().__init__(
            f"found more than one method of '{type_name}' with the same name "
            f"'{method_name}': {count}"
        )


class ImportResolutionError(GoModelError):
    """One or more imports of a package could not be opened."""

    def __init__(self, package_path: str, errors: Dict[str, Exception]):
        self.package_path = package_path
        self.errors = dict(errors)
        failed: List[str] = sorted(self.errors)
        super().__init__(
            f"unable to open {len(failed)} import(s) of '{package_path}': {', '.join(failed)}"
        )

