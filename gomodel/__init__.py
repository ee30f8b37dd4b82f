"""gomodel - a queryable model of Go source trees.

Public API:
    open_directory_by_path(path, context) → Directory
    open_directory(ref, ...) → Directory
    resolve(input_path, roots) → CanonicalPackageRef
"""

from .core.config import BuildContext
from .core.errors import (
    AmbiguousMethodError,
    BuildConstraintError,
    FilesystemError,
    GoModelError,
    ImportResolutionError,
    PackageNotFoundError,
    SourceParseError,
    TypeCheckError,
    TypeLookupError,
)
from .core.resolver import CanonicalPackageRef, resolve

__version__ = "0.1.0"

__all__ = [
    "AmbiguousMethodError",
    "BuildConstraintError",
    "BuildContext",
    "CanonicalPackageRef",
    "DeclarationTypeChecker",
    "Directory",
    "Field",
    "FilesystemError",
    "GoModelError",
    "ImportResolutionError",
    "Importer",
    "Method",
    "Package",
    "PackageNotFoundError",
    "Record",
    "SourceParseError",
    "TypeCheckError",
    "TypeChecker",
    "TypeInfo",
    "TypeKind",
    "TypeLookupError",
    "TypeName",
    "TypeSpec",
    "open_directory",
    "open_directory_by_path",
    "resolve",
]

# Model and type names pull in the tree-sitter grammar; load them on first use
_IMPORT_MAP = {
    "Directory": ".core.model",
    "Field": ".core.model",
    "Method": ".core.model",
    "Package": ".core.model",
    "Record": ".core.model",
    "TypeSpec": ".core.model",
    "open_directory": ".core.model",
    "open_directory_by_path": ".core.model",
    "DeclarationTypeChecker": ".core.types",
    "Importer": ".core.types",
    "TypeChecker": ".core.types",
    "TypeInfo": ".core.types",
    "TypeKind": ".core.types",
    "TypeName": ".core.types",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'gomodel' has no attribute {name}")
