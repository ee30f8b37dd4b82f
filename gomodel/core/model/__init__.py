"""Package, record, field and method model."""

from .directory import Directory, SourceImporter, open_directory, open_directory_by_path
from .package import Package
from .records import Field, Method, Record, TypeSpec, find_methods_of

__all__ = [
    "Directory",
    "Field",
    "Method",
    "Package",
    "Record",
    "SourceImporter",
    "TypeSpec",
    "find_methods_of",
    "open_directory",
    "open_directory_by_path",
]
