"""Resolved Go types and the type checker interface."""

from .checker import DeclarationTypeChecker, Importer, TypeChecker, TypeInfo, guess_package_name
from .model import (
    Array,
    Basic,
    Chan,
    GoType,
    Interface,
    Map,
    Named,
    Pointer,
    Signature,
    Slice,
    Struct,
    StructField,
    TypeKind,
    TypeName,
    TypeParam,
    classify,
    leaf,
    type_name,
)
from .sizes import StdSizes

__all__ = [
    "Array",
    "Basic",
    "Chan",
    "DeclarationTypeChecker",
    "GoType",
    "Importer",
    "Interface",
    "Map",
    "Named",
    "Pointer",
    "Signature",
    "Slice",
    "StdSizes",
    "Struct",
    "StructField",
    "TypeChecker",
    "TypeInfo",
    "TypeKind",
    "TypeName",
    "TypeParam",
    "classify",
    "guess_package_name",
    "leaf",
    "type_name",
]
