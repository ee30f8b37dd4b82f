"""Resolved Go types.

A small closed family of type variants produced by the type checker.
Composite variants are frozen and compare structurally; Named types compare
by (package path, name) so recursive declarations stay hashable.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class TypeKind(str, Enum):
    """Shape of a type after looking through named types."""

    PLAIN = "plain"
    POINTER = "pointer"
    CONTAINER = "container"


class GoType:
    """Base of all resolved types."""

    def underlying(self) -> "GoType":
        return self

    def elem(self) -> Optional["GoType"]:
        """Element type for pointers and containers, None otherwise."""
        return None


@dataclass(frozen=True)
class Basic(GoType):
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Pointer(GoType):
    base: GoType

    def elem(self) -> GoType:
        return self.base

    def __str__(self) -> str:
        return f"*{self.base}"


@dataclass(frozen=True)
class Slice(GoType):
    element: GoType

    def elem(self) -> GoType:
        return self.element

    def __str__(self) -> str:
        return f"[]{self.element}"


@dataclass(frozen=True)
class Array(GoType):
    element: GoType
    length: Optional[int]  # None when the length is not a literal

    def elem(self) -> GoType:
        return self.element

    def __str__(self) -> str:
        return f"[{'?' if self.length is None else self.length}]{self.element}"


@dataclass(frozen=True)
class Map(GoType):
    key: GoType
    value: GoType

    def elem(self) -> GoType:
        return self.value

    def __str__(self) -> str:
        return f"map[{self.key}]{self.value}"


@dataclass(frozen=True)
class Chan(GoType):
    value: GoType
    direction: str = "both"  # "both" | "send" | "recv"

    def elem(self) -> GoType:
        return self.value

    def __str__(self) -> str:
        if self.direction == "send":
            return f"chan<- {self.value}"
        if self.direction == "recv":
            return f"<-chan {self.value}"
        return f"chan {self.value}"


@dataclass(frozen=True)
class StructField:
    name: str
    type: GoType
    embedded: bool = False
    tag: Optional[str] = None


@dataclass(frozen=True)
class Struct(GoType):
    fields: Tuple[StructField, ...] = ()

    def __str__(self) -> str:
        inner = "; ".join(
            str(f.type) if f.embedded else f"{f.name} {f.type}" for f in self.fields
        )
        return f"struct{{{inner}}}"


@dataclass(frozen=True)
class Interface(GoType):
    text: str = "interface{}"

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Signature(GoType):
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class TypeParam(GoType):
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class Named(GoType):
    """A declared type.

    `resolved` stays None for types whose declaration was not checked
    (e.g. from a package the importer could not open); such a type is its
    own underlying type.
    """

    name: str
    path: str = ""
    type_args: Tuple[GoType, ...] = ()
    resolved: Optional[GoType] = field(default=None, repr=False)
    origin: Optional["Named"] = field(default=None, repr=False)  # Generic declaration this instantiates

    def underlying(self) -> GoType:
        if self.origin is not None:
            return self.origin.underlying()
        seen = set()
        typ: GoType = self
        while isinstance(typ, Named) and typ.resolved is not None:
            if id(typ) in seen:
                break
            seen.add(id(typ))
            typ = typ.resolved
        return typ

    @property
    def is_opaque(self) -> bool:
        if self.origin is not None:
            return self.origin.is_opaque
        return self.resolved is None

    def instantiate(self, type_args: Tuple[GoType, ...]) -> "Named":
        return Named(self.name, self.path, type_args, origin=self)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Named):
            return NotImplemented
        return (self.path, self.name, self.type_args) == (other.path, other.name, other.type_args)

    def __hash__(self) -> int:
        return hash((self.path, self.name, self.type_args))

    def __str__(self) -> str:
        base = f"{self.path}.{self.name}" if self.path else self.name
        if self.type_args:
            return f"{base}[{', '.join(str(arg) for arg in self.type_args)}]"
        return base


# ── Classification ───────────────────────────────────────────────────


@dataclass(frozen=True)
class TypeName:
    """Name of a type plus the import path declaring it ("" for predeclared)."""

    name: str
    path: str = ""


def classify(typ: GoType) -> Tuple[TypeKind, Optional[GoType]]:
    """Classify a type by one layer of indirection or containment.

    Returns:
        (kind, element) where element is None for PLAIN types
    """
    under = typ.underlying()
    if isinstance(under, Pointer):
        return TypeKind.POINTER, under.base
    if isinstance(under, (Slice, Array, Map, Chan)):
        return TypeKind.CONTAINER, under.elem()
    return TypeKind.PLAIN, None


def leaf(typ: GoType) -> GoType:
    """Strip pointer and container layers until none remain.

    Named types are not looked through: `[]*pkg.Item` yields `pkg.Item`.
    """
    while True:
        inner = typ.elem()
        if inner is None:
            return typ
        typ = inner


def type_name(typ: GoType) -> TypeName:
    """Name and declaring path of the leaf item type."""
    item = leaf(typ)
    if isinstance(item, Named):
        return TypeName(name=item.name, path=item.path)
    if isinstance(item, (Basic, TypeParam)):
        return TypeName(name=item.name)
    return TypeName(name=str(item))
