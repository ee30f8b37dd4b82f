"""Record, field and method model.

Objects here are derived on demand from a Package's files. They refer back
to their owners by name or path and look them up through the package, so a
Field never keeps its Record alive and a Record never holds its file.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

import tree_sitter

from ..ast_parser.models import TypeDecl
from ..ast_parser.syntax import SourceFile, strip_parens
from ..ast_parser.utils import lookup_struct_tag, unquote
from ..errors import AmbiguousMethodError, TypeLookupError
from ..types.model import GoType, Pointer, Slice, TypeKind, TypeName, classify, type_name
from ..types.sizes import StdSizes

if TYPE_CHECKING:
    from .package import Package

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Method:
    """A function declaration with exactly one receiver parameter.

    Attributes:
        name: Method name.
        receiver_type_name: Receiver base type name, one pointer layer removed.
        pointer_receiver: Whether the receiver was declared as `*T`.
        file_path: Path of the declaring file.
        node: method_declaration syntax node.
    """

    name: str
    receiver_type_name: str
    pointer_receiver: bool
    file_path: str
    node: tree_sitter.Node = field(repr=False, compare=False)

    def __str__(self) -> str:
        receiver = f"*{self.receiver_type_name}" if self.pointer_receiver else self.receiver_type_name
        return f"func ({receiver}) {self.name}"


def find_methods_of(methods: List[Method], type_name: str) -> List[Method]:
    """Methods whose receiver names `type_name`."""
    return [m for m in methods if m.receiver_type_name == type_name]


class TypeSpec:
    """A named type declared at package level."""

    def __init__(self, package: "Package", file_path: str, decl: TypeDecl):
        self.package = package
        self.file_path = file_path
        self.decl = decl

    def __repr__(self) -> str:
        return f"type:{self.name}"

    @property
    def name(self) -> str:
        return self.decl.name

    @property
    def node(self) -> tree_sitter.Node:
        return self.decl.node

    @property
    def doc(self):
        return self.decl.doc

    @property
    def file(self) -> SourceFile:
        return self.package.file_by_path(self.file_path)

    @property
    def type(self) -> GoType:
        """Declared type (the Named type, or the alias target)."""
        return self.package.to_type(self.decl.node, self.file)

    def methods(self) -> List[Method]:
        return find_methods_of(self.package.methods(), self.name)

    def method_by_name(self, method_name: str) -> Optional[Method]:
        """Return the method called `method_name`, or None.

        Raises:
            AmbiguousMethodError: If more than one method has that name
        """
        found = [m for m in self.methods() if m.name == method_name]
        if not found:
            return None
        if len(found) > 1:
            raise AmbiguousMethodError(self.name, method_name, len(found))
        return found[0]


class Record(TypeSpec):
    """A struct type declaration."""

    def __repr__(self) -> str:
        return f"struct:{self.name}"

    @property
    def struct_node(self) -> tree_sitter.Node:
        return strip_parens(self.decl.type_node)

    def fields(self) -> List["Field"]:
        """Fields in declaration order, one per declared name.

        `A, B int` yields two fields; an embedded field takes the name of
        its type.
        """
        file = self.file
        body = next((c for c in self.struct_node.named_children if c.type == "field_declaration_list"), None)
        if body is None:
            return []

        fields: List[Field] = []
        for decl in body.named_children:
            if decl.type != "field_declaration":
                continue
            type_node = decl.child_by_field_name("type")
            tag_node = decl.child_by_field_name("tag")
            tag = None
            if tag_node is not None:
                try:
                    tag = unquote(file.text(tag_node))
                except ValueError:
                    logger.debug(f"{self.name}: undecodable tag literal {file.text(tag_node)!r}")

            names = [file.text(n) for n in decl.children_by_field_name("name")]
            embedded = not names
            if embedded:
                names = [_embedded_name(file, type_node)]

            for name in names:
                fields.append(Field(
                    name=name,
                    index=len(fields),
                    record_name=self.name,
                    file_path=self.file_path,
                    node=decl,
                    type_node=type_node,
                    embedded=embedded,
                    tag=tag,
                    package=self.package,
                ))
        return fields

    def field_by_name(self, name: str) -> Optional["Field"]:
        for f in self.fields():
            if f.name == name:
                return f
        return None

    def std_size(self, word_size: int = 8, max_align: int = 8) -> int:
        """Size in bytes of a value of the record."""
        return StdSizes(word_size, max_align).sizeof(self.type)


def _embedded_name(file: SourceFile, type_node: tree_sitter.Node) -> str:
    node = strip_parens(type_node)
    while node is not None:
        if node.type == "type_identifier":
            return file.text(node)
        if node.type == "qualified_type":
            return file.text(node.child_by_field_name("name"))
        if node.type == "generic_type":
            node = node.child_by_field_name("type")
        elif node.type == "pointer_type":
            node = strip_parens(node.named_children[0]) if node.named_children else None
        else:
            break
    return file.text(type_node)


@dataclass(eq=False)
class Field:
    """One field of a record.

    Attributes:
        name: Declared name, or the type name for an embedded field.
        index: Zero-based position among the record's fields.
        record_name: Name of the owning record.
        file_path: Path of the declaring file.
        node: field_declaration syntax node.
        type_node: Declared type expression.
        embedded: Whether the field has no explicit name.
        tag: Decoded struct tag, None when absent.
    """

    name: str
    index: int
    record_name: str
    file_path: str
    node: tree_sitter.Node = field(repr=False)
    type_node: tree_sitter.Node = field(repr=False)
    embedded: bool = False
    tag: Optional[str] = None
    package: Optional["Package"] = field(default=None, repr=False)

    @property
    def record(self) -> Optional[Record]:
        return self.package.record(self.record_name) if self.package is not None else None

    @property
    def type(self) -> GoType:
        """Resolved type of the field.

        Raises:
            TypeLookupError: If the package carries no type information
        """
        if self.package is None:
            raise TypeLookupError(f"field {self.record_name}.{self.name} is detached from its package")
        return self.package.to_type(self.node, self.package.file_by_path(self.file_path))

    def tag_get(self, key: str) -> Optional[str]:
        """Value of `key` in the field's tag; None if absent or malformed."""
        if self.tag is None:
            return None
        return lookup_struct_tag(self.tag, key)

    @property
    def is_pointer(self) -> bool:
        return isinstance(self.type.underlying(), Pointer)

    @property
    def is_slice(self) -> bool:
        return isinstance(self.type.underlying(), Slice)

    @property
    def kind(self) -> TypeKind:
        return classify(self.type)[0]

    def type_elem(self) -> GoType:
        """Type pointed to by a pointer field.

        Raises:
            ValueError: If the field is not a pointer
        """
        under = self.type.underlying()
        if not isinstance(under, Pointer):
            raise ValueError(f"field {self.record_name}.{self.name} is not a pointer: {self.type}")
        return under.base

    def item_type_name(self) -> TypeName:
        """Name and path of the type left after removing pointer and container layers.

        `uint64`, `[]uint64` and `*uint64` all give `uint64`; `[]*pkg.Item`
        gives `Item` declared in `pkg`.
        """
        return type_name(self.type)

    def std_size(self, word_size: int = 8, max_align: int = 8) -> int:
        return StdSizes(word_size, max_align).sizeof(self.type)
