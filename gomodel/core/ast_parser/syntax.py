"""Syntax model of one parsed Go file.

SourceFile wraps the tree-sitter tree of a file together with its path,
declared package name, and position base. Declarations are enumerated
straight from the tree on each call.
"""

import os
from typing import Iterator, List, Optional, Tuple

import tree_sitter

from ..constants import GO_GENERATE_RE
from ..errors import SourceParseError
from .fileset import FileSet
from .models import Comment, ImportSpec, MethodDecl, Position, TypeDecl
from .utils import is_test_file, unquote


def node_text(node: tree_sitter.Node, source: bytes) -> str:
    """Get the text content of a node."""
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def walk_tree(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Walk all nodes in a tree using a generator."""
    yield node
    for child in node.children:
        yield from walk_tree(child)


def strip_parens(node: Optional[tree_sitter.Node]) -> Optional[tree_sitter.Node]:
    while node is not None and node.type == "parenthesized_type":
        inner = [c for c in node.named_children if c.type != "comment"]
        node = inner[0] if inner else None
    return node


class SourceFile:
    """One parsed Go file.

    Attributes:
        path: File path as scanned.
        source: Raw source bytes.
        tree: tree-sitter syntax tree (comments preserved).
        package_name: Name from the package clause.
        base: Base position of the file in its FileSet.
    """

    __slots__ = ("path", "source", "tree", "package_name", "base", "file_set")

    def __init__(
        self,
        path: str,
        source: bytes,
        tree: tree_sitter.Tree,
        package_name: str,
        base: int,
        file_set: FileSet,
    ):
        self.path = path
        self.source = source
        self.tree = tree
        self.package_name = package_name
        self.base = base
        self.file_set = file_set

    def __repr__(self) -> str:
        return f"{self.path}[{self.package_name}]"

    @property
    def root(self) -> tree_sitter.Node:
        return self.tree.root_node

    @property
    def dir(self) -> str:
        return os.path.dirname(self.path)

    @property
    def is_test(self) -> bool:
        return is_test_file(self.path)

    def text(self, node: tree_sitter.Node) -> str:
        return node_text(node, self.source)

    def pos(self, node: tree_sitter.Node) -> int:
        """Absolute FileSet position of the start of `node`."""
        return self.base + node.start_byte

    def position(self, node: tree_sitter.Node) -> Optional[Position]:
        return self.file_set.position(self.pos(node))

    # =========================================================================
    # Comments
    # =========================================================================

    def comments(self) -> List[Comment]:
        """All comments of the file, in source order."""
        return [
            self._comment(node)
            for node in walk_tree(self.root)
            if node.type == "comment"
        ]

    def header_comments(self) -> List[Comment]:
        """Comments preceding the package clause (where build constraints live)."""
        header = []
        for child in self.root.children:
            if child.type == "package_clause":
                break
            if child.type == "comment":
                header.append(self._comment(child))
        return header

    def go_generate_tags(self) -> List[str]:
        """Tool names referenced by `//go:generate` directives."""
        tags = []
        for comment in self.comments():
            match = GO_GENERATE_RE.search(comment.text)
            if match:
                tags.append(match.group(1))
        return tags

    def _comment(self, node: tree_sitter.Node) -> Comment:
        return Comment(
            text=self.text(node).rstrip(),
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
        )

    def _doc_comments(self, node: tree_sitter.Node) -> Tuple[str, ...]:
        """Comment lines directly above a declaration, with no blank line between."""
        lines: List[str] = []
        next_row = node.start_point[0]
        prev = node.prev_named_sibling
        while prev is not None and prev.type == "comment" and prev.end_point[0] == next_row - 1:
            lines.insert(0, self.text(prev).rstrip())
            next_row = prev.start_point[0]
            prev = prev.prev_named_sibling
        return tuple(lines)

    # =========================================================================
    # Imports
    # =========================================================================

    def imports(self) -> List[ImportSpec]:
        """Import specs of the file, in source order.

        Raises:
            SourceParseError: If an import path literal cannot be decoded
        """
        specs: List[ImportSpec] = []
        for child in self.root.children:
            if child.type != "import_declaration":
                continue
            for node in walk_tree(child):
                if node.type != "import_spec":
                    continue
                path_node = node.child_by_field_name("path")
                if path_node is None:
                    raise SourceParseError(self.path, "import spec without path", node.start_point[0] + 1)
                try:
                    path = unquote(self.text(path_node))
                except ValueError as e:
                    raise SourceParseError(
                        self.path, f"unable to unquote import path: {e}", path_node.start_point[0] + 1
                    ) from e
                name_node = node.child_by_field_name("name")
                specs.append(ImportSpec(
                    path=path,
                    name=self.text(name_node) if name_node is not None else None,
                    line=node.start_point[0] + 1,
                ))
        return specs

    def import_paths(self) -> List[str]:
        return [spec.path for spec in self.imports()]

    # =========================================================================
    # Declarations
    # =========================================================================

    def type_declarations(self) -> List[TypeDecl]:
        """Named type declarations (`type X ...`), grouped ones included."""
        decls: List[TypeDecl] = []
        for child in self.root.children:
            if child.type != "type_declaration":
                continue
            doc = self._doc_comments(child)
            for spec in child.named_children:
                if spec.type not in ("type_spec", "type_alias"):
                    continue
                name_node = spec.child_by_field_name("name")
                type_node = spec.child_by_field_name("type")
                if name_node is None or type_node is None:
                    continue
                decls.append(TypeDecl(
                    name=self.text(name_node),
                    node=spec,
                    type_node=type_node,
                    is_alias=spec.type == "type_alias",
                    doc=doc,
                ))
        return decls

    def method_declarations(self) -> List[MethodDecl]:
        """Function declarations that carry a receiver list."""
        decls: List[MethodDecl] = []
        for child in self.root.children:
            if child.type != "method_declaration":
                continue
            name_node = child.child_by_field_name("name")
            receiver = child.child_by_field_name("receiver")
            if name_node is None or receiver is None:
                continue

            params = [
                c for c in receiver.named_children
                if c.type in ("parameter_declaration", "variadic_parameter_declaration")
            ]
            count = sum(max(1, len(p.children_by_field_name("name"))) for p in params)

            type_name, is_pointer = None, False
            if count == 1:
                type_name, is_pointer = self._receiver_base(params[0].child_by_field_name("type"))

            decls.append(MethodDecl(
                name=self.text(name_node),
                node=child,
                receiver_count=count,
                receiver_type_name=type_name,
                pointer_receiver=is_pointer,
            ))
        return decls

    def _receiver_base(self, type_node: Optional[tree_sitter.Node]) -> Tuple[Optional[str], bool]:
        """Name of the receiver's base type after removing one pointer layer."""
        node = strip_parens(type_node)
        is_pointer = False
        if node is not None and node.type == "pointer_type":
            is_pointer = True
            inner = [c for c in node.named_children if c.type != "comment"]
            node = strip_parens(inner[0]) if inner else None
        if node is not None and node.type == "generic_type":
            node = node.child_by_field_name("type")
        if node is None or node.type != "type_identifier":
            return None, is_pointer
        return self.text(node), is_pointer
