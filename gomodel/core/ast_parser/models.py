"""Syntax model data containers.

Plain records describing what the parser adapter extracts from one file.
These are pure data containers with no parsing logic.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import tree_sitter


@dataclass(frozen=True)
class Position:
    """A human-readable source position (1-based line and byte column)."""

    filename: str
    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Comment:
    """One `//` or `/* */` comment."""

    text: str
    start_line: int
    end_line: int


@dataclass(frozen=True)
class ImportSpec:
    """One import clause entry."""

    path: str
    name: Optional[str]  # Explicit alias, "." or "_"; None when absent
    line: int


@dataclass(frozen=True)
class TypeDecl:
    """A named type declaration (`type Name ...`)."""

    name: str
    node: tree_sitter.Node  # type_spec or type_alias node
    type_node: tree_sitter.Node  # Right-hand side type expression
    is_alias: bool = False
    doc: Tuple[str, ...] = field(default_factory=tuple)  # Doc comment lines of the enclosing declaration


@dataclass(frozen=True)
class MethodDecl:
    """A function declaration carrying a receiver list."""

    name: str
    node: tree_sitter.Node
    receiver_count: int  # Number of receiver parameters declared
    receiver_type_name: Optional[str]  # Receiver base type name, one pointer layer removed
    pointer_receiver: bool = False
