"""Type resolution for one package's file group.

Defines the checker and importer interfaces consumed by the package model,
and the default DeclarationTypeChecker. The default checker resolves every
type expression reachable from top-level declarations (type specs, struct
fields, method receivers) into GoType values; value expressions are not
typed.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

import tree_sitter

from ..ast_parser.models import TypeDecl
from ..ast_parser.syntax import SourceFile, strip_parens
from ..ast_parser.utils import unquote
from ..constants import PREDECLARED_BASIC_TYPES
from ..errors import GoModelError, PackageNotFoundError, TypeCheckError
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
    TypeParam,
    type_name,
)

if TYPE_CHECKING:
    from ..model.package import Package

logger = logging.getLogger(__name__)

NodeKey = Tuple[str, int, int]


def node_key(file_path: str, node: tree_sitter.Node) -> NodeKey:
    return (file_path, node.start_byte, node.end_byte)


# =============================================================================
# Results
# =============================================================================


@dataclass
class TypeInfo:
    """Types resolved for one package.

    Attributes:
        package_path: Import path the package was checked under.
        package_name: Declared package name.
        scope: Package-level type names mapped to their types.
        types: Resolved type of each checked syntax node, keyed by
            (file path, start byte, end byte).
    """

    package_path: str
    package_name: str
    scope: Dict[str, GoType] = field(default_factory=dict)
    types: Dict[NodeKey, GoType] = field(default_factory=dict)

    def lookup(self, name: str) -> Optional[GoType]:
        return self.scope.get(name)

    def type_of(self, file_path: str, node: tree_sitter.Node) -> Optional[GoType]:
        return self.types.get(node_key(file_path, node))

    def record(self, file_path: str, node: tree_sitter.Node, typ: GoType) -> None:
        self.types[node_key(file_path, node)] = typ


# =============================================================================
# Interfaces
# =============================================================================


class Importer(ABC):
    """Locates imported packages by import path."""

    @abstractmethod
    def import_package(self, path: str) -> "Package":
        """Return the package for an import path.

        Raises:
            PackageNotFoundError: If no package exists for the path
        """
        ...


class TypeChecker(ABC):
    """Resolves the types of one package's file group."""

    @abstractmethod
    def check(
        self,
        directory: str,
        package_path: str,
        files: Sequence[SourceFile],
        importer: Optional[Importer],
    ) -> TypeInfo:
        """Type-check exactly the given files as one package.

        Raises:
            TypeCheckError: If the files do not form a well-typed package
        """
        ...


# =============================================================================
# Universe
# =============================================================================

_UNIVERSE: Dict[str, GoType] = {name: Basic(name) for name in PREDECLARED_BASIC_TYPES}
_UNIVERSE["error"] = Named("error", resolved=Interface("interface{ Error() string }"))
_UNIVERSE["comparable"] = Named("comparable", resolved=Interface("interface{ comparable }"))
_UNIVERSE["any"] = Interface("any")

_UNSAFE_POINTER = Basic("unsafe.Pointer")

_MAJOR_VERSION_RE = re.compile(r"^v[0-9]+$")
_GOPKG_VERSION_RE = re.compile(r"\.v[0-9]+$")


def guess_package_name(import_path: str) -> str:
    """Package name conventionally declared by the package at `import_path`.

    Uses the last path element, skipping a `/vN` major-version suffix and
    dropping `go-`/`-go` decorations and a gopkg.in style `.vN` suffix.
    """
    parts = [p for p in import_path.split("/") if p]
    if not parts:
        return ""
    name = parts[-1]
    if _MAJOR_VERSION_RE.match(name) and len(parts) > 1:
        name = parts[-2]
    name = _GOPKG_VERSION_RE.sub("", name)
    if name.startswith("go-"):
        name = name[len("go-"):]
    if name.endswith("-go"):
        name = name[:-len("-go")]
    return name.replace("-", "_").replace(".", "_")


def _parse_int_literal(text: str) -> Optional[int]:
    text = text.replace("_", "")
    try:
        return int(text, 0)
    except ValueError:
        pass
    if text.isdigit():
        # Legacy octal form: 0755
        try:
            return int(text, 8)
        except ValueError:
            return None
    return None


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _type_arguments(generic: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    return next((c for c in generic.named_children if c.type == "type_arguments"), None)


# =============================================================================
# Checker
# =============================================================================


class DeclarationTypeChecker(TypeChecker):
    """Default checker over declaration-level type expressions."""

    def check(
        self,
        directory: str,
        package_path: str,
        files: Sequence[SourceFile],
        importer: Optional[Importer],
    ) -> TypeInfo:
        if not files:
            raise TypeCheckError("no files to check", directory)

        run = _CheckRun(package_path, files, importer)
        info = run.run()
        logger.debug(
            f"Checked package {info.package_name} ({directory}): "
            f"{len(info.scope)} type(s), {len(info.types)} typed node(s)"
        )
        return info


class _CheckRun:
    """State of one check call."""

    def __init__(self, package_path: str, files: Sequence[SourceFile], importer: Optional[Importer]):
        self.files = list(files)
        self.importer = importer
        self.info = TypeInfo(package_path=package_path, package_name=self.files[0].package_name)
        self._decls: Dict[str, Tuple[SourceFile, TypeDecl]] = {}
        self._resolving_aliases: List[str] = []
        self._packages: Dict[str, Optional["Package"]] = {}

    def run(self) -> TypeInfo:
        self._collect()
        for name, (file, decl) in self._decls.items():
            if decl.is_alias:
                self._alias(name)
                continue
            named = self.info.scope[name]
            params = self._type_params(file, decl.node)
            named.resolved = self._resolve(file, decl.type_node, params)
            self.info.record(file.path, decl.node, named)
        self._check_receivers()
        return self.info

    def _error(self, file: SourceFile, node: tree_sitter.Node, message: str) -> TypeCheckError:
        position = file.position(node)
        return TypeCheckError(f"{position or file.path}: {message}")

    # ── Declarations ─────────────────────────────────────────────────

    def _collect(self) -> None:
        for file in self.files:
            if file.package_name != self.info.package_name:
                raise self._error(
                    file, file.root,
                    f"package {file.package_name}; expected {self.info.package_name}",
                )
            for decl in file.type_declarations():
                if decl.name == "_":
                    continue
                if decl.name in self._decls:
                    raise self._error(file, decl.node, f"{decl.name} redeclared in this block")
                self._decls[decl.name] = (file, decl)
                if not decl.is_alias:
                    self.info.scope[decl.name] = Named(decl.name, self.info.package_path)

    def _alias(self, name: str) -> GoType:
        if name in self.info.scope:
            return self.info.scope[name]
        file, decl = self._decls[name]
        if name in self._resolving_aliases:
            raise self._error(file, decl.node, f"invalid recursive type alias {name}")
        self._resolving_aliases.append(name)
        try:
            typ = self._resolve(file, decl.type_node, self._type_params(file, decl.node))
        finally:
            self._resolving_aliases.remove(name)
        self.info.scope[name] = typ
        self.info.record(file.path, decl.node, typ)
        return typ

    def _type_params(self, file: SourceFile, spec: tree_sitter.Node) -> Dict[str, GoType]:
        params: Dict[str, GoType] = {}
        param_list = next((c for c in spec.named_children if c.type == "type_parameter_list"), None)
        if param_list is None:
            return params
        for decl in param_list.named_children:
            if decl.type not in ("type_parameter_declaration", "parameter_declaration"):
                continue
            for name_node in decl.children_by_field_name("name"):
                name = file.text(name_node)
                params[name] = TypeParam(name)
        return params

    def _check_receivers(self) -> None:
        for file in self.files:
            for method in file.method_declarations():
                receiver = method.node.child_by_field_name("receiver")
                for param in receiver.named_children:
                    if param.type != "parameter_declaration":
                        continue
                    type_node = param.child_by_field_name("type")
                    if type_node is None:
                        continue
                    typ = self._resolve(file, type_node, self._receiver_params(file, type_node))
                    self.info.record(file.path, param, typ)

    def _receiver_params(self, file: SourceFile, type_node: tree_sitter.Node) -> Dict[str, GoType]:
        """Type parameters introduced by a receiver like `(l *List[T])`."""
        params: Dict[str, GoType] = {}
        node = strip_parens(type_node)
        if node is not None and node.type == "pointer_type":
            node = strip_parens(node.named_children[0]) if node.named_children else None
        if node is None or node.type != "generic_type":
            return params
        args = _type_arguments(node)
        if args is None:
            return params
        for arg in args.named_children:
            ident = self._unwrap_elem(arg)
            if ident is not None and ident.type == "type_identifier":
                name = file.text(ident)
                params[name] = TypeParam(name)
        return params

    # ── Type expressions ─────────────────────────────────────────────

    @staticmethod
    def _unwrap_elem(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        if node.type == "type_elem":
            inner = [c for c in node.named_children if c.type != "comment"]
            return inner[0] if len(inner) == 1 else None
        return node

    def _resolve(self, file: SourceFile, node: tree_sitter.Node, params: Dict[str, GoType]) -> GoType:
        typ = self._resolve_node(file, node, params)
        self.info.record(file.path, node, typ)
        return typ

    def _resolve_node(self, file: SourceFile, node: tree_sitter.Node, params: Dict[str, GoType]) -> GoType:
        kind = node.type
        named = [c for c in node.named_children if c.type != "comment"]

        if kind == "parenthesized_type":
            return self._resolve(file, named[0], params)

        if kind == "type_elem":
            if len(named) == 1:
                return self._resolve(file, named[0], params)
            return Interface(_collapse(file.text(node)))

        if kind == "type_identifier":
            return self._identifier(file, node, params)

        if kind == "qualified_type":
            return self._qualified(file, node)

        if kind == "pointer_type":
            return Pointer(self._resolve(file, named[0], params))

        if kind == "slice_type":
            return Slice(self._resolve(file, node.child_by_field_name("element"), params))

        if kind in ("array_type", "implicit_length_array_type"):
            element = self._resolve(file, node.child_by_field_name("element"), params)
            length_node = node.child_by_field_name("length")
            length = None
            if length_node is not None and length_node.type == "int_literal":
                length = _parse_int_literal(file.text(length_node))
            return Array(element, length)

        if kind == "map_type":
            return Map(
                self._resolve(file, node.child_by_field_name("key"), params),
                self._resolve(file, node.child_by_field_name("value"), params),
            )

        if kind == "channel_type":
            tokens = [c.type for c in node.children if not c.is_named]
            direction = "both"
            if tokens and tokens[0] == "<-":
                direction = "recv"
            elif "<-" in tokens:
                direction = "send"
            return Chan(self._resolve(file, node.child_by_field_name("value"), params), direction)

        if kind == "struct_type":
            return self._struct(file, node, params)

        if kind == "interface_type":
            return Interface(_collapse(file.text(node)))

        if kind == "function_type":
            return Signature(_collapse(file.text(node)))

        if kind == "generic_type":
            base = self._resolve(file, node.child_by_field_name("type"), params)
            args_node = _type_arguments(node)
            args = tuple(
                self._resolve(file, arg, params)
                for arg in (args_node.named_children if args_node is not None else [])
                if arg.type != "comment"
            )
            if not isinstance(base, Named):
                raise self._error(file, node, f"{base} is not a generic type")
            return base.instantiate(args)

        raise self._error(file, node, f"unsupported type expression '{file.text(node)}' ({kind})")

    def _struct(self, file: SourceFile, node: tree_sitter.Node, params: Dict[str, GoType]) -> Struct:
        fields: List[StructField] = []
        body = next((c for c in node.named_children if c.type == "field_declaration_list"), None)
        if body is None:
            return Struct(())

        for decl in body.named_children:
            if decl.type != "field_declaration":
                continue
            type_node = decl.child_by_field_name("type")
            typ = self._resolve(file, type_node, params)
            names = decl.children_by_field_name("name")
            if not names and any(c.type == "*" for c in decl.children):
                typ = Pointer(typ)
            self.info.record(file.path, decl, typ)

            tag = None
            tag_node = decl.child_by_field_name("tag")
            if tag_node is not None:
                try:
                    tag = unquote(file.text(tag_node))
                except ValueError as e:
                    raise self._error(file, tag_node, f"invalid struct tag: {e}") from e

            if names:
                for name_node in names:
                    fields.append(StructField(file.text(name_node), typ, False, tag))
            else:
                fields.append(StructField(type_name(typ).name, typ, True, tag))
        return Struct(tuple(fields))

    def _identifier(self, file: SourceFile, node: tree_sitter.Node, params: Dict[str, GoType]) -> GoType:
        name = file.text(node)
        if name in params:
            return params[name]
        if name in self.info.scope:
            return self.info.scope[name]
        if name in self._decls:
            return self._alias(name)
        for spec in file.imports():
            if spec.name != ".":
                continue
            found = self._lookup_in(file, node, spec.path, name, required=False)
            if found is not None:
                return found
        if name in _UNIVERSE:
            return _UNIVERSE[name]
        raise self._error(file, node, f"undefined: {name}")

    def _qualified(self, file: SourceFile, node: tree_sitter.Node) -> GoType:
        package_node = node.child_by_field_name("package")
        name_node = node.child_by_field_name("name")
        local = file.text(package_node)
        name = file.text(name_node)

        path = self._import_path(file, node, local)
        if path == "unsafe" and name == "Pointer":
            return _UNSAFE_POINTER
        if path == "C":
            return Named(name, "C")
        return self._lookup_in(file, node, path, name, required=True)

    # ── Imports ──────────────────────────────────────────────────────

    def _import_path(self, file: SourceFile, node: tree_sitter.Node, local: str) -> str:
        """Import path bound to the local package name `local` in `file`."""
        specs = [s for s in file.imports() if s.name not in (".", "_")]
        for spec in specs:
            if spec.name == local:
                return spec.path
        unnamed = [s for s in specs if s.name is None]
        for spec in unnamed:
            if guess_package_name(spec.path) == local:
                return spec.path
        for spec in unnamed:
            package = self._package(spec.path)
            if package is not None and package.name == local:
                return spec.path
        raise self._error(file, node, f"undefined: {local}")

    def _package(self, path: str) -> Optional["Package"]:
        if path in self._packages:
            return self._packages[path]
        package = None
        if self.importer is not None:
            try:
                package = self.importer.import_package(path)
            except PackageNotFoundError as e:
                logger.debug(f"Import '{path}' not found, its types stay opaque: {e}")
            except GoModelError as e:
                logger.warning(f"Unable to open import '{path}', its types stay opaque: {e}")
        self._packages[path] = package
        return package

    def _lookup_in(
        self,
        file: SourceFile,
        node: tree_sitter.Node,
        path: str,
        name: str,
        required: bool,
    ) -> Optional[GoType]:
        package = self._package(path)
        if package is None or package.type_info is None:
            return Named(name, path) if required else None
        typ = package.type_info.lookup(name)
        if typ is None and required:
            raise self._error(file, node, f"undefined: {package.name}.{name}")
        return typ
