"""Tests for the type model, the declaration checker and standard sizes."""

import pytest

from gomodel.core.ast_parser import FileSet, parse_source
from gomodel.core.errors import TypeCheckError, TypeLookupError
from gomodel.core.model import Package
from gomodel.core.types import (
    Array,
    Basic,
    Chan,
    DeclarationTypeChecker,
    Importer,
    Interface,
    Map,
    Named,
    Pointer,
    Signature,
    Slice,
    StdSizes,
    Struct,
    StructField,
    TypeInfo,
    TypeKind,
    TypeName,
    TypeParam,
    classify,
    guess_package_name,
    leaf,
    type_name,
)


# =========================================================================
# Sample Go source fixtures
# =========================================================================

SHAPES_GO = '''
package shapes

import (
    "unsafe"

    yaml "gopkg.in/yaml.v3"
    "github.com/acme/go-units/v2"
)

type Kind uint8

type Point struct {
    X, Y float64
}

type Shapes struct {
    Points   [4]Point
    Named    map[string]*Point
    Events   chan<- Kind
    Done     <-chan struct{}
    Both     chan error
    Callback func(int) (string, error)
    Raw      unsafe.Pointer
    Doc      yaml.Node
    Width    units.Length
    Any      any
    Nested   struct{ Inner []Kind }
}

type Alias = Point

type PointList []Point
'''

GENERIC_GO = '''
package coll

type List[T any] struct {
    Items []T
    Next  *List[T]
}

type Ints struct {
    L List[int]
}

func (l *List[T]) Len() int { return len(l.Items) }
'''

DUPLICATE_GO = '''
package dup

type A int
type A string
'''

UNDEFINED_QUALIFIED_GO = '''
package q

import "example.com/lib"

type T struct {
    F lib.Missing
}
'''

DOT_IMPORT_GO = '''
package d

import . "example.com/lib"

type T struct {
    F Thing
}
'''

LIB_GO = '''
package lib

type Thing struct {
    N int
}
'''


class _FakeImporter(Importer):
    """Serves packages checked from in-memory sources."""

    def __init__(self, sources):
        self.sources = sources
        self.requested = []

    def import_package(self, path):
        from gomodel.core.errors import PackageNotFoundError

        self.requested.append(path)
        if path not in self.sources:
            raise PackageNotFoundError(path, [])
        file = parse_source(self.sources[path], f"{path}/x.go", FileSet())
        package = Package(name=file.package_name, dir_path=path, files=[file], package_path=path)
        package.attach_type_info(DeclarationTypeChecker().check(path, path, [file], self))
        return package


def _check(source, importer=None, package_path="example.com/p"):
    file = parse_source(source, "x.go", FileSet())
    return DeclarationTypeChecker().check("/src/p", package_path, [file], importer)


def _fields(info, name):
    return {f.name: f for f in info.lookup(name).underlying().fields}


# =========================================================================
# Tests: classification
# =========================================================================

class TestClassify:
    def test_plain(self):
        assert classify(Basic("int")) == (TypeKind.PLAIN, None)

    def test_pointer(self):
        assert classify(Pointer(Basic("int"))) == (TypeKind.POINTER, Basic("int"))

    def test_containers(self):
        assert classify(Slice(Basic("int")))[0] == TypeKind.CONTAINER
        assert classify(Array(Basic("int"), 2))[0] == TypeKind.CONTAINER
        assert classify(Map(Basic("string"), Basic("int"))) == (TypeKind.CONTAINER, Basic("int"))
        assert classify(Chan(Basic("int")))[0] == TypeKind.CONTAINER

    def test_named_looks_through_to_underlying(self):
        named = Named("IDs", "p", resolved=Slice(Basic("int")))
        assert classify(named) == (TypeKind.CONTAINER, Basic("int"))

    def test_leaf(self):
        item = Named("Item", "example.com/pkg")
        assert leaf(Slice(Pointer(item))) is item
        assert leaf(Map(Basic("string"), Slice(Basic("byte")))) == Basic("byte")
        assert leaf(Basic("int")) == Basic("int")

    def test_type_name(self):
        assert type_name(Pointer(Basic("uint64"))) == TypeName("uint64")
        assert type_name(Slice(Pointer(Named("Item", "example.com/pkg")))) == TypeName("Item", "example.com/pkg")
        assert type_name(Struct(())) == TypeName("struct{}")

    def test_named_equality(self):
        assert Named("T", "p") == Named("T", "p", resolved=Basic("int"))
        assert Named("T", "p") != Named("T", "q")
        assert len({Named("T", "p"), Named("T", "p")}) == 1

    def test_guess_package_name(self):
        assert guess_package_name("fmt") == "fmt"
        assert guess_package_name("example.com/money") == "money"
        assert guess_package_name("github.com/acme/go-units/v2") == "units"
        assert guess_package_name("gopkg.in/yaml.v3") == "yaml"
        assert guess_package_name("github.com/mattn/go-sqlite3") == "sqlite3"
        assert guess_package_name("github.com/acme/client-go") == "client"


# =========================================================================
# Tests: declaration checker
# =========================================================================

class TestDeclarationChecker:
    def test_scope(self):
        info = _check(SHAPES_GO)
        assert isinstance(info, TypeInfo)
        assert info.package_name == "shapes"
        assert info.package_path == "example.com/p"
        assert set(info.scope) == {"Kind", "Point", "Shapes", "Alias", "PointList"}
        assert info.lookup("Kind").underlying() == Basic("uint8")

    def test_alias_is_target(self):
        info = _check(SHAPES_GO)
        assert info.lookup("Alias") is info.lookup("Point")

    def test_struct_fields(self):
        info = _check(SHAPES_GO)
        point = info.lookup("Point").underlying()
        assert point == Struct((
            StructField("X", Basic("float64")),
            StructField("Y", Basic("float64")),
        ))

    def test_composite_types(self):
        fields = _fields(_check(SHAPES_GO), "Shapes")
        point = Named("Point", "example.com/p")
        assert fields["Points"].type == Array(point, 4)
        assert fields["Named"].type == Map(Basic("string"), Pointer(point))
        assert fields["Events"].type == Chan(Named("Kind", "example.com/p"), "send")
        assert fields["Done"].type == Chan(Struct(()), "recv")
        assert fields["Both"].type.direction == "both"
        assert isinstance(fields["Callback"].type, Signature)
        assert fields["Raw"].type == Basic("unsafe.Pointer")
        assert isinstance(fields["Any"].type, Interface)
        assert fields["Nested"].type == Struct((StructField("Inner", Slice(Named("Kind", "example.com/p"))),))

    def test_unresolvable_imports_stay_opaque(self):
        fields = _fields(_check(SHAPES_GO), "Shapes")
        doc = fields["Doc"].type
        assert doc == Named("Node", "gopkg.in/yaml.v3")
        assert doc.is_opaque
        assert fields["Width"].type == Named("Length", "github.com/acme/go-units/v2")

    def test_importer_resolves_qualified(self):
        importer = _FakeImporter({"example.com/lib": LIB_GO})
        info = _check(UNDEFINED_QUALIFIED_GO.replace("lib.Missing", "lib.Thing"), importer)
        thing = _fields(info, "T")["F"].type
        assert thing == Named("Thing", "example.com/lib")
        assert not thing.is_opaque
        assert importer.requested == ["example.com/lib"]

    def test_missing_name_in_found_package(self):
        importer = _FakeImporter({"example.com/lib": LIB_GO})
        with pytest.raises(TypeCheckError) as exc_info:
            _check(UNDEFINED_QUALIFIED_GO, importer)
        assert "lib.Missing" in str(exc_info.value)

    def test_dot_import(self):
        importer = _FakeImporter({"example.com/lib": LIB_GO})
        info = _check(DOT_IMPORT_GO, importer)
        assert _fields(info, "T")["F"].type == Named("Thing", "example.com/lib")

    def test_undefined_identifier(self):
        with pytest.raises(TypeCheckError) as exc_info:
            _check("package u\n\ntype T struct { F Nope }\n")
        assert "undefined: Nope" in str(exc_info.value)
        assert "x.go:3:" in str(exc_info.value)

    def test_duplicate_declaration(self):
        with pytest.raises(TypeCheckError) as exc_info:
            _check(DUPLICATE_GO)
        assert "redeclared" in str(exc_info.value)

    def test_recursive_type(self):
        info = _check("package r\n\ntype Node struct {\n    Next *Node\n}\n")
        node = info.lookup("Node")
        assert node.underlying().fields[0].type == Pointer(node)

    def test_generics(self):
        info = _check(GENERIC_GO)
        items = _fields(info, "List")["Items"].type
        assert items == Slice(TypeParam("T"))

        ints = _fields(info, "Ints")["L"].type
        assert isinstance(ints, Named)
        assert ints.type_args == (Basic("int"),)
        assert ints.underlying() is info.lookup("List").underlying()

    def test_mixed_package_names(self):
        first = parse_source("package a\n", "a.go", FileSet())
        second = parse_source("package b\n", "b.go", FileSet())
        with pytest.raises(TypeCheckError):
            DeclarationTypeChecker().check("/src", "p", [first, second], None)

    def test_no_files(self):
        with pytest.raises(TypeCheckError):
            DeclarationTypeChecker().check("/src", "p", [], None)


# =========================================================================
# Tests: standard sizes
# =========================================================================

class TestStdSizes:
    def test_basic(self):
        sizes = StdSizes(8, 8)
        assert sizes.sizeof(Basic("bool")) == 1
        assert sizes.sizeof(Basic("int")) == 8
        assert sizes.sizeof(Basic("string")) == 16
        assert sizes.sizeof(Basic("complex128")) == 16
        assert sizes.alignof(Basic("complex128")) == 8
        assert sizes.alignof(Basic("complex64")) == 4

    def test_word_size(self):
        sizes = StdSizes(4, 4)
        assert sizes.sizeof(Basic("int")) == 4
        assert sizes.sizeof(Slice(Basic("int"))) == 12
        assert sizes.alignof(Basic("float64")) == 4

    def test_array_of_padded_struct(self):
        sizes = StdSizes(8, 8)
        padded = Struct((StructField("A", Basic("int32")), StructField("B", Basic("bool"))))
        assert sizes.sizeof(padded) == 8
        assert sizes.sizeof(Array(padded, 3)) == 24
        assert sizes.sizeof(Array(Basic("int8"), 0)) == 0

    def test_offsets(self):
        sizes = StdSizes(8, 8)
        struct = Struct((
            StructField("A", Basic("bool")),
            StructField("B", Basic("int64")),
            StructField("C", Basic("bool")),
        ))
        assert sizes.offsetsof(struct) == [0, 8, 16]
        assert sizes.sizeof(struct) == 24

    def test_opaque(self):
        with pytest.raises(TypeLookupError):
            StdSizes().sizeof(Named("T", "example.com/absent"))
        with pytest.raises(TypeLookupError):
            StdSizes().sizeof(TypeParam("T"))
        with pytest.raises(TypeLookupError):
            StdSizes().sizeof(Array(Basic("int"), None))

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            StdSizes(0, 8)
