"""Shared constants for gomodel.

Naming conventions, predeclared identifiers, and magic-comment patterns
used across the parser, scanner, and model layers.
"""

import re

# =============================================================================
# File and Package Naming
# =============================================================================

# Source file extension
GO_SOURCE_EXTENSION = ".go"

# Files with this suffix only build under `go test`
TEST_FILE_SUFFIX = "_test.go"

# External test packages live next to the package they test
TEST_PACKAGE_SUFFIX = "_test"

# Directory the go tool never treats as a package
TESTDATA_DIRECTORY = "testdata"

# Marks a relative path as "start from the working directory"
CURRENT_DIR_MARKER = "."

# =============================================================================
# Magic Comments
# =============================================================================

# `//go:generate <tool> ...` directives
GO_GENERATE_RE = re.compile(r"go:generate ([0-9A-Za-z_\.]+)")

# Legacy build constraint line: `// +build linux,amd64 darwin`
PLUS_BUILD_RE = re.compile(r"^//\s*\+build(?:\s+(.*))?$")

# Boolean build constraint line: `//go:build linux && (amd64 || arm64)`
GO_BUILD_RE = re.compile(r"^//go:build(?:\s+(.*))?$")

# Build tag terms may only contain letters, digits, underscores and dots
BUILD_TAG_RE = re.compile(r"^[A-Za-z0-9_.]+$")

# Prefix of marker annotations selecting record types
MARKER_COMMENT_PREFIX = "//go:"

# =============================================================================
# Build Environment
# =============================================================================

# GOOS values that also satisfy the `unix` build tag
UNIX_GOOS = frozenset({
    "aix",
    "android",
    "darwin",
    "dragonfly",
    "freebsd",
    "hurd",
    "illumos",
    "ios",
    "linux",
    "netbsd",
    "openbsd",
    "solaris",
})

# Python platform names that differ from their GOOS spelling
PLATFORM_TO_GOOS = {
    "win32": "windows",
    "cygwin": "windows",
    "sunos5": "solaris",
}

# platform.machine() spellings mapped to GOARCH
MACHINE_TO_GOARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}

# =============================================================================
# Predeclared Types
# =============================================================================

# Sizes in bytes of fixed-width basic types
BASIC_TYPE_SIZES = {
    "bool": 1,
    "int8": 1,
    "uint8": 1,
    "byte": 1,
    "int16": 2,
    "uint16": 2,
    "int32": 4,
    "uint32": 4,
    "rune": 4,
    "float32": 4,
    "int64": 8,
    "uint64": 8,
    "float64": 8,
    "complex64": 8,
    "complex128": 16,
}

# Basic types whose size is one machine word
WORD_SIZED_BASIC_TYPES = frozenset({"int", "uint", "uintptr", "unsafe.Pointer"})

PREDECLARED_BASIC_TYPES = frozenset(BASIC_TYPE_SIZES) | {"int", "uint", "uintptr", "string"}
