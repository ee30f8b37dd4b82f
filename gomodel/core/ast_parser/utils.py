"""AST parser utilities.

File classification, Go string-literal decoding, and struct tag lookup.
"""

import os
from typing import Optional

from ..constants import GO_SOURCE_EXTENSION, TEST_FILE_SUFFIX, TESTDATA_DIRECTORY

_SIMPLE_ESCAPES = {
    "a": 0x07,
    "b": 0x08,
    "f": 0x0C,
    "n": 0x0A,
    "r": 0x0D,
    "t": 0x09,
    "v": 0x0B,
    "\\": 0x5C,
    '"': 0x22,
}

_HEX_DIGITS = "0123456789abcdefABCDEF"


def is_source_file(file_path: str) -> bool:
    """Check if a path names a Go source file."""
    return file_path.endswith(GO_SOURCE_EXTENSION)


def is_test_file(file_path: str) -> bool:
    """Check if a path names a test-only Go source file."""
    return os.path.basename(file_path).endswith(TEST_FILE_SUFFIX)


def should_skip_directory(dir_name: str) -> bool:
    """Check if a directory should be skipped during a recursive walk.

    Args:
        dir_name: Directory name (not full path)

    Returns:
        True if the go tool would ignore the directory
    """
    return dir_name == TESTDATA_DIRECTORY or dir_name.startswith((".", "_"))


def _read_hex(body: str, start: int, width: int) -> int:
    digits = body[start:start + width]
    if len(digits) != width or any(d not in _HEX_DIGITS for d in digits):
        raise ValueError(f"invalid hex escape in {body!r}")
    return int(digits, 16)


def unquote(literal: str) -> str:
    """Decode a Go string literal (interpreted or raw).

    Raises:
        ValueError: If the literal is malformed
    """
    if len(literal) < 2 or literal[0] != literal[-1]:
        raise ValueError(f"invalid string literal {literal!r}")

    quote = literal[0]
    body = literal[1:-1]
    if quote == "`":
        if "`" in body:
            raise ValueError(f"invalid raw string literal {literal!r}")
        return body.replace("\r", "")
    if quote != '"':
        raise ValueError(f"invalid string literal {literal!r}")

    out = bytearray()
    i = 0
    while i < len(body):
        c = body[i]
        if c == '"' or c == "\n":
            raise ValueError(f"invalid string literal {literal!r}")
        if c != "\\":
            out += c.encode("utf-8")
            i += 1
            continue

        i += 1
        if i >= len(body):
            raise ValueError(f"unterminated escape in {literal!r}")
        esc = body[i]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 1
        elif esc == "x":
            out.append(_read_hex(body, i + 1, 2))
            i += 3
        elif esc in ("u", "U"):
            width = 4 if esc == "u" else 8
            code = _read_hex(body, i + 1, width)
            if code > 0x10FFFF or 0xD800 <= code < 0xE000:
                raise ValueError(f"invalid unicode escape in {literal!r}")
            out += chr(code).encode("utf-8")
            i += 1 + width
        elif esc in "01234567":
            digits = body[i:i + 3]
            if len(digits) != 3 or any(d not in "01234567" for d in digits):
                raise ValueError(f"invalid octal escape in {literal!r}")
            value = int(digits, 8)
            if value > 0xFF:
                raise ValueError(f"octal escape out of range in {literal!r}")
            out.append(value)
            i += 3
        else:
            raise ValueError(f"unknown escape sequence in {literal!r}")

    return out.decode("utf-8", errors="replace")


def lookup_struct_tag(tag: str, key: str) -> Optional[str]:
    """Look up `key` in a struct tag using the conventional `key:"value"` format.

    Mirrors the lookup rules of Go's reflect.StructTag: scanning stops at the
    first malformed pair, and a value that fails to unquote counts as absent.

    Args:
        tag: Decoded tag string, e.g. `json:"id,omitempty" db:"id"`
        key: Tag key to look up

    Returns:
        The unquoted value, or None if the key is not present
    """
    while tag:
        i = 0
        while i < len(tag) and tag[i] == " ":
            i += 1
        tag = tag[i:]
        if not tag:
            break

        i = 0
        while i < len(tag) and tag[i] > " " and tag[i] not in ':"' and tag[i] != "\x7f":
            i += 1
        if i == 0 or i + 1 >= len(tag) or tag[i] != ":" or tag[i + 1] != '"':
            break
        name = tag[:i]
        tag = tag[i + 1:]

        i = 1
        while i < len(tag) and tag[i] != '"':
            if tag[i] == "\\":
                i += 1
            i += 1
        if i >= len(tag):
            break
        quoted = tag[:i + 1]
        tag = tag[i + 1:]

        if name == key:
            try:
                return unquote(quoted)
            except ValueError:
                return None
    return None
