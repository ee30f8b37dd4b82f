"""Standard type sizes.

Sizes and alignments for a given word size and maximum alignment, using the
layout rules of the gc toolchain's standard sizes.
"""

from typing import List

from ..constants import BASIC_TYPE_SIZES, WORD_SIZED_BASIC_TYPES
from ..errors import TypeLookupError
from .model import Array, Basic, Chan, GoType, Interface, Map, Named, Pointer, Signature, Slice, Struct, TypeParam


def _align(x: int, a: int) -> int:
    return (x + a - 1) // a * a


class StdSizes:
    """Size and alignment calculator.

    Attributes:
        word_size: Size of a machine word in bytes (8 on 64-bit targets).
        max_align: Maximum alignment of any type.
    """

    def __init__(self, word_size: int = 8, max_align: int = 8):
        if word_size <= 0 or max_align <= 0:
            raise ValueError("word_size and max_align must be positive")
        self.word_size = word_size
        self.max_align = max_align

    def _resolve(self, typ: GoType) -> GoType:
        under = typ.underlying()
        if isinstance(under, Named):
            raise TypeLookupError(f"size of '{under}' is unknown: its declaration was not type-checked")
        if isinstance(under, TypeParam):
            raise TypeLookupError(f"size of type parameter '{under}' is unknown")
        return under

    def alignof(self, typ: GoType) -> int:
        t = self._resolve(typ)
        if isinstance(t, Array):
            return self.alignof(t.element)
        if isinstance(t, Struct):
            if not t.fields:
                return 1
            return max(self.alignof(f.type) for f in t.fields)
        if isinstance(t, (Slice, Interface)):
            return self.word_size
        if isinstance(t, Basic) and t.name == "string":
            return self.word_size

        a = self.sizeof(t)
        if a < 1:
            return 1
        if isinstance(t, Basic) and t.name.startswith("complex"):
            a //= 2
        return min(a, self.max_align)

    def offsetsof(self, struct: Struct) -> List[int]:
        """Byte offsets of each field of a struct."""
        offsets = []
        offset = 0
        for f in struct.fields:
            offset = _align(offset, self.alignof(f.type))
            offsets.append(offset)
            offset += self.sizeof(f.type)
        return offsets

    def sizeof(self, typ: GoType) -> int:
        t = self._resolve(typ)
        if isinstance(t, Basic):
            if t.name == "string":
                return 2 * self.word_size
            if t.name in WORD_SIZED_BASIC_TYPES:
                return self.word_size
            if t.name in BASIC_TYPE_SIZES:
                return BASIC_TYPE_SIZES[t.name]
            raise TypeLookupError(f"size of basic type '{t.name}' is unknown")
        if isinstance(t, Array):
            if t.length is None:
                raise TypeLookupError(f"size of '{t}' is unknown: non-literal array length")
            if t.length == 0:
                return 0
            elem_size = self.sizeof(t.element)
            return _align(elem_size, self.alignof(t.element)) * (t.length - 1) + elem_size
        if isinstance(t, Slice):
            return 3 * self.word_size
        if isinstance(t, Struct):
            if not t.fields:
                return 0
            offsets = self.offsetsof(t)
            end = offsets[-1] + self.sizeof(t.fields[-1].type)
            return _align(end, self.alignof(t))
        if isinstance(t, Interface):
            return 2 * self.word_size
        if isinstance(t, (Pointer, Map, Chan, Signature)):
            return self.word_size
        raise TypeLookupError(f"size of '{t}' is unknown")
