"""
Instruction operands and their compact tagged encoding.

Every operand is written as a 3-bit tag plus a value. Small values share a
single byte with the tag; larger ones use the continuation forms:

    0 <= n < 16     one byte:   n << 4 | tag
    n < 2048        two bytes:  (n >> 3) & 0xE0 | 0x08 | tag, n & 0xFF
    otherwise       lead byte with 0x18 set, then n as big-endian bytes.
                    2-8 bytes store (len - 2) in the top 3 bits of the lead
                    byte; longer values set them to 7 and write len - 9 as a
                    nested compact unsigned.
"""

from dataclasses import dataclass
from typing import Union

from ..errors import EncodingRangeError
from .atoms import Atom, AtomTable

# Compact tags
TAG_LITERAL = 0    # u: unsigned literal
TAG_INTEGER = 1    # i: integer
TAG_ATOM = 2       # a: atom index (0 = nil)
TAG_X = 3          # x: general register
TAG_Y = 4          # y: stack frame slot
TAG_LABEL = 5      # f: label
TAG_CHARACTER = 6  # h: character
TAG_EXTENDED = 7   # z: extended, followed by a sub-tag

# Sub-tags of TAG_EXTENDED
EXT_LITERAL = 4


@dataclass(frozen=True)
class Lit:
    """Unsigned literal operand (arities, counts, raw indices)."""
    value: int


@dataclass(frozen=True)
class Int:
    """Signed integer operand."""
    value: int


@dataclass(frozen=True)
class Nil:
    """The empty list, encoded as atom 0."""


NIL = Nil()


@dataclass(frozen=True)
class X:
    """General purpose register."""
    index: int


@dataclass(frozen=True)
class Y:
    """Stack frame slot."""
    index: int


Register = Union[X, Y]


@dataclass(frozen=True)
class Label:
    """A code location. Label ids start at 1."""
    id: int


@dataclass(frozen=True)
class ExtLiteral:
    """Reference to an entry of the literal table."""
    index: int


Operand = Union[Lit, Int, Nil, Atom, X, Y, Label, ExtLiteral]


def encode_operand(atoms: AtomTable, operand: Operand) -> bytes:
    """
    Encode one operand.

    Args:
        atoms: Atom table used to resolve Atom operands
        operand: The operand

    Returns:
        Encoded operand bytes

    Raises:
        UnresolvedAtomError: Atom operand that was never interned
        EncodingRangeError: Negative value for an unsigned operand
    """
    if isinstance(operand, Lit):
        return compact(TAG_LITERAL, operand.value)
    elif isinstance(operand, Int):
        return compact(TAG_INTEGER, operand.value)
    elif isinstance(operand, Nil):
        return compact(TAG_ATOM, 0)
    elif isinstance(operand, Atom):
        return compact(TAG_ATOM, atoms.lookup(operand.name))
    elif isinstance(operand, X):
        return compact(TAG_X, operand.index)
    elif isinstance(operand, Y):
        return compact(TAG_Y, operand.index)
    elif isinstance(operand, Label):
        return compact(TAG_LABEL, operand.id)
    elif isinstance(operand, ExtLiteral):
        return compact(TAG_EXTENDED, EXT_LITERAL) + compact(TAG_LITERAL, operand.index)
    raise TypeError(f"Not an operand: {operand!r}")


def compact(tag: int, value: int) -> bytes:
    """Encode value under tag using the shortest compact form."""
    if value < 0:
        if tag != TAG_INTEGER:
            raise EncodingRangeError(
                f"Negative value {value} cannot be encoded with tag {tag}")
        return _compact_bytes(tag, _signed_bytes(value, minimum=2))
    if value < 16:
        return bytes([(value << 4) | tag])
    if value < 0x800:
        return bytes([((value >> 3) & 0xE0) | 0x08 | tag, value & 0xFF])
    return _compact_bytes(tag, _signed_bytes(value))


def _signed_bytes(value: int, minimum: int = 1) -> bytes:
    """Shortest big-endian two's complement form of value."""
    bits = value.bit_length() if value >= 0 else (~value).bit_length()
    length = max(bits // 8 + 1, minimum)
    return value.to_bytes(length, 'big', signed=True)


def _compact_bytes(tag: int, data: bytes) -> bytes:
    size = len(data)
    if size <= 8:
        return bytes([((size - 2) << 5) | 0x18 | tag]) + data
    return bytes([0xF8 | tag]) + compact(TAG_LITERAL, size - 9) + data
