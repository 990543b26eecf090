"""
External term format encoding for literal constants.

Literals live in the LitT chunk as term_to_binary() blobs. Python values map
onto Erlang terms as follows:

    int              -> integer (small, 32-bit or bignum)
    float            -> float
    Atom, bool       -> atom (True/False become 'true'/'false')
    bytes/bytearray  -> binary
    tuple            -> tuple
    list             -> proper list
    dict, Map        -> map (insertion order is kept)

Anything else is rejected with TypeError.
"""

import struct
from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple

from ..errors import EncodingRangeError
from .atoms import Atom
from .packing import pack_count, with_length

VERSION = 131

NEW_FLOAT_EXT = 70
SMALL_INTEGER_EXT = 97
INTEGER_EXT = 98
SMALL_TUPLE_EXT = 104
LARGE_TUPLE_EXT = 105
NIL_EXT = 106
LIST_EXT = 108
BINARY_EXT = 109
SMALL_BIG_EXT = 110
LARGE_BIG_EXT = 111
MAP_EXT = 116
ATOM_UTF8_EXT = 118
SMALL_ATOM_UTF8_EXT = 119

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1


@dataclass(frozen=True)
class Map:
    """A map literal given as ordered key/value pairs (keys may be unhashable)."""
    pairs: Tuple[Tuple[Any, Any], ...]

    def __init__(self, pairs: Iterable[Tuple[Any, Any]]):
        object.__setattr__(self, 'pairs', tuple((k, v) for k, v in pairs))


def encode_literal(value: Any) -> bytes:
    """
    Encode a value as an external term, without the version byte.

    Args:
        value: Literal value (see module docstring for accepted types)

    Returns:
        Tag byte followed by the term's payload

    Nested terms are never length-framed; the version byte and length
    prefix of a literal table entry are added by tables.encode_literals.
    """
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return encode_atom(b'true' if value else b'false')
    elif isinstance(value, int):
        return encode_integer(value)
    elif isinstance(value, float):
        return struct.pack('>Bd', NEW_FLOAT_EXT, value)
    elif isinstance(value, Atom):
        return encode_atom(value.name)
    elif isinstance(value, (bytes, bytearray)):
        return bytes([BINARY_EXT]) + with_length(bytes(value))
    elif isinstance(value, tuple):
        return encode_tuple(value)
    elif isinstance(value, list):
        return encode_list(value)
    elif isinstance(value, dict):
        return encode_map(list(value.items()))
    elif isinstance(value, Map):
        return encode_map(list(value.pairs))
    raise TypeError(f"Cannot encode {type(value).__name__} as a literal: {value!r}")


def term_to_binary(value: Any) -> bytes:
    """Encode a value as a complete external term, version byte included."""
    return bytes([VERSION]) + encode_literal(value)


def encode_integer(value: int) -> bytes:
    """Encode an integer using the smallest tag that holds it."""
    if 0 <= value < 256:
        return bytes([SMALL_INTEGER_EXT, value])
    if INT32_MIN <= value <= INT32_MAX:
        return struct.pack('>Bi', INTEGER_EXT, value)

    # Bignum: sign byte then magnitude, least significant byte first
    magnitude = abs(value)
    digits = magnitude.to_bytes((magnitude.bit_length() + 7) // 8, 'little')
    sign = 1 if value < 0 else 0
    if len(digits) < 256:
        return bytes([SMALL_BIG_EXT, len(digits), sign]) + digits
    return bytes([LARGE_BIG_EXT]) + pack_count(len(digits), "Bignum") + bytes([sign]) + digits


def encode_atom(name: bytes) -> bytes:
    """Encode an atom by its UTF-8 name."""
    if len(name) < 256:
        return bytes([SMALL_ATOM_UTF8_EXT, len(name)]) + name
    if len(name) <= 0xFFFF:
        return struct.pack('>BH', ATOM_UTF8_EXT, len(name)) + name
    raise EncodingRangeError(f"Atom name is {len(name)} bytes, maximum is 65535")


def encode_tuple(elements: Tuple[Any, ...]) -> bytes:
    if len(elements) < 256:
        header = bytes([SMALL_TUPLE_EXT, len(elements)])
    else:
        header = bytes([LARGE_TUPLE_EXT]) + pack_count(len(elements), "Tuple")
    return header + encode_sequence(elements)


def encode_list(elements: List[Any]) -> bytes:
    if not elements:
        return bytes([NIL_EXT])
    return (bytes([LIST_EXT]) + pack_count(len(elements), "List")
            + encode_sequence(elements) + bytes([NIL_EXT]))


def encode_map(pairs: List[Tuple[Any, Any]]) -> bytes:
    result = bytearray([MAP_EXT])
    result.extend(pack_count(len(pairs), "Map"))
    for key, value in pairs:
        result.extend(encode_literal(key))
        result.extend(encode_literal(value))
    return bytes(result)


def encode_sequence(values: Iterable[Any]) -> bytes:
    """Concatenate the encodings of values, in order."""
    return b''.join(encode_literal(value) for value in values)
