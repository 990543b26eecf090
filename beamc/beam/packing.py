"""
Byte-packing helpers shared by the chunk and table encoders.

All multi-byte fields in a BEAM file are big-endian.
"""

import struct

from ..errors import EncodingRangeError, StructuralError

MAX_U32 = 0xFFFFFFFF


def pack8(value: int) -> bytes:
    """Pack an unsigned byte."""
    if not 0 <= value <= 0xFF:
        raise EncodingRangeError(f"Value {value} does not fit in one byte")
    return bytes([value])


def pack32(value: int) -> bytes:
    """Pack an unsigned 32-bit big-endian field."""
    if not 0 <= value <= MAX_U32:
        raise EncodingRangeError(f"Value {value} does not fit in 32 bits")
    return struct.pack('>I', value)


def pack_count(count: int, what: str) -> bytes:
    """Pack the element count of a table, rejecting counts the field cannot hold."""
    if count > MAX_U32:
        raise StructuralError(f"{what} has {count} entries, maximum is {MAX_U32}")
    return struct.pack('>I', count)


def with_length(data: bytes) -> bytes:
    """Prefix data with its 32-bit length."""
    return pack_count(len(data), "Length-prefixed block") + data


def padding(size: int) -> bytes:
    """Zero bytes needed to bring size up to a multiple of 4."""
    remainder = size % 4
    if remainder == 0:
        return b''
    return bytes(4 - remainder)


def align_section(payload: bytes) -> bytes:
    """
    Frame a chunk payload.

    Returns the 32-bit payload length, the payload itself and 0-3 zero
    bytes of padding. The length field never counts the padding.
    """
    return with_length(payload) + padding(len(payload))
