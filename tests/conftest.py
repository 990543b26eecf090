"""
Test fixtures and a reference decoder for BEAM output.

The decoder is deliberately independent of beamc's encoders: it reads the
container, the compact operand forms and the external term format straight
from the bytes, so tests can check what the loader would see.
"""

import struct
import zlib
from typing import Any, List, Tuple

import pytest

from beamc import Builder
from beamc.beam import Atom


def read_chunks(data: bytes) -> List[Tuple[bytes, bytes]]:
    """Split a BEAM file into (tag, payload) pairs, checking the framing."""
    assert data[:4] == b'FOR1'
    size = struct.unpack('>I', data[4:8])[0]
    assert size == len(data) - 8
    assert data[8:12] == b'BEAM'

    chunks = []
    pos = 12
    while pos < len(data):
        tag = data[pos:pos + 4]
        length = struct.unpack('>I', data[pos + 4:pos + 8])[0]
        payload = data[pos + 8:pos + 8 + length]
        assert len(payload) == length
        end = pos + 8 + length
        pad = (4 - length % 4) % 4
        assert data[end:end + pad] == bytes(pad), "padding must be zero"
        chunks.append((tag, payload))
        pos = end + pad
    assert pos == len(data)
    return chunks


def chunk_map(data: bytes) -> dict:
    return dict(read_chunks(data))


def decode_operand(data: bytes, pos: int = 0) -> Tuple[int, int, int]:
    """Decode one compact operand. Returns (tag, value, next position)."""
    lead = data[pos]
    tag = lead & 0x07
    pos += 1
    if lead & 0x08 == 0:
        return tag, lead >> 4, pos
    if lead & 0x10 == 0:
        return tag, ((lead & 0xE0) << 3) | data[pos], pos + 1
    size = lead >> 5
    if size < 7:
        size += 2
    else:
        _, extra, pos = decode_operand(data, pos)
        size = extra + 9
    value = int.from_bytes(data[pos:pos + size], 'big', signed=True)
    return tag, value, pos + size


def decode_term(data: bytes, pos: int = 0) -> Tuple[Any, int]:
    """Decode one external term (without version byte). Returns (value, next position)."""
    tag = data[pos]
    pos += 1
    if tag == 97:
        return data[pos], pos + 1
    if tag == 98:
        return struct.unpack_from('>i', data, pos)[0], pos + 4
    if tag in (110, 111):
        if tag == 110:
            n = data[pos]
            pos += 1
        else:
            n = struct.unpack_from('>I', data, pos)[0]
            pos += 4
        sign = data[pos]
        magnitude = int.from_bytes(data[pos + 1:pos + 1 + n], 'little')
        return (-magnitude if sign else magnitude), pos + 1 + n
    if tag == 70:
        return struct.unpack_from('>d', data, pos)[0], pos + 8
    if tag == 119:
        n = data[pos]
        return Atom(data[pos + 1:pos + 1 + n]), pos + 1 + n
    if tag == 118:
        n = struct.unpack_from('>H', data, pos)[0]
        return Atom(data[pos + 2:pos + 2 + n]), pos + 2 + n
    if tag == 109:
        n = struct.unpack_from('>I', data, pos)[0]
        return bytes(data[pos + 4:pos + 4 + n]), pos + 4 + n
    if tag in (104, 105):
        if tag == 104:
            arity = data[pos]
            pos += 1
        else:
            arity = struct.unpack_from('>I', data, pos)[0]
            pos += 4
        elements = []
        for _ in range(arity):
            element, pos = decode_term(data, pos)
            elements.append(element)
        return tuple(elements), pos
    if tag == 106:
        return [], pos
    if tag == 108:
        n = struct.unpack_from('>I', data, pos)[0]
        pos += 4
        elements = []
        for _ in range(n):
            element, pos = decode_term(data, pos)
            elements.append(element)
        tail, pos = decode_term(data, pos)
        assert tail == []
        return elements, pos
    if tag == 116:
        n = struct.unpack_from('>I', data, pos)[0]
        pos += 4
        result = {}
        for _ in range(n):
            key, pos = decode_term(data, pos)
            value, pos = decode_term(data, pos)
            result[key] = value
        return result, pos
    raise AssertionError(f"unknown term tag {tag}")


def decode_literal_table(payload: bytes) -> List[Any]:
    """Decompress and decode a LitT payload."""
    size = struct.unpack('>I', payload[:4])[0]
    raw = zlib.decompress(payload[4:])
    assert len(raw) == size

    count = struct.unpack('>I', raw[:4])[0]
    values = []
    pos = 4
    for _ in range(count):
        length = struct.unpack('>I', raw[pos:pos + 4])[0]
        assert raw[pos + 4] == 131
        value, end = decode_term(raw, pos + 5)
        assert end == pos + 4 + length
        values.append(value)
        pos = end
    assert pos == len(raw)
    return values


def decode_words(payload: bytes) -> List[int]:
    """Read a payload as a sequence of u32 words."""
    return list(struct.unpack(f'>{len(payload) // 4}I', payload))


@pytest.fixture
def builder():
    return Builder('example')
