"""Tests for the table chunk encoders."""

import struct
import zlib

import pytest

from beamc import EncodingRangeError, StructuralError, UnresolvedAtomError
from beamc.beam import Atom, AtomTable, Closure, Export
from beamc.beam.packing import pack_count
from beamc.beam.tables import (
    encode_atoms, encode_closures, encode_exports, encode_literals, encode_placeholder,
)

from .conftest import decode_literal_table, decode_words


class TestAtomTable:

    def test_layout(self):
        table = AtomTable()
        table.intern('mod')
        table.intern('ok')
        assert encode_atoms(table) == b'\x00\x00\x00\x02' + b'\x03mod' + b'\x02ok'

    def test_follows_index_order(self):
        table = AtomTable()
        for name in ('zeta', 'alpha', 'zeta', 'mid'):
            table.intern(name)
        payload = encode_atoms(table)
        assert payload[4:] == b'\x04zeta\x05alpha\x03mid'

    def test_name_longer_than_255_bytes(self):
        table = AtomTable()
        table.intern(b'x' * 256)
        with pytest.raises(EncodingRangeError):
            encode_atoms(table)


class TestClosureTable:

    def test_single_closure(self):
        """One closure is a count followed by six 32-bit fields."""
        table = AtomTable()
        for i in range(6):
            table.intern(f'filler{i}')
        table.intern('lambda')  # index 7

        payload = encode_closures([Closure('lambda', 2, 3, 0, 1)], table)
        assert len(payload) == 4 + 24
        assert decode_words(payload) == [1, 7, 2, 3, 0, 1, 0]

    def test_emission_order(self):
        table = AtomTable()
        table.intern('a')
        table.intern('b')
        closures = [Closure('b', 0, 5, 0, 0), Closure('a', 1, 9, 1, 2)]
        assert decode_words(encode_closures(closures, table)) == [
            2,
            2, 0, 5, 0, 0, 0,
            1, 1, 9, 1, 2, 0,
        ]

    def test_unresolved_name(self):
        with pytest.raises(UnresolvedAtomError):
            encode_closures([Closure('nope', 0, 1, 0, 0)], AtomTable())


class TestExportTable:

    def test_registration_order(self):
        table = AtomTable()
        table.intern('mod')
        table.intern('start')
        table.intern('stop')
        exports = [Export('stop', 1, 8), Export('start', 0, 2)]
        assert decode_words(encode_exports(exports, table)) == [2, 3, 1, 8, 2, 0, 2]

    def test_empty(self):
        assert encode_exports([], AtomTable()) == bytes(4)

    def test_negative_field(self):
        table = AtomTable()
        table.intern('f')
        with pytest.raises(EncodingRangeError):
            encode_exports([Export('f', -1, 2)], table)

    def test_field_above_32_bits(self):
        table = AtomTable()
        table.intern('f')
        with pytest.raises(EncodingRangeError):
            encode_exports([Export('f', 1 << 32, 2)], table)


class TestLiteralTable:

    def test_empty_table(self):
        """An empty table is a 4-byte zero count before compression."""
        payload = encode_literals([])
        assert struct.unpack('>I', payload[:4])[0] == 4
        assert zlib.decompress(payload[4:]) == bytes(4)

    def test_entries_are_length_prefixed_terms(self):
        payload = encode_literals([5, (1, 2)])
        raw = zlib.decompress(payload[4:])
        assert raw == (b'\x00\x00\x00\x02'
                       + b'\x00\x00\x00\x03' + bytes([131, 97, 5])
                       + b'\x00\x00\x00\x07' + bytes([131, 104, 2, 97, 1, 97, 2]))

    def test_decodes_in_order(self):
        values = [Atom('ok'), [1, 2, 3], b'bin', {Atom('k'): 1.25}, 1 << 40]
        assert decode_literal_table(encode_literals(values)) == values

    def test_reproducible(self):
        values = [(Atom('a'), i) for i in range(50)]
        assert encode_literals(values) == encode_literals(list(values))

    def test_custom_compressor(self):
        payload = encode_literals([7], compress=lambda data: data)
        assert payload == (b'\x00\x00\x00\x0b' + b'\x00\x00\x00\x01'
                           + b'\x00\x00\x00\x03' + bytes([131, 97, 7]))


def test_placeholder_is_zero_count():
    assert encode_placeholder() == bytes(4)


def test_count_overflow_is_structural():
    with pytest.raises(StructuralError):
        pack_count(1 << 32, "Closure table")
    assert pack_count(0xFFFFFFFF, "Closure table") == b'\xff\xff\xff\xff'
