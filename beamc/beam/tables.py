"""
BEAM table chunk encoders.

Builds the payloads of the Atom, FunT, ExpT and LitT chunks. Each payload
starts with a 32-bit entry count; the literal table is then compressed.
"""

from dataclasses import dataclass
from typing import Any, Callable, List
import zlib

from ..errors import EncodingRangeError
from .atoms import AtomTable, to_name
from .packing import pack32, pack_count, with_length
from .terms import term_to_binary

Compressor = Callable[[bytes], bytes]


@dataclass
class Closure:
    """An entry of the FunT chunk (an anonymous function)."""
    name: bytes
    arity: int
    label: int
    index: int
    free: int

    def __post_init__(self):
        self.name = to_name(self.name)


@dataclass
class Export:
    """An entry of the ExpT chunk."""
    name: bytes
    arity: int
    label: int

    def __post_init__(self):
        self.name = to_name(self.name)


def encode_atoms(atoms: AtomTable) -> bytes:
    """
    Build the Atom chunk payload.

    Format: count, then for each atom in index order a length byte and the
    raw name.
    """
    result = bytearray(pack_count(len(atoms), "Atom table"))
    for name in atoms:
        if len(name) > 255:
            raise EncodingRangeError(
                f"Atom {name[:32]!r}... is {len(name)} bytes, maximum is 255")
        result.append(len(name))
        result.extend(name)
    return bytes(result)


def encode_closures(closures: List[Closure], atoms: AtomTable) -> bytes:
    """
    Build the FunT chunk payload.

    Each closure is six 32-bit fields: name atom, arity, label, index,
    free variable count and a zero "old unique" word.
    """
    result = bytearray(pack_count(len(closures), "Closure table"))
    for closure in closures:
        result.extend(pack32(atoms.lookup(closure.name)))
        result.extend(pack32(closure.arity))
        result.extend(pack32(closure.label))
        result.extend(pack32(closure.index))
        result.extend(pack32(closure.free))
        result.extend(pack32(0))  # old unique
    return bytes(result)


def encode_exports(exports: List[Export], atoms: AtomTable) -> bytes:
    """Build the ExpT chunk payload: count, then (name atom, arity, label) triples."""
    result = bytearray(pack_count(len(exports), "Export table"))
    for export in exports:
        result.extend(pack32(atoms.lookup(export.name)))
        result.extend(pack32(export.arity))
        result.extend(pack32(export.label))
    return bytes(result)


def encode_literals(literals: List[Any], compress: Compressor = zlib.compress) -> bytes:
    """
    Build the LitT chunk payload.

    The uncompressed table is the literal count followed by one
    length-prefixed external term per literal. The payload is the
    uncompressed size followed by the compressed table.
    """
    table = bytearray(pack_count(len(literals), "Literal table"))
    for value in literals:
        table.extend(with_length(term_to_binary(value)))
    return pack_count(len(table), "Literal table") + compress(bytes(table))


def encode_placeholder() -> bytes:
    """Payload of an always-empty table chunk."""
    return pack32(0)
