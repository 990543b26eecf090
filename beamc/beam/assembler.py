"""
BEAM assembler - frames table payloads as chunks and builds the module file.

A BEAM file is an IFF-style container:

    "FOR1" <u32 size of the rest> "BEAM" <chunk>*

and each chunk is a 4-byte ASCII tag, the u32 payload length, the payload
and zero padding up to a 4-byte boundary.
"""

from typing import Any, List
import zlib

from ..errors import StructuralError
from .atoms import AtomTable
from .opcodes import MAX_OPCODE, OpcodeTable
from .packing import align_section, pack32, pack8, pack_count
from .tables import (
    Closure, Compressor, Export,
    encode_atoms, encode_closures, encode_exports, encode_literals,
    encode_placeholder,
)


class BeamAssembler:
    """Assembles encoded tables and code into a BEAM module."""

    CONTAINER_MAGIC = b'FOR1'
    FORMAT_MAGIC = b'BEAM'

    # Code chunk sub-header
    HEADER_LENGTH = 16
    INSTRUCTION_SET = 0
    MAX_OPCODE = MAX_OPCODE

    def __init__(self, compress: Compressor = zlib.compress):
        self.compress = compress

    def wrap(self, tag: bytes, payload: bytes) -> bytes:
        """
        Frame a payload as a chunk.

        Args:
            tag: Four ASCII bytes naming the chunk
            payload: Raw chunk contents

        Returns:
            Tag, length, payload and padding
        """
        if len(tag) != 4 or not tag.isascii():
            raise StructuralError(f"Chunk tag must be 4 ASCII bytes, got {tag!r}")
        return tag + align_section(payload)

    def create_code(self, code: bytes, label_count: int, function_count: int) -> bytes:
        """
        Build the Code chunk payload.

        The sub-header is five u32 words: header length (16, counted from
        after the first word), instruction set, highest opcode, label count
        and function count. The instructions are terminated by int_code_end.
        """
        int_code_end = OpcodeTable.get_opcode('int_code_end').number
        return b''.join([
            pack32(self.HEADER_LENGTH),
            pack32(self.INSTRUCTION_SET),
            pack32(self.MAX_OPCODE),
            pack32(label_count),
            pack32(function_count),
            bytes(code),
            pack8(int_code_end),
        ])

    def create_chunks(self, atoms: AtomTable, literals: List[Any],
                      closures: List[Closure], exports: List[Export],
                      code: bytes, label_count: int, function_count: int) -> bytes:
        """Encode and frame every chunk, in loader order."""
        chunks = [
            (b'Atom', encode_atoms(atoms)),
            (b'LocT', encode_placeholder()),
            (b'StrT', encode_placeholder()),
            (b'LitT', encode_literals(literals, self.compress)),
            (b'ImpT', encode_placeholder()),
            (b'FunT', encode_closures(closures, atoms)),
            (b'ExpT', encode_exports(exports, atoms)),
            (b'Code', self.create_code(code, label_count, function_count)),
        ]
        return b''.join(self.wrap(tag, payload) for tag, payload in chunks)

    def build_module(self, atoms: AtomTable, literals: List[Any],
                     closures: List[Closure], exports: List[Export],
                     code: bytes, label_count: int, function_count: int) -> bytes:
        """
        Build a complete BEAM module.

        Args:
            atoms: Interned atoms; index 1 must be the module name
            literals: Literal table, in index order
            closures: FunT entries, in emission order
            exports: ExpT entries, in registration order
            code: Encoded instructions (without int_code_end)
            label_count: Highest label id + 1
            function_count: Number of func_info headers in code

        Returns:
            Complete BEAM file bytes
        """
        sections = self.FORMAT_MAGIC + self.create_chunks(
            atoms, literals, closures, exports, code, label_count, function_count)
        return self.CONTAINER_MAGIC + pack_count(len(sections), "Module") + sections
