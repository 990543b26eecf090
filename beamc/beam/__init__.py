"""BEAM module encoding: atoms, literals, operands, tables and chunks."""

from .atoms import Atom, AtomTable
from .terms import Map, encode_literal, term_to_binary
from .operands import Lit, Int, NIL, X, Y, Label, ExtLiteral, encode_operand
from .opcodes import Opcode, OpcodeTable, Instruction
from .tables import Closure, Export
from .assembler import BeamAssembler

__all__ = [
    'Atom', 'AtomTable',
    'Map', 'encode_literal', 'term_to_binary',
    'Lit', 'Int', 'NIL', 'X', 'Y', 'Label', 'ExtLiteral', 'encode_operand',
    'Opcode', 'OpcodeTable', 'Instruction',
    'Closure', 'Export',
    'BeamAssembler',
]
