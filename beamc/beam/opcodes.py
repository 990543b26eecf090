"""
BEAM generic opcode definitions.

The full catalog belongs to the runtime; this table carries the opcodes a
backend needs to lay out functions plus the common call and data-movement
instructions. Raw opcode numbers can always be emitted through Instruction.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import EncodingRangeError, StructuralError
from .operands import Operand

# Highest opcode understood by the target loader
MAX_OPCODE = 158


@dataclass(frozen=True)
class Opcode:
    """A generic BEAM opcode."""
    name: str
    number: int
    arity: int

    def __repr__(self):
        return f"Opcode({self.name}/{self.arity}, {self.number})"


@dataclass(frozen=True)
class Instruction:
    """An opcode together with its operands."""
    opcode: int
    operands: Tuple[Operand, ...] = ()

    def __post_init__(self):
        if not 0 <= self.opcode <= MAX_OPCODE:
            raise EncodingRangeError(
                f"Opcode {self.opcode} is outside 0..{MAX_OPCODE}")
        object.__setattr__(self, 'operands', tuple(self.operands))


class OpcodeTable:
    """BEAM opcode table."""

    OPCODES = {
        # Module structure
        'label': Opcode('label', 1, 1),
        'func_info': Opcode('func_info', 2, 3),
        'int_code_end': Opcode('int_code_end', 3, 0),

        # Calls
        'call': Opcode('call', 4, 2),
        'call_last': Opcode('call_last', 5, 3),
        'call_only': Opcode('call_only', 6, 2),
        'call_ext': Opcode('call_ext', 7, 2),
        'call_ext_last': Opcode('call_ext_last', 8, 3),
        'call_ext_only': Opcode('call_ext_only', 78, 2),

        # Stack frames and heap
        'allocate': Opcode('allocate', 12, 2),
        'allocate_heap': Opcode('allocate_heap', 13, 3),
        'allocate_zero': Opcode('allocate_zero', 14, 2),
        'test_heap': Opcode('test_heap', 16, 2),
        'deallocate': Opcode('deallocate', 18, 1),
        'return': Opcode('return', 19, 0),

        # Tests and control flow
        'is_eq_exact': Opcode('is_eq_exact', 43, 3),
        'is_nil': Opcode('is_nil', 52, 2),
        'test_arity': Opcode('test_arity', 58, 3),
        'jump': Opcode('jump', 61, 1),

        # Data movement
        'move': Opcode('move', 64, 2),
        'get_list': Opcode('get_list', 65, 3),
        'get_tuple_element': Opcode('get_tuple_element', 66, 3),
        'put_list': Opcode('put_list', 69, 3),
        'make_fun2': Opcode('make_fun2', 103, 1),
        'gc_bif2': Opcode('gc_bif2', 125, 6),
    }

    @classmethod
    def get_opcode(cls, name: str) -> Optional[Opcode]:
        """Get opcode by name."""
        return cls.OPCODES.get(name.lower())

    @classmethod
    def instruction(cls, name: str, *operands: Operand) -> Instruction:
        """
        Build an instruction by opcode name, checking its operand count.

        Raises:
            StructuralError: Unknown opcode or wrong number of operands
        """
        opcode = cls.get_opcode(name)
        if opcode is None:
            raise StructuralError(f"Unknown opcode: {name}")
        if len(operands) != opcode.arity:
            raise StructuralError(
                f"{opcode.name} takes {opcode.arity} operands, got {len(operands)}")
        return Instruction(opcode.number, operands)
