"""
BEAM module builder.

Accumulates atoms, literals, closures, exports and encoded instructions for
one module, then hands them to the assembler exactly once.
"""

import sys
import zlib
from typing import Any, Callable, List, Optional, Tuple

from .errors import BuilderFinalizedError, StructuralError
from .beam.atoms import Atom, AtomName, AtomTable, to_name
from .beam.assembler import BeamAssembler
from .beam.opcodes import Instruction, OpcodeTable
from .beam.operands import ExtLiteral, Label, Lit, Operand, Register, X, encode_operand
from .beam.tables import Closure, Compressor, Export


class Builder:
    """Build context for a single BEAM module."""

    def __init__(self, module_name: Optional[AtomName] = None, verbose: bool = False,
                 compress: Compressor = zlib.compress):
        self.verbose = verbose
        self.assembler = BeamAssembler(compress)
        self.atoms = AtomTable()
        # Without a module name the context starts empty and func_info is unavailable
        self.module: Optional[Atom] = None
        if module_name is not None:
            self.module = Atom(module_name)
            self.atoms.intern(self.module.name)  # always index 1

        self.literals: List[Any] = []
        self.closures: List[Closure] = []
        self.exports: List[Export] = []
        self.pending_export: Optional[Tuple[bytes, int]] = None  # (name, arity)

        self.label_count = 1  # next label id; the Code header wants max label + 1
        self.current_label = 0  # most recently minted label, 0 before any
        self.function_count = 0
        self.code = bytearray()

        self.finalized = False
        self.warnings: List[str] = []

    def log(self, message: str):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[beamc] {message}", file=sys.stderr)

    def warn(self, code: str, message: str):
        """Add a warning with a code."""
        warning = f"{code}: {message}"
        self.warnings.append(warning)
        if self.verbose:
            print(f"[beamc] Warning: {warning}", file=sys.stderr)

    def get_warnings(self) -> List[str]:
        """Get all warnings generated so far."""
        return self.warnings.copy()

    @property
    def module_label(self) -> str:
        if self.module is None:
            return "<unnamed>"
        return self.module.name.decode('utf-8', 'replace')

    def _check_open(self):
        if self.finalized:
            raise BuilderFinalizedError(
                f"Module {self.module_label} has already been finalized")

    # Atoms and labels

    def intern(self, name: AtomName) -> int:
        """Intern an atom name and return its index."""
        self._check_open()
        return self.atoms.intern(name)

    def atom(self, name: AtomName) -> Atom:
        """Intern an atom name and return it as an operand."""
        self.intern(name)
        return Atom(name)

    def new_label(self) -> Label:
        """
        Mint the next label.

        If an export is waiting for its entry point, this label becomes it.
        """
        self._check_open()
        label = Label(self.label_count)
        self.current_label = label.id
        self.label_count += 1

        if self.pending_export is not None:
            name, arity = self.pending_export
            self.pending_export = None
            self._add_export(name, arity, label.id)
        return label

    def emit_label(self, label: Label):
        """Place a label at the current code position."""
        self.op('label', Lit(label.id))

    def label(self) -> Label:
        """Mint a label and place it immediately."""
        label = self.new_label()
        self.emit_label(label)
        return label

    # Tables

    def _add_export(self, name: bytes, arity: int, label: int):
        if any(e.name == name and e.arity == arity for e in self.exports):
            self.warn("BEAM0101", f"{name.decode('utf-8', 'replace')}/{arity} exported more than once")
        self.exports.append(Export(name, arity, label))
        self.log(f"Export {name.decode('utf-8', 'replace')}/{arity} -> label {label}")

    def export(self, name: AtomName, arity: int, label: Label):
        """Export name/arity with a known entry label."""
        self.intern(name)
        self._add_export(to_name(name), arity, label.id)

    def export_next_label(self, name: AtomName, arity: int):
        """Export name/arity at the next label to be minted."""
        if self.pending_export is not None:
            pending, pending_arity = self.pending_export
            raise StructuralError(
                f"Export {pending.decode('utf-8', 'replace')}/{pending_arity} "
                f"is still waiting for a label")
        self.intern(name)
        self.pending_export = (to_name(name), arity)

    def add_literal(self, value: Any) -> int:
        """Append a value to the literal table and return its index."""
        self._check_open()
        self.literals.append(value)
        return len(self.literals) - 1

    def literal(self, value: Any) -> ExtLiteral:
        """Register a literal and return an operand referring to it."""
        return ExtLiteral(self.add_literal(value))

    def add_closure(self, name: AtomName, arity: int, label: Label, free: int) -> int:
        """
        Register an anonymous function.

        Args:
            name: Name of the function implementing the closure
            arity: Arity including free variables
            label: Entry label
            free: Number of captured variables

        Returns:
            The closure's index in the FunT chunk
        """
        self.intern(name)
        index = len(self.closures)
        self.closures.append(Closure(to_name(name), arity, label.id, index, free))
        return index

    # Code

    def emit(self, instruction: Instruction):
        """Encode an instruction and append it to the code."""
        self._check_open()
        encoded = bytearray([instruction.opcode])
        for operand in instruction.operands:
            encoded.extend(encode_operand(self.atoms, operand))
        # Only extended once every operand encoded
        self.code.extend(encoded)

    def op(self, name: str, *operands: Operand):
        """Emit an instruction from the opcode table by name."""
        self.emit(OpcodeTable.instruction(name, *operands))

    def append_code(self, data: bytes):
        """Append already-encoded instruction bytes."""
        self._check_open()
        self.code.extend(data)

    def func_info(self, name: AtomName, arity: int, export: bool = False):
        """
        Emit a function header.

        With export=True the next minted label (the function's entry
        point) is exported as name/arity.
        """
        if self.module is None:
            raise StructuralError("func_info needs a module name")
        if export:
            self.export_next_label(name, arity)
        function = self.atom(name)
        self.function_count += 1
        self.op('func_info', self.module, function, Lit(arity))

    def move(self, source: Operand, destination: Register):
        self.op('move', source, destination)

    def ret(self):
        self.op('return')

    # Assembly

    def finalize(self) -> bytes:
        """
        Assemble the module.

        Returns:
            Complete BEAM file bytes

        Raises:
            StructuralError: An export is still waiting for a label
            BuilderFinalizedError: Called more than once
        """
        self._check_open()
        if self.pending_export is not None:
            name, arity = self.pending_export
            raise StructuralError(
                f"Export {name.decode('utf-8', 'replace')}/{arity} never received a label")

        module = self.assembler.build_module(
            self.atoms, self.literals, self.closures, self.exports,
            bytes(self.code), self.label_count, self.function_count)
        self.finalized = True

        if self.function_count == 0:
            self.warn("BEAM0102", f"Module {self.module_label} has no functions")
        self.log(f"Module {self.module_label}: "
                 f"{len(self.atoms)} atoms, {len(self.literals)} literals, "
                 f"{len(self.closures)} closures, {len(self.exports)} exports, "
                 f"{self.function_count} functions, {len(module)} bytes")
        return module


def build_module(module_name: AtomName, body: Callable[[Builder], None], **options) -> bytes:
    """
    Build a module in one call.

    Args:
        module_name: Name of the module
        body: Called with the builder to emit the module's code
        **options: Passed through to Builder

    Returns:
        Complete BEAM file bytes
    """
    builder = Builder(module_name, **options)
    body(builder)
    return builder.finalize()


def build_minimal_module(module_name: AtomName, function_name: AtomName = 'start') -> bytes:
    """
    Build a module exporting a single function of arity 0 that returns 'ok'.

    Useful for testing the basic file structure.
    """
    def body(builder: Builder):
        builder.label()
        builder.func_info(function_name, 0, export=True)
        builder.label()
        builder.move(builder.atom('ok'), X(0))
        builder.ret()

    return build_module(module_name, body)
