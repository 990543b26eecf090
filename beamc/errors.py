"""
Exceptions raised while encoding a BEAM module.

All of them derive from ValueError: every failure is caused by the input
handed to the encoder, and retrying with the same input fails the same way.
"""


class BeamError(ValueError):
    """Base class for all encoding failures."""


class EncodingRangeError(BeamError):
    """A value does not fit the field or operand form it is written to."""


class UnresolvedAtomError(BeamError, KeyError):
    """An atom was referenced but never interned."""

    def __init__(self, name: bytes):
        self.name = name
        super().__init__(f"Atom {name!r} has not been interned")

    def __str__(self):
        # KeyError would otherwise repr() the message
        return self.args[0]


class StructuralError(BeamError):
    """The tables or code handed to the assembler cannot form a valid module."""


class BuilderFinalizedError(StructuralError):
    """A builder was used again after producing its module."""
