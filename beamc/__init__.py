"""
BEAM compiler backend (beamc) - Encodes modules in the BEAM file format.

This package turns symbol tables and an instruction stream into a loadable
BEAM module: atom, literal, closure and export tables, compact operand
encoding and the chunked FOR1/BEAM container.
"""

from .builder import Builder, build_module, build_minimal_module
from .errors import (
    BeamError, EncodingRangeError, UnresolvedAtomError, StructuralError,
    BuilderFinalizedError,
)

__version__ = "0.1.0"
__author__ = "beamc Project"

__all__ = [
    'Builder', 'build_module', 'build_minimal_module',
    'BeamError', 'EncodingRangeError', 'UnresolvedAtomError', 'StructuralError',
    'BuilderFinalizedError',
]
