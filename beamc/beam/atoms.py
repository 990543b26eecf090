"""
Atom table for BEAM modules.

Atoms are interned names. Each distinct name gets a 1-based index in the
order it is first seen, and instructions refer to atoms by that index.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Union

from ..errors import UnresolvedAtomError

AtomName = Union[str, bytes]


def to_name(name: AtomName) -> bytes:
    """Normalize an atom name to bytes (str names are UTF-8 encoded)."""
    if isinstance(name, str):
        return name.encode('utf-8')
    if isinstance(name, (bytes, bytearray)):
        return bytes(name)
    raise TypeError(f"Atom name must be str or bytes, got {type(name).__name__}")


@dataclass(frozen=True)
class Atom:
    """A reference to an atom, usable as an operand or as a literal."""
    name: bytes

    def __init__(self, name: AtomName):
        object.__setattr__(self, 'name', to_name(name))

    def __repr__(self):
        return f"Atom({self.name.decode('utf-8', 'replace')})"


class AtomTable:
    """Interns atom names, assigning dense 1-based indices."""

    def __init__(self):
        self.indices: Dict[bytes, int] = {}  # name -> index
        self.order: List[bytes] = []  # index - 1 -> name

    def intern(self, name: AtomName) -> int:
        """
        Add a name to the table (or get its existing index).

        Args:
            name: Atom name

        Returns:
            The atom's 1-based index
        """
        key = to_name(name)
        if key in self.indices:
            return self.indices[key]

        index = len(self.order) + 1
        self.indices[key] = index
        self.order.append(key)
        return index

    def lookup(self, name: AtomName) -> int:
        """Get the index of an interned atom, raising if it was never interned."""
        key = to_name(name)
        try:
            return self.indices[key]
        except KeyError:
            raise UnresolvedAtomError(key) from None

    def names(self) -> List[bytes]:
        """Names in index order."""
        return list(self.order)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, name: AtomName) -> bool:
        return to_name(name) in self.indices
