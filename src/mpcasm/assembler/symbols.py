"""
Label Table and Directive Store
===============================

Per-run assembler state. Both tables are owned by the code generator and
rebuilt for every assembly run.

- **LabelTable** maps label names to program addresses. It is filled in
  pass 1 and only read in pass 2. A later definition of the same name
  replaces the earlier one.
- **DirectiveStore** holds the values set by '@' directives. The only
  directive is ``base_addr`` (default 0x00).
"""

from dataclasses import dataclass
from difflib import get_close_matches
from typing import Iterator, Optional

from mpcasm.errors import SourceLocation


# Directive names and their default values
DEFAULT_DIRECTIVES: dict[str, int] = {
    "base_addr": 0x00,
}

BASE_ADDR = "base_addr"


# =============================================================================
# Label Table
# =============================================================================

@dataclass
class Label:
    """
    Label table entry.

    Attributes:
        name: Label name, case preserved
        address: Program address at the point of definition
        location: Where the label was defined
    """
    name: str
    address: int
    location: SourceLocation


class LabelTable:
    """Label name to address mapping for one assembly run."""

    def __init__(self) -> None:
        self._labels: dict[str, Label] = {}

    def define(self, name: str, address: int, location: SourceLocation) -> None:
        """Record a label. Redefinition overwrites the previous address."""
        self._labels[name] = Label(name=name, address=address, location=location)

    def get(self, name: str) -> Optional[Label]:
        return self._labels.get(name)

    def address_of(self, name: str) -> Optional[int]:
        label = self._labels.get(name)
        return label.address if label else None

    def similar(self, name: str) -> list[str]:
        """Return defined labels whose names are close to ``name``."""
        return get_close_matches(name, list(self._labels), n=3, cutoff=0.6)

    def as_dict(self) -> dict[str, int]:
        return {name: label.address for name, label in self._labels.items()}

    def clear(self) -> None:
        self._labels.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._labels

    def __iter__(self) -> Iterator[Label]:
        return iter(self._labels.values())

    def __len__(self) -> int:
        return len(self._labels)


# =============================================================================
# Directive Store
# =============================================================================

class DirectiveStore:
    """Directive name to byte value mapping for one assembly run."""

    def __init__(self) -> None:
        self._values: dict[str, int] = dict(DEFAULT_DIRECTIVES)

    def is_known(self, name: str) -> bool:
        return name in self._values

    def set(self, name: str, value: int) -> None:
        if name not in self._values:
            raise KeyError(name)
        self._values[name] = value & 0xFF

    def get(self, name: str) -> int:
        return self._values[name]

    @property
    def base_address(self) -> int:
        return self._values[BASE_ADDR]

    def as_dict(self) -> dict[str, int]:
        return dict(self._values)

    def reset(self) -> None:
        self._values = dict(DEFAULT_DIRECTIVES)
