"""
Instruction Mapping Table
=========================

This module maps 32-bit instruction codes (see ``mpcasm.isa``) to the
micro-program counter (MPC) address where each instruction's microcode
begins in the Micro Store ROM. That address is the byte the assembler
writes in an instruction's opcode position.

A small built-in table is always available. It can be extended or
overridden from a mapping file before assembly begins.

Mapping File Format
-------------------
```
# comment
HLT       : 03
MOV A, X  : 04      # MOV direct address, immediate
ADD A, B  : 4C      # ADD direct address, direct address
JMP X     : 50
```

- Left of the last ':' is the instruction pattern: a mnemonic followed by
  up to two operand letters separated by a comma. ``A`` and ``B`` stand for
  a direct address, ``X`` for an immediate value. Case is ignored.
- Right of the ':' is the MPC address in hex.
- Blank lines and lines starting with '#' are ignored.
"""

from pathlib import Path
from typing import Iterator, Optional
import logging

from mpcasm.errors import MappingFormatError
from mpcasm.isa import (
    HEX_DIGITS,
    OperandType,
    describe_code,
    instruction_code,
    is_valid_mnemonic,
    shift_in_hex_digit,
)

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Built-in Mappings
# =============================================================================

DEFAULT_MAPPINGS: dict[int, int] = {
    0x484C5400: 0x03,   # HLT
    0x4D4F5621: 0x04,   # MOV A, X
    0x41444421: 0x0B,   # ADD A, X
    0x4A4D5010: 0x50,   # JMP X
    0x42520010: 0x80,   # BR X
}

# Operand pattern letters accepted in mapping files
_PATTERN_TYPES = {
    "A": OperandType.DIRECT,
    "B": OperandType.DIRECT,
    "X": OperandType.IMMEDIATE,
}


# =============================================================================
# Mapping Table
# =============================================================================

class MappingTable:
    """
    Instruction code to MPC address lookup.

    Usage:
        table = MappingTable()
        table.load_file("mapping.conf")
        mpc = table.lookup(instruction_code("ADD", OperandType.DIRECT,
                                            OperandType.IMMEDIATE))
    """

    def __init__(self, defaults: bool = True):
        """
        Initialize the table.

        Args:
            defaults: If True, start with the built-in mappings
        """
        self._entries: dict[int, int] = dict(DEFAULT_MAPPINGS) if defaults else {}

    def lookup(self, code: int) -> Optional[int]:
        """Return the MPC address for an instruction code, or None."""
        return self._entries.get(code)

    def set(self, code: int, target: int) -> None:
        """Add or replace the entry for an instruction code."""
        if code in self._entries and self._entries[code] != target:
            logger.debug(
                f"Mapping {describe_code(code)!r} overridden: "
                f"0x{self._entries[code]:02X} -> 0x{target:02X}"
            )
        self._entries[code] = target & 0xFF

    def entries(self) -> Iterator[tuple[int, int]]:
        """Iterate over (code, target) pairs in code order."""
        return iter(sorted(self._entries.items()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, code: int) -> bool:
        return code in self._entries

    # =========================================================================
    # Loading
    # =========================================================================

    def load_file(self, filepath: str | Path) -> int:
        """
        Load entries from a mapping file.

        Args:
            filepath: Path to the mapping file

        Returns:
            Number of entries read from the file

        Raises:
            MappingFormatError: If a line is malformed
            FileNotFoundError: If the file does not exist
        """
        filepath = Path(filepath)
        count = self.load_string(filepath.read_text(), str(filepath))
        logger.info(f"Loaded {count} mappings from {filepath}")
        return count

    def load_string(self, text: str, filename: str = "<mapping>") -> int:
        """
        Load entries from mapping file text.

        Returns:
            Number of entries read
        """
        count = 0
        for line_num, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            code, target = parse_mapping_line(line, filename, line_num)
            self.set(code, target)
            count += 1
        return count

    # =========================================================================
    # Output
    # =========================================================================

    def format_table(self) -> str:
        """Render the table in mapping file syntax, one entry per line."""
        lines = []
        for code, target in self.entries():
            pattern = describe_code(code)
            lines.append(f"{pattern:<10s}: {target:02X}    # 0x{code:08X}")
        return "\n".join(lines)


# =============================================================================
# Line Parsing
# =============================================================================

def parse_mapping_line(line: str, filename: str, line_num: int) -> tuple[int, int]:
    """
    Parse one non-blank, non-comment mapping line.

    Returns:
        (instruction code, MPC address)

    Raises:
        MappingFormatError: On any malformed part of the line
    """
    def fail(message: str) -> MappingFormatError:
        return MappingFormatError(message, filename, line_num, line)

    body = line.split("#", 1)[0]
    pattern, sep, address = body.rpartition(":")
    if not sep:
        raise fail("invalid format, expected 'PATTERN : ADDRESS'")

    address = address.strip()
    words = pattern.split(None, 1)
    if not words:
        raise fail("missing instruction pattern")

    mnemonic = words[0].upper()
    operand_text = words[1] if len(words) > 1 else ""
    if not is_valid_mnemonic(mnemonic):
        raise fail(f"invalid mnemonic '{mnemonic}'")

    op_types = [OperandType.NONE, OperandType.NONE]
    index = 0
    for char in operand_text.upper():
        if char.isspace():
            continue
        if char == ",":
            if index == 0:
                index = 1
                continue
            raise fail("leading comma in instruction pattern")
        op_type = _PATTERN_TYPES.get(char)
        if op_type is None:
            raise fail(f"invalid operand type specified: '{char}'")
        op_types[index] = op_type

    if not address:
        raise fail("missing MPC address")
    target = 0
    for char in address:
        if char not in HEX_DIGITS:
            raise fail(f"invalid MPC address '{address}', address must be in hexadecimal")
        target = shift_in_hex_digit(target, char)

    return instruction_code(mnemonic, op_types[0], op_types[1]), target
