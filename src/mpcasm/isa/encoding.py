"""
Instruction Code Model
======================

This module defines how an instruction is reduced to the 32-bit code used
to look up its micro-program address in the mapping table.

Instruction Code Layout
-----------------------
The ASCII values of the (up to) three mnemonic characters occupy the three
most significant bytes. Unused character slots are zero. The low byte holds
the two operand-type nibbles:

    31        24 23        16 15         8 7     4 3     0
    .----------------------------------------------------.
    | mnem[0]    | mnem[1]    | mnem[2]    |  op1  |  op2 |
    *----------------------------------------------------*

Operand Types
-------------
| Operand Type   | Nibble | Mapping file letter |
|----------------|--------|---------------------|
| No operand     | 0x0    | (absent)            |
| Immediate      | 0x1    | X                   |
| Direct address | 0x2    | A or B              |

Example: ``ADD A, X`` (direct address, immediate) packs to

    'A'=0x41  'D'=0x44  'D'=0x44  (0x2 << 4 | 0x1)=0x21  ->  0x41444421

Only the operand *type* takes part in the code. Two instructions with the
same mnemonic and operand-type signature map to the same target address.

Jumps and Branches
------------------
- JMP X : unconditional jump, X is an absolute address
- JSR X : jump to subroutine, X is an absolute address
- BR X  : unconditional relative branch, X is an offset from PC
- BRZ X : relative branch if zero
- BRN X : relative branch if negative

Relative branches are the mnemonics starting with 'B'. Their label operands
are converted to two's-complement offsets by the assembler.
"""

from enum import IntEnum
from typing import Optional

from mpcasm.errors import InvalidMnemonicError


# =============================================================================
# Operand Type Enumeration
# =============================================================================

class OperandType(IntEnum):
    """Operand type tags packed into the low byte of an instruction code."""
    NONE = 0        # No operand
    IMMEDIATE = 1   # Literal value
    DIRECT = 2      # Memory reference ($ prefix)

    def __str__(self) -> str:
        return self.name.lower()


# Letters used for each operand type in mapping file patterns. A direct
# address is written A in the first operand slot and B in the second.
OPERAND_PATTERN_LETTERS = {
    OperandType.IMMEDIATE: ("X", "X"),
    OperandType.DIRECT: ("A", "B"),
}

MAX_MNEMONIC_LENGTH = 3

HEX_DIGITS = frozenset("0123456789ABCDEFabcdef")


# =============================================================================
# Jump / Branch Instruction Sets
# =============================================================================

# Absolute jumps take a plain address
ABSOLUTE_JUMPS = frozenset({"JMP", "JSR"})

# Relative branches take a signed offset from PC
RELATIVE_BRANCHES = frozenset({"BR", "BRZ", "BRN"})

# All mnemonics whose operand may be a label
JUMP_INSTRUCTIONS = ABSOLUTE_JUMPS | RELATIVE_BRANCHES

# Default adjustment for back branches. The ALU adds the carry out of the
# PSW back into the sum when a two's-complement negative offset is added
# to PC. Use 1 when carry-out is not fed into the ALU carry-in.
ALU_CARRY_ADJUST = 2


# =============================================================================
# Code Packing
# =============================================================================

def is_valid_mnemonic(mnemonic: str) -> bool:
    """Return True if the mnemonic fits the three high bytes of a code."""
    return (
        0 < len(mnemonic) <= MAX_MNEMONIC_LENGTH
        and mnemonic.isascii()
    )


def instruction_code(
    mnemonic: str,
    op1: OperandType = OperandType.NONE,
    op2: OperandType = OperandType.NONE,
) -> int:
    """
    Pack a mnemonic and its operand types into a 32-bit instruction code.

    Args:
        mnemonic: Instruction mnemonic, 1-3 characters (case as given)
        op1: Type of the first operand
        op2: Type of the second operand

    Returns:
        The 32-bit lookup key

    Raises:
        InvalidMnemonicError: If the mnemonic is empty, longer than three
            characters or not ASCII
    """
    if not is_valid_mnemonic(mnemonic):
        raise InvalidMnemonicError(mnemonic)

    code = 0
    for i, char in enumerate(mnemonic):
        code |= ord(char) << (8 * (3 - i))
    code |= (int(op1) & 0x0F) << 4
    code |= int(op2) & 0x0F
    return code


def describe_code(code: int) -> str:
    """
    Render an instruction code as a mapping file pattern.

    >>> describe_code(0x41444421)
    'ADD A, X'
    >>> describe_code(0x484C5400)
    'HLT'
    """
    chars = []
    for shift in (24, 16, 8):
        value = (code >> shift) & 0xFF
        if value:
            chars.append(chr(value))
    mnemonic = "".join(chars)

    operands = []
    for slot, nibble in enumerate(((code >> 4) & 0x0F, code & 0x0F)):
        letter = _pattern_letter(nibble, slot)
        if letter:
            operands.append(letter)

    if operands:
        return f"{mnemonic} {', '.join(operands)}"
    return mnemonic


def _pattern_letter(nibble: int, slot: int) -> Optional[str]:
    """Return the mapping file letter for an operand type nibble."""
    try:
        op_type = OperandType(nibble)
    except ValueError:
        return "?"
    letters = OPERAND_PATTERN_LETTERS.get(op_type)
    return letters[slot] if letters else None


def shift_in_hex_digit(value: int, digit: str) -> int:
    """
    Shift one hex digit into an 8-bit accumulator.

    Digits beyond the second push the oldest nibble out of the byte, so
    ``"123"`` accumulates to 0x23.
    """
    return ((value << 4) | int(digit, 16)) & 0xFF


def is_jump_instruction(mnemonic: str) -> bool:
    """Check if an instruction takes a label or address operand."""
    return mnemonic.upper() in JUMP_INSTRUCTIONS


def is_relative_branch(mnemonic: str) -> bool:
    """Check if an instruction encodes a PC-relative offset."""
    return mnemonic.upper().startswith("B") and is_jump_instruction(mnemonic)
