"""
Jump and Branch Operand Resolution
==================================

The single operand of JMP, JSR, BR, BRZ and BRN can be written either as
a label or as a 1-2 digit hex address. Both readings are tried; a known
label wins over the literal.

Absolute Jumps
--------------
JMP and JSR encode the target address directly. Label addresses already
include the base address offset, because pass 1 records them after the
``@base_addr`` directive has moved the program counter. Literal addresses
are relative to the program and get the base address added.

Relative Branches
-----------------
BR, BRZ and BRN encode a signed 8-bit displacement that the hardware adds
to PC. For a label target:

    back branch (target < pc):  offset = target - (pc + carry_adjust)
    forward branch:             offset = target - (pc + 1)

where ``pc`` is the address of the branch opcode. The forward ``+ 1``
accounts for PC pointing at the branch operand, not the opcode, when the
displacement is added. Back branches add a two's-complement negative
number, and the ALU's carry-in adds one more; ``carry_adjust`` is 2 on
hardware that feeds the PSW carry-out into the ALU carry-in and 1 on
hardware that does not.

Example: a branch at $05 to a label at $02 with carry_adjust 2 encodes
``$02 - ($05 + 2) = -5 = $FB``.

Literal operands of relative branches are taken as already-computed
offsets and are not converted.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from mpcasm.assembler.symbols import LabelTable
from mpcasm.isa import ALU_CARRY_ADJUST, HEX_DIGITS, shift_in_hex_digit

# Longest literal accepted in place of a label
MAX_LITERAL_DIGITS = 2


class TargetKind(Enum):
    """How a jump operand was interpreted."""
    LABEL = auto()
    LITERAL = auto()
    INVALID = auto()


@dataclass(frozen=True)
class JumpTarget:
    """
    Result of resolving a jump/branch operand.

    Attributes:
        kind: LABEL, LITERAL or INVALID
        value: Resolved address byte (0 for INVALID)
        text: The operand text as written
    """
    kind: TargetKind
    value: int
    text: str

    @property
    def is_valid(self) -> bool:
        return self.kind != TargetKind.INVALID


def resolve_jump_target(text: str, labels: LabelTable, base_address: int = 0,
                        relative: bool = False) -> JumpTarget:
    """
    Interpret a jump operand as a label or a literal address.

    Args:
        text: Operand text, comment and surrounding blanks removed
        labels: Completed label table from pass 1
        base_address: Current ``base_addr`` value, added to absolute literals
        relative: True for relative branches, whose literal is an offset

    Returns:
        A LABEL target with the label's address, a LITERAL target with the
        base-adjusted address (or the raw offset when ``relative``), or
        INVALID if the text is neither
    """
    address = labels.address_of(text)
    if address is not None:
        return JumpTarget(TargetKind.LABEL, address & 0xFF, text)

    literal = parse_short_hex(text)
    if literal is None:
        return JumpTarget(TargetKind.INVALID, 0, text)

    if relative:
        return JumpTarget(TargetKind.LITERAL, literal, text)
    return JumpTarget(TargetKind.LITERAL, (literal + base_address) & 0xFF, text)


def parse_short_hex(text: str) -> Optional[int]:
    """Parse 1-2 hex digits, or return None."""
    if not 0 < len(text) <= MAX_LITERAL_DIGITS:
        return None
    value = 0
    for char in text:
        if char not in HEX_DIGITS:
            return None
        value = shift_in_hex_digit(value, char)
    return value


def to_signed8(value: int) -> int:
    """Interpret the low byte of ``value`` as a two's-complement number."""
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


def relative_offset(target: int, pc: int, carry_adjust: int = ALU_CARRY_ADJUST) -> int:
    """
    Compute the encoded displacement byte for a relative branch.

    Args:
        target: Absolute target address
        pc: Address of the branch opcode
        carry_adjust: Back-branch carry compensation (1 or 2)

    Returns:
        The displacement as an unsigned byte
    """
    if target < pc:
        offset = to_signed8(target) - (pc + carry_adjust)
    else:
        offset = to_signed8(target) - (pc + 1)
    return offset & 0xFF
