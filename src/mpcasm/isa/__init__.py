"""
mpcasm ISA Package
==================

Instruction set definitions shared by the assembler and the mapping table
loader: operand types, the instruction code packing, and the jump/branch
mnemonic sets.

Usage:
    from mpcasm.isa import OperandType, instruction_code

    code = instruction_code("ADD", OperandType.DIRECT, OperandType.IMMEDIATE)
    assert code == 0x41444421
"""

from mpcasm.isa.encoding import (
    # Core types
    OperandType,
    OPERAND_PATTERN_LETTERS,
    MAX_MNEMONIC_LENGTH,
    HEX_DIGITS,
    # Jump / branch sets
    ABSOLUTE_JUMPS,
    RELATIVE_BRANCHES,
    JUMP_INSTRUCTIONS,
    ALU_CARRY_ADJUST,
    # Functions
    instruction_code,
    shift_in_hex_digit,
    describe_code,
    is_valid_mnemonic,
    is_jump_instruction,
    is_relative_branch,
)

__all__ = [
    "OperandType",
    "OPERAND_PATTERN_LETTERS",
    "MAX_MNEMONIC_LENGTH",
    "HEX_DIGITS",
    "ABSOLUTE_JUMPS",
    "RELATIVE_BRANCHES",
    "JUMP_INSTRUCTIONS",
    "ALU_CARRY_ADJUST",
    "instruction_code",
    "shift_in_hex_digit",
    "describe_code",
    "is_valid_mnemonic",
    "is_jump_instruction",
    "is_relative_branch",
]
