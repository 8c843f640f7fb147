"""
mpcasm - Assembler for Microcoded Logic-Circuit Processors
==========================================================

This package assembles human-readable instruction listings into the raw
byte images consumed by a microcoded processor built in a logic circuit
simulator. Each instruction's opcode byte is the micro-program counter
(MPC) address where its microcode starts in the Micro Store ROM; the
assembler looks that address up from the instruction's mnemonic and
operand types.

Main Components
---------------
- **isa**: instruction code packing, operand types, jump/branch sets
- **assembler**: mapping table, line parser, two-pass code generator
- **config**: assembler configuration (defaults + environment)
- **cli**: the ``mpcasm`` command

Quick Start
-----------
Assemble a program:
    >>> from mpcasm import Assembler
    >>> asm = Assembler(mapping_file="mapping.conf")
    >>> code = asm.assemble_file("count.asm")
    >>> asm.write_binary("ram.b")

Or use the command-line tool:
    $ mpcasm count.asm ram.b

Source Syntax
-------------
    # this is a comment
    @base_addr=1F       # program is loaded at 0x1F
    loop:
        MOV $04, 3      # (0x04) = 3
        ADD $04, 5      # (0x04) = (0x04) + 5
        BR loop

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from mpcasm.assembler import Assembler, CodeGenerator, MappingTable
from mpcasm.config import AssemblerConfig
from mpcasm.errors import (
    MpcAsmError,
    AssemblerError,
    AssemblySyntaxError,
    DirectiveError,
    InvalidMnemonicError,
    OperandResolutionError,
    UnencodableInstructionError,
    MappingError,
    MappingFormatError,
    SourceLocation,
)
from mpcasm.isa import OperandType, instruction_code

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "CodeGenerator",
    "MappingTable",
    "AssemblerConfig",
    # ISA
    "OperandType",
    "instruction_code",
    # Exception hierarchy
    "MpcAsmError",
    "AssemblerError",
    "AssemblySyntaxError",
    "DirectiveError",
    "InvalidMnemonicError",
    "OperandResolutionError",
    "UnencodableInstructionError",
    "MappingError",
    "MappingFormatError",
    "SourceLocation",
]
