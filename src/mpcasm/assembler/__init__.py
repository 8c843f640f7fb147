"""
mpcasm Assembler
================

Two-pass assembler for the microcoded logic-circuit processor. Source
listings are converted into the raw byte image loaded into RAM, with each
instruction's opcode byte taken from the instruction mapping table.

Main Components
---------------
- **Assembler**: Main class that wires configuration, input and output
- **CodeGenerator**: Two-pass driver (label discovery, code generation)
- **MappingTable**: Instruction code to MPC address lookup
- **LabelTable / DirectiveStore**: Per-run symbol state
- **classify_line / parse_operands**: Line classifier and operand parser
- **resolve_jump_target / relative_offset**: Branch offset resolver

Assembly Process
----------------
1. **Pass 1**: apply directives, record label addresses, size and check
   each instruction against the mapping table
2. **Pass 2**: re-read the source, resolve jump/branch operands, emit the
   opcode MPC address followed by the operand bytes

Example Usage
-------------
>>> from mpcasm.assembler import Assembler
>>> asm = Assembler()
>>> asm.assemble_string('''
... @base_addr=10
... loop:
...     ADD $04, 5
...     BR loop
... ''')
>>> print(asm.get_listing())
"""

from mpcasm.assembler.assembler import (
    Assembler,
    assemble,
    assemble_file,
    output_artifact,
)
from mpcasm.assembler.branches import (
    JumpTarget,
    TargetKind,
    relative_offset,
    resolve_jump_target,
)
from mpcasm.assembler.codegen import CodeGenerator, ListingEntry
from mpcasm.assembler.mapping import DEFAULT_MAPPINGS, MappingTable
from mpcasm.assembler.parser import (
    LineKind,
    Operand,
    SourceLine,
    classify_line,
    iter_source_lines,
    parse_directive,
    parse_operands,
)
from mpcasm.assembler.symbols import DirectiveStore, LabelTable

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    "output_artifact",
    # Code generator
    "CodeGenerator",
    "ListingEntry",
    # Mapping table
    "MappingTable",
    "DEFAULT_MAPPINGS",
    # Parser
    "LineKind",
    "Operand",
    "SourceLine",
    "classify_line",
    "iter_source_lines",
    "parse_directive",
    "parse_operands",
    # Branches
    "JumpTarget",
    "TargetKind",
    "relative_offset",
    "resolve_jump_target",
    # Symbol state
    "LabelTable",
    "DirectiveStore",
]
