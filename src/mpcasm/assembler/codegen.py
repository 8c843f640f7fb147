"""
Two-Pass Code Generator
=======================

This module turns classified source lines into the byte stream loaded
into the target's RAM. It implements a two-pass assembly process over the
same source text.

Pass 1 (Label Discovery)
------------------------
- Apply '@' directives (``base_addr`` moves the program counter at once)
- Record each label at the current program address
- Size every instruction (opcode byte + one byte per operand) and check
  that its instruction code has a mapping table entry
- Emit nothing

Pass 2 (Code Generation)
------------------------
- Restart the program counter at the base address recorded in pass 1
- Skip directives and labels
- Resolve jump/branch operands against the label table
- Emit the opcode's MPC address, then each operand byte, in order

Every error is fatal: the first one raised aborts the run.

Listing Format
--------------
```
Addr.  Byte  Instr.
0x00   0x04  mov $50, 0x12
0x01   0x50
0x02   0x12
```
"""

from dataclasses import dataclass
from typing import Optional
import logging

from mpcasm.errors import (
    OperandResolutionError,
    UnencodableInstructionError,
)
from mpcasm.assembler.branches import (
    TargetKind,
    relative_offset,
    resolve_jump_target,
)
from mpcasm.assembler.mapping import MappingTable
from mpcasm.assembler.parser import (
    LineKind,
    Operand,
    SourceLine,
    iter_source_lines,
    jump_operand_text,
    parse_directive,
    parse_operands,
)
from mpcasm.assembler.symbols import BASE_ADDR, DirectiveStore, LabelTable
from mpcasm.isa import (
    ALU_CARRY_ADJUST,
    OperandType,
    describe_code,
    instruction_code,
    is_relative_branch,
)

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Listing Entry
# =============================================================================

@dataclass(frozen=True)
class ListingEntry:
    """
    One emitted byte.

    Attributes:
        address: Program address of the byte
        value: The byte written
        line: Source line number it came from
        source: Source text for opcode bytes, None for operand bytes
    """
    address: int
    value: int
    line: int
    source: Optional[str] = None

    def __str__(self) -> str:
        text = f"0x{self.address:02X}\t0x{self.value:02X}"
        if self.source is not None:
            text += f"\t{self.source}"
        return text


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Two-pass assembler core.

    The code generator owns all per-run state:
    - Label table (filled in pass 1)
    - Directive store (set in pass 1)
    - Program counter
    - Output buffer and listing entries (pass 2)

    Usage:
        codegen = CodeGenerator(MappingTable())
        code = codegen.generate(source_text)
        print(codegen.get_listing())
    """

    def __init__(self, mapping: Optional[MappingTable] = None,
                 carry_adjust: int = ALU_CARRY_ADJUST):
        """
        Initialize the code generator.

        Args:
            mapping: Instruction code to MPC address table. The built-in
                     table is used when omitted.
            carry_adjust: Back-branch carry compensation (see
                          ``mpcasm.assembler.branches``)
        """
        self._mapping = mapping if mapping is not None else MappingTable()
        self._carry_adjust = carry_adjust
        self._labels = LabelTable()
        self._directives = DirectiveStore()
        self._code = bytearray()
        self._listing: list[ListingEntry] = []
        self._pc = 0

    # =========================================================================
    # Public Interface
    # =========================================================================

    @property
    def mapping(self) -> MappingTable:
        return self._mapping

    @property
    def carry_adjust(self) -> int:
        return self._carry_adjust

    def generate(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source text into bytes.

        Args:
            source: Complete source text (scanned twice)
            filename: Name used in error locations

        Returns:
            The emitted bytes in program-address order

        Raises:
            AssemblerError: On the first error in either pass. Nothing
                emitted before the error is kept.
        """
        self._labels.clear()
        self._directives.reset()
        self._code.clear()
        self._listing.clear()

        try:
            self._pass1(source, filename)
            logger.debug(
                f"Pass 1 complete: {len(self._labels)} labels, "
                f"base address 0x{self._directives.base_address:02X}"
            )

            self._pass2(source, filename)
        except Exception:
            self._code.clear()
            self._listing.clear()
            self._pc = self._directives.base_address
            raise

        logger.info(f"Assembled {filename} in {self.byte_count} bytes")

        return bytes(self._code)

    def get_code(self) -> bytes:
        """Return the bytes emitted by the last run."""
        return bytes(self._code)

    @property
    def byte_count(self) -> int:
        """Bytes emitted by the last run, net of the base address."""
        return self._pc - self._directives.base_address

    @property
    def base_address(self) -> int:
        return self._directives.base_address

    def get_labels(self) -> dict[str, int]:
        """Return a dictionary of label names to addresses."""
        return self._labels.as_dict()

    def get_directives(self) -> dict[str, int]:
        """Return a dictionary of directive names to values."""
        return self._directives.as_dict()

    def get_listing_entries(self) -> list[ListingEntry]:
        """Return the (address, byte, source) records of the last run."""
        return list(self._listing)

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            One line per emitted byte with address, byte and, for opcode
            bytes, the source line
        """
        lines = ["Addr.\tByte\tInstr."]
        lines.extend(str(entry) for entry in self._listing)
        return "\n".join(lines)

    # =========================================================================
    # Pass 1: Label Discovery
    # =========================================================================

    def _pass1(self, source: str, filename: str) -> None:
        """
        First pass: apply directives, record labels, size instructions.
        """
        self._pc = 0

        for line in iter_source_lines(source, filename):
            if line.kind == LineKind.DIRECTIVE:
                self._apply_directive(line)

            elif line.kind == LineKind.LABEL:
                self._labels.define(line.label, self._pc, line.location)
                logger.debug(f"Label '{line.label}' = 0x{self._pc:02X}")

            elif line.kind == LineKind.INSTRUCTION:
                self._pc += self._instruction_size(line)

    def _apply_directive(self, line: SourceLine) -> None:
        """Parse a directive line and record its value."""
        name, value = parse_directive(line, known=set(self._directives.as_dict()))
        self._directives.set(name, value)

        if name == BASE_ADDR:
            logger.info(f"Address offset = 0x{value:02X}")
            self._pc += value

    def _instruction_size(self, line: SourceLine) -> int:
        """
        Return the byte size of an instruction line.

        Jump/branch instructions always take one immediate operand, whatever
        the operand text looks like; labels are not known yet.
        """
        if line.is_jump:
            self._lookup(line, [Operand(OperandType.IMMEDIATE, 0)])
            return 2

        operands = parse_operands(line)
        self._lookup(line, operands)
        return 1 + len(operands)

    # =========================================================================
    # Pass 2: Code Generation
    # =========================================================================

    def _pass2(self, source: str, filename: str) -> None:
        """
        Second pass: emit bytes for every instruction line.
        """
        self._pc = self._directives.base_address

        for line in iter_source_lines(source, filename):
            if line.kind == LineKind.INSTRUCTION:
                self._generate_instruction(line)

    def _generate_instruction(self, line: SourceLine) -> None:
        """Emit the opcode and operand bytes of one instruction."""
        if line.is_jump:
            operands = [Operand(OperandType.IMMEDIATE, self._resolve_jump(line))]
        else:
            operands = parse_operands(line)

        mpc = self._lookup(line, operands)

        self._emit(mpc, line, opcode=True)
        for operand in operands:
            self._emit(operand.value, line)

    def _resolve_jump(self, line: SourceLine) -> int:
        """Resolve a jump/branch operand to the byte to emit."""
        text = jump_operand_text(line)
        relative = is_relative_branch(line.mnemonic)
        target = resolve_jump_target(
            text, self._labels, self._directives.base_address, relative=relative,
        )

        if target.kind == TargetKind.INVALID:
            column = line.operand_column + line.operand_text.find(text) if text else 0
            raise OperandResolutionError(
                text,
                location=line.at_column(column),
                source_line=line.text,
                similar_labels=self._labels.similar(text) if text else None,
            )

        if target.kind == TargetKind.LABEL and relative:
            offset = relative_offset(target.value, self._pc, self._carry_adjust)
            logger.debug(
                f"{line.mnemonic} '{text}' at 0x{self._pc:02X}: "
                f"target 0x{target.value:02X}, offset 0x{offset:02X}"
            )
            return offset

        return target.value

    # =========================================================================
    # Helpers
    # =========================================================================

    def _lookup(self, line: SourceLine, operands: list[Operand]) -> int:
        """
        Map an instruction to its MPC address.

        Raises:
            UnencodableInstructionError: If the mapping table has no entry
        """
        types = [operand.type for operand in operands]
        types += [OperandType.NONE] * (2 - len(types))
        code = instruction_code(line.mnemonic, types[0], types[1])

        mpc = self._mapping.lookup(code)
        if mpc is None:
            raise UnencodableInstructionError(
                code,
                describe_code(code),
                location=line.location,
                source_line=line.text,
            )
        return mpc

    def _emit(self, value: int, line: SourceLine, opcode: bool = False) -> None:
        """Emit a single byte at the current program address."""
        value &= 0xFF
        self._code.append(value)
        self._listing.append(ListingEntry(
            address=self._pc,
            value=value,
            line=line.line_number,
            source=line.text if opcode else None,
        ))
        self._pc += 1
