"""
mpcasm Error Hierarchy
======================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from MpcAsmError, so callers can catch every
assembler-related failure with a single except clause.

Exception Hierarchy
-------------------
MpcAsmError (base)
├── AssemblerError (source-related, always fatal to the run)
│   ├── AssemblySyntaxError - bad comma placement or operand character
│   ├── DirectiveError - malformed or unknown '@' directive
│   ├── InvalidMnemonicError - mnemonic longer than 3 characters
│   ├── OperandResolutionError - jump operand neither label nor immediate
│   └── UnencodableInstructionError - no mapping table entry for the key
└── MappingError (mapping table configuration)
    └── MappingFormatError - malformed line in a mapping file

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class MpcAsmError(Exception):
    """
    Base exception for all mpcasm errors.

        try:
            assembler.assemble_file("program.asm")
        except MpcAsmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in a source file, used for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(MpcAsmError):
    """
    Base exception for errors found while assembling a source file.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Line number of the error, if known."""
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            loop.asm:12:9: error: leading comma in operand list
                ADD ,5
                    ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in an instruction's operand list.

    Examples:
        - Leading comma (``ADD ,5``)
        - Second comma (``ADD 1,2,3``)
        - Character that is not a hex digit, '$', ',' or '#'
    """
    pass


class DirectiveError(AssemblerError):
    """
    Error in an assembler directive line.

    Raised when:
    - The line has no '=' (malformed assignment)
    - The directive name is not known
    - The value contains a non-hex character
    """
    pass


class InvalidMnemonicError(AssemblerError):
    """
    Mnemonic cannot be packed into an instruction code.

    Mnemonics occupy the three high bytes of the lookup key, so they are
    limited to three ASCII characters.
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        super().__init__(
            f"invalid mnemonic '{mnemonic}'",
            location=location,
            hint="mnemonics are 1 to 3 ASCII characters",
            source_line=source_line,
        )


class OperandResolutionError(AssemblerError):
    """
    Jump or branch operand is neither a known label nor a short hex value.

    The operand of JMP/JSR/BR/BRZ/BRN is tried as a label name first and
    as a 1-2 digit hex address second.
    """

    def __init__(
        self,
        operand: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.operand = operand
        self.similar_labels = similar_labels or []

        hint = None
        if self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"operand '{operand}' is neither a valid label nor a valid immediate address",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnencodableInstructionError(AssemblerError):
    """
    No mapping table entry exists for an instruction's lookup key.

    The mnemonic and operand-type signature must match an entry in the
    built-in table or the loaded mapping file.
    """

    def __init__(
        self,
        code: int,
        pattern: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.code = code
        self.pattern = pattern
        super().__init__(
            "instruction code cannot be mapped",
            location=location,
            hint=f"add '{pattern} : <addr>' to the mapping file (code 0x{code:08X})",
            source_line=source_line,
        )


# =============================================================================
# Mapping Table Exceptions
# =============================================================================

class MappingError(MpcAsmError):
    """Base exception for mapping table configuration errors."""
    pass


class MappingFormatError(MappingError):
    """
    Malformed line in a mapping file.

    Attributes:
        filename: Mapping file name
        line: Line number (1-indexed)
        text: The offending line
    """

    def __init__(self, message: str, filename: str, line: int, text: str):
        self.filename = filename
        self.line = line
        self.text = text
        super().__init__(f"{filename}:{line}: error: {message}\n    {text}")
