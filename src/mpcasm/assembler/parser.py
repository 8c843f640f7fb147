"""
Source Line Classifier and Operand Parser
=========================================

This module turns raw source lines into structured records the code
generator can process. The language is strictly line-oriented: every
non-blank line is exactly one comment, directive, label, or instruction.

Line Types
----------
1. **Comment**: first non-blank character is '#'
   ```asm
   # 0xC0 is the output buffer
   ```

2. **Directive**: first non-blank character is '@', form ``name=value``
   ```asm
   @base_addr=1F
   ```

3. **Label**: an identifier followed by ':' (optionally a comment)
   ```asm
   loop:
   ```

4. **Instruction**: mnemonic followed by up to two operands
   ```asm
   MOV $04, 3      # (0x04) = 3
   ADD $04, 5      # (0x04) = (0x04) + 5
   BRZ exit
   ```

Operand Syntax
--------------
| Syntax  | Type           | Example |
|---------|----------------|---------|
| (none)  | No operand     | HLT     |
| hex     | Immediate      | 5, 0x12 |
| $hex    | Direct address | $C0     |

All values are hexadecimal and one byte wide. Digits are shifted into the
byte one nibble at a time, so surplus leading digits fall off the top.

Operands of jump and branch instructions (JMP, JSR, BR, BRZ, BRN) are
kept as raw text. They may name a label and are resolved by
``mpcasm.assembler.branches`` once the label table is complete.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import re

from mpcasm.errors import (
    AssemblySyntaxError,
    DirectiveError,
    InvalidMnemonicError,
    SourceLocation,
)
from mpcasm.isa import (
    HEX_DIGITS,
    OperandType,
    is_jump_instruction,
    is_valid_mnemonic,
    shift_in_hex_digit,
)


# Label definition: identifier, colon, optional trailing comment
LABEL_PATTERN = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*:\s*(?:#.*)?$")

COMMENT_CHAR = "#"
DIRECTIVE_CHAR = "@"
DIRECT_PREFIX = "$"
MAX_OPERANDS = 2


# =============================================================================
# Line Records
# =============================================================================

class LineKind(Enum):
    """Classification of a source line."""
    BLANK = auto()
    COMMENT = auto()
    DIRECTIVE = auto()
    LABEL = auto()
    INSTRUCTION = auto()


@dataclass
class Operand:
    """
    A parsed instruction operand.

    Attributes:
        type: Operand type tag (immediate or direct address)
        value: Operand byte
    """
    type: OperandType
    value: int

    def __str__(self) -> str:
        prefix = DIRECT_PREFIX if self.type == OperandType.DIRECT else ""
        return f"{prefix}{self.value:02X}"


@dataclass
class SourceLine:
    """
    A classified source line.

    Attributes:
        kind: Line classification
        text: The line with surrounding whitespace removed
        location: File, line number, and column of the first character
        label: Label name (LABEL lines)
        mnemonic: Upper-cased mnemonic (INSTRUCTION lines)
        operand_text: Text following the mnemonic, comment included
        operand_column: Column of the first character of operand_text
    """
    kind: LineKind
    text: str
    location: SourceLocation
    label: Optional[str] = None
    mnemonic: Optional[str] = None
    operand_text: str = ""
    operand_column: int = 0

    @property
    def line_number(self) -> int:
        return self.location.line

    @property
    def is_jump(self) -> bool:
        return self.mnemonic is not None and is_jump_instruction(self.mnemonic)

    def at_column(self, column: int) -> SourceLocation:
        """Return this line's location moved to another column."""
        return SourceLocation(self.location.filename, self.location.line, column)


@dataclass
class _OperandState:
    """Accumulator for one operand while scanning."""
    type: OperandType = OperandType.NONE
    value: int = 0
    digits: int = 0
    started: bool = False
    column: int = 0


# =============================================================================
# Classification
# =============================================================================

def classify_line(raw: str, line_number: int, filename: str = "<input>") -> SourceLine:
    """
    Classify one raw source line.

    Args:
        raw: The line as read, newline optional
        line_number: 1-based line number
        filename: Source name for error locations

    Returns:
        The classified line

    Raises:
        InvalidMnemonicError: If an instruction mnemonic is longer than
            three characters
    """
    text = raw.strip()
    column = len(raw) - len(raw.lstrip()) + 1
    location = SourceLocation(filename, line_number, column)

    if not text:
        return SourceLine(LineKind.BLANK, text, location)

    if text.startswith(COMMENT_CHAR):
        return SourceLine(LineKind.COMMENT, text, location)

    if text.startswith(DIRECTIVE_CHAR):
        return SourceLine(LineKind.DIRECTIVE, text, location)

    match = LABEL_PATTERN.match(text)
    if match:
        return SourceLine(LineKind.LABEL, text, location, label=match.group(1))

    # Mnemonic runs up to the first blank or comment marker
    end = 0
    while end < len(text) and not text[end].isspace() and text[end] != COMMENT_CHAR:
        end += 1
    mnemonic = text[:end].upper()

    if not is_valid_mnemonic(mnemonic):
        raise InvalidMnemonicError(mnemonic, location=location, source_line=text)

    return SourceLine(
        LineKind.INSTRUCTION,
        text,
        location,
        mnemonic=mnemonic,
        operand_text=text[end:],
        operand_column=column + end,
    )


def iter_source_lines(source: str, filename: str = "<input>") -> Iterator[SourceLine]:
    """
    Classify each line of a source text in order.

    Classification is lazy, so an error on one line stops the scan
    before later lines are read.
    """
    for line_number, raw in enumerate(source.splitlines(), start=1):
        yield classify_line(raw, line_number, filename)


# =============================================================================
# Directives
# =============================================================================

def parse_directive(line: SourceLine, known: Optional[set[str]] = None) -> tuple[str, int]:
    """
    Parse a directive line of the form ``@name=value``.

    Args:
        line: A DIRECTIVE line
        known: Directive names accepted (None accepts any name)

    Returns:
        (directive name, byte value)

    Raises:
        DirectiveError: If the '=' is missing, the name is unknown or the
            value is not hexadecimal
    """
    body = line.text[1:].split(COMMENT_CHAR, 1)[0]
    name, sep, value_text = body.partition("=")
    name = name.strip()

    if not sep:
        raise DirectiveError(
            "invalid assembler directive assignment",
            location=line.location,
            hint="directives have the form @name=value",
            source_line=line.text,
        )

    if known is not None and name not in known:
        raise DirectiveError(
            f"invalid assembler directive '{name}'",
            location=line.location,
            hint=f"supported directives: {', '.join(sorted(known))}",
            source_line=line.text,
        )

    value = 0
    digits = 0
    value_column = line.location.column + 1 + len(body) - len(value_text)
    for offset, char in enumerate(value_text):
        if char.isspace():
            continue
        if char not in HEX_DIGITS:
            raise DirectiveError(
                f"invalid hex value '{value_text.strip()}'",
                location=line.at_column(value_column + offset),
                source_line=line.text,
            )
        value = shift_in_hex_digit(value, char)
        digits += 1

    if digits == 0:
        raise DirectiveError(
            f"missing value for directive '{name}'",
            location=line.location,
            source_line=line.text,
        )

    return name, value


# =============================================================================
# Operands
# =============================================================================

def parse_operands(line: SourceLine) -> list[Operand]:
    """
    Parse the operand list of an ordinary (non-jump) instruction.

    Returns:
        Zero, one, or two operands

    Raises:
        AssemblySyntaxError: On a leading or second comma, a misplaced '$',
            a '$' without digits, or any other invalid character
    """
    states = [_OperandState() for _ in range(MAX_OPERANDS)]
    index = 0
    text = line.operand_text
    pos = 0

    def error(message: str, at: int, hint: Optional[str] = None) -> AssemblySyntaxError:
        return AssemblySyntaxError(
            message,
            location=line.at_column(line.operand_column + at),
            hint=hint,
            source_line=line.text,
        )

    while pos < len(text):
        char = text[pos]
        state = states[index]

        if char.isspace():
            pos += 1
            continue

        if char == COMMENT_CHAR:
            break

        if char == ",":
            if index == 0 and state.started:
                _check_complete(state, error)
                index = 1
                pos += 1
                continue
            raise error(
                "leading comma in instruction",
                pos,
                hint="instructions take at most two comma-separated operands",
            )

        if not state.started:
            state.column = pos

        if char == DIRECT_PREFIX:
            if state.digits:
                raise error("misplaced '$' in operand", pos)
            state.type = OperandType.DIRECT
            state.started = True
            pos += 1
            continue

        # Optional 0x prefix ahead of the digits
        if (char == "0" and state.digits == 0
                and text[pos + 1:pos + 2] in ("x", "X")):
            state.started = True
            pos += 2
            continue

        if char in HEX_DIGITS:
            state.value = shift_in_hex_digit(state.value, char)
            state.digits += 1
            state.started = True
            if state.type == OperandType.NONE:
                state.type = OperandType.IMMEDIATE
            pos += 1
            continue

        raise error(
            f"invalid operand character '{char}'",
            pos,
            hint="values are hexadecimal; prefix memory references with '$'",
        )

    for state in states:
        if state.started:
            _check_complete(state, error)

    return [Operand(state.type, state.value) for state in states if state.started]


def _check_complete(state: _OperandState, error) -> None:
    """Reject an operand that has a prefix but no digits."""
    if state.digits == 0:
        raise error("operand has no value", state.column)


def jump_operand_text(line: SourceLine) -> str:
    """Return the raw operand of a jump/branch line, comment removed."""
    return line.operand_text.split(COMMENT_CHAR, 1)[0].strip()
