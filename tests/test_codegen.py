# =============================================================================
# test_codegen.py - Two-Pass Code Generator Tests
# =============================================================================
# Tests for the two-pass driver: label discovery, program counter tracking,
# base address handling, jump/branch resolution, byte emission, listings,
# and fatal error reporting.
# =============================================================================

import pytest

from mpcasm.assembler import CodeGenerator, ListingEntry, MappingTable
from mpcasm.errors import (
    AssemblerError,
    AssemblySyntaxError,
    DirectiveError,
    InvalidMnemonicError,
    OperandResolutionError,
    UnencodableInstructionError,
)


def generate(source: str, mapping: MappingTable = None, **kwargs) -> bytes:
    """Assemble with a fresh code generator."""
    return CodeGenerator(mapping, **kwargs).generate(source)


# =============================================================================
# Basic Emission Tests
# =============================================================================

class TestEmission:
    """Test opcode and operand byte emission."""

    def test_add_direct_immediate(self):
        """ADD $04, 5 emits the mapped opcode then both operands."""
        assert generate("ADD $04, 5") == bytes([0x0B, 0x04, 0x05])

    def test_no_operands(self):
        assert generate("HLT") == bytes([0x03])

    def test_mov(self):
        assert generate("MOV $50, 0x12") == bytes([0x04, 0x50, 0x12])

    def test_lowercase_source(self):
        assert generate("mov $50, 12") == bytes([0x04, 0x50, 0x12])

    def test_comments_and_blank_lines(self):
        source = """
# setup
    ADD $04, 5   # bump

    HLT
"""
        assert generate(source) == bytes([0x0B, 0x04, 0x05, 0x03])

    def test_operand_overflow(self):
        assert generate("MOV $04, 123") == bytes([0x04, 0x04, 0x23])

    def test_empty_source(self):
        codegen = CodeGenerator()
        assert codegen.generate("") == b""
        assert codegen.byte_count == 0

    def test_custom_mapping(self, full_mapping):
        assert generate("MOV $C0, $50", full_mapping) == bytes([0x08, 0xC0, 0x50])

    def test_deterministic(self):
        """Assembling the same source twice gives identical bytes."""
        source = "MOV $04, 3\nADD $04, 5\nHLT\n"
        codegen = CodeGenerator()
        first = codegen.generate(source)
        second = codegen.generate(source)
        assert first == second == generate(source)


# =============================================================================
# Label Tests
# =============================================================================

class TestLabels:
    """Test label discovery in pass 1."""

    def test_label_addresses(self):
        """A label's address is the width of everything before it."""
        source = """
first:
    HLT
second:
    ADD $04, 5
third:
    JMP first
fourth:
"""
        codegen = CodeGenerator()
        codegen.generate(source)
        assert codegen.get_labels() == {
            "first": 0x00,
            "second": 0x01,
            "third": 0x04,
            "fourth": 0x06,
        }

    def test_label_without_hex_digit(self):
        """A jump to a label with no hex digit in its name is sized correctly."""
        source = "HLT\nJMP stop\nstop:\nHLT\n"
        assert generate(source) == bytes([0x03, 0x50, 0x03, 0x03])

    def test_duplicate_label_overwrites(self):
        source = "a:\nHLT\na:\nHLT\nJMP a\n"
        codegen = CodeGenerator()
        assert codegen.generate(source) == bytes([0x03, 0x03, 0x50, 0x01])
        assert codegen.get_labels() == {"a": 0x01}

    def test_state_reset_between_runs(self):
        codegen = CodeGenerator()
        codegen.generate("old:\nHLT\n")
        codegen.generate("new:\nHLT\n")
        assert codegen.get_labels() == {"new": 0x00}


# =============================================================================
# Jump Tests
# =============================================================================

class TestJumps:
    """Test absolute jump resolution."""

    def test_jump_back_to_label(self):
        source = "start:\nHLT\nJMP start\n"
        assert generate(source) == bytes([0x03, 0x50, 0x00])

    def test_jump_forward_to_label(self):
        source = "JMP done\nADD $04, 5\ndone:\nHLT\n"
        assert generate(source) == bytes([0x50, 0x05, 0x0B, 0x04, 0x05, 0x03])

    def test_jump_encodes_label_address_anywhere(self):
        """The JMP operand does not depend on where the JMP sits."""
        source = "JMP here\nHLT\nhere:\nHLT\nJMP here\n"
        code = generate(source)
        assert code[1] == 0x03
        assert code[-1] == 0x03

    def test_jump_literal(self):
        assert generate("JMP 0A") == bytes([0x50, 0x0A])

    def test_jsr(self, full_mapping):
        source = "JSR sub\nHLT\nsub:\nHLT\n"
        assert generate(source, full_mapping) == bytes([0x58, 0x03, 0x03, 0x03])

    def test_jump_comment(self):
        assert generate("top:\nJMP top   # forever\n") == bytes([0x50, 0x00])

    def test_unknown_label(self):
        with pytest.raises(OperandResolutionError) as exc_info:
            generate("HLT\nJMP nowhere\n")
        error = exc_info.value
        assert error.operand == "nowhere"
        assert error.line == 2

    def test_unknown_label_suggestion(self):
        source = "loop1:\nHLT\nJMP loop2\n"
        with pytest.raises(OperandResolutionError) as exc_info:
            generate(source)
        assert "loop1" in exc_info.value.similar_labels
        assert "did you mean" in str(exc_info.value)

    def test_missing_operand(self):
        with pytest.raises(OperandResolutionError):
            generate("JMP")

    def test_literal_too_long(self):
        with pytest.raises(OperandResolutionError):
            generate("JMP 123")


# =============================================================================
# Relative Branch Tests
# =============================================================================

class TestBranches:
    """Test relative branch offset encoding."""

    BACK_BRANCH = """
    HLT
    HLT
loop:
    ADD $04, 5
    BR loop
"""

    def test_back_branch(self):
        """Label at 0x02, BR at 0x05: 2 - (5 + 2) = 0xFB."""
        code = generate(self.BACK_BRANCH)
        assert code == bytes([0x03, 0x03, 0x0B, 0x04, 0x05, 0x80, 0xFB])

    def test_back_branch_carry_adjust_one(self):
        code = generate(self.BACK_BRANCH, carry_adjust=1)
        assert code[-1] == 0xFC

    def test_forward_branch(self):
        """BR at 0x00 to a label at 0x03: 3 - (0 + 1) = 2."""
        source = "BR fwd\nHLT\nfwd:\nHLT\n"
        assert generate(source) == bytes([0x80, 0x02, 0x03, 0x03])

    def test_branch_to_itself(self):
        assert generate("spin:\nBR spin\n") == bytes([0x80, 0xFF])

    def test_conditional_branches(self, full_mapping):
        source = "top:\nBRZ top\nBRN top\n"
        # BRZ at 0: forward to 0 -> 0xFF; BRN at 2: back to 0 -> 0 - 4
        assert generate(source, full_mapping) == bytes([0x84, 0xFF, 0x88, 0xFC])

    def test_literal_is_raw_offset(self):
        """A literal branch operand is emitted as written."""
        assert generate("BR FC") == bytes([0x80, 0xFC])

    def test_literal_offset_ignores_base(self):
        """The base address moves absolute targets, not branch offsets."""
        assert generate("@base_addr=10\nBR FC\n") == bytes([0x80, 0xFC])

    def test_conditional_literal_offset_ignores_base(self, full_mapping):
        source = "@base_addr=10\nBRZ 03\nBRN FE\n"
        assert generate(source, full_mapping) == bytes([0x84, 0x03, 0x88, 0xFE])


# =============================================================================
# Base Address Tests
# =============================================================================

class TestBaseAddress:
    """Test the @base_addr directive."""

    SOURCE = """
@base_addr=1F
start:
    ADD $04, 5
    JMP start
"""

    def test_labels_shifted(self):
        codegen = CodeGenerator()
        codegen.generate(self.SOURCE)
        assert codegen.get_labels() == {"start": 0x1F}

    def test_code(self):
        assert generate(self.SOURCE) == bytes([0x0B, 0x04, 0x05, 0x50, 0x1F])

    def test_byte_count_excludes_base(self):
        codegen = CodeGenerator()
        codegen.generate(self.SOURCE)
        assert codegen.byte_count == 5
        assert codegen.base_address == 0x1F
        assert codegen.get_directives() == {"base_addr": 0x1F}

    def test_listing_addresses_shifted(self):
        codegen = CodeGenerator()
        codegen.generate(self.SOURCE)
        addresses = [entry.address for entry in codegen.get_listing_entries()]
        assert addresses == [0x1F, 0x20, 0x21, 0x22, 0x23]

    def test_literal_jump_adds_base(self):
        assert generate("@base_addr=10\nJMP 05\n") == bytes([0x50, 0x15])

    def test_back_branch_with_base(self):
        source = "@base_addr=10\nloop:\nADD $04, 5\nBR loop\n"
        # label 0x10, BR at 0x13: 0x10 - (0x13 + 2) = -5
        assert generate(source)[-1] == 0xFB

    def test_base_reset_between_runs(self):
        codegen = CodeGenerator()
        codegen.generate(self.SOURCE)
        codegen.generate("HLT")
        assert codegen.base_address == 0
        assert codegen.byte_count == 1


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Test that every error is fatal and reported with its line."""

    def test_failed_run_discards_partial_output(self):
        """Bytes emitted before an error in pass 2 are not kept."""
        codegen = CodeGenerator()
        codegen.generate("HLT")
        with pytest.raises(OperandResolutionError):
            codegen.generate("HLT\nADD $04, 5\nJMP nowhere\n")
        assert codegen.get_code() == b""
        assert codegen.get_listing_entries() == []
        assert codegen.byte_count == 0

    def test_unencodable_instruction(self):
        with pytest.raises(UnencodableInstructionError) as exc_info:
            generate("HLT\nSUB $04, 5\n")
        error = exc_info.value
        assert error.code == 0x53554221
        assert error.pattern == "SUB A, X"
        assert error.line == 2
        assert "SUB A, X" in str(error)

    def test_wrong_operand_signature(self):
        """ADD is only mapped with a direct and an immediate operand."""
        with pytest.raises(UnencodableInstructionError):
            generate("ADD 5")

    def test_unmapped_branch(self):
        with pytest.raises(UnencodableInstructionError):
            generate("x:\nBRZ x\n")

    def test_unencodable_found_in_first_pass(self):
        """The mapping is checked before any label is resolved."""
        with pytest.raises(UnencodableInstructionError):
            generate("JMP nowhere\nSUB 1\n")

    def test_invalid_mnemonic(self):
        with pytest.raises(InvalidMnemonicError) as exc_info:
            generate("HLT\n\nHALT\n")
        assert exc_info.value.line == 3

    def test_syntax_error_line(self):
        source = "# header\n@base_addr=02\nHLT\nADD ,5\n"
        with pytest.raises(AssemblySyntaxError) as exc_info:
            generate(source)
        assert exc_info.value.line == 4

    def test_directive_error_line(self):
        source = "HLT\n@base_addr 02\n"
        with pytest.raises(DirectiveError) as exc_info:
            generate(source)
        assert exc_info.value.line == 2

    def test_unknown_directive(self):
        with pytest.raises(DirectiveError):
            generate("@origin=10\nHLT\n")

    def test_error_message_format(self):
        codegen = CodeGenerator()
        with pytest.raises(AssemblerError) as exc_info:
            codegen.generate("HLT\nADD $04, g\n", "prog.asm")
        message = str(exc_info.value)
        assert message.startswith("prog.asm:2:10: error:")
        assert "ADD $04, g" in message


# =============================================================================
# Listing Tests
# =============================================================================

class TestListing:
    """Test listing output."""

    def test_entries(self):
        codegen = CodeGenerator()
        codegen.generate("ADD $04, 5")
        assert codegen.get_listing_entries() == [
            ListingEntry(0x00, 0x0B, 1, "ADD $04, 5"),
            ListingEntry(0x01, 0x04, 1, None),
            ListingEntry(0x02, 0x05, 1, None),
        ]

    def test_listing_text(self):
        codegen = CodeGenerator()
        codegen.generate("  ADD $04, 5  \nHLT\n")
        lines = codegen.get_listing().splitlines()
        assert lines[0] == "Addr.\tByte\tInstr."
        assert lines[1] == "0x00\t0x0B\tADD $04, 5"
        assert lines[2] == "0x01\t0x04"
        assert lines[4] == "0x03\t0x03\tHLT"

    def test_listing_matches_code(self):
        codegen = CodeGenerator()
        code = codegen.generate(TestBranches.BACK_BRANCH)
        assert bytes(entry.value for entry in codegen.get_listing_entries()) == code
