"""
mpcasm Assembler - Main Interface
=================================

This module provides the Assembler class, the primary interface for
assembling source listings into the raw byte images loaded into the
logic-circuit processor's RAM. It wires the mapping table, the code
generator and the output writers together.

Example Usage
-------------
>>> from mpcasm.assembler import Assembler
>>>
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... start:
...     MOV $04, 3
...     ADD $04, 5
...     JMP start
... ''')
>>> asm.write_binary("ram.b")

Failed Runs
-----------
Assembly either succeeds completely or leaves nothing behind. Writers go
through ``output_artifact()``, which removes the output file if anything
raises while it is in scope.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import logging

from mpcasm.assembler.codegen import CodeGenerator, ListingEntry
from mpcasm.assembler.mapping import MappingTable
from mpcasm.config import AssemblerConfig, get_default_config

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Output Cleanup
# =============================================================================

@contextmanager
def output_artifact(filepath: str | Path) -> Iterator[Path]:
    """
    Guard an output file: remove it if the enclosed block raises.

    The file is removed whether it was written inside the block or
    already existed, so a failed run never leaves a stale or partial
    image that could be mistaken for the result.

        with output_artifact("ram.b") as path:
            code = asm.assemble_file("prog.asm")
            path.write_bytes(code)
    """
    filepath = Path(filepath)
    try:
        yield filepath
    except BaseException:
        if filepath.is_file():
            filepath.unlink()
            logger.debug(f"Removed output file {filepath}")
        raise


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Main assembler class.

    Attributes:
        mapping: The instruction mapping table in use
        carry_adjust: Back-branch carry compensation
    """

    def __init__(self,
                 mapping: Optional[MappingTable] = None,
                 mapping_file: str | Path | None = None,
                 carry_adjust: Optional[int] = None,
                 config: Optional[AssemblerConfig] = None):
        """
        Initialize the assembler.

        Args:
            mapping: Mapping table to use (default: built-in table)
            mapping_file: Mapping file loaded on top of ``mapping``
            carry_adjust: Back-branch carry adjustment; overrides config
            config: Configuration (default: ``get_default_config()``)
        """
        self._config = config or get_default_config()
        self._source_file: Optional[Path] = None

        if carry_adjust is None:
            carry_adjust = self._config.carry_adjust

        self._codegen = CodeGenerator(
            mapping if mapping is not None else MappingTable(),
            carry_adjust=carry_adjust,
        )

        if mapping_file is not None:
            self.load_mapping(mapping_file)

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def mapping(self) -> MappingTable:
        return self._codegen.mapping

    @property
    def carry_adjust(self) -> int:
        return self._codegen.carry_adjust

    def load_mapping(self, filepath: str | Path) -> int:
        """
        Extend or override the mapping table from a mapping file.

        Returns:
            Number of entries loaded
        """
        return self.mapping.load_file(filepath)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble(self, source: str, filename: str = "<input>",
                 output_path: str | Path | None = None) -> bytes:
        """
        Assemble source code, optionally writing the binary image.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages
            output_path: Optional output file path

        Returns:
            Generated bytes
        """
        if output_path is None:
            return self.assemble_string(source, filename)

        with output_artifact(output_path) as path:
            code = self.assemble_string(source, filename)
            path.write_bytes(code)
        return code

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Raises:
            AssemblerError: If assembly fails
        """
        return self._codegen.generate(source, filename)

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self._source_file = filepath
        logger.debug(f"Assembling {filepath}")
        return self.assemble_string(filepath.read_text(), str(filepath))

    def assemble_to_file(self, filepath: str | Path,
                         output_path: str | Path | None = None) -> bytes:
        """
        Assemble a file and write the binary image.

        If anything fails, the output file is removed.

        Args:
            filepath: Path to assembly source file
            output_path: Output file (default: config.default_output)

        Returns:
            Generated bytes
        """
        if output_path is None:
            output_path = self._config.default_output

        with output_artifact(output_path) as path:
            code = self.assemble_file(filepath)
            path.write_bytes(code)
        return code

    # =========================================================================
    # Results
    # =========================================================================

    def get_code(self) -> bytes:
        """Return the bytes generated by the last run."""
        return self._codegen.get_code()

    def get_byte_count(self) -> int:
        """Return the byte count of the last run, net of the base address."""
        return self._codegen.byte_count

    def get_base_address(self) -> int:
        """Return the ``base_addr`` value of the last run."""
        return self._codegen.base_address

    def get_labels(self) -> dict[str, int]:
        """Return the label table of the last run."""
        return self._codegen.get_labels()

    def get_listing(self) -> str:
        """Return the address/byte/source listing of the last run."""
        return self._codegen.get_listing()

    def get_listing_entries(self) -> list[ListingEntry]:
        """Return the listing records of the last run."""
        return self._codegen.get_listing_entries()

    # =========================================================================
    # Output Methods
    # =========================================================================

    def write_binary(self, filepath: str | Path) -> None:
        """Write the raw byte image."""
        code = self.get_code()
        with output_artifact(filepath) as path:
            path.write_bytes(code)
        logger.debug(f"Wrote {len(code)} bytes to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """Write the address/byte/source listing."""
        with open(filepath, "w") as f:
            f.write(self.get_listing())
            f.write("\n")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write the label table.

        Format: name address (one per line, sorted by address)
        """
        labels = sorted(self.get_labels().items(), key=lambda item: (item[1], item[0]))
        with open(filepath, "w") as f:
            f.write("# Label table\n")
            f.write("# Generated by mpcasm\n")
            for name, address in labels:
                f.write(f"{name} 0x{address:02X}\n")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>",
             mapping_file: str | Path | None = None) -> bytes:
    """
    Convenience function to assemble source code.

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(mapping_file=mapping_file)
    return asm.assemble_string(source, filename)


def assemble_file(filepath: str | Path,
                  mapping_file: str | Path | None = None) -> bytes:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(mapping_file=mapping_file)
    return asm.assemble_file(filepath)
