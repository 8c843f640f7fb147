"""
mpcasm - Assembler Command-Line Interface
=========================================

This module implements the command-line interface for the assembler.

Usage Examples
--------------
Basic assembly (writes ram.b):
    $ mpcasm count.asm

With output file:
    $ mpcasm count.asm count.b

With an explicit mapping file, listing and label table:
    $ mpcasm -m cpu.conf count.asm -l count.lst -s count.sym

Hardware without carry-out fed into the ALU carry-in:
    $ mpcasm --carry-adjust 1 count.asm

Show the instruction mappings in effect:
    $ mpcasm --dump-mapping
"""

from pathlib import Path
from typing import Optional
import logging

import click

from mpcasm import __version__
from mpcasm.assembler import Assembler, MappingTable, output_artifact
from mpcasm.cli.errors import handle_cli_exception
from mpcasm.config import get_default_config


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-m", "--mapping",
    "mapping_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Instruction mapping file (default: ./mapping.conf if present)",
)
@click.option(
    "--no-mapping",
    is_flag=True,
    help="Do not load ./mapping.conf; use the built-in mappings only",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write address/byte/source listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write label table file",
)
@click.option(
    "-a", "--carry-adjust",
    type=click.IntRange(1, 2),
    default=None,
    help="Back-branch carry adjustment. Use 1 if the PSW carry-out is not "
         "fed into the ALU carry-in. Default: 2",
)
@click.option(
    "--dump-mapping",
    is_flag=True,
    help="Print the instruction mappings in effect and exit",
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Do not print the listing",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="mpcasm")
def main(
    input_file: Optional[Path],
    output_file: Optional[Path],
    mapping_file: Optional[Path],
    no_mapping: bool,
    listing: Optional[Path],
    symbols: Optional[Path],
    carry_adjust: Optional[int],
    dump_mapping: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """
    Assemble a program for the microcoded logic-circuit processor.

    INPUT_FILE is the assembly source file. OUTPUT_FILE is the binary image
    to load into RAM (default: ram.b).

    \b
    Source syntax:
        # this is a comment
        @base_addr=1F       set the program's base address (hex)
        loop:               label
        MOV $04, 3          (0x04) = 3   ($ marks a memory address)
        ADD $04, 5          (0x04) = (0x04) + 5
        BRZ done            relative branch to a label
        JMP loop            absolute jump to a label

    \b
    Values are hexadecimal. Jump/branch instructions are JMP, JSR (absolute)
    and BR, BRZ, BRN (relative).

    Each instruction's opcode byte comes from the mapping file, where a line
    such as "ADD A, X : 4C" maps ADD with a memory address and an immediate
    operand to MPC address 0x4C.
    """
    setup_logging(verbose)

    if input_file is None and not dump_mapping:
        raise click.UsageError("Missing argument 'INPUT_FILE'.")

    config = get_default_config()
    mapping = MappingTable()

    try:
        if mapping_file is None and not no_mapping:
            mapping_file = config.find_mapping_file()
        if mapping_file is not None:
            count = mapping.load_file(mapping_file)
            if verbose:
                click.echo(f"Loaded {count} mappings from {mapping_file}")

        if dump_mapping:
            click.echo(mapping.format_table())
            return

        output = output_file if output_file is not None else config.default_output
        asm = Assembler(mapping=mapping, carry_adjust=carry_adjust, config=config)

        with output_artifact(output) as path:
            asm.assemble_file(input_file)
            asm.write_binary(path)

            if listing:
                asm.write_listing(listing)
                if verbose:
                    click.echo(f"Wrote listing to {listing}")

            if symbols:
                asm.write_symbols(symbols)
                if verbose:
                    click.echo(f"Wrote labels to {symbols}")

        if asm.get_base_address():
            click.echo(f"Address Offset = 0x{asm.get_base_address():02X}")

        if not quiet:
            click.echo()
            click.echo(asm.get_listing())

        click.echo(
            f"\n{input_file} successfully assembled to {output} "
            f"in {asm.get_byte_count()} bytes."
        )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
