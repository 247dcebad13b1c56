"""
t32asm - tiny32 Assembler Command-Line Interface
================================================

This module implements the command-line interface for the tiny32
assembler. It takes exactly two positional arguments, the source file and
the binary output file.

Usage Examples
--------------
Basic assembly:
    $ t32asm prog.s prog.bin

Also write a listing and a symbol file:
    $ t32asm prog.s prog.bin -l prog.lst -s prog.sym

Quiet, with duplicate labels rejected:
    $ t32asm -q --strict-labels prog.s prog.bin

After a successful run the symbol table and a per-instruction dump are
printed to standard output (suppressed by -q or TINY32_NO_DUMP=1).

Copyright (c) 2026 tiny32 Contributors
"""

from pathlib import Path
from typing import Optional

import click

from tiny32 import __version__
from tiny32.assembler import Assembler
from tiny32.cli.errors import configure_logging, handle_cli_exception
from tiny32.config import AssemblerConfig


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--strict-labels",
    is_flag=True,
    help="Reject duplicate label definitions (default: later definition wins)",
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Do not print the symbol table and instruction dump",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging to stderr)",
)
@click.version_option(version=__version__, prog_name="t32asm")
def main(
    input_file: Path,
    output_file: Path,
    listing: Optional[Path],
    symbols: Optional[Path],
    strict_labels: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """
    Assemble tiny32 source code into a raw binary image.

    INPUT_FILE is the assembly source file; OUTPUT_FILE receives the
    assembled words, 4 bytes each, little-endian.

    \b
    Examples:
        t32asm prog.s prog.bin
        t32asm prog.s prog.bin -l prog.lst -s prog.sym
    """
    config = AssemblerConfig.from_env().with_overrides(
        strict_labels=True if strict_labels else None,
        verbose=True if verbose else None,
        dump=False if quiet else None,
    )
    configure_logging(config.verbose)

    asm = Assembler(config)

    try:
        image = asm.assemble_file(input_file)

        if config.dump:
            click.echo(image.format_dump(), nl=False)

        asm.write_binary(output_file)

        if listing:
            asm.write_listing(listing)

        if symbols:
            asm.write_symbols(symbols)

        if config.verbose:
            click.echo(
                f"Wrote {len(image)} words ({len(image.to_bytes())} bytes) to {output_file}",
                err=True,
            )

    except Exception as e:
        handle_cli_exception(e, verbose=config.verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
