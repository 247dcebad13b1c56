"""
t32disasm - tiny32 Disassembler Command-Line Interface
======================================================

Disassembles a raw tiny32 binary image (as written by t32asm) back into
assembly text.

Usage Examples
--------------
Disassemble an image:
    $ t32disasm prog.bin

With base address:
    $ t32disasm prog.bin --address 0x1000

Annotate branch and jump targets with labels from a t32asm symbol file:
    $ t32disasm prog.bin --symbols prog.sym

Output to file, assembly text only:
    $ t32disasm prog.bin --no-words -o prog.s

Copyright (c) 2026 tiny32 Contributors
"""

import sys
from pathlib import Path
from typing import Optional

import click

from tiny32 import __version__
from tiny32.assembler.preprocessor import parse_integer
from tiny32.cli.errors import ExitCode, configure_logging, handle_cli_exception
from tiny32.disassembler import Disassembler
from tiny32.errors import OperandSyntaxError


def read_symbol_file(path: Path) -> dict[int, str]:
    """
    Read a ``name = 0xADDRESS`` symbol file into an address -> name map.

    When several labels share an address the first one listed wins.
    """
    symbols: dict[int, str] = {}
    for line in path.read_text(encoding="utf-8").split("\n"):
        if "=" not in line:
            continue
        name, value = line.split("=", 1)
        symbols.setdefault(parse_integer(value), name.strip())
    return symbols


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0",
    help="Base address of the first word (hex with 0x prefix or decimal). Default: 0",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of words to disassemble (default: all)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Symbol file written by t32asm -s, used to name targets",
)
@click.option(
    "--no-words",
    is_flag=True,
    help="Omit addresses and raw words (output is plain assembly text)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="t32disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    symbols: Optional[Path],
    no_words: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a tiny32 binary image.

    INPUT_FILE is the binary file to disassemble.
    """
    configure_logging(verbose)

    try:
        base_address = parse_integer(address)
    except OperandSyntaxError:
        click.echo(f"Error: Invalid address '{address}'", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if base_address & 0b11 or not 0 <= base_address <= 0xFFFFFFFF:
        click.echo("Error: Address must be a word-aligned 32-bit value", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    try:
        symbol_table = read_symbol_file(symbols) if symbols else {}
        data = input_file.read_bytes()

        if verbose:
            click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
            click.echo(f"Base address: 0x{base_address:08X}", err=True)

        disasm = Disassembler(symbol_table=symbol_table)
        instructions = disasm.disassemble(data, start_address=base_address, count=count)

        output_lines = []
        if not no_words:
            output_lines.append(f"; Disassembly of {input_file.name}")
            output_lines.append(f"; Size: {len(data)} bytes")
            output_lines.append(f"; Base address: 0x{base_address:08X}")
            output_lines.append("")

        for instr in instructions:
            if no_words:
                if instr.address in symbol_table:
                    output_lines.append(f"{symbol_table[instr.address]}:")
                output_lines.append(f"    {instr.text}")
            else:
                output_lines.append(str(instr))

        result = "\n".join(output_lines) + "\n"

        if output:
            output.write_text(result, encoding="utf-8")
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        else:
            click.echo(result, nl=False)

        if verbose:
            click.echo(f"Words disassembled: {len(instructions)}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Disassembly")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
