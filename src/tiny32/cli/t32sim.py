"""
t32sim - tiny32 Simulator Command-Line Interface
================================================

Runs a raw tiny32 binary image (as written by t32asm) from address 0 and
prints the final register state.

Usage Examples
--------------
Run a program:
    $ t32sim prog.bin

Preset registers and the start address:
    $ t32sim fib.bin --set-reg 0=10 --set-reg 1=0 --set-reg 2=1 --pc 0x0

Stop a runaway program after 1000 instructions:
    $ t32sim loop.bin --max-steps 1000

``syscall 1`` prints r0 on stdout as the program runs. The CPU stops at
``syscall 0``, at a word that is not an instruction (including running off
the end of the image) or on a misaligned memory access.

Copyright (c) 2026 tiny32 Contributors
"""

from pathlib import Path

import click

from tiny32 import __version__
from tiny32.assembler.preprocessor import parse_integer
from tiny32.cli.errors import configure_logging, handle_cli_exception
from tiny32.cpu.isa import REGISTER_COUNT, WORD_MASK
from tiny32.errors import OperandSyntaxError
from tiny32.simulator import CPU, StopReason


def parse_register_assignment(text: str) -> tuple[int, int]:
    """
    Parse ``INDEX=VALUE`` into a register index and a 32-bit value.

    VALUE may be decimal, negative or 0x hex; negative values wrap to 32 bits.

    Raises:
        click.BadParameter: If the text is malformed or out of range
    """
    index_text, separator, value_text = text.partition("=")
    if not separator:
        raise click.BadParameter(f"'{text}' is not INDEX=VALUE")
    try:
        index = int(index_text.strip(), 10)
        value = parse_integer(value_text)
    except (ValueError, OperandSyntaxError):
        raise click.BadParameter(f"'{text}' is not INDEX=VALUE")
    if not 0 <= index < REGISTER_COUNT:
        raise click.BadParameter(f"register index {index} out of range (0-{REGISTER_COUNT - 1})")
    if not -(1 << 31) <= value <= WORD_MASK:
        raise click.BadParameter(f"value {value_text.strip()} does not fit in 32 bits")
    return index, value & WORD_MASK


def _register_callback(ctx, param, values):
    return [parse_register_assignment(value) for value in values]


def _pc_callback(ctx, param, value):
    try:
        address = parse_integer(value)
    except OperandSyntaxError:
        raise click.BadParameter(f"invalid address '{value}'")
    if address & 0b11 or not 0 <= address <= WORD_MASK:
        raise click.BadParameter("address must be a word-aligned 32-bit value")
    return address


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "program",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--set-reg", "registers",
    multiple=True,
    metavar="INDEX=VALUE",
    callback=_register_callback,
    help="Set register INDEX before running (repeatable)",
)
@click.option(
    "--pc", "start_pc",
    default="0",
    callback=_pc_callback,
    help="Start address (hex with 0x prefix or decimal). Default: 0",
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=1),
    default=1_000_000,
    show_default=True,
    help="Stop after this many instructions",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging to stderr)",
)
@click.version_option(version=__version__, prog_name="t32sim")
def main(
    program: Path,
    registers: list[tuple[int, int]],
    start_pc: int,
    max_steps: int,
    verbose: bool,
) -> None:
    """
    Run a tiny32 binary image and dump the registers.

    PROGRAM is the binary file to run, loaded at address 0.

    \b
    Examples:
        t32sim prog.bin
        t32sim fib.bin --set-reg 0=10 --set-reg 2=1
    """
    configure_logging(verbose)

    try:
        cpu = CPU(on_output=click.echo)
        cpu.load_file(program)
        for index, value in registers:
            cpu.set_register(index, value)
        cpu.set_pc(start_pc)

        click.echo(f"Starting simulation for '{program}'...")
        event = cpu.run(max_steps)

        click.echo("\n--- Simulation Finished ---")
        click.echo(cpu.format_registers(), nl=False)

        if event.reason is not StopReason.HALT:
            click.echo(f"Stopped: {event}", err=True)
        if verbose:
            click.echo(f"Instructions executed: {cpu.steps}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Simulation")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
