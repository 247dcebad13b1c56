"""
tiny32 - Assembler Toolchain for the tiny32 Instruction Set
===========================================================

This package provides a two-pass assembler, a matching disassembler and a
CPU simulator for tiny32, a small fixed-width 32-bit RISC-style instruction
set with fourteen instructions.

Main Components
---------------
- **assembler**: tiny32 assembler (t32asm)
    Converts assembly source files into raw little-endian word images

- **disassembler**: tiny32 disassembler (t32disasm)
    Decodes word images back into assembly text

- **simulator**: tiny32 CPU simulator (t32sim)
    Executes word images and reports the final register state

- **cpu**: instruction set definitions shared by all three

Quick Start
-----------
Assemble a program:
    >>> from tiny32 import Assembler
    >>> asm = Assembler()
    >>> image = asm.assemble_file("prog.s")
    >>> asm.write_binary("prog.bin")

Or use the command-line tools:
    $ t32asm prog.s prog.bin
    $ t32disasm prog.bin
    $ t32sim prog.bin --set-reg 1=5

Copyright (c) 2026 tiny32 Contributors
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from tiny32.assembler import Assembler, ProgramImage, assemble, assemble_file
from tiny32.config import AssemblerConfig
from tiny32.disassembler import Disassembler, decode_word
from tiny32.simulator import CPU, StopReason
from tiny32.errors import (
    Tiny32Error,
    AssemblerError,
    UnresolvedLabelError,
    MisalignedAddressError,
    InvalidRegisterError,
    UnknownMnemonicError,
    OperandSyntaxError,
    DuplicateLabelError,
    InternalConsistencyError,
    ImageFormatError,
    SimulatorError,
    SourceLocation,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "ProgramImage",
    "assemble",
    "assemble_file",
    "AssemblerConfig",
    # Disassembler
    "Disassembler",
    "decode_word",
    # Simulator
    "CPU",
    "StopReason",
    # Exception hierarchy
    "Tiny32Error",
    "AssemblerError",
    "UnresolvedLabelError",
    "MisalignedAddressError",
    "InvalidRegisterError",
    "UnknownMnemonicError",
    "OperandSyntaxError",
    "DuplicateLabelError",
    "InternalConsistencyError",
    "ImageFormatError",
    "SimulatorError",
    "SourceLocation",
]
