"""
tiny32 Assembler
================

Two-pass assembler for the tiny32 instruction set. Source text goes in,
an immutable ProgramImage of 32-bit words comes out.

Main Components
---------------
- **Assembler**: Orchestrates both passes
- **preprocessor**: Comment stripping, label and raw-word detection
- **build_symbol_table**: Pass 1, label addresses
- **OperandResolver**: Pass 2 front end, typed operands
- **encode**: Per-mnemonic bit packing
- **ProgramImage**: Encoded words plus symbols and listing

Example Usage
-------------
>>> from tiny32.assembler import assemble
>>> image = assemble("ld r4, 8(sp)")
>>> hex(image.words[0])
'0x68440008'
"""

from tiny32.assembler.assembler import Assembler, assemble, assemble_file
from tiny32.assembler.preprocessor import (
    LineKind,
    SourceLine,
    preprocess_line,
    iter_source_lines,
    parse_integer,
    split_instruction,
)
from tiny32.assembler.symbols import Pass1Result, build_symbol_table
from tiny32.assembler.operands import (
    Operand,
    Register,
    Immediate,
    ResolvedAddress,
    ResolvedInstruction,
    OperandResolver,
    split_memory_operand,
)
from tiny32.assembler.encoder import ENCODERS, encode, encode_operands
from tiny32.assembler.image import ListingEntry, ProgramImage

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Preprocessor
    "LineKind",
    "SourceLine",
    "preprocess_line",
    "iter_source_lines",
    "parse_integer",
    "split_instruction",
    # Pass 1
    "Pass1Result",
    "build_symbol_table",
    # Operands
    "Operand",
    "Register",
    "Immediate",
    "ResolvedAddress",
    "ResolvedInstruction",
    "OperandResolver",
    "split_memory_operand",
    # Encoder
    "ENCODERS",
    "encode",
    "encode_operands",
    # Output
    "ListingEntry",
    "ProgramImage",
]
