"""
tiny32 Command-Line Interface
=============================

This package provides command-line tools for the tiny32 toolchain:

- **t32asm**: assembler (source text -> raw binary image)
- **t32disasm**: disassembler (raw binary image -> source text)
- **t32sim**: simulator (raw binary image -> register dump)

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["t32asm", "t32disasm", "t32sim"]
