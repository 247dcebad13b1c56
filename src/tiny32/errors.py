"""
tiny32 Error Hierarchy
======================

This module defines the exception hierarchy for the tiny32 toolchain.
All exceptions inherit from Tiny32Error, allowing callers to catch all
toolchain errors with a single except clause if desired.

Exception Hierarchy
-------------------
Tiny32Error (base)
├── AssemblerError (assembler-related)
│   ├── UnresolvedLabelError - operand references an undefined label
│   ├── MisalignedAddressError - jump/branch/memory offset not word-aligned
│   ├── InvalidRegisterError - bad register name or index out of range
│   ├── UnknownMnemonicError - no instruction with that name
│   ├── OperandSyntaxError - wrong operand count or malformed operand
│   ├── DuplicateLabelError - label defined twice (strict mode only)
│   └── InternalConsistencyError - pass 1 and pass 2 disagree on addresses
├── ImageFormatError - binary image is not a whole number of words
└── SimulatorError - program cannot be loaded or machine state set

Every assembler error is terminal: the assembler stops at the first one and
writes no output.

Error messages follow this format:
    filename:line:column: error: description (at pc=0x00000008)
        source_line_text
        ^
    hint: suggestion for fixing (when available)

Copyright (c) 2026 tiny32 Contributors
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Tiny32Error(Exception):
    """
    Base exception for all tiny32 errors.

        try:
            assembler.assemble_file("program.s")
        except Tiny32Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Tiny32Error):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
        address: Program counter when the error was detected (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        address: Optional[int] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        self.address = address
        super().__init__(self._format_message())

    def with_context(
        self,
        location: Optional[SourceLocation],
        source_line: Optional[str],
        address: Optional[int],
    ) -> "AssemblerError":
        """
        Attach line and address information to an error raised deep in
        the encoder, where only the operand value was known.

        Fields that are already set are left alone.
        """
        if self.location is None:
            self.location = location
        if self.source_line is None:
            self.source_line = source_line
        if self.address is None:
            self.address = address
        self.args = (self._format_message(),)
        return self

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            prog.s:4:17: error: undefined label 'lop' (at pc=0x0000000C)
                bne r1, r2, lop
                            ^
            hint: did you mean 'loop'?
        """
        message = self.message
        if self.address is not None:
            message = f"{message} (at pc=0x{self.address:08X})"

        parts = []
        if self.location:
            parts.append(f"{self.location}: error: {message}")
        else:
            parts.append(f"error: {message}")

        if self.source_line is not None:
            parts.append(f"    {self.source_line}")
            if self.location is not None and self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class UnresolvedLabelError(AssemblerError):
    """
    Reference to a label that is not in the symbol table.

    Raised during pass 2. Pass 1 has already seen the whole file, so a
    missing label is never a forward reference; it is simply undefined.
    Similarly-named labels are offered as a hint to catch typos.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        address: Optional[int] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label
        self.similar_labels = similar_labels or []

        hint = None
        if self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
            address=address,
        )


class MisalignedAddressError(AssemblerError):
    """
    Jump target, branch target or memory offset is not a multiple of 4.

    Example:
        ld r1, 6(sp)    ; Error: LD offset must be word-aligned: 6
    """

    def __init__(
        self,
        what: str,
        value: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        address: Optional[int] = None,
    ):
        self.what = what
        self.value = value
        super().__init__(
            f"{what} must be word-aligned: {value}",
            location=location,
            hint="addresses and offsets are byte values and must be a multiple of 4",
            source_line=source_line,
            address=address,
        )


class InvalidRegisterError(AssemblerError):
    """
    Register operand that cannot be used.

    Raised when the token is not a register name at all ("bad register
    name") or names an index outside r0-r31 ("register out of range").
    """

    BAD_NAME = "bad register name"
    OUT_OF_RANGE = "register out of range"

    def __init__(
        self,
        token: str,
        reason: str = BAD_NAME,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        address: Optional[int] = None,
    ):
        self.token = token
        self.reason = reason

        hint = None
        if reason == self.BAD_NAME:
            hint = "registers are r0-r31, x0-x31, zero, ra or sp"

        super().__init__(
            f"{reason}: {token!r}",
            location=location,
            hint=hint,
            source_line=source_line,
            address=address,
        )


class UnknownMnemonicError(AssemblerError):
    """No instruction is defined with the given mnemonic."""

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        address: Optional[int] = None,
    ):
        self.mnemonic = mnemonic
        super().__init__(
            f"unknown instruction '{mnemonic}'",
            location=location,
            source_line=source_line,
            address=address,
        )


class OperandSyntaxError(AssemblerError):
    """
    Operand list does not fit the instruction.

    Examples:
        - Wrong number of operands
        - Malformed integer literal
        - Unbalanced offset(base) memory operand
    """
    pass


class DuplicateLabelError(AssemblerError):
    """
    Label defined more than once.

    Only raised when strict label checking is enabled; by default the later
    definition silently replaces the earlier one.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.label = label
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{label}' was first defined at {original_location}"

        super().__init__(
            f"duplicate label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class InternalConsistencyError(AssemblerError):
    """
    Pass 2 reached a line at a different address than pass 1 assigned.

    This indicates a bug in the assembler, not in the source program.
    """
    pass


# =============================================================================
# Image Exceptions
# =============================================================================

class ImageFormatError(Tiny32Error):
    """
    Binary image cannot be split into 32-bit words.

    Raised by the disassembler when the input length is not a multiple
    of 4 bytes.
    """
    pass


# =============================================================================
# Simulator Exceptions
# =============================================================================

class SimulatorError(Tiny32Error):
    """
    The simulator was given something it cannot run.

    Raised for an empty program image, a register index outside r0-r31 or
    an out-of-range load address. Faults while running a program halt the
    CPU instead of raising.
    """
    pass
