"""
tiny32 Assembler - Main Interface
=================================

This module provides the Assembler class, the primary interface for
assembling tiny32 source code. It runs the two passes and produces an
immutable ProgramImage.

Example Usage
-------------
>>> from tiny32.assembler import Assembler
>>>
>>> asm = Assembler()
>>> image = asm.assemble_string('''
... start:  add r1, r2, r3
...         j start
... ''')
>>> [f"0x{w:08X}" for w in image.words]
['0x0043082B', '0x9C000000']
>>> asm.write_binary("prog.bin")

Assembly Process
----------------
1. **Pass 1** (symbols.build_symbol_table):
   Walk the preprocessed lines, give every label the address of the next
   word. Produces a Pass1Result.

2. **Pass 2** (this module):
   Walk the lines again. For each word-emitting line, check the program
   counter against the address pass 1 recorded, resolve the operands
   (operands.OperandResolver) and encode the word (encoder.encode).

The first error aborts the run; no partial image is kept and nothing is
written.

Copyright (c) 2026 tiny32 Contributors
"""

import logging
from pathlib import Path
from typing import Optional

from tiny32.assembler.encoder import encode
from tiny32.assembler.image import ListingEntry, ProgramImage
from tiny32.assembler.operands import OperandResolver
from tiny32.assembler.preprocessor import (
    LineKind,
    SourceLine,
    iter_source_lines,
    parse_integer,
)
from tiny32.assembler.symbols import Pass1Result, build_symbol_table
from tiny32.config import AssemblerConfig
from tiny32.cpu.isa import WORD_MASK, WORD_SIZE
from tiny32.errors import (
    AssemblerError,
    InternalConsistencyError,
    SourceLocation,
)

logger = logging.getLogger(__name__)


class Assembler:
    """
    Two-pass tiny32 assembler.

    Attributes:
        config: Active AssemblerConfig
    """

    def __init__(self, config: Optional[AssemblerConfig] = None,
                 strict_labels: Optional[bool] = None,
                 verbose: Optional[bool] = None):
        """
        Initialize the assembler.

        Args:
            config: Base configuration (default: AssemblerConfig())
            strict_labels: Override config.strict_labels
            verbose: Override config.verbose
        """
        base = config or AssemblerConfig()
        self.config = base.with_overrides(strict_labels=strict_labels, verbose=verbose)
        self._image: Optional[ProgramImage] = None
        self._pass1: Optional[Pass1Result] = None
        self._source_file: Optional[Path] = None

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> ProgramImage:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The assembled ProgramImage

        Raises:
            AssemblerError: If assembly fails
        """
        self._image = None
        self._pass1 = None

        logger.debug(f"Assembling {filename}")

        pass1 = build_symbol_table(
            iter_source_lines(source),
            filename=filename,
            strict=self.config.strict_labels,
        )
        image = self._pass2(iter_source_lines(source), pass1, filename)

        self._pass1 = pass1
        self._image = image
        logger.info(
            f"Assembled {len(image)} words ({len(image) * WORD_SIZE} bytes), "
            f"{len(image.symbols)} labels",
        )
        return image

    def assemble_file(self, filepath: str | Path) -> ProgramImage:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self._source_file = filepath
        source = filepath.read_text(encoding="utf-8")
        return self.assemble_string(source, str(filepath))

    def _pass2(self, lines, pass1: Pass1Result, filename: str) -> ProgramImage:
        """Resolve and encode every word-emitting line."""
        resolver = OperandResolver(pass1)
        words: list[int] = []
        listing: list[ListingEntry] = []
        pc = 0

        for line in lines:
            if not line.emits_word:
                continue

            expected = pass1.line_addresses.get(line.number)
            if expected != pc:
                expected_text = "none" if expected is None else f"0x{expected:08X}"
                raise InternalConsistencyError(
                    f"pass 2 reached line {line.number} at 0x{pc:08X}, "
                    f"pass 1 assigned {expected_text}",
                    location=SourceLocation(filename, line.number),
                    source_line=line.text,
                )

            try:
                word = self._encode_line(line, resolver, pc)
            except AssemblerError as e:
                e.with_context(self._location(filename, line), line.text, pc)
                raise

            logger.debug(f"0x{pc:08X}: 0x{word:08X}  {line.instruction_text}")
            words.append(word)
            listing.append(ListingEntry(pc, word, line.number, line.text))
            pc = (pc + WORD_SIZE) & WORD_MASK

        if pc != pass1.end_address:
            raise InternalConsistencyError(
                f"pass 2 ended at 0x{pc:08X}, pass 1 ended at 0x{pass1.end_address:08X}"
            )

        return ProgramImage(tuple(words), pass1.symbols, tuple(listing))

    @staticmethod
    def _encode_line(line: SourceLine, resolver: OperandResolver, pc: int) -> int:
        if line.kind is LineKind.RAW_WORD:
            return parse_integer(line.instruction_text) & WORD_MASK
        return encode(resolver.resolve(line.instruction_text, pc))

    @staticmethod
    def _location(filename: str, line: SourceLine) -> SourceLocation:
        column = line.raw_text.find(line.instruction_text) + 1
        return SourceLocation(filename, line.number, max(column, 0))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_image(self) -> ProgramImage:
        """
        Get the last assembled image.

        Raises:
            AssemblerError: If nothing has been assembled successfully
        """
        if self._image is None:
            raise AssemblerError("no program has been assembled")
        return self._image

    def get_words(self) -> tuple[int, ...]:
        return self.get_image().words

    def get_code(self) -> bytes:
        """Get the binary image (little-endian words)."""
        return self.get_image().to_bytes()

    def get_symbols(self) -> dict[str, int]:
        """Get a copy of the symbol table."""
        return dict(self.get_image().symbols)

    def get_pass1_result(self) -> Pass1Result:
        if self._pass1 is None:
            raise AssemblerError("no program has been assembled")
        return self._pass1

    def format_dump(self) -> str:
        return self.get_image().format_dump()

    def write_binary(self, filepath: str | Path) -> None:
        """Write raw binary output."""
        count = self.get_image().write_binary(filepath)
        logger.info(f"Wrote {count} bytes to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """Write assembly listing file."""
        self.get_image().write_listing(filepath)
        logger.info(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """Write symbol table file."""
        self.get_image().write_symbols(filepath)
        logger.info(f"Wrote symbols to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>", strict_labels: bool = False) -> ProgramImage:
    """
    Convenience function to assemble source code.

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(strict_labels=strict_labels)
    return asm.assemble_string(source, filename)


def assemble_file(filepath: str | Path, strict_labels: bool = False) -> ProgramImage:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
        FileNotFoundError: If source file not found
    """
    asm = Assembler(strict_labels=strict_labels)
    return asm.assemble_file(filepath)
