"""
tiny32 Program Image
====================

The ProgramImage is the result of a successful assembly: the encoded words
in program order, the finished symbol table, and one listing entry per word
tying it back to its source line. Word ``i`` lives at address ``i * 4``.

Binary Format
-------------
Consecutive 32-bit words, little-endian, no header and no padding.

Text Formats
------------
- ``format_dump()``: symbol table followed by one line per word, as printed
  by ``t32asm`` after assembling
- ``format_listing()``: address, word and source text per word
- ``format_symbols()``: ``name = 0xADDRESS`` per label, by address
"""

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from tiny32.cpu.isa import WORD_MASK, WORD_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingEntry:
    """
    One emitted word and where it came from.

    Attributes:
        address: Byte address of the word
        word: The encoded value
        line_number: Source line that produced it
        source_text: That line without its comment
    """
    address: int
    word: int
    line_number: int
    source_text: str

    def __str__(self) -> str:
        return f"{self.line_number:5d}  {self.address:08X}  {self.word:08X}  {self.source_text}"


@dataclass(frozen=True)
class ProgramImage:
    """
    Immutable assembly output.

    Attributes:
        words: Encoded words in program order
        symbols: Label name -> byte address
        listing: One ListingEntry per word
    """
    words: tuple[int, ...]
    symbols: Mapping[str, int]
    listing: tuple[ListingEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.words)

    @property
    def end_address(self) -> int:
        """Address just past the last word (the final program counter)."""
        return (len(self.words) * WORD_SIZE) & WORD_MASK

    # =========================================================================
    # Binary Output
    # =========================================================================

    def to_bytes(self) -> bytes:
        """Serialize as little-endian 32-bit words."""
        return struct.pack(f"<{len(self.words)}I", *(w & WORD_MASK for w in self.words))

    def write_binary(self, filepath: str | Path) -> int:
        """
        Write the raw binary image.

        Returns:
            Number of bytes written
        """
        data = self.to_bytes()
        Path(filepath).write_bytes(data)
        logger.debug(f"Wrote {len(data)} bytes to {filepath}")
        return len(data)

    # =========================================================================
    # Text Output
    # =========================================================================

    def format_dump(self) -> str:
        """Symbol table and per-instruction dump."""
        lines = ["Label Symbol Table:"]
        for name, address in self.symbols.items():
            lines.append(f"  {name}: 0x{address:x}")

        lines.append("")
        lines.append("Encoded Instructions:")
        for i, word in enumerate(self.words):
            lines.append(f"{i:04d} (pc=0x{i * WORD_SIZE:08X}): 0x{word:08X}")

        return "\n".join(lines) + "\n"

    def format_listing(self) -> str:
        """Assembly listing with line numbers, addresses and words."""
        lines = [" Line  Address   Word      Source"]
        lines.extend(str(entry) for entry in self.listing)
        return "\n".join(lines) + "\n"

    def format_symbols(self) -> str:
        """Symbol file contents, sorted by address then name."""
        ordered = sorted(self.symbols.items(), key=lambda item: (item[1], item[0]))
        return "".join(f"{name} = 0x{address:08X}\n" for name, address in ordered)

    def write_listing(self, filepath: str | Path) -> None:
        Path(filepath).write_text(self.format_listing(), encoding="utf-8")

    def write_symbols(self, filepath: str | Path) -> None:
        Path(filepath).write_text(self.format_symbols(), encoding="utf-8")
