"""
Simulator Memory
================

Flat byte-addressed memory for the tiny32 simulator. Words are stored
little-endian, the same layout t32asm writes to disk, so a binary image can
be copied in unchanged.

The memory starts empty and grows when a word is written past its end.
Reads past the end are logged and return 0, which the CPU then fails to
decode, so a program that runs off the end of its image stops there.

Copyright (c) 2026 tiny32 Contributors
"""

import logging
import struct

from tiny32.cpu.isa import WORD_MASK, WORD_SIZE
from tiny32.errors import SimulatorError

logger = logging.getLogger(__name__)


class Memory:
    """
    Growable little-endian word memory.

    Attributes:
        limit: Largest size in bytes the memory may grow to
    """

    DEFAULT_LIMIT = 16 * 1024 * 1024

    def __init__(self, limit: int = DEFAULT_LIMIT):
        self.limit = limit
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        self._data = bytearray()

    def _grow(self, end: int) -> None:
        if end > self.limit:
            raise SimulatorError(
                f"address 0x{end - 1:08X} is beyond the {self.limit}-byte memory limit"
            )
        if end > len(self._data):
            self._data.extend(bytes(end - len(self._data)))

    def load(self, data: bytes, base: int = 0) -> None:
        """
        Copy data into memory starting at base.

        Raises:
            SimulatorError: If the data would extend past the memory limit
        """
        end = base + len(data)
        self._grow(end)
        self._data[base:end] = data

    def read_word(self, address: int) -> int:
        """Read the word at address; out-of-range reads log an error and give 0."""
        address &= WORD_MASK
        if address + WORD_SIZE > len(self._data):
            logger.error(f"out-of-range read at 0x{address:08X}")
            return 0
        return struct.unpack_from("<I", self._data, address)[0]

    def write_word(self, address: int, value: int) -> None:
        """
        Write a word, growing the memory to hold it.

        Raises:
            SimulatorError: If the word lies past the memory limit
        """
        address &= WORD_MASK
        self._grow(address + WORD_SIZE)
        struct.pack_into("<I", self._data, address, value & WORD_MASK)

    def read_bytes(self, address: int, count: int) -> bytes:
        """Raw bytes for inspection; the range is clipped to the memory size."""
        return bytes(self._data[address:address + count])
