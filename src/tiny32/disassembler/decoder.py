"""
tiny32 Disassembler
===================

Decodes tiny32 machine words back into assembly language. This is the
inverse of the assembler's encoder and reads the same instruction table, so
the two cannot disagree about opcode or funct values.

The text produced for each word is valid assembler input: jump and branch
targets are printed as absolute byte addresses (or label names when a symbol
table is supplied), which the assembler accepts in place of a label.

Decoding Notes
--------------
- Opcode 000000 is shared by syscall, bdep, cls, add and and; the funct
  field picks the instruction.
- Branch offsets are sign-extended from 16 bits; the target is
  ``address + (offset << 2)``.
- Memory offsets and the slti immediate are sign-extended; the 5-bit
  immediates of rori and ssat are unsigned.
- Words matching no instruction are printed as raw data literals. So are
  words with bits set in a field the encoder always leaves zero, and memory
  or stp words whose offset is not a multiple of four: the assembler could
  never have produced them, so printing them as instructions would
  re-assemble to a different word.

Usage:
    disasm = Disassembler()
    for instr in disasm.disassemble(Path("prog.bin").read_bytes()):
        print(instr)

Copyright (c) 2026 tiny32 Contributors
"""

import struct
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from tiny32.cpu.isa import (
    CODE18_MASK,
    FIELD_A_SHIFT,
    FIELD_B_SHIFT,
    FIELD_C_SHIFT,
    FUNCT_MASK,
    FormatKind,
    IMM5_MASK,
    IMM11_MASK,
    IMM16_MASK,
    INDEX26_MASK,
    Mnemonic,
    OPCODE_MASK,
    OPCODE_SHIFT,
    REG_MASK,
    WORD_MASK,
    WORD_SIZE,
    find_descriptor,
    register_name,
)
from tiny32.errors import ImageFormatError


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DecodedInstruction:
    """
    A single decoded word.

    Attributes:
        address: Byte address of the word
        word: The raw 32-bit value
        mnemonic: Decoded mnemonic, or None for data
        operands: Operand values in source order (register indices,
                  immediates, and for j/beq/bne the absolute target)
        text: Assembly text for the word
        comment: Extra information (branch displacement, label name)
    """
    address: int
    word: int
    mnemonic: Optional[Mnemonic]
    operands: Tuple[int, ...]
    text: str
    comment: str = ""

    @property
    def is_data(self) -> bool:
        return self.mnemonic is None

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: WORD  TEXT ; COMMENT"""
        if self.comment:
            return f"{self.address:08X}: {self.word:08X}  {self.text:<28} ; {self.comment}"
        return f"{self.address:08X}: {self.word:08X}  {self.text}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"0x{self.address:08X}",
            "word": f"0x{self.word:08X}",
            "mnemonic": self.mnemonic.value if self.mnemonic else None,
            "operands": list(self.operands),
            "text": self.text,
            "comment": self.comment,
        }


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low ``bits`` bits of value as two's complement."""
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value


# =============================================================================
# Word Decoding
# =============================================================================

# Bits each format never sets
RESERVED_BITS: Dict[FormatKind, int] = {
    FormatKind.SYSCALL: 0x03000000,
    FormatKind.REG_REG_IMM5: 0x000007FF,
    FormatKind.REG3: 0x000007C0,
    FormatKind.REG2: 0x0000FFC0,
}

ALIGNED_OFFSET_KINDS = (FormatKind.MEMORY, FormatKind.STORE_PAIR)


def _data(word: int, address: int) -> DecodedInstruction:
    return DecodedInstruction(address, word, None, (word,), f"0x{word:08X}", "data")


def decode_word(
    word: int,
    address: int = 0,
    symbols: Optional[Dict[int, str]] = None,
) -> DecodedInstruction:
    """
    Decode a single 32-bit word.

    Args:
        word: The machine word
        address: Address of the word (needed for branch targets)
        symbols: Optional address -> label map for target annotation

    Returns:
        DecodedInstruction
    """
    symbols = symbols or {}
    word &= WORD_MASK

    opcode = (word >> OPCODE_SHIFT) & OPCODE_MASK
    funct = word & FUNCT_MASK
    descriptor = find_descriptor(opcode, funct)

    if descriptor is None:
        return _data(word, address)

    kind = descriptor.format_kind
    if word & RESERVED_BITS.get(kind, 0):
        return _data(word, address)
    if kind in ALIGNED_OFFSET_KINDS and word & 0b11:
        return _data(word, address)

    mnemonic = descriptor.mnemonic
    a = (word >> FIELD_A_SHIFT) & REG_MASK
    b = (word >> FIELD_B_SHIFT) & REG_MASK
    c = (word >> FIELD_C_SHIFT) & REG_MASK
    comment = ""

    def target_text(target: int) -> str:
        return symbols.get(target, f"0x{target:X}")

    if kind is FormatKind.JUMP:
        target = ((word & INDEX26_MASK) << 2) & WORD_MASK
        operands = (target,)
        text = f"{mnemonic} {target_text(target)}"

    elif kind is FormatKind.SYSCALL:
        code = (word >> 6) & CODE18_MASK
        operands = (code,)
        text = f"{mnemonic} {code}"

    elif kind is FormatKind.STORE_PAIR:
        offset = sign_extend(word & IMM11_MASK, 11)
        operands = (b, c, offset, a)
        text = f"{mnemonic} {register_name(b)}, {register_name(c)}, {offset}({register_name(a)})"

    elif kind is FormatKind.MEMORY:
        offset = sign_extend(word & IMM16_MASK, 16)
        operands = (b, offset, a)
        text = f"{mnemonic} {register_name(b)}, {offset}({register_name(a)})"

    elif kind is FormatKind.REG_REG_IMM5:
        operands = (a, b, c & IMM5_MASK)
        text = f"{mnemonic} {register_name(a)}, {register_name(b)}, {c}"

    elif kind is FormatKind.REG_REG_IMM16:
        imm = sign_extend(word & IMM16_MASK, 16)
        operands = (b, a, imm)
        text = f"{mnemonic} {register_name(b)}, {register_name(a)}, {imm}"

    elif kind is FormatKind.REG3:
        if mnemonic is Mnemonic.BIT_DEPOSIT:
            operands = (a, b, c)
        else:
            # add/and keep rd in the third field
            operands = (c, a, b)
        text = f"{mnemonic} " + ", ".join(register_name(r) for r in operands)

    elif kind is FormatKind.REG2:
        operands = (a, b)
        text = f"{mnemonic} {register_name(a)}, {register_name(b)}"

    else:
        offset = sign_extend(word & IMM16_MASK, 16)
        target = (address + (offset << 2)) & WORD_MASK
        operands = (a, b, target)
        text = f"{mnemonic} {register_name(a)}, {register_name(b)}, {target_text(target)}"
        comment = f"{offset:+d}"

    if kind is FormatKind.JUMP or kind is FormatKind.BRANCH:
        target = operands[-1]
        if target in symbols:
            comment = f"{comment} 0x{target:X}".strip()

    return DecodedInstruction(address, word, mnemonic, operands, text, comment)


# =============================================================================
# Disassembler
# =============================================================================

class Disassembler:
    """
    Disassembler for tiny32 binary images.

    Attributes:
        _symbol_table: Maps addresses to label names for annotation
    """

    def __init__(self, symbol_table: Optional[Dict[int, str]] = None):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Optional dict mapping addresses to label names.
        """
        self._symbol_table = dict(symbol_table or {})

    @staticmethod
    def split_words(data: bytes) -> List[int]:
        """
        Split a binary image into little-endian words.

        Raises:
            ImageFormatError: If the length is not a multiple of 4
        """
        if len(data) % WORD_SIZE:
            raise ImageFormatError(
                f"image length {len(data)} is not a multiple of {WORD_SIZE} bytes"
            )
        return list(struct.unpack(f"<{len(data) // WORD_SIZE}I", data))

    def disassemble_words(
        self,
        words: Sequence[int],
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> List[DecodedInstruction]:
        """Decode a sequence of words laid out from start_address."""
        if count is not None:
            words = words[:count]
        return [
            decode_word(word, (start_address + i * WORD_SIZE) & WORD_MASK, self._symbol_table)
            for i, word in enumerate(words)
        ]

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> List[DecodedInstruction]:
        """
        Disassemble a binary image.

        Args:
            data: Little-endian words
            start_address: Address of the first word
            count: Maximum number of words to decode (None = all)

        Raises:
            ImageFormatError: If data is not a whole number of words
        """
        return self.disassemble_words(self.split_words(data), start_address, count)

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> str:
        """Disassemble and return one formatted line per word."""
        instructions = self.disassemble(data, start_address, count)
        return "\n".join(str(instr) for instr in instructions)

    def add_symbol(self, address: int, name: str) -> None:
        self._symbol_table[address] = name

    def add_symbols(self, symbols: Dict[int, str]) -> None:
        self._symbol_table.update(symbols)
