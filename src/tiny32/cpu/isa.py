"""
tiny32 Instruction Set Definition
=================================

This module defines the tiny32 instruction set: fourteen fixed-width 32-bit
instructions, each identified by a 6-bit primary opcode in bits 31-26.
Five instructions share opcode 000000 and are told apart by a 6-bit
function ("funct") field in bits 5-0.

Instruction Formats
-------------------
Each mnemonic belongs to one operand format, which fixes both the source
syntax and the bit layout:

1. **JUMP**: ``j label``
   - 26-bit word index of an absolute target

2. **SYSCALL**: ``syscall [code]``
   - 18-bit service code, funct 111110

3. **STORE_PAIR**: ``stp rt1, rt2, offset(base)``
   - base, rt1, rt2 and an 11-bit byte offset

4. **MEMORY**: ``ld rt, offset(base)`` / ``st rt, offset(base)``
   - base, rt and a 16-bit byte offset

5. **REG_REG_IMM5**: ``rori rd, rs, imm5`` / ``ssat rd, rs, imm5``

6. **REG_REG_IMM16**: ``slti rt, rs, imm``

7. **REG3**: ``add rd, rs, rt`` / ``and rd, rs, rt`` / ``bdep rd, rs1, rs2``

8. **REG2**: ``cls rd, rs``

9. **BRANCH**: ``beq rs, rt, label`` / ``bne rs, rt, label``
   - signed 16-bit word offset relative to the branch itself

Registers
---------
32 general purpose registers, written ``r0``-``r31`` or ``x0``-``x31``
(a bare index is also accepted). Three aliases are predefined:
``zero`` (r0), ``ra`` (r1) and ``sp`` (r2).

Copyright (c) 2026 tiny32 Contributors
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from tiny32.errors import InvalidRegisterError, UnknownMnemonicError


# =============================================================================
# Field Widths
# =============================================================================

WORD_MASK = 0xFFFFFFFF
WORD_SIZE = 4

OPCODE_SHIFT = 26
OPCODE_MASK = 0x3F
FUNCT_MASK = 0x3F
REG_MASK = 0x1F

IMM5_MASK = 0x1F
IMM11_MASK = 0x7FF
IMM16_MASK = 0xFFFF
CODE18_MASK = 0x3FFFF
INDEX26_MASK = 0x3FFFFFF

# Register field positions (bit index of the field's LSB)
FIELD_A_SHIFT = 21
FIELD_B_SHIFT = 16
FIELD_C_SHIFT = 11


# =============================================================================
# Mnemonics and Formats
# =============================================================================

class Mnemonic(Enum):
    """
    The closed set of tiny32 mnemonics.

    The enum value is the mnemonic as written in source (lower case).
    """
    JUMP = "j"
    SYSCALL = "syscall"
    STORE_PAIR = "stp"
    ROTATE_RIGHT_IMM = "rori"
    SET_LESS_THAN_IMM = "slti"
    STORE_WORD = "st"
    BIT_DEPOSIT = "bdep"
    COUNT_LEADING_SIGN = "cls"
    ADD = "add"
    BRANCH_NOT_EQUAL = "bne"
    BRANCH_EQUAL = "beq"
    LOAD_WORD = "ld"
    AND = "and"
    SATURATE_SIGNED = "ssat"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_text(cls, text: str) -> "Mnemonic":
        """
        Look up a mnemonic case-insensitively.

        Raises:
            UnknownMnemonicError: If no instruction has that name
        """
        try:
            return cls(text.lower())
        except ValueError:
            raise UnknownMnemonicError(text) from None


class FormatKind(Enum):
    """Operand format classes. See the module docstring for syntax."""
    JUMP = auto()
    SYSCALL = auto()
    STORE_PAIR = auto()
    MEMORY = auto()
    REG_REG_IMM5 = auto()
    REG_REG_IMM16 = auto()
    REG3 = auto()
    REG2 = auto()
    BRANCH = auto()


class SlotKind(Enum):
    """What a single operand position accepts."""
    REGISTER = auto()
    IMMEDIATE = auto()
    ABSOLUTE_TARGET = auto()   # jump target: label or byte address
    RELATIVE_TARGET = auto()   # branch target: label or byte address, encoded pc-relative


# Operand slots per format, in source order. Memory formats list the
# offset and base slots produced by splitting "offset(base)".
FORMAT_SLOTS: dict[FormatKind, tuple[SlotKind, ...]] = {
    FormatKind.JUMP: (SlotKind.ABSOLUTE_TARGET,),
    FormatKind.SYSCALL: (SlotKind.IMMEDIATE,),
    FormatKind.STORE_PAIR: (
        SlotKind.REGISTER, SlotKind.REGISTER, SlotKind.IMMEDIATE, SlotKind.REGISTER,
    ),
    FormatKind.MEMORY: (SlotKind.REGISTER, SlotKind.IMMEDIATE, SlotKind.REGISTER),
    FormatKind.REG_REG_IMM5: (SlotKind.REGISTER, SlotKind.REGISTER, SlotKind.IMMEDIATE),
    FormatKind.REG_REG_IMM16: (SlotKind.REGISTER, SlotKind.REGISTER, SlotKind.IMMEDIATE),
    FormatKind.REG3: (SlotKind.REGISTER, SlotKind.REGISTER, SlotKind.REGISTER),
    FormatKind.REG2: (SlotKind.REGISTER, SlotKind.REGISTER),
    FormatKind.BRANCH: (SlotKind.REGISTER, SlotKind.REGISTER, SlotKind.RELATIVE_TARGET),
}

# Human-readable operand syntax, used in error hints and the disassembler
FORMAT_SYNTAX: dict[FormatKind, str] = {
    FormatKind.JUMP: "label",
    FormatKind.SYSCALL: "[code]",
    FormatKind.STORE_PAIR: "rt1, rt2, offset(base)",
    FormatKind.MEMORY: "rt, offset(base)",
    FormatKind.REG_REG_IMM5: "rd, rs, imm5",
    FormatKind.REG_REG_IMM16: "rt, rs, imm",
    FormatKind.REG3: "rd, rs, rt",
    FormatKind.REG2: "rd, rs",
    FormatKind.BRANCH: "rs, rt, label",
}


# =============================================================================
# Instruction Descriptors
# =============================================================================

@dataclass(frozen=True)
class InstructionDescriptor:
    """
    Static encoding information for one mnemonic.

    Attributes:
        mnemonic: The instruction
        opcode: 6-bit primary opcode (bits 31-26)
        funct: 6-bit function field for opcode-000000 instructions
        format_kind: Operand format class
    """
    mnemonic: Mnemonic
    opcode: int
    funct: Optional[int]
    format_kind: FormatKind

    @property
    def slots(self) -> tuple[SlotKind, ...]:
        return FORMAT_SLOTS[self.format_kind]

    @property
    def syntax(self) -> str:
        return f"{self.mnemonic} {FORMAT_SYNTAX[self.format_kind]}"

    def __repr__(self) -> str:
        funct = f", funct={self.funct:06b}" if self.funct is not None else ""
        return f"InstructionDescriptor({self.mnemonic}, opcode={self.opcode:06b}{funct})"


INSTRUCTION_TABLE: dict[Mnemonic, InstructionDescriptor] = {
    d.mnemonic: d for d in (
        InstructionDescriptor(Mnemonic.JUMP, 0b100111, None, FormatKind.JUMP),
        InstructionDescriptor(Mnemonic.SYSCALL, 0b000000, 0b111110, FormatKind.SYSCALL),
        InstructionDescriptor(Mnemonic.STORE_PAIR, 0b001000, None, FormatKind.STORE_PAIR),
        InstructionDescriptor(Mnemonic.ROTATE_RIGHT_IMM, 0b111011, None, FormatKind.REG_REG_IMM5),
        InstructionDescriptor(Mnemonic.SET_LESS_THAN_IMM, 0b010110, None, FormatKind.REG_REG_IMM16),
        InstructionDescriptor(Mnemonic.STORE_WORD, 0b000011, None, FormatKind.MEMORY),
        InstructionDescriptor(Mnemonic.BIT_DEPOSIT, 0b000000, 0b111010, FormatKind.REG3),
        InstructionDescriptor(Mnemonic.COUNT_LEADING_SIGN, 0b000000, 0b111001, FormatKind.REG2),
        InstructionDescriptor(Mnemonic.ADD, 0b000000, 0b101011, FormatKind.REG3),
        InstructionDescriptor(Mnemonic.BRANCH_NOT_EQUAL, 0b100100, None, FormatKind.BRANCH),
        InstructionDescriptor(Mnemonic.BRANCH_EQUAL, 0b000010, None, FormatKind.BRANCH),
        InstructionDescriptor(Mnemonic.LOAD_WORD, 0b011010, None, FormatKind.MEMORY),
        InstructionDescriptor(Mnemonic.AND, 0b000000, 0b101101, FormatKind.REG3),
        InstructionDescriptor(Mnemonic.SATURATE_SIGNED, 0b001111, None, FormatKind.REG_REG_IMM5),
    )
}

MNEMONICS: frozenset[str] = frozenset(m.value for m in Mnemonic)

MEMORY_INSTRUCTIONS: frozenset[Mnemonic] = frozenset({
    Mnemonic.LOAD_WORD, Mnemonic.STORE_WORD, Mnemonic.STORE_PAIR,
})

BRANCH_INSTRUCTIONS: frozenset[Mnemonic] = frozenset({
    Mnemonic.BRANCH_EQUAL, Mnemonic.BRANCH_NOT_EQUAL,
})


def get_descriptor(mnemonic: Mnemonic | str) -> InstructionDescriptor:
    """
    Get the descriptor for a mnemonic (enum member or source text).

    Raises:
        UnknownMnemonicError: If the text names no instruction
    """
    if not isinstance(mnemonic, Mnemonic):
        mnemonic = Mnemonic.from_text(mnemonic)
    return INSTRUCTION_TABLE[mnemonic]


def is_valid_instruction(text: str) -> bool:
    """Check whether text is a known mnemonic (case-insensitive)."""
    return text.lower() in MNEMONICS


def find_descriptor(opcode: int, funct: int) -> Optional[InstructionDescriptor]:
    """
    Reverse lookup used by the disassembler and the simulator.

    Opcode 000000 is shared, so the funct field selects the instruction;
    for every other opcode the funct bits are ordinary operand bits.
    """
    for descriptor in INSTRUCTION_TABLE.values():
        if descriptor.opcode != opcode:
            continue
        if descriptor.funct is None or descriptor.funct == funct:
            return descriptor
    return None


# =============================================================================
# Registers
# =============================================================================

REGISTER_COUNT = 32

REGISTER_ALIASES: dict[str, int] = {
    "zero": 0,
    "ra": 1,
    "sp": 2,
}

_REGISTER_PATTERN = re.compile(r"^[xr]?(\d{1,2})$")


def parse_register(token: str) -> int:
    """
    Convert a register token to its 5-bit index.

    Accepts r0-r31, x0-x31, a bare index, and the aliases zero/ra/sp,
    case-insensitively.

    Raises:
        InvalidRegisterError: Unparsable name, or index above 31
    """
    name = token.strip().lower()
    if name in REGISTER_ALIASES:
        return REGISTER_ALIASES[name]

    match = _REGISTER_PATTERN.match(name)
    if match is None:
        raise InvalidRegisterError(token, InvalidRegisterError.BAD_NAME)

    index = int(match.group(1))
    if index >= REGISTER_COUNT:
        raise InvalidRegisterError(token, InvalidRegisterError.OUT_OF_RANGE)
    return index


def is_register(token: str) -> bool:
    """Check whether a token names a register."""
    try:
        parse_register(token)
    except InvalidRegisterError:
        return False
    return True


def register_name(index: int) -> str:
    """Canonical spelling of a register, as printed by the disassembler."""
    return f"r{index & REG_MASK}"
