"""
tiny32 CPU Package
==================

Instruction set definitions shared by the assembler (which encodes
instructions) and the disassembler (which decodes them), so both sides read
the same opcode and funct values.

Usage:
    from tiny32.cpu import Mnemonic, get_descriptor, parse_register
"""

from tiny32.cpu.isa import (
    # Core types
    Mnemonic,
    FormatKind,
    SlotKind,
    InstructionDescriptor,
    # Master instruction database
    INSTRUCTION_TABLE,
    FORMAT_SLOTS,
    FORMAT_SYNTAX,
    # Instruction set reference lists
    MNEMONICS,
    MEMORY_INSTRUCTIONS,
    BRANCH_INSTRUCTIONS,
    # Lookup functions
    get_descriptor,
    find_descriptor,
    is_valid_instruction,
    # Registers
    REGISTER_COUNT,
    REGISTER_ALIASES,
    parse_register,
    is_register,
    register_name,
)

__all__ = [
    "Mnemonic",
    "FormatKind",
    "SlotKind",
    "InstructionDescriptor",
    "INSTRUCTION_TABLE",
    "FORMAT_SLOTS",
    "FORMAT_SYNTAX",
    "MNEMONICS",
    "MEMORY_INSTRUCTIONS",
    "BRANCH_INSTRUCTIONS",
    "get_descriptor",
    "find_descriptor",
    "is_valid_instruction",
    "REGISTER_COUNT",
    "REGISTER_ALIASES",
    "parse_register",
    "is_register",
    "register_name",
]
