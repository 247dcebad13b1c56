"""
tiny32 Operand Parser & Resolver (Pass 2 front end)
===================================================

This module turns the text of one instruction into a ResolvedInstruction:
the instruction descriptor plus a tuple of typed operands. The encoder only
ever sees typed values, never strings.

Operand Types
-------------
- **Register**: a 5-bit register index
- **Immediate**: an integer (literal value or computed branch offset)
- **ResolvedAddress**: an absolute byte address, usually from a label

Resolution Rules
----------------
- ``ld``/``st``/``stp``: the final operand ``offset(base)`` is split into an
  offset and a base register. A bare register means offset 0.
- ``beq``/``bne``: the final operand is a label (or a literal byte
  address) and becomes the word offset ``(target - pc) >> 2``.
- ``j``: the operand is a label (or a literal byte address) and stays an
  absolute address; the encoder turns it into a word index.
- Any other immediate operand naming a label becomes that label's address.
- Register slots take register names only. A label is never substituted
  for a register, even when a label shares a register's name, so
  ``r1: add r1, r1, r1`` reads every operand as register r1.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from tiny32.assembler.preprocessor import (
    IDENTIFIER_PATTERN,
    is_integer_literal,
    parse_integer,
    split_instruction,
)
from tiny32.assembler.symbols import Pass1Result
from tiny32.cpu.isa import (
    FormatKind,
    InstructionDescriptor,
    MEMORY_INSTRUCTIONS,
    Mnemonic,
    SlotKind,
    get_descriptor,
    parse_register,
)
from tiny32.errors import (
    MisalignedAddressError,
    OperandSyntaxError,
    UnresolvedLabelError,
)


# =============================================================================
# Typed Operands
# =============================================================================

@dataclass(frozen=True)
class Register:
    """A register operand (index 0-31)."""
    index: int

    def __str__(self) -> str:
        return f"r{self.index}"


@dataclass(frozen=True)
class Immediate:
    """An integer operand."""
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ResolvedAddress:
    """An absolute byte address, with the label it came from if any."""
    address: int
    label: Optional[str] = None

    def __str__(self) -> str:
        if self.label:
            return f"{self.label}=0x{self.address:X}"
        return f"0x{self.address:X}"


Operand = Union[Register, Immediate, ResolvedAddress]


def operand_value(operand: Operand) -> int:
    """Integer value of an immediate or address operand."""
    if isinstance(operand, Immediate):
        return operand.value
    if isinstance(operand, ResolvedAddress):
        return operand.address
    raise OperandSyntaxError(f"expected a value, got register {operand}")


@dataclass(frozen=True)
class ResolvedInstruction:
    """
    An instruction ready for encoding.

    Attributes:
        descriptor: Static encoding information for the mnemonic
        operands: Typed operands, in the order of descriptor.slots
        address: Address the instruction will occupy
    """
    descriptor: InstructionDescriptor
    operands: tuple[Operand, ...]
    address: int

    @property
    def mnemonic(self) -> Mnemonic:
        return self.descriptor.mnemonic


# =============================================================================
# Resolver
# =============================================================================

# offset(base); the offset may itself be a label or a signed literal
MEMORY_OPERAND_PATTERN = re.compile(r"^(.+?)\((\w+)\)$")


def split_memory_operand(token: str) -> tuple[str, str]:
    """
    Split ``offset(base)`` into its offset and base tokens.

    A token without parentheses is a bare base register with offset "0".

    Raises:
        OperandSyntaxError: If parentheses are present but malformed
    """
    token = token.strip()
    if "(" not in token and ")" not in token:
        return "0", token

    match = MEMORY_OPERAND_PATTERN.match(token)
    if match is None:
        raise OperandSyntaxError(
            f"malformed memory operand {token!r}",
            hint="expected offset(base), e.g. 8(sp)",
        )
    return match.group(1).strip(), match.group(2).strip()


class OperandResolver:
    """
    Resolves instruction text against a finished pass 1 symbol table.

    Usage:
        resolver = OperandResolver(pass1)
        inst = resolver.resolve("beq r0, r1, done", pc=0)
    """

    def __init__(self, pass1: Pass1Result):
        self._pass1 = pass1

    def resolve(self, text: str, pc: int) -> ResolvedInstruction:
        """
        Parse and resolve one instruction.

        Args:
            text: Instruction text (mnemonic and operands, no label/comment)
            pc: Address of this instruction

        Raises:
            UnknownMnemonicError: Mnemonic not in the instruction set
            OperandSyntaxError: Wrong operand count or malformed operand
            InvalidRegisterError: Bad register token
            UnresolvedLabelError: Label not in the symbol table
            MisalignedAddressError: Literal branch target not word-aligned
        """
        mnemonic_text, tokens = split_instruction(text)
        descriptor = get_descriptor(mnemonic_text)
        tokens = self._restructure(descriptor, tokens)

        slots = descriptor.slots
        if len(tokens) != len(slots):
            raise OperandSyntaxError(
                f"'{descriptor.mnemonic}' expects {len(slots)} operand(s), got {len(tokens)}",
                hint=f"usage: {descriptor.syntax}",
            )

        operands = tuple(
            self._resolve_operand(slot, token, pc)
            for slot, token in zip(slots, tokens)
        )
        return ResolvedInstruction(descriptor, operands, pc)

    def _restructure(self, descriptor: InstructionDescriptor, tokens: list[str]) -> list[str]:
        """Apply mnemonic-specific rewriting of the raw token list."""
        if descriptor.mnemonic in MEMORY_INSTRUCTIONS and tokens:
            offset, base = split_memory_operand(tokens[-1])
            return tokens[:-1] + [offset, base]

        if descriptor.format_kind is FormatKind.SYSCALL and not tokens:
            return ["0"]

        return tokens

    def _resolve_operand(self, slot: SlotKind, token: str, pc: int) -> Operand:
        if slot is SlotKind.REGISTER:
            return Register(parse_register(token))

        if slot is SlotKind.IMMEDIATE:
            if token in self._pass1.symbols:
                return ResolvedAddress(self._pass1.symbols[token], token)
            if not is_integer_literal(token) and IDENTIFIER_PATTERN.match(token):
                raise self._unresolved(token)
            return Immediate(parse_integer(token))

        target = self._resolve_target(token)
        if slot is SlotKind.ABSOLUTE_TARGET:
            return target

        # Relative branch target
        if target.address & 0b11:
            raise MisalignedAddressError("branch target", target.address)
        return Immediate((target.address - pc) >> 2)

    def _resolve_target(self, token: str) -> ResolvedAddress:
        """Resolve a jump/branch target: a known label or a literal address."""
        if token in self._pass1.symbols:
            return ResolvedAddress(self._pass1.symbols[token], token)
        if is_integer_literal(token):
            return ResolvedAddress(parse_integer(token))
        if IDENTIFIER_PATTERN.match(token):
            raise self._unresolved(token)
        raise OperandSyntaxError(f"invalid branch or jump target {token!r}")

    def _unresolved(self, label: str) -> UnresolvedLabelError:
        return UnresolvedLabelError(
            label,
            similar_labels=self._pass1.find_similar_labels(label),
        )
