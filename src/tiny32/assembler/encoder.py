"""
tiny32 Instruction Encoder
==========================

One encoding function per mnemonic. Each takes the typed operands produced
by the OperandResolver, masks every field to its width and packs the fields
into a single 32-bit word.

Dispatch is a table keyed by the Mnemonic enum. The table is checked at
import time to cover every member, so adding a mnemonic without an encoder
fails immediately rather than at assembly time.

Word Layouts (bit 31 = MSB, opcode always in bits 31-26)
---------------------------------------------------------
| mnemonic | fields (high -> low)                          |
|----------|-----------------------------------------------|
| j        | index(26) = target >> 2                       |
| syscall  | code(18) funct(6)                             |
| stp      | base(5) rt1(5) rt2(5) offset(11)              |
| rori     | rd(5) rs(5) imm5(5) 0(11)                     |
| slti     | rs(5) rt(5) imm(16)                           |
| st / ld  | base(5) rt(5) offset(16)                      |
| bdep     | rd(5) rs1(5) rs2(5) 0(5) funct(6)             |
| cls      | rd(5) rs(5) 0(10) funct(6)                    |
| add/and  | rs(5) rt(5) rd(5) 0(5) funct(6)               |
| beq/bne  | rs(5) rt(5) offset(16)                        |
| ssat     | rd(5) rs(5) imm5(5) 0(11)                     |

Copyright (c) 2026 tiny32 Contributors
"""

from typing import Callable

from tiny32.assembler.operands import (
    Operand,
    Register,
    ResolvedInstruction,
    operand_value,
)
from tiny32.cpu.isa import (
    CODE18_MASK,
    FIELD_A_SHIFT,
    FIELD_B_SHIFT,
    FIELD_C_SHIFT,
    FUNCT_MASK,
    IMM5_MASK,
    IMM11_MASK,
    IMM16_MASK,
    INDEX26_MASK,
    INSTRUCTION_TABLE,
    InstructionDescriptor,
    Mnemonic,
    OPCODE_MASK,
    OPCODE_SHIFT,
    REG_MASK,
    WORD_MASK,
)
from tiny32.errors import MisalignedAddressError, OperandSyntaxError


# =============================================================================
# Field Helpers
# =============================================================================

def _reg(operand: Operand) -> int:
    if not isinstance(operand, Register):
        raise OperandSyntaxError(f"expected a register, got {operand}")
    return operand.index & REG_MASK


def _aligned(what: str, value: int) -> int:
    if value & 0b11:
        raise MisalignedAddressError(what, value)
    return value


def _word(descriptor: InstructionDescriptor, a: int = 0, b: int = 0, c: int = 0,
          low: int = 0) -> int:
    """
    Pack opcode, three 5-bit register fields and the low bits.

    ``low`` must already be masked by the caller; it is OR-ed in as is.
    """
    word = (descriptor.opcode & OPCODE_MASK) << OPCODE_SHIFT
    word |= (a & REG_MASK) << FIELD_A_SHIFT
    word |= (b & REG_MASK) << FIELD_B_SHIFT
    word |= (c & REG_MASK) << FIELD_C_SHIFT
    word |= low
    return word & WORD_MASK


def _funct(descriptor: InstructionDescriptor) -> int:
    return (descriptor.funct or 0) & FUNCT_MASK


# =============================================================================
# Per-Mnemonic Encoders
# =============================================================================

def encode_jump(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """j target"""
    target = _aligned("J target", operand_value(ops[0]))
    index = (target >> 2) & INDEX26_MASK
    return _word(d, low=index)


def encode_syscall(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """syscall [code]"""
    code = operand_value(ops[0]) & CODE18_MASK
    return _word(d, low=(code << 6) | _funct(d))


def encode_store_pair(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """stp rt1, rt2, offset(base)"""
    rt1, rt2, offset, base = ops
    offset_value = _aligned("STP offset", operand_value(offset))
    return _word(d, _reg(base), _reg(rt1), _reg(rt2), offset_value & IMM11_MASK)


def encode_rotate_right_imm(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """rori rd, rs, imm5"""
    rd, rs, imm = ops
    return _word(d, _reg(rd), _reg(rs), operand_value(imm) & IMM5_MASK)


def encode_set_less_than_imm(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """slti rt, rs, imm"""
    rt, rs, imm = ops
    return _word(d, _reg(rs), _reg(rt), low=operand_value(imm) & IMM16_MASK)


def _encode_memory(what: str, d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    rt, offset, base = ops
    offset_value = _aligned(what, operand_value(offset))
    return _word(d, _reg(base), _reg(rt), low=offset_value & IMM16_MASK)


def encode_store_word(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """st rt, offset(base)"""
    return _encode_memory("ST offset", d, ops)


def encode_load_word(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """ld rt, offset(base)"""
    return _encode_memory("LD offset", d, ops)


def encode_bit_deposit(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """bdep rd, rs1, rs2"""
    rd, rs1, rs2 = ops
    return _word(d, _reg(rd), _reg(rs1), _reg(rs2), _funct(d))


def encode_count_leading_sign(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """cls rd, rs"""
    rd, rs = ops
    return _word(d, _reg(rd), _reg(rs), low=_funct(d))


def _encode_alu(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    # Source order is rd, rs, rt but rd sits in the third field
    rd, rs, rt = ops
    return _word(d, _reg(rs), _reg(rt), _reg(rd), _funct(d))


def _encode_branch(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    rs, rt, offset = ops
    return _word(d, _reg(rs), _reg(rt), low=operand_value(offset) & IMM16_MASK)


def encode_saturate_signed(d: InstructionDescriptor, ops: tuple[Operand, ...]) -> int:
    """ssat rd, rs, imm5"""
    rd, rs, imm = ops
    return _word(d, _reg(rd), _reg(rs), operand_value(imm) & IMM5_MASK)


Encoder = Callable[[InstructionDescriptor, tuple[Operand, ...]], int]

ENCODERS: dict[Mnemonic, Encoder] = {
    Mnemonic.JUMP: encode_jump,
    Mnemonic.SYSCALL: encode_syscall,
    Mnemonic.STORE_PAIR: encode_store_pair,
    Mnemonic.ROTATE_RIGHT_IMM: encode_rotate_right_imm,
    Mnemonic.SET_LESS_THAN_IMM: encode_set_less_than_imm,
    Mnemonic.STORE_WORD: encode_store_word,
    Mnemonic.BIT_DEPOSIT: encode_bit_deposit,
    Mnemonic.COUNT_LEADING_SIGN: encode_count_leading_sign,
    Mnemonic.ADD: _encode_alu,
    Mnemonic.BRANCH_NOT_EQUAL: _encode_branch,
    Mnemonic.BRANCH_EQUAL: _encode_branch,
    Mnemonic.LOAD_WORD: encode_load_word,
    Mnemonic.AND: _encode_alu,
    Mnemonic.SATURATE_SIGNED: encode_saturate_signed,
}

_missing = set(Mnemonic) - set(ENCODERS)
if _missing:
    raise RuntimeError(f"no encoder for: {', '.join(sorted(m.value for m in _missing))}")


# =============================================================================
# Public Interface
# =============================================================================

def encode(instruction: ResolvedInstruction) -> int:
    """
    Encode a resolved instruction into a 32-bit word.

    Raises:
        MisalignedAddressError: Jump target or memory offset not word-aligned
    """
    descriptor = instruction.descriptor
    return ENCODERS[descriptor.mnemonic](descriptor, instruction.operands) & WORD_MASK


def encode_operands(mnemonic: Mnemonic, *operands: Operand) -> int:
    """
    Encode directly from typed operands, bypassing the resolver.

        >>> hex(encode_operands(Mnemonic.ADD, Register(1), Register(2), Register(3)))
        '0x43082b'
    """
    descriptor = INSTRUCTION_TABLE[mnemonic]
    return encode(ResolvedInstruction(descriptor, tuple(operands), 0))
