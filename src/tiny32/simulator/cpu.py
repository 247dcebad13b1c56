"""
tiny32 CPU Simulator
====================

Executes tiny32 machine code one word at a time. Decoding uses the same
instruction table as the assembler and disassembler, so a word the
disassembler names ``add`` is the word this CPU adds with.

Machine Model
-------------
- 32 general registers r0-r31, 32 bits each, all writable (r0 included)
- a 32-bit program counter, starting at 0 unless set
- little-endian memory that grows on write (see ``memory.py``)

Execution Rules
---------------
- ``j``: the target keeps the top 4 bits of the current PC.
- ``beq``/``bne``: a taken branch goes to ``pc + (offset << 2)``, where pc
  is the address of the branch itself.
- ``ld``/``st``/``stp``: offsets are sign-extended; the effective address
  must be word-aligned or the CPU faults.
- ``syscall 0`` halts; ``syscall 1`` outputs r0 as an unsigned decimal;
  other codes are logged and ignored.
- ``cls`` counts the leading bits equal to the sign bit, sign bit
  included, and saturates at 31.
- ``ssat rd, rs, n`` clamps rs to a signed n-bit range; n = 0 copies rs.

A word that matches no instruction halts the CPU, as does any fault. In
both cases the PC is left on the offending word.

Example:
    >>> from tiny32.assembler import assemble
    >>> cpu = CPU()
    >>> cpu.load_program(assemble("add r1, r1, r1\\nsyscall 0").to_bytes())
    >>> cpu.set_register(1, 21)
    >>> cpu.run().reason
    <StopReason.HALT: 1>
    >>> cpu.get_register(1)
    42

Copyright (c) 2026 tiny32 Contributors
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Optional

from tiny32.cpu.isa import (
    CODE18_MASK,
    FIELD_A_SHIFT,
    FIELD_B_SHIFT,
    FIELD_C_SHIFT,
    FUNCT_MASK,
    IMM11_MASK,
    IMM16_MASK,
    INDEX26_MASK,
    Mnemonic,
    OPCODE_MASK,
    OPCODE_SHIFT,
    REG_MASK,
    REGISTER_COUNT,
    WORD_MASK,
    WORD_SIZE,
    find_descriptor,
)
from tiny32.disassembler.decoder import sign_extend
from tiny32.errors import SimulatorError
from tiny32.simulator.memory import Memory

logger = logging.getLogger(__name__)

WORD_BITS = 32
JUMP_REGION_MASK = 0xF0000000


# =============================================================================
# Stop Events
# =============================================================================

class StopReason(Enum):
    """Why the CPU stopped running."""
    HALT = auto()                 # syscall 0
    UNKNOWN_INSTRUCTION = auto()  # word matches no instruction
    FAULT = auto()                # misaligned access or memory limit
    MAX_STEPS = auto()            # run() step budget used up


@dataclass
class StopEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC of the word that stopped it
        message: Human-readable description
    """
    reason: StopReason
    address: int
    message: str = ""

    def __str__(self) -> str:
        return self.message or f"{self.reason.name.lower()} at 0x{self.address:08X}"


# =============================================================================
# ALU Helpers
# =============================================================================

def to_signed(value: int) -> int:
    return sign_extend(value, WORD_BITS)


def rotate_right(value: int, amount: int) -> int:
    amount &= WORD_BITS - 1
    value &= WORD_MASK
    if amount == 0:
        return value
    return ((value >> amount) | (value << (WORD_BITS - amount))) & WORD_MASK


def bit_deposit(source: int, mask: int) -> int:
    """Scatter the low bits of source into the set bits of mask, low to high."""
    result = 0
    for position in range(WORD_BITS):
        if mask >> position & 1:
            if source & 1:
                result |= 1 << position
            source >>= 1
    return result


def count_leading_sign(value: int) -> int:
    """Leading bits equal to bit 31, counting bit 31 itself; at most 31."""
    sign = value >> (WORD_BITS - 1) & 1
    count = 0
    for position in range(WORD_BITS - 1, -1, -1):
        if value >> position & 1 != sign:
            break
        count += 1
        if count >= WORD_BITS - 1:
            return WORD_BITS - 1
    return count


def saturate_signed(value: int, bits: int) -> int:
    """Clamp value (read as signed) to the signed ``bits``-bit range."""
    if bits == 0:
        return value & WORD_MASK
    low = -(1 << (bits - 1))
    high = (1 << (bits - 1)) - 1
    return max(low, min(high, to_signed(value))) & WORD_MASK


# =============================================================================
# CPU
# =============================================================================

class CPU:
    """
    tiny32 CPU with a step/run interface.

    Attributes:
        memory: The Memory the CPU fetches from and stores to
        regs: Register values r0-r31
        pc: Address of the next word to execute
        halted: True once the CPU has stopped for good
        stop_event: Why it stopped, once halted
        steps: Instructions executed since the last reset
        output: Values printed by ``syscall 1``
        on_output: Optional callback receiving each ``syscall 1`` value
    """

    def __init__(self, memory: Optional[Memory] = None,
                 on_output: Optional[Callable[[int], None]] = None):
        self.memory = memory if memory is not None else Memory()
        self.on_output = on_output
        self.regs = [0] * REGISTER_COUNT
        self.pc = 0
        self.halted = False
        self.stop_event: Optional[StopEvent] = None
        self.steps = 0
        self.output: list[int] = []

        self._handlers: dict[Mnemonic, Callable[[int, int], int]] = {
            Mnemonic.JUMP: self._exec_jump,
            Mnemonic.SYSCALL: self._exec_syscall,
            Mnemonic.STORE_PAIR: self._exec_store_pair,
            Mnemonic.ROTATE_RIGHT_IMM: self._exec_rotate_right_imm,
            Mnemonic.SET_LESS_THAN_IMM: self._exec_set_less_than_imm,
            Mnemonic.STORE_WORD: self._exec_store_word,
            Mnemonic.BIT_DEPOSIT: self._exec_bit_deposit,
            Mnemonic.COUNT_LEADING_SIGN: self._exec_count_leading_sign,
            Mnemonic.ADD: self._exec_add,
            Mnemonic.BRANCH_NOT_EQUAL: self._exec_branch_not_equal,
            Mnemonic.BRANCH_EQUAL: self._exec_branch_equal,
            Mnemonic.LOAD_WORD: self._exec_load_word,
            Mnemonic.AND: self._exec_and,
            Mnemonic.SATURATE_SIGNED: self._exec_saturate_signed,
        }

    # =========================================================================
    # State
    # =========================================================================

    def reset(self) -> None:
        """Clear memory and registers and set the PC to 0."""
        self.memory.clear()
        self.regs = [0] * REGISTER_COUNT
        self.pc = 0
        self.halted = False
        self.stop_event = None
        self.steps = 0
        self.output = []
        logger.debug("CPU reset")

    def load_program(self, data: bytes, base: int = 0) -> None:
        """
        Copy a binary image into memory at base.

        Raises:
            SimulatorError: If the image is empty or does not fit
        """
        if not data:
            raise SimulatorError("program image is empty")
        self.memory.load(data, base)
        logger.debug(f"Loaded {len(data)} bytes at 0x{base:08X}")

    def load_file(self, path: str | Path, base: int = 0) -> None:
        """Load a binary image written by t32asm."""
        self.load_program(Path(path).read_bytes(), base)

    def get_register(self, index: int) -> int:
        self._check_register(index)
        return self.regs[index]

    def set_register(self, index: int, value: int) -> None:
        """Set a register; values are truncated to 32 bits."""
        self._check_register(index)
        self.regs[index] = value & WORD_MASK

    def set_pc(self, address: int) -> None:
        self.pc = address & WORD_MASK

    @staticmethod
    def _check_register(index: int) -> None:
        if not 0 <= index < REGISTER_COUNT:
            raise SimulatorError(
                f"register index {index} out of range (0-{REGISTER_COUNT - 1})"
            )

    # =========================================================================
    # Execution
    # =========================================================================

    def step(self) -> Optional[StopEvent]:
        """
        Execute one instruction.

        Returns:
            The StopEvent if the CPU is now halted, otherwise None
        """
        if self.halted:
            return self.stop_event

        word = self.memory.read_word(self.pc)
        opcode = (word >> OPCODE_SHIFT) & OPCODE_MASK
        descriptor = find_descriptor(opcode, word & FUNCT_MASK)
        if descriptor is None:
            return self._halt(
                StopReason.UNKNOWN_INSTRUCTION,
                f"unknown instruction 0x{word:08X} at pc 0x{self.pc:08X}",
            )

        next_pc = (self.pc + WORD_SIZE) & WORD_MASK
        try:
            next_pc = self._handlers[descriptor.mnemonic](word, next_pc)
        except SimulatorError as e:
            return self._halt(
                StopReason.FAULT,
                f"{descriptor.mnemonic.value} at pc 0x{self.pc:08X}: {e}",
            )

        self.steps += 1
        self.pc = next_pc & WORD_MASK
        return self.stop_event

    def run(self, max_steps: int = 1_000_000) -> StopEvent:
        """
        Run until the CPU halts or max_steps instructions have executed.

        Returns:
            StopEvent describing why execution stopped
        """
        for _ in range(max_steps):
            event = self.step()
            if event is not None:
                return event
        if self.halted:
            return self.stop_event
        logger.warning(f"Stopped after {max_steps} steps at pc 0x{self.pc:08X}")
        return StopEvent(
            StopReason.MAX_STEPS,
            self.pc,
            f"reached max steps ({max_steps}) at pc 0x{self.pc:08X}",
        )

    def _halt(self, reason: StopReason, message: str = "") -> StopEvent:
        self.halted = True
        self.stop_event = StopEvent(reason, self.pc, message)
        if reason is StopReason.HALT:
            logger.debug(f"Halted at pc 0x{self.pc:08X} after {self.steps + 1} steps")
        else:
            logger.error(f"{message}, CPU halted")
        return self.stop_event

    # =========================================================================
    # Memory Access
    # =========================================================================

    def _address(self, base: int, offset: int) -> int:
        address = (self.regs[base] + offset) & WORD_MASK
        if address & 0b11:
            raise SimulatorError(f"address 0x{address:08X} is not word-aligned")
        return address

    # =========================================================================
    # Instruction Handlers
    # =========================================================================
    # Each takes the word and the fall-through PC and returns the next PC.

    @staticmethod
    def _fields(word: int) -> tuple[int, int, int]:
        return (
            (word >> FIELD_A_SHIFT) & REG_MASK,
            (word >> FIELD_B_SHIFT) & REG_MASK,
            (word >> FIELD_C_SHIFT) & REG_MASK,
        )

    def _set(self, index: int, value: int) -> None:
        self.regs[index] = value & WORD_MASK

    def _exec_jump(self, word: int, next_pc: int) -> int:
        return (self.pc & JUMP_REGION_MASK) | ((word & INDEX26_MASK) << 2)

    def _exec_syscall(self, word: int, next_pc: int) -> int:
        code = (word >> 6) & CODE18_MASK
        if code == 0:
            self._halt(StopReason.HALT, f"syscall 0 at pc 0x{self.pc:08X}")
        elif code == 1:
            value = self.regs[0]
            self.output.append(value)
            if self.on_output:
                self.on_output(value)
        else:
            logger.warning(f"syscall: unhandled code {code} at pc 0x{self.pc:08X}")
        return next_pc

    def _exec_store_pair(self, word: int, next_pc: int) -> int:
        base, rt1, rt2 = self._fields(word)
        address = self._address(base, sign_extend(word & IMM11_MASK, 11))
        self.memory.write_word(address, self.regs[rt1])
        self.memory.write_word(address + WORD_SIZE, self.regs[rt2])
        return next_pc

    def _exec_rotate_right_imm(self, word: int, next_pc: int) -> int:
        rd, rs, amount = self._fields(word)
        self._set(rd, rotate_right(self.regs[rs], amount))
        return next_pc

    def _exec_set_less_than_imm(self, word: int, next_pc: int) -> int:
        rs, rt, _ = self._fields(word)
        imm = sign_extend(word & IMM16_MASK, 16)
        self._set(rt, 1 if to_signed(self.regs[rs]) < imm else 0)
        return next_pc

    def _exec_store_word(self, word: int, next_pc: int) -> int:
        base, rt, _ = self._fields(word)
        address = self._address(base, sign_extend(word & IMM16_MASK, 16))
        self.memory.write_word(address, self.regs[rt])
        return next_pc

    def _exec_load_word(self, word: int, next_pc: int) -> int:
        base, rt, _ = self._fields(word)
        address = self._address(base, sign_extend(word & IMM16_MASK, 16))
        self._set(rt, self.memory.read_word(address))
        return next_pc

    def _exec_bit_deposit(self, word: int, next_pc: int) -> int:
        rd, rs1, rs2 = self._fields(word)
        self._set(rd, bit_deposit(self.regs[rs1], self.regs[rs2]))
        return next_pc

    def _exec_count_leading_sign(self, word: int, next_pc: int) -> int:
        rd, rs, _ = self._fields(word)
        self._set(rd, count_leading_sign(self.regs[rs]))
        return next_pc

    def _exec_add(self, word: int, next_pc: int) -> int:
        rs, rt, rd = self._fields(word)
        self._set(rd, self.regs[rs] + self.regs[rt])
        return next_pc

    def _exec_and(self, word: int, next_pc: int) -> int:
        rs, rt, rd = self._fields(word)
        self._set(rd, self.regs[rs] & self.regs[rt])
        return next_pc

    def _branch_target(self, word: int) -> int:
        return (self.pc + (sign_extend(word & IMM16_MASK, 16) << 2)) & WORD_MASK

    def _exec_branch_equal(self, word: int, next_pc: int) -> int:
        rs, rt, _ = self._fields(word)
        if self.regs[rs] == self.regs[rt]:
            return self._branch_target(word)
        return next_pc

    def _exec_branch_not_equal(self, word: int, next_pc: int) -> int:
        rs, rt, _ = self._fields(word)
        if self.regs[rs] != self.regs[rt]:
            return self._branch_target(word)
        return next_pc

    def _exec_saturate_signed(self, word: int, next_pc: int) -> int:
        rd, rs, bits = self._fields(word)
        self._set(rd, saturate_signed(self.regs[rs], bits))
        return next_pc

    # =========================================================================
    # Register Dump
    # =========================================================================

    def format_registers(self) -> str:
        """
        Format the PC and all registers, four per line.

            ----- CPU REGISTER DUMP -----
            PC = 0x8
            X0 = 0x0	X1 = 0x2a	X2 = 0x0	X3 = 0x0
            ...
            ----- END OF DUMP -----
        """
        lines = ["----- CPU REGISTER DUMP -----", f"PC = 0x{self.pc:x}"]
        for row in range(0, REGISTER_COUNT, 4):
            lines.append("\t".join(
                f"X{i} = 0x{self.regs[i]:x}" for i in range(row, row + 4)
            ))
        lines.append("")
        lines.append("----- END OF DUMP -----")
        return "\n".join(lines) + "\n"
