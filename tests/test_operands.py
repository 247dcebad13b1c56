# =============================================================================
# test_operands.py - Operand Resolution Tests
# =============================================================================
# Tests for turning instruction text into typed operands: register
# parsing, memory operand splitting, label substitution and branch
# offset computation.
# =============================================================================

import pytest

from tiny32.assembler.operands import (
    Immediate,
    OperandResolver,
    Register,
    ResolvedAddress,
    operand_value,
    split_memory_operand,
)
from tiny32.assembler.preprocessor import iter_source_lines
from tiny32.assembler.symbols import build_symbol_table
from tiny32.cpu import Mnemonic
from tiny32.errors import (
    InvalidRegisterError,
    MisalignedAddressError,
    OperandSyntaxError,
    UnknownMnemonicError,
    UnresolvedLabelError,
)


SOURCE = """
loop:   add r1, r1, r1
        add r2, r2, r2
done:   add r3, r3, r3
"""


@pytest.fixture
def resolver():
    return OperandResolver(build_symbol_table(iter_source_lines(SOURCE)))


# =============================================================================
# Register Operand Tests
# =============================================================================

class TestRegisterOperands:
    """Register slots accept register names only."""

    def test_three_registers(self, resolver):
        inst = resolver.resolve("add r1, r2, r3", pc=0)
        assert inst.mnemonic is Mnemonic.ADD
        assert inst.operands == (Register(1), Register(2), Register(3))
        assert inst.address == 0

    def test_aliases(self, resolver):
        inst = resolver.resolve("cls ra, sp", pc=0)
        assert inst.operands == (Register(1), Register(2))

    def test_uppercase_mnemonic(self, resolver):
        assert resolver.resolve("AND x1, x2, x3", pc=0).mnemonic is Mnemonic.AND

    def test_label_is_not_a_register(self, resolver):
        with pytest.raises(InvalidRegisterError) as exc_info:
            resolver.resolve("add r1, loop, r3", pc=0)
        assert exc_info.value.reason == InvalidRegisterError.BAD_NAME

    def test_register_name_wins_over_label(self):
        pass1 = build_symbol_table(iter_source_lines("add r0, r0, r0\nr1:\nsp:\n"))
        assert dict(pass1.symbols) == {"r1": 4, "sp": 4}
        inst = OperandResolver(pass1).resolve("add r1, sp, r1", pc=0)
        assert inst.operands == (Register(1), Register(2), Register(1))

    def test_register_out_of_range(self, resolver):
        with pytest.raises(InvalidRegisterError) as exc_info:
            resolver.resolve("add r1, r2, r32", pc=0)
        assert exc_info.value.reason == InvalidRegisterError.OUT_OF_RANGE


# =============================================================================
# Memory Operand Tests
# =============================================================================

class TestMemoryOperands:
    """offset(base) is split into an offset and a base register."""

    def test_split_memory_operand(self):
        assert split_memory_operand("8(sp)") == ("8", "sp")
        assert split_memory_operand(" -4(r3) ") == ("-4", "r3")
        assert split_memory_operand("0x10 (r3)") == ("0x10", "r3")

    def test_bare_base_register(self):
        assert split_memory_operand("r4") == ("0", "r4")

    @pytest.mark.parametrize("token", ["8(sp", "8sp)", "(sp)", "8(sp)x"])
    def test_malformed(self, token):
        with pytest.raises(OperandSyntaxError) as exc_info:
            split_memory_operand(token)
        assert "offset(base)" in exc_info.value.hint

    def test_load(self, resolver):
        inst = resolver.resolve("ld r4, 8(sp)", pc=0)
        assert inst.operands == (Register(4), Immediate(8), Register(2))

    def test_store_without_offset(self, resolver):
        inst = resolver.resolve("st r3, r4", pc=0)
        assert inst.operands == (Register(3), Immediate(0), Register(4))

    def test_store_pair(self, resolver):
        inst = resolver.resolve("stp r1, r2, -4(sp)", pc=0)
        assert inst.operands == (Register(1), Register(2), Immediate(-4), Register(2))

    def test_label_as_offset(self, resolver):
        inst = resolver.resolve("ld r1, done(r0)", pc=0)
        assert inst.operands[1] == ResolvedAddress(8, "done")


# =============================================================================
# Immediate Operand Tests
# =============================================================================

class TestImmediateOperands:
    """Integer literals, and labels standing in for their address."""

    def test_literal(self, resolver):
        inst = resolver.resolve("slti r1, r2, -1", pc=0)
        assert inst.operands[2] == Immediate(-1)

    def test_label_substitution(self, resolver):
        inst = resolver.resolve("slti r1, r2, done", pc=0)
        assert inst.operands[2] == ResolvedAddress(8, "done")
        assert operand_value(inst.operands[2]) == 8

    def test_undefined_label(self, resolver):
        with pytest.raises(UnresolvedLabelError) as exc_info:
            resolver.resolve("rori r1, r2, shift", pc=0)
        assert exc_info.value.label == "shift"

    def test_malformed_literal(self, resolver):
        with pytest.raises(OperandSyntaxError):
            resolver.resolve("ssat r1, r2, 0xZZ", pc=0)

    def test_syscall_default_code(self, resolver):
        assert resolver.resolve("syscall", pc=0).operands == (Immediate(0),)

    def test_syscall_with_code(self, resolver):
        assert resolver.resolve("syscall 0x10", pc=0).operands == (Immediate(16),)

    def test_operand_value_rejects_register(self):
        with pytest.raises(OperandSyntaxError):
            operand_value(Register(1))


# =============================================================================
# Jump and Branch Target Tests
# =============================================================================

class TestTargets:
    """Jump targets stay absolute; branch targets become word offsets."""

    def test_jump_label(self, resolver):
        inst = resolver.resolve("j loop", pc=8)
        assert inst.operands == (ResolvedAddress(0, "loop"),)

    def test_jump_literal_address(self, resolver):
        assert resolver.resolve("j 0x100", pc=0).operands == (ResolvedAddress(0x100),)

    def test_forward_branch(self, resolver):
        inst = resolver.resolve("beq r0, r1, done", pc=0)
        assert inst.operands == (Register(0), Register(1), Immediate(2))

    def test_backward_branch(self, resolver):
        inst = resolver.resolve("bne r1, r2, loop", pc=8)
        assert inst.operands[2] == Immediate(-2)

    def test_branch_to_self(self, resolver):
        assert resolver.resolve("beq r0, r0, loop", pc=0).operands[2] == Immediate(0)

    def test_branch_offset_law(self, resolver):
        pc = 12
        inst = resolver.resolve("beq r0, r0, done", pc=pc)
        assert pc + inst.operands[2].value * 4 == 8

    def test_misaligned_literal_branch_target(self, resolver):
        with pytest.raises(MisalignedAddressError) as exc_info:
            resolver.resolve("beq r0, r1, 6", pc=0)
        assert exc_info.value.value == 6
        assert "branch target must be word-aligned: 6" in str(exc_info.value)

    def test_undefined_branch_label_with_hint(self, resolver):
        with pytest.raises(UnresolvedLabelError) as exc_info:
            resolver.resolve("bne r1, r2, lop", pc=4)
        assert exc_info.value.similar_labels == ["loop"]
        assert "did you mean 'loop'?" in str(exc_info.value)

    def test_invalid_target(self, resolver):
        with pytest.raises(OperandSyntaxError):
            resolver.resolve("j 8(r1)", pc=0)


# =============================================================================
# Instruction Shape Tests
# =============================================================================

class TestInstructionShape:
    """Mnemonic and operand count checks."""

    def test_unknown_mnemonic(self, resolver):
        with pytest.raises(UnknownMnemonicError):
            resolver.resolve("mul r1, r2, r3", pc=0)

    def test_too_few_operands(self, resolver):
        with pytest.raises(OperandSyntaxError) as exc_info:
            resolver.resolve("add r1, r2", pc=0)
        assert "'add' expects 3 operand(s), got 2" in str(exc_info.value)
        assert exc_info.value.hint == "usage: add rd, rs, rt"

    def test_too_many_operands(self, resolver):
        with pytest.raises(OperandSyntaxError):
            resolver.resolve("cls r1, r2, r3", pc=0)

    def test_jump_without_target(self, resolver):
        with pytest.raises(OperandSyntaxError):
            resolver.resolve("j", pc=0)
