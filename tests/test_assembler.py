# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end tests for the two-pass tiny32 assembler, from source text to
# ProgramImage and binary output.
#
# Test coverage includes:
#   - Complete program assembly
#   - Forward and backward label references
#   - Error reporting with line numbers and program counter
#   - Output files (binary, listing, symbols)
#   - Edge cases and boundary conditions
# =============================================================================

import importlib
import struct
from dataclasses import replace
from types import MappingProxyType

import pytest

from tiny32 import __version__
from tiny32.assembler import Assembler, assemble, assemble_file
from tiny32.assembler.preprocessor import iter_source_lines
from tiny32.assembler.symbols import build_symbol_table
from tiny32.config import AssemblerConfig
from tiny32.errors import (
    AssemblerError,
    DuplicateLabelError,
    InternalConsistencyError,
    InvalidRegisterError,
    OperandSyntaxError,
    UnknownMnemonicError,
    UnresolvedLabelError,
)


# =============================================================================
# Full Assembly Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete assembly pipeline from source to image."""

    def test_label_and_backward_jump(self):
        """A jump back to the first instruction."""
        image = assemble("start:  add r1, r2, r3\n        j start\n")
        assert image.words == (0x0043082B, 0x9C000000)
        assert dict(image.symbols) == {"start": 0}

    def test_forward_branch(self):
        """Branch over one instruction to a label defined later."""
        image = assemble("""
            beq r0, r1, done
            add r2, r2, r2
        done:
        """)
        assert len(image) == 2
        assert image.words[0] & 0xFFFF == 2
        assert image.symbols["done"] == 8

    def test_memory_operand(self):
        assert assemble("ld r4, 8(sp)").words == (0x68440008,)

    def test_raw_word(self):
        assert assemble("0x1234").words == (0x00001234,)

    def test_mixed_program(self):
        source = """
        ; compute and store
        main:   ld   r4, 0(sp)
                slti r5, r4, 10
                beq  r5, zero, skip
                add  r4, r4, r4
        skip:   st   r4, 4(sp)
                syscall 1
        table:  0xCAFEBABE
                j main
        """
        image = assemble(source)
        assert len(image) == 8
        assert dict(image.symbols) == {"main": 0, "skip": 16, "table": 24}
        assert image.words[6] == 0xCAFEBABE
        assert image.words[7] == 0x9C000000

    def test_empty_source(self):
        image = assemble("")
        assert image.words == ()
        assert image.to_bytes() == b""

    def test_only_comments(self):
        image = assemble("; nothing\n   ; here\n\n")
        assert len(image) == 0

    def test_form_feed_in_comment(self):
        image = assemble("add r1, r2, r3 ; see page\x0cnext\n")
        assert image.words == (0x0043082B,)

    def test_unicode_line_separator_in_comment(self):
        image = assemble("start: add r1, r2, r3 ; note\u2028done\n       j start\n")
        assert image.words == (0x0043082B, 0x9C000000)
        assert [entry.line_number for entry in image.listing] == [1, 2]

    def test_mnemonics_case_insensitive(self):
        assert assemble("ADD r1, r2, r3").words == assemble("add r1, r2, r3").words

    def test_labels_case_sensitive(self):
        with pytest.raises(UnresolvedLabelError):
            assemble("Loop:\n  j loop\n")

    def test_label_as_immediate(self):
        image = assemble("slti r1, r2, data\ndata: 0\n")
        assert image.words[0] & 0xFFFF == 4

    def test_word_count_matches_end_address(self):
        asm = Assembler()
        image = asm.assemble_string("a: add r1, r1, r1\nb: j a\n0x10\nend:\n")
        assert len(image) * 4 == asm.get_pass1_result().end_address
        assert image.end_address == image.symbols["end"] == 12

    def test_version(self):
        assert __version__ == "1.0.0"

    @pytest.mark.parametrize("module", [
        "tiny32",
        "tiny32.errors",
        "tiny32.cpu.isa",
        "tiny32.assembler.assembler",
        "tiny32.assembler.encoder",
        "tiny32.disassembler.decoder",
        "tiny32.simulator.cpu",
        "tiny32.simulator.memory",
        "tiny32.cli.t32asm",
        "tiny32.cli.t32disasm",
        "tiny32.cli.t32sim",
    ])
    def test_module_docstring_copyright(self, module):
        doc = importlib.import_module(module).__doc__
        assert doc.rstrip().endswith("Copyright (c) 2026 tiny32 Contributors")


# =============================================================================
# Label Reference Tests
# =============================================================================

class TestLabelReferences:
    """Every label in the file is visible from every line."""

    def test_multiple_forward_references(self):
        image = assemble("""
            j end
            beq r1, r2, end
            bne r1, r2, mid
        mid:
            add r1, r1, r1
        end:
        """)
        assert image.words[0] == 0x9C000000 | (16 >> 2)
        assert image.words[1] & 0xFFFF == (16 - 4) >> 2
        assert image.words[2] & 0xFFFF == 1

    def test_branch_offset_law(self):
        """pc + offset * 4 lands on the target for every branch."""
        source = """
        top:    add r1, r1, r1
                beq r0, r0, top
                bne r0, r1, bottom
                add r2, r2, r2
        bottom: beq r1, r1, top
        """
        image = assemble(source)
        for entry in image.listing:
            if (entry.word >> 26) not in (0b000010, 0b100100):
                continue
            offset = entry.word & 0xFFFF
            if offset & 0x8000:
                offset -= 0x10000
            target = entry.address + offset * 4
            assert target in image.symbols.values()

    def test_duplicate_label_later_wins(self):
        image = assemble("x: add r1, r1, r1\nx: add r2, r2, r2\nj x\n")
        assert image.words[2] == 0x9C000001

    def test_duplicate_label_strict(self):
        with pytest.raises(DuplicateLabelError):
            assemble("x:\nx:\n", strict_labels=True)

    def test_strict_from_config(self):
        asm = Assembler(AssemblerConfig(strict_labels=True))
        with pytest.raises(DuplicateLabelError):
            asm.assemble_string("x:\nx:\n")


# =============================================================================
# Error Reporting Tests
# =============================================================================

class TestErrorReporting:
    """Errors carry file, line, column and program counter."""

    def test_undefined_label_context(self):
        source = "loop: add r1, r1, r1\n      bne r1, r2, lop\n"
        with pytest.raises(UnresolvedLabelError) as exc_info:
            assemble(source, filename="prog.s")
        error = exc_info.value
        assert error.location.line == 2
        assert error.address == 4
        message = str(error)
        assert message.startswith("prog.s:2:7: error: undefined label 'lop' (at pc=0x00000004)")
        assert "    bne r1, r2, lop" in message
        assert "hint: did you mean 'loop'?" in message

    def test_unknown_mnemonic_line_number(self):
        with pytest.raises(UnknownMnemonicError) as exc_info:
            assemble("add r1, r1, r1\n\nmul r1, r2, r3\n")
        assert exc_info.value.location.line == 3
        assert exc_info.value.address == 4

    def test_bad_register(self):
        with pytest.raises(InvalidRegisterError) as exc_info:
            assemble("cls r1, r40")
        assert "register out of range: 'r40'" in str(exc_info.value)

    def test_operand_count(self):
        with pytest.raises(OperandSyntaxError) as exc_info:
            assemble("ld r1")
        assert "'ld' expects 3 operand(s), got 2" in str(exc_info.value)

    def test_first_error_aborts(self):
        asm = Assembler()
        with pytest.raises(AssemblerError):
            asm.assemble_string("j nowhere\nmul r1, r2, r3\n")
        with pytest.raises(AssemblerError, match="no program has been assembled"):
            asm.get_image()

    def test_failed_run_discards_previous_image(self):
        asm = Assembler()
        asm.assemble_string("add r1, r1, r1")
        with pytest.raises(AssemblerError):
            asm.assemble_string("j nowhere")
        with pytest.raises(AssemblerError):
            asm.get_words()


# =============================================================================
# Pass Consistency Tests
# =============================================================================

class TestPassConsistency:
    """Pass 2 refuses to encode against addresses it did not reproduce."""

    SOURCE = "start: add r1, r1, r1\n       j start\n"

    def _pass1(self):
        return build_symbol_table(iter_source_lines(self.SOURCE))

    def test_matching_passes(self):
        image = Assembler()._pass2(iter_source_lines(self.SOURCE), self._pass1(), "a.s")
        assert image.words == (0x0021082B, 0x9C000000)

    def test_line_address_mismatch(self):
        pass1 = self._pass1()
        shifted = replace(pass1, line_addresses=MappingProxyType({1: 4, 2: 8}))
        with pytest.raises(InternalConsistencyError) as exc_info:
            Assembler()._pass2(iter_source_lines(self.SOURCE), shifted, "a.s")
        error = exc_info.value
        assert "pass 2 reached line 1 at 0x00000000, pass 1 assigned 0x00000004" in str(error)
        assert error.location.filename == "a.s"
        assert error.location.line == 1

    def test_line_missing_from_pass1(self):
        pass1 = self._pass1()
        partial = replace(pass1, line_addresses=MappingProxyType({1: 0}))
        with pytest.raises(InternalConsistencyError, match="pass 1 assigned none"):
            Assembler()._pass2(iter_source_lines(self.SOURCE), partial, "a.s")

    def test_end_address_mismatch(self):
        pass1 = self._pass1()
        longer = replace(pass1, end_address=12)
        with pytest.raises(InternalConsistencyError,
                           match="pass 2 ended at 0x00000008, pass 1 ended at 0x0000000C"):
            Assembler()._pass2(iter_source_lines(self.SOURCE), longer, "a.s")


# =============================================================================
# Output Tests
# =============================================================================

class TestOutput:
    """Binary, listing, symbol and dump output."""

    SOURCE = "start:  add r1, r2, r3\n        j start ; loop forever\n"

    def test_binary_little_endian(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(self.SOURCE)
        out = tmp_path / "prog.bin"
        asm.write_binary(out)
        data = out.read_bytes()
        assert data == bytes([0x2B, 0x08, 0x43, 0x00, 0x00, 0x00, 0x00, 0x9C])
        assert struct.unpack("<2I", data) == asm.get_words()
        assert asm.get_code() == data

    def test_format_dump(self):
        assert assemble(self.SOURCE).format_dump() == (
            "Label Symbol Table:\n"
            "  start: 0x0\n"
            "\n"
            "Encoded Instructions:\n"
            "0000 (pc=0x00000000): 0x0043082B\n"
            "0001 (pc=0x00000004): 0x9C000000\n"
        )

    def test_listing(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(self.SOURCE)
        path = tmp_path / "prog.lst"
        asm.write_listing(path)
        lines = path.read_text().splitlines()
        assert len(lines) == 3
        assert lines[1] == "    1  00000000  0043082B  start:  add r1, r2, r3"
        assert lines[2].endswith("9C000000  j start")

    def test_symbols_file(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("b: add r1, r1, r1\na: add r1, r1, r1\nc:\n")
        path = tmp_path / "prog.sym"
        asm.write_symbols(path)
        assert path.read_text() == (
            "b = 0x00000000\n"
            "a = 0x00000004\n"
            "c = 0x00000008\n"
        )

    def test_get_symbols_is_a_copy(self):
        asm = Assembler()
        asm.assemble_string(self.SOURCE)
        symbols = asm.get_symbols()
        symbols["other"] = 4
        assert "other" not in asm.get_symbols()

    def test_assemble_file(self, tmp_path):
        src = tmp_path / "prog.s"
        src.write_text(self.SOURCE)
        image = assemble_file(src)
        assert image.words == (0x0043082B, 0x9C000000)

    def test_assemble_file_error_names_file(self, tmp_path):
        src = tmp_path / "bad.s"
        src.write_text("j nowhere\n")
        with pytest.raises(UnresolvedLabelError) as exc_info:
            assemble_file(src)
        assert str(exc_info.value).startswith(f"{src}:1:1: error:")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            assemble_file(tmp_path / "missing.s")
