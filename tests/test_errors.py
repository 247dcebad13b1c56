# =============================================================================
# test_errors.py - Error Hierarchy and Formatting Tests
# =============================================================================

import pytest

from tiny32.errors import (
    AssemblerError,
    DuplicateLabelError,
    ImageFormatError,
    InternalConsistencyError,
    InvalidRegisterError,
    MisalignedAddressError,
    OperandSyntaxError,
    SourceLocation,
    Tiny32Error,
    UnknownMnemonicError,
    UnresolvedLabelError,
)


class TestHierarchy:
    """Every toolchain error is a Tiny32Error."""

    @pytest.mark.parametrize("cls", [
        UnresolvedLabelError,
        MisalignedAddressError,
        InvalidRegisterError,
        UnknownMnemonicError,
        OperandSyntaxError,
        DuplicateLabelError,
        InternalConsistencyError,
    ])
    def test_assembler_errors(self, cls):
        assert issubclass(cls, AssemblerError)
        assert issubclass(cls, Tiny32Error)

    def test_image_error_is_not_assembler_error(self):
        assert issubclass(ImageFormatError, Tiny32Error)
        assert not issubclass(ImageFormatError, AssemblerError)


class TestFormatting:
    """Location, source line, caret and hint."""

    def test_location_str(self):
        assert str(SourceLocation("a.s", 3, 5)) == "a.s:3:5"
        assert str(SourceLocation("a.s", 3)) == "a.s:3"

    def test_bare_message(self):
        assert str(AssemblerError("boom")) == "error: boom"

    def test_full_message(self):
        error = OperandSyntaxError(
            "bad operand",
            location=SourceLocation("a.s", 2, 5),
            hint="try again",
            source_line="add r1, r2",
            address=8,
        )
        assert str(error).splitlines() == [
            "a.s:2:5: error: bad operand (at pc=0x00000008)",
            "    add r1, r2",
            "        ^",
            "hint: try again",
        ]

    def test_with_context_fills_missing_fields(self):
        error = MisalignedAddressError("LD offset", 6)
        error.with_context(SourceLocation("a.s", 4, 1), "ld r1, 6(sp)", 12)
        message = str(error)
        assert message.startswith("a.s:4:1: error: LD offset must be word-aligned: 6 (at pc=0x0000000C)")
        assert "ld r1, 6(sp)" in message

    def test_with_context_keeps_existing_fields(self):
        error = UnresolvedLabelError("x", location=SourceLocation("a.s", 1), address=0)
        error.with_context(SourceLocation("b.s", 9), "j x", 40)
        assert error.location.filename == "a.s"
        assert error.address == 0
        assert error.source_line == "j x"

    def test_bad_register_hint(self):
        error = InvalidRegisterError("q1")
        assert error.hint.startswith("registers are r0-r31")
        assert InvalidRegisterError("r50", InvalidRegisterError.OUT_OF_RANGE).hint is None

    def test_unresolved_label_without_suggestions(self):
        assert UnresolvedLabelError("x").hint is None
