"""
tiny32 Line Preprocessor
========================

This module turns raw source lines into SourceLine records. It is the only
place that knows the line-level syntax of the assembly language; both
assembler passes call it on the raw text, so neither pass ever sees state
left behind by the other.

Line Syntax
-----------
```asm
; comment                     skipped entirely
loop:                         label only, emits nothing
loop:  add r1, r1, r2         label + instruction
       add r1, r1, r2         instruction
       0x1234                 raw word directive
done:  #-1                    label + raw word directive
```

Comments start at the first ``;``. A label is ``identifier:`` where the
identifier matches ``[A-Za-z_]\\w*``. A line that is nothing but an integer
literal (decimal, ``0x`` hex, optionally ``#``- or ``-``-prefixed) is emitted
as a data word without any mnemonic lookup.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional

from tiny32.errors import OperandSyntaxError


# =============================================================================
# Patterns
# =============================================================================

COMMENT_CHAR = ";"

LABEL_PATTERN = re.compile(r"^([A-Za-z_]\w*):(?:\s*(.*))?$")

# "#" then "-" are optional, in that order; hex prefix is case-insensitive
INTEGER_PATTERN = re.compile(r"^#?-?(?:0[xX][0-9a-fA-F]+|\d+)$")

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_]\w*$")


# =============================================================================
# Source Line
# =============================================================================

class LineKind(Enum):
    """What a preprocessed line contributes to the program."""
    LABEL_ONLY = auto()    # defines a label, emits nothing
    INSTRUCTION = auto()   # mnemonic + operands, emits one word
    RAW_WORD = auto()      # integer literal, emits one word


@dataclass(frozen=True)
class SourceLine:
    """
    One non-blank source line after comment stripping.

    Attributes:
        number: Line number in the source file (1-indexed)
        raw_text: The line as read, without the trailing newline
        label: Leading label name, if any
        instruction_text: Text after the label (or the whole line), if any
        kind: What the line emits
    """
    number: int
    raw_text: str
    label: Optional[str]
    instruction_text: Optional[str]
    kind: LineKind

    @property
    def emits_word(self) -> bool:
        return self.kind is not LineKind.LABEL_ONLY

    @property
    def text(self) -> str:
        """Source text without the comment, for listings and error messages."""
        return strip_comment(self.raw_text)


# =============================================================================
# Preprocessing
# =============================================================================

def strip_comment(line: str) -> str:
    """Remove everything from the first ';' and surrounding whitespace."""
    return line.split(COMMENT_CHAR, 1)[0].strip()


def is_integer_literal(text: str) -> bool:
    """Check whether text is a complete integer literal."""
    return INTEGER_PATTERN.match(text.strip()) is not None


def parse_integer(text: str) -> int:
    """
    Parse an integer literal.

    Accepted forms: ``42``, ``-42``, ``0x2A``, ``-0x2A``, ``#42``, ``#-0x2A``.

    Raises:
        OperandSyntaxError: If text is not an integer literal
    """
    s = text.strip()
    if not INTEGER_PATTERN.match(s):
        raise OperandSyntaxError(f"invalid integer literal {text!r}")

    if s.startswith("#"):
        s = s[1:]
    negative = s.startswith("-")
    if negative:
        s = s[1:]

    if s[:2].lower() == "0x":
        value = int(s[2:], 16)
    else:
        value = int(s, 10)
    return -value if negative else value


def preprocess_line(raw_text: str, number: int = 0) -> Optional[SourceLine]:
    """
    Classify a single source line.

    Args:
        raw_text: The line text (a trailing newline is ignored)
        number: Line number for error reporting

    Returns:
        SourceLine, or None for blank and comment-only lines
    """
    raw_text = raw_text.rstrip("\r\n")
    clean = strip_comment(raw_text)
    if not clean:
        return None

    label = None
    body = clean
    match = LABEL_PATTERN.match(clean)
    if match:
        label = match.group(1)
        rest = match.group(2)
        if rest is None or not rest.strip():
            return SourceLine(number, raw_text, label, None, LineKind.LABEL_ONLY)
        body = rest.strip()

    kind = LineKind.RAW_WORD if is_integer_literal(body) else LineKind.INSTRUCTION
    return SourceLine(number, raw_text, label, body, kind)


def iter_source_lines(source: str) -> Iterator[SourceLine]:
    """Yield the SourceLine for every non-blank line of source, in order."""
    # Only LF ends a line; form feeds and Unicode separators stay in the text.
    for number, raw_text in enumerate(source.split("\n"), start=1):
        line = preprocess_line(raw_text, number)
        if line is not None:
            yield line


def split_instruction(text: str) -> tuple[str, list[str]]:
    """
    Split instruction text into mnemonic and operand tokens.

    The mnemonic is returned as written; operands are comma separated,
    individually trimmed, and empty entries are dropped.

        >>> split_instruction("add r1, r2 ,r3")
        ('add', ['r1', 'r2', 'r3'])
    """
    parts = text.strip().split(None, 1)
    mnemonic = parts[0]
    operand_text = parts[1] if len(parts) > 1 else ""
    operands = [op.strip() for op in operand_text.split(",")]
    return mnemonic, [op for op in operands if op]
