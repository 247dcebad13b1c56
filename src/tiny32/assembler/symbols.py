"""
tiny32 Symbol Table Builder (Pass 1)
====================================

Pass 1 walks the preprocessed source once and assigns every label the byte
address of the next word to be emitted. No operand is looked at.

The result is a Pass1Result holding both the finished symbol table and the
address pass 1 gave to every word-emitting line. Pass 2 receives it as an
immutable input and checks its own program counter against
``line_addresses`` line by line, so the two passes can never drift apart
unnoticed.

Duplicate Labels
----------------
By default a label defined twice keeps the later address. With
``strict=True`` the second definition raises DuplicateLabelError.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from tiny32.assembler.preprocessor import SourceLine
from tiny32.cpu.isa import WORD_MASK, WORD_SIZE
from tiny32.errors import DuplicateLabelError, SourceLocation

logger = logging.getLogger(__name__)


# =============================================================================
# Pass 1 Result
# =============================================================================

@dataclass(frozen=True)
class Pass1Result:
    """
    Output of pass 1.

    Attributes:
        symbols: Label name -> byte address (read-only view)
        line_addresses: Source line number -> address of the word it emits,
                        for every line that emits a word
        end_address: Program counter after the last line
    """
    symbols: Mapping[str, int]
    line_addresses: Mapping[int, int]
    end_address: int

    @property
    def word_count(self) -> int:
        return len(self.line_addresses)

    def address_of(self, label: str) -> int:
        """Address of a label; KeyError if undefined."""
        return self.symbols[label]

    def find_similar_labels(self, name: str) -> list[str]:
        """
        Find labels with similar names for error hints.

        Uses simple edit distance heuristic.
        """
        name_lower = name.lower()
        similar = []

        for label in self.symbols:
            label_lower = label.lower()
            if (
                label_lower == name_lower or
                abs(len(label) - len(name)) <= 1 and
                _edit_distance(name_lower, label_lower) <= 2
            ):
                similar.append(label)

        return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(distances[j], distances[j + 1], new_distances[-1]))
        distances = new_distances

    return distances[-1]


# =============================================================================
# Pass 1
# =============================================================================

def build_symbol_table(
    lines: Iterable[SourceLine],
    filename: str = "<input>",
    strict: bool = False,
) -> Pass1Result:
    """
    Run pass 1 over preprocessed lines.

    Args:
        lines: SourceLine records in file order
        filename: Source name for error locations
        strict: Reject duplicate labels instead of overwriting

    Returns:
        Pass1Result with the complete symbol table

    Raises:
        DuplicateLabelError: Only when strict is set
    """
    symbols: dict[str, int] = {}
    definitions: dict[str, SourceLocation] = {}
    line_addresses: dict[int, int] = {}
    pc = 0

    for line in lines:
        if line.label is not None:
            location = SourceLocation(filename, line.number, 1)
            if line.label in symbols:
                if strict:
                    raise DuplicateLabelError(
                        line.label,
                        location=location,
                        original_location=definitions[line.label],
                        source_line=line.text,
                    )
                logger.debug(
                    f"Label '{line.label}' redefined at line {line.number}: "
                    f"0x{symbols[line.label]:08X} -> 0x{pc:08X}"
                )
            else:
                logger.debug(f"Label '{line.label}' = 0x{pc:08X}")
            symbols[line.label] = pc
            definitions[line.label] = location

        if line.emits_word:
            line_addresses[line.number] = pc
            pc = (pc + WORD_SIZE) & WORD_MASK

    logger.debug(f"Pass 1 complete: {len(symbols)} labels, {len(line_addresses)} words")

    return Pass1Result(
        symbols=MappingProxyType(symbols),
        line_addresses=MappingProxyType(line_addresses),
        end_address=pc,
    )
