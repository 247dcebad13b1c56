"""
tiny32 Disassembler Package
===========================

Decodes tiny32 binary images back into assembly text.

Usage:
    from tiny32.disassembler import Disassembler, decode_word

    disasm = Disassembler()
    instructions = disasm.disassemble(image_bytes)

    instr = decode_word(0x0043082B)
    print(instr.text)   # add r1, r2, r3
"""

from .decoder import Disassembler, DecodedInstruction, decode_word, sign_extend

__all__ = [
    "Disassembler",
    "DecodedInstruction",
    "decode_word",
    "sign_extend",
]
