"""
tiny32 Simulator Package
========================

Runs tiny32 binary images on a simulated CPU.

Usage:
    from tiny32.simulator import CPU

    cpu = CPU()
    cpu.load_file("prog.bin")
    event = cpu.run()
    print(event.reason, cpu.format_registers())
"""

from .cpu import (
    CPU,
    StopEvent,
    StopReason,
    bit_deposit,
    count_leading_sign,
    rotate_right,
    saturate_signed,
)
from .memory import Memory

__all__ = [
    "CPU",
    "Memory",
    "StopEvent",
    "StopReason",
    "bit_deposit",
    "count_leading_sign",
    "rotate_right",
    "saturate_signed",
]
