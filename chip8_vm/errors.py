"""
CHIP-8 Virtual Machine — Fatal Condition Taxonomy

Every condition here stops the interpreter session. None of them are
retried: the core has no notion of a transient failure.

  LoadError       — program image too large, or ROM file unreadable
  StackOverflow   — 2nnn CALL with all 16 stack slots in use
  StackUnderflow  — 00EE RET with an empty stack
  DecodeError     — opcode word not in the instruction table
"""

from typing import Optional


class Chip8Error(Exception):
    """Base class for all fatal interpreter conditions."""


class LoadError(Chip8Error):
    pass


class StackError(Chip8Error):
    """Call/return beyond the 16-entry stack."""

    def __init__(self, message: str, pc: Optional[int] = None):
        super().__init__(message)
        self.pc = pc


class StackOverflow(StackError):
    pass


class StackUnderflow(StackError):
    pass


class DecodeError(Chip8Error):
    """Opcode bit pattern not recognized by the decoder.

    Carries the raw word and the address it was fetched from so the
    diagnostic can name the failing instruction.
    """

    def __init__(self, opcode: int, address: Optional[int] = None):
        self.opcode = opcode & 0xFFFF
        self.address = address
        if address is None:
            msg = f"Illegal opcode {self.opcode:04X}"
        else:
            msg = f"Illegal opcode {self.opcode:04X} at ${address:03X}"
        super().__init__(msg)
