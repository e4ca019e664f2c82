# CHIP-8 Virtual Machine — interpreter core for the classic 8-bit
# interpreted architecture (4K memory, V0–VF, 64x32 display, hex pad).
#
# Layout:
#   cpu/     register file, decoder, ALU
#   mem/     4K memory + font
#   periph/  timers, display, keypad
#   emu.py   Chip8Emulator — fetch/decode/execute + query surface
#   media.py pygame presentation layer (imported only by the CLI)

from .emu import Chip8Emulator
from .errors import (
    Chip8Error, LoadError, StackError, StackOverflow, StackUnderflow, DecodeError,
)

__version__ = "0.1.0"

__all__ = [
    "Chip8Emulator",
    "Chip8Error", "LoadError", "StackError", "StackOverflow", "StackUnderflow",
    "DecodeError",
]
