"""
CHIP-8 Virtual Machine — 4K Memory Map

Memory map:
  $000–$0FF  Reserved (interpreter area on the original hardware)
  $100–$14F  Hex digit font — 16 glyphs x 5 bytes, rewritten on reset
  $150–$1FF  Unused
  $200–$FFF  Program image + program data

All addresses wrap modulo 4096. Nothing is write-protected: programs are
free to overwrite the font or their own code.
"""

import logging
from pathlib import Path
from typing import Dict

from ..errors import LoadError

log = logging.getLogger(__name__)

MEM_SIZE = 0x1000
ADDR_MASK = MEM_SIZE - 1
PROGRAM_BASE = 0x200
FONT_BASE = 0x100
FONT_GLYPH_BYTES = 5
MAX_PROGRAM_SIZE = MEM_SIZE - PROGRAM_BASE

# 4x5 hex digit sprites 0–F (high nibble of each byte is the pixel row)
FONT = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


class Memory:
    """4K byte-addressable memory."""

    def __init__(self):
        self._mem = bytearray(MEM_SIZE)

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        return self._mem[addr & ADDR_MASK]

    def write8(self, addr: int, value: int):
        self._mem[addr & ADDR_MASK] = value & 0xFF

    def read16(self, addr: int) -> int:
        """Read 16-bit value (big-endian)."""
        return (self.read8(addr) << 8) | self.read8(addr + 1)

    def read_block(self, addr: int, length: int) -> bytes:
        """Read `length` bytes starting at addr, wrapping at $FFF."""
        return bytes(self._mem[(addr + i) & ADDR_MASK] for i in range(length))

    # --- Bulk load ---

    def clear(self):
        """Zero-fill the whole address space."""
        self._mem[:] = bytes(MEM_SIZE)

    def load_font(self):
        """Copy the hex digit glyphs to FONT_BASE."""
        self._mem[FONT_BASE:FONT_BASE + len(FONT)] = FONT

    def load_binary(self, data: bytes, base_addr: int = PROGRAM_BASE):
        """Copy a raw program image into memory at base_addr.

        The image must fit between base_addr and the top of memory;
        otherwise LoadError is raised and memory is left untouched.
        """
        data = bytes(data)
        room = MEM_SIZE - base_addr
        if len(data) > room:
            raise LoadError(
                f"Program image is {len(data)} bytes, only {room} bytes "
                f"available at ${base_addr:03X}")
        self._mem[base_addr:base_addr + len(data)] = data
        log.info("Loaded %d bytes at $%03X", len(data), base_addr)

    def load_file(self, path, base_addr: int = PROGRAM_BASE):
        """Load a raw ROM file (no header) from disk."""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise LoadError(f"Cannot read ROM {path}: {e}") from e
        self.load_binary(data, base_addr)

    # --- Snapshots (determinism checks, state diffing) ---

    def snapshot(self, start: int = 0, end: int = ADDR_MASK) -> bytes:
        """Copy of memory from start to end inclusive."""
        return bytes(self._mem[start:end + 1])

    def diff_snapshots(self, snap_a: bytes, snap_b: bytes,
                       base_addr: int = 0) -> Dict[int, tuple]:
        """Compare two snapshots, return {addr: (old, new)} for changes."""
        changes = {}
        for i in range(min(len(snap_a), len(snap_b))):
            if snap_a[i] != snap_b[i]:
                changes[base_addr + i] = (snap_a[i], snap_b[i])
        return changes

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 256) -> str:
        """Produce a hex dump of memory for debugging."""
        lines = []
        for offset in range(0, length, 16):
            addr = (start + offset) & ADDR_MASK
            row = self.read_block(addr, 16)
            hex_bytes = ' '.join(f'{b:02X}' for b in row)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in row)
            lines.append(f'{addr:03X}  {hex_bytes}  {ascii_bytes}')
        return '\n'.join(lines)
