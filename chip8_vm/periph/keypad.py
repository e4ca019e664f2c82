"""
CHIP-8 Virtual Machine — 16-Key Hex Pad + Wait-Key Latch

Key layout on the original pad:

  1 2 3 C
  4 5 6 D
  7 8 9 E
  A 0 B F

State is a 16-bit mask, bit k set while key k is held. Fx0A arms the
wait latch; the CPU then stalls until a key goes down, at which point
the key number is handed back so the emulator can store it in Vx.
"""

import logging
from typing import Optional

log = logging.getLogger(__name__)

NUM_KEYS = 16


class Keypad:
    """Key mask plus the Fx0A wait latch."""

    def __init__(self):
        self.keys = 0x0000
        self.waiting = False     # Fx0A latch
        self.target = 0          # Vx index that receives the key

    def is_down(self, key: int) -> bool:
        # Vx values above F name no key and always read as up
        return 0 <= key < NUM_KEYS and bool(self.keys & (1 << key))

    def wait_for_key(self, target: int):
        """Arm the latch (Fx0A)."""
        self.waiting = True
        self.target = target & 0xF

    def set_state(self, key: int, down: bool) -> Optional[int]:
        """Update one key.

        Returns the key number when a down-edge resolves an armed latch,
        otherwise None. A key already held does not count as a new press.
        """
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key out of range: {key!r} (expected 0x0-0xF)")
        mask = 1 << key
        was_down = bool(self.keys & mask)
        if down:
            self.keys |= mask
            if not was_down:
                log.debug("key %X down, keys=%04X", key, self.keys)
            if self.waiting and not was_down:
                self.waiting = False
                return key
        else:
            self.keys &= ~mask & 0xFFFF
        return None

    def reset(self):
        self.keys = 0x0000
        self.waiting = False
        self.target = 0
