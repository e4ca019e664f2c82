"""
CHIP-8 Virtual Machine — Delay + Sound Timers

Two independent 8-bit down-counters clocked at 60 Hz by the driver,
not by instruction execution:

  DT  — delay timer, readable by programs (Fx07) for pacing
  ST  — sound timer, write-only from the program side (Fx18).
        The buzzer sounds for as long as ST is nonzero.

Each tick decrements a nonzero counter by one; zero stays zero.
"""


class TimerPeripheral:
    """Delay and sound timer pair."""

    def __init__(self):
        self.delay = 0
        self.sound = 0

    def set_delay(self, value: int):
        self.delay = value & 0xFF

    def set_sound(self, value: int):
        self.sound = value & 0xFF

    def tick(self):
        """One 60 Hz period elapsed."""
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1

    @property
    def buzzer_active(self) -> bool:
        return self.sound > 0

    def reset(self):
        self.delay = 0
        self.sound = 0
