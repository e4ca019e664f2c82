"""
CHIP-8 Virtual Machine — Runtime Configuration
==============================================

Defaults for the pacing driver and the presentation layer. The core
only reads RNG_SEED and CYCLES_PER_FRAME; everything else belongs to
chip8run.py and media.py.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


# =============================================================================
#  CORE
# =============================================================================
RNG_SEED = 1234                 # fixed seed: Cxkk output is reproducible

# =============================================================================
#  PACING (reference cadence: ~500 instructions/s, 60 Hz timers)
# =============================================================================
INSTRUCTIONS_PER_SECOND = 500
FRAME_HZ = 60
CYCLES_PER_FRAME = INSTRUCTIONS_PER_SECOND // FRAME_HZ   # = 8
FRAME_MS = 16                   # ~1000 / 60, minimum 1 ms delay when late
TRACE_DEPTH = 4096              # trace lines kept; older ones drop off

# =============================================================================
#  PRESENTATION
# =============================================================================
WINDOW_SCALE = 10               # 64x32 → 640x320
COLOR_ON = (0xFF, 0xFF, 0xFF)
COLOR_OFF = (0x33, 0x33, 0x33)
TONE_HZ = 440                   # buzzer pitch
SAMPLE_RATE = 44100
TONE_VOLUME = 0.25

# Host keyboard → hex pad. Left-hand QWERTY block mirrors the 4x4 pad:
#   1 2 3 4      1 2 3 C
#   Q W E R  →   4 5 6 D
#   A S D F      7 8 9 E
#   Z X C V      A 0 B F
KEY_MAP: Dict[str, int] = {
    '1': 0x1, '2': 0x2, '3': 0x3, '4': 0xC,
    'q': 0x4, 'w': 0x5, 'e': 0x6, 'r': 0xD,
    'a': 0x7, 's': 0x8, 'd': 0x9, 'f': 0xE,
    'z': 0xA, 'x': 0x0, 'c': 0xB, 'v': 0xF,
}


@dataclass
class RunConfig:
    """Options for one interpreter session (filled from the CLI)."""
    rom: Path
    cycles_per_frame: int = CYCLES_PER_FRAME
    frame_ms: int = FRAME_MS
    scale: int = WINDOW_SCALE
    seed: int = RNG_SEED
    headless: bool = False
    frames: Optional[int] = None        # None = until window closed
    trace: bool = False
    log_dir: Optional[Path] = None
    key_map: Dict[str, int] = field(default_factory=lambda: dict(KEY_MAP))
