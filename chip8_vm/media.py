"""
CHIP-8 Virtual Machine — pygame Presentation Layer

Window, keyboard and buzzer for the interactive driver. Talks to the
core only through the query surface: get_pixel(), set_key_state() and
buzzer_active. Nothing here touches machine state directly.

Audio: a one-second square wave at TONE_HZ is built once with numpy and
looped on a mixer channel while the sound timer is running. If the mixer
cannot be opened (no audio device) the session continues silently.
"""

import logging
import os
from typing import Dict

import numpy as np

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame

from . import config
from .periph.display import WIDTH, HEIGHT

log = logging.getLogger(__name__)


class PygameMedia:
    """Window + keypad + buzzer for one emulator session."""

    def __init__(self, scale: int = config.WINDOW_SCALE,
                 key_map: Dict[str, int] = None,
                 title: str = "CHIP-8"):
        self.scale = scale
        pygame.init()
        self.surface = pygame.display.set_mode((WIDTH * scale, HEIGHT * scale))
        pygame.display.set_caption(title)
        self.frame = pygame.Surface((WIDTH, HEIGHT))
        self._exit_requested = False

        key_map = key_map if key_map is not None else config.KEY_MAP
        # pygame key code -> hex pad key
        self._scancodes = {pygame.key.key_code(name): pad for name, pad in key_map.items()}

        self._tone = None
        self._channel = None
        self._buzzing = False
        self._init_audio()
        log.info("Media initialized: %dx%d window", WIDTH * scale, HEIGHT * scale)

    def _init_audio(self):
        try:
            pygame.mixer.init(frequency=config.SAMPLE_RATE, size=-16, channels=1)
        except pygame.error as e:
            log.warning("Audio disabled: %s", e)
            return
        t = np.arange(config.SAMPLE_RATE) / config.SAMPLE_RATE
        wave = np.sign(np.sin(2 * np.pi * config.TONE_HZ * t))
        samples = (wave * config.TONE_VOLUME * (2 ** 15 - 1)).astype(np.int16)
        # mixer may come up stereo regardless of the request
        if pygame.mixer.get_init()[2] == 2:
            samples = np.column_stack((samples, samples))
        self._tone = pygame.sndarray.make_sound(samples)
        self._channel = pygame.mixer.Channel(0)

    # --- Events / input ---

    def poll_exit_requested(self) -> bool:
        """Drain the event queue. True once the window is closed or Esc hit."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._exit_requested = True
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                self._exit_requested = True
        return self._exit_requested

    def update_keys(self, emu):
        """Push the state of all 16 pad keys into the emulator."""
        pressed = pygame.key.get_pressed()
        state = [False] * 16
        for code, pad in self._scancodes.items():
            if pressed[code]:
                state[pad] = True
        for key in range(16):
            emu.set_key_state(key, state[key])

    # --- Output ---

    def set_buzzer(self, active: bool):
        if self._tone is None or active == self._buzzing:
            return
        if active:
            self._channel.play(self._tone, loops=-1)
        else:
            self._channel.stop()
        self._buzzing = active

    def render(self, emu):
        """Copy the 64x32 frame buffer to the window."""
        for y in range(HEIGHT):
            for x in range(WIDTH):
                color = config.COLOR_ON if emu.get_pixel(x, y) else config.COLOR_OFF
                self.frame.set_at((x, y), color)
        pygame.transform.scale(self.frame, self.surface.get_size(), self.surface)
        pygame.display.flip()

    # --- Timing ---

    def ms_elapsed(self) -> int:
        return pygame.time.get_ticks()

    def delay(self, ms: int):
        pygame.time.delay(ms)

    def close(self):
        if self._channel is not None:
            self._channel.stop()
            pygame.mixer.quit()
        pygame.quit()
