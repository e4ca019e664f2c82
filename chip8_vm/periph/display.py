"""
CHIP-8 Virtual Machine — 64x32 Monochrome Display

The frame buffer is a packed bit plane: 32 rows x 8 bytes, row-major,
bit 7 of each byte is the leftmost pixel of that byte's 8-pixel span.

  byte index = y * 8 + x // 8
  bit mask   = 0x80 >> (x % 8)

Coordinates wrap on both axes (the screen is a torus): a sprite drawn at
x=60 continues at x=0, one drawn at y=30 continues at y=0. Nothing is
clipped.
"""

WIDTH = 64
HEIGHT = 32
BYTES_PER_ROW = WIDTH // 8


class Display:
    """Packed 64x32 bit plane with XOR sprite drawing."""

    def __init__(self):
        self.plane = bytearray(BYTES_PER_ROW * HEIGHT)

    @staticmethod
    def _locate(x: int, y: int) -> tuple:
        x %= WIDTH
        y %= HEIGHT
        return (y * BYTES_PER_ROW + x // 8, 0x80 >> (x % 8))

    def clear(self):
        """00E0 CLS."""
        for i in range(len(self.plane)):
            self.plane[i] = 0

    def get_pixel(self, x: int, y: int) -> bool:
        index, mask = self._locate(x, y)
        return bool(self.plane[index] & mask)

    def xor_pixel(self, x: int, y: int) -> bool:
        """Flip one pixel. Returns True if it was lit and is now dark."""
        index, mask = self._locate(x, y)
        self.plane[index] ^= mask
        return not (self.plane[index] & mask)

    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """XOR an 8-pixel-wide sprite onto the plane at (x, y).

        Only set sprite bits touch the screen. Returns True when any
        pixel was switched off (collision).
        """
        collision = False
        for row, bits in enumerate(rows):
            for px in range(8):
                if bits & (0x80 >> px):
                    if self.xor_pixel(x + px, y + row):
                        collision = True
        return collision

    def lit_count(self) -> int:
        return sum(bin(b).count('1') for b in self.plane)

    def render_text(self, on: str = '█', off: str = ' ') -> str:
        """Frame buffer as 32 lines of text (headless output, test diffs)."""
        return '\n'.join(
            ''.join(on if self.get_pixel(x, y) else off for x in range(WIDTH))
            for y in range(HEIGHT)
        )
