"""
CHIP-8 Virtual Machine — ALU Operations

Each helper takes the raw 8-bit register values and returns a tuple
(result_byte, vf). The caller writes both through
Registers.write_with_carry() so VF is always stored after Vx.

VF conventions:
  add8  — VF = 1 on carry out of bit 7 (a + b > 255)
  sub8  — VF = 1 when NO borrow (a >= b). Equal operands count as no
          borrow, so VF = 1 for a == b.
  shr8  — VF = bit 0 shifted out
  shl8  — VF = bit 7 shifted out

Note the SHL source register: 8xyE shifts Vy into Vx, while 8xy6 shifts
Vx in place. The emulator passes the right operand; these helpers only
see a single byte.
"""


def add8(a: int, b: int) -> tuple:
    """8xy4 ADD Vx, Vy. 16-bit sum, low byte kept."""
    result = (a & 0xFF) + (b & 0xFF)
    return (result & 0xFF, 1 if result > 0xFF else 0)


def sub8(a: int, b: int) -> tuple:
    """a - b with NOT-borrow flag. Used by 8xy5 (Vx-Vy) and 8xy7 (Vy-Vx)."""
    a &= 0xFF
    b &= 0xFF
    return ((a - b) & 0xFF, 1 if a >= b else 0)


def shr8(a: int) -> tuple:
    """8xy6 SHR. Flag is the low bit before the shift."""
    a &= 0xFF
    return (a >> 1, a & 0x01)


def shl8(a: int) -> tuple:
    """8xyE SHL. Flag is the high bit before the shift."""
    a &= 0xFF
    return ((a << 1) & 0xFF, (a >> 7) & 0x01)


def add_no_flag(a: int, kk: int) -> int:
    """7xkk ADD Vx, byte. Wraps mod 256 and never touches VF."""
    return (a + kk) & 0xFF


def bcd(value: int) -> tuple:
    """Fx33 — (hundreds, tens, ones) of an 8-bit value."""
    value &= 0xFF
    return (value // 100 % 10, value // 10 % 10, value % 10)
