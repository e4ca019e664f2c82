"""
CHIP-8 Virtual Machine — Opcode Decoder / Dispatch Table

Every instruction is one big-endian 16-bit word, split into four
nibbles n0 n1 n2 n3 (most significant first):

  n0       — primary opcode family
  x  = n1  — first register index
  y  = n2  — second register index
  n  = n3  — 4-bit immediate (sprite height, sub-opcode)
  kk = n2n3 — 8-bit immediate
  nnn = n1n2n3 — 12-bit address

Families 0x0, 0x5, 0x8, 0x9, 0xE and 0xF need a second look at the low
nibble(s) to pick the instruction. Anything that does not match a row of
the table is an illegal opcode — there is no silent skip.

Operand formats (what the trace line prints):
  NONE    no operands               CLS, RET
  ADDR    nnn                       JP, CALL, LD I
  V0ADDR  V0 + nnn                  JP V0
  XKK     Vx, kk                    SE, SNE, LD, ADD, RND
  XY      Vx, Vy                    8xy_, 5xy0, 9xy0
  XYN     Vx, Vy, n                 DRW
  X       Vx                        E/F families
"""

from collections import namedtuple
from typing import Optional

from ..errors import DecodeError

# ──────────────────────────────────────────────
# Operand format constants
# ──────────────────────────────────────────────

NONE   = 'NONE'
ADDR   = 'ADDR'
V0ADDR = 'V0ADDR'
XKK    = 'XKK'
XY     = 'XY'
XYN    = 'XYN'
X      = 'X'


Instruction = namedtuple('Instruction', 'mnemonic fmt opcode x y n kk nnn')


# ──────────────────────────────────────────────
# Instruction table
# ──────────────────────────────────────────────
# Format: (mask, match) -> (mnemonic, operand_format)
#
# Rows are tried in order; CLS and RET must come before the 0nnn SYS
# catch-all.

OPCODES = [
    # ── Family 0: system ──
    ((0xFFFF, 0x00E0), ('CLS',   NONE)),
    ((0xFFFF, 0x00EE), ('RET',   NONE)),
    ((0xF000, 0x0000), ('SYS',   ADDR)),    # legacy machine-code call, ignored

    # ── Flow control ──
    ((0xF000, 0x1000), ('JP',    ADDR)),
    ((0xF000, 0x2000), ('CALL',  ADDR)),
    ((0xF000, 0x3000), ('SE',    XKK)),
    ((0xF000, 0x4000), ('SNE',   XKK)),
    ((0xF00F, 0x5000), ('SEV',   XY)),

    # ── Immediate load / add ──
    ((0xF000, 0x6000), ('LD',    XKK)),
    ((0xF000, 0x7000), ('ADD',   XKK)),

    # ── Family 8: register ALU ──
    ((0xF00F, 0x8000), ('LDV',   XY)),
    ((0xF00F, 0x8001), ('OR',    XY)),
    ((0xF00F, 0x8002), ('AND',   XY)),
    ((0xF00F, 0x8003), ('XOR',   XY)),
    ((0xF00F, 0x8004), ('ADDV',  XY)),
    ((0xF00F, 0x8005), ('SUB',   XY)),
    ((0xF00F, 0x8006), ('SHR',   XY)),
    ((0xF00F, 0x8007), ('SUBN',  XY)),
    ((0xF00F, 0x800E), ('SHL',   XY)),

    ((0xF00F, 0x9000), ('SNEV',  XY)),

    # ── Address register / jumps / random ──
    ((0xF000, 0xA000), ('LDI',   ADDR)),
    ((0xF000, 0xB000), ('JPV0',  V0ADDR)),
    ((0xF000, 0xC000), ('RND',   XKK)),

    # ── Display ──
    ((0xF000, 0xD000), ('DRW',   XYN)),

    # ── Family E: keypad skips ──
    ((0xF0FF, 0xE09E), ('SKP',   X)),
    ((0xF0FF, 0xE0A1), ('SKNP',  X)),

    # ── Family F: timers, memory, keypad wait ──
    ((0xF0FF, 0xF007), ('LDVDT', X)),
    ((0xF0FF, 0xF00A), ('LDK',   X)),
    ((0xF0FF, 0xF015), ('LDDT',  X)),
    ((0xF0FF, 0xF018), ('LDST',  X)),
    ((0xF0FF, 0xF01E), ('ADDI',  X)),
    ((0xF0FF, 0xF029), ('LDF',   X)),
    ((0xF0FF, 0xF033), ('LDB',   X)),
    ((0xF0FF, 0xF055), ('STM',   X)),
    ((0xF0FF, 0xF065), ('LDM',   X)),
]

# Primary dispatch: family nibble -> candidate rows, in table order.
_BY_FAMILY = {}
for (_mask, _match), _entry in OPCODES:
    _BY_FAMILY.setdefault(_match >> 12, []).append((_mask, _match, _entry))


def nibbles(opcode: int) -> tuple:
    """Split a word into (n0, n1, n2, n3), n0 leftmost."""
    return ((opcode >> 12) & 0xF, (opcode >> 8) & 0xF,
            (opcode >> 4) & 0xF, opcode & 0xF)


def decode_opcode(opcode: int, address: Optional[int] = None) -> Instruction:
    """Decode a 16-bit word into an Instruction.

    Raises DecodeError for bit patterns outside the table. `address` is
    only used to make the error message point at the failing fetch.
    """
    opcode &= 0xFFFF
    n0, n1, n2, n3 = nibbles(opcode)
    for mask, match, (mnem, fmt) in _BY_FAMILY.get(n0, ()):
        if opcode & mask == match:
            return Instruction(mnem, fmt, opcode, n1, n2, n3,
                               opcode & 0xFF, opcode & 0x0FFF)
    raise DecodeError(opcode, address)


def fetch_word(memory, pc: int) -> int:
    """Big-endian word at [pc, pc+1]."""
    return memory.read16(pc)


# Pretty names for the F/E family and the split LD/JP variants
_ASM_NAMES = {
    'SEV':   ('SE',  'V{x}, V{y}'),
    'SNEV':  ('SNE', 'V{x}, V{y}'),
    'LDV':   ('LD',  'V{x}, V{y}'),
    'ADDV':  ('ADD', 'V{x}, V{y}'),
    'LDI':   ('LD',  'I, {nnn}'),
    'JPV0':  ('JP',  'V0, {nnn}'),
    'SKP':   ('SKP', 'V{x}'),
    'SKNP':  ('SKNP', 'V{x}'),
    'LDVDT': ('LD',  'V{x}, DT'),
    'LDK':   ('LD',  'V{x}, K'),
    'LDDT':  ('LD',  'DT, V{x}'),
    'LDST':  ('LD',  'ST, V{x}'),
    'ADDI':  ('ADD', 'I, V{x}'),
    'LDF':   ('LD',  'F, V{x}'),
    'LDB':   ('LD',  'B, V{x}'),
    'STM':   ('LD',  '[I], V{x}'),
    'LDM':   ('LD',  'V{x}, [I]'),
}

_FMT_OPERANDS = {
    NONE:   '',
    ADDR:   '{nnn}',
    V0ADDR: 'V0, {nnn}',
    XKK:    'V{x}, {kk}',
    XY:     'V{x}, V{y}',
    XYN:    'V{x}, V{y}, {n}',
    X:      'V{x}',
}


def format_instruction(ins: Instruction) -> str:
    """Assembly-style text for trace lines and error diagnostics."""
    if ins.mnemonic in _ASM_NAMES:
        name, operands = _ASM_NAMES[ins.mnemonic]
    else:
        name, operands = ins.mnemonic, _FMT_OPERANDS[ins.fmt]
    text = operands.format(x=f'{ins.x:X}', y=f'{ins.y:X}', n=ins.n,
                           kk=f'#{ins.kk:02X}', nnn=f'${ins.nnn:03X}')
    return f'{name:5s} {text}'.rstrip()
