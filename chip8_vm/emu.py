"""
CHIP-8 Virtual Machine — Main Emulator Class

This is the top-level class that integrates:
  - CPU registers + call stack (regs.py)
  - 4K memory + font (memory.py)
  - Opcode decoder (decoder.py)
  - ALU operations (alu.py)
  - Peripherals: timers, display, keypad

Execution model (one cycle):
  1. If the Fx0A wait latch is armed, do nothing (PC does not move)
  2. Fetch the big-endian word at PC
  3. PC += 2 — every handler sees the post-increment PC, so jumps and
     calls overwrite it and skips add another 2
  4. Decode into an Instruction, dispatch on its mnemonic
  5. Execute the handler

Timers are not clocked by instructions. The driver calls tick_60hz()
once per 60 Hz frame regardless of how many cycles ran in that frame.

Fatal conditions (see errors.py) propagate out of cycle() after being
logged; nothing is swallowed.
"""

import logging
from collections import deque
import random
from pathlib import Path

from .cpu.regs import Registers, NUM_REGS
from .cpu.decoder import decode_opcode, fetch_word, format_instruction
from .cpu import alu
from .errors import Chip8Error
from .mem.memory import Memory, PROGRAM_BASE, FONT_BASE, FONT_GLYPH_BYTES
from .periph.display import Display
from .periph.keypad import Keypad
from .periph.timer import TimerPeripheral
from . import config

log = logging.getLogger(__name__)


class Chip8Emulator:
    """CHIP-8 virtual machine.

    Usage:
        emu = Chip8Emulator()
        emu.load_rom('pong.ch8')
        while running:
            emu.run_frame()             # N cycles + one 60 Hz tick
            emu.set_key_state(k, down)  # for each of the 16 keys
            draw(emu.get_pixel(x, y))   # for each of the 64x32 pixels
            beep(emu.buzzer_active)
    """

    def __init__(self, seed: int = config.RNG_SEED):
        # Core components
        self.regs = Registers(PROGRAM_BASE)
        self.mem = Memory()

        # Peripherals
        self.timer = TimerPeripheral()
        self.display = Display()
        self.keypad = Keypad()

        # Per-instance PRNG so independent machines never share state
        self._seed = seed
        self._rng = random.Random(seed)

        # Trace output (most recent TRACE_DEPTH lines)
        self._trace = False
        self._trace_output = deque(maxlen=config.TRACE_DEPTH)

        # Instruction dispatch table (built in _build_dispatch)
        self._dispatch = self._build_dispatch()

        self.init()

    # ══════════════════════════════════════════════
    # Lifecycle
    # ══════════════════════════════════════════════

    def init(self):
        """Power-on: zero all memory, reset, then seed the PRNG."""
        self.mem.clear()
        self.reset()
        self._rng.seed(self._seed)

    def reset(self):
        """Restore the baseline machine state.

        Program bytes already in memory survive; the PRNG is not reseeded,
        so a reset mid-session does not replay the same random sequence.
        """
        self.regs.reset(PROGRAM_BASE)
        self.display.clear()
        self.mem.load_font()
        self.timer.reset()
        self.keypad.reset()
        self._trace_output.clear()
        log.debug("Machine reset, PC=$%03X", self.regs.PC)

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_program(self, data: bytes):
        """Copy a raw program image to $200. Raises LoadError if too big."""
        self.mem.load_binary(data, PROGRAM_BASE)

    def load_rom(self, path):
        """Load a raw ROM file from disk to $200."""
        log.info("Loading ROM %s", Path(path).name)
        self.mem.load_file(path, PROGRAM_BASE)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def waiting_for_key(self) -> bool:
        return self.keypad.waiting

    def cycle(self):
        """Execute one instruction, or nothing while stalled on Fx0A."""
        if self.keypad.waiting:
            return

        pc = self.regs.PC
        opcode = fetch_word(self.mem, pc)
        self.regs.PC = (pc + 2) & 0xFFFF

        try:
            ins = decode_opcode(opcode, pc)
            if self._trace:
                line = f"${pc:03X}: {opcode:04X}  {format_instruction(ins):18s} {self.regs.display()}"
                self._trace_output.append(line)
                log.debug(line)
            self._dispatch[ins.mnemonic](ins)
        except Chip8Error as e:
            log.error("Fatal at $%03X (opcode %04X): %s", pc, opcode, e)
            raise

        self.regs.cycles += 1

    def tick_60hz(self):
        """Decrement delay and sound timers, floored at zero."""
        self.timer.tick()

    def run_frame(self, cycles: int = config.CYCLES_PER_FRAME):
        """Pacing helper: `cycles` instructions, then one timer tick."""
        for _ in range(cycles):
            self.cycle()
        self.tick_60hz()

    def run(self, max_cycles: int) -> int:
        """Run up to max_cycles instructions. Returns how many executed.

        Stops early if the machine stalls on Fx0A, since further cycles
        would do nothing until a key arrives.
        """
        start = self.regs.cycles
        while self.regs.cycles - start < max_cycles:
            if self.keypad.waiting:
                break
            self.cycle()
        return self.regs.cycles - start

    # ══════════════════════════════════════════════
    # Display / input query surface
    # ══════════════════════════════════════════════

    def get_pixel(self, x: int, y: int) -> bool:
        return self.display.get_pixel(x, y)

    def set_key_state(self, key: int, is_down: bool):
        """Update one key. A down-edge resumes a machine stalled on Fx0A."""
        pressed = self.keypad.set_state(key, is_down)
        if pressed is not None:
            self.regs.V[self.keypad.target] = pressed
            log.debug("Key %X resolved wait, V%X=%02X",
                      pressed, self.keypad.target, pressed)

    @property
    def buzzer_active(self) -> bool:
        return self.timer.buzzer_active

    @property
    def delay_timer(self) -> int:
        return self.timer.delay

    @property
    def sound_timer(self) -> int:
        return self.timer.sound

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(ins) where ins is a decoder.Instruction
    # with x, y, n, kk, nnn already split out.

    def _build_dispatch(self) -> dict:
        """Build mnemonic → handler dispatch table."""
        return {
            # ── System / flow ──
            'CLS':   self._op_cls,
            'RET':   self._op_ret,
            'SYS':   self._op_sys,
            'JP':    self._op_jp,
            'CALL':  self._op_call,
            'JPV0':  self._op_jpv0,

            # ── Conditional skips ──
            'SE':    self._op_se,
            'SNE':   self._op_sne,
            'SEV':   self._op_sev,
            'SNEV':  self._op_snev,
            'SKP':   self._op_skp,
            'SKNP':  self._op_sknp,

            # ── Loads / immediate arithmetic ──
            'LD':    self._op_ld,
            'ADD':   self._op_add,
            'LDV':   self._op_ldv,

            # ── Register ALU ──
            'OR':    self._op_or,
            'AND':   self._op_and,
            'XOR':   self._op_xor,
            'ADDV':  self._op_addv,
            'SUB':   self._op_sub,
            'SHR':   self._op_shr,
            'SUBN':  self._op_subn,
            'SHL':   self._op_shl,

            # ── I register / random / draw ──
            'LDI':   self._op_ldi,
            'RND':   self._op_rnd,
            'DRW':   self._op_drw,

            # ── Timers / keypad ──
            'LDVDT': self._op_ldvdt,
            'LDK':   self._op_ldk,
            'LDDT':  self._op_lddt,
            'LDST':  self._op_ldst,

            # ── Memory block ──
            'ADDI':  self._op_addi,
            'LDF':   self._op_ldf,
            'LDB':   self._op_ldb,
            'STM':   self._op_stm,
            'LDM':   self._op_ldm,
        }

    def _skip_if(self, cond: bool):
        if cond:
            self.regs.PC = (self.regs.PC + 2) & 0xFFFF

    # ── System / flow ──

    def _op_cls(self, ins):
        self.display.clear()

    def _op_ret(self, ins):
        self.regs.PC = self.regs.pop()

    def _op_sys(self, ins):
        # 0nnn called into host machine code; modern interpreters ignore it
        pass

    def _op_jp(self, ins):
        self.regs.PC = ins.nnn

    def _op_call(self, ins):
        self.regs.push(self.regs.PC)
        self.regs.PC = ins.nnn

    def _op_jpv0(self, ins):
        self.regs.PC = (ins.nnn + self.regs.V[0]) & 0xFFFF

    # ── Conditional skips ──

    def _op_se(self, ins):
        self._skip_if(self.regs.V[ins.x] == ins.kk)

    def _op_sne(self, ins):
        self._skip_if(self.regs.V[ins.x] != ins.kk)

    def _op_sev(self, ins):
        self._skip_if(self.regs.V[ins.x] == self.regs.V[ins.y])

    def _op_snev(self, ins):
        self._skip_if(self.regs.V[ins.x] != self.regs.V[ins.y])

    def _op_skp(self, ins):
        self._skip_if(self.keypad.is_down(self.regs.V[ins.x]))

    def _op_sknp(self, ins):
        self._skip_if(not self.keypad.is_down(self.regs.V[ins.x]))

    # ── Loads / immediate arithmetic ──

    def _op_ld(self, ins):
        self.regs.V[ins.x] = ins.kk

    def _op_add(self, ins):
        # No carry out of 7xkk: VF is left alone
        self.regs.V[ins.x] = alu.add_no_flag(self.regs.V[ins.x], ins.kk)

    def _op_ldv(self, ins):
        self.regs.V[ins.x] = self.regs.V[ins.y]

    # ── Register ALU ──

    def _op_or(self, ins):
        self.regs.V[ins.x] |= self.regs.V[ins.y]

    def _op_and(self, ins):
        self.regs.V[ins.x] &= self.regs.V[ins.y]

    def _op_xor(self, ins):
        self.regs.V[ins.x] ^= self.regs.V[ins.y]

    def _op_addv(self, ins):
        result, carry = alu.add8(self.regs.V[ins.x], self.regs.V[ins.y])
        self.regs.write_with_carry(ins.x, result, carry)

    def _op_sub(self, ins):
        result, flag = alu.sub8(self.regs.V[ins.x], self.regs.V[ins.y])
        self.regs.write_with_carry(ins.x, result, flag)

    def _op_shr(self, ins):
        result, flag = alu.shr8(self.regs.V[ins.x])
        self.regs.write_with_carry(ins.x, result, flag)

    def _op_subn(self, ins):
        result, flag = alu.sub8(self.regs.V[ins.y], self.regs.V[ins.x])
        self.regs.write_with_carry(ins.x, result, flag)

    def _op_shl(self, ins):
        # Source is Vy, unlike SHR which shifts Vx in place
        result, flag = alu.shl8(self.regs.V[ins.y])
        self.regs.write_with_carry(ins.x, result, flag)

    # ── I register / random / draw ──

    def _op_ldi(self, ins):
        self.regs.I = ins.nnn

    def _op_rnd(self, ins):
        self.regs.V[ins.x] = self._rng.randrange(0xFF) & ins.kk

    def _op_drw(self, ins):
        x = self.regs.V[ins.x]
        y = self.regs.V[ins.y]
        self.regs.VF = 0
        rows = self.mem.read_block(self.regs.I, ins.n)
        if self.display.draw_sprite(x, y, rows):
            self.regs.VF = 1

    # ── Timers / keypad ──

    def _op_ldvdt(self, ins):
        self.regs.V[ins.x] = self.timer.delay

    def _op_ldk(self, ins):
        self.keypad.wait_for_key(ins.x)

    def _op_lddt(self, ins):
        self.timer.set_delay(self.regs.V[ins.x])

    def _op_ldst(self, ins):
        self.timer.set_sound(self.regs.V[ins.x])

    # ── Memory block ──

    def _op_addi(self, ins):
        self.regs.I = (self.regs.I + self.regs.V[ins.x]) & 0xFFFF

    def _op_ldf(self, ins):
        self.regs.I = FONT_BASE + self.regs.V[ins.x] * FONT_GLYPH_BYTES

    def _op_ldb(self, ins):
        for offset, digit in enumerate(alu.bcd(self.regs.V[ins.x])):
            self.mem.write8(self.regs.I + offset, digit)

    def _op_stm(self, ins):
        for i in range(ins.x + 1):
            self.mem.write8(self.regs.I + i, self.regs.V[i])

    def _op_ldm(self, ins):
        for i in range(ins.x + 1):
            self.regs.V[i] = self.mem.read8(self.regs.I + i)

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Enable instruction trace logging."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def dump_state(self) -> str:
        """Multi-line machine state dump for fatal-error diagnostics."""
        r = self.regs
        lines = [
            f"PC=${r.PC:03X}  I=${r.I:03X}  SP={r.SP}  "
            f"DT={self.timer.delay:02X}  ST={self.timer.sound:02X}  "
            f"keys={self.keypad.keys:04X}  wait={'V%X' % self.keypad.target if self.keypad.waiting else '-'}",
        ]
        for row in range(0, NUM_REGS, 8):
            lines.append('  '.join(f"V{i:X}={r.V[i]:02X}" for i in range(row, row + 8)))
        stack = ' '.join(f"${a:03X}" for a in r.stack[:r.SP]) or '(empty)'
        lines.append(f"stack: {stack}")
        return '\n'.join(lines)

    def render_text(self) -> str:
        return self.display.render_text()

    def snapshot(self) -> tuple:
        """(registers, I, PC, memory) — used for determinism checks."""
        return (bytes(self.regs.V), self.regs.I, self.regs.PC, self.mem.snapshot())
