"""
CHIP-8 Virtual Machine — Register File + Call Stack

Register model:
  V0–VF — 16 general-purpose 8-bit registers
          VF doubles as the carry / borrow / shift-out / collision flag.
          Several instructions overwrite it as a side effect, so programs
          must not keep live data there across arithmetic or DRW.
  I     — 16-bit address register (sprite / memory-block pointer)
  PC    — 16-bit program counter, starts at 0x200
  SP    — stack pointer, number of live entries (0–16)
  stack — 16 return addresses

The stack is separate from main memory (unlike most 8-bit CPUs), so
push/pop never touch the 4K address space.
"""

from ..errors import StackOverflow, StackUnderflow

NUM_REGS = 16
STACK_DEPTH = 16
VF = 0xF


class Registers:
    """CHIP-8 CPU register set.

    Overflow and underflow are checked before any state is changed, so a
    failed CALL or RET leaves the stack exactly as it was.
    """

    __slots__ = ('V', 'I', 'PC', 'SP', 'stack', 'cycles')

    def __init__(self, pc: int = 0x200):
        self.V: bytearray = bytearray(NUM_REGS)   # V0–VF
        self.I: int = 0                           # Address register
        self.PC: int = pc                         # Program counter
        self.SP: int = 0                          # Live stack entries
        self.stack: list = [0] * STACK_DEPTH      # Return addresses
        self.cycles: int = 0                      # Executed instructions

    # --- Flag register ---

    @property
    def VF(self) -> int:
        return self.V[VF]

    @VF.setter
    def VF(self, value: int):
        self.V[VF] = value & 0xFF

    def write_with_carry(self, dest: int, value: int, carry: int):
        """Store an ALU result in Vx, then the flag in VF.

        The flag goes last: when dest is F the flag wins, which is how
        existing programs expect 8xF4 and friends to behave.
        """
        self.V[dest] = value & 0xFF
        self.V[VF] = carry & 0x01

    # --- Stack operations ---

    def push(self, addr: int):
        """Push a return address (2nnn CALL)."""
        if self.SP >= STACK_DEPTH:
            raise StackOverflow(
                f"Call stack overflow: {STACK_DEPTH} nested calls already active",
                pc=self.PC)
        self.stack[self.SP] = addr & 0xFFFF
        self.SP += 1

    def pop(self) -> int:
        """Pop a return address (00EE RET)."""
        if self.SP == 0:
            raise StackUnderflow("Return with empty call stack", pc=self.PC)
        self.SP -= 1
        return self.stack[self.SP]

    # --- Display ---

    def display(self) -> str:
        """One-line register dump for trace output."""
        v = ' '.join(f'{b:02X}' for b in self.V)
        return f"PC={self.PC:03X} I={self.I:03X} SP={self.SP:X} V=[{v}]"

    def reset(self, pc: int = 0x200):
        """Clear V0–VF, I, the stack and SP; PC back to program start."""
        for i in range(NUM_REGS):
            self.V[i] = 0
        self.I = 0
        self.PC = pc
        self.SP = 0
        self.stack = [0] * STACK_DEPTH
        self.cycles = 0
