"""
CHIP-8 Virtual Machine — Import Check

Verify every core module imports cleanly. The pygame media layer is left
out on purpose: it opens a display, so only the CLI imports it.

Usage:
  python -m pytest tests/test_scaffold_imports.py -s
"""

import sys
import os
import importlib

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest


MODULES = [
    ("Errors",          "chip8_vm.errors"),
    ("Config",          "chip8_vm.config"),
    ("Logging Setup",   "chip8_vm.log_setup"),
    ("CPU Registers",   "chip8_vm.cpu.regs"),
    ("ALU Operations",  "chip8_vm.cpu.alu"),
    ("Opcode Decoder",  "chip8_vm.cpu.decoder"),
    ("Memory + Font",   "chip8_vm.mem.memory"),
    ("Timers",          "chip8_vm.periph.timer"),
    ("Display",         "chip8_vm.periph.display"),
    ("Keypad",          "chip8_vm.periph.keypad"),
    ("Main Emulator",   "chip8_vm.emu"),
    ("CLI",             "chip8run"),
]


@pytest.mark.parametrize("name,module_path", MODULES)
def test_import(name, module_path):
    mod = importlib.import_module(module_path)
    print(f"  ✓ {name:20s} → {module_path}")
    assert mod is not None


def test_package_exports():
    import chip8_vm
    for name in chip8_vm.__all__:
        assert hasattr(chip8_vm, name), name
    assert chip8_vm.__version__


def test_smoke():
    """Quick functional smoke: one instruction through the whole pipeline."""
    from chip8_vm import Chip8Emulator
    emu = Chip8Emulator()
    emu.load_program(bytes([0x6A, 0x42]))   # LD VA, #42
    emu.cycle()
    assert emu.regs.V[0xA] == 0x42
    assert emu.regs.PC == 0x202
