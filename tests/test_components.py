"""
CHIP-8 Virtual Machine — Component Tests

Memory, decoder, ALU, register file and peripherals exercised on their
own, without going through Chip8Emulator.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from chip8_vm.errors import LoadError, DecodeError, StackOverflow, StackUnderflow
from chip8_vm.mem.memory import Memory, FONT, FONT_BASE, MAX_PROGRAM_SIZE
from chip8_vm.cpu import alu
from chip8_vm.cpu.decoder import decode_opcode, format_instruction, nibbles, OPCODES, XY, XYN
from chip8_vm.cpu.regs import Registers, STACK_DEPTH
from chip8_vm.periph.display import Display, WIDTH, HEIGHT
from chip8_vm.periph.keypad import Keypad
from chip8_vm.periph.timer import TimerPeripheral


class TestMemory:

    def test_read16_big_endian(self):
        mem = Memory()
        mem.write8(0x300, 0x12)
        mem.write8(0x301, 0x34)
        assert mem.read16(0x300) == 0x1234

    def test_read16_wraps(self):
        mem = Memory()
        mem.write8(0xFFF, 0xAB)
        mem.write8(0x000, 0xCD)
        assert mem.read16(0xFFF) == 0xABCD

    def test_write_masks_value_and_address(self):
        mem = Memory()
        mem.write8(0x1005, 0x1FF)
        assert mem.read8(0x005) == 0xFF

    def test_read_block_wraps(self):
        mem = Memory()
        mem.write8(0xFFE, 1)
        mem.write8(0xFFF, 2)
        mem.write8(0x000, 3)
        assert mem.read_block(0xFFE, 3) == bytes([1, 2, 3])

    def test_font_glyphs(self):
        mem = Memory()
        mem.load_font()
        assert len(FONT) == 80
        # "F" glyph is the last 5 bytes
        assert mem.read_block(FONT_BASE + 15 * 5, 5) == bytes([0xF0, 0x80, 0xF0, 0x80, 0x80])

    def test_load_binary_limit(self):
        mem = Memory()
        mem.load_binary(bytes(MAX_PROGRAM_SIZE))
        with pytest.raises(LoadError):
            mem.load_binary(bytes(MAX_PROGRAM_SIZE + 1))

    def test_diff_snapshots(self):
        mem = Memory()
        before = mem.snapshot(0x300, 0x30F)
        mem.write8(0x304, 0x77)
        after = mem.snapshot(0x300, 0x30F)
        assert mem.diff_snapshots(before, after, 0x300) == {0x304: (0x00, 0x77)}

    def test_hexdump(self):
        mem = Memory()
        mem.load_binary(b"AB\x00\xFF")
        line = mem.hexdump(0x200, 16)
        assert line.startswith("200  41 42 00 FF")
        assert line.endswith("AB..............")


class TestDecoder:

    def test_nibbles(self):
        assert nibbles(0xD12F) == (0xD, 0x1, 0x2, 0xF)

    def test_fields(self):
        ins = decode_opcode(0xD125)
        assert ins.mnemonic == 'DRW' and ins.fmt == XYN
        assert (ins.x, ins.y, ins.n) == (1, 2, 5)
        ins = decode_opcode(0xA3F0)
        assert ins.nnn == 0x3F0
        ins = decode_opcode(0x6A2F)
        assert (ins.x, ins.kk) == (0xA, 0x2F)

    def test_cls_ret_before_sys(self):
        assert decode_opcode(0x00E0).mnemonic == 'CLS'
        assert decode_opcode(0x00EE).mnemonic == 'RET'
        assert decode_opcode(0x00E1).mnemonic == 'SYS'
        assert decode_opcode(0x0FFF).mnemonic == 'SYS'

    def test_register_forms_distinct_from_immediate(self):
        assert decode_opcode(0x5120).mnemonic == 'SEV'
        assert decode_opcode(0x3120).mnemonic == 'SE'
        assert decode_opcode(0x8120).fmt == XY

    def test_every_table_row_decodes_to_itself(self):
        for (_mask, match), (mnem, _fmt) in OPCODES:
            assert decode_opcode(match).mnemonic == mnem, hex(match)

    @pytest.mark.parametrize("opcode", [0x5001, 0x8008, 0x800D, 0x9001, 0xE000, 0xF000, 0xF0FF])
    def test_illegal(self, opcode):
        with pytest.raises(DecodeError) as exc:
            decode_opcode(opcode, 0x2A4)
        assert str(exc.value) == f"Illegal opcode {opcode:04X} at $2A4"

    def test_format(self):
        assert format_instruction(decode_opcode(0x6A2F)) == "LD    VA, #2F"
        assert format_instruction(decode_opcode(0x00E0)) == "CLS"
        assert format_instruction(decode_opcode(0xD125)) == "DRW   V1, V2, 5"
        assert format_instruction(decode_opcode(0x8124)) == "ADD   V1, V2"
        assert format_instruction(decode_opcode(0xF355)) == "LD    [I], V3"
        assert format_instruction(decode_opcode(0xB2A0)) == "JP    V0, $2A0"


class TestALU:

    def test_add8(self):
        assert alu.add8(0xFF, 0x01) == (0x00, 1)
        assert alu.add8(0x7F, 0x80) == (0xFF, 0)

    def test_sub8(self):
        assert alu.sub8(0x10, 0x01) == (0x0F, 1)
        assert alu.sub8(0x01, 0x10) == (0xF1, 0)
        assert alu.sub8(0x33, 0x33) == (0x00, 1)

    def test_shifts(self):
        assert alu.shr8(0x81) == (0x40, 1)
        assert alu.shl8(0x81) == (0x02, 1)
        assert alu.shl8(0x7F) == (0xFE, 0)

    def test_add_no_flag(self):
        assert alu.add_no_flag(0xFE, 0x03) == 0x01

    def test_bcd(self):
        assert alu.bcd(255) == (2, 5, 5)
        assert alu.bcd(100) == (1, 0, 0)
        assert alu.bcd(9) == (0, 0, 9)


class TestRegisters:

    def test_flag_written_after_result(self):
        regs = Registers()
        regs.write_with_carry(0xF, 0x42, 1)
        assert regs.VF == 1

    def test_push_pop(self):
        regs = Registers()
        regs.push(0x202)
        regs.push(0x404)
        assert regs.pop() == 0x404
        assert regs.pop() == 0x202

    def test_overflow_and_underflow(self):
        regs = Registers()
        for i in range(STACK_DEPTH):
            regs.push(0x200 + i)
        with pytest.raises(StackOverflow):
            regs.push(0x300)
        for _ in range(STACK_DEPTH):
            regs.pop()
        with pytest.raises(StackUnderflow):
            regs.pop()

    def test_reset_clears_vf(self):
        regs = Registers()
        regs.V[:] = bytes(range(1, 17))
        regs.reset()
        assert bytes(regs.V) == bytes(16)


class TestDisplay:

    def test_xor_pixel_reports_turn_off(self):
        d = Display()
        assert d.xor_pixel(3, 4) is False
        assert d.get_pixel(3, 4)
        assert d.xor_pixel(3, 4) is True
        assert not d.get_pixel(3, 4)

    def test_bit_packing(self):
        d = Display()
        d.xor_pixel(0, 0)
        d.xor_pixel(15, 1)
        assert d.plane[0] == 0x80
        assert d.plane[1 * 8 + 1] == 0x01

    def test_zero_bits_leave_screen_alone(self):
        d = Display()
        d.xor_pixel(1, 0)
        assert d.draw_sprite(0, 0, bytes([0x80])) is False
        assert d.get_pixel(1, 0)
        assert d.get_pixel(0, 0)

    def test_render_text(self):
        d = Display()
        d.xor_pixel(WIDTH - 1, HEIGHT - 1)
        lines = d.render_text(on='#', off='.').splitlines()
        assert len(lines) == HEIGHT
        assert all(len(line) == WIDTH for line in lines)
        assert lines[-1].endswith('.#')
        assert d.lit_count() == 1


class TestKeypad:

    def test_mask(self):
        kp = Keypad()
        kp.set_state(0x0, True)
        kp.set_state(0xF, True)
        assert kp.keys == 0x8001
        assert kp.is_down(0xF)
        kp.set_state(0x0, False)
        assert kp.keys == 0x8000

    def test_latch_resolves_on_press(self):
        kp = Keypad()
        kp.wait_for_key(0x7)
        assert kp.set_state(0x4, False) is None
        assert kp.set_state(0x4, True) == 0x4
        assert not kp.waiting
        assert kp.target == 0x7

    def test_is_down_beyond_pad(self):
        kp = Keypad()
        kp.set_state(0x0, True)
        kp.set_state(0x1, True)
        assert not kp.is_down(0x10)
        assert not kp.is_down(0x11)
        assert not kp.is_down(0xFF)

    def test_no_resolution_without_latch(self):
        kp = Keypad()
        assert kp.set_state(0x4, True) is None

    @pytest.mark.parametrize("key", [-1, 16, 0x20])
    def test_out_of_range(self, key):
        with pytest.raises(ValueError):
            Keypad().set_state(key, True)


class TestTimer:

    def test_tick_floor(self):
        t = TimerPeripheral()
        t.set_delay(1)
        t.set_sound(0)
        t.tick()
        t.tick()
        assert (t.delay, t.sound) == (0, 0)

    def test_buzzer(self):
        t = TimerPeripheral()
        t.set_sound(2)
        assert t.buzzer_active
        t.tick()
        assert t.buzzer_active
        t.tick()
        assert not t.buzzer_active
