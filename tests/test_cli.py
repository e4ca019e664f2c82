"""
CHIP-8 Virtual Machine — CLI Tests

Drives chip8run.main() in headless mode against tiny ROMs written to
tmp_path. No window is opened.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

import pytest

import chip8run
from chip8_vm.config import CYCLES_PER_FRAME, RNG_SEED
from chip8_vm.log_setup import setup_logging


# LD V0,#0; LD F,V0; LD V1,#0; DRW V1,V1,5; JP $208 (spin)
DIGIT_ZERO_ROM = bytes([
    0x60, 0x00,
    0xF0, 0x29,
    0x61, 0x00,
    0xD1, 0x15,
    0x12, 0x08,
])


@pytest.fixture
def rom(tmp_path):
    def _write(data: bytes, name: str = "test.ch8"):
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _write


class TestArgs:

    def test_parse_int_arg(self):
        assert chip8run.parse_int_arg("0x10") == 16
        assert chip8run.parse_int_arg("$1F") == 31
        assert chip8run.parse_int_arg("12") == 12

    def test_defaults(self):
        args = chip8run.build_parser().parse_args(["game.ch8"])
        cfg = chip8run.config_from_args(args)
        assert cfg.rom.name == "game.ch8"
        assert cfg.cycles_per_frame == CYCLES_PER_FRAME
        assert cfg.seed == RNG_SEED
        assert cfg.frames is None
        assert not cfg.headless

    def test_headless_defaults_to_sixty_frames(self):
        args = chip8run.build_parser().parse_args(["game.ch8", "--headless"])
        assert chip8run.config_from_args(args).frames == 60

    def test_key_map_covers_pad(self):
        args = chip8run.build_parser().parse_args(["game.ch8"])
        cfg = chip8run.config_from_args(args)
        assert sorted(cfg.key_map.values()) == list(range(16))


class TestHeadless:

    def test_draws_digit(self, rom, capsys):
        path = rom(DIGIT_ZERO_ROM)
        assert chip8run.main([str(path), "--headless", "--frames", "2"]) == 0
        out = capsys.readouterr().out
        assert "████" in out
        assert "PC=$208" in out

    def test_illegal_opcode_exits_nonzero(self, rom, capsys):
        path = rom(bytes([0x60, 0x01, 0xFF, 0xFF]))
        assert chip8run.main([str(path), "--headless", "--frames", "1"]) == 1
        out = capsys.readouterr().out
        assert "V0=01" in out

    def test_stack_underflow_exits_nonzero(self, rom):
        path = rom(bytes([0x00, 0xEE]))
        assert chip8run.main([str(path), "--headless", "--frames", "1"]) == 1

    def test_missing_rom(self, tmp_path):
        assert chip8run.main([str(tmp_path / "missing.ch8"), "--headless"]) == 1

    def test_oversize_rom(self, rom):
        path = rom(bytes(0x1000 - 0x200 + 1))
        assert chip8run.main([str(path), "--headless", "--frames", "1"]) == 1

    def test_wait_key_stalls_cleanly(self, rom, capsys):
        path = rom(bytes([0xF3, 0x0A]))
        assert chip8run.main([str(path), "--headless", "--frames", "3"]) == 0
        assert "wait=V3" in capsys.readouterr().out


class TestLogSetup:

    def test_file_handler(self, tmp_path):
        logger = setup_logging("chip8_vm_test_file", log_dir=tmp_path, rich_console=False)
        logger.debug("hello from test")
        for h in logger.handlers:
            h.flush()
        files = list(tmp_path.glob("chip8_vm_test_file_*.log"))
        assert len(files) == 1
        assert "hello from test" in files[0].read_text(encoding="utf-8")
        for h in list(logger.handlers):
            h.close()
            logger.removeHandler(h)

    def test_idempotent(self):
        a = setup_logging("chip8_vm_test_idem")
        count = len(a.handlers)
        b = setup_logging("chip8_vm_test_idem")
        assert a is b
        assert len(b.handlers) == count
        assert logging.getLogger("chip8_vm_test_idem").handlers
