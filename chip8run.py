#!/usr/bin/env python3
"""
chip8run — CHIP-8 interpreter CLI

Usage:
    python chip8run.py <rom.ch8> [--cycles-per-frame N] [--scale S]
                                 [--headless --frames N] [--trace]
                                 [--seed N] [--log-dir DIR] [-v]

Interactive mode opens a pygame window and runs ~60 frames per second:
each frame executes N instructions, ticks the timers once, updates the
buzzer, samples the 16 pad keys and redraws the screen.

Headless mode runs a fixed number of frames with no window and prints
the final screen and register dump. No key is ever pressed, so a ROM
that waits on Fx0A simply stalls.

Keys (hex pad on the left-hand QWERTY block):
    1 2 3 4      1 2 3 C
    Q W E R  ->  4 5 6 D
    A S D F      7 8 9 E
    Z X C V      A 0 B F

Examples:
    python chip8run.py roms/pong.ch8
    python chip8run.py roms/ibm.ch8 --headless --frames 60
    python chip8run.py test.ch8 --headless --frames 5 --trace -v
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from chip8_vm import Chip8Emulator, Chip8Error
from chip8_vm.config import RunConfig, CYCLES_PER_FRAME, FRAME_MS, WINDOW_SCALE, RNG_SEED
from chip8_vm.log_setup import setup_logging

log = logging.getLogger("chip8_vm.run")


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8run",
        description="CHIP-8 virtual machine",
    )
    parser.add_argument("rom", help="Raw CHIP-8 program image (loaded at $200)")
    parser.add_argument("--cycles-per-frame", type=parse_int_arg, default=CYCLES_PER_FRAME,
                        help=f"Instructions per 60 Hz frame (default: {CYCLES_PER_FRAME})")
    parser.add_argument("--scale", type=int, default=WINDOW_SCALE,
                        help=f"Window pixels per CHIP-8 pixel (default: {WINDOW_SCALE})")
    parser.add_argument("--seed", type=parse_int_arg, default=RNG_SEED,
                        help=f"RND seed (default: {RNG_SEED})")
    parser.add_argument("--headless", action="store_true",
                        help="No window: run --frames frames, print screen + registers")
    parser.add_argument("--frames", type=int, default=None,
                        help="Stop after N frames (default: 60 headless, unlimited otherwise)")
    parser.add_argument("--trace", action="store_true",
                        help="Log every executed instruction at DEBUG level")
    parser.add_argument("--log-dir", default=None,
                        help="Write a DEBUG log file into this directory")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Console verbosity (-v info, -vv debug)")
    return parser


def config_from_args(args) -> RunConfig:
    frames = args.frames
    if frames is None and args.headless:
        frames = 60
    return RunConfig(
        rom=Path(args.rom),
        cycles_per_frame=args.cycles_per_frame,
        frame_ms=FRAME_MS,
        scale=args.scale,
        seed=args.seed,
        headless=args.headless,
        frames=frames,
        trace=args.trace,
        log_dir=Path(args.log_dir) if args.log_dir else None,
    )


def run_headless(emu: Chip8Emulator, cfg: RunConfig, console: Console) -> int:
    """Run cfg.frames frames with no presentation layer."""
    for _ in range(cfg.frames):
        emu.run_frame(cfg.cycles_per_frame)
    console.print(Panel(emu.render_text(), title=cfg.rom.name,
                        subtitle=f"{emu.regs.cycles} cycles", expand=False))
    console.print(emu.dump_state(), highlight=False)
    if emu.waiting_for_key:
        log.info("Stopped while waiting for a key press")
    return 0


def run_interactive(emu: Chip8Emulator, cfg: RunConfig) -> int:
    """Paced loop: cycles, timers, buzzer, keys, draw, then sleep to ~60 Hz."""
    from chip8_vm.media import PygameMedia

    media = PygameMedia(scale=cfg.scale, key_map=cfg.key_map,
                        title=f"CHIP-8 - {cfg.rom.name}")
    frame = 0
    try:
        while not media.poll_exit_requested():
            start = media.ms_elapsed()

            emu.run_frame(cfg.cycles_per_frame)
            media.set_buzzer(emu.buzzer_active)
            media.update_keys(emu)
            media.render(emu)

            frame += 1
            if cfg.frames is not None and frame >= cfg.frames:
                break

            elapsed = media.ms_elapsed() - start
            media.delay(cfg.frame_ms - elapsed if elapsed < cfg.frame_ms else 1)
    finally:
        media.close()
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cfg = config_from_args(args)

    if args.verbose >= 2 or cfg.trace:
        console_level = logging.DEBUG
    elif args.verbose == 1:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING
    setup_logging("chip8_vm", console_level=console_level, log_dir=cfg.log_dir)

    console = Console()
    emu = Chip8Emulator(seed=cfg.seed)
    emu.enable_trace(cfg.trace)

    try:
        emu.load_rom(cfg.rom)
        if cfg.headless:
            return run_headless(emu, cfg, console)
        return run_interactive(emu, cfg)
    except Chip8Error as e:
        log.error("Interpreter stopped: %s", e)
        console.print(emu.dump_state(), highlight=False)
        return 1
    except KeyboardInterrupt:
        log.warning("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
