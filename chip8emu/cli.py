"""Command line entry point: load a ROM and run it in a window."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from chip8emu.machine import Chip8, Quirks, UnknownInstructionError

_INCREMENT_MODES = ("x+1", "x", "none")


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, not {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8emu", description="Run a CHIP-8 program.")
    parser.add_argument("rom", help="path to the ROM file")
    parser.add_argument("--scale", type=_positive_int, default=10, help="window pixels per CHIP-8 pixel")
    parser.add_argument(
        "--shift-quirk",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="8XY6/8XYE shift VY into VX",
    )
    parser.add_argument(
        "--bitwise-quirk",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="8XY1/8XY2/8XY3 reset VF",
    )
    parser.add_argument(
        "--draw-on-call",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="update the window only on draw and clear instead of every frame",
    )
    parser.add_argument(
        "--index-increment",
        choices=_INCREMENT_MODES,
        default="x+1",
        help="how FX55/FX65 advance I",
    )
    return parser


def _ask_skip(error: UnknownInstructionError) -> bool:
    print(f"Unknown instruction: {error.opcode:x}")
    try:
        answer = input("Skip instruction and continue? Y or N.\nInput: ")
    except EOFError:
        return False
    return answer[:1] in ("Y", "y")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    quirks = Quirks(
        reset_vf=args.bitwise_quirk,
        shift_vy=args.shift_quirk,
        increment_only_by_x=args.index_increment == "x",
        increment_none=args.index_increment == "none",
    )
    machine = Chip8(quirks)
    try:
        machine.load_rom_file(args.rom)
    except OSError:
        print("Unable to open ROM. Double check the file path.", file=sys.stderr)
        return 1
    except ValueError as error:
        print(error, file=sys.stderr)
        return 1

    from chip8emu.display import Window
    from chip8emu.emulator import Emulator

    with Window(scale=args.scale) as window:
        emulator = Emulator(
            machine,
            draw_on_call=args.draw_on_call,
            present=window.present,
            confirm_skip=_ask_skip,
        )
        emulator.run(window.poll_events)
    print("Emulator shutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())