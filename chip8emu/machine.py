"""CHIP-8 virtual machine: memory, registers, timers, keypad and display."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

logger = logging.getLogger(__name__)

WIDTH = 64
HEIGHT = 32
MEMORY_SIZE = 4096
PROGRAM_START = 0x200
REGISTER_COUNT = 16
KEY_COUNT = 16
FONT_GLYPH_SIZE = 5

FONT = bytes(
    (
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    )
)

ScreenCallback = Callable[[bool], None]


class UnknownInstructionError(Exception):
    """Raised when the machine fetches an opcode it does not understand."""

    def __init__(self, opcode: int) -> None:
        super().__init__(f"unknown instruction: {opcode:04x}")
        self.opcode = opcode


@dataclass
class Quirks:
    """Behaviour switches on which CHIP-8 interpreters differ."""

    reset_vf: bool = False
    shift_vy: bool = False
    increment_only_by_x: bool = False
    increment_none: bool = False


class Chip8:
    """The CHIP-8 machine state and instruction set.

    ``on_screen_update`` is called with ``cleared=True`` after 00E0 and
    ``cleared=False`` after DXYN.
    """

    def __init__(
        self,
        quirks: Optional[Quirks] = None,
        rng: Optional[random.Random] = None,
        on_screen_update: Optional[ScreenCallback] = None,
    ) -> None:
        self.quirks = quirks if quirks is not None else Quirks()
        self._rng = rng if rng is not None else random.Random()
        self._on_screen_update = on_screen_update
        self.reset()

    def reset(self) -> None:
        """Clear memory, registers, timers, keys and the screen."""
        self.memory = bytearray(MEMORY_SIZE)
        self.memory[: len(FONT)] = FONT
        self.v = bytearray(REGISTER_COUNT)
        self.pc = PROGRAM_START
        self.i = 0
        self.stack: list[int] = []
        self.delay_timer = 0
        self.sound_timer = 0
        self.waiting_register: Optional[int] = None
        self._keys = [False] * KEY_COUNT
        self._screen = [bytearray(WIDTH) for _ in range(HEIGHT)]

    @property
    def waiting_for_key(self) -> bool:
        return self.waiting_register is not None

    # Program loading

    def load_rom(self, data: bytes) -> None:
        """Copy a program to 0x200 and the font to address 0."""
        if len(data) + PROGRAM_START > MEMORY_SIZE:
            raise ValueError("ROM is too large to store in RAM.")
        self.memory[PROGRAM_START : PROGRAM_START + len(data)] = data
        self.memory[: len(FONT)] = FONT

    def load_rom_file(self, path: Union[str, Path]) -> None:
        """Read a program from a file and load it."""
        self.load_rom(Path(path).read_bytes())

    # Execution

    def step(self) -> None:
        """Fetch and execute one instruction, unless waiting for a key."""
        if self.waiting_for_key:
            return
        high = self.memory[self.pc % MEMORY_SIZE]
        low = self.memory[(self.pc + 1) % MEMORY_SIZE]
        opcode = (high << 8) | low
        self.pc = (self.pc + 2) & 0xFFFF
        self._execute(opcode)

    def tick_timers(self) -> None:
        """Count the delay and sound timers down by one, stopping at zero."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    # Keypad

    @staticmethod
    def _check_key(key: int) -> None:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"no such key: {key}")

    def press_key(self, key: int) -> None:
        self._check_key(key)
        self._keys[key] = True

    def release_key(self, key: int) -> None:
        """Release a key; completes a pending FX0A wait."""
        self._check_key(key)
        self._keys[key] = False
        if self.waiting_register is not None:
            self.v[self.waiting_register] = key
            self.waiting_register = None

    def is_key_down(self, key: int) -> bool:
        return 0 <= key < KEY_COUNT and self._keys[key]

    # Display

    def pixel(self, x: int, y: int) -> bool:
        if not (0 <= x < WIDTH and 0 <= y < HEIGHT):
            raise IndexError(f"pixel ({x}, {y}) is off screen")
        return bool(self._screen[y][x])

    def rows(self) -> Iterator[tuple[bool, ...]]:
        """Yield the screen top to bottom, one tuple of pixels per row."""
        for row in self._screen:
            yield tuple(bool(p) for p in row)

    # Internals

    def _notify(self, cleared: bool) -> None:
        if self._on_screen_update is not None:
            self._on_screen_update(cleared)

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.pc = (self.pc + 2) & 0xFFFF

    def _execute(self, opcode: int) -> None:
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        n = opcode & 0xF
        nn = opcode & 0xFF
        nnn = opcode & 0xFFF
        v = self.v

        match opcode >> 12:
            case 0x0:
                if opcode == 0x00EE:
                    self._return()
                elif opcode == 0x00E0:
                    self._clear()
                else:
                    logger.info("instruction ignored: 0NNN (%03x)", nnn)
            case 0x1:
                self.pc = nnn
            case 0x2:
                self.stack.append(self.pc)
                self.pc = nnn
            case 0x3:
                self._skip_if(v[x] == nn)
            case 0x4:
                self._skip_if(v[x] != nn)
            case 0x5:
                self._skip_if(v[x] == v[y])
            case 0x6:
                v[x] = nn
            case 0x7:
                v[x] = (v[x] + nn) & 0xFF
            case 0x8:
                self._arithmetic(opcode, x, y, n)
            case 0x9:
                if n != 0:
                    raise UnknownInstructionError(opcode)
                self._skip_if(v[x] != v[y])
            case 0xA:
                self.i = nnn
            case 0xB:
                self.pc = (v[0] + nnn) & 0xFFFF
            case 0xC:
                v[x] = self._rng.randrange(256) & nn
            case 0xD:
                self._draw(x, y, n)
            case 0xE:
                if nn == 0x9E:
                    self._skip_if(self.is_key_down(v[x]))
                elif nn == 0xA1:
                    self._skip_if(v[x] < KEY_COUNT and not self._keys[v[x]])
                else:
                    raise UnknownInstructionError(opcode)
            case _:
                self._misc(opcode, x, nn)

    def _return(self) -> None:
        if not self.stack:
            logger.warning("stack empty on 00EE return")
            return
        self.pc = self.stack.pop()

    def _clear(self) -> None:
        for row in self._screen:
            row[:] = bytes(WIDTH)
        self._notify(cleared=True)

    def _arithmetic(self, opcode: int, x: int, y: int, n: int) -> None:
        v = self.v
        vx, vy = v[x], v[y]
        if n == 0x0:
            v[x] = vy
        elif n in (0x1, 0x2, 0x3):
            if n == 0x1:
                v[x] = vx | vy
            elif n == 0x2:
                v[x] = vx & vy
            else:
                v[x] = vx ^ vy
            if self.quirks.reset_vf:
                v[0xF] = 0
        elif n == 0x4:
            total = vx + vy
            v[x] = total & 0xFF
            v[0xF] = int(total > 0xFF)
        elif n == 0x5:
            v[x] = (vx - vy) & 0xFF
            v[0xF] = int(vx >= vy)
        elif n == 0x6:
            source = vy if self.quirks.shift_vy else vx
            v[x] = source >> 1
            v[0xF] = source & 1
        elif n == 0x7:
            v[x] = (vy - vx) & 0xFF
            v[0xF] = int(vy >= vx)
        elif n == 0xE:
            source = vy if self.quirks.shift_vy else vx
            v[x] = (source << 1) & 0xFF
            v[0xF] = source >> 7
        else:
            raise UnknownInstructionError(opcode)

    def _draw(self, x: int, y: int, height: int) -> None:
        left = self.v[x] % WIDTH
        top = self.v[y] % HEIGHT
        self.v[0xF] = 0
        for offset in range(height):
            py = top + offset
            if py >= HEIGHT:
                break
            sprite = self.memory[(self.i + offset) % MEMORY_SIZE]
            row = self._screen[py]
            for col in range(8):
                px = left + col
                if px >= WIDTH:
                    break
                if (sprite >> (7 - col)) & 1:
                    if row[px]:
                        self.v[0xF] = 1
                    row[px] ^= 1
        self._notify(cleared=False)

    def _advance_index(self, x: int) -> None:
        if self.quirks.increment_only_by_x:
            self.i = (self.i + x) & 0xFFFF
        elif not self.quirks.increment_none:
            self.i = (self.i + x + 1) & 0xFFFF

    def _misc(self, opcode: int, x: int, nn: int) -> None:
        v = self.v
        if nn == 0x07:
            v[x] = self.delay_timer
        elif nn == 0x0A:
            self.waiting_register = x
        elif nn == 0x15:
            self.delay_timer = v[x]
        elif nn == 0x18:
            self.sound_timer = v[x]
        elif nn == 0x1E:
            self.i = (self.i + v[x]) & 0xFFFF
        elif nn == 0x29:
            self.i = v[x] * FONT_GLYPH_SIZE
        elif nn == 0x33:
            value = v[x]
            for offset, digit in enumerate((value // 100, (value // 10) % 10, value % 10)):
                self.memory[(self.i + offset) % MEMORY_SIZE] = digit
        elif nn == 0x55:
            for reg in range(x + 1):
                self.memory[(self.i + reg) % MEMORY_SIZE] = v[reg]
            self._advance_index(x)
        elif nn == 0x65:
            for reg in range(x + 1):
                v[reg] = self.memory[(self.i + reg) % MEMORY_SIZE]
            self._advance_index(x)
        else:
            raise UnknownInstructionError(opcode)