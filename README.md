# chip8emu

A CHIP-8 interpreter. It loads a ROM at address `0x200`, runs it at about one
instruction per millisecond, counts the delay and sound timers down at about
60 Hz and draws the 64×32 monochrome screen in a pygame window.

## Installation

```
pip install .
```

Add the `test` extra (`pip install .[test]`) to run the test suite with pytest.

## Running a ROM

```
chip8emu path/to/game.ch8
```

Options:

- `--scale N`: window pixels per CHIP-8 pixel (default 10, at least 1).
- `--shift-quirk` / `--no-shift-quirk`: 8XY6 and 8XYE shift VY into VX
  instead of shifting VX in place (on by default).
- `--bitwise-quirk` / `--no-bitwise-quirk`: 8XY1, 8XY2 and 8XY3 reset VF to 0
  (on by default).
- `--draw-on-call` / `--no-draw-on-call`: redraw the window only when the
  program draws (DXYN) or clears (00E0) the screen, instead of once every
  frame (on by default).
- `--index-increment {x+1,x,none}`: how FX55 and FX65 advance I afterwards
  (default `x+1`).

If the ROM file cannot be read, or is too large to fit in memory above
`0x200`, the command prints an error and exits with status 1.

The CHIP-8 hex keypad is mapped onto the left side of the keyboard, in row
order:

```
1 2 3 4        0 1 2 3
Q W E R   ->   4 5 6 7
A S D F        8 9 A B
Z X C V        C D E F
```

Close the window to stop the emulator.

If the ROM holds an instruction the interpreter does not know, the emulator
prints its opcode and asks on the terminal whether to skip it and go on. Any
answer other than one starting with `Y` or `y` stops the emulator.

## Using the library

The machine works on its own, without a window:

```python
from chip8emu.machine import Chip8, Quirks

chip = Chip8(quirks=Quirks(shift_vy=True, reset_vf=True))
chip.load_rom(bytes([0x60, 0x2A]))   # 6XNN: V0 = 0x2A
chip.step()
print(chip.v[0])                     # 42
```

`Quirks` has four switches: `reset_vf`, `shift_vy`, `increment_only_by_x` and
`increment_none`. `Chip8` also takes an `rng` (a `random.Random`, used by
CXNN) and an `on_screen_update` callback.

`Chip8.step()` runs one instruction (or nothing while FX0A waits for a key),
and `Chip8.tick_timers()` counts the timers down one step. `load_rom` and
`load_rom_file` load a program, and `reset` clears the machine. `press_key`,
`release_key` and `is_key_down` give the state of the keypad; releasing a key
completes a pending FX0A wait. `pixel(x, y)` and `rows()` read the screen. An
unknown opcode raises `UnknownInstructionError`, whose `opcode` attribute
holds the instruction.

`chip8emu.emulator.Emulator` adds the timing, the keypad handling (`KeyEvent`,
`handle_key`, `key_for_name`) and the drawing policy; `run(poll_events)` loops
until `stop()` is called or `poll_events` returns `None`.
`chip8emu.display.Window` is the pygame window. Its `present` and
`poll_events` methods plug into `Emulator`, and it can be used as a context
manager.

## Limitations

The sound timer is counted down but no sound is played.