"""Real-time driver for the machine: pacing, timers, keypad input and presentation."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from chip8emu.machine import Chip8, UnknownInstructionError

logger = logging.getLogger(__name__)

TICK_MS = 1.0
FRAME_MS = 16.67

# Keyboard layout, in keypad order 0..F:
#   1 2 3 4
#   q w e r
#   a s d f
#   z x c v
KEY_LAYOUT = ("1", "2", "3", "4", "q", "w", "e", "r", "a", "s", "d", "f", "z", "x", "c", "v")
_KEY_NUMBERS = {name: number for number, name in enumerate(KEY_LAYOUT)}

Presenter = Callable[[Chip8], None]
SkipPrompt = Callable[[UnknownInstructionError], bool]
EventSource = Callable[[], Optional[Iterable["KeyEvent"]]]


def key_for_name(name: str) -> Optional[int]:
    """Return the keypad number bound to a keyboard key name, or None."""
    return _KEY_NUMBERS.get(name.lower())


@dataclass(frozen=True)
class KeyEvent:
    """A keypad key going down (``pressed=True``) or up."""

    key: int
    pressed: bool


class Emulator:
    """Runs a machine at about 1000 instructions and 60 frames per second.

    ``present`` is called with the machine whenever the screen should be shown.
    ``confirm_skip`` decides whether to continue after an unknown instruction;
    without it, emulation stops.
    """

    def __init__(
        self,
        machine: Optional[Chip8] = None,
        draw_on_call: bool = False,
        present: Optional[Presenter] = None,
        confirm_skip: Optional[SkipPrompt] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.machine = machine if machine is not None else Chip8()
        self.draw_on_call = draw_on_call
        self._present = present
        self._confirm_skip = confirm_skip
        self._clock = clock
        self._last_tick = -math.inf
        self._last_frame = -math.inf
        self.running = False
        self.machine._on_screen_update = self._screen_updated

    def _show(self) -> None:
        if self._present is not None:
            self._present(self.machine)

    def _screen_updated(self, cleared: bool) -> None:
        if cleared or self.draw_on_call:
            self._show()

    def handle_key(self, event: KeyEvent) -> None:
        """Apply a key event to the machine's keypad."""
        if event.pressed:
            self.machine.press_key(event.key)
        else:
            self.machine.release_key(event.key)

    def tick(self) -> None:
        """Update timers and run one instruction if enough time has passed."""
        now = self._clock()
        if (now - self._last_tick) * 1000.0 < TICK_MS:
            return

        if (now - self._last_frame) * 1000.0 >= FRAME_MS:
            self.machine.tick_timers()
            if not self.draw_on_call:
                self._show()
            self._last_frame = self._clock()

        if self.machine.waiting_for_key:
            self._last_tick = self._clock()
            return

        try:
            self.machine.step()
        except UnknownInstructionError as error:
            logger.warning("%s", error)
            if self._confirm_skip is None or not self._confirm_skip(error):
                self.running = False

        self._last_tick = self._clock()

    def stop(self) -> None:
        """Ask the run loop to finish."""
        self.running = False

    def run(self, poll_events: EventSource) -> None:
        """Loop until stopped, feeding events from ``poll_events`` to the keypad.

        ``poll_events`` returns the pending key events, or None when the user
        asked to quit.
        """
        self.running = True
        while self.running:
            events = poll_events()
            if events is None:
                self.stop()
            else:
                for event in events:
                    self.handle_key(event)
            self.tick()