"""A pygame window that shows the machine's screen and reports keypad events."""

from __future__ import annotations

from typing import Optional

import pygame

from chip8emu.emulator import KeyEvent, key_for_name
from chip8emu.machine import HEIGHT, WIDTH, Chip8

PIXEL_ON = (255, 255, 255)
PIXEL_OFF = (0, 0, 0)


class Window:
    """A window scaled up from the 64x32 CHIP-8 screen."""

    def __init__(self, scale: int = 10, title: str = "CHIP-8") -> None:
        if scale < 1:
            raise ValueError(f"scale must be at least 1, not {scale}")
        self.scale = scale
        pygame.display.init()
        self.surface = pygame.display.set_mode((WIDTH * scale, HEIGHT * scale))
        pygame.display.set_caption(title)
        self.surface.fill(PIXEL_OFF)
        self._open = True

    def present(self, machine: Chip8) -> None:
        """Draw the machine's screen and show it."""
        self.surface.fill(PIXEL_OFF)
        size = self.scale
        for y, row in enumerate(machine.rows()):
            for x, lit in enumerate(row):
                if lit:
                    self.surface.fill(PIXEL_ON, pygame.Rect(x * size, y * size, size, size))
        pygame.display.flip()

    def poll_events(self) -> Optional[list[KeyEvent]]:
        """Return pending keypad events, or None if the window was closed."""
        events: list[KeyEvent] = []
        quit_requested = False
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                quit_requested = True
            elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                key = key_for_name(pygame.key.name(event.key))
                if key is not None:
                    events.append(KeyEvent(key, event.type == pygame.KEYDOWN))
        return None if quit_requested else events

    def close(self) -> None:
        if self._open:
            self._open = False
            pygame.display.quit()

    def __enter__(self) -> "Window":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()