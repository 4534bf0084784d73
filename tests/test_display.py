import pygame
import pytest

from chip8emu.display import Window
from chip8emu.emulator import KeyEvent
from chip8emu.machine import HEIGHT, WIDTH, Chip8


@pytest.fixture
def window(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    with Window(scale=4) as win:
        pygame.event.clear()
        yield win


def colour_at(win, x, y):
    return tuple(win.surface.get_at((x, y)))[:3]


def test_window_size_follows_scale(window):
    assert window.surface.get_size() == (WIDTH * 4, HEIGHT * 4)


def test_rejects_non_positive_scale():
    with pytest.raises(ValueError):
        Window(scale=0)


def test_present_draws_lit_pixels(window):
    machine = Chip8()
    machine.load_rom(bytes([0xA0, 0x00, 0xD0, 0x01]))
    machine.step()
    machine.step()
    window.present(machine)
    assert colour_at(window, 0, 0) == (255, 255, 255)
    assert colour_at(window, 3 * 4 + 3, 3) == (255, 255, 255)
    assert colour_at(window, 4 * 4, 0) == (0, 0, 0)
    assert colour_at(window, 0, 4) == (0, 0, 0)


def test_poll_events_maps_keys(window):
    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_q))
    pygame.event.post(pygame.event.Event(pygame.KEYUP, key=pygame.K_v))
    assert window.poll_events() == [KeyEvent(4, True), KeyEvent(15, False)]


def test_poll_events_ignores_unmapped_keys(window):
    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_p))
    assert window.poll_events() == []


def test_poll_events_reports_quit(window):
    pygame.event.post(pygame.event.Event(pygame.QUIT))
    assert window.poll_events() is None