"""A CHIP-8 interpreter: the machine, a real-time driver, a pygame window and a command."""

__version__ = "0.1.0"
__all__ = ["cli", "display", "emulator", "machine"]