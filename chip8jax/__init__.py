"""CHIP-8 interpreter package."""

from chip8jax.state import EmulatorState, create_state
from chip8jax.emulator import (
    execute, fetch, step, decrement_timers, run, run_frame, run_with_progress,
    load_program, load_rom, read_rom,
)
from chip8jax.decode import DecodedInstruction, decode, mnemonic
from chip8jax.constants import *
from chip8jax.errors import (
    Chip8Error, RomError, RomTooLargeError, ExecutionFault, UnrecognizedOpcodeError,
    StackOverflowError, StackUnderflowError, MemoryAccessError, raise_for_fault,
)
from chip8jax.interpreter import Interpreter
from chip8jax.rendering import display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "decrement_timers",
    "run",
    "run_frame",
    "run_with_progress",
    "load_program",
    "load_rom",
    "read_rom",
    "DecodedInstruction",
    "decode",
    "mnemonic",
    "Interpreter",
    "Chip8Error",
    "RomError",
    "RomTooLargeError",
    "ExecutionFault",
    "UnrecognizedOpcodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "MemoryAccessError",
    "raise_for_fault",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "create_color_scheme",
]
