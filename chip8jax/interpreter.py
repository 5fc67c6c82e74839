"""Stateful interpreter facade used by drivers."""

from typing import Optional, Sequence

import jax
import jax.numpy as jnp
import numpy as np

from chip8jax.constants import NUM_KEYS, INSTRUCTIONS_PER_TICK
from chip8jax.state import EmulatorState, create_state
from chip8jax.emulator import (
    step, decrement_timers, run, run_frame, run_with_progress, load_program, read_rom,
)
from chip8jax.errors import fault_error
from chip8jax.logging import ConsoleLogger, TraceLogger

_step = jax.jit(step)
_decrement_timers = jax.jit(decrement_timers)


class Interpreter:
    """Owns one emulator state and drives it one call at a time.

    The pure functions in chip8jax.emulator do the work; this class keeps
    the current state, applies key changes from the input side, and turns
    a recorded fault into an exception once the instructions have run.
    """

    def __init__(
        self,
        program: bytes,
        seed: int = 0,
        logger: Optional[ConsoleLogger] = None,
        tracer: Optional[TraceLogger] = None,
    ):
        """Initialize the interpreter from a program image.

        Args:
            program: Program bytes, copied to memory at 0x200
            seed: Seed of the PRNG key used by the random instruction
            logger: Logger for lifecycle and fault messages
            tracer: If given, every instruction executed by step() is traced
        """
        self.program = bytes(program)
        self.seed = seed
        self.logger = logger or ConsoleLogger("Interpreter", log_level="WARNING")
        self.tracer = tracer
        self.state: EmulatorState = None
        self.reset()

    @classmethod
    def from_file(cls, filename: str, **kwargs) -> "Interpreter":
        """Build an interpreter from a ROM file."""
        return cls(read_rom(filename), **kwargs)

    def reset(self):
        """Rebuild the whole state from the loaded program and seed."""
        state = create_state(jax.random.PRNGKey(self.seed))
        self.state = load_program(state, self.program)
        self.logger.info(f"Loaded {len(self.program)} byte program, seed {self.seed}")

    def _check_fault(self):
        error = fault_error(self.state)
        if error is not None:
            self.logger.error(str(error))
            raise error

    def step(self):
        """Execute exactly one instruction."""
        if self.tracer is not None:
            self.tracer.log_instruction(self.state)
        self.state = _step(self.state)
        self._check_fault()

    def decrement_timers(self):
        """Advance both timers by one tick."""
        self.state = _decrement_timers(self.state)

    def run(self, num_instructions: int, progress: bool = False):
        """Execute num_instructions instructions in one compiled loop.

        Timers are not ticked; use run_frame for paced execution.
        """
        if progress:
            self.state = run_with_progress(self.state, num_instructions)
        else:
            self.state = run(self.state, num_instructions)
        self._check_fault()

    def run_frame(self, instructions_per_tick: int = INSTRUCTIONS_PER_TICK):
        """Execute one timer period, then tick the timers."""
        self.state = run_frame(self.state, instructions_per_tick)
        self._check_fault()

    def press_key(self, key: int):
        self.state = self.state.replace(keypad=self.state.keypad.at[key].set(1))

    def release_key(self, key: int):
        self.state = self.state.replace(keypad=self.state.keypad.at[key].set(0))

    def set_keys(self, keys: Sequence[int]):
        """Replace the whole keypad, one 0/1 value per key 0x0-0xF."""
        keypad = jnp.asarray(keys, dtype=jnp.uint8)
        if keypad.shape != (NUM_KEYS,):
            raise ValueError(f"Expected {NUM_KEYS} key states, got shape {keypad.shape}")
        self.state = self.state.replace(keypad=(keypad != 0).astype(jnp.uint8))

    @property
    def display(self) -> np.ndarray:
        """Copy of the 32x64 framebuffer."""
        return np.array(self.state.display)

    @property
    def sound_active(self) -> bool:
        """True while the sound timer is nonzero."""
        return int(self.state.sound_timer) > 0

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def registers(self) -> np.ndarray:
        return np.array(self.state.V)

    @property
    def halted(self) -> bool:
        return int(self.state.fault) != 0
