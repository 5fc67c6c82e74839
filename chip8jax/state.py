"""CHIP-8 emulator state structures."""

from typing import Optional

import jax
import jax.numpy as jnp
from flax.struct import PyTreeNode

from chip8jax.constants import (
    MEMORY_SIZE, FONT_START, FONT_DATA, PROGRAM_START, SCREEN_WIDTH, SCREEN_HEIGHT,
    NUM_REGISTERS, NUM_KEYS, STACK_SIZE, STACK_POINTER_START, FAULT_NONE,
)


class StackState(PyTreeNode):
    """Return address stack, filled downwards from slot 15."""
    data: jnp.ndarray
    pointer: jnp.ndarray


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    Attributes:
        rng: PRNG key consumed by the random instruction
        memory: 4096 bytes of RAM (font at 0x100, program at 0x200)
        pc: Program counter
        I: Index register
        V: General purpose registers V0-VF (VF doubles as flag register)
        stack: Subroutine return addresses
        display: 32x64 framebuffer, row-major, one 0/1 byte per pixel
        keypad: Key states for keys 0x0-0xF, 1 when pressed
        delay_timer: Delay countdown register
        sound_timer: Sound countdown register
        fault: Fault code, FAULT_NONE while the machine is running
        fault_opcode: Opcode of the instruction that faulted
        fault_pc: Address of the instruction that faulted
    """
    rng: jax.Array
    memory: jnp.ndarray
    pc: jnp.ndarray
    I: jnp.ndarray
    V: jnp.ndarray
    stack: StackState
    display: jnp.ndarray
    keypad: jnp.ndarray
    delay_timer: jnp.ndarray
    sound_timer: jnp.ndarray
    fault: jnp.ndarray
    fault_opcode: jnp.ndarray
    fault_pc: jnp.ndarray


def create_state(rng: Optional[jax.Array] = None) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    if rng is None:
        rng = jax.random.PRNGKey(0)
    memory = jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8)
    memory = memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA)
    return EmulatorState(
        rng=rng,
        memory=memory,
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        I=jnp.zeros((), dtype=jnp.uint16),
        V=jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8),
        stack=StackState(
            data=jnp.zeros(STACK_SIZE, dtype=jnp.uint16),
            pointer=jnp.asarray(STACK_POINTER_START, dtype=jnp.uint8),
        ),
        display=jnp.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=jnp.uint8),
        keypad=jnp.zeros(NUM_KEYS, dtype=jnp.uint8),
        delay_timer=jnp.zeros((), dtype=jnp.uint8),
        sound_timer=jnp.zeros((), dtype=jnp.uint8),
        fault=jnp.asarray(FAULT_NONE, dtype=jnp.uint8),
        fault_opcode=jnp.zeros((), dtype=jnp.uint16),
        fault_pc=jnp.zeros((), dtype=jnp.uint16),
    )


def set_fault(state: EmulatorState, code: int, opcode) -> EmulatorState:
    """Record a fault for the instruction fetched just before PC."""
    return state.replace(
        fault=jnp.asarray(code, dtype=jnp.uint8),
        fault_opcode=jnp.asarray(opcode).astype(jnp.uint16),
        fault_pc=(state.pc - 2).astype(jnp.uint16),
    )
