"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chip8jax import create_state, load_program


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


def program(*opcodes):
    """Assemble 16-bit opcodes into a big-endian program image."""
    return b"".join(opcode.to_bytes(2, "big") for opcode in opcodes)


def load_opcodes(state, *opcodes):
    """Helper to put a program made of opcodes at 0x200."""
    return load_program(state, program(*opcodes))


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def set_registers(state, **values):
    """Helper to set registers by name, e.g. set_registers(state, V1=0x42)."""
    V = state.V
    for name, value in values.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)
