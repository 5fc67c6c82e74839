"""CHIP-8 display operations."""

import jax
import jax.numpy as jnp
from chip8jax.state import EmulatorState, set_fault
from chip8jax.decode import DecodedInstruction
from chip8jax.constants import (
    SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, MEMORY_SIZE, FLAG_REGISTER, FAULT_MEMORY_ACCESS,
)

# Pre-computed coordinate grids matching the row-major display
rows, cols = jnp.meshgrid(jnp.arange(SCREEN_HEIGHT), jnp.arange(SCREEN_WIDTH), indexing='ij')


def sprite_mask(memory: jnp.ndarray, address, origin_x, origin_y, height) -> jnp.ndarray:
    """Screen-sized 0/1 mask of the sprite bits covering each pixel.

    Pixels past the right or bottom edge are simply not part of the grid,
    so they are dropped rather than wrapped.
    """
    row_offset = rows - origin_y
    col_offset = cols - origin_x
    in_sprite = (col_offset >= 0) & (col_offset < SPRITE_WIDTH) & (row_offset >= 0) & (row_offset < height)

    sprite_bytes = memory[jnp.clip(address + row_offset, 0, MEMORY_SIZE - 1)].astype(jnp.int32)
    bits = (sprite_bytes >> (SPRITE_WIDTH - 1 - jnp.clip(col_offset, 0, SPRITE_WIDTH - 1))) & 1
    return jnp.where(in_sprite, bits, 0).astype(jnp.uint8)


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, VF = collision."""
    address = state.I.astype(jnp.int32)

    def _draw(state):
        sprite = sprite_mask(
            state.memory,
            address,
            state.V[instruction.x].astype(jnp.int32),
            state.V[instruction.y].astype(jnp.int32),
            instruction.n,
        )
        collision = jnp.any((state.display & sprite) == 1)
        return state.replace(
            display=state.display ^ sprite,
            V=state.V.at[FLAG_REGISTER].set(collision.astype(jnp.uint8))
        )

    return jax.lax.cond(
        address + instruction.n > MEMORY_SIZE,
        lambda s: set_fault(s, FAULT_MEMORY_ACCESS, instruction.raw),
        _draw,
        state
    )
