"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chip8jax.constants import STACK_SIZE, STACK_POINTER_START
from chip8jax.state import StackState


def is_full(stack: StackState) -> jnp.ndarray:
    """True once all 16 slots are in use (the pointer has wrapped below 0)."""
    return stack.pointer >= STACK_SIZE


def is_empty(stack: StackState) -> jnp.ndarray:
    """True when nothing has been pushed."""
    return stack.pointer == STACK_POINTER_START


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack."""
    new_data = stack.data.at[stack.pointer].set(jnp.asarray(address).astype(jnp.uint16))
    return stack.replace(data=new_data, pointer=(stack.pointer - 1).astype(jnp.uint8))


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack."""
    new_pointer = (stack.pointer + 1).astype(jnp.uint8)
    return stack.replace(pointer=new_pointer), stack.data[new_pointer]
