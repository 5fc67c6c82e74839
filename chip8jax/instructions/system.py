"""CHIP-8 system instructions (0x0xxx) and the unknown-opcode handler."""

import jax
import jax.numpy as jnp
from chip8jax.state import EmulatorState, set_fault
from chip8jax.decode import DecodedInstruction
from chip8jax.constants import FAULT_UNKNOWN_OPCODE, FAULT_STACK_UNDERFLOW
from chip8jax.stack import pop, is_empty


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    def _return(state):
        stack, address = pop(state.stack)
        return state.replace(stack=stack, pc=address.astype(jnp.uint16))

    return jax.lax.cond(
        is_empty(state.stack),
        lambda s: set_fault(s, FAULT_STACK_UNDERFLOW, instruction.raw),
        _return,
        state
    )


def execute_unknown(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Opcode that matches no instruction: halt with a fault."""
    return set_fault(state, FAULT_UNKNOWN_OPCODE, instruction.raw)
