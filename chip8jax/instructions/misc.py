"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8jax.state import EmulatorState, set_fault
from chip8jax.decode import DecodedInstruction
from chip8jax.constants import FONT_START, FONT_CHAR_BYTES, MEMORY_SIZE, NUM_REGISTERS, FAULT_MEMORY_ACCESS


def _guard_memory(state: EmulatorState, instruction: DecodedInstruction, length, action) -> EmulatorState:
    """Run action only if [I, I + length) lies inside memory, fault otherwise."""
    return jax.lax.cond(
        state.I.astype(jnp.int32) + length > MEMORY_SIZE,
        lambda s: set_fault(s, FAULT_MEMORY_ACCESS, instruction.raw),
        action,
        state
    )


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register, VF unaffected."""
    new_i = (state.I.astype(jnp.int32) + state.V[instruction.x]) & 0xFFFF
    return state.replace(I=new_i.astype(jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press (blocking).

    Nothing suspends here: with no key down PC is moved back onto this
    instruction so the next step polls the keypad again.
    """
    pressed = state.keypad == 1

    def key_pressed_action(state):
        pressed_key = jnp.argmax(pressed).astype(jnp.uint8)
        return state.replace(V=state.V.at[instruction.x].set(pressed_key))

    def wait_action(state):
        return state.replace(pc=(state.pc - 2).astype(jnp.uint16))

    return jax.lax.cond(jnp.any(pressed), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + state.V[instruction.x].astype(jnp.int32) * FONT_CHAR_BYTES
    return state.replace(I=font_address.astype(jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    def _store(state):
        digits = jnp.array([
            value // 100,
            (value // 10) % 10,
            value % 10
        ], dtype=jnp.uint8)
        indices = jnp.arange(3) + state.I.astype(jnp.int32)
        return state.replace(memory=state.memory.at[indices].set(digits))

    return _guard_memory(state, instruction, 3, _store)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I, I unchanged."""
    def _store(state):
        register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
        base_indices = state.I.astype(jnp.int32) + jnp.arange(NUM_REGISTERS)
        current_memory_values = state.memory[jnp.clip(base_indices, 0, MEMORY_SIZE - 1)]
        new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
        return state.replace(memory=state.memory.at[base_indices].set(new_memory_values, mode="drop"))

    return _guard_memory(state, instruction, instruction.x + 1, _store)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I, I unchanged."""
    def _load(state):
        register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
        base_indices = state.I.astype(jnp.int32) + jnp.arange(NUM_REGISTERS)
        memory_values = state.memory[jnp.clip(base_indices, 0, MEMORY_SIZE - 1)]
        return state.replace(V=jnp.where(register_mask, memory_values, state.V))

    return _guard_memory(state, instruction, instruction.x + 1, _load)
