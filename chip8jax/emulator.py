"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from chip8jax.state import EmulatorState, set_fault
from chip8jax.decode import decode, INSTRUCTION_NAMES
from chip8jax.constants import (
    PROGRAM_START, MAX_PROGRAM_SIZE, MEMORY_SIZE, FAULT_NONE, FAULT_MEMORY_ACCESS,
)
from chip8jax.errors import RomError, RomTooLargeError
from chip8jax.logging import scan_with_progress
from chip8jax.instructions.system import execute_clear_screen, execute_return, execute_unknown
from chip8jax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key_pressed, execute_skip_if_key_released
)
from chip8jax.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left
)
from chip8jax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8jax.instructions.display import execute_display
from chip8jax.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)

HANDLERS = {
    "clear_screen": execute_clear_screen,
    "return": execute_return,
    "jump": execute_jump,
    "call": execute_call,
    "skip_if_equal_immediate": execute_skip_if_equal_immediate,
    "skip_if_not_equal_immediate": execute_skip_if_not_equal_immediate,
    "skip_if_equal_register": execute_skip_if_equal_register,
    "set": execute_set,
    "add": execute_add,
    "alu_set": execute_alu_set,
    "alu_or": execute_alu_or,
    "alu_and": execute_alu_and,
    "alu_xor": execute_alu_xor,
    "alu_add": execute_alu_add,
    "alu_sub_xy": execute_alu_sub_xy,
    "alu_shift_right": execute_alu_shift_right,
    "alu_sub_yx": execute_alu_sub_yx,
    "alu_shift_left": execute_alu_shift_left,
    "skip_if_not_equal_register": execute_skip_if_not_equal_register,
    "set_index": execute_set_index,
    "jump_with_offset": execute_jump_with_offset,
    "random": execute_random,
    "display": execute_display,
    "skip_if_key_pressed": execute_skip_if_key_pressed,
    "skip_if_key_released": execute_skip_if_key_released,
    "get_delay_timer": execute_get_delay_timer,
    "wait_for_key": execute_wait_for_key,
    "set_delay_timer": execute_set_delay_timer,
    "set_sound_timer": execute_set_sound_timer,
    "add_to_index": execute_add_to_index,
    "font_character": execute_font_character,
    "bcd_conversion": execute_bcd_conversion,
    "store_registers": execute_store_registers,
    "load_registers": execute_load_registers,
}

# Branch i handles instruction kind i, the extra last branch handles UNKNOWN
BRANCHES = [HANDLERS[name] for name in INSTRUCTION_NAMES] + [execute_unknown]


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction."""
    decoded_instruction = decode(instruction)
    return jax.lax.switch(decoded_instruction.kind, BRANCHES, state, decoded_instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    pc = state.pc.astype(jnp.int32)
    instruction = _pack_u16(
        state.memory[jnp.minimum(pc, MEMORY_SIZE - 1)],
        state.memory[jnp.minimum(pc + 1, MEMORY_SIZE - 1)],
    )
    return state.replace(pc=(state.pc + 2).astype(jnp.uint16)), instruction


def step(state: EmulatorState) -> EmulatorState:
    """Run one fetch-decode-execute cycle.

    A faulted state is returned untouched. When the instruction faults, PC
    stays on it and only the fault record changes.
    """
    def _run(state):
        fetched, instruction = fetch(state)
        executed = jax.lax.cond(
            state.pc.astype(jnp.int32) > MEMORY_SIZE - 2,
            lambda s: set_fault(s, FAULT_MEMORY_ACCESS, instruction),
            lambda s: execute(s, instruction),
            fetched
        )
        return jax.lax.cond(
            executed.fault == FAULT_NONE,
            lambda s: s,
            lambda s: state.replace(fault=s.fault, fault_opcode=s.fault_opcode, fault_pc=s.fault_pc),
            executed
        )

    return jax.lax.cond(state.fault == FAULT_NONE, _run, lambda s: s, state)


def decrement_timers(state: EmulatorState) -> EmulatorState:
    """Count both timers down by one, stopping at zero."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, 0).astype(jnp.uint8),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, 0).astype(jnp.uint8),
    )


def run_instruction(state, _):
    state = step(state)
    return state, None


@partial(jax.jit, static_argnums=1)
def run(state: EmulatorState, num_instructions: int) -> EmulatorState:
    """Run num_instructions steps; stops making progress after a fault."""
    state, _ = jax.lax.scan(run_instruction, state, length=num_instructions)
    return state


@partial(jax.jit, static_argnums=1)
def run_frame(state: EmulatorState, instructions_per_tick: int) -> EmulatorState:
    """Run one timer period: instructions_per_tick steps, then one timer tick.

    A faulted machine is halted, so its timers do not tick either.
    """
    state, _ = jax.lax.scan(run_instruction, state, length=instructions_per_tick)
    return jax.lax.cond(state.fault == FAULT_NONE, decrement_timers, lambda s: s, state)


def run_with_progress(state: EmulatorState, num_instructions: int, desc: str = None) -> EmulatorState:
    """Like run, with a tqdm progress bar fed from inside the compiled loop."""
    @scan_with_progress(num_instructions, desc=desc)
    def _run_instruction(state, _):
        return step(state), None

    @jax.jit
    def _run(state):
        state, _ = jax.lax.scan(_run_instruction, state, jnp.arange(num_instructions))
        return state

    return _run(state)


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Copy a program image into memory starting at 0x200."""
    program = bytes(program)
    if len(program) > MAX_PROGRAM_SIZE:
        raise RomTooLargeError(
            f"Program is {len(program)} bytes, at most {MAX_PROGRAM_SIZE} fit in memory"
        )
    if not program:
        return state
    program_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(program_array)
    return state.replace(memory=new_memory)


def read_rom(filename: str) -> bytes:
    """Read and validate a ROM image from disk."""
    try:
        with open(filename, 'rb') as f:
            rom_data = f.read()
    except OSError as err:
        raise RomError(f"Cannot read ROM '{filename}': {err}") from err
    if not rom_data:
        raise RomError(f"ROM '{filename}' is empty")
    if len(rom_data) > MAX_PROGRAM_SIZE:
        raise RomTooLargeError(
            f"ROM '{filename}' is {len(rom_data)} bytes, at most {MAX_PROGRAM_SIZE} fit in memory"
        )
    return rom_data


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    return load_program(state, read_rom(filename))
