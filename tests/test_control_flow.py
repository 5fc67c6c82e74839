"""Tests for control flow instructions."""

import pytest
from chip8jax import execute, step
from chip8jax.constants import FAULT_NONE, FAULT_UNKNOWN_OPCODE, FAULT_STACK_OVERFLOW, STACK_SIZE
from conftest import load_opcodes, set_registers


class TestJump:
    """Test jump instructions."""

    def test_execute_jump(self, fresh_state):
        """Test 1NNN - Jump to address."""
        state = execute(fresh_state, 0x1001)
        assert state.pc == 1

    def test_jump_with_offset(self, fresh_state):
        """BNNN - Jump to NNN + V0."""
        state = execute(fresh_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0xB250)  # Jump to 0x250 + V0
        assert state.pc == 0x260

    def test_jump_with_offset_ignores_other_registers(self, fresh_state):
        """BNNN - Only V0 is added, whatever the second nibble says."""
        state = set_registers(fresh_state, V0=0x02, V2=0x30)
        state = execute(state, 0xB250)
        assert state.pc == 0x252


class TestCall:
    """Test subroutine calls through the fetch cycle."""

    def test_call_pushes_return_address(self, fresh_state):
        """2NNN - The address after the call is pushed, SP moves down."""
        state = load_opcodes(fresh_state, 0x2300)

        state = step(state)

        assert state.pc == 0x300
        assert state.stack.pointer == 0x0E
        assert state.stack.data[0x0F] == 0x202

    def test_call_then_return(self, fresh_state):
        """2NNN then 00EE resumes after the call instruction."""
        # 0x200: call 0x206 / 0x202: jump 0x202 / 0x204: padding / 0x206: return
        state = load_opcodes(fresh_state, 0x2206, 0x1202, 0x0000, 0x00EE)

        state = step(state)
        assert state.pc == 0x206

        state = step(state)
        assert state.pc == 0x202
        assert state.stack.pointer == 0x0F

    def test_nested_calls_return_in_order(self, fresh_state):
        """Two nested calls unwind to the right addresses."""
        # 0x200: call 0x204 / 0x202: padding / 0x204: call 0x208 / 0x206: return / 0x208: return
        state = load_opcodes(fresh_state, 0x2204, 0x0000, 0x2208, 0x00EE, 0x00EE)

        state = step(state)  # -> 0x204
        state = step(state)  # -> 0x208
        assert state.pc == 0x208

        state = step(state)  # return -> 0x206
        assert state.pc == 0x206
        state = step(state)  # return -> 0x202
        assert state.pc == 0x202

    def test_sixteen_nested_calls_fit(self, fresh_state):
        """The stack holds 16 return addresses."""
        state = load_opcodes(fresh_state, 0x2200)  # Calls itself forever

        for _ in range(STACK_SIZE):
            state = step(state)

        assert state.fault == FAULT_NONE
        assert state.pc == 0x200

    def test_stack_overflow_faults(self, fresh_state):
        """The 17th nested call faults instead of wrapping the stack."""
        state = load_opcodes(fresh_state, 0x2200)

        for _ in range(STACK_SIZE + 1):
            state = step(state)

        assert state.fault == FAULT_STACK_OVERFLOW
        assert state.fault_opcode == 0x2200
        assert state.fault_pc == 0x200
        assert state.pc == 0x200


class TestSkipInstructions:
    """Test all skip instruction variants."""

    def test_skip_if_equal_immediate_true(self, fresh_state):
        """3XNN - Should skip when VX == NN."""
        state = set_registers(fresh_state, V5=0x42)
        initial_pc = state.pc

        state = execute(state, 0x3542)  # Skip if V5 == 0x42
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_immediate_false(self, fresh_state):
        """3XNN - Should not skip when VX != NN."""
        state = set_registers(fresh_state, V5=0x41)
        initial_pc = state.pc

        state = execute(state, 0x3542)  # Skip if V5 == 0x42
        assert state.pc == initial_pc

    def test_skip_if_not_equal_immediate_true(self, fresh_state):
        """4XNN - Should skip when VX != NN."""
        state = set_registers(fresh_state, V3=0x10)
        initial_pc = state.pc

        state = execute(state, 0x4320)  # Skip if V3 != 0x20
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_immediate_false(self, fresh_state):
        """4XNN - Should not skip when VX == NN."""
        state = set_registers(fresh_state, V3=0x20)
        initial_pc = state.pc

        state = execute(state, 0x4320)  # Skip if V3 != 0x20
        assert state.pc == initial_pc

    def test_skip_if_equal_register_true(self, fresh_state):
        """5XY0 - Should skip when VX == VY."""
        state = set_registers(fresh_state, V1=0x55, V2=0x55)
        initial_pc = state.pc

        state = execute(state, 0x5120)  # Skip if V1 == V2
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_register_false(self, fresh_state):
        """5XY0 - Should not skip when VX != VY."""
        state = set_registers(fresh_state, V1=0x55, V2=0x44)
        initial_pc = state.pc

        state = execute(state, 0x5120)  # Skip if V1 == V2
        assert state.pc == initial_pc

    def test_skip_if_equal_register_bad_suffix(self, fresh_state):
        """5XYN with N != 0 is not an instruction."""
        state = execute(fresh_state, 0x5121)
        assert state.fault == FAULT_UNKNOWN_OPCODE

    def test_skip_if_not_equal_register_true(self, fresh_state):
        """9XY0 - Should skip when VX != VY."""
        state = set_registers(fresh_state, V7=0xAA, V8=0xBB)
        initial_pc = state.pc

        state = execute(state, 0x9780)  # Skip if V7 != V8
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_register_false(self, fresh_state):
        """9XY0 - Should not skip when VX == VY."""
        state = set_registers(fresh_state, V7=0xCC, V8=0xCC)
        initial_pc = state.pc

        state = execute(state, 0x9780)  # Skip if V7 != V8
        assert state.pc == initial_pc

    def test_skip_with_zero_values(self, fresh_state):
        """Test skip instructions with zero values."""
        state = fresh_state
        initial_pc = state.pc

        # V0 == 0, should skip
        state = execute(state, 0x3000)  # Skip if V0 == 0
        assert state.pc == initial_pc + 2

    def test_skip_boundary_values(self, fresh_state):
        """Test skip instructions with boundary values."""
        state = set_registers(fresh_state, V0=0xFF)
        initial_pc = state.pc

        state = execute(state, 0x30FF)  # Skip if V0 == 255
        assert state.pc == initial_pc + 2

    def test_skip_over_next_instruction_when_stepping(self, fresh_state):
        """A taken skip lands two instructions after itself."""
        state = load_opcodes(fresh_state, 0x3000, 0x00E0, 0x00E0)

        state = step(state)

        assert state.pc == 0x204


class TestKeySkips:
    """Test EX9E / EXA1."""

    @pytest.mark.parametrize("pressed, expected_offset", [(1, 2), (0, 0)])
    def test_skip_if_key_pressed(self, fresh_state, pressed, expected_offset):
        """EX9E - Skip if the key in VX is down."""
        state = set_registers(fresh_state, V0=5)
        state = state.replace(keypad=state.keypad.at[5].set(pressed))
        initial_pc = state.pc

        state = execute(state, 0xE09E)

        assert state.pc == initial_pc + expected_offset

    @pytest.mark.parametrize("pressed, expected_offset", [(0, 2), (1, 0)])
    def test_skip_if_key_released(self, fresh_state, pressed, expected_offset):
        """EXA1 - Skip if the key in VX is up."""
        state = set_registers(fresh_state, V0=5)
        state = state.replace(keypad=state.keypad.at[5].set(pressed))
        initial_pc = state.pc

        state = execute(state, 0xE0A1)

        assert state.pc == initial_pc + expected_offset

    def test_other_keys_do_not_count(self, fresh_state):
        """EX9E - Only the key named by VX is checked."""
        state = set_registers(fresh_state, V0=5)
        state = state.replace(keypad=state.keypad.at[6].set(1))
        initial_pc = state.pc

        state = execute(state, 0xE09E)

        assert state.pc == initial_pc

    def test_unknown_ex_instruction(self, fresh_state):
        """EXNN other than 9E/A1 faults."""
        state = execute(fresh_state, 0xE0A2)
        assert state.fault == FAULT_UNKNOWN_OPCODE
