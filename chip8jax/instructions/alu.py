"""CHIP-8 ALU operations (8xxx).

Every operation takes VX and VY widened to int32 and returns the new VX and
the value for VF, or None when the operation leaves VF alone.
"""

import jax.numpy as jnp
from chip8jax.state import EmulatorState
from chip8jax.decode import DecodedInstruction
from chip8jax.constants import FLAG_REGISTER


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, set carry flag."""
    result = vx + vy
    return result & 0xFF, result > 0xFF


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = 1 when there is no borrow."""
    return (vx - vy) & 0xFF, vx >= vy


def alu_shift_right(vx, vy):
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when there is no borrow."""
    return (vy - vx) & 0xFF, vy >= vx


def alu_shift_left(vx, vy):
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    return (vx << 1) & 0xFF, (vx >> 7) & 1


def make_alu_instruction(operation, flag_first: bool = False):
    """Wrap an ALU operation into an instruction handler.

    By default VX is written before VF, so 8FYx leaves the flag in VF. With
    flag_first, VF is written first and VX is then computed from the
    register file as it stands, so 8FY6/8FYE leave the shifted value in VF.
    """
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        V = state.V
        vy = V[instruction.y].astype(jnp.int32)
        result, flag = operation(V[instruction.x].astype(jnp.int32), vy)

        if flag_first:
            V = V.at[FLAG_REGISTER].set(jnp.asarray(flag).astype(jnp.uint8))
            result, _ = operation(V[instruction.x].astype(jnp.int32), vy)
            return state.replace(V=V.at[instruction.x].set(jnp.asarray(result).astype(jnp.uint8)))

        V = V.at[instruction.x].set(jnp.asarray(result).astype(jnp.uint8))
        if flag is not None:
            V = V.at[FLAG_REGISTER].set(jnp.asarray(flag).astype(jnp.uint8))
        return state.replace(V=V)
    alu_instruction.__doc__ = operation.__doc__
    return alu_instruction


execute_alu_set = make_alu_instruction(alu_set)
execute_alu_or = make_alu_instruction(alu_or)
execute_alu_and = make_alu_instruction(alu_and)
execute_alu_xor = make_alu_instruction(alu_xor)
execute_alu_add = make_alu_instruction(alu_add)
execute_alu_sub_xy = make_alu_instruction(alu_sub_xy)
execute_alu_shift_right = make_alu_instruction(alu_shift_right, flag_first=True)
execute_alu_sub_yx = make_alu_instruction(alu_sub_yx)
execute_alu_shift_left = make_alu_instruction(alu_shift_left, flag_first=True)
