"""CHIP-8 instruction decoding."""

import jax.numpy as jnp
from chex import dataclass

# (name, mask, pattern): an opcode is of kind i when opcode & mask == pattern.
# The order defines the instruction kind index used for dispatch.
INSTRUCTION_PATTERNS = (
    ("clear_screen", 0xFFFF, 0x00E0),
    ("return", 0xFFFF, 0x00EE),
    ("jump", 0xF000, 0x1000),
    ("call", 0xF000, 0x2000),
    ("skip_if_equal_immediate", 0xF000, 0x3000),
    ("skip_if_not_equal_immediate", 0xF000, 0x4000),
    ("skip_if_equal_register", 0xF00F, 0x5000),
    ("set", 0xF000, 0x6000),
    ("add", 0xF000, 0x7000),
    ("alu_set", 0xF00F, 0x8000),
    ("alu_or", 0xF00F, 0x8001),
    ("alu_and", 0xF00F, 0x8002),
    ("alu_xor", 0xF00F, 0x8003),
    ("alu_add", 0xF00F, 0x8004),
    ("alu_sub_xy", 0xF00F, 0x8005),
    ("alu_shift_right", 0xF00F, 0x8006),
    ("alu_sub_yx", 0xF00F, 0x8007),
    ("alu_shift_left", 0xF00F, 0x800E),
    ("skip_if_not_equal_register", 0xF00F, 0x9000),
    ("set_index", 0xF000, 0xA000),
    ("jump_with_offset", 0xF000, 0xB000),
    ("random", 0xF000, 0xC000),
    ("display", 0xF000, 0xD000),
    ("skip_if_key_pressed", 0xF0FF, 0xE09E),
    ("skip_if_key_released", 0xF0FF, 0xE0A1),
    ("get_delay_timer", 0xF0FF, 0xF007),
    ("wait_for_key", 0xF0FF, 0xF00A),
    ("set_delay_timer", 0xF0FF, 0xF015),
    ("set_sound_timer", 0xF0FF, 0xF018),
    ("add_to_index", 0xF0FF, 0xF01E),
    ("font_character", 0xF0FF, 0xF029),
    ("bcd_conversion", 0xF0FF, 0xF033),
    ("store_registers", 0xF0FF, 0xF055),
    ("load_registers", 0xF0FF, 0xF065),
)

INSTRUCTION_NAMES = tuple(name for name, _, _ in INSTRUCTION_PATTERNS)
UNKNOWN = len(INSTRUCTION_PATTERNS)

_MASKS = jnp.array([mask for _, mask, _ in INSTRUCTION_PATTERNS], dtype=jnp.int32)
_PATTERNS = jnp.array([pattern for _, _, pattern in INSTRUCTION_PATTERNS], dtype=jnp.int32)


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    kind: int  # Index into INSTRUCTION_PATTERNS, UNKNOWN if none match
    x: int     # Second nibble (VX register)
    y: int     # Third nibble (VY register)
    n: int     # Fourth nibble (4-bit immediate)
    nn: int    # Last byte (8-bit immediate)
    nnn: int   # Last 12 bits (12-bit address)


def classify(instruction) -> jnp.ndarray:
    """Index of the first pattern matching the instruction, or UNKNOWN."""
    matches = (instruction & _MASKS) == _PATTERNS
    return jnp.where(jnp.any(matches), jnp.argmax(matches), UNKNOWN)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    instruction = jnp.asarray(instruction).astype(jnp.int32) & 0xFFFF
    return DecodedInstruction(
        raw=instruction,
        kind=classify(instruction),
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


def mnemonic(instruction: int) -> str:
    """Host-side name of the instruction kind, for logs and error messages."""
    instruction = int(instruction) & 0xFFFF
    for name, mask, pattern in INSTRUCTION_PATTERNS:
        if instruction & mask == pattern:
            return name
    return "unknown"
