"""Exceptions raised by the CHIP-8 interpreter and its ROM loader."""

from chip8jax.constants import (
    FAULT_NONE, FAULT_UNKNOWN_OPCODE, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW, FAULT_MEMORY_ACCESS,
)


class Chip8Error(Exception):
    """Base error for the emulator."""


class RomError(Chip8Error, ValueError):
    """Raised when a program image is missing, unreadable or empty."""


class RomTooLargeError(RomError):
    """Raised when a program image does not fit between 0x200 and 0xFFF."""


class ExecutionFault(Chip8Error, RuntimeError):
    """An instruction could not be executed; the machine is halted.

    Attributes:
        opcode: The 16-bit opcode that faulted
        pc: Address the opcode was fetched from
    """
    description = "Execution fault"

    def __init__(self, opcode: int, pc: int):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"{self.description}: opcode 0x{opcode:04X} at PC 0x{pc:03X}")


class UnrecognizedOpcodeError(ExecutionFault):
    description = "Unrecognized opcode"


class StackOverflowError(ExecutionFault):
    description = "Stack overflow (more than 16 nested calls)"


class StackUnderflowError(ExecutionFault):
    description = "Stack underflow (return with empty stack)"


class MemoryAccessError(ExecutionFault):
    description = "Memory access out of range"


FAULT_ERRORS = {
    FAULT_UNKNOWN_OPCODE: UnrecognizedOpcodeError,
    FAULT_STACK_OVERFLOW: StackOverflowError,
    FAULT_STACK_UNDERFLOW: StackUnderflowError,
    FAULT_MEMORY_ACCESS: MemoryAccessError,
}


def fault_error(state) -> ExecutionFault | None:
    """Build the exception matching the fault recorded on state, if any."""
    code = int(state.fault)
    if code == FAULT_NONE:
        return None
    return FAULT_ERRORS[code](int(state.fault_opcode), int(state.fault_pc))


def raise_for_fault(state) -> None:
    """Raise the exception for a faulted state, do nothing otherwise."""
    error = fault_error(state)
    if error is not None:
        raise error
