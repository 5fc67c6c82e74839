"""Console logging for the CHIP-8 interpreter.

A small print-based logger with levels, ANSI colors and elapsed-time
stamps, an instruction tracer for debugging programs, and a tqdm progress
bar that long jitted runs update through io_callback.
"""

import sys
import time
from typing import Callable, Optional, TextIO

import jax
from jax.experimental import io_callback

from tqdm import tqdm

from chip8jax.decode import mnemonic

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


class ConsoleLogger:
    """Console logger with level filtering and colors."""

    def __init__(
        self,
        name: str = "chip8jax",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        if self.log_level not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
        self.stream = stream
        out = stream or sys.stdout
        self.use_colors = use_colors and hasattr(out, "isatty") and out.isatty()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _should_log(self, level: str) -> bool:
        return LEVELS.index(level) >= LEVELS.index(self.log_level)

    def _format_message(self, level: str, message: str) -> str:
        """Format as [elapsed][LEVEL][name] message."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{COLORS[level]}{level_str}{RESET}"
        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        level = level.upper()
        if self._should_log(level):
            print(self._format_message(level, message), file=self.stream or sys.stdout, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class TraceLogger(ConsoleLogger):
    """Debug logger printing one line per executed instruction."""

    def __init__(self, name: str = "Trace", **kwargs):
        kwargs.setdefault("log_level", "DEBUG")
        super().__init__(name, **kwargs)
        self.instruction_count = 0

    @staticmethod
    def format_instruction(pc: int, opcode: int) -> str:
        """One trace line: address, raw opcode and instruction name."""
        return f"{pc:03X}: {opcode:04X}  {mnemonic(opcode)}"

    def log_instruction(self, state):
        """Log the instruction about to be executed from state."""
        pc = int(state.pc)
        opcode = (int(state.memory[pc]) << 8) | int(state.memory[pc + 1]) if pc < 0xFFF else 0
        self.instruction_count += 1
        self.debug(f"#{self.instruction_count:<8d} " + self.format_instruction(pc, opcode))

    def log_registers(self, state):
        """Log registers, I and timers in one line."""
        registers = " ".join(f"V{i:X}={int(v):02X}" for i, v in enumerate(state.V))
        self.debug(
            f"{registers} I={int(state.I):03X} "
            f"DT={int(state.delay_timer)} ST={int(state.sound_timer)}"
        )


class ScanProgressBar:
    """tqdm bar fed from inside a jitted lax.scan.

    The bar lives on the host; the compiled loop reaches it through ordered
    io_callbacks, every print_rate iterations and once at the end.
    """

    def __init__(self, total: int, print_rate: Optional[int] = None, desc: str = None, **tqdm_kwargs):
        self.total = total
        if print_rate is None:
            print_rate = min(total // 20, 1000)
        self.print_rate = max(1, min(print_rate, total))
        self.desc = desc or f"Running ({total:,} instructions)"
        for kwarg in ("total", "mininterval", "maxinterval", "miniters"):
            tqdm_kwargs.pop(kwarg, None)
        self.tqdm_kwargs = tqdm_kwargs
        self._bar = None

    def _open(self):
        self._bar = tqdm(total=self.total, desc=self.desc, unit="instr", **self.tqdm_kwargs)

    def _advance(self, count):
        if self._bar is not None:
            self._bar.update(int(count))

    def _finish(self, count):
        self._advance(count)
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    @staticmethod
    def _emit(condition, callback, *args):
        jax.lax.cond(
            condition,
            lambda _: io_callback(callback, None, *args, ordered=True),
            lambda _: None,
            None,
        )

    def update(self, iter_num):
        """Report that iteration iter_num (0-based) has completed."""
        done = iter_num + 1
        self._emit(iter_num == 0, self._open)
        self._emit(done % self.print_rate == 0, self._advance, self.print_rate)
        self._emit(done == self.total, self._finish, self.total % self.print_rate)


def scan_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorate a scan body so that it drives a progress bar.

    The scanned xs must be the iteration numbers (or tuples starting with them).
    """
    progress_bar = ScanProgressBar(n, print_rate, desc, **tqdm_kwargs)

    def _scan_progress_decorator(func):
        def wrapper_with_progress(carry, x):
            iter_num = x[0] if isinstance(x, tuple) else x
            result = func(carry, x)
            progress_bar.update(iter_num)
            return result

        return wrapper_with_progress

    return _scan_progress_decorator
