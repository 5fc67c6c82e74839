"""Tests for console logging and the scan progress bar."""

import io

import jax
import jax.numpy as jnp
import pytest
from chip8jax import create_state
from chip8jax.logging import ConsoleLogger, TraceLogger, scan_with_progress
from conftest import load_opcodes


def test_level_filtering():
    stream = io.StringIO()
    logger = ConsoleLogger("test", log_level="WARNING", show_timestamps=False, stream=stream)

    logger.info("hidden")
    logger.warning("shown")
    logger.error("also shown")

    lines = stream.getvalue().splitlines()
    assert lines == ["[ WARNING][test] shown", "[   ERROR][test] also shown"]


def test_unknown_level():
    with pytest.raises(ValueError):
        ConsoleLogger(log_level="LOUD")


def test_format_instruction():
    assert TraceLogger.format_instruction(0x2A4, 0xD015) == "2A4: D015  display"
    assert TraceLogger.format_instruction(0x200, 0x0123) == "200: 0123  unknown"


def test_trace_registers():
    stream = io.StringIO()
    tracer = TraceLogger(show_timestamps=False, stream=stream)
    state = create_state()
    state = state.replace(V=state.V.at[0xA].set(0x3C))

    tracer.log_registers(state)

    line = stream.getvalue()
    assert "VA=3C" in line
    assert "I=000 DT=0 ST=0" in line


def test_trace_counts_instructions(fresh_state):
    stream = io.StringIO()
    tracer = TraceLogger(show_timestamps=False, stream=stream)
    state = load_opcodes(fresh_state, 0x6001)

    tracer.log_instruction(state)
    tracer.log_instruction(state)

    assert tracer.instruction_count == 2
    assert stream.getvalue().count("200: 6001  set") == 2


@pytest.mark.parametrize("n, print_rate", [(10, None), (7, 3), (5, 5)])
def test_scan_with_progress(n, print_rate):
    """The decorated body still computes the same carry."""
    @scan_with_progress(n, print_rate=print_rate, desc="sum")
    def body(carry, i):
        return carry + i, None

    total, _ = jax.jit(lambda: jax.lax.scan(body, jnp.int32(0), jnp.arange(n)))()
    jax.effects_barrier()

    assert total == n * (n - 1) // 2
