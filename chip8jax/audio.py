"""Tone generation for the sound timer."""

import numpy as np


def tone_samples(
    frequency: float = 440.0,
    sample_rate: int = 44_100,
    volume: float = 0.25,
    channels: int = 1,
) -> np.ndarray:
    """Build an int16 sine buffer that loops without clicks.

    The buffer covers a whole number of periods, as close to 1/60 s as
    possible, so it can be played with loops=-1 while the sound timer is
    nonzero and stopped when it reaches zero.

    Returns:
        Array of shape (num_samples, channels), dtype int16
    """
    if frequency <= 0 or sample_rate <= 0:
        raise ValueError("frequency and sample_rate must be positive")
    periods = max(1, round(frequency / 60))
    num_samples = max(1, round(periods * sample_rate / frequency))
    t = np.arange(num_samples) / sample_rate
    wave = np.sin(2 * np.pi * frequency * t) * volume * np.iinfo(np.int16).max
    samples = wave.astype(np.int16)[:, None]
    return np.repeat(samples, channels, axis=1)
