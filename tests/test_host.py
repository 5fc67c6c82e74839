"""Tests for the host-side helpers: rendering, audio, keypad and config."""

import numpy as np
import pytest
from hydra import compose, initialize

from chip8jax import display_to_rgb, create_color_scheme
from chip8jax.rendering import display_to_text
from chip8jax.audio import tone_samples
from chip8jax.keypad import KEY_LAYOUT, RESET_KEY, key_index


class TestRendering:
    """Test framebuffer to RGB conversion."""

    def test_display_to_rgb_shape(self):
        frame = display_to_rgb(np.zeros((32, 64), dtype=np.uint8), scale=8)
        assert frame.shape == (256, 512, 3)
        assert frame.dtype == np.uint8

    def test_display_to_rgb_colors(self):
        display = np.zeros((32, 64), dtype=np.uint8)
        display[2, 5] = 1

        frame = display_to_rgb(display, scale=1, on_color=(1, 2, 3), off_color=(9, 9, 9))

        assert frame[2, 5].tolist() == [1, 2, 3]
        assert frame[5, 2].tolist() == [9, 9, 9]

    def test_display_to_rgb_upscales_blocks(self):
        display = np.zeros((32, 64), dtype=np.uint8)
        display[0, 1] = 1

        frame = display_to_rgb(display, scale=4)

        assert (frame[0:4, 4:8] == 255).all()
        assert (frame[0:4, 0:4] == 0).all()

    def test_default_colors_match_default_scheme(self):
        display = np.zeros((32, 64), dtype=np.uint8)
        display[0, 0] = 1
        on_color, off_color = create_color_scheme()

        frame = display_to_rgb(display, scale=1)

        assert tuple(frame[0, 0]) == on_color
        assert tuple(frame[0, 1]) == off_color

    def test_display_to_rgb_rejects_transposed(self):
        with pytest.raises(ValueError):
            display_to_rgb(np.zeros((64, 32), dtype=np.uint8))

    def test_display_to_text(self):
        display = np.zeros((32, 64), dtype=np.uint8)
        display[1, 2] = 1

        lines = display_to_text(display).splitlines()

        assert len(lines) == 32
        assert lines[1] == ".." + "#" + "." * 61
        assert set(lines[0]) == {"."}

    def test_color_schemes(self):
        assert create_color_scheme("white") == ((255, 255, 255), (0, 0, 0))
        assert create_color_scheme() == create_color_scheme("white")
        with pytest.raises(ValueError, match="Unknown color scheme"):
            create_color_scheme("plaid")


class TestAudio:
    """Test the beeper tone buffer."""

    def test_tone_shape_and_type(self):
        samples = tone_samples(440, 44_100)
        assert samples.dtype == np.int16
        assert samples.ndim == 2
        assert samples.shape[1] == 1
        # About one 60 Hz frame long
        assert 600 < samples.shape[0] < 900

    def test_tone_channels(self):
        samples = tone_samples(440, 22_050, channels=2)
        assert samples.shape[1] == 2
        assert np.array_equal(samples[:, 0], samples[:, 1])

    def test_tone_volume(self):
        samples = tone_samples(440, 44_100, volume=0.5)
        peak = np.abs(samples.astype(np.int32)).max()
        assert 0.45 * 32767 < peak <= 0.5 * 32767 + 1

    @pytest.mark.parametrize("frequency, sample_rate", [(0, 44_100), (-1, 44_100), (440, 0)])
    def test_tone_rejects_bad_arguments(self, frequency, sample_rate):
        with pytest.raises(ValueError):
            tone_samples(frequency, sample_rate)


class TestKeypad:
    """Test the host keyboard layout."""

    def test_layout_covers_all_keys(self):
        assert sorted(KEY_LAYOUT.values()) == list(range(16))

    @pytest.mark.parametrize("name, key", [("1", 0x1), ("4", 0xC), ("q", 0x4), ("X", 0x0), ("v", 0xF)])
    def test_key_index(self, name, key):
        assert key_index(name) == key

    def test_unmapped_keys(self):
        assert key_index("p") is None
        assert key_index(RESET_KEY) is None


def test_default_config():
    """The bundled Hydra config composes with sane defaults."""
    with initialize(version_base=None, config_path="../conf"):
        cfg = compose(config_name="config", overrides=["rom=roms/test.ch8"])

    assert cfg.rom == "roms/test.ch8"
    assert cfg.cpu_frequency // cfg.timer_frequency == 8
    assert cfg.color_scheme in ("white", "classic", "amber", "blue", "retro")
    assert cfg.headless == 0
