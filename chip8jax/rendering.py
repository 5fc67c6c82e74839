"""Turn the 32x64 framebuffer into something a host can show."""

import numpy as np
from typing import Tuple

from chip8jax.constants import SCREEN_WIDTH, SCREEN_HEIGHT

Color = Tuple[int, int, int]

# name -> (on_color, off_color)
COLOR_SCHEMES = {
    "white": ((255, 255, 255), (0, 0, 0)),
    "classic": ((0, 255, 0), (0, 0, 0)),
    "amber": ((255, 176, 0), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),
    "retro": ((255, 255, 0), (64, 0, 64)),
}


def _pixels(display) -> np.ndarray:
    pixels = np.asarray(display) != 0
    if pixels.shape != (SCREEN_HEIGHT, SCREEN_WIDTH):
        raise ValueError(
            f"Expected display shape ({SCREEN_HEIGHT}, {SCREEN_WIDTH}), got {pixels.shape}"
        )
    return pixels


def display_to_rgb(
    display,
    scale: int = 8,
    on_color: Color = COLOR_SCHEMES["white"][0],
    off_color: Color = COLOR_SCHEMES["white"][1],
) -> np.ndarray:
    """Convert the 0/1 framebuffer to an upscaled RGB image.

    Args:
        display: Array of shape (32, 64), indexed [y, x]
        scale: Size in image pixels of one CHIP-8 pixel
        on_color: RGB color for lit pixels
        off_color: RGB color for dark pixels

    Returns:
        uint8 array of shape (32 * scale, 64 * scale, 3)
    """
    palette = np.array([off_color, on_color], dtype=np.uint8)
    rgb_frame = palette[_pixels(display).astype(np.intp)]
    if scale > 1:
        # Nearest neighbour upscaling
        rgb_frame = rgb_frame.repeat(scale, axis=0).repeat(scale, axis=1)
    return rgb_frame


def display_to_text(display, on: str = "#", off: str = ".") -> str:
    """One text line per screen row, for terminals and logs."""
    return "\n".join(
        "".join(on if lit else off for lit in row) for row in _pixels(display)
    )


def create_color_scheme(scheme: str = "white") -> Tuple[Color, Color]:
    """Look up a named (on_color, off_color) pair."""
    try:
        return COLOR_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES)}"
        ) from None
