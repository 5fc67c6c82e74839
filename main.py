"""
Interactive CHIP-8 emulator: pygame window, keyboard, beeper
"""

import hydra
import numpy as np
import pygame
from omegaconf import DictConfig

from chip8jax import Interpreter, Chip8Error, display_to_rgb, create_color_scheme
from chip8jax.rendering import display_to_text
from chip8jax.audio import tone_samples
from chip8jax.keypad import key_index, RESET_KEY
from chip8jax.logging import ConsoleLogger, TraceLogger


class Beeper:
    """Looping tone played while the sound timer is nonzero."""

    def __init__(self, frequency: float, volume: float, logger: ConsoleLogger):
        self.sound = None
        self.playing = False
        try:
            pygame.mixer.init(frequency=44_100, size=-16, channels=1, buffer=512)
        except pygame.error as e:
            logger.warning(f"Audio disabled: {e}")
            return
        sample_rate, _, channels = pygame.mixer.get_init()
        buf = tone_samples(frequency, sample_rate, volume, channels)
        self.sound = pygame.sndarray.make_sound(buf if channels > 1 else buf[:, 0])

    def update(self, active: bool):
        if self.sound is None or active == self.playing:
            return
        if active:
            self.sound.play(loops=-1)
        else:
            self.sound.stop()
        self.playing = active


def run_emulator(cfg: DictConfig):
    """Main emulator loop: one timer tick per 60 Hz frame."""
    logger = ConsoleLogger("chip8jax", log_level=cfg.log_level)
    tracer = TraceLogger() if cfg.trace else None

    try:
        interpreter = Interpreter.from_file(cfg.rom, seed=cfg.seed, logger=logger, tracer=tracer)
    except Chip8Error as e:
        logger.error(str(e))
        return
    logger.info(f"Loaded: {cfg.rom}")

    instructions_per_tick = cfg.cpu_frequency // cfg.timer_frequency
    on_color, off_color = create_color_scheme(cfg.color_scheme)

    pygame.init()
    screen = pygame.display.set_mode((64 * cfg.scale, 32 * cfg.scale))
    pygame.display.set_caption("CHIP-8")
    clock = pygame.time.Clock()
    beeper = Beeper(cfg.tone_frequency, cfg.volume, logger)

    running = True
    focused = True

    logger.info("Controls: 1234/QWER/ASDF/ZXCV = keypad, L = reset, ESC = quit")

    while running:
        clock.tick(cfg.timer_frequency)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.WINDOWFOCUSLOST:
                focused = False
            elif event.type == pygame.WINDOWFOCUSGAINED:
                focused = True
            elif event.type == pygame.KEYDOWN:
                name = pygame.key.name(event.key)
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif name == RESET_KEY:
                    interpreter.reset()
                    logger.info("Reset")
                elif key_index(name) is not None:
                    interpreter.press_key(key_index(name))
            elif event.type == pygame.KEYUP:
                key = key_index(pygame.key.name(event.key))
                if key is not None:
                    interpreter.release_key(key)

        if focused:
            try:
                if tracer is not None:
                    for _ in range(instructions_per_tick):
                        interpreter.step()
                    interpreter.decrement_timers()
                    tracer.log_registers(interpreter.state)
                else:
                    interpreter.run_frame(instructions_per_tick)
            except Chip8Error:
                running = False
            beeper.update(interpreter.sound_active)
        else:
            beeper.update(False)

        frame = display_to_rgb(interpreter.display, cfg.scale, on_color, off_color)
        pygame.surfarray.blit_array(screen, np.ascontiguousarray(frame.transpose(1, 0, 2)))
        pygame.display.flip()

    beeper.update(False)
    pygame.quit()


def run_headless(cfg: DictConfig):
    """Run a fixed number of instructions without a window and report the result."""
    logger = ConsoleLogger("chip8jax", log_level=cfg.log_level)
    try:
        interpreter = Interpreter.from_file(cfg.rom, seed=cfg.seed, logger=logger)
        interpreter.run(cfg.headless, progress=True)
    except Chip8Error as e:
        logger.error(str(e))
        return

    state = interpreter.state
    logger.info(f"PC=0x{int(state.pc):03X} I=0x{int(state.I):03X}")
    logger.info(" ".join(f"V{i:X}={int(v):02X}" for i, v in enumerate(state.V)))
    print(display_to_text(interpreter.display))


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> None:
    if cfg.rom is None:
        raise SystemExit("No ROM given, run with rom=<path>")
    if cfg.headless:
        run_headless(cfg)
    else:
        run_emulator(cfg)


if __name__ == "__main__":
    main()
