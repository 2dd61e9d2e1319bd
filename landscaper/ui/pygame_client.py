"""Pygame 2D viewer hosting the stepped runner.

Draws the height field as a grey-scale relief (darker = dug deeper),
overlays pheromone in cyan, and marks food sources and ants.  The
viewer is a pure consumer: it reads the field of the active run (or the
last flushed snapshot) and drives the run only through the runner's
start / tick / stop interface.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

import numpy as np
import pygame

from landscaper.simulation.config import ConfigError
from landscaper.simulation.runner import RunInProgressError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from landscaper.simulation.runner import SteppedRunner

log = logging.getLogger(__name__)

# Colour palette
_BG = (30, 20, 10)
_LOW = np.array([40, 30, 20], dtype=np.float64)
_HIGH = np.array([220, 210, 190], dtype=np.float64)
_TRAIL_COLOUR = np.array([0, 180, 255], dtype=np.float64)
_FOOD = (60, 200, 40)
_FOOD_EMPTY = (90, 90, 90)
_EXPLORING = (230, 230, 230)
_RETURNING = (255, 200, 50)
_HOME = (255, 80, 80)


def shade(
    height: NDArray[np.float64],
    pheromone: NDArray[np.float64],
    max_pheromone: float,
) -> NDArray[np.uint8]:
    """Turn the field matrices into an ``(N, N, 3)`` RGB image.

    Heights are stretched over their current range; pheromone is
    alpha-blended on top in proportion to ``pheromone / max_pheromone``.
    """
    lo, hi = float(height.min()), float(height.max())
    t = (height - lo) / (hi - lo) if hi > lo else np.full_like(height, 0.5)
    rgb = _LOW + t[..., None] * (_HIGH - _LOW)

    alpha = np.clip(pheromone / max_pheromone, 0.0, 1.0)[..., None] * 0.8
    rgb = rgb * (1.0 - alpha) + _TRAIL_COLOUR * alpha
    return rgb.astype(np.uint8)


class PygameRenderer:
    """Runs a ``SteppedRunner`` inside a Pygame window.

    Attributes:
        runner: The stepped runner being hosted.
        cell_size: Pixel size of each grid cell.
        screen: The Pygame display surface.
    """

    # Speed presets, in steps per second
    _SPEED_STEPS: ClassVar[list[float]] = [1.0, 10.0, 60.0, 250.0, 1000.0, 4000.0]

    def __init__(
        self,
        runner: SteppedRunner,
        cell_size: int = 4,
        steps_per_second: float = 60.0,
    ) -> None:
        """Initialise the renderer.

        Args:
            runner: The runner to host.
            cell_size: Pixel width/height per grid cell.
            steps_per_second: Simulation steps per real-time second.
        """
        self.runner = runner
        self.cell_size = cell_size
        self.steps_per_second = steps_per_second
        self._speed_index = self._nearest_speed(steps_per_second)
        self._step_accumulator = 0.0

        side = runner.config.size * cell_size
        self._panel_width = 220
        self._win_w = side + self._panel_width
        self._win_h = max(side, 260)

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("Landscaper")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True

    def _nearest_speed(self, sps: float) -> int:
        """Return the index of the closest speed preset."""
        diffs = [abs(s - sps) for s in self._SPEED_STEPS]
        return diffs.index(min(diffs))

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, step the active run, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            dt = self.clock.tick(fps) / 1000.0
            self._handle_events()
            if self.runner.is_running:
                self._step_accumulator += self.steps_per_second * dt
                steps = int(self._step_accumulator)
                self._step_accumulator -= steps
                for _ in range(steps):
                    if not self.runner.tick():
                        break
            self._draw()

        self.runner.stop()
        pygame.quit()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    try:
                        self.runner.start()
                    except RunInProgressError:
                        log.info("a run is already active; press S to stop it")
                    except ConfigError as exc:
                        log.error("cannot start run: %s", exc)
                elif event.key == pygame.K_s:
                    self.runner.stop()
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self._speed_index = min(
                        len(self._SPEED_STEPS) - 1,
                        self._speed_index + 1,
                    )
                    self.steps_per_second = self._SPEED_STEPS[self._speed_index]
                elif event.key == pygame.K_MINUS:
                    self._speed_index = max(0, self._speed_index - 1)
                    self.steps_per_second = self._SPEED_STEPS[self._speed_index]

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self._draw_field()
        self._draw_agents()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_field(self) -> None:
        """Blit the shaded height/pheromone image."""
        handle = self.runner.handle
        if handle is not None:
            height = handle.simulation.field.height
            pheromone = handle.simulation.field.pheromone
        elif self.runner.last_result is not None:
            height = self.runner.last_result.snapshot.height
            pheromone = self.runner.last_result.snapshot.pheromone
        else:
            return

        image = shade(height, pheromone, self.runner.config.max_pheromone)
        # surfarray is indexed [x, y]
        surface = pygame.surfarray.make_surface(image.transpose(1, 0, 2))
        side = self.runner.config.size * self.cell_size
        self.screen.blit(pygame.transform.scale(surface, (side, side)), (0, 0))

    def _draw_agents(self) -> None:
        """Draw food sources, the colony and each ant."""
        handle = self.runner.handle
        if handle is None:
            return
        cs = self.cell_size
        radius = max(2, cs // 2)
        sim = handle.simulation

        for food in sim.field.foods:
            colour = _FOOD if food.has_bites_left() else _FOOD_EMPTY
            pygame.draw.rect(
                self.screen,
                colour,
                (food.cell.x * cs - cs, food.cell.y * cs - cs, 3 * cs, 3 * cs),
            )

        colony = sim.colony
        if colony is not None:
            centre = (colony.x * cs + cs // 2, colony.y * cs + cs // 2)
            pygame.draw.circle(self.screen, _HOME, centre, radius * 2, width=1)

        for ant in sim.ants:
            colour = _RETURNING if ant.has_food else _EXPLORING
            centre = (ant.current.x * cs + cs // 2, ant.current.y * cs + cs // 2)
            pygame.draw.circle(self.screen, colour, centre, radius)

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        panel_x = self.runner.config.size * self.cell_size + 10
        y = 10

        handle = self.runner.handle
        lines: list[str]
        if handle is not None:
            sim = handle.simulation
            returning = sum(1 for ant in sim.ants if ant.has_food)
            lines = [
                f"Run: {handle.run_id}",
                f"Step: {sim.step_count}/{sim.config.max_steps}",
                f"Returning: {returning}/{len(sim.ants)}",
                f"Min height: {sim.field.min_height:.3f}",
            ]
        elif self.runner.last_result is not None:
            result = self.runner.last_result
            lines = [
                "IDLE",
                f"Last run: {result.steps} steps",
                f"{'stopped' if result.cancelled else 'completed'}",
            ]
        else:
            lines = ["IDLE"]

        lines += [
            f"Speed: {self.steps_per_second:.0f} st/s",
            "",
            "--- Controls ---",
            "SPACE: start",
            "S: stop",
            "+/-: speed",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, (200, 200, 200))
            self.screen.blit(surf, (panel_x, y))
            y += 18
