"""Field — the spatial container for the simulation.

The Field owns two same-sized float matrices indexed ``[y, x]``:

- ``height``: terrain elevation, lowered by digging agents.
- ``pheromone``: trail strength, clamped to ``[0, max_pheromone]``.

plus the list of food sources and a running ``min_height`` that only
ever moves downward.  In the bordered variant a one-cell frame around
the grid is inactive: neighbourhood queries and food placement are
restricted to ``[1, N-2]``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from landscaper.world.cell import Cell
from landscaper.world.food import FoodSource
from landscaper.world.terrain import flat_heights, noise_heights

if TYPE_CHECKING:
    from numpy.random import Generator

    from landscaper.simulation.config import SimulationConfig

log = logging.getLogger(__name__)


@dataclass
class Field:
    """Height field, pheromone field and food sources of one run.

    Attributes:
        size: Grid dimension ``N``.
        height: Terrain elevation, shape ``(N, N)``.
        pheromone: Trail strength, shape ``(N, N)``.
        max_pheromone: Upper clamp of the pheromone matrix.
        bordered: Whether the outer frame of cells is inactive.
        foods: Food sources, in placement order.  Depleted sources stay.
        min_height: Lowest height ever reached by any cell.
    """

    size: int
    height: NDArray[np.float64] = field(repr=False)
    pheromone: NDArray[np.float64] = field(repr=False)
    max_pheromone: float = 1.0
    bordered: bool = False
    foods: list[FoodSource] = field(default_factory=list)
    min_height: float = field(init=False)

    def __post_init__(self) -> None:
        shape = (self.size, self.size)
        if self.height.shape != shape or self.pheromone.shape != shape:
            msg = (
                f"height {self.height.shape} and pheromone {self.pheromone.shape}"
                f" must both be {shape}"
            )
            raise ValueError(msg)
        self.min_height = float(self.height.min())

    @classmethod
    def flat(
        cls,
        size: int,
        *,
        height: float = 1.0,
        pheromone: float = 0.0,
        max_pheromone: float = 1.0,
        bordered: bool = False,
    ) -> Field:
        """Create a food-less field with constant height and pheromone."""
        return cls(
            size=size,
            height=flat_heights(size, height),
            pheromone=np.full((size, size), pheromone, dtype=np.float64),
            max_pheromone=max_pheromone,
            bordered=bordered,
        )

    @classmethod
    def generate(cls, config: SimulationConfig, rng: Generator) -> Field:
        """Build a fresh field from configuration.

        Heights are flat or noise-filled, pheromone starts at
        ``initial_pheromone`` everywhere, and ``food_count`` sources of
        ``max_bites`` bites are scattered uniformly over the active area.

        Args:
            config: Validated simulation configuration.
            rng: Seeded random generator (the run's only random stream).

        Returns:
            A new Field instance.
        """
        size = config.size
        if config.flat_terrain:
            heights = flat_heights(size, config.flat_height)
        else:
            heights = noise_heights(
                size,
                rng,
                base=config.flat_height,
                amplitude=config.noise_amplitude,
                scale=config.noise_scale,
                octaves=config.noise_octaves,
            )

        result = cls(
            size=size,
            height=heights,
            pheromone=np.full(
                (size, size),
                config.initial_pheromone,
                dtype=np.float64,
            ),
            max_pheromone=config.max_pheromone,
            bordered=config.bordered,
        )
        for _ in range(config.food_count):
            result.foods.append(
                FoodSource(
                    cell=result.random_cell(rng),
                    bites_remaining=config.max_bites,
                ),
            )
        log.debug(
            "generated %dx%d field (flat=%s) with %d food sources",
            size,
            size,
            config.flat_terrain,
            len(result.foods),
        )
        return result

    # -- Bounds ------------------------------------------------------------

    @property
    def active_bounds(self) -> tuple[int, int]:
        """Inclusive ``(lo, hi)`` range of coordinates agents may occupy."""
        if self.bordered:
            return 1, self.size - 2
        return 0, self.size - 1

    def in_bounds(self, cell: Cell) -> bool:
        """Return True if ``cell`` lies anywhere on the grid."""
        return 0 <= cell.x < self.size and 0 <= cell.y < self.size

    def is_active(self, cell: Cell) -> bool:
        """Return True if ``cell`` lies in the active (non-border) area."""
        lo, hi = self.active_bounds
        return lo <= cell.x <= hi and lo <= cell.y <= hi

    def random_cell(self, rng: Generator) -> Cell:
        """Draw a uniformly random cell from the active area."""
        lo, hi = self.active_bounds
        x = int(rng.integers(lo, hi + 1))
        y = int(rng.integers(lo, hi + 1))
        return Cell(x, y)

    # -- Queries -----------------------------------------------------------

    def height_at(self, cell: Cell) -> float:
        """Return the height at ``cell``.

        Raises:
            IndexError: If the cell is off the grid.
        """
        self._check(cell)
        return float(self.height[cell.y, cell.x])

    def pheromone_at(self, cell: Cell) -> float:
        """Return the pheromone concentration at ``cell``.

        Raises:
            IndexError: If the cell is off the grid.
        """
        self._check(cell)
        return float(self.pheromone[cell.y, cell.x])

    def neighbours(
        self,
        cell: Cell,
        radius: int = 1,
        *,
        include_self: bool = False,
    ) -> list[Cell]:
        """Return the active cells within Chebyshev ``radius`` of ``cell``.

        The scan is row-major (``y`` outer, ``x`` inner) so the order is
        deterministic; when ``include_self`` is set, ``cell`` appears at
        its scan position.

        Args:
            cell: Centre of the neighbourhood.
            radius: Chebyshev radius (1 = Moore neighbourhood).
            include_self: Whether ``cell`` itself is part of the result.

        Returns:
            Ordered list of in-range cells.
        """
        lo, hi = self.active_bounds
        result: list[Cell] = []
        for y in range(max(lo, cell.y - radius), min(hi, cell.y + radius) + 1):
            for x in range(max(lo, cell.x - radius), min(hi, cell.x + radius) + 1):
                if x == cell.x and y == cell.y and not include_self:
                    continue
                result.append(Cell(x, y))
        return result

    def find_food(self, cells: Iterable[Cell]) -> list[FoodSource]:
        """Return the food sources located on any of ``cells``.

        Sources are returned in food-list order, depleted ones included;
        callers must check ``has_bites_left()`` before taking a bite.
        """
        wanted = set(cells)
        return [food for food in self.foods if food.cell in wanted]

    # -- Mutation ----------------------------------------------------------

    def apply_dig(self, cell: Cell, amount: float) -> None:
        """Lower the height at ``cell`` by ``amount``.

        Off-grid cells are ignored.  ``min_height`` follows the cell down.
        """
        self.raise_height(cell, -amount)

    def raise_height(self, cell: Cell, amount: float) -> None:
        """Add ``amount`` to the height at ``cell`` (ignored if off-grid)."""
        if not self.in_bounds(cell):
            return
        value = self.height[cell.y, cell.x] + amount
        self.height[cell.y, cell.x] = value
        if value < self.min_height:
            self.min_height = float(value)

    def apply_deposit(self, cell: Cell, amount: float) -> float:
        """Add pheromone at ``cell``, clamped to ``[0, max_pheromone]``.

        Returns:
            The new pheromone value (0.0 for off-grid cells).
        """
        if not self.in_bounds(cell):
            return 0.0
        value = float(
            np.clip(
                self.pheromone[cell.y, cell.x] + amount,
                0.0,
                self.max_pheromone,
            ),
        )
        self.pheromone[cell.y, cell.x] = value
        return value

    def _check(self, cell: Cell) -> None:
        if not self.in_bounds(cell):
            msg = f"{tuple(cell)} out of bounds for {self.size}x{self.size}"
            raise IndexError(msg)
