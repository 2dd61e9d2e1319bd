"""Diffusion and evaporation of the pheromone field.

Once per step every cell is blended toward the mean of its eight
neighbours and then decays::

    avg = sum(pheromone[n] for n in Moore(cell)) / 8
    new = (1 - evaporation) * (old + diffusion * (avg - old))

Off-grid neighbours count as empty, so the grid edge slowly absorbs
pheromone.  The pass reads only the previous buffer and writes a new
one, which replaces the field's matrix in a single assignment at the
end; no cell ever sees a value already updated in the same pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from landscaper.world.field import Field

_MOORE_SIZE = 8


def neighbour_sum(grid: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return the sum of each cell's eight neighbours (zero outside).

    Args:
        grid: 2D concentration array.

    Returns:
        New array of the same shape.
    """
    padded = np.pad(grid, 1, mode="constant", constant_values=0.0)
    h, w = grid.shape
    total = np.zeros_like(grid)
    # Shift in each of the eight directions and accumulate
    for dy in (0, 1, 2):
        for dx in (0, 1, 2):
            if dy == 1 and dx == 1:
                continue
            total += padded[dy : dy + h, dx : dx + w]
    return total


def diffuse(grid: NDArray[np.float64], rate: float) -> NDArray[np.float64]:
    """Blend every cell toward its neighbour average.

    Returns a new array; ``grid`` is left untouched.  With no
    evaporation, total mass is conserved away from the grid edge.
    """
    if rate <= 0:
        return grid.copy()
    average = neighbour_sum(grid) / _MOORE_SIZE
    return grid + rate * (average - grid)


def evaporate(grid: NDArray[np.float64], rate: float) -> None:
    """Scale ``grid`` by ``1 - rate`` in place."""
    grid *= 1.0 - rate


def update_pheromones(
    field: Field,
    evaporation_rate: float,
    diffusion_rate: float,
) -> None:
    """Run one diffusion + evaporation pass over the whole field.

    In the bordered variant only the interior ``[1, N-2]`` is updated;
    border cells keep their previous values.  The result is clamped to
    ``[0, max_pheromone]`` before it is swapped in.

    Args:
        field: Field whose pheromone matrix is replaced.
        evaporation_rate: Fraction lost per step, in ``[0, 1]``.
        diffusion_rate: Blend factor toward the neighbour mean, in ``[0, 1]``.
    """
    old = field.pheromone
    new = diffuse(old, diffusion_rate)
    evaporate(new, evaporation_rate)

    if field.bordered:
        new[0, :] = old[0, :]
        new[-1, :] = old[-1, :]
        new[:, 0] = old[:, 0]
        new[:, -1] = old[:, -1]

    np.clip(new, 0.0, field.max_pheromone, out=new)
    field.pheromone = new
