"""Cell — a grid coordinate in the height/pheromone field.

Cells are plain ``(x, y)`` value objects.  All terrain and pheromone
state lives in the ``Field`` matrices, indexed as ``[y, x]``, so a cell
carries no state of its own and can be hashed, compared and used as a
food or colony position directly.
"""

from __future__ import annotations

import math
from typing import NamedTuple


class Cell(NamedTuple):
    """A grid position.

    Attributes:
        x: Column index.
        y: Row index.
    """

    x: int
    y: int

    def offset(self, dx: int, dy: int) -> Cell:
        """Return the cell displaced by ``(dx, dy)``."""
        return Cell(self.x + dx, self.y + dy)

    def delta(self, other: Cell) -> tuple[int, int]:
        """Return the ``(dx, dy)`` vector pointing from this cell to ``other``."""
        return other.x - self.x, other.y - self.y


def chebyshev(a: Cell, b: Cell) -> int:
    """Return the Chebyshev (king-move) distance between two cells."""
    return max(abs(a.x - b.x), abs(a.y - b.y))


def euclidean(a: Cell, b: Cell) -> float:
    """Return the straight-line distance between two cells."""
    return math.hypot(a.x - b.x, a.y - b.y)
