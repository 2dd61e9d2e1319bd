"""Dig and deposit operators — how moving ants reshape the field.

Every move removes ``amount`` of height from the destination cell and
pushes part of it back onto the cells beside the path, so repeated
traffic carves a channel with low banks instead of a bare pit::

    axis-aligned (east)       diagonal (south-east)
      A  B  .                   C  A  B
      C  N  .                   A  N  .
      A  B  .                   B  .  .

``C`` is the current cell (0.4), ``A`` the near flanks (0.2) and ``B``
the far flanks (0.1); ``N`` is the dug cell.  Flank cells outside the
active area (off the grid, or on the frame of a bordered field) are
skipped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from landscaper.colony.ant import Ant
    from landscaper.world.cell import Cell
    from landscaper.world.field import Field

_CURRENT_SHARE = 0.4
_NEAR_FLANK_SHARE = 0.2
_FAR_FLANK_SHARE = 0.1


def flank_cells(current: Cell, next_cell: Cell) -> list[tuple[Cell, float]]:
    """Return the cells that receive displaced soil and their shares.

    The move direction is reduced to its unit components, so steps
    longer than one cell displace soil the same way as unit steps.

    Args:
        current: Cell the ant leaves.
        next_cell: Cell the ant digs into.

    Returns:
        ``(cell, share)`` pairs, empty if the ant does not move.
    """
    dx, dy = current.delta(next_cell)
    sx, sy = int(np.sign(dx)), int(np.sign(dy))
    if sx == 0 and sy == 0:
        return []

    result = [(current, _CURRENT_SHARE)]
    if sx == 0 or sy == 0:
        px, py = -sy, sx
        result += [
            (current.offset(px, py), _NEAR_FLANK_SHARE),
            (current.offset(-px, -py), _NEAR_FLANK_SHARE),
            (current.offset(px + sx, py + sy), _FAR_FLANK_SHARE),
            (current.offset(-px + sx, -py + sy), _FAR_FLANK_SHARE),
        ]
    else:
        result += [
            (current.offset(sx, 0), _NEAR_FLANK_SHARE),
            (current.offset(0, sy), _NEAR_FLANK_SHARE),
            (current.offset(2 * sx, 0), _FAR_FLANK_SHARE),
            (current.offset(0, 2 * sy), _FAR_FLANK_SHARE),
        ]
    return result


def dig(field: Field, current: Cell, next_cell: Cell, amount: float) -> None:
    """Dig ``amount`` out of ``next_cell`` and bank it beside the path.

    Staying in place digs nothing.  ``field.min_height`` is kept up to
    date by the field's own mutation helpers.
    """
    if current == next_cell:
        return
    field.apply_dig(next_cell, amount)
    for cell, share in flank_cells(current, next_cell):
        if field.is_active(cell):
            field.raise_height(cell, amount * share)


def deposit_trail(
    field: Field,
    ant: Ant,
    base: float,
    min_fraction: float = 0.0,
) -> float:
    """Drop trail pheromone on the returning ant's current cell.

    Returns:
        The clamped pheromone value now stored at that cell.
    """
    return field.apply_deposit(ant.current, ant.pheromone_deposit(base, min_fraction))
