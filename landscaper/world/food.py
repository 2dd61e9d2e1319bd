"""FoodSource — a depletable point resource.

A food source sits on a fixed cell and holds a finite number of bites.
Depleted sources stay in the field's food list: they can still be found
by adjacency scans but must be treated as inedible by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass

from landscaper.world.cell import Cell


@dataclass(eq=False)
class FoodSource:
    """A food source with a bite budget.

    Identity semantics (``eq=False``): two sources on the same cell are
    still distinct objects, and agents hold references to them.

    Attributes:
        cell: Position of the source (never reassigned).
        bites_remaining: Bites left; never negative.
    """

    cell: Cell
    bites_remaining: int

    def __post_init__(self) -> None:
        if self.bites_remaining < 0:
            msg = f"bites_remaining must be >= 0, got {self.bites_remaining}"
            raise ValueError(msg)

    def has_bites_left(self) -> bool:
        """Return True if at least one bite can still be taken."""
        return self.bites_remaining > 0

    def take_bite(self) -> bool:
        """Consume one bite.

        Returns:
            True if a bite was taken, False if the source was already
            depleted (the count is left at zero).
        """
        if self.bites_remaining <= 0:
            return False
        self.bites_remaining -= 1
        return True
