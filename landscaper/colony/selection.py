"""Selection policy — stochastic next-cell choice.

For a cell ``c`` and its candidate neighbourhood ``Ns`` every neighbour
``n`` receives a weighted sum of non-negative *portions*:

- **slope**: how attractive ``height[n]`` is relative to ``height[c]``,
  normalised by the min/max height over ``Ns ∪ {c}``.
- **pheromone**: ``pheromone[n] / max_pheromone`` (exploring only).
- **random**: a uniform draw (exploring only).
- **direction**: ``1 - angle(d - c, n - c) / 180`` toward the
  destination ``d`` (returning only).  The agent's own cell always
  scores 0 here, so a homing agent never "aims" at standing still.

The sums are normalised into probabilities and sampled with a roulette
wheel.  Everything here is a pure function of the field state, the
candidate cells, the weights and the random stream, so it can be tested
without running the simulation loop.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from landscaper.simulation.config import SelectionWeights, SlopeMode

if TYPE_CHECKING:
    from numpy.random import Generator

    from landscaper.world.cell import Cell
    from landscaper.world.field import Field


@dataclass(frozen=True)
class Exploring:
    """Searching for food: pheromone, slope and random portions apply."""


@dataclass(frozen=True)
class Returning:
    """Heading for ``destination``: slope and direction portions apply."""

    destination: Cell


SelectionContext = Exploring | Returning


def slope_portions(
    current_height: float,
    heights: NDArray[np.float64],
    mode: SlopeMode,
) -> NDArray[np.float64]:
    """Return the unweighted slope portion of each candidate, in ``[0, 1]``.

    Args:
        current_height: Height of the agent's cell.
        heights: Heights of the candidate cells.
        mode: ``DOWNHILL`` favours the lowest candidates, ``LEVEL``
            favours candidates closest in height to the current cell.

    Returns:
        One portion per candidate; all ones on level ground.
    """
    lo = min(current_height, float(heights.min()))
    hi = max(current_height, float(heights.max()))
    if lo == hi:
        return np.ones_like(heights)

    if mode is SlopeMode.LEVEL:
        max_abs_diff = max(abs(lo - current_height), abs(hi - current_height))
        return 1.0 - np.abs(heights - current_height) / max_abs_diff

    return 1.0 - (heights - lo) / (hi - lo)


def direction_portions(
    current: Cell,
    destination: Cell,
    candidates: list[Cell],
) -> NDArray[np.float64]:
    """Return ``1 - angle / 180`` between each step and the homing vector.

    A zero-length vector has angle 0 to anything; the candidate equal to
    ``current`` is forced to 0 regardless.
    """
    mx, my = current.delta(destination)
    result = np.empty(len(candidates), dtype=np.float64)
    for i, cell in enumerate(candidates):
        dx, dy = current.delta(cell)
        if dx == 0 and dy == 0:
            result[i] = 0.0
            continue
        angle = math.degrees(math.atan2(abs(mx * dy - my * dx), mx * dx + my * dy))
        result[i] = 1.0 - angle / 180.0
    return result


def selection_probabilities(
    field: Field,
    current: Cell,
    candidates: list[Cell],
    context: SelectionContext,
    weights: SelectionWeights,
    rng: Generator,
    *,
    slope_mode: SlopeMode = SlopeMode.DOWNHILL,
) -> NDArray[np.float64]:
    """Compute the probability of moving to each candidate cell.

    When every portion is zero (e.g. all weights zero) the distribution
    falls back to uniform instead of dividing by zero.

    Args:
        field: Field to read heights and pheromone from.
        current: The agent's cell.
        candidates: Valid neighbourhood, already bounds-filtered.
        context: ``Exploring()`` or ``Returning(destination)``.
        weights: Portion weights.
        rng: Random stream; consumed only while exploring.
        slope_mode: How slope portions are computed.

    Returns:
        Array of probabilities aligned with ``candidates``, summing to 1.
    """
    k = len(candidates)
    if k == 0:
        msg = "cannot select from an empty neighbourhood"
        raise ValueError(msg)

    xs = np.fromiter((c.x for c in candidates), dtype=np.intp, count=k)
    ys = np.fromiter((c.y for c in candidates), dtype=np.intp, count=k)

    totals = weights.slope * slope_portions(
        field.height_at(current),
        field.height[ys, xs],
        slope_mode,
    )

    match context:
        case Exploring():
            pheromone = field.pheromone[ys, xs] / field.max_pheromone
            totals += weights.pheromone * pheromone
            totals += weights.random * rng.random(k)
        case Returning(destination=destination):
            totals += weights.direction * direction_portions(
                current,
                destination,
                candidates,
            )

    total_sum = float(totals.sum())
    if total_sum <= 0.0:
        return np.full(k, 1.0 / k)
    return totals / total_sum


def roulette_select(probabilities: NDArray[np.float64], draw: float) -> int:
    """Pick an index by roulette wheel.

    Candidates are sorted by ascending probability (stable, so ties keep
    neighbourhood order) and the first slot whose cumulative interval
    ``[cum[i], cum[i+1])`` contains ``draw`` wins.  If rounding leaves
    ``draw`` past the last bound, the last (most probable) slot wins.

    Args:
        probabilities: Normalised probabilities.
        draw: Uniform sample in ``[0, 1)``.

    Returns:
        Index into ``probabilities``.
    """
    order = np.argsort(probabilities, kind="stable")
    cumulative = np.concatenate(([0.0], np.cumsum(probabilities[order])))
    slot = int(np.searchsorted(cumulative, draw, side="right")) - 1
    if slot >= len(order):
        slot = len(order) - 1
    return int(order[max(slot, 0)])


def choose_next_cell(
    field: Field,
    current: Cell,
    candidates: list[Cell],
    context: SelectionContext,
    weights: SelectionWeights,
    rng: Generator,
    *,
    slope_mode: SlopeMode = SlopeMode.DOWNHILL,
) -> Cell:
    """Sample the next cell for an agent standing on ``current``."""
    probabilities = selection_probabilities(
        field,
        current,
        candidates,
        context,
        weights,
        rng,
        slope_mode=slope_mode,
    )
    return candidates[roulette_select(probabilities, float(rng.random()))]
