"""Ant -- individual agent with a two-state foraging machine.

An ant is either **exploring** (no food carried) or **returning**
(carrying a reference to the food source it bit).  The transition guard
is checked every step before any movement is computed:

- exploring, a food source with bites left within reach -> take a bite,
  start returning, stay in place this step;
- returning, standing on the home cell -> drop the food, start
  exploring, stay in place this step;
- otherwise move to a cell sampled by the selection policy, with no
  destination bias while exploring and biased toward home while
  returning.

Ants never write to the field.  ``Ant.decide`` only reads it and
returns a ``Decision``; the simulation engine applies decisions (bites,
digging, pheromone deposits) as the single writer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from landscaper.colony.selection import Exploring, Returning, choose_next_cell
from landscaper.world.cell import Cell, euclidean

if TYPE_CHECKING:
    from numpy.random import Generator

    from landscaper.simulation.config import SimulationConfig
    from landscaper.world.field import Field
    from landscaper.world.food import FoodSource

log = logging.getLogger(__name__)


class AntState(Enum):
    """Foraging state of an ant."""

    EXPLORING = auto()
    RETURNING = auto()


class Action(Enum):
    """What the engine must do to apply a decision."""

    MOVE = auto()
    PICK_UP = auto()
    DROP_OFF = auto()


@dataclass(frozen=True)
class Decision:
    """The outcome of one ant's turn.

    Attributes:
        action: Kind of turn.
        next_cell: Where the ant stands after the turn.  Equal to the
            current cell for ``PICK_UP`` and ``DROP_OFF``.
        food: The source to bite, for ``PICK_UP`` only.
    """

    action: Action
    next_cell: Cell
    food: FoodSource | None = None


@dataclass
class Ant:
    """A single foraging agent.

    Attributes:
        home: Colony cell, fixed at spawn.
        current: Cell the ant currently occupies.
        carried_food: Source the ant took a bite from, or None while
            exploring.
    """

    home: Cell
    current: Cell
    carried_food: FoodSource | None = None

    @classmethod
    def spawn(cls, home: Cell, start: Cell | None = None) -> Ant:
        """Create an exploring ant at ``start`` (defaults to ``home``)."""
        return cls(home=home, current=home if start is None else start)

    @property
    def state(self) -> AntState:
        """Current foraging state, derived from the carried food."""
        if self.carried_food is None:
            return AntState.EXPLORING
        return AntState.RETURNING

    @property
    def has_food(self) -> bool:
        """Return True while the ant carries food home."""
        return self.carried_food is not None

    @property
    def is_home(self) -> bool:
        """Return True if the ant stands on its colony cell."""
        return self.current == self.home

    def decide(
        self,
        field: Field,
        config: SimulationConfig,
        rng: Generator,
    ) -> Decision:
        """Evaluate the state machine and pick this turn's action.

        Args:
            field: Field to read (never mutated here).
            config: Run configuration (radius, weights, slope mode).
            rng: The run's random stream.

        Returns:
            The decision for the engine to apply.
        """
        candidates = field.neighbours(
            self.current,
            config.neighbour_radius,
            include_self=config.ants_in_place,
        )
        if not candidates:
            candidates = [self.current]

        match self.state:
            case AntState.RETURNING:
                if self.is_home:
                    return Decision(Action.DROP_OFF, self.current)
                context: Exploring | Returning = Returning(self.home)
            case AntState.EXPLORING:
                reach = field.neighbours(
                    self.current,
                    config.neighbour_radius,
                    include_self=True,
                )
                for food in field.find_food(reach):
                    if food.has_bites_left():
                        return Decision(Action.PICK_UP, self.current, food)
                context = Exploring()

        next_cell = choose_next_cell(
            field,
            self.current,
            candidates,
            context,
            config.weights,
            rng,
            slope_mode=config.slope_mode,
        )
        return Decision(Action.MOVE, next_cell)

    def pick_up(self, food: FoodSource) -> bool:
        """Take a bite of ``food`` and start returning.

        Returns:
            False (and no state change) if the source had no bites left.
        """
        if not food.take_bite():
            return False
        self.carried_food = food
        log.debug(
            "ant at %s picked up food at %s (%d bites left)",
            tuple(self.current),
            tuple(food.cell),
            food.bites_remaining,
        )
        return True

    def drop_off(self) -> None:
        """Deliver carried food at home and resume exploring."""
        self.carried_food = None
        log.debug("ant delivered food at home %s", tuple(self.home))

    def pheromone_deposit(self, base: float, min_fraction: float = 0.0) -> float:
        """Return the trail deposit for the ant's current position.

        The deposit decays linearly with proximity to home: it is
        ``base`` at the food source's distance from home and falls to
        ``base * min_fraction`` at home itself.

        Args:
            base: Deposit at full strength.
            min_fraction: Floor of the deposit, as a fraction of ``base``.

        Returns:
            Pheromone amount to add (``base`` when not carrying food or
            when the food source sits on the home cell).
        """
        if self.carried_food is None:
            return base
        total = euclidean(self.carried_food.cell, self.home)
        if abs(total) < 1e-6:
            return base
        floor = base * min_fraction
        remaining = euclidean(self.current, self.home)
        return remaining * (base - floor) / total + floor
