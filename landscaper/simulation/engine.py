"""Simulation — the per-step loop body.

Owns one run's field, ants and random stream, and advances them in the
canonical step order:

1. Shuffle ant order (optional)
2. For each ant in turn: decide, then apply the decision
   (bite / drop-off, or pheromone deposit + dig + move)
3. Diffuse and evaporate the pheromone field
4. Increment the step counter

Ants act strictly one after another, so later ants see the field as
already dug by earlier ones in the same step.  ``step`` returns whether
the run should continue; the stepped and batch runners in
``runner.py`` are both built on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

from landscaper.colony.ant import Action, Ant, Decision
from landscaper.colony.digging import deposit_trail, dig
from landscaper.pheromones.diffusion import update_pheromones
from landscaper.world.field import Field

if TYPE_CHECKING:
    from landscaper.simulation.config import SimulationConfig
    from landscaper.world.cell import Cell

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSnapshot:
    """Output of a flush: copies of both matrices plus the step count.

    Attributes:
        height: Height matrix, indexed ``[y, x]``.
        pheromone: Pheromone matrix, indexed ``[y, x]``.
        min_height: Lowest height reached so far.
        step: Steps completed when the snapshot was taken.
    """

    height: NDArray[np.float64] = field(repr=False)
    pheromone: NDArray[np.float64] = field(repr=False)
    min_height: float
    step: int


@dataclass
class Simulation:
    """One run of the foraging / terrain-sculpting model.

    Attributes:
        config: Run configuration.
        field: Height / pheromone field (owned exclusively by this run).
        ants: Agents, in current processing order.
        rng: The run's single random stream.
        step_count: Steps completed so far.
    """

    config: SimulationConfig
    field: Field
    ants: list[Ant]
    rng: Generator
    step_count: int = 0

    @classmethod
    def create(
        cls,
        config: SimulationConfig,
        rng: Generator | None = None,
    ) -> Simulation:
        """Validate ``config`` and build a fresh field and ant population.

        Args:
            config: Run configuration.
            rng: Random stream; defaults to one seeded from ``config.seed``.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        config.validate()
        if rng is None:
            rng = np.random.default_rng(config.seed_value)

        grid = Field.generate(config, rng)
        home = config.colony if config.colony is not None else grid.random_cell(rng)
        ants = [
            Ant.spawn(home, grid.random_cell(rng) if config.individual_start else None)
            for _ in range(config.ant_count)
        ]
        log.info(
            "colony at %s with %d ants, %d food sources",
            tuple(home),
            len(ants),
            len(grid.foods),
        )
        return cls(config=config, field=grid, ants=ants, rng=rng)

    @property
    def done(self) -> bool:
        """Return True once the step budget is exhausted."""
        return self.step_count >= self.config.max_steps

    @property
    def colony(self) -> Cell | None:
        """Home cell shared by the ants (None if there are none)."""
        return self.ants[0].home if self.ants else None

    def step(self) -> bool:
        """Advance the simulation by one step.

        Returns:
            True if more steps remain, False when the budget is spent.
        """
        if self.done:
            return False

        if self.config.shuffle_ants:
            order = self.rng.permutation(len(self.ants))
            self.ants = [self.ants[i] for i in order]

        for ant in self.ants:
            self._apply(ant, ant.decide(self.field, self.config, self.rng))

        update_pheromones(
            self.field,
            self.config.evaporation_rate,
            self.config.diffusion_rate,
        )

        self.step_count += 1
        if self.config.log_every > 0 and self.step_count % self.config.log_every == 0:
            log.debug(
                "step %d/%d: %d ants returning, min height %.4f",
                self.step_count,
                self.config.max_steps,
                sum(1 for ant in self.ants if ant.has_food),
                self.field.min_height,
            )
        return not self.done

    def snapshot(self) -> FieldSnapshot:
        """Copy the current field state for consumers."""
        return FieldSnapshot(
            height=self.field.height.copy(),
            pheromone=self.field.pheromone.copy(),
            min_height=self.field.min_height,
            step=self.step_count,
        )

    def _apply(self, ant: Ant, decision: Decision) -> None:
        """Apply one ant's decision to the ant and the field."""
        match decision.action:
            case Action.PICK_UP:
                if decision.food is not None:
                    ant.pick_up(decision.food)
            case Action.DROP_OFF:
                ant.drop_off()
            case Action.MOVE:
                if ant.has_food:
                    deposit_trail(
                        self.field,
                        ant,
                        self.config.pheromone_deposit,
                        self.config.min_deposit_fraction,
                    )
                    amount = self.config.food_dig_amount
                else:
                    amount = self.config.no_food_dig_amount
                dig(self.field, ant.current, decision.next_cell, amount)
                ant.current = decision.next_cell
