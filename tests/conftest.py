"""Shared fixtures for the Landscaper test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator
from numpy.typing import NDArray

from landscaper.simulation.config import SelectionWeights, SimulationConfig
from landscaper.world.field import Field


class FixedDraw:
    """Stand-in for a Generator whose uniform draws are all ``value``.

    A draw near 1.0 makes the roulette wheel pick the most probable
    candidate, which turns the stochastic policy into a greedy one.
    """

    def __init__(self, value: float = 0.999) -> None:
        self.value = value

    def random(self, size: int | None = None) -> float | NDArray[np.float64]:
        if size is None:
            return self.value
        return np.full(size, self.value)


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def greedy() -> FixedDraw:
    """A draw source that always selects the most probable candidate."""
    return FixedDraw(0.999)


@pytest.fixture
def small_field() -> Field:
    """An 8x8 flat field at height 1.0 with no food."""
    return Field.flat(8, height=1.0)


@pytest.fixture
def homing_config() -> SimulationConfig:
    """A 5x5 flat config where only the direction portion matters."""
    return SimulationConfig(
        seed=7,
        size=5,
        food_count=0,
        ant_count=1,
        max_steps=20,
        colony=None,
        weights=SelectionWeights(pheromone=0.0, slope=0.0, direction=1.0, random=0.0),
    )


@pytest.fixture
def small_config() -> SimulationConfig:
    """A small, fast configuration with a fixed seed."""
    return SimulationConfig(
        seed=2024,
        size=16,
        food_count=3,
        max_bites=5,
        ant_count=6,
        max_steps=40,
    )
