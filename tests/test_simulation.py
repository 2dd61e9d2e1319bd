"""Tests for landscaper.simulation — config loading and the step loop."""

from pathlib import Path
from typing import Any

import numpy as np
import pytest

from landscaper.colony.ant import Ant
from landscaper.simulation.config import (
    ConfigError,
    SelectionWeights,
    SimulationConfig,
    SlopeMode,
)
from landscaper.simulation.engine import Simulation
from landscaper.world.cell import Cell
from landscaper.world.field import Field
from landscaper.world.food import FoodSource

_DEFAULT_YAML = Path(__file__).resolve().parent.parent / "config" / "default.yaml"


class TestConfig:
    """Tests for SimulationConfig loading and validation."""

    def test_default_values(self) -> None:
        cfg = SimulationConfig()
        assert cfg.size == 129
        assert cfg.ant_count == 20
        assert cfg.slope_mode is SlopeMode.DOWNHILL
        assert cfg.weights == SelectionWeights()
        assert cfg.active_range == (0, 128)

    def test_bordered_active_range(self) -> None:
        assert SimulationConfig(size=10, bordered=True).active_range == (1, 8)

    def test_shipped_yaml_loads(self) -> None:
        cfg = SimulationConfig.from_yaml(_DEFAULT_YAML)
        assert cfg.seed == 42
        assert cfg.colony is None
        cfg.validate()

    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "run.yaml"
        path.write_text(
            "seed: 3\n"
            "size: 33\n"
            "colony: [4, 5]\n"
            "slope_mode: level\n"
            "weights:\n"
            "  pheromone: 2.0\n"
            "  random: 0.5\n",
        )
        cfg = SimulationConfig.from_yaml(path)
        assert cfg.seed == 3
        assert cfg.size == 33
        assert cfg.colony == Cell(4, 5)
        assert cfg.slope_mode is SlopeMode.LEVEL
        assert cfg.weights == SelectionWeights(pheromone=2.0, random=0.5)
        # Keys left out keep their defaults
        assert cfg.max_steps == 1000

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert SimulationConfig.from_yaml(path) == SimulationConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SimulationConfig.from_yaml(tmp_path / "nope.yaml")

    def test_bad_slope_mode(self) -> None:
        with pytest.raises(ConfigError):
            SimulationConfig.from_dict({"slope_mode": "uphill"})

    def test_bad_colony(self) -> None:
        with pytest.raises(ConfigError):
            SimulationConfig.from_dict({"colony": [1, 2, 3]})

    @pytest.mark.parametrize(
        "changes",
        [
            {"ant_count": 0},
            {"size": 0},
            {"size": 2, "bordered": True},
            {"max_steps": 0},
            {"evaporation_rate": 1.5},
            {"diffusion_rate": -0.1},
            {"neighbour_radius": 0},
            {"max_pheromone": 0.0},
            {"initial_pheromone": 2.0},
            {"weights": SelectionWeights(slope=-1.0)},
            {"colony": Cell(200, 0)},
            {"seed": "abc"},
            {"seed": 1.5},
        ],
    )
    def test_validate_rejects(self, changes: dict[str, Any]) -> None:
        with pytest.raises(ConfigError):
            SimulationConfig().replace(**changes).validate()

    def test_config_error_is_value_error(self) -> None:
        assert issubclass(ConfigError, ValueError)


class TestSimulationCreate:
    """Tests for Simulation.create."""

    def test_ants_start_at_home(self, small_config: SimulationConfig) -> None:
        sim = Simulation.create(small_config)
        assert len(sim.ants) == small_config.ant_count
        assert all(ant.current == sim.colony for ant in sim.ants)
        assert all(ant.home == sim.colony for ant in sim.ants)
        assert len(sim.field.foods) == small_config.food_count

    def test_configured_colony(self, small_config: SimulationConfig) -> None:
        sim = Simulation.create(small_config.replace(colony=Cell(3, 4)))
        assert sim.colony == Cell(3, 4)

    def test_individual_start(self, small_config: SimulationConfig) -> None:
        cfg = small_config.replace(individual_start=True, ant_count=30)
        sim = Simulation.create(cfg)
        assert len({ant.home for ant in sim.ants}) == 1
        assert any(not ant.is_home for ant in sim.ants)
        assert all(sim.field.in_bounds(ant.current) for ant in sim.ants)

    def test_invalid_config_rejected(self, small_config: SimulationConfig) -> None:
        with pytest.raises(ConfigError):
            Simulation.create(small_config.replace(ant_count=0))

    def test_negative_seed_is_reproducible(
        self,
        small_config: SimulationConfig,
    ) -> None:
        cfg = small_config.replace(seed=-188287030)
        cfg.validate()
        a = Simulation.create(cfg)
        b = Simulation.create(cfg)
        for _ in range(5):
            a.step()
            b.step()
        assert np.array_equal(a.field.height, b.field.height)

    def test_seed_value_wraps_negative(self) -> None:
        assert SimulationConfig(seed=None).seed_value is None
        assert SimulationConfig(seed=7).seed_value == 7
        assert SimulationConfig(seed=-1).seed_value == 2**64 - 1


class TestStep:
    """Tests for the per-step loop body."""

    def test_step_counter(self, small_config: SimulationConfig) -> None:
        sim = Simulation.create(small_config.replace(max_steps=3))
        assert sim.step()
        assert sim.step()
        assert not sim.step()
        assert sim.step_count == 3
        assert sim.done
        # Further steps are no-ops
        assert not sim.step()
        assert sim.step_count == 3

    def test_same_seed_same_run(self, small_config: SimulationConfig) -> None:
        a = Simulation.create(small_config)
        b = Simulation.create(small_config)
        for _ in range(small_config.max_steps):
            a.step()
            b.step()
            assert np.array_equal(a.field.height, b.field.height)
            assert np.array_equal(a.field.pheromone, b.field.pheromone)
        assert [ant.current for ant in a.ants] == [ant.current for ant in b.ants]

    def test_shuffled_runs_reproducible(self, small_config: SimulationConfig) -> None:
        cfg = small_config.replace(shuffle_ants=True)
        a = Simulation.create(cfg)
        b = Simulation.create(cfg)
        for _ in range(10):
            a.step()
            b.step()
        assert np.array_equal(a.field.height, b.field.height)
        assert [ant.current for ant in a.ants] == [ant.current for ant in b.ants]

    def test_different_seeds_diverge(self, small_config: SimulationConfig) -> None:
        a = Simulation.create(small_config)
        b = Simulation.create(small_config.replace(seed=small_config.seed + 1))
        for _ in range(10):
            a.step()
            b.step()
        assert not np.array_equal(a.field.height, b.field.height)

    def test_independent_runs_do_not_share_state(
        self,
        small_config: SimulationConfig,
    ) -> None:
        a = Simulation.create(small_config)
        b = Simulation.create(small_config)
        a.field.height[0, 0] = -5.0
        assert b.field.height[0, 0] != -5.0

    def test_run_keeps_field_bounds(self, small_config: SimulationConfig) -> None:
        cfg = small_config.replace(
            max_steps=80,
            food_count=6,
            max_bites=2,
            flat_terrain=False,
            noise_amplitude=0.3,
        )
        sim = Simulation.create(cfg)
        bites = [food.bites_remaining for food in sim.field.foods]
        lowest = sim.field.min_height
        while sim.step():
            assert 0.0 <= sim.field.pheromone.min()
            assert sim.field.pheromone.max() <= cfg.max_pheromone
            now = [food.bites_remaining for food in sim.field.foods]
            assert all(0 <= n <= b for n, b in zip(now, bites))
            bites = now
            assert sim.field.min_height <= lowest
            assert sim.field.min_height <= sim.field.height.min() + 1e-12
            lowest = sim.field.min_height
            assert all(sim.field.is_active(ant.current) for ant in sim.ants)

    def test_snapshot_is_a_copy(self, small_config: SimulationConfig) -> None:
        sim = Simulation.create(small_config)
        sim.step()
        snap = sim.snapshot()
        assert snap.step == 1
        snap.height[:, :] = 0.0
        assert not np.array_equal(sim.field.height, snap.height)


class TestForagingCycle:
    """An ant next to food bites it, walks home and delivers."""

    def test_full_cycle(self, homing_config: SimulationConfig, greedy: Any) -> None:
        field = Field.flat(5)
        food = FoodSource(cell=Cell(4, 4), bites_remaining=1)
        field.foods.append(food)
        ant = Ant.spawn(Cell(0, 0), Cell(3, 3))
        sim = Simulation(config=homing_config, field=field, ants=[ant], rng=greedy)

        sim.step()
        assert ant.carried_food is food
        assert food.bites_remaining == 0
        assert ant.current == Cell(3, 3)

        path = []
        for _ in range(3):
            sim.step()
            path.append(ant.current)
        assert path == [Cell(2, 2), Cell(1, 1), Cell(0, 0)]
        assert ant.is_home and ant.has_food

        # The trail was laid on the way back and the route dug out
        assert field.pheromone_at(Cell(3, 3)) > 0.0
        assert field.height_at(Cell(0, 0)) == pytest.approx(0.98)
        assert field.height_at(Cell(1, 1)) == pytest.approx(1.0 - 0.02 + 0.4 * 0.02)
        assert field.min_height == pytest.approx(0.98)

        sim.step()
        assert ant.carried_food is None
        assert ant.current == Cell(0, 0)
        assert food.bites_remaining == 0

    def test_depleted_source_not_bitten(
        self,
        homing_config: SimulationConfig,
        greedy: Any,
    ) -> None:
        field = Field.flat(5)
        field.foods.append(FoodSource(cell=Cell(4, 4), bites_remaining=0))
        ant = Ant.spawn(Cell(0, 0), Cell(3, 3))
        sim = Simulation(config=homing_config, field=field, ants=[ant], rng=greedy)
        sim.step()
        assert not ant.has_food
        assert ant.current != Cell(3, 3)

    def test_forage_from_home_and_return(
        self,
        homing_config: SimulationConfig,
        greedy: Any,
    ) -> None:
        """Home at (0, 0), three bites at (4, 4) on a flat 5x5 field."""
        sim = Simulation.create(homing_config.replace(colony=Cell(0, 0)), rng=greedy)
        food = FoodSource(cell=Cell(4, 4), bites_remaining=3)
        sim.field.foods.append(food)
        (ant,) = sim.ants
        assert ant.current == Cell(0, 0)

        outbound = [ant.current]
        while not ant.has_food:
            assert sim.step()
            outbound.append(ant.current)
            assert sim.step_count <= 8
        assert food.bites_remaining == 2
        # Reached within one cell of the food
        assert max(abs(ant.current.x - 4), abs(ant.current.y - 4)) <= 1

        inbound = [ant.current]
        while ant.has_food:
            assert sim.step()
            inbound.append(ant.current)
            assert len(inbound) <= 8
        assert inbound[-1] == Cell(0, 0)
        distances = [max(c.x, c.y) for c in inbound]
        assert distances == sorted(distances, reverse=True)
        assert food.bites_remaining == 2
