"""Tests for landscaper.pheromones — diffusion and evaporation."""

import numpy as np
import pytest

from landscaper.pheromones.diffusion import (
    diffuse,
    evaporate,
    neighbour_sum,
    update_pheromones,
)
from landscaper.world.field import Field


class TestNeighbourSum:
    """Tests for the 8-neighbour sum."""

    def test_interior_and_corner(self) -> None:
        grid = np.ones((4, 4), dtype=np.float64)
        total = neighbour_sum(grid)
        assert total[1, 1] == 8.0
        assert total[0, 0] == 3.0
        assert total[0, 1] == 5.0

    def test_excludes_own_value(self) -> None:
        grid = np.zeros((3, 3), dtype=np.float64)
        grid[1, 1] = 5.0
        total = neighbour_sum(grid)
        assert total[1, 1] == 0.0
        assert total[0, 0] == 5.0


class TestEvaporation:
    """Tests for pheromone evaporation."""

    def test_evaporation_reduces_concentration(self) -> None:
        grid = np.ones((4, 4), dtype=np.float64)
        evaporate(grid, 0.1)
        assert np.allclose(grid, 0.9)

    def test_zero_evaporation(self) -> None:
        grid = np.ones((4, 4), dtype=np.float64)
        evaporate(grid, 0.0)
        assert np.allclose(grid, 1.0)


class TestDiffusion:
    """Tests for pheromone diffusion."""

    def test_total_concentration_conserved(self) -> None:
        """Without evaporation, an interior point source keeps its mass."""
        field = Field.flat(8, max_pheromone=10.0)
        field.pheromone[4, 4] = 10.0
        update_pheromones(field, evaporation_rate=0.0, diffusion_rate=0.2)
        assert field.pheromone.sum() == pytest.approx(10.0)

    def test_diffusion_spreads_to_all_eight(self) -> None:
        grid = np.zeros((5, 5), dtype=np.float64)
        grid[2, 2] = 8.0
        out = diffuse(grid, 0.5)
        assert out[2, 2] == pytest.approx(4.0)
        assert np.allclose(out[1:4, 1:4][np.arange(9).reshape(3, 3) != 4], 0.5)
        assert out[0, 0] == 0.0

    def test_diffuse_returns_new_buffer(self) -> None:
        grid = np.zeros((3, 3), dtype=np.float64)
        grid[1, 1] = 1.0
        out = diffuse(grid, 0.3)
        assert out is not grid
        assert grid[1, 1] == 1.0

    def test_reads_only_previous_values(self) -> None:
        """Every cell is computed from the pre-pass field."""
        field = Field.flat(3)
        field.pheromone[0, 0] = 0.8
        update_pheromones(field, evaporation_rate=0.0, diffusion_rate=1.0)
        # (1, 1) sees 0.8 / 8, and (2, 2) sees nothing at all
        assert field.pheromone[1, 1] == pytest.approx(0.1)
        assert field.pheromone[2, 2] == 0.0

    def test_combined_update_formula(self) -> None:
        field = Field.flat(5)
        field.pheromone[:, :] = 0.4
        field.pheromone[2, 2] = 0.8
        update_pheromones(field, evaporation_rate=0.1, diffusion_rate=0.5)
        expected = 0.9 * (0.8 + 0.5 * (0.4 - 0.8))
        assert field.pheromone[2, 2] == pytest.approx(expected)

    def test_stays_within_bounds(self) -> None:
        rng = np.random.default_rng(9)
        field = Field.flat(16, max_pheromone=1.0)
        field.pheromone[:, :] = rng.random((16, 16))
        for _ in range(25):
            update_pheromones(field, evaporation_rate=0.05, diffusion_rate=0.9)
            assert field.pheromone.min() >= 0.0
            assert field.pheromone.max() <= 1.0

    def test_bordered_frame_untouched(self) -> None:
        field = Field.flat(5, pheromone=0.5, bordered=True)
        update_pheromones(field, evaporation_rate=0.5, diffusion_rate=0.5)
        assert np.all(field.pheromone[0, :] == 0.5)
        assert np.all(field.pheromone[:, -1] == 0.5)
        assert field.pheromone[2, 2] == pytest.approx(0.25)
