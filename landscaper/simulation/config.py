"""Config — load simulation parameters from YAML files.

All tunable constants (grid size, selection weights, dig amounts,
pheromone rates) live in YAML and are parsed into frozen dataclasses
here.  A config is passed explicitly to ``Field.generate`` and the
simulation; nothing is read from module-level state.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from landscaper.world.cell import Cell


class ConfigError(ValueError):
    """Raised when a configuration cannot drive a meaningful run."""


class SlopeMode(Enum):
    """How height differences feed the slope portion of cell selection."""

    DOWNHILL = "downhill"
    """Lower neighbours are preferred (min/max normalisation)."""

    LEVEL = "level"
    """Neighbours closest in height to the current cell are preferred."""


@dataclass(frozen=True)
class SelectionWeights:
    """Weights applied to each portion of the next-cell probability.

    Attributes:
        pheromone: Weight of the pheromone portion (exploring only).
        slope: Weight of the slope portion (always).
        direction: Weight of the direction portion (returning only).
        random: Weight of the random portion (exploring only).
    """

    pheromone: float = 1.0
    slope: float = 1.0
    direction: float = 1.0
    random: float = 1.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SelectionWeights:
        """Build weights from a mapping, falling back to defaults."""
        return cls(
            pheromone=float(data.get("pheromone", cls.pheromone)),
            slope=float(data.get("slope", cls.slope)),
            direction=float(data.get("direction", cls.direction)),
            random=float(data.get("random", cls.random)),
        )


@dataclass(frozen=True)
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay (None = OS entropy).
        size: Grid dimension ``N`` of the square field.
        bordered: Reserve a one-cell inactive border; agents and
            diffusion are restricted to ``[1, N-2]``.
        flat_terrain: Fill heights with ``flat_height`` instead of noise.
        flat_height: Constant height of flat terrain, and the base level
            of noise terrain.
        noise_amplitude: Height range of noise terrain.
        noise_scale: Lattice points per side of the first noise octave.
        noise_octaves: Number of noise octaves.
        initial_pheromone: Starting pheromone value of every cell.
        food_count: Number of food sources scattered at generation.
        max_bites: Bites each food source starts with.
        ant_count: Number of agents per run.
        max_steps: Step budget of a run.
        ants_in_place: Agents may select their own cell as the next cell.
        shuffle_ants: Shuffle agent processing order every step.
        individual_start: Agents start on random cells instead of home.
        colony: Fixed home cell; a random cell is drawn when None.
        neighbour_radius: Chebyshev radius of the candidate neighbourhood.
        slope_mode: How slope portions are computed.
        weights: Selection-policy weights.
        food_dig_amount: Height removed per move by returning agents.
        no_food_dig_amount: Height removed per move by exploring agents.
        pheromone_deposit: Base pheromone deposited per returning step.
        min_deposit_fraction: Lower bound of a deposit, as a fraction of
            ``pheromone_deposit``.
        max_pheromone: Upper clamp of the pheromone field.
        evaporation_rate: Fraction of pheromone lost per step.
        diffusion_rate: Blend factor toward the neighbour average.
        log_every: Emit a progress log line every this many steps.
    """

    seed: int | None = None
    size: int = 129
    bordered: bool = False

    # Terrain
    flat_terrain: bool = True
    flat_height: float = 1.0
    noise_amplitude: float = 1.0
    noise_scale: float = 10.0
    noise_octaves: int = 3
    initial_pheromone: float = 0.0

    # Food
    food_count: int = 4
    max_bites: int = 20

    # Agents
    ant_count: int = 20
    max_steps: int = 1000
    ants_in_place: bool = False
    shuffle_ants: bool = False
    individual_start: bool = False
    colony: Cell | None = None
    neighbour_radius: int = 1

    # Selection
    slope_mode: SlopeMode = SlopeMode.DOWNHILL
    weights: SelectionWeights = field(default_factory=SelectionWeights)

    # Digging and pheromones
    food_dig_amount: float = 0.02
    no_food_dig_amount: float = 0.01
    pheromone_deposit: float = 0.1
    min_deposit_fraction: float = 0.0
    max_pheromone: float = 1.0
    evaporation_rate: float = 0.05
    diffusion_rate: float = 0.05

    log_every: int = 100

    @property
    def active_range(self) -> tuple[int, int]:
        """Inclusive ``(lo, hi)`` coordinate range agents may occupy."""
        if self.bordered:
            return 1, self.size - 2
        return 0, self.size - 1

    @property
    def seed_value(self) -> int | None:
        """Seed for ``numpy.random.default_rng``.

        Negative seeds wrap into the unsigned 64-bit range numpy accepts,
        so every integer seed names one reproducible stream.
        """
        if self.seed is None:
            return None
        return self.seed % 2**64

    def replace(self, **changes: Any) -> SimulationConfig:
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def validate(self) -> None:
        """Check that the configuration describes a runnable simulation.

        Raises:
            ConfigError: On the first invalid value found.
        """
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, int)
        ):
            msg = f"seed must be an integer or None, got {self.seed!r}"
            raise ConfigError(msg)
        min_size = 3 if self.bordered else 1
        if self.size < min_size:
            msg = f"size must be >= {min_size}, got {self.size}"
            raise ConfigError(msg)
        if self.ant_count < 1:
            msg = f"ant_count must be >= 1, got {self.ant_count}"
            raise ConfigError(msg)
        if self.max_steps < 1:
            msg = f"max_steps must be >= 1, got {self.max_steps}"
            raise ConfigError(msg)
        if self.food_count < 0 or self.max_bites < 0:
            msg = "food_count and max_bites must be non-negative"
            raise ConfigError(msg)
        if self.neighbour_radius < 1:
            msg = f"neighbour_radius must be >= 1, got {self.neighbour_radius}"
            raise ConfigError(msg)
        if self.max_pheromone <= 0:
            msg = f"max_pheromone must be > 0, got {self.max_pheromone}"
            raise ConfigError(msg)
        if not 0.0 <= self.initial_pheromone <= self.max_pheromone:
            msg = "initial_pheromone must lie in [0, max_pheromone]"
            raise ConfigError(msg)
        for name in ("evaporation_rate", "diffusion_rate", "min_deposit_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must lie in [0, 1], got {value}"
                raise ConfigError(msg)
        for name, value in dataclasses.asdict(self.weights).items():
            if value < 0:
                msg = f"weights.{name} must be >= 0, got {value}"
                raise ConfigError(msg)
        if self.food_dig_amount < 0 or self.no_food_dig_amount < 0:
            msg = "dig amounts must be non-negative"
            raise ConfigError(msg)
        if self.pheromone_deposit < 0:
            msg = f"pheromone_deposit must be >= 0, got {self.pheromone_deposit}"
            raise ConfigError(msg)
        if self.colony is not None:
            lo, hi = self.active_range
            if not (lo <= self.colony.x <= hi and lo <= self.colony.y <= hi):
                msg = f"colony {tuple(self.colony)} lies outside [{lo}, {hi}]"
                raise ConfigError(msg)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigError: If a value has the wrong shape (e.g. ``colony``).
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulationConfig:
        """Build a config from a plain mapping (e.g. parsed YAML)."""
        defaults = cls()

        colony = data.get("colony")
        if colony is not None:
            if len(colony) != 2:
                msg = f"colony must be [x, y], got {colony!r}"
                raise ConfigError(msg)
            colony = Cell(int(colony[0]), int(colony[1]))

        try:
            slope_mode = SlopeMode(data.get("slope_mode", defaults.slope_mode.value))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        return cls(
            seed=data.get("seed", defaults.seed),
            size=data.get("size", defaults.size),
            bordered=data.get("bordered", defaults.bordered),
            flat_terrain=data.get("flat_terrain", defaults.flat_terrain),
            flat_height=data.get("flat_height", defaults.flat_height),
            noise_amplitude=data.get("noise_amplitude", defaults.noise_amplitude),
            noise_scale=data.get("noise_scale", defaults.noise_scale),
            noise_octaves=data.get("noise_octaves", defaults.noise_octaves),
            initial_pheromone=data.get(
                "initial_pheromone",
                defaults.initial_pheromone,
            ),
            food_count=data.get("food_count", defaults.food_count),
            max_bites=data.get("max_bites", defaults.max_bites),
            ant_count=data.get("ant_count", defaults.ant_count),
            max_steps=data.get("max_steps", defaults.max_steps),
            ants_in_place=data.get("ants_in_place", defaults.ants_in_place),
            shuffle_ants=data.get("shuffle_ants", defaults.shuffle_ants),
            individual_start=data.get(
                "individual_start",
                defaults.individual_start,
            ),
            colony=colony,
            neighbour_radius=data.get(
                "neighbour_radius",
                defaults.neighbour_radius,
            ),
            slope_mode=slope_mode,
            weights=SelectionWeights.from_dict(data.get("weights") or {}),
            food_dig_amount=data.get("food_dig_amount", defaults.food_dig_amount),
            no_food_dig_amount=data.get(
                "no_food_dig_amount",
                defaults.no_food_dig_amount,
            ),
            pheromone_deposit=data.get(
                "pheromone_deposit",
                defaults.pheromone_deposit,
            ),
            min_deposit_fraction=data.get(
                "min_deposit_fraction",
                defaults.min_deposit_fraction,
            ),
            max_pheromone=data.get("max_pheromone", defaults.max_pheromone),
            evaporation_rate=data.get("evaporation_rate", defaults.evaporation_rate),
            diffusion_rate=data.get("diffusion_rate", defaults.diffusion_rate),
            log_every=data.get("log_every", defaults.log_every),
        )
