"""Entry point for ``python -m landscaper``.

Loads the default YAML config and either opens a Pygame window hosting
the stepped runner, or (``--headless``) runs a batch simulation that
Ctrl-C cancels cleanly.
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import signal

from landscaper.simulation.config import SimulationConfig
from landscaper.simulation.engine import FieldSnapshot
from landscaper.simulation.runner import SteppedRunner, run_batch

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

log = logging.getLogger("landscaper")


def _log_summary(snapshot: FieldSnapshot) -> None:
    """Log a short description of a flushed field."""
    log.info(
        "step %d: height [%.4f, %.4f] (min reached %.4f),"
        " pheromone max %.4f mean %.6f",
        snapshot.step,
        snapshot.height.min(),
        snapshot.height.max(),
        snapshot.min_height,
        snapshot.pheromone.max(),
        snapshot.pheromone.mean(),
    )


def _run_headless(config: SimulationConfig) -> None:
    """Run one batch simulation; SIGINT cancels after the current step."""
    interrupted = False

    def _on_sigint(signum: int, frame: object) -> None:
        nonlocal interrupted
        interrupted = True

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        run_batch(
            config,
            should_cancel=lambda: interrupted,
            on_flush=_log_summary,
        )
    finally:
        signal.signal(signal.SIGINT, previous)


def main() -> None:
    """Parse CLI args, build the config, run headless or launch the viewer."""
    parser = argparse.ArgumentParser(
        prog="landscaper",
        description="Landscaper - terrain sculpted by foraging ants",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the config's RNG seed",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=None,
        help="Override the config's step budget",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run a batch simulation without opening a window",
    )
    parser.add_argument(
        "--cell-size",
        type=int,
        default=4,
        help="Pixel size per grid cell (default: 4)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=60.0,
        help="Simulation steps per second (default: 60)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    if args.seed is not None:
        config = config.replace(seed=args.seed)
    if args.steps is not None:
        config = config.replace(max_steps=args.steps)
    config.validate()

    if args.headless:
        _run_headless(config)
        return

    from landscaper.ui.pygame_client import PygameRenderer

    runner = SteppedRunner(config, on_flush=_log_summary)
    renderer = PygameRenderer(
        runner=runner,
        cell_size=args.cell_size,
        steps_per_second=args.speed,
    )
    renderer.run(fps=args.fps)


if __name__ == "__main__":
    main()
