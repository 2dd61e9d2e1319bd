"""Runners — the two execution modes of a simulation.

Both modes share ``Simulation.step`` and end every run, whether it ran
out of steps or was interrupted, by flushing a ``FieldSnapshot`` to the
output callback.

- ``SteppedRunner``: the host calls ``tick()`` once per frame.  A run
  handle marks whether a run is active; starting while one is active is
  rejected, and ``stop()`` interrupts between steps.
- ``run_batch``: steps back-to-back, polling a cancellation predicate
  after every step.  Used for scripted sweeps.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from landscaper.simulation.engine import FieldSnapshot, Simulation

if TYPE_CHECKING:
    from landscaper.simulation.config import SimulationConfig

log = logging.getLogger(__name__)

FlushCallback = Callable[[FieldSnapshot], None]
CancelPredicate = Callable[[], bool]


class RunInProgressError(RuntimeError):
    """Raised when a run is started while another one is active."""


@dataclass(frozen=True)
class RunHandle:
    """Token for an active stepped run.

    Attributes:
        run_id: Run number, counted per runner from 1.
        simulation: The run's simulation state.
    """

    run_id: int
    simulation: Simulation


@dataclass(frozen=True)
class RunResult:
    """Outcome of a finished run.

    Attributes:
        snapshot: The final flush.
        steps: Steps completed.
        cancelled: True if the run ended before its step budget.
    """

    snapshot: FieldSnapshot
    steps: int
    cancelled: bool


class SteppedRunner:
    """Host-driven runner: one step per ``tick()``.

    Attributes:
        config: Configuration used for every run started here.
        on_flush: Called with the final snapshot of each run.
        last_result: Result of the most recently finished run.
    """

    def __init__(
        self,
        config: SimulationConfig,
        on_flush: FlushCallback | None = None,
    ) -> None:
        self.config = config
        self.on_flush = on_flush
        self.last_result: RunResult | None = None
        self._handle: RunHandle | None = None
        self._run_ids = itertools.count(1)

    @property
    def handle(self) -> RunHandle | None:
        """The active run handle, or None when idle."""
        return self._handle

    @property
    def is_running(self) -> bool:
        """Return True while a run is active."""
        return self._handle is not None

    def start(self) -> RunHandle:
        """Start a fresh run.

        Returns:
            The new run handle.

        Raises:
            RunInProgressError: If a run is already active.
            ConfigError: If the configuration is invalid.
        """
        if self._handle is not None:
            log.warning("start rejected: run %d is active", self._handle.run_id)
            msg = f"run {self._handle.run_id} is still active"
            raise RunInProgressError(msg)

        self._handle = RunHandle(
            run_id=next(self._run_ids),
            simulation=Simulation.create(self.config),
        )
        log.info("run %d started", self._handle.run_id)
        return self._handle

    def tick(self) -> bool:
        """Advance the active run by one step.

        Returns:
            True if the run is still active afterwards.
        """
        if self._handle is None:
            return False
        if not self._handle.simulation.step():
            self._finish(cancelled=False)
            return False
        return True

    def stop(self) -> bool:
        """Interrupt the active run and flush its field.

        Returns:
            False if no run was active.
        """
        if self._handle is None:
            return False
        self._finish(cancelled=True)
        return True

    def _finish(self, *, cancelled: bool) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        self.last_result = _flush(
            handle.simulation,
            self.on_flush,
            cancelled=cancelled,
        )
        log.info(
            "run %d %s after %d steps",
            handle.run_id,
            "stopped" if cancelled else "ended",
            self.last_result.steps,
        )


def run_batch(
    config: SimulationConfig,
    *,
    should_cancel: CancelPredicate | None = None,
    on_flush: FlushCallback | None = None,
) -> RunResult:
    """Run a whole simulation without yielding to a host.

    Args:
        config: Run configuration; a fresh field and ants are built.
        should_cancel: Polled after every step, the last one included;
            returning True aborts the run (the final flush still
            happens).  The result counts as cancelled only if steps
            were left.
        on_flush: Called once with the final snapshot.

    Returns:
        The run result.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    simulation = Simulation.create(config)
    log.info("batch run started: %d steps", config.max_steps)

    cancelled = False
    more = True
    while more:
        more = simulation.step()
        if should_cancel is not None and should_cancel():
            # A request after the last step has nothing left to cancel
            cancelled = more
            if cancelled:
                log.info("batch run cancelled at step %d", simulation.step_count)
            break

    result = _flush(simulation, on_flush, cancelled=cancelled)
    log.info("batch run ended after %d steps", result.steps)
    return result


def _flush(
    simulation: Simulation,
    on_flush: FlushCallback | None,
    *,
    cancelled: bool,
) -> RunResult:
    snapshot = simulation.snapshot()
    if on_flush is not None:
        on_flush(snapshot)
    return RunResult(snapshot=snapshot, steps=snapshot.step, cancelled=cancelled)
