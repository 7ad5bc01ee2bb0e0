from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from joblib import Parallel, delayed
from joblib.externals.loky.process_executor import TerminatedWorkerError

from gain_sweep.errors import GainSweepError, WorkerFailure
from gain_sweep.models import DEFAULT_CONSTANTS, LaserConfig, ModelConstants, RunSummary
from gain_sweep.models.state import UnitOutcome
from gain_sweep.reporting import write_report
from gain_sweep.sweep import CancelToken, sweep_laser
from gain_sweep.utils import maybe_emit_sweep_plot

logger = logging.getLogger(__name__)


def resolve_n_jobs(n_units: int, n_jobs: int | None = None) -> int:
    """Cap the worker count to the number of units and available cores."""
    available = n_jobs if n_jobs is not None else (os.cpu_count() or 1)
    return max(1, min(n_units, available))


def run_unit(
    laser: LaserConfig,
    input_powers: tuple[int, ...],
    *,
    output_dir: Path,
    constants: ModelConstants = DEFAULT_CONSTANTS,
    emit_plots: bool = False,
    cancel: CancelToken | None = None,
) -> UnitOutcome:
    """Sweep one laser and write its report; failures are returned, never raised."""
    started = datetime.now()
    try:
        table = sweep_laser(laser, input_powers, constants=constants, cancel=cancel)
        report_path = write_report(table, output_dir=output_dir, started=started)
        artifacts = maybe_emit_sweep_plot(table=table, out_dir=output_dir, emit=emit_plots)
    except GainSweepError as exc:
        failure = WorkerFailure.from_exception(laser.output_target, exc)
        logger.error(f"Laser {failure.describe()}")
        return UnitOutcome(output_target=laser.output_target, failure=failure)
    except Exception as exc:
        failure = WorkerFailure.from_exception(laser.output_target, exc)
        logger.exception(f"Unexpected failure for laser {laser.output_target}")
        return UnitOutcome(output_target=laser.output_target, failure=failure)
    return UnitOutcome(
        output_target=laser.output_target, report_path=str(report_path), artifacts=artifacts
    )


def dispatch(
    lasers: Sequence[LaserConfig],
    input_powers: Sequence[int],
    *,
    output_dir: Path = Path("."),
    constants: ModelConstants = DEFAULT_CONSTANTS,
    n_jobs: int | None = None,
    emit_plots: bool = False,
    cancel: CancelToken | None = None,
) -> RunSummary:
    """Run one unit per laser configuration and collect every outcome in input order.

    With more than one worker the units run in separate processes through joblib;
    ``cancel`` is only honoured when the units run in this process (``n_jobs=1``).
    """
    powers = tuple(input_powers)
    if not lasers:
        logger.warning("No laser configurations to run.")
        return RunSummary(outcomes=[])

    seen: set[str] = set()
    for laser in lasers:
        if laser.output_target in seen:
            raise ValueError(f"Several configurations write to report {laser.output_target!r}.")
        seen.add(laser.output_target)

    workers = resolve_n_jobs(len(lasers), n_jobs)
    logger.info(f"{len(lasers)} laser configurations requested, using {workers} workers.")

    if workers == 1:
        outcomes = [
            run_unit(
                laser,
                powers,
                output_dir=output_dir,
                constants=constants,
                emit_plots=emit_plots,
                cancel=cancel,
            )
            for laser in lasers
        ]
    else:
        outcomes = _run_parallel(
            lasers,
            powers,
            workers=workers,
            output_dir=output_dir,
            constants=constants,
            emit_plots=emit_plots,
        )

    summary = RunSummary(outcomes=list(outcomes))
    if summary.failures:
        logger.error(
            f"{len(summary.failures)} of {len(summary.outcomes)} laser configurations failed."
        )
    return summary


def _indexed_unit(
    index: int, laser: LaserConfig, input_powers: tuple[int, ...], **kwargs: Any
) -> tuple[int, UnitOutcome]:
    return index, run_unit(laser, input_powers, **kwargs)


def _run_parallel(
    lasers: Sequence[LaserConfig],
    powers: tuple[int, ...],
    *,
    workers: int,
    **unit_kwargs: Any,
) -> list[UnitOutcome]:
    """Collect outcomes as workers finish; units lost with a dead worker become failures."""
    finished: dict[int, UnitOutcome] = {}
    tasks = Parallel(n_jobs=workers, return_as="generator_unordered")(
        delayed(_indexed_unit)(index, laser, powers, **unit_kwargs)
        for index, laser in enumerate(lasers)
    )
    try:
        for index, outcome in tasks:
            finished[index] = outcome
    except TerminatedWorkerError as exc:
        logger.error(f"A worker process died, {len(lasers) - len(finished)} units lost: {exc}")
        for index, laser in enumerate(lasers):
            if index not in finished:
                finished[index] = UnitOutcome(
                    output_target=laser.output_target,
                    failure=WorkerFailure.from_exception(laser.output_target, exc),
                )
    return [finished[index] for index in range(len(lasers))]
