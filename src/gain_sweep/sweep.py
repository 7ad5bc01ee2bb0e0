from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from gain_sweep.errors import NumericDomainError, SweepCancelled
from gain_sweep.models import DEFAULT_CONSTANTS, LaserConfig, ModelConstants
from gain_sweep.models.state import ResultRow, ResultTable
from gain_sweep.physics import integrate_saturation_grid

logger = logging.getLogger(__name__)


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def sweep_laser(
    laser: LaserConfig,
    input_powers: Sequence[int],
    *,
    constants: ModelConstants = DEFAULT_CONSTANTS,
    cancel: CancelToken | None = None,
) -> ResultTable:
    """Build the full result table for one laser against every input power.

    Rows are grouped by input power in caller order, each group holding one row per
    saturation intensity in ascending grid order.
    """
    grid = constants.saturation_grid

    rows: list[ResultRow] = []
    for input_power in input_powers:
        if cancel is not None and cancel.is_set():
            raise SweepCancelled(f"sweep for {laser.output_target} cancelled")
        if input_power <= 0:
            raise NumericDomainError(
                "input power must be > 0, ln(Pout/Pin) is undefined", input_power=input_power
            )

        outputs = integrate_saturation_grid(
            input_power, laser.small_signal_gain, grid, constants=constants
        )
        for saturation_intensity, output_power in zip(grid, outputs.tolist(), strict=True):
            rows.append(
                ResultRow(
                    input_power=input_power,
                    saturation_intensity=saturation_intensity,
                    output_power=output_power,
                )
            )
        logger.debug(f"{laser.output_target}: integrated input power {input_power} W")

    return ResultTable(laser=laser, rows=tuple(rows))
