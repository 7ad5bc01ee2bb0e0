from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from gain_sweep.errors import FileIOError
from gain_sweep.models.state import ResultRow, ResultTable
from gain_sweep.physics.beam_integrator import single_precision

logger = logging.getLogger(__name__)

COLUMN_HEADER = "Pin\t\tPout\t\tSat. Int\tln(Pout/Pin)\tPout-Pin\n"
UNITS_HEADER = "(watts)\t\t(watts)\t\t(watts/cm2)\t\t\t(watts)\n"


def _timestamp(moment: datetime) -> str:
    return moment.strftime("%c")


def render_header(table: ResultTable, *, started: datetime) -> str:
    laser = table.laser
    return (
        f"Start date: {_timestamp(started)}\n\n"
        "Gaussian Beam\n\n"
        f"Pressure in Main Discharge = {laser.discharge_pressure}kPa\n"
        f"Small-signal Gain = {single_precision(laser.small_signal_gain):4.1f}\n"
        f"CO2 via {laser.gas_mix_label}\n\n"
        f"{COLUMN_HEADER}"
        f"{UNITS_HEADER}"
    )


def render_row(row: ResultRow) -> str:
    return (
        f"{row.input_power}\t\t{row.output_power:7.3f}\t\t{row.saturation_intensity}"
        f"\t\t{row.ln_ratio:5.3f}\t\t{row.power_gain:7.3f}\n"
    )


def render_footer(*, finished: datetime) -> str:
    return f"End date: {_timestamp(finished)}\n"


def render_report(table: ResultTable, *, started: datetime, finished: datetime) -> str:
    body = "".join(render_row(row) for row in table)
    return render_header(table, started=started) + body + render_footer(finished=finished)


def write_report(
    table: ResultTable,
    *,
    output_dir: Path,
    started: datetime,
    clock: Callable[[], datetime] = datetime.now,
) -> Path:
    """Write the report for ``table`` to ``output_dir / output_target`` and return its path."""
    path = Path(output_dir) / table.laser.output_target
    text = render_report(table, started=started, finished=clock())
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise FileIOError(f"Cannot write report {path}: {exc}", path=str(path)) from exc
    logger.info(f"Created {path}")
    return path
