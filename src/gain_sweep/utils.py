from __future__ import annotations

from importlib import import_module
from pathlib import Path
from typing import Any

from gain_sweep.models.state import ResultTable


def maybe_emit_sweep_plot(*, table: ResultTable, out_dir: Path, emit: bool) -> dict[str, str]:
    """Plot output power against saturation intensity, one curve per input power.

    Returns an empty mapping when plotting is disabled or matplotlib is not installed.
    """
    if not emit or not table.rows:
        return {}

    try:
        import_module("matplotlib").use("Agg")
        plt: Any = import_module("matplotlib.pyplot")
    except ModuleNotFoundError:
        return {}

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    name = table.laser.output_target
    plot_path = out_dir / f"{name}_pout_vs_sat.svg"

    fig, ax = plt.subplots(figsize=(8, 4.5))
    for input_power in dict.fromkeys(row.input_power for row in table):
        group = table.group(input_power)
        ax.plot(
            [row.saturation_intensity for row in group],
            [row.output_power for row in group],
            marker="o",
            label=f"Pin = {input_power} W",
        )
    ax.set_xlabel("Saturation intensity (W/cm^2)")
    ax.set_ylabel("Output power (W)")
    ax.set_title(
        f"{name}: gain {table.laser.small_signal_gain:.1f}, "
        f"{table.laser.discharge_pressure} kPa, {table.laser.gas_mix_label}"
    )
    ax.legend(fontsize="small")
    fig.tight_layout()
    fig.savefig(plot_path, format="svg")
    plt.close(fig)

    return {f"{name}.plot_pout_vs_sat": str(plot_path)}
