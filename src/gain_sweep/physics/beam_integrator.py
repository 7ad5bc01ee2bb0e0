"""Single-pass Gaussian beam propagation through a saturable gain medium.

The beam is split into thin cylindrical shells of width ``DR``. Each shell's on-axis
intensity is propagated through ``INCR`` longitudinal steps with the recurrence

    I <- I * (1 + s * g_step / (s + I) - d_j)

where ``s`` is the saturation intensity, ``g_step`` the per-step small-signal gain and
``d_j`` the diffraction correction of step ``j``. Shell powers are summed in radial
order to give the output power.

The radial grid and the small-signal gain are carried at single precision so that the
number of shells and the gain coefficient match the legacy reports exactly.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from functools import lru_cache

import numpy as np

from gain_sweep.errors import NumericDomainError
from gain_sweep.models.config import DEFAULT_CONSTANTS, ModelConstants


@lru_cache(maxsize=8)
def diffraction_table(constants: ModelConstants = DEFAULT_CONSTANTS) -> np.ndarray:
    """Return the read-only per-step diffraction correction table."""
    n_steps = constants.longitudinal_steps
    z1 = constants.confocal_parameter
    z1_sq = z1 * z1
    z = (np.arange(n_steps, dtype=np.float64) - float(n_steps // 2)) / constants.table_unit
    table = z * 2.0 * constants.longitudinal_step / (z1_sq + z * z)
    table.setflags(write=False)
    return table


@lru_cache(maxsize=8)
def radial_shells(constants: ModelConstants = DEFAULT_CONSTANTS) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(r, r**2)`` for every shell, accumulated in float32 from zero.

    The loop bound is inclusive, so the last shell is whatever float32 accumulation
    of ``radial_step`` reaches while still ``<= radial_limit``.
    """
    step = np.float32(constants.radial_step)
    limit = np.float32(constants.radial_limit)
    radii: list[float] = []
    radii_sq: list[float] = []
    r = np.float32(0.0)
    while r <= limit:
        radii.append(float(r))
        radii_sq.append(float(np.float32(r * r)))
        r = np.float32(r + step)
    r_arr = np.asarray(radii, dtype=np.float64)
    r_sq_arr = np.asarray(radii_sq, dtype=np.float64)
    r_arr.setflags(write=False)
    r_sq_arr.setflags(write=False)
    return r_arr, r_sq_arr


def single_precision(value: float) -> float:
    """Round ``value`` to the nearest float32, as the legacy gain field stores it."""
    return float(np.float32(value))


def gain_per_step(gain: float, constants: ModelConstants = DEFAULT_CONSTANTS) -> float:
    return single_precision(gain) / constants.gain_normalisation * constants.longitudinal_step


def input_intensity(input_power: float, constants: ModelConstants = DEFAULT_CONSTANTS) -> float:
    """On-axis intensity of a Gaussian beam carrying ``input_power``."""
    return float(2 * input_power) / constants.area


def integrate_saturation_grid(
    input_power: float,
    gain: float,
    saturation_intensities: Sequence[float],
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> np.ndarray:
    """Integrate the output power for several saturation intensities at once.

    Each element of the result is identical to ``integrate_beam`` called with the
    matching saturation intensity.
    """
    if input_power <= 0:
        raise NumericDomainError(
            "input power must be > 0 before integration", input_power=input_power
        )

    table = diffraction_table(constants).tolist()
    radii, radii_sq = radial_shells(constants)
    rad_sq = constants.beam_radius * constants.beam_radius
    shell_factor = 2.0 * math.pi * constants.radial_step

    sat = np.asarray(saturation_intensities, dtype=np.float64).reshape(-1, 1)
    sat_term = sat * gain_per_step(gain, constants)
    seed = input_intensity(input_power, constants) * np.exp(-2.0 * radii_sq / rad_sq)

    intensity = np.broadcast_to(seed, (sat.shape[0], seed.size)).copy()
    factor = np.empty_like(intensity)
    try:
        with np.errstate(divide="raise", invalid="raise"):
            for correction in table:
                np.add(sat, intensity, out=factor)
                np.divide(sat_term, factor, out=factor)
                factor += 1.0
                factor -= correction
                intensity *= factor
    except FloatingPointError as exc:
        raise NumericDomainError(
            f"saturation plus intensity reached zero during integration ({exc})",
            input_power=input_power,
        ) from exc

    # np.add.accumulate sums strictly in radial order, unlike np.sum.
    contributions = intensity * shell_factor * radii
    return np.add.accumulate(contributions, axis=1)[:, -1]


def integrate_beam(
    input_power: float,
    gain: float,
    saturation_intensity: float,
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> float:
    """Return the output power (W) for one input power, gain and saturation intensity."""
    result = integrate_saturation_grid(input_power, gain, [saturation_intensity], constants)
    return float(result[0])
