from __future__ import annotations

import numpy as np
import pytest

from gain_sweep.errors import NumericDomainError
from gain_sweep.models import DEFAULT_CONSTANTS, ModelConstants
from gain_sweep.physics import (
    diffraction_table,
    integrate_beam,
    integrate_saturation_grid,
    radial_shells,
)
from gain_sweep.physics.beam_integrator import input_intensity

FAST = ModelConstants(longitudinal_steps=401)


@pytest.mark.physics
def test_diffraction_table_is_antisymmetric_about_midpoint() -> None:
    table = diffraction_table()

    assert table.shape == (8001,)
    assert table[4000] == 0.0
    np.testing.assert_array_equal(table[:4000], -table[:4000:-1])
    z = 1.0 / 25.0
    z1 = DEFAULT_CONSTANTS.confocal_parameter
    assert table[4001] == pytest.approx(z * 2.0 * 0.04 / (z1 * z1 + z * z))
    assert not table.flags.writeable


@pytest.mark.physics
def test_radial_shells_cover_zero_to_half_centimetre() -> None:
    radii, radii_sq = radial_shells()

    assert radii[0] == 0.0
    assert radii[-1] <= 0.5
    assert radii.size in (250, 251)
    np.testing.assert_allclose(np.diff(radii), 0.002, rtol=1e-4)
    np.testing.assert_allclose(radii_sq, radii**2, rtol=1e-6)


@pytest.mark.physics
def test_integration_is_deterministic() -> None:
    first = integrate_beam(10, 2.5, 10_000)
    second = integrate_beam(10, 2.5, 10_000)

    assert first == second
    assert np.isfinite(first)


@pytest.mark.physics
def test_grid_form_matches_single_point_form_bit_for_bit() -> None:
    grid = FAST.saturation_grid
    batch = integrate_saturation_grid(20, 3.1, grid, constants=FAST)

    for saturation_intensity, value in zip(grid, batch.tolist(), strict=True):
        assert value == integrate_beam(20, 3.1, saturation_intensity, constants=FAST)


@pytest.mark.physics
@pytest.mark.parametrize("gain", [0.5, 2.5, 6.0])
def test_output_power_non_decreasing_with_saturation_intensity(gain: float) -> None:
    outputs = integrate_saturation_grid(
        50, gain, DEFAULT_CONSTANTS.saturation_grid, constants=DEFAULT_CONSTANTS
    )

    assert np.all(np.diff(outputs) >= 0.0)


@pytest.mark.physics
def test_more_gain_gives_more_output() -> None:
    low = integrate_beam(10, 1.0, 15_000, constants=FAST)
    high = integrate_beam(10, 4.0, 15_000, constants=FAST)

    assert high > low


@pytest.mark.physics
def test_negligible_gain_and_diffraction_conserve_power() -> None:
    constants = ModelConstants(beam_waist=1.0e3, longitudinal_steps=11)

    output = integrate_beam(40, 1.0e-9, 10_000, constants=constants)

    assert output == pytest.approx(40.0, rel=1e-2)


@pytest.mark.physics
@pytest.mark.parametrize("input_power", [0, -5])
def test_non_positive_input_power_raises(input_power: int) -> None:
    with pytest.raises(NumericDomainError):
        integrate_beam(input_power, 2.5, 10_000, constants=FAST)


@pytest.mark.physics
def test_zero_denominator_raises_numeric_domain_error() -> None:
    on_axis = input_intensity(10, FAST)

    with pytest.raises(NumericDomainError) as exc:
        integrate_beam(10, 2.5, -on_axis, constants=FAST)

    assert exc.value.input_power == 10
