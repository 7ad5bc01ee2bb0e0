from gain_sweep.physics.beam_integrator import (
    diffraction_table,
    integrate_beam,
    integrate_saturation_grid,
    radial_shells,
)

__all__ = [
    "diffraction_table",
    "integrate_beam",
    "integrate_saturation_grid",
    "radial_shells",
]
