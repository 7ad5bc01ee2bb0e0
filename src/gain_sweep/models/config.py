from __future__ import annotations

import math
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

GRID_SIZE = 16


def confocal_parameter_from_waist(waist: float, wavelength: float) -> float:
    """Return ``Z1 = pi * W**2 / lambda`` for a beam waist radius ``W``."""
    return math.pi * waist * waist / wavelength


def confocal_parameter_from_waist_squared(waist_squared: float, wavelength: float) -> float:
    """Return ``Z1 = pi * W2 / lambda`` for a pre-squared waist ``W2``."""
    return math.pi * waist_squared / wavelength


class ModelConstants(BaseModel):
    """Fixed physical and numerical constants of the single-pass gain model.

    Lengths are in cm, intensities in W/cm^2. Defaults reproduce the legacy
    CO2 amplifier reports.
    """

    model_config = ConfigDict(frozen=True)

    beam_radius: float = Field(default=0.18, description="1/e^2 beam radius RAD (cm).")
    beam_waist: float = Field(default=0.3, description="Gaussian beam waist W (cm).")
    wavelength: float = Field(default=0.0106, description="Wavelength LAMBDA (cm).")
    radial_step: float = Field(default=0.002, description="Radial shell width DR (cm).")
    radial_limit: float = Field(default=0.5, description="Outer integration radius (cm).")
    longitudinal_steps: int = Field(default=8001, description="Number of z steps INCR.")
    longitudinal_step: float = Field(default=0.04, description="Step length DZ (cm).")
    table_unit: float = Field(
        default=25.0,
        description="Divisor mapping a table index offset to a z offset in the diffraction table.",
    )
    gain_normalisation: float = Field(
        default=32000.0,
        description="Divisor turning the small-signal gain into a per-step coefficient.",
    )
    saturation_start: int = 10_000
    saturation_step: int = 1_000

    @field_validator(
        "beam_radius",
        "beam_waist",
        "wavelength",
        "radial_step",
        "radial_limit",
        "longitudinal_step",
        "table_unit",
        "gain_normalisation",
    )
    @classmethod
    def _validate_positive_finite(cls, value: float) -> float:
        if not math.isfinite(value) or value <= 0.0:
            raise ValueError("ModelConstants lengths and scales must be finite and > 0.")
        return value

    @field_validator("longitudinal_steps")
    @classmethod
    def _validate_steps(cls, value: int) -> int:
        if value < 1:
            raise ValueError("ModelConstants.longitudinal_steps must be >= 1.")
        return value

    @model_validator(mode="after")
    def _validate_grid(self) -> ModelConstants:
        if self.saturation_start <= 0 or self.saturation_step <= 0:
            raise ValueError("Saturation grid start and step must be > 0.")
        return self

    @property
    def area(self) -> float:
        return math.pi * (self.beam_radius * self.beam_radius)

    @property
    def confocal_parameter(self) -> float:
        return confocal_parameter_from_waist(self.beam_waist, self.wavelength)

    @property
    def saturation_grid(self) -> tuple[int, ...]:
        return tuple(self.saturation_start + i * self.saturation_step for i in range(GRID_SIZE))


DEFAULT_CONSTANTS = ModelConstants()


class RunConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_powers_path: Path = Path("pin.dat")
    lasers_path: Path = Path("laser.dat")
    output_dir: Path = Path(".")
    n_jobs: int | None = None
    emit_plots: bool = False
    summary_json: bool = False
    constants: ModelConstants = Field(default_factory=ModelConstants)

    @field_validator("n_jobs")
    @classmethod
    def _validate_n_jobs(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("RunConfig.n_jobs must be >= 1 when set.")
        return value
