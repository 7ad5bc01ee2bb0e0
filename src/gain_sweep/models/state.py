from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gain_sweep.errors import WorkerFailure


class LaserConfig(BaseModel):
    """One amplifier configuration, one line of the laser configuration file."""

    model_config = ConfigDict(frozen=True)

    output_target: str = Field(min_length=1, description="Report file name.")
    small_signal_gain: float = Field(description="Unsaturated gain coefficient.")
    discharge_pressure: int = Field(ge=0, description="Main discharge pressure (kPa).")
    gas_mix_label: str = Field(description="CO2 supply label, reported verbatim.")

    @field_validator("small_signal_gain")
    @classmethod
    def _validate_gain(cls, value: float) -> float:
        if not math.isfinite(value) or value <= 0.0:
            raise ValueError("LaserConfig.small_signal_gain must be finite and > 0.")
        return value


@dataclass(frozen=True, slots=True)
class ResultRow:
    input_power: int
    saturation_intensity: int
    output_power: float

    @property
    def ln_ratio(self) -> float:
        return math.log(self.output_power / self.input_power)

    @property
    def power_gain(self) -> float:
        return self.output_power - self.input_power


@dataclass(frozen=True, slots=True)
class ResultTable:
    """Rows grouped by input power (input order), then saturation intensity ascending."""

    laser: LaserConfig
    rows: tuple[ResultRow, ...]

    def __iter__(self) -> Iterator[ResultRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def group(self, input_power: int) -> tuple[ResultRow, ...]:
        return tuple(row for row in self.rows if row.input_power == input_power)


class UnitOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    output_target: str
    report_path: str | None = None
    artifacts: dict[str, str] = Field(default_factory=dict)
    failure: WorkerFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class RunSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    schema_version: str = "gain_sweep.run_summary.v1"
    outcomes: list[UnitOutcome]
    elapsed_s: float | None = None

    @property
    def failures(self) -> list[WorkerFailure]:
        return [outcome.failure for outcome in self.outcomes if outcome.failure is not None]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def partial(self) -> bool:
        return bool(self.failures) and any(outcome.ok for outcome in self.outcomes)
