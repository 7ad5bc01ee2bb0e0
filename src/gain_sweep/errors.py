from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GainSweepError(Exception):
    """Base class for all gain-sweep failures."""


class ConfigParseError(GainSweepError, ValueError):
    def __init__(self, message: str, *, line_number: int | None = None, line: str | None = None):
        if line_number is not None:
            message = f"laser config line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class FileIOError(GainSweepError, OSError):
    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class NumericDomainError(GainSweepError, ArithmeticError):
    """Raised when a value leaves the domain where the gain model is defined."""

    def __init__(self, message: str, *, input_power: float | None = None):
        if input_power is not None:
            message = f"{message} (input power {input_power})"
        super().__init__(message)
        self.input_power = input_power


class SweepCancelled(GainSweepError):
    pass


class WorkerFailure(BaseModel):
    """Outcome record for one laser configuration whose unit of work failed."""

    model_config = ConfigDict(frozen=True)

    output_target: str
    error_type: str
    message: str
    input_power: float | None = None

    @classmethod
    def from_exception(cls, output_target: str, exc: BaseException) -> WorkerFailure:
        return cls(
            output_target=output_target,
            error_type=type(exc).__name__,
            message=str(exc),
            input_power=getattr(exc, "input_power", None),
        )

    def describe(self) -> str:
        return f"{self.output_target}: {self.error_type}: {self.message}"
