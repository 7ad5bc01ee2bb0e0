from gain_sweep.models.config import (
    DEFAULT_CONSTANTS,
    GRID_SIZE,
    ModelConstants,
    RunConfig,
)
from gain_sweep.models.state import (
    LaserConfig,
    ResultRow,
    ResultTable,
    RunSummary,
    UnitOutcome,
)

__all__ = [
    "DEFAULT_CONSTANTS",
    "GRID_SIZE",
    "LaserConfig",
    "ModelConstants",
    "ResultRow",
    "ResultTable",
    "RunConfig",
    "RunSummary",
    "UnitOutcome",
]
