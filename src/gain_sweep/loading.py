from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from gain_sweep.errors import ConfigParseError, FileIOError
from gain_sweep.models import LaserConfig, RunConfig

logger = logging.getLogger(__name__)

_UINT_PATTERN = re.compile(r"\+?[0-9]+")
_DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_UINT_MAX = 2**32 - 1


def read_text(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileIOError(f"Can't open file {path}: {exc}", path=str(path)) from exc


def parse_input_powers(data: str) -> tuple[int, ...]:
    """Return the non-negative integers in ``data``, one per line, skipping anything else."""
    powers: list[int] = []
    for raw in data.splitlines():
        token = raw.strip()
        if not _UINT_PATTERN.fullmatch(token):
            continue
        value = int(token)
        if value > _UINT_MAX:
            continue
        powers.append(value)
    return tuple(powers)


@dataclass(frozen=True, slots=True)
class ParsedLaserLine:
    line_number: int
    config: LaserConfig | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.config is not None

    def unwrap(self) -> LaserConfig:
        if self.config is None:
            raise ConfigParseError(self.error or "invalid line", line_number=self.line_number)
        return self.config


def parse_laser_line(line: str, *, line_number: int = 1) -> ParsedLaserLine:
    tokens = line.split()
    if len(tokens) < 4:
        return ParsedLaserLine(
            line_number=line_number,
            error=f"expected 4 tokens (target gain pressure gas-mix), got {len(tokens)}",
        )
    target, gain_token, pressure_token, gas_mix = tokens[:4]

    if not _DECIMAL_PATTERN.fullmatch(gain_token):
        return ParsedLaserLine(
            line_number=line_number, error=f"small-signal gain {gain_token!r} is not a number"
        )
    if not _UINT_PATTERN.fullmatch(pressure_token):
        return ParsedLaserLine(
            line_number=line_number,
            error=f"discharge pressure {pressure_token!r} is not a non-negative integer",
        )

    try:
        config = LaserConfig(
            output_target=target,
            small_signal_gain=float(gain_token),
            discharge_pressure=int(pressure_token),
            gas_mix_label=gas_mix,
        )
    except ValidationError as exc:
        messages = "; ".join(str(err["msg"]) for err in exc.errors())
        return ParsedLaserLine(line_number=line_number, error=messages)
    return ParsedLaserLine(line_number=line_number, config=config)


def parse_laser_configs(data: str) -> list[LaserConfig]:
    """Parse every non-blank line.

    The first malformed line, or a line reusing an earlier report name, raises ConfigParseError.
    """
    configs: list[LaserConfig] = []
    seen: dict[str, int] = {}
    for index, raw in enumerate(data.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        laser = parse_laser_line(line, line_number=index).unwrap()
        first = seen.get(laser.output_target)
        if first is not None:
            raise ConfigParseError(
                f"report {laser.output_target!r} is already written by line {first}",
                line_number=index,
                line=line,
            )
        seen[laser.output_target] = index
        configs.append(laser)
    return configs


def load_input_powers(path: Path) -> tuple[int, ...]:
    powers = parse_input_powers(read_text(path))
    logger.info(f"Loaded {len(powers)} input powers from {path}")
    return powers


def load_laser_configs(path: Path) -> list[LaserConfig]:
    configs = parse_laser_configs(read_text(path))
    logger.info(f"Loaded {len(configs)} laser configurations from {path}")
    return configs


def load_run_config(path: Path) -> RunConfig:
    try:
        payload = yaml.safe_load(read_text(path)) or {}
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"Run config {path} is not valid YAML: {exc}") from exc
    if not isinstance(payload, dict):
        msg = "Run config file root must be a mapping/object."
        raise ValueError(msg)
    return RunConfig.model_validate(payload)
