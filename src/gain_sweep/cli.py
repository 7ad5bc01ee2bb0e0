from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Any

from gain_sweep.dispatch import dispatch
from gain_sweep.errors import ConfigParseError, FileIOError
from gain_sweep.loading import load_input_powers, load_laser_configs, load_run_config
from gain_sweep.models import RunConfig, RunSummary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNIT_FAILURE = 1
EXIT_FATAL = 2


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gain-sweep",
        description="Sweep Gaussian beam output power over saturation intensity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run every laser configuration")
    run_parser.add_argument("--config", type=Path, help="Optional YAML run config")
    run_parser.add_argument("--pins", type=Path, help="Input power list (default pin.dat)")
    run_parser.add_argument("--lasers", type=Path, help="Laser configurations (default laser.dat)")
    run_parser.add_argument("--out-dir", type=Path, help="Report directory (default .)")
    run_parser.add_argument("--jobs", type=int, help="Worker processes (default: CPU count)")
    run_parser.add_argument(
        "--plots",
        action="store_true",
        help="Write <target>_pout_vs_sat.svg per laser when matplotlib is installed.",
    )
    run_parser.add_argument(
        "--summary-json",
        action="store_true",
        help="Write run_summary.json with every unit outcome to the report directory.",
    )
    run_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )

    return parser.parse_args(argv)


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _build_run_config(args: argparse.Namespace) -> RunConfig:
    base = load_run_config(args.config) if args.config is not None else RunConfig()
    overrides: dict[str, Any] = {}
    if args.pins is not None:
        overrides["input_powers_path"] = args.pins
    if args.lasers is not None:
        overrides["lasers_path"] = args.lasers
    if args.out_dir is not None:
        overrides["output_dir"] = args.out_dir
    if args.jobs is not None:
        overrides["n_jobs"] = args.jobs
    if args.plots:
        overrides["emit_plots"] = True
    if args.summary_json:
        overrides["summary_json"] = True
    return RunConfig.model_validate({**base.model_dump(), **overrides})


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def execute(cfg: RunConfig) -> RunSummary:
    """Load both input files, run every laser and time the orchestration."""
    input_powers = load_input_powers(cfg.input_powers_path)
    lasers = load_laser_configs(cfg.lasers_path)

    start = time.perf_counter()
    summary = dispatch(
        lasers,
        input_powers,
        output_dir=cfg.output_dir,
        constants=cfg.constants,
        n_jobs=cfg.n_jobs,
        emit_plots=cfg.emit_plots,
    )
    elapsed = time.perf_counter() - start
    return summary.model_copy(update={"elapsed_s": elapsed})


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.command != "run":
        return EXIT_FATAL
    _configure_logging(args.log_level)

    try:
        cfg = _build_run_config(args)
        summary = execute(cfg)
    except (ConfigParseError, FileIOError, ValueError) as exc:
        logger.error(f"Run aborted: {exc}")
        return EXIT_FATAL

    print(f"The time was {summary.elapsed_s:.9f} seconds")

    if cfg.summary_json:
        cfg.output_dir.mkdir(parents=True, exist_ok=True)
        _write_json(cfg.output_dir / "run_summary.json", summary.model_dump(mode="json"))

    if summary.ok:
        return EXIT_OK

    status = "Partial success" if summary.partial else "All laser configurations failed"
    print(f"{status}: {len(summary.failures)} of {len(summary.outcomes)} failed")
    for failure in summary.failures:
        print(f"  {failure.describe()}")
    return EXIT_UNIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
