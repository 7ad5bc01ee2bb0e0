from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

from gain_sweep.cli import EXIT_FATAL, EXIT_OK, EXIT_UNIT_FAILURE, main


def _write_inputs(directory: Path, *, pins: str, lasers: str) -> tuple[Path, Path]:
    pin_path = directory / "pin.dat"
    laser_path = directory / "laser.dat"
    pin_path.write_text(pins, encoding="utf-8")
    laser_path.write_text(lasers, encoding="utf-8")
    return pin_path, laser_path


def _fast_config(directory: Path) -> Path:
    path = directory / "run.yaml"
    path.write_text("constants:\n  longitudinal_steps: 201\n", encoding="utf-8")
    return path


def _argv(directory: Path, *extra: str) -> list[str]:
    pin_path, laser_path = directory / "pin.dat", directory / "laser.dat"
    return [
        "run",
        "--pins",
        str(pin_path),
        "--lasers",
        str(laser_path),
        "--out-dir",
        str(directory / "out"),
        "--jobs",
        "1",
        *extra,
    ]


@pytest.mark.integration
def test_cli_writes_report_for_documented_scenario(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_inputs(tmp_path, pins="10\n20\n", lasers="out1 2.5 15 MixA\n")

    assert main(_argv(tmp_path)) == EXIT_OK
    assert "The time was" in capsys.readouterr().out

    lines = (tmp_path / "out" / "out1").read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Start date: ")
    assert lines[-1].startswith("End date: ")
    assert "Pressure in Main Discharge = 15kPa" in lines
    assert "Small-signal Gain =  2.5" in lines
    assert "CO2 via MixA" in lines

    rows = [line.split("\t\t") for line in lines if line[:1].isdigit()]
    assert len(rows) == 32
    assert [int(row[0]) for row in rows] == [10] * 16 + [20] * 16
    assert [int(row[2]) for row in rows] == list(range(10_000, 25_001, 1_000)) * 2
    for row in rows:
        pin, pout, ln_ratio, diff = int(row[0]), float(row[1]), float(row[3]), float(row[4])
        assert ln_ratio == pytest.approx(math.log(pout / pin), abs=2e-3)
        assert diff == pytest.approx(pout - pin, abs=2e-3)


@pytest.mark.integration
def test_cli_summary_json_and_partial_failure_exit_code(tmp_path: Path) -> None:
    _write_inputs(tmp_path, pins="10\n", lasers="good 2.5 15 MixA\nblocker/bad 3.0 20 MixB\n")
    (tmp_path / "out").mkdir()
    (tmp_path / "out" / "blocker").write_text("file", encoding="utf-8")

    code = main(_argv(tmp_path, "--config", str(_fast_config(tmp_path)), "--summary-json"))

    assert code == EXIT_UNIT_FAILURE
    payload = json.loads((tmp_path / "out" / "run_summary.json").read_text(encoding="utf-8"))
    assert payload["schema_version"] == "gain_sweep.run_summary.v1"
    assert payload["elapsed_s"] >= 0.0
    by_target = {outcome["output_target"]: outcome for outcome in payload["outcomes"]}
    assert by_target["good"]["failure"] is None
    assert by_target["good"]["report_path"].endswith("good")
    assert by_target["blocker/bad"]["failure"]["error_type"] == "FileIOError"


@pytest.mark.integration
def test_cli_missing_input_file_is_fatal(tmp_path: Path) -> None:
    (tmp_path / "laser.dat").write_text("out1 2.5 15 MixA\n", encoding="utf-8")

    assert main(_argv(tmp_path)) == EXIT_FATAL
    assert not (tmp_path / "out" / "out1").exists()


@pytest.mark.integration
def test_cli_malformed_laser_line_is_fatal(tmp_path: Path) -> None:
    _write_inputs(tmp_path, pins="10\n", lasers="out1 2.5 15 MixA\nout2 abc 15 MixB\n")

    assert main(_argv(tmp_path)) == EXIT_FATAL
    assert not (tmp_path / "out" / "out1").exists()


@pytest.mark.integration
def test_cli_plots_flag_is_safe_without_failures(tmp_path: Path) -> None:
    _write_inputs(tmp_path, pins="10\n", lasers="out1 2.5 15 MixA\n")

    code = main(_argv(tmp_path, "--config", str(_fast_config(tmp_path)), "--plots"))

    assert code == EXIT_OK
    assert (tmp_path / "out" / "out1").exists()
    pytest.importorskip("matplotlib")
    assert (tmp_path / "out" / "out1_pout_vs_sat.svg").exists()


@pytest.mark.integration
def test_cli_broken_yaml_run_config_is_fatal(tmp_path: Path) -> None:
    _write_inputs(tmp_path, pins="10\n", lasers="out1 2.5 15 MixA\n")
    config = tmp_path / "run.yaml"
    config.write_text("constants: [unclosed\n", encoding="utf-8")

    assert main(_argv(tmp_path, "--config", str(config))) == EXIT_FATAL
    assert not (tmp_path / "out" / "out1").exists()


@pytest.mark.integration
def test_cli_reused_report_name_is_fatal(tmp_path: Path) -> None:
    _write_inputs(tmp_path, pins="10\n", lasers="out1 2.5 15 MixA\nout1 3.0 20 MixB\n")

    assert main(_argv(tmp_path)) == EXIT_FATAL
    assert not (tmp_path / "out" / "out1").exists()
