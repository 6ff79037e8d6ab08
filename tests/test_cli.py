from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from opcic.cli import app

runner = CliRunner()

CERTAIN = [
    "--set", "chance.power_up=1.0",
    "--set", "chance.test_mode=1.0",
    "--set", "chance.jtag=1.0",
    "--set", "chance.scan_test=1.0",
]


def test_run_reports_each_sensor(tmp_path: Path) -> None:
    out_dir = tmp_path / "out"
    result = runner.invoke(
        app,
        [*CERTAIN, "run", "lidar:X", "pressure:P1", "--write", "0x3=11111", "--report", str(out_dir)],
    )
    assert result.exit_code == 0, result.output
    assert "lidar:X: ok" in result.output
    assert "pressure:P1: ok" in result.output
    assert "scan test: success (final mode idle)" in result.output
    assert "reg 0x3: 0x0000 -> 0x2B67" in result.output
    assert (out_dir / "report.md").exists()


def test_run_reports_exhausted_power_up() -> None:
    result = runner.invoke(app, ["--set", "chance.power_up=0.0", "run", "radar:R", "--attempts", "3", "--no-debug"])
    assert result.exit_code == 0, result.output
    assert "radar:R: power-up failed after 3 attempt(s)" in result.output


def test_run_rejects_bad_sensor() -> None:
    result = runner.invoke(app, ["run", "sonar:1"])
    assert result.exit_code != 0


def test_run_rejects_out_of_range_write_before_any_cycle() -> None:
    for write in ("0x3=70000", "0x3=-1", "-1=5"):
        result = runner.invoke(app, [*CERTAIN, "run", "lidar:X", "--no-debug", "--write", write])
        assert result.exit_code == 2, result.output
        assert isinstance(result.exception, SystemExit)
        assert "lidar:X: ok" not in result.output


def test_non_mapping_config_section_is_usage_error() -> None:
    result = runner.invoke(app, ["--set", "chance=0.9", "calib", "fetch", "lidar:X"])
    assert result.exit_code == 2
    assert isinstance(result.exception, SystemExit)


def test_run_unpowered_system_fails() -> None:
    result = runner.invoke(app, ["--set", "system_powered=false", "run", "lidar:X"])
    assert result.exit_code == 1
    assert "not powered" in result.output


def test_regs_write_and_read() -> None:
    result = runner.invoke(app, ["regs", "write", "0x3", "11111"])
    assert result.exit_code == 0, result.output
    assert "0x2B67 (11111)" in result.output

    result = runner.invoke(app, ["regs", "read", "0x0"])
    assert result.exit_code == 0
    assert "0x1C37" in result.output


def test_regs_write_read_only_fails() -> None:
    result = runner.invoke(app, ["regs", "write", "0x0", "1"])
    assert result.exit_code == 1
    assert "read-only" in result.output


def test_regs_read_invalid_address() -> None:
    result = runner.invoke(app, ["regs", "read", "0x99"])
    assert result.exit_code == 1
    assert "Invalid register address" in result.output


def test_regs_dump_lists_registers() -> None:
    result = runner.invoke(app, ["regs", "dump"])
    assert result.exit_code == 0, result.output
    assert "SCRATCH" in result.output
    assert "CHIP_ID" in result.output


def test_calib_fetch_prints_keys_and_values() -> None:
    result = runner.invoke(app, ["--seed", "5", "calib", "fetch", "ultrasonic:U9"])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0] == "range,sensitivity"
    assert len(lines[1].split(",")) == 2
