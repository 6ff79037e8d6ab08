from __future__ import annotations

from pathlib import Path

import pandas as pd

from opcic.driver import run_session
from opcic.ic.chance import ScriptedChance
from opcic.ic.engine import ICEngine
from opcic.ic.identity import SensorIdentity, SensorKind
from opcic.reporting import export_report, register_table, sensor_table


def _session():
    chance = ScriptedChance(fallback=True).queue("power_up", True, False, False)
    engine = ICEngine(chance=chance)
    identities = [SensorIdentity(SensorKind.LIDAR, "X"), SensorIdentity(SensorKind.RADAR, "R")]
    report = run_session(engine, identities, attempts=2, reads=2, writes=[(0x3, 0x1234), (0x0, 1)])
    return engine, report


def test_sensor_table_columns() -> None:
    _, report = _session()
    table = sensor_table(report)
    assert list(table["name"]) == ["X", "R"]
    assert list(table["completed"]) == [True, False]
    assert list(table["power_up_attempts"]) == [1, 2]
    assert pd.isna(table.loc[1, "mean_reading"])


def test_register_table_reflects_writes() -> None:
    engine, _ = _session()
    table = register_table(engine)
    row = table[table["addr"] == "0x3"].iloc[0]
    assert row["value"] == 0x1234
    assert row["value_hex"] == "0x1234"
    assert bool(table[table["addr"] == "0x0"].iloc[0]["read_only"])


def test_export_report_writes_files(tmp_path: Path) -> None:
    engine, report = _session()
    out_dir = tmp_path / "report"
    export_report(report, engine, out_dir)
    assert (out_dir / "sensors.csv").exists()
    assert (out_dir / "registers.csv").exists()
    text = (out_dir / "report.md").read_text(encoding="utf-8")
    assert "# IC Session Report" in text
    assert "| lidar:X |" in text
    assert "skipped, read-only" in text
    registers = pd.read_csv(out_dir / "registers.csv")
    assert len(registers) == 6
