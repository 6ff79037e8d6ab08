"""Report writers for driver sessions."""
from __future__ import annotations

from pathlib import Path

import pandas as pd

from .driver import SessionReport
from .ic.engine import ICEngine


def sensor_table(report: SessionReport) -> pd.DataFrame:
    rows: list[dict[str, object]] = []
    for cycle in report.sensors:
        rows.append(
            {
                "kind": cycle.identity.kind.value,
                "name": cycle.identity.name,
                "calibration": cycle.calibration,
                "power_up_attempts": cycle.power_up.attempts if cycle.power_up else 0,
                "readings": len(cycle.readings),
                "mean_reading": float(pd.Series(cycle.readings, dtype=float).mean()) if cycle.readings else float("nan"),
                "completed": cycle.completed,
            }
        )
    columns = ["kind", "name", "calibration", "power_up_attempts", "readings", "mean_reading", "completed"]
    return pd.DataFrame(rows, columns=columns)


def register_table(engine: ICEngine) -> pd.DataFrame:
    rows = [
        {
            "addr": f"0x{reg.addr:X}",
            "name": reg.name,
            "value": reg.value,
            "value_hex": f"0x{reg.value:04X}",
            "writable_mask": f"0x{reg.writable_mask:04X}",
            "read_only": reg.read_only,
        }
        for reg in engine.registers.snapshot()
    ]
    return pd.DataFrame(rows, columns=["addr", "name", "value", "value_hex", "writable_mask", "read_only"])


def export_report(report: SessionReport, engine: ICEngine, output_dir: Path) -> None:
    """Persist sensor and register tables plus a markdown summary to *output_dir*."""

    output_dir.mkdir(parents=True, exist_ok=True)
    sensors = sensor_table(report)
    registers = register_table(engine)
    sensors.to_csv(output_dir / "sensors.csv", index=False)
    registers.to_csv(output_dir / "registers.csv", index=False)
    _write_report_md(report, sensors, registers, output_dir)


def _write_report_md(
    report: SessionReport,
    sensors: pd.DataFrame,
    registers: pd.DataFrame,
    output_dir: Path,
) -> None:
    lines: list[str] = []
    lines.append("# IC Session Report")
    lines.append(f"*Sensors:* {len(sensors)}  ")
    lines.append(f"*Completed cycles:* {int(sensors['completed'].sum()) if not sensors.empty else 0}  ")
    lines.append("")

    lines.append("## Sensors")
    lines.append("| Sensor | Power-up attempts | Readings | Mean reading | Completed |")
    lines.append("| --- | ---: | ---: | ---: | :---: |")
    for row in sensors.itertuples(index=False):
        lines.append(
            f"| {row.kind}:{row.name} | {row.power_up_attempts} | {row.readings} | "
            f"{row.mean_reading:.6g} | {'yes' if row.completed else 'no'} |"
        )
    lines.append("")

    if report.debug is not None:
        debug = report.debug
        lines.append("## Debug session")
        lines.append("| Step | Status | Attempts |")
        lines.append("| --- | --- | ---: |")
        for step in (debug.test_mode, debug.jtag, debug.scan_test):
            if step is None:
                continue
            lines.append(f"| {step.label} | {step.status.value} | {step.attempts} |")
        lines.append(f"*Final mode:* {debug.final_mode.value}  ")
        lines.append("")

    lines.append("## Registers")
    lines.append("| Address | Name | Value | Writable mask |")
    lines.append("| --- | --- | ---: | ---: |")
    for row in registers.itertuples(index=False):
        lines.append(f"| {row.addr} | {row.name} | {row.value_hex} | {row.writable_mask} |")
    lines.append("")

    if report.registers:
        lines.append("### Writes")
        for write in report.registers:
            suffix = " (skipped, read-only)" if write.skipped else ""
            lines.append(
                f"- 0x{write.addr:X}: requested 0x{write.requested:04X}, "
                f"0x{write.before:04X} -> 0x{write.after:04X}{suffix}"
            )

    (output_dir / "report.md").write_text("\n".join(lines), encoding="utf-8")
