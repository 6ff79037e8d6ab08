"""Command line interface for the opcic package."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import typer

from .driver import run_session
from .ic.config import ICConfig, load_config
from .ic.engine import ICEngine
from .ic.errors import ICError
from .ic.identity import SensorIdentity
from .reporting import export_report, register_table

app = typer.Typer(add_completion=False, context_settings={"help_option_names": ["-h", "--help"]}, help="Fantasy IC driver.")
regs_app = typer.Typer(help="Raw register access.")
calib_app = typer.Typer(help="Calibration utilities.")
app.add_typer(regs_app, name="regs")
app.add_typer(calib_app, name="calib")

@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to IC config JSON."),
    override: Optional[List[str]] = typer.Option(
        None,
        "--set",
        help="Override config keys, e.g. --set chance.power_up=0.9 --set driver.attempts=10",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the outcome generator."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (DEBUG, INFO, ...)."),
) -> None:
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level '{log_level}'", param_hint="--log-level")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    overrides = list(override or [])
    if seed is not None:
        overrides.append(f"seed={seed}")
    try:
        ctx.obj = load_config(config_path, overrides or None)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config/--set") from exc


def _config(ctx: typer.Context) -> ICConfig:
    return ctx.obj if isinstance(ctx.obj, ICConfig) else load_config()


def _engine(ctx: typer.Context) -> ICEngine:
    return ICEngine.from_config(_config(ctx))


def _parse_int(raw: str, hint: str) -> int:
    try:
        return int(raw, 0)
    except ValueError as exc:
        raise typer.BadParameter(f"'{raw}' is not an integer", param_hint=hint) from exc


def _parse_identity(raw: str) -> SensorIdentity:
    try:
        return SensorIdentity.parse(raw)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="SENSOR") from exc


def _parse_write(raw: str) -> Tuple[int, int]:
    if "=" not in raw:
        raise typer.BadParameter(f"Write '{raw}' must use ADDR=DATA syntax", param_hint="--write")
    addr, data = raw.split("=", 1)
    address = _parse_int(addr.strip(), "--write")
    value = _parse_int(data.strip(), "--write")
    if address < 0:
        raise typer.BadParameter(f"Write '{raw}' has a negative address", param_hint="--write")
    if not 0 <= value <= 0xFFFF:
        raise typer.BadParameter(f"Write '{raw}' data must fit in 16 bits", param_hint="--write")
    return address, value


def _fail(exc: Exception) -> None:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


@app.command()
def run(
    ctx: typer.Context,
    sensors: List[str] = typer.Argument(..., help="Sensors as kind:name, e.g. lidar:X radar:R1."),
    attempts: Optional[int] = typer.Option(None, "--attempts", "-n", help="Attempts per probabilistic step."),
    reads: Optional[int] = typer.Option(None, "--reads", help="Reads per enabled sensor."),
    write: Optional[List[str]] = typer.Option(None, "--write", help="Register write ADDR=DATA (repeatable)."),
    debug: bool = typer.Option(True, "--debug/--no-debug", help="Run the test mode/JTAG/scan sequence."),
    report_dir: Optional[Path] = typer.Option(None, "--report", help="Write CSV + markdown report here."),
) -> None:
    """Run the power-up/calibrate/read/power-down cycle for each sensor, then the debug sequence."""

    cfg = _config(ctx)
    identities = [_parse_identity(item) for item in sensors]
    writes = [_parse_write(item) for item in write or []]
    n_attempts = attempts if attempts is not None else cfg.driver.attempts
    n_reads = reads if reads is not None else cfg.driver.reads
    if n_attempts < 1:
        raise typer.BadParameter("--attempts must be at least 1", param_hint="--attempts")
    engine = ICEngine.from_config(cfg)
    try:
        report = run_session(engine, identities, attempts=n_attempts, reads=n_reads, writes=writes, debug=debug)
    except ICError as exc:
        _fail(exc)
        return

    for cycle in report.sensors:
        if cycle.completed:
            readings = ", ".join(f"{value:.4f}" for value in cycle.readings)
            typer.echo(f"{cycle.identity}: ok ({cycle.power_up.attempts} power-up attempt(s)) readings=[{readings}]")
        else:
            typer.echo(f"{cycle.identity}: power-up failed after {n_attempts} attempt(s)")
    if report.debug is not None:
        scan = report.debug.scan_test
        verdict = scan.status.value if scan is not None else "not run"
        typer.echo(f"scan test: {verdict} (final mode {report.debug.final_mode.value})")
    for item in report.registers:
        note = " (read-only, skipped)" if item.skipped else ""
        typer.echo(f"reg 0x{item.addr:X}: 0x{item.before:04X} -> 0x{item.after:04X}{note}")
    if report_dir is not None:
        export_report(report, engine, report_dir)
        typer.echo(f"Report written to {report_dir}")


@regs_app.command("read")
def regs_read(ctx: typer.Context, addr: str = typer.Argument(..., help="Register address, e.g. 0x3.")) -> None:
    engine = _engine(ctx)
    try:
        value = engine.registers.read_register(_parse_int(addr, "ADDR"))
    except ICError as exc:
        _fail(exc)
        return
    typer.echo(f"0x{value:04X} ({value})")


@regs_app.command("write")
def regs_write(
    ctx: typer.Context,
    addr: str = typer.Argument(..., help="Register address, e.g. 0x3."),
    data: str = typer.Argument(..., help="16-bit value to write."),
) -> None:
    engine = _engine(ctx)
    address = _parse_int(addr, "ADDR")
    payload = _parse_int(data, "DATA")
    try:
        engine.registers.write_register(address, payload)
        value = engine.registers.read_register(address)
    except ICError as exc:
        _fail(exc)
        return
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="DATA") from exc
    typer.echo(f"0x{value:04X} ({value})")


@regs_app.command("dump")
def regs_dump(ctx: typer.Context) -> None:
    engine = _engine(ctx)
    try:
        engine.power.require("regs dump")
        table = register_table(engine)
    except ICError as exc:
        _fail(exc)
        return
    typer.echo(table.to_string(index=False))


@calib_app.command("fetch")
def calib_fetch(ctx: typer.Context, sensor: str = typer.Argument(..., help="Sensor as kind:name.")) -> None:
    engine = _engine(ctx)
    identity = _parse_identity(sensor)
    keys, values = engine.calibrations.fetch_calibration(identity)
    typer.echo(",".join(keys))
    typer.echo(",".join(values))


def entrypoint() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    entrypoint()
