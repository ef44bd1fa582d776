"""
EC2 Driver Updater — CLI entrypoint.

Usage:
    driver-updater --help
    driver-updater check
    driver-updater install
    driver-updater config check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from driver_updater import __version__
from driver_updater.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="driver-updater")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to drivers.yml (default: auto-detect, else built-in table).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """EC2 Driver Updater — check and install AWS Windows driver updates."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    level = None
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    setup_logging(level=level)


# ── check / install ─────────────────────────────────────────────


def _echo_rows(rows: list) -> None:
    from driver_updater.core.engine.report import render_table

    click.echo("Checking installed driver versions.. Done.")
    for line in render_table(rows):
        click.echo(line)


def _echo_progress(driver_id: str, stage: str) -> None:
    labels = {
        "downloading": "Downloading",
        "extracting": "Extracting",
        "installing": "Installing",
    }
    if stage in labels:
        click.echo(f"   {labels[stage]} {driver_id}..")
    elif stage == "done":
        click.secho(f"   ✓ {driver_id} installed", fg="green")
    elif stage == "failed":
        click.secho(f"   ✗ {driver_id} failed", fg="red")


def _run(ctx: click.Context, install: bool, instance_type: str | None, as_json: bool) -> None:
    from driver_updater.core.use_cases.update import run_update

    quiet = ctx.obj.get("quiet", False)
    if not as_json and not quiet:
        click.echo("Checking AWS website for latest driver versions..")

    result = run_update(
        config_path=ctx.obj.get("config_path"),
        install=install,
        instance_type=instance_type,
        on_plan=None if as_json else _echo_rows,
        on_progress=None if as_json else _echo_progress,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error} Exiting.", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None

    click.echo()
    if report.halt_reason == "up-to-date":
        click.secho("AWS driver versions are up to date.", fg="green")
    elif report.halt_reason == "not-authorized":
        click.secho(
            "AWS driver updates are needed but install was not requested. "
            "Run 'driver-updater install' to apply them.",
            fg="yellow",
        )
    elif report.installed:
        click.secho(
            f"Installed: {', '.join(report.installed)}. "
            "Please reboot to complete driver installation.",
            fg="green",
            bold=True,
        )

    for warning in report.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow")

    if report.failures:
        click.echo()
        click.secho("Driver errors:", fg="red", bold=True)
        for failure in report.failures:
            click.echo(f"   • {failure.driver_id} ({failure.stage}): {failure.error}")

    sys.exit(result.exit_code)


@cli.command()
@click.option("--instance-type", default=None, help="Skip EC2 metadata lookup and use this instance type.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, instance_type: str | None, as_json: bool) -> None:
    """Compare installed driver versions with the latest published ones."""
    _run(ctx, install=False, instance_type=instance_type, as_json=as_json)


@cli.command()
@click.option("--instance-type", default=None, help="Skip EC2 metadata lookup and use this instance type.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, instance_type: str | None, as_json: bool) -> None:
    """Download and install every available driver update."""
    _run(ctx, install=True, instance_type=instance_type, as_json=as_json)


# ── drivers ─────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def drivers(ctx: click.Context, as_json: bool) -> None:
    """List configured drivers and where they apply."""
    from driver_updater.core.config.loader import ConfigError, load_config

    try:
        cfg = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([d.model_dump(mode="json") for d in cfg.drivers], indent=2))
        return

    click.echo()
    for spec in cfg.drivers:
        click.secho(f"   {spec.id}", fg="cyan", bold=True, nl=False)
        click.echo(f"  {spec.display_name}")
        click.echo(f"      download: {spec.download_url}")
        rule = spec.eligibility
        if rule is None:
            click.echo("      applies:  all instance types")
        else:
            label = "only on" if rule.policy == "allow" else "not on"
            listed = list(rule.prefixes) + list(rule.classes)
            click.echo(f"      applies:  {label} {', '.join(listed) or '(none)'}")
    click.echo()


# ── config ──────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Updater configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate drivers.yml configuration."""
    from driver_updater.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Drivers: {', '.join(d.id for d in result.config.drivers)}")
        click.echo(f"   Work dir: {result.config.settings.work_dir}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── doctor ──────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def doctor(ctx: click.Context, as_json: bool) -> None:
    """Show preflight results and adapter availability."""
    from driver_updater.core.config.loader import ConfigError, load_config
    from driver_updater.core.services.host import preflight_checks
    from driver_updater.core.use_cases.update import build_registry

    try:
        cfg = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    checks = preflight_checks(cfg.settings)
    adapters = build_registry(cfg.settings).adapter_status()
    blocking = [c for c in checks if c.required and not c.ok]

    if as_json:
        click.echo(json.dumps({
            "checks": [c.to_dict() for c in checks],
            "adapters": adapters,
            "ready": not blocking,
        }, indent=2))
        sys.exit(1 if blocking else 0)

    click.echo()
    for check_ in checks:
        if check_.ok:
            click.secho(f"   ✓ {check_.name}", fg="green", nl=False)
        elif check_.required:
            click.secho(f"   ✗ {check_.name}", fg="red", nl=False)
        else:
            click.secho(f"   ⊘ {check_.name}", fg="yellow", nl=False)
        click.echo(f"  {check_.message}")

    click.echo()
    for name, info in adapters.items():
        marker = "✓" if info["available"] else "✗"
        color = "green" if info["available"] else "yellow"
        click.secho(f"   {marker} adapter {name}", fg=color, nl=False)
        click.echo(f"  ({info['type']})")
    click.echo()

    if blocking:
        sys.exit(1)


if __name__ == "__main__":
    cli()
