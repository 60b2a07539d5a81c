"""CLI entry point: licensesentinel.

Subcommands:
    licensesentinel status   # verify cached records, exit 1 on any warning
    licensesentinel cache    # (re)write cached records for all dependencies
    licensesentinel list     # print discovered dependencies
"""

from __future__ import annotations

import sys

import click

from licensesentinel.commands.base import SourceFailure
from licensesentinel.commands.cache import CacheCommand
from licensesentinel.commands.listing import ListCommand
from licensesentinel.commands.status import StatusCommand
from licensesentinel.core.config import DEFAULT_CONFIG_FILE, Config, load_config
from licensesentinel.core.logging import setup_logging
from licensesentinel.exceptions import ConfigError

_config_option = click.option(
    "-c",
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Path to the configuration file",
)


def _load(config_path: str) -> Config:
    try:
        return load_config(config_path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


def _print_failures(failures: list[SourceFailure]) -> None:
    for failure in failures:
        click.secho(
            f"Error: {failure.app}/{failure.source}: {failure.message}", fg="red", err=True
        )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """licensesentinel: license compliance checks for third-party dependencies."""
    setup_logging(verbose=verbose)


@main.command("status")
@_config_option
def status_cmd(config_path: str) -> None:
    """Check cached license records against current dependencies."""
    config = _load(config_path)
    report = StatusCommand(config).run()

    if report.results:
        click.secho("Warnings:", fg="yellow")
        for result in report.results:
            click.echo(f"\n{result.filename}:")
            for error in result.errors:
                click.secho(f"  - error: {error}", fg="red")
            for warning in result.warnings:
                click.secho(f"  - {warning}", fg="red")
        click.echo()

    _print_failures(report.failures)
    click.echo(
        f"{report.checked} dependencies checked, {len(report.results)} warnings found."
    )
    if not report.success:
        sys.exit(1)


@main.command("cache")
@_config_option
@click.option("--force", is_flag=True, help="Rewrite records even when up to date")
def cache_cmd(config_path: str, force: bool) -> None:
    """Write license records for all dependencies to the cache."""
    config = _load(config_path)
    report = CacheCommand(config, force=force).run()

    for filename, message in report.write_errors:
        click.secho(f"Error: could not write {filename}: {message}", fg="red", err=True)
    _print_failures(report.unresolved)
    _print_failures(report.failures)
    click.echo(f"{len(report.written)} records written, {len(report.skipped)} up to date.")
    if not report.success:
        sys.exit(1)


@main.command("list")
@_config_option
def list_cmd(config_path: str) -> None:
    """List the dependencies every enabled source reports."""
    config = _load(config_path)
    report = ListCommand(config).run()

    for entry in report.entries:
        dep = entry.dependency
        click.echo(f"{entry.app}\t{entry.source}\t{dep.name}\t{dep.version}")
    _print_failures(report.failures)
    if report.failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
