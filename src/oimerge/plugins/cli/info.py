"""
CLI command: info

Displays the version and table summary of OIFITS files.
"""

import logging
from importlib.metadata import PackageNotFoundError, version

import click

from oimerge.io import read_oifits
from oimerge.processing import OIFitsFormatError

# Configure module-level logger
logger = logging.getLogger("oimerge.cli.info")


@click.command("info")
@click.argument("paths", nargs=-1, type=click.Path(exists=True, dir_okay=False))
def cli(paths) -> None:
    """
    Show package version and the tables of each OIFITS file in PATHS.
    """
    try:
        pkg_version = version("oimerge")
    except PackageNotFoundError:
        pkg_version = "0.0.0-dev"
        logger.debug("Package 'oimerge' not installed; using placeholder version.")

    click.echo(f"oimerge version: {pkg_version}")

    for path in paths:
        try:
            oifits = read_oifits(path)
        except OIFitsFormatError as exc:
            click.echo(f"\n{path}: {exc}")
            continue

        click.echo(f"\n{path} (OIFITS {oifits.version.ordinal})")
        click.echo(oifits.summary().to_string(index=False))
        oi_target = oifits.oi_target
        if oi_target is not None:
            click.echo("\nTargets:")
            for target_id, target in zip(oi_target.target_ids, oi_target.targets):
                click.echo(f"  {int(target_id):>3}  {target.name}")
