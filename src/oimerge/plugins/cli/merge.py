"""
CLI command: merge

Merges OIFITS files, optionally filtered by a selector, into one OIFITS file.
"""

import logging

import click

from oimerge.io import read_oifits, write_oifits
from oimerge.model import OIFitsCollection
from oimerge.processing import (
    MergeConfig,
    MergeError,
    OIFitsMerger,
    Selector,
    find_oidata,
)

# Configure module-level logger
logger = logging.getLogger("oimerge.cli.merge")


@click.command("merge")
@click.argument("inputs", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o",
    "--output",
    required=True,
    type=click.Path(dir_okay=False),
    help="Merged OIFITS file to write",
)
@click.option(
    "--version",
    "std",
    type=click.Choice(["1", "2"]),
    default=None,
    help="OIFITS version of the output (default: highest input version)",
)
@click.option("--target", default=None, help="Keep only this target")
@click.option("--insname", default=None, help="Keep only this INSNAME")
@click.option(
    "--night", "nights", multiple=True, type=int, help="Keep only these night ids"
)
@click.option(
    "--selector",
    "selector_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file describing the selector",
)
@click.option("--dedup-corr", is_flag=True, help="Collapse identical OI_CORR tables")
@click.option("--overwrite", is_flag=True, help="Overwrite the output file")
@click.pass_context
def cli(ctx, inputs, output, std, target, insname, nights, selector_file, dedup_corr, overwrite):
    """
    Merge the OIFITS files INPUTS into OUTPUT.
    """
    if not inputs:
        click.echo("Error: at least one input file is required.")
        raise click.Abort()

    if selector_file:
        selector = Selector.from_yaml(selector_file)
    else:
        selector = Selector()
    overrides = {
        "target": target,
        "insname": insname,
        "night_ids": list(nights) or None,
    }
    selector = selector.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )

    settings = (ctx.obj or {}).get("settings")
    config = MergeConfig.from_settings(
        settings, std=std, dedup_correlation=dedup_corr or None
    )

    try:
        collection = OIFitsCollection(read_oifits(path) for path in inputs)
        result = OIFitsMerger(config).run(find_oidata(collection, selector))
        write_oifits(result.oifits, output, overwrite=overwrite)
    except (MergeError, OSError) as exc:
        logger.exception("Merge operation failed: %s", exc)
        click.echo(f"✗ Merge failed: {exc}")
        raise click.Abort()

    stats = result.statistics()
    click.echo(
        f"✓ Merged {stats['tables_out']} data tables "
        f"({stats['rows_out']}/{stats['rows_in']} rows) into {output}"
    )
    for warning in result.warnings:
        click.echo(f"  ! {warning}")
