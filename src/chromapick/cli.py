"""Command-line interface for Chromapick."""

import json
import logging
import sys
from pathlib import Path

import click
import numpy as np
import rich.traceback
from rich.console import Console
from rich.table import Table

from . import __version__
from .core.extractor import PaletteExtractor
from .exceptions import ChromapickError
from .utils.color import format_percentage
from .utils.config import ConfigManager
from .utils.logging import PaletteLogger, setup_logging

# Rich console setup
console = Console()
rich.traceback.install(console=console)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", "-q", is_flag=True, help="Suppress output")
@click.option(
    "--config", type=click.Path(exists=True), help="Path to configuration file"
)
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, config):
    """Chromapick: extract dominant and accent colors from images."""
    ctx.ensure_object(dict)

    log_level = logging.INFO
    if quiet:
        log_level = logging.ERROR
    elif verbose:
        log_level = logging.DEBUG
    setup_logging(level=log_level)

    try:
        ctx.obj["config_manager"] = ConfigManager.from_env(config)
    except ChromapickError as e:
        raise click.ClickException(str(e))

    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


def _render_table(entries) -> Table:
    table = Table(title="Palette")
    table.add_column("#", justify="right")
    table.add_column("Swatch")
    table.add_column("Hex")
    table.add_column("Share", justify="right")
    table.add_column("Text")

    for i, entry in enumerate(entries):
        table.add_row(
            str(i + 1),
            f"[{entry.text_color} on {entry.hex}]  Aa  [/]",
            entry.hex,
            format_percentage(entry.percentage),
            entry.text_color,
        )
    return table


@cli.command()
@click.argument("input_image", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--max-colors", "-n", type=int, help="Number of colors to extract (3-50)"
)
@click.option("--seed", type=int, help="Random seed for reproducible clustering")
@click.option("--json", "as_json", is_flag=True, help="Print the palette as JSON")
@click.option("--output", "-o", type=click.Path(), help="Write the palette JSON here")
@click.pass_context
def extract(ctx, input_image, max_colors, seed, as_json, output):
    """Extract the color palette of an image."""
    logger = logging.getLogger(__name__)

    try:
        config_manager = ctx.obj["config_manager"]
        if max_colors is not None:
            config_manager.set("palette.max_colors", max_colors)
        if seed is not None:
            config_manager.set("palette.seed", seed)

        config = config_manager.get_extraction_config()
        logger.info(f"Extracting {config.max_colors} colors from {input_image}")

        extractor = PaletteExtractor(config, rng=np.random.default_rng(config.seed))
        entries = extractor.extract_from_source(Path(input_image))
        PaletteLogger().log_palette(Path(input_image).name, entries)

        payload = [entry.to_dict() for entry in entries]

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w") as f:
                json.dump(payload, f, indent=2)

        if as_json:
            click.echo(json.dumps(payload, indent=2))
        elif not entries:
            click.echo("No palette: image has no opaque pixels.")
        elif not ctx.obj["quiet"]:
            console.print(_render_table(entries))

        if output and not as_json:
            click.echo(f"Palette saved to {output}")

    except Exception as e:
        logger.error(f"Error during palette extraction: {e}", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="chromapick.yaml",
    help="Output configuration file (.yaml, .yml or .json)",
)
def init_config(output):
    """Create a configuration file with the default settings."""
    logger = logging.getLogger(__name__)

    try:
        ConfigManager().save_config(output)
        click.echo(f"Configuration created at: {output}")
        logger.info(f"Initialized config file at {output}")

    except Exception as e:
        logger.error(f"Error initializing config: {e}", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
def version():
    """Display Chromapick version."""
    click.echo(f"Chromapick Version: {__version__}")


def main():
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
