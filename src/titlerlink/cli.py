"""Click CLI for titlerlink — offline diagnostics for keys, images and configuration."""

from __future__ import annotations

import asyncio
import base64
import logging
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from titlerlink.config.hierarchy import load_config_hierarchy

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _parse_options(pairs: tuple[str, ...]) -> dict[str, object]:
    """Parse name=value pairs in the order given. Values are read as YAML scalars."""
    options: dict[str, object] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"Expected name=value, got '{pair}'", param_hint="--option")
        options[name] = yaml.safe_load(raw) if raw else ""
    return options


@click.group()
@click.version_option(package_name="titlerlink")
def cli() -> None:
    """titlerlink — feedback cache and image tooling for the titler bridge."""


@cli.command()
@click.argument("logical_id")
@click.option(
    "-O", "--option", "options", multiple=True, help="Feedback option as name=value (repeatable)."
)
def key(logical_id: str, options: tuple[str, ...]) -> None:
    """Print the cache key for LOGICAL_ID and the given options."""
    from titlerlink.cache.keys import derive_key

    click.echo(derive_key(logical_id, _parse_options(options)))


@cli.command()
@click.argument("base", type=click.Path(exists=True, dir_okay=False))
@click.argument("overlay", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), required=True, help="PNG to write.")
@click.option("--size", type=int, default=None, help="Blank size used when a layer fails to decode.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def composite(base: str, overlay: str, output: str, size: int | None, verbose: int) -> None:
    """Composite OVERLAY over BASE and write the result as PNG."""
    _setup_logging(verbose)
    from titlerlink.images.compositor import composite as composite_images

    config = load_config_hierarchy(image_size=size)
    result = composite_images(
        Path(base).read_bytes(), Path(overlay).read_bytes(), size=config["image_size"]
    )
    Path(output).write_bytes(base64.b64decode(result))
    console.print(f"[green]Written to {output}[/green]")


@cli.command()
@click.argument("ref")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="PNG to write.")
@click.option("--size", type=int, default=None, help="Square size to fit the image to.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def image(ref: str, output: str | None, size: int | None, verbose: int) -> None:
    """Load REF (path, URL or base64) the way feedback images are loaded."""
    _setup_logging(verbose)
    from titlerlink.images.cache import ImageCache

    config = load_config_hierarchy(image_size=size)

    async def _run() -> str | None:
        images = ImageCache(
            size=config["image_size"],
            max_bytes=config["image_max_bytes"],
            fetch_timeout=config["image_fetch_timeout"],
        )
        try:
            return await images.get_image(ref)
        finally:
            await images.close()

    data = asyncio.run(_run())
    if data is None:
        error_console.print(f"[red]Error:[/red] cannot load image {ref}")
        sys.exit(1)

    if output:
        Path(output).write_bytes(base64.b64decode(data))
        console.print(f"[green]Written to {output}[/green]")
    else:
        click.echo(data)


@cli.command("config")
def show_config() -> None:
    """Show the resolved configuration."""
    from pydantic import ValidationError

    from titlerlink.config.schema import EngineConfig

    try:
        config = EngineConfig.load()
    except ValidationError as e:
        error_console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)

    table = Table(title="Resolved Configuration", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for name, value in config.model_dump().items():
        table.add_row(name, str(value))

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()
