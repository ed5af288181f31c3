"""CLI interface for Sitestage.

Command-line tool for serving a static site locally with case-exact URLs.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from sitestage.config import Config
from sitestage.errors import StartupError

logger = logging.getLogger(__name__)


@click.group()
def cli() -> None:
    """Sitestage - local development server for static sites."""


def _config_options(func):
    """Options shared by commands that load the site configuration."""
    options = [
        click.option(
            "--config",
            "-c",
            "config_path",
            type=click.Path(exists=True, path_type=Path, dir_okay=False),
            default=None,
            help="Path to configuration file (default: auto-discover sitestage.toml)",
        ),
        click.option(
            "--root",
            "-r",
            "root_dir",
            type=click.Path(path_type=Path, file_okay=False),
            default=None,
            help="Site root directory served as / (overrides config)",
        ),
        click.option(
            "--index",
            "index_document",
            default=None,
            help="Document served for URLs ending in / (overrides config)",
        ),
        click.option(
            "--verbose",
            "-v",
            is_flag=True,
            help="Enable verbose output (log every directory listing)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@cli.command()
@_config_options
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to on localhost (overrides config)",
)
def serve(
    config_path: Path | None,
    root_dir: Path | None,
    index_document: str | None,
    verbose: bool,
    port: int | None,
) -> None:
    """Start the development server."""
    from sitestage.server import run_server

    _configure_logging(verbose)
    config = _load_config(
        config_path,
        root_dir=root_dir,
        index_document=index_document,
        port=port,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Site root: {config.site.root_dir}")
    click.echo(f"Index document: {config.site.index_document}")

    try:
        run_server(config)
    except StartupError as e:
        _fail(str(e))


@cli.command()
@_config_options
def check(
    config_path: Path | None,
    root_dir: Path | None,
    index_document: str | None,
    verbose: bool,
) -> None:
    """Check that the site can be served, without starting the server."""
    from sitestage.context import load_site_context

    _configure_logging(verbose)
    config = _load_config(config_path, root_dir=root_dir, index_document=index_document)

    try:
        context = asyncio.run(load_site_context(config))
    except StartupError as e:
        _fail(str(e))

    click.echo(click.style("Site is ready to serve.", fg="green", bold=True))
    click.echo(f"Site root: {context.root}")
    click.echo(f"Stories: {', '.join(context.stories.names)}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(
    config_path: Path | None,
    *,
    root_dir: Path | None = None,
    index_document: str | None = None,
    port: int | None = None,
) -> Config:
    """Load configuration and apply CLI overrides, exiting on invalid input."""
    try:
        config = Config.load(config_path)
        return config.with_overrides(
            root_dir=root_dir,
            index_document=index_document,
            port=port,
        )
    except (FileNotFoundError, ValueError) as e:
        _fail(f"Invalid configuration: {e}")


def _fail(message: str) -> NoReturn:
    """Log a fatal startup problem and exit with status 1."""
    logger.error(message)
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
