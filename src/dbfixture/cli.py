import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from .constants import DEFAULT_CONFIG_FILE
from .errors import FixtureError
from .services.command_runner import CommandRunner
from .services.config_loader import ConfigLoader
from .services.datasource import build_connection_url
from .services.docker_runtime import DockerRuntimeService

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _build_runtime(fixture_config) -> DockerRuntimeService:
    logger = logging.getLogger("dbfixture")
    runner = CommandRunner(logger=logger, default_timeout=fixture_config.command_timeout)
    return DockerRuntimeService(logger=logger, console=console, run_cmd=runner.run)


@click.group()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.pass_context
def main(ctx, config, verbose):
    """Manage the MySQL snapshot image used by integration tests."""
    logger = logging.getLogger("dbfixture")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    resolved_config = config
    if resolved_config is None:
        default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
        if os.path.exists(default_config_path):
            resolved_config = default_config_path

    try:
        ctx.obj = ConfigLoader().build_config(resolved_config)
    except FixtureError as exc:
        raise click.ClickException(str(exc)) from exc


@main.command()
@click.pass_obj
def status(fixture_config):
    """Show whether the snapshot image exists."""
    runtime = _build_runtime(fixture_config)
    try:
        docker_version = runtime.check_available()
        image_id = runtime.find_image(fixture_config.image_name)
    except FixtureError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(f"[dim]Docker server {docker_version}[/dim]")
    if image_id:
        console.print(f"[green]{fixture_config.image_name}[/green] {image_id}")
    else:
        console.print(f"[yellow]No snapshot image {fixture_config.image_name}.[/yellow]")


@main.command()
@click.pass_obj
def drop(fixture_config):
    """Remove the snapshot image so the next run rebuilds it."""
    runtime = _build_runtime(fixture_config)
    try:
        if not runtime.find_image(fixture_config.image_name):
            console.print(f"[yellow]No snapshot image {fixture_config.image_name}.[/yellow]")
            return
        runtime.remove_image(fixture_config.image_name)
    except FixtureError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Removed {fixture_config.image_name}.[/green]")


@main.command()
@click.option("--host", default="localhost", show_default=True, help="Database host")
@click.option("--port", type=int, default=3306, show_default=True, help="Mapped database port")
@click.pass_obj
def url(fixture_config, host, port):
    """Print the connection URL for a host and port."""
    click.echo(build_connection_url(fixture_config, host, port))


if __name__ == "__main__":
    main()
