"""covtel CLI - coverage ownership telemetry."""

import click

from covtel.cli.owners import owners_command
from covtel.cli.run import run_command
from covtel.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="covtel")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """covtel - push per-team test coverage to an OpenTelemetry collector."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(run_command, name="run")
cli.add_command(owners_command, name="owners")


if __name__ == "__main__":
    cli()
