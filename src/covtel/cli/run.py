"""covtel run command - record coverage summaries as metrics."""

from __future__ import annotations

from pathlib import Path

import click

from covtel.config.loader import load_config
from covtel.config.models import PipelineConfig
from covtel.core.errors import ConfigError
from covtel.core.logging import configure_logging
from covtel.pipeline import run_pipeline


def _configure_from(config: PipelineConfig, verbose: bool) -> None:
    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML file with settings (keys as in the Action inputs).",
)
@click.option("--coverage-folder", help="Root folder searched for coverage-summary.json files.")
@click.option("--service-name", help="OpenTelemetry service name.")
@click.option("--otel-collector-url", help="OTLP metrics endpoint.")
@click.option("--runner-root", help="Path prefix stripped from report file paths.")
@click.option("--codeowners-team-prefix", help="Owner prefix that marks a team, e.g. @org/.")
@click.option("--codeowners", "codeowners_path", help="CODEOWNERS file location.")
@click.option(
    "--protocol",
    "exporter_protocol",
    type=click.Choice(["http/protobuf", "grpc"]),
    help="OTLP transport.",
)
@click.option("--github-token", help="Accepted for Action compatibility; unused.")
@click.pass_context
def run_command(
    ctx: click.Context,
    config_path: Path | None,
    coverage_folder: str | None,
    service_name: str | None,
    otel_collector_url: str | None,
    runner_root: str | None,
    codeowners_team_prefix: str | None,
    codeowners_path: str | None,
    exporter_protocol: str | None,
    github_token: str | None,
) -> None:
    """Discover coverage summaries, attribute them and push the metrics.

    Options fall back to COVTEL__* environment variables, then to GitHub
    Action inputs (INPUT_*), then to the --config file.
    """
    try:
        config = load_config(
            config_path,
            require_endpoint=True,
            coverage_folder=coverage_folder,
            service_name=service_name,
            otel_collector_url=otel_collector_url,
            runner_root=runner_root,
            codeowners_team_prefix=codeowners_team_prefix,
            codeowners_path=codeowners_path,
            exporter_protocol=exporter_protocol,
            github_token=github_token,
        )
    except ConfigError as e:
        click.echo(str(e), err=True)
        raise SystemExit(1) from e

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    _configure_from(config, verbose)

    result = run_pipeline(config)
    click.echo(
        f"Recorded {result.observations} observations from {result.files} files "
        f"in {result.summaries} summaries."
    )
    if not result.ok:
        click.echo("Errors were logged; see the log output above.", err=True)
