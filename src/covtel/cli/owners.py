"""covtel owners command - show how paths are attributed."""

from __future__ import annotations

import click

from covtel.attribution.attributor import build_labels
from covtel.config.loader import load_config
from covtel.core.errors import ConfigError
from covtel.pipeline import build_resolver


@click.command()
@click.argument("paths", nargs=-1, required=True)
@click.option("--codeowners", "codeowners_path", help="CODEOWNERS file location.")
@click.option("--codeowners-team-prefix", help="Owner prefix that marks a team, e.g. @org/.")
@click.option("--runner-root", help="Path prefix stripped before matching.")
def owners_command(
    paths: tuple[str, ...],
    codeowners_path: str | None,
    codeowners_team_prefix: str | None,
    runner_root: str | None,
) -> None:
    """Print coverage path, owner team and application name for PATHS.

    Uses exactly the labels a `covtel run` would attach.
    """
    try:
        config = load_config(
            codeowners_path=codeowners_path,
            codeowners_team_prefix=codeowners_team_prefix,
            runner_root=runner_root,
        )
    except ConfigError as e:
        click.echo(str(e), err=True)
        raise SystemExit(1) from e

    resolver = build_resolver(config)
    for path in paths:
        labels = build_labels(path, config.runner_root, resolver)
        click.echo(f"{labels.coverage_path}\t{labels.owner_team}\t{labels.application_name or '-'}")
