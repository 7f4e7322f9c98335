"""GitHub Actions workflow commands.

When running inside a GitHub Actions job, failures are additionally
reported as a collapsible log group so they stand out in the job log.
See https://docs.github.com/actions/reference/workflow-commands-for-github-actions
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click


def is_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


@contextmanager
def log_group(title: str) -> Iterator[None]:
    """Wrap everything echoed inside the block in a ::group:: section."""
    click.echo(f"::group::{_escape_data(title)}")
    try:
        yield
    finally:
        click.echo("::endgroup::")


def report_failure(title: str, payload: dict[str, Any]) -> None:
    """Emit a grouped diagnostic with the JSON payload as its body."""
    with log_group(title):
        click.echo(json.dumps(payload, indent=2, default=str))
