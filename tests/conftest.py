"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import json
import logging
import os
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local covtel package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from tests.support import CapturingExporter  # noqa: E402


@pytest.fixture
def write_summary(tmp_path: Path) -> Callable[..., Path]:
    """Write a coverage-summary.json below tmp_path and return its path."""

    def _write(
        relative_dir: str,
        data: dict[str, Any] | str,
        filename: str = "coverage-summary.json",
    ) -> Path:
        target = tmp_path / relative_dir / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return target

    return _write


@pytest.fixture
def exporter() -> CapturingExporter:
    return CapturingExporter()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Remove covtel, Action input and GitHub Actions variables."""
    for key in list(os.environ):
        if key.startswith(("COVTEL__", "INPUT_")) or key == "GITHUB_ACTIONS":
            monkeypatch.delenv(key, raising=False)
    yield monkeypatch


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
