"""Application name heuristic for monorepo paths."""

from __future__ import annotations

APPS_SEGMENT = "apps"


def path_segments(path: str) -> list[str]:
    """Non-empty ``/`` separated segments."""
    return [segment for segment in path.split("/") if segment]


def application_name(path: str) -> str | None:
    """First folder of the path, after dropping the first ``apps`` folder.

    ``apps/web/src/x.ts`` -> ``web``; ``lib/src/x.ts`` -> ``lib``.
    Only the ``apps/<name>`` monorepo layout is understood; other layouts
    get their top-level folder, which may not be an application at all.
    """
    if not path:
        return None
    segments = path_segments(path)
    if APPS_SEGMENT in segments:
        segments.remove(APPS_SEGMENT)
    return segments[0] if segments else None
