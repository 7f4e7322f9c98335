"""Team ownership from a CODEOWNERS ruleset.

Rule matching is delegated to the ``codeowners`` package, which applies
standard GitHub semantics: the last matching pattern wins.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from codeowners import CodeOwners

from covtel.core.errors import OwnershipError

log = structlog.get_logger(__name__)

UNOWNED = "UNOWNED"

# Where GitHub looks when CODEOWNERS is not at the repository root.
FALLBACK_LOCATIONS = (".github/CODEOWNERS", "docs/CODEOWNERS")


def empty_ruleset() -> CodeOwners:
    return CodeOwners("")


def load_ruleset(path: Path | str = "CODEOWNERS", *, base_dir: Path | None = None) -> CodeOwners:
    """Read a CODEOWNERS file once.

    Relative paths resolve against ``base_dir`` (default: working directory).
    When the file does not exist the GitHub fallback locations are tried.

    Raises:
        OwnershipError: No candidate exists, or the file cannot be read.
    """
    base_dir = base_dir or Path.cwd()
    primary = Path(path)
    if not primary.is_absolute():
        primary = base_dir / primary

    candidates = [primary, *(base_dir / loc for loc in FALLBACK_LOCATIONS)]
    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            text = candidate.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise OwnershipError.rules_unreadable(str(candidate), str(e)) from e
        log.debug("ownership.rules_loaded", path=str(candidate))
        return CodeOwners(text)

    raise OwnershipError.rules_not_found([str(c) for c in candidates])


def resolve_owner(path: str, ruleset: CodeOwners, owner_label_prefix: str) -> str:
    """Owning team for ``path``, or UNOWNED.

    Returns the first owner of the matching rule that carries the prefix,
    with the prefix removed.
    """
    if not path:
        return UNOWNED

    # CODEOWNERS patterns are relative to the repository root.
    owners = ruleset.of(path.lstrip("/"))
    for _kind, owner in owners:
        if owner.startswith(owner_label_prefix):
            return owner[len(owner_label_prefix) :]
    return UNOWNED


class OwnershipResolver:
    """Binds an immutable ruleset to a team prefix."""

    def __init__(self, ruleset: CodeOwners, owner_label_prefix: str = "") -> None:
        self._ruleset = ruleset
        self._prefix = owner_label_prefix

    @property
    def owner_label_prefix(self) -> str:
        return self._prefix

    @classmethod
    def from_file(
        cls,
        path: Path | str = "CODEOWNERS",
        owner_label_prefix: str = "",
        *,
        base_dir: Path | None = None,
    ) -> OwnershipResolver:
        return cls(load_ruleset(path, base_dir=base_dir), owner_label_prefix)

    def resolve(self, path: str) -> str:
        return resolve_owner(path, self._ruleset, self._prefix)
