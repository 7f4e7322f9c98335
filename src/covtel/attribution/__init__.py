"""Ownership and application attribution of coverage entries."""

from covtel.attribution.attributor import (
    AttributionResult,
    attribute,
    build_labels,
    strip_workspace_prefix,
)
from covtel.attribution.models import AttributedCoverage, AttributionLabels
from covtel.attribution.naming import application_name
from covtel.attribution.ownership import (
    UNOWNED,
    OwnershipResolver,
    empty_ruleset,
    load_ruleset,
    resolve_owner,
)

__all__ = [
    "UNOWNED",
    "AttributedCoverage",
    "AttributionLabels",
    "AttributionResult",
    "OwnershipResolver",
    "application_name",
    "attribute",
    "build_labels",
    "empty_ruleset",
    "load_ruleset",
    "resolve_owner",
    "strip_workspace_prefix",
]
