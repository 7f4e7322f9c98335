"""Attribution models - labels and labeled coverage records."""

from __future__ import annotations

from dataclasses import dataclass

from covtel.coverage.models import CoverageDimension, CoverageMetric


@dataclass(frozen=True, slots=True)
class AttributionLabels:
    """Descriptive tags attached to every observation of one file."""

    coverage_path: str  # workspace-relative
    owner_team: str
    application_name: str | None

    def to_attributes(self) -> dict[str, str]:
        """OTel attributes. ``application_name`` is omitted when unknown."""
        attributes = {
            "coverage_path": self.coverage_path,
            "owner_team": self.owner_team,
        }
        if self.application_name is not None:
            attributes["application_name"] = self.application_name
        return attributes


@dataclass(frozen=True, slots=True)
class AttributedCoverage:
    """One dimension of one file, with its attribution labels."""

    dimension: CoverageDimension
    metric: CoverageMetric
    labels: AttributionLabels

    def attributes(self) -> dict[str, str]:
        return {**self.labels.to_attributes(), "coverage_type": self.dimension.value}
