"""Tests for config/models.py."""

import pytest
from pydantic import ValidationError

from covtel.config.models import (
    DEFAULT_RUNNER_ROOT,
    LoggingConfig,
    LogOutputConfig,
    PipelineConfig,
)


class TestPipelineConfig:
    def test_defaults(self) -> None:
        config = PipelineConfig()

        assert config.coverage_folder == "."
        assert config.runner_root == DEFAULT_RUNNER_ROOT
        assert config.codeowners_team_prefix == ""
        assert config.codeowners_path == "CODEOWNERS"
        assert config.summary_file_name == "coverage-summary.json"
        assert config.export_interval_millis == 1000
        assert config.exporter_protocol == "http/protobuf"
        assert config.otel_collector_url is None
        assert config.github_token is None

    def test_is_immutable(self) -> None:
        config = PipelineConfig()
        with pytest.raises(ValidationError):
            config.service_name = "other"  # type: ignore[misc]

    @pytest.mark.parametrize("field", ["export_interval_millis", "flush_timeout_millis"])
    @pytest.mark.parametrize("value", [0, -5])
    def test_intervals_must_be_positive(self, field: str, value: int) -> None:
        with pytest.raises(ValidationError):
            PipelineConfig(**{field: value})

    @pytest.mark.parametrize("name", ["", "nested/coverage-summary.json"])
    def test_summary_file_name_must_be_bare(self, name: str) -> None:
        with pytest.raises(ValidationError):
            PipelineConfig(summary_file_name=name)

    def test_github_token_is_secret(self) -> None:
        config = PipelineConfig(github_token="ghs_secret")
        assert config.github_token is not None
        assert "ghs_secret" not in repr(config)
        assert config.github_token.get_secret_value() == "ghs_secret"

    def test_rejects_unknown_protocol(self) -> None:
        with pytest.raises(ValidationError):
            PipelineConfig(exporter_protocol="udp")  # type: ignore[arg-type]


class TestLogOutputConfig:
    def test_console_destinations_pass_through(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"

    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/covtel.log")

    def test_logging_defaults_to_single_console_output(self) -> None:
        config = LoggingConfig()
        assert config.level == "INFO"
        assert [o.destination for o in config.outputs] == ["stderr"]
