"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI options)
2. Environment variables (COVTEL__KEY, COVTEL__SECTION__KEY)
3. GitHub Action inputs (INPUT_SERVICE-NAME, INPUT_COVERAGE-FOLDER, ...)
4. YAML file passed to load_config(config_path=...)
5. Built-in defaults (this file)

Examples:
    COVTEL__SERVICE_NAME=web-frontend
    COVTEL__OTEL_COLLECTOR_URL=http://collector:4318/v1/metrics
    COVTEL__LOGGING__LEVEL=DEBUG
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ExporterProtocol = Literal["http/protobuf", "grpc"]

DEFAULT_RUNNER_ROOT = "/home/runner/work"
DEFAULT_SUMMARY_FILE_NAME = "coverage-summary.json"


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVTEL__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG also enables OpenTelemetry SDK diagnostics.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class PipelineConfig(BaseModel):
    """Everything one coverage-to-telemetry run needs.

    Immutable for the duration of a run.
    """

    model_config = ConfigDict(frozen=True)

    coverage_folder: str = Field(
        default=".",
        description="Root folder searched recursively for coverage summary files.",
    )
    service_name: str = Field(
        default="covtel",
        description="OpenTelemetry service.name resource attribute.",
    )
    otel_collector_url: str | None = Field(
        default=None,
        description="OTLP metrics endpoint, e.g. http://collector:4318/v1/metrics.",
    )
    runner_root: str = Field(
        default=DEFAULT_RUNNER_ROOT,
        description="Absolute path prefix stripped from report keys.",
    )
    codeowners_team_prefix: str = Field(
        default="",
        description="Prefix marking the team owner among a rule's owners, e.g. '@org/'.",
    )
    codeowners_path: str = Field(
        default="CODEOWNERS",
        description="CODEOWNERS file. .github/ and docs/ are tried when it is missing.",
    )
    github_token: SecretStr | None = Field(
        default=None,
        description="Accepted for GitHub Action compatibility; not used.",
    )
    summary_file_name: str = Field(default=DEFAULT_SUMMARY_FILE_NAME)
    exporter_protocol: ExporterProtocol = Field(
        default="http/protobuf",
        description="OTLP transport used to push metrics.",
    )
    export_interval_millis: int = Field(
        default=1000,
        description="Periodic export interval of the metric reader.",
    )
    flush_timeout_millis: int = Field(
        default=30000,
        description="Upper bound for the final flush and for shutdown.",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("export_interval_millis", "flush_timeout_millis")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v

    @field_validator("summary_file_name")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        if not v or "/" in v:
            raise ValueError(f"Must be a bare file name, got {v!r}")
        return v
