"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority, CLI options)
2. Environment variables (COVTEL__KEY)
3. GitHub Action inputs (INPUT_<NAME>, as set by the Actions runner)
4. YAML config file (only when a path is given)
5. Built-in defaults (lowest priority)

Keys in the YAML file and Action input names may use either dashes or
underscores (``service-name`` and ``service_name`` are equivalent).
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from covtel.config.models import ExporterProtocol, LoggingConfig, PipelineConfig
from covtel.core.errors import ConfigError

ACTION_INPUT_PREFIX = "INPUT_"


def _normalize_key(key: str) -> str:
    return key.strip().lower().replace("-", "_")


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError.file_not_found(str(path))
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return {_normalize_key(str(k)): v for k, v in data.items()}


def _read_action_inputs(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect non-empty GitHub Action inputs from the environment.

    The runner exposes input ``service-name`` as ``INPUT_SERVICE-NAME``.
    Optional inputs the workflow did not set arrive as empty strings.
    """
    inputs: dict[str, Any] = {}
    for key, value in environ.items():
        if not key.upper().startswith(ACTION_INPUT_PREFIX) or value == "":
            continue
        inputs[_normalize_key(key[len(ACTION_INPUT_PREFIX) :])] = value
    return inputs


class _MappingSource(PydanticBaseSettingsSource):
    """Settings source that reads from a pre-loaded mapping."""

    def __init__(self, settings_cls: type[BaseSettings], values: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._values = {k: v for k, v in values.items() if k in settings_cls.model_fields}

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._values.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._values


def _make_settings_class(
    yaml_config: dict[str, Any], action_inputs: dict[str, Any]
) -> type[BaseSettings]:
    """Create a Settings class bound to this load's YAML and Action inputs.

    Every field defaults to None so unset values fall through to the
    defaults declared on PipelineConfig.
    """

    class CovtelSettings(BaseSettings):
        """Raw settings. Env vars: COVTEL__SERVICE_NAME, COVTEL__LOGGING__LEVEL, etc."""

        model_config = SettingsConfigDict(
            env_prefix="COVTEL__",
            env_nested_delimiter="__",
            case_sensitive=False,
            extra="ignore",
        )

        coverage_folder: str | None = None
        service_name: str | None = None
        otel_collector_url: str | None = None
        runner_root: str | None = None
        codeowners_team_prefix: str | None = None
        codeowners_path: str | None = None
        github_token: SecretStr | None = None
        summary_file_name: str | None = None
        exporter_protocol: ExporterProtocol | None = None
        export_interval_millis: int | None = None
        flush_timeout_millis: int | None = None
        logging: LoggingConfig | None = None

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > action inputs > yaml
            return (
                init_settings,
                env_settings,
                _MappingSource(settings_cls, action_inputs),
                _MappingSource(settings_cls, yaml_config),
            )

    return CovtelSettings


def load_config(
    config_path: Path | str | None = None,
    *,
    require_endpoint: bool = False,
    environ: Mapping[str, str] | None = None,
    **kwargs: Any,
) -> PipelineConfig:
    """Load config: defaults < yaml < action inputs < env vars < kwargs.

    Args:
        config_path: Optional YAML file. Must exist when given.
        require_endpoint: Raise if no OTLP endpoint is configured.
        environ: Environment used for Action inputs. Defaults to os.environ.
        **kwargs: Override values (highest precedence). None values are ignored.

    Returns:
        Fully resolved, immutable configuration.

    Raises:
        ConfigError: On unreadable YAML, validation errors or a missing endpoint.
    """
    yaml_config = _load_yaml(Path(config_path)) if config_path is not None else {}
    action_inputs = _read_action_inputs(os.environ if environ is None else environ)
    overrides = {k: v for k, v in kwargs.items() if v is not None}

    settings_cls = _make_settings_class(yaml_config, action_inputs)
    try:
        settings = settings_cls(**overrides)
        config = PipelineConfig.model_validate(settings.model_dump(exclude_none=True))
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e

    if require_endpoint and not config.otel_collector_url:
        raise ConfigError.missing_required("otel_collector_url")
    return config
