"""Config module exports."""

from covtel.config.loader import load_config
from covtel.config.models import LoggingConfig, LogOutputConfig, PipelineConfig

__all__ = [
    "load_config",
    "LoggingConfig",
    "LogOutputConfig",
    "PipelineConfig",
]
