"""Core module exports."""

from covtel.core.errors import (
    AttributionError,
    ConfigError,
    CovtelError,
    DiscoveryError,
    ErrorCode,
    ExportError,
    InternalError,
    OwnershipError,
    ParseError,
)
from covtel.core.logging import (
    clear_run_id,
    configure_logging,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "AttributionError",
    "ConfigError",
    "CovtelError",
    "DiscoveryError",
    "ErrorCode",
    "ExportError",
    "InternalError",
    "OwnershipError",
    "ParseError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_run_id",
    "set_run_id",
]
