"""covtel error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Discovery
- 4xxx: Parse
- 5xxx: Attribution
- 6xxx: Export
- 7xxx: Ownership
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Discovery (3xxx)
    DISCOVERY_NO_SUMMARIES = 3001

    # Parse (4xxx)
    PARSE_READ_FAILED = 4001
    PARSE_INVALID_JSON = 4002
    PARSE_INVALID_SHAPE = 4003
    PARSE_NO_COVERAGE_DATA = 4004

    # Attribution (5xxx)
    ATTRIBUTION_INVALID_ENTRY = 5001
    ATTRIBUTION_MISSING_DIMENSION = 5002
    ATTRIBUTION_INVALID_METRIC = 5003

    # Export (6xxx)
    EXPORT_INIT_FAILED = 6001
    EXPORT_FLUSH_FAILED = 6002
    EXPORT_SHUTDOWN_FAILED = 6003
    EXPORT_INVALID_STATE = 6004

    # Ownership (7xxx)
    OWNERSHIP_RULES_NOT_FOUND = 7001
    OWNERSHIP_RULES_UNREADABLE = 7002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CovtelError(Exception):
    """Base error with structured context for log records."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PARSE_INVALID_JSON')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured log events."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CovtelError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class DiscoveryError(CovtelError):
    """Errors while locating coverage summary files."""

    @classmethod
    def no_summaries(cls, root: str, filename: str) -> "DiscoveryError":
        return cls(
            code=ErrorCode.DISCOVERY_NO_SUMMARIES,
            message=f"No summary files found under {root}",
            details={"root": root, "filename": filename},
        )


class ParseError(CovtelError):
    """A single summary file could not be turned into a CoverageSummary."""

    @classmethod
    def read_failed(cls, path: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_READ_FAILED,
            message=f"Failed to read {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_json(cls, path: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_INVALID_JSON,
            message=f"Invalid JSON in {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_shape(cls, path: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_INVALID_SHAPE,
            message=f"Unexpected summary layout in {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def no_coverage_data(cls, path: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_NO_COVERAGE_DATA,
            message=f"File {path} has no test coverage data",
            details={"path": path},
        )


class AttributionError(CovtelError):
    """Data-quality problem with one entry (or one dimension of an entry)."""

    @classmethod
    def invalid_entry(cls, path: str, reason: str) -> "AttributionError":
        return cls(
            code=ErrorCode.ATTRIBUTION_INVALID_ENTRY,
            message=f"Coverage entry for {path} is not usable: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def missing_dimension(cls, path: str, dimension: str) -> "AttributionError":
        return cls(
            code=ErrorCode.ATTRIBUTION_MISSING_DIMENSION,
            message=f"Coverage entry for {path} has no '{dimension}' data",
            details={"path": path, "dimension": dimension},
        )

    @classmethod
    def invalid_metric(cls, path: str, dimension: str, reason: str) -> "AttributionError":
        return cls(
            code=ErrorCode.ATTRIBUTION_INVALID_METRIC,
            message=f"Invalid '{dimension}' coverage for {path}: {reason}",
            details={"path": path, "dimension": dimension, "reason": reason},
        )


class ExportError(CovtelError):
    """Telemetry channel errors."""

    @classmethod
    def init_failed(cls, endpoint: str, reason: str) -> "ExportError":
        return cls(
            code=ErrorCode.EXPORT_INIT_FAILED,
            message=f"Failed to initialize metric exporter for {endpoint}: {reason}",
            details={"endpoint": endpoint, "reason": reason},
        )

    @classmethod
    def flush_failed(cls, reason: str) -> "ExportError":
        return cls(
            code=ErrorCode.EXPORT_FLUSH_FAILED,
            message=f"Failed to flush metrics: {reason}",
            retryable=True,
            details={"reason": reason},
        )

    @classmethod
    def shutdown_failed(cls, reason: str) -> "ExportError":
        return cls(
            code=ErrorCode.EXPORT_SHUTDOWN_FAILED,
            message=f"Failed to shut down meter provider: {reason}",
            details={"reason": reason},
        )

    @classmethod
    def invalid_state(cls, operation: str, state: str) -> "ExportError":
        return cls(
            code=ErrorCode.EXPORT_INVALID_STATE,
            message=f"Cannot {operation} while emitter is {state}",
            details={"operation": operation, "state": state},
        )


class OwnershipError(CovtelError):
    """CODEOWNERS ruleset could not be loaded."""

    @classmethod
    def rules_not_found(cls, candidates: list[str]) -> "OwnershipError":
        return cls(
            code=ErrorCode.OWNERSHIP_RULES_NOT_FOUND,
            message=f"No CODEOWNERS file found (looked in: {', '.join(candidates)})",
            details={"candidates": candidates},
        )

    @classmethod
    def rules_unreadable(cls, path: str, reason: str) -> "OwnershipError":
        return cls(
            code=ErrorCode.OWNERSHIP_RULES_UNREADABLE,
            message=f"Failed to read CODEOWNERS at {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class InternalError(CovtelError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
