"""Error Hierarchy: typed, categorized exceptions for record store failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation errors are raised before any backend IO is issued
    - Backend transport errors (redis.exceptions.RedisError) are NOT wrapped here;
      they pass through to the caller uninterpreted
    - to_response() produces the REST envelope used by the HTTP shell

Design Decisions:
    - Single hierarchy with RecordStoreError base: one handler in main.py catches all
    - ErrorContext as dataclass: store key / record id travel with the error
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Where the error happened: which store namespace, which record."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    store_key: str | None = None
    record_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class RecordStoreError(Exception):
    """Base exception for all record store errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "store_key": self.context.store_key,
                    "record_id": self.context.record_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Caller Errors (400-level) ──────────────────────────────────

class InvalidArgumentError(RecordStoreError):
    """Missing or malformed id, or a query criterion without a value."""
    def __init__(self, message: str, argument: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_ARGUMENT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.argument = argument


class NotFoundError(RecordStoreError):
    """Update or lookup target does not exist."""
    def __init__(
        self, store_key: str, record_id: str | None, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.store_key = ctx.store_key or store_key
        ctx.record_id = ctx.record_id or record_id
        super().__init__(
            f"{store_key} '{record_id}' not found",
            "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


# ─── Setup Errors (500-level) ───────────────────────────────────

class ConfigError(RecordStoreError):
    """Missing backend credentials or an invalid store configuration."""
    def __init__(self, message: str, setting: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIG_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.setting = setting
