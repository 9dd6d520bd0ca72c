"""Error Hierarchy — typed, categorized exceptions for all Idle Vault failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No error is ever converted into a default/zero success value
    - InternalInconsistencyError is distinct from StorageError: the store answered,
      but the stored data contradicts the economy configuration

Design Decisions:
    - Single hierarchy with IdleVaultError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
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
    AUTH = "auth"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    account_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class IdleVaultError(Exception):
    """Base exception for all Idle Vault errors."""

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
                    "account_id": self.context.account_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class AuthError(IdleVaultError):
    """Shared registration secret did not match."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Auth error", "AUTH_ERROR", ErrorCategory.AUTH,
            ErrorSeverity.WARNING, context, 401,
        )


class ValidationError(IdleVaultError):
    """Input is malformed in a way the schema layer cannot express."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field

    def to_response(self) -> dict:
        """Envelope plus field details, same shape as request validation errors."""
        response = super().to_response()
        response["error"]["details"] = [
            {"field": self.field, "message": self.message, "type": "value_error"},
        ]
        return response


class ConflictError(IdleVaultError):
    """Account id is already registered."""
    def __init__(self, account_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Account '{account_id}' is already registered",
            "ACCOUNT_EXISTS", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.account_id = account_id


class ConcurrencyError(IdleVaultError):
    """Stored record changed between read and replace."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class ResourceNotFoundError(IdleVaultError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InsufficientBalanceError(IdleVaultError):
    """Balance does not cover the price of the requested upgrade."""
    def __init__(self, balance: int, price: int, context: ErrorContext | None = None):
        super().__init__(
            f"Insufficient balance: {balance} < {price}",
            "INSUFFICIENT_BALANCE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )
        self.balance = balance
        self.price = price


class UpgradeUnavailableError(IdleVaultError):
    """Slot has no next tier in the configured tables."""
    def __init__(self, slot: str, tier: int, context: ErrorContext | None = None):
        super().__init__(
            f"No upgrade available for '{slot}' at tier {tier}",
            "UPGRADE_UNAVAILABLE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )
        self.slot = slot
        self.tier = tier


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageError(IdleVaultError):
    """Account store unreachable or operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class InternalInconsistencyError(IdleVaultError):
    """Stored data references configuration that does not exist."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INTERNAL_INCONSISTENCY", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
