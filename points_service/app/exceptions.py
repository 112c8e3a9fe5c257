from __future__ import annotations


class PointsServiceError(Exception):
    """Base exception for all points-service errors."""

    code = "points_service_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PointsServiceError):
    """User-correctable input errors (registration form, adjustment form)."""

    code = "validation_error"


class NotFoundError(PointsServiceError):
    """Unknown username."""

    code = "not_found"


class InsufficientBalanceError(PointsServiceError):
    """Redemption would drive the balance below zero."""

    code = "insufficient_balance"

    def __init__(self, username: str, balance: int, requested: int) -> None:
        super().__init__(
            f"Customer {username} doesn't have enough points "
            f"(balance={balance}, requested={requested})"
        )
        self.username = username
        self.balance = balance
        self.requested = requested


class ConcurrentUpdateError(PointsServiceError):
    """The balance kept changing under us; the adjustment was abandoned."""

    code = "concurrent_update"


class RemoteStoreError(PointsServiceError):
    """Network or store failure. Surfaced to the caller, never retried."""

    code = "remote_store_error"

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"store operation failed ({operation}){detail}")
        self.operation = operation


class SessionStateError(PointsServiceError):
    """Start/stop requested in a state that does not allow it."""

    code = "session_state_error"


class AdminAuthError(PointsServiceError):
    """Missing or invalid admin password/token."""

    code = "admin_auth_error"
