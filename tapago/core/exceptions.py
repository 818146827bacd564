"""Error taxonomy shared by the ledger, the user directory and the friend graph."""
from typing import Any, Optional


class TaPagoError(Exception):
    """Base exception for application errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: str = "TaPagoError",
        details: Optional[Any] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(self.message)


class InvalidArgumentError(TaPagoError):
    """Bad input shape or values"""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_type="InvalidArgument",
            details=details
        )


class AuthenticationError(TaPagoError):
    """Authentication failure exception"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=401,
            error_type="AuthenticationError",
            details=details
        )


class NotFoundError(TaPagoError):
    """Referenced user or debt absent"""

    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=404,
            error_type="NotFound",
            details=details
        )


class ConflictError(TaPagoError):
    """
    Concurrent conflicting write detected by the store, or a uniqueness clash.

    Transaction conflicts are safe to retry: nothing was committed.
    """

    def __init__(self, message: str = "Conflicting write, try again", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_type="Conflict",
            details=details
        )


class AlreadyExistsError(TaPagoError):
    """Uniqueness clash on insert. Not a ConflictError, so never retried."""

    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_type="AlreadyExists",
            details=details
        )


class AlreadyPaidError(TaPagoError):
    """Debt was already marked as paid; callers may treat it as a no-op."""

    def __init__(self, debt_id: str):
        super().__init__(
            message=f"Debt {debt_id} is already paid",
            status_code=409,
            error_type="AlreadyPaid",
            details={"debt_id": debt_id}
        )
        self.debt_id = debt_id


class StoreUnavailableError(TaPagoError):
    """Transport or backend failure"""

    def __init__(self, message: str = "Document store unavailable", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_type="StoreUnavailable",
            details=details
        )
