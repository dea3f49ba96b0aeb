"""
Marketplace error taxonomy

Every error carries a stable `code`, the HTTP status it maps to and a
`detail` dict with enough context to render a specific message.
"""
from typing import Any, Dict, Optional


class MarketplaceError(Exception):
    """Base exception for marketplace service errors"""

    code = "marketplace_error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class NotFoundError(MarketplaceError):
    """Raised when an auction or user doesn't exist"""

    code = "not_found"
    status_code = 404


class ValidationError(MarketplaceError):
    """Raised for malformed or out-of-range input (amount, title, timing)"""

    code = "validation_error"
    status_code = 400


class StateConflictError(MarketplaceError):
    """Raised when a business rule rejects a well-formed request"""

    code = "state_conflict"
    status_code = 409

    def __init__(self, message: str, reason: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, {"reason": reason, **(detail or {})})
        self.reason = reason


class ConflictError(MarketplaceError):
    """Raised when concurrent writers kept winning until retries ran out"""

    code = "conflict"
    status_code = 409
    retryable = True


class UnauthenticatedError(MarketplaceError):
    """Raised when no usable caller identity was supplied"""

    code = "unauthenticated"
    status_code = 401


class StoreUnavailableError(MarketplaceError):
    """Raised when the database cannot be reached or fails mid-operation"""

    code = "store_unavailable"
    status_code = 503
    retryable = True
