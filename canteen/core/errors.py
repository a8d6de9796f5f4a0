"""Error kinds raised by the ordering core.

Each kind maps to a distinct HTTP status in ``canteen.main`` so that callers can
render kind-specific messages. None of them is swallowed inside the core.
"""
from typing import Optional


class CanteenError(Exception):
    """Base class for all canteen errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(CanteenError):
    """User-correctable input problem: empty cart, missing slot, malformed OTP."""


class NotFoundError(CanteenError):
    """Referenced order, menu item, time slot or profile does not exist."""


class PermissionDenied(CanteenError):
    """Caller lacks the staff role required for the operation."""


class PersistenceError(CanteenError):
    """Read or write against the database failed."""

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class InvalidOTP(CanteenError):
    """Supplied collection code does not match the stored one."""


class InvalidTransition(CanteenError):
    """Requested status change is not in the transition table."""

    def __init__(self, current: str, requested: str, message: Optional[str] = None):
        super().__init__(message or f"Cannot move order from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class TerminalOrder(CanteenError):
    """Operation targets an order that is already delivered or cancelled."""

    def __init__(self, status: str, message: Optional[str] = None):
        super().__init__(message or f"Order is already {status}")
        self.status = status
