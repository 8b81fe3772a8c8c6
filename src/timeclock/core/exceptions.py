class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidRangeError(ValidationError):
    """Raised when a session would end at or before its start."""


class StateConflictError(DomainError):
    """Raised when an action does not fit the current clock state."""


class AlreadyOpenError(StateConflictError):
    """Raised on clock-in while a session is already open."""


class NotOpenError(StateConflictError):
    """Raised on clock-out while no session is open."""


class PersistenceError(DomainError):
    """Raised when the ledger could not be read from or written to storage."""


class CorruptLedgerError(PersistenceError):
    """Raised by the codec when stored ledger data cannot be decoded."""


class AuthorizationError(DomainError):
    """Raised when a caller's role does not allow an action."""
