class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class BusinessRuleError(DomainError):
    """Raised when an action is blocked by a pre-checked business rule."""


class LockedRecordError(BusinessRuleError):
    """Raised on edit/delete of roster or working-hour rows that are already approved."""


class PayrollOverlapError(BusinessRuleError):
    """Raised when a pay period intersects an existing payroll of the same employee."""

    def __init__(self, message: str, profile_ids=()):
        super().__init__(message)
        self.profile_ids = tuple(profile_ids)


class StoreError(DomainError):
    """Raised when the record store rejects an operation (constraint violation, connection loss)."""
