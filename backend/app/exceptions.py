"""Domain exceptions."""


class ExpenseTrackerError(Exception):
    """Base class for application errors."""


class RecurringTransactionValidationError(ExpenseTrackerError, ValueError):
    """A recurring transaction definition is malformed."""


class RecordNotFoundError(ExpenseTrackerError, LookupError):
    """An owner-scoped record does not exist."""


class TransientStoreError(ExpenseTrackerError):
    """A database write failed and may succeed on retry."""


class NotificationFailure(ExpenseTrackerError):
    """The notification sink could not deliver a message."""
