"""Domain-specific exceptions for the budget tracker core services."""

class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""


class InvalidAmount(ValidationError):
    """Raised when an amount is non-numeric, non-finite or out of range."""


class InvalidCategory(ValidationError):
    """Raised when a category name is missing or empty after trimming."""


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""


class MalformedStoredData(ValueError):
    """Raised when stored budget data cannot be decoded into a record."""
