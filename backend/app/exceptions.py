"""
Error taxonomy for the recurring engine.

Services raise these; the FastAPI app maps them to HTTP responses in
``app.main``.
"""


class RecurringError(Exception):
    """Base class for recurring engine errors."""


class InvalidInputError(RecurringError, ValueError):
    """Rejected input. Raised before any mutation happens."""


class NotFoundError(RecurringError, LookupError):
    """Record is absent or not owned by the caller."""


class DependencyError(RecurringError):
    """A collaborator (storage, detector, AI provider) failed."""
