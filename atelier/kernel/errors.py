"""
Error taxonomy shared by the engines, the orchestration layer and the API.
"""


class ValidationError(ValueError):
    """A user action was blocked before anything was written."""


class PersistenceError(RuntimeError):
    """A read or write against the record store failed."""


class NotFoundError(LookupError):
    """A profile or submission id does not exist in the store."""


class InvalidTransitionError(ValueError):
    """A review was attempted on a submission that is already decided."""
