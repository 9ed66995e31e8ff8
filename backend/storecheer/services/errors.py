# Overview: Failure taxonomy shared by all services; routes map these to JSON error responses.

"""
Service failure taxonomy.

- ValidationFailure: caller sent something we refuse (bad input, cap
  exceeded, invalid state transition). Never retried.
- AdapterFailure: the identity provider or the data store rejected or could
  not complete a call. Opaque to the core; no automatic retry.
- ConsistencyFailure: a write succeeded and a dependent write failed. The
  message states what was left behind so an operator can reconcile.
"""


class ValidationFailure(ValueError):
    """Raised for input or state the operation refuses."""
    pass


class NotFound(ValidationFailure):
    """Raised when a referenced row does not exist."""
    pass


class AdapterFailure(Exception):
    """Raised when an external collaborator fails."""

    def __init__(self, message: str, *, source: str = "identity_provider"):
        super().__init__(message)
        self.source = source


class ConsistencyFailure(Exception):
    """Raised when a dual write is left half-done."""

    def __init__(self, message: str, *, orphaned_auth_id: str | None = None):
        super().__init__(message)
        self.orphaned_auth_id = orphaned_auth_id
