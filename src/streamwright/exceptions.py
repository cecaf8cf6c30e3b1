"""
Exception hierarchy for the orchestration client.

Every public client operation either returns its typed result or raises exactly
one of ValidationError, AuthenticationError or RemoteOperationError.
"""


class DataflowError(Exception):
    """Base exception for all client errors."""

    kind = "dataflow_error"

    # Set on errors that stop a bulk import: apps registered before the failure
    registered_count: int | None = None


class ValidationError(DataflowError):
    """Malformed caller input. Raised before anything is sent to the control plane."""

    kind = "validation_error"


class AuthenticationError(DataflowError):
    """Credential acquisition against the token endpoint failed."""

    kind = "authentication_error"


class RemoteOperationError(DataflowError):
    """The control plane (or catalog host) answered with a non-2xx response.

    ``status_code`` is None when the request never produced a response
    (connection refused, timeout).
    """

    kind = "remote_operation_error"

    def __init__(self, status_code: int | None, body: str = "", message: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"Remote operation failed (status={status_code}): {body}")
