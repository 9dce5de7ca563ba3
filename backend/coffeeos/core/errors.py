"""Domain error taxonomy.

Every error carries a human-readable message for the end user, a stable
``code`` and the HTTP status the API maps it to. None of them are retried
automatically.
"""

from typing import Optional


class PosError(Exception):
    """Base class for errors surfaced to the end user."""

    code = "pos_error"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidState(PosError):
    """A precondition on document state was violated.

    The caller must re-fetch and inform the user; retrying blindly will fail
    the same way.
    """

    code = "invalid_state"
    status_code = 409

    def __init__(self, message: str, current_status: Optional[str] = None):
        self.current_status = current_status
        super().__init__(message)


class MissingContext(PosError):
    """No tenant/branch context resolves to a valid document path."""

    code = "missing_context"
    status_code = 400


class CommitFailure(PosError):
    """The atomic write did not apply. Safe to retry from the preconditions."""

    code = "commit_failure"
    status_code = 503

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class MalformedForecast(PosError):
    """The forecast oracle returned data that cannot be used."""

    code = "malformed_forecast"
    status_code = 502


class ForecastUnavailable(PosError):
    """The forecast oracle could not be reached or refused the request."""

    code = "forecast_unavailable"
    status_code = 502


class NotFound(PosError):
    """A referenced document does not exist."""

    code = "not_found"
    status_code = 404

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
