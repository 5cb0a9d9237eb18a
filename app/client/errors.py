"""Errors raised by the API client."""


class SessionExpiredError(Exception):
    """The session could not be renewed; the local session has been cleared."""

    def __init__(self, message: str = "Session expired. Please log in again.") -> None:
        self.message = message
        super().__init__(message)
