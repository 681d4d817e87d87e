"""
Error taxonomy for the query controller.

Below-minimum queries are not errors: the controller routes them to the
idle state without raising. Everything the fetch layer can throw is
translated at the request sequencer boundary into either
TerminalFetchFailure (shown to the user) or StaleResponseDiscarded
(internal, dropped).
"""

from typing import Optional


DEFAULT_USER_MESSAGE = "Search is unavailable right now. Please try again."


class TypeaheadError(Exception):
    """Base exception for all widget core errors."""

    pass


class FetchFailure(TypeaheadError):
    """A single attempt to fetch a result page failed."""

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message or "Search request failed")
        self.status_code = status_code
        self.user_message = user_message or DEFAULT_USER_MESSAGE

    def __str__(self):
        base_msg = super().__str__()
        if self.status_code is not None:
            return f"{base_msg} (HTTP {self.status_code})"
        return base_msg


class TransientNetworkFailure(FetchFailure):
    """Transport error, timeout or 5xx. Worth retrying."""

    pass


class TerminalFetchFailure(FetchFailure):
    """Non-retriable status, malformed body, or retries exhausted."""

    pass


class StaleResponseDiscarded(TypeaheadError):
    """A response (or failure) arrived for a superseded request token."""

    def __init__(self, token: int, latest_token: int):
        super().__init__(
            f"Discarded response for token {token}, latest is {latest_token}")
        self.token = token
        self.latest_token = latest_token
