"""Failures raised by the OMDb gateway, one class per error kind."""
from typing import Literal, Optional

from ..schemas.movies_schemas import ErrorKind, ErrorState

MISSING_CREDENTIAL_MESSAGE = 'API key is required. Please set your OMDb API key.'
NETWORK_FAILURE_MESSAGE = (
    'Failed to connect to the movie database. '
    'Please check your internet connection.'
)
REQUEST_THROTTLED_MESSAGE = (
    'API rate limit exceeded. Please wait a moment before trying again.'
)
DAILY_LIMIT_MESSAGE = 'Daily API limit reached. Please try again tomorrow.'
TOO_MANY_RESULTS_MESSAGE = (
    'Too many results found. Please be more specific with your search term.'
)
UPSTREAM_FALLBACK_MESSAGE = 'An error occurred while fetching data.'


class GatewayError(Exception):
    """Base class for every failure the gateway reports."""

    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR
    retryable: bool = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def state(self) -> ErrorState:
        return ErrorState(
            kind=self.kind, message=self.message, retryable=self.retryable
        )


class MissingCredentialError(GatewayError):
    kind = ErrorKind.MISSING_CREDENTIAL

    def __init__(self, message: str = MISSING_CREDENTIAL_MESSAGE):
        super().__init__(message)


class NetworkFailureError(GatewayError):
    kind = ErrorKind.NETWORK_FAILURE

    def __init__(
        self,
        message: str = NETWORK_FAILURE_MESSAGE,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(GatewayError):
    """
    Upstream throttling. ``scope`` is 'request' for an HTTP 429 and 'daily'
    when the account quota is exhausted.
    """
    kind = ErrorKind.RATE_LIMITED
    retryable = False

    def __init__(
        self,
        message: str = REQUEST_THROTTLED_MESSAGE,
        scope: Literal['request', 'daily'] = 'request'
    ):
        super().__init__(message)
        self.scope = scope


class TooManyResultsError(GatewayError):
    kind = ErrorKind.TOO_MANY_RESULTS

    def __init__(self, message: str = TOO_MANY_RESULTS_MESSAGE):
        super().__init__(message)


class UpstreamError(GatewayError):
    kind = ErrorKind.UPSTREAM_ERROR
