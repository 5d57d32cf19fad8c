"""
Sync error types.

Every failure of a sync cycle surfaces as a SyncError subclass. None of them
are retried by the engine; the next start signal starts a fresh cycle.
"""

from typing import Any, Dict, Optional

from .models import Feature


class SyncError(Exception):
    """Base class for all sync failures."""

    code = "syncError"

    @property
    def is_server_error(self) -> bool:
        """True when the failure was caused by the server's response."""
        return False

    @property
    def error_parameters(self) -> Dict[str, str]:
        """Parameters suitable for diagnostic/analytics reporting."""
        return {"syncError": self.code}


class _ServerError(SyncError):

    @property
    def is_server_error(self) -> bool:
        return True


class NoResponseBodyError(_ServerError):
    """The server answered without a body."""

    code = "noResponseBody"

    def __init__(self, message: str = "Response has no body"):
        super().__init__(message)


class UnexpectedStatusCodeError(_ServerError):
    """The server answered with a non-2xx status code."""

    code = "unexpectedStatusCode"

    def __init__(self, status_code: int):
        super().__init__(f"Unexpected status code: {status_code}")
        self.status_code = status_code


class UnexpectedResponseBodyError(_ServerError):
    """The response body is not a JSON object of the expected shape."""

    code = "unexpectedResponseBody"


class MissingFeatureError(UnexpectedResponseBodyError):
    """The response body has no object for a feature that was requested."""

    def __init__(self, feature: Feature):
        super().__init__(f"Response is missing feature '{feature.name}'")
        self.feature = feature


class InvalidDataInResponseError(_ServerError):
    """A feature's object in the response has missing or mistyped fields."""

    code = "invalidDataInResponse"


class NoFeaturesSpecifiedError(SyncError):
    """A cycle was requested without any registered feature."""

    code = "noFeaturesSpecified"

    def __init__(self, message: str = "No features to sync"):
        super().__init__(message)


class RequestEncodingError(SyncError):
    """The request body could not be encoded as JSON."""

    code = "unableToEncodeRequestBody"


class LocalChangesError(SyncError):
    """A data provider failed to return its local changes."""

    code = "failedToFetchLocalChanges"

    def __init__(self, feature: Feature, cause: Optional[BaseException] = None):
        message = f"Failed to collect local changes for '{feature.name}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.feature = feature
        self.cause = cause


class TransportError(SyncError):
    """The HTTP request could not be completed."""

    code = "transportError"


class SyncTimeoutError(TransportError):
    """The HTTP request timed out."""

    code = "timeout"


class ProviderRegistrationError(SyncError):
    """Invalid data provider set (duplicate feature, late registration)."""

    code = "failedToSetupEngine"


def describe(error: Any) -> Dict[str, Any]:
    """Summarize an error for logs and CLI output."""
    if isinstance(error, SyncError):
        return {
            "error": str(error),
            "server_error": error.is_server_error,
            **error.error_parameters,
        }
    return {"error": str(error), "server_error": False, "syncError": type(error).__name__}


__all__ = [
    'SyncError',
    'NoResponseBodyError',
    'UnexpectedStatusCodeError',
    'UnexpectedResponseBodyError',
    'MissingFeatureError',
    'InvalidDataInResponseError',
    'NoFeaturesSpecifiedError',
    'RequestEncodingError',
    'LocalChangesError',
    'TransportError',
    'SyncTimeoutError',
    'ProviderRegistrationError',
    'describe',
]
