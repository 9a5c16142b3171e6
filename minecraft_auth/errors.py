"""Error taxonomy for the authentication pipeline

Every failure that leaves the pipeline is one of these classes. Callers branch
on ``kind`` / ``retryable`` / ``requires_login`` instead of matching messages.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of pipeline failures"""
    NETWORK = "network"
    PROVIDER = "provider"
    TIMEOUT = "timeout"
    REFRESH = "refresh"
    INVALID_GRANT = "invalid_grant"
    PROFILE = "profile"
    ALREADY_IN_PROGRESS = "already_in_progress"
    NO_SESSION = "no_session"
    INTERNAL = "internal"


class AuthError(Exception):
    """Base class for all authentication pipeline errors

    Attributes:
        kind: Error classification
        stage: Pipeline stage that failed (e.g. "xsts"), if any
        retryable: True if retrying the whole flow later may succeed
    """

    kind = ErrorKind.PROVIDER
    retryable = False

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    @property
    def requires_login(self) -> bool:
        """True if the caller must run a fresh interactive login"""
        return False

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class NetworkError(AuthError):
    """Connectivity failure, timeout or transient server error"""

    kind = ErrorKind.NETWORK
    retryable = True


class ProviderError(AuthError):
    """A stage answered without the expected success fields

    Attributes:
        error_code: Provider error code (e.g. "authorization_declined"), if any
        body: Raw response body captured for diagnostics
        status_code: HTTP status of the failed response, if any
        xerr: Xbox Live XErr code, if the response carried one
    """

    kind = ErrorKind.PROVIDER

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        error_code: Optional[str] = None,
        body: Optional[str] = None,
        status_code: Optional[int] = None,
        xerr: Optional[int] = None,
    ):
        super().__init__(message, stage)
        self.error_code = error_code
        self.body = body
        self.status_code = status_code
        self.xerr = xerr
        # Set by the orchestrator when the failure happened on the silent path
        self.during_refresh = False

    @property
    def requires_login(self) -> bool:
        return self.during_refresh


class AuthTimeoutError(AuthError):
    """The device code expired before the user finished verifying"""

    kind = ErrorKind.TIMEOUT
    retryable = True


class RefreshError(ProviderError):
    """The identity provider rejected a refresh token grant"""

    kind = ErrorKind.REFRESH

    @property
    def requires_login(self) -> bool:
        return True


class InvalidGrantError(RefreshError):
    """The refresh token was revoked or expired; the session must be cleared"""

    kind = ErrorKind.INVALID_GRANT


class ProfileError(AuthError):
    """Identity is valid but the account does not own the game"""

    kind = ErrorKind.PROFILE


class AlreadyInProgressError(AuthError):
    """An interactive authentication attempt is already running"""

    kind = ErrorKind.ALREADY_IN_PROGRESS


class NoSessionError(AuthError):
    """Silent refresh requested but no refresh token is stored"""

    kind = ErrorKind.NO_SESSION

    @property
    def requires_login(self) -> bool:
        return True


class InternalError(AuthError):
    """A flow failed with an exception outside the taxonomy"""

    kind = ErrorKind.INTERNAL
