"""Data models for the Minecraft authentication pipeline"""

from dataclasses import dataclass, field
from typing import Optional

from .errors import AuthError


@dataclass
class DeviceCodeChallenge:
    """Device code challenge issued by the identity provider

    Attributes:
        device_code: Opaque code used when polling, never shown to the user
        user_code: Short code the user types on the verification page
        verification_uri: URL the user must open
        expires_at: Absolute deadline on the poller's clock (seconds)
        poll_interval: Seconds to wait between polls, grows on slow_down
        message: Human readable instruction from the provider, if any
    """
    device_code: str
    user_code: str
    verification_uri: str
    expires_at: float
    poll_interval: int
    message: Optional[str] = None


@dataclass(frozen=True)
class ProviderTokenPair:
    """Microsoft identity platform tokens

    Attributes:
        access_token: Short-lived token, only used for Xbox Live auth
        refresh_token: Long-lived token, only ever sent back to the token endpoint
    """
    access_token: str
    refresh_token: str = field(repr=False)


@dataclass(frozen=True)
class SecurityToken:
    """XSTS token and the user hash that must accompany it"""
    token: str
    user_hash: str


@dataclass(frozen=True)
class Profile:
    """Minecraft profile of the authenticated account"""
    name: str
    id: str

    @property
    def plain_id(self) -> str:
        """Account id without dashes"""
        return self.id.replace("-", "")

    @property
    def formatted_id(self) -> str:
        """Account id in 8-4-4-4-12 form (returned unchanged if not 32 hex chars)"""
        plain = self.plain_id
        if len(plain) != 32:
            return self.id
        return f"{plain[:8]}-{plain[8:12]}-{plain[12:16]}-{plain[16:20]}-{plain[20:]}"


@dataclass(frozen=True)
class Session:
    """The persisted, launch-ready session

    Attributes:
        username: Minecraft display name
        account_id: Minecraft profile id
        access_token: Minecraft access token used to launch the game
        refresh_token: Microsoft refresh token that regenerates the whole chain
    """
    username: str
    account_id: str
    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)

    @property
    def can_refresh(self) -> bool:
        """A session is only refreshable through its Microsoft refresh token"""
        return bool(self.refresh_token)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a background authentication flow

    Exactly one of ``username`` and ``error`` is set. ``persisted`` is False
    when the login succeeded but the session could not be written to disk,
    so it will not survive a restart.
    """
    username: Optional[str] = None
    error: Optional[AuthError] = None
    persisted: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None
