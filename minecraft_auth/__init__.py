"""Microsoft account authentication for Minecraft

Turns a Microsoft account into a launch-ready Minecraft session through the
device code flow, Xbox Live, XSTS and Minecraft services, and keeps it alive
across restarts with the stored refresh token.
"""

from .errors import (
    AlreadyInProgressError,
    AuthError,
    AuthTimeoutError,
    ErrorKind,
    InternalError,
    InvalidGrantError,
    NetworkError,
    NoSessionError,
    ProfileError,
    ProviderError,
    RefreshError,
)
from .models import (
    AuthResult,
    DeviceCodeChallenge,
    Profile,
    ProviderTokenPair,
    SecurityToken,
    Session,
)
from .device_code import request_device_code
from .token_poller import poll_for_token
from .token_refresh import refresh_provider_tokens
from .xbox import authenticate_with_xbox_live, authorize_xsts
from .minecraft import fetch_profile, login_with_xbox
from .orchestrator import AuthOrchestrator
from .worker import BackgroundAuthenticator

__all__ = [
    "AlreadyInProgressError",
    "AuthError",
    "AuthTimeoutError",
    "ErrorKind",
    "InternalError",
    "InvalidGrantError",
    "NetworkError",
    "NoSessionError",
    "ProfileError",
    "ProviderError",
    "RefreshError",
    "AuthResult",
    "DeviceCodeChallenge",
    "Profile",
    "ProviderTokenPair",
    "SecurityToken",
    "Session",
    "request_device_code",
    "poll_for_token",
    "refresh_provider_tokens",
    "authenticate_with_xbox_live",
    "authorize_xsts",
    "fetch_profile",
    "login_with_xbox",
    "AuthOrchestrator",
    "BackgroundAuthenticator",
]
