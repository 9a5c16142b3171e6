"""Refresh token grant for the Microsoft identity platform"""

import logging

import httpx

from settings import CLIENT_ID, MICROSOFT_TOKEN_URL, SCOPE
from .errors import InvalidGrantError, ProviderError, RefreshError
from .http import FORM_HEADERS, parse_json, send
from .models import ProviderTokenPair


logger = logging.getLogger(__name__)

STAGE = "token_refresh"


async def refresh_provider_tokens(
    client: httpx.AsyncClient,
    refresh_token: str,
) -> ProviderTokenPair:
    """Exchange a stored refresh token for a fresh token pair

    Args:
        client: HTTP client
        refresh_token: Refresh token from a previous login

    Returns:
        ProviderTokenPair; the old refresh token is kept if none is returned

    Raises:
        InvalidGrantError: Refresh token revoked or expired
        RefreshError: Any other rejection from the provider
        NetworkError: On transport failure
    """
    if not refresh_token:
        raise InvalidGrantError("No refresh token provided", STAGE, error_code="invalid_grant")

    data = {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "client_id": CLIENT_ID,
        "scope": SCOPE,
    }

    logger.info("Refreshing Microsoft access token...")
    response = await send(client, "POST", MICROSOFT_TOKEN_URL, STAGE, data=data, headers=FORM_HEADERS)

    try:
        payload = parse_json(response, STAGE)
    except ProviderError as e:
        raise RefreshError(
            f"Token refresh returned an unreadable response (HTTP {response.status_code})",
            STAGE,
            body=response.text,
            status_code=response.status_code,
        ) from e

    access_token = payload.get("access_token")
    if access_token:
        logger.info("Successfully refreshed Microsoft access token")
        return ProviderTokenPair(
            access_token=access_token,
            refresh_token=payload.get("refresh_token") or refresh_token,
        )

    error_code = payload.get("error")
    error_cls = InvalidGrantError if error_code == "invalid_grant" else RefreshError
    logger.error(f"Token refresh failed with status {response.status_code}: {error_code}")
    raise error_cls(
        f"Token refresh failed: {error_code or 'no access token in response'}",
        STAGE,
        error_code=error_code,
        body=response.text,
        status_code=response.status_code,
    )
