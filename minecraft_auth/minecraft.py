"""Minecraft services login and profile lookup"""

import logging

import httpx

from settings import MINECRAFT_AUTH_URL, MINECRAFT_PROFILE_URL
from .errors import ProfileError, ProviderError
from .http import JSON_HEADERS, parse_json, send
from .models import Profile, SecurityToken


logger = logging.getLogger(__name__)

LOGIN_STAGE = "minecraft_login"
PROFILE_STAGE = "profile"


async def login_with_xbox(client: httpx.AsyncClient, security_token: SecurityToken) -> str:
    """Exchange an XSTS token for a Minecraft access token

    Raises:
        ProviderError: If the response has no access_token
    """
    body = {
        "identityToken": f"XBL3.0 x={security_token.user_hash};{security_token.token}",
    }

    logger.info("Logging in to Minecraft services...")
    response = await send(client, "POST", MINECRAFT_AUTH_URL, LOGIN_STAGE, json=body, headers=JSON_HEADERS)
    payload = parse_json(response, LOGIN_STAGE)

    access_token = payload.get("access_token")
    if not access_token:
        logger.error(f"Minecraft login failed with status {response.status_code}")
        raise ProviderError(
            "Minecraft login failed",
            LOGIN_STAGE,
            error_code=payload.get("error") or payload.get("errorType"),
            body=response.text,
            status_code=response.status_code,
        )

    logger.info("Minecraft access token acquired")
    return access_token


async def fetch_profile(client: httpx.AsyncClient, access_token: str) -> Profile:
    """Fetch the Minecraft profile for an access token

    Raises:
        ProfileError: The account does not own Minecraft (no profile)
        ProviderError: The access token was rejected or the lookup failed
    """
    headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}

    logger.info("Fetching Minecraft profile...")
    response = await send(client, "GET", MINECRAFT_PROFILE_URL, PROFILE_STAGE, headers=headers)

    if response.status_code in (401, 403):
        logger.error(f"Profile request rejected with status {response.status_code}")
        raise ProviderError(
            "Minecraft services rejected the access token",
            PROFILE_STAGE,
            body=response.text,
            status_code=response.status_code,
        )

    if response.status_code == 404:
        logger.warning("Account has no Minecraft profile")
        raise ProfileError("This account does not own Minecraft", PROFILE_STAGE)

    if response.status_code >= 400:
        logger.error(f"Profile request failed with status {response.status_code}")
        raise ProviderError(
            "Profile lookup failed",
            PROFILE_STAGE,
            body=response.text,
            status_code=response.status_code,
        )

    payload = parse_json(response, PROFILE_STAGE)
    name = payload.get("name")
    profile_id = payload.get("id")
    if not name or not profile_id:
        logger.warning(f"Profile response without name/id: {response.text}")
        raise ProfileError("This account does not own Minecraft", PROFILE_STAGE)

    profile = Profile(name=name, id=profile_id)
    logger.info(f"Resolved Minecraft profile {profile.name} ({profile.formatted_id})")
    return profile
