"""Xbox Live user authentication and XSTS authorization"""

import logging
from typing import Any, Dict, Optional

import httpx

from settings import XBOX_AUTH_URL, XBOX_RELYING_PARTY, XBOX_XSTS_URL, XSTS_RELYING_PARTY
from .errors import ProviderError
from .http import JSON_HEADERS, parse_json, send
from .models import SecurityToken


logger = logging.getLogger(__name__)

XBOX_STAGE = "xbox_live"
XSTS_STAGE = "xsts"

# Reasons Xbox Live gives for refusing an XSTS token
XERR_REASONS = {
    2148916227: "The account is banned from Xbox Live",
    2148916229: "The account is restricted by parental controls",
    2148916233: "The Microsoft account has no Xbox profile; sign in at xbox.com first",
    2148916234: "The account has not accepted the Xbox Terms of Service",
    2148916235: "Xbox Live is not available in the account's region",
    2148916236: "The account requires adult verification",
    2148916237: "The account requires adult verification",
    2148916238: "The account belongs to a child and must be added to a family",
}


def _xerr(payload: Dict[str, Any]) -> Optional[int]:
    try:
        return int(payload["XErr"])
    except (KeyError, TypeError, ValueError):
        return None


def _failure(stage: str, response: httpx.Response, payload: Dict[str, Any], what: str) -> ProviderError:
    xerr = _xerr(payload)
    reason = XERR_REASONS.get(xerr) if xerr is not None else None
    message = f"{what} failed"
    if reason:
        message = f"{message}: {reason}"
    elif xerr is not None:
        message = f"{message} (XErr {xerr})"
    logger.error(f"{message}: HTTP {response.status_code}")
    return ProviderError(
        message,
        stage,
        body=response.text,
        status_code=response.status_code,
        xerr=xerr,
    )


async def _post(client: httpx.AsyncClient, url: str, stage: str, body: Dict[str, Any]):
    response = await send(client, "POST", url, stage, json=body, headers=JSON_HEADERS)
    # Xbox Live returns an empty 401 body in some failure cases
    if not response.content:
        return response, {}
    return response, parse_json(response, stage)


async def authenticate_with_xbox_live(client: httpx.AsyncClient, access_token: str) -> str:
    """Exchange a Microsoft access token for an Xbox Live user token

    Args:
        client: HTTP client
        access_token: Microsoft access token

    Returns:
        Xbox Live user token

    Raises:
        ProviderError: If the response has no Token
    """
    body = {
        "Properties": {
            "AuthMethod": "RPS",
            "SiteName": "user.auth.xboxlive.com",
            "RpsTicket": f"d={access_token}",
        },
        "RelyingParty": XBOX_RELYING_PARTY,
        "TokenType": "JWT",
    }

    logger.info("Authenticating with Xbox Live...")
    response, payload = await _post(client, XBOX_AUTH_URL, XBOX_STAGE, body)

    token = payload.get("Token")
    if not token:
        raise _failure(XBOX_STAGE, response, payload, "Xbox Live authentication")

    logger.info("Xbox Live authentication succeeded")
    return token


async def authorize_xsts(client: httpx.AsyncClient, xbox_token: str) -> SecurityToken:
    """Exchange an Xbox Live user token for an XSTS token scoped to Minecraft

    Args:
        client: HTTP client
        xbox_token: Xbox Live user token

    Returns:
        SecurityToken with the XSTS token and user hash

    Raises:
        ProviderError: If Token or DisplayClaims.xui[0].uhs is missing
    """
    body = {
        "Properties": {
            "SandboxId": "RETAIL",
            "UserTokens": [xbox_token],
        },
        "RelyingParty": XSTS_RELYING_PARTY,
        "TokenType": "JWT",
    }

    logger.info("Requesting XSTS token...")
    response, payload = await _post(client, XBOX_XSTS_URL, XSTS_STAGE, body)

    token = payload.get("Token")
    user_hash = None
    try:
        user_hash = payload["DisplayClaims"]["xui"][0]["uhs"]
    except (KeyError, IndexError, TypeError):
        pass

    if not token or not user_hash:
        raise _failure(XSTS_STAGE, response, payload, "XSTS authorization")

    logger.info("XSTS authorization succeeded")
    return SecurityToken(token=token, user_hash=user_hash)
