"""Device code request for the Microsoft identity platform"""

import logging
import time
from typing import Callable

import httpx

from settings import (
    CLIENT_ID,
    DEFAULT_DEVICE_CODE_EXPIRES_IN,
    DEFAULT_POLL_INTERVAL,
    DEVICE_CODE_URL,
    SCOPE,
)
from .errors import ProviderError
from .http import FORM_HEADERS, parse_json, send
from .models import DeviceCodeChallenge


logger = logging.getLogger(__name__)

STAGE = "device_code"
REQUIRED_FIELDS = ("device_code", "user_code", "verification_uri")


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


async def request_device_code(
    client: httpx.AsyncClient,
    clock: Callable[[], float] = time.monotonic,
) -> DeviceCodeChallenge:
    """Request a device code challenge

    Args:
        client: HTTP client
        clock: Clock the expiry deadline is computed against

    Returns:
        DeviceCodeChallenge with an absolute deadline on ``clock``

    Raises:
        ProviderError: If any of device_code, user_code or verification_uri is missing
        NetworkError: On transport failure
    """
    data = {
        "client_id": CLIENT_ID,
        "scope": SCOPE,
    }

    logger.info(f"Requesting device code from {DEVICE_CODE_URL}")
    response = await send(client, "POST", DEVICE_CODE_URL, STAGE, data=data, headers=FORM_HEADERS)
    payload = parse_json(response, STAGE)

    missing = [name for name in REQUIRED_FIELDS if not payload.get(name)]
    if missing:
        logger.error(f"Device code response missing fields {missing}: {response.text}")
        raise ProviderError(
            f"Could not obtain a device code (missing {', '.join(missing)})",
            STAGE,
            error_code=payload.get("error"),
            body=response.text,
            status_code=response.status_code,
        )

    expires_in = _as_int(payload.get("expires_in"), DEFAULT_DEVICE_CODE_EXPIRES_IN)
    interval = _as_int(payload.get("interval"), DEFAULT_POLL_INTERVAL)

    challenge = DeviceCodeChallenge(
        device_code=str(payload["device_code"]),
        user_code=str(payload["user_code"]),
        verification_uri=str(payload["verification_uri"]),
        expires_at=clock() + expires_in,
        poll_interval=max(interval, 1),
        message=payload.get("message"),
    )

    logger.info(f"Obtained device code, user code {challenge.user_code} valid for {expires_in}s")
    return challenge
