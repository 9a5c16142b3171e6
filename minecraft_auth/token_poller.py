"""Token endpoint polling for the device code flow

The poller is a small state machine. ``authorization_pending`` and
``slow_down`` keep it polling; a token, a terminal error code or the device
code deadline end it.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx

from settings import (
    CLIENT_ID,
    DEVICE_CODE_GRANT_TYPE,
    MAX_POLL_INTERVAL,
    MICROSOFT_TOKEN_URL,
    SLOW_DOWN_INCREMENT,
)
from .errors import AuthTimeoutError, NetworkError, ProviderError
from .http import FORM_HEADERS, parse_json, send
from .models import DeviceCodeChallenge, ProviderTokenPair


logger = logging.getLogger(__name__)

STAGE = "token_poll"


class PollState(str, Enum):
    PENDING = "pending"
    SLOW_DOWN = "slow_down"
    SUCCEEDED = "succeeded"
    DENIED = "denied"
    EXPIRED = "expired"


ERROR_STATES = {
    "authorization_pending": PollState.PENDING,
    "slow_down": PollState.SLOW_DOWN,
    "expired_token": PollState.EXPIRED,
}


def classify_poll_response(payload: dict) -> PollState:
    """Map a token endpoint response to the next poll state"""
    if payload.get("access_token"):
        return PollState.SUCCEEDED
    return ERROR_STATES.get(payload.get("error"), PollState.DENIED)


async def poll_for_token(
    client: httpx.AsyncClient,
    challenge: DeviceCodeChallenge,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
    max_interval: int = MAX_POLL_INTERVAL,
) -> ProviderTokenPair:
    """Poll the token endpoint until the user finishes verification

    Args:
        client: HTTP client
        challenge: Challenge from request_device_code; its poll_interval is
            updated in place on slow_down
        sleep: Awaitable sleep function
        clock: Clock matching the one used for challenge.expires_at
        max_interval: Upper bound for the poll interval

    Returns:
        ProviderTokenPair (refresh_token is "" if the provider sent none)

    Raises:
        ProviderError: On a terminal error code (declined, expired, unknown)
        AuthTimeoutError: If the deadline passes without a token
        NetworkError: If the deadline passes and the last poll failed to connect
    """
    # Scope is deliberately absent: it was consented when the code was issued
    data = {
        "grant_type": DEVICE_CODE_GRANT_TYPE,
        "client_id": CLIENT_ID,
        "device_code": challenge.device_code,
    }

    attempts = 0
    last_network_error: Optional[NetworkError] = None

    while True:
        remaining = challenge.expires_at - clock()
        if remaining <= 0:
            break

        # Never poll immediately. A clamped wait ends at the deadline, so no
        # request follows it even if the timer fires early.
        wait = min(challenge.poll_interval, remaining)
        await sleep(wait)
        if wait < challenge.poll_interval or clock() >= challenge.expires_at:
            break

        attempts += 1
        logger.debug(f"Polling token endpoint (attempt {attempts}, interval {challenge.poll_interval}s)")

        try:
            response = await send(client, "POST", MICROSOFT_TOKEN_URL, STAGE, data=data, headers=FORM_HEADERS)
        except NetworkError as e:
            logger.warning(f"Token poll failed, will retry: {e}")
            last_network_error = e
            continue

        last_network_error = None
        payload = parse_json(response, STAGE)
        state = classify_poll_response(payload)

        if state is PollState.SUCCEEDED:
            logger.info(f"User completed verification after {attempts} poll(s)")
            return ProviderTokenPair(
                access_token=payload["access_token"],
                refresh_token=payload.get("refresh_token") or "",
            )

        if state is PollState.PENDING:
            continue

        if state is PollState.SLOW_DOWN:
            challenge.poll_interval = min(challenge.poll_interval + SLOW_DOWN_INCREMENT, max_interval)
            logger.info(f"Provider asked to slow down, poll interval now {challenge.poll_interval}s")
            continue

        error_code = payload.get("error")
        description = payload.get("error_description") or ""
        logger.error(f"Token polling stopped with error {error_code}: {description}")
        raise ProviderError(
            f"Device code login failed: {error_code or 'no access token in response'}",
            STAGE,
            error_code=error_code,
            body=response.text,
            status_code=response.status_code,
        )

    if last_network_error is not None:
        raise last_network_error

    logger.error("Device code expired before the user completed verification")
    raise AuthTimeoutError("Login timed out, please try again", STAGE)
