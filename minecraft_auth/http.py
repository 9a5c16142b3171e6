"""HTTP helpers shared by every pipeline stage"""

import json
import logging
from typing import Any, Dict

import httpx

from settings import REQUEST_TIMEOUT
from .errors import NetworkError, ProviderError


logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}
FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


def create_client() -> httpx.AsyncClient:
    """Create the HTTP client used for one chain attempt"""
    return httpx.AsyncClient(timeout=REQUEST_TIMEOUT)


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    stage: str,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request, mapping transport failures to NetworkError

    Args:
        client: HTTP client
        method: HTTP method
        url: Request URL
        stage: Pipeline stage name used in errors and logs
        **kwargs: Passed through to ``client.request``

    Returns:
        The response (any status)

    Raises:
        NetworkError: On timeout, connection failure, HTTP 429 or 5xx
    """
    kwargs.setdefault("timeout", REQUEST_TIMEOUT)

    try:
        logger.debug(f"[{stage}] {method} {url}")
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        logger.error(f"[{stage}] Request timed out: {e}")
        raise NetworkError(f"Request timed out: {e}", stage) from e
    except httpx.RequestError as e:
        logger.error(f"[{stage}] Request failed: {e}")
        raise NetworkError(f"Request failed: {e}", stage) from e

    logger.debug(f"[{stage}] Response status: {response.status_code}")

    if response.status_code == 429 or response.status_code >= 500:
        logger.error(f"[{stage}] Transient server error {response.status_code}")
        raise NetworkError(f"Server returned HTTP {response.status_code}", stage)

    return response


def parse_json(response: httpx.Response, stage: str) -> Dict[str, Any]:
    """Decode a JSON object body

    Raises:
        ProviderError: If the body is not a JSON object
    """
    try:
        payload = response.json()
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"[{stage}] Failed to parse response: {e}")
        raise ProviderError(
            f"Response is not valid JSON (HTTP {response.status_code})",
            stage,
            body=response.text,
            status_code=response.status_code,
        ) from e

    if not isinstance(payload, dict):
        raise ProviderError(
            "Response is not a JSON object",
            stage,
            body=response.text,
            status_code=response.status_code,
        )
    return payload
