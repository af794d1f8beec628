"""
Low-level HTTP request library for OpenWeather API communication.
This module handles all HTTP requests and maps transport and HTTP failures onto
the integration's error kinds.
"""
import asyncio
import logging
import aiohttp

from .const import REQUEST_TIMEOUT
from .errors import NetworkError, UpstreamError

_LOGGER = logging.getLogger(__name__)


async def make_request(
    method: str,
    url: str,
    headers: dict | None = None,
    payload: dict = None,
    params: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = 1
):
    """
    Make an HTTP request, optionally retrying on timeout.

    Args:
        method: HTTP method (GET, POST, PUT)
        url: Target URL for the request
        headers: HTTP headers dictionary
        payload: JSON payload for POST/PUT requests (optional)
        params: URL query parameters (optional)
        timeout: Base timeout in seconds (multiplied by attempt number for each retry)
        max_attempts: Maximum number of attempts; 1 means no retry

    Returns:
        Parsed JSON response

    Raises:
        UpstreamError: Non-2xx response or a 2xx response that is not JSON
        NetworkError: Transport failure or timeout on the last attempt
    """
    method = method.upper()
    if method not in ("GET", "POST", "PUT"):
        raise ValueError(f"Unsupported HTTP method: {method}")
    headers = headers or {"accept": "application/json"}

    for attempt in range(max_attempts):
        timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.request(
                    method, url, headers=headers, json=payload, params=params
                ) as response:
                    return await _process_response(response, url)

        except (asyncio.TimeoutError, TimeoutError) as e:
            if attempt < max_attempts - 1:
                continue
            _LOGGER.warning(
                "Timeout on %s request to %s after %s attempt(s)",
                method, url, max_attempts
            )
            raise NetworkError(f"Timeout while calling {url}") from e

        except aiohttp.ClientError as e:
            _LOGGER.warning("Transport error on %s request to %s: %s", method, url, e)
            raise NetworkError(f"Could not reach {url}: {e}") from e

    # Only reachable with max_attempts < 1
    raise NetworkError(f"No request attempted for {url}")


async def _process_response(response, url: str):
    """
    Process HTTP response and extract JSON data.

    Args:
        response: aiohttp response object
        url: Request URL (for logging)

    Returns:
        Parsed JSON response

    Raises:
        UpstreamError: For non-2xx responses and non-JSON success bodies
    """
    content_type = response.headers.get('Content-Type', '')

    if 200 <= response.status < 300:
        if 'application/json' in content_type:
            return await response.json()
        text = await response.text()
        _LOGGER.warning(
            "Unexpected content type in successful response: %s from %s",
            content_type, url
        )
        raise UpstreamError(response.status, text, url)

    text = await response.text()
    _LOGGER.error(
        "API error from %s: status %s, body preview: %s",
        url, response.status, text[:200]
    )
    raise UpstreamError(response.status, text, url)
