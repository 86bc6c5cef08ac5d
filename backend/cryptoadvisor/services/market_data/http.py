"""
Shared HTTP session for market data providers.

One aiohttp session per process, created lazily inside the running loop.
Requests go through request_json(), which maps failures onto the
TransportError / DataFormatError taxonomy.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from cryptoadvisor.core.config import settings
from cryptoadvisor.services.base import DataFormatError, TransportError

logger = logging.getLogger(__name__)


class HTTPSession:
    """Lazily created aiohttp session shared by all providers."""

    def __init__(self, user_agent: Optional[str] = None):
        self._user_agent = user_agent or settings.http_user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    async def get(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "User-Agent": self._user_agent,
                    "Accept": "application/json",
                }
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None


async def request_json(
    http: HTTPSession,
    method: str,
    url: str,
    *,
    service_name: str,
    timeout: float,
    **kwargs,
) -> Any:
    """
    Issue one request and decode the JSON body.

    Raises:
        TransportError: network failure, timeout or non-200 status
        DataFormatError: body is not valid JSON
    """
    logger.debug(f"API REQUEST {method} {url} {kwargs.get('params') or ''}")
    try:
        session = await http.get()
        async with session.request(
            method,
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            **kwargs,
        ) as resp:
            if resp.status != 200:
                body = await resp.text()
                raise TransportError(
                    service_name,
                    f"HTTP {resp.status} from {url}",
                    {"status": resp.status, "body": body[:500]},
                )
            payload = await resp.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise TransportError(
            service_name, f"Request to {url} failed: {str(e) or type(e).__name__}"
        ) from e
    except ValueError as e:
        raise DataFormatError(service_name, f"Invalid JSON from {url}: {e}") from e

    logger.debug(f"API RESPONSE 200 {url}")
    return payload


# Singleton instance
_http_instance: Optional[HTTPSession] = None


def get_http_session() -> HTTPSession:
    """Get or create the shared HTTP session."""
    global _http_instance
    if _http_instance is None:
        _http_instance = HTTPSession()
    return _http_instance


async def close_http_session() -> None:
    """Close the shared HTTP session. Called on application shutdown."""
    if _http_instance is not None:
        await _http_instance.close()
