"""
Base service class for the CTF Arena client.

Provides the shared platform client and retry logic for read operations.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List

from ctfbot.api.client import PlatformClient
from ctfbot.utils.exceptions import NetworkError, UnrecognizedEnvelopeError

logger = logging.getLogger(__name__)


def unwrap_list(payload: Any, resource: str) -> List[Any]:
    """
    Accept a bare array or any envelope carrying ``results``.

    Raises:
        UnrecognizedEnvelopeError: For anything else
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get('results'), list):
        return payload['results']
    raise UnrecognizedEnvelopeError(resource, payload)


class BaseService:
    """Base class for all services talking to the platform API."""

    def __init__(self, client: PlatformClient):
        """
        Initialize base service with the shared client.

        Args:
            client: PlatformClient owned by the bot
        """
        self.client = client

    async def execute_with_retry(self, func: Callable[[], Awaitable[Any]], max_retries: int = 3) -> Any:
        """Run a read, retrying only when no response arrived."""
        for attempt in range(max_retries):
            try:
                return await func()
            except NetworkError as e:
                if attempt == max_retries - 1:
                    raise
                logger.warning(f"Retry attempt {attempt + 1} for {getattr(func, '__name__', func)}: {e}")
                await asyncio.sleep(0.1 * (2 ** attempt))  # Exponential backoff
