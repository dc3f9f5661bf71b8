"""
Async REST client for the CTF platform API.

Wraps ``httpx.AsyncClient`` and turns every failure into the client's error
taxonomy, so callers only ever catch ``ApiError`` subclasses.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ctfbot.config import Config
from ctfbot.utils.exceptions import AuthError, NetworkError, ServerError

logger = logging.getLogger(__name__)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        # HTML error pages and plain text never reach the user verbatim
        return None


class PlatformClient:
    """
    Thin async wrapper over the platform's list/get/create/update/delete endpoints.

    Args:
        base_url: API root, e.g. ``https://ctf.example.org/api``
        token: Bearer token; omitted from requests when empty
        timeout: Seconds per request
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        base_url: str = None,
        token: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        token = Config.API_TOKEN if token is None else token
        headers = {'Accept': 'application/json'}
        if token:
            headers['Authorization'] = f'Bearer {token}'
        self._client = httpx.AsyncClient(
            base_url=(base_url or Config.API_BASE_URL).rstrip('/'),
            headers=headers,
            timeout=Config.API_TIMEOUT if timeout is None else timeout,
            transport=transport,
        )

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self) -> "PlatformClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None
    ) -> Any:
        """
        Send one request and return the decoded body.

        Raises:
            NetworkError: No response (connection failure or timeout)
            AuthError: 401 or 403
            ServerError: Any other status >= 400
        """
        operation = f"{method} {path}"
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            logger.warning(f"{operation} timed out: {e}")
            raise NetworkError(operation, "timeout") from e
        except httpx.TransportError as e:
            logger.warning(f"{operation} failed without a response: {e}")
            raise NetworkError(operation, str(e)) from e

        payload = _decode(response)
        if response.status_code in (401, 403):
            raise AuthError(operation, response.status_code, payload)
        if response.status_code >= 400:
            logger.info(f"{operation} returned HTTP {response.status_code}")
            raise ServerError(operation, response.status_code, payload)
        return payload

    # --- resource helpers ---

    async def list(self, resource: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request('GET', f'/{resource.strip("/")}/', params=params)

    async def get(self, resource: str, item_id: Any) -> Any:
        return await self.request('GET', f'/{resource.strip("/")}/{item_id}/')

    async def create(self, resource: str, body: Dict[str, Any]) -> Any:
        return await self.request('POST', f'/{resource.strip("/")}/', json=body)

    async def update(self, resource: str, item_id: Any, body: Dict[str, Any]) -> Any:
        return await self.request('PATCH', f'/{resource.strip("/")}/{item_id}/', json=body)

    async def delete(self, resource: str, item_id: Any) -> Any:
        return await self.request('DELETE', f'/{resource.strip("/")}/{item_id}/')

    async def action(self, resource: str, item_id: Any, action: str, body: Dict[str, Any]) -> Any:
        """POST to a detail action such as ``groups/{id}/remove-member/``."""
        return await self.request('POST', f'/{resource.strip("/")}/{item_id}/{action.strip("/")}/', json=body)
