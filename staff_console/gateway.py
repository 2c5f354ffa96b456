"""
Authenticated request gateway.

Every call to the backend goes through ``ApiGateway.request``, which runs
the same stages in order:

1. attach the session's bearer token (if any)
2. send through the shared ``httpx.AsyncClient``
3. enforce authentication: a 401 terminates the session and raises
   ``SessionExpired``
4. map remaining error statuses onto the console's exceptions
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from staff_console import __version__
from staff_console.config import Settings, get_settings
from staff_console.exceptions import NetworkError, NotFoundError, SessionExpired

if TYPE_CHECKING:
    from staff_console.auth import SessionStore

logger = logging.getLogger("staff_console.gateway")


def create_http_client(settings: Optional[Settings] = None, **kwargs) -> httpx.AsyncClient:
    """Build the client shared by all gateways of the application."""
    settings = settings or get_settings()
    return httpx.AsyncClient(
        base_url=settings.API_BASE_URL,
        timeout=httpx.Timeout(settings.API_TIMEOUT_SECONDS),
        headers={
            "Accept": "application/json",
            "User-Agent": f"staff-console/{__version__}",
        },
        **kwargs,
    )


class ApiGateway:
    def __init__(self, client: httpx.AsyncClient, session: "SessionStore"):
        self._client = client
        self._session = session

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: Optional[dict] = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Optional[dict] = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def request(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        """Send one backend call and return its decoded JSON body (or None)"""
        request = self._client.build_request(method, path.lstrip("/"), json=json)
        self._attach_credential(request)

        try:
            response = await self._client.send(request)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out", method, path)
            raise NetworkError("The server did not respond in time") from e
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError() from e

        logger.debug("%s %s -> %s", method, path, response.status_code)
        self._enforce_authentication(response)
        self._raise_for_status(method, path, response)
        return self._decode(response)

    def _attach_credential(self, request: httpx.Request) -> None:
        token = self._session.token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    def _enforce_authentication(self, response: httpx.Response) -> None:
        if response.status_code == 401:
            self._session.terminate(f"401 from {response.request.url.path}")
            raise SessionExpired()

    @staticmethod
    def _raise_for_status(method: str, path: str, response: httpx.Response) -> None:
        if response.status_code < 400:
            return

        server_message = _server_message(response)
        if response.status_code == 404:
            raise NotFoundError(server_message)

        logger.warning("%s %s returned %s: %s", method, path, response.status_code, server_message)
        raise NetworkError(
            server_message or f"Request failed with status {response.status_code}",
            status_code=response.status_code,
            server_message=server_message,
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError("The server sent an unreadable response", status_code=response.status_code) from e


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] or None

    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return None
