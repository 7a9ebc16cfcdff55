"""GitHub OAuth device flow authentication."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when no usable GitHub token could be obtained."""


class DeviceFlowAuthenticator:
    """Obtains a GitHub access token through the OAuth device flow.

    The user is shown a verification URL and a one-time code; the
    authenticator then polls the token endpoint at the interval GitHub asks
    for until the user approves, denies, or the code expires.
    """

    DEVICE_CODE_URL = "https://github.com/login/device/code"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"

    def __init__(
        self,
        client_id: str | None,
        scope: str = "user repo",
        client: httpx.AsyncClient | None = None,
        on_prompt: Callable[[str, str], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the authenticator.

        Args:
            client_id: GitHub OAuth app client id.
            scope: OAuth scopes to request.
            client: Optional httpx client.
            on_prompt: Called with (verification_uri, user_code) once known.
            sleep: Coroutine function used between polls.
            clock: Monotonic clock for the expiry deadline.
        """
        self.client_id = client_id
        self.scope = scope
        self._client = client
        self._on_prompt = on_prompt
        self._sleep = sleep
        self._clock = clock

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=30.0)

    async def _post(self, url: str, data: dict) -> dict:
        client = await self._get_client()
        try:
            response = await client.post(url, data=data, headers={"Accept": "application/json"})
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()

    async def authenticate(self, token: str | None = None) -> str:
        """Return a supplied token, or run the device flow for a new one.

        Raises:
            AuthenticationError: If the flow is denied, expires, or cannot start.
        """
        if token and token.strip():
            logger.info("Using GitHub token from configuration")
            return token.strip()

        if not self.client_id:
            raise AuthenticationError("GITHUB_CLIENT_ID is required for device flow login")

        logger.info("Initiating GitHub device flow authentication...")
        try:
            codes = await self._post(
                self.DEVICE_CODE_URL,
                {"client_id": self.client_id, "scope": self.scope},
            )
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Could not start device flow: {e}") from e

        if "device_code" not in codes:
            raise AuthenticationError(
                f"Device flow rejected: {codes.get('error_description') or codes.get('error')}"
            )

        if self._on_prompt:
            self._on_prompt(codes["verification_uri"], codes["user_code"])

        return await self._poll(
            codes["device_code"],
            interval=float(codes.get("interval", 5)),
            expires_in=float(codes.get("expires_in", 900)),
        )

    async def _poll(self, device_code: str, interval: float, expires_in: float) -> str:
        deadline = self._clock() + expires_in

        while self._clock() < deadline:
            await self._sleep(interval)
            try:
                data = await self._post(
                    self.TOKEN_URL,
                    {
                        "client_id": self.client_id,
                        "device_code": device_code,
                        "grant_type": self.GRANT_TYPE,
                    },
                )
            except httpx.HTTPError as e:
                logger.warning(f"Polling error: {e}")
                continue

            if data.get("access_token"):
                logger.info("Authentication successful")
                return data["access_token"]

            error = data.get("error")
            if error == "slow_down":
                interval += 5
            elif error in ("expired_token", "access_denied"):
                raise AuthenticationError(f"Device flow failed: {error}")
            elif error and error != "authorization_pending":
                raise AuthenticationError(
                    f"Device flow failed: {data.get('error_description') or error}"
                )

        raise AuthenticationError("Authentication timed out")
