"""
Shared HTTP plumbing for the backend collaborators.
"""

from typing import Optional

import httpx

from storewizard.config.settings import Settings, get_settings
from storewizard.utils.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class BackendClient:
    """
    Base class owning an ``httpx.AsyncClient``.

    A client passed in by the caller is used as is and never closed here.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        return self.settings.api_base_url

    def _endpoint(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self, authenticated: bool = True) -> dict[str, str]:
        """Request headers; the backend token is only sent to ``api_base_url``."""
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if authenticated:
            headers.update(self.settings.get_auth_headers())
        return headers

    async def connect(self) -> httpx.AsyncClient:
        """Initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self.settings.request_timeout_seconds,
                    connect=10.0,
                ),
                limits=httpx.Limits(
                    max_keepalive_connections=5,
                    max_connections=10,
                ),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
