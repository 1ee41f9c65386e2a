import logging

import httpx

from challenge_api.config import settings

logger = logging.getLogger(__name__)


class UpstreamClient:
    """
    Owner of the shared ``httpx.AsyncClient`` used to reach the upstream
    challenge API.

    The client is created lazily on first use, so service code works even
    when the application lifespan has not run (e.g. in tests driving the
    app through ``ASGITransport``).  Tests may set ``transport`` to an
    ``httpx.MockTransport`` before the first request.
    """

    def __init__(self) -> None:
        self._client: httpx.AsyncClient | None = None
        self.transport: httpx.AsyncBaseTransport | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=settings.UPSTREAM_TIMEOUT,
                transport=self.transport,
            )
            logger.info("Upstream client ready: %s", settings.CHALLENGE_API_URL)

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=settings.UPSTREAM_TIMEOUT,
                transport=self.transport,
            )
        return self._client

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def get_json(self, url: str, params: dict | None = None, token: str | None = None):
        """
        GET *url* and return the decoded JSON body.

        Raises ``httpx.HTTPStatusError`` for 4xx/5xx answers and
        ``httpx.TransportError`` when the upstream is unreachable.
        """
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = await self.client.get(url, params=params, headers=headers)
        response.raise_for_status()
        return response.json()


# Module-level singleton shared across all request handlers.
upstream = UpstreamClient()
