# =============================================================================
# core/auth.py  —  OAuth client-credentials tokens with a per-scope cache
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Acquires bearer tokens for Microsoft Graph and Dataverse from the
#   Microsoft identity platform and caches them by credential-scope name
#   ("graph", "dataverse").
#
# CACHE RULES:
#   A cached token is reused while it has more than 5 minutes of life left.
#   At or past (expiry - 5 minutes) a fresh token is requested and the
#   cache entry overwritten.  A 401 from an API clears the whole cache.
#
# One TokenProvider is created per server process (tools/mcp_server.py) and
# injected into the extractors that need it.
# =============================================================================

from dataclasses import dataclass
import logging
import time
from typing import Callable, Optional

import httpx

from core.config import (
    DataverseAuthConfig,
    GraphAuthConfig,
    http_timeout,
    load_dataverse_config,
    load_graph_config,
)
from core.errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
EXPIRY_MARGIN_SECONDS = 5 * 60


@dataclass
class CachedToken:
    access_token: str
    expires_at: float                  # epoch seconds


class TokenProvider:
    """Token acquisition + cache, keyed by credential-scope name.

    Args:
        graph_config / dataverse_config: Credentials.  When omitted they are
            read from the environment on each request.
        client: Optional shared httpx.AsyncClient (tests inject a mocked one).
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        graph_config: Optional[GraphAuthConfig] = None,
        dataverse_config: Optional[DataverseAuthConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._graph_config = graph_config
        self._dataverse_config = dataverse_config
        self._client = client
        self._clock = clock
        self._cache: dict[str, CachedToken] = {}

    @property
    def graph_config(self) -> Optional[GraphAuthConfig]:
        return self._graph_config or load_graph_config()

    @property
    def dataverse_config(self) -> Optional[DataverseAuthConfig]:
        return self._dataverse_config or load_dataverse_config()

    async def get_token(
        self,
        cache_key: str,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        scope: str,
    ) -> str:
        """Return a cached token for cache_key, or request a new one."""
        now = self._clock()
        cached = self._cache.get(cache_key)
        if cached and cached.expires_at > now + EXPIRY_MARGIN_SECONDS:
            return cached.access_token

        logger.info("Acquiring new token for %s", cache_key)
        form = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": scope,
        }
        url = TOKEN_URL.format(tenant_id=tenant_id)

        if self._client is not None:
            response = await self._client.post(url, data=form)
        else:
            async with httpx.AsyncClient(timeout=http_timeout()) as client:
                response = await client.post(url, data=form)

        if not response.is_success:
            logger.error("Token acquisition failed for %s: %s", cache_key, response.status_code)
            raise AuthenticationError(
                f"Authentication failed ({response.status_code}): Unable to acquire "
                f"token for {cache_key}. Check your credentials."
            )

        payload = response.json()
        token = CachedToken(
            access_token=payload["access_token"],
            expires_at=now + float(payload["expires_in"]),
        )
        self._cache[cache_key] = token
        return token.access_token

    async def get_graph_token(self) -> str:
        config = self.graph_config
        if config is None:
            raise ConfigurationError(
                "Graph API not configured. Set environment variables: "
                "GRAPH_TENANT_ID, GRAPH_CLIENT_ID, GRAPH_CLIENT_SECRET"
            )
        return await self.get_token(
            "graph", config.tenant_id, config.client_id, config.client_secret, config.scope
        )

    async def get_dataverse_token(self) -> str:
        config = self.dataverse_config
        if config is None:
            raise ConfigurationError(
                "Dataverse not configured. Set environment variables: "
                "DATAVERSE_TENANT_ID, DATAVERSE_CLIENT_ID, DATAVERSE_CLIENT_SECRET, "
                "DATAVERSE_ENVIRONMENT_URL"
            )
        return await self.get_token(
            "dataverse", config.tenant_id, config.client_id, config.client_secret, config.scope
        )

    def clear_cache(self) -> None:
        self._cache.clear()
