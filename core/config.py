# =============================================================================
# core/config.py  —  Environment-driven configuration
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads the server's settings from environment variables.  main.py loads
#   a .env file (python-dotenv) before anything here is called, so values
#   may come from either place.
#
# VARIABLES:
#   GRAPH_TENANT_ID / GRAPH_CLIENT_ID / GRAPH_CLIENT_SECRET
#       Microsoft Graph app registration (extract_email)
#   DATAVERSE_TENANT_ID (falls back to GRAPH_TENANT_ID)
#   DATAVERSE_CLIENT_ID / DATAVERSE_CLIENT_SECRET / DATAVERSE_ENVIRONMENT_URL
#       Dataverse app registration (extract_dataverse)
#   HTTP_TIMEOUT_SECONDS   outbound HTTP timeout (default 30)
#   MCP_TRANSPORT          "stdio" (default) or "http"
#   HOST / PORT            bind address for the http transport (default 3000)
#   DEBUG                  "true" switches logging to DEBUG
# =============================================================================

from dataclasses import dataclass
import os
from typing import Optional


GRAPH_SCOPE = "https://graph.microsoft.com/.default"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class GraphAuthConfig:
    tenant_id: str
    client_id: str
    client_secret: str
    scope: str = GRAPH_SCOPE


@dataclass(frozen=True)
class DataverseAuthConfig:
    tenant_id: str
    client_id: str
    client_secret: str
    environment_url: str

    @property
    def scope(self) -> str:
        return f"{self.environment_url.rstrip('/')}/.default"


@dataclass(frozen=True)
class ServerConfig:
    transport: str = "stdio"
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False


def load_graph_config() -> Optional[GraphAuthConfig]:
    """Graph credentials, or None when any of the three variables is unset."""
    tenant_id = os.environ.get("GRAPH_TENANT_ID")
    client_id = os.environ.get("GRAPH_CLIENT_ID")
    client_secret = os.environ.get("GRAPH_CLIENT_SECRET")
    if not tenant_id or not client_id or not client_secret:
        return None
    return GraphAuthConfig(tenant_id, client_id, client_secret)


def load_dataverse_config() -> Optional[DataverseAuthConfig]:
    """Dataverse credentials, or None when incomplete."""
    tenant_id = os.environ.get("DATAVERSE_TENANT_ID") or os.environ.get("GRAPH_TENANT_ID")
    client_id = os.environ.get("DATAVERSE_CLIENT_ID")
    client_secret = os.environ.get("DATAVERSE_CLIENT_SECRET")
    environment_url = os.environ.get("DATAVERSE_ENVIRONMENT_URL")
    if not tenant_id or not client_id or not client_secret or not environment_url:
        return None
    return DataverseAuthConfig(tenant_id, client_id, client_secret, environment_url)


def http_timeout() -> float:
    raw = os.environ.get("HTTP_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT


def debug_enabled() -> bool:
    return os.environ.get("DEBUG", "false").lower() == "true"


def load_server_config() -> ServerConfig:
    """Transport settings for main.py."""
    transport = os.environ.get("MCP_TRANSPORT", "stdio").lower()
    try:
        port = int(os.environ.get("PORT", "3000"))
    except ValueError:
        port = 3000
    return ServerConfig(
        transport=transport,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=port,
        debug=debug_enabled(),
    )
