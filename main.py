# =============================================================================
# main.py  —  Entry Point for the FastTrack D365 MCP Server
# =============================================================================
#
# HOW TO RUN:
#   python main.py                              # stdio (MCP clients, Claude Desktop, ...)
#   MCP_TRANSPORT=http PORT=8080 python main.py # streamable HTTP on /mcp
#
# WHAT HAPPENS:
#   1. Loads .env (Graph / Dataverse credentials, transport settings)
#   2. Imports the server, which configures logging and builds the store
#   3. Runs FastMCP on the configured transport
#
# On the HTTP transport the server also answers GET /health.
# =============================================================================

from dotenv import load_dotenv

# Load environment variables from .env BEFORE importing the server: logging
# level (DEBUG) and credentials are read from the environment.
load_dotenv()

import logging

from core.config import load_server_config
from tools.mcp_server import SERVER_NAME, mcp


def main() -> None:
    config = load_server_config()

    if config.transport == "http":
        logging.info(
            f"{SERVER_NAME} (streamable HTTP) listening on "
            f"http://{config.host}:{config.port}/mcp"
        )
        logging.info(f"Health check: http://{config.host}:{config.port}/health")
        mcp.run(transport="http", host=config.host, port=config.port)
    else:
        logging.info(f"{SERVER_NAME} running on stdio")
        mcp.run()


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    main()
