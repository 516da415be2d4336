# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP server (tools/mcp_server.py).
#
# ARCHITECTURAL ROLE:
#   tools/ is the "translation layer" between MCP and the core logic.  Each
#   tool:
#     1. Logs the call
#     2. Calls a function from core/ with the shared store / token provider
#     3. Returns text (markdown for store tools, the formatter's rendering
#        for extraction tools)
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT contain business logic (that's in core/)
#   - They do NOT raise: every failure becomes a text response
#
# TOOL CONTRACT QUALITY:
#   Each tool has a descriptive name, typed parameters (Literal types so the
#   MCP schema lists allowed values), and a docstring the client model reads
#   to decide when to call it.
# =============================================================================
