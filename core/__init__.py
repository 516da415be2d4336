# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL business logic for the FastTrack MCP server:
# the record store, the extraction sources, the path/flatten/HTML helpers,
# the code scanner, and the output formatter.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP.  Every function here takes
#   plain arguments (and, where it needs shared state, an injected store or
#   token provider) and returns plain data or text.  The tools/ layer wires
#   these functions to MCP.
# =============================================================================
