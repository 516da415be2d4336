# =============================================================================
# core/errors.py  —  Exception taxonomy
# =============================================================================
#
# Every FastTrackError carries a message that is safe to show to the caller
# verbatim.  The tool boundary (tools/mcp_server.py) turns these into plain
# text responses; tool calls never fail at the protocol level.
#
#   NotFoundError        missing entity, file content or JSON path value
#   ConfigurationError   credentials / environment URL not configured
#   AuthenticationError  401 from an API, or a failed token request
#   UpstreamApiError     any other non-2xx response from a remote API
#
# Partial extraction and truncation are NOT errors: they are warnings in the
# extraction metadata.
# =============================================================================


class FastTrackError(Exception):
    """Base class for errors whose message is returned to the caller."""


class NotFoundError(FastTrackError):
    pass


class ConfigurationError(FastTrackError):
    pass


class AuthenticationError(FastTrackError):
    pass


class UpstreamApiError(FastTrackError):
    """A remote API answered with a non-2xx, non-401 status."""

    def __init__(self, service: str, status_code: int, body: str) -> None:
        self.service = service
        self.status_code = status_code
        self.body = body
        super().__init__(f"{service} API error ({status_code}): {body[:300]}")
