# =============================================================================
# core/email_extractor.py  —  Microsoft Graph mail -> records
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads one page of messages from a mailbox folder through the Graph API
#   and normalizes each message into a flat record:
#       id, subject, fromName, fromEmail, receivedDateTime, body,
#       hasAttachments, importance, toRecipients
#
# ONE PAGE ONLY:
#   At most 50 messages are fetched.  If Graph reports more, a warning is
#   added; the continuation link is never followed.
#
# AUTH:
#   A caller-supplied access token wins.  Otherwise the TokenProvider's
#   "graph" token is used.  A 401 clears the provider's cache so the next
#   call requests a fresh token.
# =============================================================================

import logging
from typing import Any, Optional

import httpx

from core.auth import TokenProvider
from core.config import http_timeout
from core.errors import AuthenticationError, UpstreamApiError
from core.html_text import html_to_text
from core.models import ExtractionResult, Record

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
MAX_MESSAGES = 50
MAX_BODY_CHARS = 5000

MESSAGE_FIELDS = (
    "id,subject,from,receivedDateTime,bodyPreview,body,"
    "hasAttachments,importance,toRecipients"
)

EMAIL_FIELD_HINTS = {
    "id": "Graph message ID",
    "subject": "Email subject line",
    "fromName": "Sender display name",
    "fromEmail": "Sender email address",
    "receivedDateTime": "When the email was received (ISO 8601)",
    "body": "Email body as plain text",
    "hasAttachments": "Whether the email has attachments",
    "importance": "Email importance level",
    "toRecipients": "Comma-separated recipient addresses",
}


def build_messages_request(
    mailbox: Optional[str] = None,
    folder: Optional[str] = "Inbox",
    query: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    max_results: Optional[int] = 10,
) -> tuple[str, dict[str, str]]:
    """Return (url, query params) for a folder listing."""
    user_path = f"users/{mailbox}" if mailbox else "me"
    url = f"{GRAPH_BASE_URL}/{user_path}/mailFolders/{folder or 'Inbox'}/messages"

    params = {
        "$top": str(min(max_results or 10, MAX_MESSAGES)),
        "$select": MESSAGE_FIELDS,
        "$orderby": "receivedDateTime desc",
    }

    filters = []
    if from_date:
        filters.append(f"receivedDateTime ge {from_date}T00:00:00Z")
    if to_date:
        filters.append(f"receivedDateTime le {to_date}T23:59:59Z")
    if filters:
        params["$filter"] = " and ".join(filters)

    # $search needs ConsistencyLevel: eventual (set on the request headers)
    if query:
        params["$search"] = f'"{query}"'

    return url, params


def message_to_record(message: dict[str, Any]) -> Record:
    """Flatten one Graph message.  HTML bodies are converted to plain text."""
    body_text = message.get("bodyPreview") or ""
    body = message.get("body") or {}
    if body.get("content"):
        if body.get("contentType") == "html":
            body_text = html_to_text(body["content"])
        else:
            body_text = body["content"]

    sender = (message.get("from") or {}).get("emailAddress") or {}
    recipients = message.get("toRecipients")

    return {
        "id": message.get("id"),
        "subject": message.get("subject"),
        "fromName": sender.get("name") or "",
        "fromEmail": sender.get("address") or "",
        "receivedDateTime": message.get("receivedDateTime"),
        "body": body_text[:MAX_BODY_CHARS],
        "hasAttachments": message.get("hasAttachments"),
        "importance": message.get("importance"),
        "toRecipients": (
            ", ".join(r["emailAddress"]["address"] for r in recipients)
            if recipients is not None
            else None
        ),
    }


async def extract_email(
    token_provider: TokenProvider,
    mailbox: Optional[str] = None,
    folder: Optional[str] = "Inbox",
    query: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    max_results: Optional[int] = 10,
    access_token: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ExtractionResult:
    """Fetch one page of messages and normalize them.

    Raises:
        ConfigurationError: no access_token and Graph is not configured.
        AuthenticationError: token request failed, or Graph answered 401.
        UpstreamApiError: any other non-2xx answer.
    """
    token = access_token or await token_provider.get_graph_token()
    url, params = build_messages_request(mailbox, folder, query, from_date, to_date, max_results)
    headers = {
        "Authorization": f"Bearer {token}",
        "Accept": "application/json",
        "ConsistencyLevel": "eventual",
    }

    logger.debug("GET %s params=%s", url, params)
    if client is not None:
        response = await client.get(url, params=params, headers=headers)
    else:
        async with httpx.AsyncClient(timeout=http_timeout()) as session:
            response = await session.get(url, params=params, headers=headers)

    if not response.is_success:
        logger.error("Graph API error: %s %s", response.status_code, response.text[:200])
        if response.status_code == 401:
            token_provider.clear_cache()
            raise AuthenticationError(
                "Authentication failed (401). Token may be expired or invalid. "
                "Please check your Graph API credentials."
            )
        raise UpstreamApiError("Graph", response.status_code, response.text)

    data = response.json()
    records = [message_to_record(m) for m in data.get("value") or []]

    warnings = []
    if data.get("@odata.nextLink"):
        warnings.append(f"More emails available. Showing first {len(records)} results.")

    return ExtractionResult.build("email", records, warnings=warnings, field_hints=EMAIL_FIELD_HINTS)
