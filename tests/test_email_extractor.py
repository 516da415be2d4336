import httpx
import pytest
import respx

from core.auth import CachedToken, TokenProvider
from core.config import GraphAuthConfig
from core.email_extractor import (
    EMAIL_FIELD_HINTS,
    build_messages_request,
    extract_email,
    message_to_record,
)
from core.errors import AuthenticationError, ConfigurationError, UpstreamApiError

GRAPH_HOST = "graph.microsoft.com"
INBOX_PATH = "/v1.0/me/mailFolders/Inbox/messages"

MESSAGE = {
    "id": "AAMk1",
    "subject": "Go-live cutover plan",
    "from": {"emailAddress": {"name": "Jane Smith", "address": "jane@contoso.com"}},
    "receivedDateTime": "2026-03-01T09:30:00Z",
    "bodyPreview": "preview",
    "body": {"contentType": "html", "content": "<p>Cutover&nbsp;on <b>Friday</b></p>"},
    "hasAttachments": True,
    "importance": "high",
    "toRecipients": [
        {"emailAddress": {"address": "a@fabrikam.com"}},
        {"emailAddress": {"address": "b@fabrikam.com"}},
    ],
}


def test_message_to_record_converts_html_body():
    assert message_to_record(MESSAGE) == {
        "id": "AAMk1",
        "subject": "Go-live cutover plan",
        "fromName": "Jane Smith",
        "fromEmail": "jane@contoso.com",
        "receivedDateTime": "2026-03-01T09:30:00Z",
        "body": "Cutover on Friday",
        "hasAttachments": True,
        "importance": "high",
        "toRecipients": "a@fabrikam.com, b@fabrikam.com",
    }


def test_message_to_record_defaults():
    record = message_to_record({"id": "x", "bodyPreview": "short preview"})
    assert record["body"] == "short preview"
    assert record["fromName"] == ""
    assert record["fromEmail"] == ""
    assert record["toRecipients"] is None


def test_message_body_capped_at_5000_chars():
    record = message_to_record({"body": {"contentType": "text", "content": "y" * 6000}})
    assert len(record["body"]) == 5000


def test_build_request_for_shared_mailbox_with_filters():
    url, params = build_messages_request(
        mailbox="pmo@contoso.com",
        folder="Archive",
        query="cutover plan",
        from_date="2026-01-01",
        to_date="2026-01-31",
        max_results=200,
    )
    assert url == "https://graph.microsoft.com/v1.0/users/pmo@contoso.com/mailFolders/Archive/messages"
    assert params["$top"] == "50"
    assert params["$orderby"] == "receivedDateTime desc"
    assert params["$filter"] == (
        "receivedDateTime ge 2026-01-01T00:00:00Z and receivedDateTime le 2026-01-31T23:59:59Z"
    )
    assert params["$search"] == '"cutover plan"'


def test_build_request_defaults():
    url, params = build_messages_request()
    assert url.endswith("/me/mailFolders/Inbox/messages")
    assert params["$top"] == "10"
    assert "$filter" not in params
    assert "$search" not in params


@pytest.mark.asyncio
@respx.mock
async def test_extract_email_with_caller_token():
    route = respx.get(host=GRAPH_HOST, path=INBOX_PATH).mock(
        return_value=httpx.Response(
            200,
            json={"value": [MESSAGE], "@odata.nextLink": "https://graph.microsoft.com/next"},
        )
    )
    async with httpx.AsyncClient() as client:
        result = await extract_email(
            TokenProvider(), query="cutover", max_results=1, access_token="caller-token", client=client
        )

    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer caller-token"
    assert request.headers["ConsistencyLevel"] == "eventual"
    assert request.url.params["$top"] == "1"
    assert request.url.params["$search"] == '"cutover"'

    assert result.metadata.source == "email"
    assert result.field_hints == EMAIL_FIELD_HINTS
    assert result.records[0]["subject"] == "Go-live cutover plan"
    assert result.metadata.warnings == ["More emails available. Showing first 1 results."]


@pytest.mark.asyncio
@respx.mock
async def test_empty_folder_has_no_warnings():
    respx.get(host=GRAPH_HOST, path=INBOX_PATH).mock(return_value=httpx.Response(200, json={"value": []}))
    async with httpx.AsyncClient() as client:
        result = await extract_email(TokenProvider(), access_token="t", client=client)

    assert result.records == []
    assert result.metadata.warnings == []


@pytest.mark.asyncio
@respx.mock
async def test_401_clears_token_cache():
    respx.get(host=GRAPH_HOST, path=INBOX_PATH).mock(return_value=httpx.Response(401, text="expired"))
    provider = TokenProvider(graph_config=GraphAuthConfig("t", "c", "s"))
    provider._cache["graph"] = CachedToken("old", 1e12)

    async with httpx.AsyncClient() as client:
        with pytest.raises(AuthenticationError, match="Graph API credentials"):
            await extract_email(provider, client=client)

    assert provider._cache == {}


@pytest.mark.asyncio
@respx.mock
async def test_other_errors_raise_upstream_error():
    respx.get(host=GRAPH_HOST, path=INBOX_PATH).mock(return_value=httpx.Response(500, text="boom"))
    async with httpx.AsyncClient() as client:
        with pytest.raises(UpstreamApiError) as excinfo:
            await extract_email(TokenProvider(), access_token="t", client=client)

    assert str(excinfo.value) == "Graph API error (500): boom"
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_no_token_and_no_credentials(no_credentials):
    with pytest.raises(ConfigurationError):
        await extract_email(TokenProvider())
