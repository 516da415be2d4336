import httpx
import pytest
import respx

from core.auth import CachedToken, TokenProvider
from core.config import DataverseAuthConfig
from core.dataverse_extractor import build_query, extract_dataverse, strip_odata_annotations
from core.errors import AuthenticationError, ConfigurationError, NotFoundError, UpstreamApiError

ENV_URL = "https://org.crm.dynamics.com/"
HOST = "org.crm.dynamics.com"
ACCOUNTS_PATH = "/api/data/v9.2/accounts"
NEXT_LINK = "https://org.crm.dynamics.com/api/data/v9.2/accounts?$skiptoken=page2"


def _page(names, next_link=None):
    body = {
        "value": [
            {"@odata.etag": 'W/"1"', "name": n, "_parentaccountid_value": None} for n in names
        ]
    }
    if next_link:
        body["@odata.nextLink"] = next_link
    return httpx.Response(200, json=body)


def test_strip_odata_annotations():
    row = {
        "@odata.etag": 'W/"123"',
        "@Microsoft.Dynamics.CRM.totalrecordcount": 4,
        "_ownerid_value": "guid",
        "name": "Contoso",
        "accountid": "guid-1",
        "statecode@OData.Community.Display.V1.FormattedValue": "Active",
    }
    assert strip_odata_annotations(row) == {
        "name": "Contoso",
        "accountid": "guid-1",
        "statecode@OData.Community.Display.V1.FormattedValue": "Active",
    }


def test_build_query_only_includes_given_options():
    assert build_query(top=10) == {"$top": "10"}
    assert build_query("name", "statecode eq 0", "primarycontactid", 5, "name asc") == {
        "$top": "5",
        "$select": "name",
        "$filter": "statecode eq 0",
        "$expand": "primarycontactid",
        "$orderby": "name asc",
    }


@pytest.mark.asyncio
@respx.mock
async def test_follows_next_link_and_trims_to_top():
    route = respx.get(host=HOST, path=ACCOUNTS_PATH).mock(
        side_effect=[_page(["A", "B"], NEXT_LINK), _page(["C", "D"], NEXT_LINK)]
    )
    async with httpx.AsyncClient() as client:
        result = await extract_dataverse(
            TokenProvider(),
            "accounts",
            select="name",
            top=3,
            environment_url=ENV_URL,
            access_token="tok",
            client=client,
        )

    assert route.call_count == 2
    first, second = route.calls
    assert first.request.url.params["$top"] == "3"
    assert first.request.url.params["$select"] == "name"
    assert first.request.headers["Authorization"] == "Bearer tok"
    assert first.request.headers["OData-Version"] == "4.0"
    assert second.request.url.params["$skiptoken"] == "page2"

    assert result.metadata.source == "dataverse"
    assert result.records == [{"name": "A"}, {"name": "B"}, {"name": "C"}]
    assert result.metadata.warnings == ["More records available in Dataverse. Showing first 3 results."]


@pytest.mark.asyncio
@respx.mock
async def test_stops_after_five_pages_without_warning():
    route = respx.get(host=HOST, path=ACCOUNTS_PATH).mock(
        return_value=_page([f"row{i}" for i in range(10)], NEXT_LINK)
    )
    async with httpx.AsyncClient() as client:
        result = await extract_dataverse(
            TokenProvider(), "accounts", top=100, environment_url=ENV_URL, access_token="tok", client=client
        )

    assert route.call_count == 5
    assert len(result.records) == 50
    assert result.metadata.warnings == []


@pytest.mark.asyncio
@respx.mock
async def test_top_defaults_to_50_and_caps_at_500():
    route = respx.get(host=HOST, path=ACCOUNTS_PATH).mock(return_value=_page([]))
    async with httpx.AsyncClient() as client:
        await extract_dataverse(
            TokenProvider(), "accounts", top=None, environment_url=ENV_URL, access_token="t", client=client
        )
        await extract_dataverse(
            TokenProvider(), "accounts", top=9000, environment_url=ENV_URL, access_token="t", client=client
        )

    assert [c.request.url.params["$top"] for c in route.calls] == ["50", "500"]


@pytest.mark.asyncio
@respx.mock
async def test_unknown_table_is_not_found():
    respx.get(host=HOST, path="/api/data/v9.2/acounts").mock(return_value=httpx.Response(404))
    async with httpx.AsyncClient() as client:
        with pytest.raises(NotFoundError, match="Table 'acounts' not found"):
            await extract_dataverse(
                TokenProvider(), "acounts", environment_url=ENV_URL, access_token="t", client=client
            )


@pytest.mark.asyncio
@respx.mock
async def test_401_clears_token_cache():
    respx.get(host=HOST, path=ACCOUNTS_PATH).mock(return_value=httpx.Response(401))
    provider = TokenProvider(dataverse_config=DataverseAuthConfig("t", "c", "s", ENV_URL))
    provider._cache["dataverse"] = CachedToken("cached", 1e12)

    async with httpx.AsyncClient() as client:
        with pytest.raises(AuthenticationError, match="Dataverse credentials"):
            await extract_dataverse(provider, "accounts", client=client)

    assert provider._cache == {}


@pytest.mark.asyncio
@respx.mock
async def test_server_error_is_upstream_error():
    respx.get(host=HOST, path=ACCOUNTS_PATH).mock(return_value=httpx.Response(503, text="unavailable"))
    async with httpx.AsyncClient() as client:
        with pytest.raises(UpstreamApiError, match=r"Dataverse API error \(503\): unavailable"):
            await extract_dataverse(
                TokenProvider(), "accounts", environment_url=ENV_URL, access_token="t", client=client
            )


@pytest.mark.asyncio
async def test_missing_environment_url(no_credentials):
    with pytest.raises(ConfigurationError, match="DATAVERSE_ENVIRONMENT_URL"):
        await extract_dataverse(TokenProvider(), "accounts", access_token="tok")
