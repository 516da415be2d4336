# =============================================================================
# core/dataverse_extractor.py  —  Dataverse Web API (OData v9.2) -> records
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Queries one Dataverse table and returns its rows as records, with the
#   OData annotation keys removed:
#       "@odata.etag", "@Microsoft.Dynamics.CRM...", "_parentid_value", ...
#
# PAGINATION:
#   Follows "@odata.nextLink" until `top` records are collected or 5 pages
#   have been read, whichever comes first.  `top` defaults to 50 and is
#   capped at 500.  Anything left over is reported as a warning.
# =============================================================================

import logging
from typing import Any, Optional

import httpx

from core.auth import TokenProvider
from core.config import http_timeout
from core.errors import (
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
    UpstreamApiError,
)
from core.models import ExtractionResult, Record

logger = logging.getLogger(__name__)

API_PATH = "/api/data/v9.2"
DEFAULT_TOP = 50
MAX_TOP = 500
MAX_PAGES = 5

ODATA_HEADERS = {
    "Accept": "application/json",
    "OData-MaxVersion": "4.0",
    "OData-Version": "4.0",
    "Prefer": "odata.include-annotations=*",
}


def strip_odata_annotations(row: dict[str, Any]) -> Record:
    """Drop @odata.*, @Microsoft.* and _<lookup>_value keys."""
    return {
        key: value
        for key, value in row.items()
        if not (
            key.startswith("@odata.")
            or key.startswith("@Microsoft.")
            or (key.startswith("_") and key.endswith("_value"))
        )
    }


def build_query(
    select: Optional[str] = None,
    filter: Optional[str] = None,
    expand: Optional[str] = None,
    top: int = DEFAULT_TOP,
    order_by: Optional[str] = None,
) -> dict[str, str]:
    params = {"$top": str(top)}
    if select:
        params["$select"] = select
    if filter:
        params["$filter"] = filter
    if expand:
        params["$expand"] = expand
    if order_by:
        params["$orderby"] = order_by
    return params


async def extract_dataverse(
    token_provider: TokenProvider,
    table: str,
    select: Optional[str] = None,
    filter: Optional[str] = None,
    expand: Optional[str] = None,
    top: Optional[int] = DEFAULT_TOP,
    order_by: Optional[str] = None,
    environment_url: Optional[str] = None,
    access_token: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ExtractionResult:
    """Read up to `top` rows of a Dataverse table.

    Args:
        token_provider: Supplies the "dataverse" token when access_token is
            not given.
        table: Logical (entity set) name, e.g. "accounts".
        select / filter / expand / order_by: Passed through as the OData
            $select, $filter, $expand and $orderby options.
        top: Records wanted (default 50, capped at 500).
        environment_url: Overrides DATAVERSE_ENVIRONMENT_URL.
        access_token: Pre-acquired bearer token.
        client: Optional shared httpx.AsyncClient.

    Raises:
        ConfigurationError: no environment URL, or credentials missing.
        AuthenticationError: token request failed, or Dataverse answered 401.
        NotFoundError: the table does not exist (404).
        UpstreamApiError: any other non-2xx answer.
    """
    token = access_token or await token_provider.get_dataverse_token()

    config = token_provider.dataverse_config
    env_url = environment_url or (config.environment_url if config else None)
    if not env_url:
        raise ConfigurationError(
            "Dataverse environment URL not provided. Set DATAVERSE_ENVIRONMENT_URL "
            "or pass environment_url parameter."
        )

    max_top = min(top or DEFAULT_TOP, MAX_TOP)
    base_url = f"{env_url.rstrip('/')}{API_PATH}/{table}"
    headers = {"Authorization": f"Bearer {token}", **ODATA_HEADERS}

    params = build_query(select, filter, expand, max_top, order_by)

    if client is not None:
        records, next_link = await _fetch_pages(
            client, token_provider, table, base_url, params, headers, max_top
        )
    else:
        async with httpx.AsyncClient(timeout=http_timeout()) as session:
            records, next_link = await _fetch_pages(
                session, token_provider, table, base_url, params, headers, max_top
            )

    records = records[:max_top]

    warnings = []
    if next_link and len(records) >= max_top:
        warnings.append(
            f"More records available in Dataverse. Showing first {len(records)} results."
        )

    return ExtractionResult.build("dataverse", records, warnings=warnings)


async def _fetch_pages(
    client: httpx.AsyncClient,
    token_provider: TokenProvider,
    table: str,
    base_url: str,
    params: dict[str, str],
    headers: dict[str, str],
    max_top: int,
) -> tuple[list[Record], Optional[str]]:
    """Collect rows page by page.  Returns (rows, unfollowed nextLink)."""
    records: list[Record] = []
    url: Optional[str] = base_url
    page_params: Optional[dict[str, str]] = params
    pages = 0

    while url and len(records) < max_top and pages < MAX_PAGES:
        logger.debug("GET %s (page %d)", url, pages + 1)
        response = await client.get(url, params=page_params, headers=headers)

        if not response.is_success:
            logger.error("Dataverse API error: %s %s", response.status_code, response.text[:200])
            if response.status_code == 401:
                token_provider.clear_cache()
                raise AuthenticationError(
                    "Authentication failed (401). Token may be expired or invalid. "
                    "Check your Dataverse credentials."
                )
            if response.status_code == 404:
                raise NotFoundError(
                    f"Table '{table}' not found. Verify the logical name "
                    "(e.g. 'accounts', 'contacts')."
                )
            raise UpstreamApiError("Dataverse", response.status_code, response.text)

        data = response.json()
        records.extend(strip_odata_annotations(row) for row in data.get("value") or [])
        pages += 1

        # nextLink already carries the query string
        url = data.get("@odata.nextLink")
        page_params = None

    return records, url
